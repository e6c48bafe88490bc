"""
Unit Tests - Test individual components in isolation.
"""

import threading
from collections import namedtuple
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from hstore.spec import (
    NULL_TOKEN, needs_quoting, escape_token, encode_token, unescape_token,
)
from hstore.document import HStore, Entry, EMPTY
from hstore.reader import HStoreFormatError
from hstore.adapters import (
    ExtractorCache, build_extractor, excluded, pairs_from, to_value,
)


# =============================================================================
# Token rules
# =============================================================================

class TestTokenRules:

    def test_plain_token_not_quoted(self):
        assert not needs_quoting("abc")
        assert encode_token("abc") == "abc"

    @pytest.mark.parametrize("token", ["", "a b", "a,b", "a=b", "a'b", 'a"b', "a\nb", "a\rb", "a\tb"])
    def test_quote_triggers(self, token):
        assert needs_quoting(token)

    @pytest.mark.parametrize("token", ["NULL", "null", "nUlL"])
    def test_null_spelling_is_quoted(self, token):
        assert encode_token(token) == f'"{token}"'

    def test_none_is_bare_null(self):
        assert encode_token(None) == NULL_TOKEN

    def test_escape_token(self):
        assert escape_token('a"b') == 'a\\"b'
        assert escape_token("a\\b") == "a\\\\b"
        assert escape_token("it's") == "it''s"
        assert escape_token("\b\f\n\r\t") == "\\b\\f\\n\\r\\t"

    def test_unescape_token(self):
        assert unescape_token('a\\"b') == 'a"b'
        assert unescape_token("\\u0041\\u00e9") == "Aé"
        assert unescape_token("plain") == "plain"

    def test_unescape_rejects_unknown_escape(self):
        with pytest.raises(HStoreFormatError) as exc:
            unescape_token("ab\\x", position=10)
        assert exc.value.position == 12

    def test_unescape_rejects_dangling_backslash(self):
        with pytest.raises(HStoreFormatError):
            unescape_token("ab\\")

    def test_unescape_rejects_bad_hex(self):
        with pytest.raises(HStoreFormatError):
            unescape_token("\\u12zz")

    def test_unescape_joins_escaped_surrogate_pair(self):
        assert unescape_token("\\ud83d\\ude00") == "\U0001f600"
        assert unescape_token("a\\ud83d\\ude00b") == "a\U0001f600b"

    def test_unescape_leaves_raw_surrogates_alone(self):
        # Raw code points next to an escape are not merged
        assert unescape_token("\ud83d\\n\ude00") == "\ud83d\n\ude00"
        assert unescape_token("\\ud83d\ude00") == "\ud83d\ude00"
        assert unescape_token("\ud83d\\ude00") == "\ud83d\ude00"

    def test_unescape_lone_escaped_surrogates_kept(self):
        assert unescape_token("\\ud83d") == "\ud83d"
        assert unescape_token("\\ud83d\\u0041") == "\ud83dA"
        assert unescape_token("\\ude00\\ud83d") == "\ude00\ud83d"

    def test_format_error_is_value_error(self):
        assert issubclass(HStoreFormatError, ValueError)
        err = HStoreFormatError("bad", 3)
        assert err.message == "bad"
        assert "offset 3" in str(err)


# =============================================================================
# Value-literal adapter
# =============================================================================

class TestToValue:

    def test_bool(self):
        assert to_value(True) == "t"
        assert to_value(False) == "f"

    def test_numbers(self):
        assert to_value(42) == "42"
        assert to_value(-7) == "-7"
        assert to_value(1.5) == "1.5"
        assert to_value(0.1) == "0.1"
        assert to_value(Decimal("3.14")) == "3.14"

    def test_timestamps_roundtrip(self):
        ts = datetime(2024, 5, 6, 7, 8, 9, 123456, tzinfo=timezone.utc)
        assert to_value(ts) == "2024-05-06T07:08:09.123456+00:00"
        assert datetime.fromisoformat(to_value(ts)) == ts
        assert to_value(date(2024, 1, 2)) == "2024-01-02"

    def test_strings_and_none(self):
        assert to_value("x") == "x"
        assert to_value("") == ""
        assert to_value(None) is None

    def test_other_objects_use_str(self):
        class Thing:
            def __str__(self):
                return "thing!"
        assert to_value(Thing()) == "thing!"


# =============================================================================
# Container construction and queries
# =============================================================================

class TestHStoreBasics:

    def test_empty_singleton(self):
        assert len(EMPTY) == 0
        assert EMPTY == HStore()
        assert EMPTY.to_text() == "''::hstore"

    def test_from_mapping(self):
        hs = HStore({"a": "1", "b": None})
        assert list(hs.items()) == [("a", "1"), ("b", None)]

    def test_from_pairs_normalizes_values(self):
        hs = HStore([("on", True), ("n", 3), ("x", None)])
        assert hs.to_dict() == {"on": "t", "n": "3", "x": None}

    def test_none_key_rejected(self):
        with pytest.raises(ValueError):
            HStore({None: "x"})

    def test_duplicate_keys_first_wins(self):
        hs = HStore([("a", "1"), ("b", "2"), ("a", "3")])
        assert list(hs.items()) == [("a", "1"), ("b", "2")]

    def test_get(self):
        hs = HStore({"a": "1", "n": None})
        assert hs.get("a") == "1"
        assert hs.get("n") is None
        assert hs.get("missing") is None
        assert hs.get("missing", "d") == "d"

    def test_getitem_distinguishes_absent_from_null(self):
        hs = HStore({"n": None})
        assert hs["n"] is None
        with pytest.raises(KeyError):
            hs["missing"]

    def test_get_many(self):
        hs = HStore({"a": "1", "b": "2"})
        assert hs.get_many("b", "zz", "a") == ["2", None, "1"]
        assert hs.get_many() == []

    def test_contains_key(self):
        hs = HStore({"a": None})
        assert hs.contains("a")
        assert "a" in hs
        assert not hs.contains("b")
        assert "b" not in hs

    def test_contains_submap(self):
        hs = HStore({"a": "1", "b": "2", "n": None})
        assert hs.contains(HStore({"a": "1"}))
        assert hs.contains(HStore({"n": None, "b": "2"}))
        assert hs.contains(EMPTY)
        assert not hs.contains(HStore({"a": "2"}))
        assert not hs.contains(HStore({"n": ""}))
        assert not hs.contains(HStore({"zz": None}))

    def test_contains_rejects_other_types(self):
        with pytest.raises(TypeError):
            HStore().contains(42)

    def test_defined(self):
        hs = HStore({"a": "1", "n": None, "e": ""})
        assert hs.defined("a")
        assert hs.defined("e")
        assert not hs.defined("n")
        assert not hs.defined("missing")

    def test_contains_all_any(self):
        hs = HStore({"a": "1", "b": "2"})
        assert hs.contains_all("a", "b")
        assert not hs.contains_all("a", "c")
        assert hs.contains_all()
        assert hs.contains_any("c", "b")
        assert not hs.contains_any("c", "d")
        assert not hs.contains_any()

    def test_projections(self):
        hs = HStore({"a": "1", "b": None})
        assert hs.to_list() == ["a", "1", "b", None]
        assert hs.to_matrix() == [["a", "1"], ["b", None]]
        assert hs.entries() == [Entry("a", "1"), Entry("b", None)]
        key, value = hs.entries()[0]
        assert (key, value) == ("a", "1")

    def test_immutable_storage(self):
        hs = HStore({"a": "1"})
        with pytest.raises(AttributeError):
            hs.extra = 1
        with pytest.raises(TypeError):
            hs["a"] = "2"

    def test_repr(self):
        assert repr(HStore({"a": "1"})) == "HStore({'a': '1'})"


# =============================================================================
# Transforms
# =============================================================================

class TestTransforms:

    def test_concat_left_biased(self):
        a = HStore({"x": "1", "y": "2"})
        b = HStore({"y": "20", "z": "30"})
        c = a.concat(b)
        assert list(c.items()) == [("x", "1"), ("y", "20"), ("z", "30")]
        assert a.to_dict() == {"x": "1", "y": "2"}

    def test_concat_operator(self):
        assert (HStore({"a": "1"}) | HStore({"b": "2"})).to_dict() == {"a": "1", "b": "2"}

    def test_concat_null_overrides(self):
        c = HStore({"a": "1"}).concat(HStore({"a": None}))
        assert c.get("a") is None
        assert c.contains("a")

    def test_concat_noop_returns_self(self):
        a = HStore({"x": "1", "y": "2"})
        assert a.concat(EMPTY) is a
        assert a.concat(HStore({"y": "2"})) is a

    def test_concat_onto_empty_returns_other(self):
        b = HStore({"k": "v"})
        assert EMPTY.concat(b) is b

    def test_delete_key(self):
        hs = HStore({"a": "1", "b": "2", "c": "3"})
        assert list(hs.delete("b").items()) == [("a", "1"), ("c", "3")]
        assert hs.delete("b").get("b") is None

    def test_delete_keys(self):
        hs = HStore({"a": "1", "b": "2", "c": "3"})
        assert list(hs.delete("a", "c", "zz").items()) == [("b", "2")]

    def test_delete_missing_returns_self(self):
        hs = HStore({"a": "1"})
        assert hs.delete("zz") is hs
        assert hs.delete("y", "z") is hs
        assert hs.delete() is hs

    def test_delete_everything_returns_empty(self):
        assert HStore({"a": "1"}).delete("a") is EMPTY

    def test_delete_matching_entries(self):
        hs = HStore({"a": "1", "b": "2", "n": None})
        out = hs.delete(HStore({"a": "1", "b": "99", "n": None}))
        assert list(out.items()) == [("b", "2")]

    def test_delete_matching_entries_noop(self):
        hs = HStore({"a": "1"})
        assert hs.delete(HStore({"a": "2"})) is hs

    def test_delete_rejects_mixed_arguments(self):
        with pytest.raises(TypeError):
            HStore({"a": "1"}).delete("a", HStore({"a": "1"}))

    def test_replace(self):
        hs = HStore({"a": "1", "b": "2"})
        out = hs.replace(HStore({"b": "20", "c": "30"}))
        assert list(out.items()) == [("a", "1"), ("b", "20")]
        assert not out.contains("c")

    def test_replace_noop_returns_self(self):
        hs = HStore({"a": "1"})
        assert hs.replace(HStore({"z": "9"})) is hs
        assert hs.replace(HStore({"a": "1"})) is hs
        assert hs.replace(EMPTY) is hs

    def test_replace_with_null(self):
        out = HStore({"a": "1"}).replace(HStore({"a": None}))
        assert out["a"] is None

    def test_slice_request_order(self):
        hs = HStore({"a": "1", "b": "2"})
        assert list(hs.slice("b", "a").items()) == [("b", "2"), ("a", "1")]

    def test_slice_skips_missing_and_repeats(self):
        hs = HStore({"a": "1", "b": "2", "c": "3"})
        assert list(hs.slice("c", "zz", "c", "a").items()) == [("c", "3"), ("a", "1")]

    def test_slice_nothing_is_empty(self):
        assert HStore({"a": "1"}).slice("zz") is EMPTY
        assert HStore({"a": "1"}).slice() is EMPTY

    def test_transforms_reject_non_hstore(self):
        hs = HStore({"a": "1"})
        with pytest.raises(TypeError):
            hs.concat({"b": "2"})
        with pytest.raises(TypeError):
            hs.replace({"a": "2"})


# =============================================================================
# Equality and hashing
# =============================================================================

class TestEquality:

    def test_order_independent(self):
        a = HStore([("x", "1"), ("y", None)])
        b = HStore([("y", None), ("x", "1")])
        assert a == b
        assert hash(a) == hash(b)

    def test_value_differences(self):
        assert HStore({"a": "1"}) != HStore({"a": "2"})
        assert HStore({"a": None}) != HStore({"a": ""})
        assert HStore({"a": "1"}) != HStore({"a": "1", "b": "2"})
        assert HStore({"a": "1"}) != HStore({"b": "1"})

    def test_reflexive_symmetric_transitive(self):
        a = HStore([("p", "1"), ("q", "2"), ("r", None)])
        b = HStore([("r", None), ("p", "1"), ("q", "2")])
        c = HStore([("q", "2"), ("r", None), ("p", "1")])
        assert a == a
        assert a == b and b == a
        assert b == c and a == c

    def test_not_equal_to_dict(self):
        assert HStore({"a": "1"}) != {"a": "1"}

    def test_usable_in_sets(self):
        s = {HStore({"a": "1", "b": "2"}), HStore({"b": "2", "a": "1"})}
        assert len(s) == 1

    def test_hash_definition(self):
        hs = HStore({"a": "1", "n": None})
        assert hash(hs) == hash(hash("a") + hash("1") + hash("n"))


# =============================================================================
# Foreign-object adapter
# =============================================================================

@dataclass
class User:
    name: str
    age: int
    joined: datetime
    active: bool = True
    password: str = excluded(default="secret")


class Point:
    def __init__(self, x, y):
        self.x = x
        self.y = y
        self._cache = "hidden"


class Labelled:
    def to_key_value_pairs(self):
        return [("label", "yes"), ("n", 1)]


Pair = namedtuple("Pair", ["left", "right"])


class TestAdapters:

    def test_dataclass_fields_in_order(self):
        u = User("bob", 30, datetime(2020, 1, 2, 3, 4, 5))
        hs = HStore.from_object(u)
        assert list(hs.items()) == [
            ("name", "bob"),
            ("age", "30"),
            ("joined", "2020-01-02T03:04:05"),
            ("active", "t"),
        ]

    def test_excluded_field_skipped(self):
        hs = HStore.from_object(User("bob", 30, datetime(2020, 1, 1)))
        assert "password" not in hs

    def test_plain_object_public_attributes(self):
        assert HStore.from_object(Point(1, 2)).to_dict() == {"x": "1", "y": "2"}

    def test_protocol_method(self):
        assert HStore.from_object(Labelled()).to_dict() == {"label": "yes", "n": "1"}

    def test_namedtuple(self):
        assert HStore.from_object(Pair("l", None)).to_dict() == {"left": "l", "right": None}

    def test_mapping_source(self):
        assert HStore.from_object({"a": 1}).to_dict() == {"a": "1"}

    def test_explicit_extractor_wins(self):
        hs = HStore.from_object(Point(1, 2), extractor=lambda p: [("sum", p.x + p.y)])
        assert hs.to_dict() == {"sum": "3"}

    def test_none_source_rejected(self):
        with pytest.raises(ValueError):
            pairs_from(None)

    def test_unsupported_object(self):
        with pytest.raises(TypeError):
            pairs_from(object())

    def test_build_extractor_skips_excluded(self):
        extract = build_extractor(User)
        names = [k for k, _ in extract(User("a", 1, datetime(2020, 1, 1)))]
        assert names == ["name", "age", "joined", "active"]


class TestExtractorCache:

    def test_memoizes_per_type(self):
        calls = []

        def builder(cls):
            calls.append(cls)
            return build_extractor(cls)

        cache = ExtractorCache(builder)
        HStore.from_object(Point(1, 2), cache=cache)
        HStore.from_object(Point(3, 4), cache=cache)
        assert calls == [Point]
        assert Point in cache
        assert len(cache) == 1

    def test_clear(self):
        cache = ExtractorCache()
        cache.get(Point)
        cache.clear()
        assert len(cache) == 0

    def test_concurrent_population_keeps_one(self):
        barrier = threading.Barrier(8)

        built = []

        def builder(cls):
            barrier.wait(timeout=5)
            # A distinct extractor object per call, so racing threads differ
            extractor = lambda obj, cls=cls: build_extractor(cls)(obj)
            built.append(extractor)
            return extractor

        cache = ExtractorCache(builder)
        results = []

        def worker():
            results.append(cache.get(Point))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(built) == 8
        assert len({id(b) for b in built}) == 8
        assert len(results) == 8
        assert all(r is results[0] for r in results)
        assert cache.get(Point) is results[0]
        assert len(cache) == 1
        assert results[0](Point(1, 2)) == [("x", 1), ("y", 2)]
