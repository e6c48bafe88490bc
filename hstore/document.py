"""
hstore Document - Immutable in-memory representation of an hstore value.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Entry:
    """A single key/value pair. ``value`` is None for SQL NULL."""
    key: str
    value: str | None

    def __iter__(self) -> Iterator[str | None]:
        yield self.key
        yield self.value


class HStore(Mapping):
    """
    Immutable, ordered hstore value.

    Keys are unique and never None; values may be None. Order is kept for
    iteration and encoding but ignored by == and hash().

    Usage:
        hs = HStore({"a": "1", "b": None})
        hs = HStore.parse("a=>1, b=>NULL")
        hs.get("a")                      # "1"
        hs.concat(HStore({"c": 3}))      # new HStore, hs untouched
        str(hs)                          # 'a=>1,b=>NULL'::hstore
    """

    __slots__ = ("_keys", "_values", "_index")

    def __init__(self, items: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None) -> None:
        from hstore.adapters import to_value

        keys: list[str] = []
        values: list[str | None] = []
        index: dict[str, int] = {}
        if items is not None:
            pairs = items.items() if isinstance(items, Mapping) else items
            for key, value in pairs:
                if key is None:
                    raise ValueError("hstore key cannot be None")
                if not isinstance(key, str):
                    key = str(key)
                if key in index:
                    # First-wins: a repeated key never overrides the earlier one
                    logger.debug("Dropping duplicate hstore key %r", key)
                    continue
                index[key] = len(keys)
                keys.append(key)
                values.append(to_value(value))
        self._keys: tuple[str, ...] = tuple(keys)
        self._values: tuple[str | None, ...] = tuple(values)
        self._index: dict[str, int] = index

    @classmethod
    def _from_trusted(cls, keys: Iterable[str], values: Iterable[str | None]) -> HStore:
        """Build from already-normalized, already-unique keys and values."""
        hs = cls.__new__(cls)
        hs._keys = tuple(keys)
        hs._values = tuple(values)
        hs._index = {k: i for i, k in enumerate(hs._keys)}
        return hs

    # -- construction shortcuts ----------------------------------------------

    @classmethod
    def parse(cls, text: str) -> HStore:
        """Parse an hstore literal. Raises HStoreFormatError on bad input."""
        from hstore.reader import HStoreReader
        return HStoreReader.parse(text)

    @classmethod
    def try_parse(cls, text: str) -> HStore | None:
        """Parse an hstore literal, returning None on bad input."""
        from hstore.reader import HStoreReader
        return HStoreReader.try_parse(text)

    @classmethod
    def from_object(
        cls,
        source: Any,
        extractor: Callable[[Any], Iterable[tuple[str, Any]]] | None = None,
        cache: Any = None,
    ) -> HStore:
        """Build from any object that can yield (key, value) pairs.

        See hstore.adapters.pairs_from for how pairs are found.
        """
        from hstore.adapters import pairs_from
        return cls(pairs_from(source, extractor=extractor, cache=cache))

    # -- Mapping protocol ----------------------------------------------------

    def __getitem__(self, key: str) -> str | None:
        return self._values[self._index[key]]

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    # -- queries -------------------------------------------------------------

    def get(self, key: str, default: str | None = None) -> str | None:
        """Value for ``key``; ``default`` when the key is absent."""
        i = self._index.get(key)
        if i is None:
            return default
        return self._values[i]

    def get_many(self, *keys: str) -> list[str | None]:
        """Values for several keys, in the order asked. Missing keys give None."""
        return [self.get(k) for k in keys]

    def contains(self, item: str | HStore) -> bool:
        """Key presence for a str; sub-map containment for an HStore.

        For an HStore every entry of ``item`` must be present here with the
        same key and the same value (None matches None).
        """
        if isinstance(item, HStore):
            return all(self._has_entry(k, v) for k, v in zip(item._keys, item._values))
        if isinstance(item, str):
            return item in self._index
        raise TypeError(f"contains() expects str or HStore, got {type(item).__name__}")

    def defined(self, key: str) -> bool:
        """True if ``key`` is present and its value is not NULL."""
        i = self._index.get(key)
        return i is not None and self._values[i] is not None

    def contains_all(self, *keys: str) -> bool:
        return all(k in self._index for k in keys)

    def contains_any(self, *keys: str) -> bool:
        return any(k in self._index for k in keys)

    def _has_entry(self, key: str, value: str | None) -> bool:
        i = self._index.get(key)
        return i is not None and self._values[i] == value

    # -- transforms ----------------------------------------------------------

    def concat(self, other: HStore) -> HStore:
        """Left-biased union: ``other`` wins on shared keys, new keys are appended.

        Returns self unchanged when ``other`` adds or changes nothing.
        """
        other = _require_hstore(other, "concat")
        if not self._keys:
            return other
        if self.contains(other):
            return self

        values = list(self._values)
        new_keys: list[str] = []
        new_values: list[str | None] = []
        for key, value in zip(other._keys, other._values):
            i = self._index.get(key)
            if i is not None:
                values[i] = value
            else:
                new_keys.append(key)
                new_values.append(value)
        return HStore._from_trusted(self._keys + tuple(new_keys), values + new_values)

    __or__ = concat

    def delete(self, *items: str | HStore) -> HStore:
        """Remove entries.

        ``delete("a")`` and ``delete("a", "b")`` remove by key;
        ``delete(other_hstore)`` removes only entries whose key and value both
        match an entry of ``other_hstore``. Returns self when nothing matched.
        """
        if len(items) == 1 and isinstance(items[0], HStore):
            other = items[0]
            doomed = {k for k, v in zip(other._keys, other._values) if self._has_entry(k, v)}
        else:
            for k in items:
                if not isinstance(k, str):
                    raise TypeError(
                        f"delete() expects keys or a single HStore, got {type(k).__name__}"
                    )
            doomed = {k for k in items if k in self._index}

        if not doomed:
            return self
        if len(doomed) == len(self._keys):
            return EMPTY
        kept = [i for i, k in enumerate(self._keys) if k not in doomed]
        return HStore._from_trusted(
            (self._keys[i] for i in kept), (self._values[i] for i in kept)
        )

    def replace(self, other: HStore) -> HStore:
        """Update values of keys that already exist here. Never adds keys.

        Returns self when no value changes.
        """
        other = _require_hstore(other, "replace")
        values = list(self._values)
        modified = False
        for key, value in zip(other._keys, other._values):
            i = self._index.get(key)
            if i is not None and values[i] != value:
                values[i] = value
                modified = True
        if not modified:
            return self
        return HStore._from_trusted(self._keys, values)

    def slice(self, *keys: str) -> HStore:
        """Project onto the requested keys that exist, in the order requested."""
        picked: dict[str, str | None] = {}
        for key in keys:
            i = self._index.get(key)
            if i is not None and key not in picked:
                picked[key] = self._values[i]
        if not picked:
            return EMPTY
        return HStore._from_trusted(picked.keys(), picked.values())

    # -- comparison ----------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HStore):
            return NotImplemented
        if self is other:
            return True
        if len(self._keys) != len(other._keys):
            return False
        return all(self._has_entry(k, v) for k, v in zip(other._keys, other._values))

    def __hash__(self) -> int:
        # Sum is order-independent, matching __eq__
        h = 0
        for key, value in zip(self._keys, self._values):
            h += hash(key)
            h += hash(value) if value is not None else 0
        return h

    # -- projections ---------------------------------------------------------

    def entries(self) -> list[Entry]:
        """All entries in order."""
        return [Entry(k, v) for k, v in zip(self._keys, self._values)]

    def to_list(self) -> list[str | None]:
        """Flat ``[k0, v0, k1, v1, ...]`` list."""
        flat: list[str | None] = []
        for key, value in zip(self._keys, self._values):
            flat.append(key)
            flat.append(value)
        return flat

    def to_matrix(self) -> list[list[str | None]]:
        """``[[k0, v0], [k1, v1], ...]``."""
        return [[k, v] for k, v in zip(self._keys, self._values)]

    def to_dict(self) -> dict[str, str | None]:
        return dict(zip(self._keys, self._values))

    def to_text(self) -> str:
        """Canonical ``'...'::hstore`` literal."""
        from hstore.writer import HStoreWriter
        return HStoreWriter.serialize(self)

    def to_json(self, indent: int | None = None) -> str:
        from hstore.converters import to_json
        return to_json(self, indent=indent)

    def to_json_loose(self) -> str:
        from hstore.converters import to_json_loose
        return to_json_loose(self)

    def write(self, path: str) -> int:
        """Write the canonical literal to a file. Returns bytes written."""
        from hstore.writer import HStoreWriter
        return HStoreWriter.write(self, path)

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return f"HStore({self.to_dict()!r})"


def _require_hstore(other: object, op: str) -> HStore:
    if not isinstance(other, HStore):
        raise TypeError(f"{op}() expects an HStore, got {type(other).__name__}")
    return other


EMPTY = HStore()
