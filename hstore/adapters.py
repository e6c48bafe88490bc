"""
hstore Adapters - Turn Python values and objects into hstore pairs.

Two jobs:
  - to_value()   normalize one scalar into the string hstore stores
  - pairs_from() get an ordered list of (key, value) pairs out of an object

Objects are handled in this order:
  1. an explicit extractor function passed by the caller
  2. a to_key_value_pairs() method (KeyValueSource protocol)
  3. any Mapping (its items)
  4. a per-type extractor built once and kept in an ExtractorCache:
     dataclass fields, namedtuple fields, or public instance attributes

Usage:
    @dataclass
    class User:
        name: str
        joined: datetime
        password: str = excluded(default="")

    HStore.from_object(User("bob", datetime(2020, 1, 1)))
    # 'name=>bob,joined=>2020-01-01T00:00:00'::hstore
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable, Protocol, runtime_checkable

from hstore.spec import EXCLUDE_METADATA_KEY

logger = logging.getLogger(__name__)

Pairs = list[tuple[str, Any]]
Extractor = Callable[[Any], Iterable[tuple[str, Any]]]


# =============================================================================
# Scalars
# =============================================================================

def to_value(value: Any) -> str | None:
    """Normalize a scalar to its canonical hstore string.

    bool -> "t"/"f", timestamps -> ISO-8601 (round-trips with fromisoformat),
    floats -> shortest repr, None stays None.
    """
    if value is None or isinstance(value, str):
        return value
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "t" if value else "f"
    if isinstance(value, (int, Decimal)):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


# =============================================================================
# Object -> pairs
# =============================================================================

@runtime_checkable
class KeyValueSource(Protocol):
    """Objects that know how to describe themselves as hstore pairs."""

    def to_key_value_pairs(self) -> Iterable[tuple[str, Any]]: ...


def excluded(**kwargs: Any) -> Any:
    """dataclasses.field() that from_object() leaves out."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[EXCLUDE_METADATA_KEY] = True
    return dataclasses.field(metadata=metadata, **kwargs)


def build_extractor(cls: type) -> Extractor:
    """Build the pair extractor for a type.

    The field list is worked out once per type; the returned function only
    reads attributes.
    """
    if dataclasses.is_dataclass(cls):
        names = tuple(
            f.name for f in dataclasses.fields(cls)
            if not f.metadata.get(EXCLUDE_METADATA_KEY)
        )
        return lambda obj: [(name, getattr(obj, name)) for name in names]

    fields = getattr(cls, "_fields", None)
    if issubclass(cls, tuple) and isinstance(fields, tuple):
        names = tuple(fields)
        return lambda obj: list(zip(names, obj))

    return _public_attributes


def _public_attributes(obj: Any) -> Pairs:
    try:
        attrs = vars(obj)
    except TypeError:
        raise TypeError(
            f"Cannot extract hstore pairs from {type(obj).__name__}: "
            f"pass extractor= or implement to_key_value_pairs()"
        ) from None
    return [(k, v) for k, v in attrs.items() if not k.startswith("_")]


class ExtractorCache:
    """Thread-safe memo of type -> extractor.

    Extractors are built outside the lock. If two threads race on the same
    type both build one, the first stored wins and the other is dropped;
    either would behave the same.
    """

    def __init__(self, builder: Callable[[type], Extractor] = build_extractor) -> None:
        self._builder = builder
        self._extractors: dict[type, Extractor] = {}
        self._lock = threading.Lock()

    def get(self, cls: type) -> Extractor:
        extractor = self._extractors.get(cls)
        if extractor is not None:
            return extractor

        built = self._builder(cls)
        logger.debug("Built hstore extractor for %s", cls.__qualname__)
        with self._lock:
            stored = self._extractors.setdefault(cls, built)
        if stored is not built:
            logger.debug("Discarded duplicate extractor for %s", cls.__qualname__)
        return stored

    def __contains__(self, cls: type) -> bool:
        return cls in self._extractors

    def __len__(self) -> int:
        return len(self._extractors)

    def clear(self) -> None:
        with self._lock:
            self._extractors.clear()


DEFAULT_CACHE = ExtractorCache()


def pairs_from(
    source: Any,
    extractor: Extractor | None = None,
    cache: ExtractorCache | None = None,
) -> Pairs:
    """Ordered (key, value) pairs from an opaque source object.

    Values are passed through to_value(); keys are left as given.
    """
    if source is None:
        raise ValueError("Cannot build hstore pairs from None")

    if extractor is not None:
        raw = extractor(source)
    elif isinstance(source, KeyValueSource):
        raw = source.to_key_value_pairs()
    elif isinstance(source, Mapping):
        raw = source.items()
    else:
        raw = (cache or DEFAULT_CACHE).get(type(source))(source)

    return [(key, to_value(value)) for key, value in raw]
