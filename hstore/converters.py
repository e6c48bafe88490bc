"""
hstore Converters - Project an HStore into other text formats.

  - to_text        canonical '...'::hstore literal (same as str(hs))
  - to_json        strict JSON: every value is a string or null
  - to_json_loose  loose JSON: "t"/"f" become booleans, numeric text becomes numbers

JSON here is output only; nothing in this package reads JSON back.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hstore.document import HStore


# Characters allowed in text that to_json_loose will emit as a bare number
_NUMERIC_CHARS = frozenset("0123456789+-.,")

# JSON number grammar, minus the exponent part
_JSON_NUMBER = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?")


# =============================================================================
# Canonical literal
# =============================================================================

def to_text(hs: HStore) -> str:
    """Convert an HStore to its canonical literal."""
    from hstore.writer import HStoreWriter
    return HStoreWriter.serialize(hs)


# =============================================================================
# JSON
# =============================================================================

def to_json(hs: HStore, indent: int | None = None) -> str:
    """Convert an HStore to a JSON object of strings and nulls.

    Keys keep their order. Compact separators unless ``indent`` is given.
    """
    if indent is None:
        return json.dumps(hs.to_dict(), ensure_ascii=False, separators=(",", ":"))
    return json.dumps(hs.to_dict(), ensure_ascii=False, indent=indent)


def to_json_loose(hs: HStore) -> str:
    """Convert an HStore to JSON, guessing booleans and numbers from the text.

    Best effort only: the value text decides, there is no schema.
    """
    parts = []
    for key, value in hs.items():
        parts.append(f"{_json_string(key)}:{_loose_value(value)}")
    return "{" + ",".join(parts) + "}"


def _json_string(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


def _loose_value(value: str | None) -> str:
    if value is None:
        return "null"
    if value == "t":
        return "true"
    if value == "f":
        return "false"
    if looks_numeric(value):
        return value
    return _json_string(value)


def looks_numeric(text: str) -> bool:
    """Heuristic number check used by to_json_loose.

    Every character must be a digit or one of ``+ - . ,``, there is no
    leading zero unless the text is exactly "0", and float() must accept it.
    The text must also be a valid JSON number, so "+5", ".5" and "5." stay
    strings.
    """
    if not text:
        return False
    if text[0] == "0" and text != "0":
        return False
    if not all(c in _NUMERIC_CHARS for c in text):
        return False
    try:
        float(text)
    except ValueError:
        return False
    return _JSON_NUMBER.fullmatch(text) is not None


# =============================================================================
# Format registry
# =============================================================================

CONVERTERS_TO = {
    "hstore": to_text,
    "text": to_text,
    "json": to_json,
    "json-loose": to_json_loose,
}


def convert_to(hs: HStore, fmt: str) -> str:
    """Convert an HStore to the specified format."""
    converter = CONVERTERS_TO.get(fmt.lower())
    if converter is None:
        raise ValueError(f"Unknown format: {fmt}. Supported: {list(CONVERTERS_TO.keys())}")
    return converter(hs)
