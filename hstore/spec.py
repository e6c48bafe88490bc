"""
hstore Literal Specification
============================

Layout:
    '<key>=><value>,<key>=><value>'::hstore

    'a=>1,b=>NULL,"c d"=>"x,y"'::hstore
     ^  ^ ^  ^    ^       ^
     |  | |  |    |       +-- quoted value (contains a comma)
     |  | |  |    +---------- quoted key (contains a space)
     |  | |  +--------------- bare NULL: the value is SQL NULL
     |  | +------------------ separator between pairs
     |  +-------------------- arrow
     +----------------------- bare key

Design Decisions:
    - Output is always the cast form: leading ', trailing '::hstore
    - Input may be the cast form, a bare '...' literal, or an unwrapped pair list
    - Inside the outer quotes a literal apostrophe is doubled ('') as in SQL
    - Tokens are quoted only when they must be (see QUOTE_TRIGGERS)
    - The empty string is always quoted ("") so it never reads back as missing
    - Only an unquoted value can be NULL; "NULL" in quotes is a 4-char string

Token Escaping:
    - Inside any token: \\" \\\\ \\n \\t \\r \\b \\f
    - Reader additionally accepts \\uXXXX (4 hex digits)
    - Any other character after a backslash is a format error
"""

from __future__ import annotations

# Literal framing
QUOTE = '"'
APOSTROPHE = "'"
ESCAPE = "\\"
ARROW = "=>"
SEPARATOR = ","
CAST_SUFFIX = "'::hstore"
NULL_TOKEN = "NULL"

# Whitespace allowed around tokens and separators
WHITESPACE = " \t\r\n"

# Any of these inside a token forces it into double quotes
QUOTE_TRIGGERS = frozenset({'"', "'", ",", "=", " ", "\r", "\n", "\t"})

# Writer: character -> escaped form (apostrophe doubles for the outer literal)
ENCODE_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
    "\b": "\\b",
    "\f": "\\f",
    "'": "''",
}

# Reader: character after a backslash -> decoded character ("u" handled apart)
DECODE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
}

HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

# Safety limits
MAX_INPUT_SIZE = 100 * 1024 * 1024  # 100MB max literal length for reader

# Dataclass field metadata flag that keeps a field out of from_object()
EXCLUDE_METADATA_KEY = "hstore_exclude"

# Environment variable read by the CLI
LOG_LEVEL_ENV = "HSTORE_LOG_LEVEL"


def needs_quoting(token: str) -> bool:
    """Check if a non-null token must be wrapped in double quotes.

    Empty strings and anything spelled NULL are quoted so the reader can
    tell them apart from a missing value and from SQL NULL.
    """
    if not token:
        return True
    if token.upper() == NULL_TOKEN:
        return True
    return any(c in QUOTE_TRIGGERS for c in token)


def escape_token(token: str) -> str:
    """Escape a token body. Does not add the surrounding quotes."""
    if not any(c in ENCODE_ESCAPES for c in token):
        return token
    return "".join(ENCODE_ESCAPES.get(c, c) for c in token)


def encode_token(token: str | None) -> str:
    """Render one key or value as it appears inside the literal."""
    if token is None:
        return NULL_TOKEN
    escaped = escape_token(token)
    if needs_quoting(token):
        return QUOTE + escaped + QUOTE
    return escaped


def unescape_token(raw: str, position: int = 0) -> str:
    """Decode backslash escapes in a raw token body.

    ``position`` is the offset of ``raw`` in the full input and is only used
    for error reporting. Raises HStoreFormatError on an unsupported escape.
    """
    if ESCAPE not in raw:
        return raw

    from hstore.reader import HStoreFormatError

    out: list[str] = []
    i = 0
    n = len(raw)
    while i < n:
        c = raw[i]
        if c != ESCAPE:
            out.append(c)
            i += 1
            continue
        if i + 1 >= n:
            raise HStoreFormatError("Dangling backslash at end of token", position + i)
        code = raw[i + 1]
        if code == "u":
            unit = _hex_unit(raw, i, position)
            i += 6
            # High surrogate directly followed by a \u low surrogate: one code point
            if 0xD800 <= unit <= 0xDBFF and raw.startswith(ESCAPE + "u", i):
                low = _hex_unit(raw, i, position)
                if 0xDC00 <= low <= 0xDFFF:
                    unit = 0x10000 + ((unit - 0xD800) << 10) + (low - 0xDC00)
                    i += 6
            out.append(chr(unit))
            continue
        decoded = DECODE_ESCAPES.get(code)
        if decoded is None:
            raise HStoreFormatError(f"Unsupported escape sequence: \\{code}", position + i)
        out.append(decoded)
        i += 2

    return "".join(out)


def _hex_unit(raw: str, i: int, position: int) -> int:
    """Value of the \\uXXXX escape starting at raw[i]."""
    from hstore.reader import HStoreFormatError

    digits = raw[i + 2:i + 6]
    if len(digits) != 4 or not all(d in HEX_DIGITS for d in digits):
        raise HStoreFormatError(f"Invalid unicode escape: \\u{digits!s}", position + i)
    return int(digits, 16)
