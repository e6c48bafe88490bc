"""
hstore Reader - Single-pass parser for hstore literals.

Speed features:
  - One forward cursor over the input, no backtracking, no regex
  - Tokens without a backslash are sliced straight out of the input
  - The container is built once, after the whole literal has parsed

Safety features:
  - Input size limit (prevents runaway scans on crafted input)
  - Unknown escape sequences are rejected, never passed through
  - try_parse() reports failure without raising
"""

from __future__ import annotations

import logging
from pathlib import Path

from hstore.spec import (
    QUOTE, APOSTROPHE, ESCAPE, ARROW, SEPARATOR, CAST_SUFFIX, NULL_TOKEN,
    WHITESPACE, MAX_INPUT_SIZE, unescape_token,
)
from hstore.document import HStore

logger = logging.getLogger(__name__)


class HStoreFormatError(ValueError):
    """Raised when text is not a valid hstore literal."""

    def __init__(self, message: str, position: int | None = None) -> None:
        self.message = message
        self.position = position
        if position is not None:
            message = f"{message} (at offset {position})"
        super().__init__(message)


class HStoreReader:
    """
    hstore literal parser.

    Usage:
        hs = HStoreReader.parse("a=>1, b=>NULL")
        hs = HStoreReader.parse("'\\"1-a\\" => \\"anything at all\\"'::hstore")

        # Non-throwing variant
        hs = HStoreReader.try_parse(text)
        if hs is None:
            ...
    """

    @classmethod
    def parse(cls, text: str, max_size: int = MAX_INPUT_SIZE) -> HStore:
        """Parse an hstore literal into an HStore."""
        if len(text) > max_size:
            raise HStoreFormatError(
                f"Input size {len(text)} exceeds maximum {max_size} characters. "
                f"Pass max_size= to override."
            )
        body = cls._unwrap(text.strip(WHITESPACE))
        return HStore(cls.parse_pairs(body))

    @classmethod
    def try_parse(cls, text: str, max_size: int = MAX_INPUT_SIZE) -> HStore | None:
        """Parse an hstore literal. Returns None instead of raising on bad input."""
        try:
            return cls.parse(text, max_size=max_size)
        except HStoreFormatError as e:
            logger.debug("Rejected hstore literal: %s", e)
            return None

    @classmethod
    def read(cls, path: str | Path, max_size: int = MAX_INPUT_SIZE) -> HStore:
        """Read a UTF-8 file holding one hstore literal."""
        path = Path(path)
        file_size = path.stat().st_size
        if file_size > max_size:
            raise HStoreFormatError(
                f"File size {file_size} exceeds maximum {max_size} bytes. "
                f"Pass max_size= to override."
            )
        return cls.parse(path.read_text(encoding="utf-8"), max_size=max_size)

    @staticmethod
    def _unwrap(text: str) -> str:
        """Strip the optional '...' or '...'::hstore framing.

        Inside the framing a doubled apostrophe stands for one apostrophe.
        """
        if not text.startswith(APOSTROPHE):
            return text
        if len(text) >= len(CAST_SUFFIX) + 1 and text.lower().endswith(CAST_SUFFIX):
            body = text[1:-len(CAST_SUFFIX)]
        elif len(text) >= 2 and text.endswith(APOSTROPHE):
            body = text[1:-1]
        else:
            raise HStoreFormatError(
                "Literal opens with ' but does not end with ' or '::hstore", len(text)
            )
        return body.replace(APOSTROPHE * 2, APOSTROPHE).strip(WHITESPACE)

    @classmethod
    def parse_pairs(cls, s: str) -> list[tuple[str, str | None]]:
        """Tokenize an unwrapped pair list into (key, value) pairs in input order."""
        pairs: list[tuple[str, str | None]] = []
        n = len(s)
        cursor = 0

        while True:
            # Separators between pairs
            while cursor < n and (s[cursor] in WHITESPACE or s[cursor] == SEPARATOR):
                cursor += 1
            if cursor >= n:
                break

            # Key
            if s[cursor] == QUOTE:
                key, cursor = cls._read_quoted(s, cursor)
                cursor = cls._skip_whitespace(s, cursor)
                if not s.startswith(ARROW, cursor):
                    raise HStoreFormatError(f"Expected '{ARROW}' after key {key!r}", cursor)
                cursor += len(ARROW)
            else:
                start = cursor
                cursor = cls._scan_until(s, cursor, "=")
                if cursor >= n:
                    raise HStoreFormatError("Missing '=>' after key", start)
                raw = s[start:cursor].rstrip(WHITESPACE)
                if not raw:
                    raise HStoreFormatError("Empty unquoted key", start)
                if cursor + 1 >= n or s[cursor + 1] != ">":
                    raise HStoreFormatError("Expected '>' after '='", cursor + 1)
                key = unescape_token(raw, start)
                cursor += len(ARROW)

            # Value
            cursor = cls._skip_whitespace(s, cursor)
            if cursor >= n:
                raise HStoreFormatError(f"Missing value for key {key!r}", cursor)
            value: str | None
            if s[cursor] == QUOTE:
                value, cursor = cls._read_quoted(s, cursor)
            else:
                start = cursor
                cursor = cls._scan_until(s, cursor, SEPARATOR)
                raw = s[start:min(cursor, n)].rstrip(WHITESPACE)
                if not raw:
                    raise HStoreFormatError(f"Missing value for key {key!r}", start)
                if raw.upper() == NULL_TOKEN:
                    value = None
                else:
                    value = unescape_token(raw, start)

            pairs.append((key, value))

        return pairs

    @staticmethod
    def _skip_whitespace(s: str, cursor: int) -> int:
        while cursor < len(s) and s[cursor] in WHITESPACE:
            cursor += 1
        return cursor

    @staticmethod
    def _scan_until(s: str, cursor: int, stop: str) -> int:
        """Advance to the next unescaped ``stop`` character (or past the end)."""
        n = len(s)
        while cursor < n:
            c = s[cursor]
            if c == ESCAPE:
                cursor += 2
            elif c == stop:
                return cursor
            else:
                cursor += 1
        return cursor

    @classmethod
    def _read_quoted(cls, s: str, cursor: int) -> tuple[str, int]:
        """Read a "..." token starting at the opening quote.

        Returns the decoded token and the cursor just past the closing quote.
        """
        start = cursor + 1
        end = cls._scan_until(s, start, QUOTE)
        if end >= len(s):
            raise HStoreFormatError("Unterminated quoted token", cursor)
        return unescape_token(s[start:end], start), end + 1
