"""
hstore Writer - Serializes HStore to the canonical literal.

Output is always the cast form so it can be pasted into SQL as is:
    'k1=>v1,k2=>NULL,"k 3"=>"v,3"'::hstore
"""

from __future__ import annotations

import os
import tempfile
from typing import TYPE_CHECKING

from hstore.spec import APOSTROPHE, ARROW, SEPARATOR, CAST_SUFFIX, encode_token

if TYPE_CHECKING:
    from hstore.document import HStore


class HStoreWriter:

    @staticmethod
    def serialize(hs: HStore) -> str:
        """Serialize an HStore to its canonical literal. Pure."""
        body = SEPARATOR.join(
            f"{encode_token(key)}{ARROW}{encode_token(value)}"
            for key, value in hs.items()
        )
        return f"{APOSTROPHE}{body}{CAST_SUFFIX}"

    @staticmethod
    def write(hs: HStore, path: str, mode: int = 0o644) -> int:
        """Write the literal of an HStore to a file atomically. Returns bytes written.

        Uses write-to-temp-then-rename so the target is never partially written.
        """
        data = (HStoreWriter.serialize(hs) + "\n").encode("utf-8")
        dir_name = os.path.dirname(os.path.abspath(path)) or "."
        fd, tmp_path = tempfile.mkstemp(dir=dir_name, suffix=".hstore.tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, mode)
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        return len(data)
