"""
hstore - PostgreSQL hstore literals for Python.
Immutable ordered key/value record, lossless literal codec, JSON projection.

Round-trip > Immutability > Speed
"""

__version__ = "0.1.0"

from hstore.spec import CAST_SUFFIX, NULL_TOKEN
from hstore.document import HStore, Entry, EMPTY
from hstore.reader import HStoreReader, HStoreFormatError
from hstore.writer import HStoreWriter
from hstore.converters import to_json, to_json_loose
from hstore.adapters import ExtractorCache, KeyValueSource, excluded, to_value
