"""Cursor-to-Arrow batch reading for columnar transports.

This package turns a row-oriented query cursor into a stream of Arrow record
batches of at most 1024 rows, ready to be handed to a Flight SQL server or any
other consumer of ``pyarrow.RecordBatchReader``.

Layers (leaf first):
    ├── type_mapping (declared column types → Arrow types)
    ├── destinations (reusable per-column scan slots)
    ├── builder (column appenders → RecordBatch)
    └── batch_reader (pull loop, errors, reference counting)

Usage:
    import sqlite3
    from sqlflight.read import CursorBatchReader, DBAPICursor

    conn = sqlite3.connect("orders.db")
    cursor = DBAPICursor(conn.execute("SELECT * FROM orders"))

    reader = CursorBatchReader.from_cursor(cursor)
    table = reader.to_pyarrow().read_all()
    reader.release()
"""

import logging

from ._config import ReaderConfig, load_config
from .batch_reader import CursorBatchReader, ReaderState, schema_from_columns
from .builder import BatchBuilder
from .cursor import ColumnType, Cursor, DBAPICursor
from .destinations import UnionKind, UnionValue, allocate_destinations
from .exceptions import (
    BatchReaderError,
    UnsupportedTypeError,
    UnsupportedNativeKindError,
    SchemaInferenceError,
    ScanConversionError,
    ScanError,
    ReaderClosedError,
    InvalidConfigError,
)
from .type_mapping import UNION_TYPE, ColumnKind, NativeKind, map_type

__all__ = [
    # Reader
    "CursorBatchReader",
    "ReaderState",
    "BatchBuilder",
    "schema_from_columns",
    "allocate_destinations",

    # Cursors
    "Cursor",
    "ColumnType",
    "DBAPICursor",

    # Types
    "map_type",
    "ColumnKind",
    "NativeKind",
    "UNION_TYPE",
    "UnionKind",
    "UnionValue",

    # Configuration
    "ReaderConfig",
    "load_config",

    # Exceptions
    "BatchReaderError",
    "UnsupportedTypeError",
    "UnsupportedNativeKindError",
    "SchemaInferenceError",
    "ScanConversionError",
    "ScanError",
    "ReaderClosedError",
    "InvalidConfigError",
]

# Set up logging
logger = logging.getLogger("sqlflight.read")
logger.setLevel(logging.INFO)

# Add console handler if not already added
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
