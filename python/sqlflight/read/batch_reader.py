"""Pull-based reader that drains a cursor into Arrow record batches.

Usage:
    import sqlite3
    from sqlflight.read import CursorBatchReader, DBAPICursor

    conn = sqlite3.connect(":memory:")
    cursor = DBAPICursor(conn.execute("SELECT 1 AS id, 'a' AS name"))

    with CursorBatchReader.from_cursor(cursor) as reader:
        while reader.next():
            print(reader.record.to_pydict())
        if reader.err is not None:
            raise reader.err

The reader is reference counted so a producer loop and a streaming consumer
can share it: every holder calls ``retain()`` once and ``release()`` once,
and the last ``release()`` closes the cursor.
"""

import enum
import logging
import threading
import time
import weakref
from typing import Iterator, List, Optional, Sequence

import pyarrow as pa

from ._config import ReaderConfig, load_config
from .builder import BatchBuilder
from .cursor import ColumnType, Cursor
from .destinations import allocate_destinations
from .exceptions import (
    InvalidConfigError,
    ReaderClosedError,
    ScanError,
    SchemaInferenceError,
    UnsupportedTypeError,
)
from .metrics import ReaderMetrics
from .type_mapping import column_metadata, field_name, map_type, sql_type_from_type_name

logger = logging.getLogger("sqlflight.read")


class ReaderState(enum.Enum):
    READY = "ready"
    HAS_BATCH = "has_batch"
    ERRORED = "errored"
    CLOSED = "closed"


def schema_from_columns(columns: Sequence[ColumnType], placeholder: str = "?") -> pa.Schema:
    """
    Build the reader schema from cursor column metadata.

    Args:
        columns: Column metadata in result order
        placeholder: Name the driver reports for unnamed columns

    Returns:
        Arrow schema with Flight SQL type metadata on every field

    Raises:
        UnsupportedTypeError: If a column type cannot be mapped
    """
    fields: List[pa.Field] = []
    for index, column in enumerate(columns):
        fields.append(
            pa.field(
                field_name(column.name, index, placeholder),
                map_type(column.database_type_name, column.nullable, column.scan_type),
                nullable=column.nullable,
                metadata=column_metadata(sql_type_from_type_name(column.database_type_name), ""),
            )
        )
    return pa.schema(fields)


class CursorBatchReader:
    """
    Stream a cursor's rows as Arrow record batches of at most ``batch_size`` rows.

    ``next()`` is not thread-safe; callers serialize it together with the
    accessors. ``retain()`` and ``release()`` may be called from any thread.
    """

    def __init__(
        self,
        schema: pa.Schema,
        cursor: Cursor,
        *,
        batch_size: Optional[int] = None,
        config: Optional[ReaderConfig] = None,
    ):
        """
        Create a reader with an explicit schema.

        Args:
            schema: Arrow schema of the result, one field per cursor column
            cursor: Open cursor positioned before the first row
            batch_size: Maximum rows per batch (default from config, 1024)
            config: Reader configuration (default: ``load_config()``)

        Raises:
            InvalidConfigError: If batch_size is not positive
            UnsupportedTypeError: If a field type is outside the supported set
        """
        try:
            config = config if config is not None else load_config()
            size = config.batch_size if batch_size is None else batch_size
            if size < 1:
                raise InvalidConfigError(f"batch_size must be >= 1, got: {size}")
            destinations = allocate_destinations(schema)
            builder = BatchBuilder(schema)
        except Exception:
            cursor.close()
            raise

        self._config = config
        self._batch_size = size
        self._schema = schema
        self._cursor: Optional[Cursor] = cursor
        self._destinations = destinations
        self._builder: Optional[BatchBuilder] = builder
        self._record: Optional[pa.RecordBatch] = None
        self._err: Optional[ScanError] = None
        self._closed = False

        self._lock = threading.Lock()
        self._ref_count = 1

        self.metrics = ReaderMetrics()

    @classmethod
    def from_cursor(
        cls,
        cursor: Cursor,
        *,
        batch_size: Optional[int] = None,
        config: Optional[ReaderConfig] = None,
    ) -> "CursorBatchReader":
        """
        Create a reader whose schema is inferred from the cursor's columns.

        The cursor is closed before any construction error propagates.

        Raises:
            InvalidConfigError: If the loaded configuration is invalid
            SchemaInferenceError: If column metadata cannot be retrieved
            UnsupportedTypeError: If a column type cannot be mapped
        """
        try:
            config = config if config is not None else load_config()
        except Exception:
            cursor.close()
            raise

        try:
            columns = cursor.column_types()
        except Exception as err:
            cursor.close()
            raise SchemaInferenceError(f"Failed to read column metadata: {err}") from err

        try:
            schema = schema_from_columns(columns, config.placeholder_name)
        except UnsupportedTypeError:
            cursor.close()
            raise

        logger.info(f"Inferred schema with {len(schema)} columns: {schema.names}")
        return cls(schema, cursor, batch_size=batch_size, config=config)

    @property
    def schema(self) -> pa.Schema:
        return self._schema

    @property
    def record(self) -> Optional[pa.RecordBatch]:
        """The batch exposed by the last successful ``next()``."""
        return self._record

    @property
    def err(self) -> Optional[ScanError]:
        """The scan error that stopped the reader, if any."""
        return self._err

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def ref_count(self) -> int:
        with self._lock:
            return self._ref_count

    @property
    def state(self) -> ReaderState:
        if self._closed:
            return ReaderState.CLOSED
        if self._err is not None:
            return ReaderState.ERRORED
        if self._record is not None:
            return ReaderState.HAS_BATCH
        return ReaderState.READY

    def next(self) -> bool:
        """
        Read up to ``batch_size`` rows into a new batch.

        The previous batch is dropped first. The new batch is exposed through
        ``record`` even when it is empty; the return value, not the batch
        length, tells whether rows were read.

        Returns:
            True if the batch holds at least one row. False when the cursor
            is exhausted or a scan failed; check ``err`` to tell them apart.

        Raises:
            ReaderClosedError: If the reader has been released
        """
        if self._closed:
            raise ReaderClosedError("next() called on a released reader")

        self._record = None
        if self._err is not None:
            return False

        start_time = time.time()
        rows = 0
        try:
            while rows < self._batch_size and self._cursor.advance():
                self._cursor.scan(self._destinations)
                self._builder.append(self._destinations)
                rows += 1
            record = self._builder.finalize()
        except Exception as err:
            self._builder.reset()
            self._err = self._scan_error(err)
            self.metrics.error = str(err)
            logger.warning(f"Scan failed after {rows} rows of the current batch: {err}")
            return False

        wall_time_ms = (time.time() - start_time) * 1000
        self._record = record
        self.metrics.record_batch(record.num_rows, record.nbytes, wall_time_ms)

        message = f"Batch {self.metrics.batches}: {record.num_rows:,} rows, {wall_time_ms:.1f}ms"
        if self._config.log_batches:
            logger.info(message)
        else:
            logger.debug(message)

        return rows > 0

    def _scan_error(self, err: Exception) -> ScanError:
        # The schema rides along for Flight SQL client diagnostics.
        error = ScanError(str(err), code="UNKNOWN", detail=self._schema.to_string())
        error.__cause__ = err
        return error

    def retain(self) -> None:
        """Add a holder."""
        with self._lock:
            if self._ref_count <= 0:
                raise ReaderClosedError("retain() called on a released reader")
            self._ref_count += 1

    def release(self) -> None:
        """
        Drop a holder; the last one closes the cursor.

        Raises:
            ReaderClosedError: If the reader has already been torn down
        """
        with self._lock:
            if self._ref_count <= 0:
                raise ReaderClosedError("release() called on a released reader")
            self._ref_count -= 1
            last = self._ref_count == 0

        if last:
            self._teardown()

    def _teardown(self) -> None:
        cursor = self._cursor
        self._closed = True
        self._cursor = None
        self._builder = None
        self._destinations = None
        self._record = None

        self.metrics.log_summary()
        try:
            cursor.close()
        except Exception as err:
            logger.error(f"Failed to close cursor: {err}")
            raise

    def __iter__(self) -> Iterator[pa.RecordBatch]:
        """Yield non-empty batches; raise the scan error, if any, at the end."""
        while self.next():
            yield self._record
        if self._err is not None:
            raise self._err

    def __enter__(self) -> "CursorBatchReader":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()

    def to_pyarrow(self) -> pa.RecordBatchReader:
        """
        Expose the remaining batches as a ``pyarrow.RecordBatchReader``.

        The returned stream holds its own reference on this reader and
        releases it once iteration over the stream ends or fails, or once
        the stream is closed or garbage collected without being read.
        """
        self.retain()
        hold = _StreamHold(self)

        def batches() -> Iterator[pa.RecordBatch]:
            try:
                yield from self
            finally:
                hold.release()

        iterator = batches()
        try:
            stream = pa.RecordBatchReader.from_batches(self._schema, iterator)
        except Exception:
            hold.release()
            raise

        # An unstarted generator never runs its finally block.
        weakref.finalize(iterator, hold.release)
        weakref.finalize(stream, hold.release)
        return stream


class _StreamHold:
    """The single reader reference owned by an exported stream."""

    def __init__(self, reader: CursorBatchReader):
        self._reader = reader
        self._lock = threading.Lock()
        self._held = True

    def release(self) -> None:
        with self._lock:
            if not self._held:
                return
            self._held = False
        self._reader.release()
