"""Column appenders that accumulate scanned rows into Arrow record batches."""

from typing import Any, Callable, Dict, List, Optional, Sequence

import pyarrow as pa

from .destinations import RowDestination, UnionValue
from .type_mapping import UNION_TYPE, ColumnKind, column_kind


def _truncate(bits: int) -> Callable[[int], int]:
    """Two's-complement wrap of an integer to ``bits`` wide."""
    span = 1 << bits
    half = 1 << (bits - 1)

    def truncate(value: int) -> int:
        return ((value + half) % span) - half

    return truncate


class _ValueAppender:
    """Appender for a primitive, string or binary column."""

    def __init__(self, data_type: pa.DataType, convert: Optional[Callable[[Any], Any]] = None):
        self.data_type = data_type
        self._convert = convert
        self._values: List[Any] = []

    def append(self, value: Any) -> None:
        if value is not None and self._convert is not None:
            value = self._convert(value)
        self._values.append(value)

    def finish(self) -> pa.Array:
        array = pa.array(self._values, type=self.data_type)
        self._values = []
        return array

    def reset(self) -> None:
        self._values = []


class _NullAppender:
    def __init__(self, data_type: pa.DataType):
        self.data_type = data_type
        self._length = 0

    def append(self, value: None) -> None:
        self._length += 1

    def finish(self) -> pa.Array:
        array = pa.nulls(self._length)
        self._length = 0
        return array

    def reset(self) -> None:
        self._length = 0


_UNION_FIELDS = [UNION_TYPE.field(i) for i in range(UNION_TYPE.num_fields)]


class _UnionAppender:
    """
    Appender for the dense int/float/string union.

    Each value goes to the child selected by its discriminant; a null is
    stored as a null in the ``int`` child.
    """

    def __init__(self, data_type: pa.DataType):
        self.data_type = data_type
        self.reset()

    def append(self, value: Optional[UnionValue]) -> None:
        if value is None:
            code, payload = 0, None
        else:
            code, payload = value.kind.type_code, value.payload
        child = self._children[code]
        self._type_ids.append(code)
        self._offsets.append(len(child))
        child.append(payload)

    def finish(self) -> pa.Array:
        children = [
            pa.array(values, type=field.type)
            for values, field in zip(self._children, _UNION_FIELDS)
        ]
        array = pa.UnionArray.from_dense(
            pa.array(self._type_ids, type=pa.int8()),
            pa.array(self._offsets, type=pa.int32()),
            children,
            [field.name for field in _UNION_FIELDS],
            list(UNION_TYPE.type_codes),
        )
        self.reset()
        return array

    def reset(self) -> None:
        self._type_ids: List[int] = []
        self._offsets: List[int] = []
        self._children: List[List[Any]] = [[] for _ in _UNION_FIELDS]


_APPENDERS: Dict[ColumnKind, Callable[[pa.DataType], Any]] = {
    ColumnKind.INT8: lambda t: _ValueAppender(t, _truncate(8)),
    ColumnKind.INT16: lambda t: _ValueAppender(t, _truncate(16)),
    ColumnKind.INT32: lambda t: _ValueAppender(t, _truncate(32)),
    ColumnKind.INT64: lambda t: _ValueAppender(t, _truncate(64)),
    ColumnKind.FLOAT32: _ValueAppender,
    ColumnKind.FLOAT64: _ValueAppender,
    ColumnKind.STRING: _ValueAppender,
    ColumnKind.BINARY: _ValueAppender,
    ColumnKind.BOOLEAN: _ValueAppender,
    ColumnKind.DATE32: _ValueAppender,
    ColumnKind.TIME32: _ValueAppender,
    ColumnKind.TIMESTAMP: _ValueAppender,
    ColumnKind.NULL: _NullAppender,
    ColumnKind.UNION: _UnionAppender,
}


class BatchBuilder:
    """
    Accumulates rows column by column and emits immutable record batches.

    The appender of every column is chosen once, from the column kind of its
    field, so appending a row does no type inspection.
    """

    def __init__(self, schema: pa.Schema):
        self.schema = schema
        self._appenders = [_APPENDERS[column_kind(field.type)](field.type) for field in schema]
        self._num_rows = 0

    @property
    def num_rows(self) -> int:
        """Rows accumulated since the last finalize or reset."""
        return self._num_rows

    def append(self, destinations: Sequence[RowDestination]) -> None:
        """Append one scanned row."""
        for appender, destination in zip(self._appenders, destinations):
            appender.append(destination.get())
        self._num_rows += 1

    def finalize(self) -> pa.RecordBatch:
        """Build a record batch from the accumulated rows and start over."""
        arrays = [appender.finish() for appender in self._appenders]
        self._num_rows = 0
        return pa.RecordBatch.from_arrays(arrays, schema=self.schema)

    def reset(self) -> None:
        """Drop the accumulated rows."""
        for appender in self._appenders:
            appender.reset()
        self._num_rows = 0
