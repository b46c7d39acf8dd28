"""Reusable per-column scan destinations.

The reader allocates one destination per field when the schema is built and
hands the same list to the cursor for every row. A cursor fills a
destination through ``set()``; the batch builder reads it back through
``get()``, which returns ``None`` for null.
"""

import datetime
import decimal
import enum
import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

import pyarrow as pa

from .exceptions import ScanConversionError
from .type_mapping import ColumnKind, column_kind

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class UnionKind(enum.Enum):
    """Discriminant of a union value; the value is the Arrow type code."""

    INT = 0
    FLOAT = 1
    STRING = 2

    @property
    def type_code(self) -> int:
        return self.value


@dataclass(frozen=True)
class UnionValue:
    """A value of a column whose type was not known in advance."""

    kind: UnionKind
    payload: Union[int, float, str]

    @classmethod
    def of(cls, value: Any) -> "UnionValue":
        """
        Classify a scanned runtime value.

        Raises:
            ScanConversionError: If the value is not an int, float or string,
                or is an int outside the int64 range
        """
        if isinstance(value, int):
            if not _INT64_MIN <= value <= _INT64_MAX:
                raise ScanConversionError(
                    f"integer {value} is out of range for the int64 union member"
                )
            return cls(UnionKind.INT, int(value))
        if isinstance(value, float):
            return cls(UnionKind.FLOAT, value)
        if isinstance(value, str):
            return cls(UnionKind.STRING, value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(UnionKind.STRING, _decode(value))
        raise ScanConversionError(
            f"cannot store {type(value).__name__} value in a union column"
        )


def _decode(value) -> str:
    try:
        return bytes(value).decode("utf-8")
    except UnicodeDecodeError as err:
        raise ScanConversionError(f"invalid UTF-8 text: {err}") from err


def _to_int(value: Any) -> int:
    if isinstance(value, str):
        return int(value)
    return operator.index(value)


def _to_float(value: Any) -> float:
    if isinstance(value, (bytes, bytearray)):
        raise TypeError(f"cannot convert {type(value).__name__} to float")
    return float(value)


def _to_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return _decode(value)
    if isinstance(value, (int, float, decimal.Decimal)) and not isinstance(value, bool):
        return str(value)
    raise TypeError(f"cannot convert {type(value).__name__} to string")


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise TypeError(f"cannot convert {type(value).__name__} to bytes")


_TRUE = {"1", "t", "true", "y", "yes"}
_FALSE = {"0", "f", "false", "n", "no"}


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lower = value.strip().lower()
        if lower in _TRUE:
            return True
        if lower in _FALSE:
            return False
    raise ValueError(f"cannot convert {value!r} to boolean")


def _to_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        return datetime.date.fromisoformat(value)
    raise TypeError(f"cannot convert {type(value).__name__} to date")


def _to_time(value: Any) -> datetime.time:
    if isinstance(value, datetime.datetime):
        value = value.time()
    elif isinstance(value, str):
        value = datetime.time.fromisoformat(value)
    if isinstance(value, datetime.time):
        # time32 columns hold whole seconds
        return value.replace(microsecond=0, tzinfo=None)
    raise TypeError(f"cannot convert {type(value).__name__} to time")


def _to_timestamp(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str):
        return datetime.datetime.fromisoformat(value)
    raise TypeError(f"cannot convert {type(value).__name__} to timestamp")


_COERCE: Dict[ColumnKind, Callable[[Any], Any]] = {
    ColumnKind.INT8: _to_int,
    ColumnKind.INT16: _to_int,
    ColumnKind.INT32: _to_int,
    ColumnKind.INT64: _to_int,
    ColumnKind.FLOAT32: _to_float,
    ColumnKind.FLOAT64: _to_float,
    ColumnKind.STRING: _to_str,
    ColumnKind.BOOLEAN: _to_bool,
    ColumnKind.DATE32: _to_date,
    ColumnKind.TIME32: _to_time,
    ColumnKind.TIMESTAMP: _to_timestamp,
}


def _coerce(kind: ColumnKind, value: Any) -> Any:
    try:
        return _COERCE[kind](value)
    except (TypeError, ValueError, OverflowError) as err:
        raise ScanConversionError(
            f"converting {type(value).__name__} to {kind.name.lower()}: {err}"
        ) from err


class RowDestination:
    """Scan target for one column of the current row."""

    __slots__ = ()

    def set(self, value: Any) -> None:
        raise NotImplementedError

    def get(self) -> Any:
        raise NotImplementedError


class ValueSlot(RowDestination):
    """Raw value slot of a non-nullable column."""

    __slots__ = ("kind", "value")

    def __init__(self, kind: ColumnKind):
        self.kind = kind
        self.value: Any = None

    def set(self, value: Any) -> None:
        if value is None:
            raise ScanConversionError(
                f"converting NULL to {self.kind.name.lower()} is unsupported"
            )
        self.value = _coerce(self.kind, value)

    def get(self) -> Any:
        return self.value


class NullableSlot(RowDestination):
    """Validity flag plus value, for nullable columns."""

    __slots__ = ("kind", "valid", "value")

    def __init__(self, kind: ColumnKind):
        self.kind = kind
        self.valid = False
        self.value: Any = None

    def set(self, value: Any) -> None:
        if value is None:
            self.valid, self.value = False, None
        else:
            self.value = _coerce(self.kind, value)
            self.valid = True

    def get(self) -> Any:
        return self.value if self.valid else None


class BytesSlot(RowDestination):
    """Binary slot; ``None`` is null and ``b""`` is an empty value."""

    __slots__ = ("value",)

    def __init__(self):
        self.value: Optional[bytes] = None

    def set(self, value: Any) -> None:
        if value is None:
            self.value = None
            return
        try:
            self.value = _to_bytes(value)
        except TypeError as err:
            raise ScanConversionError(str(err)) from err

    def get(self) -> Optional[bytes]:
        return self.value


class CaptureSlot(RowDestination):
    """Generic slot of a union column."""

    __slots__ = ("value",)

    def __init__(self):
        self.value: Optional[UnionValue] = None

    def set(self, value: Any) -> None:
        self.value = None if value is None else UnionValue.of(value)

    def get(self) -> Optional[UnionValue]:
        return self.value


class NullSlot(RowDestination):
    """Slot of a null-typed column."""

    __slots__ = ()

    def set(self, value: Any) -> None:
        if value is not None:
            raise ScanConversionError(
                f"cannot store {type(value).__name__} value in a null column"
            )

    def get(self) -> None:
        return None


def allocate_destination(field: pa.Field) -> RowDestination:
    """Create the scan destination for one field."""
    kind = column_kind(field.type)
    if kind is ColumnKind.UNION:
        return CaptureSlot()
    if kind is ColumnKind.NULL:
        return NullSlot()
    if kind is ColumnKind.BINARY:
        return BytesSlot()
    if field.nullable:
        return NullableSlot(kind)
    return ValueSlot(kind)


def allocate_destinations(schema: pa.Schema) -> List[RowDestination]:
    """
    Create one reusable scan destination per schema field.

    Args:
        schema: Resolved reader schema

    Returns:
        Destinations in field order

    Raises:
        UnsupportedTypeError: If a field type is outside the supported set
    """
    return [allocate_destination(field) for field in schema]
