"""Mapping from source column types to Arrow types.

A cursor describes each column by a declared type name (``"INTEGER"``,
``"VARCHAR(32)"``, ...) and, optionally, by the native type it scans into.
``map_type`` turns that description into one of a closed set of Arrow types;
anything outside the set is rejected instead of being guessed.
"""

import datetime
import decimal
import enum
from typing import Dict, Optional

import pyarrow as pa

from .exceptions import UnsupportedNativeKindError, UnsupportedTypeError

# Flight SQL column metadata keys
TYPE_NAME_KEY = "ARROW:FLIGHT:SQL:TYPE_NAME"
TABLE_NAME_KEY = "ARROW:FLIGHT:SQL:TABLE_NAME"

PLACEHOLDER_NAME = "?"

# Used when the source cannot declare a type before the first row is read.
UNION_TYPE = pa.dense_union(
    [
        pa.field("int", pa.int64()),
        pa.field("float", pa.float64()),
        pa.field("string", pa.string()),
    ],
    type_codes=[0, 1, 2],
)

_TYPE_NAMES: Dict[str, pa.DataType] = {
    "tinyint": pa.int8(),
    "smallint": pa.int16(),
    "integer": pa.int32(),
    "int": pa.int32(),
    "int32": pa.int32(),
    "bigint": pa.int64(),
    "int64": pa.int64(),
    "float": pa.float32(),
    "double": pa.float64(),
    "blob": pa.binary(),
    "text": pa.string(),
    "varchar": pa.string(),
    "string": pa.string(),
    "date": pa.date32(),
    "time": pa.time32("s"),
    "timestamp": pa.timestamp("us"),
    "boolean": pa.bool_(),
}


class NativeKind(enum.Enum):
    """Category of the native value a cursor scans a column into."""

    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    BOOL = "bool"
    BYTES = "bytes"
    DECIMAL = "decimal"
    DATETIME = "datetime"
    OTHER = "other"


_NATIVE_KINDS: Dict[NativeKind, pa.DataType] = {
    NativeKind.INT8: pa.int8(),
    NativeKind.UINT8: pa.int8(),
    NativeKind.INT16: pa.int16(),
    NativeKind.UINT16: pa.int16(),
    NativeKind.INT32: pa.int32(),
    NativeKind.UINT32: pa.int32(),
    NativeKind.INT: pa.int64(),
    NativeKind.INT64: pa.int64(),
    NativeKind.UINT: pa.int64(),
    NativeKind.UINT64: pa.int64(),
    NativeKind.FLOAT32: pa.float32(),
    NativeKind.FLOAT64: pa.float64(),
    NativeKind.STRING: pa.string(),
    NativeKind.BOOL: pa.bool_(),
}


class ColumnKind(enum.Enum):
    """Closed set of column kinds the reader can build."""

    INT8 = enum.auto()
    INT16 = enum.auto()
    INT32 = enum.auto()
    INT64 = enum.auto()
    FLOAT32 = enum.auto()
    FLOAT64 = enum.auto()
    STRING = enum.auto()
    BINARY = enum.auto()
    BOOLEAN = enum.auto()
    DATE32 = enum.auto()
    TIME32 = enum.auto()
    TIMESTAMP = enum.auto()
    NULL = enum.auto()
    UNION = enum.auto()


_COLUMN_KINDS: Dict[pa.DataType, ColumnKind] = {
    pa.int8(): ColumnKind.INT8,
    pa.int16(): ColumnKind.INT16,
    pa.int32(): ColumnKind.INT32,
    pa.int64(): ColumnKind.INT64,
    pa.float32(): ColumnKind.FLOAT32,
    pa.float64(): ColumnKind.FLOAT64,
    pa.string(): ColumnKind.STRING,
    pa.binary(): ColumnKind.BINARY,
    pa.bool_(): ColumnKind.BOOLEAN,
    pa.date32(): ColumnKind.DATE32,
    pa.time32("s"): ColumnKind.TIME32,
    pa.timestamp("us"): ColumnKind.TIMESTAMP,
    pa.null(): ColumnKind.NULL,
    UNION_TYPE: ColumnKind.UNION,
}

# XDBC data type names advertised to Flight SQL clients.
_SQL_TYPES: Dict[str, str] = {
    "tinyint": "TINYINT",
    "smallint": "SMALLINT",
    "integer": "INTEGER",
    "int": "INTEGER",
    "int32": "INTEGER",
    "bigint": "BIGINT",
    "int64": "BIGINT",
    "float": "FLOAT",
    "double": "DOUBLE",
    "blob": "VARBINARY",
    "text": "VARCHAR",
    "varchar": "VARCHAR",
    "string": "VARCHAR",
    "date": "DATE",
    "time": "TIME",
    "timestamp": "TIMESTAMP",
    "boolean": "BIT",
}


def type_from_name(type_name: str) -> pa.DataType:
    """
    Look up the Arrow type for a declared type name.

    The empty name maps to the null type: the source does not know the
    column type yet.

    Args:
        type_name: Declared type name, any letter case

    Returns:
        Arrow data type

    Raises:
        UnsupportedTypeError: If the name is not in the mapping table
    """
    name = type_name.lower()
    if name == "":
        return pa.null()
    if name.startswith("varchar"):
        return pa.string()

    data_type = _TYPE_NAMES.get(name)
    if data_type is None:
        raise UnsupportedTypeError(f"Unsupported column type: {type_name}")
    return data_type


def map_type(
    type_name: str,
    nullable: bool = True,
    native_kind: Optional[NativeKind] = None,
) -> pa.DataType:
    """
    Map a column description to its Arrow type.

    Args:
        type_name: Declared type name, possibly empty
        nullable: Column nullability (does not affect the type)
        native_kind: Native scan type hint, if the cursor reports one

    Returns:
        Arrow data type

    Raises:
        UnsupportedTypeError: If the declared name is not in the mapping table
        UnsupportedNativeKindError: If the native hint cannot be mapped
    """
    if type_name:
        return type_from_name(type_name)

    if native_kind is None:
        return UNION_TYPE

    data_type = _NATIVE_KINDS.get(native_kind)
    if data_type is None:
        raise UnsupportedNativeKindError(f"Unsupported native scan kind: {native_kind.value}")
    return data_type


def native_kind_of(scan_type) -> NativeKind:
    """Classify a Python scan type (``int``, ``str``, ...) as a NativeKind."""
    if isinstance(scan_type, NativeKind):
        return scan_type
    # bool before int: bool is an int subclass
    if issubclass(scan_type, bool):
        return NativeKind.BOOL
    if issubclass(scan_type, int):
        return NativeKind.INT64
    if issubclass(scan_type, float):
        return NativeKind.FLOAT64
    if issubclass(scan_type, str):
        return NativeKind.STRING
    if issubclass(scan_type, (bytes, bytearray, memoryview)):
        return NativeKind.BYTES
    if issubclass(scan_type, decimal.Decimal):
        return NativeKind.DECIMAL
    if issubclass(scan_type, (datetime.date, datetime.time, datetime.datetime)):
        return NativeKind.DATETIME
    return NativeKind.OTHER


def column_kind(data_type: pa.DataType) -> ColumnKind:
    """
    Resolve the column kind of an Arrow type.

    Raises:
        UnsupportedTypeError: If the type is outside the supported set
    """
    kind = _COLUMN_KINDS.get(data_type)
    if kind is None:
        raise UnsupportedTypeError(f"Unsupported Arrow column type: {data_type}")
    return kind


def sql_type_from_type_name(type_name: str) -> str:
    """Return the XDBC type name advertised for a declared type name."""
    name = type_name.lower()
    if name.startswith("varchar"):
        return "VARCHAR"
    return _SQL_TYPES.get(name, "UNKNOWN")


def column_metadata(sql_type: str, label: str = "") -> Dict[str, str]:
    """Build Flight SQL field metadata for a column."""
    metadata = {TYPE_NAME_KEY: sql_type}
    if label:
        metadata[TABLE_NAME_KEY] = label
    return metadata


def field_name(name: str, index: int, placeholder: str = PLACEHOLDER_NAME) -> str:
    """
    Return a schema-unique field name for a result column.

    Placeholder and empty column names are suffixed with the column index.
    """
    if name == placeholder:
        return f"{name}:{index}"
    if not name:
        return f"{placeholder}:{index}"
    return name
