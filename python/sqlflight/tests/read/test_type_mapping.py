from __future__ import annotations

import datetime
import decimal

import pytest

pa = pytest.importorskip("pyarrow")

from sqlflight.read import type_mapping
from sqlflight.read.exceptions import UnsupportedNativeKindError, UnsupportedTypeError
from sqlflight.read.type_mapping import (
    UNION_TYPE,
    ColumnKind,
    NativeKind,
    column_kind,
    column_metadata,
    field_name,
    map_type,
    native_kind_of,
    sql_type_from_type_name,
    type_from_name,
)

TABLE = [
    ("tinyint", pa.int8()),
    ("smallint", pa.int16()),
    ("integer", pa.int32()),
    ("int", pa.int32()),
    ("int32", pa.int32()),
    ("bigint", pa.int64()),
    ("int64", pa.int64()),
    ("float", pa.float32()),
    ("double", pa.float64()),
    ("blob", pa.binary()),
    ("text", pa.string()),
    ("varchar", pa.string()),
    ("string", pa.string()),
    ("date", pa.date32()),
    ("time", pa.time32("s")),
    ("timestamp", pa.timestamp("us")),
    ("boolean", pa.bool_()),
]


@pytest.mark.parametrize("name,expected", TABLE)
@pytest.mark.parametrize("case", [str.lower, str.upper, str.title])
def test_map_type_table_in_any_case(name: str, expected, case) -> None:
    assert map_type(case(name)) == expected
    assert map_type(case(name), nullable=False) == expected


@pytest.mark.parametrize("name", ["varchar(32)", "VARCHAR(255)", "varchar255", "VarChar2"])
def test_varchar_prefix_maps_to_string(name: str) -> None:
    assert map_type(name) == pa.string()


@pytest.mark.parametrize("name", ["decimal(10,2)", "uuid", "hugeint", "interval", "json", "?"])
def test_unsupported_type_name_raises(name: str) -> None:
    with pytest.raises(UnsupportedTypeError, match="Unsupported column type"):
        map_type(name)


def test_unknown_type_is_not_defaulted_even_with_native_hint() -> None:
    with pytest.raises(UnsupportedTypeError):
        map_type("money", native_kind=NativeKind.FLOAT64)


def test_empty_name_without_hint_is_union() -> None:
    data_type = map_type("")
    assert data_type == UNION_TYPE
    assert [data_type.field(i).name for i in range(data_type.num_fields)] == ["int", "float", "string"]
    assert list(data_type.type_codes) == [0, 1, 2]


@pytest.mark.parametrize(
    "kind,expected",
    [
        (NativeKind.INT8, pa.int8()),
        (NativeKind.UINT8, pa.int8()),
        (NativeKind.INT16, pa.int16()),
        (NativeKind.UINT16, pa.int16()),
        (NativeKind.INT32, pa.int32()),
        (NativeKind.UINT32, pa.int32()),
        (NativeKind.INT, pa.int64()),
        (NativeKind.INT64, pa.int64()),
        (NativeKind.UINT64, pa.int64()),
        (NativeKind.FLOAT32, pa.float32()),
        (NativeKind.FLOAT64, pa.float64()),
        (NativeKind.STRING, pa.string()),
        (NativeKind.BOOL, pa.bool_()),
    ],
)
def test_empty_name_maps_by_native_kind(kind: NativeKind, expected) -> None:
    assert map_type("", True, kind) == expected


@pytest.mark.parametrize("kind", [NativeKind.BYTES, NativeKind.DECIMAL, NativeKind.DATETIME, NativeKind.OTHER])
def test_unmapped_native_kind_raises(kind: NativeKind) -> None:
    with pytest.raises(UnsupportedNativeKindError, match=kind.value):
        map_type("", True, kind)


def test_unsupported_native_kind_is_an_unsupported_type() -> None:
    assert issubclass(UnsupportedNativeKindError, UnsupportedTypeError)


def test_type_from_name_empty_is_null() -> None:
    assert type_from_name("") == pa.null()


def test_map_type_is_deterministic() -> None:
    assert map_type("BIGINT") == map_type("bigint")
    assert map_type("") == map_type("")


@pytest.mark.parametrize(
    "scan_type,expected",
    [
        (int, NativeKind.INT64),
        (bool, NativeKind.BOOL),
        (float, NativeKind.FLOAT64),
        (str, NativeKind.STRING),
        (bytes, NativeKind.BYTES),
        (decimal.Decimal, NativeKind.DECIMAL),
        (datetime.datetime, NativeKind.DATETIME),
        (datetime.date, NativeKind.DATETIME),
        (dict, NativeKind.OTHER),
        (NativeKind.INT16, NativeKind.INT16),
    ],
)
def test_native_kind_of(scan_type, expected: NativeKind) -> None:
    assert native_kind_of(scan_type) is expected


def test_column_kind_covers_every_mapped_type() -> None:
    for _, data_type in TABLE:
        column_kind(data_type)
    assert column_kind(UNION_TYPE) is ColumnKind.UNION
    assert column_kind(pa.null()) is ColumnKind.NULL


@pytest.mark.parametrize("data_type", [pa.uint8(), pa.time32("ms"), pa.large_string(), pa.decimal128(10, 2)])
def test_column_kind_rejects_types_outside_the_set(data_type) -> None:
    with pytest.raises(UnsupportedTypeError):
        column_kind(data_type)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("INTEGER", "INTEGER"),
        ("bigint", "BIGINT"),
        ("VARCHAR(10)", "VARCHAR"),
        ("text", "VARCHAR"),
        ("blob", "VARBINARY"),
        ("boolean", "BIT"),
        ("", "UNKNOWN"),
        ("geometry", "UNKNOWN"),
    ],
)
def test_sql_type_from_type_name(name: str, expected: str) -> None:
    assert sql_type_from_type_name(name) == expected


def test_column_metadata_with_and_without_label() -> None:
    assert column_metadata("INTEGER") == {type_mapping.TYPE_NAME_KEY: "INTEGER"}
    assert column_metadata("INTEGER", "orders") == {
        type_mapping.TYPE_NAME_KEY: "INTEGER",
        type_mapping.TABLE_NAME_KEY: "orders",
    }


def test_field_name_synthesizes_placeholder_names() -> None:
    assert field_name("id", 0) == "id"
    assert field_name("?", 3) == "?:3"
    assert field_name("", 2) == "?:2"
    assert field_name("$1", 1, placeholder="$1") == "$1:1"
