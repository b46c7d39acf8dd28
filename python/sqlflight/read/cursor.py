"""Row source abstraction consumed by the batch reader."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from .destinations import RowDestination
from .exceptions import ScanConversionError
from .type_mapping import NativeKind, native_kind_of

logger = logging.getLogger("sqlflight.read")


@dataclass(frozen=True)
class ColumnType:
    """Metadata of one result column."""

    name: str
    database_type_name: str = ""
    nullable: bool = True
    scan_type: Optional[NativeKind] = None


class Cursor(ABC):
    """Abstract interface for a query result cursor."""

    @abstractmethod
    def column_types(self) -> List[ColumnType]:
        """
        Describe the result columns.

        Returns:
            Column metadata in result order

        Raises:
            Exception: If metadata cannot be retrieved
        """
        pass

    @abstractmethod
    def advance(self) -> bool:
        """
        Move to the next row. May block.

        Returns:
            True if a row is available
        """
        pass

    @abstractmethod
    def scan(self, destinations: Sequence[RowDestination]) -> None:
        """
        Copy the current row into ``destinations``, one per column.

        Raises:
            Exception: If the row cannot be read or converted
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the cursor. Must be idempotent."""
        pass


class DBAPICursor(Cursor):
    """
    Cursor over an executed PEP 249 cursor (sqlite3, duckdb, ...).

    Column metadata comes from ``cursor.description`` unless ``column_types``
    is given: a Python type object is taken as the native scan type and any
    other type code (a string, a duckdb type) as the declared type name. Drivers
    that report no type code (sqlite3) get union columns.
    """

    def __init__(self, cursor, column_types: Optional[Sequence[ColumnType]] = None):
        self._cursor = cursor
        self._column_types = list(column_types) if column_types is not None else None
        self._row: Optional[Sequence[Any]] = None
        self._closed = False

    def column_types(self) -> List[ColumnType]:
        if self._column_types is not None:
            return list(self._column_types)

        description = self._cursor.description
        if description is None:
            raise ValueError("cursor has no result set")

        columns = []
        for entry in description:
            name, type_code = entry[0], entry[1]
            null_ok = entry[6] if len(entry) > 6 else None
            type_name = ""
            scan_type = None
            if isinstance(type_code, str):
                type_name = type_code
            elif isinstance(type_code, type):
                scan_type = native_kind_of(type_code)
            elif type_code is not None:
                # duckdb reports DuckDBPyType objects that print as the SQL name
                type_name = str(type_code)
            columns.append(
                ColumnType(
                    name=name,
                    database_type_name=type_name,
                    nullable=True if null_ok is None else bool(null_ok),
                    scan_type=scan_type,
                )
            )
        return columns

    def advance(self) -> bool:
        self._row = self._cursor.fetchone()
        return self._row is not None

    def scan(self, destinations: Sequence[RowDestination]) -> None:
        if self._row is None:
            raise ScanConversionError("scan called without a current row")
        if len(self._row) != len(destinations):
            raise ScanConversionError(
                f"expected {len(destinations)} destination values, row has {len(self._row)}"
            )
        for destination, value in zip(destinations, self._row):
            destination.set(value)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._row = None
        self._cursor.close()
        logger.debug("Closed DB-API cursor")
