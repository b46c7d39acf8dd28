from __future__ import annotations

from typing import Any, Sequence

import pytest

from sqlflight.read.cursor import ColumnType, Cursor


class FakeCursor(Cursor):
    """Cursor replaying a fixed list of rows."""

    def __init__(
        self,
        columns: Sequence[ColumnType],
        rows: Sequence[Sequence[Any]] = (),
        *,
        fail_at: int | None = None,
        metadata_error: Exception | None = None,
    ) -> None:
        self.columns = list(columns)
        self.rows = list(rows)
        self.fail_at = fail_at
        self.metadata_error = metadata_error
        self.position = -1
        self.close_calls = 0
        self.scans = 0

    def column_types(self) -> list[ColumnType]:
        if self.metadata_error is not None:
            raise self.metadata_error
        return list(self.columns)

    def advance(self) -> bool:
        self.position += 1
        return self.position < len(self.rows)

    def scan(self, destinations) -> None:
        if self.close_calls:
            raise RuntimeError("sql: Rows are closed")
        if self.fail_at is not None and self.position == self.fail_at:
            raise RuntimeError(f"row {self.position}: connection reset")
        self.scans += 1
        for destination, value in zip(destinations, self.rows[self.position]):
            destination.set(value)

    def close(self) -> None:
        self.close_calls += 1


@pytest.fixture(autouse=True)
def clear_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.delenv("SQLFLIGHT_CONFIG", raising=False)
    monkeypatch.delenv("SQLFLIGHT_READ_BATCH_SIZE", raising=False)
    monkeypatch.delenv("SQLFLIGHT_READ_PLACEHOLDER_NAME", raising=False)
    monkeypatch.delenv("SQLFLIGHT_READ_LOG_BATCHES", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))


@pytest.fixture
def make_cursor():
    def factory(columns, rows=(), **kwargs) -> FakeCursor:
        return FakeCursor(columns, rows, **kwargs)

    return factory
