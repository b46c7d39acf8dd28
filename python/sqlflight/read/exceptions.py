"""Custom exceptions for the cursor batch reader."""

from typing import Optional


class BatchReaderError(Exception):
    """Base exception for batch reader errors."""
    pass


class UnsupportedTypeError(BatchReaderError):
    """Raised when a declared column type has no Arrow mapping."""
    pass


class UnsupportedNativeKindError(UnsupportedTypeError):
    """Raised when a cursor's native scan type cannot be mapped."""
    pass


class SchemaInferenceError(BatchReaderError):
    """Raised when column metadata cannot be read from the cursor."""
    pass


class ScanConversionError(BatchReaderError):
    """Raised when a scanned value does not fit its destination."""
    pass


class ReaderClosedError(BatchReaderError):
    """Raised when a released reader is used again."""
    pass


class InvalidConfigError(BatchReaderError):
    """Raised when reader configuration is invalid."""
    pass


class ScanError(BatchReaderError):
    """
    Raised (and recorded by the reader) when fetching a row fails.

    Carries a status code and a diagnostic detail, the string form of the
    batch schema, for client-side tooling.
    """

    def __init__(self, message: str, code: str = "UNKNOWN", detail: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.detail = detail

    def __str__(self) -> str:
        message = super().__str__()
        return f"[{self.code}] {message}"
