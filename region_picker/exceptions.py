"""Exception hierarchy for the region picker.

User input problems (no image, no selection, empty selection) are not
exceptions: the session reports them as transient status messages.
"""

from __future__ import annotations
from typing import Any


class RegionPickerError(Exception):
    """
    Base exception for all region picker errors.

    Attributes:
        message: Human-readable error message
        error_code: Optional error code for programmatic handling
        context: Additional context information
    """

    def __init__(
        self, message: str, error_code: str | None = None, context: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class DecodeError(RegionPickerError):
    """The image file could not be decoded."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message, context={"source": source})
        self.source = source


class PixelAccessError(RegionPickerError):
    """The image decoded but its raw pixel data could not be read."""


class ValidationError(RegionPickerError):
    """A save request body is malformed or empty."""


class PersistenceError(RegionPickerError):
    """The shape store rejected a batch; the batch was rolled back."""


class PrepareError(PersistenceError):
    """The connection or transaction could not be opened."""


class InsertError(PersistenceError):
    """A row insert failed; carries the index of the failing row."""

    def __init__(self, message: str, row_index: int) -> None:
        super().__init__(message, context={"row_index": row_index})
        self.row_index = row_index


class TransportError(RegionPickerError):
    """The save endpoint could not be reached or answered with garbage."""
