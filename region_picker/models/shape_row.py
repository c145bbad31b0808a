from __future__ import annotations
from dataclasses import dataclass, asdict

MAX_FILE_NAME_LENGTH = 255
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class ShapeRow:
    """
    One persisted pixel: source file, coordinates, channel values and capture time.
    Created at save time, never mutated afterwards.
    """
    file_name: str
    x: int
    y: int
    R: int
    G: int
    B: int
    T: str

    def as_record(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SaveResult:
    """Decoded response of the save endpoint."""
    success: bool
    inserted: int = 0
    error: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> SaveResult:
        return cls(
            success=bool(payload.get("success")),
            inserted=int(payload.get("inserted") or 0),
            error=payload.get("error"),
        )
