from __future__ import annotations
import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, List

from ..exceptions import InsertError, PrepareError, ValidationError
from ..models.pixel_sample import PixelSample
from ..models.shape_row import MAX_FILE_NAME_LENGTH, TIMESTAMP_FORMAT, ShapeRow
from ..repositories.shape_repository import ShapeRepository

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1


def to_int(value: Any) -> int:
    """
    Lenient integer coercion for request values: bools -> 0/1, floats
    truncate, strings use their leading integer; anything else is 0.
    Results saturate at the signed 64-bit range.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return max(INT_MIN, min(INT_MAX, value))
    if isinstance(value, float):
        return max(INT_MIN, min(INT_MAX, int(value))) if math.isfinite(value) else 0
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return max(INT_MIN, min(INT_MAX, int(match.group(1)))) if match else 0
    return 0


def clamp_channel(value: Any) -> int:
    return max(0, min(255, to_int(value)))


def now_timestamp(utc: bool = False) -> str:
    now = datetime.now(timezone.utc) if utc else datetime.now()
    return now.strftime(TIMESTAMP_FORMAT)


class ShapeService:
    """
    Save-endpoint logic: validates the request body, normalises every row and
    hands the batch to the repository. Always answers with a JSON-ready dict.
    """

    def __init__(self, shape_repository: ShapeRepository | None = None):
        self.shape_repository = shape_repository or ShapeRepository()

    @staticmethod
    def normalize_row(raw: Any) -> ShapeRow:
        """Missing or null fields get defaults; channels are clamped to [0, 255]."""
        raw = raw if isinstance(raw, dict) else {}

        def present(key: str) -> bool:
            return raw.get(key) is not None

        return ShapeRow(
            file_name=str(raw["file_name"])[:MAX_FILE_NAME_LENGTH] if present("file_name") else "",
            x=to_int(raw["x"]) if present("x") else 0,
            y=to_int(raw["y"]) if present("y") else 0,
            R=clamp_channel(raw["R"]) if present("R") else 0,
            G=clamp_channel(raw["G"]) if present("G") else 0,
            B=clamp_channel(raw["B"]) if present("B") else 0,
            T=str(raw["T"]) if present("T") else now_timestamp(),
        )

    def parse_rows(self, data: Any) -> List[ShapeRow]:
        """
        Raises:
            ValidationError: no body, no rows key, or rows is not a non-empty list.
        """
        if not data or not isinstance(data, dict) or data.get("rows") is None:
            raise ValidationError("No rows provided")
        rows = data["rows"]
        if not isinstance(rows, list) or len(rows) == 0:
            raise ValidationError("Empty rows")
        return [self.normalize_row(r) for r in rows]

    def save_payload(self, data: Any) -> dict:
        try:
            rows = self.parse_rows(data)
        except ValidationError as e:
            return {"success": False, "error": e.message}

        try:
            inserted = self.shape_repository.insert_rows(rows)
        except PrepareError as e:
            logger.error(f"Prepare failed: {e.message}")
            return {"success": False, "error": f"Prepare failed: {e.message}"}
        except InsertError as e:
            return {"success": False, "error": f"Insert failed: {e.message}"}
        except Exception as e:
            logger.error(f"Unexpected error while saving {len(rows)} rows: {e}")
            return {"success": False, "error": str(e)}

        logger.info(f"Saved {inserted} rows")
        return {"success": True, "inserted": inserted}

    @staticmethod
    def build_rows(sample: PixelSample, file_name: str, timestamp: str | None = None) -> List[ShapeRow]:
        """
        One row per sampled pixel, in sample order, sharing one timestamp.
        """
        timestamp = timestamp or now_timestamp(utc=True)
        file_name = (file_name or "unknown")[:MAX_FILE_NAME_LENGTH]
        return [
            ShapeRow(file_name=file_name, x=p.x, y=p.y, R=p.r, G=p.g, B=p.b, T=timestamp)
            for p in sample
        ]
