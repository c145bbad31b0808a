from __future__ import annotations
from dataclasses import dataclass
import time


@dataclass(frozen=True)
class StatusMessage:
    """User-facing message that clears itself once expires_at has passed."""
    text: str
    level: str = "info"  # info | success | error
    expires_at: float | None = None  # time.monotonic() deadline; None = sticky

    @classmethod
    def transient(cls, text: str, level: str, ttl: float) -> StatusMessage:
        return cls(text=text, level=level, expires_at=time.monotonic() + ttl)

    def is_expired(self, now: float | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (time.monotonic() if now is None else now) >= self.expires_at
