from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class Session:
    started_at: float
    last_heard_at: float
    transcript: str = ""
    detected_text: Optional[str] = None
    stopping: bool = False

    @classmethod
    def begin(cls, now: float) -> "Session":
        return cls(started_at=now, last_heard_at=now)

    @property
    def detected(self) -> bool:
        return self.detected_text is not None

    def heard(self, text: str, now: float) -> None:
        self.transcript = text
        if text:
            self.last_heard_at = now
