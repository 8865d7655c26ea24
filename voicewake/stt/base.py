from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional


class CaptureError(RuntimeError):
    """Capture could not be started; the message is shown to the user."""


class TranscriptionUnavailable(CaptureError):
    def __init__(self, message: str = "Speech recognition unavailable") -> None:
        super().__init__(message)


class PermissionDenied(CaptureError):
    def __init__(self, message: str = "Microphone or speech permission denied") -> None:
        super().__init__(message)


class MisconfiguredHost(CaptureError):
    def __init__(self, message: str = "Host is missing microphone/speech capabilities") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class TranscriptEvent:
    """One update from the recognizer.

    ``text`` is the best transcript so far (it replaces earlier text, it is
    not a delta). ``error`` ends the stream.
    """

    text: str = ""
    is_final: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class CaptureRequest:
    triggers: List[str] = field(default_factory=list)
    mic_id: Optional[str] = None
    locale: Optional[str] = None


class TranscriptionSession(ABC):
    """A speech recognizer the detector can start and stop.

    ``start`` yields events until the recognizer finishes, fails or is
    stopped. ``stop`` must be safe to call at any time, more than once.
    """

    def is_available(self, locale: Optional[str]) -> bool:
        return True

    def has_host_capabilities(self) -> bool:
        return True

    async def request_permissions(self) -> bool:
        return True

    @abstractmethod
    def start(self, request: CaptureRequest) -> AsyncIterator[TranscriptEvent]:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...
