from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import AsyncIterator, Iterable, List, Optional, Tuple, Union

from voicewake.stt.base import CaptureRequest, TranscriptEvent, TranscriptionSession

Step = Union[TranscriptEvent, Tuple[float, TranscriptEvent]]


class ScriptedTranscriptionSession(TranscriptionSession):
    """Replays a fixed list of transcript events.

    Each step is an event or a ``(delay_s, event)`` pair. When ``hold_open``
    is set the stream stays open after the last step until ``stop()``, the way
    a live recognizer keeps listening.
    """

    def __init__(
        self,
        steps: Iterable[Step],
        hold_open: bool = True,
        available: bool = True,
        host_ok: bool = True,
        permitted: bool = True,
    ) -> None:
        self._steps: List[Tuple[float, TranscriptEvent]] = [
            s if isinstance(s, tuple) else (0.0, s) for s in steps
        ]
        self._hold_open = hold_open
        self._available = available
        self._host_ok = host_ok
        self._permitted = permitted
        self._stopped = asyncio.Event()
        self.request: Optional[CaptureRequest] = None
        self.stop_calls = 0

    @classmethod
    def from_json(cls, path: Path, hold_open: bool = True) -> "ScriptedTranscriptionSession":
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        steps: List[Step] = []
        for item in raw:
            event = TranscriptEvent(
                text=item.get("text", ""),
                is_final=bool(item.get("final", False)),
                error=item.get("error"),
            )
            steps.append((float(item.get("delay", 0.0)), event))
        return cls(steps, hold_open=hold_open)

    def is_available(self, locale: Optional[str]) -> bool:
        return self._available

    def has_host_capabilities(self) -> bool:
        return self._host_ok

    async def request_permissions(self) -> bool:
        return self._permitted

    async def start(self, request: CaptureRequest) -> AsyncIterator[TranscriptEvent]:
        self.request = request
        self._stopped.clear()
        for delay, event in self._steps:
            if delay:
                await asyncio.sleep(delay)
            if self._stopped.is_set():
                return
            yield event
        if self._hold_open:
            await self._stopped.wait()

    async def stop(self) -> None:
        self.stop_calls += 1
        self._stopped.set()
