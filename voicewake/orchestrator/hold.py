from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from voicewake.orchestrator.session import Session

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class HoldOutcome(Enum):
    CAP = "cap"
    SILENCE = "silence"
    STOPPED = "stopped"


@dataclass(frozen=True)
class HoldPolicy:
    max_hold_s: float = 10.0
    silence_gap_s: float = 1.0
    poll_interval_s: float = 0.25


class SilenceHoldTimer:
    """Keeps a detected session open until trailing silence or the hard cap.

    The cap counts from the session start, the silence gap from the last
    non-empty fragment.
    """

    def __init__(
        self,
        policy: HoldPolicy = HoldPolicy(),
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.policy = policy
        self._clock = clock
        self._sleep = sleep

    def check(self, session: Session) -> Optional[HoldOutcome]:
        if session.stopping:
            return HoldOutcome.STOPPED
        now = self._clock()
        if now >= session.started_at + self.policy.max_hold_s:
            return HoldOutcome.CAP
        if now - session.last_heard_at >= self.policy.silence_gap_s:
            return HoldOutcome.SILENCE
        return None

    async def wait(self, session: Session) -> HoldOutcome:
        while True:
            outcome = self.check(session)
            if outcome is not None:
                return outcome
            await self._sleep(self.policy.poll_interval_s)
