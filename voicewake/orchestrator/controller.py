from __future__ import annotations

import asyncio
import logging
import time
from typing import AsyncIterator, Callable, Iterable, List, Optional

from voicewake.audio.wakeword import matches
from voicewake.forward.config import ForwardConfig
from voicewake.forward.dispatcher import ForwardDispatcher
from voicewake.orchestrator.fsm import FSM, DetectionState, StateListener
from voicewake.orchestrator.hold import Clock, HoldOutcome, SilenceHoldTimer
from voicewake.orchestrator.session import Session
from voicewake.stt.base import (
    CaptureError,
    CaptureRequest,
    MisconfiguredHost,
    PermissionDenied,
    TranscriptEvent,
    TranscriptionSession,
    TranscriptionUnavailable,
)

logger = logging.getLogger(__name__)

NO_SPEECH = "No speech detected"


class WakeDetectionController:
    """Listens for a trigger phrase and forwards what was said.

    All work happens on one event loop. A session ends in exactly one
    terminal state: ``Failed(reason)`` or the second ``Detected(text)`` sent
    once the silence hold is over. ``stop()`` ends a session silently.
    """

    def __init__(
        self,
        transcription: TranscriptionSession,
        dispatcher: ForwardDispatcher,
        forward_config: Callable[[], ForwardConfig],
        on_wake: Optional[Callable[[], None]] = None,
        hold_timer: Optional[SilenceHoldTimer] = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._transcription = transcription
        self._dispatcher = dispatcher
        self._forward_config = forward_config
        self._on_wake = on_wake
        self._hold_timer = hold_timer or SilenceHoldTimer(clock=clock)
        self._clock = clock
        self._fsm = FSM()
        self._session: Optional[Session] = None
        self._consumer: Optional[asyncio.Task] = None
        self._hold_task: Optional[asyncio.Task] = None
        self._finished = asyncio.Event()

    @property
    def state(self) -> DetectionState:
        return self._fsm.current

    @property
    def active(self) -> bool:
        return self._session is not None

    async def start(
        self,
        triggers: Iterable[str],
        mic_id: Optional[str] = None,
        locale: Optional[str] = None,
        on_update: Optional[StateListener] = None,
    ) -> None:
        if self._session is not None:
            return
        session = Session.begin(self._clock())
        self._session = session
        self._finished = asyncio.Event()
        self._fsm.bind(on_update)
        self._fsm.to_requesting()

        trigger_list: List[str] = [t for t in triggers if t]
        try:
            await self._preflight(locale)
            request = CaptureRequest(triggers=trigger_list, mic_id=mic_id, locale=locale)
            stream = self._transcription.start(request)
        except CaptureError as e:
            logger.warning("voice wake start failed: %s", e)
            await self._finish(session, DetectionState.failed(str(e)))
            return
        except Exception as e:
            logger.exception("voice wake start failed")
            await self._finish(session, DetectionState.failed(str(e) or type(e).__name__))
            return
        if session.stopping:
            return

        now = self._clock()
        session.started_at = now
        session.last_heard_at = now
        self._fsm.to_listening()
        self._consumer = asyncio.create_task(self._consume(session, stream, trigger_list))

    async def _preflight(self, locale: Optional[str]) -> None:
        if not self._transcription.is_available(locale):
            raise TranscriptionUnavailable()
        if not self._transcription.has_host_capabilities():
            raise MisconfiguredHost()
        if not await self._transcription.request_permissions():
            raise PermissionDenied()

    async def stop(self) -> None:
        session = self._session
        if session is None or session.stopping:
            return
        session.stopping = True
        await self._teardown(session)
        self._finished.set()

    async def wait_finished(self, timeout: Optional[float] = None) -> DetectionState:
        await asyncio.wait_for(self._finished.wait(), timeout)
        return self._fsm.current

    async def _teardown(self, session: Session) -> None:
        if self._session is session:
            self._session = None
        current = asyncio.current_task()
        for task in (self._consumer, self._hold_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
        self._consumer = None
        self._hold_task = None
        try:
            await self._transcription.stop()
        except Exception:
            logger.exception("stopping transcription failed")

    async def _finish(self, session: Session, final: DetectionState) -> None:
        # The stopping flag is claimed before the first await, so only one
        # path can get past this check.
        if session.stopping:
            return
        session.stopping = True
        await self._teardown(session)
        self._fsm.emit(final)
        self._finished.set()

    async def _consume(
        self,
        session: Session,
        stream: AsyncIterator[TranscriptEvent],
        triggers: List[str],
    ) -> None:
        try:
            async for event in stream:
                if session.stopping:
                    break
                await self._handle(session, event, triggers)
                if session.stopping:
                    break
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if session.stopping:
                return
            logger.exception("transcription stream failed")
            if not session.detected:
                await self._finish(session, DetectionState.failed(str(e) or type(e).__name__))
            return

        if not session.stopping and not session.detected:
            # The recognizer ended without a final result; treat the last
            # transcript as final.
            await self._handle(session, TranscriptEvent(text=session.transcript, is_final=True), triggers)

    async def _handle(self, session: Session, event: TranscriptEvent, triggers: List[str]) -> None:
        text = event.text or ""
        if not event.error:
            session.heard(text, self._clock())

        if session.detected:
            # Only the hold timer ends a detected session.
            return

        if text and matches(text, triggers):
            self._detect(session, text)
            return

        if event.error:
            await self._finish(session, DetectionState.failed(event.error))
            return

        if event.is_final:
            reason = f"No trigger heard: {text}" if text else NO_SPEECH
            await self._finish(session, DetectionState.failed(reason))
            return

        if text:
            self._fsm.to_hearing(text)

    def _detect(self, session: Session, text: str) -> None:
        session.detected_text = text
        logger.info("voice wake detected; forwarding (len=%d)", len(text))
        if self._on_wake is not None:
            try:
                self._on_wake()
            except Exception:
                logger.exception("wake notifier failed")
        config = self._forward_config()
        self._dispatcher.forward(text, config)
        self._fsm.to_detected(text)
        self._hold_task = asyncio.create_task(self._hold(session))

    async def _hold(self, session: Session) -> None:
        outcome = await self._hold_timer.wait(session)
        if outcome is HoldOutcome.STOPPED:
            return
        text = session.detected_text or ""
        logger.info("voice wake hold finished (%s); len=%d", outcome.value, len(text))
        await self._finish(session, DetectionState.detected(text))
