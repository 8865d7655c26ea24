from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from voicewake.config.settings import AppSettings, SettingsStore, load_settings
from voicewake.forward.dispatcher import ForwardDispatcher
from voicewake.forward.ssh import SSHRunner
from voicewake.orchestrator.controller import WakeDetectionController
from voicewake.orchestrator.fsm import DetectionState, State
from voicewake.orchestrator.hold import HoldPolicy, SilenceHoldTimer
from voicewake.stt.base import TranscriptionSession
from voicewake.stt.scripted import ScriptedTranscriptionSession
from voicewake.utils.display import printable
from voicewake.utils.logging import configure_logging


class VoiceWake:
    def __init__(self, settings: AppSettings, transcription: TranscriptionSession) -> None:
        self._store = SettingsStore(settings)
        self._dispatcher = ForwardDispatcher(
            runner=SSHRunner(connect_timeout_s=settings.forward.connect_timeout_s),
            max_workers=settings.forward.max_workers,
            timeout_s=settings.forward.timeout_s,
        )
        hold = SilenceHoldTimer(
            HoldPolicy(
                max_hold_s=settings.hold.max_hold_s,
                silence_gap_s=settings.hold.silence_gap_s,
                poll_interval_s=settings.hold.poll_interval_s,
            )
        )
        self._controller = WakeDetectionController(
            transcription,
            self._dispatcher,
            self._store.forward_config,
            on_wake=self._on_wake,
            hold_timer=hold,
        )

    def warm_up(self) -> None:
        settings = self._store.settings
        forward = self._store.forward_config()
        print("Voice wake starting…")
        print(f"Triggers: {', '.join(settings.wake.triggers) or '(none)'}")
        print(f"Locale: {settings.wake.locale or 'system'}, mic: {settings.wake.mic_id or 'default'}")
        if forward.should_forward:
            print(f"Forward: ssh {forward.target} → {forward.command_template}")
        else:
            print("Forward: off")

    def _on_wake(self) -> None:
        print("\a", end="", flush=True)

    def _on_update(self, state: DetectionState) -> None:
        if state.state is State.REQUESTING:
            print("🔐 Requesting microphone…")
        elif state.state is State.LISTENING:
            print("🎤 Listening...")
        elif state.state is State.HEARING:
            print(f"… {printable(state.text or '')}")
        elif state.state is State.DETECTED:
            print(f"✅ Detected: {printable(state.text or '')}")
        elif state.state is State.FAILED:
            print(f"⚠️  {state.text}")

    async def run(self) -> DetectionState:
        settings = self._store.settings
        await self._controller.start(
            self._store.triggers(),
            mic_id=settings.wake.mic_id,
            locale=settings.wake.locale,
            on_update=self._on_update,
        )
        return await self._controller.wait_finished()

    async def stop(self) -> None:
        await self._controller.stop()
        loop = asyncio.get_running_loop()
        # Let an in-flight forward finish before exiting.
        await loop.run_in_executor(None, self._dispatcher.shutdown)


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="voicewake", description="Listen for a wake phrase and forward it over SSH.")
    parser.add_argument("--config", type=Path, help="settings YAML (defaults to the bundled default.yaml)")
    parser.add_argument("--script", type=Path, help="replay transcript events from a JSON file instead of the mic")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    settings = load_settings(args.config)
    configure_logging()
    if args.script:
        transcription: TranscriptionSession = ScriptedTranscriptionSession.from_json(args.script)
    else:
        # Needs the "audio" extra (pyaudio, webrtcvad)
        from voicewake.stt.openai_session import OpenAITranscriptionSession

        transcription = OpenAITranscriptionSession(settings.audio, model=settings.models.stt)

    app = VoiceWake(settings, transcription)
    app.warm_up()
    try:
        final = await app.run()
    finally:
        await app.stop()
    return 0 if final.state is State.DETECTED else 1


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    args = _parse_args(argv)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    stop: asyncio.Future[None] = loop.create_future()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda: (not stop.done()) and stop.set_result(None))

    async def runner() -> int:
        task = asyncio.create_task(_run(args))
        await asyncio.wait({task, stop}, return_when=asyncio.FIRST_COMPLETED)
        if task.done():
            return task.result()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        return 130

    try:
        rc = loop.run_until_complete(runner())
    finally:
        loop.close()
    sys.exit(rc)


if __name__ == "__main__":
    main()
