"""Tests for the scripted transcription source and audio helpers."""

import asyncio
import json

import pytest

from voicewake.stt.base import CaptureRequest, TranscriptEvent
from voicewake.stt.scripted import ScriptedTranscriptionSession
from voicewake.utils.display import printable


class TestScriptedTranscriptionSession:
    @pytest.mark.asyncio
    async def test_replays_events_then_ends(self):
        session = ScriptedTranscriptionSession(
            [TranscriptEvent("hey"), (0.01, TranscriptEvent("hey clawd", is_final=True))],
            hold_open=False,
        )
        request = CaptureRequest(triggers=["hey clawd"], mic_id=None, locale="en-US")

        events = [e async for e in session.start(request)]

        assert [e.text for e in events] == ["hey", "hey clawd"]
        assert events[-1].is_final
        assert session.request == request

    @pytest.mark.asyncio
    async def test_hold_open_until_stopped(self):
        session = ScriptedTranscriptionSession([TranscriptEvent("hey")])
        seen = []

        async def consume():
            async for event in session.start(CaptureRequest()):
                seen.append(event)

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        assert not task.done()

        await session.stop()
        await asyncio.wait_for(task, timeout=1)
        assert [e.text for e in seen] == ["hey"]
        assert session.stop_calls == 1

    @pytest.mark.asyncio
    async def test_from_json(self, tmp_path):
        path = tmp_path / "script.json"
        path.write_text(
            json.dumps(
                [
                    {"text": "good"},
                    {"text": "good morning", "final": True, "delay": 0.01},
                    {"error": "engine stopped"},
                ]
            ),
            encoding="utf-8",
        )
        session = ScriptedTranscriptionSession.from_json(path, hold_open=False)

        events = [e async for e in session.start(CaptureRequest())]

        assert events == [
            TranscriptEvent("good"),
            TranscriptEvent("good morning", is_final=True),
            TranscriptEvent("", error="engine stopped"),
        ]

    @pytest.mark.asyncio
    async def test_preflight_flags(self):
        session = ScriptedTranscriptionSession([], available=False, host_ok=False, permitted=False)
        assert not session.is_available("en-US")
        assert not session.has_host_capabilities()
        assert not await session.request_permissions()


class TestEndpointer:
    def test_silence_counts_as_idle(self):
        pytest.importorskip("webrtcvad")
        from voicewake.audio.vad import Endpointer

        endpointer = Endpointer(frame_ms=20, sample_rate=16000, finalize_silence_ms=600)
        silence = b"\x00\x00" * 320

        for _ in range(10):
            assert endpointer.process(silence) == (False, False)

        assert endpointer.idle_ms == 200
        assert not endpointer.in_speech


class TestPrintable:
    def test_ltr_text_unchanged(self):
        assert printable("hey clawdis") == "hey clawdis"
        assert printable("") == ""

    def test_hebrew_is_reordered(self):
        text = "שלום עולם"
        assert printable(text) != text
