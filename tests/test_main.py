"""Tests for the command line wiring."""

import json

import pytest

from voicewake.config.settings import load_settings
from voicewake.main import VoiceWake, _parse_args, _run
from voicewake.orchestrator.fsm import DetectionState, State
from voicewake.stt.base import TranscriptEvent
from voicewake.stt.scripted import ScriptedTranscriptionSession


@pytest.fixture
def fast_settings():
    settings = load_settings()
    hold = settings.hold.model_copy(update={"silence_gap_s": 0.05, "poll_interval_s": 0.01})
    return settings.model_copy(update={"hold": hold})


class TestVoiceWake:
    @pytest.mark.asyncio
    async def test_scripted_detection(self, fast_settings, capsys):
        trigger = fast_settings.wake.triggers[0]
        session = ScriptedTranscriptionSession([TranscriptEvent(f"hey {trigger} hello")])
        app = VoiceWake(fast_settings, session)

        app.warm_up()
        final = await app.run()
        await app.stop()

        assert final == DetectionState.detected(f"hey {trigger} hello")
        out = capsys.readouterr().out
        assert "Forward: off" in out
        assert out.count("Detected:") == 2

    @pytest.mark.asyncio
    async def test_scripted_no_trigger(self, fast_settings):
        session = ScriptedTranscriptionSession([TranscriptEvent("good morning", is_final=True)])
        app = VoiceWake(fast_settings, session)

        final = await app.run()
        await app.stop()

        assert final.state is State.FAILED

    @pytest.mark.asyncio
    async def test_run_with_script_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("VOICEWAKE_TRIGGERS", "hey clawdis")
        script = tmp_path / "script.json"
        script.write_text(json.dumps([{"text": "good morning", "final": True}]), encoding="utf-8")

        rc = await _run(_parse_args(["--script", str(script)]))

        assert rc == 1


def test_parse_args_defaults():
    args = _parse_args([])
    assert args.config is None
    assert args.script is None
