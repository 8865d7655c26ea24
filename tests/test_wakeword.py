"""Tests for trigger phrase matching."""

import pytest

from voicewake.audio.wakeword import matches


class TestMatches:
    @pytest.mark.parametrize(
        "text",
        ["hey clawd", "HEY CLAWD what's up", "ok so Hey Clawd", "heyclawd hey clawd"],
    )
    def test_trigger_anywhere_any_case(self, text):
        assert matches(text, ["hey clawd"])

    def test_trigger_case_is_ignored(self):
        assert matches("hey clawdis please", ["Hey Clawdis"])

    def test_any_trigger_suffices(self):
        assert matches("computer, lights", ["hey clawd", "computer"])

    def test_no_trigger(self):
        assert not matches("good morning", ["hey clawdis"])

    def test_partial_trigger_is_not_a_match(self):
        assert not matches("hey claw", ["hey clawdis"])

    def test_empty_text_never_matches(self):
        assert not matches("", ["hey clawd"])
        assert not matches("", [""])

    def test_empty_trigger_list(self):
        assert not matches("hey clawd", [])

    def test_blank_triggers_are_ignored(self):
        assert not matches("anything", ["", ""])
