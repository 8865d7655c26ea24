from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, field_validator

from voicewake.forward.config import DEFAULT_COMMAND_TEMPLATE, ForwardConfig


class WakeSettings(BaseModel):
    triggers: list[str]
    locale: Optional[str] = None
    mic_id: Optional[str] = None

    @field_validator("triggers")
    @classmethod
    def _clean_triggers(cls, value: list[str]) -> list[str]:
        return [t.strip() for t in value if t and t.strip()]


class HoldSettings(BaseModel):
    max_hold_s: float = 10.0
    silence_gap_s: float = 1.0
    poll_interval_s: float = 0.25


class ForwardSettings(BaseModel):
    enabled: bool = False
    target: str = ""
    identity_path: Optional[str] = None
    command_template: str = DEFAULT_COMMAND_TEMPLATE
    timeout_s: float = 30.0
    connect_timeout_s: int = 5
    max_workers: int = 2

    def snapshot(self) -> ForwardConfig:
        identity = (self.identity_path or "").strip() or None
        return ForwardConfig(
            enabled=self.enabled,
            target=self.target,
            identity_path=identity,
            command_template=self.command_template,
        )


class AudioSettings(BaseModel):
    sample_rate: int
    channels: int
    vad_frame_ms: int
    vad_aggressiveness: int
    finalize_silence_ms: int
    idle_final_ms: int
    max_session_s: float


class ModelSettings(BaseModel):
    stt: str


class AppSettings(BaseModel):
    wake: WakeSettings
    hold: HoldSettings = HoldSettings()
    forward: ForwardSettings = ForwardSettings()
    audio: AudioSettings
    models: ModelSettings


_DEF_YAML = Path(__file__).with_name("default.yaml")

_TRUE = {"1", "true", "yes", "on"}


def _load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _merge_env(overrides: Dict[str, Any]) -> Dict[str, Any]:
    wake = overrides.setdefault("wake", {})
    forward = overrides.setdefault("forward", {})

    triggers = os.getenv("VOICEWAKE_TRIGGERS")
    if triggers:
        wake["triggers"] = triggers.split(",")
    if os.getenv("VOICEWAKE_LOCALE"):
        wake["locale"] = os.environ["VOICEWAKE_LOCALE"]
    if os.getenv("VOICEWAKE_MIC"):
        wake["mic_id"] = os.environ["VOICEWAKE_MIC"]

    enabled = os.getenv("VOICEWAKE_FORWARD_ENABLED")
    if enabled is not None:
        forward["enabled"] = enabled.strip().lower() in _TRUE
    if os.getenv("VOICEWAKE_FORWARD_TARGET"):
        forward["target"] = os.environ["VOICEWAKE_FORWARD_TARGET"]
    if os.getenv("VOICEWAKE_FORWARD_IDENTITY"):
        forward["identity_path"] = os.environ["VOICEWAKE_FORWARD_IDENTITY"]
    if os.getenv("VOICEWAKE_FORWARD_COMMAND"):
        forward["command_template"] = os.environ["VOICEWAKE_FORWARD_COMMAND"]
    return overrides


def load_settings(path: Optional[Path] = None) -> AppSettings:
    data = _load_yaml(path or _DEF_YAML)
    data = _merge_env(data)
    return AppSettings(**data)


class SettingsStore:
    """Live settings shared between the host UI and the detector.

    Readers get immutable snapshots, so an edit made while a forward is in
    flight only affects the next detection.
    """

    def __init__(self, settings: AppSettings) -> None:
        self._lock = threading.Lock()
        self._settings = settings

    @property
    def settings(self) -> AppSettings:
        with self._lock:
            return self._settings

    def triggers(self) -> list[str]:
        with self._lock:
            return list(self._settings.wake.triggers)

    def forward_config(self) -> ForwardConfig:
        with self._lock:
            return self._settings.forward.snapshot()

    def update_forward(self, **changes: Any) -> ForwardConfig:
        with self._lock:
            forward = self._settings.forward.model_copy(update=changes)
            self._settings = self._settings.model_copy(update={"forward": forward})
            return forward.snapshot()

    def update_triggers(self, triggers: list[str]) -> list[str]:
        with self._lock:
            wake = WakeSettings(
                triggers=triggers,
                locale=self._settings.wake.locale,
                mic_id=self._settings.wake.mic_id,
            )
            self._settings = self._settings.model_copy(update={"wake": wake})
            return list(wake.triggers)
