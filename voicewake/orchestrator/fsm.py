from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional


class State(Enum):
    IDLE = auto()
    REQUESTING = auto()
    LISTENING = auto()
    HEARING = auto()
    DETECTED = auto()
    FAILED = auto()


@dataclass(frozen=True)
class DetectionState:
    """What the detector is doing. ``text`` carries the transcript or failure reason."""

    state: State
    text: Optional[str] = None

    @classmethod
    def idle(cls) -> "DetectionState":
        return cls(State.IDLE)

    @classmethod
    def requesting(cls) -> "DetectionState":
        return cls(State.REQUESTING)

    @classmethod
    def listening(cls) -> "DetectionState":
        return cls(State.LISTENING)

    @classmethod
    def hearing(cls, text: str) -> "DetectionState":
        return cls(State.HEARING, text)

    @classmethod
    def detected(cls, text: str) -> "DetectionState":
        return cls(State.DETECTED, text)

    @classmethod
    def failed(cls, reason: str) -> "DetectionState":
        return cls(State.FAILED, reason)

    def __str__(self) -> str:
        if self.text is None:
            return self.state.name.lower()
        return f"{self.state.name.lower()}({self.text!r})"


StateListener = Callable[[DetectionState], None]


class FSM:
    def __init__(self, on_update: Optional[StateListener] = None) -> None:
        self.current = DetectionState.idle()
        self._on_update = on_update

    @property
    def state(self) -> State:
        return self.current.state

    def bind(self, on_update: Optional[StateListener]) -> None:
        self._on_update = on_update

    def emit(self, value: DetectionState) -> None:
        self.current = value
        if self._on_update is not None:
            self._on_update(value)

    def to_requesting(self) -> None:
        self.emit(DetectionState.requesting())

    def to_listening(self) -> None:
        self.emit(DetectionState.listening())

    def to_hearing(self, text: str) -> None:
        self.emit(DetectionState.hearing(text))

    def to_detected(self, text: str) -> None:
        self.emit(DetectionState.detected(text))

