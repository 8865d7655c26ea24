from __future__ import annotations

from typing import Tuple

import webrtcvad


class Endpointer:
    """Splits a frame stream into utterances on trailing silence.

    ``process`` returns ``(is_speech, is_final)``; ``is_final`` marks the
    frame that closed an utterance. ``idle_ms`` tracks how long nothing has
    been said since the last utterance ended.
    """

    def __init__(
        self,
        frame_ms: int,
        sample_rate: int,
        finalize_silence_ms: int = 800,
        aggressiveness: int = 2,
    ) -> None:
        self._vad = webrtcvad.Vad(aggressiveness)
        self._sample_rate = sample_rate
        self._frame_ms = frame_ms
        self._finalize_silence_ms = finalize_silence_ms
        self._trailing_silence_ms = 0
        self._in_speech = False
        self._speech_frames = 0
        self._min_speech_frames = 2
        self.idle_ms = 0

    @property
    def in_speech(self) -> bool:
        return self._in_speech

    def reset(self) -> None:
        self._in_speech = False
        self._speech_frames = 0
        self._trailing_silence_ms = 0

    def process(self, frame: bytes) -> Tuple[bool, bool]:
        speech = self._vad.is_speech(frame, self._sample_rate)
        if speech:
            self.idle_ms = 0
            self._speech_frames += 1
            if self._speech_frames >= self._min_speech_frames:
                self._in_speech = True
                self._trailing_silence_ms = 0
        else:
            self._speech_frames = 0
            if self._in_speech:
                self._trailing_silence_ms += self._frame_ms
                if self._trailing_silence_ms >= self._finalize_silence_ms:
                    self.reset()
                    return True, True
            else:
                self.idle_ms += self._frame_ms

        is_speech_frame = self._in_speech or self._speech_frames > 0
        return is_speech_frame, False
