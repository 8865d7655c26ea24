from __future__ import annotations

import io
import logging
import os
import wave
from typing import AsyncIterator, List, Optional

import httpx
import pyaudio
from openai import AsyncOpenAI, OpenAIError

from voicewake.audio.capture import AudioCapture, list_input_devices
from voicewake.audio.vad import Endpointer
from voicewake.config.settings import AudioSettings
from voicewake.stt.base import CaptureRequest, TranscriptEvent, TranscriptionSession

logger = logging.getLogger(__name__)

# Shorter bursts are clicks and breaths, not words.
_MIN_UTTERANCE_MS = 200


class OpenAITranscriptionSession(TranscriptionSession):
    """Live transcript from the microphone.

    Audio is endpointed with webrtcvad; every utterance is sent to the OpenAI
    transcription endpoint and appended to the running transcript, which is
    reported as a partial result. A long enough pause (or the session cap)
    ends the stream with a final result.
    """

    def __init__(self, audio: AudioSettings, model: str, api_key: Optional[str] = None) -> None:
        self._audio = audio
        self._model = model
        self._api_key = api_key if api_key is not None else os.environ.get("OPENAI_API_KEY", "")
        self._client: Optional[AsyncOpenAI] = None
        self._pa: Optional[pyaudio.PyAudio] = None
        self._capture: Optional[AudioCapture] = None
        self._stopped = False

    def is_available(self, locale: Optional[str]) -> bool:
        return bool(self._api_key)

    def has_host_capabilities(self) -> bool:
        pa = pyaudio.PyAudio()
        try:
            return bool(list_input_devices(pa))
        finally:
            pa.terminate()

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                timeout=httpx.Timeout(60.0, connect=10.0),
                max_retries=2,
            )
        return self._client

    async def _transcribe(self, pcm16: bytes, language: Optional[str]) -> str:
        wav_buffer = io.BytesIO()
        with wave.open(wav_buffer, "wb") as wf:
            wf.setnchannels(self._audio.channels)
            wf.setsampwidth(2)  # 16-bit PCM
            wf.setframerate(self._audio.sample_rate)
            wf.writeframes(pcm16)
        wav_buffer.seek(0)
        # The API wants a file-like object with a name
        wav_buffer.name = "audio.wav"

        kwargs = {"model": self._model, "file": wav_buffer}
        if language:
            kwargs["language"] = language
        resp = await self._get_client().audio.transcriptions.create(**kwargs)
        return (resp.text or "").strip()

    async def start(self, request: CaptureRequest) -> AsyncIterator[TranscriptEvent]:
        self._stopped = False
        language = request.locale.split("-")[0].split("_")[0] if request.locale else None
        audio = self._audio
        self._pa = pyaudio.PyAudio()
        self._capture = AudioCapture(
            self._pa,
            sample_rate=audio.sample_rate,
            channels=audio.channels,
            device=request.mic_id,
            frame_ms=audio.vad_frame_ms,
        )
        endpointer = Endpointer(
            frame_ms=audio.vad_frame_ms,
            sample_rate=audio.sample_rate,
            finalize_silence_ms=audio.finalize_silence_ms,
            aggressiveness=audio.vad_aggressiveness,
        )
        min_frames = max(1, _MIN_UTTERANCE_MS // audio.vad_frame_ms)
        max_frames = int(audio.max_session_s * 1000 / audio.vad_frame_ms)

        parts: List[str] = []
        utterance: List[bytes] = []
        seen = 0
        async for frame in self._capture.frames():
            seen += 1
            is_speech, is_final = endpointer.process(frame)
            if is_speech:
                utterance.append(frame)
            elif not endpointer.in_speech:
                utterance.clear()

            if is_final and len(utterance) >= min_frames:
                pcm = b"".join(utterance)
                utterance.clear()
                try:
                    text = await self._transcribe(pcm, language)
                except OpenAIError as e:
                    logger.warning("transcription failed: %s", e)
                    yield TranscriptEvent(text=" ".join(parts), error=str(e))
                    return
                if text:
                    parts.append(text)
                    yield TranscriptEvent(text=" ".join(parts))

            if not endpointer.in_speech and endpointer.idle_ms >= audio.idle_final_ms:
                break
            if seen >= max_frames:
                break

        if not self._stopped:
            yield TranscriptEvent(text=" ".join(parts), is_final=True)

    async def stop(self) -> None:
        self._stopped = True
        if self._capture is not None:
            await self._capture.stop()
            self._capture = None
        if self._pa is not None:
            self._pa.terminate()
            self._pa = None
