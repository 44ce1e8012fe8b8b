"""AudioCaptureService: dictation of the instruction text.

State machine ``IDLE -> RECORDING -> TRANSCRIBING -> IDLE``. The microphone
is a scoped resource: it is opened on ``start_recording`` and always
released before transcription starts, whether capture succeeded or not.
``stop_recording`` returns the bare transcript; joining it onto the
instruction is left to the caller, which knows the text as it stands
when transcription finishes.
"""

from __future__ import annotations

import base64
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from sekretar.config import Config
from sekretar.errors import DeviceAccessError, InputValidationError, TranscriptionError


class CaptureState(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    TRANSCRIBING = "TRANSCRIBING"


class AudioRecording:
    """An open capture session on a microphone."""

    def __init__(self, mime_type: str, on_close: Optional[Callable[[], None]] = None):
        self.mime_type = mime_type
        self._chunks: List[bytes] = []
        self._on_close = on_close
        self.closed = False

    def write(self, chunk: bytes) -> None:
        if self.closed:
            raise InputValidationError("Запись уже остановлена.")
        if chunk:
            self._chunks.append(bytes(chunk))

    def read_all(self) -> bytes:
        return b"".join(self._chunks)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._on_close is not None:
            self._on_close()


class Microphone:
    def open(self) -> AudioRecording:  # pragma: no cover - interface
        raise NotImplementedError


class BufferedMicrophone(Microphone):
    """Server-side device fed with audio chunks uploaded by the client.

    Only one recording may hold the device at a time. A disabled device
    behaves like a microphone whose permission was denied.
    """

    def __init__(self, mime_type: str = Config.AUDIO_MIME_TYPE, enabled: bool = True):
        self.mime_type = mime_type
        self.enabled = enabled
        self.in_use = False

    def open(self) -> AudioRecording:
        if not self.enabled:
            raise DeviceAccessError("Нет доступа к микрофону. Проверьте настройки браузера.")
        if self.in_use:
            raise DeviceAccessError("Микрофон уже используется.")
        self.in_use = True
        return AudioRecording(self.mime_type, on_close=self._release)

    def _release(self) -> None:
        self.in_use = False


TranscribeFn = Callable[[str, str], Awaitable[str]]


class AudioCaptureService:
    def __init__(self, microphone: Microphone, transcribe: TranscribeFn):
        self.microphone = microphone
        self._transcribe = transcribe
        self.state = CaptureState.IDLE
        self._recording: Optional[AudioRecording] = None

    @property
    def is_idle(self) -> bool:
        return self.state == CaptureState.IDLE

    def start_recording(self) -> None:
        if self.state != CaptureState.IDLE:
            raise InputValidationError("Запись уже идёт или распознаётся.")
        # DeviceAccessError propagates with the state still IDLE
        self._recording = self.microphone.open()
        self.state = CaptureState.RECORDING
        logging.info("Dictation recording started")

    def feed(self, chunk: bytes) -> None:
        if self.state != CaptureState.RECORDING or self._recording is None:
            raise InputValidationError("Запись не ведётся.")
        self._recording.write(chunk)

    def cancel_recording(self) -> None:
        """Abandon an in-progress recording without transcribing it."""
        if self.state != CaptureState.RECORDING:
            return
        self._release()
        self.state = CaptureState.IDLE

    def _release(self) -> bytes:
        rec, self._recording = self._recording, None
        if rec is None:
            return b""
        try:
            return rec.read_all()
        finally:
            rec.close()

    async def stop_recording(self) -> str:
        """Stop capture, transcribe it and return the transcript."""
        if self.state != CaptureState.RECORDING:
            raise InputValidationError("Запись не ведётся.")
        self.state = CaptureState.TRANSCRIBING
        try:
            mime_type = self._recording.mime_type
            audio = self._release()
            transcript = await self._transcribe(base64.b64encode(audio).decode("ascii"), mime_type)
        except Exception as e:
            logging.exception("Dictation transcription failed")
            raise TranscriptionError("Не удалось распознать речь. Попробуйте еще раз.") from e
        finally:
            self.state = CaptureState.IDLE
        transcript = transcript or ""
        logging.info("Dictation transcribed (%d chars)", len(transcript))
        return transcript
