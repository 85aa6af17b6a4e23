import asyncio
import io
import traceback
import wave
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from voicenote.capture.devices import PCM_MIME_TYPE, AudioInput, InputStream
from voicenote.util.errors import AppError
from voicenote.util.logger import get_logger

logger = get_logger(__name__)

MAX_DURATION_SECONDS = 900  # 15 minutes


class CaptureState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass
class CaptureArtifact:
    """The finalized audio of one capture session."""

    data: bytes
    mime_type: str
    duration_seconds: int
    sample_rate: int = 44100
    channels: int = 1

    @property
    def size(self) -> int:
        return len(self.data)

    def to_wav(self) -> bytes:
        """Wrap raw 16-bit PCM in a WAV container."""
        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as wav:
            wav.setnchannels(self.channels)
            wav.setsampwidth(2)
            wav.setframerate(self.sample_rate)
            wav.writeframes(self.data)
        return buffer.getvalue()

    def as_upload(self) -> Tuple[str, bytes, str]:
        """(filename, payload, content type) for a multipart upload."""
        if self.mime_type == PCM_MIME_TYPE:
            return "recording.wav", self.to_wav(), "audio/wav"
        return "recording.webm", self.data, self.mime_type


class CaptureController:
    """
    Record / pause / resume / stop state machine around one input device.

    Driven by a 1 Hz ticker on the running event loop; pass
    ``tick_interval=None`` to drive ``tick()`` by hand. The device is released
    on every way out of a session: stop, auto-stop, reset and ticker errors.
    """

    def __init__(
        self,
        audio_input: AudioInput,
        max_duration: int = MAX_DURATION_SECONDS,
        tick_interval: Optional[float] = 1.0,
    ):
        self.audio_input = audio_input
        self.max_duration = max_duration
        self.tick_interval = tick_interval
        self.state = CaptureState.IDLE
        self.elapsed_seconds = 0
        self.artifact: Optional[CaptureArtifact] = None
        self._chunks: List[bytes] = []
        self._stream: Optional[InputStream] = None
        self._ticker: Optional[asyncio.Task] = None

    @property
    def is_recording(self) -> bool:
        return self.state in (CaptureState.RECORDING, CaptureState.PAUSED)

    @property
    def is_paused(self) -> bool:
        return self.state is CaptureState.PAUSED

    @property
    def chunks(self) -> Tuple[bytes, ...]:
        return tuple(self._chunks)

    async def start(self) -> None:
        if self.state is not CaptureState.IDLE:
            raise AppError(f"Cannot start recording while {self.state.value}")

        # DeviceUnavailable propagates with the state left at IDLE
        self._stream = await asyncio.to_thread(self.audio_input.open)
        self._chunks = []
        self.elapsed_seconds = 0
        self.artifact = None
        self.state = CaptureState.RECORDING
        logger.info("Recording started")

        if self.tick_interval is not None:
            self._ticker = asyncio.create_task(self._tick_loop())

    def tick(self) -> None:
        """One timeslice: collect encoded data and advance the clock."""
        if self.state is not CaptureState.RECORDING:
            return
        self._collect(self._stream.read())
        self.elapsed_seconds += 1
        if self.elapsed_seconds >= self.max_duration:
            logger.info(f"Reached {self.max_duration}s limit, stopping")
            self._finalize()

    def pause(self) -> None:
        if self.state is not CaptureState.RECORDING:
            return
        self._collect(self._stream.flush())
        self._stream.pause()
        self.state = CaptureState.PAUSED

    def resume(self) -> None:
        if self.state is not CaptureState.PAUSED:
            return
        self._stream.resume()
        self.state = CaptureState.RECORDING

    def toggle_pause(self) -> None:
        if self.state is CaptureState.PAUSED:
            self.resume()
        else:
            self.pause()

    async def stop(self) -> Optional[CaptureArtifact]:
        """
        Finalize the session. When not recording, return the last artifact
        (possibly None) without error.
        """
        if not self.is_recording:
            return self.artifact
        await self._cancel_ticker()
        return self._finalize()

    def reset(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        self._release()
        self._chunks = []
        self.elapsed_seconds = 0
        self.artifact = None
        self.state = CaptureState.IDLE

    def _collect(self, data: bytes) -> None:
        if data:
            self._chunks.append(data)

    def _finalize(self) -> CaptureArtifact:
        if self.state is CaptureState.RECORDING:
            self._drain_pending()
        self._release()
        self.artifact = CaptureArtifact(
            data=b"".join(self._chunks),
            mime_type=self.audio_input.mime_type,
            duration_seconds=self.elapsed_seconds,
            sample_rate=self.audio_input.sample_rate,
            channels=self.audio_input.channels,
        )
        self.state = CaptureState.STOPPED
        logger.info(
            f"Recording stopped after {self.elapsed_seconds}s ({self.artifact.size} bytes)"
        )
        return self.artifact

    def _drain_pending(self) -> None:
        try:
            self._collect(self._stream.flush())
        except Exception as e:
            logger.warning(f"Could not flush pending audio: {e}")

    def _release(self) -> None:
        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        try:
            stream.close()
        except Exception as e:
            logger.warning(f"Could not release input device: {e}")

    async def _cancel_ticker(self) -> None:
        ticker, self._ticker = self._ticker, None
        if ticker is None or ticker is asyncio.current_task():
            return
        ticker.cancel()
        try:
            await ticker
        except asyncio.CancelledError:
            pass

    async def _tick_loop(self) -> None:
        try:
            while self.state in (CaptureState.RECORDING, CaptureState.PAUSED):
                await asyncio.sleep(self.tick_interval)
                self.tick()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Capture ticker failed: {e}\n{traceback.format_exc()}")
            self._abort_on_error()

    def _abort_on_error(self) -> None:
        # keep what was captured so far, but never hold the device
        if self.is_recording:
            self._finalize()
        else:
            self._release()
