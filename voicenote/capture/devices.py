"""Audio inputs the capture controller can record from."""

from abc import ABC, abstractmethod
import threading
from typing import List, Optional

from voicenote.util.errors import DeviceUnavailable
from voicenote.util.logger import get_logger

logger = get_logger(__name__)

PCM_MIME_TYPE = "audio/pcm"


class InputStream(ABC):
    """An acquired input device that encodes audio incrementally."""

    @abstractmethod
    def read(self) -> bytes:
        """Encoded bytes for the timeslice that just elapsed."""

    @abstractmethod
    def flush(self) -> bytes:
        """Whatever is buffered but not yet handed out by ``read``."""

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def resume(self) -> None: ...

    @abstractmethod
    def close(self) -> None:
        """Release the device. Must be safe to call more than once."""


class AudioInput(ABC):
    mime_type = PCM_MIME_TYPE
    sample_rate = 44100
    channels = 1

    @abstractmethod
    def open(self) -> InputStream:
        """
        Acquire the device.

        Raises:
            DeviceUnavailable: permission denied or no input device
        """


class SoundDeviceStream(InputStream):
    def __init__(self, stream):
        self._stream = stream
        self._buffer: List[bytes] = []
        self._lock = threading.Lock()
        self._closed = False

    def callback(self, indata, frames, time_info, status):
        if status:
            logger.warning(f"Input stream status: {status}")
        with self._lock:
            self._buffer.append(bytes(indata))

    def _drain(self) -> bytes:
        with self._lock:
            data = b"".join(self._buffer)
            self._buffer = []
        return data

    def read(self) -> bytes:
        return self._drain()

    def flush(self) -> bytes:
        return self._drain()

    def pause(self) -> None:
        self._stream.stop()

    def resume(self) -> None:
        self._stream.start()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._stream.stop()
        finally:
            self._stream.close()


class SoundDeviceInput(AudioInput):
    """Microphone capture through PortAudio, as raw 16-bit PCM."""

    def __init__(
        self,
        device: Optional[str] = None,
        sample_rate: int = 44100,
        channels: int = 1,
    ):
        self.device = device
        self.sample_rate = sample_rate
        self.channels = channels

    def open(self) -> InputStream:
        try:
            import sounddevice as sd
        except Exception as exc:  # pragma: no cover - environment-dependent
            raise DeviceUnavailable("sounddevice is required for recording.") from exc

        holder = SoundDeviceStream(None)
        try:
            raw = sd.RawInputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                device=self.device,
                callback=holder.callback,
            )
            holder._stream = raw
            raw.start()
        except Exception as exc:
            logger.error(f"Could not open input device {self.device!r}: {exc}")
            if holder._stream is not None:
                holder.close()
            raise DeviceUnavailable() from exc
        return holder


class MemoryStream(InputStream):
    def __init__(self, source: "MemoryAudioInput"):
        self.source = source
        self.paused = False
        self.closed = False

    def read(self) -> bytes:
        if self.paused or self.closed:
            return b""
        return self.source.next_block()

    def flush(self) -> bytes:
        return b""

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def close(self) -> None:
        self.closed = True


class MemoryAudioInput(AudioInput):
    """
    Scripted input producing one block of ``bytes_per_second`` per timeslice.

    Block ``n`` is filled with byte ``n % 256`` so ordering is observable.
    """

    def __init__(
        self,
        bytes_per_second: int = 16,
        available: bool = True,
        mime_type: str = "audio/webm",
    ):
        self.bytes_per_second = bytes_per_second
        self.available = available
        self.mime_type = mime_type
        self.blocks_produced = 0
        self.streams: List[MemoryStream] = []

    def next_block(self) -> bytes:
        block = bytes([self.blocks_produced % 256]) * self.bytes_per_second
        self.blocks_produced += 1
        return block

    def open(self) -> InputStream:
        if not self.available:
            raise DeviceUnavailable()
        stream = MemoryStream(self)
        self.streams.append(stream)
        return stream
