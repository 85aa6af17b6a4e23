from voicenote.capture.controller import (
    MAX_DURATION_SECONDS,
    CaptureArtifact,
    CaptureController,
    CaptureState,
)
from voicenote.capture.devices import (
    AudioInput,
    InputStream,
    MemoryAudioInput,
    SoundDeviceInput,
)
from voicenote.capture.upload import submit_capture, upload_artifact

__all__ = [
    "MAX_DURATION_SECONDS",
    "CaptureArtifact",
    "CaptureController",
    "CaptureState",
    "AudioInput",
    "InputStream",
    "MemoryAudioInput",
    "SoundDeviceInput",
    "submit_capture",
    "upload_artifact",
]
