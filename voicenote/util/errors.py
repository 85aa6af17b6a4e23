"""
Error taxonomy shared by the API, the services and the capture client.

Every error carries the HTTP status it maps to at the API boundary; the
message is what the client shows the user, so it must not leak internals.
"""

from typing import Optional


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request data"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class AuthRequired(AppError):
    status_code = 401
    default_message = "User ID required"


class InvalidCredentials(AppError):
    status_code = 401
    default_message = "Invalid credentials"


class TranscriptionFailed(AppError):
    """Speech-to-text failed or produced no text. Terminal for the pipeline."""

    status_code = 400
    default_message = "Could not transcribe audio"


class RestructureFailed(AppError):
    """The language model step failed. Always absorbed by the fallback."""

    default_message = "Could not restructure note"


class StorageIOError(AppError):
    default_message = "Storage operation failed"


class DeviceUnavailable(AppError):
    default_message = (
        "Could not start recording. Please check microphone permissions."
    )


class UploadFailed(AppError):
    def __init__(self, message: Optional[str] = None, status_code: int = 500):
        super().__init__(message or "Failed to process audio")
        self.status_code = status_code
