"""Transcription error taxonomy. Every backend raises a TranscriptionError subclass."""


class TranscriptionError(Exception):
    """Base for all backend failures. `backend` names the backend that raised."""

    def __init__(self, message: str, backend: str | None = None) -> None:
        super().__init__(message)
        self.backend = backend


class ConfigError(TranscriptionError):
    """Required endpoint or model configuration is missing."""


class ModelMissing(TranscriptionError):
    """The offline recognition model is not on disk."""


class NetworkError(TranscriptionError):
    """Transport-level failure (connect, read, timeout)."""


class HttpError(TranscriptionError):
    """Non-2xx HTTP response."""

    def __init__(self, message: str, status_code: int, backend: str | None = None) -> None:
        super().__init__(f"{message} (HTTP {status_code})", backend)
        self.status_code = status_code


class UploadError(HttpError):
    pass


class CallError(HttpError):
    pass


class EventError(HttpError):
    pass


class ProtocolError(TranscriptionError):
    """A response is missing a field the protocol requires."""


class EmptyResultError(TranscriptionError):
    pass


class DecodeError(TranscriptionError):
    """The offline recognizer failed while decoding."""


class AudioStreamError(TranscriptionError, OSError):
    """The audio file could not be opened or read."""
