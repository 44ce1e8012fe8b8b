"""Error taxonomy shared by services and routes.

Every error raised on purpose by the services derives from
``SekretarError`` so routes can map them to HTTP responses in one place.
"""


class SekretarError(Exception):
    """Base class for expected, user-facing failures."""

    pass


class InputValidationError(SekretarError):
    """Missing file, blank instruction, or a disallowed concurrent operation."""

    pass


class DeviceAccessError(SekretarError):
    """Raised when the microphone cannot be acquired (denied or busy)."""

    pass


class ExternalServiceError(SekretarError):
    """Raised when an external AI call fails or returns nothing usable."""

    pass


class MissingCredentialError(ExternalServiceError):
    """Raised when no API key is configured for the external service."""

    pass


class TranscriptionError(ExternalServiceError):
    """Recoverable failure of the dictation transcription call."""

    pass


class ParseError(ExternalServiceError):
    """The compliance call returned malformed or non-conforming JSON."""

    pass


class ConflictError(SekretarError):
    """Duplicate username or removal of the last administrator."""

    pass


class StorageError(SekretarError):
    """Raised by key-value stores when a write cannot be persisted."""

    pass
