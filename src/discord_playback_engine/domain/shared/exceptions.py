"""Base exception classes for domain-level errors and the playback failure taxonomy."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


# === Playback failures ===


class PlaybackError(DomainError):
    """Base class for failures contained inside the playback state machine."""


class InvalidItemUrlError(PlaybackError):
    """The item's source URL is not an absolute http(s) URL. Never retried."""

    def __init__(self, source_url: str, message: str | None = None) -> None:
        super().__init__(message or f"Invalid item URL: {source_url!r}", code="INVALID_ITEM_URL")
        self.source_url = source_url


class ResolutionFailureError(PlaybackError):
    """Obtaining a direct stream URL failed."""

    def __init__(self, source_url: str, message: str | None = None) -> None:
        super().__init__(
            message or f"Could not resolve a stream for {source_url}", code="RESOLUTION_FAILURE"
        )
        self.source_url = source_url


class DecoderSpawnError(PlaybackError):
    """The decoder process could not be started (binary missing or misconfigured)."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message, code="DECODER_SPAWN_FAILURE")
        self.hint = hint


class StreamAbortError(PlaybackError):
    """A transient fault interrupted playback mid-stream."""

    def __init__(self, message: str = "Stream aborted") -> None:
        super().__init__(message, code="STREAM_ABORT")


class DecoderNonZeroExitError(StreamAbortError):
    """The decoder exited with a failure code while playing. Handled like a stream abort."""

    def __init__(self, exit_code: int) -> None:
        super().__init__(f"Decoder exited with code {exit_code}")
        self.code = "DECODER_NONZERO_EXIT"
        self.exit_code = exit_code


class TransportTimeoutError(DomainError):
    """The transport connection did not become ready within the allowed time."""

    def __init__(self, timeout: float) -> None:
        super().__init__(
            f"Voice connection was not ready after {timeout}s", code="TRANSPORT_TIMEOUT"
        )
        self.timeout = timeout
