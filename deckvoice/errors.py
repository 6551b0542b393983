"""Domain exceptions for pipeline, fetch, and CLI diagnostics."""

from __future__ import annotations


class PipelineStageError(RuntimeError):
    """Raised when a specific pipeline stage fails and the run must stop."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class FetchError(RuntimeError):
    """Base error for one failed speech synthesis request."""

    failure_kind = "unknown"

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        failure_kind: str | None = None,
    ) -> None:
        """Initialize fetch error metadata for per-item diagnostics."""

        super().__init__(message)
        self.url = url
        self.status_code = status_code
        if failure_kind is not None:
            self.failure_kind = failure_kind


class ThrottledError(FetchError):
    """Raised when the speech endpoint answers HTTP 429."""

    failure_kind = "throttled"


class TransportError(FetchError):
    """Raised on connection, timeout, or mid-stream transport failures."""

    failure_kind = "transport"


class HttpStatusError(FetchError):
    """Raised when the speech endpoint answers a non-200, non-429 status."""

    failure_kind = "http_error"


class InvalidFragmentError(ValueError):
    """Raised for fragments that are empty after trimming."""


class DocumentReadError(RuntimeError):
    """Raised when a deck document cannot be read."""
