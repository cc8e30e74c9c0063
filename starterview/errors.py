"""Typed exceptions and error values for the preview pipeline.

Collaborators raise ``UpstreamError`` subclasses; the coordinator turns them
into ``PreviewError`` values so the UI can decide whether to offer a retry.
"""

from __future__ import annotations

from dataclasses import dataclass


class PreviewPipelineError(RuntimeError):
    """Base class for all preview-pipeline errors."""


class ConfigError(PreviewPipelineError):
    """Malformed configuration or command-line input."""


class UpstreamError(PreviewPipelineError):
    """Failure reported by the generator or metadata collaborator."""

    code = "PREVIEW_UNAVAILABLE"
    retryable = False

    def __init__(self, message: str, *, code: str | None = None, status: int | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code
        self.status = status


class UpstreamUnavailable(UpstreamError):
    """Transient collaborator failure; safe to retry."""

    code = "PREVIEW_UNAVAILABLE"
    retryable = True


class UpstreamRejected(UpstreamError):
    """Permanent collaborator failure such as an invalid configuration."""

    code = "PREVIEW_REJECTED"
    retryable = False


@dataclass(frozen=True)
class PreviewError:
    """User-visible error value carried in preview state."""

    code: str
    message: str
    retryable: bool

    @classmethod
    def generic(cls) -> PreviewError:
        return cls(
            code="PREVIEW_UNAVAILABLE",
            message="Unable to load preview right now. Please try again shortly.",
            retryable=True,
        )

    @classmethod
    def from_exception(cls, exc: BaseException) -> PreviewError:
        """Describe ``exc``.

        ``UpstreamError`` keeps its own code and retry flag; anything else is
        the generic, retryable ``PREVIEW_UNAVAILABLE`` error.
        """
        if isinstance(exc, UpstreamError):
            return cls(code=exc.code, message=str(exc), retryable=exc.retryable)
        return cls.generic()


__all__ = [
    "PreviewPipelineError",
    "ConfigError",
    "UpstreamError",
    "UpstreamUnavailable",
    "UpstreamRejected",
    "PreviewError",
]
