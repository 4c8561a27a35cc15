"""Exception hierarchy for matchkit.

These are the library's own errors. Failure *reasons* carried by a
``Failure`` are caller-supplied exceptions and never need to subclass
anything defined here.
"""

from __future__ import annotations


class MatchkitError(Exception):
    """Base exception for all matchkit errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint

    def __str__(self) -> str:
        """Return the message, followed by the hint when one is set."""
        msg = super().__str__()
        return f"{msg}. {self.hint}" if self.hint else msg


class EmptyReasonError(MatchkitError):
    """Reason of a failure that was constructed without one."""


class InvariantViolationError(MatchkitError):
    """Raised when a value is neither variant of the container it claims to be.

    Signals a mis-composed caller, e.g. passing a plain value or a ``Success``
    where an ``Option`` was expected.
    """


class ConfigurationError(MatchkitError):
    """Settings validation or resolution failed."""


class PipelineError(MatchkitError):
    """Raised when a pipeline stage's transformation fails for an item."""

    def __init__(
        self,
        message: str,
        stage_name: str,
        underlying_error: Exception,
        *,
        hint: str | None = None,
    ) -> None:
        self.stage_name = stage_name
        self.underlying_error = underlying_error
        super().__init__(f"Error in stage '{stage_name}': {message}", hint=hint)


class PipelineClosedError(MatchkitError):
    """The pipeline no longer accepts inputs or has no more outputs."""


__all__ = [
    "ConfigurationError",
    "EmptyReasonError",
    "InvariantViolationError",
    "MatchkitError",
    "PipelineClosedError",
    "PipelineError",
]
