"""
Pipeline Exceptions

Failures raised by phase executors, the retrying invoker and the orchestrator.
Every ``PipelineError`` stops the run and carries the state it stopped at.
"""

from typing import Optional

from ..models.enums import DocumentState


class ExecutorError(Exception):
    """Raised by a phase executor when it cannot produce its output."""

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r}, retryable={self.retryable})"


class ResponseParseError(ExecutorError):
    """The generation service answered, but the answer could not be parsed."""

    def __init__(self, message: str, raw_response: Optional[str] = None):
        super().__init__(message, retryable=True)
        self.raw_response = raw_response


class PhaseInvocationError(Exception):
    """The retrying invoker gave up on a phase."""

    def __init__(
        self,
        phase: DocumentState,
        attempts: int,
        cause: Optional[BaseException],
        retryable: bool,
        message: Optional[str] = None,
    ):
        if message is None:
            if retryable:
                message = f"{phase.display_name} failed after {attempts} attempts: {cause}"
            else:
                message = f"{phase.display_name} failed on attempt {attempts}: {cause}"
        super().__init__(message)
        self.phase = phase
        self.attempts = attempts
        self.cause = cause
        self.retryable = retryable


class PipelineError(Exception):
    """Base class for conditions that end a pipeline run."""

    #: terminal state the work item moves to when this error stops the run
    terminal_state = DocumentState.FAILED

    def __init__(self, message: str, failed_at_state: DocumentState):
        super().__init__(message)
        self.failed_at_state = failed_at_state


class PhaseExecutionFailed(PipelineError):
    """The phase executor failed (fatal error or retries exhausted)."""


class ValidationFailure(PipelineError):
    """A phase's output did not pass its own post-condition check."""


class ApprovalRejected(PipelineError):
    """The approval gate explicitly rejected the document."""

    terminal_state = DocumentState.REJECTED


class ApprovalTimedOut(PipelineError):
    """Nobody answered an approval request in time."""


class ChangesRequested(PipelineError):
    """The approval gate asked for changes instead of approving."""


class PhaseRejected(PipelineError):
    """A gating phase (verification or review) returned a REJECT outcome."""

    terminal_state = DocumentState.REJECTED


class QualityGateFailure(PipelineError):
    """The edited article scored below the configured minimum."""


class OutputWriteFailure(PipelineError):
    """The output sink could not persist the finished document."""


class ApprovalRejectedError(Exception):
    """Raised by an approval gate when a reviewer rejects the document."""

    def __init__(self, message: str, state: DocumentState):
        super().__init__(message)
        self.state = state


class ApprovalTimeoutError(Exception):
    """Raised by an approval callback when no decision arrives in time."""
