"""Pipeline Orchestration Module."""

from .exceptions import (
    ApprovalRejected,
    ApprovalRejectedError,
    ApprovalTimedOut,
    ApprovalTimeoutError,
    ChangesRequested,
    ExecutorError,
    OutputWriteFailure,
    PhaseExecutionFailed,
    PhaseInvocationError,
    PhaseRejected,
    PipelineError,
    QualityGateFailure,
    ResponseParseError,
    ValidationFailure,
)
from .phase_registry import PhaseDefinition, PhaseRegistry

__all__ = [
    "ApprovalRejected",
    "ApprovalRejectedError",
    "ApprovalTimedOut",
    "ApprovalTimeoutError",
    "ChangesRequested",
    "ExecutorError",
    "OutputWriteFailure",
    "PhaseDefinition",
    "PhaseExecutionFailed",
    "PhaseInvocationError",
    "PhaseRegistry",
    "PhaseRejected",
    "PipelineError",
    "QualityGateFailure",
    "ResponseParseError",
    "ValidationFailure",
]
