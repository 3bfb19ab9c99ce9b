"""Enum definitions for the document lifecycle and phase boundaries."""

from enum import Enum


class DocumentState(str, Enum):
    CREATED = "created"
    RESEARCHING = "researching"
    DRAFTING = "drafting"
    VERIFYING = "verifying"
    EDITING = "editing"
    REVIEWING = "reviewing"
    AWAITING_APPROVAL = "awaiting_approval"  # transient, never persisted
    PUBLISHED = "published"
    REJECTED = "rejected"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES

    @property
    def is_processing(self) -> bool:
        return self in _PROCESSING_STATES

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ").title()

    def can_transition_to(self, target: "DocumentState") -> bool:
        """Return True if ``target`` is a legal next state from this one."""
        if target is None or target == self:
            return False
        return target in _TRANSITIONS.get(self, frozenset())

    def valid_transitions(self) -> frozenset:
        return _TRANSITIONS.get(self, frozenset())


_TERMINAL_STATES = frozenset(
    {DocumentState.PUBLISHED, DocumentState.REJECTED, DocumentState.FAILED}
)

_PROCESSING_STATES = frozenset(
    {
        DocumentState.RESEARCHING,
        DocumentState.DRAFTING,
        DocumentState.VERIFYING,
        DocumentState.EDITING,
        DocumentState.REVIEWING,
    }
)

_STOP = frozenset({DocumentState.AWAITING_APPROVAL, DocumentState.REJECTED, DocumentState.FAILED})

_TRANSITIONS = {
    DocumentState.CREATED: frozenset({DocumentState.RESEARCHING}) | _STOP,
    DocumentState.RESEARCHING: frozenset({DocumentState.DRAFTING}) | _STOP,
    # EDITING is reachable directly when verification is skipped
    DocumentState.DRAFTING: frozenset({DocumentState.VERIFYING, DocumentState.EDITING}) | _STOP,
    DocumentState.VERIFYING: frozenset({DocumentState.EDITING, DocumentState.DRAFTING}) | _STOP,
    # PUBLISHED is reachable directly when review is skipped
    DocumentState.EDITING: frozenset({DocumentState.REVIEWING, DocumentState.PUBLISHED}) | _STOP,
    DocumentState.REVIEWING: frozenset({DocumentState.PUBLISHED, DocumentState.EDITING}) | _STOP,
    DocumentState.AWAITING_APPROVAL: frozenset(
        {
            DocumentState.RESEARCHING,
            DocumentState.DRAFTING,
            DocumentState.VERIFYING,
            DocumentState.EDITING,
            DocumentState.REVIEWING,
            DocumentState.PUBLISHED,
            DocumentState.REJECTED,
            DocumentState.FAILED,
        }
    ),
}


class RecommendedAction(str, Enum):
    APPROVE = "approve"
    REVISE = "revise"
    REJECT = "reject"

    @classmethod
    def parse(cls, value) -> "RecommendedAction":
        """Lenient parse used for LLM output; anything unrecognised means REVISE."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.REVISE
        normalized = str(value).strip().lower()
        if normalized == "approve":
            return cls.APPROVE
        if normalized == "reject":
            return cls.REJECT
        return cls.REVISE


class ConfidenceLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GateStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"


class ApprovalDecisionType(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_CHANGES = "request_changes"


class EventType(str, Enum):
    PIPELINE_STARTED = "pipeline_started"
    PHASE_STARTED = "phase_started"
    PHASE_COMPLETED = "phase_completed"
    PHASE_SKIPPED = "phase_skipped"
    APPROVAL_REQUESTED = "approval_requested"
    APPROVAL_RECEIVED = "approval_received"
    REVISION_STARTED = "revision_started"
    PIPELINE_COMPLETED = "pipeline_completed"
    PIPELINE_FAILED = "pipeline_failed"
    WARNING = "warning"
    INFO = "info"
