"""Model exports for phase boundaries."""

from src.models.config import ApprovalSettings, OutputSettings, PipelineSettings, RetryPolicy
from src.models.document import (
    OUTPUT_FIELDS,
    Contribution,
    StateTransitionError,
    TopicBrief,
    WorkItem,
    to_page_name,
)
from src.models.enums import (
    ApprovalDecisionType,
    ConfidenceLevel,
    DocumentState,
    EventType,
    GateStatus,
    RecommendedAction,
)
from src.models.outcome import Approve, PhaseOutcome, Reject, Revise, RevisionFeedback
from src.models.reports import (
    ArticleDraft,
    FinalArticle,
    QuestionableClaim,
    ResearchBrief,
    ReviewReport,
    VerificationReport,
)
from src.models.result import PipelineResult
from src.models.workflow import GateResult

__all__ = [
    "ApprovalDecisionType",
    "ApprovalSettings",
    "Approve",
    "ArticleDraft",
    "ConfidenceLevel",
    "Contribution",
    "DocumentState",
    "EventType",
    "FinalArticle",
    "GateResult",
    "GateStatus",
    "OUTPUT_FIELDS",
    "OutputSettings",
    "PhaseOutcome",
    "PipelineResult",
    "PipelineSettings",
    "QuestionableClaim",
    "RecommendedAction",
    "Reject",
    "ResearchBrief",
    "RetryPolicy",
    "Revise",
    "RevisionFeedback",
    "ReviewReport",
    "StateTransitionError",
    "TopicBrief",
    "VerificationReport",
    "WorkItem",
    "to_page_name",
]
