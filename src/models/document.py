"""The work item carried through the publishing pipeline."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import DocumentState
from src.models.outcome import RevisionFeedback
from src.models.reports import (
    ArticleDraft,
    FinalArticle,
    ResearchBrief,
    ReviewReport,
    VerificationReport,
)

# Phase state -> (attribute, expected type)
OUTPUT_FIELDS: Dict[DocumentState, Tuple[str, type]] = {
    DocumentState.RESEARCHING: ("research_brief", ResearchBrief),
    DocumentState.DRAFTING: ("draft", ArticleDraft),
    DocumentState.VERIFYING: ("verification_report", VerificationReport),
    DocumentState.EDITING: ("final_article", FinalArticle),
    DocumentState.REVIEWING: ("review_report", ReviewReport),
}

# Gating phase -> revision counter attribute
_CYCLE_COUNTERS: Dict[DocumentState, str] = {
    DocumentState.VERIFYING: "_verification_cycles",
    DocumentState.REVIEWING: "_review_cycles",
}


class StateTransitionError(RuntimeError):
    """Raised on an illegal state change or a write to a finished work item."""


class TopicBrief(BaseModel):
    """Immutable input specification for one article."""

    model_config = ConfigDict(frozen=True)

    topic: str = Field(min_length=1)
    audience: str = "general readers"
    target_length: int = Field(gt=0, default=1000, description="Target length in words.")
    required_sections: List[str] = Field(default_factory=list)
    related_pages: List[str] = Field(default_factory=list)
    configuration: Dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class Contribution:
    """Audit record of one phase execution."""

    phase: str
    duration_seconds: float
    metrics: Mapping[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))


def to_page_name(topic: str) -> str:
    """CamelCase page name for a topic ("machine learning basics" -> "MachineLearningBasics")."""
    words = re.findall(r"[A-Za-z0-9]+", topic)
    return "".join(word[0].upper() + word[1:] for word in words) or "Untitled"


class WorkItem:
    """
    Mutable document moving through the pipeline.

    Owned by exactly one pipeline run. Phase outputs can only be written while
    the item is in that phase's state, and nothing can be written once the item
    reaches a terminal state.
    """

    def __init__(
        self,
        topic_brief: TopicBrief,
        item_id: Optional[str] = None,
        page_name: Optional[str] = None,
    ):
        if topic_brief is None:
            raise ValueError("topic_brief must not be None")
        self.id = item_id or str(uuid.uuid4())
        self.topic_brief = topic_brief
        self.page_name = page_name or to_page_name(topic_brief.topic)
        self.created_at = datetime.now(timezone.utc)
        self.updated_at = self.created_at

        self._state = DocumentState.CREATED
        self._outputs: Dict[DocumentState, Any] = {}

        self._verification_cycles = 0
        self._review_cycles = 0
        self._feedback: Dict[DocumentState, RevisionFeedback] = {}
        self._contributions: List[Contribution] = []

    # State

    @property
    def state(self) -> DocumentState:
        return self._state

    def transition_to(self, new_state: DocumentState) -> None:
        if not self._state.can_transition_to(new_state):
            allowed = ", ".join(sorted(state.name for state in self._state.valid_transitions())) or "none"
            raise StateTransitionError(
                f"Cannot transition from {self._state.name} to {new_state.name} (allowed: {allowed})"
            )
        self._state = new_state
        self._touch()

    @property
    def is_complete(self) -> bool:
        return self._state.is_terminal

    # Phase outputs

    def set_output(self, phase: DocumentState, value: Any) -> None:
        """Store (replacing any previous value) the output of ``phase``."""
        self._ensure_mutable()
        if phase not in OUTPUT_FIELDS:
            raise ValueError(f"{phase.name} has no output field")
        if self._state != phase:
            raise StateTransitionError(
                f"Can only set {phase.display_name.lower()} output in {phase.name} state "
                f"(current: {self._state.name})"
            )
        attribute, expected = OUTPUT_FIELDS[phase]
        if not isinstance(value, expected):
            raise TypeError(f"{attribute} must be {expected.__name__}, got {type(value).__name__}")
        self._outputs[phase] = value
        self._touch()

    def output_for(self, phase: DocumentState) -> Any:
        return self._outputs.get(phase)

    @property
    def research_brief(self) -> Optional[ResearchBrief]:
        return self._outputs.get(DocumentState.RESEARCHING)

    @property
    def draft(self) -> Optional[ArticleDraft]:
        return self._outputs.get(DocumentState.DRAFTING)

    @property
    def verification_report(self) -> Optional[VerificationReport]:
        return self._outputs.get(DocumentState.VERIFYING)

    @property
    def final_article(self) -> Optional[FinalArticle]:
        return self._outputs.get(DocumentState.EDITING)

    @property
    def review_report(self) -> Optional[ReviewReport]:
        return self._outputs.get(DocumentState.REVIEWING)

    @property
    def content(self) -> str:
        """Most polished text available: the edited article, else the draft."""
        if self.final_article is not None:
            return self.final_article.content
        if self.draft is not None:
            return self.draft.content
        return ""

    @property
    def title(self) -> str:
        for output in (self.final_article, self.draft):
            if output is not None and output.title:
                return output.title
        return self.topic_brief.topic

    # Revision bookkeeping

    @property
    def verification_cycles(self) -> int:
        return self._verification_cycles

    @property
    def review_cycles(self) -> int:
        return self._review_cycles

    def revision_cycles(self, gate_phase: DocumentState) -> int:
        return getattr(self, _CYCLE_COUNTERS[gate_phase])

    def increment_revision_cycles(self, gate_phase: DocumentState) -> int:
        self._ensure_mutable()
        attribute = _CYCLE_COUNTERS[gate_phase]
        count = getattr(self, attribute) + 1
        setattr(self, attribute, count)
        self._touch()
        return count

    def attach_feedback(self, phase: DocumentState, feedback: RevisionFeedback) -> None:
        """Make reviewer feedback available to the next execution of ``phase``."""
        self._ensure_mutable()
        self._feedback[phase] = feedback

    def feedback_for(self, phase: DocumentState) -> Optional[RevisionFeedback]:
        return self._feedback.get(phase)

    def clear_feedback(self, phase: DocumentState) -> None:
        self._feedback.pop(phase, None)

    # Audit trail

    @property
    def contributions(self) -> Tuple[Contribution, ...]:
        return tuple(self._contributions)

    def add_contribution(self, contribution: Contribution) -> None:
        self._ensure_mutable()
        self._contributions.append(contribution)

    def _ensure_mutable(self) -> None:
        if self.is_complete:
            raise StateTransitionError(f"Work item {self.id} is {self._state.name} and can no longer change")

    def _touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return (
            f"WorkItem(id={self.id!r}, page_name={self.page_name!r}, state={self._state.name}, "
            f"verification_cycles={self._verification_cycles}, review_cycles={self._review_cycles})"
        )
