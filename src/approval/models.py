"""Approval request and decision values."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from src.models.document import WorkItem
from src.models.enums import ApprovalDecisionType, DocumentState


@dataclass(frozen=True)
class ApprovalDecision:
    """A reviewer's answer to one approval request."""

    request_id: Optional[str]
    decision: ApprovalDecisionType
    approver: str
    feedback: str = ""
    decided_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def approve(cls, request_id: Optional[str], approver: str) -> "ApprovalDecision":
        return cls(request_id, ApprovalDecisionType.APPROVE, approver)

    @classmethod
    def reject(cls, request_id: Optional[str], approver: str, reason: str) -> "ApprovalDecision":
        return cls(request_id, ApprovalDecisionType.REJECT, approver, reason)

    @classmethod
    def request_changes(cls, request_id: Optional[str], approver: str, feedback: str) -> "ApprovalDecision":
        return cls(request_id, ApprovalDecisionType.REQUEST_CHANGES, approver, feedback)

    @property
    def is_approved(self) -> bool:
        return self.decision == ApprovalDecisionType.APPROVE

    @property
    def is_rejected(self) -> bool:
        return self.decision == ApprovalDecisionType.REJECT

    @property
    def changes_requested(self) -> bool:
        return self.decision == ApprovalDecisionType.REQUEST_CHANGES


@dataclass(frozen=True)
class ApprovalRequest:
    """A checkpoint where a reviewer must look at the document."""

    work_item: WorkItem
    at_state: DocumentState
    summary: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    requested_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(cls, work_item: WorkItem, at_state: DocumentState) -> "ApprovalRequest":
        return cls(work_item=work_item, at_state=at_state, summary=summarize(work_item, at_state))


def summarize(work_item: WorkItem, state: DocumentState) -> str:
    """One-line description of what the reviewer is approving."""
    topic = work_item.topic_brief.topic
    if state == DocumentState.RESEARCHING:
        facts = len(work_item.research_brief.key_facts) if work_item.research_brief else 0
        return f"Research complete for '{topic}': {facts} key facts gathered"
    if state == DocumentState.DRAFTING:
        words = work_item.draft.word_count if work_item.draft else 0
        return f"Draft ready for '{topic}': ~{words} words"
    if state == DocumentState.VERIFYING:
        report = work_item.verification_report
        if report is None:
            return f"Verification complete for '{topic}'"
        return (
            f"Verification complete for '{topic}': {report.confidence.value} confidence, "
            f"recommends {report.recommended_action.value}"
        )
    if state == DocumentState.EDITING:
        score = work_item.final_article.quality_score if work_item.final_article else 0.0
        return f"Ready to publish '{topic}': quality score {score:.2f}"
    if state == DocumentState.REVIEWING:
        report = work_item.review_report
        score = report.overall_score if report else 0.0
        return f"Review complete for '{topic}': overall score {score:.2f}"
    return f"Approval required for {topic}"
