"""Phase output models.

Each phase executor stores exactly one of these on the work item. The fields are
the minimum the orchestrator and its sinks read; executors may carry more in
``extra``.
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator

from src.models.enums import ConfidenceLevel, DocumentState, RecommendedAction
from src.models.outcome import Approve, PhaseOutcome, Reject, Revise, RevisionFeedback


class ResearchBrief(BaseModel):
    summary: str = ""
    key_facts: List[str] = Field(default_factory=list)
    sources: List[str] = Field(default_factory=list)
    glossary: Dict[str, str] = Field(default_factory=dict)
    extra: Dict[str, Any] = Field(default_factory=dict)


class ArticleDraft(BaseModel):
    title: str = ""
    content: str
    summary: str = ""
    extra: Dict[str, Any] = Field(default_factory=dict)

    @property
    def word_count(self) -> int:
        return len(self.content.split())


class QuestionableClaim(BaseModel):
    claim: str
    issue: str
    suggestion: str = ""


class VerificationReport(BaseModel):
    verified_claims: List[str] = Field(default_factory=list)
    questionable_claims: List[QuestionableClaim] = Field(default_factory=list)
    consistency_issues: List[str] = Field(default_factory=list)
    confidence: ConfidenceLevel = ConfidenceLevel.MEDIUM
    recommended_action: RecommendedAction = RecommendedAction.REVISE
    rejection_reason: str = ""

    @field_validator("recommended_action", mode="before")
    @classmethod
    def _parse_action(cls, value: Any) -> RecommendedAction:
        return RecommendedAction.parse(value)

    def issue_lines(self) -> List[str]:
        lines = []
        for claim in self.questionable_claims:
            line = f"Questionable claim: {claim.claim} ({claim.issue})"
            if claim.suggestion:
                line += f" Suggestion: {claim.suggestion}"
            lines.append(line)
        lines.extend(f"Consistency issue: {issue}" for issue in self.consistency_issues)
        return lines

    def summary(self) -> str:
        parts = []
        if self.questionable_claims:
            parts.append(f"{len(self.questionable_claims)} questionable claims")
        if self.consistency_issues:
            parts.append(f"{len(self.consistency_issues)} consistency issues")
        return ", ".join(parts) or "no issues listed"

    def outcome(self) -> PhaseOutcome:
        if self.recommended_action == RecommendedAction.APPROVE:
            return Approve()
        if self.recommended_action == RecommendedAction.REJECT:
            return Reject(self.rejection_reason or self.summary())
        return Revise(
            RevisionFeedback(
                issues=tuple(
                    [f"{c.claim}: {c.issue}" for c in self.questionable_claims]
                    + list(self.consistency_issues)
                ),
                suggestions=tuple(c.suggestion for c in self.questionable_claims if c.suggestion),
                source=DocumentState.VERIFYING,
            )
        )


class FinalArticle(BaseModel):
    title: str = ""
    content: str
    quality_score: float = Field(ge=0.0, le=1.0)
    edit_summary: str = ""
    added_links: List[str] = Field(default_factory=list)

    def meets_quality_threshold(self, threshold: float) -> bool:
        return self.quality_score >= threshold


class ReviewReport(BaseModel):
    overall_score: float = Field(ge=0.0, le=1.0, default=0.0)
    structure_issues: List[str] = Field(default_factory=list)
    syntax_issues: List[str] = Field(default_factory=list)
    style_issues: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    recommended_action: RecommendedAction = RecommendedAction.REVISE

    @field_validator("recommended_action", mode="before")
    @classmethod
    def _parse_action(cls, value: Any) -> RecommendedAction:
        return RecommendedAction.parse(value)

    @property
    def all_issues(self) -> List[str]:
        return [*self.structure_issues, *self.syntax_issues, *self.style_issues]

    def issue_summary(self) -> str:
        return (
            f"{len(self.all_issues)} issues found (structure: {len(self.structure_issues)}, "
            f"syntax: {len(self.syntax_issues)}, style: {len(self.style_issues)})"
        )

    def issue_lines(self) -> List[str]:
        lines = [f"Syntax issue: {issue}" for issue in self.syntax_issues]
        lines.extend(f"Structure issue: {issue}" for issue in self.structure_issues)
        lines.extend(f"Style issue: {issue}" for issue in self.style_issues)
        lines.extend(f"Suggestion: {suggestion}" for suggestion in self.suggestions)
        return lines

    def outcome(self) -> PhaseOutcome:
        if self.recommended_action == RecommendedAction.APPROVE:
            return Approve()
        if self.recommended_action == RecommendedAction.REJECT:
            return Reject(self.issue_summary())
        return Revise(
            RevisionFeedback(
                issues=tuple(self.all_issues),
                suggestions=tuple(self.suggestions),
                source=DocumentState.REVIEWING,
            )
        )
