"""Decision values produced by the gating phases (verification and review)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from src.models.enums import DocumentState


@dataclass(frozen=True)
class RevisionFeedback:
    """Issues a gating phase wants the reworked phase to address."""

    issues: Tuple[str, ...] = ()
    suggestions: Tuple[str, ...] = ()
    source: Optional[DocumentState] = None

    @property
    def is_empty(self) -> bool:
        return not self.issues and not self.suggestions

    def as_prompt_section(self) -> str:
        """Render the feedback as a plain-text block for the next prompt."""
        if self.is_empty:
            return ""
        origin = self.source.display_name if self.source else "Reviewer"
        lines = [f"{origin} feedback from the previous revision:"]
        lines.extend(f"- Issue: {issue}" for issue in self.issues)
        lines.extend(f"- Suggestion: {suggestion}" for suggestion in self.suggestions)
        return "\n".join(lines)


@dataclass(frozen=True)
class Approve:
    pass


@dataclass(frozen=True)
class Revise:
    feedback: RevisionFeedback = RevisionFeedback()


@dataclass(frozen=True)
class Reject:
    reason: str = ""


PhaseOutcome = Union[Approve, Revise, Reject]
