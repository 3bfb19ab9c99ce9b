"""
Pipeline Phases

Contract every phase executor implements. An executor reads the work item,
produces its phase's output and stores it with ``work_item.set_output``. It
never changes the work item's state and never retries; both belong to the
orchestrator.
"""

from typing import Protocol, runtime_checkable

from ...models.document import WorkItem
from ...models.enums import DocumentState
from ...models.outcome import Approve, PhaseOutcome


@runtime_checkable
class PhaseExecutor(Protocol):
    """One generative phase (research, draft, verify, edit or review)."""

    def process(self, work_item: WorkItem) -> WorkItem:
        """
        Produce this phase's output and store it on the work item.

        The item is updated in place and returned; returning any other object
        fails the phase without a retry.

        Raises:
            ExecutorError: When the output cannot be produced. Raise with
                ``retryable=False`` for failures another attempt cannot fix.
            ResponseParseError: When the generation service's answer is malformed
        """
        ...

    def validate(self, work_item: WorkItem) -> bool:
        """Post-condition check on the output ``process`` just stored."""
        ...


def outcome_of(work_item: WorkItem, gate_phase: DocumentState) -> PhaseOutcome:
    """Read the outcome a gating phase recorded on the work item."""
    report = work_item.output_for(gate_phase)
    if report is None:
        return Approve()
    return report.outcome()


__all__ = [
    "PhaseExecutor",
    "outcome_of",
]
