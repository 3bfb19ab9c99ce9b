"""
Revision Loop

Bounded self-correction between a gating phase and the phase it guards:
verification guards drafting, review guards editing.
"""

from typing import Callable

from ..models.document import WorkItem
from ..models.enums import DocumentState
from ..models.outcome import Approve, Reject
from ..utils.logging_config import get_logger
from .exceptions import PhaseRejected
from .phase_registry import PhaseDefinition
from .phases import outcome_of

logger = get_logger(__name__)

# (work_item, phase, cycle) -> None; runs one phase end to end
PhaseRunner = Callable[[WorkItem, PhaseDefinition, int], None]


class RevisionLoop:
    """
    Acts on the outcome of a gating phase that has just run.

    APPROVE continues. REJECT stops the run. REVISE counts a revision cycle and,
    while the count is below ``max_cycles``, hands the gate's feedback to the
    guarded phase and runs it and the gate again. Once the cap is reached the
    open issues go to the diagnostic sink and the run continues with the last
    output of the guarded phase unchanged.
    """

    def __init__(
        self,
        gate: PhaseDefinition,
        target: PhaseDefinition,
        max_cycles: int,
        run_phase: PhaseRunner,
        diagnostic_sink=None,
        monitoring=None,
    ):
        if target.state != gate.revises:
            raise ValueError(f"{gate.name} does not revise {target.name}")
        self.gate = gate
        self.target = target
        self.max_cycles = max_cycles
        self.run_phase = run_phase
        self.diagnostic_sink = diagnostic_sink
        self.monitoring = monitoring

    @property
    def gate_state(self) -> DocumentState:
        return self.gate.state

    def run(self, work_item: WorkItem) -> None:
        """Loop until the gate approves, rejects or the cycle cap is hit."""
        while True:
            outcome = outcome_of(work_item, self.gate_state)

            if isinstance(outcome, Approve):
                revisions = work_item.revision_cycles(self.gate_state)
                logger.info(f"{self.gate.name} approved after {revisions} revisions")
                if revisions and self.monitoring is not None:
                    self.monitoring.info(work_item, f"{self.gate.name} approved after {revisions} revisions")
                work_item.clear_feedback(self.target.state)
                return

            if isinstance(outcome, Reject):
                reason = outcome.reason or "no reason given"
                raise PhaseRejected(f"{self.gate.name} rejected the document: {reason}", self.gate_state)

            cycle = work_item.increment_revision_cycles(self.gate_state)
            if cycle >= self.max_cycles:
                self._give_up(work_item, cycle)
                return

            logger.info(
                f"{self.gate.name} requested revision {cycle}/{self.max_cycles}: "
                f"{len(outcome.feedback.issues)} issues"
            )
            work_item.attach_feedback(self.target.state, outcome.feedback)
            if self.monitoring is not None:
                self.monitoring.revision_started(work_item, self.gate_state, cycle, self.max_cycles, outcome.feedback)

            self.run_phase(work_item, self.target, cycle)
            self.run_phase(work_item, self.gate, cycle)

    def _give_up(self, work_item: WorkItem, cycle: int) -> None:
        logger.warning(
            f"{self.gate.name} still requests changes after {cycle} revision cycles; "
            f"continuing with the current {self.target.name.lower()} output"
        )
        work_item.clear_feedback(self.target.state)
        if self.monitoring is not None:
            self.monitoring.warn(
                work_item,
                f"Max {self.gate.name.lower()} revision cycles ({self.max_cycles}) reached, proceeding",
            )
        self._report(work_item)

    def _report(self, work_item: WorkItem) -> None:
        if self.diagnostic_sink is None:
            return
        report = work_item.output_for(self.gate_state)
        try:
            self.diagnostic_sink.log_issues(work_item.page_name, report)
        except Exception as e:
            logger.warning(f"Diagnostic sink failed for {work_item.page_name}: {e}")
