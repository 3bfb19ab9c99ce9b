"""
Pipeline Orchestrator

Drives one work item through research, drafting, verification, editing and
review, then hands it to the output sink. Every run ends in exactly one
PipelineResult; nothing raised inside a run escapes ``run``.
"""

import time
from typing import Callable, Dict, Mapping, Optional

from ..approval.service import ApprovalGate
from ..models.config import PipelineSettings
from ..models.document import Contribution, TopicBrief, WorkItem
from ..models.enums import DocumentState
from ..models.result import PipelineResult
from ..monitoring.service import PipelineMonitoringService
from ..output.diagnostics import LoggingDiagnosticSink
from ..output.protocols import DiagnosticSink, OutputSink
from ..utils.log_context import LogContext, phase_context
from ..utils.logging_config import get_logger
from ..utils.retry_strategies import RetryingInvoker
from .error_boundary import PhaseErrorBoundary
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
    ValidationFailure,
)
from .gates import GateRunner
from .phase_registry import PhaseDefinition, PhaseRegistry
from .phases import PhaseExecutor
from .revision_loop import RevisionLoop

logger = get_logger(__name__)


def _process_in_place(executor: PhaseExecutor, work_item: WorkItem) -> WorkItem:
    returned = executor.process(work_item)
    if returned is not work_item:
        raise ExecutorError(
            f"{type(executor).__name__}.process returned a different work item; update the one passed in",
            retryable=False,
        )
    return returned


class PipelineOrchestrator:
    """
    Sequences the publishing phases for one work item at a time.

    The orchestrator holds only configuration and collaborators. All per-run
    state lives on the WorkItem, so one instance can serve concurrent runs as
    long as its executors are stateless.
    """

    def __init__(
        self,
        executors: Mapping[DocumentState, PhaseExecutor],
        approval_gate: ApprovalGate,
        output_sink: OutputSink,
        settings: Optional[PipelineSettings] = None,
        diagnostic_sink: Optional[DiagnosticSink] = None,
        monitoring: Optional[PipelineMonitoringService] = None,
        sleep: Callable[[float], None] = time.sleep,
        registry: Optional[PhaseRegistry] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            executors: Phase executor for each processing state
            approval_gate: Checkpoint consulted after every executed phase
            output_sink: Destination of the finished document
            settings: Pipeline settings (defaults to ``PipelineSettings()``)
            diagnostic_sink: Receives issues left open by a revision loop
            monitoring: Event fan-out and metrics
            sleep: Blocking sleep used for retry backoff
            registry: Phase table (defaults to ``PhaseRegistry.default()``)

        Raises:
            ValueError: If a phase that will run has no executor
        """
        self.settings = settings or PipelineSettings()
        self.registry = registry or PhaseRegistry.default()

        errors = self.registry.validate_executors(executors, self.settings)
        if errors:
            raise ValueError("; ".join(errors))

        self.executors: Dict[DocumentState, PhaseExecutor] = dict(executors)
        self.approval_gate = approval_gate
        self.output_sink = output_sink
        self.diagnostic_sink = diagnostic_sink if diagnostic_sink is not None else LoggingDiagnosticSink()
        self.monitoring = monitoring if monitoring is not None else PipelineMonitoringService()

        self.invoker = RetryingInvoker(self.settings.retry_policy, sleep=sleep)
        self.gates = GateRunner(self.settings)
        self.error_boundary = PhaseErrorBoundary(
            output_sink,
            save_failed_documents=self.settings.output.save_failed_documents,
        )
        self.revision_loops: Dict[DocumentState, RevisionLoop] = {
            phase.state: RevisionLoop(
                gate=phase,
                target=self.registry.get_phase(phase.revises),
                max_cycles=self.settings.max_revision_cycles,
                run_phase=self._run_phase,
                diagnostic_sink=self.diagnostic_sink,
                monitoring=self.monitoring,
            )
            for phase in self.registry.get_execution_order(self.settings)
            if phase.is_gate
        }

    def run(self, topic_brief: TopicBrief) -> PipelineResult:
        """
        Run the full pipeline for one topic.

        Args:
            topic_brief: What to write about

        Returns:
            PipelineResult; successful only when the document was written and
            the work item is PUBLISHED
        """
        work_item = WorkItem(topic_brief)
        started = time.monotonic()

        with LogContext(work_item_id=work_item.id, page_name=work_item.page_name):
            logger.info(f"Starting pipeline for '{topic_brief.topic}' ({work_item.id})")
            self.monitoring.pipeline_started(work_item)
            try:
                for phase in self.registry.get_execution_order():
                    if phase.is_skipped(self.settings):
                        logger.info(f"Skipping {phase.name} (disabled by {phase.skip_setting})")
                        self.monitoring.phase_skipped(work_item, phase.state)
                        continue
                    self._run_phase(work_item, phase, 0)
                    loop = self.revision_loops.get(phase.state)
                    if loop is not None:
                        loop.run(work_item)
                output_path = self._publish(work_item)
            except Exception as e:
                result = self.error_boundary.to_result(work_item, e, time.monotonic() - started)
                self.monitoring.pipeline_failed(result)
                return result

            result = PipelineResult.succeeded(work_item, output_path, time.monotonic() - started)
            logger.info(f"Published '{work_item.title}' to {output_path} in {result.elapsed_seconds:.2f}s")
            self.monitoring.pipeline_completed(result)
            return result

    execute = run

    def _run_phase(self, work_item: WorkItem, phase: PhaseDefinition, cycle: int) -> None:
        """Transition, invoke with retries, validate, gate and ask for approval."""
        state = phase.state
        previous_state = work_item.state
        work_item.transition_to(state)
        self.monitoring.phase_started(work_item, previous_state, cycle)
        executor = self.executors[state]

        with phase_context(state.display_name, cycle=cycle):
            started = time.monotonic()
            try:
                _, attempts = self.invoker.invoke_counted(lambda: _process_in_place(executor, work_item), state)
            except PhaseInvocationError as e:
                raise PhaseExecutionFailed(str(e), state) from e
            duration = time.monotonic() - started

            work_item.add_contribution(
                Contribution(
                    phase=state.value,
                    duration_seconds=duration,
                    metrics={"attempts": attempts, "cycle": cycle},
                )
            )

            if not executor.validate(work_item):
                raise ValidationFailure(f"{state.display_name} validation failed", state)

            if phase.quality_gated:
                self.gates.enforce_quality_score(work_item)

        self.monitoring.phase_completed(work_item, duration, attempts, cycle)
        self._check_approval(work_item, state)

    def _check_approval(self, work_item: WorkItem, state: DocumentState) -> None:
        try:
            approved = self.approval_gate.check_and_approve(work_item)
        except ApprovalRejectedError as e:
            raise ApprovalRejected(f"Document rejected at {state.display_name}: {e}", state) from e
        except ApprovalTimeoutError as e:
            raise ApprovalTimedOut(f"No approval decision at {state.display_name}: {e}", state) from e
        if not approved:
            raise ChangesRequested(f"Changes requested at {state.display_name}", state)

    def _publish(self, work_item: WorkItem):
        state = work_item.state
        try:
            output_path = self.output_sink.write(work_item)
        except (OSError, ValueError) as e:
            raise OutputWriteFailure(f"Failed to write output: {e}", state) from e
        work_item.transition_to(DocumentState.PUBLISHED)
        return output_path
