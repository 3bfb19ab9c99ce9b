"""
Pipeline Monitoring Service

Fans pipeline events out to registered listeners. A failing listener is logged
and skipped; monitoring never changes the outcome of a run.
"""

import threading
from typing import Iterable, List, Optional

from ..models.document import WorkItem
from ..models.enums import DocumentState, EventType
from ..models.outcome import RevisionFeedback
from ..models.result import PipelineResult
from ..utils.logging_config import get_logger
from .events import PipelineEvent
from .listeners import LoggingEventListener, PipelineEventListener
from .metrics import PipelineMetrics

logger = get_logger(__name__)


class PipelineMonitoringService:
    """Central service for pipeline monitoring."""

    def __init__(
        self,
        listeners: Optional[Iterable[PipelineEventListener]] = None,
        metrics: Optional[PipelineMetrics] = None,
    ):
        """
        Initialize monitoring service.

        Args:
            listeners: Listeners to register (defaults to a LoggingEventListener)
            metrics: Metrics collector; always registered as a listener
        """
        self.metrics = metrics or PipelineMetrics()
        self._lock = threading.Lock()
        self._listeners: List[PipelineEventListener] = [self.metrics]
        for listener in listeners if listeners is not None else [LoggingEventListener()]:
            self._listeners.append(listener)

    def add_listener(self, listener: PipelineEventListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: PipelineEventListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, event: PipelineEvent) -> None:
        """Deliver ``event`` to every listener."""
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener.on_event(event)
            except Exception as e:
                logger.warning(f"Event listener {type(listener).__name__} failed on {event.event_type.value}: {e}")

    def pipeline_started(self, work_item: WorkItem) -> None:
        self.emit(
            PipelineEvent.for_work_item(
                EventType.PIPELINE_STARTED,
                work_item,
                f"Pipeline started for: {work_item.topic_brief.topic}",
            )
        )

    def phase_started(self, work_item: WorkItem, previous_state: DocumentState, cycle: int = 0) -> None:
        self.emit(
            PipelineEvent.for_work_item(
                EventType.PHASE_STARTED,
                work_item,
                f"Phase started: {work_item.state.display_name}",
                previous_state=previous_state,
                cycle=cycle,
            )
        )

    def phase_completed(self, work_item: WorkItem, duration_seconds: float, attempts: int, cycle: int = 0) -> None:
        self.emit(
            PipelineEvent.for_work_item(
                EventType.PHASE_COMPLETED,
                work_item,
                f"Phase completed: {work_item.state.display_name} in {duration_seconds:.2f}s",
                duration_seconds=duration_seconds,
                attempts=attempts,
                cycle=cycle,
            )
        )

    def phase_skipped(self, work_item: WorkItem, phase: DocumentState) -> None:
        self.emit(
            PipelineEvent.for_work_item(
                EventType.PHASE_SKIPPED,
                work_item,
                f"Phase skipped: {phase.display_name}",
                current_state=phase,
            )
        )

    def approval_requested(self, work_item: WorkItem, at_state: DocumentState) -> None:
        self.emit(
            PipelineEvent.for_work_item(
                EventType.APPROVAL_REQUESTED,
                work_item,
                f"Approval requested at: {at_state.display_name}",
                current_state=at_state,
            )
        )

    def approval_received(self, work_item: WorkItem, at_state: DocumentState, approved: bool) -> None:
        self.emit(
            PipelineEvent.for_work_item(
                EventType.APPROVAL_RECEIVED,
                work_item,
                f"Approval {'granted' if approved else 'denied'} at: {at_state.display_name}",
                current_state=at_state,
                approved=approved,
            )
        )

    def revision_started(
        self,
        work_item: WorkItem,
        gate_phase: DocumentState,
        cycle: int,
        max_cycles: int,
        feedback: RevisionFeedback,
    ) -> None:
        self.emit(
            PipelineEvent.for_work_item(
                EventType.REVISION_STARTED,
                work_item,
                f"Revision {cycle}/{max_cycles} requested by {gate_phase.display_name}",
                current_state=gate_phase,
                cycle=cycle,
                max_cycles=max_cycles,
                issues=len(feedback.issues),
            )
        )

    def pipeline_completed(self, result: PipelineResult) -> None:
        self.emit(
            PipelineEvent.for_work_item(
                EventType.PIPELINE_COMPLETED,
                result.work_item,
                f"Pipeline completed in {result.elapsed_seconds:.2f}s",
                elapsed_seconds=result.elapsed_seconds,
                output_path=str(result.output_path) if result.output_path else None,
            )
        )

    def pipeline_failed(self, result: PipelineResult) -> None:
        failed_at = result.failed_at_state
        self.emit(
            PipelineEvent.for_work_item(
                EventType.PIPELINE_FAILED,
                result.work_item,
                f"Pipeline failed at {failed_at.display_name if failed_at else 'unknown state'}: "
                f"{result.error_message}",
                failed_at_state=failed_at.value if failed_at else None,
                elapsed_seconds=result.elapsed_seconds,
            )
        )

    def warn(self, work_item: WorkItem, message: str) -> None:
        self.emit(PipelineEvent.for_work_item(EventType.WARNING, work_item, message))

    def info(self, work_item: WorkItem, message: str) -> None:
        self.emit(PipelineEvent.for_work_item(EventType.INFO, work_item, message))
