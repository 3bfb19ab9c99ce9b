"""
Metrics Collection for Pipeline Monitoring

Tracks run outcomes, revision cycles, approvals and per-phase timing. One
instance may be shared by concurrent runs.
"""

import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..models.enums import DocumentState, EventType
from .events import PipelineEvent


@dataclass
class PhaseMetrics:
    """Metrics for a single phase."""

    phase: DocumentState
    invocations: int = 0
    total_duration: float = 0.0

    @property
    def average_duration(self) -> float:
        return self.total_duration / self.invocations if self.invocations else 0.0


class PipelineMetrics:
    """Collects and aggregates pipeline metrics from monitoring events."""

    def __init__(self):
        self._lock = threading.Lock()

        self.pipelines_started = 0
        self.pipelines_completed = 0
        self.pipelines_failed = 0
        self.revision_cycles = 0
        self.approvals_requested = 0
        self.approvals_granted = 0
        self.approvals_rejected = 0

        self.total_processing_time = 0.0
        self.min_processing_time: Optional[float] = None
        self.max_processing_time = 0.0

        self.failures_by_state: Dict[DocumentState, int] = defaultdict(int)
        self.phases: Dict[DocumentState, PhaseMetrics] = {}

    def on_event(self, event: PipelineEvent) -> None:
        """Update counters from one event."""
        with self._lock:
            if event.event_type == EventType.PIPELINE_STARTED:
                self.pipelines_started += 1
            elif event.event_type == EventType.PIPELINE_COMPLETED:
                self.pipelines_completed += 1
                self._record_processing_time(float(event.data.get("elapsed_seconds", 0.0)))
            elif event.event_type == EventType.PIPELINE_FAILED:
                self.pipelines_failed += 1
                failed_at = event.data.get("failed_at_state")
                if failed_at:
                    self.failures_by_state[DocumentState(failed_at)] += 1
            elif event.event_type == EventType.REVISION_STARTED:
                self.revision_cycles += 1
            elif event.event_type == EventType.APPROVAL_REQUESTED:
                self.approvals_requested += 1
            elif event.event_type == EventType.APPROVAL_RECEIVED:
                if event.data.get("approved"):
                    self.approvals_granted += 1
                else:
                    self.approvals_rejected += 1
            elif event.event_type == EventType.PHASE_COMPLETED and event.current_state is not None:
                phase = self.phases.setdefault(event.current_state, PhaseMetrics(event.current_state))
                phase.invocations += 1
                phase.total_duration += float(event.data.get("duration_seconds", 0.0))

    def _record_processing_time(self, seconds: float) -> None:
        self.total_processing_time += seconds
        if self.min_processing_time is None or seconds < self.min_processing_time:
            self.min_processing_time = seconds
        self.max_processing_time = max(self.max_processing_time, seconds)

    @property
    def success_rate(self) -> float:
        if self.pipelines_started == 0:
            return 0.0
        return self.pipelines_completed / self.pipelines_started

    @property
    def average_processing_time(self) -> float:
        if self.pipelines_completed == 0:
            return 0.0
        return self.total_processing_time / self.pipelines_completed

    def phase_invocations(self, phase: DocumentState) -> int:
        metrics = self.phases.get(phase)
        return metrics.invocations if metrics else 0

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot of every counter."""
        with self._lock:
            return {
                "pipelines": {
                    "started": self.pipelines_started,
                    "completed": self.pipelines_completed,
                    "failed": self.pipelines_failed,
                    "success_rate": self.success_rate,
                    "revision_cycles": self.revision_cycles,
                },
                "approvals": {
                    "requested": self.approvals_requested,
                    "granted": self.approvals_granted,
                    "rejected": self.approvals_rejected,
                },
                "processing_time": {
                    "total": self.total_processing_time,
                    "average": self.average_processing_time,
                    "min": self.min_processing_time or 0.0,
                    "max": self.max_processing_time,
                },
                "failures_by_state": {state.value: count for state, count in self.failures_by_state.items()},
                "phases": {
                    state.value: {
                        "invocations": metrics.invocations,
                        "total_duration": metrics.total_duration,
                        "average_duration": metrics.average_duration,
                    }
                    for state, metrics in self.phases.items()
                },
            }

    def generate_report(self) -> str:
        """Generate a plain-text summary of all metrics."""
        data = self.to_dict()
        pipelines = data["pipelines"]
        approvals = data["approvals"]
        timing = data["processing_time"]

        lines = [
            "=== Pipeline Metrics Report ===",
            "",
            "Pipeline Statistics:",
            f"  Total Started: {pipelines['started']}",
            f"  Total Completed: {pipelines['completed']}",
            f"  Total Failed: {pipelines['failed']}",
            f"  Success Rate: {pipelines['success_rate'] * 100:.1f}%",
            f"  Total Revisions: {pipelines['revision_cycles']}",
            "",
            "Processing Time:",
            f"  Total: {timing['total']:.2f}s",
            f"  Average: {timing['average']:.2f}s",
            f"  Min: {timing['min']:.2f}s",
            f"  Max: {timing['max']:.2f}s",
            "",
            "Approvals:",
            f"  Requested: {approvals['requested']}",
            f"  Granted: {approvals['granted']}",
            f"  Rejected: {approvals['rejected']}",
        ]

        if data["failures_by_state"]:
            lines.extend(["", "Failures by State:"])
            lines.extend(f"  {state}: {count}" for state, count in sorted(data["failures_by_state"].items()))

        if data["phases"]:
            lines.extend(["", "Phase Performance:"])
            for state, phase in data["phases"].items():
                lines.append(
                    f"  {state}: {phase['invocations']} invocations, "
                    f"avg {phase['average_duration']:.2f}s"
                )

        return "\n".join(lines)
