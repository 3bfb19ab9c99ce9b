"""
Pipeline monitoring: lifecycle events, listeners and metrics.
"""

from .events import PipelineEvent
from .listeners import LoggingEventListener, PipelineEventListener, StructuredLogListener
from .metrics import PhaseMetrics, PipelineMetrics
from .service import PipelineMonitoringService

__all__ = [
    "LoggingEventListener",
    "PhaseMetrics",
    "PipelineEvent",
    "PipelineEventListener",
    "PipelineMetrics",
    "PipelineMonitoringService",
    "StructuredLogListener",
]
