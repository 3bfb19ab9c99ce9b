"""
Event listeners for pipeline monitoring.
"""

from typing import Protocol, runtime_checkable

from ..models.enums import EventType
from ..utils import structured_log
from ..utils.logging_config import get_logger
from .events import PipelineEvent

logger = get_logger(__name__)


@runtime_checkable
class PipelineEventListener(Protocol):
    """Receives every event the monitoring service emits."""

    def on_event(self, event: PipelineEvent) -> None:
        ...


class LoggingEventListener:
    """Writes events to the application log."""

    _WARNING_EVENTS = frozenset({EventType.WARNING, EventType.PIPELINE_FAILED})
    _DEBUG_EVENTS = frozenset({EventType.PHASE_STARTED, EventType.PHASE_SKIPPED})

    def on_event(self, event: PipelineEvent) -> None:
        line = f"[{event.event_type.value}] {event.topic}: {event.message}"
        if event.event_type in self._WARNING_EVENTS:
            logger.warning(line)
        elif event.event_type in self._DEBUG_EVENTS:
            logger.debug(line)
        else:
            logger.info(line)


class StructuredLogListener:
    """Appends phase and run events to the JSON-lines audit trail."""

    _PHASE_ACTIONS = {
        EventType.PHASE_STARTED: "start",
        EventType.PHASE_COMPLETED: "done",
        EventType.PHASE_SKIPPED: "skipped",
    }

    def on_event(self, event: PipelineEvent) -> None:
        state = event.current_state.value if event.current_state else None
        action = self._PHASE_ACTIONS.get(event.event_type)
        if action is not None:
            structured_log.log_phase(state, action, work_item_id=event.work_item_id, **event.data)
            return
        structured_log.log_event(
            event.event_type.value,
            event.message,
            work_item_id=event.work_item_id,
            state=state,
            **event.data,
        )
