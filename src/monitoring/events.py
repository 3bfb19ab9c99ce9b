"""Pipeline lifecycle events."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from src.models.document import WorkItem
from src.models.enums import DocumentState, EventType


@dataclass(frozen=True)
class PipelineEvent:
    """One event in a pipeline run, delivered to every registered listener."""

    event_type: EventType
    work_item_id: str
    topic: str
    message: str
    current_state: Optional[DocumentState] = None
    previous_state: Optional[DocumentState] = None
    data: Mapping[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    @classmethod
    def for_work_item(
        cls,
        event_type: EventType,
        work_item: WorkItem,
        message: str,
        previous_state: Optional[DocumentState] = None,
        current_state: Optional[DocumentState] = None,
        **data: Any,
    ) -> "PipelineEvent":
        return cls(
            event_type=event_type,
            work_item_id=work_item.id,
            topic=work_item.topic_brief.topic,
            message=message,
            current_state=current_state if current_state is not None else work_item.state,
            previous_state=previous_state,
            data=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "event_type": self.event_type.value,
            "work_item_id": self.work_item_id,
            "topic": self.topic,
            "message": self.message,
            "current_state": self.current_state.value if self.current_state else None,
            "previous_state": self.previous_state.value if self.previous_state else None,
            "data": dict(self.data),
            "timestamp": self.timestamp.isoformat(),
        }
