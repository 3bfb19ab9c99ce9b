"""Gate models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from src.models.enums import DocumentState, GateStatus


class GateResult(BaseModel):
    work_item_id: str
    gate_name: str
    phase: DocumentState
    status: GateStatus
    details: str
    threshold: Optional[str] = None
    actual_value: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def passed(self) -> bool:
        return self.status == GateStatus.PASSED
