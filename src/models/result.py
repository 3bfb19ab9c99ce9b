"""Terminal record of a pipeline run."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from src.models.document import WorkItem
from src.models.enums import DocumentState


@dataclass(frozen=True)
class PipelineResult:
    success: bool
    work_item: WorkItem
    elapsed_seconds: float
    output_path: Optional[Path] = None
    error_message: Optional[str] = None
    failed_at_state: Optional[DocumentState] = None
    failed_document_path: Optional[Path] = None

    @classmethod
    def succeeded(cls, work_item: WorkItem, output_path: Path, elapsed_seconds: float) -> "PipelineResult":
        return cls(
            success=True,
            work_item=work_item,
            elapsed_seconds=elapsed_seconds,
            output_path=output_path,
        )

    @classmethod
    def failed(
        cls,
        work_item: WorkItem,
        error_message: str,
        failed_at_state: DocumentState,
        elapsed_seconds: float,
        failed_document_path: Optional[Path] = None,
    ) -> "PipelineResult":
        return cls(
            success=False,
            work_item=work_item,
            elapsed_seconds=elapsed_seconds,
            error_message=error_message,
            failed_at_state=failed_at_state,
            failed_document_path=failed_document_path,
        )
