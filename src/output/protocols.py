"""Interfaces for where finished and failed documents go."""

from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

from ..models.document import WorkItem
from ..models.enums import DocumentState
from ..models.reports import ReviewReport, VerificationReport

IssueReport = Union[VerificationReport, ReviewReport]


@runtime_checkable
class OutputSink(Protocol):
    def write(self, work_item: WorkItem) -> Path:
        """Persist the finished document and return where it went. May raise OSError."""
        ...


@runtime_checkable
class FailedDocumentSink(Protocol):
    def write_failed(self, work_item: WorkItem, failed_state: DocumentState, error_message: str) -> Optional[Path]:
        """Persist a debug copy of a document whose run did not finish."""
        ...


@runtime_checkable
class DiagnosticSink(Protocol):
    def log_issues(self, identifier: str, report: IssueReport) -> None:
        """Record issues still open when a revision loop gave up."""
        ...
