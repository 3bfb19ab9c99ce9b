"""
File Output Sink

Writes published articles as ``<directory>/<PageName><ext>`` and debug copies
of failed runs under ``<directory>/failed/``.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from ..models.config import OutputSettings
from ..models.document import WorkItem
from ..models.enums import DocumentState
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

FAILED_SUBDIR = "failed"


class FileOutputSink:
    """OutputSink that writes plain-text pages to a directory."""

    def __init__(self, settings: Optional[OutputSettings] = None, directory: Optional[str] = None):
        """
        Initialize file sink.

        Args:
            settings: Output settings (directory, file extension)
            directory: Overrides ``settings.directory`` when given
        """
        self.settings = settings or OutputSettings()
        self.directory = Path(directory or self.settings.directory)
        self.extension = self.settings.file_extension

    def page_path(self, page_name: str) -> Path:
        return self.directory / f"{page_name}{self.extension}"

    def write(self, work_item: WorkItem) -> Path:
        content = work_item.content
        if not content:
            raise ValueError(f"Work item {work_item.id} has no content to write")

        path = self.page_path(work_item.page_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info(f"Wrote {path} ({len(content.split())} words)")
        return path

    def write_failed(self, work_item: WorkItem, failed_state: DocumentState, error_message: str) -> Optional[Path]:
        """Write whatever the failed run produced, headed by the failure details."""
        if work_item.research_brief is None and work_item.draft is None:
            return None

        path = self.directory / FAILED_SUBDIR / f"{work_item.page_name}-{failed_state.name}{self.extension}"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self._failed_document(work_item, failed_state, error_message), encoding="utf-8")
        logger.info(f"Saved failed document to {path}")
        return path

    def _failed_document(self, work_item: WorkItem, failed_state: DocumentState, error_message: str) -> str:
        lines = [
            "FAILED DOCUMENT",
            f"Topic: {work_item.topic_brief.topic}",
            f"Work item: {work_item.id}",
            f"Failed at: {failed_state.name}",
            f"Error: {error_message}",
            f"Saved at: {datetime.now(timezone.utc).isoformat()}",
            f"Verification cycles: {work_item.verification_cycles}",
            f"Review cycles: {work_item.review_cycles}",
            "",
        ]
        if work_item.content:
            lines.extend(["CONTENT", work_item.content, ""])
        brief = work_item.research_brief
        if brief is not None:
            lines.extend(["RESEARCH SUMMARY", brief.summary])
            lines.extend(f"- {fact}" for fact in brief.key_facts)
            lines.append("")
        for report in (work_item.verification_report, work_item.review_report):
            if report is not None and report.issue_lines():
                lines.append("OPEN ISSUES")
                lines.extend(f"- {line}" for line in report.issue_lines())
                lines.append("")
        return "\n".join(lines)

    def existing_pages(self) -> List[str]:
        """Page names already written to the output directory."""
        if not self.directory.is_dir():
            return []
        return sorted(path.stem for path in self.directory.glob(f"*{self.extension}") if path.is_file())

    def page_exists(self, page_name: str) -> bool:
        return self.page_path(page_name).is_file()
