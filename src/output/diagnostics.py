"""Diagnostic sink for issues left open when a revision loop gives up."""

from ..models.reports import ReviewReport, VerificationReport
from ..utils.logging_config import get_logger
from .protocols import IssueReport

logger = get_logger(__name__)

FRAME_WIDTH = 70


class LoggingDiagnosticSink:
    """Writes outstanding issues to the log as one framed warning block."""

    def log_issues(self, identifier: str, report: IssueReport) -> None:
        if isinstance(report, VerificationReport):
            kind = "verification"
            headline = report.summary()
        elif isinstance(report, ReviewReport):
            kind = "review"
            headline = report.issue_summary()
        else:
            kind = "revision"
            headline = ""

        lines = [
            "=" * FRAME_WIDTH,
            f"UNRESOLVED {kind.upper()} ISSUES: {identifier}",
        ]
        if headline:
            lines.append(headline)
        lines.append("-" * FRAME_WIDTH)
        issue_lines = report.issue_lines() or ["(no details)"]
        lines.extend(f"  {line}" for line in issue_lines)
        lines.append("=" * FRAME_WIDTH)
        logger.warning("\n".join(lines))
