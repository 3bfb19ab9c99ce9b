"""
Approval callbacks: how a decision is obtained for an approval request.
"""

import threading
from typing import Optional, Protocol, runtime_checkable

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt

from ..models.enums import DocumentState
from ..orchestration.exceptions import ApprovalTimeoutError
from ..utils.logging_config import get_logger
from .models import ApprovalDecision, ApprovalRequest

logger = get_logger(__name__)

PREVIEW_CHARS = 500
DEFAULT_TIMEOUT_SECONDS = 30 * 60


@runtime_checkable
class ApprovalCallback(Protocol):
    def request_approval(self, request: ApprovalRequest) -> ApprovalDecision:
        ...


class AutoApprovalCallback:
    """Approves every request. Used for unattended runs and tests."""

    APPROVER = "auto-approve"

    def request_approval(self, request: ApprovalRequest) -> ApprovalDecision:
        logger.debug(f"Auto-approving {request.at_state.display_name} for '{request.work_item.topic_brief.topic}'")
        return ApprovalDecision.approve(request.id, self.APPROVER)


class ConsoleApprovalCallback:
    """Shows the request in the terminal and asks the operator for a decision."""

    APPROVER = "console-user"
    CHOICES = ["a", "r", "c"]

    def __init__(
        self,
        console: Optional[Console] = None,
        timeout_seconds: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize console callback.

        Args:
            console: Rich console to prompt on
            timeout_seconds: How long to wait for an answer; None waits forever
        """
        self.console = console or Console()
        self.timeout_seconds = timeout_seconds

    def request_approval(self, request: ApprovalRequest) -> ApprovalDecision:
        self._display(request)
        if self.timeout_seconds is None:
            return self._read_decision(request)

        answer = {}

        def read():
            try:
                answer["decision"] = self._read_decision(request)
            except Exception as e:
                answer["error"] = e

        # daemon thread: a prompt nobody answers must not keep the process alive
        reader = threading.Thread(target=read, name="approval-prompt", daemon=True)
        reader.start()
        reader.join(self.timeout_seconds)
        if reader.is_alive():
            logger.error(f"No approval decision for request {request.id} within {self.timeout_seconds:g}s")
            raise ApprovalTimeoutError(f"Approval request timed out after {self.timeout_seconds:g} seconds")
        if "error" in answer:
            raise answer["error"]
        return answer["decision"]

    def _read_decision(self, request: ApprovalRequest) -> ApprovalDecision:
        try:
            choice = Prompt.ask(
                "Decision ([bold]A[/bold]pprove / [bold]R[/bold]eject / request [bold]C[/bold]hanges)",
                choices=self.CHOICES,
                default="a",
                console=self.console,
            )
        except EOFError:
            logger.warning("No stdin available for approval prompt, auto-approving")
            return ApprovalDecision.approve(request.id, "auto-approved-no-stdin")

        choice = choice.strip().lower()
        if choice == "r":
            reason = self._ask_feedback("Reason for rejection")
            return ApprovalDecision.reject(request.id, self.APPROVER, reason)
        if choice == "c":
            feedback = self._ask_feedback("Requested changes")
            return ApprovalDecision.request_changes(request.id, self.APPROVER, feedback)
        return ApprovalDecision.approve(request.id, self.APPROVER)

    def _ask_feedback(self, label: str) -> str:
        try:
            return Prompt.ask(label, default="", console=self.console)
        except EOFError:
            return ""

    def _display(self, request: ApprovalRequest) -> None:
        work_item = request.work_item
        lines = [
            f"Request ID: {request.id}",
            f"Phase: {request.at_state.display_name}",
            f"Topic: {work_item.topic_brief.topic}",
            "",
            request.summary,
        ]
        details = self._details(request)
        if details:
            lines.append("")
            lines.extend(details)
        self.console.print(Panel("\n".join(lines), title="APPROVAL REQUIRED", border_style="yellow"))

    def _details(self, request: ApprovalRequest) -> list:
        work_item = request.work_item
        state = request.at_state
        if state == DocumentState.RESEARCHING and work_item.research_brief:
            return ["Key Facts:"] + [f"  - {fact}" for fact in work_item.research_brief.key_facts]
        if state == DocumentState.DRAFTING and work_item.draft:
            content = work_item.draft.content
            preview = content[:PREVIEW_CHARS] + ("..." if len(content) > PREVIEW_CHARS else "")
            return [f"Summary: {work_item.draft.summary}", "", f"Content preview:\n{preview}"]
        if state == DocumentState.VERIFYING and work_item.verification_report:
            report = work_item.verification_report
            lines = [
                f"Verified claims: {len(report.verified_claims)}",
                f"Questionable claims: {len(report.questionable_claims)}",
            ]
            lines.extend(f"  - {line}" for line in report.issue_lines())
            return lines
        if state == DocumentState.EDITING and work_item.final_article:
            article = work_item.final_article
            return [
                f"Quality score: {article.quality_score:.2f}",
                f"Word count: {len(article.content.split())}",
                f"Edit summary: {article.edit_summary}",
            ]
        if state == DocumentState.REVIEWING and work_item.review_report:
            return [work_item.review_report.issue_summary()]
        return []
