"""
Approval Service

Human checkpoints between pipeline phases. The orchestrator asks after every
phase; the service only involves a reviewer at the states enabled in
``ApprovalSettings`` and approves everything else straight away.
"""

from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

from ..models.config import ApprovalSettings
from ..models.document import WorkItem
from ..models.enums import DocumentState
from ..orchestration.exceptions import ApprovalRejectedError
from ..utils.logging_config import get_logger
from .callbacks import ApprovalCallback, AutoApprovalCallback, ConsoleApprovalCallback
from .models import ApprovalDecision, ApprovalRequest

if TYPE_CHECKING:
    from ..monitoring.service import PipelineMonitoringService

logger = get_logger(__name__)

_SETTING_FOR_STATE = {
    DocumentState.RESEARCHING: "after_research",
    DocumentState.DRAFTING: "after_draft",
    DocumentState.VERIFYING: "after_verification",
    DocumentState.EDITING: "after_editing",
    DocumentState.REVIEWING: "after_review",
}


@runtime_checkable
class ApprovalGate(Protocol):
    def check_and_approve(self, work_item: WorkItem) -> bool:
        """
        Decide whether the pipeline may continue past the current phase.

        Returns:
            True to continue, False when changes were requested

        Raises:
            ApprovalRejectedError: When the reviewer rejects the document
        """
        ...


class ApprovalService:
    """ApprovalGate backed by a callback and per-state checkpoint settings."""

    def __init__(
        self,
        callback: ApprovalCallback,
        settings: Optional[ApprovalSettings] = None,
        monitoring: Optional["PipelineMonitoringService"] = None,
    ):
        self.callback = callback
        self.settings = settings or ApprovalSettings()
        self.monitoring = monitoring

    @classmethod
    def from_settings(
        cls,
        settings: ApprovalSettings,
        monitoring: Optional["PipelineMonitoringService"] = None,
    ) -> "ApprovalService":
        """Auto-approve when configured, otherwise prompt on the console."""
        if settings.auto_approve:
            callback = AutoApprovalCallback()
        else:
            callback = ConsoleApprovalCallback(timeout_seconds=settings.timeout_minutes * 60)
        return cls(callback, settings, monitoring)

    def is_approval_required(self, state: DocumentState) -> bool:
        setting = _SETTING_FOR_STATE.get(state)
        return bool(setting and getattr(self.settings, setting))

    def request_approval(self, work_item: WorkItem) -> ApprovalDecision:
        """Ask the callback for a decision on the work item's current state."""
        state = work_item.state
        if not self.is_approval_required(state):
            logger.debug(f"No approval required at {state.display_name}")
            return ApprovalDecision.approve(None, "not-required")

        logger.info(f"Requesting approval for '{work_item.topic_brief.topic}' at {state.display_name}")
        if self.monitoring is not None:
            self.monitoring.approval_requested(work_item, state)

        decision = self.callback.request_approval(ApprovalRequest.create(work_item, state))

        logger.info(
            f"Approval decision for '{work_item.topic_brief.topic}': "
            f"{decision.decision.value} by {decision.approver}"
        )
        if self.monitoring is not None:
            self.monitoring.approval_received(work_item, state, decision.is_approved)
        return decision

    def check_and_approve(self, work_item: WorkItem) -> bool:
        if not self.is_approval_required(work_item.state):
            return True

        decision = self.request_approval(work_item)
        if decision.is_rejected:
            raise ApprovalRejectedError(
                f"Document rejected by {decision.approver}: {decision.feedback}",
                work_item.state,
            )
        if decision.changes_requested:
            logger.info(f"Changes requested: {decision.feedback}")
            return False
        return decision.is_approved
