"""
Error Boundary

Turns whatever stopped a pipeline run into its single terminal result.
"""

from typing import Optional

from ..models.document import StateTransitionError, WorkItem
from ..models.enums import DocumentState
from ..models.result import PipelineResult
from ..utils.logging_config import get_logger
from .exceptions import PipelineError

logger = get_logger(__name__)


class PhaseErrorBoundary:
    """
    Handles errors at the pipeline boundary.

    Expected stops arrive as ``PipelineError`` subclasses. Anything else is a
    bug in an executor, sink or gate; it is logged with its traceback and
    reported as a failure at the state the work item was in.
    """

    def __init__(self, failed_document_sink=None, save_failed_documents: bool = True):
        """
        Initialize error boundary.

        Args:
            failed_document_sink: Sink with a ``write_failed`` method, or None
            save_failed_documents: Whether to save debug copies of failed runs
        """
        self.failed_document_sink = failed_document_sink
        self.save_failed_documents = save_failed_documents

    def classify(self, error: Exception, current_state: DocumentState) -> PipelineError:
        """Map any exception to the PipelineError that describes the stop."""
        if isinstance(error, PipelineError):
            return error
        logger.error(f"Unexpected error at {current_state.display_name}: {error}", exc_info=error)
        stop = PipelineError(f"Unexpected error: {error}", current_state)
        stop.__cause__ = error
        return stop

    def to_result(self, work_item: WorkItem, error: Exception, elapsed_seconds: float) -> PipelineResult:
        """
        Move the work item to its terminal state and build the failed result.

        Args:
            work_item: Work item of the stopped run
            error: Exception that stopped the run
            elapsed_seconds: Wall-clock duration of the run

        Returns:
            PipelineResult with success=False
        """
        stop = self.classify(error, work_item.state)
        message = str(stop)
        logger.error(f"Pipeline stopped at {stop.failed_at_state.display_name}: {message}")

        self._terminate(work_item, stop.terminal_state)
        failed_path = self._save_failed_document(work_item, stop.failed_at_state, message)

        return PipelineResult.failed(
            work_item,
            error_message=message,
            failed_at_state=stop.failed_at_state,
            elapsed_seconds=elapsed_seconds,
            failed_document_path=failed_path,
        )

    def _terminate(self, work_item: WorkItem, terminal_state: DocumentState) -> None:
        if work_item.is_complete:
            return
        try:
            work_item.transition_to(terminal_state)
        except StateTransitionError as e:
            logger.error(f"Could not move work item {work_item.id} to {terminal_state.name}: {e}")

    def _save_failed_document(
        self,
        work_item: WorkItem,
        failed_state: DocumentState,
        message: str,
    ):
        if not self.save_failed_documents:
            return None
        if work_item.research_brief is None and work_item.draft is None:
            return None
        write_failed = getattr(self.failed_document_sink, "write_failed", None)
        if write_failed is None:
            return None
        try:
            return write_failed(work_item, failed_state, message)
        except Exception as e:
            logger.warning(f"Could not save failed document for {work_item.page_name}: {e}")
            return None
