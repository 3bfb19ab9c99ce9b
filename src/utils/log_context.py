"""
Log context management for pipeline phases and agent calls.

Context is bound through structlog contextvars rather than a global log record
factory, so two pipeline runs on different threads never see each other's
phase or work item id.
"""

import time
from contextlib import contextmanager

import structlog
from rich.console import Console
from rich.rule import Rule

from .logging_config import get_logger

logger = get_logger(__name__)
console = Console()


class LogContext:
    """Context manager that binds key-value pairs for the duration of a block."""

    def __init__(self, **context):
        """
        Initialize log context.

        Args:
            **context: Context key-value pairs
        """
        self.context = context
        self.start_time = None
        self._tokens = None

    def __enter__(self):
        """Enter context."""
        self.start_time = time.perf_counter()
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context."""
        if self._tokens is not None:
            structlog.contextvars.reset_contextvars(**self._tokens)
            self._tokens = None
        return False

    @property
    def elapsed(self) -> float:
        if self.start_time is None:
            return 0.0
        return time.perf_counter() - self.start_time


@contextmanager
def phase_context(phase: str, show_rule: bool = True, **extra_context):
    """
    Context manager for one pipeline phase execution.

    Args:
        phase: Phase display name
        show_rule: Print a rich rule before and after the phase
        **extra_context: Additional context (work_item_id, cycle, ...)

    Yields:
        The active LogContext
    """
    context = {"phase": phase, **extra_context}

    with LogContext(**context) as log_ctx:
        if show_rule:
            console.print(Rule(f"[dim]Phase: {phase}[/dim]", style="dim"))
        logger.info(f"=== Phase: {phase} ===")
        try:
            yield log_ctx
        except Exception as e:
            logger.error(f"=== Phase {phase} failed after {log_ctx.elapsed:.2f}s: {e} ===")
            raise
        if show_rule:
            console.print(Rule(f"[dim]Phase {phase} completed[/dim]", style="dim"))
        logger.info(f"=== Phase {phase} completed in {log_ctx.elapsed:.2f}s ===")


@contextmanager
def agent_log_context(agent_name: str, operation: str, **extra_context):
    """
    Context manager for agent operations.

    Args:
        agent_name: Agent name
        operation: Operation name
        **extra_context: Additional context
    """
    context = {"agent": agent_name, "operation": operation, **extra_context}

    with LogContext(**context):
        logger.debug(f"[{agent_name}] Starting {operation}")
        try:
            yield
            logger.debug(f"[{agent_name}] Completed {operation}")
        except Exception as e:
            logger.warning(f"[{agent_name}] Failed {operation}: {e}")
            raise
