"""
Retry Strategies for Phase Executor Calls

Wraps a single phase invocation with bounded retry and exponential backoff.
This is the only place in the pipeline where retry logic lives.
"""

import json
import logging
import time
from typing import Callable, Optional, Tuple, TypeVar

from pydantic import ValidationError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
)

from ..models.config import RetryPolicy
from ..models.enums import DocumentState
from ..orchestration.exceptions import ExecutorError, PhaseInvocationError, ResponseParseError
from .logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Substrings (lower-case) that mark a failure message as transient
TRANSIENT_MARKERS = (
    "timeout",
    "timed out",
    "rate limit",
    "temporarily",
    "overloaded",
    "503",
    "529",
)

PARSE_ERRORS = (ResponseParseError, json.JSONDecodeError, ValidationError)


def is_retryable_error(error: BaseException) -> bool:
    """
    Classify a phase executor failure.

    Parse failures of the executor's output are always retryable. An
    ``ExecutorError`` carries its own ``retryable`` flag. Anything else is
    retryable only if it looks transient (timeouts, rate limits, overload).

    Args:
        error: Exception raised by the operation

    Returns:
        True if another attempt may succeed
    """
    if isinstance(error, PARSE_ERRORS):
        return True
    if isinstance(error, ExecutorError):
        return error.retryable
    if isinstance(error, TimeoutError):
        return True
    message = str(error).lower()
    return any(marker in message for marker in TRANSIENT_MARKERS)


class _SleepInterrupted(Exception):
    pass


class RetryingInvoker:
    """
    Invokes a zero-argument operation up to ``policy.max_attempts`` times.

    Between attempt k and k+1 it blocks for
    ``initial_delay * backoff_multiplier ** (k - 1)`` seconds. The invoker keeps
    no per-call state, so one instance can serve concurrent pipeline runs.
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize invoker.

        Args:
            policy: Attempt and backoff limits (defaults to ``RetryPolicy()``)
            sleep: Blocking sleep used between attempts
        """
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    def invoke(self, operation: Callable[[], T], phase: DocumentState) -> T:
        """
        Run ``operation`` with retries.

        Raises:
            PhaseInvocationError: On a fatal failure, an interrupted backoff, or
                once every attempt has failed
        """
        result, _ = self.invoke_counted(operation, phase)
        return result

    def invoke_counted(self, operation: Callable[[], T], phase: DocumentState) -> Tuple[T, int]:
        """Same as ``invoke`` but also returns the number of attempts used."""
        attempts = 0

        def interruptible_sleep(seconds: float) -> None:
            try:
                self._sleep(seconds)
            except InterruptedError as e:
                raise _SleepInterrupted() from e

        retrying = Retrying(
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=lambda retry_state: self.policy.delay_for(retry_state.attempt_number),
            retry=retry_if_exception(is_retryable_error),
            sleep=interruptible_sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

        try:
            for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    logger.debug(f"{phase.display_name}: attempt {attempts}/{self.policy.max_attempts}")
                    result = operation()
        except _SleepInterrupted as interrupted:
            cause = interrupted.__cause__
            logger.error(f"{phase.display_name}: interrupted during retry delay after attempt {attempts}")
            raise PhaseInvocationError(
                phase,
                attempts,
                cause,
                retryable=False,
                message=f"{phase.display_name} interrupted during retry delay",
            ) from cause
        except Exception as e:
            retryable = is_retryable_error(e)
            if retryable:
                logger.error(f"{phase.display_name}: giving up after {attempts} attempts: {e}")
            else:
                logger.error(f"{phase.display_name}: non-retryable failure on attempt {attempts}: {e}")
            raise PhaseInvocationError(phase, attempts, e, retryable=retryable) from e

        return result, attempts
