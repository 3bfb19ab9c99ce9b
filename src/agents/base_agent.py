"""
Base Agent

Base class for phase executors backed by a text-generation service. An agent
builds one prompt, calls the service once, parses the JSON answer into its
phase's output model and stores it on the work item. Retries are left to the
orchestrator's RetryingInvoker.
"""

from abc import ABC, abstractmethod
from typing import Generic, List, Optional, Protocol, Type, TypeVar, runtime_checkable

from pydantic import BaseModel

from ..models.document import WorkItem
from ..models.enums import DocumentState
from ..utils.log_context import agent_log_context
from ..utils.logging_config import get_logger
from .json_parsing import parse_response

T = TypeVar("T", bound=BaseModel)

logger = get_logger(__name__)


@runtime_checkable
class LLMBackend(Protocol):
    """Structural protocol satisfied by any client that turns a prompt into text.

    Implementations raise on transport failures. Messages mentioning timeouts,
    rate limits or overload are treated as transient by the invoker.
    """

    def complete(self, prompt: str) -> str:
        ...


class BaseAgent(ABC, Generic[T]):
    """
    Base class for LLM-backed phase executors.

    Subclasses set ``phase`` and ``response_model`` and implement
    ``build_prompt``. Override ``to_output`` when the response model is not the
    phase's output type, and ``validate`` for phase-specific checks.
    """

    phase: DocumentState
    response_model: Type[T]
    role: str = "Agent"

    def __init__(self, backend: LLMBackend, system_instruction: Optional[str] = None):
        """
        Initialize agent.

        Args:
            backend: Text-generation client
            system_instruction: Optional text placed before every prompt
        """
        self.backend = backend
        self.system_instruction = system_instruction

    @abstractmethod
    def build_prompt(self, work_item: WorkItem) -> str:
        """Prompt for this phase, without revision feedback."""

    def to_output(self, work_item: WorkItem, response: T):
        """Convert the parsed response to the value stored on the work item."""
        return response

    def process(self, work_item: WorkItem) -> WorkItem:
        prompt = self._full_prompt(work_item)
        with agent_log_context(self.role, "process", prompt_chars=len(prompt)):
            raw = self.backend.complete(prompt)
            response = parse_response(raw, self.response_model)
            work_item.set_output(self.phase, self.to_output(work_item, response))
        return work_item

    def validate(self, work_item: WorkItem) -> bool:
        problems = self.validation_problems(work_item)
        for problem in problems:
            logger.warning(f"[{self.role}] Validation failed: {problem}")
        return not problems

    def validation_problems(self, work_item: WorkItem) -> List[str]:
        if work_item.output_for(self.phase) is None:
            return [f"no {self.phase.display_name.lower()} output"]
        return []

    def _full_prompt(self, work_item: WorkItem) -> str:
        parts = []
        if self.system_instruction:
            parts.append(self.system_instruction)
        parts.append(self._brief_section(work_item))
        parts.append(self.build_prompt(work_item))
        feedback = work_item.feedback_for(self.phase)
        if feedback is not None and not feedback.is_empty:
            parts.append(feedback.as_prompt_section())
        parts.append("Respond with a single JSON object and nothing else.")
        return "\n\n".join(parts)

    def _brief_section(self, work_item: WorkItem) -> str:
        brief = work_item.topic_brief
        lines = [
            f"Topic: {brief.topic}",
            f"Audience: {brief.audience}",
            f"Target length: about {brief.target_length} words",
        ]
        if brief.required_sections:
            lines.append(f"Required sections: {', '.join(brief.required_sections)}")
        if brief.related_pages:
            lines.append(f"Related pages: {', '.join(brief.related_pages)}")
        return "\n".join(lines)
