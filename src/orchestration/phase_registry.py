"""
Phase Registry

Declarative phase table for the publishing pipeline: which phases run, in what
order, which setting skips them and which gating phase guards which producer.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from ..models.config import PipelineSettings
from ..models.enums import DocumentState
from ..utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PhaseDefinition:
    """Definition of a pipeline phase."""

    state: DocumentState
    phase_number: int
    description: str = ""
    skip_setting: Optional[str] = None  # PipelineSettings flag that skips this phase
    revises: Optional[DocumentState] = None  # Phase re-run when this gate says REVISE
    quality_gated: bool = False  # Check the article's quality score after this phase

    @property
    def name(self) -> str:
        return self.state.display_name

    @property
    def is_gate(self) -> bool:
        return self.revises is not None

    def is_skipped(self, settings: PipelineSettings) -> bool:
        return bool(self.skip_setting and getattr(settings, self.skip_setting))


class PhaseRegistry:
    """Registry of pipeline phases keyed by the state they run in."""

    def __init__(self):
        """Initialize phase registry."""
        self.phases: Dict[DocumentState, PhaseDefinition] = {}

    @classmethod
    def default(cls) -> "PhaseRegistry":
        """The research, draft, verify, edit, review sequence."""
        return (
            cls()
            .register(PhaseDefinition(DocumentState.RESEARCHING, 1, "Gather facts and sources"))
            .register(PhaseDefinition(DocumentState.DRAFTING, 2, "Write the first draft"))
            .register(
                PhaseDefinition(
                    DocumentState.VERIFYING,
                    3,
                    "Fact-check the draft",
                    skip_setting="skip_verification",
                    revises=DocumentState.DRAFTING,
                )
            )
            .register(
                PhaseDefinition(
                    DocumentState.EDITING,
                    4,
                    "Polish the article",
                    quality_gated=True,
                )
            )
            .register(
                PhaseDefinition(
                    DocumentState.REVIEWING,
                    5,
                    "Review structure and style",
                    skip_setting="skip_review",
                    revises=DocumentState.EDITING,
                )
            )
        )

    def register(self, phase: PhaseDefinition) -> "PhaseRegistry":
        """
        Register a phase.

        Args:
            phase: Phase definition to register

        Returns:
            Self for method chaining
        """
        if not phase.state.is_processing:
            raise ValueError(f"{phase.state.name} is not a processing state")
        if phase.state in self.phases:
            logger.warning(f"Phase '{phase.name}' already registered, overwriting")
        self.phases[phase.state] = phase
        return self

    def get_phase(self, state: DocumentState) -> Optional[PhaseDefinition]:
        return self.phases.get(state)

    def get_execution_order(self, settings: Optional[PipelineSettings] = None) -> List[PhaseDefinition]:
        """
        Get phases in execution order.

        Args:
            settings: When given, phases skipped by these settings are left out

        Returns:
            Phase definitions sorted by phase number
        """
        ordered = sorted(self.phases.values(), key=lambda phase: phase.phase_number)
        if settings is None:
            return ordered
        return [phase for phase in ordered if not phase.is_skipped(settings)]

    def skipped_phases(self, settings: PipelineSettings) -> List[PhaseDefinition]:
        return [phase for phase in self.get_execution_order() if phase.is_skipped(settings)]

    def validate_executors(self, executors: Mapping[DocumentState, object], settings: PipelineSettings) -> List[str]:
        """
        Check that every phase that will run has an executor.

        Returns:
            List of errors (empty if valid)
        """
        errors = []
        for phase in self.get_execution_order(settings):
            if executors.get(phase.state) is None:
                errors.append(f"No executor registered for phase '{phase.name}'")
            if phase.revises is not None and executors.get(phase.revises) is None:
                errors.append(f"Phase '{phase.name}' revises '{phase.revises.display_name}' which has no executor")
        return errors

    def __len__(self) -> int:
        """Return number of registered phases."""
        return len(self.phases)

    def __contains__(self, state: DocumentState) -> bool:
        """Check if phase is registered."""
        return state in self.phases
