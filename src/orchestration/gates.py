"""Quality gate evaluation."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from src.models import DocumentState, GateResult, GateStatus, PipelineSettings, WorkItem
from src.orchestration.exceptions import QualityGateFailure
from src.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class GateOutcome:
    passed: bool
    details: str
    threshold: str
    actual_value: str


GateCheck = Callable[[], GateOutcome]


class GateRunner:
    def __init__(self, settings: PipelineSettings):
        self.settings = settings

    def run_gate(
        self,
        work_item: WorkItem,
        phase: DocumentState,
        gate_name: str,
        check_fn: GateCheck,
    ) -> GateResult:
        outcome = check_fn()
        result = GateResult(
            work_item_id=work_item.id,
            gate_name=gate_name,
            phase=phase,
            status=GateStatus.PASSED if outcome.passed else GateStatus.FAILED,
            details=outcome.details,
            threshold=outcome.threshold,
            actual_value=outcome.actual_value,
        )
        log = logger.debug if result.passed else logger.warning
        log(f"Gate {gate_name} {result.status.value}: {result.details}")
        return result

    def run_quality_score_gate(self, work_item: WorkItem) -> GateResult:
        minimum = self.settings.min_quality_score

        def check() -> GateOutcome:
            article = work_item.final_article
            score = article.quality_score if article is not None else 0.0
            passed = score >= minimum
            details = "" if passed else f"Quality score {score:.2f} below minimum {minimum:.2f}"
            return GateOutcome(
                passed=passed,
                details=details or f"quality_score={score:.2f}, minimum={minimum:.2f}",
                threshold=f"{minimum:.2f}",
                actual_value=f"{score:.2f}",
            )

        return self.run_gate(work_item, DocumentState.EDITING, "quality_score", check)

    def enforce_quality_score(self, work_item: WorkItem) -> GateResult:
        """Run the quality gate and stop the run when it fails."""
        result = self.run_quality_score_gate(work_item)
        if not result.passed:
            raise QualityGateFailure(result.details, DocumentState.EDITING)
        return result
