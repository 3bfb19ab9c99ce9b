"""Configuration models loaded from YAML."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RetryPolicy(BaseModel):
    """Attempt and backoff limits shared by every phase invocation."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(ge=1, default=3)
    initial_delay: float = Field(ge=0.0, default=1.0, description="Seconds before the second attempt.")
    backoff_multiplier: float = Field(ge=1.0, default=2.0)

    def delay_for(self, attempt: int) -> float:
        """Delay slept after the given (1-indexed) failed attempt."""
        return self.initial_delay * (self.backoff_multiplier ** (attempt - 1))


class ApprovalSettings(BaseModel):
    """Human checkpoints. Phases without a checkpoint are approved automatically."""

    model_config = ConfigDict(frozen=True)

    auto_approve: bool = True
    after_research: bool = False
    after_draft: bool = False
    after_verification: bool = False
    after_editing: bool = Field(default=True, description="Checkpoint before the article is published.")
    after_review: bool = False
    timeout_minutes: float = Field(gt=0.0, default=30.0, description="How long a console prompt waits.")


class OutputSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    directory: str = "output"
    file_extension: str = ".txt"
    save_failed_documents: bool = True


class PipelineSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_revision_cycles: int = Field(ge=1, default=3)
    skip_verification: bool = False
    skip_review: bool = False
    min_quality_score: float = Field(ge=0.0, le=1.0, default=0.8)
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    approval: ApprovalSettings = Field(default_factory=ApprovalSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
