"""Models for derived stage timelines."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import Stage, StageStatus


class StageProgress(BaseModel):
    """Status of one stage within a customer's timeline."""

    model_config = ConfigDict(frozen=True)

    stage: Stage = Field(..., description="Stage")
    position: int = Field(..., ge=0, description="Index in the stage order")
    status: StageStatus = Field(..., description="Derived status")


class Timeline(BaseModel):
    """Per-stage progress derived from a customer's full note history."""

    model_config = ConfigDict(frozen=True)

    current_stage: Stage = Field(..., description="Stage of the most recent note")
    stages: tuple[StageProgress, ...] = Field(..., description="Progress in stage order")
    completed_stages: frozenset[Stage] = Field(
        default_factory=frozenset, description="Stages with at least one note"
    )

    def status_of(self, stage: Stage) -> StageStatus:
        """Get the derived status of a stage."""
        for progress in self.stages:
            if progress.stage == stage:
                return progress.status
        raise KeyError(stage)

    @property
    def per_stage_status(self) -> dict[Stage, StageStatus]:
        """Stage to status mapping, in stage order."""
        return {progress.stage: progress.status for progress in self.stages}
