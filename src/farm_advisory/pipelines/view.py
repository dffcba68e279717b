"""Client-facing render state derived from a pipeline record and its stage log."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from farm_advisory.pipelines.schemas import Advisory, PipelineRecord, PipelineStatus, StageLogEntry
from farm_advisory.pipelines.stages import STAGES

RenderState = Literal["pending", "running", "completed", "failed"]
StageState = Literal["pending", "running", "completed"]

_RENDER_STATES: dict[PipelineStatus, RenderState] = {
    PipelineStatus.PENDING: "pending",
    PipelineStatus.RUNNING: "running",
    PipelineStatus.COMPLETED: "completed",
    PipelineStatus.FAILED: "failed",
}


class StageProgress(BaseModel):
    name: str
    state: StageState


class PipelineView(BaseModel):
    """Exactly one of the running/completed/failed payloads is populated per state."""

    model_config = ConfigDict(populate_by_name=True)

    pipeline_id: str = Field(alias="pipelineId")
    state: RenderState
    current_stage: str | None = Field(default=None, alias="currentStage")
    completed_stages: list[str] = Field(default_factory=list, alias="completedStages")
    stages: list[StageProgress] = Field(default_factory=list)
    advisory: Advisory | None = None
    error: str | None = None


def build_view(record: PipelineRecord, logs: list[StageLogEntry]) -> PipelineView:
    state = _RENDER_STATES[record.status]
    logged = {entry.stage for entry in logs}
    completed = [str(stage) for stage in STAGES if stage in logged]
    current = record.current_stage if state == "running" else None

    stages: list[StageProgress] = []
    for stage in STAGES:
        if stage in logged:
            stage_state: StageState = "completed"
        elif stage == current:
            stage_state = "running"
        else:
            stage_state = "pending"
        stages.append(StageProgress(name=str(stage), state=stage_state))

    return PipelineView(
        pipeline_id=record.pipeline_id,
        state=state,
        current_stage=current,
        completed_stages=completed,
        stages=stages,
        advisory=record.advisory if state == "completed" else None,
        error=record.error if state == "failed" else None,
    )
