"""Pydantic models for pipeline inputs, progress records and the final advisory.

Wire names follow the progress document read by clients (``soilType``,
``currentAgent``, ``finalAdvice`` ...); Python attributes are snake_case and
either name is accepted on input.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

PIPELINE_ID_PATTERN = r"^[A-Za-z0-9_.:-]{1,128}$"


class FarmerInput(BaseModel):
    """Farm parameters collected from the farmer. Immutable once a pipeline starts."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    crop: str = Field(min_length=1, description="Crop name, e.g. 'Tomato'")
    district: str = Field(min_length=1, description="District the farm is located in")
    soil_type: str = Field(min_length=1, alias="soilType", description="Soil type, e.g. 'Loamy'")
    growth_stage: str = Field(min_length=1, alias="growthStage", description="Current crop growth stage")
    temperature: float = Field(alias="temp", description="Air temperature in degrees Celsius")
    humidity: float = Field(ge=0, le=100, description="Relative humidity in percent")
    image_url: str | None = Field(default=None, alias="imageUrl", description="URL of an uploaded crop image")


class AdvisoryRequest(FarmerInput):
    """Body accepted by the pipeline entry points."""

    pipeline_id: str | None = Field(
        default=None,
        alias="pipelineId",
        pattern=PIPELINE_ID_PATTERN,
        description="Caller-supplied pipeline id; generated when omitted",
    )

    def to_farmer_input(self) -> FarmerInput:
        return FarmerInput.model_validate(self.model_dump(exclude={"pipeline_id"}))


class StageInput(BaseModel):
    """Projection of the farmer input handed to one agent."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    crop: str
    soil_type: str = Field(alias="soilType")
    temperature: float = Field(alias="temp")
    district: str


class PipelineStatus(StrEnum):
    PENDING = "Pending"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"


TERMINAL_STATUSES = frozenset({PipelineStatus.COMPLETED, PipelineStatus.FAILED})


class Advisory(BaseModel):
    """Final recommendation assembled after every stage completed."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    yield_expectation: str = Field(alias="yieldExpectation")
    price_trend: str = Field(alias="priceTrend")
    risk_score: int = Field(ge=0, le=100, alias="riskScore")
    recommendation: str = Field(alias="finalAdvice")
    reasoning: str
    confidence: float = Field(ge=0, le=1)


class StageLogEntry(BaseModel):
    """Output of one completed stage."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    stage: str = Field(alias="agent")
    output: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime


class PipelineRecord(BaseModel):
    """Progress document for one pipeline run."""

    model_config = ConfigDict(populate_by_name=True)

    pipeline_id: str = Field(alias="pipelineId")
    status: PipelineStatus = PipelineStatus.PENDING
    current_stage: str | None = Field(default=None, alias="currentAgent")
    user_input: FarmerInput = Field(alias="userInput")
    start_time: datetime | None = Field(default=None, alias="startTime")
    end_time: datetime | None = Field(default=None, alias="endTime")
    advisory: Advisory | None = None
    error: str | None = None
    created: datetime
    updated: datetime
    sequence: int = Field(default=0, description="Sequence number of the last write to this pipeline")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class ProgressEvent(BaseModel):
    """One ordered update delivered to progress subscribers."""

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["record", "stage_log"]
    pipeline_id: str = Field(alias="pipelineId")
    sequence: int
    record: PipelineRecord | None = None
    log_entry: StageLogEntry | None = Field(default=None, alias="logEntry")
