"""Fixed stage list and the per-stage input/output contracts."""

from enum import StrEnum
from typing import Any

from farm_advisory.pipelines.schemas import FarmerInput, StageInput


class Stage(StrEnum):
    """One simulated agent in the advisory pipeline, in execution order."""

    FARMER_INTERACTION = "Farmer Interaction Agent"
    CROP_PREDICTION = "Crop Prediction Agent"
    WEATHER_INTELLIGENCE = "Weather Intelligence Agent"
    FIELD_OPERATIONS = "Field Operations & IoT Agent"
    DECISION_ORCHESTRATOR = "Decision Orchestrator Agent"
    EXPLANATION_COMPLIANCE = "Explanation & Compliance Agent"


STAGES: tuple[Stage, ...] = tuple(Stage)

STAGE_ROLES: dict[Stage, str] = {
    Stage.FARMER_INTERACTION: "Chat API input handling",
    Stage.CROP_PREDICTION: "ML inference for crop suitability & risk",
    Stage.WEATHER_INTELLIGENCE: "Weather API processing",
    Stage.FIELD_OPERATIONS: "Irrigation, harvest & post-harvest logic",
    Stage.DECISION_ORCHESTRATOR: "Combines agent outputs",
    Stage.EXPLANATION_COMPLIANCE: "Explains reasoning & confidence",
}

# Fields the runner reads from each stage's output. Stages not listed are
# logged but never consumed.
STAGE_OUTPUT_FIELDS: dict[Stage, tuple[str, ...]] = {
    Stage.CROP_PREDICTION: ("suitability", "confidence"),
    Stage.WEATHER_INTELLIGENCE: ("weatherScore", "forecast"),
    Stage.DECISION_ORCHESTRATOR: ("optimizedYield", "priceTrend"),
    Stage.EXPLANATION_COMPLIANCE: ("reasoning", "confidence"),
}


def is_known_stage(name: str) -> bool:
    return name in Stage._value2member_map_


def project_stage_input(stage: Stage, farmer_input: FarmerInput) -> StageInput:
    """Return the slice of farmer input sent to ``stage``.

    Every stage currently receives the same projection; the stage argument
    keeps the seam for agents that need a narrower or wider view.
    """
    return StageInput(
        crop=farmer_input.crop,
        soil_type=farmer_input.soil_type,
        temperature=farmer_input.temperature,
        district=farmer_input.district,
    )


def missing_output_fields(stage: Stage, output: dict[str, Any]) -> list[str]:
    """Return documented output fields that ``output`` does not carry."""
    return [field for field in STAGE_OUTPUT_FIELDS.get(stage, ()) if output.get(field) is None]
