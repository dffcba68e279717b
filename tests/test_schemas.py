import pytest
from pydantic import ValidationError

from farm_advisory.pipelines.schemas import AdvisoryRequest, FarmerInput
from farm_advisory.pipelines.stages import STAGE_OUTPUT_FIELDS, STAGES, Stage, is_known_stage, missing_output_fields

BASE = {
    "crop": "Tomato",
    "district": "Nashik",
    "soilType": "Loamy",
    "growthStage": "Flowering",
    "temp": 28,
    "humidity": 65,
}


def test_farmer_input_accepts_wire_names() -> None:
    farmer_input = FarmerInput.model_validate(
        {
            "crop": " Tomato ",
            "district": "Nashik",
            "soilType": "Loamy",
            "growthStage": "Flowering",
            "temp": "28.5",
            "humidity": 65,
            "imageUrl": "http://testserver/uploads/files/crops/1_leaf.jpg",
        }
    )

    assert farmer_input.crop == "Tomato"
    assert farmer_input.temperature == 28.5
    assert farmer_input.model_dump(by_alias=True)["soilType"] == "Loamy"


def test_farmer_input_rejects_non_numeric_temperature() -> None:
    with pytest.raises(ValidationError):
        FarmerInput.model_validate({**BASE, "temp": "hot"})


def test_advisory_request_validates_pipeline_id() -> None:
    assert AdvisoryRequest.model_validate({**BASE, "pipelineId": "farm-42"}).pipeline_id == "farm-42"
    with pytest.raises(ValidationError):
        AdvisoryRequest.model_validate({**BASE, "pipelineId": "bad id/with slash"})


def test_to_farmer_input_drops_pipeline_id() -> None:
    request = AdvisoryRequest.model_validate({**BASE, "pipelineId": "p1"})

    farmer_input = request.to_farmer_input()

    assert type(farmer_input) is FarmerInput
    assert farmer_input.crop == "Tomato"


def test_stage_order_is_fixed() -> None:
    assert len(STAGES) == 6
    assert STAGES[0] == Stage.FARMER_INTERACTION
    assert STAGES[-1] == Stage.EXPLANATION_COMPLIANCE
    assert is_known_stage("Weather Intelligence Agent")
    assert not is_known_stage("Soil Agent")


def test_missing_output_fields() -> None:
    assert missing_output_fields(Stage.WEATHER_INTELLIGENCE, {"weatherScore": 82}) == ["forecast"]
    assert missing_output_fields(Stage.FARMER_INTERACTION, {}) == []
    assert Stage.FIELD_OPERATIONS not in STAGE_OUTPUT_FIELDS
