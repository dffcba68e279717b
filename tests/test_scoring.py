import pytest

from farm_advisory.pipelines.scoring import (
    HIGH_RISK_THRESHOLD,
    LOW_RISK_THRESHOLD,
    advisory_formatter_tool,
    crop_risk_tool,
    shelf_life_tool,
)


def test_crop_risk_for_loamy_soil_and_good_weather() -> None:
    # 40 - 15 + 6 - 16.4 = 14.6
    assert crop_risk_tool(82, "Loamy", 15) == 15


def test_crop_risk_applies_soil_adjustments() -> None:
    assert crop_risk_tool(0, "Sandy", 0) == 55
    assert crop_risk_tool(0, "Clayey", 0) == 45
    assert crop_risk_tool(0, "Loamy", 0) == 25


def test_crop_risk_ignores_unknown_soil() -> None:
    assert crop_risk_tool(0, "Peaty", 0) == 40


def test_crop_risk_floors_at_zero() -> None:
    assert crop_risk_tool(200, "Loamy", 0) == 0
    assert crop_risk_tool(1000, "Loamy", 0) == 0


def test_crop_risk_caps_at_hundred() -> None:
    assert crop_risk_tool(0, "Sandy", 200) == 100


def test_crop_risk_rounds_half_up() -> None:
    # 40 + 6 - 2.5 = 43.5
    assert crop_risk_tool(12.5, "Unknown", 15) == 44


def test_shelf_life_combines_inputs() -> None:
    assert shelf_life_tool(28, 65, 0) == pytest.approx(0.298)


def test_shelf_life_is_capped_at_one() -> None:
    assert shelf_life_tool(100, 100, 50) == 1.0


def test_shelf_life_has_no_lower_bound() -> None:
    assert shelf_life_tool(-40, 0, 0) == pytest.approx(-0.24)


@pytest.mark.parametrize("risk", [0, LOW_RISK_THRESHOLD - 1])
def test_formatter_low_risk_tier(risk: int) -> None:
    text = advisory_formatter_tool(crop="Tomato", risk=risk, shelf_life=0.3, weather="Partly Cloudy")

    assert text.startswith("Optimal conditions detected for Tomato")
    assert "Partly Cloudy" in text


@pytest.mark.parametrize("risk", [LOW_RISK_THRESHOLD, HIGH_RISK_THRESHOLD - 1])
def test_formatter_moderate_risk_tier(risk: int) -> None:
    text = advisory_formatter_tool(crop="Rice", risk=risk, shelf_life=0.3, weather="Light Rain")

    assert text.startswith("Moderate risk environment for Rice")
    assert "Light Rain" in text
    assert "20%" in text


@pytest.mark.parametrize("risk", [HIGH_RISK_THRESHOLD, 100])
def test_formatter_high_risk_tier(risk: int) -> None:
    text = advisory_formatter_tool(crop="Wheat", risk=risk, shelf_life=0.3, weather="Heatwave")

    assert text.startswith("Elevated risk levels for Wheat")
    assert "Heatwave" in text
    assert "5-7 days" in text


@pytest.mark.parametrize(
    ("weather_score", "soil_type", "price_volatility"),
    [(0, "Loamy", -100), (1000, "Sandy", 0), (-500, "Clayey", 500), (37.3, "", 2.2)],
)
def test_crop_risk_is_always_an_integer_in_range(weather_score, soil_type, price_volatility) -> None:
    risk = crop_risk_tool(weather_score, soil_type, price_volatility)

    assert isinstance(risk, int)
    assert 0 <= risk <= 100


def test_shelf_life_is_zero_for_zero_inputs() -> None:
    assert shelf_life_tool(0, 0, 0) == 0
