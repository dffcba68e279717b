"""Scoring tools applied once every stage has produced its output."""

import math

BASE_RISK = 40.0
SOIL_RISK_ADJUSTMENTS: dict[str, float] = {
    "Loamy": -15.0,
    "Sandy": 15.0,
    "Clayey": 5.0,
}

# Placeholders until market volatility and harvest time are real inputs.
PRICE_VOLATILITY = 15.0
HOURS_SINCE_HARVEST = 0.0

LOW_RISK_THRESHOLD = 30
HIGH_RISK_THRESHOLD = 60


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def crop_risk_tool(weather_score: float, soil_type: str, price_volatility: float) -> int:
    """Return a 0-100 risk score; unrecognized soil types get no adjustment."""

    risk = BASE_RISK + SOIL_RISK_ADJUSTMENTS.get(soil_type, 0.0)
    risk += price_volatility * 0.4
    risk -= weather_score * 0.2
    return _round_half_up(max(0.0, min(100.0, risk)))


def shelf_life_tool(temperature: float, humidity: float, hours_since_harvest: float) -> float:
    """Return the post-harvest spoilage probability, capped at 1.

    There is no lower bound: sub-zero temperatures can yield negative values.
    """

    probability = (temperature * 0.6 + humidity * 0.2 + hours_since_harvest * 1.5) / 100
    return min(1.0, probability)


def advisory_formatter_tool(*, crop: str, risk: int, shelf_life: float, weather: str) -> str:
    """Render the recommendation text for the risk tier.

    ``shelf_life`` is accepted for the tool's full input shape but is not
    part of any template yet.
    """

    if risk < LOW_RISK_THRESHOLD:
        return (
            f"Optimal conditions detected for {crop}. The current weather ({weather}) and soil profile "
            "suggest a high-yield season. Post-harvest stability is high."
        )
    if risk < HIGH_RISK_THRESHOLD:
        return (
            f"Moderate risk environment for {crop}. While {weather} is acceptable, we suggest increasing "
            "irrigation frequency by 20% to mitigate soil moisture loss."
        )
    return (
        f"Elevated risk levels for {crop} in this region. Current conditions ({weather}) and market volatility "
        "suggest delaying harvest by 5-7 days for better price indexing."
    )
