# backend/soiliq/services/scoring_service.py

"""
Soil Health Scoring Engine

One canonical formula for both a single reading and a window of averages:
 - every factor earns points by band (optimal / acceptable / outside)
 - factors: pH, NPK (mean of the three nutrient band points), moisture,
   organic matter (only when present)
 - score = rounded mean of the present factors, clamped to 0-100

Band bounds are inclusive. Temperature is not a score factor.
"""

from typing import Dict, Any, Optional, Mapping

OPTIMAL = "optimal"
ACCEPTABLE = "acceptable"
POOR = "poor"

BAND_POINTS = {
    OPTIMAL: 100,
    ACCEPTABLE: 60,
    POOR: 20,
}

# parameter -> {band: (low, high)}
SCORE_BANDS: Dict[str, Dict[str, tuple]] = {
    "ph":             {OPTIMAL: (6.0, 7.0), ACCEPTABLE: (5.5, 7.5)},
    "nitrogen":       {OPTIMAL: (40, 80),   ACCEPTABLE: (25, 100)},
    "phosphorus":     {OPTIMAL: (30, 50),   ACCEPTABLE: (15, 70)},
    "potassium":      {OPTIMAL: (40, 80),   ACCEPTABLE: (20, 120)},
    "moisture":       {OPTIMAL: (40, 60),   ACCEPTABLE: (25, 75)},
    "organic_matter": {OPTIMAL: (3.0, 5.0), ACCEPTABLE: (2.0, 6.0)},
}

NUTRIENTS = ("nitrogen", "phosphorus", "potassium")


def classify_band(parameter: str, value: float) -> str:
    bands = SCORE_BANDS[parameter]
    low, high = bands[OPTIMAL]
    if low <= value <= high:
        return OPTIMAL
    low, high = bands[ACCEPTABLE]
    if low <= value <= high:
        return ACCEPTABLE
    return POOR


def band_points(parameter: str, value: float) -> int:
    return BAND_POINTS[classify_band(parameter, value)]


def score_factors(values: Mapping[str, Optional[float]]) -> Dict[str, float]:
    """
    Points per factor for the parameters present in `values`.
    Missing (None) parameters drop out instead of scoring zero.
    """
    factors: Dict[str, float] = {}

    if values.get("ph") is not None:
        factors["ph"] = band_points("ph", values["ph"])

    nutrient_points = [
        band_points(n, values[n]) for n in NUTRIENTS if values.get(n) is not None
    ]
    if nutrient_points:
        factors["npk"] = sum(nutrient_points) / len(nutrient_points)

    if values.get("moisture") is not None:
        factors["moisture"] = band_points("moisture", values["moisture"])

    if values.get("organic_matter") is not None:
        factors["organic_matter"] = band_points("organic_matter", values["organic_matter"])

    return factors


def _combine(factors: Dict[str, float]) -> int:
    if not factors:
        return 0
    score = int(round(sum(factors.values()) / len(factors)))
    return max(0, min(100, score))


def calculate_health_score(reading: Mapping[str, Any]) -> int:
    """Health score (0-100) of a single reading."""
    return _combine(score_factors(reading))


def score_summary(per_parameter: Mapping[str, Mapping[str, Any]]) -> int:
    """Health score of a window, from the per-parameter averages of a summary."""
    averages = {
        param: stats.get("average")
        for param, stats in per_parameter.items()
        if param in SCORE_BANDS
    }
    return _combine(score_factors(averages))


def health_status(score: int) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Fair"
    return "Poor"


def score_breakdown(reading: Mapping[str, Any]) -> Dict[str, Any]:
    """Score plus the band of every present parameter, for dashboards."""
    bands = {
        param: classify_band(param, reading[param])
        for param in SCORE_BANDS
        if reading.get(param) is not None
    }
    factors = score_factors(reading)
    score = _combine(factors)
    return {
        "health_score": score,
        "status": health_status(score),
        "factors": {k: round(v, 2) for k, v in factors.items()},
        "bands": bands,
    }
