# backend/soiliq/services/insight_service.py

"""
Rule-Based Soil Insight Engine

Functionalities:
 - classify each parameter of a reading on the crop profile's threshold ladder
 - fire the rule defined for (parameter, band): insight text, recommendation,
   risk and fertilizer dose
 - two cross-parameter checks: N:P and N:K ratio
 - urgency from the highest rule severity
 - crop suggestions for the measured pH / nutrient levels
"""

import enum
from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Mapping, Tuple

from soiliq.services import crop_profiles
from soiliq.services.scoring_service import calculate_health_score, health_status


class Severity(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


SEVERITY_RANK = {
    Severity.low: 0,
    Severity.medium: 1,
    Severity.high: 2,
    Severity.critical: 3,
}


@dataclass(frozen=True)
class Rule:
    parameter: str
    band: str
    message: str
    severity: Severity
    recommendation: Optional[str] = None
    risk: Optional[str] = None
    fertilizer: Optional[Dict[str, str]] = None


def _fert(type_: str, amount: str, timing: str) -> Dict[str, str]:
    return {"type": type_, "amount": amount, "timing": timing}


# -------------------------------------------------------------
# RULE TABLE
# -------------------------------------------------------------
RULES: Tuple[Rule, ...] = (
    # pH
    Rule("ph", "extreme_low", "Soil pH {value:.1f} is extremely acidic - most crops will struggle",
         Severity.critical,
         recommendation="Apply agricultural lime at 4-6 tons per hectare and retest before planting",
         risk="Aluminium and manganese toxicity",
         fertilizer=_fert("Agricultural Lime", "4-6 tons/hectare", "Before planting season")),
    Rule("ph", "severe_low", "Soil is highly acidic (pH {value:.1f}) - nutrient availability reduced",
         Severity.high,
         recommendation="Apply agricultural lime at 2-4 tons per hectare",
         risk="Aluminium and manganese toxicity risk",
         fertilizer=_fert("Agricultural Lime", "2-4 tons/hectare", "Before planting season")),
    Rule("ph", "low", "Soil is moderately acidic (pH {value:.1f}) - some nutrients may be limited",
         Severity.medium,
         recommendation="Consider adding dolomitic lime to raise pH"),
    Rule("ph", "optimal", "Optimal pH range ({value:.1f}) - excellent nutrient availability",
         Severity.low),
    Rule("ph", "high", "Soil is slightly alkaline (pH {value:.1f})",
         Severity.low,
         recommendation="Monitor pH and favour acidifying fertilizers such as ammonium sulfate"),
    Rule("ph", "severe_high", "Soil is alkaline (pH {value:.1f}) - micronutrient deficiencies likely",
         Severity.high,
         recommendation="Apply elemental sulfur or acidifying fertilizers",
         risk="Iron, manganese and zinc deficiencies expected",
         fertilizer=_fert("Elemental Sulfur", "500-1000 kg/hectare", "3-4 months before planting")),
    Rule("ph", "extreme_high", "Soil is strongly alkaline (pH {value:.1f})",
         Severity.critical,
         recommendation="Apply gypsum and elemental sulfur and test for sodicity",
         risk="Micronutrient lockout and possible sodicity",
         fertilizer=_fert("Elemental Sulfur + Gypsum", "1000-2000 kg/hectare", "4-6 months before planting")),

    # Nitrogen
    Rule("nitrogen", "severe_low", "Nitrogen is very low ({value:.0f} ppm) - severe deficiency",
         Severity.high,
         recommendation="Apply nitrogen fertilizer immediately (urea or ammonium nitrate)",
         risk="Poor plant growth, yellowing leaves and reduced yield",
         fertilizer=_fert("Urea or Ammonium Nitrate", "100-150 kg N/hectare", "Immediate application")),
    Rule("nitrogen", "low", "Nitrogen is low ({value:.0f} ppm) - moderate deficiency",
         Severity.medium,
         recommendation="Supplement with nitrogen fertilizer (urea) in the next application cycle",
         fertilizer=_fert("Urea", "50-100 kg N/hectare", "Next application cycle")),
    Rule("nitrogen", "high", "Excess nitrogen levels detected ({value:.0f} ppm)",
         Severity.high,
         recommendation="Reduce nitrogen application in the next cycle",
         risk="Nutrient runoff and excessive vegetative growth"),

    # Phosphorus
    Rule("phosphorus", "severe_low", "Phosphorus is very low ({value:.0f} ppm) - severe deficiency",
         Severity.high,
         recommendation="Apply phosphate fertilizer (DAP or SSP) for root development",
         risk="Poor root development and delayed maturity",
         fertilizer=_fert("DAP or SSP", "60-90 kg P2O5/hectare", "At planting")),
    Rule("phosphorus", "low", "Phosphorus is low ({value:.0f} ppm) - moderate deficiency",
         Severity.medium,
         recommendation="Supplement with phosphorus fertilizer"),
    Rule("phosphorus", "high", "Phosphorus is above crop requirement ({value:.0f} ppm)",
         Severity.low,
         recommendation="Skip phosphate in the next cycle to limit runoff"),

    # Potassium
    Rule("potassium", "severe_low", "Potassium is very low ({value:.0f} ppm) - severe deficiency",
         Severity.high,
         recommendation="Apply potash fertilizer (MOP) for fruit quality and disease resistance",
         risk="Reduced fruit quality and increased disease susceptibility",
         fertilizer=_fert("MOP (Muriate of Potash)", "60-120 kg K2O/hectare", "Before flowering")),
    Rule("potassium", "low", "Potassium is low ({value:.0f} ppm) - moderate deficiency",
         Severity.medium,
         recommendation="Supplement with potash fertilizer (MOP or SOP)"),

    # Moisture
    Rule("moisture", "severe_low", "Soil is very dry ({value:.0f}% moisture)",
         Severity.high,
         recommendation="Irrigate immediately and mulch to reduce evaporation",
         risk="Drought stress and potential crop failure"),
    Rule("moisture", "low", "Soil moisture is low ({value:.0f}%)",
         Severity.medium,
         recommendation="Increase irrigation frequency"),
    Rule("moisture", "high", "Soil moisture is high ({value:.0f}%)",
         Severity.medium,
         recommendation="Reduce irrigation to prevent waterlogging"),
    Rule("moisture", "severe_high", "Soil is waterlogged ({value:.0f}% moisture)",
         Severity.high,
         recommendation="Stop irrigation and improve field drainage",
         risk="Root rot and nitrogen loss from waterlogging"),

    # Organic matter
    Rule("organic_matter", "severe_low", "Organic matter is very low ({value:.1f}%)",
         Severity.medium,
         recommendation="Incorporate compost or manure at 5-10 tons per hectare",
         risk="Long-term soil fertility decline",
         fertilizer=_fert("Compost or Farmyard Manure", "5-10 tons/hectare", "Before planting")),
    Rule("organic_matter", "low", "Organic matter is below optimal ({value:.1f}%)",
         Severity.low,
         recommendation="Add compost or plant cover crops to build organic matter"),

    # Temperature
    Rule("temperature", "low", "Cold soil ({value:.0f} C) slows nutrient uptake",
         Severity.low,
         recommendation="Delay fertilizer application until the soil warms"),
    Rule("temperature", "high", "High soil temperature ({value:.0f} C)",
         Severity.medium,
         recommendation="Increase irrigation frequency and mulch to cool the root zone"),

    # Nutrient balance
    Rule("ratio", "np_high", "High N:P ratio ({value:.1f}) - phosphorus is the limiting factor",
         Severity.medium,
         recommendation="Balance fertilizer with higher phosphorus content"),
    Rule("ratio", "nk_high", "High N:K ratio ({value:.1f}) - potassium may be limiting",
         Severity.medium,
         recommendation="Increase potassium application"),
)

RULE_INDEX: Dict[Tuple[str, str], Rule] = {(r.parameter, r.band): r for r in RULES}

ANALYZED_PARAMETERS = (
    "ph", "nitrogen", "phosphorus", "potassium",
    "moisture", "organic_matter", "temperature",
)


# -------------------------------------------------------------
# RULE EVALUATION
# -------------------------------------------------------------
def evaluate_rules(reading: Mapping[str, Any], profile: Dict[str, Any]) -> List[Tuple[Rule, float]]:
    """Rules fired by a reading, in parameter order, with the value that fired them."""
    fired: List[Tuple[Rule, float]] = []
    thresholds = profile["thresholds"]

    for parameter in ANALYZED_PARAMETERS:
        value = reading.get(parameter)
        if value is None or parameter not in thresholds:
            continue
        band = crop_profiles.classify(value, thresholds[parameter])
        rule = RULE_INDEX.get((parameter, band))
        if rule:
            fired.append((rule, value))

    nitrogen = reading.get("nitrogen")
    phosphorus = reading.get("phosphorus")
    potassium = reading.get("potassium")
    ratios = profile["ratios"]

    if nitrogen is not None and phosphorus:
        np_ratio = nitrogen / phosphorus
        if np_ratio > ratios["np_max"]:
            fired.append((RULE_INDEX[("ratio", "np_high")], np_ratio))

    if nitrogen is not None and potassium:
        nk_ratio = nitrogen / potassium
        if nk_ratio > ratios["nk_max"]:
            fired.append((RULE_INDEX[("ratio", "nk_high")], nk_ratio))

    return fired


def determine_urgency(severities: List[Severity]) -> str:
    if not severities:
        return "low"
    top = max(SEVERITY_RANK[s] for s in severities)
    if top >= SEVERITY_RANK[Severity.high]:
        return "high"
    if top == SEVERITY_RANK[Severity.medium]:
        return "medium"
    return "low"


# -------------------------------------------------------------
# CROP SUGGESTIONS
# -------------------------------------------------------------
def suggest_crops(ph: float, nitrogen: float, phosphorus: float, potassium: float, limit: int = 8) -> List[str]:
    crops: List[str] = []

    if 5.0 <= ph <= 6.0:
        crops += ["Potatoes", "Blueberries", "Sweet Potatoes", "Tomatoes", "Peppers"]
    if 6.0 <= ph <= 7.0:
        crops += ["Corn", "Beans", "Cabbage", "Carrots", "Lettuce", "Wheat", "Barley"]
    if 7.0 <= ph <= 7.5:
        crops += ["Asparagus", "Beets", "Broccoli", "Cauliflower", "Spinach"]
    if nitrogen >= 40:
        crops += ["Corn", "Wheat", "Leafy Greens", "Grass", "Cabbage", "Lettuce"]
    if phosphorus >= 25:
        crops += ["Tomatoes", "Peppers", "Root Vegetables", "Flowering Plants"]
    if potassium >= 30:
        crops += ["Fruit Trees", "Grapes", "Potatoes", "Tomatoes", "Beans"]

    # de-duplicate, keep first occurrence
    return list(dict.fromkeys(crops))[:limit]


# -------------------------------------------------------------
# FULL ANALYSIS
# -------------------------------------------------------------
def analyze(reading: Mapping[str, Any], crop_type: Optional[str] = None) -> Dict[str, Any]:
    """
    Analyze one reading. Required keys: ph, nitrogen, phosphorus, potassium,
    moisture. organic_matter and temperature are optional.
    """
    profile = crop_profiles.get_crop_profile(crop_type)
    fired = evaluate_rules(reading, profile)

    insights: List[str] = []
    recommendations: List[str] = []
    risks: List[str] = []
    fertilizer_recommendations: List[Dict[str, str]] = []
    findings: List[Dict[str, Any]] = []

    for rule, value in fired:
        message = rule.message.format(value=value)
        insights.append(message)
        if rule.recommendation:
            recommendations.append(rule.recommendation)
        if rule.risk:
            risks.append(rule.risk)
        if rule.fertilizer:
            fertilizer_recommendations.append(dict(rule.fertilizer))
        findings.append({
            "parameter": rule.parameter,
            "band": rule.band,
            "severity": rule.severity.value,
            "value": round(value, 2),
            "message": message,
        })

    score = calculate_health_score(reading)

    return {
        "health_score": score,
        "status": health_status(score),
        "urgency": determine_urgency([rule.severity for rule, _ in fired]),
        "insights": insights,
        "recommendations": recommendations,
        "risks": risks,
        "fertilizer_recommendations": fertilizer_recommendations,
        "crop_suggestions": suggest_crops(
            reading["ph"], reading["nitrogen"], reading["phosphorus"], reading["potassium"]
        ),
        "findings": findings,
        "crop_profile": profile["name"],
    }
