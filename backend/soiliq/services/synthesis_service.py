# backend/soiliq/services/synthesis_service.py

"""
Recommendation Synthesizer

Turns a window summary (statistics_service.summarize), its trends and its
correlations into:
 - prioritized action items (priority, action, timing, expected improvement)
 - an independent risk assessment with fixed per-rule probabilities
 - an overall risk level (probability-weighted mean of level scores)

Every threshold here is checked against window averages, never raw readings.
"""

from typing import Dict, Any, List, Optional, Mapping

from soiliq.services.scoring_service import SCORE_BANDS, OPTIMAL

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}
IMPACT_SCORES = {"high": 3, "medium": 2, "low": 1}
RISK_LEVEL_SCORES = {"high": 3, "medium": 2, "low": 1}

NPK_IMBALANCE_THRESHOLD = 0.3
MOISTURE_STABILITY_THRESHOLD = 0.7
TREND_CONFIDENCE_THRESHOLD = 0.5

TRACKED_TREND_PARAMETERS = ("nitrogen", "phosphorus", "potassium", "moisture", "organic_matter")

PARAMETER_LABELS = {
    "ph": "pH",
    "nitrogen": "nitrogen",
    "phosphorus": "phosphorus",
    "potassium": "potassium",
    "moisture": "soil moisture",
    "organic_matter": "organic matter",
}


def _midpoint(parameter: str) -> float:
    low, high = SCORE_BANDS[parameter][OPTIMAL]
    return (low + high) / 2


def _average(per_parameter: Mapping[str, Any], parameter: str) -> Optional[float]:
    stats = per_parameter.get(parameter)
    return stats.get("average") if stats else None


# -------------------------------------------------------------
# NPK BALANCE
# -------------------------------------------------------------
def calculate_npk_ratio(per_parameter: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Share of N, P and K in their sum compared with the share of the optimal
    band midpoints. Imbalance is the summed absolute deviation (0 = ideal).
    """
    n = _average(per_parameter, "nitrogen")
    p = _average(per_parameter, "phosphorus")
    k = _average(per_parameter, "potassium")
    if n is None or p is None or k is None:
        return {"ratio": "N/A", "imbalance": 0.0}

    total = n + p + k
    if total == 0:
        return {"ratio": "0:0:0", "imbalance": 0.0}

    ideal = [_midpoint("nitrogen"), _midpoint("phosphorus"), _midpoint("potassium")]
    ideal_total = sum(ideal)
    actual = [n / total, p / total, k / total]
    imbalance = sum(abs(a - i / ideal_total) for a, i in zip(actual, ideal))

    return {
        "ratio": ":".join(f"{share * 100:.0f}" for share in actual),
        "imbalance": round(imbalance, 4),
    }


# -------------------------------------------------------------
# RECOMMENDATIONS
# -------------------------------------------------------------
def _rec(type_, parameter, priority, title, message, action, timing, impact, expected_improvement):
    return {
        "type": type_,
        "parameter": parameter,
        "priority": priority,
        "title": title,
        "message": message,
        "action": action,
        "timing": timing,
        "impact": impact,
        "expected_improvement": expected_improvement,
    }


def generate_recommendations(
    summary: Mapping[str, Any],
    trends: Mapping[str, Any],
    correlations: Mapping[str, Any],
) -> List[Dict[str, Any]]:
    per_parameter = summary.get("per_parameter") or {}
    recs: List[Dict[str, Any]] = []

    npk = calculate_npk_ratio(per_parameter)
    if npk["imbalance"] > NPK_IMBALANCE_THRESHOLD:
        recs.append(_rec(
            "nutrient_balance", "npk", "high",
            "Nutrient Imbalance Detected",
            f"N:P:K share is {npk['ratio']}, far from a balanced ratio.",
            "Adjust fertilizer blend to rebalance nitrogen, phosphorus and potassium",
            "Next fertilizer application",
            "high",
            "15-25% yield improvement",
        ))

    ph = _average(per_parameter, "ph")
    if ph is not None and (ph < 5.5 or ph > 7.5):
        recs.append(_rec(
            "ph_management", "ph", "high",
            "pH Correction Needed",
            f"Average soil pH ({ph:.1f}) is outside the optimal range for most crops.",
            "Apply lime" if ph < 5.5 else "Apply sulfur or acidifying amendments",
            "Before next planting",
            "high",
            "30-50% better nutrient availability",
        ))

    nitrogen = _average(per_parameter, "nitrogen")
    if nitrogen is not None and nitrogen < 25:
        recs.append(_rec(
            "nutrient_deficiency", "nitrogen", "high",
            "Correct Nitrogen Deficiency",
            f"Average nitrogen ({nitrogen:.0f} ppm) is severely deficient.",
            "Apply 100-150 kg N/hectare as split urea doses",
            "Immediately",
            "high",
            "Up to 40% yield recovery",
        ))
    elif nitrogen is not None and nitrogen < 40:
        recs.append(_rec(
            "nutrient_deficiency", "nitrogen", "medium",
            "Top Up Nitrogen",
            f"Average nitrogen ({nitrogen:.0f} ppm) is below target.",
            "Apply 50-100 kg N/hectare",
            "Next application cycle",
            "medium",
            "10-20% yield improvement",
        ))

    phosphorus = _average(per_parameter, "phosphorus")
    if phosphorus is not None and phosphorus < 15:
        recs.append(_rec(
            "nutrient_deficiency", "phosphorus", "medium",
            "Correct Phosphorus Deficiency",
            f"Average phosphorus ({phosphorus:.0f} ppm) limits root development.",
            "Apply DAP or SSP at 60-90 kg P2O5/hectare",
            "At planting",
            "medium",
            "Stronger roots and earlier maturity",
        ))

    potassium = _average(per_parameter, "potassium")
    if potassium is not None and potassium < 20:
        recs.append(_rec(
            "nutrient_deficiency", "potassium", "medium",
            "Correct Potassium Deficiency",
            f"Average potassium ({potassium:.0f} ppm) reduces fruit quality.",
            "Apply MOP at 60-120 kg K2O/hectare",
            "Before flowering",
            "medium",
            "Better fruit quality and disease resistance",
        ))

    organic_matter = _average(per_parameter, "organic_matter")
    if organic_matter is not None and organic_matter < 3:
        recs.append(_rec(
            "soil_health", "organic_matter", "medium",
            "Improve Soil Organic Matter",
            f"Current organic matter ({organic_matter:.1f}%) is below optimal levels.",
            "Add compost, cover crops, or organic amendments",
            "Next 3-6 months",
            "long-term",
            "Improved water retention and nutrient availability",
        ))

    moisture_stats = per_parameter.get("moisture")
    if moisture_stats and moisture_stats.get("count", 0) > 1 \
            and moisture_stats["stability"] < MOISTURE_STABILITY_THRESHOLD:
        recs.append(_rec(
            "irrigation", "moisture", "medium",
            "Irrigation Schedule Optimization",
            "Soil moisture levels show high variability, indicating suboptimal irrigation.",
            "Implement scheduled irrigation based on soil moisture monitoring",
            "Next 2 weeks",
            "medium",
            "20-30% water savings",
        ))

    for parameter in TRACKED_TREND_PARAMETERS:
        trend = trends.get(parameter)
        if not trend:
            continue
        if trend["direction"] == "down" and trend["confidence"] >= TREND_CONFIDENCE_THRESHOLD:
            label = PARAMETER_LABELS[parameter]
            recs.append(_rec(
                "trend", parameter, "low",
                f"Declining {label.title()}",
                f"{label.capitalize()} has been falling ({trend['rate_of_change']:.1f}% over the window).",
                f"Monitor {label} closely and plan a corrective application",
                "Next reading cycle",
                "low",
                "Prevents the decline from becoming a deficiency",
            ))

    for key, corr in correlations.items():
        if corr["strength"] not in ("strong", "very strong"):
            continue
        first, second = corr.get("parameters") or key.split("_", 1)
        recs.append(_rec(
            "correlation", key, "low",
            f"Manage {PARAMETER_LABELS.get(first, first)} and {PARAMETER_LABELS.get(second, second)} together",
            f"{corr['interpretation']} (r = {corr['correlation']:.2f}).",
            "Plan amendments for both parameters in the same cycle",
            "Next planning cycle",
            "low",
            "More predictable response to amendments",
        ))

    recs.sort(key=lambda r: PRIORITY_ORDER[r["priority"]])
    return recs


def priority_breakdown(recommendations: List[Dict[str, Any]]) -> Dict[str, int]:
    breakdown = {"high": 0, "medium": 0, "low": 0}
    for rec in recommendations:
        breakdown[rec["priority"]] = breakdown.get(rec["priority"], 0) + 1
    return breakdown


def estimated_impact(recommendations: List[Dict[str, Any]]) -> int:
    return sum(IMPACT_SCORES.get(rec["priority"], 1) for rec in recommendations)


# -------------------------------------------------------------
# RISK ASSESSMENT
# -------------------------------------------------------------
def _risk(type_, parameter, level, probability, impact, mitigation):
    return {
        "type": type_,
        "parameter": parameter,
        "level": level,
        "probability": probability,
        "impact": impact,
        "mitigation": mitigation,
    }


def assess_risks(summary: Mapping[str, Any]) -> List[Dict[str, Any]]:
    per_parameter = summary.get("per_parameter") or {}
    risks: List[Dict[str, Any]] = []

    nitrogen = _average(per_parameter, "nitrogen")
    if nitrogen is not None and nitrogen < 25:
        risks.append(_risk("nutrient_deficiency", "nitrogen", "high", 0.8,
                           "Yield reduction up to 40%",
                           "Apply nitrogen fertilizer immediately"))

    phosphorus = _average(per_parameter, "phosphorus")
    if phosphorus is not None and phosphorus < 15:
        risks.append(_risk("nutrient_deficiency", "phosphorus", "medium", 0.6,
                           "Poor root development and flowering",
                           "Apply phosphorus fertilizer at planting"))

    potassium = _average(per_parameter, "potassium")
    if potassium is not None and potassium < 20:
        risks.append(_risk("nutrient_deficiency", "potassium", "medium", 0.5,
                           "Reduced fruit quality and disease resistance",
                           "Apply potash before flowering"))

    moisture = _average(per_parameter, "moisture")
    if moisture is not None and moisture < 20:
        risks.append(_risk("drought_risk", "moisture", "high", 0.7,
                           "Crop stress and potential failure",
                           "Increase irrigation frequency"))
    elif moisture is not None and moisture > 80:
        risks.append(_risk("waterlogging_risk", "moisture", "medium", 0.6,
                           "Root rot and nitrogen loss",
                           "Improve drainage and reduce irrigation"))

    ph = _average(per_parameter, "ph")
    if ph is not None and ph < 5.5:
        risks.append(_risk("soil_acidity", "ph", "high", 0.6,
                           "Aluminium toxicity and nutrient lockup",
                           "Apply agricultural lime"))
    elif ph is not None and ph > 8.0:
        risks.append(_risk("soil_alkalinity", "ph", "medium", 0.5,
                           "Micronutrient deficiencies",
                           "Apply elemental sulfur"))

    organic_matter = _average(per_parameter, "organic_matter")
    if organic_matter is not None and organic_matter < 2:
        risks.append(_risk("soil_degradation", "organic_matter", "medium", 0.5,
                           "Long-term soil fertility decline",
                           "Implement soil building practices"))

    return risks


def calculate_overall_risk_level(risks: List[Dict[str, Any]]) -> str:
    if not risks:
        return "low"
    total = sum(RISK_LEVEL_SCORES.get(r["level"], 1) * r["probability"] for r in risks)
    average = total / len(risks)
    if average >= 2:
        return "high"
    if average >= 1:
        return "medium"
    return "low"


def categorize_risks(risks: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    categories: Dict[str, List[Dict[str, Any]]] = {}
    for risk in risks:
        categories.setdefault(risk["type"], []).append(risk)
    return categories


# -------------------------------------------------------------
# SYNTHESIS
# -------------------------------------------------------------
def synthesize(
    summary: Mapping[str, Any],
    trends: Optional[Mapping[str, Any]] = None,
    correlations: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    recommendations = generate_recommendations(summary, trends or {}, correlations or {})
    risks = assess_risks(summary)
    return {
        "recommendations": recommendations,
        "total_recommendations": len(recommendations),
        "priority_breakdown": priority_breakdown(recommendations),
        "estimated_impact": estimated_impact(recommendations),
        "npk_ratio": calculate_npk_ratio(summary.get("per_parameter") or {}),
        "risks": risks,
        "risk_by_category": categorize_risks(risks),
        "overall_risk_level": calculate_overall_risk_level(risks),
    }
