# backend/tests/test_synthesis_service.py

from datetime import datetime, timedelta

from soiliq.services import statistics_service as stats
from soiliq.services import synthesis_service as synthesis


def summary_of(**averages):
    """Single-reading window with the given values."""
    reading = {"timestamp": datetime(2025, 5, 1), **averages}
    return stats.summarize([reading])


def test_empty_summary_gives_empty_result():
    result = synthesis.synthesize(stats.summarize([]), {}, {})
    assert result["recommendations"] == []
    assert result["total_recommendations"] == 0
    assert result["risks"] == []
    assert result["overall_risk_level"] == "low"
    assert result["priority_breakdown"] == {"high": 0, "medium": 0, "low": 0}


def test_healthy_window_has_no_risks():
    summary = summary_of(ph=6.8, nitrogen=65, phosphorus=42, potassium=75, moisture=48, organic_matter=3.2)
    result = synthesis.synthesize(summary)
    assert result["risks"] == []
    assert result["overall_risk_level"] == "low"
    assert result["recommendations"] == []


def test_nutrient_deficient_window():
    summary = summary_of(ph=6.3, nitrogen=15, phosphorus=12, potassium=25, moisture=68, organic_matter=2.5)
    result = synthesis.synthesize(summary)

    parameters = {r["parameter"]: r["priority"] for r in result["recommendations"]}
    assert parameters["nitrogen"] == "high"
    assert parameters["phosphorus"] == "medium"
    assert parameters["organic_matter"] == "medium"
    assert "potassium" not in parameters

    risks = {(r["parameter"], r["level"], r["probability"]) for r in result["risks"]}
    assert risks == {("nitrogen", "high", 0.8), ("phosphorus", "medium", 0.6)}
    # (3 * 0.8 + 2 * 0.6) / 2 = 1.8
    assert result["overall_risk_level"] == "medium"
    assert result["risk_by_category"]["nutrient_deficiency"]


def test_recommendations_sorted_by_priority():
    summary = summary_of(ph=4.8, nitrogen=30, phosphorus=10, potassium=10, moisture=50, organic_matter=1.5)
    trends = {"moisture": {"direction": "down", "confidence": 0.9, "rate_of_change": -30.0, "slope": -3.0}}
    recs = synthesis.generate_recommendations(summary, trends, {})
    order = [synthesis.PRIORITY_ORDER[r["priority"]] for r in recs]
    assert order == sorted(order)
    assert recs[0]["priority"] == "high"
    assert recs[-1]["priority"] == "low"


def test_every_recommendation_carries_action_fields():
    summary = summary_of(ph=8.2, nitrogen=20, phosphorus=10, potassium=10, moisture=50, organic_matter=1.5)
    for rec in synthesis.synthesize(summary)["recommendations"]:
        for key in ("type", "parameter", "priority", "title", "message", "action", "timing", "expected_improvement"):
            assert rec[key]


def test_acidic_window_flags_ph_and_soil_acidity():
    summary = summary_of(ph=5.0, nitrogen=60, phosphorus=40, potassium=60, moisture=50)
    result = synthesis.synthesize(summary)
    ph_rec = next(r for r in result["recommendations"] if r["parameter"] == "ph")
    assert ph_rec["priority"] == "high"
    assert ph_rec["action"] == "Apply lime"
    assert [r["type"] for r in result["risks"]] == ["soil_acidity"]


def test_npk_imbalance_is_measured_against_optimal_midpoints():
    balanced = synthesis.calculate_npk_ratio({
        "nitrogen": {"average": 60}, "phosphorus": {"average": 40}, "potassium": {"average": 60},
    })
    assert balanced["imbalance"] == 0.0

    skewed = summary_of(ph=6.5, nitrogen=100, phosphorus=10, potassium=10, moisture=50)
    recs = synthesis.generate_recommendations(skewed, {}, {})
    assert recs[0]["type"] == "nutrient_balance"


def test_unstable_moisture_suggests_irrigation_schedule():
    start = datetime(2025, 5, 1)
    readings = [
        {"timestamp": start + timedelta(days=i), "ph": 6.5, "nitrogen": 60, "phosphorus": 40,
         "potassium": 60, "moisture": m}
        for i, m in enumerate([10, 70, 15, 75, 12, 72])
    ]
    recs = synthesis.generate_recommendations(stats.summarize(readings), {}, {})
    assert any(r["type"] == "irrigation" for r in recs)


def test_declining_trend_and_strong_correlation_rules():
    trends = {
        "nitrogen": {"direction": "down", "confidence": 0.8, "rate_of_change": -20.0, "slope": -2.0},
        "potassium": {"direction": "down", "confidence": 0.2, "rate_of_change": -2.0, "slope": -0.2},
        "moisture": {"direction": "up", "confidence": 1.0, "rate_of_change": 15.0, "slope": 1.5},
    }
    correlations = {
        "ph_nitrogen": {
            "parameters": ["ph", "nitrogen"], "correlation": 0.91,
            "strength": "very strong", "interpretation": "pH affects nitrogen availability",
        },
        "nitrogen_moisture": {
            "parameters": ["nitrogen", "moisture"], "correlation": 0.45,
            "strength": "moderate", "interpretation": "Moisture affects nitrogen mobility",
        },
    }
    recs = synthesis.generate_recommendations({"per_parameter": {}}, trends, correlations)

    trend_recs = [r for r in recs if r["type"] == "trend"]
    assert [r["parameter"] for r in trend_recs] == ["nitrogen"]
    corr_recs = [r for r in recs if r["type"] == "correlation"]
    assert [r["parameter"] for r in corr_recs] == ["ph_nitrogen"]
    assert all(r["priority"] == "low" for r in recs)


def test_overall_risk_level_thresholds():
    assert synthesis.calculate_overall_risk_level([]) == "low"
    assert synthesis.calculate_overall_risk_level(
        [{"level": "high", "probability": 0.8}, {"level": "high", "probability": 0.7}]
    ) == "high"
    assert synthesis.calculate_overall_risk_level([{"level": "medium", "probability": 0.5}]) == "medium"
    assert synthesis.calculate_overall_risk_level([{"level": "low", "probability": 0.5}]) == "low"


def test_waterlogging_and_alkalinity_risks():
    summary = summary_of(ph=8.3, nitrogen=60, phosphorus=40, potassium=60, moisture=85)
    types = {r["type"] for r in synthesis.assess_risks(summary)}
    assert types == {"waterlogging_risk", "soil_alkalinity"}
