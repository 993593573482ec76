# backend/tests/test_insight_service.py

import pytest

from soiliq.services import crop_profiles
from soiliq.services.insight_service import (
    RULES,
    Severity,
    analyze,
    determine_urgency,
    evaluate_rules,
    suggest_crops,
)


def test_acidic_low_nitrogen_field(acidic_reading):
    result = analyze(acidic_reading)

    assert any("acidic" in insight for insight in result["insights"])
    assert any("Nitrogen is low" in insight for insight in result["insights"])
    assert any("lime" in rec.lower() for rec in result["recommendations"])
    assert any("nitrogen fertilizer" in rec for rec in result["recommendations"])
    assert result["urgency"] != "low"
    assert result["urgency"] == "high"


def test_healthy_field_has_no_risks(healthy_reading):
    result = analyze(healthy_reading)

    assert result["health_score"] >= 75
    assert result["urgency"] == "low"
    assert result["risks"] == []
    assert result["status"] == "Excellent"


def test_analysis_shape(healthy_reading):
    result = analyze(healthy_reading, crop_type="wheat")
    assert set(result) == {
        "health_score", "status", "urgency", "insights", "recommendations", "risks",
        "fertilizer_recommendations", "crop_suggestions", "findings", "crop_profile",
    }
    assert result["crop_profile"] == "wheat"
    for finding in result["findings"]:
        assert finding["severity"] in {s.value for s in Severity}


def test_every_rule_has_explicit_severity():
    for rule in RULES:
        assert isinstance(rule.severity, Severity)


@pytest.mark.parametrize("ph", [6.0, 7.0])
def test_ph_band_edges_are_optimal(ph):
    profile = crop_profiles.get_crop_profile(None)
    assert crop_profiles.classify(ph, profile["thresholds"]["ph"]) == "optimal"


def test_missing_optional_parameters_are_skipped(healthy_reading):
    healthy_reading.pop("organic_matter")
    result = analyze(healthy_reading)
    assert all(f["parameter"] != "organic_matter" for f in result["findings"])
    assert all(f["parameter"] != "temperature" for f in result["findings"])


def test_np_ratio_rule_fires_and_zero_denominator_is_skipped():
    profile = crop_profiles.get_crop_profile(None)
    reading = {"ph": 6.5, "nitrogen": 70, "phosphorus": 10, "potassium": 60, "moisture": 50}
    fired = [(r.parameter, r.band) for r, _ in evaluate_rules(reading, profile)]
    assert ("ratio", "np_high") in fired

    reading["phosphorus"] = 0
    reading["potassium"] = 0
    fired = [(r.parameter, r.band) for r, _ in evaluate_rules(reading, profile)]
    assert ("ratio", "np_high") not in fired
    assert ("ratio", "nk_high") not in fired


def test_crop_profile_changes_thresholds():
    # 6.8 is optimal for most crops but above the potato ladder
    reading = {"ph": 6.8, "nitrogen": 60, "phosphorus": 40, "potassium": 60, "moisture": 50}
    generic = analyze(reading)
    potato = analyze(reading, crop_type="potatoes")
    assert potato["crop_profile"] == "potato"
    ph_band = {f["parameter"]: f["band"] for f in potato["findings"]}["ph"]
    assert ph_band == "severe_high"
    assert generic["urgency"] == "low"
    assert potato["urgency"] == "high"


def test_unknown_crop_falls_back_to_generic():
    assert crop_profiles.get_crop_profile("dragonfruit")["name"] == "generic"
    assert crop_profiles.get_crop_profile(None)["name"] == "generic"


def test_crop_override_can_remove_a_rung():
    rice = crop_profiles.get_crop_profile("paddy")
    assert "high" not in rice["thresholds"]["moisture"]
    # generic ladder untouched
    assert "high" in crop_profiles.GENERIC_THRESHOLDS["moisture"]


@pytest.mark.parametrize("severities,urgency", [
    ([], "low"),
    ([Severity.low], "low"),
    ([Severity.low, Severity.medium], "medium"),
    ([Severity.medium, Severity.high], "high"),
    ([Severity.critical], "high"),
])
def test_urgency_from_highest_severity(severities, urgency):
    assert determine_urgency(severities) == urgency


def test_crop_suggestions_are_unique_and_capped():
    crops = suggest_crops(6.5, 60, 40, 60)
    assert len(crops) <= 8
    assert len(crops) == len(set(crops))
    assert crops[0] == "Corn"
