# backend/tests/test_analytics_service.py

import asyncio
import csv
import io
from datetime import datetime, timedelta

from soiliq.services import analytics_service as analytics
from soiliq.services.demo_data_service import DemoReadingProvider, generate_series

NOW = datetime(2025, 6, 30, 12, 0)


class StaticProvider:
    """Serves fixed readings per farm id."""

    def __init__(self, readings_by_farm):
        self.readings_by_farm = readings_by_farm

    async def list_readings(self, user_id, farm_id, start, end):
        return list(self.readings_by_farm.get(farm_id, []))


def test_date_range_periods():
    window = analytics.get_date_range("7d", now=NOW)
    assert window["end"] == NOW
    assert window["start"] == NOW - timedelta(days=7)
    assert analytics.get_date_range("1y", now=NOW)["start"] == NOW - timedelta(days=365)
    assert analytics.get_date_range("bogus", now=NOW)["start"] == NOW - timedelta(days=30)


def test_comprehensive_analysis_no_data():
    result = analytics.build_comprehensive_analysis([])
    assert result["status"] == "no_data"
    assert result["recommendations"] == []
    assert result["risk_assessment"]["overall_risk_level"] == "low"


def test_comprehensive_analysis_of_a_series():
    readings = generate_series("acidic_corn", count=30, end=NOW, seed=3)
    result = analytics.build_comprehensive_analysis(readings)

    assert result["status"] == "ok"
    assert result["summary"]["reading_count"] == 30
    assert 0 <= result["summary"]["health_score"] <= 100
    for key in ("trends", "correlations", "seasonal_patterns", "predictions", "recommendations"):
        assert key in result
    assert any(r["type"] == "soil_acidity" for r in result["risk_assessment"]["risks"])


def test_get_comprehensive_analysis_with_demo_provider():
    result = asyncio.run(
        analytics.get_comprehensive_analysis(DemoReadingProvider(), "user-1", "farm-a", "7d")
    )
    assert result["status"] == "ok"
    assert result["farm_id"] == "farm-a"
    assert result["period"] == "7d"
    assert result["summary"]["reading_count"] == 8


def test_comparative_analysis_omits_farms_without_data():
    provider = StaticProvider({
        "good": generate_series("optimal_garden", count=10, end=NOW, seed=1),
        "poor": generate_series("deficient_paddy", count=10, end=NOW, seed=2),
    })
    result = asyncio.run(
        analytics.get_comparative_analysis(provider, "user-1", ["good", "poor", "empty"], "30d")
    )
    assert set(result["farms"]) == {"good", "poor"}
    assert result["ranking"] == ["good", "poor"]
    assert result["best_farm"] == "good"
    assert result["compared_farms"] == 2


def test_group_by_day_week_and_month():
    readings = [
        {"timestamp": datetime(2025, 6, 2, 8), "ph": 6.0},
        {"timestamp": datetime(2025, 6, 2, 18), "ph": 7.0},
        {"timestamp": datetime(2025, 6, 4, 9), "ph": 6.4},
        {"timestamp": datetime(2025, 7, 1, 9), "ph": 6.8},
    ]
    daily = analytics.group_by_time_interval(readings, "30d")
    assert [g["period"] for g in daily] == ["2025-06-02", "2025-06-04", "2025-07-01"]
    assert daily[0]["averages"]["ph"] == 6.5
    assert daily[0]["reading_count"] == 2

    weekly = analytics.group_by_time_interval(readings, "90d")
    # 2025-06-02 is a Monday
    assert [g["period"] for g in weekly] == ["2025-06-02", "2025-06-30"]

    monthly = analytics.group_by_time_interval(readings, "1y")
    assert [g["period"] for g in monthly] == ["2025-06", "2025-07"]
    assert monthly[0]["interval"] == "monthly"


def test_parameter_trends_over_groups():
    groups = [
        {"period": "2025-06", "averages": {"nitrogen": 40}},
        {"period": "2025-07", "averages": {"nitrogen": 50}},
        {"period": "2025-08", "averages": {"nitrogen": 60}},
    ]
    trend = analytics.analyze_parameter_trends(groups, "nitrogen")
    assert trend["data_points"] == 3
    assert trend["trend"] == "increasing"
    assert trend["direction"] == "up"

    assert analytics.analyze_parameter_trends(groups, "ph")["data_points"] == 0


def test_historical_analysis_no_data():
    result = asyncio.run(
        analytics.get_historical_analysis(StaticProvider({}), "user-1", "farm-x", None, "30d")
    )
    assert result["status"] == "no_data"


def test_convert_to_csv_rows():
    readings = generate_series("alkaline_garden", count=12, end=NOW, seed=5)
    analysis = analytics.build_comprehensive_analysis(readings)
    rows = list(csv.reader(io.StringIO(analytics.convert_to_csv(analysis))))

    assert rows[0] == ["section", "parameter", "metric", "value"]
    assert ["summary", "", "reading_count", "12"] in rows
    assert any(r[0] == "summary" and r[1] == "ph" and r[2] == "average" for r in rows)
    assert rows[-1][:3] == ["risks", "", "overall_risk_level"]
