# backend/soiliq/services/analytics_service.py

"""
Soil Analytics Orchestration

Wires a window of readings through the aggregator, the synthesizer and the
scoring engine:
 - comprehensive analysis of one farm over a period (7d / 30d / 90d / 1y)
 - comparative analysis across farms (farms without data are left out)
 - historical grouping (daily / weekly / monthly) with per-parameter trend
 - flat CSV export of a comprehensive analysis

Readings come from a ReadingProvider (database or demo), never directly
from the session, so the same code serves demo mode.
"""

import csv
import io
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional, Sequence, Mapping

from soiliq.core.logger import logger
from soiliq.services import statistics_service as stats
from soiliq.services.scoring_service import health_status
from soiliq.services.synthesis_service import synthesize

PERIOD_DAYS = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
}
DEFAULT_PERIOD = "30d"


def get_date_range(period: Optional[str] = None, now: Optional[datetime] = None) -> Dict[str, datetime]:
    """Window [start, end] for a period key; unknown keys fall back to 30 days."""
    end = now or datetime.utcnow()
    days = PERIOD_DAYS.get(period or DEFAULT_PERIOD, PERIOD_DAYS[DEFAULT_PERIOD])
    return {"start": end - timedelta(days=days), "end": end}


# ===================================================================
# COMPREHENSIVE ANALYSIS
# ===================================================================
def build_comprehensive_analysis(readings: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    summary = stats.summarize(readings)
    if summary["status"] == "no_data":
        return {
            "status": "no_data",
            "message": "No soil readings found for the selected period",
            "summary": summary,
            "trends": {},
            "correlations": {},
            "seasonal_patterns": {},
            "predictions": {},
            "recommendations": [],
            "risk_assessment": {"risks": [], "risk_by_category": {}, "overall_risk_level": "low"},
        }

    trends = stats.analyze_trends(readings)
    correlations = stats.find_correlations(readings)
    synthesis = synthesize(summary, trends, correlations)
    summary["status_label"] = health_status(summary["health_score"])

    return {
        "status": "ok",
        "summary": summary,
        "trends": trends,
        "correlations": correlations,
        "seasonal_patterns": stats.detect_seasonal_patterns(readings),
        "predictions": stats.generate_predictions(readings),
        "recommendations": synthesis["recommendations"],
        "recommendation_overview": {
            "total_recommendations": synthesis["total_recommendations"],
            "priority_breakdown": synthesis["priority_breakdown"],
            "estimated_impact": synthesis["estimated_impact"],
            "npk_ratio": synthesis["npk_ratio"],
        },
        "risk_assessment": {
            "risks": synthesis["risks"],
            "risk_by_category": synthesis["risk_by_category"],
            "overall_risk_level": synthesis["overall_risk_level"],
        },
    }


async def get_comprehensive_analysis(
    provider,
    user_id: str,
    farm_id: Optional[str],
    period: Optional[str] = None,
) -> Dict[str, Any]:
    window = get_date_range(period)
    readings = await provider.list_readings(user_id, farm_id, window["start"], window["end"])

    analysis = build_comprehensive_analysis(readings)
    analysis["farm_id"] = farm_id
    analysis["period"] = period if period in PERIOD_DAYS else DEFAULT_PERIOD
    analysis["generated_at"] = datetime.utcnow().isoformat()

    logger.info(
        "Comprehensive analysis generated",
        extra={"user_id": user_id, "farm_id": farm_id},
    )
    return analysis


# ===================================================================
# COMPARATIVE ANALYSIS
# ===================================================================
async def get_comparative_analysis(
    provider,
    user_id: str,
    farm_ids: List[str],
    period: Optional[str] = None,
) -> Dict[str, Any]:
    window = get_date_range(period)
    farms: Dict[str, Any] = {}

    for farm_id in farm_ids:
        readings = await provider.list_readings(user_id, farm_id, window["start"], window["end"])
        summary = stats.summarize(readings)
        if summary["status"] == "no_data":
            continue
        per_parameter = summary["per_parameter"]
        farms[farm_id] = {
            "reading_count": summary["reading_count"],
            "health_score": summary["health_score"],
            "status": health_status(summary["health_score"]),
            "averages": {p: s["average"] for p, s in per_parameter.items()},
        }

    ranking = sorted(farms, key=lambda f: farms[f]["health_score"], reverse=True)
    return {
        "period": period if period in PERIOD_DAYS else DEFAULT_PERIOD,
        "farms": farms,
        "ranking": ranking,
        "best_farm": ranking[0] if ranking else None,
        "compared_farms": len(farms),
    }


# ===================================================================
# HISTORICAL GROUPING
# ===================================================================
def _interval_for(period: Optional[str]) -> str:
    if period == "1y":
        return "monthly"
    if period == "90d":
        return "weekly"
    return "daily"


def _bucket_key(ts: datetime, interval: str) -> str:
    if interval == "monthly":
        return ts.strftime("%Y-%m")
    if interval == "weekly":
        week_start = ts - timedelta(days=ts.weekday())
        return week_start.strftime("%Y-%m-%d")
    return ts.strftime("%Y-%m-%d")


def group_by_time_interval(readings: Sequence[Mapping[str, Any]], period: Optional[str] = None) -> List[Dict[str, Any]]:
    """Chronological buckets with per-parameter averages."""
    interval = _interval_for(period)
    buckets: Dict[str, List[Mapping[str, Any]]] = {}
    for reading in stats.sort_readings(readings):
        ts = reading.get("timestamp")
        if ts is None:
            continue
        key = _bucket_key(stats.as_datetime(ts), interval)
        buckets.setdefault(key, []).append(reading)

    groups = []
    for key in sorted(buckets):
        members = buckets[key]
        averages = {}
        for param in stats.PARAMETERS:
            values = stats.parameter_values(members, param)
            if values:
                averages[param] = round(stats.calculate_average(values), 4)
        groups.append({
            "period": key,
            "interval": interval,
            "reading_count": len(members),
            "averages": averages,
        })
    return groups


def analyze_parameter_trends(groups: Sequence[Mapping[str, Any]], parameter: str) -> Dict[str, Any]:
    series = [g["averages"][parameter] for g in groups if parameter in g["averages"]]
    if not series:
        return {"parameter": parameter, "data_points": 0, "trend": "stable", "direction": "stable", "series": []}
    return {
        "parameter": parameter,
        "data_points": len(series),
        "trend": stats.calculate_trend(series),
        "direction": stats.trend_direction(series),
        "slope": round(stats.linear_regression_slope(series), 4),
        "rate_of_change": round(stats.rate_of_change(series), 2),
        "min": min(series),
        "max": max(series),
        "series": [
            {"period": g["period"], "value": g["averages"][parameter]}
            for g in groups if parameter in g["averages"]
        ],
    }


async def get_historical_analysis(
    provider,
    user_id: str,
    farm_id: str,
    parameter: Optional[str] = None,
    period: Optional[str] = None,
) -> Dict[str, Any]:
    window = get_date_range(period)
    readings = await provider.list_readings(user_id, farm_id, window["start"], window["end"])
    if not readings:
        return {"status": "no_data", "message": "No soil readings found for the selected period"}

    groups = group_by_time_interval(readings, period)
    parameters = [parameter] if parameter else list(stats.PARAMETERS)
    return {
        "status": "ok",
        "farm_id": farm_id,
        "period": period if period in PERIOD_DAYS else DEFAULT_PERIOD,
        "interval": _interval_for(period),
        "groups": groups,
        "parameter_trends": {p: analyze_parameter_trends(groups, p) for p in parameters},
    }


# ===================================================================
# EXPORT
# ===================================================================
def convert_to_csv(analysis: Mapping[str, Any]) -> str:
    """Flatten an analysis into section,parameter,metric,value rows."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["section", "parameter", "metric", "value"])

    summary = analysis.get("summary") or {}
    writer.writerow(["summary", "", "health_score", summary.get("health_score", 0)])
    writer.writerow(["summary", "", "reading_count", summary.get("reading_count", 0)])
    for param, values in (summary.get("per_parameter") or {}).items():
        for metric, value in values.items():
            writer.writerow(["summary", param, metric, value])

    for param, trend in (analysis.get("trends") or {}).items():
        for metric, value in trend.items():
            writer.writerow(["trends", param, metric, value])

    for key, corr in (analysis.get("correlations") or {}).items():
        writer.writerow(["correlations", key, "correlation", corr["correlation"]])
        writer.writerow(["correlations", key, "strength", corr["strength"]])

    for rec in analysis.get("recommendations") or []:
        writer.writerow(["recommendations", rec["parameter"], rec["priority"], rec["title"]])

    risk_assessment = analysis.get("risk_assessment") or {}
    for risk in risk_assessment.get("risks") or []:
        writer.writerow(["risks", risk["parameter"], risk["level"], risk["type"]])
    writer.writerow(["risks", "", "overall_risk_level", risk_assessment.get("overall_risk_level", "low")])

    return buffer.getvalue()
