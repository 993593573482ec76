# backend/soiliq/services/statistics_service.py

"""
Soil Statistics Aggregator (pure, in-memory)

Input: a list of reading dicts with a "timestamp" (datetime or ISO string)
and any of the PARAMETERS keys. Order of the input list never matters:
every order-sensitive computation sorts chronologically first.

Provides:
 - per-parameter summary (average, median, min/max, stddev, trend, stability)
 - least-squares slope, trend direction, confidence, rate of change
 - naive linear forecast
 - Pearson correlation between parameter pairs
 - monthly seasonal patterns
"""

import math
import statistics
from datetime import datetime, timezone
from itertools import combinations
from typing import Dict, Any, List, Sequence, Mapping

from soiliq.services.scoring_service import score_summary

PARAMETERS = ("ph", "nitrogen", "phosphorus", "potassium", "moisture", "organic_matter")

STABLE_CHANGE_PERCENT = 5.0
SLOPE_DEADBAND = 0.1
CORRELATION_REPORT_THRESHOLD = 0.3
MIN_CORRELATION_SAMPLES = 6
MIN_PREDICTION_SAMPLES = 6
MIN_SEASONAL_MONTHS = 6
SEASONAL_VARIATION = 0.2

CORRELATION_INTERPRETATIONS = {
    ("ph", "nitrogen"): "pH affects nitrogen availability",
    ("ph", "phosphorus"): "pH affects phosphorus availability",
    ("ph", "potassium"): "pH affects potassium exchange",
    ("nitrogen", "moisture"): "Moisture affects nitrogen mobility",
    ("nitrogen", "organic_matter"): "Organic matter mineralization supplies nitrogen",
    ("moisture", "organic_matter"): "Organic matter improves moisture retention",
}


# ===================================================================
# HELPERS
# ===================================================================
def as_datetime(ts) -> datetime:
    """Naive UTC datetime for ordering; unknown timestamps sort first."""
    if isinstance(ts, str):
        ts = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    if isinstance(ts, datetime):
        if ts.tzinfo is not None:
            return ts.astimezone(timezone.utc).replace(tzinfo=None)
        return ts
    return datetime.min


def sort_readings(readings: Sequence[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Chronological (oldest first) copy; readings without a timestamp go first."""
    return sorted(readings, key=lambda r: as_datetime(r.get("timestamp")))


def parameter_values(readings: Sequence[Mapping[str, Any]], parameter: str) -> List[float]:
    return [float(r[parameter]) for r in readings if r.get(parameter) is not None]


# ===================================================================
# DESCRIPTIVE STATISTICS
# ===================================================================
def calculate_average(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return statistics.fmean(values)


def calculate_median(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return statistics.median(values)


def calculate_standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation; 0.0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    return statistics.pstdev(values)


def calculate_trend(values: Sequence[float]) -> str:
    """First vs last value: stable within +/-5 %, else increasing / decreasing."""
    if len(values) < 2:
        return "stable"
    first, last = values[0], values[-1]
    if first == 0:
        if last == 0:
            return "stable"
        return "increasing" if last > 0 else "decreasing"
    change = (last - first) / abs(first) * 100
    if abs(change) < STABLE_CHANGE_PERCENT:
        return "stable"
    return "increasing" if change > 0 else "decreasing"


def calculate_stability(values: Sequence[float]) -> float:
    """1 - stddev/average (higher = more stable); 0.0 when the average is 0."""
    if not values:
        return 0.0
    avg = calculate_average(values)
    if avg == 0:
        return 0.0
    return 1 - calculate_standard_deviation(values) / avg


# ===================================================================
# REGRESSION / FORECAST
# ===================================================================
def linear_regression_slope(values: Sequence[float]) -> float:
    """Least-squares slope with the index as x."""
    n = len(values)
    if n < 2:
        return 0.0
    sum_x = n * (n - 1) / 2
    sum_xx = (n - 1) * n * (2 * n - 1) / 6
    sum_y = sum(values)
    sum_xy = sum(i * v for i, v in enumerate(values))
    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denominator


def trend_direction(values: Sequence[float]) -> str:
    slope = linear_regression_slope(values)
    if slope > SLOPE_DEADBAND:
        return "up"
    if slope < -SLOPE_DEADBAND:
        return "down"
    return "stable"


def trend_confidence(values: Sequence[float]) -> float:
    if len(values) < 3:
        return 0.0
    return min(abs(linear_regression_slope(values)) * 10, 1.0)


def rate_of_change(values: Sequence[float]) -> float:
    """Percent change first -> last; 0.0 when undefined."""
    if len(values) < 2 or values[0] == 0:
        return 0.0
    return (values[-1] - values[0]) / abs(values[0]) * 100


def forecast(values: Sequence[float], periods: int = 3) -> List[float]:
    if not values:
        return []
    slope = linear_regression_slope(values)
    last = values[-1]
    return [last + slope * (i + 1) for i in range(periods)]


def prediction_confidence(values: Sequence[float]) -> float:
    return max(0.0, min(calculate_stability(values) * 1.5, 0.95))


# ===================================================================
# CORRELATION
# ===================================================================
def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    if len(x) != len(y):
        raise ValueError("correlation needs two series of equal length")
    n = len(x)
    if n < 2:
        return 0.0
    sum_x, sum_y = sum(x), sum(y)
    sum_xy = sum(a * b for a, b in zip(x, y))
    sum_xx = sum(a * a for a in x)
    sum_yy = sum(b * b for b in y)

    numerator = n * sum_xy - sum_x * sum_y
    variance_product = (n * sum_xx - sum_x * sum_x) * (n * sum_yy - sum_y * sum_y)
    if variance_product <= 0:
        return 0.0
    r = numerator / math.sqrt(variance_product)
    return max(-1.0, min(1.0, r))


def correlation_strength(r: float) -> str:
    strength = abs(r)
    if strength >= 0.8:
        return "very strong"
    if strength >= 0.6:
        return "strong"
    if strength >= 0.4:
        return "moderate"
    if strength >= 0.2:
        return "weak"
    return "very weak"


def interpret_correlation(param1: str, param2: str) -> str:
    return (
        CORRELATION_INTERPRETATIONS.get((param1, param2))
        or CORRELATION_INTERPRETATIONS.get((param2, param1))
        or "Parameter relationship"
    )


# ===================================================================
# WINDOW-LEVEL OPERATIONS
# ===================================================================
def summarize_values(values: Sequence[float]) -> Dict[str, Any]:
    return {
        "average": round(calculate_average(values), 4),
        "median": round(calculate_median(values), 4),
        "min": min(values),
        "max": max(values),
        "standard_deviation": round(calculate_standard_deviation(values), 4),
        "trend": calculate_trend(values),
        "stability": round(calculate_stability(values), 4),
        "count": len(values),
    }


def summarize(readings: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    """Per-parameter summary of a window; explicit no-data result when empty."""
    if not readings:
        return {
            "status": "no_data",
            "reading_count": 0,
            "period": None,
            "per_parameter": {},
            "health_score": 0,
        }

    ordered = sort_readings(readings)
    per_parameter: Dict[str, Any] = {}
    for param in PARAMETERS:
        values = parameter_values(ordered, param)
        if values:
            per_parameter[param] = summarize_values(values)

    timestamps = [r.get("timestamp") for r in ordered if r.get("timestamp") is not None]
    period = None
    if timestamps:
        period = {"start": as_datetime(timestamps[0]), "end": as_datetime(timestamps[-1])}

    return {
        "status": "ok",
        "reading_count": len(ordered),
        "period": period,
        "per_parameter": per_parameter,
        "health_score": score_summary(per_parameter),
    }


def analyze_trends(readings: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    ordered = sort_readings(readings)
    trends: Dict[str, Any] = {}
    for param in PARAMETERS:
        values = parameter_values(ordered, param)
        if len(values) > 1:
            trends[param] = {
                "slope": round(linear_regression_slope(values), 4),
                "direction": trend_direction(values),
                "confidence": round(trend_confidence(values), 4),
                "rate_of_change": round(rate_of_change(values), 2),
            }
    return trends


def find_correlations(readings: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    """Meaningful (|r| > 0.3) correlations between parameter pairs."""
    correlations: Dict[str, Any] = {}
    for param1, param2 in combinations(PARAMETERS, 2):
        pairs = [
            (float(r[param1]), float(r[param2]))
            for r in readings
            if r.get(param1) is not None and r.get(param2) is not None
        ]
        if len(pairs) < MIN_CORRELATION_SAMPLES:
            continue
        xs, ys = zip(*pairs)
        r = pearson_correlation(xs, ys)
        if abs(r) > CORRELATION_REPORT_THRESHOLD:
            correlations[f"{param1}_{param2}"] = {
                "parameters": [param1, param2],
                "correlation": round(r, 4),
                "strength": correlation_strength(r),
                "interpretation": interpret_correlation(param1, param2),
            }
    return correlations


def detect_seasonal_patterns(readings: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    monthly: Dict[int, List[Mapping[str, Any]]] = {}
    for reading in readings:
        ts = reading.get("timestamp")
        if ts is None:
            continue
        monthly.setdefault(as_datetime(ts).month, []).append(reading)

    patterns: Dict[str, Any] = {}
    for param in PARAMETERS:
        monthly_averages = []
        for month in sorted(monthly):
            values = parameter_values(monthly[month], param)
            if values:
                monthly_averages.append({
                    "month": month,
                    "average": round(calculate_average(values), 4),
                    "count": len(values),
                })
        if not monthly_averages:
            continue

        averages = [m["average"] for m in monthly_averages]
        patterns[param] = {
            "has_seasonality": _has_seasonality(averages),
            "monthly_averages": monthly_averages,
            "peak_month": max(monthly_averages, key=lambda m: m["average"])["month"],
            "low_month": min(monthly_averages, key=lambda m: m["average"])["month"],
        }
    return patterns


def _has_seasonality(monthly_averages: Sequence[float]) -> bool:
    if len(monthly_averages) < MIN_SEASONAL_MONTHS:
        return False
    avg = calculate_average(monthly_averages)
    if avg == 0:
        return False
    return (max(monthly_averages) - min(monthly_averages)) / avg > SEASONAL_VARIATION


def generate_predictions(readings: Sequence[Mapping[str, Any]], periods: int = 3) -> Dict[str, Any]:
    ordered = sort_readings(readings)
    predictions: Dict[str, Any] = {}
    for param in PARAMETERS:
        values = parameter_values(ordered, param)
        if len(values) < MIN_PREDICTION_SAMPLES:
            continue
        future = forecast(values, periods)
        predictions[param] = {
            "next_value": round(future[0], 4),
            "trend": "increasing" if future[0] > values[-1] else "decreasing" if future[0] < values[-1] else "stable",
            "confidence": round(prediction_confidence(values), 4),
            "forecast": [
                {"period": i + 1, "predicted_value": round(v, 4)}
                for i, v in enumerate(future)
            ],
        }
    return predictions

