# backend/soiliq/services/crop_profiles.py

"""
Crop threshold profiles for the insight rules.

A profile is a ladder of thresholds per parameter:
 - lower-side keys (value < threshold): extreme_low, severe_low, low
 - upper-side keys (value > threshold): high, severe_high, extreme_high
Anything between the lowest upper and highest lower threshold is "optimal".
Crop profiles override the generic ladder per key; an override of None
removes that rung.
"""

import copy
from typing import Dict, Any, Optional

LOWER_BANDS = ("extreme_low", "severe_low", "low")
UPPER_BANDS = ("extreme_high", "severe_high", "high")

GENERIC_THRESHOLDS: Dict[str, Dict[str, float]] = {
    "ph": {
        "extreme_low": 4.5, "severe_low": 5.5, "low": 6.0,
        "high": 7.0, "severe_high": 7.5, "extreme_high": 8.5,
    },
    "nitrogen": {"severe_low": 25, "low": 40, "high": 80},
    "phosphorus": {"severe_low": 15, "low": 25, "high": 100},
    "potassium": {"severe_low": 20, "low": 30},
    "moisture": {"severe_low": 20, "low": 30, "high": 70, "severe_high": 80},
    "organic_matter": {"severe_low": 2.0, "low": 3.0},
    "temperature": {"low": 10, "high": 35},
}

GENERIC_RATIOS = {
    "np_max": 4.0,
    "nk_max": 2.5,
}

# crop -> {parameter: {rung: threshold or None}}
CROP_OVERRIDES: Dict[str, Dict[str, Dict[str, Optional[float]]]] = {
    "maize": {
        "ph": {"low": 5.8},
        "nitrogen": {"low": 50, "high": 100},
    },
    "wheat": {
        "ph": {"high": 7.5, "severe_high": 8.0},
        "nitrogen": {"low": 45},
    },
    "rice": {
        "ph": {"low": 5.5, "severe_low": 5.0, "high": 6.5},
        "moisture": {"severe_low": 40, "low": 60, "high": None, "severe_high": None},
    },
    "potato": {
        "ph": {
            "extreme_low": 4.2, "severe_low": 4.8, "low": 5.0,
            "high": 6.0, "severe_high": 6.5, "extreme_high": 7.5,
        },
        "potassium": {"severe_low": 30, "low": 45},
    },
    "tomato": {
        "ph": {"high": 6.8},
        "phosphorus": {"low": 30},
        "potassium": {"severe_low": 25, "low": 40},
    },
    "beans": {
        "nitrogen": {"severe_low": 10, "low": 20, "high": 60},
    },
}

CROP_ALIASES = {
    "corn": "maize",
    "paddy": "rice",
    "potatoes": "potato",
    "tomatoes": "tomato",
    "soybean": "beans",
    "bean": "beans",
}


def normalize_crop(crop_type: Optional[str]) -> Optional[str]:
    if not crop_type:
        return None
    crop = crop_type.strip().lower()
    return CROP_ALIASES.get(crop, crop)


def get_crop_profile(crop_type: Optional[str] = None) -> Dict[str, Any]:
    """Resolved thresholds for a crop; unknown or missing crop -> generic."""
    crop = normalize_crop(crop_type)
    thresholds = copy.deepcopy(GENERIC_THRESHOLDS)
    overrides = CROP_OVERRIDES.get(crop) if crop else None

    if overrides:
        for parameter, rungs in overrides.items():
            ladder = thresholds.setdefault(parameter, {})
            for rung, value in rungs.items():
                if value is None:
                    ladder.pop(rung, None)
                else:
                    ladder[rung] = value

    return {
        "name": crop if overrides else "generic",
        "thresholds": thresholds,
        "ratios": dict(GENERIC_RATIOS),
    }


def classify(value: float, ladder: Dict[str, float]) -> str:
    """Band of `value` on a threshold ladder (most extreme rung wins)."""
    for band in LOWER_BANDS:
        if band in ladder and value < ladder[band]:
            return band
    for band in UPPER_BANDS:
        if band in ladder and value > ladder[band]:
            return band
    return "optimal"
