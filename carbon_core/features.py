# MIT License
"""Fixed-layout feature vectors for the regression model.

The slot order below is part of every stored model: coefficients are
aligned 1:1 with :data:`FEATURE_NAMES`.  Changing the order or length
invalidates all trained models.
"""

from __future__ import annotations
from typing import Any, Iterable, List, Mapping, Optional, Sequence
import logging
import math

import pandas as pd

from .params import IRRIGATION_TYPES, PROJECT_TYPES, CovariateBundle, ExampleInput
from .utils import clamp, whole_years

logger = logging.getLogger(__name__)

DEFAULTS = {
    "area_ha": 0.0,
    "ndvi": 0.7,
    "biomass_t_ha": 12.0,
    "soil_ph": 6.8,
    "avg_temp_c": 24.0,
    "total_precip_mm": 100.0,
    "solar_kwh_m2_day": 5.0,
    "soil_organic_carbon": 15.0,
}

FEATURE_NAMES: List[str] = (
    ["area_ha", "ndvi", "biomass_t_ha", "soil_ph", "years"]
    + [f"project_{c}" for c in PROJECT_TYPES]
    + [f"irrigation_{c}" for c in IRRIGATION_TYPES]
    + ["avg_temp_c", "total_precip_mm", "solar_kwh_m2_day", "soil_organic_carbon"]
)
N_FEATURES = len(FEATURE_NAMES)

# synonyms found in historical field records
PROJECT_TYPE_ALIASES = {
    "rice": "rice",
    "agroforestry": "agroforestry",
    "mixed_cropping": "agroforestry",
    "tree_plantation": "biomass",
    "forest": "biomass",
    "biomass": "biomass",
    "soil": "soil",
    "organic_field": "soil",
    "conventional_field": "soil",
    "fallow": "soil",
}

IRRIGATION_ALIASES = {
    "flood": "flood",
    "flooded": "flood",
    "deep_flooded": "flood",
    "sprinkler": "sprinkler",
    "alternate_wetting_drying": "sprinkler",
    "drip": "drip",
    "rainfed": "rainfed",
}

# camelCase keys used by stored estimator documents
_RAW_KEYS = {
    "areaHectares": "area_ha",
    "projectType": "project_type",
    "biomass": "biomass_t_ha",
    "soilPh": "soil_ph",
    "durationYears": "duration_years",
    "baselineCarbon": "baseline_carbon",
}


def one_hot(value: Optional[str], categories: Sequence[str]) -> List[float]:
    return [1.0 if value == c else 0.0 for c in categories]


def _or_default(value: Optional[float], default: float) -> float:
    return default if value is None else float(value)


def build_features(inp: ExampleInput, cov: Optional[CovariateBundle] = None) -> List[float]:
    """Map an input and its covariates onto the fixed feature layout.

    Missing inputs fall back to :data:`DEFAULTS`; unknown or unset
    categories produce an all-zero one-hot block.
    """
    cov = cov or CovariateBundle()
    vec = [
        max(0.0, _or_default(inp.area_ha, DEFAULTS["area_ha"])),
        clamp(_or_default(inp.ndvi, DEFAULTS["ndvi"]), 0.0, 1.0),
        max(0.0, _or_default(inp.biomass_t_ha, DEFAULTS["biomass_t_ha"])),
        _or_default(inp.soil_ph, DEFAULTS["soil_ph"]),
        float(whole_years(inp.duration_years)),
    ]
    vec += one_hot(inp.project_type, PROJECT_TYPES)
    vec += one_hot(inp.irrigation, IRRIGATION_TYPES)
    vec += [
        _or_default(cov.avg_temp_c, DEFAULTS["avg_temp_c"]),
        _or_default(cov.total_precip_mm, DEFAULTS["total_precip_mm"]),
        _or_default(cov.solar_kwh_m2_day, DEFAULTS["solar_kwh_m2_day"]),
        _or_default(cov.soil_organic_carbon, DEFAULTS["soil_organic_carbon"]),
    ]
    return vec


def normalise_record(raw: Mapping[str, Any]) -> ExampleInput:
    """Turn a loosely structured field record into an :class:`ExampleInput`.

    Accepts snake_case or camelCase keys, maps category synonyms onto
    the canonical categories (unknown values become ``None``), coerces
    numeric strings such as ``"2.5"``; non-numeric measurements are dropped.
    """
    data = {_RAW_KEYS.get(k, k): v for k, v in raw.items()}
    out = {}
    for key in ("area_ha", "ndvi", "biomass_t_ha", "soil_ph", "duration_years",
                "latitude", "longitude", "baseline_carbon"):
        value = data.get(key)
        if value is None or isinstance(value, bool):
            continue
        try:
            num = float(value)
        except (TypeError, ValueError):
            logger.warning("dropping non-numeric %s=%r from field record", key, value)
            continue
        if math.isfinite(num):
            out[key] = num
    out["project_type"] = PROJECT_TYPE_ALIASES.get(str(data.get("project_type") or "").lower())
    out["irrigation"] = IRRIGATION_ALIASES.get(str(data.get("irrigation") or "").lower())
    return ExampleInput.model_validate(out)


def features_frame(vectors: Iterable[Sequence[float]]) -> pd.DataFrame:
    """Tabular view of feature vectors with named columns."""
    return pd.DataFrame([list(v) for v in vectors], columns=FEATURE_NAMES)
