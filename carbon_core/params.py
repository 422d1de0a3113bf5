# MIT License
"""Data models for the carbon estimation pipeline.

All data models are defined using [`pydantic.BaseModel`](https://docs.pydantic.dev/)
to provide type checking, validation and JSON serialisation.  Request
models describe what a farmer submits; the remaining models are the
records that travel between covariate gathering, feature building,
training and the model repository.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field
from pydantic import field_validator

ProjectType = Literal["agroforestry", "rice", "soil", "biomass"]
IrrigationType = Literal["drip", "sprinkler", "flood", "rainfed"]

PROJECT_TYPES: tuple = ("agroforestry", "rice", "soil", "biomass")
IRRIGATION_TYPES: tuple = ("drip", "sprinkler", "flood", "rainfed")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Requests -----------------------------------------------------------------

class ExampleInput(BaseModel):
    """Lenient project description used when ingesting training examples.

    Every field is optional and categories are free strings, so that
    historical records with unknown categories can still be turned into
    a feature vector (the unknown category becomes an all-zero block).
    """

    model_config = {"allow_inf_nan": False}

    area_ha: Optional[float] = Field(None, description="Plot area (ha)")
    project_type: Optional[str] = Field(None, description="Project category")
    ndvi: Optional[float] = Field(None, description="Vegetation index (-1..1), clamped to 0..1 when used")
    biomass_t_ha: Optional[float] = Field(None, description="Standing biomass (t/ha)")
    irrigation: Optional[str] = Field(None, description="Irrigation category")
    soil_ph: Optional[float] = Field(None, description="Soil pH")
    duration_years: Optional[float] = Field(None, description="Project duration (years)")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    baseline_carbon: Optional[float] = Field(None, description="Baseline override (credits/ha/yr)")


class EstimationRequest(ExampleInput):
    """Validated request for the deterministic credit estimate."""

    model_config = {"frozen": True}

    area_ha: float = Field(..., ge=0, description="Plot area (ha)")
    project_type: ProjectType = Field(..., description="Project category")
    ndvi: Optional[float] = Field(None, ge=-1, le=1)
    biomass_t_ha: Optional[float] = Field(None, ge=0)
    irrigation: Optional[IrrigationType] = None
    soil_ph: Optional[float] = Field(None, ge=0, le=14)
    duration_years: Optional[float] = Field(None, ge=1)
    baseline_carbon: Optional[float] = Field(None, gt=0)


# --- Carbon stock calculators -------------------------------------------------

class SoilPercentInput(BaseModel):
    """Soil organic carbon given as percent by weight."""

    kind: Literal["soil"] = "soil"
    soc_percent: float
    bulk_density_g_cm3: float
    depth_cm: float
    rock_fragment_pct: Optional[float] = None


class SoilGkgInput(BaseModel):
    """Soil organic carbon given in grams per kilogram."""

    kind: Literal["soil_gkg"] = "soil_gkg"
    soc_g_per_kg: float
    bulk_density_g_cm3: float
    depth_cm: float
    rock_fragment_pct: Optional[float] = None


class DirectAGBInput(BaseModel):
    kind: Literal["agb"] = "agb"
    agb_t_ha: float


class AllometricInput(BaseModel):
    """Tree measurements for the height-optional allometric AGB equation."""

    kind: Literal["allometric"] = "allometric"
    dbh_cm: float
    wood_density_g_cm3: float
    height_m: Optional[float] = None


SoilInput = Annotated[Union[SoilPercentInput, SoilGkgInput], Field(discriminator="kind")]
AGBInput = Annotated[Union[DirectAGBInput, AllometricInput], Field(discriminator="kind")]


class CarbonOutputs(BaseModel):
    carbon_t_ha: float
    co2e_t_ha: float
    details: Dict[str, float] = Field(default_factory=dict)


# --- Estimates ----------------------------------------------------------------

class EstimateResult(BaseModel):
    """Credit estimate together with every assumption that produced it."""

    credits_per_year: float
    total_credits: float
    estimated_income_inr: float
    assumptions: Dict[str, Any] = Field(default_factory=dict)


# --- Covariates ---------------------------------------------------------------

class CovariateBundle(BaseModel):
    """External climate and soil signals for one coordinate.

    Each field is ``None`` when its source was unavailable or no
    coordinate was supplied.
    """

    avg_temp_c: Optional[float] = None
    total_precip_mm: Optional[float] = None
    solar_kwh_m2_day: Optional[float] = None
    soil_organic_carbon: Optional[float] = None

    def missing(self) -> List[str]:
        return [name for name, value in self.model_dump().items() if value is None]


# --- Models and training ------------------------------------------------------

class LinearModel(BaseModel):
    """Linear regression coefficients plus the standardisation they were fit on."""

    coefficients: List[float]
    intercept: float
    feature_means: List[float]
    feature_std: List[float]

    @field_validator("feature_std")
    def aligned_with_coefficients(cls, v, values):
        n = len(values.data.get("coefficients", []))
        if len(v) != n or len(values.data.get("feature_means", [])) != n:
            raise ValueError("coefficients, feature_means and feature_std must have equal length")
        return v


class ModelMetrics(BaseModel):
    rmse: float
    r2: float


class StoredModel(BaseModel):
    name: str
    version: int = Field(..., ge=1)
    created_at: datetime = Field(default_factory=_utcnow)
    model: LinearModel
    metrics: ModelMetrics
    training_count: int = Field(..., ge=0)


class TrainingExample(BaseModel):
    features: List[float]
    label: float
    meta: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}

    @field_validator("features")
    def features_are_finite(cls, v):
        if not all(math.isfinite(x) for x in v):
            raise ValueError("features must all be finite numbers")
        return v

    @field_validator("label")
    def label_is_finite(cls, v):
        if not math.isfinite(v):
            raise ValueError("label must be a finite number")
        return v


class TrainOptions(BaseModel):
    """Gradient-descent hyperparameters."""

    learning_rate: float = Field(0.02, gt=0)
    epochs: int = Field(2000, ge=1)
    l2: float = Field(0.0005, ge=0)
    patience: int = Field(50, ge=0)
    tolerance: float = Field(1e-8, ge=0)


class TrainingSummary(BaseModel):
    name: str
    version: int
    rmse: float
    r2: float
    training_count: int
    epochs_run: int
    created_at: datetime


class ModelInfo(BaseModel):
    name: str
    version: int
    created_at: datetime
    metrics: ModelMetrics
    training_count: int

    @classmethod
    def from_stored(cls, stored: StoredModel) -> "ModelInfo":
        return cls(
            name=stored.name,
            version=stored.version,
            created_at=stored.created_at,
            metrics=stored.metrics,
            training_count=stored.training_count,
        )
