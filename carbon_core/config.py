# MIT License
"""Runtime settings and logging setup for the pipeline.

:class:`PipelineSettings` is a pydantic ``BaseSettings``: every field can
be overridden by a ``CARBON_*`` environment variable, and nested fields
use a double underscore (``CARBON_TRAINING__EPOCHS=500``,
``CARBON_COVARIATES__WINDOW_DAYS=14``).
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .params import TrainOptions

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class CovariateConfig(BaseModel):
    """Endpoints and limits for the external covariate lookups."""

    model_config = {"frozen": True}

    climate_url: str = "https://api.open-meteo.com/v1/forecast"
    solar_url: str = "https://power.larc.nasa.gov/api/temporal/daily/point"
    soil_url: str = "https://rest.isric.org/soilgrids/v2.0/properties/query"
    timeout_s: float = Field(8.0, gt=0, description="Per-lookup timeout (s)")
    window_days: int = Field(30, ge=1, le=92, description="Trailing window for climate/solar series (days)")
    user_agent: str = "carbon-mrv-estimator/0.1"


class PipelineSettings(BaseSettings):
    """Pipeline configuration, read from ``CARBON_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CARBON_",
        env_nested_delimiter="__",
        protected_namespaces=(),
    )

    model_name: str = "carbon-estimator-v1"
    min_training_examples: int = Field(
        10,
        ge=1,
        validation_alias=AliasChoices("CARBON_MIN_EXAMPLES", "min_training_examples"),
    )
    credit_price_inr: float = Field(500.0, ge=0, description="Price per credit (INR)")
    store_dir: Path = Path("data/store")
    log_level: str = "INFO"
    fetch_timeout_s: Optional[float] = Field(
        None,
        gt=0,
        validation_alias=AliasChoices("CARBON_FETCH_TIMEOUT_S", "fetch_timeout_s"),
        description="Shortcut for covariates.timeout_s",
    )
    covariates: CovariateConfig = Field(default_factory=CovariateConfig)
    training: TrainOptions = Field(default_factory=TrainOptions)

    @model_validator(mode="after")
    def apply_fetch_timeout(self):
        if self.fetch_timeout_s is not None:
            self.covariates = self.covariates.model_copy(update={"timeout_s": self.fetch_timeout_s})
        return self


def configure_logging(level: str | int = "INFO") -> None:
    """Send pipeline logs to stderr with a timestamped format.

    Calling it again only changes the level; no duplicate handlers are added.
    """
    root = logging.getLogger("carbon_core")
    root.setLevel(level if isinstance(level, int) else level.upper())
    if not any(getattr(h, "_carbon_core", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._carbon_core = True  # type: ignore[attr-defined]
        root.addHandler(handler)
