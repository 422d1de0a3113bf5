# MIT License
"""Estimation, example ingestion and batch training behind one facade.

:class:`CarbonPipeline` is the inbound surface of the package: the
dashboard, the scripts and any web layer call these methods.  It owns no
storage itself; a :class:`~carbon_core.repository.ModelRepository` is
passed in.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from .config import PipelineSettings
from .covariates import gather_covariates
from .errors import DimensionMismatchError, InputError, InsufficientExamplesError, RepositoryError
from .features import build_features, normalise_record
from .formulas import estimate_carbon
from .linear import TrainResult, predict, train_linear_regression
from .params import (
    CovariateBundle,
    EstimateResult,
    EstimationRequest,
    ExampleInput,
    ModelInfo,
    ModelMetrics,
    TrainingExample,
    TrainingSummary,
)
from .repository import ModelRepository
from .utils import input_hash, whole_years

logger = logging.getLogger(__name__)

Gatherer = Callable[[Optional[float], Optional[float]], Awaitable[CovariateBundle]]


def parse_request(payload: Union[EstimationRequest, Mapping[str, Any]]) -> EstimationRequest:
    """Validate a request payload, raising :class:`InputError` on bad input."""
    if isinstance(payload, EstimationRequest):
        return payload
    try:
        return EstimationRequest.model_validate(payload)
    except ValidationError as e:
        raise InputError(str(e)) from e


class CarbonPipeline:

    def __init__(self, repository: ModelRepository, settings: Optional[PipelineSettings] = None,
                 gatherer: Optional[Gatherer] = None) -> None:
        self.repository = repository
        self.settings = settings or PipelineSettings()
        self._gather = gatherer or (lambda lat, lon: gather_covariates(lat, lon, self.settings.covariates))
        self._train_lock = threading.Lock()
        self.last_training: Optional[TrainResult] = None

    # --- estimation ---------------------------------------------------------

    def estimate(self, payload: Union[EstimationRequest, Mapping[str, Any]]) -> EstimateResult:
        """Deterministic formula estimate; no network or storage access."""
        return estimate_carbon(parse_request(payload), price_inr=self.settings.credit_price_inr)

    async def estimate_with_model(self, payload: Union[EstimationRequest, Mapping[str, Any]]) -> EstimateResult:
        """Predict with the latest stored model, or fall back to the formula.

        The fallback is taken when no model has been trained, the store
        cannot be read, or the stored model was fit on a different
        feature layout.
        """
        req = parse_request(payload)
        try:
            latest = self.repository.get_latest_model(self.settings.model_name)
        except RepositoryError as e:
            logger.warning("model store unavailable, using formula estimate: %s", e)
            latest = None
        if latest is None:
            return self.estimate(req)

        cov = await self._gather(req.latitude, req.longitude)
        try:
            credits_per_year = predict(latest.model, build_features(req, cov))
        except DimensionMismatchError as e:
            logger.warning("stored model %s v%d is stale (%s); using formula estimate",
                           latest.name, latest.version, e)
            return self.estimate(req)

        years = whole_years(req.duration_years)
        total = credits_per_year * years
        price = self.settings.credit_price_inr
        return EstimateResult(
            credits_per_year=credits_per_year,
            total_credits=total,
            estimated_income_inr=total * price,
            assumptions={
                "source": "model",
                "model_name": latest.name,
                "model_version": latest.version,
                "years": years,
                "price_inr": price,
                "area_ha": max(0.0, req.area_ha),
                "missing_covariates": cov.missing(),
            },
        )

    # --- training corpus ----------------------------------------------------

    async def ingest_example(
        self,
        raw: Union[ExampleInput, Mapping[str, Any]],
        label: float,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> TrainingExample:
        """Enrich an observed outcome with covariates and append it to the corpus.

        Explicit ``latitude``/``longitude`` take precedence over the
        coordinates inside ``raw``.
        """
        if isinstance(label, bool) or not isinstance(label, (int, float)) or not math.isfinite(label):
            raise InputError("label is required and must be a finite number")
        try:
            inp = raw if isinstance(raw, ExampleInput) else normalise_record(raw)
            lat = latitude if latitude is not None else inp.latitude
            lon = longitude if longitude is not None else inp.longitude
            inp = ExampleInput.model_validate({**inp.model_dump(), "latitude": lat, "longitude": lon})
        except ValidationError as e:
            raise InputError(str(e)) from e

        cov = await self._gather(lat, lon)
        try:
            example = TrainingExample(
                features=build_features(inp, cov),
                label=float(label),
                meta={
                    "input": inp.model_dump(mode="json", exclude_none=True),
                    "input_hash": input_hash(inp),
                    "covariates": cov.model_dump(mode="json"),
                    **(meta or {}),
                },
            )
        except ValidationError as e:
            # non-finite feature vectors never reach the corpus
            raise InputError(str(e)) from e
        self.repository.add_example(example)
        logger.info("ingested example label=%.3f (missing covariates: %s)",
                    example.label, ", ".join(cov.missing()) or "none")
        return example

    # --- batch training -----------------------------------------------------

    def train(self) -> TrainingSummary:
        """Train a new model version on the whole corpus and store it.

        Runs are serialised within the process; version allocation is
        atomic at the storage layer.
        """
        with self._train_lock:
            minimum = self.settings.min_training_examples
            examples = self.repository.get_all_examples()
            if len(examples) < minimum:
                raise InsufficientExamplesError(len(examples), minimum)

            logger.info("training %s on %d examples", self.settings.model_name, len(examples))
            result = train_linear_regression(
                [e.features for e in examples],
                [e.label for e in examples],
                self.settings.training,
            )
            stored = self.repository.commit_model(
                self.settings.model_name,
                result.model,
                ModelMetrics(rmse=result.rmse, r2=result.r2),
                len(examples),
            )
            self.last_training = result
        logger.info("trained %s v%d: rmse=%.4f r2=%.4f after %d epochs",
                    stored.name, stored.version, result.rmse, result.r2, result.epochs_run)
        return TrainingSummary(
            name=stored.name,
            version=stored.version,
            rmse=result.rmse,
            r2=result.r2,
            training_count=stored.training_count,
            epochs_run=result.epochs_run,
            created_at=stored.created_at,
        )

    def get_model_info(self) -> Optional[ModelInfo]:
        latest = self.repository.get_latest_model(self.settings.model_name)
        return ModelInfo.from_stored(latest) if latest else None
