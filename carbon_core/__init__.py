"""Core package for carbon-credit estimation and model training.

This package contains the deterministic carbon formulas, the external
covariate gatherer, feature construction, the linear-regression trainer
and the model repository used by the Streamlit dashboard and the
operator scripts.

Each submodule exposes plain functions over typed pydantic models.  The
:class:`CarbonPipeline` in `pipeline.py` composes them into the
estimate / ingest / train / model-info operations.
"""

from .params import EstimationRequest, ExampleInput, CovariateBundle, LinearModel, StoredModel, TrainingExample, TrainOptions
from .config import PipelineSettings, CovariateConfig, configure_logging
from .errors import CarbonError, InputError, DimensionMismatchError, InsufficientExamplesError, RepositoryError, VersionConflictError
from .formulas import compute_soil_carbon, compute_agb_carbon, estimate_carbon
from .covariates import gather_covariates
from .features import build_features, FEATURE_NAMES
from .linear import train_linear_regression, predict
from .repository import ModelRepository, InMemoryRepository, FileRepository
from .pipeline import CarbonPipeline

__all__ = [
    "EstimationRequest",
    "ExampleInput",
    "CovariateBundle",
    "LinearModel",
    "StoredModel",
    "TrainingExample",
    "TrainOptions",
    "PipelineSettings",
    "CovariateConfig",
    "configure_logging",
    "CarbonError",
    "InputError",
    "DimensionMismatchError",
    "InsufficientExamplesError",
    "RepositoryError",
    "VersionConflictError",
    "compute_soil_carbon",
    "compute_agb_carbon",
    "estimate_carbon",
    "gather_covariates",
    "build_features",
    "FEATURE_NAMES",
    "train_linear_regression",
    "predict",
    "ModelRepository",
    "InMemoryRepository",
    "FileRepository",
    "CarbonPipeline",
]
