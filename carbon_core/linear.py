# MIT License
"""Standardised, L2-regularised linear regression by batch gradient descent.

A model is only meaningful together with the column means and standard
deviations it was fit on; both travel inside :class:`LinearModel` and
:func:`predict` reapplies them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .errors import DimensionMismatchError, InputError
from .params import LinearModel, TrainOptions

logger = logging.getLogger(__name__)


@dataclass
class TrainResult:
    model: LinearModel
    rmse: float
    r2: float
    epochs_run: int
    history: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=["epoch", "rmse"]))


def standardize_features(X) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Column-wise z-scores using the population standard deviation.

    Columns with zero spread get a standard deviation of 1 so that they
    standardise to zeros instead of dividing by zero.

    Returns
    -------
    tuple
        ``(Xs, means, stds)``.
    """
    X = np.asarray(X, dtype=float)
    if X.size == 0:
        return X.reshape(0, 0), np.zeros(0), np.zeros(0)
    means = X.mean(axis=0)
    stds = X.std(axis=0)
    stds[stds == 0] = 1.0
    return (X - means) / stds, means, stds


def _as_matrix(X, y) -> Tuple[np.ndarray, np.ndarray]:
    if len(X) == 0 or len(y) == 0 or len(X) != len(y):
        raise InputError("Training data is empty or misaligned")
    widths = {len(row) for row in X}
    if len(widths) != 1 or 0 in widths:
        raise InputError("Feature vectors must all have the same non-zero length")
    Xa = np.asarray(X, dtype=float)
    ya = np.asarray(y, dtype=float)
    if not (np.isfinite(Xa).all() and np.isfinite(ya).all()):
        raise InputError("Training data contains non-finite values")
    return Xa, ya


def train_linear_regression(X: Sequence[Sequence[float]], y: Sequence[float],
                            options: Optional[TrainOptions] = None) -> TrainResult:
    """Fit weights and bias on standardised features.

    Each epoch takes one full-batch gradient step on mean squared error
    plus an L2 penalty.  Training stops early once the (penalised) RMSE
    has failed to improve by more than ``options.tolerance`` for more
    than ``options.patience`` consecutive epochs.  RMSE and R² are
    reported on the training set itself.
    """
    opts = options or TrainOptions()
    Xa, ya = _as_matrix(X, y)
    Xs, means, stds = standardize_features(Xa)
    n, f = Xs.shape

    w = np.zeros(f)
    b = 0.0
    best = np.inf
    no_improve = 0
    history = []
    epochs_run = 0

    for epoch in range(opts.epochs):
        epochs_run = epoch + 1
        err = Xs @ w + b - ya
        loss = float(err @ err) + opts.l2 * float(w @ w)
        grad_w = (2.0 / n) * (Xs.T @ err) + (2.0 * opts.l2 * w) / n
        grad_b = (2.0 / n) * float(err.sum())

        w -= opts.learning_rate * grad_w
        b -= opts.learning_rate * grad_b

        rmse = float(np.sqrt(loss / n))
        history.append((epochs_run, rmse))
        if rmse + opts.tolerance < best:
            best = rmse
            no_improve = 0
        else:
            no_improve += 1
            if no_improve > opts.patience:
                logger.debug("early stop at epoch %d (rmse %.6g)", epochs_run, rmse)
                break

    preds = Xs @ w + b
    ss_res = float(((ya - preds) ** 2).sum())
    ss_tot = float(((ya - ya.mean()) ** 2).sum()) or 1.0

    model = LinearModel(
        coefficients=w.tolist(),
        intercept=float(b),
        feature_means=means.tolist(),
        feature_std=stds.tolist(),
    )
    return TrainResult(
        model=model,
        rmse=float(np.sqrt(ss_res / n)),
        r2=1.0 - ss_res / ss_tot,
        epochs_run=epochs_run,
        history=pd.DataFrame(history, columns=["epoch", "rmse"]),
    )


def predict(model: LinearModel, x: Sequence[float]) -> float:
    """Apply a trained model to one raw (unstandardised) feature vector."""
    if len(x) != len(model.coefficients):
        raise DimensionMismatchError(len(model.coefficients), len(x))
    xs = (np.asarray(x, dtype=float) - np.asarray(model.feature_means)) / np.asarray(model.feature_std)
    return float(np.dot(model.coefficients, xs) + model.intercept)
