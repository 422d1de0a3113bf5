"""Tests for the linear regression trainer.

These tests cover standardisation, convergence on a noiseless linear
target, early stopping, the fit metrics and the dimension check at
prediction time.
"""

import math

import numpy as np
import pytest

from carbon_core.errors import DimensionMismatchError, InputError
from carbon_core.linear import predict, standardize_features, train_linear_regression
from carbon_core.params import LinearModel, TrainOptions


def _linear_dataset(n=20, seed=7):
    rng = np.random.default_rng(seed)
    X = rng.normal(loc=[5.0, 100.0, 0.5], scale=[2.0, 30.0, 0.2], size=(n, 3))
    y = 2.0 * X[:, 0] - 0.05 * X[:, 1] + 4.0 * X[:, 2] + 3.0
    return X.tolist(), y.tolist()


def test_standardize_population_std_and_constant_column():
    X = [[1.0, 5.0], [3.0, 5.0]]
    Xs, means, stds = standardize_features(X)
    assert means.tolist() == [2.0, 5.0]
    # population std of [1, 3] is 1; constant column floored to 1
    assert stds.tolist() == [1.0, 1.0]
    assert Xs.tolist() == [[-1.0, 0.0], [1.0, 0.0]]


def test_converges_on_noiseless_linear_target():
    X, y = _linear_dataset()
    result = train_linear_regression(X, y, TrainOptions(l2=0.0, epochs=5000))
    assert result.rmse < 1e-3
    assert result.r2 > 0.95
    for row, target in zip(X[:5], y[:5]):
        assert math.isclose(predict(result.model, row), target, abs_tol=1e-2)


def test_default_options_fit_well():
    X, y = _linear_dataset()
    result = train_linear_regression(X, y)
    assert result.r2 > 0.95
    assert len(result.model.coefficients) == 3
    assert len(result.model.feature_means) == len(result.model.feature_std) == 3


def test_history_and_epochs_run():
    X, y = _linear_dataset()
    result = train_linear_regression(X, y, TrainOptions(epochs=30))
    assert result.epochs_run == 30
    assert list(result.history["epoch"]) == list(range(1, 31))
    # gradient descent on a convex loss decreases rmse monotonically at this step size
    assert result.history["rmse"].is_monotonic_decreasing


def test_early_stopping_on_constant_target():
    X = [[float(i), float(i % 3)] for i in range(12)]
    y = [4.0] * 12
    result = train_linear_regression(X, y, TrainOptions(learning_rate=0.5, epochs=2000, patience=5))
    assert result.epochs_run < 2000
    assert result.rmse < 1e-6
    # ss_tot is zero, floored to 1
    assert math.isclose(result.r2, 1.0)


@pytest.mark.parametrize("X,y", [
    ([], []),
    ([[1.0]], []),
    ([[1.0], [2.0]], [1.0]),
    ([[1.0, 2.0], [3.0]], [1.0, 2.0]),
    ([[1.0], [float("nan")]], [1.0, 2.0]),
])
def test_rejects_empty_or_misaligned(X, y):
    with pytest.raises(InputError):
        train_linear_regression(X, y)


def test_predict_destandardizes():
    model = LinearModel(coefficients=[2.0, -1.0], intercept=0.5, feature_means=[10.0, 1.0], feature_std=[2.0, 0.5])
    # standardised x = [(14-10)/2, (2-1)/0.5] = [2, 2]
    assert math.isclose(predict(model, [14.0, 2.0]), 2.0 * 2 - 1.0 * 2 + 0.5)


@pytest.mark.parametrize("x", [[1.0], [1.0, 2.0, 3.0]])
def test_predict_dimension_mismatch(x):
    model = LinearModel(coefficients=[1.0, 1.0], intercept=0.0, feature_means=[0.0, 0.0], feature_std=[1.0, 1.0])
    with pytest.raises(DimensionMismatchError) as exc:
        predict(model, x)
    assert exc.value.expected == 2
    assert exc.value.actual == len(x)


def test_linear_model_requires_aligned_vectors():
    with pytest.raises(ValueError):
        LinearModel(coefficients=[1.0, 2.0], intercept=0.0, feature_means=[0.0], feature_std=[1.0, 1.0])
