from __future__ import annotations

import numpy as np
import pytest
from scipy.integrate import trapezoid as scipy_trapezoid

from prfdr.errors import InvalidParameterError, InvalidShapeError
from prfdr.quadrature import trapezoid, trapz_weights


def test_trapezoid_exact_on_hat_function() -> None:
    assert trapezoid([0.0, 1.0, 2.0], [0.0, 1.0, 0.0]) == pytest.approx(1.0)


def test_trapezoid_exact_on_piecewise_linear_nonuniform_grid() -> None:
    x = np.array([0.0, 0.5, 2.0, 2.25, 4.0])
    y = 3.0 * x - 1.0
    # Integral of 3x - 1 over [0, 4].
    assert trapezoid(x, y) == pytest.approx(20.0)


def test_trapezoid_fewer_than_two_points_is_zero() -> None:
    assert trapezoid([], []) == 0.0
    assert trapezoid([1.5], [7.0]) == 0.0


def test_trapezoid_matches_scipy() -> None:
    x = np.sort(np.random.default_rng(3).uniform(-2.0, 2.0, size=50))
    y = np.exp(-x * x)
    assert trapezoid(x, y) == pytest.approx(float(scipy_trapezoid(y, x)), rel=1e-12)


def test_trapezoid_rejects_bad_input() -> None:
    with pytest.raises(InvalidShapeError):
        trapezoid([0.0, 1.0], [1.0])
    with pytest.raises(InvalidParameterError):
        trapezoid([0.0, 2.0, 1.0], [1.0, 1.0, 1.0])
    with pytest.raises(InvalidParameterError):
        trapezoid([0.0, 1.0, 1.0], [1.0, 1.0, 1.0])


def test_trapz_weights_reproduce_trapezoid() -> None:
    x = np.array([-1.0, 0.0, 0.5, 3.0])
    y = np.array([2.0, -1.0, 4.0, 0.5])
    w = trapz_weights(x)
    assert float(w @ y) == pytest.approx(trapezoid(x, y))
    assert float(np.sum(w)) == pytest.approx(4.0)
