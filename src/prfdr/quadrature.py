from __future__ import annotations

import numpy as np

from ._checks import as_1d, require_increasing, require_same_size
from .errors import InvalidShapeError


def trapezoid(x, y) -> float:
    """Trapezoidal-rule integral of samples `y` over the ascending abscissae `x`.

    Fewer than two points integrate to 0.0.
    """
    x = as_1d(x, "x")
    y = as_1d(y, "y", finite=False)
    require_same_size(x, y, "x/y")
    if x.size < 2:
        return 0.0
    require_increasing(x, "x")
    return _trapezoid(x, y)


def _trapezoid(x: np.ndarray, y: np.ndarray) -> float:
    # Unchecked; callers validate the grid once.
    return float(np.sum(np.diff(x) * (y[1:] + y[:-1])) / 2.0)


def trapz_weights(x) -> np.ndarray:
    """Quadrature weights w such that `w @ y == trapezoid(x, y)`."""
    x = as_1d(x, "x")
    if x.size < 2:
        raise InvalidShapeError("trapz_weights expects 1D x with >=2 points.")
    require_increasing(x, "x")
    dx = np.diff(x)
    w = np.empty_like(x)
    w[0] = 0.5 * dx[0]
    w[-1] = 0.5 * dx[-1]
    if x.size > 2:
        w[1:-1] = 0.5 * (dx[:-1] + dx[1:])
    return w
