from __future__ import annotations

import numpy as np

from .errors import InvalidParameterError, InvalidShapeError


def as_1d(x, name: str, *, finite: bool = True, copy: bool = False) -> np.ndarray:
    a = np.array(x, dtype=float, copy=True) if copy else np.asarray(x, dtype=float)
    if a.ndim != 1:
        raise InvalidShapeError(f"{name} must be 1D.")
    if finite and np.any(~np.isfinite(a)):
        raise InvalidParameterError(f"{name} must be finite.")
    return a


def require_same_size(a: np.ndarray, b: np.ndarray, names: str) -> None:
    if a.size != b.size:
        raise InvalidShapeError(f"{names} length mismatch ({a.size} vs {b.size}).")


def require_increasing(x: np.ndarray, name: str) -> None:
    if np.any(np.diff(x) <= 0.0):
        raise InvalidParameterError(f"{name} must be strictly increasing.")


def check_weights(w: np.ndarray) -> np.ndarray:
    if w.size == 0:
        raise InvalidShapeError("weights must contain at least one entry.")
    if np.any(w < 0.0):
        raise InvalidParameterError("weights must be non-negative.")
    if not float(np.sum(w)) > 0.0:
        raise InvalidParameterError("weights must contain at least one positive entry.")
    return w
