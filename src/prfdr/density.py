from __future__ import annotations

import numpy as np

from ._checks import as_1d, check_weights, require_same_size
from .errors import InvalidParameterError, InvalidShapeError

_INV_SQRT_2PI = 1.0 / np.sqrt(2.0 * np.pi)


def normal_pdf(x, mean=0.0, sd=1.0) -> np.ndarray:
    """Closed-form Gaussian density; broadcasts over all three arguments.

    Evaluated directly (not in log space), so far tails underflow to exactly 0.
    `sd` is assumed positive.
    """
    x = np.asarray(x, dtype=float)
    sd = np.asarray(sd, dtype=float)
    u = (x - np.asarray(mean, dtype=float)) / sd
    return _INV_SQRT_2PI * np.exp(-0.5 * u * u) / sd


def validate_mixture(weights, mu, tau2) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return (weights, mu, tau2) as aligned float arrays for a K-component Gaussian mixture."""
    w = as_1d(weights, "weights")
    m = as_1d(mu, "mu")
    t = as_1d(tau2, "tau2")
    if m.size == 0:
        raise InvalidShapeError("Mixture needs at least one component.")
    require_same_size(m, t, "mu/tau2")
    require_same_size(w, m, "weights/mu")
    check_weights(w)
    if np.any(t <= 0.0):
        raise InvalidParameterError("tau2 must be strictly positive.")
    return w, m, t


def validate_noise(y, sigma2) -> tuple[np.ndarray, np.ndarray]:
    y = as_1d(np.atleast_1d(y), "y")
    s2 = as_1d(np.atleast_1d(sigma2), "sigma2")
    require_same_size(y, s2, "y/sigma2")
    if np.any(s2 < 0.0):
        raise InvalidParameterError("sigma2 must be non-negative.")
    return y, s2


def mixture_density(y, weights, mu, tau2) -> np.ndarray:
    """Density of each y[i] under sum_j w_j N(mu_j, tau2_j), weights normalized to sum 1."""
    y = as_1d(np.atleast_1d(y), "y")
    w, m, t = validate_mixture(weights, mu, tau2)
    w = w / np.sum(w)
    comp = normal_pdf(y[:, None], m[None, :], np.sqrt(t)[None, :])  # (n, K)
    return comp @ w


def marginal_density(y, sigma2, weights, mu, tau2) -> np.ndarray:
    """Predictive density of y[i] when the latent mean is mixture-distributed and observed with N(0, sigma2[i]) noise.

    Each component is convolved with the observation's own noise:
      f(y_i) = sum_j w_j N(y_i; mu_j, tau2_j + sigma2_i)
    """
    y, s2 = validate_noise(y, sigma2)
    w, m, t = validate_mixture(weights, mu, tau2)
    w = w / np.sum(w)
    sd = np.sqrt(s2[:, None] + t[None, :])
    comp = normal_pdf(y[:, None], m[None, :], sd)
    return comp @ w
