from __future__ import annotations

import numpy as np

from ._checks import as_1d, check_weights
from .density import normal_pdf, validate_mixture, validate_noise
from .errors import InvalidParameterError, NumericDegeneracyError
from .rng import RngLike, RandomSource, as_generator


def _draw_from_cumsum(csum: np.ndarray, gen: RandomSource) -> int:
    total = float(csum[-1])
    # u in (0, total]; smallest k with csum[k] >= u never lands on a zero-weight entry.
    u = total - float(gen.uniform(0.0, total))
    k = int(np.searchsorted(csum, u, side="left"))
    return min(k, int(csum.size) - 1)


def categorical_sample(weights, rng: RngLike = None) -> int:
    """Draw index k with probability weights[k] / sum(weights). Consumes one uniform draw."""
    w = check_weights(as_1d(weights, "weights"))
    return _draw_from_cumsum(np.cumsum(w), as_generator(rng))


def mixture_sample(n: int, weights, mu, tau2, rng: RngLike = None) -> np.ndarray:
    """Draw n values from the Gaussian mixture (component by raw weights, then one normal draw)."""
    if int(n) != n or int(n) < 0:
        raise InvalidParameterError("n must be a non-negative integer.")
    n = int(n)
    w, m, t = validate_mixture(weights, mu, tau2)
    gen = as_generator(rng)
    csum = np.cumsum(w)
    tau = np.sqrt(t)
    out = np.empty((n,), dtype=float)
    for i in range(n):
        j = _draw_from_cumsum(csum, gen)
        out[i] = float(gen.normal(m[j], tau[j]))
    return out


def classify_component(y, sigma2, weights, mu, tau2, rng: RngLike = None) -> np.ndarray:
    """Posterior draw of the generating component for each observation (0-based).

    Component j gets unnormalized weight w_j N(y_i; mu_j, tau2_j + sigma2_i). This is a
    random draw, not an argmax, so repeated calls need not agree.
    """
    y, s2 = validate_noise(y, sigma2)
    w, m, t = validate_mixture(weights, mu, tau2)
    w = w / np.sum(w)
    gen = as_generator(rng)

    sd = np.sqrt(t[None, :] + s2[:, None])
    post = w[None, :] * normal_pdf(y[:, None], m[None, :], sd)  # (n, K)
    out = np.empty((y.size,), dtype=np.int64)
    for i in range(int(y.size)):
        csum = np.cumsum(post[i])
        if not (np.isfinite(csum[-1]) and csum[-1] > 0.0):
            raise NumericDegeneracyError(
                f"All component posterior weights underflowed at observation {i} (y={y[i]:.6g}).",
                index=i,
                value=float(y[i]),
            )
        out[i] = _draw_from_cumsum(csum, gen)
    return out
