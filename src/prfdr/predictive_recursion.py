from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Mapping

import numpy as np

from ._checks import as_1d, require_increasing, require_same_size
from .density import normal_pdf
from .errors import InvalidParameterError, InvalidShapeError, NumericDegeneracyError, RecursionCancelled
from .quadrature import _trapezoid, trapezoid, trapz_weights

logger = logging.getLogger(__name__)

# Recommended stochastic-approximation window for the step-size exponent.
DECAY_RANGE = (-1.0, -2.0 / 3.0)


@dataclass(frozen=True)
class PredictiveRecursionConfig:
    """Scalar settings of one predictive-recursion run.

    The null component N(mu0, sig0^2) is fixed, not estimated. The step size at
    observation i is (1 + i)**decay. `check_every` sets how often the sweep polls
    for cancellation and reports progress.
    """

    nullprob: float = 0.95
    mu0: float = 0.0
    sig0: float = 1.0
    decay: float = -0.67
    check_every: int = 200

    def validate(self, *, strict: bool = False) -> None:
        for name in ("nullprob", "mu0", "sig0", "decay"):
            if not np.isfinite(float(getattr(self, name))):
                raise InvalidParameterError(f"{name} must be finite.")
        if float(self.sig0) <= 0.0:
            raise InvalidParameterError("sig0 must be > 0.")
        if int(self.check_every) < 1:
            raise InvalidParameterError("check_every must be >= 1.")

        lo, hi = DECAY_RANGE
        in_decay = lo < float(self.decay) < hi
        in_prob = 0.0 <= float(self.nullprob) <= 1.0
        if strict:
            if not in_decay:
                raise InvalidParameterError("decay must be in (-1, -2/3).")
            if not in_prob:
                raise InvalidParameterError("nullprob must be in [0,1].")
            return
        if not in_decay:
            logger.warning("decay=%g is outside the recommended range (-1, -2/3).", float(self.decay))
        if not in_prob:
            logger.warning("nullprob=%g is outside [0,1]; pi0 will not be a probability.", float(self.nullprob))

    def to_jsonable(self) -> dict[str, Any]:
        return {
            "nullprob": float(self.nullprob),
            "mu0": float(self.mu0),
            "sig0": float(self.sig0),
            "decay": float(self.decay),
            "check_every": int(self.check_every),
        }

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "PredictiveRecursionConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise InvalidParameterError(f"Unknown predictive-recursion settings: {', '.join(unknown)}.")
        kw: dict[str, Any] = {}
        for k, v in mapping.items():
            kw[k] = int(v) if k == "check_every" else float(v)
        return cls(**kw)


@dataclass(frozen=True)
class PredictiveRecursionResult:
    grid_x: np.ndarray  # (G,)
    theta_subdens: np.ndarray  # (G,) alternative sub-density, integrates to ~1 - pi0
    pi0: float
    y_mix: np.ndarray  # (G,) fitted marginal density on the grid
    y_signal: np.ndarray  # (G,) fitted alternative density, renormalized by 1 - pi0
    mu0: float = 0.0
    sig0: float = 1.0
    n_obs: int = 0

    def null_density(self, x) -> np.ndarray:
        return normal_pdf(np.asarray(x, dtype=float), self.mu0, self.sig0)

    def mixture_density_at(self, x) -> np.ndarray:
        """Fitted marginal pi0 N(x; mu0, sig0) + trapezoid(grid, N(grid; x, sig0) theta) at arbitrary x.

        Uses the same kernel as the grid pass, so it equals y_mix on the grid and stays
        exact for statistics outside it.
        """
        x = np.asarray(x, dtype=float)
        xf = x.reshape(-1)
        wt = trapz_weights(self.grid_x) * self.theta_subdens
        m1 = normal_pdf(self.grid_x[None, :], xf[:, None], self.sig0) @ wt
        return (self.pi0 * self.null_density(xf) + m1).reshape(x.shape)

    def local_fdr(self, x) -> np.ndarray:
        """Posterior null probability pi0 f0(x) / f(x), clipped to [0,1].

        Where the fitted marginal density is zero the result is 1.
        """
        num = self.pi0 * self.null_density(x)
        den = self.mixture_density_at(x)
        with np.errstate(divide="ignore", invalid="ignore"):
            lfdr = np.where(den > 0.0, num / den, 1.0)
        return np.clip(lfdr, 0.0, 1.0)

    def to_jsonable(self) -> dict[str, Any]:
        return {
            "n_grid": int(self.grid_x.size),
            "grid_min": float(self.grid_x[0]),
            "grid_max": float(self.grid_x[-1]),
            "pi0": float(self.pi0),
            "theta_mass": float(trapezoid(self.grid_x, self.theta_subdens)),
            "mu0": float(self.mu0),
            "sig0": float(self.sig0),
            "n_obs": int(self.n_obs),
        }


def replicate_shuffled(z, n_replicates: int = 10, rng: np.random.Generator | int | None = None) -> np.ndarray:
    """Tile z `n_replicates` times and return it in a random order.

    Predictive recursion is order dependent; sweeping several shuffled copies of the
    statistics smooths out the dependence on any single ordering.
    """
    z = as_1d(z, "z")
    if int(n_replicates) < 1:
        raise InvalidParameterError("n_replicates must be >= 1.")
    gen = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)
    return gen.permutation(np.tile(z, int(n_replicates)))


def _emit(progress_cb: Callable[[dict[str, Any]], None] | None, payload: dict[str, Any]) -> None:
    if progress_cb is not None:
        progress_cb(payload)


def predictive_recursion(
    z,
    grid_x,
    theta_guess,
    nullprob: float | None = None,
    mu0: float | None = None,
    sig0: float | None = None,
    decay: float | None = None,
    *,
    config: PredictiveRecursionConfig | None = None,
    should_cancel: Callable[[], bool] | None = None,
    progress_cb: Callable[[dict[str, Any]], None] | None = None,
) -> PredictiveRecursionResult:
    """Newton's predictive recursion for the two-groups model f = pi0 N(mu0, sig0^2) + (1 - pi0) f1.

    One pass over z with step size cc = (1 + i)**decay:
      joint(x) = N(x; z_i, sig0) theta(x)
      m0 = pi0 N(z_i; mu0, sig0),  m1 = trapezoid(grid_x, joint),  mmix = m0 + m1
      pi0   <- (1 - cc) pi0   + cc m0 / mmix
      theta <- (1 - cc) theta + cc joint / mmix

    Memory is O(len(grid_x)) regardless of len(z). The fit is then evaluated on the grid,
    giving the marginal y_mix and the alternative density y_signal = m1 / (1 - pi0).

    Scalar settings come from `config` (defaults when omitted); explicit keyword values
    override it. `should_cancel` is polled every `check_every` observations and raises
    `RecursionCancelled` when it returns True. `progress_cb` receives a dict at the same
    checkpoints and once at the end.
    """
    cfg = config if config is not None else PredictiveRecursionConfig()
    overrides = {"nullprob": nullprob, "mu0": mu0, "sig0": sig0, "decay": decay}
    cfg = replace(cfg, **{k: float(v) for k, v in overrides.items() if v is not None})
    cfg.validate()

    z = as_1d(z, "z")
    grid = as_1d(grid_x, "grid_x", copy=True)
    theta = as_1d(theta_guess, "theta_guess", copy=True)
    if grid.size < 2:
        raise InvalidShapeError("grid_x must have at least 2 points.")
    require_same_size(grid, theta, "grid_x/theta_guess")
    require_increasing(grid, "grid_x")
    if np.any(theta < 0.0):
        raise InvalidParameterError("theta_guess must be non-negative.")

    n = int(z.size)
    pi0 = float(cfg.nullprob)
    mu_null, s0 = float(cfg.mu0), float(cfg.sig0)
    expo = float(cfg.decay)
    every = int(cfg.check_every)
    f0 = normal_pdf(z, mu_null, s0)

    logger.debug("predictive recursion: n=%d grid=%d nullprob=%.4f decay=%.4f", n, grid.size, pi0, expo)
    for i in range(n):
        if i % every == 0:
            if should_cancel is not None and should_cancel():
                logger.info("predictive recursion cancelled at %d/%d", i, n)
                raise RecursionCancelled(i, n)
            _emit(progress_cb, {"stage": "sweep", "done": i, "total": n, "pi0": pi0})
            logger.debug("sweep %d/%d pi0=%.6f", i, n, pi0)

        cc = (1.0 + i) ** expo
        joint = normal_pdf(grid, z[i], s0) * theta
        m0 = pi0 * float(f0[i])
        m1 = _trapezoid(grid, joint)
        mmix = m0 + m1
        if not (np.isfinite(mmix) and mmix > 0.0):
            raise NumericDegeneracyError(
                f"Marginal density is {mmix!r} at observation {i} (z={z[i]:.6g}).",
                index=i,
                value=float(z[i]),
            )
        pi0 = (1.0 - cc) * pi0 + cc * (m0 / mmix)
        theta = (1.0 - cc) * theta + cc * (joint / mmix)

    # Grid evaluation: kern[j, k] = N(grid_k; grid_j, sig0); trapezoid rows via quadrature weights.
    kern = normal_pdf(grid[None, :], grid[:, None], s0)
    m1_grid = kern @ (trapz_weights(grid) * theta)
    y_mix = pi0 * normal_pdf(grid, mu_null, s0) + m1_grid
    if pi0 == 1.0:
        logger.warning("pi0 reached 1; y_signal is not finite.")
    with np.errstate(divide="ignore", invalid="ignore"):
        y_signal = m1_grid / (1.0 - pi0)
    if not (0.0 <= pi0 <= 1.0):
        logger.warning("Final pi0=%g lies outside [0,1].", pi0)

    _emit(progress_cb, {"stage": "done", "done": n, "total": n, "pi0": pi0})
    logger.debug("predictive recursion done: pi0=%.6f", pi0)
    return PredictiveRecursionResult(
        grid_x=grid,
        theta_subdens=np.asarray(theta, dtype=float),
        pi0=float(pi0),
        y_mix=np.asarray(y_mix, dtype=float),
        y_signal=np.asarray(y_signal, dtype=float),
        mu0=mu_null,
        sig0=s0,
        n_obs=n,
    )
