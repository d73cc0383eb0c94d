#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# Prefer local source tree when available (important when another editable install is active).
_REPO_SRC = Path(__file__).resolve().parents[1] / "src"
if _REPO_SRC.is_dir():
    _src = str(_REPO_SRC)
    if _src not in sys.path:
        sys.path.insert(0, _src)

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import yaml
from scipy.stats import norm

from prfdr.logging_config import setup_logging
from prfdr.predictive_recursion import PredictiveRecursionConfig, predictive_recursion, replicate_shuffled
from prfdr.sampling import mixture_sample

logger = logging.getLogger("run_pr_fdr_simulation")


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _write_json_atomic(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    tmp.replace(path)


def _parse_floats_csv(s: str | list) -> list[float]:
    # YAML configs may give a list directly.
    if isinstance(s, (list, tuple)):
        return [float(t) for t in s]
    return [float(t.strip()) for t in str(s).split(",") if t.strip()]


def _benjamini_hochberg(p: np.ndarray, alpha: float) -> np.ndarray:
    n = int(p.size)
    order = np.argsort(p)
    ok = p[order] <= (np.arange(1, n + 1) / n) * float(alpha)
    if not np.any(ok):
        return np.zeros(n, dtype=bool)
    thresh = p[order][int(np.where(ok)[0].max())]
    return p <= thresh


def _simulate_z(
    *,
    n: int,
    pi0_true: float,
    weights: list[float],
    mu: list[float],
    tau2: list[float],
    rng: np.random.Generator,
) -> tuple[np.ndarray, np.ndarray]:
    """Two-groups draw: latent effect 0 w.p. pi0_true, else mixture-distributed; z = effect + N(0,1)."""
    is_signal = rng.uniform(size=n) >= float(pi0_true)
    effect = np.zeros(n, dtype=float)
    effect[is_signal] = mixture_sample(int(is_signal.sum()), weights, mu, tau2, rng=rng)
    return effect + rng.normal(size=n), is_signal


def _plot_fit(z: np.ndarray, fit, out_path: Path) -> None:
    plt.figure(figsize=(7.8, 4.8))
    plt.hist(z, bins=80, density=True, color="0.8", label="z (observed)")
    plt.plot(fit.grid_x, fit.y_mix, linewidth=1.8, label="fitted marginal")
    plt.plot(fit.grid_x, fit.pi0 * fit.null_density(fit.grid_x), "--", linewidth=1.2, label=r"$\pi_0 f_0$")
    plt.plot(fit.grid_x, (1.0 - fit.pi0) * fit.y_signal, linewidth=1.2, label=r"$(1-\pi_0) f_1$")
    plt.xlabel("z")
    plt.ylabel("density")
    plt.title(f"Predictive recursion fit (pi0={fit.pi0:.3f})")
    plt.legend(loc="best")
    plt.tight_layout()
    plt.savefig(out_path, dpi=180)
    plt.close()


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Simulate two-groups z-statistics and fit them with predictive recursion.")
    ap.add_argument("--config", default="", help="Optional YAML file; keys match the long flag names (dashes -> underscores).")
    ap.add_argument("--out", default="outputs/pr_fdr_simulation")
    ap.add_argument("--n", type=int, default=5000)
    ap.add_argument("--pi0-true", type=float, default=0.9)
    ap.add_argument("--signal-weights", default="1,1")
    ap.add_argument("--signal-mu", default="-3,3")
    ap.add_argument("--signal-tau2", default="0.25,0.25")
    ap.add_argument("--replicates", type=int, default=5)
    ap.add_argument("--grid-min", type=float, default=-6.0)
    ap.add_argument("--grid-max", type=float, default=6.0)
    ap.add_argument("--grid-size", type=int, default=121)
    ap.add_argument("--nullprob", type=float, default=0.95)
    ap.add_argument("--decay", type=float, default=-0.67)
    ap.add_argument("--fdr-level", type=float, default=0.1)
    ap.add_argument("--seed", type=int, default=20240)
    ap.add_argument("--plot", action="store_true")
    ap.add_argument("--verbose", action="store_true")
    return ap


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse flags; a YAML `--config` supplies defaults, so anything given on the command line wins."""
    ap = _build_parser()
    pre, _ = ap.parse_known_args(argv)
    if str(pre.config).strip():
        cfg_path = Path(pre.config)
        y = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
        if not isinstance(y, dict):
            raise SystemExit(f"{cfg_path}: expected a mapping at the top level.")
        known = set(vars(pre)) - {"config"}
        mapped: dict[str, Any] = {}
        for k, v in y.items():
            key = str(k).replace("-", "_")
            if key not in known:
                raise SystemExit(f"{cfg_path}: unknown key {k!r}.")
            mapped[key] = v
        ap.set_defaults(**mapped)
    return ap.parse_args(argv)


def main() -> int:
    args = _parse_args()

    out_dir = Path(args.out).resolve()
    out_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, log_file=out_dir / "run.log")

    if not (0.0 < float(args.pi0_true) < 1.0):
        raise ValueError("pi0-true must be in (0,1).")
    if int(args.grid_size) < 2 or float(args.grid_max) <= float(args.grid_min):
        raise ValueError("Grid must have >=2 points and grid-max > grid-min.")

    weights = _parse_floats_csv(args.signal_weights)
    mu = _parse_floats_csv(args.signal_mu)
    tau2 = _parse_floats_csv(args.signal_tau2)

    rng = np.random.default_rng(int(args.seed))
    z, is_signal = _simulate_z(n=int(args.n), pi0_true=float(args.pi0_true), weights=weights, mu=mu, tau2=tau2, rng=rng)
    logger.info("simulated %d z-statistics (%d signal)", z.size, int(is_signal.sum()))

    grid = np.linspace(float(args.grid_min), float(args.grid_max), int(args.grid_size))
    theta0 = np.full(grid.size, (1.0 - float(args.nullprob)) / (grid[-1] - grid[0]))
    pr_cfg = PredictiveRecursionConfig(nullprob=float(args.nullprob), decay=float(args.decay))
    z_sweep = replicate_shuffled(z, int(args.replicates), rng=rng)

    def _progress(p: dict[str, Any]) -> None:
        if p["stage"] == "sweep" and p["done"] % 10_000 == 0:
            logger.info("sweep %d/%d pi0=%.4f", p["done"], p["total"], p["pi0"])

    fit = predictive_recursion(z_sweep, grid, theta0, config=pr_cfg, progress_cb=_progress)
    logger.info("fitted pi0=%.4f (true %.4f)", fit.pi0, float(args.pi0_true))

    lfdr = fit.local_fdr(z)
    # Bayes FDR of the set {lfdr <= t}: mean lfdr over the rejected set.
    order = np.argsort(lfdr)
    running = np.cumsum(lfdr[order]) / np.arange(1, z.size + 1)
    n_lfdr = int(np.sum(running <= float(args.fdr_level)))
    reject_lfdr = np.zeros(z.size, dtype=bool)
    reject_lfdr[order[:n_lfdr]] = True

    pvals = 2.0 * norm.sf(np.abs(z))
    reject_bh = _benjamini_hochberg(pvals, float(args.fdr_level))

    def _fdp(rej: np.ndarray) -> float:
        return float(np.sum(rej & ~is_signal) / max(1, int(np.sum(rej))))

    summary = {
        "created_utc": _utc_now(),
        "settings": {k: v for k, v in vars(args).items() if k not in ("config",)},
        "recursion": pr_cfg.to_jsonable(),
        "fit": fit.to_jsonable(),
        "pi0_true": float(args.pi0_true),
        "n_signal_true": int(is_signal.sum()),
        "lfdr": {"n_reject": int(reject_lfdr.sum()), "fdp": _fdp(reject_lfdr)},
        "bh": {"n_reject": int(reject_bh.sum()), "fdp": _fdp(reject_bh)},
    }
    _write_json_atomic(out_dir / "summary.json", summary)
    print(f"[done] wrote {out_dir / 'summary.json'}")

    if args.plot:
        fig_path = out_dir / "fit.png"
        _plot_fit(z, fit, fig_path)
        print(f"[done] wrote {fig_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
