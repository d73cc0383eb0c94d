from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


def _ensure_local_src_first() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src = repo_root / "src"
    if src.is_dir():
        s = str(src)
        if s not in sys.path:
            sys.path.insert(0, s)


_ensure_local_src_first()


@pytest.fixture
def two_groups_z() -> np.ndarray:
    """5000 z-statistics: 90% N(0,1) nulls, 10% signals with effects near +-3, in random order."""
    rng = np.random.default_rng(11)
    n = 5000
    is_signal = rng.uniform(size=n) < 0.1
    effect = np.where(rng.uniform(size=n) < 0.5, -3.0, 3.0) + rng.normal(scale=0.5, size=n)
    z = np.where(is_signal, effect, 0.0) + rng.normal(size=n)
    return rng.permutation(z)
