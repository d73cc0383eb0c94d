from __future__ import annotations

import numpy as np
import pytest

from prfdr.errors import InvalidParameterError, NumericDegeneracyError
from prfdr.sampling import categorical_sample, classify_component, mixture_sample


class _FixedUniform:
    """Draw source whose uniform() always returns low + frac * (high - low)."""

    def __init__(self, frac: float) -> None:
        self.frac = float(frac)
        self.calls = 0

    def uniform(self, low: float, high: float) -> float:
        self.calls += 1
        return low + self.frac * (high - low)

    def normal(self, loc: float, scale: float) -> float:
        return loc


def test_categorical_frequencies_converge_to_normalized_weights() -> None:
    w = np.array([1.0, 2.0, 0.0, 7.0])
    rng = np.random.default_rng(2024)
    n = 20_000
    counts = np.bincount([categorical_sample(w, rng=rng) for _ in range(n)], minlength=w.size)
    assert counts[2] == 0
    assert np.allclose(counts / n, w / w.sum(), atol=0.015)


def test_categorical_is_inverse_cdf_with_one_draw() -> None:
    # cumsum = [1, 2, 4]; u = total - uniform.
    src = _FixedUniform(0.5)
    assert categorical_sample([1.0, 1.0, 2.0], rng=src) == 1
    assert src.calls == 1
    assert categorical_sample([1.0, 1.0, 2.0], rng=_FixedUniform(0.0)) == 2
    assert categorical_sample([1.0, 0.0], rng=_FixedUniform(0.0)) == 0
    assert categorical_sample([0.0, 3.0], rng=_FixedUniform(0.999)) == 1


def test_categorical_rejects_degenerate_weights() -> None:
    with pytest.raises(InvalidParameterError):
        categorical_sample([0.0, 0.0])
    with pytest.raises(InvalidParameterError):
        categorical_sample([1.0, -0.5])
    with pytest.raises(InvalidParameterError):
        categorical_sample([1.0], rng="not-a-generator")


def test_mixture_sample_moments() -> None:
    x = mixture_sample(20_000, [1.0, 3.0], [-5.0, 5.0], [1.0, 1.0], rng=7)
    assert x.shape == (20_000,)
    assert float(np.mean(x > 0.0)) == pytest.approx(0.75, abs=0.02)
    assert float(np.mean(x)) == pytest.approx(2.5, abs=0.15)
    assert float(np.std(x[x > 0.0])) == pytest.approx(1.0, abs=0.05)


def test_mixture_sample_is_reproducible_and_handles_zero_n() -> None:
    a = mixture_sample(50, [0.3, 0.7], [0.0, 2.0], [1.0, 0.5], rng=np.random.default_rng(99))
    b = mixture_sample(50, [0.3, 0.7], [0.0, 2.0], [1.0, 0.5], rng=np.random.default_rng(99))
    assert np.array_equal(a, b)
    assert mixture_sample(0, [1.0], [0.0], [1.0], rng=1).size == 0
    with pytest.raises(InvalidParameterError):
        mixture_sample(-1, [1.0], [0.0], [1.0])


def test_classify_separated_components() -> None:
    y = np.array([-10.0, 10.0, -9.5, 10.5])
    labels = classify_component(y, np.ones(y.size), [1.0, 1.0], [-10.0, 10.0], [1.0, 1.0], rng=5)
    assert labels.dtype.kind == "i"
    assert labels.tolist() == [0, 1, 0, 1]


def test_classify_is_reproducible_under_seed() -> None:
    rng = np.random.default_rng(31)
    y = rng.normal(size=200)
    s2 = np.full(y.size, 0.5)
    args = (y, s2, [1.0, 1.0, 2.0], [-1.0, 0.0, 1.0], [1.0, 0.5, 2.0])
    a = classify_component(*args, rng=123)
    b = classify_component(*args, rng=123)
    assert np.array_equal(a, b)
    assert set(np.unique(a).tolist()) <= {0, 1, 2}


def test_classify_posterior_frequencies() -> None:
    # Equal variances at y=0 between means -1 and +1: posterior is proportional to the weights.
    y = np.zeros(10_000)
    labels = classify_component(y, np.zeros(y.size), [1.0, 3.0], [-1.0, 1.0], [1.0, 1.0], rng=8)
    assert float(np.mean(labels == 1)) == pytest.approx(0.75, abs=0.02)


def test_classify_raises_on_underflow() -> None:
    with pytest.raises(NumericDegeneracyError) as ei:
        classify_component([0.0, 1e3], [0.0, 0.0], [1.0], [0.0], [1.0], rng=0)
    assert ei.value.index == 1
    assert ei.value.value == pytest.approx(1e3)
