from __future__ import annotations

from typing import Protocol, Union, runtime_checkable

import numpy as np

from .errors import InvalidParameterError


@runtime_checkable
class RandomSource(Protocol):
    """Draw source used by the samplers.

    Each call consumes exactly one pseudo-random draw. `numpy.random.Generator` satisfies this.
    """

    def uniform(self, low: float, high: float) -> float: ...

    def normal(self, loc: float, scale: float) -> float: ...


RngLike = Union[RandomSource, int, np.integer, None]


def as_generator(rng: RngLike = None) -> RandomSource:
    """Resolve `rng` to a draw source; `None` and integer seeds go through `np.random.default_rng`."""
    if rng is None or isinstance(rng, (int, np.integer)):
        return np.random.default_rng(rng)
    if not isinstance(rng, RandomSource):
        raise InvalidParameterError("rng must be None, an integer seed, or provide uniform() and normal().")
    return rng
