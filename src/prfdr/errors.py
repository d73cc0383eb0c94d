from __future__ import annotations


class PRFDRError(Exception):
    """Base class for input and numeric failures raised by prfdr."""


class InvalidShapeError(PRFDRError, ValueError):
    """Parallel sequences disagree in length, or an input is not 1D."""


class InvalidParameterError(PRFDRError, ValueError):
    """An input value is outside its admissible range."""


class NumericDegeneracyError(PRFDRError, ArithmeticError):
    """A density underflowed (or overflowed) so that a normalizer is unusable.

    `index` is the offending observation index and `value` the statistic at that index.
    """

    def __init__(self, message: str, *, index: int | None = None, value: float | None = None) -> None:
        super().__init__(message)
        self.index = index
        self.value = value


class RecursionCancelled(Exception):
    """The caller asked a predictive-recursion sweep to stop. No partial result exists."""

    def __init__(self, n_processed: int, n_total: int) -> None:
        super().__init__(f"Predictive recursion cancelled after {int(n_processed)} of {int(n_total)} observations.")
        self.n_processed = int(n_processed)
        self.n_total = int(n_total)
