"""Predictive-recursion empirical Bayes for two-groups z-statistics, plus Gaussian-mixture utilities."""

from .density import marginal_density, mixture_density, normal_pdf
from .errors import (
    InvalidParameterError,
    InvalidShapeError,
    NumericDegeneracyError,
    PRFDRError,
    RecursionCancelled,
)
from .predictive_recursion import (
    PredictiveRecursionConfig,
    PredictiveRecursionResult,
    predictive_recursion,
    replicate_shuffled,
)
from .quadrature import trapezoid, trapz_weights
from .sampling import categorical_sample, classify_component, mixture_sample

__version__ = "0.1.0"

__all__ = [
    "categorical_sample",
    "trapezoid",
    "trapz_weights",
    "normal_pdf",
    "mixture_density",
    "marginal_density",
    "mixture_sample",
    "classify_component",
    "predictive_recursion",
    "replicate_shuffled",
    "PredictiveRecursionConfig",
    "PredictiveRecursionResult",
    "PRFDRError",
    "InvalidShapeError",
    "InvalidParameterError",
    "NumericDegeneracyError",
    "RecursionCancelled",
]
