"""CW interference removal.

This package provides:
- A joint shared-frequency sine fitter across several traces
- A bounded, step-scaled minimizer with error estimates
- The iterative sine subtraction engine and its result log
"""

from .fitter import SineFitFn, SineFitter, normalize_angle
from .optimizer import BoundedFitResult, minimize_bounded
from .result import SineComponent, SineSubtractResult
from .subtract import SineSubtract, SineSubtractConfig

__all__ = [
    # Fitting
    "normalize_angle",
    "SineFitFn",
    "SineFitter",
    "BoundedFitResult",
    "minimize_bounded",
    # Subtraction
    "SineComponent",
    "SineSubtractResult",
    "SineSubtract",
    "SineSubtractConfig",
]
