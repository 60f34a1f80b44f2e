"""Utility functions for signal processing.

Provides helper routines for input validation, polynomial expansion,
phase unwrapping and uniform resampling.
"""

from typing import Sequence, Tuple

import numpy as np


def check_1d_array(x, allow_nonfinite: bool = False) -> np.ndarray:
    """Validate and cast input to 1D float64 array.

    Args:
        x: Input array-like object.
        allow_nonfinite: If True, NaN and Inf values are passed through so
            that numerical degeneracy stays visible to the caller.

    Returns:
        1D float64 numpy array.

    Raises:
        ValueError: If input is not 1D, or contains NaN/Inf when
            allow_nonfinite is False.
    """
    arr = np.asarray(x, dtype=float)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    elif arr.ndim > 1:
        raise ValueError(f"Expected 1D array, got {arr.ndim}D array")
    if not allow_nonfinite:
        if np.any(np.isnan(arr)):
            raise ValueError("Input contains NaN values")
        if np.any(np.isinf(arr)):
            raise ValueError("Input contains Inf values")
    return arr


def next_pow2(n: int) -> int:
    """Return the next power-of-two >= n.

    Args:
        n: Positive integer.

    Returns:
        Smallest power-of-two >= n. Returns 1 if n <= 0.
    """
    if n <= 0:
        return 1
    if n & (n - 1) == 0:  # Already a power of 2
        return n
    return 1 << (n - 1).bit_length()


def poly(roots: Sequence[complex]) -> np.ndarray:
    """Expand complex roots into monic polynomial coefficients.

    Multiplies out prod_i (x - roots[i]) one factor at a time. Index j of
    the result is the coefficient of x**j, so the last entry is always 1.

    Args:
        roots: Sequence of n complex roots.

    Returns:
        Complex array of n + 1 coefficients in ascending power order.
    """
    roots = np.asarray(roots, dtype=complex).ravel()
    coeffs = np.ones(1, dtype=complex)

    for root in roots:
        # new[j] = coeffs[j-1] - coeffs[j] * root, with zeros outside range
        acc = np.zeros(len(coeffs) + 1, dtype=complex)
        acc[1:] = coeffs
        acc[:-1] -= coeffs * root
        coeffs = acc

    return coeffs


def unwrap(values: np.ndarray, period: float = 360.0) -> np.ndarray:
    """Remove wrap-around discontinuities from a periodic sequence.

    Args:
        values: 1D array of wrapped values (e.g. phases in degrees).
        period: Wrap period (default: 360).

    Returns:
        Unwrapped copy of values.
    """
    values = np.asarray(values, dtype=float)
    if len(values) < 2:
        return values.copy()
    return np.unwrap(values, period=period)


def interpolate_uniform(
    x: np.ndarray, y: np.ndarray, dt: float
) -> Tuple[np.ndarray, np.ndarray]:
    """Resample a (possibly irregular) sequence onto a uniform grid.

    Uses linear interpolation. The grid starts at x[0] and steps by dt up to
    x[-1]; both endpoints of the input are kept in range.

    Args:
        x: Sample times, monotonically increasing.
        y: Sample values, same length as x.
        dt: Desired uniform spacing (must be positive).

    Returns:
        Tuple (x_uniform, y_uniform).

    Raises:
        ValueError: If dt <= 0 or x and y lengths differ.
    """
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError(f"x and y must have equal shape, got {x.shape} and {y.shape}")

    n = int(np.floor((x[-1] - x[0]) / dt + 1e-9)) + 1
    x_uniform = x[0] + dt * np.arange(n, dtype=float)
    return x_uniform, np.interp(x_uniform, x, y)
