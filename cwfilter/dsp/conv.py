"""Direct convolution with a centered, delayable kernel.

FIR filters in this package treat the middle tap (index ``len(h) // 2``) as
zero lag. Samples requested outside the input are either taken as zero or
as the nearest in-range sample, depending on the edge behavior.
"""

from enum import Enum
from typing import Optional

import numpy as np


class EdgeBehavior(Enum):
    """How samples outside the input buffer are supplied."""

    ZEROES_OUTSIDE = "zeroes"
    REPEAT_OUTSIDE = "repeat"


def direct_convolve(
    x: np.ndarray,
    h: np.ndarray,
    delay: int = 0,
    edge: EdgeBehavior = EdgeBehavior.ZEROES_OUTSIDE,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Convolve x with kernel h, centered on the middle tap.

    Computes y[i] = sum_j h[j] * x[i + len(h)//2 - delay - j], which has the
    transfer function sum_j h[j] * z^(len(h)//2 - j - delay).

    Args:
        x: Input signal (1D array).
        h: Kernel coefficients (1D array).
        delay: Integer output delay in samples (default: 0).
        edge: Edge behavior for out-of-range samples.
        out: Optional output buffer of the same length as x.

    Returns:
        Convolved signal, same length as x.
    """
    x = np.asarray(x, dtype=float)
    h = np.asarray(h, dtype=float)
    n = len(x)

    if out is None:
        out = np.zeros(n, dtype=float)
    else:
        if len(out) != n:
            raise ValueError(f"Output length ({len(out)}) must equal input length ({n})")
        out[:] = 0.0

    if n == 0 or len(h) == 0:
        return out

    idx = np.arange(n)
    half = len(h) // 2
    for j, coeff in enumerate(h):
        src = idx + half - delay - j
        if edge is EdgeBehavior.REPEAT_OUTSIDE:
            out += coeff * x[np.clip(src, 0, n - 1)]
        else:
            valid = (src >= 0) & (src < n)
            out[valid] += coeff * x[src[valid]]

    return out
