"""FIR filters.

A :class:`FIRFilter` is a kernel plus an integer output delay and an edge
policy. Subclasses build common kernels: windowed sinc low-pass,
Savitzky-Golay smoothing/differentiation, Gaussian, box and binomial
difference filters.
"""

import math
from typing import Optional

import numpy as np

from .conv import EdgeBehavior, direct_convolve
from .filters import DigitalFilter
from .utils import check_1d_array
from .windows import Window


class FIRFilter(DigitalFilter):
    """Finite impulse response filter.

    Args:
        coeffs: Kernel coefficients. The middle tap (index len//2) is the
            zero-lag tap.
        delay: Integer output delay in samples (default: 0).
        extend: If True, samples outside the input repeat the nearest
            in-range sample; otherwise they are zero (default: False).
    """

    def __init__(self, coeffs, delay: int = 0, extend: bool = False):
        coeffs = check_1d_array(coeffs)
        if len(coeffs) == 0:
            raise ValueError("FIR filter needs at least one coefficient")
        self.coeffs = coeffs
        self.delay = int(delay)
        self.extend = bool(extend)

    @property
    def edge(self) -> EdgeBehavior:
        return EdgeBehavior.REPEAT_OUTSIDE if self.extend else EdgeBehavior.ZEROES_OUTSIDE

    def filter_out(self, x: np.ndarray, out: np.ndarray) -> np.ndarray:
        return direct_convolve(x, self.coeffs, delay=self.delay, edge=self.edge, out=out)

    def transfer(self, z):
        z = np.asarray(z, dtype=complex)
        exponents = len(self.coeffs) // 2 - np.arange(len(self.coeffs)) - self.delay
        ans = np.sum(self.coeffs * np.power.outer(z, exponents.astype(float)), axis=-1)
        if ans.ndim == 0:
            return complex(ans)
        return ans

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(ntaps={len(self.coeffs)}, "
            f"delay={self.delay}, extend={self.extend})"
        )


class SincFilter(FIRFilter):
    """Windowed-sinc low-pass filter.

    Args:
        w: Cutoff as a fraction of Nyquist, in (0, 1].
        max_lobes: Number of sinc lobes kept on each side.
        window: Optional window applied to the kernel.
        delay: Output delay in samples.
        extend: Edge policy, see :class:`FIRFilter`.
    """

    def __init__(
        self,
        w: float,
        max_lobes: int,
        window: Optional[Window] = None,
        delay: int = 0,
        extend: bool = False,
    ):
        if not 0 < w <= 1:
            raise ValueError(f"w must be in (0, 1], got {w}")
        if max_lobes <= 0:
            raise ValueError(f"max_lobes must be positive, got {max_lobes}")

        N = int(2 * max_lobes / w + 1)
        i = np.arange(N, dtype=float)
        coeffs = w * np.sinc(w * (i - N // 2))
        if window is not None:
            window.apply(coeffs)
        super().__init__(coeffs, delay=delay, extend=extend)


def savitzky_golay_coefficients(
    polynomial_order: int, nl: int, nr: int, deriv: int = 0
) -> np.ndarray:
    """Least-squares polynomial smoothing weights.

    Entry i weights the sample at offset i - nl from the output position.

    Args:
        polynomial_order: Order m of the fitted polynomial.
        nl: Samples to the left.
        nr: Samples to the right.
        deriv: Derivative order d (0 smooths), must satisfy d <= m.

    Returns:
        Array of nl + nr + 1 weights.
    """
    if nl < 0 or nr < 0:
        raise ValueError(f"Window half-widths must be non-negative, got ({nl}, {nr})")
    if polynomial_order < 0:
        raise ValueError(f"polynomial_order must be >= 0, got {polynomial_order}")
    if deriv < 0 or deriv > polynomial_order:
        raise ValueError(
            f"deriv must be in [0, polynomial_order={polynomial_order}], got {deriv}"
        )

    size = nl + nr + 1
    offsets = np.arange(size, dtype=float) - nl
    M = offsets[:, None] ** np.arange(polynomial_order + 1)

    e = np.zeros(polynomial_order + 1)
    e[deriv] = 1.0
    y = np.linalg.solve(M.T @ M, e)

    return math.factorial(deriv) * (y[0] + M[:, 1:] @ y[1:])


class SavitzkyGolayFilter(FIRFilter):
    """Savitzky-Golay smoothing or differentiating filter.

    Args:
        polynomial_order: Order of the local polynomial fit.
        wleft: Samples to the left of each output sample.
        wright: Samples to the right; negative means wright = wleft.
        deriv: Derivative order (default: 0).
    """

    def __init__(self, polynomial_order: int, wleft: int, wright: int = -1, deriv: int = 0):
        if wright < 0:
            wright = wleft
        weights = savitzky_golay_coefficients(polynomial_order, wleft, wright, deriv)
        # Stored in convolution order; the delay re-centres asymmetric windows.
        size = wleft + wright + 1
        super().__init__(weights[::-1], delay=size // 2 - wright, extend=True)
        self.polynomial_order = polynomial_order
        self.deriv = deriv


class GaussianFilter(FIRFilter):
    """Truncated Gaussian kernel normalized to unit sum.

    Args:
        sigma: Standard deviation in samples.
        nsigma: Kernel half-width in units of sigma (default: 3).
    """

    def __init__(self, sigma: float, nsigma: float = 3.0, delay: int = 0, extend: bool = False):
        if sigma <= 0:
            raise ValueError(f"sigma must be positive, got {sigma}")
        if nsigma <= 0:
            raise ValueError(f"nsigma must be positive, got {nsigma}")
        w = int(math.ceil(nsigma * sigma))
        x = np.arange(-w, w + 1, dtype=float)
        coeffs = np.exp(-0.5 * (x / sigma) ** 2)
        super().__init__(coeffs / coeffs.sum(), delay=delay, extend=extend)


class BoxFilter(FIRFilter):
    """Moving average of width samples."""

    def __init__(self, width: int, delay: int = 0, extend: bool = False):
        if width <= 0:
            raise ValueError(f"width must be positive, got {width}")
        super().__init__(np.full(width, 1.0 / width), delay=delay, extend=extend)


class DifferenceFilter(FIRFilter):
    """Binomial finite difference, normalized by the sum of |coefficients|.

    Args:
        order: Difference order (default: 1).
    """

    def __init__(self, order: int = 1, delay: int = 0, extend: bool = False):
        if order <= 0:
            raise ValueError(f"order must be positive, got {order}")
        coeffs = np.array(
            [math.comb(order, i) * (-1) ** i for i in range(order + 1)], dtype=float
        )
        super().__init__(coeffs / np.sum(np.abs(coeffs)), delay=delay, extend=extend)
