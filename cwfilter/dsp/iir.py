"""IIR filters.

Implements direct-form recursive filtering plus filters designed from
analog prototypes (RC, Butterworth, Chebyshev type I) through
:mod:`cwfilter.dsp.zpk`.
"""

from typing import Optional

import numpy as np

from ..logging import get_logger
from .filters import DigitalFilter
from .utils import check_1d_array
from .zpk import (
    FilterTopology,
    ZeroPoleGain,
    bilinear,
    butterworth_prototype,
    chebyshev1_prototype,
    rc_prototype,
    transform,
    zpk_to_coefficients,
)

logger = get_logger(__name__)


def lfilter(
    b: np.ndarray, a: np.ndarray, x: np.ndarray, out: Optional[np.ndarray] = None
) -> np.ndarray:
    """Filter signal using the direct-form difference equation.

    y[j] = (sum_k b[k] x[j-k] - sum_{k>0} a[k] y[j-k]) / a[0], with terms of
    negative index omitted. Output j depends only on inputs 0..j.

    Args:
        b: Feedforward coefficients.
        a: Feedback coefficients; a[0] is the normalization divisor.
        x: Input signal (1D array).
        out: Optional output buffer of the same length as x.

    Returns:
        Filtered signal.
    """
    b = check_1d_array(b)
    a = check_1d_array(a)
    x = check_1d_array(x, allow_nonfinite=True)

    if a[0] == 0:
        raise ValueError("Denominator leading coefficient is zero")

    n = len(x)
    y = np.zeros(n, dtype=float) if out is None else out
    if len(y) != n:
        raise ValueError(f"Output length ({len(y)}) must equal input length ({n})")

    nb = len(b)
    na = len(a)
    a0 = a[0]
    a_tail = a[1:]

    for j in range(n):
        kb = min(nb, j + 1)
        acc = np.dot(b[:kb], x[j::-1][:kb]) if kb else 0.0
        ka = min(na - 1, j)
        if ka > 0:
            acc -= np.dot(a_tail[:ka], y[j - 1 :: -1][:ka])
        y[j] = acc / a0

    return y


class IIRFilter(DigitalFilter):
    """Recursive filter with transfer (sum b[i] z^-i) / (sum a[i] z^-i)."""

    def __init__(self, b, a):
        self.set_coefficients(b, a)

    def set_coefficients(self, b, a) -> None:
        b = check_1d_array(b)
        a = check_1d_array(a)
        if len(b) == 0 or len(a) == 0:
            raise ValueError("IIR filter needs non-empty b and a")
        if a[0] == 0:
            raise ValueError("Denominator leading coefficient is zero")
        self.b = b
        self.a = a

    @property
    def order(self) -> int:
        return max(len(self.b), len(self.a)) - 1

    def filter_out(self, x: np.ndarray, out: np.ndarray) -> np.ndarray:
        return lfilter(self.b, self.a, x, out=out)

    def transfer(self, z):
        z = np.asarray(z, dtype=complex)
        num = np.sum(self.b * np.power.outer(z, -np.arange(len(self.b), dtype=float)), axis=-1)
        den = np.sum(self.a * np.power.outer(z, -np.arange(len(self.a), dtype=float)), axis=-1)
        ans = num / den
        if ans.ndim == 0:
            return complex(ans)
        return ans


class TransformedZPKFilter(IIRFilter):
    """IIR filter obtained from an analog prototype.

    Keeps the transformed analog ZPK (``analog``) and its bilinear image
    (``digital``) for inspection.

    Args:
        prototype: Normalized analog prototype.
        topology: Target topology (FilterTopology or its string value).
        w: Cutoff or centre frequency, fraction of Nyquist.
        dw: Band half-width for BANDPASS/NOTCH.
    """

    def __init__(self, prototype: ZeroPoleGain, topology, w: float, dw: float = 0.0):
        self.topology = FilterTopology(topology)
        self.analog = transform(prototype, self.topology, w, dw)
        self.digital = bilinear(self.analog)
        b, a = zpk_to_coefficients(self.digital)
        super().__init__(b, a)
        logger.debug(
            "%s %s w=%g dw=%g: %d zeros, %d poles, gain=%g",
            type(self).__name__,
            self.topology.value,
            w,
            dw,
            len(self.digital.zeros),
            len(self.digital.poles),
            self.digital.gain,
        )


class RCFilter(TransformedZPKFilter):
    """First-order RC filter."""

    def __init__(self, topology, w: float, dw: float = 0.0):
        super().__init__(rc_prototype(), topology, w, dw)


class ButterworthFilter(TransformedZPKFilter):
    """Butterworth filter of the given order."""

    def __init__(self, topology, order: int, w: float, dw: float = 0.0):
        super().__init__(butterworth_prototype(order), topology, w, dw)


class ChebyshevIFilter(TransformedZPKFilter):
    """Chebyshev type I filter with passband ripple in dB."""

    def __init__(self, topology, order: int, ripple: float, w: float, dw: float = 0.0):
        super().__init__(chebyshev1_prototype(order, ripple), topology, w, dw)
