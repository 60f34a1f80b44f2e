"""Analog zero-pole-gain prototypes and their digital mapping.

Filters are designed as normalized analog prototypes (cutoff 1 rad/s),
moved to the requested topology by an s-domain substitution on prewarped
frequencies, then mapped to the z-plane with the bilinear transform
s -> (z - 1) / (z + 1).

Frequencies are normalized to Nyquist: w = 1 is half the sampling rate.

References:
    - Octave signal package, ``sftrans`` and ``bilinear``
    - Oppenheim & Schafer, *Discrete-Time Signal Processing*, ch. 7
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

import numpy as np

from .utils import poly


class FilterTopology(Enum):
    LOWPASS = "lowpass"
    HIGHPASS = "highpass"
    BANDPASS = "bandpass"
    NOTCH = "notch"


@dataclass
class ZeroPoleGain:
    """Transfer function as zeros, poles and a real gain.

    Attributes:
        zeros: Complex zeros.
        poles: Complex poles.
        gain: Real scalar gain.
        order: Prototype order the roots were derived from.
    """

    zeros: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=complex))
    poles: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=complex))
    gain: float = 1.0
    order: int = 0

    def __post_init__(self) -> None:
        self.zeros = np.asarray(self.zeros, dtype=complex).ravel()
        self.poles = np.asarray(self.poles, dtype=complex).ravel()
        self.gain = float(self.gain)

    def evaluate(self, s):
        """Evaluate gain * prod(s - zeros) / prod(s - poles)."""
        s = np.asarray(s, dtype=complex)
        num = np.prod(s[..., None] - self.zeros, axis=-1)
        den = np.prod(s[..., None] - self.poles, axis=-1)
        return self.gain * num / den


def _check_order(order: int) -> None:
    if not isinstance(order, (int, np.integer)) or isinstance(order, bool):
        raise ValueError(f"Order must be an integer, got {type(order).__name__}")
    if order <= 0:
        raise ValueError(f"Order must be positive, got {order}")


def rc_prototype() -> ZeroPoleGain:
    """First-order RC prototype: single pole at -1, unit gain."""
    return ZeroPoleGain(poles=[-1.0], gain=1.0, order=1)


def butterworth_prototype(order: int) -> ZeroPoleGain:
    """Butterworth prototype with poles evenly spaced on the left unit semicircle.

    Args:
        order: Filter order (positive integer).

    Returns:
        Analog ZPK with unit DC gain.
    """
    _check_order(order)
    k = np.arange(1, order + 1, dtype=float)
    poles = np.exp(1j * np.pi * (2 * k + order - 1) / (2 * order))
    gain = 1.0 / np.real(np.prod(-poles))
    return ZeroPoleGain(poles=poles, gain=gain, order=order)


def chebyshev1_prototype(order: int, ripple: float) -> ZeroPoleGain:
    """Chebyshev type I prototype.

    Args:
        order: Filter order (positive integer).
        ripple: Passband ripple in dB (positive).

    Returns:
        Analog ZPK whose passband peaks at unity gain.
    """
    _check_order(order)
    if not np.isfinite(ripple) or ripple <= 0:
        raise ValueError(f"Passband ripple must be positive and finite, got {ripple}")

    eps = np.sqrt(10.0 ** (ripple / 10.0) - 1.0)
    v0 = np.arcsinh(1.0 / eps) / order
    k = np.arange(1, order + 1, dtype=float)
    theta = np.pi * (2 * k - 1) / (2 * order)
    poles = -np.sinh(v0) * np.sin(theta) + 1j * np.cosh(v0) * np.cos(theta)

    gain = np.real(np.prod(-poles))
    if order % 2 == 0:
        gain /= 10.0 ** (ripple / 20.0)
    return ZeroPoleGain(poles=poles, gain=gain, order=order)


def _prewarp(w: float) -> float:
    return float(np.tan(np.pi * w / 2.0))


def transform(
    analog: ZeroPoleGain, topology: FilterTopology, w: float, dw: float = 0.0
) -> ZeroPoleGain:
    """Move a normalized prototype to the requested topology.

    Args:
        analog: Normalized analog prototype.
        topology: Target filter topology.
        w: Cutoff (or centre) frequency as a fraction of Nyquist, in (0, 1).
        dw: Half-width of the band for BANDPASS/NOTCH, as a fraction of
            Nyquist. Ignored otherwise.

    Returns:
        Transformed analog ZPK.

    Raises:
        ValueError: If the frequencies are out of range or dw is missing
            for a band topology.
    """
    topology = FilterTopology(topology)
    if not 0 < w < 1:
        raise ValueError(f"w must be in (0, 1), got {w}")

    W = _prewarp(w)
    zeros, poles = analog.zeros, analog.poles
    gain = complex(analog.gain)

    if topology is FilterTopology.LOWPASS:
        new_zeros = zeros * W
        new_poles = poles * W
        gain *= W ** (len(poles) - len(zeros))

    elif topology is FilterTopology.HIGHPASS:
        new_zeros = np.concatenate([W / zeros, np.zeros(max(len(poles) - len(zeros), 0))])
        new_poles = np.concatenate([W / poles, np.zeros(max(len(zeros) - len(poles), 0))])
        gain *= np.prod(-zeros) * np.prod(-1.0 / poles)

    else:
        if dw == 0:
            raise ValueError(f"{topology.value} requires a nonzero bandwidth dw")
        if not (0 < w - abs(dw) and w + abs(dw) < 1):
            raise ValueError(f"Band edges w -/+ dw must lie in (0, 1), got w={w}, dw={dw}")

        Wh = _prewarp(w + dw)
        Wl = _prewarp(w - dw)
        dW = (Wh - Wl) / 2.0

        def split(b: np.ndarray) -> np.ndarray:
            x = np.sqrt(b * b - Wh * Wl)
            return np.column_stack([b + x, b - x]).ravel()

        if topology is FilterTopology.BANDPASS:
            new_zeros = np.concatenate(
                [split(zeros * dW), np.zeros(max(len(poles) - len(zeros), 0))]
            )
            new_poles = np.concatenate(
                [split(poles * dW), np.zeros(max(len(zeros) - len(poles), 0))]
            )
            gain *= (2 * dW) ** (len(poles) - len(zeros))
        else:
            extra = np.sqrt(complex(-Wh * Wl))
            pair = np.array([extra, -extra])
            new_zeros = np.concatenate(
                [split(dW / zeros), np.tile(pair, max(len(poles) - len(zeros), 0))]
            )
            new_poles = np.concatenate(
                [split(dW / poles), np.tile(pair, max(len(zeros) - len(poles), 0))]
            )
            gain *= np.prod(-zeros) * np.prod(-1.0 / poles)

    return ZeroPoleGain(
        zeros=new_zeros, poles=new_poles, gain=np.real(gain), order=analog.order
    )


def bilinear(analog: ZeroPoleGain) -> ZeroPoleGain:
    """Map an analog ZPK to the z-plane with s -> (z - 1) / (z + 1).

    Both digital root sets have length max(#poles, #zeros); roots missing
    from the shorter analog set land at z = -1.

    Raises:
        ValueError: If a root sits on the singular point s = 1.
    """
    zeros, poles = analog.zeros, analog.poles
    if np.any(zeros == 1) or np.any(poles == 1):
        raise ValueError("Root at s = 1 is singular under the bilinear transform")

    n = max(len(zeros), len(poles))
    digi_zeros = np.full(n, -1.0 + 0j)
    digi_poles = np.full(n, -1.0 + 0j)
    digi_zeros[: len(zeros)] = (1 + zeros) / (1 - zeros)
    digi_poles[: len(poles)] = (1 + poles) / (1 - poles)

    digi_gain = complex(analog.gain) * np.prod(1 - zeros) / np.prod(1 - poles)

    return ZeroPoleGain(
        zeros=digi_zeros, poles=digi_poles, gain=np.real(digi_gain), order=analog.order
    )


def zpk_to_coefficients(digital: ZeroPoleGain) -> Tuple[np.ndarray, np.ndarray]:
    """Expand a digital ZPK into IIR coefficient arrays.

    Returns:
        Tuple (b, a) where index i multiplies z^-i; a[0] == 1.
    """
    b = np.real(digital.gain * poly(digital.zeros)[::-1])
    a = np.real(poly(digital.poles)[::-1])
    return b, a
