"""Frequency response of digital filters.

Samples a filter's transfer function on the upper unit circle,
z = exp(iπf) for f = i/(n-1), and derives amplitude, phase and group delay
curves as plain arrays for plotting or inspection.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .utils import unwrap

# Display bounds attached to the amplitude curve
AMPLITUDE_BOUNDS = (-80.0, 10.0)

# Amplitude reported when |H| is exactly zero
AMPLITUDE_FLOOR = -1000.0

FREQUENCY_LABEL = "Normalized Frequency (f/f_{nyq})"


@dataclass
class ResponseCurve:
    """An (x, y) curve with display metadata."""

    x: np.ndarray
    y: np.ndarray
    title: str = ""
    xlabel: str = FREQUENCY_LABEL
    ylabel: str = ""
    bounds: Tuple[float, float] = (np.nan, np.nan)

    def __len__(self) -> int:
        return len(self.x)


@dataclass
class FrequencyResponse:
    amplitude: ResponseCurve
    phase: ResponseCurve
    group_delay: ResponseCurve


def freqz(filt, n: int) -> Tuple[np.ndarray, np.ndarray]:
    """Sample H(z) at n points from DC to Nyquist.

    Args:
        filt: Any object with a ``transfer(z)`` method.
        n: Number of frequency points (>= 2).

    Returns:
        Tuple (f, h) with f normalized to Nyquist and h complex.
    """
    if n < 2:
        raise ValueError(f"n must be >= 2, got {n}")
    f = np.arange(n, dtype=float) / (n - 1)
    z = np.exp(1j * np.pi * f)
    h = np.asarray(filt.transfer(z), dtype=complex)
    return f, h


def amplitude_response(f: np.ndarray, h: np.ndarray) -> ResponseCurve:
    """Amplitude curve 10*ln|H|, floored at -1000 where |H| = 0."""
    mag = np.abs(h)
    y = np.full(len(mag), AMPLITUDE_FLOOR)
    nonzero = mag != 0
    y[nonzero] = 10.0 * np.log(mag[nonzero])
    return ResponseCurve(
        x=f,
        y=y,
        title="Amplitude Response",
        ylabel="Magnitude (dB)",
        bounds=AMPLITUDE_BOUNDS,
    )


def _wrapped_phase(h: np.ndarray) -> np.ndarray:
    angle = 180.0 * np.angle(h) / np.pi
    angle = np.round(angle * 1e6) / 1e6
    return np.where(angle < 0, angle + 360.0, angle)


def phase_response(f: np.ndarray, h: np.ndarray) -> ResponseCurve:
    """Phase in degrees in [0, 360), without the DC and Nyquist samples."""
    angle = _wrapped_phase(h)
    return ResponseCurve(
        x=f[1:-1],
        y=angle[1:-1],
        title="Phase Response",
        ylabel="Phase (deg)",
    )


def group_delay(f: np.ndarray, h: np.ndarray) -> ResponseCurve:
    """Group delay from successive differences of the unwrapped phase.

    The first difference is forced to zero; the first two samples and the
    last one are then dropped.
    """
    unwrapped = unwrap(_wrapped_phase(h), 360.0)
    delay = np.zeros(len(unwrapped))
    delay[1:] = unwrapped[:-1] - unwrapped[1:]
    return ResponseCurve(
        x=f[2:-1],
        y=delay[2:-1],
        title="Group Delay",
        ylabel="Normalized Time (t/(2T))",
    )


def frequency_response(filt, n: int) -> FrequencyResponse:
    """Amplitude, phase and group delay of a filter.

    Args:
        filt: Any object with a ``transfer(z)`` method.
        n: Number of frequency samples (>= 4). The phase curve has n - 2
            points and the group delay n - 3.

    Returns:
        FrequencyResponse with the three curves.
    """
    if n < 4:
        raise ValueError(f"n must be >= 4, got {n}")
    f, h = freqz(filt, n)
    return FrequencyResponse(
        amplitude=amplitude_response(f, h),
        phase=phase_response(f, h),
        group_delay=group_delay(f, h),
    )
