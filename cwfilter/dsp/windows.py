"""Window functions for signal processing.

Window shapes are exposed two ways: array generators (``hann``,
``hamming``, ``blackman``, ``rectangular``) and :class:`Window` objects
whose ``apply`` multiplies a buffer in place. Filter design and sine
subtraction only rely on the :class:`Window` interface, so any shape can be
plugged in by subclassing it.
"""

from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np


def _cosine_sum(M: int, coeffs: Sequence[float], periodic: bool) -> np.ndarray:
    """Generalized cosine window: w[n] = sum_k (-1)^k a_k cos(2πkn/L)."""
    if M <= 0:
        raise ValueError(f"Window length M must be positive, got {M}")
    if M == 1:
        return np.array([1.0], dtype=float)

    L = M if periodic else M - 1
    n = np.arange(M, dtype=float)
    w = np.zeros(M, dtype=float)
    for k, a in enumerate(coeffs):
        w += (-1) ** k * a * np.cos(2.0 * np.pi * k * n / L)
    return w


def hann(M: int, periodic: bool = True) -> np.ndarray:
    """Generate Hann window.

    Args:
        M: Window length (must be positive integer).
        periodic: If True, generate periodic form for FFT use (default: True).

    Returns:
        Window array of length M, dtype float64.

    Raises:
        ValueError: If M <= 0.
    """
    return _cosine_sum(M, (0.5, 0.5), periodic)


def hamming(M: int, periodic: bool = True) -> np.ndarray:
    """Generate Hamming window (0.54 - 0.46 cos)."""
    return _cosine_sum(M, (0.54, 0.46), periodic)


def blackman(M: int, periodic: bool = True) -> np.ndarray:
    """Generate Blackman window (0.42 - 0.5 cos + 0.08 cos 2x)."""
    return _cosine_sum(M, (0.42, 0.5, 0.08), periodic)


def rectangular(M: int) -> np.ndarray:
    """Generate rectangular (boxcar) window of ones."""
    if M <= 0:
        raise ValueError(f"Window length M must be positive, got {M}")
    return np.ones(M, dtype=float)


class Window(ABC):
    """A window shape that can be applied to a buffer of any length."""

    @abstractmethod
    def kernel(self, M: int) -> np.ndarray:
        """Return the window samples for a buffer of length M."""

    def apply(self, buffer: np.ndarray) -> np.ndarray:
        """Multiply buffer by the window in place.

        Args:
            buffer: Writable 1D float array.

        Returns:
            The same buffer, for chaining.
        """
        if len(buffer) == 0:
            return buffer
        buffer *= self.kernel(len(buffer))
        return buffer

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class HannWindow(Window):
    def kernel(self, M: int) -> np.ndarray:
        return hann(M, periodic=False)


class HammingWindow(Window):
    def kernel(self, M: int) -> np.ndarray:
        return hamming(M, periodic=False)


class BlackmanWindow(Window):
    def kernel(self, M: int) -> np.ndarray:
        return blackman(M, periodic=False)


class RectangularWindow(Window):
    def kernel(self, M: int) -> np.ndarray:
        return rectangular(M)

    def apply(self, buffer: np.ndarray) -> np.ndarray:
        return buffer
