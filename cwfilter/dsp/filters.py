"""Digital filter interface and series composition.

Every filter exposes its transfer function H(z) and a way to filter a
fixed-size buffer. Concrete FIR filters live in :mod:`cwfilter.dsp.fir`,
IIR filters in :mod:`cwfilter.dsp.iir`.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

import numpy as np

from .utils import check_1d_array


class DigitalFilter(ABC):
    """Abstract digital filter acting on fixed-size sample buffers."""

    @abstractmethod
    def transfer(self, z):
        """Evaluate the transfer function H(z).

        Args:
            z: Complex scalar or array of complex values.

        Returns:
            H(z), same shape as z.
        """

    @abstractmethod
    def filter_out(self, x: np.ndarray, out: np.ndarray) -> np.ndarray:
        """Filter x into the preallocated buffer out (same length)."""

    def filter(self, x: np.ndarray) -> np.ndarray:
        """Filter x into a new array.

        Args:
            x: Input signal (1D array). NaN/Inf propagate to the output.

        Returns:
            Filtered signal, same length as x.
        """
        x = check_1d_array(x, allow_nonfinite=True)
        out = np.zeros_like(x)
        return self.filter_out(x, out)

    def filter_replace(self, y: np.ndarray) -> np.ndarray:
        """Filter a float array in place and return it."""
        y[:] = self.filter(y)
        return y

    def filter_errors(self, ey: np.ndarray) -> np.ndarray:
        """Propagate per-sample errors through the filter.

        Filters the squared errors and takes the square root, matching how
        independent error bars combine under a linear filter.
        """
        ey = check_1d_array(ey)
        return np.sqrt(self.filter(ey * ey))

    def impulse(self, n: int, delay: int = 0) -> np.ndarray:
        """Return the response to a unit impulse at index delay.

        Args:
            n: Number of samples.
            delay: Position of the impulse (default: 0).
        """
        if not 0 <= delay < n:
            raise ValueError(f"delay must be in [0, {n}), got {delay}")
        x = np.zeros(n, dtype=float)
        x[delay] = 1.0
        return self.filter(x)

    def response(self, n: int):
        """Sample amplitude, phase and group delay over n frequencies.

        See :func:`cwfilter.dsp.response.frequency_response`.
        """
        from .response import frequency_response

        return frequency_response(self, n)


class _PingPongArena:
    """Two scratch buffers reused between series stages.

    Buffers only grow, so repeated calls on same-size inputs never
    allocate.
    """

    def __init__(self) -> None:
        self._buffers = [np.zeros(0), np.zeros(0)]
        self._current = 0

    def reserve(self, n: int) -> None:
        if len(self._buffers[0]) < n:
            self._buffers = [np.zeros(n), np.zeros(n)]
        self._current = 0

    def front(self, n: int) -> np.ndarray:
        return self._buffers[self._current][:n]

    def back(self, n: int) -> np.ndarray:
        return self._buffers[1 - self._current][:n]

    def swap(self) -> None:
        self._current = 1 - self._current


class FilterSeries(DigitalFilter):
    """Several filters applied one after another.

    An empty series is the identity filter.
    """

    def __init__(self, filters: Optional[Iterable[DigitalFilter]] = None):
        self.series: List[DigitalFilter] = list(filters) if filters is not None else []
        self._arena = _PingPongArena()

    def add(self, f: DigitalFilter) -> "FilterSeries":
        """Append a stage and return self."""
        if not isinstance(f, DigitalFilter):
            raise TypeError(f"Expected DigitalFilter, got {type(f).__name__}")
        self.series.append(f)
        return self

    def __len__(self) -> int:
        return len(self.series)

    def transfer(self, z):
        answer = np.ones_like(np.asarray(z, dtype=complex))
        for f in self.series:
            answer = answer * f.transfer(z)
        if np.ndim(answer) == 0:
            return complex(answer)
        return answer

    def filter_out(self, x: np.ndarray, out: np.ndarray) -> np.ndarray:
        n = len(x)
        if not self.series:
            out[:] = x
            return out

        self._arena.reserve(n)
        src = x
        for f in self.series:
            dst = self._arena.back(n)
            f.filter_out(src, dst)
            self._arena.swap()
            src = self._arena.front(n)

        out[:] = src
        return out
