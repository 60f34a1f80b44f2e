"""Iterative CW (continuous-wave) interference removal.

Each iteration finds the strongest remaining spectral peak across all
traces, fits a shared-frequency sinusoid to it with :class:`SineFitter` and,
if the fit removes enough power, subtracts it from every trace. Bins whose
fits fail are demoted (never excluded) on later iterations. The loop ends
only after too many consecutive failed attempts.

Example:
    >>> engine = SineSubtract(maxiter=10, min_power_reduction=0.02)
    >>> result = engine.subtract_cw([trace_a, trace_b], dt=0.5)
    >>> result.freqs
"""

from __future__ import annotations

import dataclasses
import logging
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..dsp.utils import interpolate_uniform, next_pow2
from ..dsp.windows import Window
from ..logging import get_logger
from .fitter import SineFitter
from .result import SineComponent, SineSubtractResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class SineSubtractConfig:
    """Settings of a :class:`SineSubtract` engine.

    Attributes:
        maxiter: Consecutive failed attempts tolerated; the loop stops on
            failure number maxiter + 1.
        min_power_reduction: Minimum fractional power drop for a fit to be
            accepted. Must be positive.
        neighbor_factor: A bin is a peak candidate only if
            power * neighbor_factor exceeds both neighbours.
        tmin: First sample index of the analysis range.
        tmax: One past the last sample index; <= 0 means the end.
        fmin: Lowest searched frequency; <= 0 means no limit.
        fmax: Highest searched frequency; <= 0 means no limit.
        verbose: Log iterations at INFO instead of DEBUG.
    """

    maxiter: int = 3
    min_power_reduction: float = 0.05
    neighbor_factor: float = 1.0
    tmin: int = 0
    tmax: int = 0
    fmin: float = 0.0
    fmax: float = 0.0
    verbose: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.maxiter, (int, np.integer)) or self.maxiter < 0:
            raise ValueError(f"maxiter must be a non-negative integer, got {self.maxiter}.")
        if not np.isfinite(self.min_power_reduction) or self.min_power_reduction <= 0:
            raise ValueError(
                f"min_power_reduction must be positive and finite, got {self.min_power_reduction}."
            )
        if not np.isfinite(self.neighbor_factor) or self.neighbor_factor <= 0:
            raise ValueError(f"neighbor_factor must be positive, got {self.neighbor_factor}.")
        if self.fmin > 0 and self.fmax > 0 and self.fmin > self.fmax:
            raise ValueError(f"fmin ({self.fmin}) must not exceed fmax ({self.fmax}).")


class SineSubtract:
    """CW removal engine.

    Args:
        maxiter: See :class:`SineSubtractConfig`.
        min_power_reduction: See :class:`SineSubtractConfig`.
        window: Window applied before each FFT (default: none).
        store: Keep per-iteration snapshots of traces, spectra and FFT
            phases in ``traces``, ``spectra`` and ``fft_phases``.
        config: Full configuration; overrides maxiter and
            min_power_reduction when given.
    """

    def __init__(
        self,
        maxiter: int = 3,
        min_power_reduction: float = 0.05,
        window: Optional[Window] = None,
        store: bool = False,
        config: Optional[SineSubtractConfig] = None,
    ):
        if config is None:
            config = SineSubtractConfig(maxiter=maxiter, min_power_reduction=min_power_reduction)
        self.config = config
        self.window = window
        self.store = store
        self.fitter = SineFitter(verbose=config.verbose)
        self.result = SineSubtractResult()
        self.traces: List[List[np.ndarray]] = []
        self.spectra: List[Tuple[np.ndarray, np.ndarray]] = []
        self.fft_phases: List[List[np.ndarray]] = []
        self.nattempts = 0

    def configure(self, **changes) -> SineSubtractConfig:
        """Replace configuration fields, re-validating the result."""
        self.config = dataclasses.replace(self.config, **changes)
        self.fitter.verbose = self.config.verbose
        return self.config

    def set_time_window(self, tmin: int = 0, tmax: int = 0) -> None:
        self.configure(tmin=tmin, tmax=tmax)

    def set_freq_limits(self, fmin: float = 0.0, fmax: float = 0.0) -> None:
        self.configure(fmin=fmin, fmax=fmax)

    @property
    def n_sines(self) -> int:
        return self.result.n_sines

    def reset(self) -> None:
        """Drop the result log and any stored snapshots."""
        self.result = SineSubtractResult()
        self.traces = []
        self.spectra = []
        self.fft_phases = []
        self.nattempts = 0

    @staticmethod
    def _validate(ys, xs, dt: float) -> Tuple[List[np.ndarray], np.ndarray]:
        if isinstance(ys, np.ndarray) and ys.ndim == 1:
            ys = [ys]
        traces = list(ys)
        if not traces:
            raise ValueError("At least one trace is required")

        for i, y in enumerate(traces):
            if not isinstance(y, np.ndarray) or y.dtype != np.float64 or y.ndim != 1:
                raise TypeError(
                    f"Trace {i} must be a 1D float64 numpy array (it is modified in place)"
                )
            if not y.flags.writeable:
                raise ValueError(f"Trace {i} is read-only")

        n = len(traces[0])
        if any(len(y) != n for y in traces):
            raise ValueError(f"All traces must have equal length, got {[len(y) for y in traces]}")
        if n < 2:
            raise ValueError(f"Traces need at least 2 samples, got {n}")

        if xs is None:
            step = dt if dt > 0 else 1.0
            times = np.tile(step * np.arange(n, dtype=float), (len(traces), 1))
        else:
            times = np.atleast_2d(np.asarray(xs, dtype=float))
            if times.shape[0] == 1 and len(traces) > 1:
                times = np.tile(times, (len(traces), 1))
            if times.shape != (len(traces), n):
                raise ValueError(
                    f"Time axes must have shape {(len(traces), n)}, got {times.shape}"
                )
        return traces, times

    def _sample_range(self, n: int) -> Tuple[int, int]:
        low = self.config.tmin if 0 <= self.config.tmin < n else 0
        high = self.config.tmax if 0 < self.config.tmax <= n else n
        if high - low < 2:
            raise ValueError(f"Sample range [{low}, {high}) holds fewer than 2 samples")
        return low, high

    def _transform(
        self, x: np.ndarray, y: np.ndarray, dt: float, resample: bool, nfft: int
    ) -> np.ndarray:
        segment = y.copy()
        if resample:
            _, segment = interpolate_uniform(x, segment, dt)
        if self.window is not None:
            self.window.apply(segment)
        return np.fft.rfft(segment, n=nfft)

    def _search_mask(self, nbins: int, dt: float, nfft: int) -> np.ndarray:
        """Bins within [fmin, fmax], with half a bin of tolerance."""
        freqs = np.arange(nbins) / (dt * nfft)
        half_bin = 0.5 / (dt * nfft)

        in_range = np.ones(nbins, dtype=bool)
        if self.config.fmin > 0:
            in_range &= freqs + half_bin >= self.config.fmin
        if self.config.fmax > 0:
            in_range &= freqs - half_bin <= self.config.fmax
        if not np.any(in_range):
            raise ValueError(
                f"No FFT bin lies within [{self.config.fmin}, {self.config.fmax}]"
            )
        return in_range

    def _select_bin(self, mag2: np.ndarray, failed: Counter, dt: float, nfft: int) -> int:
        """Strongest prominent bin, with failed bins demoted."""
        nbins = len(mag2)
        in_range = self._search_mask(nbins, dt, nfft)

        fails = np.array([failed[i] for i in range(nbins)], dtype=float)
        adjusted = mag2 / (1.0 + fails)

        neighbours = np.full(nbins, -np.inf)
        neighbours[1:] = np.maximum(neighbours[1:], mag2[:-1])
        neighbours[:-1] = np.maximum(neighbours[:-1], mag2[1:])
        prominent = mag2 * self.config.neighbor_factor > neighbours

        candidates = in_range & prominent
        if not np.any(candidates):
            return int(np.flatnonzero(in_range)[0])
        return int(np.argmax(np.where(candidates, adjusted, -np.inf)))

    def subtract_cw(self, ys, dt: float = 0.0, xs=None) -> SineSubtractResult:
        """Remove CW components from one or more traces in place.

        Each trace has its mean over the whole buffer removed first, even
        when ``tmin``/``tmax`` restrict the analysed window, and each
        accepted sine is subtracted from the whole buffer too. Traces that
        are silent at the chosen bin keep a zero amplitude for that
        component and are left out of its fit.

        Args:
            ys: Sequence of 1D float64 arrays of equal length (or a single
                array, or a 2D array whose rows are traces). Modified in place.
            dt: Uniform sample spacing. When positive and xs is given, each
                analysed segment is resampled to this spacing before its FFT.
                When not positive, the spacing of the time axis is used.
            xs: Optional sample times, one row per trace (or one shared row).
                Defaults to dt * arange(n).

        Returns:
            The accumulated SineSubtractResult (also kept as ``result``).

        Raises:
            ValueError: On empty or mismatched input.
            TypeError: If a trace is not a float64 numpy array.
        """
        traces, times = self._validate(ys, xs, dt)
        self.reset()
        cfg = self.config
        level = logging.INFO if cfg.verbose else logging.DEBUG

        ntraces = len(traces)
        low, high = self._sample_range(len(traces[0]))
        nuse = high - low
        nfft = next_pow2(2 * (nuse - 1))
        resample = dt > 0 and xs is not None
        real_dt = dt if dt > 0 else times[0, 1] - times[0, 0]
        if not real_dt > 0:
            raise ValueError(f"Sample spacing must be positive, got {real_dt}")
        self._search_mask(nfft // 2 + 1, real_dt, nfft)

        power = 0.0
        for y in traces:
            y -= y.mean()
            power += float(np.sum(y[low:high] ** 2))
        power /= nuse * ntraces
        self.result.powers.append(power)

        if self.store:
            self.traces = [[y.copy()] for y in traces]
            self.fft_phases = [[] for _ in traces]

        if power == 0:
            logger.info("Input has no power after removing the mean; nothing to subtract")
            return self.result

        failed: Counter = Counter()
        nfail = 0

        while True:
            self.nattempts += 1

            ffts = np.array(
                [
                    self._transform(x[low:high], y[low:high], real_dt, resample, nfft)
                    for x, y in zip(times, traces)
                ]
            )
            mag2 = np.sum(np.abs(ffts) ** 2, axis=0)

            peak = self._select_bin(mag2, failed, real_dt, nfft)
            guess_f = peak / (real_dt * nfft)
            guess_amp = 2 * np.abs(ffts[:, peak]) / nfft
            live = np.isfinite(guess_amp) & (guess_amp > 0)

            fit_x = times[:, low:high]
            fit_y = np.array([y[low:high] for y in traces])
            freq, freq_err = guess_f, 0.0
            phases = np.zeros(ntraces)
            phase_errs = np.zeros(ntraces)
            amps = np.zeros(ntraces)
            amp_errs = np.zeros(ntraces)
            # Traces silent at this bin keep a zero amplitude and stay out of the fit.
            residual = np.mean(fit_y[~live] ** 2, axis=1)
            if np.any(live):
                self.fitter.set_guess(guess_f, np.angle(ffts[live, peak]), guess_amp[live])
                self.fitter.do_fit(fit_x[live], fit_y[live])
                freq, freq_err = self.fitter.freq, self.fitter.freq_err
                phases[live] = self.fitter.phase
                phase_errs[live] = self.fitter.phase_err
                amps[live] = self.fitter.amp
                amp_errs[live] = self.fitter.amp_err
                new_power = (self.fitter.power * np.count_nonzero(live) + residual.sum()) / ntraces
            else:
                new_power = self.result.powers[-1]

            previous = self.result.powers[-1]
            ratio = 1.0 - new_power / previous if previous > 0 else 0.0
            accepted = ratio >= cfg.min_power_reduction

            logger.log(
                level,
                "Attempt %d: bin %d (f=%g, %d/%d traces fitted) ratio=%.6g %s",
                self.nattempts,
                peak,
                freq,
                np.count_nonzero(live),
                ntraces,
                ratio,
                "accepted" if accepted else "rejected",
            )

            if self.store and (accepted or nfail == cfg.maxiter):
                self._store_spectrum(ffts, mag2, real_dt, nfft)

            if not accepted:
                failed[peak] += 1
                nfail += 1
                if nfail > cfg.maxiter:
                    break
                continue

            nfail = 0
            for t, (x, y) in enumerate(zip(times, traces)):
                y -= amps[t] * np.sin(2 * np.pi * freq * x + phases[t])
                if self.store:
                    self.traces[t].append(y.copy())

            self.result.add(
                SineComponent(
                    freq=freq,
                    freq_err=freq_err,
                    phases=tuple(float(v) for v in phases),
                    phase_errs=tuple(float(v) for v in phase_errs),
                    amps=tuple(float(v) for v in amps),
                    amp_errs=tuple(float(v) for v in amp_errs),
                    power=float(new_power),
                )
            )

        logger.info(
            "Subtracted %d sines in %d attempts; power %.6g -> %.6g",
            self.result.n_sines,
            self.nattempts,
            self.result.powers[0],
            self.result.powers[-1],
        )
        return self.result

    def _store_spectrum(
        self, ffts: np.ndarray, mag2: np.ndarray, dt: float, nfft: int
    ) -> None:
        freqs = np.arange(len(mag2)) / (dt * nfft)
        spectrum = mag2 / nfft / ffts.shape[0]
        spectrum[1:-1] *= 2
        self.spectra.append((freqs, spectrum))
        for t in range(ffts.shape[0]):
            self.fft_phases[t].append(np.angle(ffts[t]))

    def subtract_cw_single(self, y: np.ndarray, dt: float = 0.0, x=None) -> np.ndarray:
        """Return a CW-subtracted copy of a single trace."""
        cleaned = np.array(y, dtype=float, copy=True)
        self.subtract_cw([cleaned], dt=dt, xs=None if x is None else [x])
        return cleaned
