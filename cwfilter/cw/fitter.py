"""Joint sinusoid fit across several time-aligned traces.

All traces share one frequency f; each trace t has its own phase and
amplitude:

    model_t(x) = A_t * sin(2π f x + φ_t)

The cost is the mean over traces of the mean squared residual, so one fit
finds the single CW tone that best explains every channel at once.
Parameters are laid out as [f, φ_0, A_0, φ_1, A_1, ...].
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from ..logging import get_logger
from .optimizer import BoundedFitResult, minimize_bounded

logger = get_logger(__name__)


def normalize_angle(phi):
    """Map an angle into (-π, π]."""
    return phi - 2 * np.pi * np.ceil((phi - np.pi) / (2 * np.pi))


class SineFitFn:
    """Cost function, gradient and Gauss-Newton Hessian of the joint fit.

    Data is bound with :meth:`set_xy` and may be rebound between fits with
    a different number of traces or samples.
    """

    def __init__(self):
        self.x = np.zeros((0, 0))
        self.y = np.zeros((0, 0))

    @property
    def ntraces(self) -> int:
        return self.x.shape[0]

    @property
    def nsamples(self) -> int:
        return self.x.shape[1]

    @property
    def ndim(self) -> int:
        return 1 + 2 * self.ntraces

    def set_xy(self, x: np.ndarray, y: np.ndarray) -> None:
        """Bind sample times and values, both shaped (ntraces, nsamples)."""
        x = np.atleast_2d(np.asarray(x, dtype=float))
        y = np.atleast_2d(np.asarray(y, dtype=float))
        if x.shape != y.shape:
            raise ValueError(f"x and y must have equal shape, got {x.shape} and {y.shape}")
        if x.shape[0] == 0 or x.shape[1] == 0:
            raise ValueError(f"Need at least one trace and one sample, got shape {x.shape}")
        self.x = x
        self.y = y

    def _unpack(self, p: np.ndarray):
        p = np.asarray(p, dtype=float)
        if len(p) != self.ndim:
            raise ValueError(f"Expected {self.ndim} parameters, got {len(p)}")
        w = 2 * np.pi * p[0]
        ph = normalize_angle(p[1::2])
        A = p[2::2]
        arg = w * self.x + ph[:, None]
        return A, arg

    def __call__(self, p: np.ndarray) -> float:
        A, arg = self._unpack(p)
        resid = A[:, None] * np.sin(arg) - self.y
        return float(np.mean(resid * resid))

    def gradient(self, p: np.ndarray) -> np.ndarray:
        A, arg = self._unpack(p)
        sin = np.sin(arg)
        cos = np.cos(arg)
        resid = A[:, None] * sin - self.y
        scale = 2.0 / (self.ntraces * self.nsamples)

        grad = np.empty(self.ndim)
        grad[0] = scale * np.sum(resid * A[:, None] * self.x * cos * 2 * np.pi)
        grad[1::2] = scale * np.sum(resid * A[:, None] * cos, axis=1)
        grad[2::2] = scale * np.sum(resid * sin, axis=1)
        return grad

    def hessian(self, p: np.ndarray) -> np.ndarray:
        """Gauss-Newton approximation 2/(nt*ns) * J^T J."""
        A, arg = self._unpack(p)
        sin = np.sin(arg)
        cos = np.cos(arg)
        nt, ns = self.x.shape

        J = np.zeros((nt, ns, self.ndim))
        J[:, :, 0] = A[:, None] * self.x * cos * 2 * np.pi
        for t in range(nt):
            J[t, :, 1 + 2 * t] = A[t] * cos[t]
            J[t, :, 2 + 2 * t] = sin[t]
        J = J.reshape(nt * ns, self.ndim)
        return 2.0 / (nt * ns) * (J.T @ J)


class SineFitter:
    """Fits one shared-frequency sinusoid to several traces.

    One instance is reused across iterations: call :meth:`set_guess` then
    :meth:`do_fit` each time.

    Attributes:
        verbose: Log guesses and results at INFO instead of DEBUG.
    """

    def __init__(self, verbose: bool = False):
        self.fn = SineFitFn()
        self.verbose = verbose
        self.freq = 0.0
        self.freq_err = 0.0
        self.phase = np.zeros(0)
        self.amp = np.zeros(0)
        self.phase_err = np.zeros(0)
        self.amp_err = np.zeros(0)
        self.power = np.nan
        self.last_result: Optional[BoundedFitResult] = None

    def set_guess(self, freq: float, phases: Sequence[float], amps: Sequence[float]) -> None:
        """Set the starting point of the next fit."""
        phases = np.asarray(phases, dtype=float).ravel()
        amps = np.asarray(amps, dtype=float).ravel()
        if len(phases) != len(amps):
            raise ValueError(
                f"phases and amps must have equal length, got {len(phases)} and {len(amps)}"
            )
        self.freq = float(freq)
        self.phase = phases.copy()
        self.amp = amps.copy()
        self.phase_err = np.zeros(len(phases))
        self.amp_err = np.zeros(len(amps))

    def do_fit(self, x: np.ndarray, y: np.ndarray) -> BoundedFitResult:
        """Fit the current guess to samples shaped (ntraces, nsamples).

        The frequency is confined to the guess +/- one bin width
        1/(2 dt nsamples); amplitudes to [0.25, 4] times their guess.

        Raises:
            ValueError: If the data does not match the guess, or an
                amplitude guess is not positive and finite.
        """
        self.fn.set_xy(x, y)
        nt, ns = self.fn.x.shape
        if nt != len(self.amp):
            raise ValueError(f"Guess has {len(self.amp)} traces but data has {nt}")
        if ns < 2:
            raise ValueError(f"Need at least 2 samples per trace, got {ns}")
        if not np.all(np.isfinite(self.amp)) or np.any(self.amp <= 0):
            raise ValueError(f"Amplitude guesses must be positive and finite, got {self.amp}")

        level = logging.INFO if self.verbose else logging.DEBUG

        p0 = np.empty(self.fn.ndim)
        p0[0] = self.freq
        p0[1::2] = self.phase
        p0[2::2] = self.amp

        logger.log(
            level,
            "Guesses: f=%g A=%s ph=%s power=%g",
            self.freq,
            np.array2string(self.amp, precision=6),
            np.array2string(self.phase, precision=6),
            self.fn(p0),
        )

        xs = self.fn.x
        dt = (xs[0, -1] - xs[0, 0]) / (ns - 1)
        fnyq = 1.0 / (2 * dt)
        df = fnyq / ns

        bounds = [(self.freq - df, self.freq + df)]
        steps = [df / 10.0]
        for t in range(nt):
            bounds.append((None, None))
            steps.append(np.pi / ns)
            bounds.append((0.25 * self.amp[t], 4.0 * self.amp[t]))
            steps.append(1.0 / np.sqrt(self.amp[t]))

        result = minimize_bounded(
            self.fn,
            self.fn.gradient,
            p0,
            bounds,
            steps,
            hess=self.fn.hessian,
            verbose=self.verbose,
        )

        self.freq = float(result.x[0])
        self.freq_err = float(result.errors[0])
        self.phase = normalize_angle(result.x[1::2])
        self.amp = result.x[2::2].copy()
        self.phase_err = result.errors[1::2].copy()
        self.amp_err = result.errors[2::2].copy()
        self.power = result.fun
        self.last_result = result

        logger.log(
            level,
            "Fit: f=%g+/-%g A=%s power=%g",
            self.freq,
            self.freq_err,
            np.array2string(self.amp, precision=6),
            self.power,
        )
        return result
