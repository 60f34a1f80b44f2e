"""Result log of an iterative sine subtraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np


@dataclass(frozen=True)
class SineComponent:
    """One sinusoid accepted and subtracted by the engine.

    Attributes:
        freq: Shared frequency.
        freq_err: Standard error of freq.
        phases: Phase per trace, in (-π, π].
        phase_errs: Standard error per phase.
        amps: Amplitude per trace.
        amp_errs: Standard error per amplitude.
        power: Mean residual power after subtraction.
    """

    freq: float
    freq_err: float
    phases: Tuple[float, ...]
    phase_errs: Tuple[float, ...]
    amps: Tuple[float, ...]
    amp_errs: Tuple[float, ...]
    power: float

    @property
    def ntraces(self) -> int:
        return len(self.amps)

    def evaluate(self, x: np.ndarray, trace: int = 0) -> np.ndarray:
        """Evaluate this component's sinusoid for one trace at times x."""
        x = np.asarray(x, dtype=float)
        return self.amps[trace] * np.sin(2 * np.pi * self.freq * x + self.phases[trace])


@dataclass
class SineSubtractResult:
    """Ordered log of accepted components and the power trajectory.

    ``powers[0]`` is the power before any subtraction and ``powers[k]`` the
    power after the k-th accepted component.
    """

    components: List[SineComponent] = field(default_factory=list)
    powers: List[float] = field(default_factory=list)

    def add(self, component: SineComponent) -> None:
        self.components.append(component)
        self.powers.append(component.power)

    def append(self, other: "SineSubtractResult") -> None:
        """Merge another log after this one, preserving order."""
        if self.components and other.components:
            if self.n_traces != other.n_traces:
                raise ValueError(
                    f"Cannot merge results with {self.n_traces} and {other.n_traces} traces"
                )
        self.components.extend(other.components)
        self.powers.extend(other.powers)

    def clear(self) -> None:
        self.components.clear()
        self.powers.clear()

    def __len__(self) -> int:
        return len(self.components)

    @property
    def n_sines(self) -> int:
        return len(self.components)

    @property
    def n_traces(self) -> int:
        return self.components[0].ntraces if self.components else 0

    @property
    def freqs(self) -> np.ndarray:
        return np.array([c.freq for c in self.components])

    @property
    def freq_errs(self) -> np.ndarray:
        return np.array([c.freq_err for c in self.components])

    def amps(self, trace: int = 0) -> np.ndarray:
        return np.array([c.amps[trace] for c in self.components])

    def amp_errs(self, trace: int = 0) -> np.ndarray:
        return np.array([c.amp_errs[trace] for c in self.components])

    def phases(self, trace: int = 0) -> np.ndarray:
        return np.array([c.phases[trace] for c in self.components])

    def phase_errs(self, trace: int = 0) -> np.ndarray:
        return np.array([c.phase_errs[trace] for c in self.components])
