"""Bounded minimization with step hints and error estimates.

Thin layer over ``scipy.optimize.minimize(method="L-BFGS-B")``. Parameters
are rescaled by their step hints before minimization so that variables of
very different magnitude (a frequency known to 1e-5 next to an amplitude
of order one) are conditioned alike.

Standard errors follow the least-squares convention of an error definition
of one unit of cost: sigma_i = sqrt(2 * (H^-1)_ii).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

import numpy as np
from scipy import optimize

from ..logging import get_logger

logger = get_logger(__name__)

Bound = Tuple[Optional[float], Optional[float]]


@dataclass
class BoundedFitResult:
    """Result of :func:`minimize_bounded`.

    Attributes:
        x: Parameters at the minimum.
        errors: Standard error estimate per parameter (NaN if unavailable).
        fun: Objective value at x.
        success: Whether the optimizer reported convergence.
        message: Optimizer status message.
        nit: Number of iterations.
    """

    x: np.ndarray
    errors: np.ndarray
    fun: float
    success: bool
    message: str
    nit: int


def _errors_from_hessian(hess: np.ndarray) -> np.ndarray:
    cov = 2.0 * np.linalg.pinv(hess)
    diag = np.diag(cov)
    with np.errstate(invalid="ignore"):
        return np.where(diag >= 0, np.sqrt(np.abs(diag)), np.nan)


def minimize_bounded(
    fun: Callable[[np.ndarray], float],
    jac: Callable[[np.ndarray], np.ndarray],
    x0: Sequence[float],
    bounds: Sequence[Bound],
    steps: Sequence[float],
    hess: Optional[Callable[[np.ndarray], np.ndarray]] = None,
    verbose: bool = False,
    maxiter: int = 1000,
) -> BoundedFitResult:
    """Minimize fun inside box bounds using its analytic gradient.

    Args:
        fun: Objective f(p) -> float.
        jac: Gradient of fun, returns array of shape (n,).
        x0: Initial parameters, shape (n,).
        bounds: (low, high) per parameter; None means unbounded on that side.
        steps: Positive step hint per parameter, used as its scale.
        hess: Optional Hessian (or Gauss-Newton approximation) used for the
            error estimate. Without it the quasi-Newton inverse Hessian is
            used.
        verbose: Log progress at INFO instead of DEBUG.
        maxiter: Maximum optimizer iterations.

    Returns:
        BoundedFitResult.

    Raises:
        ValueError: If shapes disagree or a step hint is not positive and
            finite.
    """
    x0 = np.asarray(x0, dtype=float)
    steps = np.asarray(steps, dtype=float)
    n = len(x0)
    if len(bounds) != n or len(steps) != n:
        raise ValueError(
            f"x0, bounds and steps must have equal length, got {n}, {len(bounds)}, {len(steps)}"
        )
    if not np.all(np.isfinite(steps)) or np.any(steps <= 0):
        raise ValueError(f"Step hints must be positive and finite, got {steps}")

    level = logging.INFO if verbose else logging.DEBUG

    def to_params(u: np.ndarray) -> np.ndarray:
        return x0 + u * steps

    scaled_bounds = []
    for (lo, hi), s, p0 in zip(bounds, steps, x0):
        scaled_bounds.append(
            (
                None if lo is None else (lo - p0) / s,
                None if hi is None else (hi - p0) / s,
            )
        )

    result = optimize.minimize(
        lambda u: fun(to_params(u)),
        np.zeros(n),
        jac=lambda u: jac(to_params(u)) * steps,
        method="L-BFGS-B",
        bounds=scaled_bounds,
        options={"maxiter": maxiter},
    )

    x = to_params(result.x)

    if hess is not None:
        errors = _errors_from_hessian(np.asarray(hess(x), dtype=float))
    else:
        inv_scaled = np.asarray(result.hess_inv.todense())
        errors = np.sqrt(2.0 * np.abs(np.diag(inv_scaled))) * steps

    logger.log(
        level,
        "L-BFGS-B finished: success=%s nit=%d fun=%.6g (%s)",
        result.success,
        result.nit,
        result.fun,
        result.message,
    )

    return BoundedFitResult(
        x=x,
        errors=errors,
        fun=float(result.fun),
        success=bool(result.success),
        message=str(result.message),
        nit=int(result.nit),
    )
