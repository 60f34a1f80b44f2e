"""Tests for cw.optimizer module."""

import numpy as np
import pytest

from cwfilter.cw.optimizer import BoundedFitResult, minimize_bounded


def _quadratic(center):
    center = np.asarray(center, dtype=float)

    def fun(p):
        return float(np.sum((p - center) ** 2))

    def jac(p):
        return 2.0 * (p - center)

    def hess(p):
        return 2.0 * np.eye(len(center))

    return fun, jac, hess


def test_unconstrained_minimum():
    """Test convergence to an interior minimum."""
    fun, jac, hess = _quadratic([1.5, -2.0, 0.25])

    res = minimize_bounded(
        fun, jac, [0.0, 0.0, 0.0], [(None, None)] * 3, [1.0, 1.0, 1.0], hess=hess
    )

    assert isinstance(res, BoundedFitResult)
    assert res.success
    np.testing.assert_allclose(res.x, [1.5, -2.0, 0.25], atol=1e-4)
    assert res.fun < 1e-7


def test_bounds_are_respected():
    """Test that an active bound pins the parameter."""
    fun, jac, hess = _quadratic([3.0, -1.0])

    res = minimize_bounded(
        fun, jac, [1.0, 0.0], [(0.0, 2.0), (None, None)], [0.1, 1.0], hess=hess
    )

    assert res.x[0] == pytest.approx(2.0, abs=1e-8)
    assert res.x[1] == pytest.approx(-1.0, abs=1e-4)


def test_errors_from_hessian():
    """Test sigma = sqrt(2 * diag(H^-1)) with a supplied Hessian."""
    fun, jac, hess = _quadratic([0.5, 0.5])

    res = minimize_bounded(fun, jac, [0.0, 0.0], [(None, None)] * 2, [1.0, 1.0], hess=hess)

    np.testing.assert_allclose(res.errors, [1.0, 1.0])


def test_errors_from_quasi_newton_inverse():
    """Test the fallback error estimate from the L-BFGS inverse Hessian."""
    fun, jac, _ = _quadratic([2.0])

    res = minimize_bounded(fun, jac, [0.0], [(None, None)], [0.5])

    assert res.errors.shape == (1,)
    assert res.errors[0] == pytest.approx(1.0, rel=1e-3)


def test_validation():
    """Test argument validation."""
    fun, jac, _ = _quadratic([0.0, 0.0])

    with pytest.raises(ValueError, match="equal length"):
        minimize_bounded(fun, jac, [0.0, 0.0], [(None, None)], [1.0, 1.0])
    with pytest.raises(ValueError, match="Step hints"):
        minimize_bounded(fun, jac, [0.0, 0.0], [(None, None)] * 2, [1.0, 0.0])
    with pytest.raises(ValueError, match="Step hints"):
        minimize_bounded(fun, jac, [0.0, 0.0], [(None, None)] * 2, [1.0, np.nan])
