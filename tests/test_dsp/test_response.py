"""Tests for dsp.response module."""

import numpy as np
import pytest

from cwfilter.dsp.fir import FIRFilter
from cwfilter.dsp.iir import ButterworthFilter, IIRFilter
from cwfilter.dsp.response import (
    AMPLITUDE_BOUNDS,
    AMPLITUDE_FLOOR,
    amplitude_response,
    freqz,
    frequency_response,
    group_delay,
    phase_response,
)


def test_freqz_grid():
    """Test sampling from DC to Nyquist."""
    f, h = freqz(FIRFilter([1.0]), 5)

    np.testing.assert_allclose(f, [0.0, 0.25, 0.5, 0.75, 1.0])
    np.testing.assert_allclose(h, np.ones(5))

    with pytest.raises(ValueError):
        freqz(FIRFilter([1.0]), 1)


@pytest.mark.parametrize("n", [4, 5, 64, 101])
def test_curve_lengths(n):
    """Test trimming counts of the three curves."""
    resp = frequency_response(ButterworthFilter("lowpass", 3, 0.3), n)

    assert len(resp.amplitude) == n
    assert len(resp.phase) == n - 2
    assert len(resp.group_delay) == n - 3
    assert len(resp.phase.x) == len(resp.phase.y)
    assert len(resp.group_delay.x) == len(resp.group_delay.y)


def test_frequency_response_minimum_points():
    """Test that fewer than four samples are rejected."""
    with pytest.raises(ValueError, match="n must be >= 4"):
        frequency_response(FIRFilter([1.0]), 3)


def test_amplitude_natural_log_scale():
    """Test the 10*ln|H| amplitude scale and the zero floor."""
    f = np.array([0.0, 0.5, 1.0])
    h = np.array([1.0, np.e, 0.0])

    curve = amplitude_response(f, h)

    np.testing.assert_allclose(curve.y, [0.0, 10.0, AMPLITUDE_FLOOR])
    assert curve.bounds == AMPLITUDE_BOUNDS


def test_amplitude_of_lowpass():
    """Test that a lowpass hits the floor exactly at Nyquist."""
    resp = frequency_response(FIRFilter([0.5, 0.5]), 9)

    assert resp.amplitude.y[0] == pytest.approx(0.0)
    # 0.5 * z + 0.5 vanishes at z = -1 up to rounding
    assert resp.amplitude.y[-1] < -300


def test_phase_range_and_rounding():
    """Test phases are wrapped into [0, 360) with DC and Nyquist dropped."""
    f = np.linspace(0.0, 1.0, 6)
    h = np.exp(-1j * np.pi * f * 3.0)

    curve = phase_response(f, h)

    np.testing.assert_allclose(curve.x, f[1:-1])
    assert np.all(curve.y >= 0.0)
    assert np.all(curve.y < 360.0)
    np.testing.assert_allclose(curve.y, np.round(curve.y, 6))
    np.testing.assert_allclose(curve.y, (-540.0 * f[1:-1]) % 360.0, atol=1e-6)


def test_group_delay_of_pure_delay():
    """Test that a k-sample delay shows a constant local phase step."""
    n = 33
    k = 3
    # H(z) = z^-k
    filt = IIRFilter(np.eye(k + 1)[k], [1.0])

    curve = frequency_response(filt, n).group_delay

    # Phase falls by 180 k / (n - 1) degrees per frequency step
    np.testing.assert_allclose(curve.y, 180.0 * k / (n - 1), atol=1e-4)
    np.testing.assert_allclose(curve.x, np.linspace(0.0, 1.0, n)[2:-1])


def test_group_delay_curve_direct():
    """Test the local differencing on a hand-made phase sequence."""
    f = np.linspace(0.0, 1.0, 6)
    h = np.exp(-1j * np.deg2rad([0.0, 10.0, 30.0, 60.0, 100.0, 150.0]))

    curve = group_delay(f, h)

    np.testing.assert_allclose(curve.y, [20.0, 30.0, 40.0], atol=1e-6)
