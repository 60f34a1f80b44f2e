"""Tests for dsp.iir module."""

import numpy as np
import pytest

from cwfilter.dsp.iir import (
    ButterworthFilter,
    ChebyshevIFilter,
    IIRFilter,
    RCFilter,
    lfilter,
)
from cwfilter.dsp.zpk import FilterTopology


def test_lfilter_fir_case():
    """Test that a = [1] reduces to a causal FIR."""
    x = np.array([1.0, 2.0, 3.0, 4.0])
    y = lfilter([1.0, 1.0], [1.0], x)
    np.testing.assert_allclose(y, [1.0, 3.0, 5.0, 7.0])


def test_lfilter_recursive():
    """Test a one-pole recursion y[j] = x[j] + 0.5 y[j-1]."""
    x = np.zeros(5)
    x[0] = 1.0
    y = lfilter([1.0], [1.0, -0.5], x)
    np.testing.assert_allclose(y, 0.5 ** np.arange(5))


def test_lfilter_normalizes_by_a0():
    """Test that a[0] divides every output."""
    x = np.array([2.0, 4.0, 6.0])
    y = lfilter([1.0], [2.0], x)
    np.testing.assert_allclose(y, [1.0, 2.0, 3.0])


def test_lfilter_errors():
    """Test lfilter error handling."""
    with pytest.raises(ValueError, match="leading coefficient"):
        lfilter([1.0], [0.0, 1.0], np.ones(3))
    with pytest.raises(ValueError, match="Output length"):
        lfilter([1.0], [1.0], np.ones(3), out=np.zeros(2))


def test_iir_causality(rng):
    """Test that output j does not depend on inputs after j."""
    filt = ButterworthFilter(FilterTopology.LOWPASS, 4, 0.2)
    x = rng.normal(size=64)
    y = filt.filter(x)

    for j in [0, 10, 31, 62]:
        x2 = x.copy()
        x2[j + 1 :] = rng.normal(size=len(x) - j - 1)
        y2 = filt.filter(x2)
        np.testing.assert_array_equal(y2[: j + 1], y[: j + 1])


def test_iir_filter_matches_transfer_at_steady_state():
    """Test that a sinusoid is scaled by |H| after transients decay."""
    filt = ButterworthFilter("lowpass", 2, 0.3)
    w = 0.1 * np.pi
    n = np.arange(400)

    y = filt.filter(np.cos(w * n)) + 1j * filt.filter(np.sin(w * n))

    h = filt.transfer(np.exp(1j * w))
    np.testing.assert_allclose(y[300:], h * np.exp(1j * w * n[300:]), atol=1e-8)


def test_iir_filter_validation():
    """Test coefficient validation."""
    with pytest.raises(ValueError):
        IIRFilter([], [1.0])
    with pytest.raises(ValueError, match="leading coefficient"):
        IIRFilter([1.0], [0.0])


def test_iir_set_coefficients():
    """Test replacing coefficients on an existing filter."""
    filt = IIRFilter([1.0], [1.0])
    filt.set_coefficients([0.5, 0.5], [1.0])

    assert filt.order == 1
    assert filt.transfer(1.0) == pytest.approx(1.0)
    assert abs(filt.transfer(-1.0)) < 1e-12


@pytest.mark.parametrize("order", [1, 2, 3, 5])
def test_butterworth_lowpass_dc_gain(order):
    """Test unit DC gain and zero Nyquist gain."""
    filt = ButterworthFilter(FilterTopology.LOWPASS, order, 0.25)

    assert len(filt.b) == order + 1
    assert len(filt.a) == order + 1
    assert filt.transfer(1.0) == pytest.approx(1.0, abs=1e-9)
    assert abs(filt.transfer(-1.0)) < 1e-9


def test_butterworth_half_power_at_cutoff():
    """Test |H|^2 = 1/2 at the cutoff frequency."""
    w = 0.3
    filt = ButterworthFilter(FilterTopology.LOWPASS, 4, w)
    h = filt.transfer(np.exp(1j * np.pi * w))
    assert abs(h) ** 2 == pytest.approx(0.5, abs=1e-9)


def test_butterworth_highpass():
    """Test highpass blocks DC and passes Nyquist."""
    filt = ButterworthFilter(FilterTopology.HIGHPASS, 4, 0.3)

    assert abs(filt.transfer(1.0)) < 1e-9
    assert abs(filt.transfer(-1.0)) == pytest.approx(1.0, abs=1e-9)


def test_butterworth_bandpass():
    """Test bandpass doubles the order and blocks both ends."""
    order = 3
    w, dw = 0.4, 0.1
    filt = ButterworthFilter(FilterTopology.BANDPASS, order, w, dw)

    assert len(filt.a) == 2 * order + 1
    assert len(filt.digital.poles) == 2 * order
    assert abs(filt.transfer(1.0)) < 1e-9
    assert abs(filt.transfer(-1.0)) < 1e-9

    # Unit gain at the geometric centre of the prewarped band
    Wh = np.tan(np.pi * (w + dw) / 2)
    Wl = np.tan(np.pi * (w - dw) / 2)
    wc = 2 * np.arctan(np.sqrt(Wh * Wl)) / np.pi
    assert abs(filt.transfer(np.exp(1j * np.pi * wc))) == pytest.approx(1.0, abs=1e-9)


def test_butterworth_notch():
    """Test notch passes both ends and blocks the centre."""
    w, dw = 0.4, 0.1
    filt = ButterworthFilter(FilterTopology.NOTCH, 2, w, dw)

    assert abs(filt.transfer(1.0)) == pytest.approx(1.0, abs=1e-9)
    assert abs(filt.transfer(-1.0)) == pytest.approx(1.0, abs=1e-9)

    Wh = np.tan(np.pi * (w + dw) / 2)
    Wl = np.tan(np.pi * (w - dw) / 2)
    wc = 2 * np.arctan(np.sqrt(Wh * Wl)) / np.pi
    assert abs(filt.transfer(np.exp(1j * np.pi * wc))) < 1e-6


@pytest.mark.parametrize("order, expected", [(3, 1.0), (4, 10.0 ** (-1.0 / 20.0))])
def test_chebyshev_dc_gain(order, expected):
    """Test DC gain: unity for odd orders, ripple-attenuated for even."""
    filt = ChebyshevIFilter(FilterTopology.LOWPASS, order, 1.0, 0.2)
    assert filt.transfer(1.0) == pytest.approx(expected, abs=1e-9)


def test_rc_filter():
    """Test first-order RC lowpass and highpass."""
    lp = RCFilter("lowpass", 0.1)
    hp = RCFilter("highpass", 0.1)

    assert lp.order == 1
    assert lp.transfer(1.0) == pytest.approx(1.0)
    assert abs(hp.transfer(1.0)) < 1e-12
    assert abs(hp.transfer(-1.0)) == pytest.approx(1.0)

    # Step response of the lowpass settles to one
    y = lp.filter(np.ones(500))
    assert y[-1] == pytest.approx(1.0, abs=1e-6)


def test_transformed_filter_keeps_design():
    """Test that the analog and digital designs stay inspectable."""
    filt = ChebyshevIFilter("highpass", 3, 0.5, 0.4)

    assert filt.topology is FilterTopology.HIGHPASS
    assert len(filt.analog.poles) == 3
    assert len(filt.digital.zeros) == len(filt.digital.poles) == 3
    # Highpass zeros sit at DC after the bilinear transform
    np.testing.assert_allclose(filt.digital.zeros, 1.0, atol=1e-12)


def test_transformed_filter_errors():
    """Test design error handling."""
    with pytest.raises(ValueError, match="Order must be positive"):
        ButterworthFilter("lowpass", 0, 0.2)
    with pytest.raises(ValueError, match="w must be in"):
        ButterworthFilter("lowpass", 2, 1.2)
    with pytest.raises(ValueError, match="nonzero bandwidth"):
        ButterworthFilter("bandpass", 2, 0.3)
    with pytest.raises(ValueError):
        ButterworthFilter("allpass", 2, 0.3)
