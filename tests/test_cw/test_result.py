"""Tests for cw.result module."""

import numpy as np
import pytest

from cwfilter.cw.result import SineComponent, SineSubtractResult


def _component(freq, amps=(1.0, 2.0), power=0.5):
    n = len(amps)
    return SineComponent(
        freq=freq,
        freq_err=1e-4,
        phases=tuple(0.1 * (i + 1) for i in range(n)),
        phase_errs=(0.01,) * n,
        amps=tuple(amps),
        amp_errs=(0.02,) * n,
        power=power,
    )


def test_component_evaluate():
    """Test evaluating one trace of a component."""
    comp = _component(0.25, amps=(2.0, 3.0))
    x = np.array([0.0, 1.0, 2.0])

    np.testing.assert_allclose(comp.evaluate(x, trace=1), 3.0 * np.sin(0.5 * np.pi * x + 0.2))
    assert comp.ntraces == 2


def test_component_is_frozen():
    """Test that accepted components are immutable."""
    comp = _component(0.1)
    with pytest.raises(AttributeError):
        comp.freq = 0.2


def test_result_views():
    """Test per-trace and per-component views."""
    res = SineSubtractResult()
    res.powers.append(10.0)
    res.add(_component(0.1, amps=(1.0, 2.0), power=4.0))
    res.add(_component(0.3, amps=(3.0, 4.0), power=1.0))

    assert len(res) == 2
    assert res.n_sines == 2
    assert res.n_traces == 2
    assert res.powers == [10.0, 4.0, 1.0]
    np.testing.assert_allclose(res.freqs, [0.1, 0.3])
    np.testing.assert_allclose(res.freq_errs, [1e-4, 1e-4])
    np.testing.assert_allclose(res.amps(1), [2.0, 4.0])
    np.testing.assert_allclose(res.amp_errs(0), [0.02, 0.02])
    np.testing.assert_allclose(res.phases(1), [0.2, 0.2])
    np.testing.assert_allclose(res.phase_errs(1), [0.01, 0.01])


def test_result_append_preserves_order():
    """Test merging two logs."""
    a = SineSubtractResult()
    a.powers.append(5.0)
    a.add(_component(0.1, power=2.0))

    b = SineSubtractResult()
    b.powers.append(2.0)
    b.add(_component(0.2, power=1.0))

    a.append(b)

    np.testing.assert_allclose(a.freqs, [0.1, 0.2])
    assert a.powers == [5.0, 2.0, 2.0, 1.0]


def test_result_append_trace_mismatch():
    """Test that logs over different trace counts cannot be merged."""
    a = SineSubtractResult()
    a.add(_component(0.1, amps=(1.0,)))
    b = SineSubtractResult()
    b.add(_component(0.2, amps=(1.0, 1.0)))

    with pytest.raises(ValueError, match="Cannot merge"):
        a.append(b)


def test_result_clear():
    """Test resetting a log."""
    res = SineSubtractResult()
    res.powers.append(1.0)
    res.add(_component(0.1))

    res.clear()

    assert res.n_sines == 0
    assert res.n_traces == 0
    assert res.powers == []
    assert res.freqs.shape == (0,)
