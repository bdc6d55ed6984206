"""
Gain handling and sample period scaling.
"""

from __future__ import annotations

import pytest

from moat.lib.quickpid import AwMode, DMode, PMode, QuickPID, Var


def _pid(**kw):
    return QuickPID(Var(), Var(), Var(), **kw)


def test_init_set_tunings():  # noqa:D103
    # Set gains
    Kp, Ki, Kd = 1.0, 2.0, 3.0
    # Create controller and get gains
    pid = _pid(Kp=Kp, Ki=Ki, Kd=Kd)
    assert pid.get_gains() == (Kp, Ki, Kd)
    assert pid.get_kp() == Kp
    assert pid.get_ki() == Ki
    assert pid.get_kd() == Kd
    # working gains are scaled by the default 0.1s period
    assert pid.kp == pytest.approx(1.0)
    assert pid.ki == pytest.approx(0.2)
    assert pid.kd == pytest.approx(30.0)


def test_defaults():  # noqa:D103
    pid = _pid()
    assert pid.get_gains() == (0, 0, 0)
    assert pid.get_pmode() == PMode.error
    assert pid.get_dmode() == DMode.meas
    assert pid.get_awmode() == AwMode.condition
    assert pid.get_sample_time_us() == 100000
    assert pid.get_output_limits() == (0, 255)


@pytest.mark.parametrize(
    "gains",
    [(-1.0, 2.0, 3.0), (1.0, -2.0, 3.0), (1.0, 2.0, -3.0)],
    ids="P,I,D".split(","),
)
def test_negative_gains_rejected(gains):  # noqa:D103
    pid = _pid(Kp=1.0, Ki=2.0, Kd=3.0)
    kp, ki, kd = pid.kp, pid.ki, pid.kd

    pid.set_tunings(*gains, pmode=PMode.meas)

    assert pid.get_gains() == (1.0, 2.0, 3.0)
    assert (pid.kp, pid.ki, pid.kd) == (kp, ki, kd)
    # the modes are not touched either
    assert pid.get_pmode() == PMode.error


def test_negative_gains_rejected_on_init():  # noqa:D103
    pid = _pid(Kp=-1.0, Ki=2.0, Kd=3.0, pmode=PMode.both)
    assert pid.get_gains() == (0, 0, 0)
    assert pid.get_pmode() == PMode.error


def test_set_tunings_idempotent():  # noqa:D103
    pid = _pid()
    pid.set_tunings(1.5, 0.7, 0.3)
    first = (pid.kp, pid.ki, pid.kd)
    pid.set_tunings(1.5, 0.7, 0.3)
    assert (pid.kp, pid.ki, pid.kd) == first


def test_set_tunings_keeps_modes():  # noqa:D103
    pid = _pid()
    pid.set_tunings(1, 2, 3, PMode.both, DMode.error, AwMode.clamp)
    assert pid.get_pmode() == PMode.both
    assert pid.get_dmode() == DMode.error
    assert pid.get_awmode() == AwMode.clamp

    pid.set_tunings(4, 5, 6)
    assert pid.get_gains() == (4, 5, 6)
    assert pid.get_pmode() == PMode.both
    assert pid.get_dmode() == DMode.error
    assert pid.get_awmode() == AwMode.clamp


def test_set_tunings_uses_sample_time():  # noqa:D103
    pid = _pid()
    pid.set_sample_time_us(250000)
    pid.set_tunings(2, 4, 1)
    assert pid.ki == pytest.approx(1.0)
    assert pid.kd == pytest.approx(4.0)


def test_sample_time_rescales():  # noqa:D103
    pid = _pid(Kp=1.0, Ki=2.0, Kd=3.0)
    pid.set_sample_time_us(50000)
    assert pid.get_sample_time_us() == 50000
    assert pid.kp == pytest.approx(1.0)
    assert pid.ki == pytest.approx(0.1)
    assert pid.kd == pytest.approx(60.0)
    # display values don't change
    assert pid.get_gains() == (1.0, 2.0, 3.0)


def test_sample_time_round_trip():  # noqa:D103
    pid = _pid(Kp=1.0, Ki=2.0, Kd=3.0)
    ki, kd = pid.ki, pid.kd
    pid.set_sample_time_us(33333)
    pid.set_sample_time_us(1000)
    pid.set_sample_time_us(100000)
    assert pid.ki == pytest.approx(ki, rel=1e-6)
    assert pid.kd == pytest.approx(kd, rel=1e-6)


@pytest.mark.parametrize("period", [0, -100000])
def test_sample_time_rejected(period):  # noqa:D103
    pid = _pid(Kp=1.0, Ki=2.0, Kd=3.0)
    ki, kd = pid.ki, pid.kd
    pid.set_sample_time_us(period)
    assert pid.get_sample_time_us() == 100000
    assert (pid.ki, pid.kd) == (ki, kd)


def test_mode_setters():  # noqa:D103
    pid = _pid()
    pid.set_proportional_mode(PMode.meas)
    pid.set_derivative_mode(DMode.error)
    pid.set_anti_windup_mode(AwMode.off)
    assert pid.get_pmode() == PMode.meas
    assert pid.get_dmode() == DMode.error
    assert pid.get_awmode() == AwMode.off

    # plain integers are accepted
    pid.set_proportional_mode(2)
    assert pid.get_pmode() is PMode.both


def test_bad_mode():  # noqa:D103
    pid = _pid()
    with pytest.raises(ValueError):
        pid.set_proportional_mode(3)
    with pytest.raises(ValueError):
        pid.set_anti_windup_mode(7)
    assert pid.get_pmode() == PMode.error
    assert pid.get_awmode() == AwMode.condition
