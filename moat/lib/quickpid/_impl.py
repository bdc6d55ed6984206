#
# Based on the QuickPID Arduino library by dlloydev,
# itself derived from the Arduino PID_v1 library.
#
# Adapted for MoaT.
#

from __future__ import annotations

import logging
import time

from moat.util import NotGiven

from .const import Action, AwMode, Control, DMode, PMode

from collections.abc import MutableMapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import EllipsisType

    from collections.abc import Callable
    from typing import Any

    Clock = Callable[[], int]

__all__ = ["OUT_MAX", "OUT_MIN", "SAMPLE_US", "Attr", "QuickPID", "Var", "ticks_diff", "ticks_us"]

logger = logging.getLogger(__name__)

OUT_MIN = 0  # default output range, same as an 8-bit PWM
OUT_MAX = 255
SAMPLE_US = 100000


def ticks_us() -> int:
    "return a monotonic timer, in microseconds"
    return time.monotonic_ns() // 1000


def ticks_diff(a: int, b: int, bits: int | None = None) -> int:
    """
    Returns a-b.

    If @bits is set, the tick counter wraps at ``2**bits``; the result is
    then the (non-negative) distance from @b forward to @a.
    """
    if bits is None:
        return a - b
    return (a - b) & ((1 << bits) - 1)


def _clamp(val: float, lower: float, upper: float) -> float:
    return min(max(val, lower), upper)


class Var:
    """
    A process value that's shared between a controller and its owner.

    The owner writes the controller's input and setpoint; the controller
    writes its output.
    """

    __slots__ = ("value",)

    def __init__(self, value: float = 0.0):
        self.value = value

    def __float__(self):
        return float(self.value)

    def __repr__(self):
        return f"{self.__class__.__name__}({self.value!r})"


class Attr:
    """
    Links an attribute of some other object, or an entry of a mapping, so
    that it can be used like a `Var`.

    This is how a state `attrdict` can hold a controller's process values.
    """

    __slots__ = ("_name", "_obj")

    def __init__(self, obj: Any, name: str):
        self._obj = obj
        self._name = name

    @property
    def value(self) -> float:  # noqa: D102
        if isinstance(self._obj, MutableMapping):
            return self._obj[self._name]
        return getattr(self._obj, self._name)

    @value.setter
    def value(self, val: float):
        if isinstance(self._obj, MutableMapping):
            self._obj[self._name] = val
        else:
            setattr(self._obj, self._name, val)

    def __float__(self):
        return float(self.value)

    def __repr__(self):
        return f"{self.__class__.__name__}({self._obj!r}, {self._name!r})"


class QuickPID:
    """
    A sampled PID controller that's linked to its input, output and setpoint.

    The controller starts out in manual mode. Switch it to automatic (or
    timer) mode with `set_mode`, then call `compute` periodically.

    The integral and derivative gains are stored pre-scaled by the sample
    period, so changing the period via `set_sample_time_us` doesn't change
    the controller's continuous-time behavior.
    """

    input: Var | Attr  # measured value, written by the owner
    output: Var | Attr  # controller output, written by us
    setpoint: Var | Attr  # target value, written by the owner

    mode: Control = Control.manual
    action: Action = Action.direct
    pmode: PMode = PMode.error
    dmode: DMode = DMode.meas
    awmode: AwMode = AwMode.condition

    disp_kp: float = 0.0  # gains as configured
    disp_ki: float = 0.0
    disp_kd: float = 0.0

    kp: float = 0.0  # gains as used
    ki: float = 0.0
    kd: float = 0.0

    p_term: float = 0.0  # last computed terms
    i_term: float = 0.0
    d_term: float = 0.0

    lower: float  # lower output limit
    upper: float  # upper output limit
    sample_time_us: int = SAMPLE_US

    output_sum: float = 0.0  # integral sum
    last_error: float = 0.0
    last_input: float = 0.0
    last_time: int = 0

    def __init__(
        self,
        input: Var | Attr,  # noqa: A002
        output: Var | Attr,
        setpoint: Var | Attr,
        Kp: float = 0.0,
        Ki: float = 0.0,
        Kd: float = 0.0,
        pmode: PMode = PMode.error,
        dmode: DMode = DMode.meas,
        awmode: AwMode = AwMode.condition,
        action: Action = Action.direct,
        clock: Clock | None = None,
        clock_bits: int | None = None,
    ):
        """
        Args:
            input: the measured process value.
            output: the controller's output.
            setpoint: the desired process value.
            Kp: proportional gain.
            Ki: integral gain, per second.
            Kd: derivative gain, in seconds.
            pmode: compute the proportional term on error, measurement, or both.
            dmode: compute the derivative term on error or measurement.
            awmode: integral anti-windup method.
            action: direct or reverse acting process.
            clock: returns the current time in microseconds.
                Without a clock, automatic mode computes on every call.
            clock_bits: the clock wraps around at ``2**clock_bits``.
        """
        self.input = input
        self.output = output
        self.setpoint = setpoint
        self._clock = clock
        self._clock_bits = clock_bits

        self.set_output_limits(OUT_MIN, OUT_MAX)
        self.set_controller_direction(action)
        self.set_tunings(Kp, Ki, Kd, pmode, dmode, awmode)

        if clock is not None:
            self.last_time = clock() - self.sample_time_us

    def __call__(self) -> bool:
        return self.compute()

    def compute(self) -> bool:
        """
        Run a PID step if one is due.

        Returns:
            whether the output has been recalculated.
        """
        mode = self.mode
        if mode == Control.manual:
            return False

        now = None
        if (clock := self._clock) is not None:
            now = clock()
            if (
                mode == Control.automatic
                and ticks_diff(now, self.last_time, self._clock_bits) < self.sample_time_us
            ):
                return False

        inp = self.input.value
        d_input = inp - self.last_input
        error = self.setpoint.value - inp
        if self.action == Action.reverse:
            d_input = -d_input
            error = -error
        d_error = error - self.last_error

        pe_term = self.kp * error
        pm_term = self.kp * d_input
        match self.pmode:
            case PMode.error:
                pm_term = 0.0
            case PMode.meas:
                pe_term = 0.0
            case PMode.both:
                pe_term *= 0.5
                pm_term *= 0.5
        self.p_term = pe_term - pm_term

        i_term = self.ki * error

        match self.dmode:
            case DMode.error:
                d_term = self.kd * d_error
            case DMode.meas:
                d_term = -self.kd * d_input
            case _:  # pragma: no cover
                raise RuntimeError(f"Unknown derivative mode {self.dmode!r}")
        self.d_term = d_term

        lower, upper = self.lower, self.upper
        match self.awmode:
            case AwMode.condition:
                # only limit the integral if it'd drive the output further into saturation
                i_term_out = (pe_term - pm_term) + self.ki * (i_term + error)
                if (i_term_out > upper and d_error > 0) or (i_term_out < lower and d_error < 0):
                    if self.ki:
                        i_term = _clamp(i_term_out, -upper, upper)
            case AwMode.clamp | AwMode.off:
                pass
        self.i_term = i_term

        self.output_sum += i_term
        if self.awmode == AwMode.off:
            self.output_sum -= pm_term
        else:
            self.output_sum = _clamp(self.output_sum - pm_term, lower, upper)
        self.output.value = _clamp(self.output_sum + pe_term + d_term, lower, upper)

        self.last_error = error
        self.last_input = inp
        if now is not None:
            self.last_time = now
        return True

    def set_mode(self, mode: Control, clock: Clock | None | EllipsisType = NotGiven) -> None:
        """
        Set the controller mode.

        Switching from manual to automatic or timer mode initializes the
        controller so that the output doesn't jump.

        Args:
            mode: the new mode.
            clock: a new time source. ``None`` removes the current one;
                if not given, the current one is kept.
        """
        mode = Control(mode)
        if self.mode == Control.manual and mode != Control.manual:
            self._initialize()
        if mode != self.mode:
            logger.debug("Mode %s > %s", self.mode.name, mode.name)
        self.mode = mode

        if clock is not NotGiven:
            self._clock = clock
            if clock is not None and mode == Control.automatic:
                # the next step is due right away
                self.last_time = clock() - self.sample_time_us

    def _initialize(self) -> None:
        """
        Bumpless transfer: start the integral sum at the current output.
        """
        self.output_sum = _clamp(self.output.value, self.lower, self.upper)
        self.last_input = self.input.value
        logger.debug("Init: sum=%s input=%s", self.output_sum, self.last_input)

    def set_tunings(
        self,
        Kp: float,
        Ki: float,
        Kd: float,
        pmode: PMode | None = None,
        dmode: DMode | None = None,
        awmode: AwMode | None = None,
    ) -> None:
        """Set controller gains, and optionally the computation modes.

        Negative gains are ignored.

        Args:
            Kp: Proportional gain.
            Ki: Integral gain, per second.
            Kd: Derivative gain, in seconds.
            pmode: Proportional mode. ``None`` keeps the current mode.
            dmode: Derivative mode. ``None`` keeps the current mode.
            awmode: Anti-windup mode. ``None`` keeps the current mode.

        """
        if Kp < 0 or Ki < 0 or Kd < 0:
            logger.debug("Tunings rejected: %r %r %r", Kp, Ki, Kd)
            return

        pmode = self.pmode if pmode is None else PMode(pmode)
        dmode = self.dmode if dmode is None else DMode(dmode)
        awmode = self.awmode if awmode is None else AwMode(awmode)
        self.pmode, self.dmode, self.awmode = pmode, dmode, awmode

        self.disp_kp, self.disp_ki, self.disp_kd = Kp, Ki, Kd
        sample_s = self.sample_time_us / 1000000
        self.kp = Kp
        self.ki = Ki * sample_s
        self.kd = Kd / sample_s

    def set_sample_time_us(self, sample_time_us: int) -> None:
        """
        Set the sample period, in microseconds.

        The working gains are rescaled. Non-positive values are ignored.
        """
        if sample_time_us <= 0:
            logger.debug("Sample time rejected: %r", sample_time_us)
            return
        ratio = sample_time_us / self.sample_time_us
        self.ki *= ratio
        self.kd /= ratio
        self.sample_time_us = sample_time_us

    def set_output_limits(self, lower: float, upper: float) -> None:
        """Set the output range.

        Unless in manual mode, the output and the integral sum are
        clamped to the new range immediately.

        Args:
            lower: Lower limit of the output.
            upper: Upper limit of the output; must exceed @lower.

        """
        if lower >= upper:
            logger.debug("Output limits rejected: %r %r", lower, upper)
            return
        self.lower = lower
        self.upper = upper

        if self.mode != Control.manual:
            self.output.value = _clamp(self.output.value, lower, upper)
            self.output_sum = _clamp(self.output_sum, lower, upper)

    def set_controller_direction(self, action: Action) -> None:
        "Direct: the output increases when the error is positive. Reverse: the opposite."
        self.action = Action(action)

    def set_proportional_mode(self, pmode: PMode) -> None:  # noqa: D102
        self.pmode = PMode(pmode)

    def set_derivative_mode(self, dmode: DMode) -> None:  # noqa: D102
        self.dmode = DMode(dmode)

    def set_anti_windup_mode(self, awmode: AwMode) -> None:
        """
        Set the integral anti-windup method.

        * condition: limit the integral only while it'd push the output
          deeper into saturation. This is the default.
        * clamp: clamp the integral sum to the output range.
        * off: no anti-windup.
        """
        self.awmode = AwMode(awmode)

    def get_kp(self) -> float:  # noqa: D102
        return self.disp_kp

    def get_ki(self) -> float:  # noqa: D102
        return self.disp_ki

    def get_kd(self) -> float:  # noqa: D102
        return self.disp_kd

    def get_gains(self) -> tuple[float, float, float]:
        """Get controller gains, as configured.

        Returns:
            (Kp, Ki, Kd)
        """
        return self.disp_kp, self.disp_ki, self.disp_kd

    def get_pterm(self) -> float:
        "proportional component of the last output"
        return self.p_term

    def get_iterm(self) -> float:
        "integral component of the last output"
        return self.i_term

    def get_dterm(self) -> float:
        "derivative component of the last output"
        return self.d_term

    def get_mode(self) -> Control:  # noqa: D102
        return self.mode

    def get_direction(self) -> Action:  # noqa: D102
        return self.action

    def get_pmode(self) -> PMode:  # noqa: D102
        return self.pmode

    def get_dmode(self) -> DMode:  # noqa: D102
        return self.dmode

    def get_awmode(self) -> AwMode:  # noqa: D102
        return self.awmode

    def get_output_limits(self) -> tuple[float, float]:
        """Get the output limits.

        Return:
            Output limits (lower, upper).

        """
        return self.lower, self.upper

    def get_sample_time_us(self) -> int:  # noqa: D102
        return self.sample_time_us

    def get_state(self) -> tuple[int, float, float, float]:
        """Get the controller's running state.

        Returns:
            (t, e, i, x): last sample time, last error, integral sum, last input

        """
        return self.last_time, self.last_error, self.output_sum, self.last_input

    def set_state(
        self,
        t: int | None = None,
        e: float | None = None,
        i: float | None = None,
        x: float | None = None,
    ) -> None:
        """Set the controller's running state.

        Args:
            t: last sample time
            e: last error
            i: integral sum
            x: last input

        Arguments that are ``None`` are not changed.
        """
        if t is not None:
            self.last_time = t
        if e is not None:
            self.last_error = e
        if i is not None:
            self.output_sum = i
        if x is not None:
            self.last_input = x
