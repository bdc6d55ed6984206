"""
A `QuickPID` that's set up from a config dictionary.
"""

from __future__ import annotations

import logging

from moat.util import NotGiven, attrdict, combine_dict, yload

from ._impl import Attr, QuickPID, ticks_us
from .const import Action, AwMode, Control, DMode, PMode

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import EllipsisType

    from ._impl import Clock

__all__ = ["DEFAULTS", "CQuickPID"]

logger = logging.getLogger(__name__)

DEFAULTS = yload(
    """
p: 0
i: 0
d: 0

min: 0
max: 255
sample: 100000  # µs

mode: manual  # automatic timer
action: direct  # reverse
pmode: error  # meas both
dmode: meas  # error
awmode: condition  # clamp off
""",
    attr=True,
)


def _mode(cls, val):
    if isinstance(val, str):
        return cls[val]
    return cls(val)


class CQuickPID(QuickPID):
    """
    A QuickPID that's configured like this::

        heater:
            p: 2
            i: 0.5  # per second
            d: 0.1  # seconds

            # output limits
            min: 0
            max: 100

            sample: 250000  # µs

            mode: automatic
            action: direct
            pmode: both
            dmode: meas
            awmode: clamp

    Missing entries are taken from `DEFAULTS`.

    The process values are kept in the state storage, as ``state.input``,
    ``state.output`` and ``state.setpoint``. After each step the P/I/D
    terms are stored in ``state.split``, the last error and the integral
    sum in ``state.e`` and ``state.i``.
    """

    def __init__(
        self,
        cfg: attrdict,
        state: attrdict | None = None,
        clock: Clock | None | EllipsisType = NotGiven,
    ):
        """
        Args:
            cfg: our configuration. See above.
            state: the state storage. Typically an `attrdict`.
            clock: the time source. The default is `ticks_us`;
                ``None`` means that the controller runs on every call.
        """
        if clock is NotGiven:
            clock = ticks_us
        self.cfg = cfg = combine_dict(cfg, DEFAULTS, cls=attrdict)

        if state is None:
            state = attrdict()
        self.state = state
        state.setdefault("input", 0.0)
        state.setdefault("output", 0.0)
        state.setdefault("setpoint", 0.0)

        pmode = _mode(PMode, cfg.pmode)
        dmode = _mode(DMode, cfg.dmode)
        awmode = _mode(AwMode, cfg.awmode)
        action = _mode(Action, cfg.action)
        mode = _mode(Control, cfg.mode)

        super().__init__(
            Attr(state, "input"),
            Attr(state, "output"),
            Attr(state, "setpoint"),
            cfg.p,
            cfg.i,
            cfg.d,
            pmode=pmode,
            dmode=dmode,
            awmode=awmode,
            action=action,
            clock=None,
        )
        self.set_output_limits(cfg.min, cfg.max)
        self.set_sample_time_us(cfg.sample)
        self.set_mode(mode, clock)
        logger.debug("Setup: %r", cfg)

    def set_setpoint(self, setpoint: float) -> None:
        "Adjust the setpoint."
        self.state.setpoint = setpoint

    def __call__(self, val: float | None = None) -> float | None:  # pyright:ignore
        """
        Run a PID step.

        Args:
            val: the current process value. If ``None``, use the value
                in the state storage.
        Returns:
            the new output, or ``None`` if no step was due.
        """
        if val is not None:
            self.state.input = val
        if not self.compute():
            return None
        self._update_state()
        return self.state.output

    def _update_state(self):
        _t, e, i, _x = self.get_state()
        self.state.split = (self.p_term, self.i_term, self.d_term)
        self.state.e = e
        self.state.i = i
