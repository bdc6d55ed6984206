"""
This library contains a sampled [PID controller](https://en.wikipedia.org/wiki/Proportional%E2%80%93integral%E2%80%93derivative_controller)
for periodic control loops.

The `QuickPID` class is linked to its input, output and setpoint values
(`Var` or `Attr` instances) and recalculates the output whenever
`QuickPID.compute` is called and a sample period has elapsed.
The `CQuickPID` version is set up from a config dictionary and keeps its
values in a state `attrdict`.

Both variants implement
- manual, automatic (clock-driven) and timer (caller-driven) modes
- bumpless transfer from manual mode
- proportional on error, on measurement, or both
- derivative on error or on measurement
- conditional, clamping, or no integral anti-windup
- introspection
"""

from __future__ import annotations

from ._impl import Attr as Attr
from ._impl import QuickPID as QuickPID
from ._impl import Var as Var
from ._impl import ticks_diff as ticks_diff
from ._impl import ticks_us as ticks_us
from .config import CQuickPID as CQuickPID
from .const import Action as Action
from .const import AwMode as AwMode
from .const import Control as Control
from .const import DMode as DMode
from .const import PMode as PMode

__all__ = [
    "Action",
    "Attr",
    "AwMode",
    "CQuickPID",
    "Control",
    "DMode",
    "PMode",
    "QuickPID",
    "Var",
    "ticks_diff",
    "ticks_us",
]
