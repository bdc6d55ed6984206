"""
Mode selectors for `QuickPID`.

The integer values are stable; they're what the ``get_*mode`` accessors
report.
"""

from __future__ import annotations

from enum import IntEnum

__all__ = ["Action", "AwMode", "Control", "DMode", "PMode"]


class Control(IntEnum):
    "Controller mode"

    # no computation; the output is left alone
    manual = 0
    # compute when a sample period has elapsed
    automatic = 1
    # compute on every call, the caller keeps the cadence
    timer = 2


class Action(IntEnum):
    "Controller action"

    # +output leads to +input
    direct = 0
    # +output leads to -input
    reverse = 1


class PMode(IntEnum):
    "Proportional term source"

    error = 0
    meas = 1
    both = 2


class DMode(IntEnum):
    "Derivative term source"

    error = 0
    meas = 1


class AwMode(IntEnum):
    "Integral anti-windup"

    condition = 0
    clamp = 1
    off = 2
