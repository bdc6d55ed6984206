#!/usr/bin/python3
"""
Temperature control of a simulated heater.

The heater is a first-order system: it heats up proportionally to the
power applied and loses heat to its surroundings. The controller runs
in automatic mode against a simulated clock.
"""

from __future__ import annotations

from matplotlib import pyplot as plt

from moat.lib.quickpid import Control, PMode, QuickPID, Var


class Heater:
    "a lump of metal with a heating element"

    def __init__(self, gain=0.8, loss=0.05, ambient=20.0):
        self.gain = gain
        self.loss = loss
        self.ambient = ambient
        self.temp = ambient

    def step(self, power, dt):
        "advance by @dt seconds with @power percent of heating"
        self.temp += (self.gain * power - self.loss * (self.temp - self.ambient)) * dt


class Clock:
    "simulated time, in microseconds"

    t = 0

    def __call__(self):
        return self.t


clock = Clock()
heater = Heater()

temp, power, target = Var(heater.temp), Var(0.0), Var(60.0)
pid = QuickPID(temp, power, target, Kp=4.0, Ki=0.3, Kd=1.0, pmode=PMode.both, clock=clock)
pid.set_output_limits(0, 100)
pid.set_mode(Control.automatic)

# Control loop: the simulation runs at 10 msec, the controller at 100 msec
time, meas, cont = [], [], []
dt = 0.01
for i in range(60000):
    clock.t = i * 10000
    if i == 30000:
        target.value = 40.0

    temp.value = heater.temp
    pid.compute()
    heater.step(power.value, dt)

    if not i % 10:
        time.append(i * dt)
        meas.append(heater.temp)
        cont.append(power.value)

# Plot result
fig, (ax1, ax2) = plt.subplots(2, 1)
fig.suptitle("Heater")
ax1.set_ylabel("Temperature [°C]")
ax1.plot(time, meas, "b")
ax1.grid()
ax2.set_xlabel("Time [s]")
ax2.set_ylabel("Power [%]")
ax2.plot(time, cont, "g")
ax2.grid()
plt.show()
