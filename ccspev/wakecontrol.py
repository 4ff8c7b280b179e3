"""Control of the keep-power-on output that decides when the board may sleep."""

from __future__ import annotations

from typing import Callable

TIMER_MAX = 20  # 20 cycles of 100 ms: 2 s pulse cycle
TIMER_NEARLY_EXPIRED = 5  # keep-power-on active for the last 500 ms of a cycle
TIMER_MEASUREMENT_ALLOWED = 3  # 200 ms for in-rush and ADC sampling after activation

CONTROL_PILOT_MIN_DUTY = 3
NO_CONTROL_PILOT_TIMEOUT = 1000  # counter ticks without a valid control pilot
PP_VALID_MAX_RESISTANCE = 2000

_COUNTER_MASK = 0xFFFFFFFF


class WakeControl:
    """Keeps the board powered while needed and pulses power once sleep is allowed.

    ``keep_power_on`` is called with True to drive the keep-power-on output
    active and with False to release it. Once sleeping is allowed the output
    is released at the start of each 2 s cycle and briefly driven again near
    its end, so that the proximity pilot can still be measured if something
    else keeps the board running.
    """

    def __init__(self, keep_power_on: Callable[[bool], None]) -> None:
        self._keep_power_on = keep_power_on
        self._timer = 0
        self._last_valid_cp = 0
        self.allow_sleep = False
        self._keep_power_on(True)

    @property
    def timer(self) -> int:
        """Position within the current pulse cycle, counting down."""
        return self._timer

    def mainfunction(
        self,
        control_pilot_duty: int,
        now: int,
        pp_resistance: int,
        can_awake: bool,
        wakeup_on_valid_pp: bool,
    ) -> None:
        """Run one 100 ms cycle.

        ``now`` is a free-running 32-bit counter; sleep is considered once no
        valid control pilot has been seen for more than 1000 ticks.
        """
        if control_pilot_duty > CONTROL_PILOT_MIN_DUTY:
            self._last_valid_cp = now

        if ((now - self._last_valid_cp) & _COUNTER_MASK) > NO_CONTROL_PILOT_TIMEOUT:
            pp_valid = pp_resistance < PP_VALID_MAX_RESISTANCE
            # waking on a valid PP means power cannot be cut while PP stays valid
            if not wakeup_on_valid_pp or not pp_valid:
                self.allow_sleep = not can_awake

        if not self.allow_sleep:
            self._keep_power_on(True)
            self._timer = TIMER_MAX
        elif self._timer == TIMER_MAX:
            self._keep_power_on(False)
            self._timer -= 1
        elif self._timer == TIMER_NEARLY_EXPIRED:
            self._keep_power_on(True)
            self._timer -= 1
        elif self._timer == 0:
            self._timer = TIMER_MAX
        else:
            self._timer -= 1

    def is_pp_measurement_invalid(self) -> bool:
        """True while the PP voltage is distorted by the released keep-power-on output."""
        if not self.allow_sleep:
            return False
        return self._timer > TIMER_MEASUREMENT_ALLOWED