import pytest

from ccspev.wakecontrol import (
    TIMER_MAX,
    TIMER_MEASUREMENT_ALLOWED,
    TIMER_NEARLY_EXPIRED,
    WakeControl,
)


@pytest.fixture
def outputs():
    return []


@pytest.fixture
def control(outputs):
    return WakeControl(outputs.append)


def _idle(control, now, pp=5000, can_awake=False, wake_pp=False):
    control.mainfunction(0, now, pp, can_awake, wake_pp)


def test_init_drives_power_on(control, outputs):
    assert outputs == [True]
    assert control.allow_sleep is False
    assert control.is_pp_measurement_invalid() is False


def test_valid_control_pilot_keeps_awake(control, outputs):
    for now in range(0, 5000, 100):
        control.mainfunction(50, now, 5000, False, False)
    assert control.allow_sleep is False
    assert all(outputs)
    assert control.timer == TIMER_MAX


def test_short_absence_does_not_allow_sleep(control):
    _idle(control, 1000)
    assert control.allow_sleep is False


def test_sleep_cycle_pulses_output(control, outputs):
    _idle(control, 0)
    assert control.timer == TIMER_MAX
    outputs.clear()
    _idle(control, 1001)
    assert control.allow_sleep is True
    assert outputs == [False]
    assert control.timer == TIMER_MAX - 1
    assert control.is_pp_measurement_invalid() is True

    while control.timer != TIMER_NEARLY_EXPIRED:
        _idle(control, 1001)
    assert outputs == [False]
    _idle(control, 1001)
    assert outputs == [False, True]
    assert control.timer == TIMER_NEARLY_EXPIRED - 1
    assert control.is_pp_measurement_invalid() is True

    _idle(control, 1001)
    assert control.timer == TIMER_MEASUREMENT_ALLOWED
    assert control.is_pp_measurement_invalid() is False

    while control.timer != 0:
        _idle(control, 1001)
    _idle(control, 1001)
    assert control.timer == TIMER_MAX
    _idle(control, 1001)
    assert outputs[-1] is False
    assert control.timer == TIMER_MAX - 1


def test_can_activity_prevents_sleep(control, outputs):
    _idle(control, 2000, can_awake=True)
    assert control.allow_sleep is False
    assert outputs[-1] is True


def test_valid_pp_with_pp_wakeup_prevents_sleep(control):
    _idle(control, 2000, pp=1500, wake_pp=True)
    assert control.allow_sleep is False


def test_invalid_pp_with_pp_wakeup_allows_sleep(control):
    _idle(control, 2000, pp=2500, wake_pp=True)
    assert control.allow_sleep is True


def test_counter_wraparound(control):
    control.mainfunction(50, 0xFFFFFF00, 5000, False, False)
    _idle(control, 0x10)
    assert control.allow_sleep is False
    _idle(control, 0x400)
    assert control.allow_sleep is True


def test_sleep_permission_kept_when_pilot_returns(control):
    _idle(control, 2000)
    assert control.allow_sleep is True
    control.mainfunction(50, 2100, 5000, True, False)
    assert control.allow_sleep is True
    _idle(control, 3200, can_awake=True)
    assert control.allow_sleep is False