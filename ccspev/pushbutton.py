"""Evaluation of a push button sampled every 30 ms: long presses and press series."""

from __future__ import annotations

CYCLES_PER_SECOND = 33
NUMBER_OF_ENTRIES = 4
PRESSED_THRESHOLD = 1000

_MAX_COUNT = CYCLES_PER_SECOND * 60
_SERIES_GAP = CYCLES_PER_SECOND // 2
_SERIES_RESET = CYCLES_PER_SECOND * 5


class Pushbutton:
    """Tracks press durations and series of presses of one button.

    A series is a run of presses separated by less than half a second. Four
    consecutive series form a four-digit number, e.g. pressing 1, 2, 3 and 4
    times gives 1234. Five seconds without a press clears everything.
    """

    def __init__(self) -> None:
        self._release_time = 0
        self._press_time = 0
        self._presses = 0
        self._series_counter = 0
        self._accumulated = 0
        self._was_pressed = False
        self._entries = [0] * NUMBER_OF_ENTRIES

    def _process_series(self) -> None:
        self._entries = self._entries[1:] + [self._presses]
        digits = 0
        for entry in self._entries:
            digits = (digits * 10 + entry) & 0xFFFF
        self._series_counter = (self._series_counter + 1) & 0xFF
        if self._series_counter == NUMBER_OF_ENTRIES:
            self._accumulated = digits

    def update(self, adc_value: int) -> None:
        """Feed one sample of the button input; low values mean pressed."""
        pressed = adc_value < PRESSED_THRESHOLD
        if pressed:
            if not self._was_pressed:
                self._release_time = 0
                self._presses = (self._presses + 1) & 0xFF
                self._press_time = 0
            if self._press_time < _MAX_COUNT:
                self._press_time += 1
        else:
            if self._release_time < _MAX_COUNT:
                self._release_time += 1
            if self._release_time == _SERIES_GAP:
                self._process_series()
                self._presses = 0
            if self._release_time == _SERIES_RESET:
                self._entries = [0] * NUMBER_OF_ENTRIES
                self._series_counter = 0
                self._accumulated = 0
                self._press_time = 0
        self._was_pressed = pressed

    def is_pressed_500ms(self, allow_unlock: bool) -> bool:
        """True if unlocking is allowed and the last press lasted over half a second."""
        return bool(allow_unlock) and self._press_time > _SERIES_GAP

    def accumulated_digits(self) -> int:
        """The number formed by the last four press series, or 0."""
        return self._accumulated