"""Inlet temperature sensing with NTC thermistors and temperature-based current derating."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Tuple

TEMPERATURE_NOMINAL = 25.0
SERIES_RESISTOR = 10000.0
MAX_ADC_VALUE = 4095
MINIMUM_SENSEFUL_CURRENT_A = 2.0
ZERO_CELSIUS_IN_KELVIN = 273.15

_STOP_MARGIN_K = 10.0
_DERATING_SPAN_K = 10.0


@dataclass(frozen=True)
class TemperatureReport:
    """Sensor temperatures, their maximum and the resulting current limit."""

    temperatures: Tuple[float, ...]
    max_temperature: float
    limited_current: float


def ohm_to_celsius(resistance: float, nominal_resistance: float, beta: float) -> float:
    """Convert a thermistor resistance to degrees Celsius with the beta equation."""
    if resistance <= 0:
        # a shorted sensor reads as absolute zero
        return -ZERO_CELSIUS_IN_KELVIN
    if math.isinf(resistance):
        return -ZERO_CELSIUS_IN_KELVIN
    inverse = math.log(resistance / nominal_resistance) / beta
    inverse += 1.0 / (TEMPERATURE_NOMINAL + ZERO_CELSIUS_IN_KELVIN)
    if inverse == 0:
        return math.inf
    return 1.0 / inverse - ZERO_CELSIUS_IN_KELVIN


def adc_to_celsius(adc_value: float, nominal_resistance: float, beta: float) -> float:
    """Convert a 12-bit ADC reading of the pulled-up thermistor to degrees Celsius."""
    if not 0 <= adc_value <= MAX_ADC_VALUE:
        raise ValueError(f"ADC value must be between 0 and {MAX_ADC_VALUE}, got {adc_value}")
    if adc_value == 0:
        resistance = 0.0
    elif adc_value == MAX_ADC_VALUE:
        resistance = math.inf
    else:
        resistance = SERIES_RESISTOR / (MAX_ADC_VALUE / adc_value - 1.0)
    return ohm_to_celsius(resistance, nominal_resistance, beta)


def derate_current(max_temperature: float, max_pin_temperature: float, charge_current: float) -> float:
    """Return the charge current allowed at the given pin temperature.

    More than 10 K above the limit stops charging (0 A); at or above the limit
    a minimum current is kept; below it the current falls off linearly over
    the last 10 K, but never below the minimum.
    """
    diff = max_temperature - max_pin_temperature
    if diff > _STOP_MARGIN_K:
        return 0.0
    if diff >= 0:
        return MINIMUM_SENSEFUL_CURRENT_A
    limit = -diff * charge_current / _DERATING_SPAN_K
    return max(min(charge_current, limit), MINIMUM_SENSEFUL_CURRENT_A)


def calculate_temperatures(
    adc_values: Iterable[float],
    nominal_resistance: float,
    beta: float,
    max_pin_temperature: float,
    charge_current: float,
) -> TemperatureReport:
    """Convert all sensor readings and derive the temperature-limited current."""
    temperatures = tuple(adc_to_celsius(value, nominal_resistance, beta) for value in adc_values)
    if not temperatures:
        raise ValueError("at least one sensor reading is needed")
    highest = max(temperatures)
    return TemperatureReport(
        temperatures=temperatures,
        max_temperature=highest,
        limited_current=derate_current(highest, max_pin_temperature, charge_current),
    )