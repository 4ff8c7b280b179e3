import pytest

from ccspev.temperatures import (
    MAX_ADC_VALUE,
    MINIMUM_SENSEFUL_CURRENT_A,
    TEMPERATURE_NOMINAL,
    adc_to_celsius,
    calculate_temperatures,
    derate_current,
    ohm_to_celsius,
)

NOMINAL = 10000.0
BETA = 3900.0


def test_nominal_resistance_gives_nominal_temperature():
    assert ohm_to_celsius(NOMINAL, NOMINAL, BETA) == pytest.approx(TEMPERATURE_NOMINAL)


def test_higher_resistance_means_colder():
    assert ohm_to_celsius(20000, NOMINAL, BETA) < ohm_to_celsius(10000, NOMINAL, BETA)
    assert ohm_to_celsius(5000, NOMINAL, BETA) > ohm_to_celsius(10000, NOMINAL, BETA)


def test_adc_midpoint_gives_nominal_temperature():
    assert adc_to_celsius(MAX_ADC_VALUE / 2, NOMINAL, BETA) == pytest.approx(TEMPERATURE_NOMINAL)


def test_adc_rising_reading_means_colder():
    assert adc_to_celsius(3000, NOMINAL, BETA) < adc_to_celsius(1000, NOMINAL, BETA)


def test_adc_extremes_read_absolute_zero():
    assert adc_to_celsius(0, NOMINAL, BETA) == pytest.approx(-273.15)
    assert adc_to_celsius(MAX_ADC_VALUE, NOMINAL, BETA) == pytest.approx(-273.15)


def test_adc_out_of_range():
    with pytest.raises(ValueError):
        adc_to_celsius(5000, NOMINAL, BETA)
    with pytest.raises(ValueError):
        adc_to_celsius(-1, NOMINAL, BETA)


def test_derate_stops_far_above_limit():
    assert derate_current(91, 80, 100) == 0.0


def test_derate_minimum_at_limit():
    assert derate_current(80, 80, 100) == MINIMUM_SENSEFUL_CURRENT_A
    assert derate_current(90, 80, 100) == MINIMUM_SENSEFUL_CURRENT_A


def test_derate_full_current_well_below_limit():
    assert derate_current(50, 80, 100) == 100


def test_derate_linear_region():
    assert derate_current(75, 80, 100) == pytest.approx(50)


def test_derate_never_below_minimum_when_cool():
    assert derate_current(20, 80, 1) == MINIMUM_SENSEFUL_CURRENT_A


def test_derate_is_monotonic_in_temperature():
    currents = [derate_current(t, 80, 100) for t in range(60, 95)]
    assert all(a >= b for a, b in zip(currents, currents[1:]))


def test_calculate_temperatures_report():
    readings = [1000, MAX_ADC_VALUE / 2, 3000]
    report = calculate_temperatures(readings, NOMINAL, BETA, 80, 100)
    assert len(report.temperatures) == 3
    assert report.temperatures[1] == pytest.approx(TEMPERATURE_NOMINAL)
    assert report.max_temperature == max(report.temperatures)
    assert report.limited_current == derate_current(report.max_temperature, 80, 100)


def test_calculate_temperatures_needs_readings():
    with pytest.raises(ValueError):
        calculate_temperatures([], NOMINAL, BETA, 80, 100)