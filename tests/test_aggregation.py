import datetime as dt

import numpy as np
import pytest

from grid_temperature.aggregation import (
    aggregate_daily,
    aggregate_daily_from_hourly,
    aggregate_hourly,
    incomplete_days,
)
from grid_temperature.binning import bin_readings
from grid_temperature.errors import DegenerateSeriesError
from grid_temperature.records import Reading
from grid_temperature.stats import percentile

DAY = dt.date(2019, 7, 1)


def _at(hour, minute, demand, day=DAY):
    return Reading(dt.datetime.combine(day, dt.time(hour, minute)), demand)


def test_hourly_scenario():
    hourly = aggregate_hourly(bin_readings([_at(0, 0, 100), _at(0, 29, 100), _at(1, 1, 150)]))

    assert [(h.hour, h.mean_demand, h.readings) for h in hourly] == [(0, 100.0, 2), (1, 150.0, 1)]
    assert all(h.date == DAY for h in hourly)
    assert (hourly[0].year, hourly[0].month, hourly[0].day) == (2019, 7, 1)


def test_hourly_does_not_fabricate_missing_hours():
    hourly = aggregate_hourly(bin_readings([_at(3, 0, 10), _at(7, 0, 20)]))

    assert [h.hour for h in hourly] == [3, 7]
    assert incomplete_days(hourly) == [DAY]


def test_complete_day_has_24_hours(city_readings):
    hourly = aggregate_hourly(bin_readings(city_readings))

    assert incomplete_days(hourly) == []
    assert len(hourly) == 24 * len({r.timestamp.date() for r in city_readings})


def test_daily_statistics():
    daily = aggregate_daily(bin_readings([_at(0, 0, 100), _at(0, 29, 100), _at(1, 1, 150)]))

    assert len(daily) == 1
    d = daily[0]
    assert d.mean_demand == pytest.approx(350 / 3)
    assert d.peak_demand == 150.0
    assert d.min_demand == 100.0
    assert d.trough_demand == pytest.approx(100.0)
    assert d.peak_to_mean == pytest.approx(150 / (350 / 3))
    assert d.peak_to_trough == pytest.approx(1.5)
    assert d.readings == 3


def test_trough_is_fifth_percentile_not_minimum():
    # one zero-demand outage reading among twenty
    values = [0.0] + [100.0 + i for i in range(19)]
    readings = [_at(i, 0, v) for i, v in enumerate(values[:24])]
    d = aggregate_daily(bin_readings(readings))[0]

    assert d.min_demand == 0.0
    assert d.trough_demand == pytest.approx(0.95 * 100.0)
    assert np.isfinite(d.peak_to_trough)


def test_zero_trough_gives_nan_ratio():
    d = aggregate_daily(bin_readings([_at(0, 0, 0.0), _at(1, 0, 0.0), _at(2, 0, 10.0)]))[0]

    assert d.trough_demand == 0.0
    assert np.isnan(d.peak_to_trough)


def test_ratio_ordering(city_readings):
    for d in aggregate_daily(bin_readings(city_readings)):
        assert d.trough_demand <= d.mean_demand <= d.peak_demand
        assert d.peak_to_trough >= d.peak_to_mean >= 1.0


def test_daily_from_hourly(city_readings):
    hourly = aggregate_hourly(bin_readings(city_readings))
    daily = aggregate_daily_from_hourly(hourly)

    assert [d.date for d in daily] == sorted({h.date for h in hourly})
    assert all(d.readings == 24 for d in daily)


def test_percentile_matches_linear_interpolation():
    rng = np.random.default_rng(7)
    values = rng.normal(300, 40, size=101)
    for q in (0, 5, 50, 95, 100):
        assert percentile(values, q) == pytest.approx(np.percentile(values, q))


def test_percentile_degenerate_series():
    with pytest.raises(DegenerateSeriesError):
        percentile([], 5)
    with pytest.raises(DegenerateSeriesError):
        percentile([float("nan")], 50)
    assert percentile([250.0] * 7, 5) == 250.0
    assert percentile([250.0], 95) == 250.0


def test_empty_inputs():
    assert aggregate_hourly([]) == []
    assert aggregate_daily([]) == []
