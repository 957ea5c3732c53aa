"""Shared fixtures: synthetic demand and temperature data for a small city."""

import datetime as dt
import math

import matplotlib

matplotlib.use("Agg")

import pytest

from grid_temperature.records import JoinedObservation, Reading, TemperatureRecord

START = dt.date(2019, 6, 1)
N_DAYS = 40


def day_temperature(i):
    # 40, 42, ..., 118 F; day 15 sits exactly on 70 F
    return 40.0 + 2.0 * i


def day_mean_demand(i):
    t = day_temperature(i)
    noise = 2.0 * math.sin(i)
    if t < 70:
        return 500.0 - 3.0 * t + noise
    return 200.0 + 4.0 * t + noise


@pytest.fixture
def scenario_observations():
    return [
        JoinedObservation(dt.date(2019, 1, 1), 200.0, 50.0),
        JoinedObservation(dt.date(2019, 1, 2), 210.0, 60.0),
        JoinedObservation(dt.date(2019, 7, 1), 260.0, 80.0),
        JoinedObservation(dt.date(2019, 7, 2), 300.0, 90.0),
    ]


@pytest.fixture
def linear_observations():
    """Cooling-side observations lying close to demand = 200 + 4 T."""
    return [
        JoinedObservation(START + dt.timedelta(days=i), 200.0 + 4.0 * t + (1.5 if i % 2 else -1.5), t)
        for i, t in enumerate([72.0, 75.0, 78.0, 80.0, 83.0, 85.0, 88.0, 91.0, 94.0, 97.0, 99.0, 102.0])
    ]


@pytest.fixture
def city_readings():
    """Hourly readings, on the hour, for N_DAYS days with a sinusoidal daily shape."""
    readings = []
    for i in range(N_DAYS):
        day = START + dt.timedelta(days=i)
        mean = day_mean_demand(i)
        for hour in range(24):
            ts = dt.datetime.combine(day, dt.time(hour))
            readings.append(Reading(ts, mean + 50.0 * math.sin(2 * math.pi * hour / 24)))
    return readings


@pytest.fixture
def city_temperatures():
    # a few days either side of the demand window
    return [
        TemperatureRecord(START + dt.timedelta(days=i), day_temperature(i))
        for i in range(-3, N_DAYS + 3)
    ]
