import logging
from typing import List, Sequence

import numpy as np
import pandas as pd

from .records import BinnedReading, DailyRecord, HourlyRecord
from .stats import percentile, safe_ratio

logger = logging.getLogger(__name__)

TROUGH_PERCENTILE = 5
HOURS_PER_DAY = 24


def aggregate_hourly(binned: Sequence[BinnedReading]) -> List[HourlyRecord]:
    """One record per (date, hour) present in the input; mean demand."""
    if not binned:
        return []
    frame = pd.DataFrame({
        "date": [b.date for b in binned],
        "hour": [b.hour for b in binned],
        "demand": [b.demand for b in binned],
    })
    hourly = (frame
        .groupby(["date", "hour"], sort=True)["demand"]
        .agg(["mean", "size"])
        .reset_index()
    )
    return [
        HourlyRecord(
            date=d, year=d.year, month=d.month, day=d.day, hour=int(h),
            mean_demand=float(m), readings=int(n),
        )
        for d, h, m, n in zip(hourly["date"], hourly["hour"], hourly["mean"], hourly["size"])
    ]


def _daily_record(date, values):
    values = np.asarray(values, dtype=float)
    mean = float(values.mean())
    peak = float(values.max())
    trough = percentile(values, TROUGH_PERCENTILE)
    if trough == 0:
        logger.warning("%s: 5th-percentile demand is zero, peak-to-trough undefined", date)
    return DailyRecord(
        date=date,
        mean_demand=mean,
        peak_demand=peak,
        min_demand=float(values.min()),
        trough_demand=trough,
        peak_to_mean=safe_ratio(peak, mean),
        peak_to_trough=safe_ratio(peak, trough),
        readings=int(values.size),
    )


def _daily(dates, values):
    frame = pd.DataFrame({"date": dates, "demand": values})
    return [_daily_record(d, group.to_numpy()) for d, group in frame.groupby("date", sort=True)["demand"]]


def aggregate_daily(binned: Sequence[BinnedReading]) -> List[DailyRecord]:
    """
    One record per date present in the readings.

    Trough is the empirical 5th percentile rather than the minimum, so a single
    zero-demand outage reading does not blow up peak-to-trough.
    """
    if not binned:
        return []
    return _daily([b.date for b in binned], [b.demand for b in binned])


def aggregate_daily_from_hourly(hourly: Sequence[HourlyRecord]) -> List[DailyRecord]:
    if not hourly:
        return []
    return _daily([h.date for h in hourly], [h.mean_demand for h in hourly])


def incomplete_days(hourly: Sequence[HourlyRecord]):
    """Dates with fewer than 24 distinct hours, sorted."""
    hours = {}
    for h in hourly:
        hours.setdefault(h.date, set()).add(h.hour)
    return sorted(d for d, seen in hours.items() if len(seen) < HOURS_PER_DAY)
