"""
Diurnal and seasonal load shape.

monthly_diurnal_shape gives a "typical day" per calendar month from the hourly
records; daily_ratio_series / smooth_ratios track peakiness over the year at
daily, weekly and monthly scale.
"""

import logging
from typing import Iterable, List, Sequence

import pandas as pd

from .aggregation import TROUGH_PERCENTILE
from .records import DailyRatio, DailyRecord, DiurnalShapeRow, HourlyRecord, SmoothedRatio
from .stats import percentile, safe_ratio

logger = logging.getLogger(__name__)

SMOOTHING_PERIODS = {"week": "W-SUN", "month": "M"}


def monthly_diurnal_shape(hourly: Sequence[HourlyRecord]) -> List[DiurnalShapeRow]:
    if not hourly:
        return []
    frame = pd.DataFrame({
        "month": [h.month for h in hourly],
        "hour": [h.hour for h in hourly],
        "demand": [h.mean_demand for h in hourly],
    })
    rows = []
    for (month, hour), values in frame.groupby(["month", "hour"], sort=True)["demand"]:
        peak = float(values.max())
        mean = float(values.mean())
        rows.append(DiurnalShapeRow(
            month=int(month),
            hour=int(hour),
            days=int(values.size),
            min_demand=float(values.min()),
            mean_demand=mean,
            max_demand=peak,
            std_demand=float(values.std()),  # NaN for a single day
            peak_to_mean=safe_ratio(peak, mean),
            peak_to_trough=safe_ratio(peak, percentile(values, TROUGH_PERCENTILE)),
        ))
    return rows


def daily_ratio_series(daily: Sequence[DailyRecord], exclude_dates: Iterable = ()) -> List[DailyRatio]:
    """Per-day peak ratios, without the caller's excluded (e.g. outage) dates."""
    excluded = {pd.Timestamp(d).date() for d in exclude_dates}
    series = [
        DailyRatio(date=d.date, peak_to_mean=d.peak_to_mean, peak_to_trough=d.peak_to_trough)
        for d in sorted(daily, key=lambda r: r.date)
        if d.date not in excluded
    ]
    removed = len(daily) - len(series)
    if removed:
        logger.info("Excluded %d day(s) from the daily ratio series", removed)
    return series


def smooth_ratios(series: Sequence[DailyRatio], freq: str = "week") -> List[SmoothedRatio]:
    """
    Arithmetic mean of the daily ratios per ISO week (Monday start) or
    calendar month. Periods without any day are not emitted.
    """
    if freq not in SMOOTHING_PERIODS:
        raise ValueError(f"freq must be one of {sorted(SMOOTHING_PERIODS)}, got {freq!r}")
    if not series:
        return []
    frame = pd.DataFrame({
        "date": pd.to_datetime([s.date for s in series]),
        "peak_to_mean": [s.peak_to_mean for s in series],
        "peak_to_trough": [s.peak_to_trough for s in series],
    })
    frame["period"] = frame["date"].dt.to_period(SMOOTHING_PERIODS[freq]).dt.start_time
    smoothed = (frame
        .groupby("period", sort=True)
        .agg(days=("date", "size"), peak_to_mean=("peak_to_mean", "mean"), peak_to_trough=("peak_to_trough", "mean"))
        .reset_index()
    )
    return [
        SmoothedRatio(period_start=p.date(), days=int(n), peak_to_mean=float(m), peak_to_trough=float(t))
        for p, n, m, t in zip(smoothed["period"], smoothed["days"], smoothed["peak_to_mean"], smoothed["peak_to_trough"])
    ]
