import logging
from typing import List, Sequence

import numpy as np
import pandas as pd

from .records import BinnedReading, Reading

logger = logging.getLogger(__name__)

HALF_HOUR = pd.Timedelta(minutes=30)


def round_to_hour(timestamp):
    """Nearest whole hour; hh:30:00 exactly rounds up."""
    return (pd.Timestamp(timestamp) + HALF_HOUR).floor("h")


def bin_readings(readings: Sequence[Reading]) -> List[BinnedReading]:
    """
    Tag each reading with its rounded hour and calendar attributes.

    The calendar attributes come from the rounded timestamp, so 23:40 lands in
    hour 0 of the next day. Readings with a missing timestamp or a missing,
    non-finite or negative demand are excluded (the count is logged).
    """
    if not readings:
        return []

    frame = pd.DataFrame({
        "timestamp": pd.to_datetime(pd.Series([r.timestamp for r in readings], dtype=object), errors="coerce"),
        "demand": pd.to_numeric(pd.Series([r.demand for r in readings], dtype=object), errors="coerce"),
    })
    valid = (
        frame["timestamp"].notna()
        & frame["demand"].notna()
        & np.isfinite(frame["demand"].astype(float))
        & (frame["demand"] >= 0)
    )
    dropped = int((~valid).sum())
    if dropped:
        logger.warning("Excluded %d of %d readings with a missing timestamp or demand", dropped, len(frame))
    frame = frame[valid].copy()

    frame["hour_timestamp"] = (frame["timestamp"] + HALF_HOUR).dt.floor("h")
    binned = []
    for ts, hour_ts, demand in zip(frame["timestamp"], frame["hour_timestamp"], frame["demand"]):
        binned.append(BinnedReading(
            timestamp=ts.to_pydatetime(),
            hour_timestamp=hour_ts.to_pydatetime(),
            date=hour_ts.date(),
            year=hour_ts.year,
            month=hour_ts.month,
            day=hour_ts.day,
            hour=hour_ts.hour,
            demand=float(demand),
        ))
    logger.debug("Binned %d readings into %d hours", len(binned), frame["hour_timestamp"].nunique())
    return binned
