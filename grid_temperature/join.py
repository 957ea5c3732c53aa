import logging
from typing import Optional, Sequence

import pandas as pd

from .errors import JoinGapError
from .records import DailyRecord, JoinedObservation, JoinResult, TemperatureRecord

logger = logging.getLogger(__name__)


def _in_window(date, start_date, end_date):
    if start_date is not None and date < start_date:
        return False
    if end_date is not None and date > end_date:
        return False
    return True


def join_temperature(
    daily: Sequence[DailyRecord],
    temperatures: Sequence[TemperatureRecord],
    start_date=None,
    end_date=None,
    strict: bool = False,
) -> JoinResult:
    """
    Inner join of daily demand and daily temperature on exact date, limited
    to [start_date, end_date] (inclusive; either bound may be None).

    Dates missing from either side are dropped and counted. With strict=True
    a gap inside the window raises JoinGapError instead.
    """
    start_date = _as_date(start_date)
    end_date = _as_date(end_date)
    if start_date and end_date and start_date > end_date:
        raise ValueError(f"analysis window start {start_date} is after end {end_date}")

    demand = pd.DataFrame(
        {"date": [d.date for d in daily], "mean_demand": [d.mean_demand for d in daily]},
        columns=["date", "mean_demand"],
    ).astype({"date": object})
    temp = pd.DataFrame(
        {"date": [t.date for t in temperatures], "temperature": [t.temperature for t in temperatures]},
        columns=["date", "temperature"],
    ).astype({"date": object})
    duplicated = temp["date"].duplicated(keep="first")
    if duplicated.any():
        logger.warning("Ignoring %d duplicate temperature date(s)", int(duplicated.sum()))
        temp = temp[~duplicated]

    demand_window = demand[demand["date"].map(lambda d: _in_window(d, start_date, end_date)).astype(bool)]
    temp_window = temp[temp["date"].map(lambda d: _in_window(d, start_date, end_date)).astype(bool)]

    merged = pd.merge(demand_window, temp_window, on="date", how="inner").sort_values("date")
    observations = tuple(
        JoinedObservation(date=d, mean_demand=float(m), temperature=float(t))
        for d, m, t in zip(merged["date"], merged["mean_demand"], merged["temperature"])
    )

    matched = set(merged["date"])
    gaps = (set(demand_window["date"]) | set(temp_window["date"])) - matched
    result = JoinResult(
        observations=observations,
        dropped_demand_dates=len(demand) - len(observations),
        dropped_temperature_dates=len(temperatures) - len(observations),
        gap_dates=tuple(sorted(gaps)),
    )
    if gaps:
        if strict:
            raise JoinGapError(f"{len(gaps)} date(s) in the analysis window are missing from one series", gaps)
        logger.warning("%d date(s) in the analysis window present in only one series", len(gaps))
    logger.info(
        "Joined %d day(s); dropped %d demand and %d temperature date(s)",
        len(observations), result.dropped_demand_dates, result.dropped_temperature_dates,
    )
    return result


def _as_date(value) -> Optional[object]:
    if value is None:
        return None
    return pd.Timestamp(value).date()
