"""
Typed records passed between pipeline stages.

Every stage takes a sequence of these frozen dataclasses and returns new
ones. pandas is only used inside a stage (groupby / merge) and at export,
through records_to_frame.
"""

import datetime as dt
import enum
from dataclasses import dataclass, field, fields
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class Reading:
    timestamp: dt.datetime
    demand: float  # MW


@dataclass(frozen=True)
class BinnedReading:
    timestamp: dt.datetime       # original timestamp
    hour_timestamp: dt.datetime  # rounded to the nearest hour, half up
    date: dt.date
    year: int
    month: int
    day: int
    hour: int
    demand: float


@dataclass(frozen=True)
class HourlyRecord:
    date: dt.date
    year: int
    month: int
    day: int
    hour: int
    mean_demand: float
    readings: int


@dataclass(frozen=True)
class DailyRecord:
    date: dt.date
    mean_demand: float
    peak_demand: float
    min_demand: float
    trough_demand: float  # 5th percentile, not the minimum
    peak_to_mean: float
    peak_to_trough: float
    readings: int


@dataclass(frozen=True)
class TemperatureRecord:
    date: dt.date
    temperature: float  # degrees F


@dataclass(frozen=True)
class JoinedObservation:
    date: dt.date
    mean_demand: float
    temperature: float


class Regime(enum.Enum):
    HEATING = "heating"
    COOLING = "cooling"


@dataclass(frozen=True)
class DiurnalShapeRow:
    month: int
    hour: int
    days: int
    min_demand: float
    mean_demand: float
    max_demand: float
    std_demand: float
    peak_to_mean: float
    peak_to_trough: float


@dataclass(frozen=True)
class DailyRatio:
    date: dt.date
    peak_to_mean: float
    peak_to_trough: float


@dataclass(frozen=True)
class SmoothedRatio:
    period_start: dt.date
    days: int
    peak_to_mean: float
    peak_to_trough: float


@dataclass(frozen=True)
class IngestResult:
    records: tuple
    dropped: int

    def __len__(self):
        return len(self.records)


@dataclass(frozen=True)
class JoinResult:
    observations: Tuple[JoinedObservation, ...]
    dropped_demand_dates: int       # daily records with no temperature, or outside the window
    dropped_temperature_dates: int  # temperature records with no daily record, or outside the window
    gap_dates: Tuple[dt.date, ...] = ()

    @property
    def dropped(self):
        return self.dropped_demand_dates + self.dropped_temperature_dates


@dataclass(frozen=True)
class RegimeSplit:
    threshold: float
    heating: Tuple[JoinedObservation, ...]
    cooling: Tuple[JoinedObservation, ...]
    boundary: Tuple[JoinedObservation, ...] = ()

    def for_regime(self, regime):
        return self.heating if regime is Regime.HEATING else self.cooling


@dataclass(frozen=True)
class FittedModel:
    intercept: float
    slope: float
    observations: Tuple[JoinedObservation, ...]
    fitted: np.ndarray = field(repr=False, compare=False)
    residuals: np.ndarray = field(repr=False, compare=False)
    r_squared: float = float("nan")
    rmse: float = float("nan")
    regime: Optional[Regime] = None

    @property
    def n(self):
        return len(self.observations)

    @property
    def temperatures(self):
        return np.array([o.temperature for o in self.observations], dtype=float)

    @property
    def demands(self):
        return np.array([o.mean_demand for o in self.observations], dtype=float)

    def params(self):
        return {
            "regime": self.regime.value if self.regime else None,
            "intercept": self.intercept,
            "slope": self.slope,
            "r_squared": self.r_squared,
            "rmse": self.rmse,
            "n": self.n,
        }


@dataclass(frozen=True, eq=False)
class Diagnostics:
    theoretical_quantiles: np.ndarray
    standardized_residuals: np.ndarray  # sorted ascending, pairs with theoretical_quantiles
    fitted: np.ndarray
    residuals: np.ndarray
    autocorrelation: np.ndarray         # lags 1..max_lag
    leverage: np.ndarray
    cooks_distance: np.ndarray
    durbin_watson: float


@dataclass(frozen=True, eq=False)
class LeaveOneOutResult:
    errors: np.ndarray       # actual - predicted for the omitted observation
    predictions: np.ndarray
    fold_params: Tuple[Tuple[float, float], ...]  # (intercept, slope) per fold

    def __len__(self):
        return len(self.errors)


@dataclass(frozen=True, eq=False)
class RandomDropResult:
    holdout_size: int
    trials: int
    skipped: int
    errors: Tuple[np.ndarray, ...]  # one array of held-out errors per completed trial

    def all_errors(self):
        if not self.errors:
            return np.array([], dtype=float)
        return np.concatenate(self.errors)

    def trial_rmse(self):
        return np.array([np.sqrt(np.mean(e ** 2)) for e in self.errors], dtype=float)


@dataclass(frozen=True)
class DurationPoint:
    value: float
    exceedance: float


def records_to_frame(records: Sequence, record_type=None) -> pd.DataFrame:
    """Table view of a record sequence, one column per dataclass field."""
    if record_type is None and records:
        record_type = type(records[0])
    if record_type is None:
        return pd.DataFrame()
    columns = [f.name for f in fields(record_type)]
    rows = [
        [getattr(r, c).value if isinstance(getattr(r, c), enum.Enum) else getattr(r, c) for c in columns]
        for r in records
    ]
    return pd.DataFrame(rows, columns=columns)
