import datetime as dt
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

import pandas as pd
from dotenv import load_dotenv

from .regimes import BOUNDARY_POLICIES, DEFAULT_THRESHOLD_F
from .regression import DEFAULT_DROP_FRACTION, DEFAULT_TRIALS


@dataclass(frozen=True)
class AnalysisConfig:
    """Run parameters. Defaults: 70 F split, 10% drop, 500 trials."""

    demand_path: Optional[str] = None
    temperature_path: Optional[str] = None
    demand_column: str = "demand"
    timestamp_column: str = "timestamp"
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    threshold: float = DEFAULT_THRESHOLD_F
    boundary_policy: str = "exclude"
    drop_fraction: float = DEFAULT_DROP_FRACTION
    trials: int = DEFAULT_TRIALS
    seed: Optional[int] = None
    exclude_dates: Tuple[dt.date, ...] = field(default_factory=tuple)
    output_dir: str = "output"
    plots: bool = True
    database_url: Optional[str] = None

    def __post_init__(self):
        if not 0 < self.drop_fraction < 1:
            raise ValueError(f"drop_fraction must be within (0, 1), got {self.drop_fraction}")
        if self.trials < 1:
            raise ValueError(f"trials must be positive, got {self.trials}")
        if self.boundary_policy not in BOUNDARY_POLICIES:
            raise ValueError(f"boundary_policy must be one of {BOUNDARY_POLICIES}, got {self.boundary_policy!r}")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError(f"start_date {self.start_date} is after end_date {self.end_date}")

    @classmethod
    def from_env(cls, **overrides):
        """Read GRID_* variables (and DATABASE_URL), loading a .env file first."""
        load_dotenv()
        env = os.environ
        values = {
            "demand_path": env.get("GRID_DEMAND_CSV"),
            "temperature_path": env.get("GRID_TEMPERATURE_FILE"),
            "demand_column": env.get("GRID_DEMAND_COLUMN"),
            "timestamp_column": env.get("GRID_TIMESTAMP_COLUMN"),
            "start_date": parse_date(env.get("GRID_START_DATE")),
            "end_date": parse_date(env.get("GRID_END_DATE")),
            "threshold": _number(env.get("GRID_THRESHOLD_F"), float),
            "boundary_policy": env.get("GRID_BOUNDARY_POLICY"),
            "drop_fraction": _number(env.get("GRID_DROP_FRACTION"), float),
            "trials": _number(env.get("GRID_TRIALS"), int),
            "seed": _number(env.get("GRID_SEED"), int),
            "exclude_dates": parse_date_list(env.get("GRID_EXCLUDE_DATES")),
            "output_dir": env.get("GRID_OUTPUT_DIR"),
            "database_url": env.get("DATABASE_URL"),
        }
        values.update(overrides)
        return cls(**{k: v for k, v in values.items() if v is not None})


def parse_date(value) -> Optional[dt.date]:
    if value is None or value == "":
        return None
    try:
        return pd.Timestamp(value).date()
    except ValueError as exc:
        raise ValueError(f"invalid date {value!r}") from exc


def parse_date_list(value) -> Optional[Tuple[dt.date, ...]]:
    if not value:
        return None
    return tuple(parse_date(v.strip()) for v in value.split(",") if v.strip())


def _number(value, kind):
    if value is None or value == "":
        return None
    try:
        return kind(value)
    except ValueError as exc:
        raise ValueError(f"invalid {kind.__name__} setting {value!r}") from exc
