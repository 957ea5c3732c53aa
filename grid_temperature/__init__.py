"""Grid demand vs. temperature analysis for a single city."""

from .aggregation import aggregate_daily, aggregate_daily_from_hourly, aggregate_hourly, incomplete_days
from .binning import bin_readings, round_to_hour
from .config import AnalysisConfig
from .duration import duration_curve
from .errors import (
    DegenerateSeriesError,
    GridAnalysisError,
    InsufficientDataError,
    JoinGapError,
    MalformedRecordError,
)
from .join import join_temperature
from .pipeline import AnalysisReport, RegimeAnalysis, SkippedRegime, run_analysis
from .records import (
    DailyRecord,
    FittedModel,
    HourlyRecord,
    JoinedObservation,
    Reading,
    Regime,
    TemperatureRecord,
    records_to_frame,
)
from .regimes import split_regimes
from .regression import cross_validate_loo, cross_validate_random_drop, diagnose, fit, predict
from .shape import daily_ratio_series, monthly_diurnal_shape, smooth_ratios

__version__ = "0.1.0"
