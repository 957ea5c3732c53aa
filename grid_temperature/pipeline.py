"""
End-to-end analysis run.

readings -> binned -> hourly / daily -> diurnal shape and peak ratios
                                     -> joined with temperature -> regimes
                                     -> fit, diagnose, cross-validate
Duration curves are built from the raw readings and the daily means.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

from . import aggregation, binning, regression, shape
from .config import AnalysisConfig
from .duration import duration_curve
from .errors import GridAnalysisError, InsufficientDataError
from .join import join_temperature
from .records import (
    DailyRatio,
    DailyRecord,
    Diagnostics,
    DiurnalShapeRow,
    DurationPoint,
    FittedModel,
    HourlyRecord,
    JoinResult,
    LeaveOneOutResult,
    RandomDropResult,
    Reading,
    Regime,
    RegimeSplit,
    SmoothedRatio,
    TemperatureRecord,
)
from .regimes import split_regimes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkippedRegime:
    regime: Regime
    reason: str
    observations: int = 0


@dataclass(frozen=True, eq=False)
class RegimeAnalysis:
    regime: Regime
    model: FittedModel
    diagnostics: Optional[Diagnostics] = None
    loo: Optional[LeaveOneOutResult] = None
    random_drop: Optional[RandomDropResult] = None
    notes: Tuple[str, ...] = ()


@dataclass(frozen=True, eq=False)
class AnalysisReport:
    config: AnalysisConfig
    readings: int
    hourly: Tuple[HourlyRecord, ...]
    daily: Tuple[DailyRecord, ...]
    incomplete_days: Tuple
    diurnal_shape: Tuple[DiurnalShapeRow, ...]
    daily_ratios: Tuple[DailyRatio, ...]
    weekly_ratios: Tuple[SmoothedRatio, ...]
    monthly_ratios: Tuple[SmoothedRatio, ...]
    join: JoinResult
    split: RegimeSplit
    regimes: Dict[Regime, Union[RegimeAnalysis, SkippedRegime]] = field(default_factory=dict)
    demand_duration: Tuple[DurationPoint, ...] = ()
    daily_duration: Tuple[DurationPoint, ...] = ()

    def models(self) -> List[FittedModel]:
        return [a.model for a in self.regimes.values() if isinstance(a, RegimeAnalysis)]

    def skipped(self) -> List[SkippedRegime]:
        return [a for a in self.regimes.values() if isinstance(a, SkippedRegime)]


def analyze_regime(regime: Regime, observations, config: AnalysisConfig):
    """Fit and validate one regime; a failed fit becomes a SkippedRegime."""
    if not observations:
        return SkippedRegime(regime, "no observations in this regime")
    try:
        model = regression.fit(observations, regime)
    except InsufficientDataError as exc:
        logger.warning("Skipping %s regression: %s", regime.value, exc)
        return SkippedRegime(regime, str(exc), len(observations))

    notes, diagnostics, loo, random_drop = [], None, None, None
    try:
        diagnostics = regression.diagnose(model)
    except InsufficientDataError as exc:
        notes.append(f"diagnostics skipped: {exc}")
    try:
        loo = regression.cross_validate_loo(model)
    except InsufficientDataError as exc:
        notes.append(f"leave-one-out skipped: {exc}")
    try:
        random_drop = regression.cross_validate_random_drop(
            observations, config.drop_fraction, config.trials, seed=config.seed, regime=regime,
        )
    except InsufficientDataError as exc:
        notes.append(f"random-drop skipped: {exc}")
    for note in notes:
        logger.warning("%s: %s", regime.value, note)

    return RegimeAnalysis(regime, model, diagnostics, loo, random_drop, tuple(notes))


def run_analysis(
    readings: Sequence[Reading],
    temperatures: Sequence[TemperatureRecord],
    config: Optional[AnalysisConfig] = None,
) -> AnalysisReport:
    config = config or AnalysisConfig()

    binned = binning.bin_readings(readings)
    if not binned:
        raise GridAnalysisError("no valid demand readings to analyse")
    hourly = aggregation.aggregate_hourly(binned)
    daily = aggregation.aggregate_daily(binned)
    incomplete = aggregation.incomplete_days(hourly)
    if incomplete:
        logger.info("%d day(s) have fewer than 24 hourly bins", len(incomplete))

    daily_ratios = shape.daily_ratio_series(daily, config.exclude_dates)
    joined = join_temperature(daily, temperatures, config.start_date, config.end_date)
    split = split_regimes(joined.observations, config.threshold, config.boundary_policy)

    regimes = {}
    for regime in Regime:
        if not joined.observations:
            regimes[regime] = SkippedRegime(regime, "no dates shared by demand and temperature")
            continue
        regimes[regime] = analyze_regime(regime, split.for_regime(regime), config)

    return AnalysisReport(
        config=config,
        readings=len(binned),
        hourly=tuple(hourly),
        daily=tuple(daily),
        incomplete_days=tuple(incomplete),
        diurnal_shape=tuple(shape.monthly_diurnal_shape(hourly)),
        daily_ratios=tuple(daily_ratios),
        weekly_ratios=tuple(shape.smooth_ratios(daily_ratios, "week")),
        monthly_ratios=tuple(shape.smooth_ratios(daily_ratios, "month")),
        join=joined,
        split=split,
        regimes=regimes,
        demand_duration=tuple(duration_curve([b.demand for b in binned])),
        daily_duration=tuple(duration_curve([d.mean_demand for d in daily])),
    )
