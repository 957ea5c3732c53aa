"""Flat-table and model output for reporting / forecasting collaborators."""

import logging
import pathlib
from typing import Dict

import joblib
import pandas as pd
from sqlalchemy import create_engine

from . import stats
from .pipeline import AnalysisReport, RegimeAnalysis
from .records import (
    DailyRatio,
    DailyRecord,
    DiurnalShapeRow,
    DurationPoint,
    HourlyRecord,
    JoinedObservation,
    SmoothedRatio,
    records_to_frame,
)

logger = logging.getLogger(__name__)


def _regime_tables(analysis: RegimeAnalysis) -> Dict[str, pd.DataFrame]:
    name = analysis.regime.value
    model = analysis.model
    tables = {
        f"observations_{name}": pd.DataFrame({
            "date": [o.date for o in model.observations],
            "temperature": model.temperatures,
            "mean_demand": model.demands,
            "fitted": model.fitted,
            "residual": model.residuals,
        }),
    }
    if analysis.diagnostics is not None:
        d = analysis.diagnostics
        tables[f"observations_{name}"]["leverage"] = d.leverage
        tables[f"observations_{name}"]["cooks_distance"] = d.cooks_distance
        tables[f"qq_{name}"] = pd.DataFrame({
            "theoretical_quantile": d.theoretical_quantiles,
            "standardized_residual": d.standardized_residuals,
        })
        tables[f"acf_{name}"] = pd.DataFrame({
            "lag": range(1, len(d.autocorrelation) + 1),
            "autocorrelation": d.autocorrelation,
        })
    if analysis.loo is not None:
        tables[f"loo_{name}"] = pd.DataFrame({
            "date": [o.date for o in model.observations],
            "prediction": analysis.loo.predictions,
            "error": analysis.loo.errors,
            "fold_intercept": [p[0] for p in analysis.loo.fold_params],
            "fold_slope": [p[1] for p in analysis.loo.fold_params],
        })
    if analysis.random_drop is not None and analysis.random_drop.errors:
        tables[f"random_drop_{name}"] = pd.DataFrame({
            "trial": range(len(analysis.random_drop.errors)),
            "rmse": analysis.random_drop.trial_rmse(),
        })
    return tables


def model_summary(report: AnalysisReport) -> pd.DataFrame:
    rows = []
    for regime, analysis in report.regimes.items():
        if isinstance(analysis, RegimeAnalysis):
            row = analysis.model.params()
            row["status"] = "fitted"
            row["reason"] = "; ".join(analysis.notes)
            if analysis.diagnostics is not None:
                row["durbin_watson"] = analysis.diagnostics.durbin_watson
            if analysis.loo is not None:
                row["loo_rmse"] = stats.rmse(analysis.loo.errors)
                row["loo_mae"] = stats.mae(analysis.loo.errors)
            if analysis.random_drop is not None:
                row["random_drop_rmse"] = stats.rmse(analysis.random_drop.all_errors())
                row["random_drop_mae"] = stats.mae(analysis.random_drop.all_errors())
                row["random_drop_skipped"] = analysis.random_drop.skipped
        else:
            row = {"regime": regime.value, "status": "skipped", "reason": analysis.reason, "n": analysis.observations}
        rows.append(row)
    return pd.DataFrame(rows)


def report_tables(report: AnalysisReport) -> Dict[str, pd.DataFrame]:
    tables = {
        "hourly": records_to_frame(report.hourly, HourlyRecord),
        "daily": records_to_frame(report.daily, DailyRecord),
        "diurnal_shape": records_to_frame(report.diurnal_shape, DiurnalShapeRow),
        "daily_ratios": records_to_frame(report.daily_ratios, DailyRatio),
        "weekly_ratios": records_to_frame(report.weekly_ratios, SmoothedRatio),
        "monthly_ratios": records_to_frame(report.monthly_ratios, SmoothedRatio),
        "joined": records_to_frame(report.join.observations, JoinedObservation),
        "models": model_summary(report),
        "duration_demand": records_to_frame(report.demand_duration, DurationPoint),
        "duration_daily": records_to_frame(report.daily_duration, DurationPoint),
    }
    for analysis in report.regimes.values():
        if isinstance(analysis, RegimeAnalysis):
            tables.update(_regime_tables(analysis))
    return tables


def write_tables(tables: Dict[str, pd.DataFrame], output_dir) -> Dict[str, pathlib.Path]:
    output_dir = pathlib.Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = {}
    for name, frame in tables.items():
        path = output_dir / f"{name}.csv"
        frame.to_csv(path, index=False)
        paths[name] = path
    logger.info("Wrote %d table(s) to %s", len(paths), output_dir)
    return paths


def publish_tables(tables: Dict[str, pd.DataFrame], database_url: str, prefix: str = "grid_"):
    """Replace one SQL table per output table, e.g. grid_daily."""
    engine = create_engine(database_url)
    try:
        for name, frame in tables.items():
            frame.to_sql(f"{prefix}{name}", engine, if_exists="replace", index=False)
    finally:
        engine.dispose()
    logger.info("Published %d table(s) to %s", len(tables), engine.url.render_as_string(hide_password=True))


def save_models(report: AnalysisReport, output_dir) -> Dict[str, pathlib.Path]:
    """Pickle each fitted regime model (joblib) for a later forecasting step."""
    output_dir = pathlib.Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = {}
    for model in report.models():
        path = output_dir / f"model_{model.regime.value}.pkl"
        joblib.dump(model, path)
        paths[model.regime.value] = path
    return paths


def load_model(path):
    return joblib.load(path)
