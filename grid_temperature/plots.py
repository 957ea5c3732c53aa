import logging
import pathlib

import matplotlib.pyplot as plt
import numpy as np

from .pipeline import AnalysisReport, RegimeAnalysis
from .records import Regime
from .regression import predict

logger = logging.getLogger(__name__)

REGIME_COLORS = {Regime.HEATING: "red", Regime.COOLING: "blue"}


def plot_duration_curve(points, ax=None, title="Load Duration Curve", ylabel="Demand (MW)"):
    if ax is None:
        _, ax = plt.subplots(figsize=(10, 5))
    # the largest value holds from 0% up to its own exceedance
    xs = [0.0] + [p.exceedance * 100 for p in points]
    ys = [points[0].value if points else float("nan")] + [p.value for p in points]
    ax.step(xs, ys, where="pre")
    ax.set_xlabel("Time Equalled or Exceeded (%)")
    ax.set_ylabel(ylabel)
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    return ax


def plot_diurnal_shape(rows, ax=None):
    """Mean demand by hour of day, one line per calendar month."""
    if ax is None:
        _, ax = plt.subplots(figsize=(12, 6))
    for month in sorted({r.month for r in rows}):
        month_rows = sorted((r for r in rows if r.month == month), key=lambda r: r.hour)
        ax.plot([r.hour for r in month_rows], [r.mean_demand for r in month_rows], marker="o", label=f"Month {month}")
    ax.set_xlabel("Hour of Day")
    ax.set_ylabel("Average Demand (MW)")
    ax.set_title("Typical Daily Load Profile by Month")
    ax.set_xticks(range(0, 24))
    ax.legend(ncol=2, fontsize="small")
    ax.grid(True, alpha=0.3)
    return ax


def plot_ratio_series(daily, weekly, monthly, ax=None, attribute="peak_to_mean"):
    if ax is None:
        _, ax = plt.subplots(figsize=(15, 6))
    ax.plot([r.date for r in daily], [getattr(r, attribute) for r in daily], alpha=0.3, label="Daily")
    ax.plot([r.period_start for r in weekly], [getattr(r, attribute) for r in weekly], linewidth=2, label="Weekly Average")
    ax.plot([r.period_start for r in monthly], [getattr(r, attribute) for r in monthly], marker="s", label="Monthly Average")
    ax.set_ylabel(attribute.replace("_", " ").title())
    ax.set_title(f"Daily {attribute.replace('_', ' ').title()} Ratio")
    ax.legend()
    ax.grid(True, alpha=0.3)
    return ax


def plot_regime_fits(report: AnalysisReport, ax=None):
    """Scatter of daily demand vs temperature with each fitted regime line."""
    if ax is None:
        _, ax = plt.subplots(figsize=(10, 6))
    split = report.split
    for regime in Regime:
        obs = split.for_regime(regime)
        ax.scatter([o.temperature for o in obs], [o.mean_demand for o in obs],
                   s=8, alpha=0.5, color=REGIME_COLORS[regime], label=regime.value.title())
        analysis = report.regimes.get(regime)
        if isinstance(analysis, RegimeAnalysis):
            t = np.linspace(analysis.model.temperatures.min(), analysis.model.temperatures.max(), 50)
            ax.plot(t, predict(analysis.model, t), color=REGIME_COLORS[regime], linewidth=2,
                    label=f"{regime.value.title()} fit: {analysis.model.slope:.2f} MW/F")
    if split.boundary:
        ax.scatter([o.temperature for o in split.boundary], [o.mean_demand for o in split.boundary],
                   s=8, color="grey", label="At threshold")
    ax.axvline(x=split.threshold, color="black", linestyle="--", label="Regime Threshold")
    ax.set_xlabel("Temperature (F)")
    ax.set_ylabel("Daily Mean Demand (MW)")
    ax.set_title("Grid Sensitivity: Temperature vs. Demand")
    ax.legend()
    return ax


def plot_diagnostics(diagnostics, title=""):
    fig, axes = plt.subplots(2, 2, figsize=(12, 8), layout="constrained")
    ax1, ax2, ax3, ax4 = axes.ravel()

    ax1.scatter(diagnostics.theoretical_quantiles, diagnostics.standardized_residuals, s=10)
    lims = [np.nanmin(diagnostics.theoretical_quantiles), np.nanmax(diagnostics.theoretical_quantiles)]
    ax1.plot(lims, lims, color="red", linestyle="--")
    ax1.set_title("Normal Q-Q")
    ax1.set_xlabel("Theoretical Quantiles")
    ax1.set_ylabel("Standardized Residuals")

    ax2.scatter(diagnostics.fitted, diagnostics.residuals, s=10)
    ax2.axhline(0, color="red", linestyle="--")
    ax2.set_title("Residuals vs Fitted")
    ax2.set_xlabel("Fitted (MW)")

    ax3.bar(range(1, len(diagnostics.autocorrelation) + 1), diagnostics.autocorrelation)
    ax3.set_title(f"Residual Autocorrelation (DW = {diagnostics.durbin_watson:.2f})")
    ax3.set_xlabel("Lag (days)")

    ax4.stem(range(len(diagnostics.cooks_distance)), diagnostics.cooks_distance)
    ax4.set_title("Cook's Distance")
    ax4.set_xlabel("Observation")

    if title:
        fig.suptitle(title)
    return fig


def save_figures(report: AnalysisReport, output_dir):
    """Render the standard figure set as PNGs; returns the written paths."""
    output_dir = pathlib.Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = []

    def _save(fig, name):
        path = output_dir / f"{name}.png"
        fig.savefig(path, dpi=150, bbox_inches="tight")
        plt.close(fig)
        paths.append(path)
        logger.debug("Plot saved: %s", path)

    fig, ax = plt.subplots(figsize=(10, 5))
    plot_duration_curve(report.demand_duration, ax=ax)
    _save(fig, "duration_demand")

    fig, ax = plt.subplots(figsize=(10, 5))
    plot_duration_curve(report.daily_duration, ax=ax, title="Daily Mean Demand Duration Curve")
    _save(fig, "duration_daily")

    if report.diurnal_shape:
        fig, ax = plt.subplots(figsize=(12, 6))
        plot_diurnal_shape(report.diurnal_shape, ax=ax)
        _save(fig, "diurnal_shape")

    if report.daily_ratios:
        fig, ax = plt.subplots(figsize=(15, 6))
        plot_ratio_series(report.daily_ratios, report.weekly_ratios, report.monthly_ratios, ax=ax)
        _save(fig, "peak_to_mean")

    if report.join.observations:
        fig, ax = plt.subplots(figsize=(10, 6))
        plot_regime_fits(report, ax=ax)
        _save(fig, "temperature_vs_demand")

    for regime, analysis in report.regimes.items():
        if isinstance(analysis, RegimeAnalysis) and analysis.diagnostics is not None:
            _save(plot_diagnostics(analysis.diagnostics, title=f"{regime.value.title()} Regime Diagnostics"),
                  f"diagnostics_{regime.value}")
    return paths
