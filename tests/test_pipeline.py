import datetime as dt

import numpy as np
import pandas as pd
import pytest

from grid_temperature import export
from grid_temperature.__main__ import main
from grid_temperature.config import AnalysisConfig
from grid_temperature.errors import GridAnalysisError
from grid_temperature.pipeline import RegimeAnalysis, SkippedRegime, run_analysis
from grid_temperature.plots import save_figures
from grid_temperature.records import Regime, TemperatureRecord
from grid_temperature.regression import predict

from .conftest import N_DAYS, START


@pytest.fixture
def config():
    return AnalysisConfig(trials=20, seed=3)


@pytest.fixture
def report(city_readings, city_temperatures, config):
    return run_analysis(city_readings, city_temperatures, config)


def test_report_shapes(report):
    assert report.readings == N_DAYS * 24
    assert len(report.hourly) == N_DAYS * 24
    assert len(report.daily) == N_DAYS
    assert report.incomplete_days == ()
    assert len(report.join.observations) == N_DAYS
    assert report.join.dropped_temperature_dates == 6
    assert len(report.split.boundary) == 1
    assert len(report.split.heating) == 15
    assert len(report.split.cooling) == 24
    assert {r.month for r in report.diurnal_shape} == {6, 7}
    assert report.daily_duration[-1].exceedance == 1.0


def test_both_regimes_fitted(report):
    heating = report.regimes[Regime.HEATING]
    cooling = report.regimes[Regime.COOLING]

    assert isinstance(heating, RegimeAnalysis)
    assert isinstance(cooling, RegimeAnalysis)
    assert heating.model.slope == pytest.approx(-3.0, abs=0.3)
    assert cooling.model.slope == pytest.approx(4.0, abs=0.3)
    assert len(cooling.loo) == 24
    assert len(cooling.random_drop.errors) + cooling.random_drop.skipped == 20
    assert cooling.diagnostics.cooks_distance.shape == (24,)
    assert report.skipped() == []


def test_excluded_dates_leave_ratio_series(city_readings, city_temperatures):
    outage = START + dt.timedelta(days=3)
    report = run_analysis(city_readings, city_temperatures, AnalysisConfig(trials=5, exclude_dates=(outage,)))

    assert outage not in {r.date for r in report.daily_ratios}
    assert outage in {d.date for d in report.daily}


def test_regime_without_data_is_skipped(city_readings):
    cold = [TemperatureRecord(START + dt.timedelta(days=i), 30.0 + i) for i in range(N_DAYS)]

    report = run_analysis(city_readings, cold, AnalysisConfig(trials=5))

    assert isinstance(report.regimes[Regime.HEATING], RegimeAnalysis)
    skipped = report.regimes[Regime.COOLING]
    assert isinstance(skipped, SkippedRegime)
    assert skipped.reason


def test_empty_join_skips_regression_only(city_readings):
    report = run_analysis(city_readings, [], AnalysisConfig(trials=5))

    assert all(isinstance(a, SkippedRegime) for a in report.regimes.values())
    assert len(report.daily) == N_DAYS
    assert report.demand_duration


def test_no_readings():
    with pytest.raises(GridAnalysisError):
        run_analysis([], [])


def test_tables_and_models(report, tmp_path):
    tables = export.report_tables(report)
    paths = export.write_tables(tables, tmp_path)

    assert {"hourly", "daily", "diurnal_shape", "joined", "models", "loo_cooling", "qq_heating"} <= set(paths)
    daily = pd.read_csv(paths["daily"])
    assert len(daily) == N_DAYS
    assert {"peak_to_mean", "peak_to_trough", "trough_demand"} <= set(daily.columns)
    models = pd.read_csv(paths["models"])
    assert set(models["regime"]) == {"heating", "cooling"}
    assert set(models["status"]) == {"fitted"}
    assert (models["loo_mae"] <= models["loo_rmse"] + 1e-9).all()
    assert (models["random_drop_mae"] <= models["random_drop_rmse"] + 1e-9).all()

    saved = export.save_models(report, tmp_path)
    loaded = export.load_model(saved["cooling"])
    cooling = report.regimes[Regime.COOLING].model
    assert loaded.slope == cooling.slope
    np.testing.assert_allclose(predict(loaded, [90.0]), predict(cooling, [90.0]))


def test_publish_tables_to_sqlite(report, tmp_path):
    url = f"sqlite:///{tmp_path / 'grid.db'}"
    tables = export.report_tables(report)

    export.publish_tables(tables, url)

    from sqlalchemy import create_engine
    engine = create_engine(url)
    with engine.connect() as conn:
        stored = pd.read_sql("SELECT * FROM grid_daily", conn)
    engine.dispose()
    assert len(stored) == N_DAYS


def test_save_figures(report, tmp_path):
    paths = save_figures(report, tmp_path)

    names = {p.stem for p in paths}
    assert {"duration_demand", "diurnal_shape", "temperature_vs_demand", "diagnostics_cooling"} <= names
    assert all(p.exists() for p in paths)


def _write_inputs(tmp_path, city_readings, city_temperatures):
    demand = tmp_path / "demand.csv"
    pd.DataFrame({
        "timestamp": [r.timestamp.isoformat(sep=" ") for r in city_readings],
        "demand": [r.demand for r in city_readings],
    }).to_csv(demand, index=False)
    temps = tmp_path / "temps.txt"
    temps.write_text("".join(
        f"{t.date.month:>3}{t.date.day:>4}{t.date.year:>6}{t.temperature:>7.1f}\n" for t in city_temperatures
    ))
    return demand, temps


def test_cli_end_to_end(tmp_path, city_readings, city_temperatures, capsys):
    demand, temps = _write_inputs(tmp_path, city_readings, city_temperatures)
    out = tmp_path / "out"

    status = main([
        "--demand", str(demand), "--temperature", str(temps), "--output", str(out),
        "--trials", "10", "--seed", "1", "--no-plots", "--start", "2019-06-05",
    ])

    assert status == 0
    printed = capsys.readouterr().out
    assert "Success" in printed
    assert "Cooling: demand" in printed
    assert (out / "daily.csv").exists()
    assert (out / "model_heating.pkl").exists()
    assert not list(out.glob("*.png"))
    joined = pd.read_csv(out / "joined.csv")
    assert len(joined) == N_DAYS - 4


def test_cli_reports_missing_input(tmp_path, capsys, monkeypatch):
    monkeypatch.delenv("GRID_DEMAND_CSV", raising=False)
    monkeypatch.delenv("GRID_TEMPERATURE_FILE", raising=False)
    monkeypatch.chdir(tmp_path)

    assert main(["--output", str(tmp_path)]) == 1
    assert "Analysis failed" in capsys.readouterr().out
