"""
Run the analysis end to end:

    python -m grid_temperature --demand demand.csv --temperature city_temps.txt \
        --start 2019-01-01 --end 2019-12-31

Settings not given on the command line come from GRID_* environment
variables (a .env file is honoured), then from the built-in defaults.
"""

import argparse
import logging
import sys

from . import export, sources
from .config import AnalysisConfig, parse_date
from .errors import GridAnalysisError
from .pipeline import RegimeAnalysis, run_analysis
from .regimes import BOUNDARY_POLICIES


def build_parser():
    parser = argparse.ArgumentParser(
        prog="grid_temperature",
        description="Hourly/daily demand aggregation, load shape and heating/cooling temperature regression.",
    )
    parser.add_argument("--demand", dest="demand_path", help="demand CSV (GRID_DEMAND_CSV)")
    parser.add_argument("--temperature", dest="temperature_path", help="month day year temperature file (GRID_TEMPERATURE_FILE)")
    parser.add_argument("--demand-column", help="demand column name (default: demand)")
    parser.add_argument("--timestamp-column", help="timestamp column name (default: timestamp)")
    parser.add_argument("--start", dest="start_date", type=parse_date, help="analysis window start, inclusive")
    parser.add_argument("--end", dest="end_date", type=parse_date, help="analysis window end, inclusive")
    parser.add_argument("--threshold", type=float, help="heating/cooling split in F (default: 70)")
    parser.add_argument("--boundary-policy", choices=BOUNDARY_POLICIES,
                        help="where days exactly at the threshold go (default: exclude)")
    parser.add_argument("--drop-fraction", type=float, help="random-drop hold-out fraction (default: 0.1)")
    parser.add_argument("--trials", type=int, help="random-drop trials (default: 500)")
    parser.add_argument("--seed", type=int, help="random-drop seed")
    parser.add_argument("--exclude-date", dest="exclude_dates", action="append", type=parse_date,
                        help="date to leave out of the peak ratio series; repeatable")
    parser.add_argument("--output", dest="output_dir", help="output directory (default: output)")
    parser.add_argument("--no-plots", dest="plots", action="store_false", default=None)
    parser.add_argument("--database-url", help="also write the tables to this SQL database (DATABASE_URL)")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    overrides = {k: v for k, v in vars(args).items() if k != "verbose" and v is not None}
    if "exclude_dates" in overrides:
        overrides["exclude_dates"] = tuple(overrides["exclude_dates"])

    print("🚀 Starting Grid Demand / Temperature Analysis...")
    try:
        config = AnalysisConfig.from_env(**overrides)
        if not config.demand_path or not config.temperature_path:
            raise ValueError("both a demand file and a temperature file are required")

        demand = sources.load_demand_csv(config.demand_path, config.timestamp_column, config.demand_column)
        temperatures = sources.load_temperature_text(config.temperature_path)
        report = run_analysis(demand.records, temperatures.records, config)

        print("-" * 65)
        print(f"Readings used: {report.readings} ({demand.dropped} malformed dropped)")
        print(f"Days: {len(report.daily)} ({len(report.incomplete_days)} with fewer than 24 hours)")
        print(f"Joined days: {len(report.join.observations)} "
              f"(dropped {report.join.dropped_demand_dates} demand / {report.join.dropped_temperature_dates} temperature)")
        for regime, analysis in report.regimes.items():
            if isinstance(analysis, RegimeAnalysis):
                m = analysis.model
                print(f"🔮 {regime.value.title()}: demand = {m.intercept:.1f} + {m.slope:.2f} * T "
                      f"(n={m.n}, R²={m.r_squared:.3f})")
            else:
                print(f"⚠️ {regime.value.title()} regression skipped: {analysis.reason}")
        print("-" * 65)

        tables = export.report_tables(report)
        export.write_tables(tables, config.output_dir)
        export.save_models(report, config.output_dir)
        if config.plots:
            from .plots import save_figures
            save_figures(report, config.output_dir)
        if config.database_url:
            print("📦 Saving to Database...")
            export.publish_tables(tables, config.database_url)

        print(f"✅ Success! Outputs written to {config.output_dir}")
        return 0
    except (GridAnalysisError, ValueError, OSError) as e:
        print(f"❌ Analysis failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
