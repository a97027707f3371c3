# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for ERP FinSight.

This module wires together the main building blocks of ERP FinSight:

- global configuration (data source, database, costing rules, display),
- dataset loading through the configured repository (CSV or SQLite),
- cost allocation, period aggregation, profitability and ownership
  calculations,
- view helpers (metric tables and rounded listings).

The CLI is intentionally thin: it does not implement any costing logic
itself. It resolves the reporting period and month from the command line,
calls the engine and renders the results.


High-level pipeline
-------------------

1) Load the TOML configuration (erp_finsight_config.toml by default, or
   ``--config PATH``) with ``load_app_config()`` and configure logging.

2) Load a Dataset snapshot from the configured repository:
   - ``[data] source = "csv"``: a directory of CSV files,
   - ``[data] source = "sqlite"``: the application database.

3) Resolve the reporting period and the overhead month:
   - period: ``--from-date/--to-date``, then ``--period``, then
     ``--month``, then the current calendar month,
   - month: ``--month`` if given, else the current month.

4) Run the requested subcommand and render its tables.


Subcommands
-----------

- ``costs``      Total costs of the period and the period result.
- ``revenue``    Total revenue with product and category breakdowns.
- ``product ID`` Profit metrics of one product.
- ``portfolio``  Profit metrics of every product and portfolio totals.
- ``owners``     Owner profit distribution (all-time revenue and
                 expenses, or the selected period with ``--scoped``).
- ``bills``      Monthly bills status for ``--month`` (``--as-of`` date
                 decides what is overdue, today by default).
- ``trends``     Revenue, costs and profit for the last ``--months``
                 calendar months ending with ``--month``.
- ``validate``   Data quality report of the dataset.
- ``import``     Import a CSV directory into the SQLite database.


Display modes and output
------------------------

The configuration defines a default display mode
(``display.mode = "table" | "csv" | "both"``), which can be overridden
with ``--display-mode``:

- ``table``: render results to stdout only,
- ``csv``:   write CSV files only,
- ``both``:  do both.

CSV files are written into ``--output DIR`` (``data/output`` by default)
with a timestamp-based name, e.g. ``costs_YYYY-MM-DD-HH-MM-SS.csv``.


Examples
--------

    python -m erp_finsight.cli costs --period last-30
    python -m erp_finsight.cli revenue --month 2025-01 --display-mode both
    python -m erp_finsight.cli product 3 --from-date 2025-01-01 --to-date 2025-01-31
    python -m erp_finsight.cli bills --month 2025-01 --as-of 2025-01-20
    python -m erp_finsight.cli trends --month 2025-03 --months 3
    python -m erp_finsight.cli import --from-dir data/sample --mode replace
"""

import argparse
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .aggregation import (
    calculate_bill_status,
    calculate_total_costs,
    calculate_total_revenue,
    summarize_bills,
)
from .config import AppConfig, load_app_config
from .dataset import Dataset
from .db import has_data, import_dataset, init_database
from .io import read_dataset_csv
from .logging_config import configure_logging
from .ownership import calculate_distributable_profit, calculate_owner_profits
from .periods import (
    Period,
    _today,
    current_month,
    determine_period_from_args,
    is_valid_month,
)
from .profitability import (
    calculate_period_result,
    calculate_portfolio_metrics,
    calculate_profit_metrics,
)
from .repository import repository_from_config
from .trends import compute_trends, monthly_periods
from .validation import validate_dataset, validate_period
from .views import (
    bill_summary_to_dataframe,
    cost_summary_to_dataframe,
    period_result_to_dataframe,
    portfolio_products_view,
    portfolio_totals_to_dataframe,
    profit_metrics_to_dataframe,
    revenue_summary_to_dataframe,
    round_frame,
)

# (title, file stem, table)
Table = tuple[str, str, pd.DataFrame]


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m erp_finsight.cli",
        description=(
            "ERP FinSight - Cost & Profitability engine for small-business ERPs. "
            "Reads ERP records (sales, recipes, payroll, bills, expenses, owners) "
            "and renders period costs, revenue, profitability and owner shares."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of erp_finsight and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. "
            "If omitted, 'erp_finsight_config.toml' in the current directory is used."
        ),
    )
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=["table", "csv", "both"],
        help=(
            "Override the display.mode setting from the configuration file. "
            "'table' prints results to stdout, "
            "'csv' writes CSV files only, "
            "'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help=(
            "Output directory where CSV files will be written when display "
            "mode includes 'csv'. If omitted, 'data/output' is used."
        ),
    )
    ap.add_argument(
        "--log-level",
        dest="log_level",
        help="Override the logging.level setting (DEBUG, INFO, WARNING, ...).",
    )

    # Period selection, shared by the reporting subcommands.
    period_args = argparse.ArgumentParser(add_help=False)
    period_args.add_argument(
        "--period",
        choices=["month", "last-7", "last-30", "last-90", "year", "all"],
        help=(
            "Predefined reporting period. If not provided, the month given "
            "by --month (or the current month) is used."
        ),
    )
    period_args.add_argument(
        "--from-date",
        dest="from_date",
        help="Custom period start date (YYYY-MM-DD).",
    )
    period_args.add_argument(
        "--to-date",
        dest="to_date",
        help="Custom period end date (YYYY-MM-DD).",
    )
    period_args.add_argument(
        "--month",
        help=(
            "Month (YYYY-MM) whose payroll and bills make up the monthly "
            "overhead. Also the reporting period when no other period is given."
        ),
    )

    subparsers = ap.add_subparsers(dest="command", metavar="command")

    subparsers.add_parser(
        "costs", parents=[period_args], help="Total costs of the period."
    )
    subparsers.add_parser(
        "revenue", parents=[period_args], help="Total revenue of the period."
    )

    product = subparsers.add_parser(
        "product", parents=[period_args], help="Profit metrics of one product."
    )
    product.add_argument("product_id", type=int, help="Product id.")

    subparsers.add_parser(
        "portfolio",
        parents=[period_args],
        help="Profit metrics of every product and portfolio totals.",
    )

    owners = subparsers.add_parser(
        "owners", parents=[period_args], help="Owner profit distribution."
    )
    owners.add_argument(
        "--scoped",
        action="store_true",
        help=(
            "Restrict revenue and expenses to the selected period instead of "
            "all-time totals."
        ),
    )

    bills = subparsers.add_parser("bills", help="Monthly bills status.")
    bills.add_argument("--month", help="Month (YYYY-MM). Defaults to the current month.")
    bills.add_argument(
        "--as-of",
        dest="as_of",
        help="Reference date (YYYY-MM-DD) for overdue bills. Defaults to today.",
    )

    trends = subparsers.add_parser("trends", help="Multi-month trends.")
    trends.add_argument(
        "--month", help="Last month of the series (YYYY-MM). Defaults to the current month."
    )
    trends.add_argument(
        "--months", type=int, default=6, help="Number of months (default: 6)."
    )

    subparsers.add_parser(
        "validate", parents=[period_args], help="Data quality report."
    )

    imp = subparsers.add_parser(
        "import", help="Import a directory of CSV files into the SQLite database."
    )
    imp.add_argument(
        "--from-dir",
        dest="source_dir",
        help="CSV directory. Defaults to data.csv_dir from the configuration.",
    )
    imp.add_argument(
        "--mode",
        choices=["replace", "append"],
        default="replace",
        help="'replace' empties the database first, 'append' upserts by id.",
    )

    return ap


def _parse_optional_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an optional ISO date string (YYYY-MM-DD).

    Raises
    ------
    SystemExit
        If the date format is invalid.
    """
    if value is None:
        return None

    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        msg = f"Invalid date format: {value!r}. Expected YYYY-MM-DD."
        raise SystemExit(msg) from exc


def _resolve_month(parser: argparse.ArgumentParser, args: argparse.Namespace) -> str:
    month = getattr(args, "month", None) or current_month()
    if not is_valid_month(month):
        parser.error(f"Invalid month {month!r}, expected YYYY-MM.")
    return month


def _resolve_period(parser: argparse.ArgumentParser, args: argparse.Namespace) -> Period:
    try:
        return determine_period_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))


def _print_period(period: Period, month: str) -> None:
    print(
        f"Applied period: {period.label} "
        f"({period.start.isoformat()} → {period.end.isoformat()}), "
        f"overhead month: {month}"
    )


def _render(tables: list[Table], display_mode: str, output_dir: Optional[str]) -> None:
    """Print tables and/or write them as timestamped CSV files."""
    if display_mode in {"table", "both"}:
        for title, _, df in tables:
            print()
            print(f"=== {title} ===")
            if df.empty:
                print("(no rows)")
            else:
                print(df.to_string(index=False))

    if display_mode in {"csv", "both"}:
        out_dir = Path(output_dir) if output_dir else Path("data/output")
        out_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")

        for _, stem, df in tables:
            path = out_dir / f"{stem}_{timestamp}.csv"
            df.to_csv(path, index=False)
            print(f"Wrote {path} ({len(df)} rows)")


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


def _handle_costs(dataset, config, period, month) -> list[Table]:
    decimals = config.decimals
    summary = calculate_total_costs(dataset, period, month, config.costing)
    result = calculate_period_result(dataset, period, month, config.costing)
    return [
        ("Total costs", "costs", cost_summary_to_dataframe(summary, decimals)),
        ("Period result", "period_result", period_result_to_dataframe(result, decimals)),
    ]


def _handle_revenue(dataset, config, period) -> list[Table]:
    decimals = config.decimals
    summary = calculate_total_revenue(dataset, period)
    return [
        ("Total revenue", "revenue", revenue_summary_to_dataframe(summary, decimals)),
        ("Revenue by product", "revenue_by_product", round_frame(summary.by_product, decimals)),
        (
            "Revenue by category",
            "revenue_by_category",
            round_frame(summary.by_category, decimals),
        ),
    ]


def _handle_product(dataset, config, period, month, product_id) -> list[Table]:
    metrics = calculate_profit_metrics(dataset, product_id, period, month, config.costing)
    return [
        (
            f"Product #{product_id}",
            f"product_{product_id}",
            profit_metrics_to_dataframe(metrics, config.decimals),
        )
    ]


def _handle_portfolio(dataset, config, period, month) -> list[Table]:
    decimals = config.decimals
    summary = calculate_portfolio_metrics(dataset, period, month, config.costing)
    return [
        ("Products", "portfolio_products", portfolio_products_view(summary.products, decimals)),
        ("Portfolio", "portfolio", portfolio_totals_to_dataframe(summary.portfolio, decimals)),
    ]


def _handle_owners(dataset, config, period, month, scoped) -> list[Table]:
    scope = period if scoped else None
    net_profit = calculate_distributable_profit(dataset, month, scope)
    print(f"Distributable net profit: {net_profit:.{config.decimals}f} {config.currency}")
    owners = calculate_owner_profits(dataset, month, scope)
    return [("Owner profits", "owners", round_frame(owners, config.decimals))]


def _handle_bills(dataset, config, month, as_of) -> list[Table]:
    decimals = config.decimals
    status = calculate_bill_status(dataset, month, as_of)
    summary = summarize_bills(dataset, month)
    return [
        (f"Monthly bills {month}", "bills", round_frame(status, decimals)),
        ("Bills summary", "bills_summary", bill_summary_to_dataframe(summary, decimals)),
    ]


def _handle_trends(dataset, config, month, months) -> list[Table]:
    periods = monthly_periods(month, months)
    df = compute_trends(dataset, periods, config.costing)
    return [("Trends", "trends", round_frame(df, config.decimals))]


def _handle_validate(dataset, period) -> list[Table]:
    report = validate_dataset(dataset).merge(validate_period(period))
    print(
        f"Validation: {len(report.errors)} error(s), "
        f"{len(report.warnings)} warning(s)."
    )
    return [("Validation issues", "validation", report.to_dataframe())]


def _handle_import(parser, args, config: AppConfig) -> None:
    source_dir = Path(args.source_dir) if args.source_dir else config.csv_dir
    if not source_dir.is_dir():
        parser.error(f"CSV directory for import not found: {source_dir}")

    print(f"Importing ERP data from {source_dir} into the database...")
    dataset = read_dataset_csv(source_dir)
    stats = import_dataset(
        dataset,
        config.database,
        mode=args.mode,
        source_type="csv",
        source_label=str(source_dir),
    )
    print(f"Imported batch #{stats.batch_id}: {stats.total} rows ({args.mode}).")
    for name, count in stats.rows_inserted.items():
        print(f"  {name}: {count}")


def _load_dataset(config: AppConfig) -> Dataset:
    if config.data_source == "sqlite":
        init_database(config.database)
        if not has_data(config.database):
            print("Warning: database is empty, use the 'import' command to load data.")
    return repository_from_config(config).load()


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the ERP FinSight CLI.

    This function parses command-line arguments, loads the configuration,
    configures logging, loads the dataset from the configured repository,
    resolves the reporting period and overhead month, runs the requested
    subcommand and renders its tables as console tables and/or CSV files.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"erp_finsight version {__version__}")
        return

    if not args.command:
        parser.print_help()
        return

    # 1) Load application configuration and configure logging.
    if args.config_path:
        config = load_app_config(args.config_path)
    else:
        config = load_app_config()

    try:
        configure_logging(level=args.log_level or config.log_level)
    except ValueError as exc:
        parser.error(str(exc))

    # 2) Import does not need a loaded dataset.
    if args.command == "import":
        _handle_import(parser, args, config)
        return

    # 3) Load the dataset snapshot.
    dataset = _load_dataset(config)

    # 4) Run the subcommand.
    if args.command == "bills":
        month = _resolve_month(parser, args)
        as_of = _parse_optional_date(args.as_of) or _today()
        tables = _handle_bills(dataset, config, month, as_of)
    elif args.command == "trends":
        month = _resolve_month(parser, args)
        if args.months <= 0:
            parser.error("--months must be a positive number.")
        tables = _handle_trends(dataset, config, month, args.months)
    else:
        month = _resolve_month(parser, args)
        period = _resolve_period(parser, args)
        _print_period(period, month)

        if args.command == "costs":
            tables = _handle_costs(dataset, config, period, month)
        elif args.command == "revenue":
            tables = _handle_revenue(dataset, config, period)
        elif args.command == "product":
            tables = _handle_product(dataset, config, period, month, args.product_id)
        elif args.command == "portfolio":
            tables = _handle_portfolio(dataset, config, period, month)
        elif args.command == "owners":
            tables = _handle_owners(dataset, config, period, month, args.scoped)
        else:
            tables = _handle_validate(dataset, period)

    # 5) Resolve display mode: config value overridden by CLI if provided.
    display_mode = args.display_mode or config.display_mode
    _render(tables, display_mode, args.output_dir)


if __name__ == "__main__":
    main()
