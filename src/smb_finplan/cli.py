# SMB FinPlan - Financial projection engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for SMB FinPlan.

This module wires together the main building blocks of SMB FinPlan:

- projection configuration (horizon, tax rate, useful life, inputs),
- CSV inputs (baseline financials, capitalized items, adjustments,
  funding rounds),
- projection engine (amortization, income statement, treasury,
  allocation),
- view helpers (tabular rendering).

The CLI is intentionally thin: it does not implement financial logic
itself. It is also the only place where engine errors are turned into
user-facing messages.


High-level pipeline
-------------------

1) Load the TOML configuration (smb_finplan_config.toml by default)
   using ``load_projection_config()``.

2) Read the CSV inputs declared in the configuration and run the
   projection with ``run_projection_from_config()``.

3) Convert the requested outputs into DataFrames (views.py) and render
   them as console tables and/or CSV files depending on the display mode.


Scopes: what to render
----------------------

- ``income_statement`` (default): yearly income statement.
- ``treasury``: treasury projection and headline figures.
- ``amortization``: per-item amortization schedule.
- ``allocation``: use-of-funds split of each funding round.
- ``all``: everything above.

The ``--view`` argument (``simplified`` or ``detailed``) controls the
level of detail of the income statement.
"""

import argparse
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .config import DISPLAY_MODES, load_projection_config
from .errors import FinPlanError
from .projection import run_projection_from_config
from .views import (
    allocation_to_dataframe,
    amortization_by_year_to_dataframe,
    amortization_schedule_to_dataframe,
    apply_view_level_filter,
    income_statement_to_dataframe,
    summary_to_dataframe,
    treasury_to_dataframe,
)

SCOPES = ("income_statement", "treasury", "amortization", "allocation", "all")


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m smb_finplan.cli",
        description=(
            "SMB FinPlan - Financial projection engine for SMBs. "
            "Reads baseline financials, capitalized development costs, manual "
            "adjustments and funding rounds, then renders a multi-year income "
            "statement and treasury forecast."
        ),
    )

    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of smb_finplan and exit.",
    )

    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. "
            "If omitted, 'smb_finplan_config.toml' in the current directory is used."
        ),
    )

    ap.add_argument(
        "--scope",
        choices=list(SCOPES),
        default="income_statement",
        help="Which outputs to render (default: income_statement).",
    )

    ap.add_argument(
        "--view",
        choices=["simplified", "detailed"],
        default="detailed",
        help=(
            "Level of detail of the income statement: 'simplified' keeps "
            "revenue, subtotals and net result; 'detailed' keeps every line."
        ),
    )

    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=list(DISPLAY_MODES),
        help=(
            "Override the display mode from the configuration: "
            "'table' (console), 'csv' (files) or 'both'."
        ),
    )

    ap.add_argument(
        "--output-dir",
        dest="output_dir",
        help="Directory for CSV outputs (default: data/output).",
    )

    return ap


def _render(
    tables: list[tuple[str, str, pd.DataFrame]],
    display_mode: str,
    output_dir: Optional[str],
) -> None:
    """Print and/or export (title, file stem, DataFrame) tables."""
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


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the SMB FinPlan CLI.

    Parses command-line arguments, loads the configuration, reads the CSV
    inputs, runs the projection and renders the selected scope as console
    tables and/or CSV files.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"smb_finplan version {__version__}")
        return

    # 1) Configuration and projection. Errors become readable messages here.
    try:
        config = load_projection_config(args.config_path)
        result = run_projection_from_config(config)
    except FileNotFoundError as exc:
        raise SystemExit(f"Error: {exc}") from exc
    except (FinPlanError, ValueError) as exc:
        raise SystemExit(f"Invalid projection input: {exc}") from exc

    horizon = config.horizon
    print(
        f"Projection horizon: {horizon[0]} → {horizon[-1]} "
        f"({len(horizon)} years, currency {config.currency})"
    )
    print(
        f"Inputs: {len(result.capitalized_items)} capitalized items, "
        f"{len(result.funding_rounds)} funding rounds"
    )

    scope = args.scope
    decimals = config.decimals
    tables: list[tuple[str, str, pd.DataFrame]] = []

    # 2) Build the requested views.
    if scope in {"income_statement", "all"}:
        statement_df = apply_view_level_filter(
            income_statement_to_dataframe(result.income_statement, decimals),
            args.view,
        )
        tables.append(("Income statement", "income_statement", statement_df))

    if scope in {"treasury", "all"}:
        tables.append(
            ("Treasury", "treasury", treasury_to_dataframe(result.treasury, decimals))
        )
        tables.append(
            (
                "Treasury summary",
                "treasury_summary",
                summary_to_dataframe(result.summary, decimals),
            )
        )
        if result.summary.min_treasury < 0:
            print(
                "Warning: the treasury goes negative during the horizon "
                f"(lowest point {result.summary.min_treasury:.2f})."
            )

    if scope in {"amortization", "all"}:
        tables.append(
            (
                "Amortization schedule",
                "amortization",
                amortization_schedule_to_dataframe(
                    result.capitalized_items,
                    horizon,
                    result.default_useful_life,
                    decimals,
                ),
            )
        )
        tables.append(
            (
                "Amortization by year",
                "amortization_by_year",
                amortization_by_year_to_dataframe(
                    result.amortization_by_year, result.capex_by_year, decimals
                ),
            )
        )

    if scope in {"allocation", "all"}:
        if not result.allocations:
            print("No funding rounds configured: nothing to allocate.")
        tables.append(
            (
                "Use of funds",
                "allocation",
                allocation_to_dataframe(
                    result.allocations, config.allocation_categories, decimals
                ),
            )
        )

    # 3) Render.
    display_mode = args.display_mode or config.display_mode
    _render(tables, display_mode, args.output_dir)


if __name__ == "__main__":
    main()
