# SMB FinPlan - Financial projection engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for SMB FinPlan.

This module turns the engine outputs (tuples of dataclasses holding
Decimal amounts) into pandas DataFrames ready for console display or CSV
export. It never computes financial figures itself: every number comes
from the engine records.

Available views:

- income statement : one row per statement line, one column per year,
  with a ``level`` column driving the level of detail:
      level 0 : net result
      level 1 : revenue and subtotals (gross margin, EBITDA, ...)
      level 2 : detail lines (costs, financial and exceptional items,
                taxes)
- treasury         : one row per year (opening, flows, closing, intra-year
                     low point).
- amortization     : one row per (capitalized item, horizon year) with the
                     charge and the remaining book value; a yearly
                     table sets capitalized spend against the charges.
- allocation       : one row per (funding round, category).
- summary          : one row per headline treasury figure.

Decimal amounts are converted to floats rounded to the requested number of
decimals at this boundary only.
"""

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Optional

import pandas as pd

from .amortization import item_schedule, remaining_book_value
from .models import (
    AllocationCategory,
    IncomeStatementYear,
    ProductDevAmortization,
    TreasurySummary,
    TreasuryYear,
)

# (key, label, level, type) in display order. 'line' rows are stored line
# items, 'calc' rows are subtotals recomputed by IncomeStatementYear.
STATEMENT_LINES: tuple[tuple[str, str, int, str], ...] = (
    ("revenue", "Revenue", 1, "line"),
    ("cost_of_goods", "Cost of goods sold", 2, "line"),
    ("gross_margin", "Gross margin", 1, "calc"),
    ("operating_expenses", "Operating expenses", 2, "line"),
    ("ebitda", "EBITDA", 1, "calc"),
    ("amortization", "Amortization of product development", 2, "line"),
    ("operating_result", "Operating result", 1, "calc"),
    ("financial_income", "Financial income", 2, "line"),
    ("financial_expense", "Financial expense", 2, "line"),
    ("financial_result", "Financial result", 1, "calc"),
    ("exceptional_income", "Exceptional income", 2, "line"),
    ("exceptional_expense", "Exceptional expense", 2, "line"),
    ("exceptional_result", "Exceptional result", 1, "calc"),
    ("pre_tax_result", "Pre-tax result", 1, "calc"),
    ("research_tax_credit", "Research tax credit (deducted from tax)", 2, "line"),
    ("taxes", "Income tax", 2, "line"),
    ("net_result", "Net result", 0, "calc"),
)

TREASURY_COLUMNS = [
    "year",
    "opening_balance",
    "net_result",
    "amortization_addback",
    "net_cash_from_operations",
    "funding_inflows",
    "closing_balance",
    "min_balance_in_year",
]


def _amount(value: Optional[Decimal], decimals: int) -> float:
    if value is None:
        return float("nan")
    return round(float(value), decimals)


def income_statement_to_dataframe(
    statement: Sequence[IncomeStatementYear], decimals: int = 2
) -> pd.DataFrame:
    """
    Convert an income statement into a wide DataFrame.

    Columns: display_order, key, level, name, type, then one column per
    year (named after the year). Rows follow STATEMENT_LINES.
    """
    years = sorted(statement, key=lambda s: s.year)

    rows: list[dict[str, object]] = []
    for i, (key, label, level, row_type) in enumerate(STATEMENT_LINES, start=1):
        row: dict[str, object] = {
            "display_order": i * 10,
            "key": key,
            "level": level,
            "name": label,
            "type": row_type,
        }
        for s in years:
            row[str(s.year)] = _amount(getattr(s, key), decimals)
        rows.append(row)

    return pd.DataFrame(rows)


def apply_view_level_filter(out: pd.DataFrame, view: str) -> pd.DataFrame:
    """Return a view-specific slice of a statement DataFrame.

    - "simplified": keep rows with level <= 1 (net result, revenue and
      subtotals),
    - any other value (e.g. "detailed"): keep all rows.

    display_order is renumbered 10, 20, 30, ... in the current row order.
    """
    if view == "simplified":
        df = out[out["level"] <= 1].copy()
    else:
        df = out.copy()

    if "display_order" in df.columns:
        df = df.sort_values("display_order", ascending=True, kind="stable")
    df = df.reset_index(drop=True)
    df["display_order"] = (df.index + 1) * 10
    return df


def treasury_to_dataframe(
    treasury: Sequence[TreasuryYear], decimals: int = 2
) -> pd.DataFrame:
    """Convert a treasury projection into one row per year."""
    if not treasury:
        return pd.DataFrame(columns=TREASURY_COLUMNS)

    rows = [
        {
            "year": t.year,
            "opening_balance": _amount(t.opening_balance, decimals),
            "net_result": _amount(t.net_result, decimals),
            "amortization_addback": _amount(t.amortization_addback, decimals),
            "net_cash_from_operations": _amount(t.net_cash_from_operations, decimals),
            "funding_inflows": _amount(t.funding_inflows, decimals),
            "closing_balance": _amount(t.closing_balance, decimals),
            "min_balance_in_year": _amount(t.min_balance_in_year, decimals),
        }
        for t in treasury
    ]
    return pd.DataFrame(rows)[TREASURY_COLUMNS]


def amortization_schedule_to_dataframe(
    items: Sequence[ProductDevAmortization],
    horizon_years: Sequence[int],
    default_useful_life: int,
    decimals: int = 2,
) -> pd.DataFrame:
    """
    Build the per-item amortization table over the horizon.

    Columns: product_id, name, year, charge, remaining_book_value.
    """
    columns = ["product_id", "name", "year", "charge", "remaining_book_value"]
    rows: list[dict[str, object]] = []
    for item in items:
        schedule = item_schedule(item, default_useful_life)
        for year in sorted(horizon_years):
            rows.append(
                {
                    "product_id": item.product_id,
                    "name": item.name,
                    "year": year,
                    "charge": _amount(schedule.get(year, Decimal("0")), decimals),
                    "remaining_book_value": _amount(
                        remaining_book_value(item, year, default_useful_life),
                        decimals,
                    ),
                }
            )

    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows)[columns]


def amortization_by_year_to_dataframe(
    amortization_by_year: Mapping[int, Decimal],
    capex_by_year: Mapping[int, Decimal],
    decimals: int = 2,
) -> pd.DataFrame:
    """
    One row per horizon year: capitalized spend, amortization charge and
    the cumulative net book value added over the horizon.
    """
    columns = ["year", "capitalized", "amortization", "net_book_value_change"]
    rows: list[dict[str, object]] = []
    cumulative = Decimal("0")
    for year in sorted(set(amortization_by_year) | set(capex_by_year)):
        capitalized = capex_by_year.get(year, Decimal("0"))
        charge = amortization_by_year.get(year, Decimal("0"))
        cumulative += capitalized - charge
        rows.append(
            {
                "year": year,
                "capitalized": _amount(capitalized, decimals),
                "amortization": _amount(charge, decimals),
                "net_book_value_change": _amount(cumulative, decimals),
            }
        )

    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows)[columns]


def allocation_to_dataframe(
    allocations: Mapping[str, Mapping[str, Decimal]],
    categories: Sequence[AllocationCategory],
    decimals: int = 2,
) -> pd.DataFrame:
    """
    Convert per-round allocations into one row per (round, category).

    Columns: round, key, label, amount, share (fraction of the round).
    """
    columns = ["round", "key", "label", "amount", "share"]
    label_by_key = {c.key: c.label for c in categories}

    rows: list[dict[str, object]] = []
    for round_label, allocation in allocations.items():
        total = sum(allocation.values(), Decimal("0"))
        for key, amount in allocation.items():
            share = float(amount / total) if total else float("nan")
            rows.append(
                {
                    "round": round_label,
                    "key": key,
                    "label": label_by_key.get(key, key),
                    "amount": _amount(amount, decimals),
                    "share": round(share, 4),
                }
            )

    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows)[columns]


def summary_to_dataframe(summary: TreasurySummary, decimals: int = 2) -> pd.DataFrame:
    """Convert the treasury summary into (key, label, value) rows."""
    rows = [
        ("initial_cash", "Initial cash", _amount(summary.initial_cash, decimals)),
        (
            "total_funding_raised",
            "Total funding raised",
            _amount(summary.total_funding_raised, decimals),
        ),
        ("min_treasury", "Lowest treasury", _amount(summary.min_treasury, decimals)),
        ("funding_need", "Funding need", _amount(summary.funding_need, decimals)),
        ("max_burn", "Maximum yearly burn", _amount(summary.max_burn, decimals)),
        ("break_even_year", "Break-even year", summary.break_even_year),
        ("runway_months", "Runway (months)", summary.runway_months),
    ]
    return pd.DataFrame(rows, columns=["key", "label", "value"], dtype=object)
