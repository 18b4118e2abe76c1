# SMB FinPlan - Financial projection engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for SMB FinPlan.

This module reads the projection inputs from CSV files and converts them
into the engine's data model. Column names are case-insensitive and
surrounding whitespace is ignored; any extra column is ignored.

Supported files
---------------

1) Baseline financials
   --------------------
       year, revenue, cost_of_goods, operating_expenses[, payroll, headcount,
       financial_income, financial_expense, exceptional_income,
       exceptional_expense, research_tax_credit]

   One row per year. Every year of the planning horizon must be present;
   years outside the horizon are dropped.

2) Capitalized items
   ------------------
       amount, capitalization_year[, useful_life, start_offset, product_id, name]

   An empty ``useful_life`` means "use the configured default".

3) Manual adjustments
   -------------------
       year, line_item, mode, value

   ``mode`` is either ``override`` (replace the computed value) or
   ``delta`` (add to it). ``line_item`` is one of revenue, cost_of_goods,
   operating_expenses, financial_income, financial_expense,
   exceptional_income, exceptional_expense, research_tax_credit, taxes.

4) Funding rounds
   ---------------
       amount, year[, quarter, name, pre_money_valuation]

Invalid structures or values raise a ValueError (ValidationError for
values rejected by the data model) with a clear message.
"""

import os
from collections.abc import Sequence
from typing import Any, Optional, Union

import pandas as pd

from .errors import ValidationError
from .models import (
    NON_OPERATING_LINE_ITEMS,
    Delta,
    FundingRound,
    ManualAdjustments,
    Override,
    ProductDevAmortization,
    UnifiedFinancialData,
    YearFinancials,
)

PathLike = Union[str, "os.PathLike[str]"]

ADJUSTMENT_MODES = {"override": Override, "delta": Delta}


def _read_csv(path: PathLike, required: set[str]) -> pd.DataFrame:
    """Read a CSV file as strings, normalize headers and check columns."""
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [c.lower().strip() for c in df.columns]

    missing = required - set(df.columns)
    if missing:
        raise ValueError(
            f"Invalid structure in {path}: missing column(s) "
            f"{', '.join(sorted(missing))}. Expected at least: "
            f"{', '.join(sorted(required))}."
        )

    for col in df.columns:
        df[col] = df[col].str.strip()
    return df


def _cell(row: pd.Series, column: str) -> Optional[str]:
    """Return a stripped cell value, or None if the column is absent or empty."""
    if column not in row.index:
        return None
    value = row[column]
    if value is None or value == "":
        return None
    return str(value)


def _int_cell(row: pd.Series, column: str, line: int) -> Optional[int]:
    value = _cell(row, column)
    if value is None:
        return None
    try:
        number = float(value)
    except ValueError as exc:
        raise ValueError(
            f"Invalid integer in column '{column}' on line {line}: {value!r}"
        ) from exc
    # "2025.0" is accepted, "2.5" is not.
    if not number.is_integer():
        raise ValidationError(
            f"Invalid integer in column '{column}' on line {line}: {value!r}"
        )
    return int(number)


def _required(row: pd.Series, column: str, line: int) -> str:
    value = _cell(row, column)
    if value is None:
        raise ValueError(f"Missing value in column '{column}' on line {line}.")
    return value


def read_financial_data(
    path: PathLike,
    horizon_years: Sequence[int],
    tax_rate: Any = "0.25",
) -> UnifiedFinancialData:
    """
    Read baseline financials and restrict them to the horizon.

    Raises
    ------
    ValueError
        If the CSV structure is invalid or a value is not numeric.
    ValidationError
        If a horizon year is missing or duplicated.
    """
    df = _read_csv(
        path, {"year", "revenue", "cost_of_goods", "operating_expenses"}
    )

    wanted = set(horizon_years)
    years: list[YearFinancials] = []
    # Line numbers count the header as line 1.
    for line, (_, row) in enumerate(df.iterrows(), start=2):
        year = _int_cell(row, "year", line)
        if year is None:
            raise ValueError(f"Missing value in column 'year' on line {line}.")
        if year not in wanted:
            continue

        years.append(
            YearFinancials(
                year=year,
                revenue=_required(row, "revenue", line),
                cost_of_goods=_required(row, "cost_of_goods", line),
                operating_expenses=_required(row, "operating_expenses", line),
                payroll=_cell(row, "payroll") or "0",
                headcount=_int_cell(row, "headcount", line) or 0,
                **{
                    item: _cell(row, item) or "0"
                    for item in NON_OPERATING_LINE_ITEMS
                },
            )
        )

    missing = sorted(wanted - {y.year for y in years})
    if missing:
        raise ValidationError(
            f"Financial data in {path} does not cover the horizon: "
            f"missing year(s) {missing}."
        )

    return UnifiedFinancialData(years=tuple(years), tax_rate=tax_rate)


def read_capitalized_items(path: PathLike) -> list[ProductDevAmortization]:
    """Read capitalized product-development items."""
    df = _read_csv(path, {"amount", "capitalization_year"})

    items: list[ProductDevAmortization] = []
    for line, (_, row) in enumerate(df.iterrows(), start=2):
        capitalization_year = _int_cell(row, "capitalization_year", line)
        if capitalization_year is None:
            raise ValueError(
                f"Missing value in column 'capitalization_year' on line {line}."
            )
        items.append(
            ProductDevAmortization(
                amount=_required(row, "amount", line),
                capitalization_year=capitalization_year,
                useful_life=_int_cell(row, "useful_life", line),
                start_offset=_int_cell(row, "start_offset", line) or 0,
                product_id=_cell(row, "product_id") or "",
                name=_cell(row, "name") or "",
            )
        )
    return items


def read_manual_adjustments(path: PathLike) -> ManualAdjustments:
    """Read manual adjustments into a fresh ManualAdjustments instance."""
    df = _read_csv(path, {"year", "line_item", "mode", "value"})

    adjustments = ManualAdjustments.empty()
    for line, (_, row) in enumerate(df.iterrows(), start=2):
        year = _int_cell(row, "year", line)
        if year is None:
            raise ValueError(f"Missing value in column 'year' on line {line}.")

        mode = _required(row, "mode", line).lower()
        variant = ADJUSTMENT_MODES.get(mode)
        if variant is None:
            raise ValidationError(
                f"Invalid adjustment mode {mode!r} on line {line}. "
                "Expected 'override' or 'delta'."
            )

        line_item = _required(row, "line_item", line).lower()
        if adjustments.has(year, line_item):
            raise ValidationError(
                f"Duplicate adjustment for ({year}, {line_item}) on line {line}."
            )
        adjustments.set(year, line_item, variant(_required(row, "value", line)))

    return adjustments


def read_funding_rounds(path: PathLike) -> list[FundingRound]:
    """Read funding rounds. Row order is not significant."""
    df = _read_csv(path, {"amount", "year"})

    rounds: list[FundingRound] = []
    for line, (_, row) in enumerate(df.iterrows(), start=2):
        year = _int_cell(row, "year", line)
        if year is None:
            raise ValueError(f"Missing value in column 'year' on line {line}.")

        rounds.append(
            FundingRound(
                amount=_required(row, "amount", line),
                year=year,
                quarter=(_cell(row, "quarter") or "Q1").upper(),
                name=_cell(row, "name") or "",
                pre_money_valuation=_cell(row, "pre_money_valuation"),
            )
        )
    return rounds
