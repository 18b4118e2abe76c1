# SMB FinPlan - Financial projection engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
End-to-end projection orchestration.

This module provides the high-level entry point used to compute every
output of the engine in a *single pass*:

1. Amortization charges and capitalized spend per horizon year
   (amortization.py)
2. Yearly income statement (income_statement.py)
3. Treasury projection and its summary (treasury.py)
4. Use-of-funds allocation of each funding round (allocation.py)

``run_projection()`` works on in-memory inputs and performs no I/O.
``run_projection_from_config()`` reads every input declared in a
ProjectionConfig (CSV files, see io.py) and delegates to it.

Separation of concerns
----------------------
- the engine modules remain the single source of truth for each
  computation step and never read configuration,
- this module wires their outputs together,
- views.py converts the result into DataFrames for display or export.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .allocation import DEFAULT_ALLOCATION_CATEGORIES, allocate
from .amortization import (
    DEFAULT_USEFUL_LIFE,
    calculate_product_amortizations,
    capex_by_year,
)
from .config import ProjectionConfig
from .income_statement import generate_income_statement
from .io import (
    read_capitalized_items,
    read_financial_data,
    read_funding_rounds,
    read_manual_adjustments,
)
from .models import (
    AllocationCategory,
    FundingRound,
    IncomeStatementYear,
    ManualAdjustments,
    ProductDevAmortization,
    TreasurySummary,
    TreasuryYear,
    UnifiedFinancialData,
)
from .treasury import project_treasury, summarize_treasury


@dataclass(frozen=True)
class ProjectionResult:
    """
    Consolidated output of one projection pass.

    Attributes
    ----------
    capitalized_items :
        Items the amortization was computed from (kept for schedule views).
    funding_rounds :
        Funding rounds, sorted by (year, quarter).
    amortization_by_year :
        {year -> total amortization charge} over the horizon.
    capex_by_year :
        {year -> capitalized spend} over the horizon.
    income_statement :
        One IncomeStatementYear per horizon year.
    treasury :
        One TreasuryYear per horizon year.
    summary :
        Headline treasury figures.
    allocations :
        {round label -> {category key -> amount}}, in round order.
    default_useful_life :
        Useful life applied to items that do not define their own.
    """

    capitalized_items: tuple[ProductDevAmortization, ...]
    funding_rounds: tuple[FundingRound, ...]
    amortization_by_year: dict[int, Decimal]
    capex_by_year: dict[int, Decimal]
    income_statement: tuple[IncomeStatementYear, ...]
    treasury: tuple[TreasuryYear, ...]
    summary: TreasurySummary
    allocations: dict[str, dict[str, Decimal]]
    default_useful_life: int = DEFAULT_USEFUL_LIFE


def run_projection(
    data: UnifiedFinancialData,
    items: Iterable[ProductDevAmortization] = (),
    adjustments: Optional[ManualAdjustments] = None,
    funding_rounds: Iterable[FundingRound] = (),
    opening_balance: Decimal = Decimal("0"),
    default_useful_life: int = DEFAULT_USEFUL_LIFE,
    allocation_categories: Sequence[AllocationCategory] = DEFAULT_ALLOCATION_CATEGORIES,
) -> ProjectionResult:
    """
    Run the full projection pipeline on in-memory inputs.

    Parameters
    ----------
    data :
        Baseline financials (its years define the horizon).
    items :
        Capitalized product-development items.
    adjustments :
        Manual overrides; None means no override at all.
    funding_rounds :
        Funding events.
    opening_balance :
        Cash available before the first horizon year.
    default_useful_life :
        Useful life for items without their own.
    allocation_categories :
        Categories used to split each funding round.

    Raises
    ------
    ValidationError
        Propagated from the engine modules on invalid input.
    """
    items = tuple(items)
    rounds = tuple(sorted(funding_rounds, key=lambda r: (r.year, r.quarter, r.name)))
    if adjustments is None:
        adjustments = ManualAdjustments.empty()

    amortization_by_year = calculate_product_amortizations(
        items, data.horizon, default_useful_life
    )
    income_statement = generate_income_statement(data, adjustments, amortization_by_year)
    treasury = project_treasury(income_statement, rounds, opening_balance)
    summary = summarize_treasury(treasury)

    allocations: dict[str, dict[str, Decimal]] = {}
    for r in rounds:
        label = r.label
        # Two unnamed rounds in the same quarter would share a label.
        suffix = 2
        while label in allocations:
            label = f"{r.label} ({suffix})"
            suffix += 1
        allocations[label] = allocate(r, allocation_categories)

    return ProjectionResult(
        capitalized_items=items,
        funding_rounds=rounds,
        amortization_by_year=amortization_by_year,
        capex_by_year=capex_by_year(items, data.horizon),
        income_statement=income_statement,
        treasury=treasury,
        summary=summary,
        allocations=allocations,
        default_useful_life=default_useful_life,
    )


def run_projection_from_config(config: ProjectionConfig) -> ProjectionResult:
    """
    Load every input declared in ``config`` and run the projection.

    Optional inputs (capitalized items, funding rounds, adjustments) that
    are not configured are treated as empty.
    """
    inputs = config.inputs

    data = read_financial_data(inputs.financials, config.horizon, config.tax_rate)
    items = (
        read_capitalized_items(inputs.capitalized_items)
        if inputs.capitalized_items is not None
        else []
    )
    rounds = (
        read_funding_rounds(inputs.funding_rounds)
        if inputs.funding_rounds is not None
        else []
    )
    adjustments = (
        read_manual_adjustments(inputs.adjustments)
        if inputs.adjustments is not None
        else ManualAdjustments.empty()
    )

    return run_projection(
        data=data,
        items=items,
        adjustments=adjustments,
        funding_rounds=rounds,
        opening_balance=config.opening_balance,
        default_useful_life=config.default_useful_life,
        allocation_categories=config.allocation_categories,
    )
