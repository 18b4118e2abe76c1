# SMB FinPlan - Financial projection engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Treasury projection.

``project_treasury()`` walks the income statement in year order and
carries a running cash balance:

    net cash from operations(Y) = net result(Y) + amortization(Y)
    closing(Y)                  = opening(Y) + net cash ops(Y) + funding(Y)
    opening(Y + 1)              = closing(Y)

Amortization is added back because it lowers the reported result without
consuming cash. Funding inflows of a year are the sum of every round
effective that year.

Within a year, operating cash is spread evenly over the four quarters and
each round lands in its own quarter. The resulting quarter-end balances
expose intra-year low points that the year-end balance hides.

``summarize_treasury()`` derives the headline figures (funding need,
break-even year, burn, runway) from a projection.

Negative balances are valid output: they signal a cash shortfall.
"""

from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Optional

from .errors import ValidationError
from .models import (
    QUARTERS,
    FundingRound,
    IncomeStatementYear,
    TreasurySummary,
    TreasuryYear,
)
from .money import ZERO, to_decimal


def _validate_rounds(
    funding_rounds: Iterable[FundingRound], horizon: Sequence[int]
) -> list[FundingRound]:
    rounds = list(funding_rounds)
    for r in rounds:
        if r.amount <= 0:
            raise ValidationError(
                f"Funding round {r.label!r} must have a positive amount, got {r.amount}"
            )
        if r.quarter not in QUARTERS:
            raise ValidationError(
                f"Funding round {r.label!r} has an invalid quarter {r.quarter!r}. "
                f"Expected one of: {', '.join(QUARTERS)}."
            )
        if r.year not in horizon:
            raise ValidationError(
                f"Funding round {r.label!r} is in {r.year}, outside the horizon "
                f"{horizon[0]}-{horizon[-1]}."
            )
    return rounds


def funding_by_year(funding_rounds: Iterable[FundingRound]) -> dict[int, Decimal]:
    """Sum round amounts per year. Rounds in the same year add up."""
    totals: dict[int, Decimal] = {}
    for r in funding_rounds:
        totals[r.year] = totals.get(r.year, ZERO) + r.amount
    return totals


def project_treasury(
    income_statement: Sequence[IncomeStatementYear],
    funding_rounds: Iterable[FundingRound],
    opening_balance: Decimal,
) -> tuple[TreasuryYear, ...]:
    """
    Project the cash position year by year.

    Args:
        income_statement: Output of ``generate_income_statement()``.
        funding_rounds: Funding events; order is irrelevant.
        opening_balance: Cash available before the first year.

    Returns:
        One TreasuryYear per income statement year, in year order.

    Raises:
        ValidationError: if the income statement is empty, or a round has a
            non-positive amount, an invalid quarter, or a year outside the
            income statement's horizon.
    """
    statement = sorted(income_statement, key=lambda s: s.year)
    if not statement:
        raise ValidationError("Cannot project treasury over an empty income statement.")

    horizon = [s.year for s in statement]
    rounds = _validate_rounds(funding_rounds, horizon)

    balance = to_decimal(opening_balance, "opening_balance")
    projection: list[TreasuryYear] = []

    for s in statement:
        year_rounds = [r for r in rounds if r.year == s.year]
        funding = sum((r.amount for r in year_rounds), ZERO)
        cash_from_operations = s.net_result + s.amortization

        # Quarter-end balances; exact because division by 4 terminates.
        quarterly_cash = cash_from_operations / 4
        running = balance
        quarterly_balances: list[Decimal] = []
        for quarter in QUARTERS:
            quarter_funding = sum(
                (r.amount for r in year_rounds if r.quarter == quarter), ZERO
            )
            running = running + quarterly_cash + quarter_funding
            quarterly_balances.append(running)

        record = TreasuryYear(
            year=s.year,
            opening_balance=balance,
            net_result=s.net_result,
            amortization_addback=s.amortization,
            funding_inflows=funding,
            quarterly_balances=tuple(quarterly_balances),
        )
        projection.append(record)
        balance = record.closing_balance

    return tuple(projection)


def summarize_treasury(treasury: Sequence[TreasuryYear]) -> TreasurySummary:
    """
    Derive headline figures from a treasury projection.

    - funding_need : cash required so that the balance, had no round been
      raised, never drops below zero.
    - break_even_year : first year with positive cash from operations.
    - max_burn : largest yearly operating cash outflow.
    - runway_months : months the initial cash lasts at ``max_burn``; None
      when the company never burns cash.
    """
    if not treasury:
        raise ValidationError("Cannot summarize an empty treasury projection.")

    initial_cash = treasury[0].opening_balance
    total_funding = sum((t.funding_inflows for t in treasury), ZERO)
    min_treasury = min(t.min_balance_in_year for t in treasury)

    without_funding = initial_cash
    lowest_without_funding = initial_cash
    max_burn = ZERO
    break_even_year: Optional[int] = None

    for t in treasury:
        cash = t.net_cash_from_operations
        without_funding += cash
        lowest_without_funding = min(lowest_without_funding, without_funding)

        if cash < 0 and -cash > max_burn:
            max_burn = -cash
        if break_even_year is None and cash > 0:
            break_even_year = t.year

    runway_months: Optional[int] = None
    if max_burn > 0:
        runway_months = max(0, int(initial_cash / (max_burn / 12)))

    return TreasurySummary(
        initial_cash=initial_cash,
        total_funding_raised=total_funding,
        min_treasury=min_treasury,
        funding_need=max(ZERO, -lowest_without_funding),
        break_even_year=break_even_year,
        max_burn=max_burn,
        runway_months=runway_months,
    )
