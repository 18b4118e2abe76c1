# SMB FinPlan - Financial projection engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Data model of the projection engine.

Inputs
------
- YearFinancials / UnifiedFinancialData :
    Baseline company financials for every year of the planning horizon,
    plus the single income tax rate.
- ManualAdjustments :
    Sparse user overrides keyed by (year, line item). Each entry is a
    tagged variant, either ``Override`` (replace the computed value) or
    ``Delta`` (add to the computed value).
- ProductDevAmortization :
    One capitalized product-development expenditure.
- FundingRound :
    A discrete cash injection effective in one year (and one quarter).
- AllocationCategory :
    One spending category used to split a funding round.

Outputs
-------
- IncomeStatementYear :
    One year of the derived income statement. The net result is always
    recomputed from the stored line items.
- TreasuryYear :
    Running cash state for one year. The closing balance is always
    recomputed from the opening balance and the year's flows.
- TreasurySummary :
    Headline figures derived from a treasury projection.

Every entity is an immutable dataclass, except ManualAdjustments which is
an explicit mutable container. Engine functions only read it.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional, Union

from .errors import ValidationError
from .money import ZERO, to_decimal

# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------

REVENUE = "revenue"
COST_OF_GOODS = "cost_of_goods"
OPERATING_EXPENSES = "operating_expenses"
FINANCIAL_INCOME = "financial_income"
FINANCIAL_EXPENSE = "financial_expense"
EXCEPTIONAL_INCOME = "exceptional_income"
EXCEPTIONAL_EXPENSE = "exceptional_expense"
RESEARCH_TAX_CREDIT = "research_tax_credit"
TAXES = "taxes"

# Amortization derives from capitalized items and is not adjustable.
ADJUSTABLE_LINE_ITEMS: tuple[str, ...] = (
    REVENUE,
    COST_OF_GOODS,
    OPERATING_EXPENSES,
    FINANCIAL_INCOME,
    FINANCIAL_EXPENSE,
    EXCEPTIONAL_INCOME,
    EXCEPTIONAL_EXPENSE,
    RESEARCH_TAX_CREDIT,
    TAXES,
)

# Below-operating-result items. They default to zero.
NON_OPERATING_LINE_ITEMS: tuple[str, ...] = (
    FINANCIAL_INCOME,
    FINANCIAL_EXPENSE,
    EXCEPTIONAL_INCOME,
    EXCEPTIONAL_EXPENSE,
    RESEARCH_TAX_CREDIT,
)

QUARTERS: tuple[str, ...] = ("Q1", "Q2", "Q3", "Q4")


# ---------------------------------------------------------------------------
# Baseline financials
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class YearFinancials:
    """
    Baseline drivers for one year.

    Attributes
    ----------
    year :
        Calendar year.
    revenue :
        Net revenue (excluding VAT).
    cost_of_goods :
        Purchases and cost of goods sold.
    operating_expenses :
        External operating expenses, excluding payroll.
    payroll :
        Loaded personnel costs. Reported as part of operating expenses.
    headcount :
        Number of people on payroll (informational).
    financial_income, financial_expense :
        Interest and other financial items.
    exceptional_income, exceptional_expense :
        Non-recurring items.
    research_tax_credit :
        Research tax credit (CIR) deducted from the income tax.
    """

    year: int
    revenue: Decimal
    cost_of_goods: Decimal
    operating_expenses: Decimal
    payroll: Decimal = ZERO
    headcount: int = 0
    financial_income: Decimal = ZERO
    financial_expense: Decimal = ZERO
    exceptional_income: Decimal = ZERO
    exceptional_expense: Decimal = ZERO
    research_tax_credit: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "year", int(self.year))
        for name in (
            "revenue",
            "cost_of_goods",
            "operating_expenses",
            "payroll",
            *NON_OPERATING_LINE_ITEMS,
        ):
            object.__setattr__(self, name, to_decimal(getattr(self, name), name))
        object.__setattr__(self, "headcount", int(self.headcount))


@dataclass(frozen=True)
class UnifiedFinancialData:
    """Baseline financials covering the whole horizon, in year order."""

    years: tuple[YearFinancials, ...]
    tax_rate: Decimal = Decimal("0.25")

    def __post_init__(self) -> None:
        years = tuple(sorted(self.years, key=lambda y: y.year))
        seen = [y.year for y in years]
        if len(seen) != len(set(seen)):
            raise ValidationError(f"Duplicate years in financial data: {seen}")

        rate = to_decimal(self.tax_rate, "tax_rate")
        if rate < 0 or rate > 1:
            raise ValidationError(f"Tax rate must be between 0 and 1, got {rate}")

        object.__setattr__(self, "years", years)
        object.__setattr__(self, "tax_rate", rate)

    @property
    def horizon(self) -> tuple[int, ...]:
        return tuple(y.year for y in self.years)

    def for_year(self, year: int) -> YearFinancials:
        for y in self.years:
            if y.year == year:
                return y
        raise KeyError(year)


# ---------------------------------------------------------------------------
# Manual adjustments
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Override:
    """Replace the computed value with ``value``."""

    value: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", to_decimal(self.value, "value"))

    def apply(self, baseline: Decimal) -> Decimal:
        return self.value


@dataclass(frozen=True)
class Delta:
    """Add ``amount`` (possibly negative) to the computed value."""

    amount: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount, "amount"))

    def apply(self, baseline: Decimal) -> Decimal:
        return baseline + self.amount


Adjustment = Union[Override, Delta]


class ManualAdjustments:
    """
    Sparse overrides keyed by ``(year, line_item)``.

    Absence is a first-class state: ``has(year, line_item)`` tells whether
    an explicit entry exists, and ``get`` returns None when it does not.
    Only entries that were explicitly set change the generated statement.

    Instances are never shared. Use ``ManualAdjustments.empty()`` (or
    ``default_manual_adjustments()``) to obtain a fresh, empty instance.
    """

    def __init__(
        self, entries: Optional[Mapping[tuple[int, str], Adjustment]] = None
    ) -> None:
        self._entries: dict[tuple[int, str], Adjustment] = {}
        if entries:
            for (year, line_item), adjustment in entries.items():
                self.set(year, line_item, adjustment)

    @classmethod
    def empty(cls) -> "ManualAdjustments":
        return cls()

    @staticmethod
    def _key(year: Any, line_item: str) -> tuple[int, str]:
        # Years may arrive as strings from CSV or TOML inputs.
        try:
            return int(year), line_item
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid adjustment year: {year!r}") from exc

    def set(self, year: int, line_item: str, adjustment: Adjustment) -> None:
        if line_item not in ADJUSTABLE_LINE_ITEMS:
            raise ValidationError(
                f"Unknown or non-adjustable line item {line_item!r}. "
                f"Expected one of: {', '.join(ADJUSTABLE_LINE_ITEMS)}."
            )
        if not isinstance(adjustment, (Override, Delta)):
            raise ValidationError(
                f"Adjustment must be an Override or a Delta, got {adjustment!r}"
            )
        self._entries[self._key(year, line_item)] = adjustment

    def has(self, year: int, line_item: str) -> bool:
        """Return True if an explicit entry exists for (year, line_item)."""
        return self._key(year, line_item) in self._entries

    def get(self, year: int, line_item: str) -> Optional[Adjustment]:
        return self._entries.get(self._key(year, line_item))

    def remove(self, year: int, line_item: str) -> None:
        self._entries.pop(self._key(year, line_item), None)

    def apply(self, year: int, line_item: str, baseline: Decimal) -> Decimal:
        """Return ``baseline`` with the entry for (year, line_item) applied."""
        adjustment = self._entries.get(self._key(year, line_item))
        if adjustment is None:
            return baseline
        return adjustment.apply(baseline)

    def entries(self) -> dict[tuple[int, str], Adjustment]:
        return dict(self._entries)

    # Quoted: the ``set`` method shadows the builtin inside the class body.
    def years(self) -> "set[int]":
        return {year for year, _ in self._entries}

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[tuple[int, str]]:
        return iter(sorted(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ManualAdjustments):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"ManualAdjustments({self._entries!r})"


def default_manual_adjustments() -> ManualAdjustments:
    """Return a new adjustments container with no overrides."""
    return ManualAdjustments.empty()


# ---------------------------------------------------------------------------
# Capitalized product development
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProductDevAmortization:
    """
    One capitalized product-development expenditure.

    Attributes
    ----------
    amount :
        Capitalized cost (>= 0).
    capitalization_year :
        Year the cost is capitalized (typically the product launch year).
    useful_life :
        Amortization period in years (>= 1). None means "use the configured
        default useful life".
    start_offset :
        Number of years between capitalization and the first charge.
    product_id, name :
        Identification, for display only.
    """

    amount: Decimal
    capitalization_year: int
    useful_life: Optional[int] = None
    start_offset: int = 0
    product_id: str = ""
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount, "amount"))
        object.__setattr__(self, "capitalization_year", int(self.capitalization_year))


# ---------------------------------------------------------------------------
# Funding
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FundingRound:
    """A discrete equity/debt injection effective in ``year``."""

    amount: Decimal
    year: int
    quarter: str = "Q1"
    name: str = ""
    pre_money_valuation: Optional[Decimal] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount, "amount"))
        object.__setattr__(self, "year", int(self.year))
        if self.pre_money_valuation is not None:
            object.__setattr__(
                self,
                "pre_money_valuation",
                to_decimal(self.pre_money_valuation, "pre_money_valuation"),
            )

    @property
    def label(self) -> str:
        return self.name or f"Round {self.year} {self.quarter}"

    @property
    def post_money_valuation(self) -> Optional[Decimal]:
        if self.pre_money_valuation is None:
            return None
        return self.pre_money_valuation + self.amount


@dataclass(frozen=True)
class AllocationCategory:
    """Spending category used to split a funding round."""

    key: str
    label: str
    weight: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if self.weight is not None:
            object.__setattr__(self, "weight", to_decimal(self.weight, "weight"))


# ---------------------------------------------------------------------------
# Derived records
# ---------------------------------------------------------------------------


def _ratio(numerator: Decimal, revenue: Decimal) -> Decimal:
    return numerator / revenue if revenue > 0 else ZERO


@dataclass(frozen=True)
class IncomeStatementYear:
    """
    One year of the generated income statement.

    Only line items are stored. Subtotals and the net result are
    properties so they can never drift away from the line items.
    ``taxes`` is the tax actually due, after the research tax credit;
    ``research_tax_credit`` is kept for display only.
    """

    year: int
    revenue: Decimal
    cost_of_goods: Decimal
    operating_expenses: Decimal
    amortization: Decimal
    taxes: Decimal
    headcount: int = 0
    financial_income: Decimal = ZERO
    financial_expense: Decimal = ZERO
    exceptional_income: Decimal = ZERO
    exceptional_expense: Decimal = ZERO
    research_tax_credit: Decimal = ZERO

    @property
    def gross_margin(self) -> Decimal:
        return self.revenue - self.cost_of_goods

    @property
    def ebitda(self) -> Decimal:
        return self.gross_margin - self.operating_expenses

    @property
    def operating_result(self) -> Decimal:
        return self.ebitda - self.amortization

    @property
    def financial_result(self) -> Decimal:
        return self.financial_income - self.financial_expense

    @property
    def exceptional_result(self) -> Decimal:
        return self.exceptional_income - self.exceptional_expense

    @property
    def pre_tax_result(self) -> Decimal:
        return self.operating_result + self.financial_result + self.exceptional_result

    @property
    def net_result(self) -> Decimal:
        return (
            self.revenue
            - self.cost_of_goods
            - self.operating_expenses
            - self.amortization
            + self.financial_result
            + self.exceptional_result
            - self.taxes
        )

    @property
    def gross_margin_rate(self) -> Decimal:
        return _ratio(self.gross_margin, self.revenue)

    @property
    def ebitda_margin(self) -> Decimal:
        return _ratio(self.ebitda, self.revenue)

    @property
    def net_margin(self) -> Decimal:
        return _ratio(self.net_result, self.revenue)


@dataclass(frozen=True)
class TreasuryYear:
    """
    Cash position for one year.

    ``quarterly_balances`` holds the running balance at the end of Q1..Q4;
    the last one always equals ``closing_balance``.
    """

    year: int
    opening_balance: Decimal
    net_result: Decimal
    amortization_addback: Decimal
    funding_inflows: Decimal
    quarterly_balances: tuple[Decimal, ...] = field(default_factory=tuple)

    @property
    def net_cash_from_operations(self) -> Decimal:
        return self.net_result + self.amortization_addback

    @property
    def closing_balance(self) -> Decimal:
        return self.opening_balance + self.net_cash_from_operations + self.funding_inflows

    @property
    def min_balance_in_year(self) -> Decimal:
        return min((self.opening_balance, *self.quarterly_balances))


@dataclass(frozen=True)
class TreasurySummary:
    """Headline figures of a treasury projection."""

    initial_cash: Decimal
    total_funding_raised: Decimal
    min_treasury: Decimal
    funding_need: Decimal
    break_even_year: Optional[int]
    max_burn: Decimal
    runway_months: Optional[int]
