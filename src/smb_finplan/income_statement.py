# SMB FinPlan - Financial projection engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Income statement generation.

``generate_income_statement()`` turns baseline financials, manual
adjustments and the amortization charges produced by ``amortization.py``
into one ``IncomeStatementYear`` per horizon year.

For every year the pipeline is:

1. Take the baseline line items from ``UnifiedFinancialData``:
   revenue, cost of goods, operating expenses (external expenses plus
   payroll), and the non-operating items (financial and exceptional
   income/expense, research tax credit), which default to zero.
2. Apply explicit adjustments to those line items. An ``Override``
   replaces the baseline, a ``Delta`` is added to it; without an entry the
   baseline is kept.
3. Take the amortization charge of the year verbatim from the scheduler
   output (zero if the year is missing). It is not adjustable.
4. Compute income tax on the adjusted pre-tax result (operating result
   plus financial and exceptional results):
   ``max(0, pre_tax_result) * tax_rate``, rounded to the cent, minus the
   research tax credit and floored at zero. Loss years pay no tax and
   carry nothing forward.
5. Apply an explicit ``taxes`` adjustment, if any.

The net result is never stored: ``IncomeStatementYear.net_result``
recomputes it from the line items.
"""

from collections.abc import Mapping
from dataclasses import replace
from decimal import Decimal

from .errors import ValidationError
from .models import (
    COST_OF_GOODS,
    NON_OPERATING_LINE_ITEMS,
    OPERATING_EXPENSES,
    RESEARCH_TAX_CREDIT,
    REVENUE,
    TAXES,
    IncomeStatementYear,
    ManualAdjustments,
    UnifiedFinancialData,
)
from .money import ZERO, round_to_unit, to_decimal


def compute_income_tax(
    pre_tax_result: Decimal, tax_rate: Decimal, tax_credit: Decimal = ZERO
) -> Decimal:
    """
    Income tax on a pre-tax result.

    No tax (and no refund) on a loss. A tax credit lowers the tax but
    never below zero; the unused part is lost.
    """
    if pre_tax_result <= 0:
        return ZERO
    return max(ZERO, round_to_unit(pre_tax_result * tax_rate) - tax_credit)


def _check_adjustments_in_horizon(
    adjustments: ManualAdjustments, horizon: tuple[int, ...]
) -> None:
    outside = sorted(adjustments.years() - set(horizon))
    if outside:
        raise ValidationError(
            f"Manual adjustments reference years outside the horizon "
            f"{horizon[0]}-{horizon[-1]}: {outside}"
        )


def generate_income_statement(
    data: UnifiedFinancialData,
    adjustments: ManualAdjustments,
    amortization_by_year: Mapping[int, Decimal],
) -> tuple[IncomeStatementYear, ...]:
    """
    Build the yearly income statement over the data's horizon.

    Args:
        data: Baseline financials and tax rate.
        adjustments: Manual overrides/deltas keyed by (year, line item).
        amortization_by_year: Output of
            ``calculate_product_amortizations()``.

    Returns:
        A tuple with exactly one IncomeStatementYear per horizon year, in
        ascending year order.

    Raises:
        ValidationError: if the horizon is empty, an adjustment references
            a year outside the horizon, or the research tax credit ends up
            negative.
    """
    horizon = data.horizon
    if not horizon:
        raise ValidationError("Cannot generate an income statement for an empty horizon.")

    _check_adjustments_in_horizon(adjustments, horizon)

    statements: list[IncomeStatementYear] = []
    for baseline in data.years:
        year = baseline.year

        revenue = adjustments.apply(year, REVENUE, baseline.revenue)
        cost_of_goods = adjustments.apply(year, COST_OF_GOODS, baseline.cost_of_goods)
        operating_expenses = adjustments.apply(
            year, OPERATING_EXPENSES, baseline.operating_expenses + baseline.payroll
        )
        non_operating = {
            item: adjustments.apply(year, item, getattr(baseline, item))
            for item in NON_OPERATING_LINE_ITEMS
        }
        tax_credit = non_operating[RESEARCH_TAX_CREDIT]
        if tax_credit < 0:
            raise ValidationError(
                f"Research tax credit cannot be negative in {year}: {tax_credit}"
            )

        amortization = to_decimal(
            amortization_by_year.get(year, ZERO), f"amortization[{year}]"
        )

        record = IncomeStatementYear(
            year=year,
            revenue=revenue,
            cost_of_goods=cost_of_goods,
            operating_expenses=operating_expenses,
            amortization=amortization,
            taxes=ZERO,
            headcount=baseline.headcount,
            **non_operating,
        )
        taxes = adjustments.apply(
            year,
            TAXES,
            compute_income_tax(record.pre_tax_result, data.tax_rate, tax_credit),
        )
        statements.append(replace(record, taxes=taxes))

    return tuple(statements)
