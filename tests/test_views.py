from decimal import Decimal

import pandas as pd
import pytest

from smb_finplan.models import (
    AllocationCategory,
    FundingRound,
    ProductDevAmortization,
    UnifiedFinancialData,
    YearFinancials,
)
from smb_finplan.projection import run_projection
from smb_finplan.views import (
    allocation_to_dataframe,
    amortization_by_year_to_dataframe,
    amortization_schedule_to_dataframe,
    apply_view_level_filter,
    income_statement_to_dataframe,
    summary_to_dataframe,
    treasury_to_dataframe,
)


@pytest.fixture()
def result():
    data = UnifiedFinancialData(
        years=tuple(
            YearFinancials(year=y, revenue=1000, cost_of_goods=600, operating_expenses=200)
            for y in (2025, 2026, 2027)
        )
    )
    return run_projection(
        data=data,
        items=[
            ProductDevAmortization(
                amount=100, capitalization_year=2025, useful_life=3, product_id="P1"
            )
        ],
        funding_rounds=[FundingRound(amount=300, year=2026, name="Seed")],
        opening_balance=Decimal("50"),
    )


def test_income_statement_wide_layout(result) -> None:
    df = income_statement_to_dataframe(result.income_statement)

    assert list(df.columns) == [
        "display_order",
        "key",
        "level",
        "name",
        "type",
        "2025",
        "2026",
        "2027",
    ]
    net = df.loc[df["key"] == "net_result"].iloc[0]
    # 1000 - 600 - 200 - 33.33 = 166.67 pre-tax, tax 41.67
    assert net["2025"] == pytest.approx(125.0)
    assert net["2027"] == pytest.approx(124.99)
    assert df["display_order"].tolist() == list(range(10, 180, 10))
    financial = df.loc[df["key"] == "financial_result"].iloc[0]
    assert [financial["2025"], financial["2026"], financial["2027"]] == [0.0] * 3


def test_simplified_view_keeps_subtotals_only(result) -> None:
    df = apply_view_level_filter(
        income_statement_to_dataframe(result.income_statement), "simplified"
    )

    assert df["key"].tolist() == [
        "revenue",
        "gross_margin",
        "ebitda",
        "operating_result",
        "financial_result",
        "exceptional_result",
        "pre_tax_result",
        "net_result",
    ]
    assert df["display_order"].tolist() == [10, 20, 30, 40, 50, 60, 70, 80]


def test_detailed_view_keeps_every_line(result) -> None:
    base = income_statement_to_dataframe(result.income_statement)

    df = apply_view_level_filter(base, "detailed")

    assert len(df) == len(base)


def test_treasury_dataframe(result) -> None:
    df = treasury_to_dataframe(result.treasury)

    assert df["year"].tolist() == [2025, 2026, 2027]
    assert df["opening_balance"].iloc[1] == pytest.approx(df["closing_balance"].iloc[0])
    assert df["funding_inflows"].tolist() == pytest.approx([0.0, 300.0, 0.0])


def test_treasury_dataframe_empty() -> None:
    df = treasury_to_dataframe(())

    assert df.empty
    assert "closing_balance" in df.columns


def test_amortization_schedule_dataframe(result) -> None:
    df = amortization_schedule_to_dataframe(
        result.capitalized_items, [2025, 2026, 2027, 2028], result.default_useful_life
    )

    assert df["charge"].tolist() == pytest.approx([33.33, 33.33, 33.34, 0.0])
    assert df["remaining_book_value"].tolist() == pytest.approx(
        [66.67, 33.34, 0.0, 0.0]
    )
    assert set(df["product_id"]) == {"P1"}


def test_allocation_dataframe(result) -> None:
    categories = [
        AllocationCategory("hiring", "Hiring"),
        AllocationCategory("rd", "R&D"),
        AllocationCategory("buffer", "Buffer"),
        AllocationCategory("marketing", "Marketing"),
        AllocationCategory("inventory", "Inventory"),
    ]

    df = allocation_to_dataframe(result.allocations, categories)

    assert set(df["round"]) == {"Seed"}
    assert df["amount"].sum() == pytest.approx(300.0)
    assert df["share"].tolist() == pytest.approx([0.2] * 5)
    assert df.loc[df["key"] == "rd", "label"].iloc[0] == "R&D"


def test_allocation_dataframe_empty() -> None:
    df = allocation_to_dataframe({}, [])

    assert isinstance(df, pd.DataFrame)
    assert df.empty


def test_summary_dataframe(result) -> None:
    df = summary_to_dataframe(result.summary)

    values = dict(zip(df["key"], df["value"]))
    assert values["total_funding_raised"] == pytest.approx(300.0)
    assert values["break_even_year"] == 2025
    assert pd.isna(values["runway_months"])


def test_amortization_by_year_sets_capex_against_charges(result) -> None:
    df = amortization_by_year_to_dataframe(
        result.amortization_by_year, result.capex_by_year
    )

    assert df["year"].tolist() == [2025, 2026, 2027]
    assert df["capitalized"].tolist() == pytest.approx([100.0, 0.0, 0.0])
    assert df["amortization"].tolist() == pytest.approx([33.33, 33.33, 33.34])
    assert df["net_book_value_change"].tolist() == pytest.approx([66.67, 33.34, 0.0])


def test_amortization_by_year_empty() -> None:
    df = amortization_by_year_to_dataframe({}, {})

    assert df.empty
    assert "capitalized" in df.columns
