from decimal import Decimal

import pytest

from smb_finplan.errors import ValidationError
from smb_finplan.io import (
    read_capitalized_items,
    read_financial_data,
    read_funding_rounds,
    read_manual_adjustments,
)
from smb_finplan.models import Delta, Override


def test_read_financial_data_restricts_to_horizon(tmp_path) -> None:
    """Years outside the horizon are dropped; optional columns default to 0."""
    csv_path = tmp_path / "financials.csv"
    csv_path.write_text(
        "Year,Revenue,Cost_of_goods,Operating_expenses\n"
        "2024,1,1,1\n"
        "2025,1000.10,600,200\n"
        "2026,1200,700,250\n",
        encoding="utf-8",
    )

    data = read_financial_data(csv_path, [2025, 2026], tax_rate="0.2")

    assert data.horizon == (2025, 2026)
    assert data.tax_rate == Decimal("0.2")
    first = data.for_year(2025)
    assert first.revenue == Decimal("1000.10")
    assert first.payroll == Decimal("0")
    assert first.headcount == 0


def test_read_financial_data_with_payroll(tmp_path) -> None:
    csv_path = tmp_path / "financials.csv"
    csv_path.write_text(
        "year,revenue,cost_of_goods,operating_expenses,payroll,headcount\n"
        "2025,1000,600,200,150,3\n",
        encoding="utf-8",
    )

    data = read_financial_data(csv_path, [2025])

    assert data.for_year(2025).payroll == Decimal("150")
    assert data.for_year(2025).headcount == 3


def test_read_financial_data_missing_year(tmp_path) -> None:
    csv_path = tmp_path / "financials.csv"
    csv_path.write_text(
        "year,revenue,cost_of_goods,operating_expenses\n2025,1,1,1\n",
        encoding="utf-8",
    )

    with pytest.raises(ValidationError):
        read_financial_data(csv_path, [2025, 2026])


def test_read_financial_data_invalid_structure(tmp_path) -> None:
    csv_path = tmp_path / "financials.csv"
    csv_path.write_text("year,revenue\n2025,1\n", encoding="utf-8")

    with pytest.raises(ValueError):
        read_financial_data(csv_path, [2025])


def test_read_financial_data_invalid_number(tmp_path) -> None:
    csv_path = tmp_path / "financials.csv"
    csv_path.write_text(
        "year,revenue,cost_of_goods,operating_expenses\n2025,lots,1,1\n",
        encoding="utf-8",
    )

    with pytest.raises(ValueError):
        read_financial_data(csv_path, [2025])


def test_read_capitalized_items(tmp_path) -> None:
    csv_path = tmp_path / "items.csv"
    csv_path.write_text(
        "product_id,name,amount,capitalization_year,useful_life,start_offset\n"
        "P1,Kit,180000,2025,5,0\n"
        "P2,Module,95000,2026,,\n",
        encoding="utf-8",
    )

    items = read_capitalized_items(csv_path)

    assert len(items) == 2
    assert items[0].product_id == "P1"
    assert items[0].useful_life == 5
    assert items[1].amount == Decimal("95000")
    assert items[1].useful_life is None
    assert items[1].start_offset == 0


def test_read_manual_adjustments(tmp_path) -> None:
    csv_path = tmp_path / "adjustments.csv"
    csv_path.write_text(
        "year,line_item,mode,value\n"
        "2026,operating_expenses,delta,-15000\n"
        "2028,Revenue,OVERRIDE,1600000\n",
        encoding="utf-8",
    )

    adjustments = read_manual_adjustments(csv_path)

    assert len(adjustments) == 2
    assert adjustments.get(2026, "operating_expenses") == Delta(Decimal("-15000"))
    assert adjustments.get(2028, "revenue") == Override(Decimal("1600000"))
    assert not adjustments.has(2027, "revenue")


@pytest.mark.parametrize(
    "rows",
    [
        "2026,revenue,replace,1\n",
        "2026,amortization,override,0\n",
        "2026,revenue,override,1\n2026,revenue,delta,2\n",
    ],
)
def test_read_manual_adjustments_invalid(tmp_path, rows: str) -> None:
    csv_path = tmp_path / "adjustments.csv"
    csv_path.write_text("year,line_item,mode,value\n" + rows, encoding="utf-8")

    with pytest.raises(ValidationError):
        read_manual_adjustments(csv_path)


def test_read_funding_rounds(tmp_path) -> None:
    csv_path = tmp_path / "rounds.csv"
    csv_path.write_text(
        "name,amount,year,quarter,pre_money_valuation\n"
        "Seed,400000,2025,q2,1600000\n"
        ",250000,2026,,\n",
        encoding="utf-8",
    )

    rounds = read_funding_rounds(csv_path)

    assert rounds[0].name == "Seed"
    assert rounds[0].quarter == "Q2"
    assert rounds[0].post_money_valuation == Decimal("2000000")
    assert rounds[1].quarter == "Q1"
    assert rounds[1].pre_money_valuation is None
    assert rounds[1].label == "Round 2026 Q1"


def test_read_financial_data_non_operating_columns(tmp_path) -> None:
    csv_path = tmp_path / "financials.csv"
    csv_path.write_text(
        "year,revenue,cost_of_goods,operating_expenses,"
        "financial_expense,research_tax_credit\n"
        "2025,1000,600,200,12.5,3000\n",
        encoding="utf-8",
    )

    data = read_financial_data(csv_path, [2025])

    year = data.for_year(2025)
    assert year.financial_expense == Decimal("12.5")
    assert year.research_tax_credit == Decimal("3000")
    assert year.exceptional_income == Decimal("0")


@pytest.mark.parametrize(
    "row",
    [
        "P1,Kit,100,2025,2.5,0\n",
        "P1,Kit,100,2025.7,3,0\n",
        "P1,Kit,100,2025,3,0.9\n",
    ],
)
def test_read_capitalized_items_rejects_fractional_integers(tmp_path, row: str) -> None:
    csv_path = tmp_path / "items.csv"
    csv_path.write_text(
        "product_id,name,amount,capitalization_year,useful_life,start_offset\n" + row,
        encoding="utf-8",
    )

    with pytest.raises(ValidationError):
        read_capitalized_items(csv_path)


def test_read_capitalized_items_accepts_integral_floats(tmp_path) -> None:
    csv_path = tmp_path / "items.csv"
    csv_path.write_text(
        "amount,capitalization_year,useful_life\n100,2025.0,3.0\n",
        encoding="utf-8",
    )

    (item,) = read_capitalized_items(csv_path)

    assert item.capitalization_year == 2025
    assert item.useful_life == 3
