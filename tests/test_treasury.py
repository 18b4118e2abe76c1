from decimal import Decimal

import pytest

from smb_finplan.errors import ValidationError
from smb_finplan.models import FundingRound, IncomeStatementYear
from smb_finplan.treasury import funding_by_year, project_treasury, summarize_treasury


def _year(year: int, revenue, opex, amortization=0, taxes=0) -> IncomeStatementYear:
    return IncomeStatementYear(
        year=year,
        revenue=Decimal(str(revenue)),
        cost_of_goods=Decimal("0"),
        operating_expenses=Decimal(str(opex)),
        amortization=Decimal(str(amortization)),
        taxes=Decimal(str(taxes)),
    )


def _example_statement() -> list[IncomeStatementYear]:
    # Net result 75 with 100 of amortization each year.
    return [_year(y, 1000, 800, amortization=100, taxes=25) for y in (1, 2, 3)]


def test_worked_example_closing_balances() -> None:
    """Opening 50, round of 200 in year 2: closings 225, 600, 775."""
    treasury = project_treasury(
        _example_statement(), {FundingRound(amount=200, year=2)}, Decimal("50")
    )

    assert [t.closing_balance for t in treasury] == [
        Decimal("225"),
        Decimal("600"),
        Decimal("775"),
    ]
    assert [t.net_cash_from_operations for t in treasury] == [Decimal("175")] * 3
    assert [t.funding_inflows for t in treasury] == [
        Decimal("0"),
        Decimal("200"),
        Decimal("0"),
    ]


def test_opening_balance_chains_from_previous_closing() -> None:
    statement = [_year(y, 100 * y, 250) for y in range(2025, 2031)]

    treasury = project_treasury(statement, [], Decimal("1000"))

    assert treasury[0].opening_balance == Decimal("1000")
    for previous, current in zip(treasury, treasury[1:]):
        assert current.opening_balance == previous.closing_balance


def test_amortization_is_added_back() -> None:
    (t,) = project_treasury([_year(1, 0, 0, amortization=300)], [], Decimal("0"))

    assert t.net_result == Decimal("-300")
    assert t.net_cash_from_operations == Decimal("0")
    assert t.closing_balance == Decimal("0")


def test_rounds_in_same_year_are_summed() -> None:
    rounds = [
        FundingRound(amount=100, year=1, quarter="Q1", name="A"),
        FundingRound(amount=250, year=1, quarter="Q3", name="B"),
    ]

    (t,) = project_treasury([_year(1, 0, 0)], rounds, Decimal("0"))

    assert t.funding_inflows == Decimal("350")
    assert funding_by_year(rounds) == {1: Decimal("350")}


def test_quarterly_balances_expose_intra_year_low_point() -> None:
    """Burn 400 a year with a 1000 round in Q4: low point before the round."""
    rounds = [FundingRound(amount=1000, year=1, quarter="Q4")]

    (t,) = project_treasury([_year(1, 0, 400)], rounds, Decimal("300"))

    assert t.quarterly_balances == (
        Decimal("200"),
        Decimal("100"),
        Decimal("0"),
        Decimal("900"),
    )
    assert t.quarterly_balances[-1] == t.closing_balance
    assert t.min_balance_in_year == Decimal("0")


def test_negative_balance_is_valid_output() -> None:
    treasury = project_treasury([_year(1, 0, 500)], [], Decimal("100"))

    assert treasury[0].closing_balance == Decimal("-400")


def test_round_outside_horizon_rejected() -> None:
    with pytest.raises(ValidationError):
        project_treasury(
            _example_statement(), [FundingRound(amount=10, year=4)], Decimal("0")
        )


@pytest.mark.parametrize("amount", [0, -100])
def test_non_positive_round_rejected(amount: int) -> None:
    with pytest.raises(ValidationError):
        project_treasury(
            _example_statement(), [FundingRound(amount=amount, year=1)], Decimal("0")
        )


def test_invalid_quarter_rejected() -> None:
    with pytest.raises(ValidationError):
        project_treasury(
            _example_statement(),
            [FundingRound(amount=10, year=1, quarter="Q5")],
            Decimal("0"),
        )


def test_empty_statement_rejected() -> None:
    with pytest.raises(ValidationError):
        project_treasury([], [], Decimal("0"))


def test_round_order_does_not_matter() -> None:
    rounds = [
        FundingRound(amount=100, year=1, name="A"),
        FundingRound(amount=300, year=3, name="B"),
    ]

    first = project_treasury(_example_statement(), rounds, Decimal("0"))
    second = project_treasury(_example_statement(), list(reversed(rounds)), Decimal("0"))

    assert first == second


def test_summary_figures() -> None:
    statement = [
        _year(2025, 0, 600),  # burn 600
        _year(2026, 200, 500),  # burn 300
        _year(2027, 900, 500),  # +400
    ]
    rounds = [FundingRound(amount=1000, year=2026, quarter="Q1")]

    treasury = project_treasury(statement, rounds, Decimal("500"))
    summary = summarize_treasury(treasury)

    assert summary.initial_cash == Decimal("500")
    assert summary.total_funding_raised == Decimal("1000")
    assert summary.max_burn == Decimal("600")
    assert summary.break_even_year == 2027
    # Without funding: 500 -> -100 -> -400 -> 0
    assert summary.funding_need == Decimal("400")
    # 500 / (600 / 12) = 10 months
    assert summary.runway_months == 10
    # Lowest quarter-end balance: end of 2025 Q4 = -100
    assert summary.min_treasury == Decimal("-100")


def test_summary_without_burn() -> None:
    treasury = project_treasury(_example_statement(), [], Decimal("50"))

    summary = summarize_treasury(treasury)

    assert summary.runway_months is None
    assert summary.max_burn == Decimal("0")
    assert summary.funding_need == Decimal("0")
    assert summary.break_even_year == 1
    assert summary.min_treasury == Decimal("50")
