# SMB FinPlan - Financial projection engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Amortization of capitalized product-development costs.

A capitalized item of ``amount`` with a useful life of N years is charged
to the income statement over N consecutive years, starting at
``capitalization_year + start_offset``:

- the first N - 1 years carry ``amount / N`` rounded down to the cent,
- the last year absorbs the rounding remainder,

so the charges of one item always sum back to its amount exactly.

Public helpers
--------------
- item_schedule(item, default_useful_life)
    Full-life schedule of one item: {year -> charge}.
- calculate_product_amortizations(items, horizon_years, default_useful_life)
    Total charge per horizon year, for all items.
- get_product_amortization_for_year(items, year, default_useful_life)
    Total charge for a single year (same per-item rule).
- remaining_book_value(item, year, default_useful_life)
    Net book value of one item at the end of ``year``.
- capex_by_year(items, horizon_years)
    Capitalized spend per horizon year.
"""

from collections.abc import Iterable, Sequence
from decimal import Decimal

from .errors import ConsistencyError, ValidationError
from .models import ProductDevAmortization
from .money import ZERO, floor_to_unit

DEFAULT_USEFUL_LIFE = 5


def _validate_default_life(default_useful_life: int) -> None:
    if isinstance(default_useful_life, bool) or not isinstance(
        default_useful_life, int
    ):
        raise ValidationError(
            f"Default useful life must be an integer, got {default_useful_life!r}"
        )
    if default_useful_life < 1:
        raise ValidationError(
            f"Default useful life must be at least 1 year, got {default_useful_life}"
        )


def resolve_useful_life(
    item: ProductDevAmortization, default_useful_life: int = DEFAULT_USEFUL_LIFE
) -> int:
    """Return the useful life of ``item``, falling back to the default."""
    _validate_default_life(default_useful_life)
    life = item.useful_life if item.useful_life is not None else default_useful_life

    if isinstance(life, bool) or not isinstance(life, int):
        raise ValidationError(
            f"Useful life must be an integer number of years, got {life!r}"
        )
    if life < 1:
        raise ValidationError(f"Useful life must be at least 1 year, got {life}")
    return life


def _validate_item(item: ProductDevAmortization) -> None:
    if item.amount < 0:
        raise ValidationError(
            f"Capitalized amount cannot be negative: {item.amount} "
            f"(product {item.product_id or item.name or '?'})"
        )
    if item.start_offset < 0:
        raise ValidationError(
            f"Start offset cannot be negative, got {item.start_offset}"
        )


def first_amortization_year(item: ProductDevAmortization) -> int:
    return item.capitalization_year + item.start_offset


def item_schedule(
    item: ProductDevAmortization,
    default_useful_life: int = DEFAULT_USEFUL_LIFE,
) -> dict[int, Decimal]:
    """
    Return the full-life amortization schedule of one item.

    Returns:
        An ordered dict {year -> charge} with exactly ``useful_life`` entries.

    Raises:
        ValidationError: on a negative amount or offset, or a useful life
            below one year.
        ConsistencyError: if the charges do not sum back to the amount.
    """
    _validate_item(item)
    life = resolve_useful_life(item, default_useful_life)
    first_year = first_amortization_year(item)

    per_year = floor_to_unit(item.amount / life)
    last_charge = item.amount - per_year * (life - 1)

    schedule: dict[int, Decimal] = {}
    for i in range(life - 1):
        schedule[first_year + i] = per_year
    schedule[first_year + life - 1] = last_charge

    if sum(schedule.values(), ZERO) != item.amount:
        raise ConsistencyError(
            f"Amortization schedule of {item.product_id or item.name or 'item'} "
            f"sums to {sum(schedule.values(), ZERO)}, expected {item.amount}"
        )

    return schedule


def charge_for_year(
    item: ProductDevAmortization,
    year: int,
    default_useful_life: int = DEFAULT_USEFUL_LIFE,
) -> Decimal:
    """Charge of a single item for ``year`` (zero outside its schedule)."""
    return item_schedule(item, default_useful_life).get(year, ZERO)


def calculate_product_amortizations(
    items: Iterable[ProductDevAmortization],
    horizon_years: Sequence[int],
    default_useful_life: int = DEFAULT_USEFUL_LIFE,
) -> dict[int, Decimal]:
    """
    Aggregate the amortization charges of all items per horizon year.

    Every horizon year is present in the result, with a zero charge when
    no item amortizes that year. Charges falling outside the horizon are
    dropped from the result (they still count for the exact-sum check of
    each item).

    Args:
        items: Capitalized items.
        horizon_years: Years to report on.
        default_useful_life: Useful life applied to items without one.

    Returns:
        A dict {year -> total charge}, ordered by year.
    """
    _validate_default_life(default_useful_life)
    totals: dict[int, Decimal] = {year: ZERO for year in sorted(horizon_years)}

    for item in items:
        for year, charge in item_schedule(item, default_useful_life).items():
            if year in totals:
                totals[year] += charge

    return totals


def get_product_amortization_for_year(
    items: Iterable[ProductDevAmortization],
    year: int,
    default_useful_life: int = DEFAULT_USEFUL_LIFE,
) -> Decimal:
    """Total amortization charge of all items for ``year``."""
    _validate_default_life(default_useful_life)
    return sum(
        (charge_for_year(item, year, default_useful_life) for item in items), ZERO
    )


def remaining_book_value(
    item: ProductDevAmortization,
    year: int,
    default_useful_life: int = DEFAULT_USEFUL_LIFE,
) -> Decimal:
    """
    Net book value of ``item`` at the end of ``year``.

    Before the first charge the full amount remains; after the last charge
    nothing remains.
    """
    schedule = item_schedule(item, default_useful_life)
    recognized = sum(
        (charge for charge_year, charge in schedule.items() if charge_year <= year),
        ZERO,
    )
    return item.amount - recognized


def capex_by_year(
    items: Iterable[ProductDevAmortization],
    horizon_years: Sequence[int],
) -> dict[int, Decimal]:
    """Capitalized spend per horizon year (booked on the first amortization year)."""
    totals: dict[int, Decimal] = {year: ZERO for year in sorted(horizon_years)}
    for item in items:
        _validate_item(item)
        year = first_amortization_year(item)
        if year in totals:
            totals[year] += item.amount
    return totals
