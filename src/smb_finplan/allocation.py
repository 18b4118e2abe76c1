# SMB FinPlan - Financial projection engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Use-of-funds allocation for a funding round.

``allocate()`` splits a round's amount across an ordered list of spending
categories:

- without weights, every category receives an equal share,
- with weights (required on every category, summing to 1), category i
  receives ``amount * weight_i``.

Every category but the last is rounded down to the cent and the last one
receives the residual, so the allocation always sums to the round amount.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Optional

from .errors import ValidationError
from .models import AllocationCategory, FundingRound
from .money import ZERO, floor_to_unit

DEFAULT_ALLOCATION_CATEGORIES: tuple[AllocationCategory, ...] = (
    AllocationCategory(key="hiring", label="Hiring"),
    AllocationCategory(key="rd", label="R&D"),
    AllocationCategory(key="marketing", label="Marketing"),
    AllocationCategory(key="inventory", label="Inventory"),
    AllocationCategory(key="buffer", label="Buffer"),
)


def resolve_weights(
    categories: Sequence[AllocationCategory],
) -> Optional[list[Decimal]]:
    """
    Return the weight of each category, or None for an equal split.

    Raises:
        ValidationError: if the list is empty, keys are duplicated, weights
            are only partially set, negative, or do not sum to 1.
    """
    if not categories:
        raise ValidationError("At least one allocation category is required.")

    keys = [c.key for c in categories]
    if len(keys) != len(set(keys)):
        raise ValidationError(f"Duplicate allocation category keys: {keys}")

    weighted = [c.weight is not None for c in categories]
    if not any(weighted):
        return None

    if not all(weighted):
        raise ValidationError(
            "Allocation weights must be set on every category or on none."
        )

    weights = [c.weight for c in categories]
    if any(w < 0 for w in weights):
        raise ValidationError(f"Allocation weights cannot be negative: {weights}")
    total = sum(weights, ZERO)
    if total != 1:
        raise ValidationError(f"Allocation weights must sum to 1, got {total}")
    return weights


def allocate(
    funding_round: FundingRound,
    categories: Sequence[AllocationCategory] = DEFAULT_ALLOCATION_CATEGORIES,
) -> dict[str, Decimal]:
    """
    Split ``funding_round.amount`` across ``categories``.

    Returns:
        A dict {category key -> amount}, in category order, whose values sum
        to the round amount exactly.

    Raises:
        ValidationError: if the round amount is not positive, or the
            categories are invalid (see ``resolve_weights``).
    """
    amount = funding_round.amount
    if amount <= 0:
        raise ValidationError(
            f"Funding round {funding_round.label!r} must have a positive amount, "
            f"got {amount}"
        )

    weights = resolve_weights(categories)
    if weights is None:
        # amount / n directly: a rounded 1/n share would lose cents.
        shares = [amount / len(categories)] * len(categories)
    else:
        shares = [amount * w for w in weights]

    allocation: dict[str, Decimal] = {}
    allocated = ZERO
    for category, share in zip(categories[:-1], shares[:-1]):
        floored = floor_to_unit(share)
        allocation[category.key] = floored
        allocated += floored

    allocation[categories[-1].key] = amount - allocated
    return allocation
