# SMB FinPlan - Financial projection engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Exceptions raised by the projection engine.

- ValidationError : malformed or out-of-range input (negative amounts,
  useful life below one year, adjustment or funding round outside the
  horizon, ...). Subclasses ValueError so callers that already catch
  ValueError keep working.
- ConsistencyError : an internal invariant did not hold (for example an
  amortization schedule that does not sum back to its principal). Never
  expected in normal operation.
"""


class FinPlanError(Exception):
    """Base class for all engine errors."""


class ValidationError(FinPlanError, ValueError):
    """Invalid input passed to one of the engine functions."""


class ConsistencyError(FinPlanError):
    """Internal invariant violation detected by the engine."""
