# SMB FinPlan - Financial projection engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
SMB FinPlan
-----------

A Python-based financial projection engine for Small and Medium-sized
Businesses (SMBs). It turns a company's baseline yearly financials and a
set of manual overrides into a multi-year income statement and a treasury
(cash position) forecast.

Main capabilities:
- amortization of capitalized product-development costs, with exact
  rounding (every schedule sums back to its principal),
- yearly income statement generation with manual overrides and deltas,
- treasury projection with funding rounds, quarterly low points,
  funding need, break-even year and runway,
- use-of-funds allocation of each funding round,
- TOML configuration, CSV inputs, console tables and CSV exports.

All engine functions are pure: they read their inputs, never mutate them,
and return fresh immutable results.

Version: 0.1.0

Usage:
    python -m smb_finplan.cli --help
"""

__all__ = [
    "allocation",
    "amortization",
    "income_statement",
    "projection",
    "treasury",
    "views",
]

__version__ = "0.1.0"
