# SMB FinPlan - Financial projection engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for SMB FinPlan.

This module is responsible for:
- loading the projection configuration from a TOML file,
- validating the recognized options (tax rate, default useful life,
  horizon, opening balance, allocation categories),
- exposing typed dataclasses used by the rest of the application.

The engine functions never read this configuration themselves: every
option is passed to them as an explicit parameter.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import]

from .allocation import DEFAULT_ALLOCATION_CATEGORIES
from .amortization import DEFAULT_USEFUL_LIFE
from .models import AllocationCategory
from .money import to_decimal

DEFAULT_CONFIG_FILE = "smb_finplan_config.toml"
DISPLAY_MODES = ("table", "csv", "both")


@dataclass(frozen=True)
class InputsConfig:
    """Paths of the CSV files feeding the projection."""

    financials: Path
    capitalized_items: Optional[Path]
    funding_rounds: Optional[Path]
    adjustments: Optional[Path]


@dataclass(frozen=True)
class ProjectionConfig:
    """
    Application-wide configuration for SMB FinPlan.

    This aggregates:
    - the planning horizon (first year and number of years),
    - the opening cash balance and the presentation currency,
    - the income tax rate,
    - the default useful life of capitalized items,
    - the input files,
    - the use-of-funds categories,
    - display options for tables.
    """

    start_year: int
    horizon_length: int
    opening_balance: Decimal
    currency: str
    tax_rate: Decimal
    default_useful_life: int
    inputs: InputsConfig
    allocation_categories: tuple[AllocationCategory, ...]
    display_mode: str
    decimals: int

    @property
    def horizon(self) -> tuple[int, ...]:
        return tuple(range(self.start_year, self.start_year + self.horizon_length))


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        return {}
    return section


def _parse_int(value: Any, option: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid value for '{option}': expected an integer.")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{option}' in the configuration. "
            "Expected an integer."
        ) from exc


def _parse_horizon(projection_section: Mapping[str, Any]) -> tuple[int, int]:
    """
    Extract and validate the planning horizon.

    Returns:
        (start_year, horizon_length)

    Raises:
        ValueError: if start_year is missing or horizon_years < 1.
    """
    if "start_year" not in projection_section:
        raise ValueError("Config file is missing [projection].start_year.")

    start_year = _parse_int(projection_section["start_year"], "projection.start_year")
    length = _parse_int(
        projection_section.get("horizon_years", 5), "projection.horizon_years"
    )
    if length < 1:
        raise ValueError("projection.horizon_years must be at least 1.")

    return start_year, length


def _parse_allocation(raw: Mapping[str, Any]) -> tuple[AllocationCategory, ...]:
    """
    Parse the optional ``[[allocation.categories]]`` table array.

    Falls back to the default categories when the section is absent.
    """
    allocation_section = _section(raw, "allocation")
    categories_raw = allocation_section.get("categories")
    if not categories_raw:
        return DEFAULT_ALLOCATION_CATEGORIES

    if not isinstance(categories_raw, list):
        raise ValueError("allocation.categories must be an array of tables.")

    categories: list[AllocationCategory] = []
    for entry in categories_raw:
        if not isinstance(entry, Mapping) or "key" not in entry:
            raise ValueError(
                "Each [[allocation.categories]] entry must define at least 'key'."
            )
        key = str(entry["key"])
        weight = entry.get("weight")
        categories.append(
            AllocationCategory(
                key=key,
                label=str(entry.get("label") or key),
                weight=None if weight is None else to_decimal(weight, "weight"),
            )
        )
    return tuple(categories)


def _parse_inputs(
    inputs_section: Mapping[str, Any], base_dir: Path
) -> InputsConfig:
    def _resolve_optional(rel: Optional[str]) -> Optional[Path]:
        if not rel:
            return None
        return (base_dir / str(rel)).resolve()

    financials = _resolve_optional(inputs_section.get("financials"))
    if financials is None:
        raise ValueError("Config file is missing [inputs].financials.")

    return InputsConfig(
        financials=financials,
        capitalized_items=_resolve_optional(inputs_section.get("capitalized_items")),
        funding_rounds=_resolve_optional(inputs_section.get("funding_rounds")),
        adjustments=_resolve_optional(inputs_section.get("adjustments")),
    )


def load_projection_config(config_path: Optional[str] = None) -> ProjectionConfig:
    """
    Load the SMB FinPlan configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [projection]
        start_year (mandatory), horizon_years (default 5),
        opening_balance (default 0), currency (default "EUR").

    [tax]
        rate: single income tax rate, between 0 and 1 (default 0.25).

    [amortization]
        default_useful_life: years applied to capitalized items that do
        not define their own useful life (default 5).

    [inputs]
        financials (mandatory), capitalized_items, funding_rounds,
        adjustments: CSV paths, resolved relative to the TOML file.

    [[allocation.categories]]
        Optional use-of-funds categories (key, label, weight). When absent,
        the default categories split each round in equal shares.

    [display]
        mode ("table", "csv" or "both") and decimals for table output.

    Parameters
    ----------
    config_path :
        Path to the TOML configuration file. Defaults to
        ``smb_finplan_config.toml`` in the current directory.

    Returns
    -------
    ProjectionConfig
        Parsed and validated configuration.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Horizon, opening balance, currency
    projection_section = _section(raw, "projection")
    start_year, horizon_length = _parse_horizon(projection_section)

    opening_balance = to_decimal(
        projection_section.get("opening_balance", 0), "projection.opening_balance"
    )
    currency = str(projection_section.get("currency") or "EUR")

    # 2) Tax
    tax_section = _section(raw, "tax")
    tax_rate = to_decimal(tax_section.get("rate", "0.25"), "tax.rate")
    if tax_rate < 0 or tax_rate > 1:
        raise ValueError("tax.rate must be between 0 and 1.")

    # 3) Amortization
    amortization_section = _section(raw, "amortization")
    default_useful_life = _parse_int(
        amortization_section.get("default_useful_life", DEFAULT_USEFUL_LIFE),
        "amortization.default_useful_life",
    )
    if default_useful_life < 1:
        raise ValueError("amortization.default_useful_life must be at least 1.")

    # 4) Inputs
    inputs = _parse_inputs(_section(raw, "inputs"), base_dir)

    # 5) Allocation categories
    allocation_categories = _parse_allocation(raw)

    # 6) Display options
    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid display.mode {display_mode!r}. "
            f"Expected one of: {', '.join(DISPLAY_MODES)}."
        )
    try:
        decimals = int(display_section.get("decimals", 2))
    except (TypeError, ValueError):
        decimals = 2

    return ProjectionConfig(
        start_year=start_year,
        horizon_length=horizon_length,
        opening_balance=opening_balance,
        currency=currency,
        tax_rate=tax_rate,
        default_useful_life=default_useful_life,
        inputs=inputs,
        allocation_categories=allocation_categories,
        display_mode=display_mode,
        decimals=decimals,
    )
