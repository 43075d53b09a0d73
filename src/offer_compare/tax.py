"""Effective tax rate estimation.

This is a deliberately coarse model: one progressive federal schedule, payroll
taxes, and a flat state rate. It is meant to put offers in different states on
the same footing, not to reproduce a tax return.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional, Sequence, Tuple

from .reference import DEFAULT_STATE_TAX_RATE, extract_state_abbr
from .schemas import MARRIED_FILING_JOINTLY, TaxRates, round_half_up, to_number

MIN_TAXABLE_INCOME = 20_000.0
MIN_EFFECTIVE_RATE = 15
MAX_EFFECTIVE_RATE = 55
BONUS_RATE_UPLIFT = 4
EQUITY_RATE_UPLIFT = 6

SOCIAL_SECURITY_RATE = 0.062
SOCIAL_SECURITY_WAGE_BASE = 176_100.0
MEDICARE_RATE = 0.0145

Bracket = Tuple[float, float]

# (upper bound, marginal rate)
MARRIED_JOINT_BRACKETS: Sequence[Bracket] = (
    (23_200, 0.10),
    (94_300, 0.12),
    (201_050, 0.22),
    (383_900, 0.24),
    (487_450, 0.32),
    (731_200, 0.35),
    (math.inf, 0.37),
)

SINGLE_BRACKETS: Sequence[Bracket] = (
    (11_600, 0.10),
    (47_150, 0.12),
    (100_525, 0.22),
    (191_950, 0.24),
    (243_725, 0.32),
    (609_350, 0.35),
    (math.inf, 0.37),
)


def federal_brackets(marital_status: str) -> Sequence[Bracket]:
    if marital_status == MARRIED_FILING_JOINTLY:
        return MARRIED_JOINT_BRACKETS
    return SINGLE_BRACKETS


def calculate_progressive_tax(income: float, brackets: Sequence[Bracket]) -> float:
    tax = 0.0
    previous_cap = 0.0
    for cap, rate in brackets:
        if income <= previous_cap:
            break
        tax += (min(income, cap) - previous_cap) * rate
        previous_cap = cap
    return tax


def payroll_tax(income: float) -> float:
    social_security = min(income, SOCIAL_SECURITY_WAGE_BASE) * SOCIAL_SECURITY_RATE
    medicare = income * MEDICARE_RATE
    return social_security + medicare


def state_tax_rate_for(
    location: str,
    state_tax_rate: Optional[Mapping[str, Any]] = None,
    state_name_to_abbr: Optional[Mapping[str, str]] = None,
) -> float:
    rates = state_tax_rate if isinstance(state_tax_rate, Mapping) and state_tax_rate else DEFAULT_STATE_TAX_RATE
    names = state_name_to_abbr if isinstance(state_name_to_abbr, Mapping) else None
    abbr = extract_state_abbr(location or "", names)
    if not abbr:
        return 0.0
    return max(0.0, to_number(rates.get(abbr)))


def estimate_effective_tax_rate(
    income: Any,
    marital_status: str,
    location: str,
    state_tax_rate: Optional[Mapping[str, Any]] = None,
    state_name_to_abbr: Optional[Mapping[str, str]] = None,
) -> int:
    """Return the combined federal, payroll and state burden as a whole percent.

    Income below ``MIN_TAXABLE_INCOME`` is taxed as if it were that floor, and
    the result is clamped to ``[MIN_EFFECTIVE_RATE, MAX_EFFECTIVE_RATE]``.
    """
    safe_income = max(MIN_TAXABLE_INCOME, to_number(income))
    federal = calculate_progressive_tax(safe_income, federal_brackets(marital_status))
    state = safe_income * state_tax_rate_for(location, state_tax_rate, state_name_to_abbr) / 100.0
    effective = (federal + payroll_tax(safe_income) + state) / safe_income * 100.0
    return min(MAX_EFFECTIVE_RATE, max(MIN_EFFECTIVE_RATE, round_half_up(effective)))


def estimate_tax_rates(
    income: Any,
    marital_status: str,
    location: str,
    state_tax_rate: Optional[Mapping[str, Any]] = None,
    state_name_to_abbr: Optional[Mapping[str, str]] = None,
) -> TaxRates:
    base = estimate_effective_tax_rate(
        income, marital_status, location, state_tax_rate, state_name_to_abbr
    )
    return TaxRates(
        base=base,
        bonus=min(MAX_EFFECTIVE_RATE, base + BONUS_RATE_UPLIFT),
        equity=min(MAX_EFFECTIVE_RATE, base + EQUITY_RATE_UPLIFT),
    )
