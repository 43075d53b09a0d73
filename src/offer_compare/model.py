from __future__ import annotations

from typing import Any, Dict, Iterable

from .schemas import (
    DAILY,
    HYBRID,
    MONTHLY,
    REMOTE,
    BenefitItem,
    ScenarioBreakdown,
    ScenarioInputs,
    ScenarioValue,
    to_number,
    to_optional_number,
)

WORKDAYS_PER_YEAR = 260
RTO_PENALTY_PER_WEEKLY_DAY = 1200.0
FREE_FOOD_FLAT_BONUS = 2500.0
WLB_NEUTRAL_SCORE = 5.0
WLB_POINT_VALUE = 1500.0

# work mode -> (lifestyle bonus, RTO penalty used when no day count is given)
WORK_MODE_LIFESTYLE: Dict[str, tuple] = {
    REMOTE: (8000.0, 0.0),
    HYBRID: (3000.0, 3600.0),
}
_ONSITE_LIFESTYLE = (0.0, 6000.0)


def calculate_scenario_value(inputs: ScenarioInputs) -> ScenarioValue:
    """Fold one offer into a single after-tax, location-normalized annual value."""
    base_rate = to_number(inputs.base_tax_rate) / 100.0
    bonus_rate = to_number(inputs.bonus_tax_rate) / 100.0
    equity_rate = to_number(inputs.equity_tax_rate) / 100.0
    realization = to_number(inputs.equity_realization_percent, 100.0) / 100.0

    taxed_base = to_number(inputs.base_salary) * (1 - base_rate)
    taxed_benefits = to_number(inputs.benefits) * (1 - base_rate)
    taxed_bonus = (to_number(inputs.bonus) + to_number(inputs.sign_on)) * (1 - bonus_rate)
    taxed_equity = to_number(inputs.equity) * realization * (1 - equity_rate)

    col_index = max(1.0, to_number(inputs.cost_of_living_index, 100.0))
    purchasing_power = (taxed_base + taxed_benefits + taxed_bonus + taxed_equity) * (100.0 / col_index)

    work_mode_bonus, default_rto_penalty = lifestyle_defaults(inputs.work_mode)
    rto_days = to_optional_number(inputs.rto_days_per_week)
    rto_penalty = default_rto_penalty if rto_days is None else rto_days * RTO_PENALTY_PER_WEEKLY_DAY

    free_food_bonus = to_number(inputs.free_food_annual_value)
    if not free_food_bonus and inputs.free_food:
        free_food_bonus = FREE_FOOD_FLAT_BONUS
    commute_penalty = to_number(inputs.commute_annual_cost)
    wellness_bonus = to_number(inputs.wellness_stipend)
    wlb_score = to_optional_number(inputs.wlb_score)
    wlb_bonus = 0.0 if wlb_score is None else (wlb_score - WLB_NEUTRAL_SCORE) * WLB_POINT_VALUE

    lifestyle_adjustment = (
        work_mode_bonus
        + free_food_bonus
        + wellness_bonus
        + wlb_bonus
        - rto_penalty
        - commute_penalty
    )
    annual_rent = max(0.0, to_number(inputs.monthly_rent)) * 12

    return ScenarioValue(
        adjusted_value=purchasing_power + lifestyle_adjustment - annual_rent,
        lifestyle_adjustment=lifestyle_adjustment,
        breakdown=ScenarioBreakdown(
            taxed_base=taxed_base,
            taxed_benefits=taxed_benefits,
            taxed_bonus=taxed_bonus,
            taxed_equity=taxed_equity,
            purchasing_power=purchasing_power,
            work_mode_bonus=work_mode_bonus,
            free_food_bonus=free_food_bonus,
            wellness_bonus=wellness_bonus,
            wlb_bonus=wlb_bonus,
            rto_penalty=rto_penalty,
            commute_penalty=commute_penalty,
            annual_rent=annual_rent,
        ),
    )


def lifestyle_defaults(work_mode: str) -> tuple:
    return WORK_MODE_LIFESTYLE.get(work_mode, _ONSITE_LIFESTYLE)


def annualize_amount(value: Any, frequency: str) -> float:
    amount = to_number(value)
    if frequency == DAILY:
        return amount * WORKDAYS_PER_YEAR
    if frequency == MONTHLY:
        return amount * 12
    return amount


def annualize_benefits(items: Iterable[BenefitItem]) -> float:
    total = 0.0
    for item in items:
        amount = to_number(item.amount)
        total += amount * 12 if item.frequency == MONTHLY else amount
    return total
