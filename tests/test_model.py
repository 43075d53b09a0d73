import pytest

from offer_compare.model import annualize_amount, annualize_benefits, calculate_scenario_value
from offer_compare.schemas import BenefitItem, CompensationOffer, ScenarioInputs


def _inputs(**overrides) -> ScenarioInputs:
    params = {
        "base_salary": 100_000,
        "work_mode": "REMOTE",
        "cost_of_living_index": 100,
    }
    params.update(overrides)
    return ScenarioInputs(**params)


@pytest.mark.unit
def test_benefit_annualization():
    monthly = BenefitItem("gym", "Gym", 100, "MONTHLY")
    yearly = BenefitItem("learning", "Learning", 500, "YEARLY")
    assert annualize_benefits([monthly]) == 1200
    assert annualize_benefits([monthly, yearly]) == 1700
    assert annualize_benefits([yearly, monthly]) == 1700
    assert annualize_benefits([]) == 0


@pytest.mark.unit
def test_benefit_item_normalizes_loose_input():
    item = BenefitItem.from_dict({"amount": "abc", "frequency": "WEEKLY"}, "fallback")
    assert (item.id, item.amount, item.frequency) == ("fallback", 0, "YEARLY")
    with pytest.raises(ValueError):
        BenefitItem("x", "X", 10, "DAILY")


@pytest.mark.unit
def test_annualize_amount_frequencies():
    assert annualize_amount(10, "DAILY") == 2600
    assert annualize_amount(200, "MONTHLY") == 2400
    assert annualize_amount(300, "YEARLY") == 300
    assert annualize_amount("junk", "MONTHLY") == 0


@pytest.mark.unit
def test_untaxed_remote_offer_gets_remote_bonus():
    result = calculate_scenario_value(_inputs())
    assert result.adjusted_value == pytest.approx(108_000)
    assert result.lifestyle_adjustment == pytest.approx(8_000)


@pytest.mark.unit
def test_formula_components():
    result = calculate_scenario_value(
        _inputs(
            bonus=10_000,
            sign_on=10_000,
            benefits=5_000,
            equity=40_000,
            base_tax_rate=30,
            bonus_tax_rate=40,
            equity_tax_rate=50,
            equity_realization_percent=50,
            cost_of_living_index=125,
            monthly_rent=1_000,
        )
    )
    breakdown = result.breakdown
    assert breakdown.taxed_base == pytest.approx(70_000)
    assert breakdown.taxed_benefits == pytest.approx(3_500)
    assert breakdown.taxed_bonus == pytest.approx(12_000)
    assert breakdown.taxed_equity == pytest.approx(10_000)
    assert breakdown.purchasing_power == pytest.approx(95_500 * 100 / 125)
    assert breakdown.annual_rent == 12_000
    assert result.adjusted_value == pytest.approx(76_400 + 8_000 - 12_000)


@pytest.mark.unit
def test_rto_days_drive_penalty_and_zero_is_a_real_value():
    hybrid_default = calculate_scenario_value(_inputs(work_mode="HYBRID"))
    assert hybrid_default.breakdown.rto_penalty == 3_600

    two_days = calculate_scenario_value(_inputs(work_mode="HYBRID", rto_days_per_week=2))
    assert two_days.breakdown.rto_penalty == 2_400

    zero_days = calculate_scenario_value(_inputs(work_mode="ONSITE", rto_days_per_week=0))
    assert zero_days.breakdown.rto_penalty == 0


@pytest.mark.unit
def test_lifestyle_knobs():
    result = calculate_scenario_value(
        _inputs(
            work_mode="ONSITE",
            free_food=True,
            wellness_stipend=1_000,
            wlb_score=7,
            commute_annual_cost=2_400,
        )
    )
    b = result.breakdown
    assert (b.work_mode_bonus, b.free_food_bonus, b.wlb_bonus) == (0, 2_500, 3_000)
    assert result.lifestyle_adjustment == pytest.approx(2_500 + 1_000 + 3_000 - 6_000 - 2_400)

    valued_food = calculate_scenario_value(_inputs(free_food=True, free_food_annual_value=4_000))
    assert valued_food.breakdown.free_food_bonus == 4_000


@pytest.mark.unit
def test_bad_numbers_are_coerced_to_zero():
    result = calculate_scenario_value(
        _inputs(base_salary="abc", bonus=None, cost_of_living_index=0, monthly_rent=float("nan"))
    )
    assert result.adjusted_value == pytest.approx(8_000)


@pytest.mark.unit
def test_col_index_is_guarded_below_one():
    result = calculate_scenario_value(_inputs(base_salary=1_000, cost_of_living_index=0.2))
    assert result.breakdown.purchasing_power == pytest.approx(100_000)


@pytest.mark.unit
def test_offer_equity_from_grant_and_itemized_benefits():
    offer = CompensationOffer(
        equity=5_000,
        equity_total_grant=80_000,
        equity_vesting_percent=25,
        benefits_value=999,
        benefit_items=[BenefitItem("gym", "Gym", 100, "MONTHLY")],
    )
    assert offer.annual_equity == 20_000
    assert offer.annual_benefits == 1_200
    assert CompensationOffer(equity=5_000).annual_equity == 5_000
