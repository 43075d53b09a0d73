import pytest

from offer_compare.schemas import MARITAL_STATUSES, MARRIED_FILING_JOINTLY, SINGLE
from offer_compare.tax import (
    SINGLE_BRACKETS,
    calculate_progressive_tax,
    estimate_effective_tax_rate,
    estimate_tax_rates,
    state_tax_rate_for,
)


@pytest.mark.unit
@pytest.mark.parametrize("status", MARITAL_STATUSES)
@pytest.mark.parametrize("income", [0, 12_000, 55_000, 200_000, 750_000, 5_000_000])
def test_effective_rate_stays_within_bounds(income, status):
    for location in ("Austin, TX", "San Francisco, CA", "Honolulu, HI", "Nowhere"):
        rate = estimate_effective_tax_rate(income, status, location)
        assert 15 <= rate <= 55


@pytest.mark.unit
def test_progressive_tax_walks_brackets():
    assert calculate_progressive_tax(10_000, SINGLE_BRACKETS) == pytest.approx(1_000)
    # 11,600 at 10% plus 8,400 at 12%
    assert calculate_progressive_tax(20_000, SINGLE_BRACKETS) == pytest.approx(2_168)
    assert calculate_progressive_tax(0, SINGLE_BRACKETS) == 0


@pytest.mark.unit
def test_texas_has_no_state_component_and_is_below_california():
    texas = estimate_effective_tax_rate(200_000, SINGLE, "Austin, TX")
    california = estimate_effective_tax_rate(200_000, SINGLE, "San Francisco, CA")
    # federal 41,686.50 + social security 10,918.20 + medicare 2,900 = 27.75%
    assert texas == 28
    # plus 8.5% state
    assert california == 36
    assert texas < california


@pytest.mark.unit
def test_low_income_is_taxed_at_the_floor():
    assert estimate_effective_tax_rate(0, SINGLE, "Austin, TX") == 18
    assert estimate_effective_tax_rate("not a number", SINGLE, "Austin, TX") == 18


@pytest.mark.unit
def test_joint_filers_use_wider_brackets():
    single = estimate_effective_tax_rate(200_000, SINGLE, "Austin, TX")
    joint = estimate_effective_tax_rate(200_000, MARRIED_FILING_JOINTLY, "Austin, TX")
    assert joint < single


@pytest.mark.unit
def test_bonus_and_equity_rates_are_uplifted_and_capped():
    rates = estimate_tax_rates(200_000, SINGLE, "Austin, TX")
    assert (rates.base, rates.bonus, rates.equity) == (28, 32, 34)

    capped = estimate_tax_rates(1_000_000, SINGLE, "Anywhere, ZZ", state_tax_rate={"ZZ": 40})
    assert (capped.base, capped.bonus, capped.equity) == (55, 55, 55)


@pytest.mark.unit
def test_state_rate_resolution():
    assert state_tax_rate_for("Portland, Oregon") == pytest.approx(7.8)
    assert state_tax_rate_for("Seattle, WA") == 0
    assert state_tax_rate_for("Gotham City") == 0


@pytest.mark.unit
def test_malformed_tables_fall_back_to_defaults():
    expected = estimate_effective_tax_rate(200_000, SINGLE, "San Francisco, CA")
    assert estimate_effective_tax_rate(200_000, SINGLE, "San Francisco, CA", state_tax_rate=None) == expected
    assert (
        estimate_effective_tax_rate(200_000, SINGLE, "San Francisco, CA", state_tax_rate="garbage")
        == expected
    )
    assert estimate_effective_tax_rate(200_000, SINGLE, "San Francisco, CA", {"CA": "bad"}) == 28
