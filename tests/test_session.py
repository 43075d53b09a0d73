import json
from unittest.mock import Mock

import pytest

from offer_compare.schemas import ReferenceData, RentEstimate
from offer_compare.session import ComparisonSession
from offer_compare.settings_store import SETTINGS_KEY, MemoryStore


@pytest.fixture
def rent_client() -> Mock:
    client = Mock()
    client.fetch.return_value = RentEstimate(provider="HUD FMR API", monthly_rent_estimate=2_000)
    return client


@pytest.mark.integration
def test_recompute_publishes_stable_summary(applications, make_real_offer, make_simulated_offer, rent_client):
    session = ComparisonSession(store=MemoryStore(), rent_client=rent_client)
    session.load()
    session.set_offers(
        [make_real_offer(1, 1, is_current=True), make_real_offer(2, 2)],
        applications,
    )
    session.scenarios.add(make_simulated_offer(""))
    session.refresh_rent()

    first = session.recompute()
    assert first.summary_changed is True
    assert set(first.real_summary) == {1, 2}
    assert len(first.rows) == 3
    assert first.real_summary[1].monthly_rent == 2_000

    second = session.recompute()
    assert second.summary_changed is False
    assert second.real_summary is first.real_summary


@pytest.mark.integration
def test_rent_is_fetched_once_per_location(applications, make_real_offer, rent_client):
    session = ComparisonSession(store=MemoryStore(), rent_client=rent_client)
    session.set_offers([make_real_offer(1, 1)], applications)
    session.refresh_rent()
    session.refresh_rent()
    rent_client.fetch.assert_called_once_with("Austin, TX")


@pytest.mark.unit
def test_stale_rent_response_is_dropped(applications, make_real_offer):
    session = ComparisonSession(store=MemoryStore())
    session.set_offers([make_real_offer(1, 1, is_current=True)], applications)

    accepted = session.apply_rent_estimate("Austin, TX", RentEstimate(provider="p", monthly_rent_estimate=1_500))
    stale = session.apply_rent_estimate(
        "San Francisco, CA, United States", RentEstimate(provider="p", monthly_rent_estimate=4_000)
    )
    assert accepted is True
    assert stale is False
    assert session.baseline_monthly_rent == 1_500


@pytest.mark.unit
def test_load_uses_saved_settings_and_reference_client():
    store = MemoryStore()
    store.set(SETTINGS_KEY, json.dumps({"maritalStatus": "HEAD_OF_HOUSEHOLD", "simulatedOffers": []}))
    reference_client = Mock()
    reference_client.fetch.return_value = ReferenceData.from_payload({"state_tax_rate": {"TX": 1}})

    session = ComparisonSession(store=store, reference_client=reference_client)
    session.load()
    session.load()

    assert session.marital_status == "HEAD_OF_HOUSEHOLD"
    assert session.reference_data.state_tax_rate == {"TX": 1}
    reference_client.fetch.assert_called_once_with()


@pytest.mark.unit
def test_invalid_marital_status_is_rejected():
    session = ComparisonSession(store=MemoryStore())
    with pytest.raises(ValueError):
        session.set_marital_status("COMPLICATED")


@pytest.mark.unit
def test_save_persists_scenarios(make_simulated_offer):
    store = MemoryStore()
    session = ComparisonSession(store=store)
    session.scenarios.add(make_simulated_offer(""))
    saved = session.save()

    payload = json.loads(store.get(SETTINGS_KEY))
    assert payload["savedAt"] == saved.saved_at
    assert payload["simulatedOffers"][0]["custom_company_name"] == "Initech"


@pytest.mark.unit
def test_failed_rent_lookup_is_retried(applications, make_real_offer):
    rent_client = Mock()
    rent_client.fetch.side_effect = [
        RentEstimate.unavailable("HUD FMR API", "2025-06-01T00:00:00+00:00"),
        RentEstimate(provider="HUD FMR API", monthly_rent_estimate=1_700),
    ]
    session = ComparisonSession(store=MemoryStore(), rent_client=rent_client)
    session.set_offers([make_real_offer(1, 1, is_current=True)], applications)

    assert session.refresh_rent().error == "Rent estimate unavailable"
    assert session.baseline_monthly_rent == 0
    assert session.refresh_rent().monthly_rent == 1_700
    assert session.baseline_monthly_rent == 1_700
    assert rent_client.fetch.call_count == 2
