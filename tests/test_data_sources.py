from unittest.mock import Mock

import pytest
import requests

from offer_compare.data_sources import OfferSnapshot, ReferenceDataClient, RentEstimateClient


def _session_returning(payload) -> Mock:
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    session = Mock(spec=requests.Session)
    session.get.return_value = response
    return session


@pytest.mark.unit
def test_reference_data_merges_partial_payload():
    session = _session_returning({"state_tax_rate": {"CA": 9.3}, "city_cost_of_living": None})
    client = ReferenceDataClient("http://api.test/api/", session=session, timeout=5)
    data = client.fetch()

    session.get.assert_called_once_with("http://api.test/api/career/reference-data/", params=None, timeout=5)
    assert data.state_tax_rate == {"CA": 9.3}
    assert data.city_cost_of_living["San Francisco, CA"] == 168


@pytest.mark.unit
def test_reference_data_network_failure_keeps_defaults(caplog):
    session = Mock(spec=requests.Session)
    session.get.side_effect = requests.ConnectionError("offline")
    data = ReferenceDataClient("http://api.test/api", session=session).fetch()
    assert data.state_tax_rate["CA"] == 8.5
    assert "Failed to load career reference data" in caplog.text


@pytest.mark.unit
def test_rent_estimate_is_parsed():
    session = _session_returning(
        {
            "provider": "HUD FMR API",
            "matched_area": "Austin-Round Rock, TX",
            "monthly_rent_estimate": 1650,
            "fmr_year": 2025,
            "last_updated": "2025-06-01",
        }
    )
    estimate = RentEstimateClient("http://api.test/api", session=session).fetch("Austin, TX")
    assert session.get.call_args.kwargs["params"] == {"location": "Austin, TX"}
    assert estimate.monthly_rent == 1650
    assert estimate.error is None


@pytest.mark.unit
def test_rent_estimate_http_error_yields_placeholder():
    response = Mock()
    response.raise_for_status.side_effect = requests.HTTPError("502")
    session = Mock(spec=requests.Session)
    session.get.return_value = response

    estimate = RentEstimateClient("http://api.test/api", session=session).fetch("Austin, TX")
    assert estimate.provider == "HUD FMR API"
    assert estimate.error == "Rent estimate unavailable"
    assert estimate.last_updated
    assert estimate.monthly_rent == 0


@pytest.mark.unit
def test_null_rent_estimate_counts_as_zero():
    session = _session_returning({"provider": "HUD FMR API", "monthly_rent_estimate": None})
    estimate = RentEstimateClient("http://api.test/api", session=session).fetch("Nowhere")
    assert estimate.monthly_rent == 0


@pytest.mark.unit
def test_offer_snapshot_joins_applications():
    snapshot = OfferSnapshot.from_payload(
        offers=[
            {"id": 1, "application": 5, "base_salary": "120000", "is_current": True},
            {"application": 5, "base_salary": 1},
        ],
        applications=[{"id": 5, "company_details": {"name": "Acme"}, "role_title": "Dev", "location": "Austin, TX"}],
    )
    assert len(snapshot.offers) == 1
    offer = snapshot.offers[0]
    assert offer.offer.base_salary == 120000
    assert offer.application.display_name == "Acme - Dev"
    assert offer.is_current


@pytest.mark.unit
def test_offer_snapshot_skips_offer_that_fails_validation(caplog):
    snapshot = OfferSnapshot.from_payload(
        offers=[{"id": 1, "rto_days_per_week": 10}, {"id": 2, "base_salary": 90000}],
        applications=[],
    )
    assert [offer.offer_id for offer in snapshot.offers] == [2]
    assert "Skipping malformed offer 1" in caplog.text


@pytest.mark.unit
def test_offer_snapshot_skips_applications_without_usable_id(caplog):
    snapshot = OfferSnapshot.from_payload(
        offers=[{"id": 1, "application": 7}],
        applications=[
            {"location": "Austin, TX"},
            {"id": "seven", "location": "Austin, TX"},
            "not an application",
            {"id": 7, "company_name": "Globex", "location": "Denver, CO"},
        ],
    )
    assert list(snapshot.applications) == [7]
    assert snapshot.offers[0].application.company_name == "Globex"
    assert snapshot.offers[0].application_id == 7
    assert caplog.text.count("Skipping") == 3
