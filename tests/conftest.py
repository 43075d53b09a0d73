from typing import Any, Callable

import pytest

from offer_compare.schemas import ApplicationRecord, CompensationOffer, RealOffer, ReferenceData, SimulatedOffer


@pytest.fixture
def reference_data() -> ReferenceData:
    return ReferenceData.defaults()


@pytest.fixture
def applications() -> dict[int, ApplicationRecord]:
    """Two applications in different cost-of-living areas."""
    return {
        1: ApplicationRecord(
            id=1,
            company_name="Acme",
            role_title="Engineer",
            location="Austin, TX",
            rto_policy="HYBRID",
            rto_days_per_week=3,
        ),
        2: ApplicationRecord(
            id=2,
            company_name="Globex",
            role_title="Senior Engineer",
            location="San Francisco, CA, United States",
            rto_policy="HYBRID",
            rto_days_per_week=3,
        ),
    }


@pytest.fixture
def make_real_offer(applications) -> Callable[..., RealOffer]:
    def _make(offer_id: int, app_id: int, **fields: Any) -> RealOffer:
        terms = {"base_salary": 150000, "bonus": 15000, "equity": 30000, "sign_on": 0, "pto_days": 15}
        terms.update(fields)
        return RealOffer(
            offer_id=offer_id,
            offer=CompensationOffer(**terms),
            application=applications.get(app_id),
        )

    return _make


@pytest.fixture
def make_simulated_offer() -> Callable[..., SimulatedOffer]:
    def _make(draft_id: str, location: str = "Seattle, WA", **fields: Any) -> SimulatedOffer:
        terms = {"base_salary": 160000, "bonus": 10000, "equity": 20000, "work_mode": "REMOTE"}
        terms.update(fields)
        return SimulatedOffer(
            draft_id=draft_id,
            offer=CompensationOffer(**terms),
            custom_company_name="Initech",
            custom_role_title="Staff Engineer",
            location=location,
        )

    return _make
