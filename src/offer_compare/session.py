from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Hashable, List, Mapping, Optional

from .data_sources import ReferenceDataClient, RentEstimateClient
from .ranking import RankingContext, rank_scenarios, resolve_reference_location, summarize_real_rows
from .schemas import (
    MARITAL_STATUSES,
    SINGLE,
    AdjustedSummary,
    ApplicationRecord,
    RealOffer,
    ReferenceData,
    RentEstimate,
    SavedSettings,
    ScenarioRow,
)
from .settings_store import KeyValueStore, ScenarioBook, load_settings, save_settings
from .stable import StableOutput

logger = logging.getLogger(__name__)


@dataclass
class ComparisonResult:
    rows: List[ScenarioRow]
    real_summary: Mapping[Hashable, AdjustedSummary]
    summary_changed: bool

    @property
    def best(self) -> Optional[ScenarioRow]:
        return self.rows[0] if self.rows else None


class ComparisonSession:
    """One comparison session: inputs, network lookups and the published output.

    Every ``recompute`` rebuilds all rows from scratch. Rent estimates are
    cached per location; a response for a location that is no longer the
    reference location is dropped instead of overwriting the current one.
    Failed lookups are not cached, so the next refresh retries them.
    """

    def __init__(
        self,
        *,
        store: KeyValueStore,
        reference_client: Optional[ReferenceDataClient] = None,
        rent_client: Optional[RentEstimateClient] = None,
    ) -> None:
        self.store = store
        self.reference_client = reference_client
        self.rent_client = rent_client
        self.reference_data = ReferenceData.defaults()
        self.marital_status = SINGLE
        self.offers: List[RealOffer] = []
        self.applications: Dict[int, ApplicationRecord] = {}
        self.scenarios = ScenarioBook()
        self.rent_estimates: Dict[str, RentEstimate] = {}
        self.saved_at: Optional[str] = None
        self.output = StableOutput()
        self._reference_loaded = False

    def load(self) -> None:
        saved = load_settings(self.store)
        if saved is not None:
            self.marital_status = saved.marital_status
            self.scenarios = ScenarioBook(saved.simulated_offers)
            self.saved_at = saved.saved_at
        if self.reference_client is not None and not self._reference_loaded:
            self.reference_data = self.reference_client.fetch()
            self._reference_loaded = True

    def set_offers(self, offers: List[RealOffer], applications: Mapping[int, ApplicationRecord]) -> None:
        self.offers = list(offers)
        self.applications = dict(applications)

    def set_marital_status(self, status: str) -> None:
        if status not in MARITAL_STATUSES:
            raise ValueError(f"marital status must be one of {MARITAL_STATUSES}, got {status!r}")
        self.marital_status = status

    @property
    def reference_location(self) -> str:
        return resolve_reference_location(self.offers, self.applications)

    def refresh_rent(self) -> RentEstimate:
        location = self.reference_location
        cached = self.rent_estimates.get(location)
        if cached is not None:
            return cached
        if self.rent_client is None:
            return RentEstimate(provider="none")
        estimate = self.rent_client.fetch(location)
        self.apply_rent_estimate(location, estimate)
        return estimate

    def apply_rent_estimate(self, location: str, estimate: RentEstimate) -> bool:
        if location != self.reference_location:
            logger.info("Dropping rent estimate for stale location %r", location)
            return False
        if estimate.error:
            logger.info("Not caching failed rent estimate for %r: %s", location, estimate.error)
            return False
        self.rent_estimates[location] = estimate
        return True

    @property
    def baseline_monthly_rent(self) -> float:
        estimate = self.rent_estimates.get(self.reference_location)
        return estimate.monthly_rent if estimate is not None else 0.0

    def context(self) -> RankingContext:
        return RankingContext(
            reference_data=self.reference_data,
            marital_status=self.marital_status,
            applications=self.applications,
            reference_location=self.reference_location,
            baseline_monthly_rent=self.baseline_monthly_rent,
        )

    def recompute(self) -> ComparisonResult:
        rows = rank_scenarios([*self.offers, *self.scenarios.list()], self.context())
        changed = self.output.publish(summarize_real_rows(rows))
        return ComparisonResult(rows=rows, real_summary=self.output.value, summary_changed=changed)

    def save(self) -> SavedSettings:
        saved = save_settings(self.store, self.marital_status, self.scenarios.list())
        self.saved_at = saved.saved_at
        return saved
