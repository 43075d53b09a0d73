from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from .schemas import (
    ApplicationRecord,
    CompensationOffer,
    RealOffer,
    ReferenceData,
    RentEstimate,
    to_optional_number,
)

logger = logging.getLogger(__name__)

RENT_PROVIDER = "HUD FMR API"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CareerApiClient:
    """Thin wrapper around the career backend's JSON endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()


class ReferenceDataClient(CareerApiClient):
    """Fetches lookup tables, keeping the built-in ones for anything missing."""

    PATH = "career/reference-data/"

    def fetch(self) -> ReferenceData:
        try:
            payload = self.get_json(self.PATH)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Failed to load career reference data, using built-in tables: %s", exc)
            return ReferenceData.defaults()
        if not isinstance(payload, dict):
            logger.warning("Reference data payload is not an object; using built-in tables")
            return ReferenceData.defaults()
        return ReferenceData.from_payload(payload)


class RentEstimateClient(CareerApiClient):
    """Fetches a per-location monthly rent estimate."""

    PATH = "career/rent-estimate/"

    def fetch(self, location: str) -> RentEstimate:
        try:
            payload = self.get_json(self.PATH, params={"location": location})
            if not isinstance(payload, dict):
                raise ValueError("rent estimate payload is not an object")
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Failed to load rent estimate for %r: %s", location, exc)
            return RentEstimate.unavailable(RENT_PROVIDER, _utc_now())
        return RentEstimate.from_payload(payload)


@dataclass
class OfferSnapshot:
    """Real offers and the applications they belong to, as loaded from the backend."""

    offers: List[RealOffer] = field(default_factory=list)
    applications: Dict[int, ApplicationRecord] = field(default_factory=dict)

    @classmethod
    def from_payload(
        cls, offers: List[Dict[str, Any]], applications: List[Dict[str, Any]]
    ) -> "OfferSnapshot":
        apps = {}
        for raw in applications:
            if not isinstance(raw, dict):
                logger.warning("Skipping application that is not an object: %r", raw)
                continue
            try:
                app = ApplicationRecord.from_dict(raw)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed application %r: %s", raw, exc)
                continue
            apps[app.id] = app

        real: List[RealOffer] = []
        for raw in offers:
            if not isinstance(raw, dict) or raw.get("id") is None:
                logger.info("Skipping offer without an id: %r", raw)
                continue
            try:
                app_id = to_optional_number(raw.get("application"))
                real.append(
                    RealOffer(
                        offer_id=int(raw["id"]),
                        offer=CompensationOffer.from_dict(raw),
                        application=apps.get(int(app_id)) if app_id is not None else None,
                        application_id=int(app_id) if app_id is not None else None,
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed offer %r: %s", raw.get("id"), exc)
        return cls(offers=real, applications=apps)


class OfferClient(CareerApiClient):
    """Read-only access to persisted offers and applications."""

    def fetch_snapshot(self) -> OfferSnapshot:
        offers = self.get_json("career/offers/")
        applications = self.get_json("career/applications/")
        return OfferSnapshot.from_payload(offers or [], applications or [])
