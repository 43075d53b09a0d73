"""Local persistence for marital status and simulated offers.

Settings live under one versioned key of a small key-value store and are
written wholesale on save. Records written before benefits were itemized
carry only a flat ``benefits_value``; they are upgraded on load.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from .model import annualize_benefits
from .ranking import RankingContext
from .schemas import (
    MARITAL_STATUSES,
    MONTHLY,
    ONSITE,
    REMOTE,
    YEARLY,
    ApplicationRecord,
    BenefitItem,
    CompensationOffer,
    SavedSettings,
    SimulatedOffer,
    to_number,
    to_optional_number,
)
from .tax import estimate_tax_rates

logger = logging.getLogger(__name__)

SETTINGS_KEY = "careerhub.offerAdjustments.v1"


class ScenarioValidationError(ValueError):
    """Raised when a simulated offer cannot be saved."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """Key-value store persisted as a single JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Settings file %s is unreadable: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def migrate_simulated_offer(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Ensure a stored simulated offer has itemized benefits.

    A record without ``benefit_items`` gets one yearly "Benefits" item holding
    its flat ``benefits_value``. ``benefits_value`` is then recomputed from the
    items so the two never disagree.
    """
    record = dict(raw)
    offer_id = record.get("id") or "saved"
    raw_items = record.get("benefit_items")
    if isinstance(raw_items, list) and raw_items:
        items = [
            BenefitItem.from_dict(item if isinstance(item, dict) else {}, f"scenario-benefit-{offer_id}-{idx}")
            for idx, item in enumerate(raw_items)
        ]
    else:
        logger.info("Upgrading simulated offer %s to itemized benefits", offer_id)
        items = [
            BenefitItem(
                id=f"scenario-benefit-legacy-{offer_id}",
                label="Benefits",
                amount=to_number(record.get("benefits_value")),
                frequency=YEARLY,
            )
        ]
    record["benefit_items"] = [item.to_dict() for item in items]
    record["benefits_value"] = annualize_benefits(items)
    return record


def simulated_offer_from_dict(raw: Dict[str, Any]) -> SimulatedOffer:
    app_id = to_optional_number(raw.get("application"))
    return SimulatedOffer(
        draft_id=str(raw.get("id") or ""),
        offer=CompensationOffer.from_dict({**raw, "is_current": False}),
        application_id=int(app_id) if app_id is not None else None,
        custom_company_name=str(raw.get("custom_company_name") or ""),
        custom_role_title=str(raw.get("custom_role_title") or ""),
        location=raw.get("location"),
    )


def simulated_offer_to_dict(scenario: SimulatedOffer) -> Dict[str, Any]:
    payload = scenario.offer.to_dict()
    payload.pop("is_current", None)
    payload.update(
        {
            "id": scenario.draft_id,
            "application": scenario.application_id,
            "custom_company_name": scenario.custom_company_name,
            "custom_role_title": scenario.custom_role_title,
            "location": scenario.location,
        }
    )
    return payload


def load_settings(store: KeyValueStore) -> Optional[SavedSettings]:
    """Read saved settings, or None when nothing usable is stored."""
    raw = store.get(SETTINGS_KEY)
    if not raw:
        return None
    try:
        saved = json.loads(raw)
        if not isinstance(saved, dict):
            raise ValueError("settings payload is not an object")
        settings = SavedSettings()
        status = saved.get("maritalStatus")
        if isinstance(status, str) and status in MARITAL_STATUSES:
            settings.marital_status = status
        offers = saved.get("simulatedOffers")
        if isinstance(saved.get("savedAt"), str):
            settings.saved_at = saved["savedAt"]
    except (ValueError, TypeError) as exc:
        logger.error("Failed to load saved offer adjustments: %s", exc)
        return None

    if isinstance(offers, list):
        for offer in offers:
            if not isinstance(offer, dict):
                continue
            try:
                settings.simulated_offers.append(simulated_offer_from_dict(migrate_simulated_offer(offer)))
            except (ValueError, TypeError, KeyError) as exc:
                logger.error("Skipping saved simulated offer %r: %s", offer.get("id"), exc)
    return settings


def save_settings(
    store: KeyValueStore, marital_status: str, simulated_offers: List[SimulatedOffer]
) -> SavedSettings:
    saved_at = datetime.now(timezone.utc).isoformat()
    payload = {
        "maritalStatus": marital_status,
        "simulatedOffers": [simulated_offer_to_dict(offer) for offer in simulated_offers],
        "savedAt": saved_at,
    }
    store.set(SETTINGS_KEY, json.dumps(payload))
    return SavedSettings(
        marital_status=marital_status,
        simulated_offers=list(simulated_offers),
        saved_at=saved_at,
    )


def default_scenario_benefits() -> List[BenefitItem]:
    return [
        BenefitItem("benefit-gym", "Gym Reimbursement", 100, MONTHLY),
        BenefitItem("benefit-phone", "Cellphone Reimbursement", 100, MONTHLY),
    ]


def default_scenario_draft() -> SimulatedOffer:
    benefits = default_scenario_benefits()
    return SimulatedOffer(
        draft_id="",
        location="San Francisco, CA, United States",
        offer=CompensationOffer(
            base_salary=100000,
            bonus=20000,
            equity=20000,
            equity_total_grant=80000,
            equity_vesting_percent=25,
            sign_on=10000,
            benefit_items=benefits,
            benefits_value=annualize_benefits(benefits),
            work_mode="HYBRID",
            rto_days_per_week=3,
            commute_cost_value=200,
            commute_cost_frequency=MONTHLY,
            free_food_perk_value=0,
            free_food_perk_frequency=YEARLY,
            pto_days=15,
            holiday_days=11,
            tax_base_rate=32,
            tax_bonus_rate=40,
            tax_equity_rate=42,
            monthly_rent=3500,
        ),
    )


def validate_simulated_offer(scenario: SimulatedOffer) -> None:
    has_linked_app = scenario.application_id is not None
    has_custom_name = bool(scenario.custom_company_name.strip()) and bool(
        scenario.custom_role_title.strip()
    )
    if not has_linked_app and not has_custom_name:
        raise ScenarioValidationError("Select an application or enter custom company and role")


def link_application(
    scenario: SimulatedOffer, application: ApplicationRecord, context: RankingContext
) -> SimulatedOffer:
    """Return a copy of ``scenario`` linked to ``application`` and pre-filled from it.

    Location, work mode and office days come from the application when it has
    them. Tax rates are re-estimated for the resulting location and the rent
    is scaled from the session baseline; a draft keeps its own rent while no
    baseline is known. Commute and free-food perks are taken from the
    application when it sets a value.
    """
    offer = scenario.offer
    if application.rto_policy in (REMOTE, ONSITE):
        work_mode = application.rto_policy
    else:
        work_mode = offer.work_mode

    own_location = scenario.location if scenario.location and scenario.location.strip() else None
    location = (
        application.location if application.has_location else own_location
    ) or context.reference_location

    if application.rto_days_per_week is not None:
        rto_days = application.rto_days_per_week
    elif work_mode == REMOTE:
        rto_days = 0.0
    elif work_mode == ONSITE:
        rto_days = 5.0
    else:
        rto_days = offer.rto_days_per_week

    ref = context.reference_data
    rates = estimate_tax_rates(
        offer.gross_income,
        context.marital_status,
        location,
        ref.state_tax_rate,
        ref.state_name_to_abbr,
    )
    monthly_rent = offer.monthly_rent
    if context.baseline_monthly_rent > 0:
        monthly_rent = context.estimated_rent(context.col_index(location))

    commute = (offer.commute_cost_value, offer.commute_cost_frequency)
    if application.commute_cost_value:
        commute = (application.commute_cost_value, application.commute_cost_frequency)
    food = (offer.free_food_perk_value, offer.free_food_perk_frequency)
    if application.free_food_perk_value:
        food = (application.free_food_perk_value, application.free_food_perk_frequency)

    linked = replace(
        offer,
        work_mode=work_mode,
        rto_days_per_week=rto_days,
        tax_base_rate=rates.base,
        tax_bonus_rate=rates.bonus,
        tax_equity_rate=rates.equity,
        monthly_rent=monthly_rent,
        commute_cost_value=commute[0],
        commute_cost_frequency=commute[1],
        free_food_perk_value=food[0],
        free_food_perk_frequency=food[1],
    )
    return replace(scenario, application_id=application.id, location=location, offer=linked)


class ScenarioBook:
    """In-memory list of simulated offers, edited one operation at a time."""

    def __init__(self, offers: Optional[List[SimulatedOffer]] = None) -> None:
        self._offers: List[SimulatedOffer] = list(offers or [])

    def list(self) -> List[SimulatedOffer]:
        return list(self._offers)

    def get(self, draft_id: str) -> Optional[SimulatedOffer]:
        return next((offer for offer in self._offers if offer.draft_id == draft_id), None)

    def _new_id(self) -> str:
        candidate = f"sim-{int(time.time() * 1000)}"
        while self.get(candidate) is not None:
            candidate = f"{candidate}-1"
        return candidate

    @staticmethod
    def _with_benefit_total(scenario: SimulatedOffer) -> SimulatedOffer:
        items = scenario.offer.benefit_items
        if items:
            scenario.offer.benefits_value = annualize_benefits(items)
        scenario.offer.is_current = False
        return scenario

    def add(self, scenario: SimulatedOffer) -> SimulatedOffer:
        validate_simulated_offer(scenario)
        scenario.draft_id = self._new_id()
        self._offers.append(self._with_benefit_total(scenario))
        logger.info("Added simulated offer %s", scenario.draft_id)
        return scenario

    def update(self, draft_id: str, scenario: SimulatedOffer) -> SimulatedOffer:
        validate_simulated_offer(scenario)
        for idx, existing in enumerate(self._offers):
            if existing.draft_id == draft_id:
                scenario.draft_id = draft_id
                self._offers[idx] = self._with_benefit_total(scenario)
                return scenario
        raise KeyError(f"No simulated offer with id {draft_id!r}")

    def remove(self, draft_id: str) -> bool:
        before = len(self._offers)
        self._offers = [offer for offer in self._offers if offer.draft_id != draft_id]
        return len(self._offers) != before
