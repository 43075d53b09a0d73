from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

MONTHLY = "MONTHLY"
YEARLY = "YEARLY"
DAILY = "DAILY"
FREQUENCIES = (DAILY, MONTHLY, YEARLY)

REMOTE = "REMOTE"
HYBRID = "HYBRID"
ONSITE = "ONSITE"
WORK_MODES = (REMOTE, HYBRID, ONSITE)

SINGLE = "SINGLE"
MARRIED_FILING_JOINTLY = "MARRIED_FILING_JOINTLY"
MARRIED_FILING_SEPARATELY = "MARRIED_FILING_SEPARATELY"
HEAD_OF_HOUSEHOLD = "HEAD_OF_HOUSEHOLD"
MARITAL_STATUSES = (
    SINGLE,
    MARRIED_FILING_JOINTLY,
    MARRIED_FILING_SEPARATELY,
    HEAD_OF_HOUSEHOLD,
)

DEFAULT_HOLIDAY_DAYS = 11


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce user or API input to a finite float, falling back to ``default``."""
    if isinstance(value, bool):
        return float(value)
    if value is None or value == "":
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def to_optional_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, matching display rounding."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class MaritalStatusOption:
    code: str
    label: str


@dataclass(frozen=True)
class BenefitItem:
    """One itemized benefit, e.g. a monthly gym reimbursement."""

    id: str
    label: str
    amount: float
    frequency: str = YEARLY

    def __post_init__(self) -> None:
        if self.frequency not in (MONTHLY, YEARLY):
            raise ValueError(f"benefit frequency must be MONTHLY or YEARLY, got {self.frequency!r}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any], fallback_id: str) -> "BenefitItem":
        return cls(
            id=str(data.get("id") or fallback_id),
            label=str(data.get("label") or ""),
            amount=to_number(data.get("amount")),
            frequency=MONTHLY if data.get("frequency") == MONTHLY else YEARLY,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "amount": self.amount,
            "frequency": self.frequency,
        }


@dataclass
class ReferenceData:
    """Lookup tables used by the tax estimator and cost-of-living resolver."""

    city_cost_of_living: Dict[str, float]
    state_col_base: Dict[str, float]
    state_tax_rate: Dict[str, float]
    state_name_to_abbr: Dict[str, str]
    marital_status_options: List[MaritalStatusOption] = field(default_factory=list)

    @classmethod
    def defaults(cls) -> "ReferenceData":
        from .reference import (
            DEFAULT_CITY_COST_OF_LIVING,
            DEFAULT_MARITAL_STATUS_OPTIONS,
            DEFAULT_STATE_COL_BASE,
            DEFAULT_STATE_NAME_TO_ABBR,
            DEFAULT_STATE_TAX_RATE,
        )

        return cls(
            city_cost_of_living=dict(DEFAULT_CITY_COST_OF_LIVING),
            state_col_base=dict(DEFAULT_STATE_COL_BASE),
            state_tax_rate=dict(DEFAULT_STATE_TAX_RATE),
            state_name_to_abbr=dict(DEFAULT_STATE_NAME_TO_ABBR),
            marital_status_options=list(DEFAULT_MARITAL_STATUS_OPTIONS),
        )

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> "ReferenceData":
        """Overlay an API payload on the built-in tables, field by field."""
        data = cls.defaults()
        if not isinstance(payload, dict):
            return data

        city = _positive_table(payload.get("city_cost_of_living"))
        if city:
            data.city_cost_of_living = city
        state_col = _positive_table(payload.get("state_col_base"))
        if state_col:
            data.state_col_base = state_col
        state_tax = _rate_table(payload.get("state_tax_rate"))
        if state_tax:
            data.state_tax_rate = state_tax

        names = payload.get("state_name_to_abbr")
        if isinstance(names, dict) and names:
            data.state_name_to_abbr = {
                str(name): str(abbr) for name, abbr in names.items() if name and abbr
            }

        options = payload.get("marital_status_options")
        if isinstance(options, list) and options:
            parsed = [
                MaritalStatusOption(code=str(opt["code"]), label=str(opt.get("label") or opt["code"]))
                for opt in options
                if isinstance(opt, dict) and opt.get("code")
            ]
            if parsed:
                data.marital_status_options = parsed
        return data


def _positive_table(raw: Any) -> Dict[str, float]:
    if not isinstance(raw, dict):
        return {}
    table: Dict[str, float] = {}
    for key, value in raw.items():
        number = to_optional_number(value)
        if number is not None and number > 0:
            table[str(key)] = number
    return table


def _rate_table(raw: Any) -> Dict[str, float]:
    if not isinstance(raw, dict):
        return {}
    table: Dict[str, float] = {}
    for key, value in raw.items():
        number = to_optional_number(value)
        if number is not None and number >= 0:
            table[str(key)] = number
    return table


@dataclass
class RentEstimate:
    provider: str
    matched_area: Optional[str] = None
    monthly_rent_estimate: Optional[float] = None
    fmr_year: Optional[Union[int, str]] = None
    last_updated: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "RentEstimate":
        return cls(
            provider=str(payload.get("provider") or "unknown"),
            matched_area=payload.get("matched_area"),
            monthly_rent_estimate=to_optional_number(payload.get("monthly_rent_estimate")),
            fmr_year=payload.get("fmr_year"),
            last_updated=payload.get("last_updated"),
            error=payload.get("error"),
        )

    @classmethod
    def unavailable(cls, provider: str, last_updated: str) -> "RentEstimate":
        return cls(provider=provider, error="Rent estimate unavailable", last_updated=last_updated)

    @property
    def monthly_rent(self) -> float:
        return max(0.0, self.monthly_rent_estimate or 0.0)


@dataclass
class TaxRates:
    """Percentages, e.g. 32 for 32%."""

    base: float
    bonus: float
    equity: float


@dataclass
class ApplicationRecord:
    """The slice of a job application an offer inherits location and policy from."""

    id: int
    company_name: str = ""
    role_title: str = ""
    location: Optional[str] = None
    rto_policy: Optional[str] = None
    rto_days_per_week: Optional[float] = None
    commute_cost_value: float = 0.0
    commute_cost_frequency: str = MONTHLY
    free_food_perk_value: float = 0.0
    free_food_perk_frequency: str = YEARLY
    tax_base_rate: Optional[float] = None
    tax_bonus_rate: Optional[float] = None
    tax_equity_rate: Optional[float] = None
    monthly_rent_override: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApplicationRecord":
        company = data.get("company_name")
        if not company and isinstance(data.get("company_details"), dict):
            company = data["company_details"].get("name")
        return cls(
            id=int(data["id"]),
            company_name=str(company or ""),
            role_title=str(data.get("role_title") or ""),
            location=data.get("location"),
            rto_policy=data.get("rto_policy"),
            rto_days_per_week=to_optional_number(data.get("rto_days_per_week")),
            commute_cost_value=to_number(data.get("commute_cost_value")),
            commute_cost_frequency=data.get("commute_cost_frequency") or MONTHLY,
            free_food_perk_value=to_number(data.get("free_food_perk_value")),
            free_food_perk_frequency=data.get("free_food_perk_frequency") or YEARLY,
            tax_base_rate=to_optional_number(data.get("tax_base_rate")),
            tax_bonus_rate=to_optional_number(data.get("tax_bonus_rate")),
            tax_equity_rate=to_optional_number(data.get("tax_equity_rate")),
            monthly_rent_override=to_optional_number(data.get("monthly_rent_override")),
        )

    @property
    def display_name(self) -> str:
        if self.company_name and self.role_title:
            return f"{self.company_name} - {self.role_title}"
        return self.company_name or self.role_title or f"App #{self.id}"

    @property
    def has_location(self) -> bool:
        return bool(self.location and self.location.strip())


@dataclass
class CompensationOffer:
    """Compensation terms shared by real and simulated offers."""

    base_salary: float = 0.0
    bonus: float = 0.0
    equity: float = 0.0
    sign_on: float = 0.0
    benefits_value: float = 0.0
    benefit_items: List[BenefitItem] = field(default_factory=list)
    equity_total_grant: Optional[float] = None
    equity_vesting_percent: Optional[float] = None
    equity_realization_percent: Optional[float] = None
    work_mode: Optional[str] = None
    rto_days_per_week: Optional[float] = None
    pto_days: float = 0.0
    holiday_days: float = DEFAULT_HOLIDAY_DAYS
    tax_base_rate: Optional[float] = None
    tax_bonus_rate: Optional[float] = None
    tax_equity_rate: Optional[float] = None
    monthly_rent: Optional[float] = None
    commute_cost_value: float = 0.0
    commute_cost_frequency: str = MONTHLY
    free_food_perk_value: float = 0.0
    free_food_perk_frequency: str = YEARLY
    free_food: bool = False
    wellness_stipend: float = 0.0
    wlb_score: Optional[float] = None
    is_current: bool = False

    def __post_init__(self) -> None:
        if self.work_mode is not None and self.work_mode not in WORK_MODES:
            raise ValueError(f"work_mode must be one of {WORK_MODES}, got {self.work_mode!r}")
        if self.rto_days_per_week is not None and not 0 <= self.rto_days_per_week <= 7:
            raise ValueError("rto_days_per_week must be between 0 and 7")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompensationOffer":
        items = [
            BenefitItem.from_dict(item, f"benefit-{idx}")
            for idx, item in enumerate(data.get("benefit_items") or [])
            if isinstance(item, dict)
        ]
        work_mode = data.get("work_mode")
        return cls(
            base_salary=to_number(data.get("base_salary")),
            bonus=to_number(data.get("bonus")),
            equity=to_number(data.get("equity")),
            sign_on=to_number(data.get("sign_on")),
            benefits_value=to_number(data.get("benefits_value")),
            benefit_items=items,
            equity_total_grant=to_optional_number(data.get("equity_total_grant")),
            equity_vesting_percent=to_optional_number(data.get("equity_vesting_percent")),
            equity_realization_percent=to_optional_number(data.get("equity_realization_percent")),
            work_mode=work_mode if work_mode in WORK_MODES else None,
            rto_days_per_week=to_optional_number(data.get("rto_days_per_week")),
            pto_days=to_number(data.get("pto_days")),
            holiday_days=to_number(data.get("holiday_days"), DEFAULT_HOLIDAY_DAYS),
            tax_base_rate=to_optional_number(data.get("tax_base_rate")),
            tax_bonus_rate=to_optional_number(data.get("tax_bonus_rate")),
            tax_equity_rate=to_optional_number(data.get("tax_equity_rate")),
            monthly_rent=to_optional_number(data.get("monthly_rent")),
            commute_cost_value=to_number(data.get("commute_cost_value")),
            commute_cost_frequency=data.get("commute_cost_frequency") or MONTHLY,
            free_food_perk_value=to_number(data.get("free_food_perk_value")),
            free_food_perk_frequency=data.get("free_food_perk_frequency") or YEARLY,
            free_food=bool(data.get("free_food", False)),
            wellness_stipend=to_number(data.get("wellness_stipend")),
            wlb_score=to_optional_number(data.get("wlb_score")),
            is_current=bool(data.get("is_current", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_salary": self.base_salary,
            "bonus": self.bonus,
            "equity": self.equity,
            "sign_on": self.sign_on,
            "benefits_value": self.benefits_value,
            "benefit_items": [item.to_dict() for item in self.benefit_items],
            "equity_total_grant": self.equity_total_grant,
            "equity_vesting_percent": self.equity_vesting_percent,
            "equity_realization_percent": self.equity_realization_percent,
            "work_mode": self.work_mode,
            "rto_days_per_week": self.rto_days_per_week,
            "pto_days": self.pto_days,
            "holiday_days": self.holiday_days,
            "tax_base_rate": self.tax_base_rate,
            "tax_bonus_rate": self.tax_bonus_rate,
            "tax_equity_rate": self.tax_equity_rate,
            "monthly_rent": self.monthly_rent,
            "commute_cost_value": self.commute_cost_value,
            "commute_cost_frequency": self.commute_cost_frequency,
            "free_food_perk_value": self.free_food_perk_value,
            "free_food_perk_frequency": self.free_food_perk_frequency,
            "free_food": self.free_food,
            "wellness_stipend": self.wellness_stipend,
            "wlb_score": self.wlb_score,
            "is_current": self.is_current,
        }

    @property
    def annual_equity(self) -> float:
        # A lump grant amortized by the yearly vesting share wins over the flat figure.
        if self.equity_total_grant:
            vesting = 25.0 if self.equity_vesting_percent is None else self.equity_vesting_percent
            return self.equity_total_grant * vesting / 100.0
        return self.equity

    @property
    def annual_benefits(self) -> float:
        if self.benefit_items:
            from .model import annualize_benefits

            return annualize_benefits(self.benefit_items)
        return self.benefits_value

    @property
    def gross_income(self) -> float:
        return (
            self.base_salary
            + self.bonus
            + self.sign_on
            + self.annual_benefits
            + self.annual_equity
        )

    @property
    def total_comp(self) -> float:
        return self.base_salary + self.bonus + self.annual_equity + self.sign_on


@dataclass
class RealOffer:
    """A persisted offer joined with its application record."""

    offer_id: int
    offer: CompensationOffer
    application: Optional[ApplicationRecord] = None
    application_id: Optional[int] = None

    kind = "real"

    def __post_init__(self) -> None:
        if self.application_id is None and self.application is not None:
            self.application_id = self.application.id

    @property
    def key(self) -> Union[int, str]:
        return self.offer_id

    @property
    def is_current(self) -> bool:
        return self.offer.is_current


@dataclass
class SimulatedOffer:
    """A hypothetical offer that only lives in local settings."""

    draft_id: str
    offer: CompensationOffer
    application_id: Optional[int] = None
    custom_company_name: str = ""
    custom_role_title: str = ""
    location: Optional[str] = None

    kind = "simulated"

    @property
    def key(self) -> Union[int, str]:
        return self.draft_id

    @property
    def is_current(self) -> bool:
        return False

    @property
    def custom_name(self) -> str:
        return f"{self.custom_company_name or 'Custom Company'} - {self.custom_role_title or 'Custom Role'}"


OfferEntry = Union[RealOffer, SimulatedOffer]


@dataclass
class ScenarioInputs:
    """Inputs for a single adjusted-value calculation.

    Optional knobs default to "not supplied": ``rto_days_per_week=None`` falls
    back to the work-mode penalty, ``wlb_score=None`` contributes nothing and
    ``equity_realization_percent`` defaults to full realization.
    """

    base_salary: float = 0.0
    bonus: float = 0.0
    sign_on: float = 0.0
    benefits: float = 0.0
    equity: float = 0.0
    work_mode: str = HYBRID
    rto_days_per_week: Optional[float] = None
    commute_annual_cost: float = 0.0
    free_food_annual_value: float = 0.0
    free_food: bool = False
    wellness_stipend: float = 0.0
    wlb_score: Optional[float] = None
    base_tax_rate: float = 0.0
    bonus_tax_rate: float = 0.0
    equity_tax_rate: float = 0.0
    equity_realization_percent: float = 100.0
    cost_of_living_index: float = 100.0
    monthly_rent: float = 0.0


@dataclass
class ScenarioBreakdown:
    taxed_base: float
    taxed_benefits: float
    taxed_bonus: float
    taxed_equity: float
    purchasing_power: float
    work_mode_bonus: float
    free_food_bonus: float
    wellness_bonus: float
    wlb_bonus: float
    rto_penalty: float
    commute_penalty: float
    annual_rent: float


@dataclass
class ScenarioValue:
    adjusted_value: float
    lifestyle_adjustment: float
    breakdown: ScenarioBreakdown


@dataclass
class ScenarioRow:
    kind: str
    key: Union[int, str]
    name: str
    is_current: bool
    location: str
    col_index: float
    monthly_rent: float
    work_mode: str
    rto_days_per_week: float
    pto_days: float
    holiday_days: float
    pto_holiday_days: float
    total_comp: float
    adjusted_value: float
    lifestyle_adjustment: float
    after_tax_base: float
    after_tax_bonus: float
    after_tax_equity: float
    used_base_tax_rate: float
    used_bonus_tax_rate: float
    used_equity_tax_rate: float
    delta_vs_current: float = 0.0
    delta_total_comp: float = 0.0
    delta_base_after_tax: float = 0.0
    delta_bonus_after_tax: float = 0.0
    delta_equity_after_tax: float = 0.0
    delta_pto_holiday_days: float = 0.0


@dataclass(frozen=True)
class AdjustedSummary:
    """What downstream consumers see for one real offer."""

    adjusted_value: float
    adjusted_diff: float
    after_tax_base: float
    after_tax_bonus: float
    after_tax_equity: float
    used_base_tax_rate: float
    used_bonus_tax_rate: float
    used_equity_tax_rate: float
    monthly_rent: float


@dataclass
class SavedSettings:
    marital_status: str = SINGLE
    simulated_offers: List[SimulatedOffer] = field(default_factory=list)
    saved_at: Optional[str] = None
