from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .model import annualize_amount, calculate_scenario_value
from .reference import FALLBACK_LOCATION, estimate_col_index
from .schemas import (
    HYBRID,
    ONSITE,
    REMOTE,
    SINGLE,
    AdjustedSummary,
    ApplicationRecord,
    OfferEntry,
    RealOffer,
    ReferenceData,
    ScenarioInputs,
    ScenarioRow,
    SimulatedOffer,
    TaxRates,
    round_half_up,
)
from .tax import estimate_tax_rates

DEFAULT_RTO_DAYS = {REMOTE: 0.0, ONSITE: 5.0, HYBRID: 3.0}


@dataclass
class RankingContext:
    """Everything shared by the rows of one computation pass."""

    reference_data: ReferenceData = field(default_factory=ReferenceData.defaults)
    marital_status: str = SINGLE
    applications: Mapping[int, ApplicationRecord] = field(default_factory=dict)
    reference_location: str = FALLBACK_LOCATION
    baseline_monthly_rent: float = 0.0

    def col_index(self, location: str) -> float:
        ref = self.reference_data
        return estimate_col_index(
            location, ref.city_cost_of_living, ref.state_col_base, ref.state_name_to_abbr
        )

    @property
    def baseline_col_index(self) -> float:
        return max(1.0, self.col_index(self.reference_location))

    def estimated_rent(self, col_index: float) -> float:
        baseline_rent = max(0.0, self.baseline_monthly_rent)
        return float(round_half_up(baseline_rent * (max(1.0, col_index) / self.baseline_col_index)))


def resolve_reference_location(
    entries: Sequence[OfferEntry], applications: Mapping[int, ApplicationRecord]
) -> str:
    """Pick the location that anchors rent scaling and fills in missing locations.

    Preference: the current (or else first) real offer's application, then any
    application with a location, then ``FALLBACK_LOCATION``.
    """
    real = [entry for entry in entries if isinstance(entry, RealOffer)]
    anchor = next((entry for entry in real if entry.is_current), real[0] if real else None)
    if anchor is not None:
        app = _application_for(anchor, applications)
        if app is not None and app.has_location:
            return app.location
    for app in applications.values():
        if app.has_location:
            return app.location
    return FALLBACK_LOCATION


def _application_for(
    entry: OfferEntry, applications: Mapping[int, ApplicationRecord]
) -> Optional[ApplicationRecord]:
    if isinstance(entry, RealOffer):
        return entry.application
    if entry.application_id is not None:
        return applications.get(entry.application_id)
    return None


def _work_mode_from_policy(policy: Optional[str]) -> str:
    if policy == REMOTE:
        return REMOTE
    if policy == ONSITE:
        return ONSITE
    return HYBRID


def _override(*candidates: Optional[float]) -> Optional[float]:
    for value in candidates:
        if value is not None:
            return value
    return None


def build_scenario_row(entry: OfferEntry, context: RankingContext) -> ScenarioRow:
    """Resolve one real or simulated offer into an unranked row."""
    offer = entry.offer
    app = _application_for(entry, context.applications)

    if isinstance(entry, SimulatedOffer):
        own_location = entry.location if entry.location and entry.location.strip() else None
        location = own_location or (app.location if app is not None and app.has_location else None)
        work_mode = offer.work_mode or (
            _work_mode_from_policy(app.rto_policy) if app is not None else HYBRID
        )
        rto_days = _override(offer.rto_days_per_week, app.rto_days_per_week if app else None)
        tax_overrides = (offer.tax_base_rate, offer.tax_bonus_rate, offer.tax_equity_rate)
        rent_override = offer.monthly_rent
        commute = annualize_amount(offer.commute_cost_value, offer.commute_cost_frequency)
        food = annualize_amount(offer.free_food_perk_value, offer.free_food_perk_frequency)
        name = app.display_name if app is not None else entry.custom_name
    else:
        location = app.location if app is not None and app.has_location else None
        work_mode = _work_mode_from_policy(app.rto_policy if app else None)
        rto_days = _override(app.rto_days_per_week if app else None, offer.rto_days_per_week)
        tax_overrides = (
            _override(app.tax_base_rate if app else None, offer.tax_base_rate),
            _override(app.tax_bonus_rate if app else None, offer.tax_bonus_rate),
            _override(app.tax_equity_rate if app else None, offer.tax_equity_rate),
        )
        rent_override = _override(app.monthly_rent_override if app else None, offer.monthly_rent)
        if app is not None:
            commute = annualize_amount(app.commute_cost_value, app.commute_cost_frequency)
            food = annualize_amount(app.free_food_perk_value, app.free_food_perk_frequency)
        else:
            commute = annualize_amount(offer.commute_cost_value, offer.commute_cost_frequency)
            food = annualize_amount(offer.free_food_perk_value, offer.free_food_perk_frequency)
        if app is not None:
            name = app.display_name
        elif entry.application_id is not None:
            name = f"App #{entry.application_id}"
        else:
            name = f"Offer #{entry.offer_id}"

    location = location or context.reference_location
    if rto_days is None:
        rto_days = DEFAULT_RTO_DAYS[work_mode]

    col_index = context.col_index(location)
    if rent_override is not None:
        monthly_rent = max(0.0, rent_override)
    else:
        monthly_rent = max(0.0, context.estimated_rent(col_index))

    ref = context.reference_data
    estimated = estimate_tax_rates(
        offer.gross_income,
        context.marital_status,
        location,
        ref.state_tax_rate,
        ref.state_name_to_abbr,
    )
    rates = TaxRates(
        base=_override(tax_overrides[0], estimated.base),
        bonus=_override(tax_overrides[1], estimated.bonus),
        equity=_override(tax_overrides[2], estimated.equity),
    )

    value = calculate_scenario_value(
        ScenarioInputs(
            base_salary=offer.base_salary,
            bonus=offer.bonus,
            sign_on=offer.sign_on,
            benefits=offer.annual_benefits,
            equity=offer.annual_equity,
            work_mode=work_mode,
            rto_days_per_week=rto_days,
            commute_annual_cost=commute,
            free_food_annual_value=food,
            free_food=offer.free_food,
            wellness_stipend=offer.wellness_stipend,
            wlb_score=offer.wlb_score,
            base_tax_rate=rates.base,
            bonus_tax_rate=rates.bonus,
            equity_tax_rate=rates.equity,
            equity_realization_percent=(
                100.0 if offer.equity_realization_percent is None else offer.equity_realization_percent
            ),
            cost_of_living_index=col_index,
            monthly_rent=monthly_rent,
        )
    )

    return ScenarioRow(
        kind=entry.kind,
        key=entry.key,
        name=name,
        is_current=entry.is_current,
        location=location,
        col_index=col_index,
        monthly_rent=monthly_rent,
        work_mode=work_mode,
        rto_days_per_week=rto_days,
        pto_days=offer.pto_days,
        holiday_days=offer.holiday_days,
        pto_holiday_days=offer.pto_days + offer.holiday_days,
        total_comp=offer.total_comp,
        adjusted_value=value.adjusted_value,
        lifestyle_adjustment=value.lifestyle_adjustment,
        after_tax_base=value.breakdown.taxed_base,
        after_tax_bonus=value.breakdown.taxed_bonus,
        after_tax_equity=value.breakdown.taxed_equity,
        used_base_tax_rate=rates.base,
        used_bonus_tax_rate=rates.bonus,
        used_equity_tax_rate=rates.equity,
    )


def apply_deltas(rows: Sequence[ScenarioRow]) -> List[ScenarioRow]:
    """Compare every row with the first current row.

    Without a current row the baseline is implicitly zero, so deltas equal the
    rows' own values.
    """
    current = next((row for row in rows if row.is_current), None)

    def baseline(attr: str) -> float:
        return getattr(current, attr) if current is not None else 0.0

    out: List[ScenarioRow] = []
    for row in rows:
        if row is current:
            out.append(
                replace(
                    row,
                    delta_vs_current=0.0,
                    delta_total_comp=0.0,
                    delta_base_after_tax=0.0,
                    delta_bonus_after_tax=0.0,
                    delta_equity_after_tax=0.0,
                    delta_pto_holiday_days=0.0,
                )
            )
            continue
        out.append(
            replace(
                row,
                # A second row flagged current is not the baseline.
                is_current=False,
                delta_vs_current=row.adjusted_value - baseline("adjusted_value"),
                delta_total_comp=row.total_comp - baseline("total_comp"),
                delta_base_after_tax=row.after_tax_base - baseline("after_tax_base"),
                delta_bonus_after_tax=row.after_tax_bonus - baseline("after_tax_bonus"),
                delta_equity_after_tax=row.after_tax_equity - baseline("after_tax_equity"),
                delta_pto_holiday_days=row.pto_holiday_days - baseline("pto_holiday_days"),
            )
        )
    return out


def rank_scenarios(entries: Iterable[OfferEntry], context: RankingContext) -> List[ScenarioRow]:
    """Build, compare and order rows, best adjusted value first.

    ``sorted`` is stable, so ties keep their input order (real offers before
    simulated ones).
    """
    rows = [build_scenario_row(entry, context) for entry in entries]
    return sorted(apply_deltas(rows), key=lambda row: row.adjusted_value, reverse=True)


def summarize_real_rows(rows: Iterable[ScenarioRow]) -> Dict[Union[int, str], AdjustedSummary]:
    summary: Dict[Union[int, str], AdjustedSummary] = {}
    for row in rows:
        if row.kind != RealOffer.kind:
            continue
        summary[row.key] = AdjustedSummary(
            adjusted_value=row.adjusted_value,
            adjusted_diff=row.delta_vs_current,
            after_tax_base=row.after_tax_base,
            after_tax_bonus=row.after_tax_bonus,
            after_tax_equity=row.after_tax_equity,
            used_base_tax_rate=row.used_base_tax_rate,
            used_bonus_tax_rate=row.used_bonus_tax_rate,
            used_equity_tax_rate=row.used_equity_tax_rate,
            monthly_rent=row.monthly_rent,
        )
    return summary
