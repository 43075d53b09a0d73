"""
Offer comparison toolkit.

This package turns job offers that differ in location, tax exposure, work
mode, benefits and equity structure into one comparable adjusted value, ranks
them against the current offer, and reports per-category deltas.
"""

from .model import annualize_benefits, calculate_scenario_value
from .ranking import RankingContext, rank_scenarios
from .reference import estimate_col_index
from .schemas import (
    AdjustedSummary,
    ApplicationRecord,
    BenefitItem,
    CompensationOffer,
    RealOffer,
    ReferenceData,
    ScenarioInputs,
    ScenarioRow,
    SimulatedOffer,
)
from .session import ComparisonSession
from .stable import stable_diff
from .tax import estimate_effective_tax_rate, estimate_tax_rates

__all__ = [
    "AdjustedSummary",
    "ApplicationRecord",
    "BenefitItem",
    "CompensationOffer",
    "ComparisonSession",
    "RankingContext",
    "RealOffer",
    "ReferenceData",
    "ScenarioInputs",
    "ScenarioRow",
    "SimulatedOffer",
    "annualize_benefits",
    "calculate_scenario_value",
    "estimate_col_index",
    "estimate_effective_tax_rate",
    "estimate_tax_rates",
    "rank_scenarios",
    "stable_diff",
]
