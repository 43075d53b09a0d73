"""Suppress "changed" signals caused by sub-unit floating point drift.

When the published summaries feed back into the inputs that produced them,
republishing a numerically identical map on every pass never settles. The
comparison here treats two maps as equal when every compared field agrees
after rounding to whole units.
"""

from __future__ import annotations

from typing import Hashable, Mapping, Optional, Tuple, TypeVar

from .schemas import AdjustedSummary, round_half_up

COMPARED_FIELDS: Tuple[str, ...] = (
    "adjusted_value",
    "adjusted_diff",
    "after_tax_base",
    "after_tax_bonus",
    "after_tax_equity",
    "used_base_tax_rate",
    "used_bonus_tax_rate",
    "used_equity_tax_rate",
    "monthly_rent",
)

SummaryMap = TypeVar("SummaryMap", bound=Mapping[Hashable, AdjustedSummary])


def _same_rounded(left: AdjustedSummary, right: AdjustedSummary) -> bool:
    return all(
        round_half_up(getattr(left, name)) == round_half_up(getattr(right, name))
        for name in COMPARED_FIELDS
    )


def stable_diff(previous: Optional[SummaryMap], current: SummaryMap) -> SummaryMap:
    """Return ``previous`` itself when ``current`` only differs by rounding noise."""
    if previous is None or len(previous) != len(current):
        return current
    for key, row in current.items():
        before = previous.get(key)
        if before is None or not _same_rounded(before, row):
            return current
    return previous


class StableOutput:
    """Keeps the last published map and only replaces it on a real change."""

    def __init__(self) -> None:
        self.value: Optional[Mapping[Hashable, AdjustedSummary]] = None

    def publish(self, current: Mapping[Hashable, AdjustedSummary]) -> bool:
        chosen = stable_diff(self.value, current)
        changed = chosen is not self.value
        self.value = chosen
        return changed
