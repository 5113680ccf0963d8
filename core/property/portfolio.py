"""
Portfolio Summary

Aggregate figures across properties for the dashboard: counts by legal
status and charter category, average legal confidence and the total
cashback the portfolio could claim.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from core.classification import CharterCategory, LegalStatus
from core.ledger import PropertyState


@dataclass(frozen=True)
class PortfolioSummary:
    """Dashboard totals over active properties."""

    total_properties: int
    total_value_mad: int
    by_legal_status: dict[LegalStatus, int] = field(default_factory=dict)
    by_charter_category: dict[CharterCategory, int] = field(default_factory=dict)
    average_legal_confidence: Optional[float] = None
    total_potential_cashback_mad: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_properties": self.total_properties,
            "total_value_mad": self.total_value_mad,
            "by_legal_status": {s.value: n for s, n in self.by_legal_status.items()},
            "by_charter_category": {c.value: n for c, n in self.by_charter_category.items()},
            "average_legal_confidence": self.average_legal_confidence,
            "total_potential_cashback_mad": self.total_potential_cashback_mad,
        }


def summarize_portfolio(states: Iterable[PropertyState]) -> PortfolioSummary:
    """
    Summarise a set of property states.

    Inactive properties are excluded. Value uses the estimated value when
    known, the acquisition price otherwise.
    """
    active = [s for s in states if s.is_active]

    by_status = {status: 0 for status in LegalStatus}
    by_category = {category: 0 for category in CharterCategory}
    scores = []
    total_value = 0
    total_cashback = 0

    for state in active:
        by_status[state.legal_status] += 1
        if state.charter_category is not None:
            by_category[state.charter_category] += 1
        if state.legal_confidence_score is not None:
            scores.append(state.legal_confidence_score)
        value = state.estimated_value_mad
        if value is None:
            value = state.acquisition_price_mad
        total_value += round(value or 0)
        total_cashback += state.estimated_cashback_mad or 0

    average = round(sum(scores) / len(scores), 1) if scores else None

    return PortfolioSummary(
        total_properties=len(active),
        total_value_mad=total_value,
        by_legal_status=by_status,
        by_charter_category=by_category,
        average_legal_confidence=average,
        total_potential_cashback_mad=total_cashback,
    )
