"""
Plain-text renderings of engine output for the command line.

All currency and percentage formatting lives here, outside the core.
"""

from __future__ import annotations

from core import LEGAL_STATUS_PROFILES, IncentiveResult, PropertyState
from utils.formatting import format_mad, format_percent


def render_incentive(result: IncentiveResult) -> str:
    """Render a charter incentive quote."""
    lines = [
        f"2026 Charter Assessment - Category {result.charter_category.value}",
        f"  Status:              {'Eligible' if result.eligible else 'Not Eligible'}",
        f"  Acquisition price:   {format_mad(result.acquisition_price_mad)}",
        f"  Base rate:           {format_percent(result.base_cashback_pct)}",
        f"  Renovation bonus:    {format_percent(result.renovation_bonus_pct)}",
        f"  Total cashback:      {format_percent(result.total_cashback_pct)}",
        f"  Eligible investment: {format_mad(result.eligible_investment_mad)}",
        f"  Estimated cashback:  {format_mad(result.estimated_cashback_mad)}",
        f"  Reference:           {result.decree_reference}",
    ]
    return "\n".join(lines)


def render_property(state: PropertyState) -> str:
    """Render a materialised property state."""
    profile = LEGAL_STATUS_PROFILES[state.legal_status]
    identifier = state.legal_identifier or "Unregistered Property"
    score = state.legal_confidence_score
    lines = [
        f"{identifier} ({state.property_id})",
        f"  Legal status:        {profile.label} [{profile.short_label}]",
        f"  Legal confidence:    {format_percent(score, 0) if score is not None else '—'}",
        f"  Charter category:    {state.charter_category.value if state.charter_category else '—'}",
        f"  Charter eligible:    {'yes' if state.charter_eligible else 'no'}",
        f"  Acquisition price:   {format_mad(state.acquisition_price_mad)}",
        f"  Estimated cashback:  {format_mad(state.estimated_cashback_mad)}",
        f"  Estimated value:     {format_mad(state.estimated_value_mad)}",
        f"  Photos:              {state.photo_count}",
        f"  Active:              {'yes' if state.is_active else 'no'}",
        f"  Last changed by:     {state.updated_by or '—'}",
        f"  Events replayed:     {state.event_count}",
    ]
    return "\n".join(lines)
