"""
Property State - Materialised View of an Audit Ledger

PropertyState is the current classification and financial picture of a
property. It is never edited directly: it is the left-fold of the
property's audit events through `apply_event`.

Fold rules:
- status_changed overwrites legal_status and keeps only the identifier
  that belongs to the new status
- price_updated, category_assigned and renovation_declared recompute the
  charter incentive
- price_updated and valuation_updated recompute price per m2, from the
  estimated value when one is known
- document_verified moves the confidence score by the supplied delta
- every event stamps updated_at/updated_by; the first also sets created_*
- property_deactivated marks the property inactive (never deleted)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from core.charter import compute_incentive
from core.classification import (
    AuditEventType,
    CharterCategory,
    GPSFix,
    LEAST_VERIFIED_STATUS,
    LEGAL_IDENTIFIER_FIELDS,
    LEGAL_STATUS_PROFILES,
    LegalStatus,
)
from core.ledger.events import AuditEvent


Number = Union[int, float]

MIN_CONFIDENCE_SCORE = 0
MAX_CONFIDENCE_SCORE = 100


# =============================================================================
# Property State
# =============================================================================


@dataclass(frozen=True)
class PropertyState:
    """
    Immutable snapshot of a property at a point in its history.

    Invariant: at most one of title_number, requisition_number and
    melkia_reference is set, and it is the one matching legal_status.
    """

    # === IDENTITY ===
    property_id: str

    # === LEGAL ===
    legal_status: LegalStatus = LEAST_VERIFIED_STATUS
    title_number: Optional[str] = None
    requisition_number: Optional[str] = None
    melkia_reference: Optional[str] = None
    legal_confidence_score: Optional[Number] = None

    # === CHARTER INPUTS ===
    charter_category: Optional[CharterCategory] = None
    charter_score: Optional[Number] = None
    acquisition_price_mad: Optional[Number] = None
    is_renovation: bool = False

    # === CHARTER (derived) ===
    charter_eligible: bool = False
    estimated_cashback_pct: Optional[Number] = None
    estimated_cashback_mad: Optional[int] = None
    eligible_investment_mad: Optional[Number] = None
    decree_reference: Optional[str] = None

    # === VALUATION ===
    estimated_value_mad: Optional[Number] = None
    surface_sqm: Optional[Number] = None
    price_per_sqm_mad: Optional[int] = None

    # === FIELD CAPTURE ===
    gps: Optional[GPSFix] = None
    photo_count: int = 0
    notes: str = ""

    # === LIFECYCLE ===
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    event_count: int = 0

    @property
    def legal_identifier(self) -> Optional[str]:
        """Identifier matching the current legal status, if recorded."""
        return getattr(self, LEGAL_STATUS_PROFILES[self.legal_status].identifier_field)

    def to_dict(self) -> dict[str, Any]:
        """Convert state to dictionary for serialisation."""
        return {
            "property_id": self.property_id,
            "legal_status": self.legal_status.value,
            "title_number": self.title_number,
            "requisition_number": self.requisition_number,
            "melkia_reference": self.melkia_reference,
            "legal_confidence_score": self.legal_confidence_score,
            "charter_category": self.charter_category.value if self.charter_category else None,
            "charter_score": self.charter_score,
            "acquisition_price_mad": self.acquisition_price_mad,
            "is_renovation": self.is_renovation,
            "charter_eligible": self.charter_eligible,
            "estimated_cashback_pct": self.estimated_cashback_pct,
            "estimated_cashback_mad": self.estimated_cashback_mad,
            "eligible_investment_mad": self.eligible_investment_mad,
            "decree_reference": self.decree_reference,
            "estimated_value_mad": self.estimated_value_mad,
            "surface_sqm": self.surface_sqm,
            "price_per_sqm_mad": self.price_per_sqm_mad,
            "gps": self.gps.to_dict() if self.gps else None,
            "photo_count": self.photo_count,
            "notes": self.notes,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "created_by": self.created_by,
            "updated_by": self.updated_by,
            "event_count": self.event_count,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PropertyState":
        """Create PropertyState from dictionary."""
        return cls(
            property_id=data["property_id"],
            legal_status=LegalStatus(data["legal_status"]),
            title_number=data.get("title_number"),
            requisition_number=data.get("requisition_number"),
            melkia_reference=data.get("melkia_reference"),
            legal_confidence_score=data.get("legal_confidence_score"),
            charter_category=(
                CharterCategory(data["charter_category"]) if data.get("charter_category") else None
            ),
            charter_score=data.get("charter_score"),
            acquisition_price_mad=data.get("acquisition_price_mad"),
            is_renovation=data.get("is_renovation", False),
            charter_eligible=data.get("charter_eligible", False),
            estimated_cashback_pct=data.get("estimated_cashback_pct"),
            estimated_cashback_mad=data.get("estimated_cashback_mad"),
            eligible_investment_mad=data.get("eligible_investment_mad"),
            decree_reference=data.get("decree_reference"),
            estimated_value_mad=data.get("estimated_value_mad"),
            surface_sqm=data.get("surface_sqm"),
            price_per_sqm_mad=data.get("price_per_sqm_mad"),
            gps=GPSFix.from_dict(data["gps"]) if data.get("gps") else None,
            photo_count=data.get("photo_count", 0),
            notes=data.get("notes", ""),
            is_active=data.get("is_active", True),
            created_at=(
                datetime.fromisoformat(data["created_at"]) if data.get("created_at") else None
            ),
            updated_at=(
                datetime.fromisoformat(data["updated_at"]) if data.get("updated_at") else None
            ),
            created_by=data.get("created_by"),
            updated_by=data.get("updated_by"),
            event_count=data.get("event_count", 0),
        )


# =============================================================================
# Derived Fields
# =============================================================================


def _with_incentive(state: PropertyState) -> PropertyState:
    """Recompute charter fields from category, price and renovation flag."""
    if state.charter_category is None or state.acquisition_price_mad is None:
        return replace(
            state,
            charter_eligible=False,
            estimated_cashback_pct=None,
            estimated_cashback_mad=None,
            eligible_investment_mad=None,
            decree_reference=None,
        )

    result = compute_incentive(
        state.acquisition_price_mad, state.charter_category, state.is_renovation
    )
    return replace(
        state,
        charter_eligible=result.eligible,
        estimated_cashback_pct=result.total_cashback_pct if result.eligible else None,
        estimated_cashback_mad=result.estimated_cashback_mad if result.eligible else None,
        eligible_investment_mad=result.eligible_investment_mad,
        decree_reference=result.decree_reference,
    )


def _with_price_per_sqm(state: PropertyState) -> PropertyState:
    """Value per m2 from the estimate, or the acquisition price without one."""
    value = state.estimated_value_mad
    if value is None:
        value = state.acquisition_price_mad
    if value is None or not state.surface_sqm:
        return replace(state, price_per_sqm_mad=None)
    per_sqm = Decimal(str(value)) / Decimal(str(state.surface_sqm))
    return replace(
        state, price_per_sqm_mad=int(per_sqm.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    )


def _clamp_score(value: Number) -> Number:
    return max(MIN_CONFIDENCE_SCORE, min(MAX_CONFIDENCE_SCORE, value))


# =============================================================================
# Fold Rules
# =============================================================================


def _apply_gps_captured(state: PropertyState, data: Mapping[str, Any]) -> PropertyState:
    return replace(
        state,
        gps=GPSFix.from_dict(data["gps"]),
        photo_count=state.photo_count + len(data.get("photos") or []),
        notes=data.get("notes") or state.notes,
    )


def _apply_status_changed(state: PropertyState, data: Mapping[str, Any]) -> PropertyState:
    status = LegalStatus(data["legal_status"])
    identifier_field = LEGAL_STATUS_PROFILES[status].identifier_field

    # Mutual exclusivity: only the new status's identifier survives
    identifiers: dict[str, Optional[str]] = {name: None for name in LEGAL_IDENTIFIER_FIELDS}
    identifiers[identifier_field] = data.get("identifier")

    changes: dict[str, Any] = {"legal_status": status, **identifiers}
    if data.get("confidence_score") is not None:
        changes["legal_confidence_score"] = _clamp_score(data["confidence_score"])
    return replace(state, **changes)


def _apply_document_verified(state: PropertyState, data: Mapping[str, Any]) -> PropertyState:
    current = state.legal_confidence_score or 0
    return replace(
        state, legal_confidence_score=_clamp_score(current + data["confidence_delta"])
    )


def _apply_price_updated(state: PropertyState, data: Mapping[str, Any]) -> PropertyState:
    state = replace(state, acquisition_price_mad=data["acquisition_price_mad"])
    return _with_price_per_sqm(_with_incentive(state))


def _apply_category_assigned(state: PropertyState, data: Mapping[str, Any]) -> PropertyState:
    state = replace(
        state,
        charter_category=CharterCategory(data["charter_category"]),
        charter_score=data.get("charter_score", state.charter_score),
    )
    return _with_incentive(state)


def _apply_renovation_declared(state: PropertyState, data: Mapping[str, Any]) -> PropertyState:
    return _with_incentive(replace(state, is_renovation=data["is_renovation"]))


def _apply_valuation_updated(state: PropertyState, data: Mapping[str, Any]) -> PropertyState:
    changes = {
        key: data[key]
        for key in ("estimated_value_mad", "surface_sqm")
        if data.get(key) is not None
    }
    return _with_price_per_sqm(replace(state, **changes))


def _apply_property_deactivated(state: PropertyState, data: Mapping[str, Any]) -> PropertyState:
    return replace(state, is_active=False)


FOLD_RULES: dict[AuditEventType, Callable[[PropertyState, Mapping[str, Any]], PropertyState]] = {
    AuditEventType.GPS_CAPTURED: _apply_gps_captured,
    AuditEventType.STATUS_CHANGED: _apply_status_changed,
    AuditEventType.DOCUMENT_VERIFIED: _apply_document_verified,
    AuditEventType.PRICE_UPDATED: _apply_price_updated,
    AuditEventType.CATEGORY_ASSIGNED: _apply_category_assigned,
    AuditEventType.RENOVATION_DECLARED: _apply_renovation_declared,
    AuditEventType.VALUATION_UPDATED: _apply_valuation_updated,
    AuditEventType.PROPERTY_DEACTIVATED: _apply_property_deactivated,
}


def initial_state(property_id: str) -> PropertyState:
    """State of a property before any event: Melkia, nothing known."""
    return PropertyState(property_id=property_id)


def apply_event(state: PropertyState, event: AuditEvent) -> PropertyState:
    """
    Fold one event into a state.

    Args:
        state: State before the event
        event: Event to apply

    Returns:
        New state; the input state is left untouched
    """
    first_event = state.event_count == 0
    state = FOLD_RULES[event.event_type](state, event.data)
    return replace(
        state,
        created_at=event.timestamp if first_event else state.created_at,
        updated_at=event.timestamp,
        created_by=event.actor if first_event else state.created_by,
        updated_by=event.actor,
        event_count=state.event_count + 1,
    )


def fold_events(
    events: Iterable[AuditEvent],
    property_id: str,
    start: Optional[PropertyState] = None,
) -> PropertyState:
    """Left-fold events onto `start` (default: the initial state)."""
    state = start if start is not None else initial_state(property_id)
    for event in events:
        state = apply_event(state, event)
    return state
