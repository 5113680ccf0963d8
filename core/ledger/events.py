"""
Audit Events - Immutable Facts About a Property

Each event asserts one fact (a GPS capture, a legal status change, a price)
together with when it was asserted and by whom. Payloads are validated and
normalised at creation so that every stored event can be folded. Stored
payloads are frozen: nested dicts become read-only mappings and lists
become tuples.
"""

from __future__ import annotations

import copy
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, Final, Mapping, Optional, Union

from core.classification import (
    AuditEventType,
    GPSFix,
    coerce_charter_category,
    coerce_legal_status,
)
from core.errors import InvalidInputError


# =============================================================================
# Timestamps & Frozen Payloads
# =============================================================================


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Ledger timestamps are naive UTC; convert aware datetimes."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    """Mutable deep copy of a frozen payload."""
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_thaw(item) for item in value]
    return copy.deepcopy(value)


# =============================================================================
# Payload Validation
# =============================================================================


def _require_number(data: Mapping[str, Any], key: str, minimum: Optional[float] = None):
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidInputError(f"{key} must be a finite number: {value!r}")
    if minimum is not None and value < minimum:
        raise InvalidInputError(f"{key} cannot be less than {minimum}")
    return value


def _optional_number(data: Mapping[str, Any], key: str, minimum: Optional[float] = None):
    if data.get(key) is None:
        return None
    return _require_number(data, key, minimum)


def _optional_text(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInputError(f"{key} must be a string: {value!r}")
    value = value.strip()
    return value or None


def _gps_captured(data: Mapping[str, Any]) -> dict[str, Any]:
    gps = data.get("gps")
    if not isinstance(gps, Mapping):
        raise InvalidInputError("gps_captured requires a gps fix")
    # Round-trip through GPSFix for range checks
    fix = GPSFix.from_dict(gps)
    photos = data.get("photos") or []
    if not isinstance(photos, (list, tuple)):
        raise InvalidInputError("photos must be a list of photo metadata")
    return {
        "gps": fix.to_dict(),
        "photos": _thaw(photos),
        "notes": data.get("notes") or "",
        "device": _thaw(data.get("device")),
    }


def _status_changed(data: Mapping[str, Any]) -> dict[str, Any]:
    status = coerce_legal_status(data.get("legal_status"))
    payload = {
        "legal_status": status.value,
        "identifier": _optional_text(data, "identifier"),
        "source": _optional_text(data, "source"),
        "decree_number": _optional_text(data, "decree_number"),
    }
    score = _optional_number(data, "confidence_score", 0)
    if score is not None:
        if score > 100:
            raise InvalidInputError("confidence_score cannot exceed 100")
        payload["confidence_score"] = score
    return payload


def _document_verified(data: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "document_type": _optional_text(data, "document_type"),
        "source_reference": _optional_text(data, "source_reference"),
        "confidence_delta": _require_number(data, "confidence_delta"),
    }


def _price_updated(data: Mapping[str, Any]) -> dict[str, Any]:
    return {"acquisition_price_mad": _require_number(data, "acquisition_price_mad", 0)}


def _category_assigned(data: Mapping[str, Any]) -> dict[str, Any]:
    category = coerce_charter_category(data.get("charter_category"))
    payload = {"charter_category": category.value}
    score = _optional_number(data, "charter_score", 0)
    if score is not None:
        payload["charter_score"] = score
    return payload


def _renovation_declared(data: Mapping[str, Any]) -> dict[str, Any]:
    flag = data.get("is_renovation")
    if not isinstance(flag, bool):
        raise InvalidInputError(f"is_renovation must be a boolean: {flag!r}")
    return {"is_renovation": flag}


def _valuation_updated(data: Mapping[str, Any]) -> dict[str, Any]:
    payload = {
        "estimated_value_mad": _optional_number(data, "estimated_value_mad", 0),
        "surface_sqm": _optional_number(data, "surface_sqm", 0),
    }
    if payload["estimated_value_mad"] is None and payload["surface_sqm"] is None:
        raise InvalidInputError("valuation_updated requires estimated_value_mad or surface_sqm")
    return payload


def _property_deactivated(data: Mapping[str, Any]) -> dict[str, Any]:
    return {"reason": _optional_text(data, "reason")}


PAYLOAD_VALIDATORS: Final[dict[AuditEventType, Callable[[Mapping[str, Any]], dict[str, Any]]]] = {
    AuditEventType.GPS_CAPTURED: _gps_captured,
    AuditEventType.STATUS_CHANGED: _status_changed,
    AuditEventType.DOCUMENT_VERIFIED: _document_verified,
    AuditEventType.PRICE_UPDATED: _price_updated,
    AuditEventType.CATEGORY_ASSIGNED: _category_assigned,
    AuditEventType.RENOVATION_DECLARED: _renovation_declared,
    AuditEventType.VALUATION_UPDATED: _valuation_updated,
    AuditEventType.PROPERTY_DEACTIVATED: _property_deactivated,
}


def coerce_event_type(value: Union[AuditEventType, str]) -> AuditEventType:
    """Return an AuditEventType from an enum member or its string value."""
    if isinstance(value, AuditEventType):
        return value
    for member in AuditEventType:
        if member.value == value:
            return member
    raise InvalidInputError(f"Unknown event_type: {value!r}")


# =============================================================================
# Audit Event
# =============================================================================


@dataclass(frozen=True)
class AuditEvent:
    """
    Immutable audit record.

    Invariants:
    - Once appended to a ledger, never mutated or removed
    - `data` is a frozen copy of the caller's payload (read-only
      mappings and tuples); `to_dict` hands out a mutable copy
    - `timestamp` is naive UTC; aware datetimes are converted
    """

    event_type: AuditEventType
    timestamp: datetime
    data: Mapping[str, Any] = field(default_factory=dict)
    actor: Optional[str] = None
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if not isinstance(self.timestamp, datetime):
            raise InvalidInputError(f"timestamp must be a datetime: {self.timestamp!r}")
        object.__setattr__(self, "timestamp", to_naive_utc(self.timestamp))
        object.__setattr__(self, "data", _freeze(self.data))

    @classmethod
    def create(
        cls,
        event_type: Union[AuditEventType, str],
        data: Optional[Mapping[str, Any]] = None,
        timestamp: Optional[datetime] = None,
        actor: Optional[str] = None,
    ) -> "AuditEvent":
        """
        Create a validated event.

        Args:
            event_type: Kind of fact being asserted
            data: Event payload, validated against the event type
            timestamp: When the fact was asserted (default: now, UTC).
                Aware datetimes are converted to naive UTC.
            actor: Agent, user or system asserting the fact

        Returns:
            New immutable AuditEvent

        Raises:
            InvalidInputError: If the payload does not fit the event type
        """
        kind = coerce_event_type(event_type)
        if timestamp is not None and not isinstance(timestamp, datetime):
            raise InvalidInputError(f"timestamp must be a datetime: {timestamp!r}")
        payload = PAYLOAD_VALIDATORS[kind](_thaw(data or {}))
        return cls(
            event_type=kind,
            timestamp=timestamp or datetime.utcnow(),
            data=payload,
            actor=actor,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary for serialisation."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "data": _thaw(self.data),
            "actor": self.actor,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AuditEvent":
        """Create AuditEvent from dictionary (lossless inverse of to_dict)."""
        kind = coerce_event_type(data["event_type"])
        return cls(
            event_type=kind,
            timestamp=datetime.fromisoformat(data["timestamp"]),
            data=PAYLOAD_VALIDATORS[kind](data.get("data") or {}),
            actor=data.get("actor"),
            event_id=data.get("event_id") or str(uuid.uuid4()),
        )
