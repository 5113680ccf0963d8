"""
Property Routes - JSON API over the Incentive & Audit Engine

Thin HTTP surface: request models are parsed with pydantic, handed to the
core, and the core's plain data is returned as JSON. No formatting happens
here; currency and locale are the client's concern.
"""

from __future__ import annotations

import base64
import binascii
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from core import (
    CharterCategory,
    DeviceMetadata,
    FieldObservation,
    GPSFix,
    InvalidInputError,
    LEAST_VERIFIED_STATUS,
    PhotoCapture,
    PropertyRegistry,
    compute_incentive,
    get_property_registry,
    summarize_portfolio,
)
from core.classification import coerce_legal_status
from core.ledger import to_naive_utc


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(prefix="/api", tags=["properties"])


# =============================================================================
# Request Models
# =============================================================================


class IncentiveRequest(BaseModel):
    """Charter incentive quote request."""

    acquisition_price_mad: float
    charter_category: CharterCategory
    is_renovation: bool = False


class GPSFixModel(BaseModel):
    latitude: float
    longitude: float
    accuracy_m: float
    fix_timestamp: datetime
    altitude_m: Optional[float] = None

    def to_fix(self) -> GPSFix:
        return GPSFix(
            latitude=self.latitude,
            longitude=self.longitude,
            accuracy_m=self.accuracy_m,
            fix_timestamp=to_naive_utc(self.fix_timestamp),
            altitude_m=self.altitude_m,
        )


class PhotoModel(BaseModel):
    photo_id: str
    content_base64: str
    captured_at: datetime

    def to_photo(self) -> PhotoCapture:
        try:
            content = base64.b64decode(self.content_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidInputError(f"Photo {self.photo_id} is not valid base64") from e
        return PhotoCapture(
            photo_id=self.photo_id,
            content=content,
            captured_at=to_naive_utc(self.captured_at),
        )


class DeviceModel(BaseModel):
    device_id: str
    platform: str = ""
    app_version: str = ""


class ObservationRequest(BaseModel):
    """Field observation submitted by a scout device."""

    property_id: Optional[str] = None
    gps: Optional[GPSFixModel] = None
    photos: list[PhotoModel] = Field(default_factory=list)
    proposed_legal_status: str = LEAST_VERIFIED_STATUS.value
    legal_reference: Optional[str] = None
    notes: str = ""
    device: Optional[DeviceModel] = None
    captured_by: Optional[str] = None
    captured_at: Optional[datetime] = None

    def to_observation(self) -> FieldObservation:
        kwargs: dict[str, Any] = {}
        if self.captured_at is not None:
            kwargs["captured_at"] = to_naive_utc(self.captured_at)
        return FieldObservation(
            gps=self.gps.to_fix() if self.gps else None,
            photos=tuple(p.to_photo() for p in self.photos),
            proposed_legal_status=coerce_legal_status(self.proposed_legal_status),
            legal_reference=self.legal_reference,
            notes=self.notes,
            device=DeviceMetadata(**self.device.model_dump()) if self.device else None,
            captured_by=self.captured_by,
            **kwargs,
        )


class EventRequest(BaseModel):
    """A single fact recorded against a property."""

    event_type: str
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[datetime] = None
    actor: Optional[str] = None


# =============================================================================
# Incentives
# =============================================================================


@router.post("/incentives")
def quote_incentive(payload: IncentiveRequest) -> dict:
    """Compute a charter incentive quote without touching any property."""
    result = compute_incentive(
        payload.acquisition_price_mad,
        payload.charter_category,
        payload.is_renovation,
    )
    return result.to_dict()


# =============================================================================
# Properties
# =============================================================================


@router.post("/observations", status_code=201)
def commit_observation(
    payload: ObservationRequest,
    registry: PropertyRegistry = Depends(get_property_registry),
) -> dict:
    """Commit a field observation to a new or existing property."""
    state, events = registry.commit(payload.to_observation(), property_id=payload.property_id)
    return {
        "property": state.to_dict(),
        "events": [event.to_dict() for event in events],
    }


@router.get("/properties")
def list_properties(
    include_inactive: bool = Query(True),
    registry: PropertyRegistry = Depends(get_property_registry),
) -> list[dict]:
    return [s.to_dict() for s in registry.list_states(include_inactive=include_inactive)]


@router.get("/properties/{property_id}")
def get_property(
    property_id: str,
    registry: PropertyRegistry = Depends(get_property_registry),
) -> dict:
    return registry.get(property_id).snapshot().to_dict()


@router.get("/properties/{property_id}/events")
def list_events(
    property_id: str,
    since: Optional[datetime] = Query(None, description="Only events at or after this time"),
    registry: PropertyRegistry = Depends(get_property_registry),
) -> list[dict]:
    ledger = registry.get(property_id).ledger
    events = ledger.events if since is None else ledger.events_since(to_naive_utc(since))
    return [event.to_dict() for event in events]


@router.get("/properties/{property_id}/history")
def property_history(
    property_id: str,
    as_of: datetime = Query(..., description="Replay events up to this time"),
    registry: PropertyRegistry = Depends(get_property_registry),
) -> dict:
    return registry.get(property_id).history(to_naive_utc(as_of)).to_dict()


@router.post("/properties/{property_id}/events", status_code=201)
def record_event(
    property_id: str,
    payload: EventRequest,
    registry: PropertyRegistry = Depends(get_property_registry),
) -> dict:
    state, event = registry.get(property_id).record(
        payload.event_type,
        payload.data,
        timestamp=to_naive_utc(payload.timestamp),
        actor=payload.actor,
    )
    return {"property": state.to_dict(), "event": event.to_dict()}


@router.get("/portfolio/summary")
def portfolio_summary(
    registry: PropertyRegistry = Depends(get_property_registry),
) -> dict:
    return summarize_portfolio(registry.list_states()).to_dict()
