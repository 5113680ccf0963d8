"""
Classification Types - Closed Vocabularies and Value Objects

Defines the legal status, charter category and audit event vocabularies,
plus the immutable value objects a field capture produces.

Enum-keyed configuration (status labels, identifier fields) is held in
explicit lookup tables keyed by the closed enums, never by free strings.
"""

from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Final, Mapping, Optional

from core.errors import InvalidInputError


# =============================================================================
# Enums
# =============================================================================


class LegalStatus(Enum):
    """
    Legal classification of a property.

    TITLED: Titre Foncier, fully registered freehold title
    IN_PROCESS: Requisition filed, registration not finalised
    MELKIA: Customary ownership without formal title
    """

    TITLED = "Titled"
    IN_PROCESS = "In-Process"
    MELKIA = "Melkia"

    @classmethod
    def from_string(cls, value: str) -> Optional["LegalStatus"]:
        """Convert string to LegalStatus, tolerant of case and separators."""
        normalised = value.lower().strip().replace("_", "").replace("-", "").replace(" ", "")
        for member in cls:
            if member.value.lower().replace("-", "") == normalised:
                return member
        return None


class CharterCategory(Enum):
    """Government-assigned investment incentive tier under the 2026 charter."""

    A = "A"
    B = "B"
    C = "C"

    @classmethod
    def from_string(cls, value: str) -> Optional["CharterCategory"]:
        """Convert string to CharterCategory, case-insensitive."""
        normalised = value.upper().strip()
        for member in cls:
            if member.value == normalised:
                return member
        return None


class AuditEventType(Enum):
    """Kinds of fact an audit event can assert about a property."""

    GPS_CAPTURED = "gps_captured"
    STATUS_CHANGED = "status_changed"
    DOCUMENT_VERIFIED = "document_verified"
    PRICE_UPDATED = "price_updated"
    CATEGORY_ASSIGNED = "category_assigned"
    RENOVATION_DECLARED = "renovation_declared"
    VALUATION_UPDATED = "valuation_updated"
    PROPERTY_DEACTIVATED = "property_deactivated"


# =============================================================================
# Legal Status Profiles
# =============================================================================


@dataclass(frozen=True)
class LegalStatusProfile:
    """Display and invariant data for one legal status."""

    label: str
    short_label: str
    description: str
    identifier_field: str
    verification_rank: int  # 0 = least verified


LEGAL_STATUS_PROFILES: Final[Mapping[LegalStatus, LegalStatusProfile]] = MappingProxyType(
    {
        LegalStatus.TITLED: LegalStatusProfile(
            label="Titled",
            short_label="TF",
            description="Full freehold title (Titre Foncier)",
            identifier_field="title_number",
            verification_rank=2,
        ),
        LegalStatus.IN_PROCESS: LegalStatusProfile(
            label="In Process",
            short_label="REQ",
            description="Title registration in progress (Requisition)",
            identifier_field="requisition_number",
            verification_rank=1,
        ),
        LegalStatus.MELKIA: LegalStatusProfile(
            label="Melkia",
            short_label="MLK",
            description="Traditional ownership - requires conversion",
            identifier_field="melkia_reference",
            verification_rank=0,
        ),
    }
)

# Identifier fields, one per status, mutually exclusive on a property
LEGAL_IDENTIFIER_FIELDS: Final[tuple[str, ...]] = tuple(
    profile.identifier_field for profile in LEGAL_STATUS_PROFILES.values()
)

LEAST_VERIFIED_STATUS: Final[LegalStatus] = min(
    LEGAL_STATUS_PROFILES, key=lambda s: LEGAL_STATUS_PROFILES[s].verification_rank
)


def coerce_legal_status(value: Any) -> LegalStatus:
    """Return a LegalStatus from an enum member or its string form."""
    if isinstance(value, LegalStatus):
        return value
    if isinstance(value, str):
        status = LegalStatus.from_string(value)
        if status is not None:
            return status
    raise InvalidInputError(f"Invalid legal_status: {value!r}")


def coerce_charter_category(value: Any) -> CharterCategory:
    """Return a CharterCategory from an enum member or its string form."""
    if isinstance(value, CharterCategory):
        return value
    if isinstance(value, str):
        category = CharterCategory.from_string(value)
        if category is not None:
            return category
    raise InvalidInputError(f"Invalid charter_category: {value!r}")


# =============================================================================
# Value Objects
# =============================================================================


@dataclass(frozen=True)
class GPSFix:
    """A single high-accuracy location fix from the device."""

    latitude: float
    longitude: float
    accuracy_m: float
    fix_timestamp: datetime
    altitude_m: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate coordinate ranges."""
        for name in ("latitude", "longitude", "accuracy_m"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise InvalidInputError(f"{name} must be a finite number")
        if not -90 <= self.latitude <= 90:
            raise InvalidInputError("latitude must be between -90 and 90")
        if not -180 <= self.longitude <= 180:
            raise InvalidInputError("longitude must be between -180 and 180")
        if self.accuracy_m < 0:
            raise InvalidInputError("accuracy_m cannot be negative")

    def to_dict(self) -> dict[str, Any]:
        """Convert fix to dictionary for serialisation."""
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy_m": self.accuracy_m,
            "fix_timestamp": self.fix_timestamp.isoformat(),
            "altitude_m": self.altitude_m,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GPSFix":
        """Create GPSFix from dictionary."""
        return cls(
            latitude=data["latitude"],
            longitude=data["longitude"],
            accuracy_m=data["accuracy_m"],
            fix_timestamp=datetime.fromisoformat(data["fix_timestamp"]),
            altitude_m=data.get("altitude_m"),
        )


@dataclass(frozen=True)
class PhotoCapture:
    """
    A captured photo blob.

    Only the metadata (id, time, size, digest) ever enters the audit ledger;
    the bytes stay with whoever stores documents.
    """

    photo_id: str
    content: bytes = field(repr=False)
    captured_at: datetime

    def __post_init__(self) -> None:
        if not self.photo_id:
            raise InvalidInputError("photo_id is required")
        if not self.content:
            raise InvalidInputError("photo content cannot be empty")

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.content).hexdigest()

    def to_metadata(self) -> dict[str, Any]:
        """Ledger-safe description of the photo."""
        return {
            "photo_id": self.photo_id,
            "captured_at": self.captured_at.isoformat(),
            "size_bytes": self.size_bytes,
            "sha256": self.sha256,
        }


@dataclass(frozen=True)
class DeviceMetadata:
    """Identifies the device an observation was captured on."""

    device_id: str
    platform: str = ""
    app_version: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "device_id": self.device_id,
            "platform": self.platform,
            "app_version": self.app_version,
        }


@dataclass(frozen=True)
class FieldObservation:
    """
    Transient result of a field capture session.

    Not persisted directly: committing it to a property translates it into
    one or more audit events stamped with `captured_at`.
    """

    gps: Optional[GPSFix]
    photos: tuple[PhotoCapture, ...] = ()
    proposed_legal_status: LegalStatus = LEAST_VERIFIED_STATUS
    legal_reference: Optional[str] = None
    notes: str = ""
    device: Optional[DeviceMetadata] = None
    captured_by: Optional[str] = None
    captured_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        # Accept lists from callers but keep the stored value immutable
        if not isinstance(self.photos, tuple):
            object.__setattr__(self, "photos", tuple(self.photos))
        if not isinstance(self.proposed_legal_status, LegalStatus):
            object.__setattr__(
                self, "proposed_legal_status", coerce_legal_status(self.proposed_legal_status)
            )

    @property
    def has_location(self) -> bool:
        return self.gps is not None
