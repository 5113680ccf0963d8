"""
Penguin Property Engine - Core Business Logic

Property Incentive & Audit Engine:
1. Classification (legal status, charter category, event vocabulary)
2. Charter Incentive Calculator (deterministic cashback offer)
3. Audit Ledger (append-only events, materialised state)
4. Property Aggregate (ledger + snapshot, per-property lock)
5. Field Capture Session (scout state machine)
"""

from .errors import (
    PropertyEngineError,
    InvalidInputError,
    OutOfOrderEventError,
    IncompleteObservationError,
    InactivePropertyError,
    SessionStateError,
    DeviceCapabilityError,
    LocationUnavailableError,
    CameraUnavailableError,
)
from .classification import (
    LegalStatus,
    LegalStatusProfile,
    LEGAL_STATUS_PROFILES,
    LEAST_VERIFIED_STATUS,
    CharterCategory,
    AuditEventType,
    GPSFix,
    PhotoCapture,
    DeviceMetadata,
    FieldObservation,
)
from .charter import (
    CharterTerms,
    CHARTER_SCHEDULE,
    IncentiveResult,
    compute_incentive,
)
from .ledger import (
    AuditEvent,
    AuditLedger,
    EventWindow,
    PropertyState,
)
from .property import (
    PropertyAggregate,
    PropertyRegistry,
    PropertyNotFoundError,
    get_property_registry,
    PortfolioSummary,
    summarize_portfolio,
)
from .capture import (
    CameraProvider,
    LocationProvider,
    CaptureState,
    FieldCaptureSession,
)

__all__ = [
    # Errors
    "PropertyEngineError",
    "InvalidInputError",
    "OutOfOrderEventError",
    "IncompleteObservationError",
    "InactivePropertyError",
    "SessionStateError",
    "DeviceCapabilityError",
    "LocationUnavailableError",
    "CameraUnavailableError",
    # Classification
    "LegalStatus",
    "LegalStatusProfile",
    "LEGAL_STATUS_PROFILES",
    "LEAST_VERIFIED_STATUS",
    "CharterCategory",
    "AuditEventType",
    "GPSFix",
    "PhotoCapture",
    "DeviceMetadata",
    "FieldObservation",
    # Charter
    "CharterTerms",
    "CHARTER_SCHEDULE",
    "IncentiveResult",
    "compute_incentive",
    # Ledger
    "AuditEvent",
    "AuditLedger",
    "EventWindow",
    "PropertyState",
    # Property
    "PropertyAggregate",
    "PropertyRegistry",
    "PropertyNotFoundError",
    "get_property_registry",
    "PortfolioSummary",
    "summarize_portfolio",
    # Capture
    "CameraProvider",
    "LocationProvider",
    "CaptureState",
    "FieldCaptureSession",
]
