"""
Error hierarchy for the property engine.

Every failure raised by the core derives from PropertyEngineError so that
callers at the web and CLI boundaries can map them in one place.
"""

from __future__ import annotations

from typing import Iterable, Optional


class PropertyEngineError(Exception):
    """Base exception for all property engine errors."""


class InvalidInputError(PropertyEngineError, ValueError):
    """
    Raised when calculator or value-object input is malformed.

    Local validation failure. Never retried, surfaced verbatim.
    """


class OutOfOrderEventError(PropertyEngineError):
    """Raised when an event timestamp precedes the ledger's last event."""

    def __init__(self, message: str, last_timestamp=None, event_timestamp=None):
        self.message = message
        self.last_timestamp = last_timestamp
        self.event_timestamp = event_timestamp
        super().__init__(self.message)


class IncompleteObservationError(PropertyEngineError):
    """
    Raised when an observation is committed before it is complete.

    `missing` lists the requirements that were not met, so the capture UI
    can point the agent at them.
    """

    def __init__(self, message: str, missing: Optional[Iterable[str]] = None):
        self.message = message
        self.missing = list(missing or [])
        super().__init__(self.message)


class InactivePropertyError(PropertyEngineError):
    """Raised when an event is recorded against a deactivated property."""


class SessionStateError(PropertyEngineError):
    """Raised when a capture session operation is not valid in its state."""


class DeviceCapabilityError(PropertyEngineError):
    """Base for recoverable device failures (retry at session level)."""


class LocationUnavailableError(DeviceCapabilityError):
    """GPS fix could not be acquired (denied, timed out, unsupported)."""


class CameraUnavailableError(DeviceCapabilityError):
    """Camera could not be started or a frame could not be captured."""
