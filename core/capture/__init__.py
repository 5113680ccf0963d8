"""
Field Capture Module

Device capability interfaces and the scout capture session that turns
a site visit into a FieldObservation.
"""

from core.capture.providers import CameraProvider, LocationProvider
from core.capture.session import (
    ALLOWED_TRANSITIONS,
    CaptureState,
    FieldCaptureSession,
)

__all__ = [
    "CameraProvider",
    "LocationProvider",
    "ALLOWED_TRANSITIONS",
    "CaptureState",
    "FieldCaptureSession",
]
