"""
Device Capability Interfaces

The capture session never talks to hardware directly. Location and camera
access are injected as providers so that the session can run against real
devices, a mobile bridge, or test doubles.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from core.classification import GPSFix


class LocationProvider(ABC):
    """
    Single-shot, high-accuracy location source.

    Implementations must not retry on their own; the session decides when
    to try again.
    """

    @abstractmethod
    def acquire(self, timeout_s: Optional[float] = None) -> GPSFix:
        """
        Acquire one GPS fix.

        Args:
            timeout_s: Maximum time to wait for a fix

        Returns:
            GPSFix

        Raises:
            LocationUnavailableError: If no fix could be obtained
        """

    def cancel(self) -> None:
        """
        Abort a pending acquire().

        May be called from another thread; the pending call must then raise
        LocationUnavailableError. Providers without an abort rely on the
        acquire timeout alone.
        """


class CameraProvider(ABC):
    """Still-image camera source."""

    @abstractmethod
    def start(self) -> None:
        """Open the camera stream. Raises CameraUnavailableError on failure."""

    @abstractmethod
    def stop(self) -> None:
        """Release the camera stream."""

    @abstractmethod
    def capture(self) -> bytes:
        """
        Capture one frame.

        Returns:
            Encoded image bytes (JPEG)

        Raises:
            CameraUnavailableError: If the frame could not be captured
        """

    def cancel(self) -> None:
        """Abort a pending capture(), which must then raise CameraUnavailableError."""
