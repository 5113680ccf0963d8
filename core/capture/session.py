"""
Field Capture Session - Scout State Machine

Assembles a FieldObservation from a GPS fix, one or more photos, a legal
status selection and notes, then commits it to a property.

    Idle -> AcquiringLocation -> LocationReady -> CapturingPhoto -> PhotoReady
         -> ReadyToCommit -> Committed

AcquiringLocation may fail to LocationFailed, which is retryable and never
retried automatically. Photo capture loops through CapturingPhoto and
PhotoReady; a failed capture leaves earlier photos untouched. Either device
step can be cancelled while in flight and then settles like a failure.

ReadyToCommit is a server-side guard: a location, at least one photo and
an explicitly confirmed legal status are required. Committed is terminal.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from enum import Enum
from typing import Callable, Final, Optional, Protocol

from core.capture.providers import CameraProvider, LocationProvider
from core.classification import (
    DeviceMetadata,
    FieldObservation,
    GPSFix,
    LEAST_VERIFIED_STATUS,
    LegalStatus,
    PhotoCapture,
    coerce_legal_status,
)
from core.errors import (
    CameraUnavailableError,
    IncompleteObservationError,
    LocationUnavailableError,
    SessionStateError,
)


logger = logging.getLogger(__name__)


# =============================================================================
# States
# =============================================================================


class CaptureState(Enum):
    """States of a field capture session."""

    IDLE = "idle"
    ACQUIRING_LOCATION = "acquiring_location"
    LOCATION_FAILED = "location_failed"
    LOCATION_READY = "location_ready"
    CAPTURING_PHOTO = "capturing_photo"
    PHOTO_READY = "photo_ready"
    READY_TO_COMMIT = "ready_to_commit"
    COMMITTED = "committed"


ALLOWED_TRANSITIONS: Final[dict[CaptureState, frozenset[CaptureState]]] = {
    CaptureState.IDLE: frozenset({CaptureState.ACQUIRING_LOCATION}),
    CaptureState.ACQUIRING_LOCATION: frozenset(
        {CaptureState.LOCATION_READY, CaptureState.LOCATION_FAILED}
    ),
    CaptureState.LOCATION_FAILED: frozenset(
        {CaptureState.IDLE, CaptureState.ACQUIRING_LOCATION}
    ),
    CaptureState.LOCATION_READY: frozenset(
        {CaptureState.ACQUIRING_LOCATION, CaptureState.CAPTURING_PHOTO}
    ),
    CaptureState.CAPTURING_PHOTO: frozenset(
        {CaptureState.PHOTO_READY, CaptureState.LOCATION_READY}
    ),
    CaptureState.PHOTO_READY: frozenset(
        {
            CaptureState.CAPTURING_PHOTO,
            CaptureState.READY_TO_COMMIT,
            CaptureState.LOCATION_READY,
        }
    ),
    CaptureState.READY_TO_COMMIT: frozenset(
        {
            CaptureState.COMMITTED,
            CaptureState.CAPTURING_PHOTO,
            CaptureState.PHOTO_READY,
            CaptureState.LOCATION_READY,
        }
    ),
    CaptureState.COMMITTED: frozenset(),
}

DEFAULT_GPS_TIMEOUT_S: Final[float] = 30.0


class ObservationTarget(Protocol):
    """Anything that accepts a committed observation (aggregate, registry)."""

    def commit(self, observation: FieldObservation): ...


# =============================================================================
# Session
# =============================================================================


class FieldCaptureSession:
    """
    Single-user capture session bound to injected device providers.

    Not thread-safe: a session runs on whichever thread owns the devices.
    """

    def __init__(
        self,
        location_provider: LocationProvider,
        camera_provider: CameraProvider,
        captured_by: Optional[str] = None,
        device: Optional[DeviceMetadata] = None,
        gps_timeout_s: float = DEFAULT_GPS_TIMEOUT_S,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self._location = location_provider
        self._camera = camera_provider
        self.captured_by = captured_by
        self.device = device
        self.gps_timeout_s = gps_timeout_s
        self._clock = clock

        self._state = CaptureState.IDLE
        self._fix: Optional[GPSFix] = None
        self._photos: list[PhotoCapture] = []
        self._camera_active = False
        self._legal_status = LEAST_VERIFIED_STATUS
        self._legal_reference: Optional[str] = None
        self._status_confirmed = False
        self._notes = ""
        self.last_error: Optional[Exception] = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def fix(self) -> Optional[GPSFix]:
        return self._fix

    @property
    def photos(self) -> tuple[PhotoCapture, ...]:
        return tuple(self._photos)

    @property
    def legal_status(self) -> LegalStatus:
        return self._legal_status

    @property
    def legal_reference(self) -> Optional[str]:
        return self._legal_reference

    @property
    def status_confirmed(self) -> bool:
        return self._status_confirmed

    @property
    def notes(self) -> str:
        return self._notes

    @property
    def camera_active(self) -> bool:
        return self._camera_active

    @property
    def is_committed(self) -> bool:
        return self._state == CaptureState.COMMITTED

    # =========================================================================
    # Transitions
    # =========================================================================

    def _transition(self, new_state: CaptureState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self._state]:
            raise SessionStateError(
                f"Cannot move from {self._state.value} to {new_state.value}"
            )
        logger.debug("Capture session %s -> %s", self._state.value, new_state.value)
        self._state = new_state

    def _require_open(self) -> None:
        if self._state == CaptureState.COMMITTED:
            raise SessionStateError(
                "Session already committed - start a new session for further captures"
            )

    def _settle(self) -> None:
        """Return to the resting state that matches what has been captured."""
        target = CaptureState.PHOTO_READY if self._photos else CaptureState.LOCATION_READY
        if self._state != target:
            self._transition(target)

    # =========================================================================
    # Location
    # =========================================================================

    def acquire_location(self, timeout_s: Optional[float] = None) -> GPSFix:
        """
        Acquire a GPS fix (first attempt, retry, or re-acquire).

        A failed first attempt moves to LOCATION_FAILED. A failed re-acquire
        keeps the previous fix. The error is re-raised in both cases.

        Raises:
            LocationUnavailableError: If the provider could not get a fix
            SessionStateError: If called while photos are being taken
        """
        self._require_open()
        if self._state not in (
            CaptureState.IDLE,
            CaptureState.LOCATION_FAILED,
            CaptureState.LOCATION_READY,
        ):
            raise SessionStateError(f"Cannot acquire location in state {self._state.value}")

        self._transition(CaptureState.ACQUIRING_LOCATION)
        try:
            fix = self._location.acquire(timeout_s if timeout_s is not None else self.gps_timeout_s)
            if not isinstance(fix, GPSFix):
                raise LocationUnavailableError(f"Provider returned no fix: {fix!r}")
        except Exception as e:
            error = e if isinstance(e, LocationUnavailableError) else LocationUnavailableError(str(e))
            self.last_error = error
            logger.warning("GPS acquisition failed: %s", error)
            if self._fix is not None:
                self._transition(CaptureState.LOCATION_READY)
            else:
                self._transition(CaptureState.LOCATION_FAILED)
            if error is e:
                raise
            raise error from e

        self._fix = fix
        self.last_error = None
        self._transition(CaptureState.LOCATION_READY)
        return fix

    def cancel_location(self) -> None:
        """
        Abort the GPS acquisition in flight.

        The provider fails the pending acquire_location() call, which then
        settles as any failure does: back to LOCATION_READY when a previous
        fix exists, otherwise LOCATION_FAILED.

        Raises:
            SessionStateError: If no acquisition is in progress
        """
        if self._state != CaptureState.ACQUIRING_LOCATION:
            raise SessionStateError(f"No location acquisition to cancel in state {self._state.value}")
        logger.info("Cancelling GPS acquisition")
        self._location.cancel()

    def reset(self) -> None:
        """Go back to IDLE after a failed location attempt."""
        self._require_open()
        self._transition(CaptureState.IDLE)

    # =========================================================================
    # Camera
    # =========================================================================

    def open_camera(self) -> None:
        """Start the camera stream."""
        self._require_open()
        if self._camera_active:
            return
        try:
            self._camera.start()
        except CameraUnavailableError as e:
            self.last_error = e
            logger.warning("Camera start failed: %s", e)
            raise
        self._camera_active = True

    def close_camera(self) -> None:
        """Release the camera stream (safe to call when closed)."""
        if not self._camera_active:
            return
        self._camera.stop()
        self._camera_active = False

    def capture_photo(self) -> PhotoCapture:
        """
        Capture one photo.

        Raises:
            SessionStateError: If there is no location yet or the camera is closed
            CameraUnavailableError: If the frame could not be captured;
                earlier photos are kept
        """
        self._require_open()
        if self._state not in (
            CaptureState.LOCATION_READY,
            CaptureState.PHOTO_READY,
            CaptureState.READY_TO_COMMIT,
        ):
            raise SessionStateError(f"Cannot capture photo in state {self._state.value}")
        if not self._camera_active:
            raise SessionStateError("Camera is not open")

        self._transition(CaptureState.CAPTURING_PHOTO)
        try:
            content = self._camera.capture()
            if not content:
                raise CameraUnavailableError("Camera returned an empty frame")
        except Exception as e:
            error = e if isinstance(e, CameraUnavailableError) else CameraUnavailableError(str(e))
            self.last_error = error
            logger.warning("Photo capture failed: %s", error)
            self._settle()
            if error is e:
                raise
            raise error from e

        photo = PhotoCapture(photo_id=str(uuid.uuid4()), content=content, captured_at=self._clock())
        self._photos.append(photo)
        self.last_error = None
        self._transition(CaptureState.PHOTO_READY)
        return photo

    def cancel_photo(self) -> None:
        """
        Abort the photo capture in flight; earlier photos are kept.

        Raises:
            SessionStateError: If no capture is in progress
        """
        if self._state != CaptureState.CAPTURING_PHOTO:
            raise SessionStateError(f"No photo capture to cancel in state {self._state.value}")
        logger.info("Cancelling photo capture")
        self._camera.cancel()

    def remove_photo(self, photo_id: str) -> None:
        """
        Discard a captured photo.

        Raises:
            KeyError: If no photo has this ID
        """
        self._require_open()
        for index, photo in enumerate(self._photos):
            if photo.photo_id == photo_id:
                del self._photos[index]
                break
        else:
            raise KeyError(photo_id)
        if self._state == CaptureState.READY_TO_COMMIT or not self._photos:
            self._settle()

    # =========================================================================
    # Legal Status & Notes
    # =========================================================================

    def select_legal_status(self, status: LegalStatus, reference: Optional[str] = None) -> None:
        """
        Select the proposed legal status.

        Any new selection must be confirmed again before commit.
        """
        self._require_open()
        self._legal_status = coerce_legal_status(status)
        self._legal_reference = (reference or "").strip() or None
        self._status_confirmed = False
        if self._state == CaptureState.READY_TO_COMMIT:
            self._settle()

    def confirm_legal_status(self) -> None:
        """Agent confirms the selected legal status (default included)."""
        self._require_open()
        self._status_confirmed = True

    def set_notes(self, notes: str) -> None:
        self._require_open()
        self._notes = notes or ""

    # =========================================================================
    # Commit
    # =========================================================================

    def missing_requirements(self) -> list[str]:
        """What still blocks READY_TO_COMMIT."""
        missing = []
        if self._fix is None:
            missing.append("gps")
        if not self._photos:
            missing.append("photos")
        if not self._status_confirmed:
            missing.append("legal_status_confirmation")
        return missing

    def mark_ready(self) -> None:
        """
        Move to READY_TO_COMMIT.

        Raises:
            IncompleteObservationError: Naming every unmet requirement
        """
        self._require_open()
        if self._state == CaptureState.READY_TO_COMMIT:
            return
        missing = self.missing_requirements()
        if missing:
            raise IncompleteObservationError(
                f"Observation is not ready to commit. Missing: {', '.join(missing)}",
                missing=missing,
            )
        self._transition(CaptureState.READY_TO_COMMIT)

    def build_observation(self) -> FieldObservation:
        """Assemble the observation from what has been captured so far."""
        return FieldObservation(
            gps=self._fix,
            photos=tuple(self._photos),
            proposed_legal_status=self._legal_status,
            legal_reference=self._legal_reference,
            notes=self._notes,
            device=self.device,
            captured_by=self.captured_by,
            captured_at=self._clock(),
        )

    def commit(self, target: ObservationTarget):
        """
        Commit the observation to a property.

        Args:
            target: PropertyAggregate, or PropertyRegistry to create a property

        Returns:
            Whatever the target's commit returns: (snapshot, events)

        Raises:
            SessionStateError: If the session was already committed
            IncompleteObservationError: If the session is not ready
        """
        self._require_open()
        if self._state != CaptureState.READY_TO_COMMIT:
            missing = self.missing_requirements()
            raise IncompleteObservationError(
                "Session is not ready to commit"
                + (f". Missing: {', '.join(missing)}" if missing else ""),
                missing=missing,
            )

        # Failure leaves the session in READY_TO_COMMIT so it can be retried
        result = target.commit(self.build_observation())

        self.close_camera()
        self._transition(CaptureState.COMMITTED)
        logger.info("Field capture committed with %d photo(s)", len(self._photos))
        return result
