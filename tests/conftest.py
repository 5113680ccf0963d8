"""
Shared fixtures: fake device providers, a fixed clock and sample captures.
"""

from datetime import datetime, timedelta

import pytest

from core.capture import CameraProvider, LocationProvider
from core.classification import FieldObservation, GPSFix, LegalStatus, PhotoCapture
from core.errors import CameraUnavailableError, LocationUnavailableError


# =============================================================================
# Fake Devices
# =============================================================================


class FakeLocationProvider(LocationProvider):
    """Returns queued fixes; queued exceptions are raised instead."""

    def __init__(self, *results):
        self.results = list(results)
        self.timeouts = []
        self.on_acquire = None
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def acquire(self, timeout_s=None):
        self.timeouts.append(timeout_s)
        if self.on_acquire is not None:
            self.on_acquire()
        if self.cancelled:
            self.cancelled = False
            raise LocationUnavailableError("Acquisition cancelled")
        if not self.results:
            raise LocationUnavailableError("No satellites in view")
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeCameraProvider(CameraProvider):
    """Returns queued frames; queued exceptions are raised instead."""

    def __init__(self, *frames, fail_on_start=False):
        self.frames = list(frames)
        self.fail_on_start = fail_on_start
        self.started = 0
        self.stopped = 0
        self.on_capture = None
        self.cancelled = False

    def start(self):
        if self.fail_on_start:
            raise CameraUnavailableError("Camera permission denied")
        self.started += 1

    def stop(self):
        self.stopped += 1

    def cancel(self):
        self.cancelled = True

    def capture(self):
        if self.on_capture is not None:
            self.on_capture()
        if self.cancelled:
            self.cancelled = False
            raise CameraUnavailableError("Capture cancelled")
        if not self.frames:
            raise CameraUnavailableError("No frame available")
        frame = self.frames.pop(0)
        if isinstance(frame, Exception):
            raise frame
        return frame


class FixedClock:
    """Clock that advances one second per call."""

    def __init__(self, start):
        self.current = start

    def __call__(self):
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def base_time():
    return datetime(2026, 1, 10, 9, 0, 0)


@pytest.fixture
def sample_fix(base_time):
    """A sub-metre fix in Marrakech medina."""
    return GPSFix(
        latitude=31.6295,
        longitude=-7.9811,
        accuracy_m=0.8,
        fix_timestamp=base_time,
        altitude_m=466.0,
    )


@pytest.fixture
def sample_photo(base_time):
    return PhotoCapture(photo_id="photo-1", content=b"\xff\xd8jpeg-bytes", captured_at=base_time)


@pytest.fixture
def make_observation(sample_fix, sample_photo, base_time):
    """Factory fixture for field observations."""

    def _make(**overrides):
        values = {
            "gps": sample_fix,
            "photos": (sample_photo,),
            "proposed_legal_status": LegalStatus.MELKIA,
            "legal_reference": None,
            "notes": "Riad, two floors, courtyard",
            "captured_by": "scout-01",
            "captured_at": base_time + timedelta(minutes=5),
        }
        values.update(overrides)
        return FieldObservation(**values)

    return _make


@pytest.fixture
def fixed_clock(base_time):
    return FixedClock(base_time)


@pytest.fixture
def fake_location():
    """Factory for FakeLocationProvider."""
    return FakeLocationProvider


@pytest.fixture
def fake_camera():
    """Factory for FakeCameraProvider."""
    return FakeCameraProvider
