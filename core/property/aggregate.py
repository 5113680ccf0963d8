"""
Property Aggregate

Composes a property's audit ledger with its last materialised state.
Every mutation goes through the ledger: the aggregate builds events,
appends them under a per-property lock and swaps in the refreshed
snapshot. Readers get the snapshot without locking.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Union

from core.classification import (
    AuditEventType,
    FieldObservation,
    LEGAL_STATUS_PROFILES,
)
from core.errors import IncompleteObservationError, InactivePropertyError
from core.ledger import AuditEvent, AuditLedger, PropertyState, fold_events


logger = logging.getLogger(__name__)


class PropertyAggregate:
    """
    Aggregate root for a single property.

    The ledger is owned by the aggregate and has no identity outside it.
    The snapshot is an immutable PropertyState replaced on each write,
    so a reader holding a reference never sees it change.
    """

    def __init__(self, property_id: str, ledger: Optional[AuditLedger] = None):
        if not property_id:
            raise ValueError("property_id is required")
        self.property_id = property_id
        self._ledger = ledger or AuditLedger(property_id)
        if self._ledger.property_id != property_id:
            raise ValueError("ledger belongs to a different property")
        self._lock = threading.RLock()
        self._snapshot = self._ledger.materialize()

    @classmethod
    def from_events(cls, property_id: str, events: Iterable[AuditEvent]) -> "PropertyAggregate":
        """Rebuild an aggregate from its full stored event history."""
        return cls(property_id, AuditLedger(property_id, events))

    # =========================================================================
    # Reads
    # =========================================================================

    @property
    def ledger(self) -> AuditLedger:
        return self._ledger

    def snapshot(self) -> PropertyState:
        """Last materialised state (no lock, no recomputation)."""
        return self._snapshot

    def history(self, as_of: datetime) -> PropertyState:
        """State as it was after the last event at or before `as_of`."""
        return self._ledger.materialize(as_of=as_of)

    def verify(self) -> bool:
        """Check the snapshot against a fresh replay of the ledger."""
        return self._ledger.materialize() == self._snapshot

    # =========================================================================
    # Writes
    # =========================================================================

    def _append(self, events: list[AuditEvent]) -> PropertyState:
        """
        Fold, then append, then publish. Caller holds the lock.

        Folding first surfaces calculator errors before anything is written.
        """
        new_state = fold_events(events, self.property_id, start=self._snapshot)
        self._ledger.extend(events)
        self._snapshot = new_state
        return new_state

    def commit(self, observation: FieldObservation) -> tuple[PropertyState, list[AuditEvent]]:
        """
        Commit a field observation to the property.

        Translates the observation into ordered events: the GPS and photo
        capture, then a status change if the proposed status or reference
        differs from the current one. Unchanged facts produce no events.

        Args:
            observation: Completed field observation

        Returns:
            (refreshed snapshot, events actually appended)

        Raises:
            IncompleteObservationError: If the observation has no GPS fix
            InactivePropertyError: If the property has been deactivated
            OutOfOrderEventError: If the observation predates the ledger
        """
        if observation.gps is None:
            raise IncompleteObservationError(
                "Cannot commit an observation without a GPS fix", missing=["gps"]
            )

        with self._lock:
            current = self._snapshot
            if not current.is_active:
                raise InactivePropertyError(f"Property {self.property_id} is inactive")

            events = self._events_for(observation, current)
            if not events:
                logger.info("Observation for property %s changed nothing", self.property_id)
                return current, []

            state = self._append(events)

        logger.info(
            "Committed %d event(s) to property %s", len(events), self.property_id
        )
        return state, events

    def _events_for(
        self, observation: FieldObservation, current: PropertyState
    ) -> list[AuditEvent]:
        events: list[AuditEvent] = []

        capture = AuditEvent.create(
            AuditEventType.GPS_CAPTURED,
            {
                "gps": observation.gps.to_dict(),
                "photos": [photo.to_metadata() for photo in observation.photos],
                "notes": observation.notes,
                "device": observation.device.to_dict() if observation.device else None,
            },
            timestamp=observation.captured_at,
            actor=observation.captured_by,
        )
        if capture.data != self._latest_capture_data():
            events.append(capture)

        status = observation.proposed_legal_status
        reference = (observation.legal_reference or "").strip() or None
        current_reference = getattr(current, LEGAL_STATUS_PROFILES[status].identifier_field)
        if status != current.legal_status or (reference is not None and reference != current_reference):
            events.append(
                AuditEvent.create(
                    AuditEventType.STATUS_CHANGED,
                    {
                        "legal_status": status.value,
                        "identifier": reference,
                        "source": "field_capture",
                    },
                    timestamp=observation.captured_at,
                    actor=observation.captured_by,
                )
            )
        return events

    def _latest_capture_data(self) -> Optional[dict[str, Any]]:
        for event in reversed(self._ledger.events):
            if event.event_type == AuditEventType.GPS_CAPTURED:
                return event.data
        return None

    def record(
        self,
        event_type: Union[AuditEventType, str],
        data: Optional[Mapping[str, Any]] = None,
        timestamp: Optional[datetime] = None,
        actor: Optional[str] = None,
    ) -> tuple[PropertyState, AuditEvent]:
        """
        Record a single fact against the property.

        Used for price updates, category assignment, document verification,
        valuation and deactivation.

        Returns:
            (refreshed snapshot, appended event)

        Raises:
            InvalidInputError: If the payload does not fit the event type
            InactivePropertyError: If the property has been deactivated
            OutOfOrderEventError: If the timestamp predates the ledger
        """
        with self._lock:
            if not self._snapshot.is_active:
                raise InactivePropertyError(f"Property {self.property_id} is inactive")
            # Stamped inside the lock so default timestamps follow append order
            event = AuditEvent.create(event_type, data, timestamp=timestamp, actor=actor)
            state = self._append([event])

        logger.info(
            "Recorded %s on property %s", event.event_type.value, self.property_id
        )
        return state, event

    def deactivate(
        self,
        reason: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        actor: Optional[str] = None,
    ) -> PropertyState:
        """Mark the property inactive. The history is kept."""
        state, _ = self.record(
            AuditEventType.PROPERTY_DEACTIVATED,
            {"reason": reason},
            timestamp=timestamp,
            actor=actor,
        )
        return state
