"""
Audit Ledger - Append-Only Event Log

The ledger is the source of truth for a property. Current state is never
stored, only derived by folding the events in order.

Rules:
- Events are append-only, never edited or removed
- Timestamps are non-decreasing; an earlier event is rejected, not reordered
- Batch appends are all-or-nothing
- Materialisation is a pure, repeatable reduction

The ledger itself takes no lock. Writers must be serialised by the owner
(see PropertyAggregate).
"""

from __future__ import annotations

import bisect
import logging
from datetime import datetime
from itertools import islice
from typing import Iterable, Iterator, Optional

from core.errors import OutOfOrderEventError
from core.ledger.events import AuditEvent, to_naive_utc
from core.ledger.state import PropertyState, fold_events


logger = logging.getLogger(__name__)


# =============================================================================
# Event Window
# =============================================================================


class EventWindow:
    """
    Lazy, restartable view over a ledger's events.

    Bound to the ledger contents at the time it was created. Iterating it
    any number of times yields the same events in ascending timestamp
    order, with no side effects.
    """

    def __init__(self, events: tuple[AuditEvent, ...], start: int):
        self._events = events
        self._start = start

    def __iter__(self) -> Iterator[AuditEvent]:
        return islice(self._events, self._start, None)

    def __len__(self) -> int:
        return len(self._events) - self._start

    def __repr__(self) -> str:
        return f"EventWindow(count={len(self)})"


# =============================================================================
# Audit Ledger
# =============================================================================


class AuditLedger:
    """Append-only sequence of timestamped events for one property."""

    def __init__(self, property_id: str, events: Optional[Iterable[AuditEvent]] = None):
        """
        Initialise ledger.

        Args:
            property_id: Owner property ID
            events: Optional stored history, replayed through append()

        Raises:
            ValueError: If property_id is empty
            OutOfOrderEventError: If the stored history is out of order
        """
        if not property_id:
            raise ValueError("property_id is required")
        self.property_id = property_id

        # Replaced, never mutated, so readers can hold references safely
        self._events: tuple[AuditEvent, ...] = ()
        self._timestamps: tuple[datetime, ...] = ()

        if events is not None:
            self.extend(events)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def events(self) -> tuple[AuditEvent, ...]:
        """All events, oldest first (read-only)."""
        return self._events

    @property
    def last_timestamp(self) -> Optional[datetime]:
        if not self._timestamps:
            return None
        return self._timestamps[-1]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[AuditEvent]:
        return iter(self._events)

    # =========================================================================
    # Append (Append-Only)
    # =========================================================================

    def _check_order(self, events: list[AuditEvent]) -> None:
        previous = self.last_timestamp
        for event in events:
            if previous is not None and event.timestamp < previous:
                logger.warning(
                    "Rejected out-of-order %s event for property %s: %s < %s",
                    event.event_type.value,
                    self.property_id,
                    event.timestamp.isoformat(),
                    previous.isoformat(),
                )
                raise OutOfOrderEventError(
                    f"Event {event.event_type.value} at {event.timestamp.isoformat()} "
                    f"is earlier than last ledger event at {previous.isoformat()}",
                    last_timestamp=previous,
                    event_timestamp=event.timestamp,
                )
            previous = event.timestamp

    def append(self, event: AuditEvent) -> None:
        """
        Append a single event.

        Raises:
            OutOfOrderEventError: If the event is earlier than the last one.
                The ledger is unchanged.
        """
        self.extend([event])

    def extend(self, events: Iterable[AuditEvent]) -> None:
        """
        Append a batch of events, all or nothing.

        The whole batch is validated before any event becomes visible.
        """
        batch = list(events)
        if not batch:
            return
        self._check_order(batch)
        self._events = self._events + tuple(batch)
        self._timestamps = self._timestamps + tuple(e.timestamp for e in batch)

    # =========================================================================
    # Queries
    # =========================================================================

    def events_since(self, timestamp: datetime) -> EventWindow:
        """
        Events with timestamp >= `timestamp`, ascending.

        Returns:
            Restartable lazy view, unaffected by later appends
        """
        events, timestamps = self._events, self._timestamps
        return EventWindow(events, bisect.bisect_left(timestamps, to_naive_utc(timestamp)))

    def events_until(self, timestamp: datetime) -> EventWindow:
        """Events with timestamp <= `timestamp`, ascending."""
        events, timestamps = self._events, self._timestamps
        end = bisect.bisect_right(timestamps, to_naive_utc(timestamp))
        return EventWindow(events[:end], 0)

    def materialize(self, as_of: Optional[datetime] = None) -> PropertyState:
        """
        Fold the ledger into the current property state.

        Args:
            as_of: Only replay events up to and including this time
                (historical query). Default: all events.

        Returns:
            PropertyState; replaying the same ledger always yields an equal state
        """
        events = self._events if as_of is None else self.events_until(as_of)
        return fold_events(events, self.property_id)

    def to_list(self) -> list[dict]:
        """Serialise events for a storage layer."""
        return [event.to_dict() for event in self._events]

    @classmethod
    def from_list(cls, property_id: str, data: Iterable[dict]) -> "AuditLedger":
        """Rebuild a ledger from serialised events."""
        return cls(property_id, (AuditEvent.from_dict(item) for item in data))
