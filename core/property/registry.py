"""
Property Registry - In-Memory Aggregate Store

Holds property aggregates by ID for the web layer. Durable storage is
owned by an outside persistence layer, which hands full event histories
back through `load()`.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Iterable, Optional

from core.classification import FieldObservation
from core.ledger import AuditEvent, PropertyState
from core.property.aggregate import PropertyAggregate


logger = logging.getLogger(__name__)


class PropertyNotFoundError(KeyError):
    """Raised when a property ID is not in the registry."""


class PropertyRegistry:
    """
    Registry of property aggregates.

    Only the map of aggregates is locked here; each aggregate serialises
    its own writes.
    """

    def __init__(self):
        self._aggregates: dict[str, PropertyAggregate] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._aggregates)

    def __contains__(self, property_id: str) -> bool:
        return property_id in self._aggregates

    def get(self, property_id: str) -> PropertyAggregate:
        """
        Get a property aggregate by ID.

        Raises:
            PropertyNotFoundError: If no such property exists
        """
        aggregate = self._aggregates.get(property_id)
        if aggregate is None:
            raise PropertyNotFoundError(property_id)
        return aggregate

    def list_states(self, include_inactive: bool = True) -> list[PropertyState]:
        """Snapshots of all properties, oldest first."""
        with self._lock:
            aggregates = list(self._aggregates.values())
        states = [a.snapshot() for a in aggregates]
        if not include_inactive:
            states = [s for s in states if s.is_active]
        return states

    def commit(
        self,
        observation: FieldObservation,
        property_id: Optional[str] = None,
    ) -> tuple[PropertyState, list[AuditEvent]]:
        """
        Commit an observation to an existing or new property.

        A new property is only registered once its first commit succeeds,
        so a rejected observation never leaves an empty record behind.

        Args:
            observation: Completed field observation
            property_id: Target property; None creates a new one

        Returns:
            (refreshed snapshot, events appended)
        """
        if property_id is not None:
            return self.get(property_id).commit(observation)

        aggregate = PropertyAggregate(str(uuid.uuid4()))
        result = aggregate.commit(observation)
        with self._lock:
            self._aggregates[aggregate.property_id] = aggregate
        logger.info("Created property %s from field capture", aggregate.property_id)
        return result

    def load(self, property_id: str, events: Iterable[AuditEvent]) -> PropertyAggregate:
        """
        Register a property from its stored event history.

        Raises:
            ValueError: If the property is already registered
        """
        aggregate = PropertyAggregate.from_events(property_id, events)
        with self._lock:
            if property_id in self._aggregates:
                raise ValueError(f"Property {property_id} already exists")
            self._aggregates[property_id] = aggregate
        return aggregate

    def clear(self) -> None:
        with self._lock:
            self._aggregates.clear()


# Singleton instance for the application
_property_registry: Optional[PropertyRegistry] = None


def get_property_registry() -> PropertyRegistry:
    """Get the property registry singleton."""
    global _property_registry
    if _property_registry is None:
        _property_registry = PropertyRegistry()
    return _property_registry
