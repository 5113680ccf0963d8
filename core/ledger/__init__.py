"""
Audit Ledger Module

Append-only event log per property and the fold that materialises the
property's current state from it.
"""

from core.ledger.events import AuditEvent, coerce_event_type, to_naive_utc
from core.ledger.state import (
    PropertyState,
    apply_event,
    fold_events,
    initial_state,
)
from core.ledger.ledger import AuditLedger, EventWindow

__all__ = [
    # Events
    "AuditEvent",
    "coerce_event_type",
    "to_naive_utc",
    # State
    "PropertyState",
    "apply_event",
    "fold_events",
    "initial_state",
    # Ledger
    "AuditLedger",
    "EventWindow",
]
