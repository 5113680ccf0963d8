"""
Tests for the Property Registry and Portfolio Summary
"""

from datetime import timedelta

import pytest

from core.classification import AuditEventType, CharterCategory, LegalStatus
from core.errors import IncompleteObservationError
from core.ledger import AuditEvent, PropertyState
from core.property import (
    PropertyNotFoundError,
    PropertyRegistry,
    get_property_registry,
    summarize_portfolio,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def registry():
    return PropertyRegistry()


@pytest.fixture
def portfolio_states():
    """Three active properties and one deactivated duplicate."""
    return [
        PropertyState(
            property_id="PROP-1",
            legal_status=LegalStatus.TITLED,
            legal_confidence_score=90,
            charter_category=CharterCategory.A,
            acquisition_price_mad=4_200_000,
            estimated_cashback_mad=420_000,
        ),
        PropertyState(
            property_id="PROP-2",
            legal_status=LegalStatus.MELKIA,
            legal_confidence_score=45,
            charter_category=CharterCategory.B,
            acquisition_price_mad=2_800_000,
            estimated_value_mad=3_000_000,
            estimated_cashback_mad=420_000,
        ),
        PropertyState(
            property_id="PROP-3",
            legal_status=LegalStatus.IN_PROCESS,
            charter_category=CharterCategory.C,
            acquisition_price_mad=1_200_000,
        ),
        PropertyState(
            property_id="PROP-4",
            acquisition_price_mad=9_999_999,
            estimated_cashback_mad=1_000_000,
            is_active=False,
        ),
    ]


# =============================================================================
# Registry Tests
# =============================================================================


class TestRegistry:
    """Tests for the in-memory property registry."""

    def test_commit_creates_property(self, registry, make_observation):
        state, events = registry.commit(make_observation())

        assert len(registry) == 1
        assert state.property_id in registry
        assert registry.get(state.property_id).snapshot() == state
        assert len(events) == 1

    def test_rejected_commit_creates_nothing(self, registry, make_observation):
        with pytest.raises(IncompleteObservationError):
            registry.commit(make_observation(gps=None))

        assert len(registry) == 0

    def test_commit_to_existing_property(self, registry, make_observation, base_time):
        state, _ = registry.commit(make_observation())

        updated, events = registry.commit(
            make_observation(
                proposed_legal_status=LegalStatus.TITLED,
                legal_reference="TF-55012/04",
                captured_at=base_time + timedelta(days=2),
            ),
            property_id=state.property_id,
        )

        assert len(registry) == 1
        assert updated.title_number == "TF-55012/04"
        assert [e.event_type for e in events] == [AuditEventType.STATUS_CHANGED]

    def test_unknown_property(self, registry):
        with pytest.raises(PropertyNotFoundError):
            registry.get("PROP-MISSING")

    def test_not_found_is_a_key_error(self, registry):
        with pytest.raises(KeyError):
            registry.get("PROP-MISSING")

    def test_load_history(self, registry, base_time):
        events = [
            AuditEvent.create(
                AuditEventType.PRICE_UPDATED, {"acquisition_price_mad": 2_800_000}, timestamp=base_time
            ),
            AuditEvent.create(
                AuditEventType.CATEGORY_ASSIGNED,
                {"charter_category": "B"},
                timestamp=base_time + timedelta(hours=1),
            ),
        ]

        aggregate = registry.load("PROP-RBT-002", events)

        assert "PROP-RBT-002" in registry
        assert aggregate.snapshot().estimated_cashback_mad == 420_000

    def test_load_duplicate(self, registry):
        registry.load("PROP-1", [])

        with pytest.raises(ValueError):
            registry.load("PROP-1", [])

    def test_list_states_excludes_inactive_on_request(self, registry, base_time):
        registry.load("PROP-1", [])
        registry.get("PROP-1").deactivate(timestamp=base_time)
        registry.load("PROP-2", [])

        assert len(registry.list_states()) == 2
        assert [s.property_id for s in registry.list_states(include_inactive=False)] == ["PROP-2"]

    def test_clear(self, registry):
        registry.load("PROP-1", [])
        registry.clear()
        assert len(registry) == 0

    def test_singleton(self):
        assert get_property_registry() is get_property_registry()


# =============================================================================
# Portfolio Tests
# =============================================================================


class TestPortfolioSummary:
    """Tests for dashboard totals."""

    def test_counts_active_only(self, portfolio_states):
        summary = summarize_portfolio(portfolio_states)
        assert summary.total_properties == 3

    def test_total_value_prefers_estimate(self, portfolio_states):
        summary = summarize_portfolio(portfolio_states)
        assert summary.total_value_mad == 4_200_000 + 3_000_000 + 1_200_000

    def test_breakdowns(self, portfolio_states):
        summary = summarize_portfolio(portfolio_states)

        assert summary.by_legal_status == {
            LegalStatus.TITLED: 1,
            LegalStatus.IN_PROCESS: 1,
            LegalStatus.MELKIA: 1,
        }
        assert summary.by_charter_category == {
            CharterCategory.A: 1,
            CharterCategory.B: 1,
            CharterCategory.C: 1,
        }

    def test_average_confidence_ignores_unscored(self, portfolio_states):
        summary = summarize_portfolio(portfolio_states)
        assert summary.average_legal_confidence == 67.5

    def test_potential_cashback(self, portfolio_states):
        summary = summarize_portfolio(portfolio_states)
        assert summary.total_potential_cashback_mad == 840_000

    def test_empty_portfolio(self):
        summary = summarize_portfolio([])

        assert summary.total_properties == 0
        assert summary.total_value_mad == 0
        assert summary.average_legal_confidence is None
        assert all(count == 0 for count in summary.by_legal_status.values())

    def test_to_dict_uses_plain_keys(self, portfolio_states):
        data = summarize_portfolio(portfolio_states).to_dict()

        assert data["by_legal_status"]["In-Process"] == 1
        assert data["by_charter_category"]["A"] == 1
