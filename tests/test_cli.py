"""
Tests for the command line interface
"""

import json
from datetime import datetime, timedelta

import pytest

from core.charter import compute_incentive
from core.classification import AuditEventType
from core.ledger import AuditEvent, AuditLedger
from reporting import cli
from reporting.summary import render_incentive
from utils.formatting import format_mad, format_percent


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep the CLI from reconfiguring the test run's root logger."""
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


@pytest.fixture
def events_file(tmp_path):
    """Serialised history: Melkia riad that entered registration."""
    t0 = datetime(2026, 1, 10, 9, 0, 0)
    ledger = AuditLedger("PROP-MRK-001")
    ledger.extend(
        [
            AuditEvent.create(
                AuditEventType.STATUS_CHANGED,
                {"legal_status": "Melkia", "identifier": "MLK-OZ-7842"},
                timestamp=t0,
            ),
            AuditEvent.create(
                AuditEventType.PRICE_UPDATED, {"acquisition_price_mad": 4_200_000}, timestamp=t0
            ),
            AuditEvent.create(
                AuditEventType.CATEGORY_ASSIGNED, {"charter_category": "A"}, timestamp=t0
            ),
            AuditEvent.create(
                AuditEventType.STATUS_CHANGED,
                {"legal_status": "In-Process", "identifier": "REQ-2024-4521"},
                timestamp=t0 + timedelta(days=30),
            ),
        ]
    )
    path = tmp_path / "events.json"
    path.write_text(json.dumps({"property_id": ledger.property_id, "events": ledger.to_list()}))
    return path


# =============================================================================
# Formatting
# =============================================================================


class TestFormatting:
    def test_format_mad(self):
        assert format_mad(4_200_000) == "4,200,000 MAD"
        assert format_mad(None) == "—"

    def test_format_percent(self):
        assert format_percent(12) == "12.0%"
        assert format_percent(None) == "—"

    def test_render_incentive(self):
        text = render_incentive(compute_incentive(2_800_000, "B"))

        assert "Category B" in text
        assert "420,000 MAD" in text
        assert "Eligible" in text


# =============================================================================
# Commands
# =============================================================================


class TestQuote:
    def test_quote_json(self, capsys):
        assert cli.main(["quote", "4200000", "A", "--renovation", "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["total_cashback_pct"] == 12
        assert data["estimated_cashback_mad"] == 504_000

    def test_quote_text(self, capsys):
        assert cli.main(["quote", "1200000", "C"]) == 0
        assert "Not Eligible" in capsys.readouterr().out

    def test_quote_invalid_category(self, capsys):
        assert cli.main(["quote", "1000000", "Z"]) == 1
        assert "Error" in capsys.readouterr().err


class TestReplay:
    def test_replay_current(self, events_file, capsys):
        assert cli.main(["replay", str(events_file), "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["legal_status"] == "In-Process"
        assert data["estimated_cashback_mad"] == 420_000

    def test_replay_as_of(self, events_file, capsys):
        assert cli.main(["replay", str(events_file), "--as-of", "2026-01-15T00:00:00", "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["legal_status"] == "Melkia"
        assert data["melkia_reference"] == "MLK-OZ-7842"

    def test_replay_text(self, events_file, capsys):
        assert cli.main(["replay", str(events_file)]) == 0
        assert "REQ-2024-4521" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        assert cli.main(["replay", str(tmp_path / "nope.json")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_out_of_order_history(self, tmp_path, capsys):
        later = AuditEvent.create(
            AuditEventType.PRICE_UPDATED,
            {"acquisition_price_mad": 1},
            timestamp=datetime(2026, 2, 1),
        )
        earlier = AuditEvent.create(
            AuditEventType.PRICE_UPDATED,
            {"acquisition_price_mad": 2},
            timestamp=datetime(2026, 1, 1),
        )
        path = tmp_path / "events.json"
        path.write_text(json.dumps([later.to_dict(), earlier.to_dict()]))

        assert cli.main(["replay", str(path), "--property-id", "PROP-1"]) == 1
        assert "Invalid event history" in capsys.readouterr().err
