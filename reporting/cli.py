#!/usr/bin/env python3
"""
CLI for charter incentive quotes and audit ledger replays.

Usage:
    python -m reporting.cli quote <price_mad> <category> [--renovation]
    python -m reporting.cli replay <events_json> [--property-id ID] [--as-of TS] [--json]

Examples:
    # Quote a category B acquisition
    python -m reporting.cli quote 2800000 B

    # Show a property as it stood on 1 March 2026
    python -m reporting.cli replay exports/property-events.json --as-of 2026-03-01T00:00:00
"""

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

from core import (
    AuditLedger,
    InvalidInputError,
    OutOfOrderEventError,
    compute_incentive,
)
from utils.logging import configure_logging

from .summary import render_incentive, render_property


def cmd_quote(args):
    """Print an incentive quote."""
    try:
        result = compute_incentive(args.price, args.category, args.renovation)
    except InvalidInputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(render_incentive(result))
    return 0


def cmd_replay(args):
    """Materialise a property from a JSON list of serialised events."""
    input_path = Path(args.events_file)

    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    try:
        with open(input_path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        return 1

    if isinstance(data, dict):
        property_id = args.property_id or data.get("property_id")
        events = data.get("events", [])
    else:
        property_id = args.property_id
        events = data
    if not property_id:
        print("Error: property_id is required (in file or --property-id)", file=sys.stderr)
        return 1

    try:
        ledger = AuditLedger.from_list(property_id, events)
        as_of = datetime.fromisoformat(args.as_of) if args.as_of else None
        state = ledger.materialize(as_of=as_of)
    except (KeyError, ValueError, InvalidInputError, OutOfOrderEventError) as e:
        print(f"Error: Invalid event history: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(state.to_dict(), indent=2))
    else:
        print(render_property(state))
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Penguin - Charter incentive quotes and audit replays",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)

    quote_parser = subparsers.add_parser("quote", help="Compute a charter incentive quote")
    quote_parser.add_argument("price", type=float, help="Acquisition price in MAD")
    quote_parser.add_argument("category", help="Charter category (A, B or C)")
    quote_parser.add_argument("--renovation", action="store_true", help="Renovation project")
    quote_parser.add_argument("--json", action="store_true", help="Print JSON")
    quote_parser.set_defaults(func=cmd_quote)

    replay_parser = subparsers.add_parser("replay", help="Materialise a stored event history")
    replay_parser.add_argument("events_file", help="Path to JSON events file")
    replay_parser.add_argument("--property-id", help="Property ID (if not in file)")
    replay_parser.add_argument("--as-of", help="Replay events up to this ISO timestamp")
    replay_parser.add_argument("--json", action="store_true", help="Print JSON")
    replay_parser.set_defaults(func=cmd_replay)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
