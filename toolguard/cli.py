"""Operator CLI for handler health.

Usage:
    python -m toolguard status                    # every handler with a record
    python -m toolguard status --tool search      # one tool
    python -m toolguard status --json             # raw health file contents
    python -m toolguard reset search api          # re-enable a degraded handler
    python -m toolguard --data-dir ./data status  # override DATA_DIR
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from toolguard.config import get_settings
from toolguard.engine import ResilienceEngine


def _build_engine(args: argparse.Namespace) -> ResilienceEngine:
    overrides = {"data_dir": args.data_dir} if args.data_dir else {}
    return ResilienceEngine(get_settings(**overrides))


def cmd_status(args: argparse.Namespace) -> None:
    """Print persisted health records."""
    engine = _build_engine(args)
    report = engine.health_report(args.tool)

    if args.json:
        print(json.dumps({key: health.to_record() for key, health in sorted(report.items())}, indent=2))
        return

    if not report:
        print("No failures recorded; all handlers healthy.")
        return

    print(f"Health file: {engine.store.path}")
    for key in sorted(report):
        health = report[key]
        status = "DEGRADED" if health.degraded else "ok"
        line = f"  {key:<40} {status:<9} failures={health.failure_count}"
        if health.last_error:
            line += f"  last_error={health.last_error[:80]!r}"
        print(line)


def cmd_reset(args: argparse.Namespace) -> None:
    """Reset one handler to healthy."""
    engine = _build_engine(args)
    was_degraded = engine.is_degraded(args.tool, args.handler)
    engine.reset_handler(args.tool, args.handler)
    suffix = " (was degraded)" if was_degraded else ""
    print(f"Reset {args.tool}:{args.handler}{suffix}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="toolguard",
        description="Inspect and reset tool handler health",
    )
    parser.add_argument("--data-dir", help="Directory holding tool-health.json (default: $DATA_DIR or /data)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    p_status = sub.add_parser("status", help="Show handler health")
    p_status.add_argument("--tool", help="Only show handlers of this tool")
    p_status.add_argument("--json", action="store_true", help="Print raw JSON records")

    p_reset = sub.add_parser("reset", help="Reset a degraded handler")
    p_reset.add_argument("tool", help="Tool name")
    p_reset.add_argument("handler", help="Handler name")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "status":
        cmd_status(args)
    elif args.command == "reset":
        cmd_reset(args)
    else:
        parser.print_help()
        sys.exit(1)
