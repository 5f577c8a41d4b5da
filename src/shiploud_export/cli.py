"""
Module: cli.py
Description: Command-line entry point for the export client.

Loads an export payload from a JSON file (or stdin), signs it with the
configured API token and delivers it to the ingest endpoint.

Usage:
    shiploud-export payload.json [--ingest-url URL] [--started-at ISO8601]

Exit status:
    0 on delivery, 1 when every attempt failed, 2 on usage or
    configuration errors.
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config.settings import get_settings
from .delivery.exceptions import DeliveryError
from .delivery.push import IngestDeliveryClient
from .utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


def _parse_started_at(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid ISO 8601 timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _load_payload(path: str) -> Dict[str, Any]:
    """Read a JSON object from path, or from stdin when path is '-'."""
    if path == '-':
        payload = json.load(sys.stdin)
    else:
        with open(path, encoding='utf-8') as handle:
            payload = json.load(handle)

    if not isinstance(payload, dict):
        raise ValueError("payload must be a JSON object")
    if 'commits' in payload and not isinstance(payload['commits'], list):
        raise ValueError("commits must be a JSON array")
    return payload


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shiploud-export",
        description="Deliver a signed commit export payload to shiploud.so",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  shiploud-export payload.json
  cat payload.json | shiploud-export -
  shiploud-export payload.json --ingest-url https://staging.example.com/ingest

The API token is read from SHIPLOUD_API_TOKEN (or the INPUT_API-TOKEN
action input) and is never printed.
        """
    )

    parser.add_argument(
        'payload',
        help="Path to the JSON payload, or '-' for stdin"
    )

    parser.add_argument(
        '--ingest-url',
        default=None,
        help='Override the configured ingest endpoint'
    )

    parser.add_argument(
        '--started-at',
        type=_parse_started_at,
        default=None,
        help='Job start time (ISO 8601) used for job_minutes; defaults to now'
    )

    parser.add_argument(
        '--max-attempts',
        type=int,
        default=None,
        help='Override the configured number of delivery attempts'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and return the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"❌ Invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    if settings.api_token is None:
        print("❌ Missing API token: set SHIPLOUD_API_TOKEN", file=sys.stderr)
        return 2

    try:
        payload = _load_payload(args.payload)
    except (OSError, ValueError) as e:
        print(f"❌ Could not read payload: {e}", file=sys.stderr)
        return 2

    overrides = {}
    if args.max_attempts is not None:
        overrides['max_attempts'] = args.max_attempts

    try:
        client = IngestDeliveryClient.from_settings(
            settings, ingest_url=args.ingest_url, **overrides
        )
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2

    started_at = args.started_at or datetime.now(timezone.utc)
    commits = payload.get('commits', [])

    logger.info(
        "Export started",
        repo=payload.get('repo'),
        owner=payload.get('owner'),
        commits=len(commits)
    )

    try:
        result = asyncio.run(
            client.deliver(payload, settings.api_token.get_secret_value(), started_at)
        )
    except DeliveryError as e:
        logger.error("Export failed", attempts=e.attempts, error=e.last_error)
        print(f"❌ Export failed: {e}", file=sys.stderr)
        return 1

    print(json.dumps({"commits": len(commits), "attempts": result.attempts}))
    return 0


if __name__ == '__main__':
    sys.exit(main())
