"""
CLI tool to log a call outcome through the running API.

Usage:
    python scripts/log_call.py <outcome> [--notes TEXT] [--base-url URL]
    python scripts/log_call.py --stats

Examples:
    python scripts/log_call.py confirmed-sale --notes "closed deal"
    python scripts/log_call.py call-later --notes "try after 5pm"
"""

import argparse
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import httpx

from call_tracker.schemas.outcome import CallOutcome

DEFAULT_BASE_URL = "http://localhost:8000"


def log_call(base_url: str, outcome: str, notes: str | None = None) -> None:
    """Post a single call outcome and print the new record."""
    with httpx.Client(base_url=base_url, timeout=10.0) as client:
        r = client.post("/api/calls", json={"outcome": outcome, "notes": notes})
        r.raise_for_status()
        call = r.json()
        print(f"Logged {call['outcome']} as {call['id']}")


def show_stats(base_url: str) -> None:
    with httpx.Client(base_url=base_url, timeout=10.0) as client:
        r = client.get("/api/stats")
        r.raise_for_status()
        stats = r.json()

    print(f"Total calls:      {stats['total_calls']}")
    print(f"Confirmed sales:  {stats['confirmed_sales']}")
    print(f"Yes ratio:        {stats['yes_ratio']:.1f}%")
    print(f"Engagement ratio: {stats['engagement_ratio']:.1f}%")


def main() -> None:
    parser = argparse.ArgumentParser(description="Log a call outcome")
    parser.add_argument("outcome", nargs="?", choices=[o.value for o in CallOutcome], help="Outcome code")
    parser.add_argument("--notes", help="Optional notes for the call")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="Call Tracker API base URL")
    parser.add_argument("--stats", action="store_true", help="Print session statistics instead")

    args = parser.parse_args()

    if not args.outcome and not args.stats:
        parser.error("Provide an outcome or --stats")

    try:
        if args.outcome:
            log_call(args.base_url, args.outcome, args.notes)
        if args.stats:
            show_stats(args.base_url)
    except httpx.HTTPError as e:
        print(f"Request failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
