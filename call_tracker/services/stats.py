"""
Session statistics.

Pure derivation of the dashboard numbers from a list of call records.
Nothing here is stored; every read recomputes from the current list.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from call_tracker.schemas.call import CallRecord, OutcomeBreakdown, SessionStats
from call_tracker.schemas.outcome import (
    CALL_OUTCOMES,
    DISENGAGED_OUTCOMES,
    POSITIVE_OUTCOMES,
    CallOutcome,
)


def _ratio(part: int, total: int) -> float:
    """Percentage of ``part`` over ``total``; 0 for an empty session."""
    if total <= 0:
        return 0.0
    return part / total * 100


def compute_stats(records: Iterable[CallRecord]) -> SessionStats:
    """
    Aggregate a session's call records.

    - ``total_calls``: number of records.
    - ``confirmed_sales``: records with the confirmed-sale outcome.
    - ``yes_ratio``: share of records with a positive outcome.
    - ``engagement_ratio``: share of records where the contact engaged,
      i.e. the outcome is not a hangup, wrong number or do-not-call.
    - ``breakdown``: per-outcome counts in catalog order.
    """
    counts: Counter[CallOutcome] = Counter(r.outcome for r in records)
    total = sum(counts.values())

    positive = sum(counts[o] for o in POSITIVE_OUTCOMES)
    disengaged = sum(counts[o] for o in DISENGAGED_OUTCOMES)

    breakdown = [
        OutcomeBreakdown(
            outcome=d.code,
            label=d.label,
            color=d.color,
            count=counts[d.code],
            percentage=round(_ratio(counts[d.code], total), 1),
        )
        for d in CALL_OUTCOMES
    ]

    return SessionStats(
        total_calls=total,
        confirmed_sales=counts[CallOutcome.CONFIRMED_SALE],
        yes_ratio=_ratio(positive, total),
        engagement_ratio=_ratio(total - disengaged, total),
        breakdown=breakdown,
    )
