"""
Outcome catalog: the closed set of call outcomes and their display metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CallOutcome(str, Enum):
    """How a call ended. Declaration order is the button grid order."""
    YES_NEEDS_CONFIRMATION = "yes-needs-confirmation"
    CONFIRMED_SALE = "confirmed-sale"
    NO = "no"
    ABSOLUTELY_NO = "absolutely-no"
    HANGUP = "hangup"
    CALL_LATER = "call-later"
    CALL_IN_2_MONTHS = "call-in-2-months"
    SICKNESS_MEDICINE = "sickness-medicine"
    ALREADY_CUSTOMER = "already-customer"
    NOT_ENOUGH_MONEY = "not-enough-money"
    LANGUAGE_DIFFICULTIES = "language-difficulties"
    WRONG_NUMBER = "wrong-number"
    DNC = "dnc"


@dataclass(frozen=True)
class OutcomeDescriptor:
    """Display metadata bound to a single outcome code."""
    code: CallOutcome
    label: str
    color: str


_SUCCESS = "bg-success hover:bg-success-light"
_DANGER = "bg-danger hover:bg-danger-light"
_NEUTRAL = "bg-neutral hover:bg-neutral-light"
_INFO = "bg-info hover:bg-info-light"
_WARNING = "bg-warning hover:bg-warning-light"

CALL_OUTCOMES: tuple[OutcomeDescriptor, ...] = (
    OutcomeDescriptor(CallOutcome.YES_NEEDS_CONFIRMATION, "Yes (Needs Confirmation)", _SUCCESS),
    OutcomeDescriptor(CallOutcome.CONFIRMED_SALE, "Confirmed Sale", _SUCCESS),
    OutcomeDescriptor(CallOutcome.NO, "No", _DANGER),
    OutcomeDescriptor(CallOutcome.ABSOLUTELY_NO, "Absolutely No", _DANGER),
    OutcomeDescriptor(CallOutcome.HANGUP, "Hangup", _NEUTRAL),
    OutcomeDescriptor(CallOutcome.CALL_LATER, "Call Later", _INFO),
    OutcomeDescriptor(CallOutcome.CALL_IN_2_MONTHS, "Call in 2 Months", _INFO),
    OutcomeDescriptor(CallOutcome.SICKNESS_MEDICINE, "Sickness/Medicine", _WARNING),
    OutcomeDescriptor(CallOutcome.ALREADY_CUSTOMER, "Already a Customer", _WARNING),
    OutcomeDescriptor(CallOutcome.NOT_ENOUGH_MONEY, "Not Enough Money", _WARNING),
    OutcomeDescriptor(CallOutcome.LANGUAGE_DIFFICULTIES, "Language Difficulties", _WARNING),
    OutcomeDescriptor(CallOutcome.WRONG_NUMBER, "Wrong Number", _NEUTRAL),
    OutcomeDescriptor(CallOutcome.DNC, "DNC (Do Not Call)", _NEUTRAL),
)

_BY_CODE: dict[str, OutcomeDescriptor] = {d.code.value: d for d in CALL_OUTCOMES}

# Outcomes counted towards the yes ratio
POSITIVE_OUTCOMES: frozenset[CallOutcome] = frozenset({
    CallOutcome.YES_NEEDS_CONFIRMATION,
    CallOutcome.CONFIRMED_SALE,
})

# Outcomes where the contact never engaged; everything else counts as engagement
DISENGAGED_OUTCOMES: frozenset[CallOutcome] = frozenset({
    CallOutcome.HANGUP,
    CallOutcome.WRONG_NUMBER,
    CallOutcome.DNC,
})


def describe(code: CallOutcome | str) -> OutcomeDescriptor:
    """
    Resolve an outcome code to its descriptor.

    Unknown codes (e.g. stale data from an older catalog) fall back to the
    first catalog entry instead of failing.
    """
    key = code.value if isinstance(code, CallOutcome) else str(code)
    return _BY_CODE.get(key, CALL_OUTCOMES[0])
