"""
Quotation lifecycle as an explicit transition table.

    new_lead   --send-->      quote_sent
    new_lead   --view-->      viewed
    quote_sent --view-->      viewed
    viewed     --approve-->   approved
    viewed     --reject-->    rejected
    approved   --invoice-->   invoiced
    invoiced   --mark_paid--> paid

rejected and paid are terminal.
"""

from enum import Enum
from typing import Dict, Set, Tuple, Union

from quotedesk.exceptions import InvalidTransitionError


class QuoteStatus(str, Enum):
    NEW_LEAD = "new_lead"
    QUOTE_SENT = "quote_sent"
    VIEWED = "viewed"
    APPROVED = "approved"
    REJECTED = "rejected"
    INVOICED = "invoiced"
    PAID = "paid"


class QuoteEvent(str, Enum):
    SEND = "send"
    VIEW = "view"
    APPROVE = "approve"
    REJECT = "reject"
    INVOICE = "invoice"
    MARK_PAID = "mark_paid"


TRANSITIONS: Dict[Tuple[QuoteStatus, QuoteEvent], QuoteStatus] = {
    (QuoteStatus.NEW_LEAD, QuoteEvent.SEND): QuoteStatus.QUOTE_SENT,
    (QuoteStatus.NEW_LEAD, QuoteEvent.VIEW): QuoteStatus.VIEWED,
    (QuoteStatus.QUOTE_SENT, QuoteEvent.VIEW): QuoteStatus.VIEWED,
    (QuoteStatus.VIEWED, QuoteEvent.APPROVE): QuoteStatus.APPROVED,
    (QuoteStatus.VIEWED, QuoteEvent.REJECT): QuoteStatus.REJECTED,
    (QuoteStatus.APPROVED, QuoteEvent.INVOICE): QuoteStatus.INVOICED,
    (QuoteStatus.INVOICED, QuoteEvent.MARK_PAID): QuoteStatus.PAID,
}

TERMINAL_STATUSES = frozenset({QuoteStatus.REJECTED, QuoteStatus.PAID})

# Staff may still edit lines and client details
EDITABLE_STATUSES = frozenset({QuoteStatus.NEW_LEAD, QuoteStatus.QUOTE_SENT})

# An invoice number exists
INVOICED_STATUSES = frozenset({QuoteStatus.INVOICED, QuoteStatus.PAID})


def _status(value: Union[QuoteStatus, str]) -> QuoteStatus:
    if isinstance(value, QuoteStatus):
        return value
    try:
        return QuoteStatus(value)
    except ValueError:
        raise InvalidTransitionError("quotation", str(value), "transition")


def apply_event(status: Union[QuoteStatus, str], event: Union[QuoteEvent, str]) -> QuoteStatus:
    """Return the next status, or raise InvalidTransitionError. Never mutates anything."""
    current = _status(status)
    event = QuoteEvent(event)
    target = TRANSITIONS.get((current, event))
    if target is None:
        raise InvalidTransitionError("quotation", current.value, event.value.replace("_", " "))
    return target


def allowed_successors(status: Union[QuoteStatus, str]) -> Set[QuoteStatus]:
    current = _status(status)
    return {target for (source, _), target in TRANSITIONS.items() if source == current}


def can_transition(status: Union[QuoteStatus, str], target: Union[QuoteStatus, str]) -> bool:
    try:
        return QuoteStatus(target) in allowed_successors(status)
    except (ValueError, InvalidTransitionError):
        return False


def is_editable(status: Union[QuoteStatus, str]) -> bool:
    return _status(status) in EDITABLE_STATUSES
