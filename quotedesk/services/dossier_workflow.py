"""Dossier workflow: open --complete--> completed --sign--> signed. Forward only."""

from enum import Enum
from typing import Dict, Tuple, Union

from quotedesk.exceptions import InvalidTransitionError


class DossierStatus(str, Enum):
    OPEN = "open"
    COMPLETED = "completed"
    SIGNED = "signed"


class DossierEvent(str, Enum):
    COMPLETE = "complete"
    SIGN = "sign"


DOSSIER_TRANSITIONS: Dict[Tuple[DossierStatus, DossierEvent], DossierStatus] = {
    (DossierStatus.OPEN, DossierEvent.COMPLETE): DossierStatus.COMPLETED,
    (DossierStatus.COMPLETED, DossierEvent.SIGN): DossierStatus.SIGNED,
}


def apply_dossier_event(
    status: Union[DossierStatus, str], event: Union[DossierEvent, str]
) -> DossierStatus:
    event = DossierEvent(event)
    try:
        current = DossierStatus(status)
    except ValueError:
        raise InvalidTransitionError("dossier", str(status), event.value)
    target = DOSSIER_TRANSITIONS.get((current, event))
    if target is None:
        raise InvalidTransitionError("dossier", current.value, event.value)
    return target


def can_sign(status: Union[DossierStatus, str]) -> bool:
    return status == DossierStatus.COMPLETED.value
