import pytest

from quotedesk.exceptions import InvalidTransitionError
from quotedesk.services.dossier_workflow import (
    DossierEvent,
    DossierStatus,
    apply_dossier_event,
    can_sign,
)


def test_complete_then_sign():
    status = apply_dossier_event("open", DossierEvent.COMPLETE)
    assert status == DossierStatus.COMPLETED
    assert apply_dossier_event(status, "sign") == DossierStatus.SIGNED


@pytest.mark.parametrize(
    "status, event",
    [
        ("open", "sign"),
        ("completed", "complete"),
        ("signed", "complete"),
        ("signed", "sign"),
    ],
)
def test_rejected_transitions(status, event):
    with pytest.raises(InvalidTransitionError) as exc_info:
        apply_dossier_event(status, event)
    assert exc_info.value.status_code == 409


def test_unknown_status():
    with pytest.raises(InvalidTransitionError):
        apply_dossier_event("archived", "complete")


def test_can_sign_only_when_completed():
    assert can_sign("completed")
    assert can_sign(DossierStatus.COMPLETED)
    assert not can_sign("open")
    assert not can_sign("signed")
