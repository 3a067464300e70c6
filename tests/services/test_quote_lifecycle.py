"""
Tests for the quotation status machine.
"""

import pytest

from quotedesk.exceptions import InvalidTransitionError
from quotedesk.services.quote_lifecycle import (
    EDITABLE_STATUSES,
    TERMINAL_STATUSES,
    TRANSITIONS,
    QuoteEvent,
    QuoteStatus,
    allowed_successors,
    apply_event,
    can_transition,
    is_editable,
)


EXPECTED_EDGES = {
    ("new_lead", "send"): "quote_sent",
    ("new_lead", "view"): "viewed",
    ("quote_sent", "view"): "viewed",
    ("viewed", "approve"): "approved",
    ("viewed", "reject"): "rejected",
    ("approved", "invoice"): "invoiced",
    ("invoiced", "mark_paid"): "paid",
}


class TestApplyEvent:
    @pytest.mark.parametrize("edge, target", list(EXPECTED_EDGES.items()))
    def test_allowed_edges(self, edge, target):
        status, event = edge
        assert apply_event(status, event) == QuoteStatus(target)

    def test_every_other_pair_is_rejected(self):
        for status in QuoteStatus:
            for event in QuoteEvent:
                if (status.value, event.value) in EXPECTED_EDGES:
                    continue
                with pytest.raises(InvalidTransitionError) as exc_info:
                    apply_event(status, event)
                assert exc_info.value.status_code == 409
                assert exc_info.value.current_status == status.value

    def test_table_matches_expected_edges(self):
        table = {(s.value, e.value): t.value for (s, e), t in TRANSITIONS.items()}
        assert table == EXPECTED_EDGES

    def test_unknown_status(self):
        with pytest.raises(InvalidTransitionError):
            apply_event("draft", "send")

    def test_error_message_names_action(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            apply_event("approved", "mark_paid")
        assert "mark paid" in exc_info.value.detail
        assert "approved" in exc_info.value.detail


class TestStatusSets:
    def test_terminal_statuses_have_no_successors(self):
        for status in TERMINAL_STATUSES:
            assert allowed_successors(status) == set()

    def test_reachability_from_new_lead(self):
        seen = {QuoteStatus.NEW_LEAD}
        frontier = [QuoteStatus.NEW_LEAD]
        while frontier:
            for nxt in allowed_successors(frontier.pop()):
                if nxt not in seen:
                    seen.add(nxt)
                    frontier.append(nxt)
        assert seen == set(QuoteStatus)

    def test_no_backwards_edges(self):
        order = list(QuoteStatus)
        for (source, _), target in TRANSITIONS.items():
            assert order.index(target) > order.index(source)

    def test_editable(self):
        assert is_editable("new_lead")
        assert is_editable(QuoteStatus.QUOTE_SENT)
        assert not is_editable("viewed")
        assert EDITABLE_STATUSES == {QuoteStatus.NEW_LEAD, QuoteStatus.QUOTE_SENT}

    def test_can_transition(self):
        assert can_transition("viewed", "approved")
        assert not can_transition("quote_sent", "approved")
        assert not can_transition("paid", "nonsense")
