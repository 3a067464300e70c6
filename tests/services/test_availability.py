"""
Tests for calendar availability.
"""

from datetime import date, time
from types import SimpleNamespace

from quotedesk.models.organization import default_opening_hours
from quotedesk.services.availability import (
    available_slots,
    blocked_dates,
    booked_times,
    generate_slots,
    parse_hhmm,
)

MONDAY = date(2026, 3, 2)
SATURDAY = date(2026, 3, 7)


def event(type="unavailable", on=MONDAY, start=None, employee_id=None):
    return SimpleNamespace(type=type, date=on, start_time=start, employee_id=employee_id)


class TestBlockedDates:
    def test_single_staff_blocked_by_owner_event(self):
        assert blocked_dates([event()], staff_count=1) == {MONDAY}

    def test_two_staff_one_busy_is_not_blocked(self):
        assert blocked_dates([event(employee_id=None)], staff_count=2) == set()

    def test_two_staff_both_busy_is_blocked(self):
        events = [event(employee_id=None), event(type="booked", employee_id=7)]
        assert blocked_dates(events, staff_count=2) == {MONDAY}

    def test_same_person_twice_counts_once(self):
        events = [event(employee_id=7), event(type="booked", employee_id=7)]
        assert blocked_dates(events, staff_count=2) == set()

    def test_requested_events_never_block(self):
        assert blocked_dates([event(type="requested")], staff_count=1) == set()

    def test_timed_events_do_not_block_a_date(self):
        assert blocked_dates([event(type="booked", start=time(10))], staff_count=1) == set()

    def test_zero_staff_treated_as_one(self):
        assert blocked_dates([event()], staff_count=0) == {MONDAY}


class TestBookedTimes:
    def test_timed_booking(self):
        events = [event(type="booked", start=time(10))]
        assert booked_times(events, MONDAY, staff_count=1) == {time(10)}

    def test_other_date_ignored(self):
        events = [event(type="booked", start=time(10), on=SATURDAY)]
        assert booked_times(events, MONDAY, staff_count=1) == set()

    def test_needs_every_staff_member(self):
        events = [
            event(type="booked", start=time(9), employee_id=1),
            event(type="unavailable", start=time(9), employee_id=2),
            event(type="booked", start=time(11), employee_id=1),
        ]
        assert booked_times(events, MONDAY, staff_count=2) == {time(9)}

    def test_bookings_within_the_same_hour_fill_it(self):
        events = [
            event(type="booked", start=time(10), employee_id=1),
            event(type="booked", start=time(10, 30), employee_id=2),
        ]
        assert booked_times(events, MONDAY, staff_count=2) == {time(10)}
        slots = available_slots(events, default_opening_hours(), MONDAY, staff_count=2)
        assert time(10) not in slots
        assert time(11) in slots

    def test_off_hour_booking_reported_as_its_slot(self):
        events = [event(type="booked", start=time(14, 45))]
        assert booked_times(events, MONDAY, staff_count=1) == {time(14)}


class TestSlots:
    def test_default_weekday_slots(self):
        slots = generate_slots(default_opening_hours(), MONDAY)
        assert slots[0] == time(8)
        assert slots[-1] == time(16)
        assert len(slots) == 9

    def test_weekend_disabled(self):
        assert generate_slots(default_opening_hours(), SATURDAY) == []

    def test_no_opening_hours(self):
        assert generate_slots(None, MONDAY) == []

    def test_malformed_hours_yield_nothing(self):
        hours = {"monday": {"open": "eight", "close": "17:00", "enabled": True}}
        assert generate_slots(hours, MONDAY) == []

    def test_booked_hour_removed(self):
        events = [event(type="booked", start=time(10, 30))]
        slots = available_slots(events, default_opening_hours(), MONDAY, staff_count=1)
        assert time(10) not in slots
        assert time(11) in slots

    def test_blocked_date_has_no_slots(self):
        slots = available_slots([event()], default_opening_hours(), MONDAY, staff_count=1)
        assert slots == []

    def test_partially_busy_team_keeps_slots(self):
        events = [event(type="booked", start=time(10), employee_id=1)]
        slots = available_slots(events, default_opening_hours(), MONDAY, staff_count=2)
        assert time(10) in slots


def test_parse_hhmm():
    assert parse_hhmm("08:30") == time(8, 30)
    assert parse_hhmm("") is None
    assert parse_hhmm("25:00") is None
