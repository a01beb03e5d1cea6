"""Rotation Scheduler Tests

Recipient ordering, missed-payment penalties and schedule building.
"""

import pytest

from app.services.rotation_service import (
    build_schedule, effective_rotation_key, next_scheduled_period,
    recipient_for_period, rotation_order, UnknownPeriodError
)
from conftest import club, member


class TestEffectiveRotationKey:
    """Effective key = scheduled_period + missed_payments"""

    def test_key_equals_slot_without_missed_payments(self, six_members):
        for m in six_members:
            assert effective_rotation_key(m) == m.scheduled_period

    def test_missed_payments_push_key_back(self):
        emily = member(2, missed=2, name='Emily Davis')
        assert effective_rotation_key(emily) == 4
        assert next_scheduled_period(emily) == 4


class TestRecipientForPeriod:
    """Who gets the pot in period N"""

    def test_emily_is_pushed_back_two_slots(self, six_members):
        six_members[1] = member(2, missed=2, name='Emily Davis')

        order = rotation_order(six_members)
        assert [m.scheduled_period for m in order] == [1, 3, 4, 5, 2, 6]

        recipient = recipient_for_period(2, six_members)
        assert recipient.scheduled_period == 3
        assert recipient.name != 'Emily Davis'

    def test_rotation_wraps_every_member_count(self, six_members):
        six_members[3] = member(4, missed=1)
        for n in range(1, 7):
            assert recipient_for_period(n, six_members) == recipient_for_period(n + 6, six_members)

    def test_ties_keep_roster_order(self):
        # m1 pushed back to key 2, same as m2; m1 came first on the roster
        roster = [member(1, missed=1), member(2), member(3)]
        assert [m.id for m in rotation_order(roster)] == ['m1', 'm2', 'm3']

        roster = [member(2), member(1, missed=1), member(3)]
        assert [m.id for m in rotation_order(roster)] == ['m2', 'm1', 'm3']

    def test_empty_roster_has_no_recipient(self):
        assert recipient_for_period(1, []) is None

    def test_period_zero_is_rejected(self, six_members):
        with pytest.raises(UnknownPeriodError):
            recipient_for_period(0, six_members)

    def test_period_past_schedule_is_rejected(self, six_members):
        with pytest.raises(UnknownPeriodError):
            recipient_for_period(13, six_members, total_periods=12)

    def test_last_period_is_accepted(self, six_members):
        assert recipient_for_period(12, six_members, total_periods=12).id == 'm6'

    def test_does_not_reorder_input(self, six_members):
        six_members[0] = member(1, missed=3)
        before = [m.id for m in six_members]
        recipient_for_period(1, six_members)
        assert [m.id for m in six_members] == before


class TestBuildSchedule:
    """Full schedule as shown on the schedule screen"""

    def test_one_entry_per_period(self, six_members):
        schedule = build_schedule(club(current_period=3), six_members)

        assert len(schedule) == 12
        assert [e['status'] for e in schedule[:4]] == ['completed', 'completed', 'active', 'upcoming']
        assert schedule[6]['cycle'] == 2
        assert schedule[6]['period_in_cycle'] == 1
        assert schedule[0]['expected_amount'] == 3000

    def test_second_cycle_repeats_order(self, six_members):
        schedule = build_schedule(club(), six_members)
        first = [e['recipient'].id for e in schedule[:6]]
        second = [e['recipient'].id for e in schedule[6:]]
        assert first == second

    def test_empty_roster_lists_periods_without_recipients(self):
        schedule = build_schedule(club(periods_per_cycle=2, number_of_cycles=1), [])
        assert [e['recipient'] for e in schedule] == [None, None]
        assert schedule[0]['expected_amount'] == 0
