"""Cycle Math Tests

Total periods, cycle position, validated club edits, roster resizing
and the period calendar.
"""

from datetime import datetime

import pytest

from app.services.cycle_service import (
    add_months, apply_club_changes, current_cycle, cycle_info, grow_for_roster,
    period_in_cycle, period_window, shrink_for_roster, validate_club,
    InvalidConfigurationError
)
from conftest import club


class TestCycleMath:

    def test_total_periods_is_product(self):
        c = club(periods_per_cycle=6, number_of_cycles=2)
        assert c.total_periods == 12

    def test_current_cycle(self):
        assert current_cycle(club(current_period=1)) == 1
        assert current_cycle(club(current_period=6)) == 1
        assert current_cycle(club(current_period=7)) == 2
        assert current_cycle(club(current_period=12)) == 2

    def test_period_in_cycle(self):
        assert period_in_cycle(1, 6) == 1
        assert period_in_cycle(6, 6) == 6
        assert period_in_cycle(8, 6) == 2

    def test_cycle_info(self):
        info = cycle_info(club(current_period=8))
        assert info['current_cycle'] == 2
        assert info['period_in_cycle'] == 2
        assert info['total_periods'] == 12


class TestClubChanges:
    """Edits rebuild total_periods in the same step"""

    def test_total_rebuilt_with_factors(self):
        updated = apply_club_changes(club(), periods_per_cycle=4, number_of_cycles=3)
        assert updated.total_periods == 12
        updated = apply_club_changes(club(), number_of_cycles=5)
        assert updated.total_periods == 30

    @pytest.mark.parametrize('changes', [
        {'periods_per_cycle': 0},
        {'number_of_cycles': 0},
        {'contribution_amount': 0},
        {'contribution_amount': -50},
        {'contribution_amount': '500'},
        {'contribution_amount': None},
        {'contribution_amount': True},
        {'frequency': 'daily'},
        {'name': '  '},
        {'periods_per_cycle': None},
        {'current_period': 13},
        {'current_period': 0},
    ])
    def test_invalid_edit_leaves_club_intact(self, changes):
        original = club()
        with pytest.raises(InvalidConfigurationError):
            apply_club_changes(original, **changes)

        assert original.periods_per_cycle == 6
        assert original.number_of_cycles == 2
        assert original.total_periods == 12
        assert original.contribution_amount == 500

    def test_unknown_field_rejected(self):
        with pytest.raises(InvalidConfigurationError):
            apply_club_changes(club(), total_periods=99)

    def test_stale_total_fails_validation(self):
        c = club()
        c.total_periods = 7
        with pytest.raises(InvalidConfigurationError):
            validate_club(c)


class TestRosterResizing:

    def test_grow_raises_cycle_to_roster(self):
        c = grow_for_roster(club(periods_per_cycle=6, number_of_cycles=2), 7)
        assert c.periods_per_cycle == 7
        assert c.total_periods == 14

    def test_grow_never_shrinks(self):
        c = grow_for_roster(club(periods_per_cycle=6), 3)
        assert c.periods_per_cycle == 6
        assert c.total_periods == 12

    def test_shrink_follows_roster(self):
        c = shrink_for_roster(club(periods_per_cycle=6, number_of_cycles=2), 5)
        assert c.periods_per_cycle == 5
        assert c.total_periods == 10

    def test_shrink_to_empty_keeps_one_period_per_cycle(self):
        c = shrink_for_roster(club(number_of_cycles=3), 0)
        assert c.periods_per_cycle == 1
        assert c.total_periods == 3


class TestPeriodCalendar:

    def test_monthly_windows(self):
        start, end = period_window(club(), 3)
        assert start == datetime(2024, 3, 1)
        assert end == datetime(2024, 4, 1)

    def test_weekly_windows(self):
        start, end = period_window(club(frequency='weekly'), 2)
        assert start == datetime(2024, 1, 8)
        assert end == datetime(2024, 1, 15)

    def test_month_end_is_clamped(self):
        assert add_months(datetime(2024, 1, 31, 9, 30), 1) == datetime(2024, 2, 29, 9, 30)
        assert add_months(datetime(2023, 12, 31), 2) == datetime(2024, 2, 29)
