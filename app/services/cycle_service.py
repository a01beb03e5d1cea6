"""
CYCLE SERVICE
=============

Pure derivations from a club's configuration:
- total periods / current cycle / position inside a cycle
- validated club edits (total_periods rebuilt in the same step)
- roster-driven resizing of periods_per_cycle
- the period calendar (weekly / monthly windows)
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
import logging

from app.domain import Club, Frequency

logger = logging.getLogger(__name__)

VALID_FREQUENCIES = tuple(f.value for f in Frequency)

# Fields an admin may edit through the settings screen
EDITABLE_CLUB_FIELDS = (
    'name', 'contribution_amount', 'frequency', 'current_period',
    'periods_per_cycle', 'number_of_cycles', 'start_date'
)


# ============================================================
# CUSTOM EXCEPTIONS
# ============================================================

class ClubConfigError(Exception):
    """Base exception for club configuration"""
    pass


class InvalidConfigurationError(ClubConfigError):
    """Raised when a club edit would break the rotation configuration"""
    pass


# ============================================================
# CYCLE MATH
# ============================================================

def compute_total_periods(periods_per_cycle, number_of_cycles):
    return periods_per_cycle * number_of_cycles


def cycle_of_period(period_number, periods_per_cycle):
    """1-indexed cycle that contains period_number."""
    return (period_number - 1) // periods_per_cycle + 1


def period_in_cycle(period_number, periods_per_cycle):
    """1-indexed position of period_number inside its cycle."""
    return (period_number - 1) % periods_per_cycle + 1


def current_cycle(club: Club):
    return cycle_of_period(club.current_period, club.periods_per_cycle)


def cycle_info(club: Club) -> dict:
    return {
        'current_cycle': current_cycle(club),
        'number_of_cycles': club.number_of_cycles,
        'periods_per_cycle': club.periods_per_cycle,
        'period_in_cycle': period_in_cycle(club.current_period, club.periods_per_cycle),
        'current_period': club.current_period,
        'total_periods': club.total_periods,
    }


# ============================================================
# VALIDATION
# ============================================================

def _is_whole_number(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _is_amount(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_cycle_factors(club: Club):
    if not _is_whole_number(club.periods_per_cycle) or club.periods_per_cycle < 1:
        raise InvalidConfigurationError("Periods per cycle must be at least 1")

    if not _is_whole_number(club.number_of_cycles) or club.number_of_cycles < 1:
        raise InvalidConfigurationError("Number of cycles must be at least 1")


def validate_club(club: Club):
    """
    Raise InvalidConfigurationError if the club cannot drive a rotation.

    Checks:
    - periods_per_cycle >= 1 and number_of_cycles >= 1
    - name is not blank
    - contribution_amount > 0
    - frequency is weekly or monthly
    - current_period within [1, total_periods]
    - total_periods matches its factors
    """
    _check_cycle_factors(club)

    if not isinstance(club.name, str) or not club.name.strip():
        raise InvalidConfigurationError("Club name is required")

    if not _is_amount(club.contribution_amount) or club.contribution_amount <= 0:
        raise InvalidConfigurationError("Contribution amount must be greater than 0")

    if club.frequency not in VALID_FREQUENCIES:
        raise InvalidConfigurationError(
            f"Frequency must be one of: {', '.join(VALID_FREQUENCIES)}"
        )

    expected = compute_total_periods(club.periods_per_cycle, club.number_of_cycles)
    if club.total_periods != expected:
        raise InvalidConfigurationError(
            f"Total periods {club.total_periods} does not match "
            f"{club.periods_per_cycle} x {club.number_of_cycles}"
        )

    if not _is_whole_number(club.current_period) or not 1 <= club.current_period <= club.total_periods:
        raise InvalidConfigurationError(
            f"Current period must be between 1 and {club.total_periods}"
        )


def apply_club_changes(club: Club, **changes) -> Club:
    """
    Return a new Club with the changes applied and total_periods rebuilt.

    The original club is never modified, so a rejected edit leaves the
    caller's state intact.
    """
    unknown = set(changes) - set(EDITABLE_CLUB_FIELDS)
    if unknown:
        raise InvalidConfigurationError(f"Unknown club fields: {', '.join(sorted(unknown))}")

    updated = club.copy(**changes)
    _check_cycle_factors(updated)
    updated.total_periods = compute_total_periods(updated.periods_per_cycle, updated.number_of_cycles)
    validate_club(updated)
    return updated


# ============================================================
# ROSTER RESIZING
# ============================================================

def grow_for_roster(club: Club, member_count) -> Club:
    """Club after a member joins: a cycle always fits every member once."""
    periods_per_cycle = max(club.periods_per_cycle, member_count)
    return club.copy(
        periods_per_cycle=periods_per_cycle,
        total_periods=compute_total_periods(periods_per_cycle, club.number_of_cycles)
    )


def shrink_for_roster(club: Club, member_count) -> Club:
    """Club after a member leaves."""
    periods_per_cycle = max(1, member_count)
    updated = club.copy(
        periods_per_cycle=periods_per_cycle,
        total_periods=compute_total_periods(periods_per_cycle, club.number_of_cycles)
    )
    if updated.current_period > updated.total_periods:
        logger.warning(
            "Current period %s is now past the end of the schedule (%s periods)",
            updated.current_period, updated.total_periods
        )
    return updated


# ============================================================
# PERIOD CALENDAR
# ============================================================

def add_months(start, months):
    """
    Add months while keeping day in valid range (e.g., Jan 31 + 1 month => Feb 28/29).
    Time of day is preserved for datetimes.
    """
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    # last day of target month
    if m == 12:
        next_month = date(y + 1, 1, 1)
    else:
        next_month = date(y, m + 1, 1)
    last_day = next_month - timedelta(days=1)
    return start.replace(year=y, month=m, day=min(start.day, last_day.day))


def period_start(club: Club, period_number) -> datetime:
    offset = period_number - 1
    if club.frequency == Frequency.WEEKLY.value:
        return club.start_date + timedelta(weeks=offset)
    return add_months(club.start_date, offset)


def period_window(club: Club, period_number):
    """(start, end) of a period; a period ends where the next one starts."""
    return period_start(club, period_number), period_start(club, period_number + 1)
