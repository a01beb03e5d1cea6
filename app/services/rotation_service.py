"""
ROTATION SERVICE
================

Decides who receives the pot in a given period.

RULES:
1. Each member's effective rotation key is scheduled_period + missed_payments,
   so every missed contribution pushes the payout one slot later.
2. Members are ordered by that key with a stable sort (ties keep roster order).
3. Period N goes to position (N - 1) mod member_count of that order, so the
   queue wraps into later cycles with penalties still applied.
4. An empty roster has no recipient. That is a normal state, not an error.
"""

from __future__ import annotations

from typing import Optional

from app.domain import Club, Member
from app.services.cycle_service import cycle_of_period, period_in_cycle
from app.services.period_service import period_status


# ============================================================
# CUSTOM EXCEPTIONS
# ============================================================

class ScheduleError(Exception):
    """Base exception for rotation scheduling"""
    pass


class UnknownPeriodError(ScheduleError):
    """Raised when a period number falls outside the club's schedule"""
    pass


# ============================================================
# ROTATION KEYS
# ============================================================

def effective_rotation_key(member: Member):
    return member.scheduled_period + member.missed_payments


def next_scheduled_period(member: Member):
    """
    Period the member is currently expected to receive in.

    Informational only: the authoritative recipient of a concrete period
    comes from recipient_for_period.
    """
    return effective_rotation_key(member)


def payout_delay(member: Member):
    """Number of slots the member's payout has been pushed back."""
    return member.missed_payments


def rotation_order(members) -> list:
    # sorted() is stable, equal keys keep roster order
    return sorted(members, key=effective_rotation_key)


# ============================================================
# RECIPIENT LOOKUP
# ============================================================

def check_period_number(period_number, total_periods=None):
    """Raise UnknownPeriodError unless 1 <= period_number <= total_periods."""
    if isinstance(period_number, bool) or not isinstance(period_number, int):
        raise UnknownPeriodError(f"Period must be a whole number, got {period_number!r}")
    if period_number < 1:
        raise UnknownPeriodError(f"Period {period_number} does not exist (periods start at 1)")
    if total_periods is not None and period_number > total_periods:
        raise UnknownPeriodError(
            f"Period {period_number} does not exist (schedule has {total_periods} periods)"
        )


def recipient_for_period(period_number, members, total_periods=None) -> Optional[Member]:
    """
    Member entitled to the payout of period_number.

    Returns None when there are no members. Pass total_periods to have
    out-of-schedule period numbers rejected instead of wrapped.
    """
    check_period_number(period_number, total_periods)

    members = list(members)
    if not members:
        return None

    order = rotation_order(members)
    return order[(period_number - 1) % len(order)]


def schedule_length(club: Club, members):
    """Periods shown in the schedule; falls back to the roster size."""
    return club.total_periods or len(members)


def build_schedule(club: Club, members) -> list:
    """
    Full rotation schedule for the club.

    One entry per period with its recipient (None while the roster is
    empty), status relative to the current period and the pot size.
    """
    members = list(members)
    order = rotation_order(members)
    expected_amount = len(members) * club.contribution_amount

    schedule = []
    for number in range(1, schedule_length(club, members) + 1):
        recipient = order[(number - 1) % len(order)] if order else None

        schedule.append({
            'number': number,
            'cycle': cycle_of_period(number, club.periods_per_cycle),
            'period_in_cycle': period_in_cycle(number, club.periods_per_cycle),
            'recipient': recipient,
            'status': period_status(number, club.current_period),
            'expected_amount': expected_amount,
        })

    return schedule
