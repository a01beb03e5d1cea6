"""
COMPLIANCE SERVICE
==================

Counts the contributions each member has missed.

A period only counts once it has closed: the active period and anything
after it are never "missed". With the pre-join exemption on, periods
that had already closed when the member joined are not charged either.
"""

from __future__ import annotations

from enum import Enum

from app.domain import Club, Member
from app.services.cycle_service import period_window


class ComplianceStatus(Enum):
    UP_TO_DATE = 'up_to_date'
    BEHIND = 'behind'
    DEFAULTING = 'defaulting'


# Members at or above this many missed periods are flagged as defaulting
DEFAULTING_THRESHOLD = 2


def has_paid(member_id, period, payments):
    return any(p.member_id == member_id and p.period == period for p in payments)


def paid_periods(member_id, payments):
    return {p.period for p in payments if p.member_id == member_id}


def missed_payments(member: Member, payments, current_period, first_liable_period=1):
    """
    Number of closed periods (1 .. current_period - 1) without a payment.

    Periods before first_liable_period are exempt.
    """
    paid = paid_periods(member.id, payments)
    start = max(1, first_liable_period)
    return sum(1 for period in range(start, current_period) if period not in paid)


def first_liable_period(member: Member, club: Club):
    """
    First period the member can be charged for.

    That is the first period still open when the member joined; periods
    that had already ended before joined_date are skipped. Never goes
    past the club's current period.
    """
    period = 1
    while period < club.current_period:
        _, end = period_window(club, period)
        if end > member.joined_date:
            break
        period += 1
    return period


def compliance_status(member: Member):
    if member.missed_payments == 0:
        return ComplianceStatus.UP_TO_DATE
    if member.missed_payments >= DEFAULTING_THRESHOLD:
        return ComplianceStatus.DEFAULTING
    return ComplianceStatus.BEHIND


def refresh_missed_payments(members, payments, club: Club, exempt_pre_join=True) -> list:
    """Copies of the members with missed_payments recomputed."""
    refreshed = []
    for member in members:
        first = first_liable_period(member, club) if exempt_pre_join else 1
        refreshed.append(member.copy(
            missed_payments=missed_payments(member, payments, club.current_period, first)
        ))
    return refreshed
