"""
PERIOD SERVICE
==============

Aggregates the payments of one period into progress figures, and the
pure mark-paid / mark-unpaid toggle over a payment list.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.domain import Club, Payment, PeriodStatus, utcnow
from app.services.compliance_service import has_paid


@dataclass
class PeriodSummary:
    period: int
    total_collected: float
    paid_count: int
    pending_count: int
    expected_total: float
    completion_ratio: float

    def to_dict(self):
        return {
            'period': self.period,
            'total_collected': self.total_collected,
            'paid_count': self.paid_count,
            'pending_count': self.pending_count,
            'expected_total': self.expected_total,
            'completion_ratio': self.completion_ratio,
            'completion_percent': round(self.completion_ratio * 100),
        }


def period_status(period_number, current_period):
    if period_number < current_period:
        return PeriodStatus.COMPLETED.value
    if period_number == current_period:
        return PeriodStatus.ACTIVE.value
    return PeriodStatus.UPCOMING.value


def payments_for_period(period_number, payments):
    return [p for p in payments if p.period == period_number]


def period_summary(period_number, members, payments, club: Club) -> PeriodSummary:
    """
    Progress of one period.

    paid_count counts distinct members, so duplicate payments never
    inflate it. total_collected still sums every payment recorded.
    """
    members = list(members)
    period_payments = payments_for_period(period_number, payments)

    total_collected = sum(p.amount for p in period_payments)
    paid_count = len({p.member_id for p in period_payments})
    member_count = len(members)

    return PeriodSummary(
        period=period_number,
        total_collected=total_collected,
        paid_count=paid_count,
        pending_count=max(0, member_count - paid_count),
        expected_total=member_count * club.contribution_amount,
        completion_ratio=paid_count / member_count if member_count else 0.0,
    )


# ============================================================
# MARK PAID / UNPAID
# ============================================================

def mark_paid(payments, member_id, period_number, club: Club, now=None) -> list:
    """New payment list with one contribution added for (member, period)."""
    payment = Payment(
        member_id=member_id,
        amount=club.contribution_amount,
        date=now or utcnow(),
        period=period_number
    )
    return list(payments) + [payment]


def mark_unpaid(payments, member_id, period_number) -> list:
    """New payment list without any payment for (member, period)."""
    return [
        p for p in payments
        if not (p.member_id == member_id and p.period == period_number)
    ]


def toggle_payment(payments, member_id, period_number, club: Club, now=None) -> list:
    if has_paid(member_id, period_number, payments):
        return mark_unpaid(payments, member_id, period_number)
    return mark_paid(payments, member_id, period_number, club, now=now)
