"""
PAYMENT SERVICE - ATOMIC CONTRIBUTION RECORDING
===============================================

CRITICAL BUSINESS RULES:
1. One payment per (member, period); a second one is rejected
2. Mark unpaid removes EVERY payment for (member, period)
3. Payments only count toward periods inside the club's schedule
4. Each change refreshes the period's total and the roster's missed counts
   in the same transaction
"""

import logging

from app.domain import utcnow
from app.services.authorization_service import (
    can_manage_group, require_authorization, AuthorizationError
)
from app.services.club_service import refresh_member_compliance
from app.services.compliance_service import has_paid
from app.services.period_service import mark_paid as add_to_ledger, period_summary
from app.services.rotation_service import check_period_number, ScheduleError
from app.storage.base import NotFoundError

logger = logging.getLogger(__name__)


# ============================================================
# CUSTOM EXCEPTIONS
# ============================================================

class PaymentError(Exception):
    """Base exception for payment operations"""
    pass


class InvalidAmountError(PaymentError):
    """Raised when amount is invalid"""
    pass


class DuplicatePaymentError(PaymentError):
    """Raised when the member already paid for the period"""
    pass


# ============================================================
# HELPERS
# ============================================================

def _active_member(store, group_id, member_id):
    for member in store.get_members(group_id):
        if member.id == member_id:
            return member
    raise NotFoundError(f"Member {member_id} is not on this roster")


def _refresh_period_total(store, group_id, period_number):
    """Keep the stored period's total_collected equal to its payments."""
    periods = {p.number for p in store.get_periods(group_id)}
    if period_number not in periods:
        return
    summary = period_summary(
        period_number,
        store.get_members(group_id),
        store.get_payments(group_id),
        store.get_club(group_id)
    )
    store.update_period(group_id, period_number, total_collected=summary.total_collected)


# ============================================================
# MARK PAID (ATOMIC)
# ============================================================

def mark_paid(store, group_id, member_id, period_number, user_id, now=None):
    """
    Record the member's contribution for a period.

    Amount is the club's contribution amount, dated now.
    Returns the Payment recorded.
    """
    try:
        require_authorization(can_manage_group, store, user_id, group_id)

        club = store.get_club(group_id)
        check_period_number(period_number, club.total_periods)

        if not club.contribution_amount or club.contribution_amount <= 0:
            raise InvalidAmountError("Contribution amount must be greater than 0")

        _active_member(store, group_id, member_id)

        with store.transaction():
            payments = store.get_payments(group_id)
            if has_paid(member_id, period_number, payments):
                raise DuplicatePaymentError(
                    f"Member {member_id} has already paid for period {period_number}"
                )

            payment = add_to_ledger(payments, member_id, period_number, club, now=now or utcnow())[-1]
            store.add_payment(group_id, payment)

            _refresh_period_total(store, group_id, period_number)
            refresh_member_compliance(store, group_id)

        logger.info("Member %s paid %s for period %s in group %s",
                    member_id, payment.amount, period_number, group_id)
        return payment

    except (AuthorizationError, PaymentError, ScheduleError, NotFoundError):
        raise
    except Exception as e:
        logger.exception("Recording payment failed for group %s", group_id)
        raise PaymentError(f"Failed to record payment: {str(e)}")


# ============================================================
# MARK UNPAID (ATOMIC)
# ============================================================

def mark_unpaid(store, group_id, member_id, period_number, user_id):
    """
    Remove the member's payment(s) for a period.
    Returns how many payments were removed (0 if none existed).
    """
    try:
        require_authorization(can_manage_group, store, user_id, group_id)

        club = store.get_club(group_id)
        check_period_number(period_number, club.total_periods)

        with store.transaction():
            removed = store.remove_payment(group_id, member_id, period_number)
            _refresh_period_total(store, group_id, period_number)
            refresh_member_compliance(store, group_id)

        logger.info("Removed %s payment(s) of member %s for period %s in group %s",
                    removed, member_id, period_number, group_id)
        return removed

    except (AuthorizationError, PaymentError, ScheduleError, NotFoundError):
        raise
    except Exception as e:
        logger.exception("Removing payment failed for group %s", group_id)
        raise PaymentError(f"Failed to remove payment: {str(e)}")


def toggle_payment(store, group_id, member_id, period_number, user_id, now=None):
    """Flip the paid state of (member, period). Returns True if now paid."""
    if has_paid(member_id, period_number, store.get_payments(group_id)):
        mark_unpaid(store, group_id, member_id, period_number, user_id)
        return False
    mark_paid(store, group_id, member_id, period_number, user_id, now=now)
    return True
