"""
CLUB SERVICE
============

Handles:
- Club settings edits (validated, total_periods rebuilt atomically)
- Materialising period records from the rotation schedule
- Writing recomputed missed-payment counts back to the roster
- Closing the active period and moving to the next one
"""

import logging

from flask import current_app, has_app_context

from app.domain import PeriodStatus, Period, parse_datetime
from app.services.authorization_service import (
    can_manage_group, require_authorization, AuthorizationError
)
from app.services.compliance_service import refresh_missed_payments
from app.services.cycle_service import (
    apply_club_changes, period_window, ClubConfigError, InvalidConfigurationError
)
from app.services.period_service import period_status, period_summary
from app.services.rotation_service import (
    recipient_for_period, ScheduleError, UnknownPeriodError
)
from app.storage.base import NotFoundError

logger = logging.getLogger(__name__)


def exempt_pre_join_periods():
    """Whether periods closed before a member joined are exempt (config flag)."""
    if has_app_context():
        return current_app.config.get('ROSCA_EXEMPT_PRE_JOIN_PERIODS', True)
    return True


# ============================================================
# COMPLIANCE WRITE-BACK
# ============================================================

def refresh_member_compliance(store, group_id):
    """
    Recompute missed_payments for every active member and persist the
    counts that changed. Returns the refreshed roster.
    """
    club = store.get_club(group_id)
    members = store.get_members(group_id)
    payments = store.get_payments(group_id)

    refreshed = refresh_missed_payments(
        members, payments, club, exempt_pre_join=exempt_pre_join_periods()
    )
    for before, after in zip(members, refreshed):
        if before.missed_payments != after.missed_payments:
            store.update_member(group_id, after.id, missed_payments=after.missed_payments)
            logger.info(
                "Member %s missed payments %s -> %s",
                after.id, before.missed_payments, after.missed_payments
            )
    return refreshed


# ============================================================
# PERIOD RECORDS
# ============================================================

def sync_periods(store, group_id):
    """
    Bring the stored period records in line with the club and roster.

    - creates missing periods 1..total_periods with their calendar window
    - drops periods past the end of the schedule
    - sets every status from the club's current period
    - reassigns recipients and calendar windows of periods that are not
      completed yet (completed periods keep what they paid out under)
    - has_received is true exactly for members who are the recipient of
      a completed period
    """
    club = store.get_club(group_id)
    members = store.get_members(group_id)
    existing = {p.number: p for p in store.get_periods(group_id)}

    removed = store.remove_periods_after(group_id, club.total_periods)
    if removed:
        logger.info("Dropped %s period(s) past period %s in group %s",
                    removed, club.total_periods, group_id)

    for number in range(1, club.total_periods + 1):
        status = period_status(number, club.current_period)
        recipient = recipient_for_period(number, members)
        recipient_id = recipient.id if recipient else None

        period = existing.get(number)
        if period is None:
            start, end = period_window(club, number)
            store.add_period(group_id, Period(
                number=number,
                recipient_id=recipient_id,
                start_date=start,
                end_date=end,
                status=status
            ))
            continue

        changes = {}
        if period.status != status:
            changes['status'] = status
        if status != PeriodStatus.COMPLETED.value:
            if period.recipient_id != recipient_id:
                changes['recipient_id'] = recipient_id
            start, end = period_window(club, number)
            if (period.start_date, period.end_date) != (start, end):
                changes.update(start_date=start, end_date=end)
        if changes:
            store.update_period(group_id, number, **changes)

    periods = store.get_periods(group_id)
    paid_out = {p.recipient_id for p in periods if p.status == PeriodStatus.COMPLETED.value}
    for member in members:
        received = member.id in paid_out
        if member.has_received != received:
            store.update_member(group_id, member.id, has_received=received)
            logger.info("Member %s has_received -> %s", member.id, received)

    return periods


# ============================================================
# CLUB SETTINGS
# ============================================================

def update_club_settings(store, group_id, user_id, **changes):
    """
    Apply an admin's edit to the club.

    The edit is validated before anything is written, so a rejected
    edit (InvalidConfigurationError) leaves the stored club untouched.
    """
    require_authorization(can_manage_group, store, user_id, group_id)

    if 'start_date' in changes:
        try:
            changes['start_date'] = parse_datetime(changes['start_date'])
        except (TypeError, ValueError):
            raise InvalidConfigurationError(
                f"Start date must be an ISO 8601 date, got {changes['start_date']!r}"
            )
        if changes['start_date'] is None:
            raise InvalidConfigurationError("Start date is required")

    club = apply_club_changes(store.get_club(group_id), **changes)

    try:
        with store.transaction():
            store.update_club(
                group_id,
                name=club.name,
                contribution_amount=club.contribution_amount,
                frequency=club.frequency,
                current_period=club.current_period,
                periods_per_cycle=club.periods_per_cycle,
                number_of_cycles=club.number_of_cycles,
                total_periods=club.total_periods,
                start_date=club.start_date
            )
            refresh_member_compliance(store, group_id)
            sync_periods(store, group_id)

        logger.info("Club of group %s updated by %s: %s", group_id, user_id, sorted(changes))
        return club

    except (AuthorizationError, ClubConfigError, NotFoundError):
        raise
    except Exception as e:
        logger.exception("Club update failed for group %s", group_id)
        raise ClubConfigError(f"Failed to update club: {str(e)}")


# ============================================================
# PERIOD TRANSITION
# ============================================================

def advance_period(store, group_id, user_id):
    """
    Close the active period and open the next one.

    ATOMIC:
    - active period -> completed, total_collected frozen
    - its recipient -> has_received (via sync_periods)
    - club.current_period + 1
    - missed payments recomputed (the closed period now counts)
    - remaining periods re-synced (recipients may shift)
    """
    require_authorization(can_manage_group, store, user_id, group_id)

    club = store.get_club(group_id)
    if club.current_period >= club.total_periods:
        raise UnknownPeriodError(
            f"Period {club.current_period} is the last of {club.total_periods}; "
            f"there is no period to advance to"
        )

    try:
        with store.transaction():
            sync_periods(store, group_id)

            members = store.get_members(group_id)
            payments = store.get_payments(group_id)
            closing = next(p for p in store.get_periods(group_id)
                           if p.number == club.current_period)
            summary = period_summary(closing.number, members, payments, club)

            store.update_period(
                group_id, closing.number,
                status=PeriodStatus.COMPLETED.value,
                total_collected=summary.total_collected
            )
            store.update_club(group_id, current_period=club.current_period + 1)
            refresh_member_compliance(store, group_id)
            sync_periods(store, group_id)

        logger.info("Group %s advanced to period %s", group_id, club.current_period + 1)
        return store.get_club(group_id)

    except (AuthorizationError, ScheduleError, NotFoundError):
        raise
    except Exception as e:
        logger.exception("Period advance failed for group %s", group_id)
        raise ScheduleError(f"Failed to advance period: {str(e)}")
