"""
DASHBOARD SERVICE
=================

Read-only view state for a group, recomputed from the store on every
call: dashboard stats, roster with compliance, rotation schedule and
per-period payment detail.
"""

from app.services.compliance_service import compliance_status, has_paid
from app.services.cycle_service import cycle_info
from app.services.period_service import period_summary
from app.services.rotation_service import (
    build_schedule, check_period_number, next_scheduled_period, payout_delay,
    recipient_for_period
)
from app.storage.base import NotFoundError

RECENT_ACTIVITY_LIMIT = 5


def _group_or_404(store, group_id):
    group = store.get_group(group_id)
    if not group:
        raise NotFoundError(f"Group {group_id} not found")
    return group


def member_view(member):
    data = member.to_dict()
    data['compliance_status'] = compliance_status(member).value
    data['next_scheduled_period'] = next_scheduled_period(member)
    data['payout_delay'] = payout_delay(member)
    return data


def group_card(group):
    """Listing entry: group identity, roster size and the club summary."""
    return {
        'id': group.id,
        'name': group.name,
        'description': group.description,
        'member_count': len(group.members),
        'club': group.club.to_dict(),
    }


def _current_recipient(group):
    """Recipient recorded on the active period, else the scheduler's pick."""
    members_by_id = {m.id: m for m in group.members}
    for period in group.periods:
        if period.status == 'active' and period.recipient_id in members_by_id:
            return members_by_id[period.recipient_id]
    if not group.members or group.club.current_period > group.club.total_periods:
        return None
    return recipient_for_period(group.club.current_period, group.members)


def _recent_activity(group):
    names = {m.id: m.name for m in group.members}
    recent = group.payments[-RECENT_ACTIVITY_LIMIT:]
    return [
        {
            'member_id': p.member_id,
            'member_name': names.get(p.member_id, 'Unknown'),
            'amount': p.amount,
            'date': p.date.isoformat(),
            'period': p.period,
        }
        for p in reversed(recent)
    ]


# ============================================================
# DASHBOARD
# ============================================================

def group_dashboard(store, group_id):
    group = _group_or_404(store, group_id)
    club = group.club
    summary = period_summary(club.current_period, group.members, group.payments, club)
    recipient = _current_recipient(group)

    return {
        'group': {
            'id': group.id,
            'name': group.name,
            'description': group.description,
            'created_by': group.created_by,
            'created_date': group.created_date.isoformat(),
        },
        'club': club.to_dict(),
        'stats': {
            'total_members': len(group.members),
            'contribution_amount': club.contribution_amount,
            'current_period': club.current_period,
            'total_periods': club.total_periods,
            'total_pot': summary.expected_total,
        },
        'current_recipient': member_view(recipient) if recipient else None,
        'current_period': summary.to_dict(),
        'cycle': cycle_info(club),
        'recent_activity': _recent_activity(group),
    }


# ============================================================
# ROSTER / SCHEDULE / PERIOD DETAIL
# ============================================================

def member_roster(store, group_id):
    group = _group_or_404(store, group_id)
    return [member_view(m) for m in group.members]


def rotation_schedule(store, group_id):
    group = _group_or_404(store, group_id)
    schedule = build_schedule(group.club, group.members)

    entries = []
    for entry in schedule:
        recipient = entry['recipient']
        entries.append(dict(entry, recipient={
            'id': recipient.id,
            'name': recipient.name,
            'email': recipient.email,
        } if recipient else None))

    return {
        'available': bool(group.members),
        'periods': entries,
        'cycle': cycle_info(group.club),
    }


def period_detail(store, group_id, period_number):
    group = _group_or_404(store, group_id)
    check_period_number(period_number, group.club.total_periods)

    summary = period_summary(period_number, group.members, group.payments, group.club)
    recipient = recipient_for_period(period_number, group.members, group.club.total_periods)
    stored = next((p for p in group.periods if p.number == period_number), None)

    return {
        'summary': summary.to_dict(),
        'recipient_id': stored.recipient_id if stored else (recipient.id if recipient else None),
        'status': stored.status if stored else None,
        'members': [
            {
                'id': m.id,
                'name': m.name,
                'email': m.email,
                'amount': group.club.contribution_amount,
                'paid': has_paid(m.id, period_number, group.payments),
            }
            for m in group.members
        ],
    }
