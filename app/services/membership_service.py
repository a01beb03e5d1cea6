"""
MEMBERSHIP SERVICE
==================

Handles:
- Users (get or create by email)
- Creating / deleting groups
- Adding / removing roster members (club resized with the roster)
- Join requests (request, approve, reject)
"""

import logging

from app.domain import (
    Club, JoinRequestStatus, Member, MemberRole, generate_id, utcnow
)
from app.services.authorization_service import (
    can_manage_group, can_request_to_join, require_authorization,
    AuthorizationError
)
from app.services.club_service import refresh_member_compliance, sync_periods
from app.services.cycle_service import grow_for_roster, shrink_for_roster
from app.storage.base import NotFoundError

logger = logging.getLogger(__name__)

# Club every new group starts with
DEFAULT_CONTRIBUTION_AMOUNT = 100
DEFAULT_FREQUENCY = 'monthly'


class MembershipError(Exception):
    """Base exception for membership operations"""
    pass


class DuplicateMemberError(MembershipError):
    """Raised when the email is already on the group's roster"""
    pass


def _normalize_email(email):
    return (email or '').strip().lower()


# ============================================================
# USERS
# ============================================================

def get_or_create_user(store, name, email):
    """
    Return (user, created) for this email; the user is created on first
    sight.
    """
    email = _normalize_email(email)
    name = (name or '').strip()

    if not email:
        raise MembershipError("Email is required")

    user = store.get_user_by_email(email)
    if user:
        return user, False

    if not name:
        raise MembershipError("Name is required")

    user = store.create_user(name=name, email=email)
    logger.info("Created user %s <%s>", user.id, email)
    return user, True


# ============================================================
# GROUPS
# ============================================================

def create_group(store, user_id, name, description=None):
    """Create a group with a default club; the creator becomes its admin."""
    name = (name or '').strip()
    if not name:
        raise MembershipError("Group name is required!")

    if not user_id:
        raise AuthorizationError("Identify yourself to create a group")

    if not store.get_user(user_id):
        raise NotFoundError(f"User {user_id} not found")

    try:
        club = Club(
            name=name,
            contribution_amount=DEFAULT_CONTRIBUTION_AMOUNT,
            frequency=DEFAULT_FREQUENCY
        )
        with store.transaction():
            group = store.create_group(
                name=name,
                created_by=user_id,
                club=club,
                description=(description or '').strip() or None
            )
            sync_periods(store, group.id)

        logger.info("Group %s created by %s", group.id, user_id)
        return store.get_group(group.id)

    except Exception as e:
        logger.exception("Group creation failed")
        raise MembershipError(f"Failed to create group: {str(e)}")


def delete_group(store, group_id, user_id):
    """Admin deletes a group and everything it owns"""
    require_authorization(can_manage_group, store, user_id, group_id)
    store.delete_group(group_id)
    logger.info("Group %s deleted by %s", group_id, user_id)


def browse_groups(store, user_id, search=None):
    """
    Groups a user could ask to join: every group they are not in yet,
    optionally narrowed by a case-insensitive search over the group
    name, its description and the club name.
    """
    if not user_id:
        raise AuthorizationError("Identify yourself to browse groups")
    if not store.get_user(user_id):
        raise NotFoundError(f"User {user_id} not found")

    groups = store.get_groups_without_user(user_id)

    term = (search or '').strip().lower()
    if not term:
        return groups
    return [
        g for g in groups
        if term in g.name.lower()
        or term in (g.description or '').lower()
        or term in g.club.name.lower()
    ]


# ============================================================
# ADD MEMBER
# ============================================================

def add_member(store, group_id, added_by_user_id, name, email, phone=None):
    """
    Admin adds a member to the rotation.

    - scheduled_period = active roster size + 1, or one past the highest
      slot in use when that one is taken
    - a removed member with the same email is re-activated (same id,
      history kept) instead of duplicated
    - club.periods_per_cycle grows so one cycle covers every member
    """
    name = (name or '').strip()
    email = _normalize_email(email)
    phone = (phone or '').strip() or None

    if not name or not email:
        raise MembershipError("Name and email are required")

    try:
        require_authorization(can_manage_group, store, added_by_user_id, group_id)

        with store.transaction():
            roster = store.get_members(group_id, include_removed=True)
            active = [m for m in roster if m.is_active]

            if any(_normalize_email(m.email) == email for m in active):
                raise DuplicateMemberError(f"{email} is already a member of this group")

            # len + 1 repeats a slot once an earlier member has left
            scheduled_period = len(active) + 1
            taken = {m.scheduled_period for m in active}
            if scheduled_period in taken:
                scheduled_period = max(taken) + 1
            user = store.get_user_by_email(email)
            returning = next((m for m in roster if _normalize_email(m.email) == email), None)

            if returning:
                member = store.update_member(
                    group_id, returning.id,
                    name=name,
                    phone=phone,
                    joined_date=utcnow(),
                    missed_payments=0,
                    scheduled_period=scheduled_period,
                    removed_date=None
                )
            else:
                member = store.add_member(group_id, Member(
                    id=generate_id(),
                    name=name,
                    email=email,
                    phone=phone,
                    scheduled_period=scheduled_period,
                    user_id=user.id if user else None
                ))

            club = grow_for_roster(store.get_club(group_id), len(active) + 1)
            store.update_club(
                group_id,
                periods_per_cycle=club.periods_per_cycle,
                total_periods=club.total_periods
            )
            refresh_member_compliance(store, group_id)
            sync_periods(store, group_id)

        logger.info("Member %s added to group %s at slot %s", member.id, group_id, scheduled_period)
        return member

    except (AuthorizationError, MembershipError, NotFoundError):
        raise
    except Exception as e:
        logger.exception("Adding member to group %s failed", group_id)
        raise MembershipError(f"Failed to add member: {str(e)}")


# ============================================================
# REMOVE MEMBER (Admin action)
# ============================================================

def remove_member(store, group_id, member_id, removed_by_user_id):
    """
    Admin removes a member from the rotation.

    Soft delete: payments and periods that name the member stay.
    club.periods_per_cycle shrinks to the remaining roster (at least 1).
    """
    try:
        require_authorization(can_manage_group, store, removed_by_user_id, group_id)

        with store.transaction():
            active = store.get_members(group_id)
            if not any(m.id == member_id for m in active):
                raise NotFoundError(f"Member {member_id} is not on this roster")

            store.remove_member(group_id, member_id)

            club = shrink_for_roster(store.get_club(group_id), len(active) - 1)
            store.update_club(
                group_id,
                periods_per_cycle=club.periods_per_cycle,
                total_periods=club.total_periods
            )
            sync_periods(store, group_id)

        logger.info("Member %s removed from group %s", member_id, group_id)
        return True

    except (AuthorizationError, MembershipError, NotFoundError):
        raise
    except Exception as e:
        logger.exception("Removing member from group %s failed", group_id)
        raise MembershipError(f"Failed to remove member: {str(e)}")


# ============================================================
# JOIN REQUESTS
# ============================================================

def request_to_join(store, group_id, user_id, message=None):
    """A user asks to be added to a group's rotation"""
    user = store.get_user(user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    if not store.get_group(group_id):
        raise NotFoundError(f"Group {group_id} not found")

    require_authorization(can_request_to_join, store, user_id, group_id,
                          error_class=MembershipError)

    request = store.create_join_request(
        group_id=group_id,
        user_id=user.id,
        user_name=user.name,
        user_email=user.email,
        message=(message or '').strip() or None
    )
    logger.info("Join request %s for group %s from %s", request.id, group_id, user_id)
    return request


def get_pending_requests(store, group_id, user_id):
    require_authorization(can_manage_group, store, user_id, group_id)
    return store.get_join_requests(group_id, status=JoinRequestStatus.PENDING.value)


def _pending_request(store, group_id, request_id):
    request = store.get_join_request(request_id)
    if not request or request.group_id != group_id:
        raise NotFoundError(f"Join request {request_id} not found")
    if request.status != JoinRequestStatus.PENDING.value:
        raise MembershipError(f"Join request is already {request.status}")
    return request


def approve_join_request(store, group_id, request_id, approved_by_user_id):
    """
    Admin approves a join request.

    The requester gets a 'member' role in the group and a slot at the
    end of the rotation.
    """
    require_authorization(can_manage_group, store, approved_by_user_id, group_id)
    request = _pending_request(store, group_id, request_id)

    with store.transaction():
        store.add_membership(group_id, request.user_id, MemberRole.MEMBER.value)
        member = add_member(
            store, group_id, approved_by_user_id,
            name=request.user_name,
            email=request.user_email
        )
        store.update_join_request_status(request_id, JoinRequestStatus.APPROVED.value)

    logger.info("Join request %s approved by %s", request_id, approved_by_user_id)
    return member


def reject_join_request(store, group_id, request_id, rejected_by_user_id):
    require_authorization(can_manage_group, store, rejected_by_user_id, group_id)
    _pending_request(store, group_id, request_id)
    request = store.update_join_request_status(request_id, JoinRequestStatus.REJECTED.value)
    logger.info("Join request %s rejected by %s", request_id, rejected_by_user_id)
    return request
