"""
CENTRALIZED AUTHORIZATION SERVICE
==================================

All permission checks live here.
Routes and other services call these functions.

Roles come from group memberships: 'admin' manages the roster, the club
settings, payments and period transitions; 'member' can only view.
"""

from app.domain import MemberRole, JoinRequestStatus


class AuthorizationError(Exception):
    """Raised when authorization fails"""
    pass


# ============================================================
# GROUP MEMBERSHIP CHECKS
# ============================================================

def get_membership(store, user_id, group_id):
    """Membership record of a user in a group, or None"""
    for membership in store.get_memberships(group_id):
        if membership.user_id == user_id:
            return membership
    return None


def is_group_member(store, user_id, group_id):
    """Check if user holds any role in group"""
    return get_membership(store, user_id, group_id) is not None


def is_group_admin(store, user_id, group_id):
    """Check if user is an admin of group"""
    membership = get_membership(store, user_id, group_id)
    return membership is not None and membership.role == MemberRole.ADMIN.value


# ============================================================
# ADMIN ACTIONS
# ============================================================

def can_manage_group(store, user_id, group_id):
    """
    Check if user can change the roster, club settings, payments
    or periods of a group.

    Requirements:
    - User must be group admin
    """
    if not user_id:
        return False, "Identify yourself to manage this group"

    if not is_group_member(store, user_id, group_id):
        return False, "You are not a member of this group"

    if not is_group_admin(store, user_id, group_id):
        return False, "Only group admin can manage this group"

    return True, None


def can_view_group(store, user_id, group_id):
    """
    Check if user can view a group's dashboard, roster and schedule.

    Requirements:
    - User must hold a membership in the group
    """
    if not user_id or not is_group_member(store, user_id, group_id):
        return False, "You are not a member of this group"

    return True, None


# ============================================================
# JOIN REQUEST AUTHORIZATION
# ============================================================

def can_request_to_join(store, user_id, group_id):
    """
    Check if user can ask to join a group.

    Requirements:
    - User must not already belong to the group
    - User must not have another pending request for it
    """
    if is_group_member(store, user_id, group_id):
        return False, "You are already a member of this group"

    pending = store.get_join_requests(group_id, status=JoinRequestStatus.PENDING.value)
    if any(r.user_id == user_id for r in pending):
        return False, "You already have a pending request for this group"

    return True, None


# ============================================================
# HELPER FUNCTION: REQUIRE AUTHORIZATION
# ============================================================

def require_authorization(check_func, *args, error_class=AuthorizationError):
    """
    Wrapper to raise exception if authorization fails.

    Usage:
        require_authorization(can_manage_group, store, user_id, group_id)
    """
    allowed, reason = check_func(*args)
    if not allowed:
        raise error_class(reason)
