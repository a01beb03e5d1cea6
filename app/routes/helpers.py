"""
Request helpers shared by the blueprints.
"""

from flask import request

from app.services.authorization_service import (
    can_view_group, require_authorization
)

USER_HEADER = 'X-User-Id'


def acting_user_id():
    """User the request acts as (identification only, no authentication)."""
    return request.headers.get(USER_HEADER)


def json_body():
    return request.get_json(silent=True) or {}


def require_viewer(store, group_id):
    user_id = acting_user_id()
    require_authorization(can_view_group, store, user_id, group_id)
    return user_id
