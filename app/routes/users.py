"""
USER ROUTES
===========
Get-or-create by email (no passwords) and a user's groups.
"""

from flask import Blueprint, jsonify

from app.routes.helpers import json_body
from app.services.dashboard_service import group_card
from app.services.membership_service import get_or_create_user
from app.storage import get_store
from app.storage.base import NotFoundError

users_bp = Blueprint('users', __name__)


# ============== SIGN IN (GET OR CREATE) ==============
@users_bp.route('/users', methods=['POST'])
def sign_in():
    data = json_body()
    user, created = get_or_create_user(get_store(), data.get('name'), data.get('email'))
    return jsonify(user.to_dict()), 201 if created else 200


# ============== MY GROUPS ==============
@users_bp.route('/users/<user_id>/groups')
def list_groups(user_id):
    store = get_store()
    if not store.get_user(user_id):
        raise NotFoundError(f"User {user_id} not found")

    groups = []
    for group in store.get_groups_for_user(user_id):
        card = group_card(group)
        card['role'] = next(m.role for m in group.memberships if m.user_id == user_id)
        groups.append(card)
    return jsonify(groups)
