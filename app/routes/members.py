"""
MEMBER ROUTES
=============
Roster listing and admin add / remove.
"""

from flask import Blueprint, jsonify

from app.routes.helpers import acting_user_id, json_body, require_viewer
from app.services.dashboard_service import member_roster, member_view
from app.services.membership_service import add_member, remove_member
from app.storage import get_store

members_bp = Blueprint('members', __name__)


@members_bp.route('/groups/<group_id>/members')
def list_members(group_id):
    store = get_store()
    require_viewer(store, group_id)
    return jsonify(member_roster(store, group_id))


@members_bp.route('/groups/<group_id>/members', methods=['POST'])
def create_member(group_id):
    data = json_body()
    member = add_member(
        get_store(), group_id, acting_user_id(),
        name=data.get('name'),
        email=data.get('email'),
        phone=data.get('phone')
    )
    return jsonify(member_view(member)), 201


@members_bp.route('/groups/<group_id>/members/<member_id>', methods=['DELETE'])
def delete_member(group_id, member_id):
    remove_member(get_store(), group_id, member_id, acting_user_id())
    return '', 204
