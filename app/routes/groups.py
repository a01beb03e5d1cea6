"""
GROUP MANAGEMENT ROUTES
=======================
Group lifecycle, browsing, club settings and join requests.
"""

from flask import Blueprint, jsonify, request

from app.routes.helpers import acting_user_id, json_body, require_viewer
from app.services.club_service import update_club_settings
from app.services.dashboard_service import group_card, group_dashboard, member_view
from app.services.membership_service import (
    browse_groups, create_group, delete_group, request_to_join, get_pending_requests,
    approve_join_request, reject_join_request
)
from app.services.cycle_service import EDITABLE_CLUB_FIELDS
from app.storage import get_store

groups_bp = Blueprint('groups', __name__)


# ============== CREATE NEW GROUP ==============
@groups_bp.route('/groups', methods=['POST'])
def create():
    data = json_body()
    group = create_group(
        get_store(),
        acting_user_id(),
        data.get('name'),
        description=data.get('description')
    )
    return jsonify(group.to_dict()), 201


# ============== BROWSE GROUPS TO JOIN ==============
@groups_bp.route('/groups')
def browse():
    groups = browse_groups(get_store(), acting_user_id(), request.args.get('search'))
    return jsonify([group_card(g) for g in groups])


# ============== VIEW SINGLE GROUP (DASHBOARD) ==============
@groups_bp.route('/groups/<group_id>')
def view_group(group_id):
    store = get_store()
    require_viewer(store, group_id)
    return jsonify(group_dashboard(store, group_id))


# ============== DELETE GROUP (Admin) ==============
@groups_bp.route('/groups/<group_id>', methods=['DELETE'])
def remove_group(group_id):
    delete_group(get_store(), group_id, acting_user_id())
    return '', 204


# ============== CLUB SETTINGS ==============
@groups_bp.route('/groups/<group_id>/club')
def view_club(group_id):
    store = get_store()
    require_viewer(store, group_id)
    return jsonify(store.get_club(group_id).to_dict())


@groups_bp.route('/groups/<group_id>/club', methods=['PATCH'])
def edit_club(group_id):
    data = json_body()
    changes = {k: v for k, v in data.items() if k in EDITABLE_CLUB_FIELDS}
    club = update_club_settings(get_store(), group_id, acting_user_id(), **changes)
    return jsonify(club.to_dict())


# ============== JOIN REQUESTS ==============
@groups_bp.route('/groups/<group_id>/join-requests', methods=['POST'])
def ask_to_join(group_id):
    data = json_body()
    join_request = request_to_join(get_store(), group_id, acting_user_id(), data.get('message'))
    return jsonify(join_request.to_dict()), 201


@groups_bp.route('/groups/<group_id>/join-requests')
def list_join_requests(group_id):
    requests = get_pending_requests(get_store(), group_id, acting_user_id())
    return jsonify([r.to_dict() for r in requests])


@groups_bp.route('/groups/<group_id>/join-requests/<request_id>/approve', methods=['POST'])
def approve_request(group_id, request_id):
    member = approve_join_request(get_store(), group_id, request_id, acting_user_id())
    return jsonify(member_view(member))


@groups_bp.route('/groups/<group_id>/join-requests/<request_id>/reject', methods=['POST'])
def reject_request(group_id, request_id):
    join_request = reject_join_request(get_store(), group_id, request_id, acting_user_id())
    return jsonify(join_request.to_dict())
