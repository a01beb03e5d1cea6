"""
PERIOD & SCHEDULE ROUTES
========================
Rotation schedule, per-period payment tracking and period transitions.
"""

from flask import Blueprint, jsonify

from app.routes.helpers import acting_user_id, require_viewer
from app.services.club_service import advance_period
from app.services.dashboard_service import period_detail, rotation_schedule
from app.services.payment_service import mark_paid, mark_unpaid
from app.storage import get_store

periods_bp = Blueprint('periods', __name__)


# ============== ROTATION SCHEDULE ==============
@periods_bp.route('/groups/<group_id>/schedule')
def view_schedule(group_id):
    store = get_store()
    require_viewer(store, group_id)
    return jsonify(rotation_schedule(store, group_id))


# ============== PERIOD PAYMENTS ==============
@periods_bp.route('/groups/<group_id>/periods/<int:number>')
def view_period(group_id, number):
    store = get_store()
    require_viewer(store, group_id)
    return jsonify(period_detail(store, group_id, number))


@periods_bp.route('/groups/<group_id>/periods/<int:number>/payments/<member_id>', methods=['POST'])
def pay(group_id, number, member_id):
    payment = mark_paid(get_store(), group_id, member_id, number, acting_user_id())
    return jsonify(payment.to_dict()), 201


@periods_bp.route('/groups/<group_id>/periods/<int:number>/payments/<member_id>', methods=['DELETE'])
def unpay(group_id, number, member_id):
    removed = mark_unpaid(get_store(), group_id, member_id, number, acting_user_id())
    return jsonify({'removed': removed})


# ============== CLOSE ACTIVE PERIOD ==============
@periods_bp.route('/groups/<group_id>/periods/advance', methods=['POST'])
def advance(group_id):
    club = advance_period(get_store(), group_id, acting_user_id())
    return jsonify(club.to_dict())
