"""
SQL STORE
=========

RoscaStore over Flask-SQLAlchemy (app.models).

Every public method runs inside the current Flask app context.
Outside transaction() each write commits on its own; inside, writes are
only flushed and the whole batch commits (or rolls back) at the end.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import threading

from sqlalchemy.exc import IntegrityError

from app.extensions import db
from app.models import (
    Group, GroupMembership, JoinRequest, Member, Payment, Period, User
)
from app.domain import utcnow
from app.storage.base import NotFoundError, RoscaStore, StorageError

logger = logging.getLogger(__name__)


class SqlAlchemyStore(RoscaStore):

    def __init__(self):
        self._local = threading.local()

    # ============================================================
    # SESSION HANDLING
    # ============================================================

    @property
    def _depth(self):
        return getattr(self._local, 'depth', 0)

    @contextmanager
    def transaction(self):
        self._local.depth = self._depth + 1
        try:
            yield self
            if self._depth == 1:
                db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            raise StorageError(f"Constraint violated: {e.orig}")
        except Exception:
            db.session.rollback()
            logger.warning("Rolled back store transaction")
            raise
        finally:
            self._local.depth -= 1

    def _save(self):
        """Commit now, or just flush when a transaction is open."""
        try:
            if self._depth:
                db.session.flush()
            else:
                db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            raise StorageError(f"Constraint violated: {e.orig}")

    @staticmethod
    def _group_row(group_id):
        group = db.session.get(Group, group_id)
        if not group:
            raise NotFoundError(f"Group {group_id} not found")
        return group

    @staticmethod
    def _member_row(group_id, member_id):
        member = Member.query.filter_by(group_id=group_id, id=member_id).first()
        if not member:
            raise NotFoundError(f"Member {member_id} not found")
        return member

    # ============================================================
    # USERS
    # ============================================================

    def get_user(self, user_id):
        user = db.session.get(User, user_id)
        return user.to_snapshot() if user else None

    def get_user_by_email(self, email):
        user = User.query.filter_by(email=email).first()
        return user.to_snapshot() if user else None

    def create_user(self, name, email):
        user = User(name=name, email=email)
        db.session.add(user)
        self._save()
        return user.to_snapshot()

    # ============================================================
    # GROUPS
    # ============================================================

    def create_group(self, name, created_by, club, description=None):
        group = Group(name=name, description=description, created_by=created_by)
        group.set_club(club)
        db.session.add(group)
        db.session.flush()

        # Creator is the first admin
        db.session.add(GroupMembership(group_id=group.id, user_id=created_by, role='admin'))
        self._save()
        return group.to_snapshot()

    def get_group(self, group_id):
        group = db.session.get(Group, group_id)
        return group.to_snapshot() if group else None

    def get_groups_for_user(self, user_id):
        groups = Group.query.join(GroupMembership).filter(
            GroupMembership.user_id == user_id
        ).order_by(Group.created_at).all()
        return [g.to_snapshot() for g in groups]

    def get_groups_without_user(self, user_id):
        groups = Group.query.filter(
            ~Group.memberships.any(GroupMembership.user_id == user_id)
        ).order_by(Group.created_at).all()
        return [g.to_snapshot() for g in groups]

    def delete_group(self, group_id):
        db.session.delete(self._group_row(group_id))
        self._save()

    def get_memberships(self, group_id):
        group = self._group_row(group_id)
        return [m.to_snapshot() for m in group.memberships.order_by(GroupMembership.id)]

    def add_membership(self, group_id, user_id, role):
        self._group_row(group_id)
        membership = GroupMembership(group_id=group_id, user_id=user_id, role=role)
        db.session.add(membership)
        self._save()
        return membership.to_snapshot()

    # ============================================================
    # CLUB
    # ============================================================

    def get_club(self, group_id):
        return self._group_row(group_id).get_club()

    def update_club(self, group_id, **fields):
        group = self._group_row(group_id)
        club = group.get_club().copy(**fields)
        group.set_club(club)
        self._save()
        return club

    # ============================================================
    # MEMBERS
    # ============================================================

    def get_members(self, group_id, include_removed=False):
        query = self._group_row(group_id).members
        if not include_removed:
            query = query.filter_by(removed_at=None)
        return [m.to_snapshot() for m in query.order_by(Member.position)]

    def add_member(self, group_id, member):
        group = self._group_row(group_id)
        position = (db.session.query(db.func.max(Member.position))
                    .filter_by(group_id=group.id).scalar() or 0) + 1

        row = Member(group_id=group.id, position=position)
        for field, column in Member.FIELD_COLUMNS.items():
            setattr(row, column, getattr(member, field))
        db.session.add(row)
        self._save()
        return row.to_snapshot()

    def update_member(self, group_id, member_id, **fields):
        row = self._member_row(group_id, member_id)
        for field, value in fields.items():
            if field not in Member.FIELD_COLUMNS or field == 'id':
                raise StorageError(f"Unknown member field: {field}")
            setattr(row, Member.FIELD_COLUMNS[field], value)
        self._save()
        return row.to_snapshot()

    def remove_member(self, group_id, member_id):
        row = self._member_row(group_id, member_id)
        row.removed_at = utcnow()
        self._save()

    # ============================================================
    # PAYMENTS
    # ============================================================

    def get_payments(self, group_id):
        group = self._group_row(group_id)
        return [p.to_snapshot() for p in group.payments.order_by(Payment.id)]

    def add_payment(self, group_id, payment):
        self._group_row(group_id)
        db.session.add(Payment(
            group_id=group_id,
            member_id=payment.member_id,
            amount=payment.amount,
            period=payment.period,
            paid_at=payment.date
        ))
        self._save()
        return payment

    def remove_payment(self, group_id, member_id, period):
        removed = Payment.query.filter_by(
            group_id=group_id,
            member_id=member_id,
            period=period
        ).delete(synchronize_session=False)
        self._save()
        return removed

    # ============================================================
    # PERIODS
    # ============================================================

    def get_periods(self, group_id):
        group = self._group_row(group_id)
        return [p.to_snapshot() for p in group.periods.order_by(Period.number)]

    def add_period(self, group_id, period):
        self._group_row(group_id)
        db.session.add(Period(group_id=group_id, **{f: getattr(period, f) for f in Period.FIELDS}))
        self._save()
        return period

    def update_period(self, group_id, number, **fields):
        row = Period.query.filter_by(group_id=group_id, number=number).first()
        if not row:
            raise NotFoundError(f"Period {number} not found")
        for field, value in fields.items():
            if field not in Period.FIELDS:
                raise StorageError(f"Unknown period field: {field}")
            setattr(row, field, value)
        self._save()
        return row.to_snapshot()

    def remove_periods_after(self, group_id, number):
        removed = Period.query.filter(
            Period.group_id == group_id,
            Period.number > number
        ).delete(synchronize_session=False)
        self._save()
        return removed

    # ============================================================
    # JOIN REQUESTS
    # ============================================================

    def create_join_request(self, group_id, user_id, user_name, user_email, message=None):
        self._group_row(group_id)
        request = JoinRequest(
            group_id=group_id,
            user_id=user_id,
            user_name=user_name,
            user_email=user_email,
            message=message
        )
        db.session.add(request)
        self._save()
        return request.to_snapshot()

    def get_join_request(self, request_id):
        request = db.session.get(JoinRequest, request_id)
        return request.to_snapshot() if request else None

    def get_join_requests(self, group_id, status=None):
        query = JoinRequest.query.filter_by(group_id=group_id)
        if status:
            query = query.filter_by(status=status)
        return [r.to_snapshot() for r in query.order_by(JoinRequest.created_at)]

    def update_join_request_status(self, request_id, status):
        request = db.session.get(JoinRequest, request_id)
        if not request:
            raise NotFoundError(f"Join request {request_id} not found")
        request.status = status
        self._save()
        return request.to_snapshot()
