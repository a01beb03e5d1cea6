"""
JSON FILE STORE
===============

Keeps every group in one JSON document on local disk, the way the
browser build kept them in localStorage:

    {"users": [...], "groups": [...], "join_requests": [...]}

Each group is embedded whole (club, memberships, members, payments,
periods). Writes rewrite the document through a temp file + os.replace,
so readers never see a half-written file.
"""

from __future__ import annotations

from contextlib import contextmanager
import json
import logging
import os
import tempfile
import threading

from app.domain import (
    Club, Group, JoinRequest, Member, Membership, Payment, Period, User,
    generate_id, utcnow
)
from app.storage.base import NotFoundError, RoscaStore, StorageError

logger = logging.getLogger(__name__)


def _empty_document():
    return {'users': [], 'groups': [], 'join_requests': []}


class JsonFileStore(RoscaStore):

    def __init__(self, path):
        self.path = path
        self._lock = threading.RLock()
        self._local = threading.local()

    # ============================================================
    # DOCUMENT I/O
    # ============================================================

    def _read_file(self):
        if not os.path.exists(self.path):
            return _empty_document()
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Could not read {self.path}: {e}")
        for key, value in _empty_document().items():
            document.setdefault(key, value)
        return document

    def _write_file(self, document):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.rosca-', suffix='.json')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2)
            os.replace(tmp_path, self.path)
            logger.debug("Wrote %s", self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageError(f"Could not write {self.path}: {e}")

    @property
    def _pending(self):
        return getattr(self._local, 'document', None)

    @contextmanager
    def transaction(self):
        with self._lock:
            if self._pending is not None:
                # Nested: the outer transaction owns the write
                yield self
                return

            self._local.document = self._read_file()
            try:
                yield self
                self._write_file(self._local.document)
            finally:
                self._local.document = None

    @contextmanager
    def _document(self):
        """Yield the working document; written back unless inside a transaction."""
        with self._lock:
            if self._pending is not None:
                yield self._pending
                return
            document = self._read_file()
            yield document
            self._write_file(document)

    def _read(self):
        with self._lock:
            if self._pending is not None:
                return self._pending
            return self._read_file()

    @staticmethod
    def _updated(record_cls, record, fields):
        try:
            return record_cls.from_dict(record).copy(**fields)
        except TypeError:
            raise StorageError(f"Unknown {record_cls.__name__.lower()} fields: {', '.join(sorted(fields))}")

    @staticmethod
    def _snapshot(record):
        """Group with its active roster only."""
        group = Group.from_dict(record)
        group.members = [m for m in group.members if m.is_active]
        return group

    @staticmethod
    def _find_group(document, group_id):
        for group in document['groups']:
            if group['id'] == group_id:
                return group
        raise NotFoundError(f"Group {group_id} not found")

    @staticmethod
    def _find_member(group, member_id):
        for member in group['members']:
            if member['id'] == member_id:
                return member
        raise NotFoundError(f"Member {member_id} not found")

    # ============================================================
    # USERS
    # ============================================================

    def get_user(self, user_id):
        for user in self._read()['users']:
            if user['id'] == user_id:
                return User.from_dict(user)
        return None

    def get_user_by_email(self, email):
        for user in self._read()['users']:
            if user['email'] == email:
                return User.from_dict(user)
        return None

    def create_user(self, name, email):
        user = User(id=generate_id(), name=name, email=email)
        with self._document() as document:
            if any(u['email'] == email for u in document['users']):
                raise StorageError(f"User with email {email} already exists")
            document['users'].append(user.to_dict())
        return user

    # ============================================================
    # GROUPS
    # ============================================================

    def create_group(self, name, created_by, club, description=None):
        group = Group(
            id=generate_id(),
            name=name,
            created_by=created_by,
            club=club,
            description=description,
            memberships=[Membership(user_id=created_by, role='admin')]
        )
        with self._document() as document:
            document['groups'].append(group.to_dict())
        return group

    def get_group(self, group_id):
        for group in self._read()['groups']:
            if group['id'] == group_id:
                return self._snapshot(group)
        return None

    def get_groups_for_user(self, user_id):
        return [
            self._snapshot(g) for g in self._read()['groups']
            if any(m['user_id'] == user_id for m in g['memberships'])
        ]

    def get_groups_without_user(self, user_id):
        return [
            self._snapshot(g) for g in self._read()['groups']
            if not any(m['user_id'] == user_id for m in g['memberships'])
        ]

    def delete_group(self, group_id):
        with self._document() as document:
            self._find_group(document, group_id)
            document['groups'] = [g for g in document['groups'] if g['id'] != group_id]
            document['join_requests'] = [
                r for r in document['join_requests'] if r['group_id'] != group_id
            ]

    def get_memberships(self, group_id):
        group = self._find_group(self._read(), group_id)
        return [Membership.from_dict(m) for m in group['memberships']]

    def add_membership(self, group_id, user_id, role):
        membership = Membership(user_id=user_id, role=role)
        with self._document() as document:
            group = self._find_group(document, group_id)
            if any(m['user_id'] == user_id for m in group['memberships']):
                raise StorageError(f"User {user_id} already belongs to group {group_id}")
            group['memberships'].append(membership.to_dict())
        return membership

    # ============================================================
    # CLUB
    # ============================================================

    def get_club(self, group_id):
        return Club.from_dict(self._find_group(self._read(), group_id)['club'])

    def update_club(self, group_id, **fields):
        with self._document() as document:
            group = self._find_group(document, group_id)
            club = self._updated(Club, group['club'], fields)
            group['club'] = club.to_dict()
        return club

    # ============================================================
    # MEMBERS
    # ============================================================

    def get_members(self, group_id, include_removed=False):
        group = self._find_group(self._read(), group_id)
        members = [Member.from_dict(m) for m in group['members']]
        if include_removed:
            return members
        return [m for m in members if m.is_active]

    def add_member(self, group_id, member):
        with self._document() as document:
            group = self._find_group(document, group_id)
            if any(m['id'] == member.id for m in group['members']):
                raise StorageError(f"Member {member.id} already exists")
            group['members'].append(member.to_dict())
        return member

    def update_member(self, group_id, member_id, **fields):
        with self._document() as document:
            group = self._find_group(document, group_id)
            record = self._find_member(group, member_id)
            member = self._updated(Member, record, fields)
            record.update(member.to_dict())
        return member

    def remove_member(self, group_id, member_id):
        with self._document() as document:
            record = self._find_member(self._find_group(document, group_id), member_id)
            record['removed_date'] = utcnow().isoformat()

    # ============================================================
    # PAYMENTS
    # ============================================================

    def get_payments(self, group_id):
        group = self._find_group(self._read(), group_id)
        return [Payment.from_dict(p) for p in group['payments']]

    def add_payment(self, group_id, payment):
        with self._document() as document:
            self._find_group(document, group_id)['payments'].append(payment.to_dict())
        return payment

    def remove_payment(self, group_id, member_id, period):
        with self._document() as document:
            group = self._find_group(document, group_id)
            before = len(group['payments'])
            group['payments'] = [
                p for p in group['payments']
                if not (p['member_id'] == member_id and p['period'] == period)
            ]
            return before - len(group['payments'])

    # ============================================================
    # PERIODS
    # ============================================================

    def get_periods(self, group_id):
        group = self._find_group(self._read(), group_id)
        return sorted((Period.from_dict(p) for p in group['periods']), key=lambda p: p.number)

    def add_period(self, group_id, period):
        with self._document() as document:
            group = self._find_group(document, group_id)
            if any(p['number'] == period.number for p in group['periods']):
                raise StorageError(f"Period {period.number} already exists")
            group['periods'].append(period.to_dict())
        return period

    def update_period(self, group_id, number, **fields):
        with self._document() as document:
            group = self._find_group(document, group_id)
            for record in group['periods']:
                if record['number'] == number:
                    period = self._updated(Period, record, fields)
                    record.update(period.to_dict())
                    return period
            raise NotFoundError(f"Period {number} not found")

    def remove_periods_after(self, group_id, number):
        with self._document() as document:
            group = self._find_group(document, group_id)
            before = len(group['periods'])
            group['periods'] = [p for p in group['periods'] if p['number'] <= number]
            return before - len(group['periods'])

    # ============================================================
    # JOIN REQUESTS
    # ============================================================

    def create_join_request(self, group_id, user_id, user_name, user_email, message=None):
        request = JoinRequest(
            id=generate_id(),
            group_id=group_id,
            user_id=user_id,
            user_name=user_name,
            user_email=user_email,
            message=message
        )
        with self._document() as document:
            self._find_group(document, group_id)
            document['join_requests'].append(request.to_dict())
        return request

    def get_join_request(self, request_id):
        for record in self._read()['join_requests']:
            if record['id'] == request_id:
                return JoinRequest.from_dict(record)
        return None

    def get_join_requests(self, group_id, status=None):
        return [
            JoinRequest.from_dict(r) for r in self._read()['join_requests']
            if r['group_id'] == group_id and (status is None or r['status'] == status)
        ]

    def update_join_request_status(self, request_id, status):
        with self._document() as document:
            for record in document['join_requests']:
                if record['id'] == request_id:
                    record['status'] = status
                    return JoinRequest.from_dict(record)
            raise NotFoundError(f"Join request {request_id} not found")
