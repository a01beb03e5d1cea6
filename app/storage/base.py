"""
STORAGE INTERFACE
=================

The read/write surface the services use. Both backends (local JSON file
and SQL database) implement every method with the same semantics:

- reads return domain snapshots (app.domain), never live rows
- get_members returns active members only unless include_removed=True
- writes outside transaction() are applied immediately
- writes inside transaction() are applied together or not at all
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class StorageError(Exception):
    """Base exception for storage backends"""
    pass


class NotFoundError(StorageError):
    """Raised when a referenced record does not exist"""
    pass


class RoscaStore(ABC):

    # ---------- users ----------
    @abstractmethod
    def get_user(self, user_id):
        ...

    @abstractmethod
    def get_user_by_email(self, email):
        ...

    @abstractmethod
    def create_user(self, name, email):
        ...

    # ---------- groups ----------
    @abstractmethod
    def create_group(self, name, created_by, club, description=None):
        """Create a group with its creator as the first admin membership."""

    @abstractmethod
    def get_group(self, group_id):
        """Full aggregate (club, memberships, members, payments, periods)."""

    @abstractmethod
    def get_groups_for_user(self, user_id):
        ...

    @abstractmethod
    def get_groups_without_user(self, user_id):
        """Groups the user holds no membership in, oldest first."""

    @abstractmethod
    def delete_group(self, group_id):
        ...

    @abstractmethod
    def get_memberships(self, group_id):
        ...

    @abstractmethod
    def add_membership(self, group_id, user_id, role):
        ...

    # ---------- club ----------
    @abstractmethod
    def get_club(self, group_id):
        ...

    @abstractmethod
    def update_club(self, group_id, **fields):
        ...

    # ---------- members ----------
    @abstractmethod
    def get_members(self, group_id, include_removed=False):
        ...

    @abstractmethod
    def add_member(self, group_id, member):
        ...

    @abstractmethod
    def update_member(self, group_id, member_id, **fields):
        ...

    @abstractmethod
    def remove_member(self, group_id, member_id):
        """Soft removal: the member stops being listed, history stays."""

    # ---------- payments ----------
    @abstractmethod
    def get_payments(self, group_id):
        ...

    @abstractmethod
    def add_payment(self, group_id, payment):
        ...

    @abstractmethod
    def remove_payment(self, group_id, member_id, period):
        """Remove every payment for (member_id, period)."""

    # ---------- periods ----------
    @abstractmethod
    def get_periods(self, group_id):
        ...

    @abstractmethod
    def add_period(self, group_id, period):
        ...

    @abstractmethod
    def update_period(self, group_id, number, **fields):
        ...

    @abstractmethod
    def remove_periods_after(self, group_id, number):
        """Delete periods numbered above number; returns how many went."""

    # ---------- join requests ----------
    @abstractmethod
    def create_join_request(self, group_id, user_id, user_name, user_email, message=None):
        ...

    @abstractmethod
    def get_join_request(self, request_id):
        ...

    @abstractmethod
    def get_join_requests(self, group_id, status=None):
        ...

    @abstractmethod
    def update_join_request_status(self, request_id, status):
        ...

    # ---------- atomicity ----------
    @abstractmethod
    def transaction(self):
        """Context manager; every write inside it lands together or not at all."""
