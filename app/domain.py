"""
ROSCA DOMAIN MODEL
==================

Plain snapshots of the entities the rotation engine works on.

The storage backends load these from their own representation
(JSON documents or SQLAlchemy rows) and the services compute over them.
Nothing in here talks to a database.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import uuid


class Frequency(Enum):
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'


class PeriodStatus(Enum):
    UPCOMING = 'upcoming'
    ACTIVE = 'active'
    COMPLETED = 'completed'


class MemberRole(Enum):
    ADMIN = 'admin'
    MEMBER = 'member'


class JoinRequestStatus(Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


def utcnow() -> datetime:
    """Naive UTC timestamp (SQLite drops tzinfo anyway)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_id() -> str:
    return uuid.uuid4().hex


def parse_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith('Z'):
        text = text[:-1]
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _dump(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_dump(v) for v in value]
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    return value


class _Record:
    """Shared dict conversion for the dataclasses below."""

    _datetime_fields: tuple = ()

    def to_dict(self) -> dict:
        return {f.name: _dump(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict):
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        for name in cls._datetime_fields:
            if name in values:
                values[name] = parse_datetime(values[name])
        return cls(**values)

    def copy(self, **changes):
        return replace(self, **changes)


# ============================================================
# USER
# ============================================================
@dataclass
class User(_Record):
    """A platform user. Identified by email; no credentials are kept."""
    id: str
    name: str
    email: str


# ============================================================
# MEMBER
# ============================================================
@dataclass
class Member(_Record):
    """
    One rotation participant inside one group.

    scheduled_period is the base rotation slot handed out at join time
    (roster size + 1). missed_payments is derived from the payment
    history and written back by the services whenever payments or the
    club's current period change.
    """
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    joined_date: datetime = field(default_factory=utcnow)
    has_received: bool = False
    missed_payments: int = 0
    scheduled_period: int = 1
    user_id: Optional[str] = None
    removed_date: Optional[datetime] = None

    _datetime_fields = ('joined_date', 'removed_date')

    @property
    def is_active(self) -> bool:
        return self.removed_date is None


# ============================================================
# PAYMENT
# ============================================================
@dataclass
class Payment(_Record):
    member_id: str
    amount: float
    date: datetime
    period: int

    _datetime_fields = ('date',)


# ============================================================
# PERIOD
# ============================================================
@dataclass
class Period(_Record):
    """One rotation slot and its payout."""
    number: int
    recipient_id: Optional[str]
    start_date: datetime
    end_date: datetime
    total_collected: float = 0.0
    status: str = PeriodStatus.UPCOMING.value

    _datetime_fields = ('start_date', 'end_date')


# ============================================================
# CLUB
# ============================================================
@dataclass
class Club(_Record):
    """
    Rotation configuration of a group.

    total_periods is always periods_per_cycle * number_of_cycles. It is
    filled in on construction when omitted; use
    cycle_service.apply_club_changes to edit a club so both factors and
    the product move together.
    """
    name: str
    contribution_amount: float
    frequency: str = Frequency.MONTHLY.value
    current_period: int = 1
    periods_per_cycle: int = 1
    number_of_cycles: int = 1
    start_date: datetime = field(default_factory=utcnow)
    total_periods: Optional[int] = None

    _datetime_fields = ('start_date',)

    def __post_init__(self):
        if self.total_periods is None:
            self.total_periods = self.periods_per_cycle * self.number_of_cycles


# ============================================================
# MEMBERSHIP / GROUP
# ============================================================
@dataclass
class Membership(_Record):
    user_id: str
    role: str = MemberRole.MEMBER.value
    joined_date: datetime = field(default_factory=utcnow)

    _datetime_fields = ('joined_date',)

    @property
    def is_admin(self) -> bool:
        return self.role == MemberRole.ADMIN.value


@dataclass
class Group(_Record):
    """Aggregate root: one club plus everything recorded against it."""
    id: str
    name: str
    created_by: str
    club: Club
    description: Optional[str] = None
    created_date: datetime = field(default_factory=utcnow)
    memberships: list = field(default_factory=list)
    members: list = field(default_factory=list)
    payments: list = field(default_factory=list)
    periods: list = field(default_factory=list)

    _datetime_fields = ('created_date',)

    @classmethod
    def from_dict(cls, data: dict):
        data = dict(data)
        data['club'] = Club.from_dict(data['club'])
        data['memberships'] = [Membership.from_dict(m) for m in data.get('memberships', [])]
        data['members'] = [Member.from_dict(m) for m in data.get('members', [])]
        data['payments'] = [Payment.from_dict(p) for p in data.get('payments', [])]
        data['periods'] = [Period.from_dict(p) for p in data.get('periods', [])]
        return super().from_dict(data)


# ============================================================
# JOIN REQUEST
# ============================================================
@dataclass
class JoinRequest(_Record):
    """A user's request to be added to a group's roster."""
    id: str
    group_id: str
    user_id: str
    user_name: str
    user_email: str
    message: Optional[str] = None
    status: str = JoinRequestStatus.PENDING.value
    created_at: datetime = field(default_factory=utcnow)

    _datetime_fields = ('created_at',)
