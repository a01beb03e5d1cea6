from app.extensions import db
from app.domain import (
    Club, Group as GroupSnapshot, JoinRequest as JoinRequestSnapshot,
    Member as MemberSnapshot, Membership, Payment as PaymentSnapshot,
    Period as PeriodSnapshot, User as UserSnapshot, generate_id, utcnow
)


# ============================================================
# USER MODEL
# ============================================================
class User(db.Model):
    """
    Represents a platform user.
    Users create groups, hold memberships and may appear on rosters.
    """
    __tablename__ = 'users'

    id = db.Column(db.String(32), primary_key=True, default=generate_id)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    # Relationships
    groups_created = db.relationship('Group', backref='creator', lazy='dynamic')
    memberships = db.relationship('GroupMembership', backref='user', lazy='dynamic')

    def to_snapshot(self):
        return UserSnapshot(id=self.id, name=self.name, email=self.email)

    def __repr__(self):
        return f'<User {self.name}>'


# ============================================================
# GROUP MODEL
# ============================================================
class Group(db.Model):
    """
    Represents a ROSCA group.
    The club configuration lives in the same row; members, payments,
    periods and memberships belong to exactly one group.
    """
    __tablename__ = 'groups'

    id = db.Column(db.String(32), primary_key=True, default=generate_id)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500))
    created_by = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    # ===== CLUB CONFIGURATION =====
    club_name = db.Column(db.String(100), nullable=False)
    contribution_amount = db.Column(db.Float, nullable=False)
    frequency = db.Column(db.String(20), nullable=False, default='monthly')
    current_period = db.Column(db.Integer, nullable=False, default=1)
    periods_per_cycle = db.Column(db.Integer, nullable=False, default=1)
    number_of_cycles = db.Column(db.Integer, nullable=False, default=1)
    # Always periods_per_cycle * number_of_cycles
    total_periods = db.Column(db.Integer, nullable=False, default=1)
    start_date = db.Column(db.DateTime, nullable=False, default=utcnow)

    # Relationships
    memberships = db.relationship('GroupMembership', backref='group', lazy='dynamic',
                                  cascade='all, delete-orphan')
    members = db.relationship('Member', backref='group', lazy='dynamic',
                              cascade='all, delete-orphan')
    payments = db.relationship('Payment', backref='group', lazy='dynamic',
                               cascade='all, delete-orphan')
    periods = db.relationship('Period', backref='group', lazy='dynamic',
                              cascade='all, delete-orphan')
    join_requests = db.relationship('JoinRequest', backref='group', lazy='dynamic',
                                    cascade='all, delete-orphan')

    CLUB_COLUMNS = {
        'name': 'club_name',
        'contribution_amount': 'contribution_amount',
        'frequency': 'frequency',
        'current_period': 'current_period',
        'periods_per_cycle': 'periods_per_cycle',
        'number_of_cycles': 'number_of_cycles',
        'total_periods': 'total_periods',
        'start_date': 'start_date',
    }

    def get_club(self):
        return Club(**{field: getattr(self, column) for field, column in self.CLUB_COLUMNS.items()})

    def set_club(self, club):
        for field, column in self.CLUB_COLUMNS.items():
            setattr(self, column, getattr(club, field))

    def to_snapshot(self):
        return GroupSnapshot(
            id=self.id,
            name=self.name,
            description=self.description,
            created_by=self.created_by,
            created_date=self.created_at,
            club=self.get_club(),
            memberships=[m.to_snapshot() for m in self.memberships.order_by(GroupMembership.id)],
            members=[m.to_snapshot() for m in self.members.filter_by(removed_at=None)
                     .order_by(Member.position)],
            payments=[p.to_snapshot() for p in self.payments.order_by(Payment.id)],
            periods=[p.to_snapshot() for p in self.periods.order_by(Period.number)]
        )

    def __repr__(self):
        return f'<Group {self.name}>'


# ============================================================
# GROUP MEMBERSHIP MODEL
# ============================================================
class GroupMembership(db.Model):
    """
    Maps a platform user to a role (admin/member) inside a group.
    """
    __tablename__ = 'group_memberships'

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.String(32), db.ForeignKey('groups.id'), nullable=False)
    user_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False)
    role = db.Column(db.String(20), default='member')  # 'admin' or 'member'
    joined_at = db.Column(db.DateTime, default=utcnow)

    # Prevent duplicate memberships
    __table_args__ = (
        db.UniqueConstraint('group_id', 'user_id', name='unique_group_membership'),
    )

    def to_snapshot(self):
        return Membership(user_id=self.user_id, role=self.role, joined_date=self.joined_at)

    def __repr__(self):
        return f'<GroupMembership user={self.user_id} group={self.group_id}>'


# ============================================================
# MEMBER MODEL
# ============================================================
class Member(db.Model):
    """
    A rotation participant on a group's roster.

    Removal is soft (removed_at is set) so payments and periods that
    reference the member keep pointing at a real row.
    """
    __tablename__ = 'members'

    id = db.Column(db.String(32), primary_key=True, default=generate_id)
    group_id = db.Column(db.String(32), db.ForeignKey('groups.id'), nullable=False)
    user_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=True)

    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(40))
    joined_at = db.Column(db.DateTime, default=utcnow)

    # ===== ROTATION STATE =====
    has_received = db.Column(db.Boolean, default=False, nullable=False)
    missed_payments = db.Column(db.Integer, default=0, nullable=False)
    scheduled_period = db.Column(db.Integer, nullable=False)

    # Insertion order; stable tie-break for the rotation sort
    position = db.Column(db.Integer, nullable=False, default=0)
    removed_at = db.Column(db.DateTime, nullable=True)

    # Email is the natural identity inside a group
    __table_args__ = (
        db.UniqueConstraint('group_id', 'email', name='unique_group_member_email'),
    )

    FIELD_COLUMNS = {
        'id': 'id',
        'name': 'name',
        'email': 'email',
        'phone': 'phone',
        'joined_date': 'joined_at',
        'has_received': 'has_received',
        'missed_payments': 'missed_payments',
        'scheduled_period': 'scheduled_period',
        'user_id': 'user_id',
        'removed_date': 'removed_at',
    }

    def to_snapshot(self):
        return MemberSnapshot(**{field: getattr(self, column)
                                 for field, column in self.FIELD_COLUMNS.items()})

    def __repr__(self):
        return f'<Member {self.name} group={self.group_id}>'


# ============================================================
# PAYMENT MODEL
# ============================================================
class Payment(db.Model):
    """
    One contribution by a member toward one period.
    """
    __tablename__ = 'payments'

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.String(32), db.ForeignKey('groups.id'), nullable=False)
    member_id = db.Column(db.String(32), db.ForeignKey('members.id'), nullable=False)
    amount = db.Column(db.Float, nullable=False)  # Must be > 0
    period = db.Column(db.Integer, nullable=False)
    paid_at = db.Column(db.DateTime, default=utcnow)

    def to_snapshot(self):
        return PaymentSnapshot(
            member_id=self.member_id,
            amount=self.amount,
            date=self.paid_at,
            period=self.period
        )

    def __repr__(self):
        return f'<Payment member={self.member_id} period={self.period} amount={self.amount}>'


# ============================================================
# PERIOD MODEL
# ============================================================
class Period(db.Model):
    """
    One rotation slot. Status: 'upcoming', 'active', 'completed'.
    """
    __tablename__ = 'periods'

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.String(32), db.ForeignKey('groups.id'), nullable=False)
    number = db.Column(db.Integer, nullable=False)
    recipient_id = db.Column(db.String(32), db.ForeignKey('members.id'), nullable=True)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    total_collected = db.Column(db.Float, default=0.0, nullable=False)
    status = db.Column(db.String(20), default='upcoming', nullable=False)

    __table_args__ = (
        db.UniqueConstraint('group_id', 'number', name='unique_group_period'),
    )

    FIELDS = ('number', 'recipient_id', 'start_date', 'end_date', 'total_collected', 'status')

    def to_snapshot(self):
        return PeriodSnapshot(**{field: getattr(self, field) for field in self.FIELDS})

    def __repr__(self):
        return f'<Period {self.number} group={self.group_id} status={self.status}>'


# ============================================================
# JOIN REQUEST MODEL
# ============================================================
class JoinRequest(db.Model):
    """
    A user's request to join a group.
    Status: 'pending', 'approved', 'rejected'.
    """
    __tablename__ = 'join_requests'

    id = db.Column(db.String(32), primary_key=True, default=generate_id)
    group_id = db.Column(db.String(32), db.ForeignKey('groups.id'), nullable=False)
    user_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False)
    user_name = db.Column(db.String(100), nullable=False)
    user_email = db.Column(db.String(120), nullable=False)
    message = db.Column(db.String(500))
    status = db.Column(db.String(20), default='pending', nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_snapshot(self):
        return JoinRequestSnapshot(
            id=self.id,
            group_id=self.group_id,
            user_id=self.user_id,
            user_name=self.user_name,
            user_email=self.user_email,
            message=self.message,
            status=self.status,
            created_at=self.created_at
        )

    def __repr__(self):
        return f'<JoinRequest user={self.user_id} group={self.group_id} status={self.status}>'
