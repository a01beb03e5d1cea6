"""Shared test fixtures.

Store-backed tests run twice, once per backend:
1. sql: Flask-SQLAlchemy on in-memory SQLite
2. json: JSON document under pytest's tmp_path
"""

from datetime import datetime

import pytest

from app import create_app
from app.domain import Club, Member, Payment
from config import TestingConfig


class JsonTestingConfig(TestingConfig):
    ROSCA_STORAGE = 'json'


def make_app(backend, tmp_path):
    base = JsonTestingConfig if backend == 'json' else TestingConfig
    config = type('TmpConfig', (base,), {'ROSCA_JSON_PATH': str(tmp_path / 'rosca.json')})
    return create_app(config)


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture(params=['sql', 'json'])
def backend(request):
    return request.param


@pytest.fixture
def app(backend, tmp_path):
    app = make_app(backend, tmp_path)
    with app.app_context():
        yield app


@pytest.fixture
def store(app):
    return app.extensions['rosca_store']


@pytest.fixture
def client(app):
    return app.test_client()


# =============================================================================
# Store Data Fixtures
# =============================================================================

@pytest.fixture
def admin(store):
    return store.create_user('Sarah Johnson', 'sarah.johnson@example.com')


@pytest.fixture
def outsider(store):
    return store.create_user('Olivia Stone', 'olivia.stone@example.com')


@pytest.fixture
def group(store, admin):
    from app.services.membership_service import create_group
    return create_group(store, admin.id, 'Family Investment Circle', 'Monthly savings')


# =============================================================================
# Pure Snapshot Helpers
# =============================================================================

def member(number, missed=0, name=None, joined=None):
    """Member with id m<number> sitting at scheduled slot <number>."""
    return Member(
        id=f'm{number}',
        name=name or f'Member {number}',
        email=f'member{number}@example.com',
        scheduled_period=number,
        missed_payments=missed,
        joined_date=joined or datetime(2024, 1, 1)
    )


def payment(member_id, period, amount=500):
    return Payment(member_id=member_id, amount=amount, date=datetime(2024, 1, 15), period=period)


def club(**overrides):
    values = dict(
        name='Family Investment Circle',
        contribution_amount=500,
        frequency='monthly',
        current_period=1,
        periods_per_cycle=6,
        number_of_cycles=2,
        start_date=datetime(2024, 1, 1)
    )
    values.update(overrides)
    return Club(**values)


@pytest.fixture
def six_members():
    return [member(n) for n in range(1, 7)]
