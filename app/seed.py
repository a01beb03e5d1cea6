"""
Seed demo groups: a monthly circle part-way through its first cycle and
a weekly fund that has just started.
"""

from datetime import datetime

import click
from flask import current_app
from flask.cli import with_appcontext

from app.domain import Club, Member, Payment, generate_id
from app.services.club_service import refresh_member_compliance, sync_periods
from app.storage import get_store

DEMO_ADMIN = ('Sarah Johnson', 'sarah.johnson@example.com')

DEMO_GROUPS = [
    {
        'name': 'Family Investment Circle',
        'description': 'Monthly savings group for family members',
        'club': {
            'contribution_amount': 500,
            'frequency': 'monthly',
            'current_period': 3,
            'periods_per_cycle': 6,
            'number_of_cycles': 2,
            'start_date': datetime(2024, 1, 1),
        },
        # (name, email, phone, periods paid)
        'members': [
            ('John Smith', 'john.smith@example.com', '+1 (555) 123-4567', (1, 2, 3)),
            ('Emily Davis', 'emily.davis@example.com', '+1 (555) 234-5678', ()),
            ('Michael Brown', 'michael.brown@example.com', '+1 (555) 345-6789', (1, 2, 3)),
            ('Lisa Anderson', 'lisa.anderson@example.com', '+1 (555) 456-7890', (1, 2)),
            ('David Wilson', 'david.wilson@example.com', '+1 (555) 567-8901', (1, 2, 3)),
            ('Jennifer Martinez', 'jennifer.martinez@example.com', '+1 (555) 678-9012', (1, 2)),
        ],
    },
    {
        'name': 'Community Builders Fund',
        'description': 'Weekly savings for small business owners',
        'club': {
            'contribution_amount': 100,
            'frequency': 'weekly',
            'current_period': 1,
            'periods_per_cycle': 4,
            'number_of_cycles': 2,
            'start_date': datetime(2024, 2, 1),
        },
        'members': [
            ('Robert Taylor', 'robert.taylor@example.com', None, ()),
            ('Patricia Moore', 'patricia.moore@example.com', None, ()),
            ('Christopher Lee', 'christopher.lee@example.com', None, ()),
            ('Maria Garcia', 'maria.garcia@example.com', None, ()),
        ],
    },
]


def seed_demo(store):
    """Load the demo groups into the store. Returns the created group ids."""
    admin = store.get_user_by_email(DEMO_ADMIN[1]) or store.create_user(*DEMO_ADMIN)
    group_ids = []

    for demo in DEMO_GROUPS:
        club = Club(name=demo['name'], **demo['club'])

        with store.transaction():
            group = store.create_group(
                name=demo['name'],
                created_by=admin.id,
                club=club,
                description=demo['description']
            )

            for slot, (name, email, phone, paid) in enumerate(demo['members'], start=1):
                member = store.add_member(group.id, Member(
                    id=generate_id(),
                    name=name,
                    email=email,
                    phone=phone,
                    joined_date=club.start_date,
                    scheduled_period=slot
                ))
                for period in paid:
                    store.add_payment(group.id, Payment(
                        member_id=member.id,
                        amount=club.contribution_amount,
                        date=datetime(2024, period, 15),
                        period=period
                    ))

            refresh_member_compliance(store, group.id)
            sync_periods(store, group.id)

        group_ids.append(group.id)

    return admin, group_ids


@click.command('seed-demo')
@with_appcontext
def seed_demo_command():
    """Load demo ROSCA groups into the configured store."""
    admin, group_ids = seed_demo(get_store())
    current_app.logger.info("Seeded %s demo group(s)", len(group_ids))
    click.echo(f"Seeded {len(group_ids)} group(s) for {admin.name} (user id {admin.id})")
