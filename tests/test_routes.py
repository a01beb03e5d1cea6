"""HTTP Route Tests

Drives the JSON API through the Flask test client, acting as users via
the X-User-Id header.
"""

import pytest


def as_user(user_id):
    return {'X-User-Id': user_id}


@pytest.fixture
def admin_id(client):
    response = client.post('/users', json={'name': 'Sarah Johnson', 'email': 'sarah@example.com'})
    return response.get_json()['id']


@pytest.fixture
def group_id(client, admin_id):
    response = client.post('/groups', json={'name': 'Family Investment Circle'},
                           headers=as_user(admin_id))
    return response.get_json()['id']


@pytest.fixture
def member_ids(client, admin_id, group_id):
    ids = []
    for name in ('Alice', 'Bob', 'Cara'):
        response = client.post(f'/groups/{group_id}/members',
                               json={'name': name, 'email': f'{name.lower()}@example.com'},
                               headers=as_user(admin_id))
        ids.append(response.get_json()['id'])
    return ids


class TestUsers:

    def test_sign_in_creates_then_returns(self, client):
        first = client.post('/users', json={'name': 'Ann', 'email': 'ann@example.com'})
        second = client.post('/users', json={'email': 'ANN@example.com'})

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.get_json()['id'] == second.get_json()['id']

    def test_email_required(self, client):
        response = client.post('/users', json={'name': 'Ann'})
        assert response.status_code == 400
        assert 'error' in response.get_json()

    def test_my_groups(self, client, admin_id, group_id):
        groups = client.get(f'/users/{admin_id}/groups').get_json()

        assert [g['id'] for g in groups] == [group_id]
        assert groups[0]['role'] == 'admin'

    def test_unknown_user(self, client):
        assert client.get('/users/nobody/groups').status_code == 404


class TestGroups:

    def test_create_requires_identity(self, client):
        response = client.post('/groups', json={'name': 'Circle'})
        assert response.status_code == 403

    def test_dashboard(self, client, admin_id, group_id, member_ids):
        response = client.get(f'/groups/{group_id}', headers=as_user(admin_id))
        body = response.get_json()

        assert response.status_code == 200
        assert body['stats']['total_members'] == 3
        assert body['current_recipient']['id'] == member_ids[0]
        assert body['cycle']['current_cycle'] == 1

    def test_non_member_cannot_view(self, client, group_id):
        outsider = client.post('/users', json={'name': 'Olivia', 'email': 'olivia@example.com'})
        response = client.get(f'/groups/{group_id}', headers=as_user(outsider.get_json()['id']))
        assert response.status_code == 403

    def test_unknown_group(self, client, admin_id):
        assert client.get('/groups/missing', headers=as_user(admin_id)).status_code == 404

    def test_delete(self, client, admin_id, group_id):
        assert client.delete(f'/groups/{group_id}', headers=as_user(admin_id)).status_code == 204
        assert client.get(f'/groups/{group_id}', headers=as_user(admin_id)).status_code == 404


class TestBrowse:

    def test_outsider_finds_group_and_requests_to_join(self, client, admin_id, group_id, member_ids):
        user = client.post('/users', json={'name': 'Olivia', 'email': 'olivia@example.com'}).get_json()

        listed = client.get('/groups?search=investment', headers=as_user(user['id'])).get_json()
        joined = client.post(f"/groups/{listed[0]['id']}/join-requests", headers=as_user(user['id']))

        assert [g['id'] for g in listed] == [group_id]
        assert listed[0]['member_count'] == 3
        assert listed[0]['club']['contribution_amount'] == 100
        assert joined.status_code == 201

    def test_no_match(self, client, admin_id, group_id):
        user = client.post('/users', json={'name': 'Olivia', 'email': 'olivia@example.com'}).get_json()
        response = client.get('/groups?search=weekly+traders', headers=as_user(user['id']))
        assert response.get_json() == []

    def test_own_groups_hidden(self, client, admin_id, group_id):
        assert client.get('/groups', headers=as_user(admin_id)).get_json() == []

    def test_requires_identity(self, client):
        assert client.get('/groups').status_code == 403


class TestClub:

    def test_edit(self, client, admin_id, group_id, member_ids):
        response = client.patch(f'/groups/{group_id}/club',
                                json={'number_of_cycles': 2, 'frequency': 'weekly'},
                                headers=as_user(admin_id))
        club = response.get_json()

        assert response.status_code == 200
        assert club['total_periods'] == 6
        assert club['frequency'] == 'weekly'

    def test_total_periods_not_writable(self, client, admin_id, group_id):
        client.patch(f'/groups/{group_id}/club', json={'total_periods': 40},
                     headers=as_user(admin_id))

        club = client.get(f'/groups/{group_id}/club', headers=as_user(admin_id)).get_json()
        assert club['total_periods'] == 1

    def test_invalid_edit(self, client, admin_id, group_id):
        response = client.patch(f'/groups/{group_id}/club', json={'contribution_amount': 0},
                                headers=as_user(admin_id))
        assert response.status_code == 400

    @pytest.mark.parametrize('body', [
        {'contribution_amount': '500'},
        {'start_date': 'next tuesday'},
        {'periods_per_cycle': 'six'},
    ])
    def test_malformed_values_are_bad_requests(self, client, admin_id, group_id, body):
        response = client.patch(f'/groups/{group_id}/club', json=body, headers=as_user(admin_id))

        assert response.status_code == 400
        assert 'error' in response.get_json()


class TestMembers:

    def test_add_and_list(self, client, admin_id, group_id, member_ids):
        roster = client.get(f'/groups/{group_id}/members', headers=as_user(admin_id)).get_json()

        assert [m['id'] for m in roster] == member_ids
        assert [m['scheduled_period'] for m in roster] == [1, 2, 3]
        assert roster[0]['compliance_status'] == 'up_to_date'

    def test_duplicate_is_conflict(self, client, admin_id, group_id, member_ids):
        response = client.post(f'/groups/{group_id}/members',
                               json={'name': 'Alice', 'email': 'alice@example.com'},
                               headers=as_user(admin_id))
        assert response.status_code == 409

    def test_remove(self, client, admin_id, group_id, member_ids):
        response = client.delete(f'/groups/{group_id}/members/{member_ids[0]}',
                                 headers=as_user(admin_id))
        roster = client.get(f'/groups/{group_id}/members', headers=as_user(admin_id)).get_json()

        assert response.status_code == 204
        assert [m['id'] for m in roster] == member_ids[1:]


class TestPeriods:

    def test_schedule(self, client, admin_id, group_id, member_ids):
        schedule = client.get(f'/groups/{group_id}/schedule', headers=as_user(admin_id)).get_json()

        assert schedule['available'] is True
        assert [p['recipient']['id'] for p in schedule['periods']] == member_ids
        assert [p['status'] for p in schedule['periods']] == ['active', 'upcoming', 'upcoming']

    def test_pay_and_unpay(self, client, admin_id, group_id, member_ids):
        url = f'/groups/{group_id}/periods/1/payments/{member_ids[1]}'

        paid = client.post(url, headers=as_user(admin_id))
        again = client.post(url, headers=as_user(admin_id))
        detail = client.get(f'/groups/{group_id}/periods/1', headers=as_user(admin_id)).get_json()
        unpaid = client.delete(url, headers=as_user(admin_id))

        assert paid.status_code == 201
        assert paid.get_json()['amount'] == 100
        assert again.status_code == 409
        assert detail['summary']['paid_count'] == 1
        assert unpaid.get_json() == {'removed': 1}

    def test_unknown_period(self, client, admin_id, group_id, member_ids):
        response = client.get(f'/groups/{group_id}/periods/9', headers=as_user(admin_id))
        assert response.status_code == 400

    def test_advance(self, client, admin_id, group_id, member_ids):
        response = client.post(f'/groups/{group_id}/periods/advance', headers=as_user(admin_id))
        roster = client.get(f'/groups/{group_id}/members', headers=as_user(admin_id)).get_json()

        assert response.get_json()['current_period'] == 2
        assert roster[0]['has_received'] is True
        assert [m['missed_payments'] for m in roster] == [1, 1, 1]


class TestJoinRequests:

    def test_request_and_approve(self, client, admin_id, group_id):
        user = client.post('/users', json={'name': 'Olivia', 'email': 'olivia@example.com'}).get_json()

        created = client.post(f'/groups/{group_id}/join-requests', json={'message': 'Hi'},
                              headers=as_user(user['id']))
        pending = client.get(f'/groups/{group_id}/join-requests', headers=as_user(admin_id))
        approved = client.post(
            f"/groups/{group_id}/join-requests/{created.get_json()['id']}/approve",
            headers=as_user(admin_id)
        )
        dashboard = client.get(f'/groups/{group_id}', headers=as_user(user['id']))

        assert created.status_code == 201
        assert [r['user_id'] for r in pending.get_json()] == [user['id']]
        assert approved.get_json()['email'] == 'olivia@example.com'
        assert dashboard.status_code == 200

    def test_member_cannot_list_requests(self, client, group_id):
        user = client.post('/users', json={'name': 'Olivia', 'email': 'olivia@example.com'}).get_json()
        response = client.get(f'/groups/{group_id}/join-requests', headers=as_user(user['id']))
        assert response.status_code == 403
