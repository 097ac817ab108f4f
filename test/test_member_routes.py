"""Member self-service endpoints"""
from datetime import datetime
from decimal import Decimal
from conftest import add_contribution, make_user

def test_login_rejects_bad_password(app, member_id):
    client = app.test_client()
    response = client.post('/auth/login', json={'username': 'juan', 'password': 'wrong'})
    assert response.status_code == 401

def test_login_requires_username(app):
    response = app.test_client().post('/auth/login', json={'password': 'x'})
    assert response.status_code == 400
    assert 'username' in response.get_json()['error']

def test_anonymous_request_gets_json_401(app):
    response = app.test_client().get('/member/due-schedule')
    assert response.status_code == 401
    assert response.get_json() == {'error': 'Authentication required'}

def test_due_schedule_reports_each_period(app, member_client, member_id):
    add_contribution(app, member_id, 6000, datetime(2026, 1, 10, 9, 0))

    response = member_client.get('/member/due-schedule?as_of=2026-02-20')
    assert response.status_code == 200
    data = response.get_json()

    assert Decimal(data['expected_per_period']) == Decimal('2500')
    periods = data['periods']
    # current and next year
    assert len(periods) == 48
    assert [p['status'] for p in periods[:4]] == ['PAID', 'PAID', 'PARTIAL', 'NO_PAYMENT']
    assert Decimal(periods[2]['total_paid']) == Decimal('1000')
    assert Decimal(periods[2]['remaining_amount']) == Decimal('1500')
    assert periods[2]['is_late']
    assert not periods[3]['is_late']
    assert periods[0]['due_at'].startswith('2026-01-15T23:59:59')
    assert data['summary']['late_count'] == 1
    # Feb 15 is already past, so the next open period is Feb 28
    assert data['summary']['next_due']['sequence_index'] == 3

def test_due_schedule_rejects_bad_as_of(member_client):
    response = member_client.get('/member/due-schedule?as_of=yesterday')
    assert response.status_code == 400

def test_me_includes_recent_contributions(app, member_client, member_id):
    add_contribution(app, member_id, 2500, datetime(2026, 1, 10, 9, 0))

    data = member_client.get('/member/me').get_json()

    assert data['username'] == 'juan'
    assert Decimal(data['expected_per_period']) == Decimal('2500')
    assert len(data['contributions']) == 1
    assert Decimal(data['estimated_dividend_per_share']) == Decimal('0')

def test_loan_application_within_limits(member_client):
    response = member_client.post('/member/loans', json={'principal': 10000, 'term_months': 6})
    assert response.status_code == 201
    loan = response.get_json()

    assert loan['status'] == 'pending'
    assert Decimal(loan['interest']) == Decimal('3000')
    assert Decimal(loan['monthly_amortization']) == Decimal('2167')
    assert loan['monthly_rate_bps'] == 500

def test_loan_application_outside_limits_is_rejected(member_client):
    assert member_client.post('/member/loans', json={'principal': 500, 'term_months': 6}).status_code == 400
    assert member_client.post('/member/loans', json={'principal': 60000, 'term_months': 6}).status_code == 400
    assert member_client.post('/member/loans', json={'principal': 5000, 'term_months': 0}).status_code == 400

def test_released_loan_schedule(app, member_client, admin_client):
    loan_id = member_client.post('/member/loans', json={'principal': 10000, 'term_months': 6}).get_json()['id']

    # not yet released: schedule is anchored on the application date
    pending = member_client.get(f'/member/loans/{loan_id}/schedule').get_json()
    assert len(pending['amortization']) == 6

    released = admin_client.put(f'/admin/loans/{loan_id}/status', json={'status': 'released'})
    assert released.status_code == 200
    assert released.get_json()['due_date'] is not None

    data = member_client.get(f'/member/loans/{loan_id}/schedule').get_json()
    assert len(data['amortization']) == 6
    assert [row['month'] for row in data['amortization']] == [1, 2, 3, 4, 5, 6]
    assert Decimal(data['balance']) == Decimal('13000')
    assert data['summary']['late_count'] == 0

def test_member_cannot_see_other_members_loans(app, member_client, admin_client):
    other_id = make_user(app, 'maria', share_count=5)
    response = admin_client.post('/admin/loans', json={
        'borrower_type': 'member', 'user_id': other_id, 'principal': 5000, 'term_months': 3,
    })
    loan_id = response.get_json()['id']

    assert member_client.get(f'/member/loans/{loan_id}/schedule').status_code == 404

def test_member_cannot_use_admin_endpoints(member_client):
    assert member_client.get('/admin/users').status_code == 403

def test_change_password_and_logout(app, member_client):
    response = member_client.post('/auth/change-password', json={
        'current_password': 'password123',
        'new_password': 'newsecret1',
        'confirm_password': 'newsecret1',
    })
    assert response.status_code == 200

    assert member_client.post('/auth/logout').status_code == 200
    assert member_client.get('/member/me').status_code == 401

    response = app.test_client().post('/auth/login', json={'username': 'juan', 'password': 'newsecret1'})
    assert response.status_code == 200

def test_deactivated_member_cannot_log_in(app, admin_client, member_id):
    admin_client.put(f'/admin/users/{member_id}', json={'is_active': False})
    response = app.test_client().post('/auth/login', json={'username': 'juan', 'password': 'password123'})
    assert response.status_code == 403
