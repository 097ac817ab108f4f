"""Expense ledger, available funds and dashboard totals"""
from datetime import datetime
from decimal import Decimal
from coopledger.models import ActivityLog, Expense
from conftest import add_contribution

def add_expense(client, **body):
    payload = {'amount': 1200, 'description': 'Assembly snacks', 'year': 2026}
    payload.update(body)
    return client.post('/admin/expenses', json=payload)

def test_expense_crud(app, admin_client, admin_id):
    response = add_expense(admin_client, reference_type='RECEIPT', reference='OR-5521')
    assert response.status_code == 201
    expense = response.get_json()
    assert Decimal(expense['amount']) == Decimal('1200')
    assert expense['reference_type'] == 'RECEIPT'
    assert expense['created_by'] == 'Admin'

    add_expense(admin_client, amount=300, description='Bank fees')
    add_expense(admin_client, amount=999, description='Last year', year=2025)

    listing = admin_client.get('/admin/expenses?year=2026').get_json()
    assert Decimal(listing['total']) == Decimal('1500')
    assert {e['description'] for e in listing['items']} == {'Assembly snacks', 'Bank fees'}

    updated = admin_client.put(f'/admin/expenses/{expense["id"]}', json={'amount': 1000})
    assert updated.status_code == 200
    assert Decimal(updated.get_json()['amount']) == Decimal('1000')
    assert updated.get_json()['description'] == 'Assembly snacks'

    assert admin_client.delete(f'/admin/expenses/{expense["id"]}').status_code == 200
    assert admin_client.delete(f'/admin/expenses/{expense["id"]}').status_code == 404

    with app.app_context():
        assert Expense.query.count() == 2
        assert ActivityLog.query.filter_by(action='delete_expense').count() == 1

def test_expense_validation(admin_client):
    response = admin_client.post('/admin/expenses', json={'amount': 0, 'reference_type': 'CHEQUE'})
    assert response.status_code == 400
    assert {'amount', 'description', 'reference_type'} <= set(response.get_json()['error'])

    expense_id = add_expense(admin_client).get_json()['id']
    assert admin_client.put(f'/admin/expenses/{expense_id}', json={'description': '  '}).status_code == 400
    assert admin_client.put('/admin/expenses/999', json={'amount': 10}).status_code == 404

def test_expense_defaults_to_current_year(admin_client):
    expense = admin_client.post('/admin/expenses', json={'amount': 50, 'description': 'Stamps'}).get_json()
    assert expense['year'] == datetime.now().year
    assert expense['reference_type'] == 'NONE'

def test_funds_available(app, admin_client, member_id, member_client):
    add_contribution(app, member_id, 20000, datetime(2026, 1, 10, 9, 0))
    loan_id = admin_client.post('/admin/loans', json={
        'borrower_type': 'member', 'user_id': member_id, 'principal': 10000, 'term_months': 6,
    }).get_json()['id']
    admin_client.post(f'/admin/loans/{loan_id}/payment', json={'amount': 2167})
    # rejected applications never left the cooperative
    rejected = member_client.post('/member/loans', json={'principal': 5000, 'term_months': 3}).get_json()['id']
    admin_client.post(f'/admin/loans/{rejected}/reject', json={'reason': 'Over limit'})

    data = admin_client.get('/admin/funds-available').get_json()

    assert Decimal(data['total_collections']) == Decimal('20000')
    assert Decimal(data['total_loan_payments']) == Decimal('2167')
    assert Decimal(data['total_loan_amount']) == Decimal('10000')
    assert Decimal(data['available_for_loans']) == Decimal('12167')

def test_funds_available_never_negative(admin_client, member_id):
    admin_client.post('/admin/loans', json={
        'borrower_type': 'member', 'user_id': member_id, 'principal': 10000, 'term_months': 6,
    })
    data = admin_client.get('/admin/funds-available').get_json()
    assert Decimal(data['available_for_loans']) == Decimal('0')

def test_dashboard_net_profit(admin_client, member_id):
    admin_client.post('/admin/loans', json={
        'borrower_type': 'member', 'user_id': member_id, 'principal': 10000, 'term_months': 6,
    })
    add_expense(admin_client, amount=500, year=datetime.now().year)

    data = admin_client.get('/admin/dashboard').get_json()

    assert Decimal(data['loan_interest']) == Decimal('3000')
    assert Decimal(data['total_expenses']) == Decimal('500')
    assert Decimal(data['net_profit']) == Decimal('2500')
