"""Shared fixtures: an in-memory application and logged-in clients"""
from datetime import datetime
import pytest
from coopledger import create_app, db
from coopledger.models import Contribution, SystemSettings, User

PASSWORD = 'password123'
# members enrolled before every dated contribution in the tests
ENROLLED = datetime(2026, 1, 1)

@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        SystemSettings.get_settings()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()

def make_user(app, username, share_count=10, role='member', **fields):
    """Create a user and return its id"""
    with app.app_context():
        user = User(
            username=username,
            email=f'{username}@example.com',
            full_name=fields.pop('full_name', username.title()),
            role=role,
            share_count=share_count,
            **fields
        )
        user.set_password(PASSWORD)
        db.session.add(user)
        db.session.commit()
        return user.id

def add_contribution(app, user_id, amount, date_paid, method='GCASH'):
    with app.app_context():
        contribution = Contribution(
            user_id=user_id,
            amount=amount,
            date_paid=date_paid,
            method=method,
            reference_number=f'REF-{user_id}-{date_paid:%Y%m%d%H%M%S}',
            status='FULL',
        )
        db.session.add(contribution)
        db.session.commit()
        return contribution.id

def login(client, username):
    response = client.post('/auth/login', json={'username': username, 'password': PASSWORD})
    assert response.status_code == 200, response.get_json()
    return client

@pytest.fixture
def admin_id(app):
    return make_user(app, 'admin', share_count=0, role='admin')

@pytest.fixture
def member_id(app):
    return make_user(app, 'juan', share_count=10, gcash_number='09171234567', created_at=ENROLLED)

@pytest.fixture
def admin_client(app, admin_id):
    return login(app.test_client(), 'admin')

@pytest.fixture
def member_client(app, member_id):
    return login(app.test_client(), 'juan')

@pytest.fixture
def now():
    return datetime.now().replace(microsecond=0)
