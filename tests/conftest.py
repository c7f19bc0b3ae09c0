"""
Pytest configuration and fixtures
"""
import pytest
import os
import sys
from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# The engine is bound when the app module is imported
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'

from app import app as flask_app
from billbox.database.models import (
    db, UserProfile, Expense, Income, EMI, Savings, Subscription,
)
from billbox.config import Config
from billbox.services.schedule import add_months, add_months_to_month, month_key

TEST_USER_ID = 'user-1'
OTHER_USER_ID = 'user-2'
TEST_EMAIL = 'user@example.com'
TEST_PASSWORD = 'secret123'


class TestConfig(Config):
    """Test configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    SUPABASE_URL = 'https://example.supabase.co'
    SUPABASE_ANON_KEY = 'test-anon-key'


@pytest.fixture(scope='function')
def app():
    """Create and configure a test Flask application"""
    # Force new configuration for each test
    flask_app.config.from_object(TestConfig)

    # Ensure we have a clean database for each test
    with flask_app.app_context():
        # Drop all tables first to ensure clean state
        db.drop_all()
        db.create_all()
        _seed_test_data()
        yield flask_app
        # Clean up after test
        db.session.rollback()
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create a test client for the Flask application"""
    return app.test_client()


@pytest.fixture
def authenticated_client(client):
    """Create an authenticated test client"""
    with client.session_transaction() as sess:
        sess['user_id'] = TEST_USER_ID
        sess['email'] = TEST_EMAIL
    return client


@pytest.fixture
def db_session(app):
    """Create a database session for testing"""
    with app.app_context():
        yield db.session


class FakeSupabase:
    """
    Stands in for the Supabase project: one account, plus a shared log of
    every auth call made through any client.
    """

    def __init__(self):
        self.calls = []
        self.clients = []
        self.require_confirmation = False
        self.password = TEST_PASSWORD
        self.user = SimpleNamespace(
            id=TEST_USER_ID,
            email=TEST_EMAIL,
            user_metadata={'full_name': 'Test User'},
        )

    def create_client(self):
        client = SimpleNamespace(auth=FakeAuth(self))
        self.clients.append(client)
        return client


class FakeAuth:
    """Stands in for supabase.auth; like gotrue, each client keeps its own session"""

    def __init__(self, backend):
        self.backend = backend
        self.session = None

    def _response(self, user, with_session=True):
        session = None
        if with_session:
            session = SimpleNamespace(access_token='access-token', refresh_token='refresh-token')
        return SimpleNamespace(user=user, session=session)

    def sign_in_with_password(self, credentials):
        self.backend.calls.append(('sign_in', credentials['email']))
        if credentials['email'] != TEST_EMAIL or credentials['password'] != self.backend.password:
            raise Exception('Invalid login credentials')
        response = self._response(self.backend.user)
        self.session = response.session
        return response

    def sign_up(self, credentials):
        self.backend.calls.append(('sign_up', credentials['email']))
        user = SimpleNamespace(
            id='new-user',
            email=credentials['email'],
            user_metadata=credentials['options']['data'],
        )
        response = self._response(user, with_session=not self.backend.require_confirmation)
        self.session = response.session
        return response

    def sign_out(self):
        self.backend.calls.append(('sign_out',))
        self.session = None

    def reset_password_for_email(self, email, options):
        self.backend.calls.append(('reset_password', email, options['redirect_to']))

    def set_session(self, access_token, refresh_token):
        self.backend.calls.append(('set_session', access_token))
        if access_token != 'access-token':
            raise Exception('invalid JWT')
        self.session = SimpleNamespace(access_token=access_token, refresh_token=refresh_token)

    def update_user(self, attributes):
        if self.session is None:
            raise Exception('Auth session missing!')
        self.backend.calls.append(('update_user', attributes['password']))
        self.backend.password = attributes['password']
        return self._response(self.backend.user)

    def get_user(self, token):
        if token != 'access-token':
            raise Exception('invalid JWT')
        return self._response(self.backend.user)


@pytest.fixture
def fake_supabase(monkeypatch):
    """Replace the Supabase client factory with an in-memory fake"""
    fake = FakeSupabase()
    monkeypatch.setattr('billbox.services.auth.get_client', fake.create_client)
    return fake


def _seed_test_data():
    """Seed the test database with one user's month of data, plus another user's expense"""
    today = date.today()
    tomorrow = today + timedelta(days=1)

    profile = UserProfile(
        id=TEST_USER_ID,
        email=TEST_EMAIL,
        display_name='Test User',
        currency='INR',
        language='en',
        reminder_days=3,
        reminder_types=['in-app', 'whatsapp'],
        ai_enabled=True,
        pin_enabled=False,
        whatsapp_number='919876543210',
    )
    db.session.add(profile)

    db.session.add(Income(
        user_id=TEST_USER_ID,
        month=month_key(today),
        monthly_income=Decimal('50000.00'),
        extra_income=Decimal('5000.00'),
        income_source='Salary',
    ))

    expenses = [
        Expense(
            user_id=TEST_USER_ID,
            amount=Decimal('450.00'),
            description='Swiggy dinner',
            category='food',
            date=today,
            is_recurring=False,
            is_paid=False,
        ),
        Expense(
            user_id=TEST_USER_ID,
            amount=Decimal('2500.00'),
            description='Electricity',
            category='bills',
            date=today,
            is_recurring=True,
            recurring_day_of_month=tomorrow.day,
            next_due_date=tomorrow,
            is_paid=False,
        ),
        Expense(
            user_id=OTHER_USER_ID,
            amount=Decimal('15000.00'),
            description='Other user rent',
            category='rent',
            date=today,
            is_recurring=False,
            is_paid=False,
        ),
    ]
    db.session.add_all(expenses)

    db.session.add(EMI(
        user_id=TEST_USER_ID,
        name='Car loan',
        monthly_amount=Decimal('10000.00'),
        tenure=24,
        start_month=month_key(today),
        end_month=add_months_to_month(month_key(today), 23),
        category='car_loan',
        total_amount=Decimal('240000.00'),
        is_active=True,
    ))

    db.session.add(Savings(
        user_id=TEST_USER_ID,
        type='rd',
        name='Holiday RD',
        amount=Decimal('2000.00'),
        start_date=today,
        monthly_deposit=Decimal('2000.00'),
        tenure=12,
        interest_rate=6.5,
        maturity_date=add_months(today, 12),
        expected_total=Decimal('24870.00'),
        is_active=True,
        is_matured=False,
    ))

    db.session.add(Subscription(
        user_id=TEST_USER_ID,
        name='Netflix',
        amount=Decimal('199.00'),
        frequency='monthly',
        category='entertainment',
        start_date=today,
        next_billing_date=add_months(today, 1),
        is_active=True,
        auto_renewal=True,
    ))

    db.session.commit()
