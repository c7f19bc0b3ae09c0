"""
Tests for database models
"""
import pytest
from datetime import date
from decimal import Decimal
from sqlalchemy.exc import IntegrityError
from billbox.database.models import (
    db, UserProfile, CustomCategory, Expense, Income, EMI, Savings, Subscription, LearnedRule,
)


class TestUserProfile:
    """Test UserProfile model"""

    def test_defaults_applied_on_insert(self, db_session):
        """Test a new profile gets the default preferences"""
        profile = UserProfile(id='fresh-user', email='fresh@example.com')
        db_session.add(profile)
        db_session.commit()

        settings = profile.settings_dict()
        assert settings['currency'] == 'INR'
        assert settings['language'] == 'en'
        assert settings['reminder_days'] == 3
        assert settings['reminder_types'] == ['in-app']
        assert settings['ai_enabled'] is True
        assert settings['pin_enabled'] is False
        assert profile.created_at is not None

    def test_to_dict_nests_preferences(self, db_session):
        """Test profile serialization"""
        profile = db_session.get(UserProfile, 'user-1')
        data = profile.to_dict()

        assert data['uid'] == 'user-1'
        assert data['display_name'] == 'Test User'
        assert data['preferences']['reminder_types'] == ['in-app', 'whatsapp']
        assert data['preferences']['whatsapp_number'] == '919876543210'


class TestExpense:
    """Test Expense model"""

    def test_seeded_expenses(self, db_session):
        """Test expenses were seeded per user"""
        assert Expense.query.filter_by(user_id='user-1').count() == 2
        assert Expense.query.filter_by(user_id='user-2').count() == 1

    def test_to_dict_converts_amount_and_dates(self, db_session):
        """Test Decimal amounts become floats and dates ISO strings"""
        expense = Expense(
            user_id='user-1',
            amount=Decimal('1234.50'),
            description='Weekly groceries',
            category='food',
            date=date(2024, 3, 15),
        )
        db_session.add(expense)
        db_session.commit()

        data = expense.to_dict()
        assert data['amount'] == 1234.5
        assert data['date'] == '2024-03-15'
        assert data['is_recurring'] is False
        assert data['is_paid'] is False
        assert data['next_due_date'] is None


class TestIncome:
    """Test Income model"""

    def test_total(self):
        """Test total is primary plus extra income"""
        income = Income(monthly_income=Decimal('50000'), extra_income=Decimal('2500'))
        assert income.total == Decimal('52500')

    def test_one_row_per_month(self, db_session):
        """Test a second income row for the same month is rejected"""
        month = Income.query.filter_by(user_id='user-1').first().month
        db_session.add(Income(user_id='user-1', month=month, monthly_income=Decimal('1')))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_same_month_other_user(self, db_session):
        """Test different users can record the same month"""
        month = Income.query.filter_by(user_id='user-1').first().month
        db_session.add(Income(user_id='user-2', month=month, monthly_income=Decimal('1')))
        db_session.commit()
        assert Income.query.filter_by(month=month).count() == 2


class TestCustomCategory:
    """Test CustomCategory model"""

    def test_to_dict_uses_slug_as_id(self, db_session):
        """Test custom categories serialize like default ones"""
        category = CustomCategory(user_id='user-1', slug='pet_care', name='Pet Care', keywords=['vet'])
        db_session.add(category)
        db_session.commit()

        data = category.to_dict()
        assert data['id'] == 'pet_care'
        assert data['icon'] == 'Tag'
        assert data['keywords'] == ['vet']
        assert data['is_custom'] is True

    def test_slug_unique_per_user(self, db_session):
        """Test the same slug cannot be added twice for a user"""
        db_session.add(CustomCategory(user_id='user-1', slug='pets', name='Pets'))
        db_session.commit()
        db_session.add(CustomCategory(user_id='user-1', slug='pets', name='Pets again'))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


class TestOtherModels:
    """Test EMI, Savings, Subscription and LearnedRule models"""

    def test_emi_serialization(self, db_session):
        """Test the seeded EMI"""
        emi = EMI.query.filter_by(user_id='user-1').first()
        data = emi.to_dict()
        assert data['name'] == 'Car loan'
        assert data['monthly_amount'] == 10000.0
        assert data['total_amount'] == 240000.0
        assert data['tenure'] == 24

    def test_savings_serialization(self, db_session):
        """Test the seeded RD"""
        savings = Savings.query.filter_by(user_id='user-1').first()
        data = savings.to_dict()
        assert data['type'] == 'rd'
        assert data['monthly_deposit'] == 2000.0
        assert data['expected_maturity_amount'] is None
        assert data['is_matured'] is False

    def test_subscription_serialization(self, db_session):
        """Test the seeded subscription"""
        subscription = Subscription.query.filter_by(user_id='user-1').first()
        data = subscription.to_dict()
        assert data['name'] == 'Netflix'
        assert data['frequency'] == 'monthly'
        assert data['next_billing_date'] > data['start_date']

    def test_learned_rule_unique(self, db_session):
        """Test one learned rule per description per user"""
        db_session.add(LearnedRule(user_id='user-1', description='chai', category='food'))
        db_session.commit()
        db_session.add(LearnedRule(user_id='user-1', description='chai', category='shopping'))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()
        assert db.session.query(LearnedRule).count() == 1
