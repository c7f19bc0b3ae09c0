from flask_sqlalchemy import SQLAlchemy
from datetime import datetime

db = SQLAlchemy()


def _money(value):
    return float(value) if value is not None else None


def _iso(value):
    return value.isoformat() if value is not None else None


class UserProfile(db.Model):  # type: ignore[name-defined]
    """User profile and preferences (id is the Supabase auth user id)"""
    __tablename__ = 'user_profiles'

    id = db.Column(db.String(64), primary_key=True)
    email = db.Column(db.String(255), nullable=False)
    display_name = db.Column(db.String(120))
    photo_url = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login = db.Column(db.DateTime, default=datetime.utcnow)

    # Preferences / settings
    language = db.Column(db.String(10), default='en')
    currency = db.Column(db.String(3), default='INR')  # Fixed to Indian Rupee
    reminder_days = db.Column(db.Integer, default=3)
    reminder_types = db.Column(db.JSON, default=lambda: ['in-app'])  # in-app, sms, whatsapp
    monthly_budget = db.Column(db.Numeric(12, 2))
    ai_enabled = db.Column(db.Boolean, default=True)
    pin_enabled = db.Column(db.Boolean, default=False)
    pin_hash = db.Column(db.String(255))
    phone_number = db.Column(db.String(20))
    whatsapp_number = db.Column(db.String(20))

    def settings_dict(self):
        return {
            'language': self.language,
            'currency': self.currency,
            'reminder_days': self.reminder_days,
            'reminder_types': list(self.reminder_types or []),
            'monthly_budget': _money(self.monthly_budget),
            'ai_enabled': self.ai_enabled,
            'pin_enabled': self.pin_enabled,
            'phone_number': self.phone_number,
            'whatsapp_number': self.whatsapp_number,
        }

    def to_dict(self):
        return {
            'uid': self.id,
            'email': self.email,
            'display_name': self.display_name,
            'photo_url': self.photo_url,
            'preferences': self.settings_dict(),
            'created_at': _iso(self.created_at),
            'last_login': _iso(self.last_login),
        }


class CustomCategory(db.Model):  # type: ignore[name-defined]
    """User-defined spending categories (defaults live in services.categories)"""
    __tablename__ = 'custom_categories'
    __table_args__ = (db.UniqueConstraint('user_id', 'slug', name='uq_custom_category_slug'),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    slug = db.Column(db.String(60), nullable=False)  # e.g. "pets"
    name = db.Column(db.String(100), nullable=False)
    icon = db.Column(db.String(50), default='Tag')
    color = db.Column(db.String(20), default='#6B7280')
    keywords = db.Column(db.JSON, default=list)

    def to_dict(self):
        return {
            'id': self.slug,
            'name': self.name,
            'icon': self.icon,
            'color': self.color,
            'keywords': list(self.keywords or []),
            'is_custom': True,
        }


class Expense(db.Model):  # type: ignore[name-defined]
    """Logged expenses, including recurring bills"""
    __tablename__ = 'expenses'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(60), nullable=False, default='miscellaneous')
    date = db.Column(db.Date, nullable=False)

    is_recurring = db.Column(db.Boolean, default=False)
    recurring_day_of_month = db.Column(db.Integer)
    next_due_date = db.Column(db.Date)  # Only for recurring bills
    is_paid = db.Column(db.Boolean, default=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    ai_confidence = db.Column(db.Float)  # Set when the category was predicted
    location = db.Column(db.String(200))
    merchant = db.Column(db.String(200))

    def to_dict(self):
        return {
            'id': self.id,
            'amount': _money(self.amount),
            'description': self.description,
            'category': self.category,
            'date': _iso(self.date),
            'is_recurring': self.is_recurring,
            'recurring_day_of_month': self.recurring_day_of_month,
            'next_due_date': _iso(self.next_due_date),
            'is_paid': self.is_paid,
            'created_at': _iso(self.created_at),
            'ai_confidence': self.ai_confidence,
            'location': self.location,
            'merchant': self.merchant,
        }


class Income(db.Model):  # type: ignore[name-defined]
    """Monthly income, one row per user per month"""
    __tablename__ = 'income'
    __table_args__ = (db.UniqueConstraint('user_id', 'month', name='uq_income_month'),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    month = db.Column(db.String(7), nullable=False)  # YYYY-MM
    monthly_income = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    extra_income = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    income_source = db.Column(db.String(200))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def total(self):
        return (self.monthly_income or 0) + (self.extra_income or 0)

    def to_dict(self):
        return {
            'id': self.id,
            'month': self.month,
            'monthly_income': _money(self.monthly_income),
            'extra_income': _money(self.extra_income),
            'income_source': self.income_source,
            'total': _money(self.total),
            'created_at': _iso(self.created_at),
        }


class EMI(db.Model):  # type: ignore[name-defined]
    """Loan installments (home loan, car loan, credit card, ...)"""
    __tablename__ = 'emis'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    monthly_amount = db.Column(db.Numeric(12, 2), nullable=False)
    tenure = db.Column(db.Integer, nullable=False)  # in months
    start_month = db.Column(db.String(7), nullable=False)  # YYYY-MM
    end_month = db.Column(db.String(7), nullable=False)  # start_month + tenure - 1
    category = db.Column(db.String(50), default='other')  # home_loan, car_loan, ...
    total_amount = db.Column(db.Numeric(14, 2), nullable=False)  # monthly_amount * tenure
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'monthly_amount': _money(self.monthly_amount),
            'tenure': self.tenure,
            'start_month': self.start_month,
            'end_month': self.end_month,
            'category': self.category,
            'total_amount': _money(self.total_amount),
            'is_active': self.is_active,
            'created_at': _iso(self.created_at),
        }


class Savings(db.Model):  # type: ignore[name-defined]
    """Savings and investments (FD, RD, SIP or custom)"""
    __tablename__ = 'savings'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    type = db.Column(db.String(10), nullable=False)  # fd, rd, sip, custom
    name = db.Column(db.String(120), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    start_date = db.Column(db.Date, nullable=False)

    # FD
    maturity_period = db.Column(db.Integer)  # in months
    interest_rate = db.Column(db.Float)  # annual %, also used by RD
    compounding_frequency = db.Column(db.String(10))  # monthly, quarterly, annually
    bank_name = db.Column(db.String(120))
    expected_maturity_amount = db.Column(db.Numeric(14, 2))
    maturity_date = db.Column(db.Date)

    # RD
    monthly_deposit = db.Column(db.Numeric(12, 2))
    tenure = db.Column(db.Integer)  # in months
    auto_debit = db.Column(db.Boolean, default=False)
    expected_total = db.Column(db.Numeric(14, 2))

    # SIP
    fund_name = db.Column(db.String(200))
    monthly_investment = db.Column(db.Numeric(12, 2))
    expected_annual_return = db.Column(db.Float)
    duration = db.Column(db.Integer)  # in months
    goal_tag = db.Column(db.String(100))
    expected_future_value = db.Column(db.Numeric(14, 2))

    # Custom
    frequency = db.Column(db.String(10))  # one-time, monthly, quarterly, yearly
    purpose = db.Column(db.String(200))

    is_active = db.Column(db.Boolean, default=True)
    is_matured = db.Column(db.Boolean, default=False)
    current_value = db.Column(db.Numeric(14, 2))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'name': self.name,
            'amount': _money(self.amount),
            'start_date': _iso(self.start_date),
            'maturity_period': self.maturity_period,
            'interest_rate': self.interest_rate,
            'compounding_frequency': self.compounding_frequency,
            'bank_name': self.bank_name,
            'expected_maturity_amount': _money(self.expected_maturity_amount),
            'maturity_date': _iso(self.maturity_date),
            'monthly_deposit': _money(self.monthly_deposit),
            'tenure': self.tenure,
            'auto_debit': self.auto_debit,
            'expected_total': _money(self.expected_total),
            'fund_name': self.fund_name,
            'monthly_investment': _money(self.monthly_investment),
            'expected_annual_return': self.expected_annual_return,
            'duration': self.duration,
            'goal_tag': self.goal_tag,
            'expected_future_value': _money(self.expected_future_value),
            'frequency': self.frequency,
            'purpose': self.purpose,
            'is_active': self.is_active,
            'is_matured': self.is_matured,
            'current_value': _money(self.current_value),
            'created_at': _iso(self.created_at),
        }


class Subscription(db.Model):  # type: ignore[name-defined]
    """Recurring subscriptions (streaming, cloud storage, ...)"""
    __tablename__ = 'subscriptions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    frequency = db.Column(db.String(10), nullable=False, default='monthly')  # monthly, quarterly, yearly
    category = db.Column(db.String(50), default='entertainment')
    start_date = db.Column(db.Date, nullable=False)
    next_billing_date = db.Column(db.Date, nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    auto_renewal = db.Column(db.Boolean, default=True)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'amount': _money(self.amount),
            'frequency': self.frequency,
            'category': self.category,
            'start_date': _iso(self.start_date),
            'next_billing_date': _iso(self.next_billing_date),
            'is_active': self.is_active,
            'auto_renewal': self.auto_renewal,
            'description': self.description,
            'created_at': _iso(self.created_at),
        }


class LearnedRule(db.Model):  # type: ignore[name-defined]
    """Description -> category associations learned from the user"""
    __tablename__ = 'learned_rules'
    __table_args__ = (db.UniqueConstraint('user_id', 'description', name='uq_learned_rule'),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    description = db.Column(db.String(255), nullable=False)  # lowercased, stripped
    category = db.Column(db.String(60), nullable=False)


class SpendingPattern(db.Model):  # type: ignore[name-defined]
    """Per-description amount history used for amount prediction"""
    __tablename__ = 'spending_patterns'
    __table_args__ = (db.UniqueConstraint('user_id', 'description', name='uq_spending_pattern'),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    description = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(60), nullable=False)
    amounts = db.Column(db.JSON, default=list)  # last 10 amounts
    frequency = db.Column(db.Integer, default=0)
    last_used = db.Column(db.DateTime)
    average_amount = db.Column(db.Float, default=0.0)


class UserInteraction(db.Model):  # type: ignore[name-defined]
    """Accepted/rejected suggestions, capped per user"""
    __tablename__ = 'user_interactions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    description = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(30), nullable=False)  # category, amount, recurring
    value = db.Column(db.JSON)
    accepted = db.Column(db.Boolean, default=False)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow)
