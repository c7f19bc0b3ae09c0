from flask import Flask, render_template, request, redirect, url_for, flash, session, jsonify, send_file
from flask.json.provider import DefaultJSONProvider
from functools import wraps
from io import BytesIO
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from werkzeug.security import generate_password_hash, check_password_hash

from billbox.config import Config
from billbox.database.models import (
    db, UserProfile, CustomCategory, Expense, Income, EMI, Savings, Subscription,
)
from billbox.services.auth import (
    AuthError, sign_in, sign_up, sign_out, reset_password as send_password_reset,
    update_password, sync_profile, reset_user_data,
)
from billbox.services.categories import (
    get_categories, category_hints, is_default_category, slugify_category, SUBSCRIPTION_CATEGORIES,
)
from billbox.services.emi import build_emi, emi_stats, financial_forecast
from billbox.services.excel_export import generate_report_workbook
from billbox.services.learning import load_predictor, save_learning, save_interaction, reset_learning
from billbox.services.reminders import generate_reminders, process_reminders, REMINDER_TYPES
from billbox.services.reports import (
    generate_monthly_report, generate_whatsapp_financial_report, monthly_stats,
    generate_whatsapp_message, whatsapp_share_url, aggregate_expenses,
    get_available_years, get_expenses_for_year, format_amount,
)
from billbox.services.savings import (
    build_savings, apply_savings, savings_overview, refresh_maturity, mature,
)
from billbox.services.translations import LANGUAGES, translate
from billbox.services.schedule import (
    month_key, parse_month, month_start, month_end, initial_due_date,
    roll_recurring_due_dates, mark_paid as mark_expense_paid, next_billing_date,
    subscription_stats, days_until_due,
)

logging.basicConfig(
    level=getattr(logging, str(Config.LOG_LEVEL).upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)


class BillBoxJSONProvider(DefaultJSONProvider):
    """Decimals as numbers, dates as ISO 8601, models through to_dict()"""

    @staticmethod
    def default(o):
        if isinstance(o, Decimal):
            return float(o)
        if isinstance(o, (date, datetime)):
            return o.isoformat()
        if hasattr(o, 'to_dict'):
            return o.to_dict()
        return DefaultJSONProvider.default(o)


app = Flask(__name__)
app.config.from_object(Config)
app.json = BillBoxJSONProvider(app)


@app.template_filter('money')
def money_filter(amount):
    return format_amount(amount, app.config['CURRENCY_SYMBOL'])


@app.context_processor
def inject_translations():
    """t('key') in templates, in the signed-in user's language"""
    language = 'en'
    if session.get('user_id'):
        profile = db.session.get(UserProfile, session['user_id'])
        if profile and profile.language in LANGUAGES:
            language = profile.language
    return {'t': lambda key: translate(key, language), 'language': language}


# Initialize database
db.init_app(app)


class SaveError(Exception):
    """A commit failed and was rolled back"""


def save(action):
    """Commit the session, rolling back and raising SaveError on failure"""
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        app.logger.exception(f'[DB] {action} failed')
        raise SaveError(f'{action} failed: {e}') from e


@app.errorhandler(SaveError)
def handle_save_error(e):
    return jsonify({'success': False, 'error': str(e)}), 500


@app.errorhandler(ValueError)
def handle_value_error(e):
    return jsonify({'success': False, 'error': str(e)}), 400


@app.errorhandler(404)
def handle_not_found(e):
    if request.path.startswith('/api/'):
        return jsonify({'success': False, 'error': 'Not found'}), 404
    return e


# Authentication decorator
def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not session.get('user_id'):
            if request.path.startswith('/api/'):
                return jsonify({'success': False, 'error': 'Authentication required'}), 401
            return redirect(url_for('login'))
        return f(*args, **kwargs)
    return decorated_function


def current_user_id():
    return session['user_id']


def current_profile():
    """The signed-in user's profile, created with defaults if missing"""
    profile = db.session.get(UserProfile, current_user_id())
    if profile is None:
        profile = UserProfile(
            id=current_user_id(),
            email=session.get('email') or '',
            currency=app.config['CURRENCY'],
            language='en',
            reminder_days=app.config['DEFAULT_REMINDER_DAYS'],
            reminder_types=['in-app'],
            ai_enabled=True,
            pin_enabled=False,
        )
        db.session.add(profile)
        save('Creating profile')
    return profile


def login_user(user, auth_session=None):
    sync_profile(user)
    db.session.commit()
    session['user_id'] = user.id
    session['email'] = user.email
    # Kept so logout can revoke this user's own Supabase session
    if auth_session is not None:
        session['access_token'] = auth_session.access_token
        session['refresh_token'] = getattr(auth_session, 'refresh_token', None)


# ----------------------------------------------------------------------
# Request parsing helpers (raise ValueError, answered with 400)
# ----------------------------------------------------------------------

def get_json():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError('Expected a JSON object')
    return data


def parse_money(value, field='Amount', allow_zero=False):
    if value in (None, ''):
        if allow_zero:
            return Decimal('0')
        raise ValueError(f'{field} is required')
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f'{field} must be a number')
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValueError(f'{field} must be greater than 0')
    return amount.quantize(Decimal('0.01'))


def parse_date(value, default=None):
    if value in (None, ''):
        return default or date.today()
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except ValueError:
        raise ValueError(f'Invalid date: {value!r} (expected YYYY-MM-DD)')


def parse_day_of_month(value):
    try:
        day = int(value)
    except (TypeError, ValueError):
        raise ValueError('Day of month must be a number')
    if not 1 <= day <= 31:
        raise ValueError('Day of month must be between 1 and 31')
    return day


def require_text(data, field, label=None):
    value = (data.get(field) or '').strip()
    if not value:
        raise ValueError(f'{label or field.replace("_", " ").capitalize()} is required')
    return value


def user_categories():
    custom = CustomCategory.query.filter_by(user_id=current_user_id()).all()
    return get_categories(custom)


def check_category(slug):
    if slug not in {c['id'] for c in user_categories()}:
        raise ValueError(f'Unknown category: {slug}')
    return slug


def user_expenses():
    return Expense.query.filter_by(user_id=current_user_id()).all()


# ----------------------------------------------------------------------
# Pages
# ----------------------------------------------------------------------

@app.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'POST':
        email = request.form.get('email', '').strip()
        password = request.form.get('password', '')
        try:
            user, auth_session = sign_in(email, password)
            login_user(user, auth_session)
            app.logger.info(f'[AUTH] Login for user {user.id}')
            flash('Logged in successfully', 'success')
            return redirect(url_for('index'))
        except AuthError as e:
            flash(str(e), 'error')
    return render_template('login.html')


@app.route('/signup', methods=['GET', 'POST'])
def signup():
    if request.method == 'POST':
        email = request.form.get('email', '').strip()
        password = request.form.get('password', '')
        full_name = request.form.get('full_name', '').strip()
        try:
            user, auth_session = sign_up(email, password, full_name)
            login_user(user, auth_session)
            flash('Account created', 'success')
            return redirect(url_for('index'))
        except AuthError as e:
            if 'check your email' in str(e):
                flash(str(e), 'info')
                return redirect(url_for('login'))
            flash(str(e), 'error')
    return render_template('signup.html')


@app.route('/logout')
def logout():
    try:
        sign_out(session.get('access_token'), session.get('refresh_token'))
    except AuthError as e:
        app.logger.warning(f'[AUTH] Sign out failed: {e}')
    session.clear()
    flash('Logged out successfully', 'success')
    return redirect(url_for('login'))


@app.route('/reset_password', methods=['GET', 'POST'])
def reset_password():
    """
    Request a reset email, or set a new password from the emailed link.

    Supabase puts the recovery tokens in the link's URL fragment; the page
    copies them into the form, so a new password is only accepted together
    with a recovery token.
    """
    tokens = {
        'access_token': request.values.get('access_token', ''),
        'refresh_token': request.values.get('refresh_token', ''),
    }
    if request.method == 'POST':
        try:
            if request.form.get('password'):
                if request.form.get('password') != request.form.get('confirm_password'):
                    flash('Passwords do not match', 'error')
                    return render_template('reset_password.html', recovery=True, **tokens)
                update_password(request.form['password'], **tokens)
                flash('Password updated, please log in', 'success')
                return redirect(url_for('login'))

            send_password_reset(request.form.get('email', '').strip())
            flash('Password reset email sent. Check your inbox.', 'info')
            return redirect(url_for('login'))
        except AuthError as e:
            flash(str(e), 'error')
    return render_template('reset_password.html', recovery=bool(tokens['access_token']), **tokens)


@app.route('/')
@login_required
def index():
    """Dashboard with this month's totals, upcoming bills and insights"""
    profile = current_profile()
    today = date.today()
    expenses = user_expenses()
    income = Income.query.filter_by(user_id=current_user_id()).all()
    categories = user_categories()

    stats = monthly_stats(expenses, income, today, categories, profile.monthly_budget)
    upcoming = sorted(
        (e for e in expenses if e.is_recurring and e.next_due_date
         and 0 <= days_until_due(e.next_due_date, today) <= 7),
        key=lambda e: e.next_due_date,
    )
    insights = load_predictor(current_user_id()).generate_insights(expenses, today)
    recent = sorted(expenses, key=lambda e: (e.date, e.id), reverse=True)[:10]

    return render_template('index.html',
                           profile=profile,
                           stats=stats,
                           upcoming=upcoming,
                           insights=insights,
                           recent=recent,
                           today=today)


# ----------------------------------------------------------------------
# Expenses
# ----------------------------------------------------------------------

@app.route('/api/expenses', methods=['GET'])
@login_required
def list_expenses():
    """Expenses, newest first; filters: category, q, month"""
    query = Expense.query.filter_by(user_id=current_user_id())

    category = request.args.get('category')
    if category:
        query = query.filter_by(category=category)

    search = request.args.get('q', '').strip()
    if search:
        query = query.filter(Expense.description.ilike(f'%{search}%'))

    month = request.args.get('month')
    if month:
        year, mon = parse_month(month)
        first = date(year, mon, 1)
        query = query.filter(Expense.date >= first, Expense.date <= month_end(first))

    expenses = query.order_by(Expense.date.desc(), Expense.id.desc()).all()
    return jsonify({'success': True, 'expenses': [e.to_dict() for e in expenses]})


@app.route('/api/expenses', methods=['POST'])
@login_required
def add_expense():
    """Add an expense; the category is predicted when none is given"""
    data = get_json()
    profile = current_profile()

    description = require_text(data, 'description')
    amount = parse_money(data.get('amount'))
    expense_date = parse_date(data.get('date'))

    prediction = None
    category = data.get('category')
    if category:
        check_category(category)
    elif profile.ai_enabled:
        prediction = load_predictor(current_user_id()).predict_category(description, amount)
        category = prediction['category']
    else:
        category = 'miscellaneous'

    is_recurring = bool(data.get('is_recurring'))
    recurring_day = None
    next_due = None
    if is_recurring:
        recurring_day = parse_day_of_month(data.get('recurring_day_of_month') or expense_date.day)
        if data.get('next_due_date'):
            next_due = parse_date(data['next_due_date'])
        else:
            next_due = initial_due_date(recurring_day, date.today())

    expense = Expense(
        user_id=current_user_id(),
        amount=amount,
        description=description,
        category=category,
        date=expense_date,
        is_recurring=is_recurring,
        recurring_day_of_month=recurring_day,
        next_due_date=next_due,
        is_paid=False,
        ai_confidence=prediction['confidence'] if prediction else None,
        location=(data.get('location') or '').strip() or None,
        merchant=(data.get('merchant') or '').strip() or None,
    )
    db.session.add(expense)
    if profile.ai_enabled:
        save_learning(current_user_id(), description, category, amount)
    save('Adding expense')

    app.logger.info(f'[EXPENSES] Added expense {expense.id} ({category}) for user {current_user_id()}')
    return jsonify({'success': True, 'expense': expense.to_dict(), 'prediction': prediction}), 201


@app.route('/api/expenses/<int:id>', methods=['PUT'])
@login_required
def update_expense(id):
    expense = Expense.query.filter_by(id=id, user_id=current_user_id()).first_or_404()
    data = get_json()

    if 'description' in data:
        expense.description = require_text(data, 'description')
    if 'amount' in data:
        expense.amount = parse_money(data['amount'])
    if 'date' in data:
        expense.date = parse_date(data['date'])

    category_changed = False
    if data.get('category') and data['category'] != expense.category:
        expense.category = check_category(data['category'])
        expense.ai_confidence = None
        category_changed = True

    if 'is_recurring' in data:
        expense.is_recurring = bool(data['is_recurring'])
    if expense.is_recurring:
        if data.get('recurring_day_of_month'):
            expense.recurring_day_of_month = parse_day_of_month(data['recurring_day_of_month'])
        if data.get('next_due_date'):
            expense.next_due_date = parse_date(data['next_due_date'])
        elif not expense.next_due_date:
            expense.recurring_day_of_month = expense.recurring_day_of_month or expense.date.day
            expense.next_due_date = initial_due_date(expense.recurring_day_of_month, date.today())
    else:
        expense.recurring_day_of_month = None
        expense.next_due_date = None

    if 'is_paid' in data:
        expense.is_paid = bool(data['is_paid'])
    for field in ('location', 'merchant'):
        if field in data:
            setattr(expense, field, (data[field] or '').strip() or None)

    # A manual re-categorization is the strongest learning signal
    if category_changed and current_profile().ai_enabled:
        save_learning(current_user_id(), expense.description, expense.category, expense.amount)

    save('Updating expense')
    return jsonify({'success': True, 'expense': expense.to_dict()})


@app.route('/api/expenses/<int:id>', methods=['DELETE'])
@login_required
def delete_expense(id):
    expense = Expense.query.filter_by(id=id, user_id=current_user_id()).first_or_404()
    db.session.delete(expense)
    save('Deleting expense')
    return jsonify({'success': True})


@app.route('/api/expenses/<int:id>/mark_paid', methods=['POST'])
@login_required
def mark_paid(id):
    expense = Expense.query.filter_by(id=id, user_id=current_user_id()).first_or_404()
    mark_expense_paid(expense, date.today())
    save('Marking expense paid')
    return jsonify({'success': True, 'expense': expense.to_dict()})


@app.route('/api/expenses/roll_due_dates', methods=['POST'])
@login_required
def roll_due_dates():
    """Move overdue recurring bills to their next due date"""
    changed = roll_recurring_due_dates(user_expenses(), date.today())
    if changed:
        save('Rolling due dates')
    return jsonify({'success': True, 'count': len(changed), 'expenses': [e.to_dict() for e in changed]})


# ----------------------------------------------------------------------
# Income
# ----------------------------------------------------------------------

@app.route('/api/income', methods=['GET'])
@login_required
def list_income():
    rows = Income.query.filter_by(user_id=current_user_id()).order_by(Income.month.desc()).all()
    return jsonify({'success': True, 'income': [i.to_dict() for i in rows]})


@app.route('/api/income', methods=['POST'])
@login_required
def save_income():
    """Create or replace the income for a month (default: current month)"""
    data = get_json()
    month = data.get('month') or month_key()
    parse_month(month)

    income = Income.query.filter_by(user_id=current_user_id(), month=month).first()
    created = income is None
    if created:
        income = Income(user_id=current_user_id(), month=month)
        db.session.add(income)

    income.monthly_income = parse_money(data.get('monthly_income'), 'Monthly income', allow_zero=True)
    income.extra_income = parse_money(data.get('extra_income'), 'Extra income', allow_zero=True)
    income.income_source = (data.get('income_source') or '').strip() or None
    save('Saving income')

    return jsonify({'success': True, 'income': income.to_dict()}), 201 if created else 200


@app.route('/api/income/<int:id>', methods=['PUT'])
@login_required
def update_income(id):
    income = Income.query.filter_by(id=id, user_id=current_user_id()).first_or_404()
    data = get_json()
    if 'monthly_income' in data:
        income.monthly_income = parse_money(data['monthly_income'], 'Monthly income', allow_zero=True)
    if 'extra_income' in data:
        income.extra_income = parse_money(data['extra_income'], 'Extra income', allow_zero=True)
    if 'income_source' in data:
        income.income_source = (data['income_source'] or '').strip() or None
    save('Updating income')
    return jsonify({'success': True, 'income': income.to_dict()})


@app.route('/api/income/<int:id>', methods=['DELETE'])
@login_required
def delete_income(id):
    income = Income.query.filter_by(id=id, user_id=current_user_id()).first_or_404()
    db.session.delete(income)
    save('Deleting income')
    return jsonify({'success': True})


# ----------------------------------------------------------------------
# EMIs
# ----------------------------------------------------------------------

@app.route('/api/emis', methods=['GET'])
@login_required
def list_emis():
    emis = EMI.query.filter_by(user_id=current_user_id()).order_by(EMI.start_month).all()
    return jsonify({'success': True, 'emis': [e.to_dict() for e in emis]})


@app.route('/api/emis', methods=['POST'])
@login_required
def add_emi():
    data = get_json()
    fields = build_emi(
        data.get('name'),
        data.get('monthly_amount'),
        data.get('tenure'),
        data.get('start_month') or month_key(),
        data.get('category') or 'other',
    )
    emi = EMI(user_id=current_user_id(), is_active=True, **fields)
    db.session.add(emi)
    save('Adding EMI')
    return jsonify({'success': True, 'emi': emi.to_dict()}), 201


@app.route('/api/emis/<int:id>', methods=['PUT'])
@login_required
def update_emi(id):
    emi = EMI.query.filter_by(id=id, user_id=current_user_id()).first_or_404()
    data = get_json()
    fields = build_emi(
        data.get('name', emi.name),
        data.get('monthly_amount', emi.monthly_amount),
        data.get('tenure', emi.tenure),
        data.get('start_month', emi.start_month),
        data.get('category', emi.category),
    )
    for key, value in fields.items():
        setattr(emi, key, value)
    if 'is_active' in data:
        emi.is_active = bool(data['is_active'])
    save('Updating EMI')
    return jsonify({'success': True, 'emi': emi.to_dict()})


@app.route('/api/emis/<int:id>', methods=['DELETE'])
@login_required
def delete_emi(id):
    emi = EMI.query.filter_by(id=id, user_id=current_user_id()).first_or_404()
    db.session.delete(emi)
    save('Deleting EMI')
    return jsonify({'success': True})


@app.route('/api/emis/<int:id>/complete', methods=['POST'])
@login_required
def complete_emi(id):
    emi = EMI.query.filter_by(id=id, user_id=current_user_id()).first_or_404()
    emi.is_active = False
    save('Completing EMI')
    return jsonify({'success': True, 'emi': emi.to_dict()})


@app.route('/api/emis/summary')
@login_required
def emi_summary():
    emis = EMI.query.filter_by(user_id=current_user_id()).all()
    return jsonify({'success': True, 'summary': emi_stats(emis, month_key())})


@app.route('/api/emis/forecast')
@login_required
def emi_forecast():
    uid = current_user_id()
    forecast = financial_forecast(
        EMI.query.filter_by(user_id=uid).all(),
        Income.query.filter_by(user_id=uid).all(),
        user_expenses(),
        month_key(),
        app.config['FORECAST_MONTHS'],
    )
    return jsonify({'success': True, 'forecast': forecast})


# ----------------------------------------------------------------------
# Savings
# ----------------------------------------------------------------------

@app.route('/api/savings', methods=['GET'])
@login_required
def list_savings():
    rows = Savings.query.filter_by(user_id=current_user_id()).order_by(Savings.start_date.desc()).all()
    return jsonify({'success': True, 'savings': [s.to_dict() for s in rows]})


@app.route('/api/savings', methods=['POST'])
@login_required
def add_savings():
    data = get_json()
    fields = build_savings(data.get('type'), data)
    savings = Savings(user_id=current_user_id(), **fields)
    db.session.add(savings)
    save('Adding savings')
    return jsonify({'success': True, 'savings': savings.to_dict()}), 201


@app.route('/api/savings/<int:id>', methods=['PUT'])
@login_required
def update_savings(id):
    savings = Savings.query.filter_by(id=id, user_id=current_user_id()).first_or_404()
    data = get_json()
    merged = dict(savings.to_dict(), **data)
    fields = build_savings(merged.get('type'), merged)
    fields.pop('is_active')
    fields.pop('is_matured')
    apply_savings(savings, fields)
    if 'is_active' in data:
        savings.is_active = bool(data['is_active'])
    save('Updating savings')
    return jsonify({'success': True, 'savings': savings.to_dict()})


@app.route('/api/savings/<int:id>', methods=['DELETE'])
@login_required
def delete_savings(id):
    savings = Savings.query.filter_by(id=id, user_id=current_user_id()).first_or_404()
    db.session.delete(savings)
    save('Deleting savings')
    return jsonify({'success': True})


@app.route('/api/savings/<int:id>/mature', methods=['POST'])
@login_required
def mature_savings(id):
    savings = Savings.query.filter_by(id=id, user_id=current_user_id()).first_or_404()
    mature(savings)
    save('Maturing savings')
    return jsonify({'success': True, 'savings': savings.to_dict()})


@app.route('/api/savings/overview')
@login_required
def savings_summary():
    rows = Savings.query.filter_by(user_id=current_user_id()).all()
    if refresh_maturity(rows, date.today()):
        save('Refreshing maturity')
    overview = savings_overview(rows, date.today(), app.config['SAVINGS_PROJECTION_RATE'])
    return jsonify({'success': True, 'overview': overview})


# ----------------------------------------------------------------------
# Subscriptions
# ----------------------------------------------------------------------

def _subscription_fields(data, existing=None):
    name = require_text(data, 'name') if 'name' in data or existing is None else existing.name
    amount = parse_money(data['amount']) if 'amount' in data or existing is None else existing.amount
    frequency = data.get('frequency') or (existing.frequency if existing else 'monthly')
    category = data.get('category') or (existing.category if existing else 'entertainment')
    if category not in SUBSCRIPTION_CATEGORIES:
        raise ValueError(f'Unknown subscription category: {category}')
    start = parse_date(data['start_date']) if data.get('start_date') else (
        existing.start_date if existing else date.today())

    fields = {
        'name': name,
        'amount': amount,
        'frequency': frequency,
        'category': category,
        'start_date': start,
        'next_billing_date': next_billing_date(start, frequency, date.today()),
    }
    if 'description' in data or existing is None:
        fields['description'] = (data.get('description') or '').strip() or None
    if 'auto_renewal' in data:
        fields['auto_renewal'] = bool(data['auto_renewal'])
    return fields


@app.route('/api/subscriptions', methods=['GET'])
@login_required
def list_subscriptions():
    rows = Subscription.query.filter_by(user_id=current_user_id()).order_by(Subscription.next_billing_date).all()
    return jsonify({'success': True, 'subscriptions': [s.to_dict() for s in rows]})


@app.route('/api/subscriptions', methods=['POST'])
@login_required
def add_subscription():
    fields = _subscription_fields(get_json())
    fields.setdefault('auto_renewal', True)
    subscription = Subscription(user_id=current_user_id(), is_active=True, **fields)
    db.session.add(subscription)
    save('Adding subscription')
    return jsonify({'success': True, 'subscription': subscription.to_dict()}), 201


@app.route('/api/subscriptions/<int:id>', methods=['PUT'])
@login_required
def update_subscription(id):
    subscription = Subscription.query.filter_by(id=id, user_id=current_user_id()).first_or_404()
    for key, value in _subscription_fields(get_json(), subscription).items():
        setattr(subscription, key, value)
    save('Updating subscription')
    return jsonify({'success': True, 'subscription': subscription.to_dict()})


@app.route('/api/subscriptions/<int:id>', methods=['DELETE'])
@login_required
def delete_subscription(id):
    subscription = Subscription.query.filter_by(id=id, user_id=current_user_id()).first_or_404()
    db.session.delete(subscription)
    save('Deleting subscription')
    return jsonify({'success': True})


@app.route('/api/subscriptions/<int:id>/toggle', methods=['POST'])
@login_required
def toggle_subscription(id):
    """Pause or resume a subscription"""
    subscription = Subscription.query.filter_by(id=id, user_id=current_user_id()).first_or_404()
    subscription.is_active = not subscription.is_active
    if subscription.is_active:
        subscription.next_billing_date = next_billing_date(
            subscription.start_date, subscription.frequency, date.today())
    save('Toggling subscription')
    return jsonify({'success': True, 'is_active': subscription.is_active})


@app.route('/api/subscriptions/summary')
@login_required
def subscriptions_summary():
    rows = Subscription.query.filter_by(user_id=current_user_id()).all()
    return jsonify({'success': True, 'summary': subscription_stats(rows, date.today())})


# ----------------------------------------------------------------------
# Categories
# ----------------------------------------------------------------------

@app.route('/api/categories', methods=['GET'])
@login_required
def list_categories():
    return jsonify({'success': True, 'categories': user_categories()})


@app.route('/api/categories', methods=['POST'])
@login_required
def add_category():
    data = get_json()
    name = require_text(data, 'name')
    slug = slugify_category(name)
    if not slug:
        raise ValueError('Category name must contain letters or digits')
    if slug in {c['id'] for c in user_categories()}:
        raise ValueError(f'Category already exists: {name}')

    keywords = data.get('keywords') or []
    if isinstance(keywords, str):
        keywords = keywords.split(',')
    category = CustomCategory(
        user_id=current_user_id(),
        slug=slug,
        name=name,
        icon=data.get('icon') or 'Tag',
        color=data.get('color') or '#6B7280',
        keywords=[k.strip().lower() for k in keywords if k and k.strip()],
    )
    db.session.add(category)
    save('Adding category')
    return jsonify({'success': True, 'category': category.to_dict()}), 201


@app.route('/api/categories/<slug>', methods=['DELETE'])
@login_required
def delete_category(slug):
    """Delete a custom category; its expenses move to miscellaneous"""
    if is_default_category(slug):
        raise ValueError('Default categories cannot be deleted')
    category = CustomCategory.query.filter_by(user_id=current_user_id(), slug=slug).first_or_404()
    moved = Expense.query.filter_by(user_id=current_user_id(), category=slug).update(
        {'category': 'miscellaneous'})
    db.session.delete(category)
    save('Deleting category')
    return jsonify({'success': True, 'moved_expenses': moved})


# ----------------------------------------------------------------------
# Prediction ("AI") endpoints
# ----------------------------------------------------------------------

@app.route('/api/ai/suggest', methods=['POST'])
@login_required
def ai_suggest():
    """Category prediction, smart suggestions and learning insights for a description"""
    data = get_json()
    if not current_profile().ai_enabled:
        return jsonify({'success': True, 'ai_enabled': False})
    amount = parse_money(data['amount']) if data.get('amount') else None
    description = data.get('description', '')
    suggestions = load_predictor(current_user_id()).generate_comprehensive_suggestions(description, amount)
    hints = category_hints(description, user_categories())
    return jsonify({'success': True, 'ai_enabled': True, 'category_hints': hints, **suggestions})


@app.route('/api/ai/predict_amount', methods=['POST'])
@login_required
def ai_predict_amount():
    data = get_json()
    prediction = load_predictor(current_user_id()).predict_amount(data.get('description', ''))
    return jsonify({'success': True, 'prediction': prediction})


@app.route('/api/ai/learn', methods=['POST'])
@login_required
def ai_learn():
    data = get_json()
    description = require_text(data, 'description')
    category = check_category(require_text(data, 'category'))
    amount = parse_money(data['amount']) if data.get('amount') else None
    save_learning(current_user_id(), description, category, amount)
    save('Saving learning')
    return jsonify({'success': True})


@app.route('/api/ai/interaction', methods=['POST'])
@login_required
def ai_interaction():
    data = get_json()
    save_interaction(
        current_user_id(),
        require_text(data, 'description'),
        require_text(data, 'type'),
        data.get('value'),
        bool(data.get('accepted')),
    )
    save('Saving interaction')
    return jsonify({'success': True})


@app.route('/api/ai/reset', methods=['POST'])
@login_required
def ai_reset():
    counts = reset_learning(current_user_id())
    save('Resetting learning')
    return jsonify({'success': True, 'deleted': counts})


@app.route('/api/ai/insights')
@login_required
def ai_insights():
    insights = load_predictor(current_user_id()).generate_insights(user_expenses(), date.today())
    return jsonify({'success': True, 'insights': insights})


# ----------------------------------------------------------------------
# Reminders
# ----------------------------------------------------------------------

@app.route('/api/reminders')
@login_required
def list_reminders():
    profile = current_profile()
    reminders = generate_reminders(user_expenses(), profile.reminder_days, date.today())
    return jsonify({'success': True, 'reminders': reminders})


@app.route('/api/reminders/process', methods=['POST'])
@login_required
def run_reminders():
    result = process_reminders(user_expenses(), current_profile().settings_dict(), date.today())
    return jsonify({'success': True, **result})


# ----------------------------------------------------------------------
# Reports
# ----------------------------------------------------------------------

def _report_date():
    """First day of ?month=YYYY-MM, or today"""
    month = request.args.get('month')
    if not month:
        return date.today()
    year, mon = parse_month(month)
    return date(year, mon, 1)


def _build_report(day):
    uid = current_user_id()
    return generate_monthly_report(
        Income.query.filter_by(user_id=uid).all(),
        user_expenses(),
        EMI.query.filter_by(user_id=uid).all(),
        Savings.query.filter_by(user_id=uid).all(),
        day,
    )


@app.route('/api/report')
@login_required
def monthly_report():
    return jsonify({'success': True, 'report': _build_report(_report_date())})


@app.route('/api/report/whatsapp')
@login_required
def monthly_report_whatsapp():
    report = _build_report(_report_date())
    message = generate_whatsapp_financial_report(report, app.config['CURRENCY_SYMBOL'])
    return jsonify({'success': True, 'message': message, 'url': whatsapp_share_url(message)})


@app.route('/api/summary')
@login_required
def summary():
    """Monthly spending stats and the share message"""
    profile = current_profile()
    stats = monthly_stats(
        user_expenses(),
        Income.query.filter_by(user_id=current_user_id()).all(),
        _report_date(),
        user_categories(),
        profile.monthly_budget,
    )
    message = generate_whatsapp_message(stats, app.config['CURRENCY_SYMBOL'])
    return jsonify({'success': True, 'stats': stats, 'message': message, 'url': whatsapp_share_url(message)})


@app.route('/api/analytics')
@login_required
def analytics():
    """Yearly expense breakdown by month and category"""
    uid = current_user_id()
    years = get_available_years(db.session, Expense, uid)
    year = request.args.get('year', years[0], type=int)
    expenses = get_expenses_for_year(Expense, uid, year)
    data = aggregate_expenses(expenses, user_categories())
    return jsonify({'success': True, 'year': year, 'years': years, **data})


@app.route('/export')
@login_required
def export():
    """Export the monthly report to Excel"""
    day = _report_date()
    uid = current_user_id()
    filename = f'billbox_report_{month_key(day)}.xlsx'

    try:
        report = _build_report(day)
        expenses = Expense.query.filter(
            Expense.user_id == uid,
            Expense.date >= month_start(day),
            Expense.date <= month_end(day),
        ).order_by(Expense.date).all()
        content = generate_report_workbook(
            report,
            expenses,
            EMI.query.filter_by(user_id=uid).all(),
            Savings.query.filter_by(user_id=uid).all(),
            filename,
            user_categories(),
        )
        return send_file(
            BytesIO(content),
            as_attachment=True,
            download_name=filename,
            mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        )
    except Exception as e:
        app.logger.exception('[EXPORT] Error generating export')
        flash(f'Error generating export: {str(e)}', 'error')
        return redirect(url_for('index'))


# ----------------------------------------------------------------------
# Settings, profile and data reset
# ----------------------------------------------------------------------

@app.route('/api/settings', methods=['GET'])
@login_required
def get_settings():
    return jsonify({'success': True, 'settings': current_profile().settings_dict()})


@app.route('/api/settings', methods=['PUT'])
@login_required
def update_settings():
    profile = current_profile()
    data = get_json()

    if 'reminder_days' in data:
        try:
            days = int(data['reminder_days'])
        except (TypeError, ValueError):
            raise ValueError('Reminder days must be a number')
        if not 0 <= days <= 30:
            raise ValueError('Reminder days must be between 0 and 30')
        profile.reminder_days = days

    if 'reminder_types' in data:
        types = list(data['reminder_types'] or [])
        unknown = [t for t in types if t not in REMINDER_TYPES]
        if unknown:
            raise ValueError(f'Unknown reminder types: {", ".join(unknown)}')
        profile.reminder_types = types

    if 'monthly_budget' in data:
        budget = data['monthly_budget']
        profile.monthly_budget = parse_money(budget, 'Monthly budget') if budget not in (None, '', 0) else None

    if 'language' in data:
        if data['language'] not in LANGUAGES:
            raise ValueError(f'Unsupported language: {data["language"]!r}')
        profile.language = data['language']

    for field in ('currency', 'phone_number', 'whatsapp_number'):
        if field in data:
            setattr(profile, field, (data[field] or '').strip() or None)
    if not profile.currency:
        profile.currency = app.config['CURRENCY']

    if 'ai_enabled' in data:
        profile.ai_enabled = bool(data['ai_enabled'])

    if data.get('pin'):
        pin = str(data['pin'])
        if not pin.isdigit() or not 4 <= len(pin) <= 6:
            raise ValueError('PIN must be 4 to 6 digits')
        profile.pin_hash = generate_password_hash(pin)
        profile.pin_enabled = True
    elif data.get('pin_enabled') is False:
        profile.pin_hash = None
        profile.pin_enabled = False

    save('Updating settings')
    return jsonify({'success': True, 'settings': profile.settings_dict()})


@app.route('/api/settings/verify_pin', methods=['POST'])
@login_required
def verify_pin():
    profile = current_profile()
    if not profile.pin_enabled or not profile.pin_hash:
        return jsonify({'success': False, 'error': 'PIN is not enabled'}), 400
    pin = str(get_json().get('pin') or '')
    return jsonify({'success': True, 'valid': check_password_hash(profile.pin_hash, pin)})


@app.route('/api/profile', methods=['GET'])
@login_required
def get_profile():
    return jsonify({'success': True, 'profile': current_profile().to_dict()})


@app.route('/api/profile', methods=['PUT'])
@login_required
def update_profile():
    profile = current_profile()
    data = get_json()
    if 'display_name' in data:
        profile.display_name = require_text(data, 'display_name', 'Display name')
    if 'photo_url' in data:
        profile.photo_url = (data['photo_url'] or '').strip() or None
    save('Updating profile')
    return jsonify({'success': True, 'profile': profile.to_dict()})


@app.route('/api/reset_data', methods=['POST'])
@login_required
def reset_data():
    """Delete all of the user's records and learning data"""
    counts = reset_user_data(current_user_id())
    save('Resetting data')
    app.logger.info(f'[RESET] Cleared data for user {current_user_id()}')
    return jsonify({'success': True, 'deleted': counts})


@app.route('/health')
def health():
    return jsonify({'status': 'ok'})


@app.cli.command()
def init_db():
    """Initialize the database"""
    db.create_all()
    print("Database initialized!")


if __name__ == '__main__':
    with app.app_context():
        db.create_all()
    app.run(debug=True)
