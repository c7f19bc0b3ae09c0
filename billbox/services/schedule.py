"""
Date arithmetic for months, recurring bills and subscription billing
"""
import calendar
import logging
from datetime import date, datetime

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

FREQUENCY_MONTHS = {
    'monthly': 1,
    'quarterly': 3,
    'yearly': 12,
}

UPCOMING_RENEWAL_DAYS = 7


def parse_month(value):
    """'2024-03' -> (2024, 3); raises ValueError on anything else"""
    try:
        year, month = (int(part) for part in str(value).split('-'))
    except (TypeError, ValueError):
        raise ValueError(f'Invalid month: {value!r} (expected YYYY-MM)')
    if not 1 <= month <= 12:
        raise ValueError(f'Invalid month: {value!r} (expected YYYY-MM)')
    return year, month


def month_key(value=None):
    """YYYY-MM for a date (defaults to today)"""
    value = value or date.today()
    return f'{value.year:04d}-{value.month:02d}'


def add_months_to_month(month, n):
    """add_months_to_month('2024-11', 3) -> '2025-02'"""
    year, mon = parse_month(month)
    shifted = date(year, mon, 1) + relativedelta(months=n)
    return month_key(shifted)


def months_between(start, end):
    """Whole months from start to end; either may be a date or 'YYYY-MM'. Negative when end is earlier."""
    sy, sm = _year_month(start)
    ey, em = _year_month(end)
    return (ey - sy) * 12 + (em - sm)


def months_since_start(start, today=None):
    return max(0, months_between(start, today or date.today()))


def _year_month(value):
    if isinstance(value, (date, datetime)):
        return value.year, value.month
    return parse_month(value)


def month_start(value=None):
    value = value or date.today()
    return date(value.year, value.month, 1)


def month_end(value=None):
    value = value or date.today()
    return date(value.year, value.month, calendar.monthrange(value.year, value.month)[1])


def add_months(value, n, day=None):
    """
    Shift a date by n months.

    When day is given (a recurring bill's day of month) it is re-applied
    after the shift, clamped to the length of the target month.
    """
    shifted = value + relativedelta(months=n)
    if day:
        shifted = shifted.replace(day=min(day, calendar.monthrange(shifted.year, shifted.month)[1]))
    return shifted


def days_until_due(due, today=None):
    return (due - (today or date.today())).days


def format_relative(due, today=None):
    days = days_until_due(due, today)
    if days == 0:
        return 'Today'
    if days == 1:
        return 'Tomorrow'
    if days == -1:
        return 'Yesterday'
    if days > 1:
        return f'In {days} days'
    return f'{abs(days)} days ago'


# ----------------------------------------------------------------------
# Recurring bills
# ----------------------------------------------------------------------

def roll_recurring_due_dates(expenses, today=None):
    """
    Move overdue recurring bills forward by whole months until due today or later.

    Returns:
        The expenses whose next_due_date changed
    """
    today = today or date.today()
    changed = []
    for expense in expenses:
        if not expense.is_recurring or not expense.next_due_date:
            continue
        due = expense.next_due_date
        if due >= today:
            continue
        months = 0
        while add_months(due, months, expense.recurring_day_of_month) < today:
            months += 1
        expense.next_due_date = add_months(due, months, expense.recurring_day_of_month)
        changed.append(expense)

    if changed:
        logger.info(f'[SCHEDULE] Rolled {len(changed)} recurring bills forward')
    return changed


def mark_paid(expense, today=None):
    """
    Mark a bill as paid.

    Recurring bills move to the next month (from the due date, or from today
    when none is set); one-off expenses are flagged as paid.
    """
    today = today or date.today()
    if expense.is_recurring:
        base = expense.next_due_date or today
        expense.next_due_date = add_months(base, 1, expense.recurring_day_of_month)
        expense.is_paid = False
    else:
        expense.is_paid = True
    return expense


def initial_due_date(day_of_month, today=None):
    """First due date on or after today for a bill due on day_of_month"""
    today = today or date.today()
    candidate = add_months(month_start(today), 0, day_of_month)
    if candidate < today:
        candidate = add_months(candidate, 1, day_of_month)
    return candidate


# ----------------------------------------------------------------------
# Subscriptions
# ----------------------------------------------------------------------

def _frequency_months(frequency):
    try:
        return FREQUENCY_MONTHS[frequency]
    except KeyError:
        raise ValueError(f'Invalid frequency: {frequency!r}')


def next_billing_date(start, frequency, today=None):
    """First billing date strictly after today, stepping from start"""
    today = today or date.today()
    step = _frequency_months(frequency)
    periods = 0
    candidate = start
    while candidate <= today:
        periods += 1
        candidate = start + relativedelta(months=step * periods)
    return candidate


def monthly_equivalent(amount, frequency):
    return float(amount) / _frequency_months(frequency)


def subscription_stats(subscriptions, today=None):
    today = today or date.today()
    active = [s for s in subscriptions if s.is_active]
    monthly_total = sum(monthly_equivalent(s.amount, s.frequency) for s in active)

    upcoming = sorted(
        (s for s in active if 0 <= days_until_due(s.next_billing_date, today) <= UPCOMING_RENEWAL_DAYS),
        key=lambda s: s.next_billing_date,
    )

    return {
        'active_count': len(active),
        'monthly_total': round(monthly_total, 2),
        'yearly_total': round(monthly_total * 12, 2),
        'upcoming_renewals': upcoming,
    }
