"""
Savings and investment calculations
FD maturity, RD and SIP future value, and the savings overview
"""
import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal

from billbox.services.schedule import add_months, add_months_to_month, month_key

logger = logging.getLogger(__name__)

SAVINGS_TYPES = ('fd', 'rd', 'sip', 'custom')
CUSTOM_FREQUENCIES = ('one-time', 'monthly', 'quarterly', 'yearly')
# Columns owned by one savings type; cleared when an entry changes type
TYPE_FIELDS = (
    'maturity_period', 'interest_rate', 'compounding_frequency', 'bank_name',
    'expected_maturity_amount', 'maturity_date',
    'monthly_deposit', 'tenure', 'auto_debit', 'expected_total',
    'fund_name', 'monthly_investment', 'expected_annual_return', 'duration',
    'goal_tag', 'expected_future_value',
    'frequency', 'purpose',
)
COMPOUNDING_PERIODS = {
    'monthly': 12,
    'quarterly': 4,
    'annually': 1,
}


def fd_maturity(principal, rate, months, compounding='monthly'):
    """
    Fixed deposit maturity amount.

    P * (1 + r/n) ** (n * months / 12), with r the annual rate in percent
    and n the compounding periods per year.
    """
    periods = COMPOUNDING_PERIODS.get(compounding or 'monthly')
    if periods is None:
        raise ValueError(f'Invalid compounding frequency: {compounding!r}')
    rate = float(rate) / 100
    return float(principal) * (1 + rate / periods) ** (periods * int(months) / 12)


def rd_maturity(deposit, rate, months):
    """Recurring deposit maturity, deposits at the start of each month"""
    monthly_rate = float(rate) / 100 / 12
    if monthly_rate == 0:
        return float(deposit) * int(months)
    return float(deposit) * ((1 + monthly_rate) ** int(months) - 1) / monthly_rate * (1 + monthly_rate)


def sip_value(investment, annual_return, months):
    """SIP future value; same annuity-due formula as an RD"""
    return rd_maturity(investment, annual_return, months)


def _to_decimal(value, field, required=True):
    if value in (None, ''):
        if required:
            raise ValueError(f'{field} is required')
        return None
    try:
        result = Decimal(str(value))
    except ArithmeticError:
        raise ValueError(f'{field} must be a number')
    if result <= 0:
        raise ValueError(f'{field} must be greater than 0')
    return result


def _to_int(value, field):
    try:
        result = int(value)
    except (TypeError, ValueError):
        raise ValueError(f'{field} must be a whole number of months')
    if result < 1:
        raise ValueError(f'{field} must be at least 1 month')
    return result


def _to_rate(value, field):
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise ValueError(f'{field} must be a number')
    if result < 0:
        raise ValueError(f'{field} cannot be negative')
    return result


def _to_date(value):
    if value in (None, ''):
        return date.today()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValueError(f'Invalid date: {value!r} (expected YYYY-MM-DD)')


def _money(value):
    return Decimal(str(round(value, 2)))


def build_savings(type, data):
    """
    Validate a savings entry and derive its maturity date and expected value.

    Args:
        type: fd, rd, sip or custom
        data: request fields (name, amount, start_date and the type's own fields)

    Returns:
        dict of Savings fields, ready for Savings(**fields)

    Raises:
        ValueError: on unknown type or invalid fields
    """
    if type not in SAVINGS_TYPES:
        raise ValueError(f'Invalid savings type: {type!r}')

    name = (data.get('name') or '').strip()
    if not name:
        raise ValueError('Name is required')

    fields = {
        'type': type,
        'name': name,
        'amount': _to_decimal(data.get('amount'), 'Amount'),
        'start_date': _to_date(data.get('start_date')),
        'is_active': True,
        'is_matured': False,
    }

    if type == 'fd':
        months = _to_int(data.get('maturity_period'), 'Maturity period')
        rate = _to_rate(data.get('interest_rate'), 'Interest rate')
        compounding = data.get('compounding_frequency') or 'monthly'
        fields.update({
            'maturity_period': months,
            'interest_rate': rate,
            'compounding_frequency': compounding,
            'bank_name': (data.get('bank_name') or '').strip() or None,
            'maturity_date': add_months(fields['start_date'], months),
            'expected_maturity_amount': _money(fd_maturity(fields['amount'], rate, months, compounding)),
        })
    elif type == 'rd':
        months = _to_int(data.get('tenure'), 'Tenure')
        rate = _to_rate(data.get('interest_rate'), 'Interest rate')
        deposit = _to_decimal(data.get('monthly_deposit'), 'Monthly deposit')
        fields.update({
            'monthly_deposit': deposit,
            'tenure': months,
            'interest_rate': rate,
            'auto_debit': bool(data.get('auto_debit')),
            'maturity_date': add_months(fields['start_date'], months),
            'expected_total': _money(rd_maturity(deposit, rate, months)),
        })
    elif type == 'sip':
        months = _to_int(data.get('duration'), 'Duration')
        annual_return = _to_rate(data.get('expected_annual_return'), 'Expected annual return')
        investment = _to_decimal(data.get('monthly_investment'), 'Monthly investment')
        fields.update({
            'fund_name': (data.get('fund_name') or '').strip() or None,
            'monthly_investment': investment,
            'expected_annual_return': annual_return,
            'duration': months,
            'goal_tag': (data.get('goal_tag') or '').strip() or None,
            'maturity_date': add_months(fields['start_date'], months),
            'expected_future_value': _money(sip_value(investment, annual_return, months)),
        })
    else:
        frequency = data.get('frequency') or 'one-time'
        if frequency not in CUSTOM_FREQUENCIES:
            raise ValueError(f'Invalid frequency: {frequency!r}')
        fields.update({
            'frequency': frequency,
            'purpose': (data.get('purpose') or '').strip() or None,
        })

    return fields


def monthly_contribution(savings):
    total = Decimal('0')
    for s in savings:
        if s.type == 'rd':
            total += Decimal(s.monthly_deposit or 0)
        elif s.type == 'sip':
            total += Decimal(s.monthly_investment or 0)
        elif s.type == 'custom' and s.frequency == 'monthly':
            total += Decimal(s.amount)
    return total


def expected_value(s):
    """Expected amount at maturity, or the principal when none is known"""
    for value in (s.expected_maturity_amount, s.expected_total, s.expected_future_value):
        if value:
            return Decimal(value)
    return Decimal(s.amount)


def savings_overview(savings, today=None, rate=0.08):
    """
    Summary of active, unmatured savings.

    Args:
        savings: Savings rows
        today: reference date for the growth projection months
        rate: annual rate assumed for the 12-month projection

    Returns:
        dict with total_saved, monthly_contribution, expected_returns,
        upcoming_maturity, savings_by_type and projected_growth
    """
    today = today or date.today()
    active = [s for s in savings if s.is_active and not s.is_matured]

    total_saved = sum((Decimal(s.amount) for s in active), Decimal('0'))
    contribution = monthly_contribution(active)

    by_type = defaultdict(Decimal)
    for s in active:
        by_type[s.type] += Decimal(s.amount)

    upcoming = sorted((s for s in active if s.maturity_date), key=lambda s: s.maturity_date)[:3]

    projected = []
    current = month_key(today)
    for i in range(1, 13):
        value = float(total_saved) * (1 + rate / 12) ** i + float(contribution) * i
        projected.append({'month': add_months_to_month(current, i), 'value': round(value, 2)})

    return {
        'total_saved': total_saved,
        'monthly_contribution': contribution,
        'expected_returns': sum((expected_value(s) for s in active), Decimal('0')),
        'upcoming_maturity': upcoming,
        'savings_by_type': dict(by_type),
        'projected_growth': projected,
    }


def refresh_maturity(savings, today=None):
    """
    Flag savings whose maturity date has passed.

    Returns:
        The rows that were newly marked as matured
    """
    today = today or date.today()
    matured = []
    for s in savings:
        if s.is_matured or not s.maturity_date or s.maturity_date > today:
            continue
        mature(s)
        matured.append(s)
    if matured:
        logger.info(f'[SAVINGS] Marked {len(matured)} savings as matured')
    return matured


def mature(s):
    """Close a savings entry at its expected value"""
    s.is_matured = True
    s.current_value = expected_value(s)
    return s


def apply_savings(s, fields):
    """
    Write build_savings() output onto an existing entry.

    Every type-specific column is reset first, so an entry that changes
    type keeps nothing from its previous type.
    """
    for column in TYPE_FIELDS:
        setattr(s, column, None)
    for key, value in fields.items():
        setattr(s, key, value)
    return s
