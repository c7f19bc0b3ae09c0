"""
EMI (loan installment) planning
Status by month, totals and the multi-month cash-flow forecast
"""
from collections import defaultdict
from decimal import Decimal

from billbox.services.categories import EMI_CATEGORIES
from billbox.services.schedule import add_months_to_month, months_between, month_key, parse_month


def build_emi(name, monthly_amount, tenure, start_month, category='other'):
    """
    Validate EMI input and derive end month and total.

    Returns:
        dict of EMI fields, ready for EMI(**fields)

    Raises:
        ValueError: on a missing name, non-positive amount, tenure < 1 or bad month
    """
    name = (name or '').strip()
    if not name:
        raise ValueError('EMI name is required')

    try:
        monthly_amount = Decimal(str(monthly_amount))
        tenure = int(tenure)
    except (TypeError, ValueError, ArithmeticError):
        raise ValueError('Monthly amount and tenure must be numbers')
    if monthly_amount <= 0:
        raise ValueError('Monthly amount must be greater than 0')
    if tenure < 1:
        raise ValueError('Tenure must be at least 1 month')

    parse_month(start_month)
    if category not in EMI_CATEGORIES:
        category = 'other'

    return {
        'name': name,
        'monthly_amount': monthly_amount,
        'tenure': tenure,
        'start_month': start_month,
        'end_month': add_months_to_month(start_month, tenure - 1),
        'category': category,
        'total_amount': monthly_amount * tenure,
    }


def emi_status(emi, current_month):
    """completed, upcoming or active for the given YYYY-MM"""
    if current_month > emi.end_month or not emi.is_active:
        return 'completed'
    if current_month < emi.start_month:
        return 'upcoming'
    return 'active'


def emi_stats(emis, current_month=None):
    current_month = current_month or month_key()
    grouped = defaultdict(list)
    for emi in emis:
        grouped[emi_status(emi, current_month)].append(emi)

    active = grouped['active']
    remaining = sum(
        (Decimal(emi.monthly_amount) * max(0, months_between(current_month, emi.end_month)) for emi in active),
        Decimal('0'),
    )

    return {
        'active': active,
        'completed': grouped['completed'],
        'upcoming': grouped['upcoming'],
        'total_active_emi': sum((Decimal(e.monthly_amount) for e in active), Decimal('0')),
        'total_emi_value': sum((Decimal(e.total_amount) for e in emis), Decimal('0')),
        'remaining_emi_value': remaining,
    }


def average_monthly_expenses(expenses):
    """Average spend over the months that have at least one expense"""
    by_month = defaultdict(Decimal)
    for expense in expenses:
        by_month[month_key(expense.date)] += Decimal(expense.amount)
    if not by_month:
        return Decimal('0')
    return sum(by_month.values()) / len(by_month)


def financial_forecast(emis, income, expenses, current_month=None, months=24):
    """
    Project income minus expenses and EMIs month by month.

    Args:
        emis: EMI rows
        income: Income rows (the current month's row is the basis)
        expenses: Expense rows, averaged per month
        current_month: YYYY-MM to start from
        months: number of months to project

    Returns:
        List of per-month dicts; empty when there is no income for the current month
    """
    current_month = current_month or month_key()
    current_income = next((i for i in income if i.month == current_month), None)
    if current_income is None:
        return []

    total_income = Decimal(current_income.total)
    avg_expenses = average_monthly_expenses(expenses).quantize(Decimal('0.01'))

    forecast = []
    for i in range(months):
        month = add_months_to_month(current_month, i)
        active = [e for e in emis if e.is_active and e.start_month <= month <= e.end_month]
        emi_total = sum((Decimal(e.monthly_amount) for e in active), Decimal('0'))
        remaining = total_income - avg_expenses - emi_total

        forecast.append({
            'month': month,
            'income': total_income,
            'expenses': avg_expenses,
            'active_emis': len(active),
            'total_emi_amount': emi_total,
            'remaining_amount': remaining,
            'savings': max(Decimal('0'), remaining),
            'completed_emis': [e.name for e in emis if month > e.end_month],
        })

    return forecast
