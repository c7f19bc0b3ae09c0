"""
Financial reporting service
Monthly report, WhatsApp share messages and the yearly expense analytics
"""
import calendar
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from urllib.parse import quote

from billbox.services.categories import category_name
from billbox.services.emi import emi_stats
from billbox.services.savings import expected_value, monthly_contribution
from billbox.services.schedule import month_key

# Month name constants
MONTHS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
          'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

HEALTH_EMOJI = {
    'excellent': '🟢',
    'good': '🟡',
    'average': '🟠',
    'poor': '🔴',
}

ZERO = Decimal('0')


def format_amount(amount, symbol='₹'):
    """₹1,234 for whole amounts, ₹1,234.50 otherwise"""
    value = Decimal(str(amount or 0)).quantize(Decimal('0.01'))
    if value == value.to_integral_value():
        return f'{symbol}{value:,.0f}'
    return f'{symbol}{value:,.2f}'


def _month_expenses(expenses, today):
    return [e for e in expenses if e.date.year == today.year and e.date.month == today.month]


def _income_for_month(income, month):
    return next((i for i in income if i.month == month), None)


def _health(savings_rate):
    if savings_rate >= 30:
        return 'excellent'
    if savings_rate >= 20:
        return 'good'
    if savings_rate >= 10:
        return 'average'
    return 'poor'


def generate_monthly_report(income, expenses, emis, savings, today=None):
    """
    Build the monthly financial report.

    Args:
        income: Income rows
        expenses: Expense rows
        emis: EMI rows
        savings: Savings rows
        today: any date inside the reported month

    Returns:
        Dictionary containing income, expenses, emis, savings, forecast and summary
    """
    today = today or date.today()
    current_month = month_key(today)

    # Income
    current_income = _income_for_month(income, current_month)
    primary = Decimal(current_income.monthly_income or 0) if current_income else ZERO
    extra = Decimal(current_income.extra_income or 0) if current_income else ZERO
    total_income = primary + extra

    # Expenses
    month_expenses = _month_expenses(expenses, today)
    total_expenses = sum((Decimal(e.amount) for e in month_expenses), ZERO)
    by_category = defaultdict(Decimal)
    for e in month_expenses:
        by_category[e.category] += Decimal(e.amount)

    if by_category:
        top_name, top_amount = max(by_category.items(), key=lambda item: item[1])
        top_category = {
            'name': top_name,
            'amount': top_amount,
            'percentage': round(float(top_amount / total_expenses) * 100) if total_expenses else 0,
        }
    else:
        top_category = {'name': 'None', 'amount': ZERO, 'percentage': 0}

    # EMIs
    stats = emi_stats(emis, current_month)
    total_emi = stats['total_active_emi']

    # Savings
    active_savings = [s for s in savings if s.is_active and not s.is_matured]
    total_saved = sum((Decimal(s.amount) for s in active_savings), ZERO)
    contribution = monthly_contribution(active_savings)

    breakdown = []
    for s in active_savings:
        if s.type == 'rd':
            amount = s.monthly_deposit or 0
        elif s.type == 'sip':
            amount = s.monthly_investment or 0
        else:
            amount = s.amount
        breakdown.append({'type': s.type.upper(), 'amount': Decimal(amount), 'name': s.name})

    upcoming = sorted(
        ({'name': s.name, 'amount': expected_value(s), 'date': s.maturity_date}
         for s in active_savings if s.maturity_date),
        key=lambda item: item['date'],
    )[:3]

    # Forecast
    available = total_income - total_expenses - total_emi
    savings_rate = float(available / total_income * 100) if total_income > 0 else 0.0
    emi_ratio = float(total_emi / total_income * 100) if total_income > 0 else 0.0

    recommendations = []
    if emi_ratio > 50:
        recommendations.append('EMI burden is high (>50% of income). Consider debt consolidation.')
    if savings_rate < 20:
        recommendations.append('Increase savings rate to at least 20% of income.')
    if total_expenses > total_income * Decimal('0.7'):
        recommendations.append('Reduce discretionary expenses to improve savings.')

    return {
        'month': calendar.month_name[today.month],
        'year': today.year,
        'income': {
            'total': total_income,
            'primary': primary,
            'extra': extra,
            'source': current_income.income_source if current_income else None,
        },
        'expenses': {
            'total': total_expenses,
            'by_category': dict(by_category),
            'top_category': top_category,
        },
        'emis': {
            'active': len(stats['active']),
            'total_monthly': total_emi,
            'total_remaining': stats['remaining_emi_value'],
            'list': [
                {'name': e.name, 'amount': Decimal(e.monthly_amount), 'category': e.category}
                for e in stats['active']
            ],
        },
        'savings': {
            'total_saved': total_saved,
            'monthly_contribution': contribution,
            'active_savings': len(active_savings),
            'breakdown': breakdown,
            'upcoming_maturity': upcoming,
        },
        'forecast': {
            'available_balance': available,
            'savings_rate': savings_rate,
            'emi_to_income_ratio': emi_ratio,
            'next_month_projection': available - contribution,
        },
        'summary': {
            'financial_health': _health(savings_rate),
            'recommendations': recommendations,
        },
    }


def generate_whatsapp_financial_report(report, currency='₹'):
    """Render a monthly report as a WhatsApp message"""
    income = report['income']
    expenses = report['expenses']
    emis = report['emis']
    savings = report['savings']
    forecast = report['forecast']
    summary = report['summary']

    def money(value):
        return format_amount(value, currency)

    lines = [
        '📊 *Monthly Financial Report*',
        f"📅 {report['month']} {report['year']}",
        '',
        '💰 *INCOME*',
        f"• Total: {money(income['total'])}",
    ]
    if income.get('source'):
        lines.append(f"• Source: {income['source']}")
    if income['extra'] > 0:
        lines.append(f"• Extra Income: {money(income['extra'])}")
    lines.append('')

    lines += ['💸 *EXPENSES*', f"• Total: {money(expenses['total'])}"]
    top = expenses['top_category']
    if top['amount'] > 0:
        lines.append(f"• Top Category: {top['name']} ({top['percentage']}%)")
    lines.append('')

    if emis['active'] > 0:
        lines += [
            '🏦 *EMI DETAILS*',
            f"• Active EMIs: {emis['active']}",
            f"• Monthly EMI: {money(emis['total_monthly'])}",
            f"• Remaining: {money(emis['total_remaining'])}",
        ]
        if emis['list']:
            lines.append('• EMI Breakdown:')
            lines += [f"  - {e['name']}: {money(e['amount'])}" for e in emis['list']]
        lines.append('')

    if savings['active_savings'] > 0:
        lines += [
            '🎯 *SAVINGS & INVESTMENTS*',
            f"• Total Saved: {money(savings['total_saved'])}",
            f"• Monthly Contribution: {money(savings['monthly_contribution'])}",
            f"• Active Savings: {savings['active_savings']}",
        ]
        if savings['breakdown']:
            lines.append('• Breakdown:')
            lines += [f"  - {s['type']}: {money(s['amount'])} ({s['name']})" for s in savings['breakdown']]
        if savings['upcoming_maturity']:
            lines.append('• Upcoming Maturity:')
            lines += [
                f"  - {s['name']}: {money(s['amount'])} ({s['date'].strftime('%d %b %Y')})"
                for s in savings['upcoming_maturity']
            ]
        lines.append('')

    health = summary['financial_health']
    lines += [
        '📈 *FINANCIAL FORECAST*',
        f"• Available Balance: {money(forecast['available_balance'])}",
        f"• Savings Rate: {forecast['savings_rate']:.1f}%",
        f"• EMI to Income Ratio: {forecast['emi_to_income_ratio']:.1f}%",
        f"• Financial Health: {HEALTH_EMOJI[health]} {health.upper()}",
        '',
    ]

    if summary['recommendations']:
        lines.append('💡 *RECOMMENDATIONS*')
        lines += [f'{i}. {rec}' for i, rec in enumerate(summary['recommendations'], start=1)]
        lines.append('')

    outflow = expenses['total'] + emis['total_monthly'] + savings['monthly_contribution']
    lines += [
        '📋 *SUMMARY*',
        f"• Income: {money(income['total'])}",
        f"• Expenses: {money(expenses['total'])}",
        f"• EMI: {money(emis['total_monthly'])}",
        f"• Savings: {money(savings['monthly_contribution'])}",
        f"• Net Balance: {money(income['total'] - outflow)}",
        '',
        '📱 Generated by BillBox - Smart Financial Tracker',
    ]
    return '\n'.join(lines)


def monthly_stats(expenses, income=None, today=None, categories=None, budget=None):
    """
    Spending summary for the month containing today.

    Category keys are display names.
    """
    today = today or date.today()
    month_expenses = _month_expenses(expenses, today)
    total_spent = sum((Decimal(e.amount) for e in month_expenses), ZERO)

    by_category = defaultdict(Decimal)
    for e in month_expenses:
        by_category[category_name(e.category, categories)] += Decimal(e.amount)

    current_income = _income_for_month(income or [], month_key(today))

    stats = {
        'total_spent': total_spent,
        'total_income': Decimal(current_income.total) if current_income else ZERO,
        'expenses_by_category': dict(by_category),
        'bills_due': sum(1 for e in month_expenses if e.is_recurring),
        'month': calendar.month_name[today.month],
        'year': today.year,
    }
    if budget:
        stats['budget_utilization'] = float(total_spent / Decimal(budget) * 100)
    return stats


def generate_whatsapp_message(stats, currency='₹'):
    """Category summary message for sharing"""
    total = stats['total_spent']
    lines = [
        f"📊 *Monthly Summary - {stats['month']} {stats['year']}*",
        '',
        f'💰 Total Spent: {currency}{total:,.2f}',
        '',
        '📋 *By Category:*',
    ]
    for name, amount in sorted(stats['expenses_by_category'].items(), key=lambda item: item[1], reverse=True):
        percentage = float(amount / total * 100) if total else 0.0
        lines.append(f'• {name}: {currency}{amount:,.2f} ({percentage:.1f}%)')
    lines += ['', '🎯 Shared from BillBox - Smart Expense Tracker']
    return '\n'.join(lines)


def whatsapp_share_url(message):
    return f'https://wa.me/?text={quote(message, safe="")}'


def aggregate_expenses(expenses, categories=None):
    """
    Aggregate a year's expenses into monthly and category summaries.

    Args:
        expenses: List of Expense objects
        categories: category dicts used for display names

    Returns:
        Dictionary containing:
        - monthly_summary: List of monthly total/count data
        - totals: Total spent, count and recurring spend
        - category_summary: Categories with totals, sorted by total
        - detailed_monthly: Monthly breakdown by category
    """
    monthly_data = defaultdict(lambda: {'total': ZERO, 'count': 0, 'recurring': ZERO})
    category_data = defaultdict(lambda: {'total': ZERO, 'count': 0})
    detailed_monthly = defaultdict(lambda: {
        'months': defaultdict(lambda: ZERO),
        'total': ZERO,
    })

    for expense in expenses:
        month_idx = expense.date.month - 1
        month_name = MONTHS[month_idx]
        amount = Decimal(expense.amount)
        cat_name = category_name(expense.category, categories)

        monthly_data[month_idx]['total'] += amount
        monthly_data[month_idx]['count'] += 1
        if expense.is_recurring:
            monthly_data[month_idx]['recurring'] += amount

        category_data[cat_name]['total'] += amount
        category_data[cat_name]['count'] += 1

        detailed_monthly[cat_name]['months'][month_name] += amount
        detailed_monthly[cat_name]['total'] += amount

    monthly_summary = []
    for i, month_name in enumerate(MONTHS):
        data = monthly_data[i]
        monthly_summary.append({
            'month_name': month_name,
            'total': data['total'],
            'count': data['count'],
            'recurring': data['recurring'],
        })

    totals = {
        'spent': sum((m['total'] for m in monthly_summary), ZERO),
        'count': sum(m['count'] for m in monthly_summary),
        'recurring': sum((m['recurring'] for m in monthly_summary), ZERO),
    }

    category_summary = sorted(
        [{'name': k, 'total': v['total'], 'count': v['count']} for k, v in category_data.items()],
        key=lambda x: x['total'],
        reverse=True,
    )

    detailed_monthly_sorted = {
        name: {'months': dict(data['months']), 'total': data['total']}
        for name, data in sorted(detailed_monthly.items(), key=lambda x: -x[1]['total'])
    }

    return {
        'monthly_summary': monthly_summary,
        'totals': totals,
        'category_summary': category_summary,
        'detailed_monthly': detailed_monthly_sorted,
        'months': MONTHS,
    }


def get_available_years(db_session, Expense, user_id):
    """Get list of years that have expenses"""
    from sqlalchemy import func, extract

    years_query = db_session.query(
        func.distinct(extract('year', Expense.date))
    ).filter(
        Expense.user_id == user_id
    ).all()

    years = sorted([int(y[0]) for y in years_query if y[0]], reverse=True)
    return years if years else [datetime.now().year]


def get_expenses_for_year(Expense, user_id, year):
    """Get a user's expenses for a specific year"""
    from sqlalchemy import extract

    return Expense.query.filter(
        Expense.user_id == user_id,
        extract('year', Expense.date) == year
    ).order_by(Expense.date).all()
