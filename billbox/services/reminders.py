"""
Bill reminders for recurring expenses
Channels: in-app notifications, SMS and WhatsApp share links
"""
import logging
from datetime import date
from urllib.parse import quote

from billbox.services.reports import format_amount
from billbox.services.schedule import days_until_due

logger = logging.getLogger(__name__)

REMINDER_TYPES = ('in-app', 'sms', 'whatsapp')


def reminder_types_for(days):
    """Channels to use for a bill due in the given number of days"""
    if days == 0:
        return ['in-app', 'sms', 'whatsapp']
    if days == 1:
        return ['in-app', 'whatsapp']
    return ['in-app']


def reminder_message(expense, days, type):
    amount = format_amount(expense.amount)
    description = expense.description

    if days == 0:
        if type == 'sms':
            return f"BillBox Alert: Your {description} bill of {amount} is due TODAY. Don't forget to pay!"
        if type == 'whatsapp':
            return (f'🔔 *BillBox Reminder*\n\nYour {description} bill of {amount} is due *TODAY*!'
                    f"\n\nDon't forget to pay to avoid late fees. 💰")
        if type == 'in-app':
            return f'Your {description} bill of {amount} is due today!'
    elif days == 1:
        if type == 'whatsapp':
            return (f'📅 *BillBox Reminder*\n\nYour {description} bill of {amount} is due *TOMORROW*.'
                    f'\n\nPlan your payment to avoid any hassle! 💡')
        if type == 'in-app':
            return f'Your {description} bill of {amount} is due tomorrow.'
    else:
        return f'Your {description} bill of {amount} is due in {days} days.'

    return f'Bill reminder: {description} - {amount}'


def generate_reminders(expenses, reminder_days=3, today=None):
    """
    Build reminders for recurring bills falling due within reminder_days.

    Returns:
        List of reminder dicts, one per bill and channel
    """
    today = today or date.today()
    reminder_days = reminder_days if reminder_days is not None else 3
    reminders = []

    for expense in expenses:
        if not expense.is_recurring or not expense.next_due_date:
            continue
        days = days_until_due(expense.next_due_date, today)
        if not 0 <= days <= reminder_days:
            continue

        for type in reminder_types_for(days):
            reminders.append({
                'id': f'{expense.id}-{type}-{days}',
                'expense_id': expense.id,
                'due_date': expense.next_due_date,
                'days_until_due': days,
                'days_before_reminder': reminder_days,
                'type': type,
                'is_active': True,
                'sent': False,
                'message': reminder_message(expense, days, type),
            })

    return reminders


def whatsapp_url(message, phone=None):
    phone = ''.join(ch for ch in (phone or '') if ch.isdigit())
    return f'https://wa.me/{phone}?text={quote(message, safe="")}'


def process_reminders(expenses, settings, today=None):
    """
    Dispatch pending reminders according to the user's settings.

    Args:
        expenses: Expense rows
        settings: dict with reminder_days, reminder_types, phone_number and whatsapp_number
        today: reference date

    Returns:
        dict with notifications (in-app), whatsapp links, sms sent, and skipped reminder ids
    """
    enabled = set(settings.get('reminder_types') or ['in-app'])
    reminders = generate_reminders(expenses, settings.get('reminder_days'), today)

    result = {'notifications': [], 'whatsapp': [], 'sms': [], 'skipped': []}
    for reminder in reminders:
        if reminder['sent'] or not reminder['is_active']:
            continue
        if reminder['type'] not in enabled:
            result['skipped'].append(reminder['id'])
            continue

        reminder['sent'] = True
        if reminder['type'] == 'in-app':
            result['notifications'].append(reminder)
        elif reminder['type'] == 'whatsapp':
            number = settings.get('whatsapp_number')
            if number:
                result['whatsapp'].append(dict(reminder, url=whatsapp_url(reminder['message'], number)))
        elif reminder['type'] == 'sms':
            number = settings.get('phone_number')
            if number:
                logger.info(f"[REMINDERS] SMS to {number}: {reminder['message']}")
                result['sms'].append(dict(reminder, phone_number=number))

    logger.info(
        f"[REMINDERS] Processed {len(reminders)} reminders: "
        f"{len(result['notifications'])} in-app, {len(result['whatsapp'])} whatsapp, "
        f"{len(result['sms'])} sms, {len(result['skipped'])} skipped"
    )
    return result
