"""
Tests for bill reminders
"""
from datetime import date, timedelta
from decimal import Decimal
from billbox.database.models import Expense
from billbox.services.reminders import (
    reminder_types_for, reminder_message, generate_reminders, whatsapp_url, process_reminders,
)

TODAY = date(2024, 3, 10)


def _bill(id, description, amount, days, recurring=True):
    return Expense(
        id=id,
        amount=Decimal(amount),
        description=description,
        category='bills',
        date=date(2024, 1, 1),
        is_recurring=recurring,
        next_due_date=TODAY + timedelta(days=days),
        is_paid=False,
    )


class TestReminderMessages:
    """Test channel selection and message text"""

    def test_reminder_types_for(self):
        """Test more channels as the due date gets closer"""
        assert reminder_types_for(0) == ['in-app', 'sms', 'whatsapp']
        assert reminder_types_for(1) == ['in-app', 'whatsapp']
        assert reminder_types_for(3) == ['in-app']

    def test_messages(self):
        """Test message text per channel"""
        bill = _bill(1, 'Electricity', '2500', 0)
        assert reminder_message(bill, 0, 'in-app') == 'Your Electricity bill of ₹2,500 is due today!'
        assert reminder_message(bill, 0, 'sms') == (
            "BillBox Alert: Your Electricity bill of ₹2,500 is due TODAY. Don't forget to pay!")
        assert '*TODAY*' in reminder_message(bill, 0, 'whatsapp')
        assert '*TOMORROW*' in reminder_message(bill, 1, 'whatsapp')
        assert reminder_message(bill, 1, 'in-app') == 'Your Electricity bill of ₹2,500 is due tomorrow.'
        assert reminder_message(bill, 3, 'in-app') == 'Your Electricity bill of ₹2,500 is due in 3 days.'
        assert reminder_message(bill, 1, 'sms') == 'Bill reminder: Electricity - ₹2,500'

    def test_paise_in_message(self):
        """Test fractional amounts keep two decimals"""
        bill = _bill(1, 'Water', '349.50', 2)
        assert reminder_message(bill, 2, 'in-app') == 'Your Water bill of ₹349.50 is due in 2 days.'


class TestGenerateReminders:
    """Test reminder generation"""

    def setup_method(self):
        self.bills = [
            _bill(1, 'Electricity', '2500', 0),
            _bill(2, 'Internet', '799', 1),
            _bill(3, 'Rent', '15000', 3),
            _bill(4, 'Insurance', '5000', 4),
            _bill(5, 'Gas', '900', -1),
            _bill(6, 'Sofa', '20000', 0, recurring=False),
        ]

    def test_window_and_channels(self):
        """Test bills due within the window get one reminder per channel"""
        reminders = generate_reminders(self.bills, reminder_days=3, today=TODAY)
        assert [r['id'] for r in reminders] == [
            '1-in-app-0', '1-sms-0', '1-whatsapp-0',
            '2-in-app-1', '2-whatsapp-1',
            '3-in-app-3',
        ]

    def test_reminder_fields(self):
        """Test reminder contents"""
        reminder = generate_reminders(self.bills, reminder_days=3, today=TODAY)[-1]
        assert reminder['expense_id'] == 3
        assert reminder['due_date'] == date(2024, 3, 13)
        assert reminder['days_until_due'] == 3
        assert reminder['days_before_reminder'] == 3
        assert reminder['is_active'] is True
        assert reminder['sent'] is False
        assert reminder['message'] == 'Your Rent bill of ₹15,000 is due in 3 days.'

    def test_zero_day_window(self):
        """Test a zero-day window only covers bills due today"""
        reminders = generate_reminders(self.bills, reminder_days=0, today=TODAY)
        assert {r['expense_id'] for r in reminders} == {1}


class TestProcessReminders:
    """Test reminder dispatch"""

    def test_whatsapp_url(self):
        """Test phone digits and message encoding"""
        assert whatsapp_url('Hi there', '+91 98765-43210') == 'https://wa.me/919876543210?text=Hi%20there'
        assert whatsapp_url('Hi') == 'https://wa.me/?text=Hi'

    def test_process_enabled_channels(self):
        """Test only enabled channels are dispatched"""
        bills = [_bill(1, 'Electricity', '2500', 0)]
        settings = {
            'reminder_days': 3,
            'reminder_types': ['in-app', 'whatsapp'],
            'whatsapp_number': '+91 98765 43210',
        }
        result = process_reminders(bills, settings, TODAY)

        assert len(result['notifications']) == 1
        assert result['notifications'][0]['sent'] is True
        assert len(result['whatsapp']) == 1
        assert result['whatsapp'][0]['url'].startswith('https://wa.me/919876543210?text=')
        assert result['sms'] == []
        assert result['skipped'] == ['1-sms-0']

    def test_process_sms_needs_phone(self):
        """Test SMS reminders need a phone number"""
        bills = [_bill(1, 'Electricity', '2500', 0)]
        settings = {'reminder_days': 3, 'reminder_types': ['sms']}
        assert process_reminders(bills, settings, TODAY)['sms'] == []

        settings['phone_number'] = '9876543210'
        sms = process_reminders(bills, settings, TODAY)['sms']
        assert len(sms) == 1
        assert sms[0]['phone_number'] == '9876543210'

    def test_process_defaults_to_in_app(self):
        """Test missing settings fall back to in-app only"""
        bills = [_bill(2, 'Internet', '799', 1)]
        result = process_reminders(bills, {}, TODAY)
        assert len(result['notifications']) == 1
        assert result['skipped'] == ['2-whatsapp-1']
