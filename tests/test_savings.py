"""
Tests for savings calculations
"""
import pytest
from datetime import date
from decimal import Decimal
from billbox.database.models import Savings
from billbox.services.savings import (
    fd_maturity, rd_maturity, sip_value, build_savings, monthly_contribution,
    expected_value, savings_overview, refresh_maturity, mature, apply_savings,
)


class TestMaturityFormulas:
    """Test FD, RD and SIP formulas"""

    def test_fd_monthly_compounding(self):
        """Test the default monthly compounding"""
        assert fd_maturity(100000, 7, 12) == pytest.approx(100000 * (1 + 0.07 / 12) ** 12)

    def test_fd_quarterly_and_annual(self):
        """Test other compounding frequencies"""
        assert fd_maturity(100000, 7, 12, 'quarterly') == pytest.approx(100000 * (1 + 0.07 / 4) ** 4)
        assert fd_maturity(100000, 7, 24, 'annually') == pytest.approx(100000 * 1.07 ** 2)

    def test_fd_invalid_compounding(self):
        """Test unknown compounding is rejected"""
        with pytest.raises(ValueError):
            fd_maturity(100000, 7, 12, 'weekly')

    def test_rd_maturity(self):
        """Test RD maturity with deposits at the start of each month"""
        r = 0.06 / 12
        expected = 1000 * ((1 + r) ** 12 - 1) / r * (1 + r)
        assert rd_maturity(1000, 6, 12) == pytest.approx(expected)

    def test_zero_rate(self):
        """Test a zero rate returns the sum of deposits"""
        assert rd_maturity(1000, 0, 12) == 12000
        assert sip_value(5000, 0, 10) == 50000


class TestBuildSavings:
    """Test savings validation"""

    def test_fd(self):
        """Test FD maturity date and expected amount"""
        fields = build_savings('fd', {
            'name': 'SBI FD', 'amount': 100000, 'start_date': '2024-01-15',
            'maturity_period': 12, 'interest_rate': 7, 'bank_name': 'SBI',
        })
        assert fields['maturity_date'] == date(2025, 1, 15)
        assert fields['compounding_frequency'] == 'monthly'
        assert fields['expected_maturity_amount'] == Decimal(str(round(100000 * (1 + 0.07 / 12) ** 12, 2)))
        assert fields['is_active'] is True
        assert fields['is_matured'] is False

    def test_rd(self):
        """Test RD fields"""
        fields = build_savings('rd', {
            'name': 'Post office RD', 'amount': 1000, 'start_date': '2024-01-01',
            'monthly_deposit': 1000, 'tenure': 12, 'interest_rate': 0,
        })
        assert fields['expected_total'] == Decimal('12000')
        assert fields['maturity_date'] == date(2025, 1, 1)

    def test_sip(self):
        """Test SIP fields, including the maturity date"""
        fields = build_savings('sip', {
            'name': 'Index fund', 'amount': 5000, 'start_date': '2024-02-01',
            'monthly_investment': 5000, 'expected_annual_return': 12, 'duration': 36,
            'fund_name': 'Nifty 50', 'goal_tag': 'House',
        })
        assert fields['maturity_date'] == date(2027, 2, 1)
        assert fields['expected_future_value'] > Decimal('180000')
        assert fields['goal_tag'] == 'House'

    def test_custom(self):
        """Test custom savings default to one-time"""
        fields = build_savings('custom', {'name': 'Emergency fund', 'amount': 2000})
        assert fields['frequency'] == 'one-time'
        assert fields['start_date'] == date.today()

    @pytest.mark.parametrize('type, data', [
        ('gold', {'name': 'x', 'amount': 1}),
        ('fd', {'name': '', 'amount': 1000, 'maturity_period': 12, 'interest_rate': 7}),
        ('fd', {'name': 'FD', 'amount': -5, 'maturity_period': 12, 'interest_rate': 7}),
        ('fd', {'name': 'FD', 'amount': 1000, 'maturity_period': 0, 'interest_rate': 7}),
        ('fd', {'name': 'FD', 'amount': 1000, 'maturity_period': 12, 'interest_rate': -1}),
        ('rd', {'name': 'RD', 'amount': 1000, 'tenure': 12, 'interest_rate': 6}),
        ('custom', {'name': 'Jar', 'amount': 100, 'frequency': 'weekly'}),
        ('custom', {'name': 'Jar', 'amount': 100, 'start_date': '15/01/2024'}),
    ])
    def test_invalid(self, type, data):
        """Test invalid entries are rejected"""
        with pytest.raises(ValueError):
            build_savings(type, data)


class TestOverview:
    """Test the savings overview and maturity"""

    def setup_method(self):
        self.fd = Savings(type='fd', name='FD', amount=Decimal('100000'),
                          expected_maturity_amount=Decimal('107229.01'),
                          maturity_date=date(2025, 1, 15), is_active=True, is_matured=False)
        self.rd = Savings(type='rd', name='RD', amount=Decimal('1000'), monthly_deposit=Decimal('1000'),
                          expected_total=Decimal('12500'), maturity_date=date(2024, 12, 1),
                          is_active=True, is_matured=False)
        self.sip = Savings(type='sip', name='SIP', amount=Decimal('5000'), monthly_investment=Decimal('5000'),
                           is_active=True, is_matured=False)
        self.custom = Savings(type='custom', name='Jar', amount=Decimal('2000'), frequency='monthly',
                              is_active=True, is_matured=False)
        self.done = Savings(type='fd', name='Old FD', amount=Decimal('50000'),
                            maturity_date=date(2023, 1, 1), is_active=True, is_matured=True)
        self.all = [self.fd, self.rd, self.sip, self.custom, self.done]

    def test_monthly_contribution(self):
        """Test RD deposits, SIP investments and monthly custom savings count"""
        assert monthly_contribution(self.all[:4]) == Decimal('8000')

    def test_expected_value(self):
        """Test the expected value falls back to the principal"""
        assert expected_value(self.fd) == Decimal('107229.01')
        assert expected_value(self.sip) == Decimal('5000')

    def test_overview(self):
        """Test totals skip matured savings"""
        overview = savings_overview(self.all, today=date(2024, 6, 15), rate=0.08)

        assert overview['total_saved'] == Decimal('108000')
        assert overview['monthly_contribution'] == Decimal('8000')
        assert overview['expected_returns'] == Decimal('126729.01')
        assert overview['upcoming_maturity'] == [self.rd, self.fd]
        assert overview['savings_by_type'] == {
            'fd': Decimal('100000'), 'rd': Decimal('1000'), 'sip': Decimal('5000'), 'custom': Decimal('2000'),
        }
        assert len(overview['projected_growth']) == 12
        assert overview['projected_growth'][0]['month'] == '2024-07'
        assert overview['projected_growth'][0]['value'] == pytest.approx(108000 * (1 + 0.08 / 12) + 8000)

    def test_refresh_maturity(self):
        """Test savings past their maturity date are closed"""
        matured = refresh_maturity(self.all, date(2024, 12, 1))
        assert matured == [self.rd]
        assert self.rd.is_matured is True
        assert self.rd.current_value == Decimal('12500')
        assert self.fd.is_matured is False

    def test_mature(self):
        """Test manual maturity uses the expected value"""
        mature(self.fd)
        assert self.fd.is_matured is True
        assert self.fd.current_value == Decimal('107229.01')

    def test_apply_savings_clears_previous_type(self):
        """Test switching type resets the old type's columns"""
        fields = build_savings('rd', {
            'name': 'RD', 'amount': 1000, 'start_date': '2024-01-01',
            'monthly_deposit': 1000, 'tenure': 12, 'interest_rate': 0,
        })
        apply_savings(self.fd, fields)

        assert self.fd.type == 'rd'
        assert self.fd.expected_maturity_amount is None
        assert self.fd.compounding_frequency is None
        assert self.fd.expected_total == Decimal('12000')
        assert self.fd.maturity_date == date(2025, 1, 1)
        assert expected_value(self.fd) == Decimal('12000')
