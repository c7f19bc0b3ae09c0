"""
Tests for the Supabase auth wrapper and profile handling
"""
import pytest
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from billbox.database.models import (
    UserProfile, Expense, Income, EMI, Savings, Subscription, CustomCategory, LearnedRule,
)
from billbox.services import auth
from billbox.services.auth import (
    AuthError, sign_in, sign_up, sign_out, reset_password, update_password, get_user,
    sync_profile, reset_user_data,
)
from billbox.services.learning import save_learning


class TestSupabaseCalls:
    """Test the auth calls against a fake Supabase client"""

    def test_sign_in(self, app, fake_supabase):
        """Test a successful sign in returns the user and session"""
        user, auth_session = sign_in('user@example.com', 'secret123')
        assert user.id == 'user-1'
        assert auth_session.access_token == 'access-token'
        assert fake_supabase.calls == [('sign_in', 'user@example.com')]

    def test_sign_in_failure(self, app, fake_supabase):
        """Test Supabase errors surface as AuthError"""
        with pytest.raises(AuthError, match='Invalid login credentials'):
            sign_in('user@example.com', 'wrong')

    def test_each_call_gets_its_own_client(self, app, fake_supabase):
        """Test sessions are never shared between auth calls"""
        sign_in('user@example.com', 'secret123')
        with pytest.raises(AuthError):
            update_password('newsecret', access_token=None)
        sign_in('user@example.com', 'secret123')
        assert len(fake_supabase.clients) == 2

    def test_sign_up(self, app, fake_supabase):
        """Test sign up passes the full name as metadata"""
        user, auth_session = sign_up('new@example.com', 'secret123', 'New Person')
        assert user.id == 'new-user'
        assert user.user_metadata == {'full_name': 'New Person'}
        assert auth_session is not None

    def test_sign_up_needs_confirmation(self, app, fake_supabase):
        """Test sign up without a session asks for email confirmation"""
        fake_supabase.require_confirmation = True
        with pytest.raises(AuthError, match='check your email'):
            sign_up('new@example.com', 'secret123')

    def test_sign_out(self, app, fake_supabase):
        """Test sign out revokes the given session"""
        sign_out('access-token', 'refresh-token')
        assert fake_supabase.calls == [('set_session', 'access-token'), ('sign_out',)]

    def test_sign_out_without_session(self, app, fake_supabase):
        """Test sign out without tokens does not reach Supabase"""
        sign_out(None)
        assert fake_supabase.calls == []
        assert fake_supabase.clients == []

    def test_reset_password(self, app, fake_supabase):
        """Test the reset email uses the configured redirect"""
        app.config['PASSWORD_RESET_REDIRECT'] = 'http://localhost:5000/reset_password'
        reset_password('user@example.com')
        assert fake_supabase.calls == [
            ('reset_password', 'user@example.com', 'http://localhost:5000/reset_password'),
        ]

    def test_update_password(self, app, fake_supabase):
        """Test the recovery session is restored before updating"""
        user = update_password('newsecret', access_token='access-token')
        assert user.id == 'user-1'
        assert fake_supabase.calls == [
            ('set_session', 'access-token'),
            ('update_user', 'newsecret'),
        ]
        assert fake_supabase.password == 'newsecret'

    def test_update_password_needs_recovery_token(self, app, fake_supabase):
        """Test a new password is refused without a recovery token"""
        with pytest.raises(AuthError, match='invalid or has expired'):
            update_password('newsecret', access_token='')
        assert fake_supabase.calls == []
        assert fake_supabase.password == 'secret123'

    def test_update_password_bad_token(self, app, fake_supabase):
        """Test a forged recovery token is rejected by Supabase"""
        with pytest.raises(AuthError):
            update_password('newsecret', access_token='forged')
        assert fake_supabase.password == 'secret123'

    def test_update_password_too_short(self, app, fake_supabase):
        """Test short passwords are rejected before calling Supabase"""
        with pytest.raises(AuthError):
            update_password('123', access_token='access-token')
        assert fake_supabase.calls == []

    def test_get_user(self, app, fake_supabase):
        """Test token lookup"""
        assert get_user('access-token').email == 'user@example.com'
        with pytest.raises(AuthError):
            get_user('expired')

    def test_missing_configuration(self, app, monkeypatch):
        """Test a clear error when Supabase is not configured"""
        monkeypatch.setitem(app.config, 'SUPABASE_URL', None)
        with pytest.raises(AuthError, match='SUPABASE_URL'):
            auth.get_client()


class TestProfiles:
    """Test profile sync and data reset"""

    def test_sync_creates_profile(self, db_session):
        """Test first login creates a profile with defaults"""
        user = SimpleNamespace(id='new-user', email='asha@example.com', user_metadata={})
        profile = sync_profile(user)
        db_session.commit()

        stored = db_session.get(UserProfile, 'new-user')
        assert stored is profile
        assert profile.display_name == 'asha'
        assert profile.currency == 'INR'
        assert profile.reminder_types == ['in-app']
        assert profile.pin_enabled is False

    def test_sync_uses_full_name(self, db_session):
        """Test the display name comes from signup metadata"""
        user = SimpleNamespace(id='new-user', email='asha@example.com', user_metadata={'full_name': 'Asha Rao'})
        assert sync_profile(user).display_name == 'Asha Rao'

    def test_sync_updates_last_login(self, db_session):
        """Test an existing profile keeps its settings"""
        profile = db_session.get(UserProfile, 'user-1')
        before = profile.last_login
        user = SimpleNamespace(id='user-1', email='user@example.com', user_metadata={'full_name': 'Renamed'})
        synced = sync_profile(user)
        db_session.commit()

        assert synced is profile
        assert profile.display_name == 'Test User'
        assert profile.reminder_types == ['in-app', 'whatsapp']
        assert profile.last_login >= before

    def test_reset_user_data(self, db_session):
        """Test reset removes the user's records only"""
        db_session.add(CustomCategory(user_id='user-1', slug='pets', name='Pets'))
        save_learning('user-1', 'chai', 'food', 20)
        db_session.commit()

        counts = reset_user_data('user-1')
        db_session.commit()

        assert counts['expenses'] == 2
        assert counts['custom_categories'] == 1
        assert counts['learned_rules'] == 1
        for model in (Expense, Income, EMI, Savings, Subscription, CustomCategory, LearnedRule):
            assert model.query.filter_by(user_id='user-1').count() == 0
        assert Expense.query.filter_by(user_id='user-2').count() == 1
        assert db_session.get(UserProfile, 'user-1') is not None
