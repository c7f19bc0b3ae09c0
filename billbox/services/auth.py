"""
Authentication through Supabase Auth, plus the local user profile
"""
import logging
from datetime import datetime

from flask import current_app
from supabase import create_client

from billbox.database.models import (
    db, CustomCategory, EMI, Expense, Income, Savings, Subscription, UserProfile,
)
from billbox.services.learning import reset_learning

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when Supabase rejects or cannot process an auth request"""


def get_client():
    """
    Create a Supabase client for a single auth call.

    A client holds the session of whoever last signed in through it, so
    clients are never shared between requests or users.
    """
    url = current_app.config.get('SUPABASE_URL')
    key = current_app.config.get('SUPABASE_ANON_KEY')
    if not url or not key:
        raise AuthError('Missing SUPABASE_URL or SUPABASE_ANON_KEY')
    return create_client(url, key)


def _call(action, fn, *args, **kwargs):
    """Run a Supabase auth call, turning any failure into AuthError"""
    try:
        return fn(*args, **kwargs)
    except AuthError:
        raise
    except Exception as e:
        logger.warning(f'[AUTH] {action} failed: {e!r}')
        raise AuthError(str(e) or f'{action} failed') from e


def sign_up(email, password, full_name=None):
    """
    Register a new account.

    Returns:
        (user, session) when Supabase issued a session straight away

    Raises:
        AuthError: when Supabase refuses, or email confirmation is still pending
    """
    client = get_client()
    response = _call('Sign up', client.auth.sign_up, {
        'email': email,
        'password': password,
        'options': {'data': {'full_name': full_name or ''}},
    })
    if response.user and not response.session:
        raise AuthError('Please check your email and click the confirmation link to activate your account.')
    if not response.user:
        raise AuthError('Sign up failed')
    logger.info(f'[AUTH] Signed up user {response.user.id}')
    return response.user, response.session


def sign_in(email, password):
    """Check credentials; returns (user, session)"""
    client = get_client()
    response = _call('Sign in', client.auth.sign_in_with_password, {'email': email, 'password': password})
    if not response or not response.user:
        raise AuthError('Invalid email or password')
    logger.info(f'[AUTH] Signed in user {response.user.id}')
    return response.user, response.session


def sign_out(access_token, refresh_token=None):
    """Revoke the caller's own Supabase session"""
    if not access_token:
        return
    client = get_client()
    _call('Restore session', client.auth.set_session, access_token, refresh_token or '')
    _call('Sign out', client.auth.sign_out)


def reset_password(email, redirect_to=None):
    """Send the password reset email"""
    redirect_to = redirect_to or current_app.config.get('PASSWORD_RESET_REDIRECT')
    _call('Password reset', get_client().auth.reset_password_for_email, email, {'redirect_to': redirect_to})
    logger.info(f'[AUTH] Password reset requested for {email}')


def update_password(new_password, access_token, refresh_token=None):
    """
    Set a new password with the recovery session from the reset link.

    Raises:
        AuthError: when the link's token is missing, or Supabase rejects it
    """
    if not access_token:
        raise AuthError('Password reset link is invalid or has expired')
    if not new_password or len(new_password) < 6:
        raise AuthError('Password must be at least 6 characters')
    client = get_client()
    _call('Restore session', client.auth.set_session, access_token, refresh_token or '')
    response = _call('Update password', client.auth.update_user, {'password': new_password})
    if response and response.user:
        logger.info(f'[AUTH] Password updated for user {response.user.id}')
        return response.user
    return None


def get_user(access_token):
    response = _call('Token check', get_client().auth.get_user, access_token)
    if not response or not response.user:
        raise AuthError('Invalid token')
    return response.user


def _metadata(user):
    return getattr(user, 'user_metadata', None) or {}


def sync_profile(user):
    """
    Create the user's profile on first login, or refresh last_login.

    The caller commits.
    """
    profile = db.session.get(UserProfile, user.id)
    now = datetime.utcnow()
    if profile:
        profile.last_login = now
        return profile

    email = user.email or ''
    metadata = _metadata(user)
    profile = UserProfile(
        id=user.id,
        email=email,
        display_name=metadata.get('full_name') or (email.split('@')[0] if email else 'User'),
        photo_url=metadata.get('avatar_url'),
        created_at=now,
        last_login=now,
        currency='INR',
        language='en',
        reminder_days=current_app.config.get('DEFAULT_REMINDER_DAYS', 3),
        reminder_types=['in-app'],
        ai_enabled=True,
        pin_enabled=False,
    )
    db.session.add(profile)
    logger.info(f'[AUTH] Created profile for user {user.id}')
    return profile


def reset_user_data(user_id):
    """
    Delete everything the user has recorded, keeping the profile.

    The caller commits.
    """
    counts = {}
    for model in (Expense, Income, EMI, Savings, Subscription, CustomCategory):
        counts[model.__tablename__] = model.query.filter_by(user_id=user_id).delete()
    counts.update(reset_learning(user_id))
    logger.info(f'[AUTH] Reset data for user {user_id}: {counts}')
    return counts
