"""
Authentication against the hosted auth service (GoTrue REST API).
User roles and jurisdiction membership live in the user_profiles table.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import requests

import config
import pay_equity_data

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class AuthError(Exception):
    """Raised when the auth service rejects a request"""


@dataclass
class AuthUser:
    id: str
    email: str


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str
    user: AuthUser


def _headers(access_token: Optional[str] = None):
    headers = {
        'apikey': config.SUPABASE_ANON_KEY,
        'Content-Type': 'application/json',
    }
    headers['Authorization'] = f"Bearer {access_token or config.SUPABASE_ANON_KEY}"
    return headers


def _error_message(response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"Request failed with status {response.status_code}"
    return (payload.get('error_description') or payload.get('msg') or payload.get('message')
            or payload.get('error') or f"Request failed with status {response.status_code}")


def _request(method: str, path: str, access_token: Optional[str] = None, **kwargs):
    if not config.SUPABASE_URL:
        raise AuthError("Authentication service is not configured")
    url = f"{config.SUPABASE_URL}/auth/v1/{path}"
    try:
        response = requests.request(method, url, headers=_headers(access_token),
                                    timeout=config.REQUEST_TIMEOUT, **kwargs)
    except requests.RequestException as e:
        logger.error(f"Error calling auth service {path}: {str(e)}")
        raise AuthError("Unable to reach the authentication service. Please try again.") from e
    if not response.ok:
        message = _error_message(response)
        logger.warning(f"Auth request {path} failed ({response.status_code}): {message}")
        raise AuthError(message)
    return response.json() if response.content else {}


def _user_from(payload) -> AuthUser:
    return AuthUser(id=payload['id'], email=payload.get('email', ''))


def sign_in(email: str, password: str) -> AuthSession:
    """Sign in with email and password"""
    if not email.strip() or not password:
        raise AuthError("Email and password are required")
    data = _request('POST', 'token', params={'grant_type': 'password'},
                    json={'email': email.strip(), 'password': password})
    logger.info(f"User signed in: {email.strip()}")
    return AuthSession(
        access_token=data['access_token'],
        refresh_token=data.get('refresh_token', ''),
        user=_user_from(data['user']),
    )


def sign_up(email: str, password: str, jurisdiction_code: str) -> AuthUser:
    """Register a jurisdiction user; the jurisdiction goes back to pending approval"""
    if not jurisdiction_code.strip():
        raise AuthError("Jurisdiction ID is required for registration")
    if not email.strip():
        raise AuthError("Email address is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    jurisdiction = pay_equity_data.get_jurisdiction_by_code(jurisdiction_code)
    if jurisdiction is None:
        raise AuthError("Jurisdiction ID not found. Please check the ID on your notice letter.")

    data = _request('POST', 'signup', json={
        'email': email.strip(),
        'password': password,
        'data': {'jurisdiction_id': jurisdiction['jurisdiction_id']},
    })
    user = _user_from(data.get('user') or data)
    pay_equity_data.create_user_profile(user.id, user.email, jurisdiction['id'])

    if jurisdiction.get('approval_status') != 'approved':
        old_status = jurisdiction.get('approval_status')
        pay_equity_data.update_jurisdiction(jurisdiction['id'], {'approval_status': 'pending'}, user.email)
        pay_equity_data.add_status_history(jurisdiction['id'], old_status, 'pending', user.email,
                                           notes="Registration submitted")
    logger.info(f"New registration for jurisdiction {jurisdiction['jurisdiction_id']}: {user.email}")
    return user


def reset_password(email: str) -> None:
    if not email.strip():
        raise AuthError("Email address is required")
    _request('POST', 'recover', json={'email': email.strip()})
    logger.info(f"Password reset requested for {email.strip()}")


def update_password(session: AuthSession, new_password: str, confirm_password: str) -> None:
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if new_password != confirm_password:
        raise AuthError("Passwords do not match")
    _request('PUT', 'user', access_token=session.access_token, json={'password': new_password})
    logger.info(f"Password changed for {session.user.email}")


def sign_out(session: Optional[AuthSession]) -> None:
    if session is None:
        return
    try:
        _request('POST', 'logout', access_token=session.access_token)
    except AuthError as e:
        # The local session is dropped regardless
        logger.warning(f"Error signing out {session.user.email}: {str(e)}")


def is_admin(profile: Optional[dict]) -> bool:
    return bool(profile) and profile.get('role') == 'admin'
