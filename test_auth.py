"""Tests for the auth service client with HTTP calls mocked"""
from unittest.mock import MagicMock, patch

import pytest
import requests

import auth
from auth import AuthError, AuthSession, AuthUser


def response(status=200, payload=None):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.content = b'{}' if payload is not None else b''
    resp.json.return_value = payload or {}
    resp.text = ''
    return resp


@pytest.fixture(autouse=True)
def auth_config():
    with patch('config.SUPABASE_URL', 'https://auth.example.gov'), \
            patch('config.SUPABASE_ANON_KEY', 'anon-key'):
        yield


@patch('auth.requests.request')
def test_sign_in_returns_session(mock_request):
    mock_request.return_value = response(payload={
        'access_token': 'token', 'refresh_token': 'refresh',
        'user': {'id': 'u1', 'email': 'clerk@example.gov'},
    })

    session = auth.sign_in(' clerk@example.gov ', 'secret')

    assert session.access_token == 'token'
    assert session.user == AuthUser(id='u1', email='clerk@example.gov')
    args, kwargs = mock_request.call_args
    assert args == ('POST', 'https://auth.example.gov/auth/v1/token')
    assert kwargs['params'] == {'grant_type': 'password'}
    assert kwargs['json'] == {'email': 'clerk@example.gov', 'password': 'secret'}
    assert kwargs['headers']['apikey'] == 'anon-key'


@patch('auth.requests.request')
def test_sign_in_surfaces_server_message(mock_request):
    mock_request.return_value = response(400, {'error_description': 'Invalid login credentials'})
    with pytest.raises(AuthError, match="Invalid login credentials"):
        auth.sign_in('clerk@example.gov', 'wrong')


@patch('auth.requests.request', side_effect=requests.ConnectionError("refused"))
def test_network_errors_become_auth_errors(mock_request):
    with pytest.raises(AuthError, match="Unable to reach"):
        auth.reset_password('clerk@example.gov')


def test_sign_up_requires_jurisdiction_id():
    with pytest.raises(AuthError, match="Jurisdiction ID is required for registration"):
        auth.sign_up('clerk@example.gov', 'secret1', '  ')


def test_sign_up_requires_long_password():
    with pytest.raises(AuthError, match="at least 6 characters"):
        auth.sign_up('clerk@example.gov', '123', 'J100')


@patch('auth.pay_equity_data')
def test_sign_up_unknown_jurisdiction(mock_data):
    mock_data.get_jurisdiction_by_code.return_value = None
    with pytest.raises(AuthError, match="Jurisdiction ID not found"):
        auth.sign_up('clerk@example.gov', 'secret1', 'J999')


@patch('auth.requests.request')
@patch('auth.pay_equity_data')
def test_sign_up_sets_jurisdiction_pending(mock_data, mock_request):
    mock_data.get_jurisdiction_by_code.return_value = {
        'id': 'j1', 'jurisdiction_id': 'J100', 'approval_status': 'rejected'}
    mock_request.return_value = response(payload={'user': {'id': 'u1', 'email': 'clerk@example.gov'}})

    user = auth.sign_up('clerk@example.gov', 'secret1', 'J100')

    assert user.id == 'u1'
    mock_data.create_user_profile.assert_called_once_with('u1', 'clerk@example.gov', 'j1')
    mock_data.update_jurisdiction.assert_called_once_with('j1', {'approval_status': 'pending'},
                                                          'clerk@example.gov')
    history = mock_data.add_status_history.call_args
    assert history[0][:3] == ('j1', 'rejected', 'pending')


@patch('auth.requests.request')
@patch('auth.pay_equity_data')
def test_sign_up_keeps_approved_jurisdiction(mock_data, mock_request):
    mock_data.get_jurisdiction_by_code.return_value = {
        'id': 'j1', 'jurisdiction_id': 'J100', 'approval_status': 'approved'}
    mock_request.return_value = response(payload={'id': 'u2', 'email': 'second@example.gov'})

    auth.sign_up('second@example.gov', 'secret1', 'J100')

    mock_data.update_jurisdiction.assert_not_called()
    mock_data.add_status_history.assert_not_called()


def test_update_password_validation():
    session = AuthSession('token', 'refresh', AuthUser('u1', 'clerk@example.gov'))
    with pytest.raises(AuthError, match="do not match"):
        auth.update_password(session, 'secret1', 'secret2')


@patch('auth.requests.request')
def test_update_password_uses_user_token(mock_request):
    mock_request.return_value = response(payload={'id': 'u1'})
    session = AuthSession('token', 'refresh', AuthUser('u1', 'clerk@example.gov'))

    auth.update_password(session, 'secret1', 'secret1')

    args, kwargs = mock_request.call_args
    assert args == ('PUT', 'https://auth.example.gov/auth/v1/user')
    assert kwargs['headers']['Authorization'] == 'Bearer token'


@patch('auth.requests.request')
def test_sign_out_ignores_service_errors(mock_request):
    mock_request.return_value = response(401, {'msg': 'expired'})
    session = AuthSession('token', 'refresh', AuthUser('u1', 'clerk@example.gov'))
    auth.sign_out(session)


def test_is_admin():
    assert auth.is_admin({'role': 'admin'})
    assert not auth.is_admin({'role': 'jurisdiction'})
    assert not auth.is_admin(None)
