"""
Authentication tests.

Verifies:
- Registration rules (USER role, duplicate email, weak input)
- Uniform login failures
- Bootstrap admin credential
- Token transport (Bearer header and cookie), expiry and tampering
- /me reflects the user's current role, not the one in the token
"""

import pytest

from conftest import DEFAULT_PASSWORD, TEST_CONFIG, auth_headers, get_auth_token
from shopadmin.extensions import db
from shopadmin.models import User
from shopadmin.services import auth_service, role_service, session_service


# =============================================================================
# REGISTRATION
# =============================================================================


class TestRegister:

    def test_register_creates_user_role_account(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'Mona',
            'email': 'Mona@Example.com',
            'password': DEFAULT_PASSWORD,
        })

        assert response.status_code == 201
        assert response.json['token']
        user = response.json['user']
        assert user['email'] == 'mona@example.com'
        assert user['role'] == 'USER'
        assert user['permissions'] == []
        assert 'shopadmin_token' in response.headers.get('Set-Cookie', '')

    def test_duplicate_email_conflicts(self, client, make_user):
        make_user('mona@example.com')
        response = client.post('/api/auth/register', json={
            'name': 'Mona',
            'email': 'MONA@example.com',
            'password': DEFAULT_PASSWORD,
        })

        assert response.status_code == 409
        assert response.json['code'] == 'errors.auth.user_exists'

    @pytest.mark.parametrize('payload', [
        {'name': 'M', 'email': 'mona@example.com', 'password': DEFAULT_PASSWORD},
        {'name': 'Mona', 'email': 'not-an-email', 'password': DEFAULT_PASSWORD},
        {'name': 'Mona', 'email': 'mona@example.com', 'password': '123'},
        {'name': 'Mona', 'email': 'mona@example.com'},
    ])
    def test_invalid_input_rejected(self, client, payload):
        response = client.post('/api/auth/register', json=payload)
        assert response.status_code == 400
        assert db.session.query(User).count() == 0

    def test_non_object_body_rejected(self, client):
        response = client.post('/api/auth/register', json=['Mona'])
        assert response.status_code == 400


# =============================================================================
# LOGIN
# =============================================================================


class TestLogin:

    def test_login_returns_token_and_profile(self, client, make_user):
        make_user('mona@example.com')
        response = client.post('/api/auth/login', json={
            'email': 'mona@example.com',
            'password': DEFAULT_PASSWORD,
        })

        assert response.status_code == 200
        assert response.json['user']['email'] == 'mona@example.com'
        assert db.session.query(User).filter_by(email='mona@example.com').first().last_login_at is not None

    def test_failures_are_uniform(self, client, make_user):
        make_user('mona@example.com')
        wrong_password = client.post('/api/auth/login', json={
            'email': 'mona@example.com',
            'password': 'wrong-password',
        })
        unknown_email = client.post('/api/auth/login', json={
            'email': 'nobody@example.com',
            'password': DEFAULT_PASSWORD,
        })

        assert wrong_password.status_code == 401
        assert unknown_email.status_code == 401
        assert wrong_password.json == unknown_email.json
        assert wrong_password.json['code'] == 'errors.auth.invalid_credentials'

    def test_unknown_email_reuses_cached_dummy_hash(self, client, monkeypatch):
        monkeypatch.setattr(auth_service, '_dummy_hashes', {})
        for _ in range(2):
            resp = client.post('/api/auth/login', json={'email': 'nobody@example.com', 'password': 'x' * 8})
            assert resp.status_code == 401

        assert list(auth_service._dummy_hashes) == [4]

    def test_missing_fields(self, client):
        response = client.post('/api/auth/login', json={'email': 'mona@example.com'})
        assert response.status_code == 400


# =============================================================================
# BOOTSTRAP ADMIN
# =============================================================================


class TestBootstrapAdmin:

    def test_bootstrap_credential_logs_in_as_admin(self, client):
        response = client.post('/api/auth/login', json={
            'email': TEST_CONFIG['ADMIN_EMAIL'],
            'password': TEST_CONFIG['ADMIN_PASSWORD'],
        })

        assert response.status_code == 200
        user = response.json['user']
        assert user['id'] == 'bootstrap-admin'
        assert user['role'] == 'ADMIN'
        assert user['is_bootstrap'] is True
        assert 'roles.manage' in user['permissions']
        assert db.session.query(User).count() == 0

    def test_bootstrap_credential_can_be_disabled(self, app, client):
        app.config['BOOTSTRAP_ADMIN_ENABLED'] = False
        token = get_auth_token(client, TEST_CONFIG['ADMIN_EMAIL'], TEST_CONFIG['ADMIN_PASSWORD'])
        assert token is None

    def test_bootstrap_wrong_password_is_rejected(self, client):
        token = get_auth_token(client, TEST_CONFIG['ADMIN_EMAIL'], 'admin124')
        assert token is None


# =============================================================================
# SESSIONS
# =============================================================================


class TestSessions:

    def test_me_requires_token(self, client):
        response = client.get('/api/auth/me')
        assert response.status_code == 401

    def test_me_with_bearer_token(self, client, make_user):
        make_user('mona@example.com', name='Mona')
        token = get_auth_token(client, 'mona@example.com', DEFAULT_PASSWORD)
        client.post('/api/auth/logout')

        response = client.get('/api/auth/me', headers=auth_headers(token))
        assert response.status_code == 200
        assert response.json['user']['name'] == 'Mona'

    def test_me_with_cookie(self, client, make_user):
        make_user('mona@example.com')
        get_auth_token(client, 'mona@example.com', DEFAULT_PASSWORD)

        response = client.get('/api/auth/me')
        assert response.status_code == 200
        assert response.json['user']['email'] == 'mona@example.com'

    def test_logout_clears_cookie(self, client, make_user):
        make_user('mona@example.com')
        get_auth_token(client, 'mona@example.com', DEFAULT_PASSWORD)

        response = client.post('/api/auth/logout')
        assert response.status_code == 200
        assert client.get('/api/auth/me').status_code == 401

    def test_expired_token_rejected(self, client, make_user):
        user = make_user('mona@example.com')
        token = session_service.issue_token(user.id, user.role, expires_in=-60)

        response = client.get('/api/auth/me', headers=auth_headers(token))
        assert response.status_code == 401
        assert response.json['code'] == 'errors.auth.token_expired'

    def test_token_signed_with_other_secret_rejected(self, app, client, make_user):
        user = make_user('mona@example.com')
        app.config['JWT_SECRET'] = 'other-secret'
        token = session_service.issue_token(user.id, user.role)
        app.config['JWT_SECRET'] = TEST_CONFIG['JWT_SECRET']

        response = client.get('/api/auth/me', headers=auth_headers(token))
        assert response.status_code == 401
        assert response.json['code'] == 'errors.auth.invalid_token'

    def test_garbage_token_rejected(self, client):
        response = client.get('/api/auth/me', headers=auth_headers('not.a.jwt'))
        assert response.status_code == 401

    def test_me_reflects_current_role(self, client, make_user):
        role_service.create_role('Support', 'SUPPORT', permission_keys=['orders.view'])
        user = make_user('mona@example.com')
        token = get_auth_token(client, 'mona@example.com', DEFAULT_PASSWORD)

        user.role = 'SUPPORT'
        db.session.commit()

        response = client.get('/api/auth/me', headers=auth_headers(token))
        assert response.json['user']['role'] == 'SUPPORT'
        assert response.json['user']['permissions'] == ['orders.view']

    def test_deleted_account_rejected(self, client, make_user):
        user = make_user('mona@example.com')
        token = get_auth_token(client, 'mona@example.com', DEFAULT_PASSWORD)
        db.session.delete(user)
        db.session.commit()

        response = client.get('/api/auth/me', headers=auth_headers(token))
        assert response.status_code == 401
        assert response.json['code'] == 'errors.auth.user_not_found'
