# tests/test_auth.py
import pytest

from utils import auth as auth_module
from utils.auth import AuthManager, SessionUser, hash_password, verify_password


def test_hash_password_round_trip():
    pwd_hash, salt = hash_password('s0lar!')

    assert len(salt) == 64
    assert verify_password('s0lar!', pwd_hash, salt)
    assert not verify_password('solar', pwd_hash, salt)
    assert not verify_password('s0lar!', None, salt)


def test_session_user_from_row():
    user = SessionUser.from_row({'id': 7, 'username': 'asha', 'name': None, 'email': 'a@x.in', 'role': ' sales'})

    assert user.user_id == '7'
    assert user.user_role == 'SALES'
    assert user.user_fullname == 'asha'


def _user_row(password, **overrides):
    pwd_hash, salt = hash_password(password, 'fixed-salt')
    row = {
        'id': 3, 'username': 'ravi', 'name': 'Ravi K', 'email': None, 'role': 'operations',
        'password_hash': pwd_hash, 'password_salt': salt, 'is_active': 1,
    }
    row.update(overrides)
    return row


@pytest.fixture
def users(monkeypatch):
    rows = []
    updates = []
    monkeypatch.setattr(auth_module, 'execute_query', lambda sql, params: list(rows))
    monkeypatch.setattr(auth_module, 'execute_update', lambda sql, params: updates.append(params) or 1)
    return rows, updates


def test_authenticate_success_records_last_login(users):
    rows, updates = users
    rows.append(_user_row('pw'))

    ok, user = AuthManager().authenticate('ravi', 'pw')

    assert ok
    assert user.user_role == 'OPERATIONS'
    assert user.user_fullname == 'Ravi K'
    assert updates == [{'user_id': 3}]


@pytest.mark.parametrize('row, password, message', [
    (None, 'pw', 'Invalid username or password'),
    (_user_row('pw'), 'wrong', 'Invalid username or password'),
    (_user_row('pw', is_active=0), 'pw', 'Account is inactive. Please contact administrator.'),
])
def test_authenticate_failures(users, row, password, message):
    rows, updates = users
    if row is not None:
        rows.append(row)

    ok, result = AuthManager().authenticate('ravi', password)

    assert not ok
    assert result == {'error': message}
    assert updates == []
