import pytest
import jwt
from datetime import datetime, timedelta, timezone

from argon2 import PasswordHasher

from backend.auth_service.utils import (
    create_token,
    hash_password,
    optional_identity,
    require_admin,
    require_authenticated,
    require_ownership,
    verify_password,
    verify_token,
)
from backend.common.errors import AuthenticationError, AuthorizationError


def test_create_token():
    token = create_token(123)

    assert isinstance(token, str)

    payload = jwt.decode(token, "test_secret", algorithms=["HS256"])
    assert payload["sub"] == "123"
    assert "exp" in payload
    assert "iat" in payload
    assert set(payload) == {"sub", "exp", "iat"}


def test_token_default_lifetime_is_24_hours():
    payload = jwt.decode(create_token(1), "test_secret", algorithms=["HS256"])
    assert payload["exp"] - payload["iat"] == 24 * 60 * 60


def test_verify_token():
    assert verify_token(create_token(456)) == 456


def test_verify_token_invalid():
    assert verify_token("invalid.token.here") is None


def test_verify_token_expired():
    token = create_token(7, expires_in=timedelta(seconds=-1))
    assert verify_token(token) is None


def test_verify_token_wrong_secret():
    token = jwt.encode(
        {"sub": "7", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
        "some_other_secret",
        algorithm="HS256",
    )
    assert verify_token(token) is None


def test_verify_token_non_numeric_subject():
    token = jwt.encode(
        {"sub": "abc", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
        "test_secret",
        algorithm="HS256",
    )
    assert verify_token(token) is None


def test_password_hash_roundtrip():
    hashed = hash_password("s3cret-pass")

    assert hashed != "s3cret-pass"
    assert verify_password(hashed, "s3cret-pass") is True
    assert verify_password(hashed, "wrong-pass") is False


def test_verify_password_corrupt_hash():
    assert verify_password("not-an-argon2-hash", "anything") is False


def test_verify_password_without_account_still_hashes(mocker):
    spy = mocker.spy(PasswordHasher, "verify")

    assert verify_password(None, "password123") is False
    assert spy.call_count == 1


def test_require_authenticated_valid(app, make_user, auth_header):
    user = make_user("carol")

    with app.test_request_context(headers=auth_header(user)):
        current = require_authenticated()
        assert current.user_id == user.user_id
        assert current.username == "carol"


def test_require_authenticated_missing_header(app):
    with app.test_request_context():
        with pytest.raises(AuthenticationError) as exc:
            require_authenticated()
        assert exc.value.message == "Missing token"


def test_require_authenticated_invalid_format(app):
    with app.test_request_context(headers={"Authorization": "InvalidFormat"}):
        with pytest.raises(AuthenticationError):
            require_authenticated()


def test_require_authenticated_deleted_user(app, repos, make_user, auth_header):
    user = make_user("ghost")
    headers = auth_header(user)
    repos.users.delete(user.user_id)

    with app.test_request_context(headers=headers):
        with pytest.raises(AuthenticationError) as exc:
            require_authenticated()
        assert exc.value.message == "Invalid token"


def test_expired_and_forged_tokens_share_one_message(app, make_user):
    user = make_user("dave")
    expired = create_token(user.user_id, expires_in=timedelta(seconds=-1))

    messages = set()
    for token in (expired, "garbage", expired[:-2] + "xx"):
        with app.test_request_context(headers={"Authorization": f"Bearer {token}"}):
            with pytest.raises(AuthenticationError) as exc:
                require_authenticated()
            messages.add(exc.value.message)

    assert messages == {"Invalid token"}


def test_optional_identity(app, make_user, auth_header):
    user = make_user("erin")

    with app.test_request_context(headers=auth_header(user)):
        assert optional_identity() == user.user_id

    with app.test_request_context():
        assert optional_identity() is None

    with app.test_request_context(headers={"Authorization": "Bearer nope"}):
        assert optional_identity() is None


def test_require_admin_rejects_regular_user(app, make_user, auth_header):
    user = make_user("frank")

    with app.test_request_context(headers=auth_header(user)):
        with pytest.raises(AuthorizationError):
            require_admin()


def test_require_admin_accepts_admin(app, make_user, auth_header):
    admin = make_user("root", is_admin=True)

    with app.test_request_context(headers=auth_header(admin)):
        assert require_admin().user_id == admin.user_id


def test_require_ownership(make_user):
    owner = make_user("owner")
    other = make_user("other")

    require_ownership(owner.user_id, owner)
    with pytest.raises(AuthorizationError):
        require_ownership(owner.user_id, other)
