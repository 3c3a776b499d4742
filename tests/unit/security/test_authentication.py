"""Security tests: access token issue and decode into a Principal."""

import pytest
from jose import jwt

from app.security.authentication import (
    create_access_token,
    decode_principal,
    extract_bearer_token,
)
from app.security.exceptions import AuthenticationError

SECRET = "unit-test-secret-key-with-32-plus-characters"


def test_round_trip_claims():
    token = create_access_token(
        user_id="42", email="p@example.com", role="Parent", tenant_id="3", secret=SECRET
    )
    principal = decode_principal(token, SECRET)
    assert principal.user_id == "42"
    assert principal.numeric_user_id == 42
    assert principal.email == "p@example.com"
    assert principal.role == "Parent"
    assert principal.tenant_id == "3"
    assert principal.has_authorization_claims is True


def test_missing_claims_become_none():
    token = jwt.encode({"sub": "abc", "email": "x@example.com"}, SECRET, algorithm="HS256")
    principal = decode_principal(token, SECRET)
    assert principal.role is None
    assert principal.tenant_id is None
    assert principal.numeric_user_id is None
    assert principal.has_authorization_claims is False


def test_wrong_secret_rejected():
    token = create_access_token(
        user_id="1", email="a@example.com", role="Driver", tenant_id="1", secret=SECRET
    )
    with pytest.raises(AuthenticationError):
        decode_principal(token, "another-secret-key-with-32-plus-characters")


def test_expired_token_rejected():
    token = create_access_token(
        user_id="1",
        email="a@example.com",
        role="Driver",
        tenant_id="1",
        secret=SECRET,
        expires_minutes=-1,
    )
    with pytest.raises(AuthenticationError):
        decode_principal(token, SECRET)


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer abc", "abc"),
        ("Basic dXNlcjpwYXNz", None),
        ("Bearer ", None),
        (None, None),
    ],
)
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected
