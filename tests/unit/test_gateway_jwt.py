"""Unit tests for JWT handler and identity dependencies."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from jose import jwt

from src.mp_common.enums import ActorRole
from src.mp_common.errors import ForbiddenError, InvalidCredentialsError
from src.mp_gateway.auth.dependencies import Identity, get_current_identity, require_role
from src.mp_gateway.auth.jwt_handler import create_access_token, decode_access_token


def test_access_token_contains_correct_claims() -> None:
    token = create_access_token("user-123", "seller")
    # Decode without verification to inspect claims
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "user-123"
    assert payload["role"] == "seller"
    assert payload["type"] == "access"


def test_decode_valid_access_token() -> None:
    payload = decode_access_token(create_access_token("user-abc", "customer"))
    assert payload["sub"] == "user-abc"


def test_expired_access_token_raises_credentials_error() -> None:
    """Expired access token must raise InvalidCredentialsError."""
    with patch(
        "src.mp_gateway.auth.jwt_handler._ACCESS_EXPIRE",
        timedelta(seconds=-1),
    ):
        token = create_access_token("user-abc", "customer")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_tampered_token_raises_error() -> None:
    """Tampered token signature must be rejected."""
    token = create_access_token("user-abc", "customer")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token[:-4] + "xxxx")


async def test_identity_from_token() -> None:
    identity = await get_current_identity(create_access_token("s-1", "seller"))
    assert identity == Identity(user_id="s-1", role=ActorRole.SELLER)


async def test_unknown_role_is_unauthorized() -> None:
    with pytest.raises(HTTPException) as exc_info:
        await get_current_identity(create_access_token("u-1", "superuser"))
    assert exc_info.value.status_code == 401


async def test_require_role_rejects_other_roles() -> None:
    check = require_role(ActorRole.ADMIN)
    with pytest.raises(ForbiddenError):
        await check(Identity(user_id="c-1", role=ActorRole.CUSTOMER))
    admin = Identity(user_id="a-1", role=ActorRole.ADMIN)
    assert await check(admin) == admin
