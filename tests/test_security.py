"""Tests for tokens, router password encryption and database URLs."""

import pytest
from jose import jwt

from app.config import settings
from app.db.database import async_database_url
from app.core.security import (
    PasswordDecryptionError,
    create_access_token,
    decrypt_router_password,
    encrypt_router_password,
    hash_password,
    pwd_context,
)


def test_router_password_round_trip() -> None:
    token = encrypt_router_password("router-secret")

    assert "router-secret" not in token
    assert decrypt_router_password(token) == "router-secret"


def test_tampered_ciphertext_rejected() -> None:
    token = encrypt_router_password("router-secret")

    with pytest.raises(PasswordDecryptionError):
        decrypt_router_password(token[:-4] + "AAAA")


def test_plaintext_value_rejected() -> None:
    with pytest.raises(PasswordDecryptionError):
        decrypt_router_password("router-secret")


def test_access_token_claims() -> None:
    token = create_access_token({"sub": "5", "role": "ADMIN", "tenant_id": 2})

    claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert claims["role"] == "ADMIN"
    assert claims["tenant_id"] == 2
    assert "exp" in claims


def test_user_password_hashed() -> None:
    hashed = hash_password("changeme")

    assert hashed != "changeme"
    assert pwd_context.verify("changeme", hashed)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("postgresql://u:p@db/isp", "postgresql+asyncpg://u:p@db/isp"),
        ("postgres://u:p@db/isp", "postgresql+asyncpg://u:p@db/isp"),
        ("sqlite+aiosqlite:///./router_dashboard.db", "sqlite+aiosqlite:///./router_dashboard.db"),
    ],
)
def test_async_database_url(url, expected) -> None:
    assert async_database_url(url) == expected
