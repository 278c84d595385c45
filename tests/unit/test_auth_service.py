from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from templify.core.config import Settings
from templify.core.exceptions import AuthenticationError
from templify.services.auth import AuthService


def _auth_response(user_id="user-1", email="ana@example.com", token="access"):
    return SimpleNamespace(
        user=SimpleNamespace(id=user_id, email=email),
        session=SimpleNamespace(access_token=token, refresh_token="refresh"),
    )


@pytest.fixture
def anon_client():
    return MagicMock()


@pytest.fixture
def admin_client():
    return MagicMock()


@pytest.fixture
def auth_service(admin_client, anon_client):
    return AuthService(admin_client, lambda: anon_client)


@pytest.mark.asyncio
async def test_sign_in_returns_tokens(auth_service, anon_client):
    anon_client.auth.sign_in_with_password.return_value = _auth_response()

    result = await auth_service.sign_in("ana@example.com", "secret1")

    anon_client.auth.sign_in_with_password.assert_called_once_with({"email": "ana@example.com", "password": "secret1"})
    assert result.user.id == "user-1"
    assert result.access_token == "access"
    assert result.refresh_token == "refresh"


@pytest.mark.asyncio
async def test_sign_in_rejected(auth_service, anon_client):
    error = Exception("Invalid login credentials")
    error.message = "Invalid login credentials"
    anon_client.auth.sign_in_with_password.side_effect = error

    with pytest.raises(AuthenticationError) as exc:
        await auth_service.sign_in("ana@example.com", "wrong-password")
    assert exc.value.status_code == 401
    assert exc.value.message == "Invalid login credentials"


@pytest.mark.asyncio
async def test_sign_in_without_session(auth_service, anon_client):
    anon_client.auth.sign_in_with_password.return_value = SimpleNamespace(user=None, session=None)
    with pytest.raises(AuthenticationError):
        await auth_service.sign_in("ana@example.com", "secret1")


@pytest.mark.asyncio
async def test_get_user(auth_service, admin_client):
    admin_client.auth.get_user.return_value = _auth_response()
    user = await auth_service.get_user("access")
    admin_client.auth.get_user.assert_called_once_with("access")
    assert user.id == "user-1"
    assert user.email == "ana@example.com"


@pytest.mark.asyncio
async def test_get_user_with_invalid_token(auth_service, admin_client):
    admin_client.auth.get_user.side_effect = RuntimeError("invalid JWT")
    assert await auth_service.get_user("expired") is None


def test_from_settings_requires_anon_key():
    settings = Settings(_env_file=None, supabase_url="https://x.supabase.co", supabase_anon_key=None)
    assert AuthService.from_settings(settings, MagicMock()) is None
