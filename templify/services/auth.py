"""Sign-in and token verification against Supabase Auth."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from supabase import create_client

from templify.core.config import Settings
from templify.core.exceptions import AuthenticationError
from templify.core.exceptions import provider_message
from templify.models.template_models import CurrentUser

logger = logging.getLogger(__name__)


@dataclass
class SignInResult:
    user: CurrentUser
    access_token: str
    refresh_token: str | None = None


class AuthService:
    """Wraps the Supabase Auth calls used by the login flow.

    Signing in stores a session on the client that performs it, so every
    sign-in uses a fresh anon-key client from *anon_client_factory*; token
    verification goes through the shared admin client, which keeps no session.
    """

    def __init__(self, admin_client: Any, anon_client_factory: Callable[[], Any]) -> None:
        self._admin = admin_client
        self._anon_client_factory = anon_client_factory

    @classmethod
    def from_settings(cls, settings: Settings, admin_client: Any) -> "AuthService | None":
        if not settings.supabase_url or not settings.supabase_anon_key:
            logger.error("SUPABASE_URL / SUPABASE_ANON_KEY not configured. Login is unavailable.")
            return None
        url, anon_key = settings.supabase_url, settings.supabase_anon_key
        return cls(admin_client, lambda: create_client(url, anon_key))

    def _sign_in_sync(self, email: str, password: str) -> SignInResult:
        client = self._anon_client_factory()
        try:
            resp = client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.warning("Supabase login error for %s: %s", email, e)
            raise AuthenticationError(provider_message(e) or "Invalid login credentials.") from e

        if resp.user is None or resp.session is None or not resp.session.access_token:
            raise AuthenticationError("Login failed: no session data returned.")
        return SignInResult(
            user=CurrentUser(id=str(resp.user.id), email=resp.user.email),
            access_token=resp.session.access_token,
            refresh_token=resp.session.refresh_token,
        )

    async def sign_in(self, email: str, password: str) -> SignInResult:
        return await asyncio.to_thread(self._sign_in_sync, email, password)

    def _get_user_sync(self, access_token: str) -> CurrentUser | None:
        try:
            resp = self._admin.auth.get_user(access_token)
        except Exception as e:
            logger.warning("Error getting user with session token: %s", e)
            return None
        if resp is None or resp.user is None:
            return None
        return CurrentUser(id=str(resp.user.id), email=resp.user.email)

    async def get_user(self, access_token: str) -> CurrentUser | None:
        """Resolve the user owning *access_token*, None when the token is invalid or expired."""
        return await asyncio.to_thread(self._get_user_sync, access_token)
