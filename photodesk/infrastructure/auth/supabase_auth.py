from __future__ import annotations

import hashlib
import logging
import os

from supabase import Client, create_client

from photodesk.domain.entities.profile import AuthTokens, UserInfo

logger = logging.getLogger(__name__)


class SupabaseAuthAdapter:
    """Credential holder for the client: login, logout, current user, refresh.

    When SUPABASE_DISABLED=1, any credentials are accepted and a deterministic
    fake user and token pair is issued.
    """

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        *,
        disabled: bool | None = None,
    ) -> None:
        if disabled is None:
            disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.disabled = disabled
        self.url = url or os.getenv("SUPABASE_URL")
        self.key = key or os.getenv("SUPABASE_ANON_KEY")
        self._client: Client | None = None
        if not self.disabled and self.url and self.key:
            self._client = create_client(self.url, self.key)
        self._tokens: AuthTokens | None = None
        self._user: UserInfo | None = None
        self._refresh_count = 0

    @property
    def access_token(self) -> str | None:
        return self._tokens.access_token if self._tokens else None

    @property
    def is_authenticated(self) -> bool:
        return self._tokens is not None

    @staticmethod
    def _fake_id(seed: str) -> str:
        return "fake-" + hashlib.sha1(seed.encode("utf-8")).hexdigest()[:10]

    def login(self, email: str, password: str) -> UserInfo:
        if not email or not password:
            raise ValueError("Email and password are required")
        if self.disabled or not self._client:
            user = UserInfo(id=self._fake_id(email), email=email)
            self._tokens = AuthTokens(
                access_token=f"access-{user.id}", refresh_token=f"refresh-{user.id}"
            )
            self._user = user
            return user
        try:  # pragma: no cover - network path
            res = self._client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as exc:  # pragma: no cover - network path
            raise ValueError(f"Login failed: {exc}") from exc
        if not res.session or not res.user:  # pragma: no cover - network path
            raise ValueError("Login failed: no session returned")
        self._tokens = AuthTokens(res.session.access_token, res.session.refresh_token)
        self._user = UserInfo(id=res.user.id, email=res.user.email)
        return self._user

    def logout(self) -> None:
        if self._client and self._tokens:  # pragma: no cover - network path
            try:
                self._client.auth.sign_out()
            except Exception as exc:
                logger.warning("Remote sign-out failed: %s", exc)
        self._tokens = None
        self._user = None

    def get_current_user(self) -> UserInfo | None:
        if self._tokens is None:
            return None
        if self.disabled or not self._client:
            return self._user
        try:  # pragma: no cover - network path
            res = self._client.auth.get_user(self._tokens.access_token)
        except Exception as exc:  # pragma: no cover - network path
            logger.warning("Token validation failed: %s", exc)
            return None
        if not res or not res.user:  # pragma: no cover - network path
            return None
        self._user = UserInfo(id=res.user.id, email=res.user.email)  # pragma: no cover
        return self._user  # pragma: no cover

    def refresh(self) -> bool:
        """Exchange the refresh token for a new access token.

        Returns False (and forgets the session) when no refresh is possible.
        """
        if self._tokens is None or not self._tokens.refresh_token:
            self.logout()
            return False
        if self.disabled or not self._client:
            user_id = self._user.id if self._user else self._fake_id(self._tokens.refresh_token)
            self._refresh_count += 1
            self._tokens = AuthTokens(
                access_token=f"access-{user_id}-r{self._refresh_count}",
                refresh_token=self._tokens.refresh_token,
            )
            return True
        try:  # pragma: no cover - network path
            res = self._client.auth.refresh_session(self._tokens.refresh_token)
        except Exception as exc:  # pragma: no cover - network path
            logger.warning("Token refresh failed: %s", exc)
            self.logout()
            return False
        if not res.session:  # pragma: no cover - network path
            self.logout()
            return False
        self._tokens = AuthTokens(res.session.access_token, res.session.refresh_token)  # pragma: no cover
        return True  # pragma: no cover
