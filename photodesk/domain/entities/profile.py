from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UserInfo:
    id: str  # user id from Supabase auth
    email: str | None
    display_name: str | None = None


@dataclass(frozen=True)
class AuthTokens:
    access_token: str
    refresh_token: str | None = None
