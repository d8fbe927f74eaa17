from __future__ import annotations

import re
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from photodesk.domain.entities.profile import UserInfo
from photodesk.infrastructure.sandbox.store import SandboxStore

_bearer_scheme = HTTPBearer(auto_error=False)

# tokens issued by the auth adapter's disabled mode: access-<user id>[-r<n>]
_FAKE_TOKEN_RE = re.compile(r"^access-(?P<user>.+?)(?:-r\d+)?$")


def get_store(request: Request) -> SandboxStore:
    return request.app.state.store


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(_bearer_scheme)] = None,
    store: Annotated[SandboxStore, Depends(get_store)] = None,
) -> UserInfo:
    if not credentials or not credentials.scheme or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    token = credentials.credentials
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    if token in store.revoked_tokens:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    match = _FAKE_TOKEN_RE.match(token)
    user_id = match.group("user") if match else token
    return UserInfo(id=user_id, email=f"{user_id}@sandbox.local")
