from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError

from photodesk.application.dtos.share_dto import ListSharesResponse
from photodesk.application.state.share_session import share_url_for
from photodesk.domain.entities.share import ShareSummary
from photodesk.infrastructure.gateway.remote_gateway import RemoteGateway

logger = logging.getLogger(__name__)


class ShareLibrary:
    """The user's existing shares, as listed by the remote store."""

    def __init__(self, gateway: RemoteGateway, app_origin: str) -> None:
        self.gateway = gateway
        self.app_origin = app_origin
        self.shares: tuple[ShareSummary, ...] = ()
        self.error: str | None = None
        self.is_loading = False
        self._deleting: set[str] = set()

    async def load(self) -> bool:
        self.is_loading = True
        try:
            result = await self.gateway.list_shares()
        finally:
            self.is_loading = False
        if not result.success:
            self.error = result.message or "Failed to fetch shares"
            return False
        try:
            payload = ListSharesResponse.model_validate(result.data)
        except PydanticValidationError as exc:
            logger.warning("Malformed share list: %s", exc)
            self.error = "Failed to fetch shares"
            return False
        self.shares = tuple(info.to_summary() for info in payload.shares)
        self.error = None
        return True

    async def delete(self, share_id: str) -> bool:
        if share_id in self._deleting:
            return False
        self._deleting.add(share_id)
        try:
            result = await self.gateway.delete_share(share_id)
        finally:
            self._deleting.discard(share_id)
        if not result.success:
            self.error = result.message or "Failed to delete share"
            return False
        return await self.load()

    def share_url(self, token: str) -> str:
        return share_url_for(self.app_origin, token)

    def search(self, query: str) -> list[ShareSummary]:
        """Case-insensitive match on title, description or token."""
        needle = query.strip().lower()
        if not needle:
            return list(self.shares)
        return [
            share
            for share in self.shares
            if needle in share.title.lower()
            or needle in share.description.lower()
            or needle in share.share_token.lower()
        ]
