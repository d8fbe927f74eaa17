from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from photodesk.application.dtos.image_dto import ListImagesResponse
from photodesk.domain.entities.image import FilterCriteria, Image, PageState
from photodesk.infrastructure.gateway.remote_gateway import RemoteGateway

logger = logging.getLogger(__name__)

RefreshListener = Callable[[frozenset[str]], Any]


class CollectionStore:
    """
    Paginated, filtered view of the user's image collection.

    The store is the source of truth for which images exist. Overlapping
    fetches may race; a response is applied only when it belongs to the most
    recently issued fetch, whatever order responses arrive in.
    """

    def __init__(self, gateway: RemoteGateway, page_size: int = 20) -> None:
        self.gateway = gateway
        self.filter = FilterCriteria()
        self.page_state = PageState(page=1, limit=page_size)
        self.images: tuple[Image, ...] = ()
        self.tags: tuple[str, ...] = ()
        self.error: str | None = None
        self._issued = 0
        self._applied = 0
        self._listeners: list[RefreshListener] = []

    @property
    def is_loading(self) -> bool:
        return self._issued > self._applied

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(img.id for img in self.images)

    def find(self, image_id: str) -> Image | None:
        return next((img for img in self.images if img.id == image_id), None)

    def add_refresh_listener(self, listener: RefreshListener) -> None:
        """``listener(ids)`` runs after every successful fetch; may be async."""
        self._listeners.append(listener)

    async def fetch(self, filter: FilterCriteria | None = None, page: int | None = None) -> bool:
        """Query the remote collection. Returns True when this fetch was applied."""
        if filter is not None:
            self.filter = filter
        requested = self.page_state.page if page is None else page
        self._issued += 1
        seq = self._issued
        query = {"page": requested, "limit": self.page_state.limit, **self.filter.to_query()}
        logger.debug("fetch #%d %s", seq, query)

        result = await self.gateway.list_images(query)

        if seq != self._issued:
            # superseded by a later fetch
            logger.debug("Discarding collection response #%d (latest #%d)", seq, self._issued)
            return False
        self._applied = seq

        if not result.success:
            self.error = result.message or "Failed to fetch images"
            logger.info("Collection fetch failed: %s", self.error)
            return False
        try:
            payload = ListImagesResponse.model_validate(result.data)
        except PydanticValidationError as exc:
            logger.warning("Malformed collection response: %s", exc)
            self.error = "Error loading images. Please try again."
            return False

        self.images = tuple(item.to_entity() for item in payload.images)
        self.tags = tuple(payload.tags) if payload.tags else tuple(
            dict.fromkeys(tag for img in self.images for tag in img.tags)
        )
        self.page_state = PageState(
            page=requested,
            limit=self.page_state.limit,
            total=payload.pagination.total,
            pages=payload.pagination.pages,
        )
        self.error = None
        await self._notify(self.ids)
        return True

    async def refresh(self) -> bool:
        """Refetch with the current filter and page."""
        return await self.fetch()

    async def set_filter(self, **partial) -> bool:
        try:
            self.filter = self.filter.merged(**partial)
        except (TypeError, ValueError) as exc:
            self.error = f"Invalid filter: {exc}"
            logger.info("Rejected filter %s: %s", partial, exc)
            return False
        return await self.fetch(page=1)

    async def set_page(self, page: int) -> bool:
        page = max(1, min(page, max(self.page_state.pages, 1)))
        return await self.fetch(page=page)

    async def _notify(self, ids: frozenset[str]) -> None:
        for listener in self._listeners:
            outcome = listener(ids)
            if inspect.isawaitable(outcome):
                await outcome
