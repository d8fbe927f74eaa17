from __future__ import annotations

import logging
from typing import Iterable

from pydantic import ValidationError as PydanticValidationError

from photodesk.application.dtos.share_dto import CreateShareResponse, ShareSettings
from photodesk.domain.entities.share import ShareRequest, ShareResult
from photodesk.domain.errors import PhotoDeskError, ValidationError
from photodesk.infrastructure.gateway.remote_gateway import RemoteGateway

logger = logging.getLogger(__name__)


def default_share_title(count: int) -> str:
    return f"Shared Images ({count})"


def build_share_request(image_ids: Iterable[str], settings: ShareSettings) -> ShareRequest:
    """
    Turn the dialog state into the request sent to the remote store.

    Optional fields are left out (None) unless their toggle is on:
    - expiration only when enabled
    - password only when protection is on and the password is non-empty
    - max access only when enabled and greater than zero
    """
    ids = tuple(dict.fromkeys(image_ids))
    if not ids:
        raise ValidationError("no-selection", "Select at least one image to share.")
    password = settings.password if settings.is_password_protected and settings.password else None
    max_access = settings.max_access if settings.is_max_access_enabled and settings.max_access > 0 else None
    return ShareRequest(
        image_ids=ids,
        title=settings.title.strip() or default_share_title(len(ids)),
        description=settings.description,
        expiration_days=settings.expiration_days if settings.is_expiration_enabled else None,
        password=password,
        max_access=max_access,
    )


def share_url_for(app_origin: str, token: str) -> str:
    return f"{app_origin.rstrip('/')}/share/{token}"


class ShareSession:
    """
    One pass through the share dialog.

    The image ids are copied at the moment ``create_share`` is called, so a
    selection change afterwards never alters the share being created. Once a
    result exists further calls return it; ``reset`` starts over.
    """

    def __init__(self, gateway: RemoteGateway, app_origin: str) -> None:
        self.gateway = gateway
        self.app_origin = app_origin
        self.result: ShareResult | None = None
        self.error: str | None = None
        self.is_busy = False

    async def create_share(
        self, selection_snapshot: Iterable[str], settings: ShareSettings | None = None
    ) -> ShareResult | None:
        if self.result is not None:
            return self.result
        if self.is_busy:
            logger.warning("Share creation already in progress")
            return None

        try:
            request = build_share_request(tuple(selection_snapshot), settings or ShareSettings())
        except ValidationError as exc:
            self.error = exc.message
            return None

        self.is_busy = True
        self.error = None
        try:
            result = await self.gateway.create_share(request.to_payload())
            result.raise_for_failure("Sharing failed")
            payload = CreateShareResponse.model_validate(result.data)
        except PhotoDeskError as exc:
            self.error = str(exc)
            return None
        except PydanticValidationError as exc:
            logger.warning("Malformed share response: %s", exc)
            self.error = "Sharing failed"
            return None
        finally:
            self.is_busy = False

        token = payload.share.share_token
        self.result = ShareResult(
            share_token=token,
            share_url=share_url_for(self.app_origin, token),
            settings=request,
            share_id=payload.share.id,
        )
        logger.info("Created share %s for %d images", token, len(request.image_ids))
        return self.result

    def reset(self) -> None:
        self.result = None
        self.error = None
