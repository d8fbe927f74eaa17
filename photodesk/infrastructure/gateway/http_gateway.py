from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

import httpx

from photodesk.domain.entities.upload import UploadFile
from photodesk.domain.errors import NETWORK_ERROR_MESSAGE
from photodesk.infrastructure.auth.supabase_auth import SupabaseAuthAdapter
from photodesk.infrastructure.gateway.remote_gateway import RemoteResult

logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."

_FILENAME_RE = re.compile(r'filename\*?=(?:UTF-8\'\')?"?([^";]+)"?', re.IGNORECASE)


def _clean_params(params: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None and v != "" and v != []}


def _form_fields(settings: dict[str, Any]) -> dict[str, str]:
    return {k: (str(v).lower() if isinstance(v, bool) else str(v)) for k, v in settings.items() if v is not None}


class HttpRemoteGateway:
    """RemoteGateway over the store's REST endpoints.

    Every call resolves to a RemoteResult. Timeouts and connection errors
    become failure results flagged ``transport_error``; nothing is raised.
    """

    def __init__(
        self,
        base_url: str,
        auth: SupabaseAuthAdapter | None = None,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.auth = auth
        self._client = httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpRemoteGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _headers(self) -> dict[str, str]:
        token = self.auth.access_token if self.auth else None
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        default_message: str,
        binary: bool = False,
        **kwargs: Any,
    ) -> RemoteResult:
        retried = False
        while True:
            try:
                resp = await self._client.request(method, path, headers=self._headers(), **kwargs)
            except httpx.TimeoutException as exc:
                logger.warning("%s %s timed out: %s", method, path, exc)
                return RemoteResult.fail(NETWORK_ERROR_MESSAGE, transport_error=True)
            except httpx.TransportError as exc:
                logger.warning("%s %s failed: %s", method, path, exc)
                return RemoteResult.fail(NETWORK_ERROR_MESSAGE, transport_error=True)

            if resp.status_code == 401 and self.auth is not None and not retried:
                retried = True
                # refresh may block on the auth service
                if await asyncio.to_thread(self.auth.refresh):
                    logger.info("Access token refreshed, retrying %s %s", method, path)
                    continue
                return RemoteResult.fail(SESSION_EXPIRED_MESSAGE, status_code=401)
            return self._to_result(resp, binary=binary, default_message=default_message)

    @staticmethod
    def _to_result(resp: httpx.Response, *, binary: bool, default_message: str) -> RemoteResult:
        if binary and resp.is_success:
            match = _FILENAME_RE.search(resp.headers.get("content-disposition", ""))
            return RemoteResult.ok(
                {"contentType": resp.headers.get("content-type")},
                content=resp.content,
                filename=match.group(1) if match else None,
                status_code=resp.status_code,
            )
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}
        if resp.is_success and body.get("success", True):
            return RemoteResult.ok(body, status_code=resp.status_code)
        message = body.get("message") or body.get("detail")
        if not isinstance(message, str):
            message = default_message
        logger.info("Remote call failed (%s): %s", resp.status_code, message)
        return RemoteResult.fail(message, data=body, status_code=resp.status_code)

    # Collection

    async def list_images(self, query: dict[str, Any]) -> RemoteResult:
        return await self._request(
            "GET", "/images", params=_clean_params(query), default_message="Failed to fetch images"
        )

    async def get_image(self, image_id: str) -> RemoteResult:
        return await self._request("GET", f"/images/{image_id}", default_message="Image not found")

    async def upload_images(
        self, files: list[UploadFile], project_id: str | None = None, tags: list[str] | None = None
    ) -> RemoteResult:
        multipart = [
            ("images", (f.filename, f.content, f.content_type or "application/octet-stream"))
            for f in files
        ]
        form: dict[str, str] = {}
        if project_id:
            form["projectId"] = project_id
        if tags:
            form["tags"] = ",".join(tags)
        return await self._request(
            "POST", "/images/upload/multiple", files=multipart, data=form, default_message="Upload failed"
        )

    async def delete_image(self, image_id: str) -> RemoteResult:
        return await self._request("DELETE", f"/images/{image_id}", default_message="Delete failed")

    # Processing

    async def auto_process(self, image_id: str, preset: str, preview: bool = False) -> RemoteResult:
        return await self._request(
            "POST",
            f"/processing/auto/{image_id}",
            json={"preset": preset, "preview": preview},
            default_message="Failed to process image",
        )

    async def manual_process(
        self, image_id: str, adjustments: dict[str, Any], preview: bool = False
    ) -> RemoteResult:
        return await self._request(
            "POST",
            f"/processing/manual/{image_id}",
            json={"adjustments": adjustments, "preview": preview},
            default_message="Failed to process image",
        )

    async def batch_process(self, image_ids: list[str], mode: str, options: dict[str, Any]) -> RemoteResult:
        return await self._request(
            "POST",
            "/processing/batch",
            json={"imageIds": image_ids, "mode": mode, "options": options},
            default_message="Processing failed",
        )

    # Downloads

    async def download_image(self, image_id: str, options: dict[str, Any]) -> RemoteResult:
        return await self._request(
            "GET",
            f"/downloads/image/{image_id}",
            params=_clean_params(options),
            binary=True,
            default_message="Download failed",
        )

    async def download_images(self, image_ids: list[str], options: dict[str, Any]) -> RemoteResult:
        return await self._request(
            "POST",
            "/downloads/batch",
            json={"imageIds": image_ids, **options},
            binary=True,
            default_message="Download failed",
        )

    # Shares

    async def create_share(self, payload: dict[str, Any]) -> RemoteResult:
        return await self._request("POST", "/shares", json=payload, default_message="Sharing failed")

    async def list_shares(self, params: dict[str, Any] | None = None) -> RemoteResult:
        return await self._request(
            "GET", "/shares", params=_clean_params(params or {}), default_message="Failed to load shares"
        )

    async def delete_share(self, share_id: str) -> RemoteResult:
        return await self._request("DELETE", f"/shares/{share_id}", default_message="Failed to delete share")

    # Watermark

    async def get_watermark_settings(self) -> RemoteResult:
        return await self._request(
            "GET", "/watermark/settings", default_message="Failed to load watermark settings"
        )

    async def update_watermark_settings(self, settings: dict[str, Any]) -> RemoteResult:
        return await self._request(
            "PUT", "/watermark/settings", json=settings, default_message="Failed to update watermark settings"
        )

    async def delete_watermark(self) -> RemoteResult:
        return await self._request("DELETE", "/watermark", default_message="Failed to delete watermark")

    async def upload_watermark(self, file: UploadFile, settings: dict[str, Any]) -> RemoteResult:
        return await self._request(
            "POST",
            "/watermark/upload",
            files=[("watermark", (file.filename, file.content, file.content_type or "image/png"))],
            data=_form_fields(settings),
            default_message="Failed to upload watermark",
        )

    async def preview_watermark(self, file: UploadFile, settings: dict[str, Any]) -> RemoteResult:
        return await self._request(
            "POST",
            "/watermark/preview",
            files=[("image", (file.filename, file.content, file.content_type or "image/jpeg"))],
            data=_form_fields(settings),
            binary=True,
            default_message="Watermark preview failed",
        )
