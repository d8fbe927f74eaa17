"""Contract of the remote image store as seen by the client stores."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from photodesk.domain.entities.upload import UploadFile
from photodesk.domain.errors import NETWORK_ERROR_MESSAGE, RemoteFailure, TransportError


@dataclass(frozen=True)
class RemoteResult:
    """Outcome of one remote call. Gateways never raise for remote failures."""

    success: bool
    message: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    status_code: int | None = None
    transport_error: bool = False
    content: bytes | None = None  # binary payloads (downloads, previews)
    filename: str | None = None

    @classmethod
    def ok(cls, data: dict[str, Any] | None = None, **kwargs: Any) -> RemoteResult:
        return cls(success=True, data=data or {}, **kwargs)

    @classmethod
    def fail(cls, message: str, **kwargs: Any) -> RemoteResult:
        return cls(success=False, message=message, **kwargs)

    def raise_for_failure(self, default_message: str) -> RemoteResult:
        """Return self on success, else raise TransportError or RemoteFailure."""
        if self.success:
            return self
        if self.transport_error:
            raise TransportError(self.message or NETWORK_ERROR_MESSAGE)
        raise RemoteFailure(self.message or default_message)


class RemoteGateway(Protocol):
    async def list_images(self, query: dict[str, Any]) -> RemoteResult: ...

    async def get_image(self, image_id: str) -> RemoteResult: ...

    async def upload_images(
        self, files: list[UploadFile], project_id: str | None = None, tags: list[str] | None = None
    ) -> RemoteResult: ...

    async def auto_process(self, image_id: str, preset: str, preview: bool = False) -> RemoteResult: ...

    async def manual_process(
        self, image_id: str, adjustments: dict[str, Any], preview: bool = False
    ) -> RemoteResult: ...

    async def batch_process(
        self, image_ids: list[str], mode: str, options: dict[str, Any]
    ) -> RemoteResult: ...

    async def delete_image(self, image_id: str) -> RemoteResult: ...

    async def download_image(self, image_id: str, options: dict[str, Any]) -> RemoteResult: ...

    async def download_images(self, image_ids: list[str], options: dict[str, Any]) -> RemoteResult: ...

    async def create_share(self, payload: dict[str, Any]) -> RemoteResult: ...

    async def list_shares(self, params: dict[str, Any] | None = None) -> RemoteResult: ...

    async def delete_share(self, share_id: str) -> RemoteResult: ...

    async def get_watermark_settings(self) -> RemoteResult: ...

    async def update_watermark_settings(self, settings: dict[str, Any]) -> RemoteResult: ...

    async def delete_watermark(self) -> RemoteResult: ...

    async def upload_watermark(self, file: UploadFile, settings: dict[str, Any]) -> RemoteResult: ...

    async def preview_watermark(self, file: UploadFile, settings: dict[str, Any]) -> RemoteResult: ...
