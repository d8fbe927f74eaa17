from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError

from photodesk.application.state.collection_store import CollectionStore
from photodesk.application.state.selection import SelectionSet
from photodesk.application.use_cases.batch_process_images import BatchProcessImagesUseCase
from photodesk.application.use_cases.delete_images import DeleteImagesUseCase
from photodesk.application.use_cases.download_images import DownloadImagesUseCase
from photodesk.application.use_cases.upload_images import UploadImagesUseCase
from photodesk.domain.entities.upload import UploadFile
from photodesk.domain.errors import PhotoDeskError
from photodesk.domain.services.upload_policy import UploadPolicy
from photodesk.infrastructure.gateway.remote_gateway import RemoteGateway

logger = logging.getLogger(__name__)

T = TypeVar("T")

UPLOAD = "upload"
PROCESS = "process"
DELETE = "delete"
DOWNLOAD = "download"

MALFORMED_RESPONSE_MESSAGE = "Unexpected response from server. Please try again."


@dataclass(frozen=True)
class MutationResult:
    success: bool
    message: str | None = None
    data: Any = None
    # True when the call was refused because the same mutation was running
    rejected: bool = False


class MutationCoordinator:
    """
    Runs remote mutations with busy tracking and error capture.

    One mutation of a given name runs at a time; a second call while it is
    busy is rejected, not queued. Mutations that change the collection
    (upload, process, delete) refresh it on success and only on success.
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        collection: CollectionStore,
        selection: SelectionSet,
        upload_policy: UploadPolicy | None = None,
    ) -> None:
        self.gateway = gateway
        self.collection = collection
        self.selection = selection
        self.upload_policy = upload_policy or UploadPolicy()
        # last failure message per mutation name, most recent last
        self.errors: dict[str, str] = {}
        self.validation_error: str | None = None
        self.accepted_files: list[UploadFile] = []
        self._busy: set[str] = set()

    @property
    def busy(self) -> bool:
        return bool(self._busy)

    def is_busy(self, name: str) -> bool:
        return name in self._busy

    @property
    def error(self) -> str | None:
        """The most recent failure message still standing, across all mutations."""
        return next(reversed(self.errors.values()), None)

    def error_for(self, name: str) -> str | None:
        return self.errors.get(name)

    def clear_error(self, name: str | None = None) -> None:
        if name is None:
            self.errors.clear()
            self.validation_error = None
        else:
            self.errors.pop(name, None)

    def _fail(self, name: str, message: str) -> MutationResult:
        self.errors[name] = message
        return MutationResult(False, message)

    def _reject(self, name: str) -> MutationResult:
        logger.warning("Rejected %s: already in progress", name)
        return MutationResult(False, f"A {name} is already in progress.", rejected=True)

    async def run(
        self,
        name: str,
        operation: Callable[[], Awaitable[T]],
        *,
        refreshes_collection: bool,
        on_success: Callable[[T], None] | None = None,
    ) -> MutationResult:
        if name in self._busy:
            return self._reject(name)

        self._busy.add(name)
        self.errors.pop(name, None)
        try:
            data = await operation()
        except PhotoDeskError as exc:
            logger.info("%s failed: %s", name, exc)
            return self._fail(name, str(exc))
        except PydanticValidationError as exc:
            logger.warning("%s returned a malformed payload: %s", name, exc)
            return self._fail(name, MALFORMED_RESPONSE_MESSAGE)
        finally:
            self._busy.discard(name)

        if on_success is not None:
            on_success(data)
        if refreshes_collection:
            await self.collection.refresh()
        return MutationResult(True, data=data)

    async def upload(
        self,
        files: list[UploadFile],
        project_id: str | None = None,
        tags: list[str] | tuple[str, ...] = (),
    ) -> MutationResult:
        """Screen ``files`` locally, then upload whatever was accepted."""
        if self.is_busy(UPLOAD):
            return self._reject(UPLOAD)
        screen = self.upload_policy.screen(list(files))
        self.validation_error = screen.message
        self.accepted_files = list(screen.accepted)
        if not screen.accepted:
            return MutationResult(False, screen.message or "No files selected.")

        uc = UploadImagesUseCase(self.gateway)
        if project_id is None:
            project_id = self.collection.filter.project_id
        return await self.run(
            UPLOAD,
            lambda: uc.execute(screen.accepted, project_id=project_id, tags=list(tags)),
            refreshes_collection=True,
        )

    async def process(
        self, image_ids: list[str], mode: str = "auto", options: dict[str, Any] | None = None
    ) -> MutationResult:
        uc = BatchProcessImagesUseCase(self.gateway)
        return await self.run(
            PROCESS, lambda: uc.execute(list(image_ids), mode, options), refreshes_collection=True
        )

    async def delete(self, image_ids: list[str]) -> MutationResult:
        uc = DeleteImagesUseCase(self.gateway)
        return await self.run(
            DELETE,
            lambda: uc.execute(list(image_ids)),
            refreshes_collection=True,
            on_success=self.selection.discard,
        )

    async def download(self, image_ids: list[str], options: dict[str, Any] | None = None) -> MutationResult:
        uc = DownloadImagesUseCase(self.gateway)
        return await self.run(
            DOWNLOAD, lambda: uc.execute(list(image_ids), options), refreshes_collection=False
        )

