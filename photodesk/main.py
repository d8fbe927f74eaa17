from __future__ import annotations

import logging
from dataclasses import dataclass

from photodesk.application.state.collection_store import CollectionStore
from photodesk.application.state.edit_session import EditSession
from photodesk.application.state.mutation_coordinator import MutationCoordinator
from photodesk.application.state.selection import SelectionSet
from photodesk.application.state.share_library import ShareLibrary
from photodesk.application.state.share_session import ShareSession
from photodesk.application.state.watermark_store import WatermarkSettingsStore
from photodesk.config import ClientSettings
from photodesk.domain.services.upload_policy import UploadPolicy
from photodesk.infrastructure.auth.supabase_auth import SupabaseAuthAdapter
from photodesk.infrastructure.gateway.http_gateway import HttpRemoteGateway
from photodesk.infrastructure.gateway.remote_gateway import RemoteGateway
from photodesk.logging_setup import setup_logging

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    """The client's long-lived stores, wired to one gateway."""

    settings: ClientSettings
    auth: SupabaseAuthAdapter
    gateway: RemoteGateway
    collection: CollectionStore
    selection: SelectionSet
    mutations: MutationCoordinator
    share_library: ShareLibrary
    watermark: WatermarkSettingsStore

    def edit_session(self, image_id: str) -> EditSession:
        return EditSession(self.gateway, self.collection, image_id)

    def share_session(self) -> ShareSession:
        return ShareSession(self.gateway, self.settings.app_origin)


def create_workspace(
    settings: ClientSettings | None = None,
    gateway: RemoteGateway | None = None,
    auth: SupabaseAuthAdapter | None = None,
) -> Workspace:
    settings = settings or ClientSettings.from_env()
    if auth is None:
        auth = SupabaseAuthAdapter(
            settings.supabase_url, settings.supabase_key, disabled=settings.supabase_disabled
        )
    if gateway is None:
        gateway = HttpRemoteGateway(settings.api_base_url, auth, timeout=settings.request_timeout)

    collection = CollectionStore(gateway, page_size=settings.page_size)
    selection = SelectionSet()
    # ids that vanish from the collection drop out of the selection
    collection.add_refresh_listener(selection.prune)
    policy = UploadPolicy(max_files=settings.max_upload_files, max_size=settings.max_upload_size)
    logger.debug("Workspace wired to %s", settings.api_base_url)
    return Workspace(
        settings=settings,
        auth=auth,
        gateway=gateway,
        collection=collection,
        selection=selection,
        mutations=MutationCoordinator(gateway, collection, selection, policy),
        share_library=ShareLibrary(gateway, settings.app_origin),
        watermark=WatermarkSettingsStore(gateway),
    )


def bootstrap(settings: ClientSettings | None = None) -> Workspace:
    """Configure logging from the settings and build the workspace; for application entry points."""
    settings = settings or ClientSettings.from_env()
    setup_logging(settings.log_level)
    return create_workspace(settings)
