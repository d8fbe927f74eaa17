import asyncio

import pytest
from conftest import ParkedCalls, image_payload, make_image_bytes, page_payload, settle

from photodesk.application.state.collection_store import CollectionStore
from photodesk.application.state.mutation_coordinator import DELETE, DOWNLOAD, UPLOAD, MutationCoordinator
from photodesk.application.state.selection import SelectionSet
from photodesk.domain.entities.upload import UploadFile
from photodesk.domain.errors import NETWORK_ERROR_MESSAGE
from photodesk.infrastructure.gateway.remote_gateway import RemoteResult

TEN_MB = 10 * 1024 * 1024


@pytest.fixture()
def wired(gateway):
    collection = CollectionStore(gateway)
    selection = SelectionSet()
    collection.add_refresh_listener(selection.prune)
    return MutationCoordinator(gateway, collection, selection), collection, selection


def _files(n):
    return [UploadFile(f"photo-{i}.png", make_image_bytes(color=(i, i, i)), "image/png") for i in range(n)]


class TestUpload:
    def test_three_valid_files_refresh_once(self, gateway, wired):
        coordinator, collection, _ = wired
        gateway.list_images.side_effect = [
            RemoteResult.ok(page_payload(["a", "b"])),
            RemoteResult.ok(page_payload(["a", "b", "n0", "n1", "n2"])),
        ]
        busy_during_call = []

        async def upload(files, project_id=None, tags=None):
            busy_during_call.append(coordinator.is_busy(UPLOAD))
            return RemoteResult.ok({"uploadedImages": [image_payload(f"n{i}") for i in range(len(files))]})

        gateway.upload_images.side_effect = upload

        async def scenario():
            await collection.fetch()
            return await coordinator.upload(_files(3))

        result = asyncio.run(scenario())
        assert result.success
        assert [img.id for img in result.data] == ["n0", "n1", "n2"]
        assert busy_during_call == [True]
        assert not coordinator.busy
        assert gateway.list_images.await_count == 2  # initial load + one refresh
        assert len(collection.images) == 5

    def test_oversized_file_is_rejected_with_category_message(self, gateway, wired):
        coordinator, _, _ = wired
        gateway.upload_images.return_value = RemoteResult.ok({"uploadedImages": []})
        files = _files(2) + [UploadFile("huge.jpg", b"\xff" * (TEN_MB + 1), "image/jpeg")]

        asyncio.run(coordinator.upload(files))

        assert coordinator.validation_error == "File is too large. Max size is 10 MB."
        assert [f.filename for f in coordinator.accepted_files] == ["photo-0.png", "photo-1.png"]
        sent = gateway.upload_images.call_args.args[0]
        assert [f.filename for f in sent] == ["photo-0.png", "photo-1.png"]

    def test_nothing_acceptable_never_reaches_the_gateway(self, gateway, wired):
        coordinator, _, _ = wired
        result = asyncio.run(coordinator.upload([UploadFile("notes.txt", b"hello", "text/plain")]))
        assert not result.success
        assert result.message == "File type not accepted."
        gateway.upload_images.assert_not_awaited()

    def test_rejected_batch_clears_previously_accepted_files(self, gateway, wired):
        coordinator, _, _ = wired
        gateway.upload_images.return_value = RemoteResult.ok({"uploadedImages": []})
        asyncio.run(coordinator.upload(_files(2)))
        assert len(coordinator.accepted_files) == 2

        asyncio.run(coordinator.upload([UploadFile("notes.txt", b"hello", "text/plain")]))

        assert coordinator.accepted_files == []
        assert gateway.upload_images.await_count == 1

    def test_too_many_files(self, gateway, wired):
        coordinator, _, _ = wired
        result = asyncio.run(coordinator.upload(_files(11)))
        assert result.message == "Too many files. Maximum allowed is 10."
        gateway.upload_images.assert_not_awaited()

    def test_uses_current_project_by_default(self, gateway, wired):
        coordinator, collection, _ = wired
        gateway.upload_images.return_value = RemoteResult.ok({"uploadedImages": []})

        async def scenario():
            await collection.set_filter(project_id="listing-9")
            await coordinator.upload(_files(1), tags=["pool"])

        asyncio.run(scenario())
        assert gateway.upload_images.call_args.kwargs == {"project_id": "listing-9", "tags": ["pool"]}


class TestDelete:
    def test_partial_failure_leaves_state_untouched(self, gateway, wired):
        coordinator, collection, selection = wired
        ids = ["i1", "i2", "i3", "i4", "i5"]
        gateway.list_images.return_value = RemoteResult.ok(page_payload(ids))
        asyncio.run(collection.fetch())
        for image_id in ids:
            selection.toggle(image_id)
        refreshes_before = gateway.list_images.await_count

        async def delete(image_id):
            if image_id in ("i2", "i4"):
                return RemoteResult.fail("Image not found", status_code=404)
            return RemoteResult.ok({"success": True})

        gateway.delete_image.side_effect = delete
        result = asyncio.run(coordinator.delete(ids))

        assert not result.success
        assert coordinator.error == "Failed to delete 2 images"
        assert not coordinator.busy
        assert gateway.delete_image.await_count == 5
        assert gateway.list_images.await_count == refreshes_before
        assert selection.snapshot() == tuple(ids)

    def test_success_clears_selection_and_refreshes(self, gateway, wired):
        coordinator, collection, selection = wired
        gateway.list_images.side_effect = [
            RemoteResult.ok(page_payload(["a", "b", "c"])),
            RemoteResult.ok(page_payload(["c"])),
        ]
        asyncio.run(collection.fetch())
        for image_id in ("a", "b", "c"):
            selection.toggle(image_id)

        result = asyncio.run(coordinator.delete(["a", "b"]))

        assert result.success
        assert result.data == ("a", "b")
        assert selection.snapshot() == ("c",)
        assert [img.id for img in collection.images] == ["c"]

    def test_second_delete_while_busy_is_rejected(self, gateway, wired):
        coordinator, _, _ = wired
        parked = ParkedCalls()
        gateway.delete_image.side_effect = parked.call

        async def scenario():
            first = asyncio.create_task(coordinator.delete(["a"]))
            await settle()
            assert coordinator.is_busy(DELETE)
            second = await coordinator.delete(["b"])
            parked.resolve(0, RemoteResult.ok())
            return await first, second

        first, second = asyncio.run(scenario())
        assert first.success
        assert second.rejected and not second.success
        assert coordinator.error is None
        assert gateway.delete_image.await_count == 1

    def test_empty_selection_is_a_validation_error(self, gateway, wired):
        coordinator, _, _ = wired
        result = asyncio.run(coordinator.delete([]))
        assert result.message == "Select at least one image to delete."
        gateway.delete_image.assert_not_awaited()


class TestProcessAndDownload:
    def test_batch_process_refreshes_on_success(self, gateway, wired):
        coordinator, _, _ = wired
        gateway.batch_process.return_value = RemoteResult.ok(
            {"success": True, "perImageResults": [{"imageId": "a", "success": True, "processedImageId": "p"}]}
        )
        result = asyncio.run(coordinator.process(["a"], "auto", {"preset": "hdr"}))

        assert result.success
        assert result.data.per_image_results[0].processed_image_id == "p"
        gateway.batch_process.assert_awaited_once_with(["a"], "auto", {"preset": "hdr"})
        gateway.list_images.assert_awaited_once()

    def test_transport_error_surfaces_network_message(self, gateway, wired):
        coordinator, _, _ = wired
        gateway.batch_process.return_value = RemoteResult.fail(NETWORK_ERROR_MESSAGE, transport_error=True)
        result = asyncio.run(coordinator.process(["a"]))

        assert coordinator.error == NETWORK_ERROR_MESSAGE
        assert not result.success
        gateway.list_images.assert_not_awaited()

    def test_invalid_mode_is_rejected_locally(self, gateway, wired):
        coordinator, _, _ = wired
        result = asyncio.run(coordinator.process(["a"], "magic"))
        assert "Unsupported processing mode" in result.message
        gateway.batch_process.assert_not_awaited()

    def test_single_download_uses_fallback_name(self, gateway, wired):
        coordinator, _, _ = wired
        gateway.download_image.return_value = RemoteResult.ok({"contentType": "image/png"}, content=b"PNG")

        result = asyncio.run(coordinator.download(["a"], {"format": "png"}))

        assert result.data.filename == "image-a.png"
        assert result.data.content == b"PNG"
        gateway.list_images.assert_not_awaited()

    def test_batch_download_prefers_requested_zip_name(self, gateway, wired):
        coordinator, _, _ = wired
        gateway.download_images.return_value = RemoteResult.ok(
            {"contentType": "application/zip"}, content=b"PK", filename="server.zip"
        )
        result = asyncio.run(coordinator.download(["a", "b"], {"zipName": "listing.zip"}))

        assert result.data.filename == "listing.zip"
        gateway.download_images.assert_awaited_once_with(["a", "b"], {"zipName": "listing.zip"})

    def test_download_failure_message(self, gateway, wired):
        coordinator, _, _ = wired
        gateway.download_image.return_value = RemoteResult.fail("")
        result = asyncio.run(coordinator.download(["a"]))
        assert result.message == "Download failed"


class TestErrors:
    def test_download_keeps_a_failed_delete_message(self, gateway, wired):
        coordinator, _, _ = wired
        gateway.delete_image.return_value = RemoteResult.fail("Image not found", status_code=404)
        gateway.download_image.return_value = RemoteResult.ok({"contentType": "image/png"}, content=b"PNG")

        asyncio.run(coordinator.delete(["a"]))
        result = asyncio.run(coordinator.download(["b"]))

        assert result.success
        assert coordinator.error_for(DELETE) == "Failed to delete 1 images"
        assert coordinator.error_for(DOWNLOAD) is None
        assert coordinator.error == "Failed to delete 1 images"

    def test_error_reports_the_latest_failure(self, gateway, wired):
        coordinator, _, _ = wired
        gateway.delete_image.return_value = RemoteResult.fail("gone")
        gateway.download_image.return_value = RemoteResult.fail("")

        asyncio.run(coordinator.delete(["a"]))
        asyncio.run(coordinator.download(["b"]))
        assert coordinator.error == "Download failed"

        coordinator.clear_error(DOWNLOAD)
        assert coordinator.error == "Failed to delete 1 images"
        coordinator.clear_error()
        assert coordinator.error is None

    def test_retrying_a_mutation_clears_only_its_own_error(self, gateway, wired):
        coordinator, _, _ = wired
        gateway.delete_image.return_value = RemoteResult.fail("gone")
        gateway.download_image.return_value = RemoteResult.fail("")
        asyncio.run(coordinator.delete(["a"]))
        asyncio.run(coordinator.download(["b"]))

        gateway.delete_image.return_value = RemoteResult.ok()
        asyncio.run(coordinator.delete(["a"]))

        assert coordinator.error_for(DELETE) is None
        assert coordinator.error == "Download failed"
