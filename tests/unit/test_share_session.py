import asyncio

from conftest import ParkedCalls, settle

from photodesk.application.dtos.share_dto import ShareSettings
from photodesk.application.state.share_session import ShareSession, build_share_request
from photodesk.infrastructure.gateway.remote_gateway import RemoteResult


def share_response(token="tok123", share_id="sh-1"):
    return RemoteResult.ok(
        {"success": True, "share": {"id": share_id, "shareToken": token, "imageIds": ["a", "b"]}}
    )


class TestBuildShareRequest:
    def test_password_without_max_access(self):
        settings = ShareSettings(is_password_protected=True, password="abc123", is_max_access_enabled=False, max_access=5)
        payload = build_share_request(["a"], settings).to_payload()
        assert payload["password"] == "abc123"
        assert "maxAccess" not in payload

    def test_disabled_expiration_is_omitted_whatever_the_days(self):
        for days in (0, 7, 30):
            settings = ShareSettings(is_expiration_enabled=False, expiration_days=days)
            assert "expirationDays" not in build_share_request(["a"], settings).to_payload()

    def test_enabled_expiration_is_sent(self):
        payload = build_share_request(["a"], ShareSettings(expiration_days=14)).to_payload()
        assert payload["expirationDays"] == 14

    def test_empty_password_is_omitted(self):
        settings = ShareSettings(is_password_protected=True, password="")
        assert "password" not in build_share_request(["a"], settings).to_payload()

    def test_zero_max_access_is_omitted(self):
        settings = ShareSettings(is_max_access_enabled=True, max_access=0)
        assert "maxAccess" not in build_share_request(["a"], settings).to_payload()
        settings = ShareSettings(is_max_access_enabled=True, max_access=3)
        assert build_share_request(["a"], settings).to_payload()["maxAccess"] == 3

    def test_default_title_counts_images(self):
        request = build_share_request(["a", "b", "a"], ShareSettings(title="  "))
        assert request.title == "Shared Images (2)"
        assert request.image_ids == ("a", "b")


class TestShareSession:
    def test_create_builds_share_url(self, gateway):
        gateway.create_share.return_value = share_response()
        session = ShareSession(gateway, "https://app.example.com/")

        result = asyncio.run(session.create_share(("a", "b"), ShareSettings(title="Open house")))

        assert result.share_url == "https://app.example.com/share/tok123"
        assert result.share_id == "sh-1"
        payload = gateway.create_share.call_args.args[0]
        assert payload["imageIds"] == ["a", "b"]
        assert payload["title"] == "Open house"

    def test_existing_result_is_returned_without_request(self, gateway):
        gateway.create_share.return_value = share_response()
        session = ShareSession(gateway, "https://app.example.com")
        first = asyncio.run(session.create_share(["a"]))
        again = asyncio.run(session.create_share(["b"]))
        assert again is first
        assert gateway.create_share.await_count == 1

        session.reset()
        gateway.create_share.return_value = share_response(token="tok456")
        assert asyncio.run(session.create_share(["b"])).share_token == "tok456"

    def test_empty_selection_never_reaches_gateway(self, gateway):
        session = ShareSession(gateway, "https://app.example.com")
        assert asyncio.run(session.create_share([])) is None
        assert session.error == "Select at least one image to share."
        gateway.create_share.assert_not_awaited()

    def test_failure_keeps_prior_state(self, gateway):
        gateway.create_share.return_value = RemoteResult.fail("")
        session = ShareSession(gateway, "https://app.example.com")
        assert asyncio.run(session.create_share(["a"])) is None
        assert session.error == "Sharing failed"
        assert session.result is None
        assert not session.is_busy

    def test_selection_snapshot_is_taken_at_call_time(self, gateway):
        parked = ParkedCalls()
        gateway.create_share.side_effect = parked.call
        session = ShareSession(gateway, "https://app.example.com")
        selection = ["a", "b"]

        async def scenario():
            task = asyncio.create_task(session.create_share(selection))
            await settle()
            selection.append("c")
            assert await session.create_share(selection) is None  # busy
            parked.resolve(0, share_response())
            return await task

        result = asyncio.run(scenario())
        assert result.settings.image_ids == ("a", "b")
        assert gateway.create_share.await_count == 1
