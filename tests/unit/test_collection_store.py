import asyncio

import pytest
from conftest import ParkedCalls, page_payload, settle

from photodesk.application.state.collection_store import CollectionStore
from photodesk.domain.entities.image import DateRange, SortField
from photodesk.domain.errors import NETWORK_ERROR_MESSAGE
from photodesk.infrastructure.gateway.remote_gateway import RemoteResult


def test_fetch_replaces_images_and_pagination(gateway):
    gateway.list_images.return_value = RemoteResult.ok(page_payload(["a", "b"], total=45, tags=["pool", "kitchen"]))
    store = CollectionStore(gateway)

    assert asyncio.run(store.fetch()) is True
    assert [img.id for img in store.images] == ["a", "b"]
    assert store.page_state.total == 45
    assert store.page_state.pages == 3
    assert store.tags == ("pool", "kitchen")
    assert store.error is None
    assert not store.is_loading


def test_query_carries_filter_and_page(gateway):
    store = CollectionStore(gateway, page_size=10)
    asyncio.run(store.set_filter(search="pool", tags=["b", "a"], sort_by="name"))

    query = gateway.list_images.call_args.args[0]
    assert query["page"] == 1
    assert query["limit"] == 10
    assert query["search"] == "pool"
    assert query["tags"] == ["a", "b"]
    assert query["sortBy"] == SortField.NAME.value
    assert query["dateRange"] == DateRange.ALL.value


def test_later_fetch_wins_when_responses_arrive_out_of_order(gateway):
    parked = ParkedCalls()
    gateway.list_images.side_effect = parked.call
    store = CollectionStore(gateway)

    async def scenario():
        first = asyncio.create_task(store.fetch())
        await settle()
        second = asyncio.create_task(store.set_filter(search="b"))
        await settle()
        assert store.is_loading

        parked.resolve(1, RemoteResult.ok(page_payload(["b1"])))
        assert await second is True
        parked.resolve(0, RemoteResult.ok(page_payload(["a1", "a2"])))
        assert await first is False

    asyncio.run(scenario())
    assert [img.id for img in store.images] == ["b1"]
    assert store.filter.search == "b"
    assert not store.is_loading


def test_stale_failure_does_not_set_error(gateway):
    parked = ParkedCalls()
    gateway.list_images.side_effect = parked.call
    store = CollectionStore(gateway)

    async def scenario():
        first = asyncio.create_task(store.fetch())
        await settle()
        second = asyncio.create_task(store.fetch())
        await settle()
        parked.resolve(1, RemoteResult.ok(page_payload(["x"])))
        await second
        parked.resolve(0, RemoteResult.fail(NETWORK_ERROR_MESSAGE, transport_error=True))
        await first

    asyncio.run(scenario())
    assert store.error is None
    assert [img.id for img in store.images] == ["x"]


def test_failure_keeps_previous_images(gateway):
    gateway.list_images.return_value = RemoteResult.ok(page_payload(["a"]))
    store = CollectionStore(gateway)
    asyncio.run(store.fetch())

    gateway.list_images.return_value = RemoteResult.fail("")
    assert asyncio.run(store.refresh()) is False
    assert store.error == "Failed to fetch images"
    assert [img.id for img in store.images] == ["a"]


def test_malformed_payload_is_reported(gateway):
    gateway.list_images.return_value = RemoteResult.ok({"images": [{"id": "missing-fields"}]})
    store = CollectionStore(gateway)
    assert asyncio.run(store.fetch()) is False
    assert store.error == "Error loading images. Please try again."


@pytest.mark.parametrize("requested, expected", [(0, 1), (2, 2), (9, 3)])
def test_set_page_is_clamped(gateway, requested, expected):
    gateway.list_images.return_value = RemoteResult.ok(page_payload(["a"], total=50))
    store = CollectionStore(gateway)
    asyncio.run(store.fetch())

    asyncio.run(store.set_page(requested))
    assert gateway.list_images.call_args.args[0]["page"] == expected


def test_refresh_listeners_receive_ids(gateway):
    gateway.list_images.return_value = RemoteResult.ok(page_payload(["a", "b"]))
    store = CollectionStore(gateway)
    seen = []

    async def async_listener(ids):
        seen.append(("async", ids))

    store.add_refresh_listener(lambda ids: seen.append(("sync", ids)))
    store.add_refresh_listener(async_listener)
    asyncio.run(store.fetch())
    assert seen == [("sync", frozenset({"a", "b"})), ("async", frozenset({"a", "b"}))]


def test_failed_page_change_keeps_page_state(gateway):
    gateway.list_images.return_value = RemoteResult.ok(page_payload(["a", "b"], total=45))
    store = CollectionStore(gateway)
    asyncio.run(store.fetch())
    before = store.page_state

    gateway.list_images.return_value = RemoteResult.fail("boom")
    assert asyncio.run(store.set_page(3)) is False

    assert gateway.list_images.call_args.args[0]["page"] == 3
    assert store.page_state == before
    assert [img.id for img in store.images] == ["a", "b"]
    assert store.error == "boom"


def test_successful_page_change_updates_page_state(gateway):
    gateway.list_images.return_value = RemoteResult.ok(page_payload(["a"], total=45))
    store = CollectionStore(gateway)
    asyncio.run(store.fetch())

    gateway.list_images.return_value = RemoteResult.ok(page_payload(["c"], total=45, page=2))
    assert asyncio.run(store.set_page(2)) is True
    assert store.page_state.page == 2
    assert asyncio.run(store.refresh()) is True
    assert gateway.list_images.call_args.args[0]["page"] == 2


@pytest.mark.parametrize(
    "partial",
    [{"date_range": "decade"}, {"sort_by": "colour"}, {"sort_direction": "sideways"}, {"colour": "red"}],
)
def test_invalid_filter_is_reported_without_fetching(gateway, partial):
    store = CollectionStore(gateway)

    assert asyncio.run(store.set_filter(**partial)) is False

    assert store.error.startswith("Invalid filter:")
    assert store.filter.date_range == DateRange.ALL
    assert store.filter.sort_by == SortField.CREATED_AT
    gateway.list_images.assert_not_awaited()
