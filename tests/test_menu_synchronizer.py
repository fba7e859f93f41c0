import asyncio

import pytest

from src.database.menu_cache import MenuDiskCache
from src.integrations.clients.mocks.catalog import MockCatalogAdapter, default_menu
from src.integrations.contracts.interfaces import MenuCategory, MenuItem, POSProvider
from src.integrations.errors import AuthorizationError, HTTPStatusError, TransportError
from src.sync.menu_synchronizer import MenuSynchronizer

NEW_MENU = [MenuCategory(name="Seasonal", items=[MenuItem(id="pumpkin", name="Pumpkin Latte", price=5.5)])]


class RecordingBroker:
    def __init__(self):
        self.invalidated = []

    def invalidate(self, merchant_id, provider):
        self.invalidated.append((merchant_id, provider))


def make_sync(tmp_path, clock, adapter=None, **kwargs):
    adapter = adapter or MockCatalogAdapter()
    disk = MenuDiskCache(tmp_path, clock=clock)
    sync = MenuSynchronizer(lambda shop: adapter, disk, clock=clock, **kwargs)
    return sync, adapter, disk


@pytest.mark.asyncio
@pytest.mark.parametrize("existing", [None, b"", b"{not json", b'{"categories": "oops"}'])
async def test_disk_miss_fetches_once_and_persists(tmp_path, clock, square_shop, existing):
    sync, adapter, disk = make_sync(tmp_path, clock)
    if existing is not None:
        disk.path_for("1").write_bytes(existing)

    state = await sync.prime_menu(square_shop)
    await sync.wait_for_background_refreshes()

    assert adapter.menu_calls == ["1"]
    assert state.categories == default_menu()
    assert state.is_loading is False
    assert state.error_message is None
    assert (await disk.load("1")).categories == default_menu()


@pytest.mark.asyncio
async def test_fresh_disk_hit_makes_no_network_call(tmp_path, clock, square_shop):
    sync, adapter, disk = make_sync(tmp_path, clock)
    await disk.save("1", NEW_MENU)

    state = await sync.prime_menu(square_shop)
    await sync.wait_for_background_refreshes()

    assert state.categories == NEW_MENU
    assert adapter.menu_calls == []


@pytest.mark.asyncio
async def test_stale_disk_hit_shows_cached_then_refreshes(tmp_path, clock, square_shop):
    sync, adapter, disk = make_sync(tmp_path, clock, menu_ttl_seconds=1800)
    await disk.save("1", NEW_MENU)
    clock.advance(3600)

    state = await sync.prime_menu(square_shop)
    assert state.categories == NEW_MENU
    assert state.is_loading is False

    await sync.wait_for_background_refreshes()

    assert adapter.menu_calls == ["1"]
    assert sync.get_menu_categories(square_shop) == default_menu()
    assert (await disk.load("1")).timestamp == clock.now


@pytest.mark.asyncio
async def test_memory_hit_refreshes_in_background(tmp_path, clock, square_shop):
    sync, adapter, _ = make_sync(tmp_path, clock)
    await sync.fetch_menu_data(square_shop)
    adapter.menus["1"] = NEW_MENU

    state = await sync.prime_menu(square_shop)
    assert state.categories == default_menu()

    await sync.wait_for_background_refreshes()
    assert sync.get_menu_categories(square_shop) == NEW_MENU
    assert len(adapter.menu_calls) == 2


@pytest.mark.asyncio
async def test_background_refreshes_are_not_stacked(tmp_path, clock, square_shop):
    sync, adapter, _ = make_sync(tmp_path, clock)
    await sync.fetch_menu_data(square_shop)

    await sync.prime_menu(square_shop)
    await sync.prime_menu(square_shop)
    await sync.prime_menu(square_shop)
    await sync.wait_for_background_refreshes()

    assert len(adapter.menu_calls) == 2


@pytest.mark.asyncio
async def test_failed_background_refresh_keeps_stale_menu(tmp_path, clock, square_shop):
    sync, adapter, _ = make_sync(tmp_path, clock)
    await sync.fetch_menu_data(square_shop)
    failure = TransportError("Network error: offline")
    adapter.fail_next(failure)

    await sync.prime_menu(square_shop)
    await sync.wait_for_background_refreshes()

    assert sync.get_menu_categories(square_shop) == default_menu()
    assert sync.get_error_message(square_shop) is None
    assert sync.is_loading(square_shop) is False
    assert sync.last_refresh_error(square_shop) is failure


@pytest.mark.asyncio
async def test_first_load_failure_sets_error_and_no_menu(tmp_path, clock, square_shop):
    sync, adapter, disk = make_sync(tmp_path, clock)
    adapter.fail_next(HTTPStatusError(500))

    state = await sync.prime_menu(square_shop)

    assert state.categories == []
    assert state.is_loading is False
    assert "500" in state.error_message
    assert await disk.load("1") is None


@pytest.mark.asyncio
async def test_refresh_failure_keeps_prior_menu_but_reports_error(tmp_path, clock, square_shop):
    sync, adapter, _ = make_sync(tmp_path, clock)
    await sync.fetch_menu_data(square_shop)
    adapter.fail_next(TransportError("Network error: offline"))

    state = await sync.refresh_menu_data(square_shop)

    assert state.categories == default_menu()
    assert state.error_message.startswith("Network error")

    await sync.clear_error(square_shop)
    assert sync.get_error_message(square_shop) is None


@pytest.mark.asyncio
async def test_successful_fetch_clears_previous_error(tmp_path, clock, square_shop):
    sync, adapter, _ = make_sync(tmp_path, clock)
    adapter.fail_next(HTTPStatusError(502))
    await sync.fetch_menu_data(square_shop)
    assert sync.get_error_message(square_shop)

    await sync.refresh_menu_data(square_shop)

    assert sync.get_error_message(square_shop) is None
    assert sync.get_menu_categories(square_shop) == default_menu()


@pytest.mark.asyncio
async def test_loading_flag_is_set_while_fetching(tmp_path, clock, square_shop):
    release = asyncio.Event()

    class SlowAdapter(MockCatalogAdapter):
        async def fetch_menu(self, shop):
            await release.wait()
            return await super().fetch_menu(shop)

    sync, _, _ = make_sync(tmp_path, clock, adapter=SlowAdapter())
    task = asyncio.create_task(sync.fetch_menu_data(square_shop))
    await asyncio.sleep(0)

    assert sync.is_loading(square_shop) is True
    assert sync.get_menu_categories(square_shop) == []

    release.set()
    state = await task
    assert state.is_loading is False
    assert state.categories == default_menu()


@pytest.mark.asyncio
async def test_background_refresh_leaves_foreground_loading_flag(tmp_path, clock, square_shop):
    class GatedAdapter(MockCatalogAdapter):
        def __init__(self):
            super().__init__()
            self.release = asyncio.Event()
            self.hold_next = False

        async def fetch_menu(self, shop):
            if self.hold_next:
                self.hold_next = False
                await self.release.wait()
            return await super().fetch_menu(shop)

    adapter = GatedAdapter()
    sync, _, _ = make_sync(tmp_path, clock, adapter=adapter)
    await sync.fetch_menu_data(square_shop)

    adapter.hold_next = True
    foreground = asyncio.create_task(sync.refresh_menu_data(square_shop))
    await asyncio.sleep(0)
    await sync.prime_menu(square_shop)
    await sync.wait_for_background_refreshes()

    assert len(adapter.menu_calls) == 2
    assert not foreground.done()
    assert sync.is_loading(square_shop) is True

    adapter.release.set()
    state = await foreground
    assert state.is_loading is False


@pytest.mark.asyncio
async def test_authorization_error_evicts_credentials_and_retries_once(tmp_path, clock, square_shop):
    broker = RecordingBroker()
    sync, adapter, _ = make_sync(tmp_path, clock, broker=broker)
    adapter.fail_next(AuthorizationError(401))

    state = await sync.fetch_menu_data(square_shop)

    assert state.error_message is None
    assert state.categories == default_menu()
    assert broker.invalidated == [("M1", POSProvider.SQUARE)]
    assert len(adapter.menu_calls) == 2


@pytest.mark.asyncio
async def test_second_authorization_error_is_reported(tmp_path, clock, square_shop):
    broker = RecordingBroker()
    sync, adapter, _ = make_sync(tmp_path, clock, broker=broker)
    adapter.fail_next(AuthorizationError(401))
    adapter.fail_next(AuthorizationError(401))

    state = await sync.fetch_menu_data(square_shop)

    assert "authorization" in state.error_message.lower()
    assert len(adapter.menu_calls) == 2


@pytest.mark.asyncio
async def test_authorization_retry_can_be_disabled(tmp_path, clock, square_shop):
    broker = RecordingBroker()
    sync, adapter, _ = make_sync(tmp_path, clock, broker=broker, retry_on_auth_error=False)
    adapter.fail_next(AuthorizationError(403))

    state = await sync.fetch_menu_data(square_shop)

    assert state.error_message is not None
    assert broker.invalidated == []
    assert len(adapter.menu_calls) == 1


@pytest.mark.asyncio
async def test_shops_are_tracked_independently(tmp_path, clock, square_shop, clover_shop):
    sync, adapter, _ = make_sync(tmp_path, clock)
    adapter.menus["2"] = NEW_MENU
    adapter.fail_next(HTTPStatusError(500))

    await sync.fetch_menu_data(square_shop)
    await sync.fetch_menu_data(clover_shop)

    assert sync.get_error_message(square_shop) is not None
    assert sync.get_menu_categories(square_shop) == []
    assert sync.get_error_message(clover_shop) is None
    assert sync.get_menu_categories(clover_shop) == NEW_MENU


def test_unknown_shop_has_empty_state(tmp_path, clock, square_shop):
    sync, _, _ = make_sync(tmp_path, clock)
    snapshot = sync.snapshot(square_shop)

    assert snapshot.categories == []
    assert snapshot.is_loading is False
    assert snapshot.error_message is None
