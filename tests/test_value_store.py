"""
Value store: RLZs, events, stateful events, ping times, DCC and garbage collection.
"""

import pytest

from config.settings import settings
from model.product import AccessPoint, Product
from repository import namespaces
from repository.value_store import ValueStore
from util.enums import AccessLevel
from util.errors import ContractViolation


class TestAccess:

    @pytest.mark.asyncio
    async def test_read_and_write_granted(self, store):
        assert await store.has_access(AccessLevel.READ)
        assert await store.has_access(AccessLevel.WRITE)

    @pytest.mark.asyncio
    async def test_read_only_store_denies_write(self, store, monkeypatch):
        monkeypatch.setattr(settings, "STORE_READ_ONLY", True)
        assert await store.has_access(AccessLevel.READ)
        assert not await store.has_access(AccessLevel.WRITE)

    @pytest.mark.asyncio
    async def test_unreachable_backend_denies_everything(self, down_redis, backend):
        store = ValueStore(backend)
        assert not await store.has_access(AccessLevel.READ)
        assert not await store.write_ping_time(Product.CHROME, 1)
        assert await store.read_ping_time(Product.CHROME) is None

    @pytest.mark.asyncio
    async def test_invalidated_handle_refuses(self, store):
        store.invalidate()
        assert not await store.write_ping_time(Product.CHROME, 1)
        assert not await store.has_access(AccessLevel.READ)


class TestPingTimes:

    @pytest.mark.asyncio
    async def test_write_read(self, store):
        assert await store.read_ping_time(Product.CHROME) is None
        assert await store.write_ping_time(Product.CHROME, 130000000000000000)
        assert await store.read_ping_time(Product.CHROME) == 130000000000000000

    @pytest.mark.asyncio
    async def test_products_have_separate_slots(self, store):
        await store.write_ping_time(Product.CHROME, 5)
        assert await store.read_ping_time(Product.IE_TOOLBAR) is None

    @pytest.mark.asyncio
    async def test_clear(self, store):
        await store.write_ping_time(Product.CHROME, 5)
        assert await store.clear_ping_time(Product.CHROME)
        assert await store.read_ping_time(Product.CHROME) is None

    @pytest.mark.asyncio
    async def test_clear_never_written_is_success(self, store):
        assert await store.clear_ping_time(Product.CHROME)

    @pytest.mark.asyncio
    async def test_unknown_product_fails(self, store):
        assert not await store.write_ping_time("nope", 5)
        assert not await store.clear_ping_time("nope")


class TestAccessPointRlz:

    @pytest.mark.asyncio
    async def test_round_trip(self, store):
        assert await store.write_access_point_rlz(AccessPoint.CHROME_OMNIBOX, "1C1GGLD_enUS")
        read = await store.read_access_point_rlz(AccessPoint.CHROME_OMNIBOX)
        assert read.ok and read.value == "1C1GGLD_enUS"

    @pytest.mark.asyncio
    async def test_max_length_value_round_trips(self, store):
        value = "x" * 64
        assert await store.write_access_point_rlz(AccessPoint.IE_HOME_PAGE, value)
        assert (await store.read_access_point_rlz(AccessPoint.IE_HOME_PAGE)).value == value

    @pytest.mark.asyncio
    async def test_missing_reads_empty(self, store):
        read = await store.read_access_point_rlz(AccessPoint.CHROME_OMNIBOX)
        assert read.ok and read.value == ""

    @pytest.mark.asyncio
    async def test_too_long_rejected(self, store):
        assert not await store.write_access_point_rlz(AccessPoint.CHROME_OMNIBOX, "x" * 65)

    @pytest.mark.asyncio
    async def test_non_ascii_rejected(self, store):
        assert not await store.write_access_point_rlz(AccessPoint.CHROME_OMNIBOX, "größe")

    @pytest.mark.asyncio
    async def test_small_buffer_reports_required_size(self, store):
        await store.write_access_point_rlz(AccessPoint.CHROME_OMNIBOX, "abcdef")
        read = await store.read_access_point_rlz(AccessPoint.CHROME_OMNIBOX, buffer_size=4)
        assert not read.ok
        assert read.value == ""
        assert read.required_size == 7

    @pytest.mark.asyncio
    async def test_clear(self, store):
        await store.write_access_point_rlz(AccessPoint.CHROME_OMNIBOX, "abc")
        assert await store.clear_access_point_rlz(AccessPoint.CHROME_OMNIBOX)
        assert (await store.read_access_point_rlz(AccessPoint.CHROME_OMNIBOX)).value == ""

    @pytest.mark.asyncio
    async def test_no_access_point_refused(self, store):
        assert not await store.write_access_point_rlz(AccessPoint.NO_ACCESS_POINT, "abc")
        assert not (await store.read_access_point_rlz(AccessPoint.NO_ACCESS_POINT)).ok


class TestEvents:

    @pytest.mark.asyncio
    async def test_add_and_list(self, store):
        assert await store.add_product_event(Product.CHROME, "C1I")
        assert await store.add_product_event(Product.CHROME, "C1F")
        assert await store.read_product_events(Product.CHROME) == ["C1I", "C1F"]

    @pytest.mark.asyncio
    async def test_list_without_events_node(self, store):
        assert await store.read_product_events(Product.CHROME) is None

    @pytest.mark.asyncio
    async def test_clear_event_is_idempotent(self, store):
        await store.add_product_event(Product.CHROME, "C1I")
        await store.add_product_event(Product.CHROME, "C1F")
        assert await store.clear_product_event(Product.CHROME, "C1I")
        after_first = await store.read_product_events(Product.CHROME)
        assert await store.clear_product_event(Product.CHROME, "C1I")
        assert await store.read_product_events(Product.CHROME) == after_first == ["C1F"]

    @pytest.mark.asyncio
    async def test_clear_all_removes_product_node(self, store, backend):
        await store.add_product_event(Product.CHROME, "C1I")
        await store.add_product_event(Product.IE_TOOLBAR, "T4I")
        assert await store.clear_all_product_events(Product.CHROME)
        assert not await backend.exists(namespaces.events_path(namespaces.EVENTS, "", "C"))
        assert await store.read_product_events(Product.CHROME) is None
        assert await store.read_product_events(Product.IE_TOOLBAR) == ["T4I"]

    @pytest.mark.asyncio
    async def test_empty_key_refused(self, store):
        assert not await store.add_product_event(Product.CHROME, "")


class TestStatefulEvents:

    @pytest.mark.asyncio
    async def test_add_and_query(self, store):
        assert not await store.is_stateful_event(Product.CHROME, "C1I")
        assert await store.add_stateful_event(Product.CHROME, "C1I")
        assert await store.is_stateful_event(Product.CHROME, "C1I")

    @pytest.mark.asyncio
    async def test_classes_are_isolated(self, store):
        await store.add_stateful_event(Product.CHROME, "X")
        assert await store.read_product_events(Product.CHROME) is None
        await store.add_product_event(Product.CHROME, "Y")
        assert not await store.is_stateful_event(Product.CHROME, "Y")
        assert await store.read_product_events(Product.CHROME) == ["Y"]

    @pytest.mark.asyncio
    async def test_clear_all(self, store):
        await store.add_stateful_event(Product.CHROME, "C1I")
        await store.add_product_event(Product.CHROME, "C1F")
        assert await store.clear_all_stateful_events(Product.CHROME)
        assert not await store.is_stateful_event(Product.CHROME, "C1I")
        assert await store.read_product_events(Product.CHROME) == ["C1F"]


class TestMachineDealCode:

    @pytest.mark.asyncio
    async def test_write_read_clear(self, store):
        assert await store.read_machine_deal_code() is None
        assert await store.write_machine_deal_code("dcc123")
        assert await store.read_machine_deal_code() == "dcc123"
        assert await store.clear_machine_deal_code()
        assert await store.read_machine_deal_code() is None

    @pytest.mark.asyncio
    async def test_too_long_rejected(self, store):
        assert not await store.write_machine_deal_code("d" * 129)


class TestVerification:

    @staticmethod
    async def _noop(*args, **kwargs):
        return None

    @pytest.mark.asyncio
    async def test_value_surviving_delete_fails_clear(self, store, backend, monkeypatch):
        await store.write_ping_time(Product.CHROME, 7)
        await store.write_access_point_rlz(AccessPoint.CHROME_OMNIBOX, "abc")
        await store.add_product_event(Product.CHROME, "C1I")
        monkeypatch.setattr(backend, "delete_value", self._noop)

        assert not await store.clear_ping_time(Product.CHROME)
        assert not await store.clear_access_point_rlz(AccessPoint.CHROME_OMNIBOX)
        assert not await store.clear_product_event(Product.CHROME, "C1I")
        assert await store.read_ping_time(Product.CHROME) == 7

    @pytest.mark.asyncio
    async def test_node_surviving_delete_fails_clear_all(self, store, backend, monkeypatch):
        await store.add_product_event(Product.CHROME, "C1I")
        await store.add_stateful_event(Product.CHROME, "C1S")
        monkeypatch.setattr(backend, "delete_node", self._noop)

        assert not await store.clear_all_product_events(Product.CHROME)
        assert not await store.clear_all_stateful_events(Product.CHROME)
        assert await store.read_product_events(Product.CHROME) == ["C1I"]

    @pytest.mark.asyncio
    async def test_strict_mode_raises(self, store, backend, monkeypatch):
        await store.write_ping_time(Product.CHROME, 7)
        monkeypatch.setattr(backend, "delete_value", self._noop)
        monkeypatch.setattr(settings, "STRICT_ASSERTS", True)
        with pytest.raises(ContractViolation):
            await store.clear_ping_time(Product.CHROME)


class TestBranding:

    @pytest.mark.asyncio
    async def test_brands_are_disjoint(self, fake_redis, backend):
        abc = ValueStore(backend, brand="ABC")
        await abc.write_access_point_rlz(AccessPoint.CHROME_OMNIBOX, "branded")
        await abc.write_ping_time(Product.CHROME, 42)
        await abc.add_product_event(Product.CHROME, "C1I")

        for other in (ValueStore(backend, brand=""), ValueStore(backend, brand="XYZ")):
            assert (await other.read_access_point_rlz(AccessPoint.CHROME_OMNIBOX)).value == ""
            assert await other.read_ping_time(Product.CHROME) is None
            assert await other.read_product_events(Product.CHROME) is None

        assert (await abc.read_access_point_rlz(AccessPoint.CHROME_OMNIBOX)).value == "branded"


class TestGarbageCollection:

    async def _fill(self, store):
        await store.write_access_point_rlz(AccessPoint.CHROME_OMNIBOX, "abc")
        await store.write_ping_time(Product.CHROME, 7)
        await store.add_product_event(Product.CHROME, "C1I")
        await store.add_stateful_event(Product.CHROME, "C1S")

    async def _clear(self, store):
        await store.clear_access_point_rlz(AccessPoint.CHROME_OMNIBOX)
        await store.clear_ping_time(Product.CHROME)
        await store.clear_all_product_events(Product.CHROME)
        await store.clear_all_stateful_events(Product.CHROME)

    @pytest.mark.asyncio
    async def test_removes_everything_when_empty(self, store, backend, fake_redis):
        await self._fill(store)
        await self._clear(store)
        await store.collect_garbage()
        assert await fake_redis.smembers(backend.nodes_key) == set()

    @pytest.mark.asyncio
    async def test_stops_at_ancestor_with_siblings(self, store, backend):
        other = await backend.open("Google/Common/Update", create=True)
        await backend.write_value(other, "version", "1")
        await self._fill(store)
        await self._clear(store)

        await store.collect_garbage()
        assert not await backend.exists(namespaces.LIB)
        assert await backend.exists("Google/Common")
        assert await backend.exists("Google")
        assert await backend.exists(other)

        await store.collect_garbage()
        assert await backend.exists("Google/Common")
        assert await backend.read_value(other, "version") == b"1"

    @pytest.mark.asyncio
    async def test_keeps_non_empty_nodes(self, store, backend):
        await self._fill(store)
        await store.clear_ping_time(Product.CHROME)
        await store.collect_garbage()
        assert not await backend.exists(namespaces.ping_times_path())
        assert await backend.exists(namespaces.rlzs_path())
        assert await backend.exists(namespaces.LIB)

    @pytest.mark.asyncio
    async def test_dcc_keeps_library_root(self, store, backend):
        await store.write_machine_deal_code("dcc")
        await store.collect_garbage()
        assert await backend.exists(namespaces.LIB)

    @pytest.mark.asyncio
    async def test_never_raises_when_backend_down(self, down_redis, backend):
        await ValueStore(backend).collect_garbage()

    @pytest.mark.asyncio
    async def test_branded_collects_only_brand_nodes(self, fake_redis, backend):
        store = ValueStore(backend, brand="ABC")
        await self._fill(store)
        await self._clear(store)
        await store.collect_garbage()

        for category in namespaces.CATEGORIES:
            assert not await backend.exists(namespaces.category_path(category, "ABC"))
            # The unbranded category parents stay behind, and with them the library root.
            assert await backend.exists(namespaces.category_path(category))
        assert await backend.exists(namespaces.LIB)
