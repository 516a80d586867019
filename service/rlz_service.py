# service/rlz_service.py
import logging
from typing import Callable, Optional, Sequence
from core import cgi
from model.ping import PingResponse
from model.product import (
    AccessPoint,
    Event,
    Product,
    access_point_from_name,
    event_key,
    product_token,
)
from repository.store_lock import ScopedStoreLock
from repository.value_store import ValueStore
from service.ping_scheduler import PingScheduler
from service.ping_transport import FinancialPingClient
from service.request_builder import RequestBuilder
from util.enums import AccessLevel
from util.errors import contract_violation
from util.types import PingTransport

logger = logging.getLogger(__name__)


class RlzService:
    """
    Product-facing RLZ operations: record events, manage access point RLZs and
    run the full financial ping cycle.

    Every public method takes the store lock itself; helpers that run inside a
    held lock take the `ValueStore` as an argument instead of re-acquiring.
    """

    def __init__(
        self,
        scheduler: PingScheduler,
        builder: RequestBuilder,
        transport: PingTransport,
        lock_factory: Callable[[], ScopedStoreLock] = ScopedStoreLock,
    ) -> None:
        self._scheduler = scheduler
        self._builder = builder
        self._transport = transport
        self._lock_factory = lock_factory

    # ---------------- Events ----------------

    async def record_product_event(
        self, product: Product, point: AccessPoint, event: Event
    ) -> bool:
        key = event_key(point, event)
        if key is None:
            return False
        async with self._lock_factory() as lock:
            store = lock.store
            if store is None or not await store.has_access(AccessLevel.WRITE):
                return False
            # Stateful events fire once per lifetime; recording them again is a no-op.
            if await store.is_stateful_event(product, key):
                logger.debug("rlz.event.stateful_skip product=%s event=%s", product.value, key)
                return True
            return await store.add_product_event(product, key)

    async def clear_product_event(
        self, product: Product, point: AccessPoint, event: Event
    ) -> bool:
        key = event_key(point, event)
        if key is None:
            return False
        async with self._lock_factory() as lock:
            store = lock.store
            if store is None or not await store.has_access(AccessLevel.WRITE):
                return False
            return await store.clear_product_event(product, key)

    async def get_product_events_as_cgi(self, product: Product) -> Optional[str]:
        async with self._lock_factory() as lock:
            store = lock.store
            if store is None or not await store.has_access(AccessLevel.READ):
                return None
            return await cgi.get_product_events_as_cgi(store, product)

    # ---------------- Access point RLZs ----------------

    async def set_access_point_rlz(self, point: AccessPoint, value: str) -> bool:
        if point == AccessPoint.NO_ACCESS_POINT:
            contract_violation("set_access_point_rlz: NO_ACCESS_POINT")
            return False
        async with self._lock_factory() as lock:
            store = lock.store
            if store is None or not await store.has_access(AccessLevel.WRITE):
                return False
            if not value:
                return await store.clear_access_point_rlz(point)
            return await store.write_access_point_rlz(point, value)

    async def get_access_point_rlz(self, point: AccessPoint) -> Optional[str]:
        async with self._lock_factory() as lock:
            store = lock.store
            if store is None or not await store.has_access(AccessLevel.READ):
                return None
            read = await store.read_access_point_rlz(point)
            return read.value if read.ok else None

    async def get_ping_params(
        self, product: Product, access_points: Sequence[AccessPoint]
    ) -> Optional[str]:
        async with self._lock_factory() as lock:
            store = lock.store
            if store is None or not await store.has_access(AccessLevel.READ):
                return None
            return await cgi.get_ping_params(store, product, access_points)

    # ---------------- Housekeeping ----------------

    async def clear_product_state(
        self, product: Product, access_points: Sequence[AccessPoint]
    ) -> bool:
        """Forget everything recorded for the product, then collect empty nodes."""
        async with self._lock_factory() as lock:
            store = lock.store
            if store is None or not await store.has_access(AccessLevel.WRITE):
                return False
            ok = await store.clear_all_product_events(product)
            ok = await store.clear_all_stateful_events(product) and ok
            ok = await store.clear_ping_time(product) and ok
            for point in access_points:
                if point == AccessPoint.NO_ACCESS_POINT:
                    break
                ok = await store.clear_access_point_rlz(point) and ok
            await store.collect_garbage()
            return ok

    async def collect_garbage(self) -> bool:
        async with self._lock_factory() as lock:
            store = lock.store
            if store is None or not await store.has_access(AccessLevel.WRITE):
                return False
            await store.collect_garbage()
            return True

    # ---------------- Financial ping ----------------

    async def parse_ping_response(self, product: Product, response: str) -> bool:
        async with self._lock_factory() as lock:
            store = lock.store
            if store is None or not await store.has_access(AccessLevel.WRITE):
                return False
            return await self._apply_response(store, product, PingResponse.parse(response))

    async def send_financial_ping(
        self,
        product: Product,
        access_points: Optional[Sequence[AccessPoint]],
        signature: Optional[str],
        brand: Optional[str] = None,
        product_id: Optional[str] = None,
        lang: Optional[str] = None,
        exclude_machine_id: bool = False,
        skip_time_check: bool = False,
    ) -> bool:
        """
        One full report cycle. Each step takes and drops the store lock on its
        own, so the network round trip runs with the lock released.
        """
        if product_token(product) is None:
            return False
        if not skip_time_check and not await self._scheduler.is_ping_time(product):
            logger.debug("rlz.ping.not_due product=%s", product.value)
            return False

        request = await self._builder.form_request(
            product, access_points, signature, brand, product_id, lang, exclude_machine_id
        )
        if request is None:
            logger.warning("rlz.ping.form_failed product=%s", product.value)
            return False

        response = await self._transport.ping_server(request)
        if response is None:
            return False

        if not await self.parse_ping_response(product, response):
            logger.warning("rlz.ping.parse_failed product=%s", product.value)
            return False

        updated = await self._scheduler.update_last_ping_time(product)
        logger.info("rlz.ping.done product=%s updated=%s", product.value, updated)
        return updated

    async def _apply_response(
        self, store: ValueStore, product: Product, response: PingResponse
    ) -> bool:
        ok = True
        for name, value in response.rlzs.items():
            point = access_point_from_name(name)
            if point is None:
                logger.debug("rlz.response.unknown_access_point name=%s", name)
                continue
            if value:
                ok = await store.write_access_point_rlz(point, value) and ok
            else:
                ok = await store.clear_access_point_rlz(point) and ok

        for key in response.stateful_events:
            ok = await store.add_stateful_event(product, key) and ok

        if response.dcc:
            ok = await store.write_machine_deal_code(response.dcc) and ok

        # Everything pending was just reported.
        ok = await store.clear_all_product_events(product) and ok
        return ok


def get_rlz_service() -> RlzService:
    _scheduler = PingScheduler()
    _builder = RequestBuilder()
    _transport = FinancialPingClient()
    return RlzService(_scheduler, _builder, _transport)
