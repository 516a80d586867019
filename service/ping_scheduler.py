# service/ping_scheduler.py
import logging
from typing import Callable, Optional
from config.settings import settings
from core.cgi import get_product_events_as_cgi
from core.clock import SystemClock, seconds_to_ticks
from model.product import Product, product_token
from repository.store_lock import ScopedStoreLock
from util.enums import AccessLevel
from util.types import Clock

logger = logging.getLogger(__name__)

EVENTS_PING_INTERVAL = seconds_to_ticks(settings.PING_INTERVAL_EVENTS_SECONDS)
NO_EVENTS_PING_INTERVAL = seconds_to_ticks(settings.PING_INTERVAL_NO_EVENTS_SECONDS)


class PingScheduler:
    """
    Decides when a product is due for a financial ping and keeps its
    last-ping timestamp.

    Two thresholds: products with unreported events ping after the short
    interval, quiet products after the long one.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        lock_factory: Callable[[], ScopedStoreLock] = ScopedStoreLock,
        events_interval: int = EVENTS_PING_INTERVAL,
        no_events_interval: int = NO_EVENTS_PING_INTERVAL,
    ) -> None:
        self._clock = clock or SystemClock()
        self._lock_factory = lock_factory
        self._events_interval = events_interval
        self._no_events_interval = no_events_interval

    async def is_ping_time(self, product: Product, no_delay: bool = False) -> bool:
        if product_token(product) is None:
            return False
        async with self._lock_factory() as lock:
            store = lock.store
            # Fail closed: never ping without proving eligibility.
            if store is None or not await store.has_access(AccessLevel.READ):
                return False

            last_ping = await store.read_ping_time(product)
            if last_ping is None:
                logger.debug("ping.due.never_pinged product=%s", product.value)
                return True

            interval = self._clock.now() - last_ping
            if interval < 0:
                # Clock went backwards; the stored time cannot be trusted.
                logger.info("ping.due.clock_rewound product=%s", product.value)
                return True

            has_events = await get_product_events_as_cgi(store, product) is not None
            if no_delay and has_events:
                return True

            threshold = self._events_interval if has_events else self._no_events_interval
            return interval >= threshold

    async def update_last_ping_time(self, product: Product) -> bool:
        async with self._lock_factory() as lock:
            store = lock.store
            if store is None or not await store.has_access(AccessLevel.WRITE):
                return False
            return await store.write_ping_time(product, self._clock.now())

    async def clear_last_ping_time(self, product: Product) -> bool:
        async with self._lock_factory() as lock:
            store = lock.store
            if store is None or not await store.has_access(AccessLevel.WRITE):
                return False
            return await store.clear_ping_time(product)
