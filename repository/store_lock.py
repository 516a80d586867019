# repository/store_lock.py
import asyncio
import logging
import weakref
from typing import Optional
from redis.asyncio.lock import Lock
from redis.exceptions import LockError, RedisError
from config.cache import get_redis
from config.settings import settings
from repository.node_repository import NodeRepository
from repository.value_store import ValueStore

logger = logging.getLogger(__name__)

# The Redis lock excludes other processes; tasks in this process queue here first.
_guards: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = (
    weakref.WeakKeyDictionary()
)


def _process_guard() -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    guard = _guards.get(loop)
    if guard is None:
        guard = asyncio.Lock()
        _guards[loop] = guard
    return guard


class ScopedStoreLock:
    """
    Exclusive access to the whole value store for one `async with` block.

        async with ScopedStoreLock() as lock:
            store = lock.store
            if store is None:
                return False  # lock not acquired: refuse
            ...

    The handle is invalidated on exit, whatever the exit path. Not reentrant:
    nested code in the same flow takes the outer `store` as an argument.
    """

    def __init__(
        self,
        brand: Optional[str] = None,
        backend: Optional[NodeRepository] = None,
        timeout: float = settings.LOCK_TIMEOUT_SECONDS,
        blocking_timeout: float = settings.LOCK_BLOCKING_TIMEOUT_SECONDS,
    ) -> None:
        self._brand = settings.SUPPLEMENTARY_BRAND if brand is None else brand
        self._backend = backend or NodeRepository()
        self._timeout = timeout
        self._blocking_timeout = blocking_timeout
        self._guard: Optional[asyncio.Lock] = None
        self._lock: Optional[Lock] = None
        self._store: Optional[ValueStore] = None

    @property
    def store(self) -> Optional[ValueStore]:
        return self._store

    @property
    def failed(self) -> bool:
        return self._store is None

    async def __aenter__(self) -> "ScopedStoreLock":
        self._guard = _process_guard()
        await self._guard.acquire()
        try:
            r = await get_redis()
            lock = r.lock(
                self._backend.lock_key,
                timeout=self._timeout,
                blocking_timeout=self._blocking_timeout,
            )
            if await lock.acquire():
                self._lock = lock
                self._store = ValueStore(self._backend, self._brand)
            else:
                logger.warning(
                    "store.lock.timeout key=%s wait=%.1fs",
                    self._backend.lock_key,
                    self._blocking_timeout,
                )
        except RedisError as e:
            logger.error("store.lock.error err=%s", type(e).__name__)
        except BaseException:
            # __aexit__ never runs when __aenter__ raises.
            self._guard.release()
            self._guard = None
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._store is not None:
            self._store.invalidate()
            self._store = None
        try:
            if self._lock is not None:
                await self._lock.release()
        except (LockError, RedisError) as e:
            # Expired or unreachable; the lock TTL frees it for other processes.
            logger.warning("store.lock.release_failed err=%s", type(e).__name__)
        finally:
            self._lock = None
            if self._guard is not None:
                self._guard.release()
                self._guard = None
