# repository/value_store.py
import functools
import logging
from typing import List, Optional
from redis.exceptions import RedisError
from config.settings import settings
from model.product import AccessPoint, Product, access_point_name, product_token
from repository import namespaces
from repository.node_repository import NodeRepository
from util.constants import Limits
from util.enums import AccessLevel
from util.errors import contract_violation
from util.types import RlzRead

logger = logging.getLogger(__name__)

EVENT_MARKER = 1


def _guarded(default):
    """
    Fail closed: refuse when the handle has been released and turn backend
    errors into the operation's failure value.
    """

    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(self: "ValueStore", *args, **kwargs):
            if not self.valid:
                logger.error("store.%s.stale_handle", fn.__name__)
                return default
            try:
                return await fn(self, *args, **kwargs)
            except RedisError as e:
                logger.error("store.%s.backend_error err=%s", fn.__name__, type(e).__name__)
                return default

        return wrapper

    return decorator


class ValueStore:
    """
    RLZ values, product events, stateful events and ping times over a node
    backend. Only reachable through ScopedStoreLock; every operation returns a
    success flag or value and never raises on backend failure.

    Every clear is delete-then-verify: the backend does not report whether a
    delete did anything, so only the read-back distinguishes "already absent"
    (success) from "still there" (failure).
    """

    def __init__(self, backend: NodeRepository, brand: str = "") -> None:
        self._backend = backend
        self._brand = brand
        self._valid = True

    @property
    def brand(self) -> str:
        return self._brand

    @property
    def valid(self) -> bool:
        return self._valid

    def invalidate(self) -> None:
        self._valid = False

    # ---------------- Access ----------------

    @_guarded(False)
    async def has_access(self, level: AccessLevel) -> bool:
        if not await self._backend.ping():
            return False
        if level == AccessLevel.WRITE and settings.STORE_READ_ONLY:
            logger.warning("store.access.denied level=%s", level.value)
            return False
        return True

    # ---------------- Ping times ----------------

    @_guarded(False)
    async def write_ping_time(self, product: Product, time: int) -> bool:
        token = product_token(product)
        if token is None:
            return False
        node = await self._backend.open(namespaces.ping_times_path(self._brand), create=True)
        await self._backend.write_value(node, token, str(int(time)))
        return True

    @_guarded(None)
    async def read_ping_time(self, product: Product) -> Optional[int]:
        token = product_token(product)
        if token is None:
            return None
        node = await self._backend.open(namespaces.ping_times_path(self._brand))
        if node is None:
            return None
        raw = await self._backend.read_value(node, token)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.error("store.ping_time.corrupt product=%s", token)
            return None

    @_guarded(False)
    async def clear_ping_time(self, product: Product) -> bool:
        token = product_token(product)
        if token is None:
            return False
        return await self._delete_and_verify(
            namespaces.ping_times_path(self._brand), token, "clear_ping_time"
        )

    # ---------------- Access point RLZs ----------------

    @_guarded(False)
    async def write_access_point_rlz(self, point: AccessPoint, value: str) -> bool:
        name = access_point_name(point)
        if name is None:
            return False
        if len(value) > Limits.MAX_RLZ_LENGTH or not value.isascii():
            contract_violation(f"write_access_point_rlz: bad RLZ value for {name}")
            return False
        node = await self._backend.open(namespaces.rlzs_path(self._brand), create=True)
        await self._backend.write_value(node, name, value)
        return True

    @_guarded(RlzRead(False, ""))
    async def read_access_point_rlz(
        self, point: AccessPoint, buffer_size: int = Limits.MAX_RLZ_LENGTH + 1
    ) -> RlzRead:
        """
        Missing values read as "" (success). A stored value that does not fit
        buffer_size (terminator included) fails and reports the size it needs.
        """
        name = access_point_name(point)
        if name is None:
            return RlzRead(False, "")
        node = await self._backend.open(namespaces.rlzs_path(self._brand))
        raw = await self._backend.read_value(node, name) if node is not None else None
        if raw is None:
            return RlzRead(True, "")
        value = raw.decode("ascii", errors="replace")
        required = len(value) + 1
        if required > buffer_size:
            contract_violation(f"read_access_point_rlz: insufficient buffer for {name}")
            return RlzRead(False, "", required)
        return RlzRead(True, value, required)

    @_guarded(False)
    async def clear_access_point_rlz(self, point: AccessPoint) -> bool:
        name = access_point_name(point)
        if name is None:
            return False
        return await self._delete_and_verify(
            namespaces.rlzs_path(self._brand), name, "clear_access_point_rlz"
        )

    # ---------------- Product events ----------------

    @_guarded(False)
    async def add_product_event(self, product: Product, event_key: str) -> bool:
        return await self._add_event(namespaces.EVENTS, product, event_key)

    @_guarded(None)
    async def read_product_events(self, product: Product) -> Optional[List[str]]:
        """Event keys in backend order; None when the product has no events node."""
        token = product_token(product)
        if token is None:
            return None
        node = await self._backend.open(
            namespaces.events_path(namespaces.EVENTS, self._brand, token)
        )
        if node is None:
            return None
        return await self._backend.enumerate_values(node)

    @_guarded(False)
    async def clear_product_event(self, product: Product, event_key: str) -> bool:
        token = product_token(product)
        if token is None:
            return False
        return await self._delete_and_verify(
            namespaces.events_path(namespaces.EVENTS, self._brand, token),
            event_key,
            "clear_product_event",
        )

    @_guarded(False)
    async def clear_all_product_events(self, product: Product) -> bool:
        return await self._clear_event_node(namespaces.EVENTS, product)

    # ---------------- Stateful events ----------------

    @_guarded(False)
    async def add_stateful_event(self, product: Product, event_key: str) -> bool:
        return await self._add_event(namespaces.STATEFUL_EVENTS, product, event_key)

    @_guarded(False)
    async def is_stateful_event(self, product: Product, event_key: str) -> bool:
        token = product_token(product)
        if token is None:
            return False
        node = await self._backend.open(
            namespaces.events_path(namespaces.STATEFUL_EVENTS, self._brand, token)
        )
        if node is None:
            return False
        return await self._backend.read_value(node, event_key) is not None

    @_guarded(False)
    async def clear_all_stateful_events(self, product: Product) -> bool:
        return await self._clear_event_node(namespaces.STATEFUL_EVENTS, product)

    # ---------------- Machine deal code ----------------

    @_guarded(False)
    async def write_machine_deal_code(self, dcc: str) -> bool:
        if not dcc or len(dcc) > Limits.MAX_DCC_LENGTH or not dcc.isascii():
            contract_violation("write_machine_deal_code: bad DCC value")
            return False
        node = await self._backend.open(namespaces.LIB, create=True)
        await self._backend.write_value(node, namespaces.DCC_VALUE_NAME, dcc)
        return True

    @_guarded(None)
    async def read_machine_deal_code(self) -> Optional[str]:
        node = await self._backend.open(namespaces.LIB)
        if node is None:
            return None
        raw = await self._backend.read_value(node, namespaces.DCC_VALUE_NAME)
        return raw.decode("ascii", errors="replace") if raw is not None else None

    @_guarded(False)
    async def clear_machine_deal_code(self) -> bool:
        return await self._delete_and_verify(
            namespaces.LIB, namespaces.DCC_VALUE_NAME, "clear_machine_deal_code"
        )

    # ---------------- Garbage collection ----------------

    async def collect_garbage(self) -> None:
        """
        Best effort: drop empty category nodes, then the library root and its
        ancestors. Never raises and never touches the platform root.
        """
        if not self.valid:
            logger.error("store.collect_garbage.stale_handle")
            return
        paths = [namespaces.category_path(c, self._brand) for c in namespaces.CATEGORIES]
        paths.extend(namespaces.LIB_ANCESTORS)
        for path in paths:
            try:
                if not await self._delete_if_empty(path):
                    logger.warning("store.gc.delete_failed path=%s", path)
            except RedisError as e:
                logger.warning("store.gc.error path=%s err=%s", path, type(e).__name__)

    # ---------------- Helpers ----------------

    async def _add_event(self, category: str, product: Product, event_key: str) -> bool:
        token = product_token(product)
        if token is None:
            return False
        if not event_key:
            contract_violation(f"add_event: empty event key category={category}")
            return False
        node = await self._backend.open(
            namespaces.events_path(category, self._brand, token), create=True
        )
        await self._backend.write_value(node, event_key, EVENT_MARKER)
        return True

    async def _clear_event_node(self, category: str, product: Product) -> bool:
        token = product_token(product)
        if token is None:
            return False
        path = namespaces.events_path(category, self._brand, token)
        await self._backend.delete_node(path)
        if await self._backend.exists(path):
            contract_violation(f"clear_all_events: node deletion failed path={path}")
            return False
        return True

    async def _delete_and_verify(self, path: str, name: str, op: str) -> bool:
        node = await self._backend.open(path)
        if node is None:
            return True
        await self._backend.delete_value(node, name)
        if await self._backend.read_value(node, name) is not None:
            contract_violation(f"{op}: value survived delete path={path} name={name}")
            return False
        return True

    async def _delete_if_empty(self, path: str) -> bool:
        if not await self._backend.exists(path):
            return True
        if not await self._backend.is_empty(path):
            return True
        await self._backend.delete_node(path)
        return not await self._backend.exists(path)
