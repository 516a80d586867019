# repository/node_repository.py
from typing import List, Optional, Union
from redis.asyncio import Redis
from config.cache import get_redis
from config.settings import settings
from repository.namespaces import SEPARATOR, parent_path

Value = Union[str, bytes, int]


class NodeRepository:
    """
    Redis-backed hierarchical node store.

    Layout:
    - <prefix>:nodes        SET of every existing node path (ancestors included)
    - <prefix>:node:<path>  HASH of the node's values (name -> value)

    A node exists while its path is in the set, even with no values, so empty
    containers survive until garbage collection removes them. Redis errors are
    not handled here; callers own the failure policy.
    """

    def __init__(self, key_prefix: str = settings.STORE_KEY_PREFIX) -> None:
        self._prefix = key_prefix

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @property
    def nodes_key(self) -> str:
        return f"{self._prefix}:nodes"

    def _key(self, path: str) -> str:
        return f"{self._prefix}:node:{path}"

    @property
    def lock_key(self) -> str:
        return f"{self._prefix}:lock"

    @staticmethod
    def _decode(raw: Union[str, bytes]) -> str:
        return raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else str(raw)

    async def ping(self) -> bool:
        r = await self._client()
        return bool(await r.ping())

    # ---------------- Nodes ----------------

    async def exists(self, path: str) -> bool:
        r = await self._client()
        return bool(await r.sismember(self.nodes_key, path))

    async def open(self, path: str, *, create: bool = False) -> Optional[str]:
        """
        Return a handle (the path) to the node, or None if it does not exist.
        With create=True the node and all of its ancestors are registered.
        """
        if create:
            r = await self._client()
            chain: List[str] = []
            p = path
            while p:
                chain.append(p)
                p = parent_path(p)
            await r.sadd(self.nodes_key, *chain)
            return path
        return path if await self.exists(path) else None

    async def subnodes(self, path: str) -> List[str]:
        r = await self._client()
        prefix = f"{path}{SEPARATOR}"
        out: List[str] = []
        for raw in await r.smembers(self.nodes_key):
            p = self._decode(raw)
            if p.startswith(prefix) and SEPARATOR not in p[len(prefix):]:
                out.append(p)
        return sorted(out)

    async def is_empty(self, path: str) -> bool:
        r = await self._client()
        if int(await r.hlen(self._key(path))) > 0:
            return False
        return not await self.subnodes(path)

    async def delete_node(self, path: str) -> None:
        """Delete the node, every node below it and all of their values."""
        r = await self._client()
        prefix = f"{path}{SEPARATOR}"
        doomed = [
            p
            for p in (self._decode(raw) for raw in await r.smembers(self.nodes_key))
            if p == path or p.startswith(prefix)
        ]
        if not doomed:
            return
        async with r.pipeline(transaction=True) as pipe:
            pipe.srem(self.nodes_key, *doomed)
            pipe.delete(*(self._key(p) for p in doomed))
            await pipe.execute()

    # ---------------- Values ----------------

    async def read_value(self, path: str, name: str) -> Optional[bytes]:
        r = await self._client()
        return await r.hget(self._key(path), name)

    async def write_value(self, path: str, name: str, value: Value) -> None:
        r = await self._client()
        await r.hset(self._key(path), name, value)

    async def delete_value(self, path: str, name: str) -> None:
        # HDEL of a missing field is a silent no-op; callers verify by reading back.
        r = await self._client()
        await r.hdel(self._key(path), name)

    async def enumerate_values(self, path: str) -> List[str]:
        r = await self._client()
        return [self._decode(raw) for raw in await r.hkeys(self._key(path))]
