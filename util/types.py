# util/types.py
from typing import NamedTuple, Optional, Protocol


class RlzRead(NamedTuple):
    # Flow: ok=False with required_size set when the caller's buffer is too small.
    ok: bool
    value: str
    required_size: int = 0


class Clock(Protocol):
    def now(self) -> int: ...


class MachineIdProvider(Protocol):
    def __call__(self) -> Optional[str]: ...


class PingTransport(Protocol):
    async def ping_server(self, request: str) -> Optional[str]: ...
