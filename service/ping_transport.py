# service/ping_transport.py
import asyncio
import httpx, logging
from typing import Optional
from config.settings import settings
from util.constants import Limits
from util.timing import timed

logger = logging.getLogger(__name__)


class FinancialPingClient:
    """
    Sends a formed request line to the ping server. Blocks for at most
    PING_TIMEOUT_SECONDS; never retries. Must be called without the store lock held.
    """

    def __init__(
        self,
        base_url: str = settings.PING_SERVER_URL,
        timeout: float = settings.PING_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def ping_server(self, request: str) -> Optional[str]:
        headers = {
            "user-agent": settings.PING_USER_AGENT,
            "cache-control": "no-cache",
            "pragma": "no-cache",
        }
        try:
            with timed(logger, "ping.server"):
                async with httpx.AsyncClient(
                    timeout=httpx.Timeout(self._timeout),
                    transport=self._transport,
                    follow_redirects=False,
                ) as client:
                    return await asyncio.wait_for(
                        self._fetch(client, f"{self._base_url}{request}", headers),
                        timeout=self._timeout,
                    )
        except httpx.HTTPError as e:
            logger.error("ping.server.request_error err=%s", type(e).__name__)
            return None
        except asyncio.TimeoutError:
            logger.error("ping.server.timeout after=%.0fs", self._timeout)
            return None

    @staticmethod
    async def _fetch(client: httpx.AsyncClient, url: str, headers: dict) -> Optional[str]:
        async with client.stream("GET", url, headers=headers) as res:
            if res.status_code != httpx.codes.OK:
                logger.warning("ping.server.bad_status %d", res.status_code)
                return None

            # Stop reading at the cap; the rest of the body is never buffered.
            limit = Limits.MAX_PING_RESPONSE_LENGTH
            buf = bytearray()
            async for chunk in res.aiter_bytes():
                buf.extend(chunk)
                if len(buf) >= limit:
                    break
            if len(buf) > limit:
                logger.warning("ping.server.response_truncated read=%d", len(buf))
                del buf[limit:]

            body = bytes(buf).decode(res.encoding or "utf-8", errors="replace")
        logger.info("ping.server.ok bytes=%d", len(buf))
        return body
