# service/request_builder.py
import logging
from typing import Callable, Optional, Sequence
from config.settings import settings
from core.cgi import cgi_pair, get_ping_params, get_product_events_as_cgi
from model.product import KNOWN_ACCESS_POINTS, AccessPoint, Product, product_token
from repository.store_lock import ScopedStoreLock
from repository.value_store import ValueStore
from util.constants import CgiVariables, Limits, PingURIs
from util.enums import AccessLevel
from util.errors import contract_violation
from util.types import MachineIdProvider

logger = logging.getLogger(__name__)


def settings_machine_id() -> Optional[str]:
    return settings.MACHINE_ID or None


class RequestBuilder:
    """
    Forms the financial ping request line from store contents. Read-only
    against the store.
    """

    def __init__(
        self,
        lock_factory: Callable[[], ScopedStoreLock] = ScopedStoreLock,
        machine_id_provider: MachineIdProvider = settings_machine_id,
        supplementary_brand: Optional[str] = None,
    ) -> None:
        self._lock_factory = lock_factory
        self._machine_id = machine_id_provider
        self._brand = (
            settings.SUPPLEMENTARY_BRAND if supplementary_brand is None else supplementary_brand
        )

    async def form_request(
        self,
        product: Product,
        access_points: Optional[Sequence[AccessPoint]],
        signature: Optional[str],
        brand: Optional[str] = None,
        product_id: Optional[str] = None,
        lang: Optional[str] = None,
        exclude_machine_id: bool = False,
    ) -> Optional[str]:
        if product_token(product) is None:
            return None
        async with self._lock_factory() as lock:
            store = lock.store
            if store is None or not await store.has_access(AccessLevel.READ):
                return None

            if access_points is None:
                contract_violation("form_request: access_points is None")
                return None
            if signature is None:
                contract_violation("form_request: signature is None")
                return None
            if self._brand and self._brand != brand:
                contract_violation("form_request: supplementary branding mismatch")
                return None

            request = await self._compose(
                store, product, access_points, signature, brand, product_id, lang,
                exclude_machine_id,
            )

        if len(request) > Limits.MAX_CGI_LENGTH:
            logger.error("ping.request.too_long product=%s len=%d", product.value, len(request))
            return None
        return request

    async def _compose(
        self,
        store: ValueStore,
        product: Product,
        access_points: Sequence[AccessPoint],
        signature: str,
        brand: Optional[str],
        product_id: Optional[str],
        lang: Optional[str],
        exclude_machine_id: bool,
    ) -> str:
        fields = [cgi_pair(CgiVariables.PRODUCT_SIGNATURE, signature)]
        # Present-but-empty fields are still sent.
        if brand is not None:
            fields.append(cgi_pair(CgiVariables.PRODUCT_BRAND, brand))
        if product_id is not None:
            fields.append(cgi_pair(CgiVariables.PRODUCT_ID, product_id))
        if lang is not None:
            fields.append(cgi_pair(CgiVariables.PRODUCT_LANGUAGE, lang))

        events_cgi = await get_product_events_as_cgi(store, product)
        has_events = events_cgi is not None
        if has_events:
            fields.append(events_cgi)

        # A quiet product reports every access point on the system that holds
        # an RLZ, not only the ones it was asked about.
        if has_events:
            points = list(access_points)
        else:
            points = []
            for point in KNOWN_ACCESS_POINTS:
                read = await store.read_access_point_rlz(point)
                if read.ok and read.value:
                    points.append(point)

        params = await get_ping_params(store, product, points)
        if params:
            fields.append(params)

        if has_events and not exclude_machine_id:
            machine_id = self._machine_id()
            if machine_id:
                fields.append(cgi_pair(CgiVariables.MACHINE_ID, machine_id))

        request = f"{PingURIs.FINANCIAL_PING}?{'&'.join(fields)}"
        logger.debug(
            "ping.request.formed product=%s events=%s points=%d",
            product.value,
            has_events,
            len(points),
        )
        return request
