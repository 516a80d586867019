# core/cgi.py
import logging
from typing import Iterable, Optional
from model.product import AccessPoint, Product, access_point_name
from repository.value_store import ValueStore
from util.constants import CgiVariables, Limits

logger = logging.getLogger(__name__)


def cgi_pair(name: str, value: str) -> str:
    return f"{name}={value}"


async def get_product_events_as_cgi(store: ValueStore, product: Product) -> Optional[str]:
    """
    'events=C1I,C1F' for the product's unreported events, or None when there
    are none (an unreadable events node counts as none).
    """
    events = await store.read_product_events(product)
    if not events:
        return None
    cgi = cgi_pair(CgiVariables.EVENTS, CgiVariables.EVENTS_SEPARATOR.join(events))
    if len(cgi) > Limits.MAX_CGI_LENGTH:
        logger.error("cgi.events.too_long product=%s len=%d", product.value, len(cgi))
        return None
    return cgi


async def get_ping_params(
    store: ValueStore, product: Product, access_points: Iterable[AccessPoint]
) -> Optional[str]:
    """
    Protocol argument, then 'rlz=<AP>:<value>,...' for points with a stored
    RLZ, then 'dcc=<code>' when a machine deal code is stored.
    """
    parts = [CgiVariables.PROTOCOL_ARGUMENT]

    rlzs = []
    for point in access_points:
        if point == AccessPoint.NO_ACCESS_POINT:
            break
        name = access_point_name(point)
        if name is None:
            return None
        read = await store.read_access_point_rlz(point)
        if read.ok and read.value:
            rlzs.append(f"{name}{CgiVariables.RLZ_INDICATOR}{read.value}")
    if rlzs:
        parts.append(cgi_pair(CgiVariables.RLZ, CgiVariables.RLZ_SEPARATOR.join(rlzs)))

    dcc = await store.read_machine_deal_code()
    if dcc:
        parts.append(cgi_pair(CgiVariables.DCC, dcc))

    cgi = "&".join(parts)
    if len(cgi) > Limits.MAX_CGI_LENGTH:
        logger.error("cgi.params.too_long product=%s len=%d", product.value, len(cgi))
        return None
    return cgi
