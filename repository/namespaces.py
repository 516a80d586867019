# repository/namespaces.py
from typing import Final, Optional

# Node paths are relative to the platform root (the backend key prefix),
# which is shared with unrelated software and is never collected.
VENDOR: Final[str] = "Google"
FAMILY: Final[str] = f"{VENDOR}/Common"
LIB: Final[str] = f"{FAMILY}/Rlz"

RLZS: Final[str] = "RLZs"
EVENTS: Final[str] = "Events"
STATEFUL_EVENTS: Final[str] = "StatefulEvents"
PING_TIMES: Final[str] = "PTimes"

CATEGORIES: Final[tuple[str, ...]] = (RLZS, EVENTS, STATEFUL_EVENTS, PING_TIMES)

# Collected bottom-up after the category nodes, stopping short of the platform root.
LIB_ANCESTORS: Final[tuple[str, ...]] = (LIB, FAMILY, VENDOR)

# Machine deal code lives on the library root and is not brand scoped.
DCC_VALUE_NAME: Final[str] = "DCC"

SEPARATOR: Final[str] = "/"


def with_brand(path: str, brand: str = "") -> str:
    return f"{path}{SEPARATOR}_{brand}" if brand else path


def category_path(category: str, brand: str = "") -> str:
    return with_brand(f"{LIB}{SEPARATOR}{category}", brand)


def rlzs_path(brand: str = "") -> str:
    return category_path(RLZS, brand)


def ping_times_path(brand: str = "") -> str:
    return category_path(PING_TIMES, brand)


def events_path(category: str, brand: str = "", product_token: Optional[str] = None) -> str:
    """
    Events/StatefulEvents node, optionally narrowed to one product:
      Google/Common/Rlz/Events[/_<brand>][/<token>]
    """
    path = category_path(category, brand)
    if product_token:
        path = f"{path}{SEPARATOR}{product_token}"
    return path


def parent_path(path: str) -> str:
    head, _, _ = path.rpartition(SEPARATOR)
    return head
