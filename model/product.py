# model/product.py
from enum import Enum
from typing import Final, Optional
from util.errors import contract_violation


class Product(str, Enum):
    IE_TOOLBAR = "ie_toolbar"
    TOOLBAR_NOTIFIER = "toolbar_notifier"
    PACK = "pack"
    DESKTOP = "desktop"
    CHROME = "chrome"
    FF_TOOLBAR = "ff_toolbar"
    QSB_WIN = "qsb_win"
    WEBAPPS = "webapps"
    PINYIN_IME = "pinyin_ime"
    PARTNER = "partner"


class AccessPoint(str, Enum):
    NO_ACCESS_POINT = "no_access_point"
    IE_DEFAULT_SEARCH = "ie_default_search"
    IE_HOME_PAGE = "ie_home_page"
    IETB_SEARCH_BOX = "ietb_search_box"
    QUICK_SEARCH_BOX = "quick_search_box"
    GD_DESKBAND = "gd_deskband"
    GD_SEARCH_GADGET = "gd_search_gadget"
    GD_WEB_SERVER = "gd_web_server"
    GD_OUTLOOK = "gd_outlook"
    CHROME_OMNIBOX = "chrome_omnibox"
    CHROME_HOME_PAGE = "chrome_home_page"
    FFTB2_BOX = "fftb2_box"
    FFTB3_BOX = "fftb3_box"
    PINYIN_IME_BHO = "pinyin_ime_bho"
    IGOOGLE_WEBPAGE = "igoogle_webpage"
    MOBILE_IDLE_SCREEN_BLACKBERRY = "mobile_idle_screen_blackberry"
    MOBILE_IDLE_SCREEN_WINMOB = "mobile_idle_screen_winmob"
    MOBILE_IDLE_SCREEN_SYMBIAN = "mobile_idle_screen_symbian"
    FF_HOME_PAGE = "ff_home_page"
    FF_SEARCH_BOX = "ff_search_box"
    IE_BROWSED_PAGE = "ie_browsed_page"
    QSB_WIN_BOX = "qsb_win_box"
    WEBAPPS_CALENDAR = "webapps_calendar"
    WEBAPPS_DOCS = "webapps_docs"
    WEBAPPS_GMAIL = "webapps_gmail"
    IETB_LINKDOCTOR = "ietb_linkdoctor"
    FFTB_LINKDOCTOR = "fftb_linkdoctor"
    IETB7_SEARCHBOX = "ietb7_searchbox"
    TB8_SEARCHBOX = "tb8_searchbox"
    CHROME_FRAME = "chrome_frame"
    PARTNER_AP_1 = "partner_ap_1"
    PARTNER_AP_2 = "partner_ap_2"
    PARTNER_AP_3 = "partner_ap_3"
    PARTNER_AP_4 = "partner_ap_4"
    PARTNER_AP_5 = "partner_ap_5"


class Event(str, Enum):
    INSTALL = "install"
    SET_TO_GOOGLE = "set_to_google"
    FIRST_SEARCH = "first_search"
    REPORT_RLS = "report_rls"
    ACTIVATE = "activate"


# Namespace tokens; these are persisted, never renumber them.
PRODUCT_TOKENS: Final[dict[Product, str]] = {
    Product.IE_TOOLBAR: "T",
    Product.TOOLBAR_NOTIFIER: "P",
    Product.PACK: "U",
    Product.DESKTOP: "D",
    Product.CHROME: "C",
    Product.FF_TOOLBAR: "B",
    Product.QSB_WIN: "K",
    Product.WEBAPPS: "W",
    Product.PINYIN_IME: "N",
    Product.PARTNER: "V",
}

ACCESS_POINT_NAMES: Final[dict[AccessPoint, str]] = {
    AccessPoint.IE_DEFAULT_SEARCH: "I7",
    AccessPoint.IE_HOME_PAGE: "W1",
    AccessPoint.IETB_SEARCH_BOX: "T4",
    AccessPoint.QUICK_SEARCH_BOX: "Q1",
    AccessPoint.GD_DESKBAND: "D1",
    AccessPoint.GD_SEARCH_GADGET: "D2",
    AccessPoint.GD_WEB_SERVER: "D3",
    AccessPoint.GD_OUTLOOK: "D4",
    AccessPoint.CHROME_OMNIBOX: "C1",
    AccessPoint.CHROME_HOME_PAGE: "C2",
    AccessPoint.FFTB2_BOX: "B2",
    AccessPoint.FFTB3_BOX: "B3",
    AccessPoint.PINYIN_IME_BHO: "N1",
    AccessPoint.IGOOGLE_WEBPAGE: "G1",
    AccessPoint.MOBILE_IDLE_SCREEN_BLACKBERRY: "H1",
    AccessPoint.MOBILE_IDLE_SCREEN_WINMOB: "H2",
    AccessPoint.MOBILE_IDLE_SCREEN_SYMBIAN: "H3",
    AccessPoint.FF_HOME_PAGE: "R0",
    AccessPoint.FF_SEARCH_BOX: "R1",
    AccessPoint.IE_BROWSED_PAGE: "R2",
    AccessPoint.QSB_WIN_BOX: "R3",
    AccessPoint.WEBAPPS_CALENDAR: "R4",
    AccessPoint.WEBAPPS_DOCS: "R5",
    AccessPoint.WEBAPPS_GMAIL: "R6",
    AccessPoint.IETB_LINKDOCTOR: "R7",
    AccessPoint.FFTB_LINKDOCTOR: "R8",
    AccessPoint.IETB7_SEARCHBOX: "R9",
    AccessPoint.TB8_SEARCHBOX: "RA",
    AccessPoint.CHROME_FRAME: "RB",
    AccessPoint.PARTNER_AP_1: "V1",
    AccessPoint.PARTNER_AP_2: "V2",
    AccessPoint.PARTNER_AP_3: "V3",
    AccessPoint.PARTNER_AP_4: "V4",
    AccessPoint.PARTNER_AP_5: "V5",
}

EVENT_NAMES: Final[dict[Event, str]] = {
    Event.INSTALL: "I",
    Event.SET_TO_GOOGLE: "S",
    Event.FIRST_SEARCH: "F",
    Event.REPORT_RLS: "R",
    Event.ACTIVATE: "A",
}

# Every access point that can hold an RLZ, in declaration order.
KNOWN_ACCESS_POINTS: Final[tuple[AccessPoint, ...]] = tuple(ACCESS_POINT_NAMES)


def product_token(product: Product) -> Optional[str]:
    token = PRODUCT_TOKENS.get(product) if isinstance(product, Product) else None
    if token is None:
        contract_violation(f"product_token: unknown product {product!r}")
    return token


def access_point_name(point: AccessPoint) -> Optional[str]:
    name = ACCESS_POINT_NAMES.get(point) if isinstance(point, AccessPoint) else None
    if name is None:
        contract_violation(f"access_point_name: unknown access point {point!r}")
    return name


def access_point_from_name(name: str) -> Optional[AccessPoint]:
    """Reverse lookup used when parsing server responses; unknown names are not an error."""
    for point, known in ACCESS_POINT_NAMES.items():
        if known == name:
            return point
    return None


def event_name(event: Event) -> Optional[str]:
    name = EVENT_NAMES.get(event) if isinstance(event, Event) else None
    if name is None:
        contract_violation(f"event_name: unknown event {event!r}")
    return name


def event_key(point: AccessPoint, event: Event) -> Optional[str]:
    """Storage key of an event record: access point name + event name, e.g. 'C1I'."""
    ap = access_point_name(point)
    ev = event_name(event)
    if ap is None or ev is None:
        return None
    return f"{ap}{ev}"
