# util/constants.py
class PingURIs:
    FINANCIAL_PING = "/tools/pso/ping"


class CgiVariables:
    PRODUCT_SIGNATURE = "pv"
    PRODUCT_BRAND = "brand"
    PRODUCT_ID = "id"
    PRODUCT_LANGUAGE = "hl"
    EVENTS = "events"
    RLZ = "rlz"
    DCC = "dcc"
    MACHINE_ID = "mid"
    PROTOCOL_ARGUMENT = "rep=2"

    EVENTS_SEPARATOR = ","
    RLZ_SEPARATOR = ","
    RLZ_INDICATOR = ":"


class ResponseVariables:
    RLZ_PREFIX = "rlz"
    STATEFUL_EVENTS = "stateful-events"
    DCC = "dcc"


class Limits:
    MAX_RLZ_LENGTH = 64
    MAX_DCC_LENGTH = 128
    MAX_CGI_LENGTH = 2048
    MAX_PING_RESPONSE_LENGTH = 0x4000
