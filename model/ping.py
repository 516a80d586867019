# model/ping.py
from pydantic import BaseModel, Field
from util.constants import ResponseVariables


class PingResponse(BaseModel):
    """
    Server reply to a financial ping: 'name: value' lines, e.g.

        rlzC1: 1C1GGLD_enUS123
        stateful-events: C1I,C1S;
        dcc: dcc_value
    """

    rlzs: dict[str, str] = Field(default_factory=dict)  # access point name -> RLZ
    stateful_events: list[str] = Field(default_factory=list)
    dcc: str | None = None

    @classmethod
    def parse(cls, raw: str) -> "PingResponse":
        out = cls()
        for line in raw.splitlines():
            name, sep, value = line.partition(":")
            if not sep:
                continue
            name = name.strip()
            value = value.strip()
            if name == ResponseVariables.STATEFUL_EVENTS:
                events = value.rstrip(";")
                out.stateful_events.extend(e.strip() for e in events.split(",") if e.strip())
            elif name == ResponseVariables.DCC:
                out.dcc = value or None
            elif name.startswith(ResponseVariables.RLZ_PREFIX) and len(name) > len(
                ResponseVariables.RLZ_PREFIX
            ):
                out.rlzs[name[len(ResponseVariables.RLZ_PREFIX):]] = value
        return out
