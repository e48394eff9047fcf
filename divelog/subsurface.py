"""
Parser for Subsurface (.ssrf) dive logs.

Subsurface carries units inside attribute values ("12.3 m", "18.0 C",
"200.0 bar", "3:20 min") and declares gases and tanks together as
<cylinder> elements. Only the parts that map onto the dive model are read;
everything else Subsurface writes (settings, dive sites, pictures) passes
through as unknown elements.
"""

import re

from divelog.decoders import (
    decode_enum,
    decode_percent,
    decode_uint,
    decode_unit,
    decode_unit_duration,
)
from divelog.errors import DecodeError, ElementError, MissingAttributeError
from divelog.handler import ElementHandler
from divelog.model import (
    Deco,
    DecoType,
    DiveMode,
    DiveStat,
    Event,
    EventType,
    GasMix,
    Pressure,
    Tank,
)
from divelog.tokenizer import DEFAULT_CHUNK_SIZE

_PRESSURE_ATTR = re.compile(r"^pressure([0-9]+)$")

DCTYPES = {
    "Freedive": DiveMode.FREEDIVE,
    "Gauge": DiveMode.GAUGE,
    "Opencircuit": DiveMode.OC,
    "OC": DiveMode.OC,
    "Closedcircuit": DiveMode.CC,
    "CCR": DiveMode.CC,
}

# Attributes Subsurface writes that have no place in the dive model.
_IGNORED = {
    "dive": ("tags", "divesiteid", "rating", "visibility", "sac", "otu", "cns",
             "watersalinity", "current", "wavesize", "surge", "chill", "invalid"),
    "divecomputer": ("deviceid", "last-manual-time", "no_o2sensors"),
    "cylinder": ("use", "depth"),
    "event": ("divecomputer",),
}


class SubsurfaceParser(ElementHandler):
    """Streaming parser for Subsurface dive logs."""

    def __init__(self, stat: DiveStat, chunk_size: int = DEFAULT_CHUNK_SIZE):
        super().__init__(stat, chunk_size=chunk_size)
        self.openers = {
            "divelog": self._open_divelog,
            "dives": self._open_container,
            "trip": self._open_container,
            "dive": self._open_dive,
            "divecomputer": self._open_divecomputer,
            "cylinder": self._open_cylinder,
            "sample": self._open_sample,
            "event": self._open_event,
        }
        self.closers = {
            "divelog": self.close_log,
            "dive": self.close_dive,
            "sample": self._close_sample,
        }

    def check_attrs(self, element, attrs, known):
        super().check_attrs(element, attrs, tuple(known) + _IGNORED.get(element, ()))

    def _open_divelog(self, attrs: dict) -> None:
        self.check_attrs("divelog", attrs, ("program", "version"))
        self.open_log(program=attrs.get("program"), version=attrs.get("version"))

    def _open_container(self, attrs: dict) -> None:
        self.need_log("dives")

    def _open_dive(self, attrs: dict) -> None:
        self.check_dive_open()
        self.check_attrs("dive", attrs, ("number", "date", "time", "duration"))
        self.open_dive(
            num=self.optional("dive", attrs, "number", decode_uint),
            duration=self.optional("dive", attrs, "duration", decode_unit_duration),
            date=attrs.get("date"),
            clock=attrs.get("time"),
        )

    def _open_divecomputer(self, attrs: dict) -> None:
        dive = self.need_dive("divecomputer")
        self.check_attrs("divecomputer", attrs, ("diveid", "model", "dctype"))

        if attrs.get("diveid"):
            dive.fingerprint = attrs["diveid"]
        log = self.ctx.log
        if attrs.get("model") and log.model is None:
            log.model = attrs["model"]
        if "dctype" in attrs:
            mode = DCTYPES.get(attrs["dctype"])
            if mode is None:
                self.warn(f"{attrs['dctype']}: bad <divecomputer> dctype")
            else:
                dive.mode = mode

    def _open_cylinder(self, attrs: dict) -> None:
        dive = self.need_dive("cylinder")
        self.check_attrs("cylinder", attrs, (
            "o2", "n2", "he", "size", "workpressure", "start", "end", "description"))

        self.ctx.cylinders += 1
        num = self.ctx.cylinders
        gas = GasMix(num=num)
        for key in ("o2", "n2", "he"):
            value = self.optional("cylinder", attrs, key, decode_percent)
            if value is not None:
                setattr(gas, key, value)
        dive.gases.append(gas)

        dive.tanks.append(Tank(
            num=num,
            gasmix=num,
            volume=self.optional("cylinder", attrs, "size", decode_unit, " l"),
            workpressure=self.optional("cylinder", attrs, "workpressure", decode_unit, " bar"),
            beginpressure=self.optional("cylinder", attrs, "start", decode_unit, " bar"),
            endpressure=self.optional("cylinder", attrs, "end", decode_unit, " bar"),
        ))

    def _open_sample(self, attrs: dict) -> None:
        dive = self.need_dive("sample")
        if self.ctx.sample is not None:
            raise ElementError("nested <sample>")
        time = self.required("sample", attrs, "time", decode_unit_duration)
        sample = self.sample_at(dive, time)
        self.ctx.sample = sample

        for key, value in attrs.items():
            match = _PRESSURE_ATTR.match(key)
            if key == "pressure" or match:
                tank = int(match.group(1)) + 1 if match else 1
                reading = self.optional("sample", attrs, key, decode_unit, " bar")
                if reading is not None:
                    sample.pressures.append(Pressure(value=reading, tank=tank))
            elif key not in ("time", "depth", "temp", "rbt", "cns", "ndl",
                             "stoptime", "stopdepth", "in_deco"):
                self.warn(f"{key}: unknown <sample> attribute")

        depth = self.optional("sample", attrs, "depth", decode_unit, " m")
        if depth is not None:
            self.set_depth(dive, sample, depth)
        temp = self.optional("sample", attrs, "temp", decode_unit, " C", True)
        if temp is not None:
            self.set_temp(dive, sample, temp)
        rbt = self.optional("sample", attrs, "rbt", decode_unit_duration)
        if rbt is not None:
            sample.rbt = rbt
        cns = self.optional("sample", attrs, "cns", decode_percent)
        if cns is not None:
            sample.cns = cns * 100.0

        if dive.mode == DiveMode.FREEDIVE:
            return
        if attrs.get("in_deco") == "1" and "stopdepth" in attrs:
            sample.deco = Deco(
                type=DecoType.DECOSTOP,
                depth=self.optional("sample", attrs, "stopdepth", decode_unit, " m"),
                duration=self.optional("sample", attrs, "stoptime", decode_unit_duration),
            )
        elif "ndl" in attrs:
            ndl = self.optional("sample", attrs, "ndl", decode_unit_duration)
            if ndl is not None:
                sample.deco = Deco(type=DecoType.NDL, duration=ndl)

    def _close_sample(self) -> None:
        self.ctx.sample = None

    def _event_type(self, attrs: dict) -> EventType:
        if "type" in attrs:
            code = self.required("event", attrs, "type", decode_uint)
            try:
                return EventType.from_code(code)
            except ValueError:
                raise DecodeError(f"event code out of range: {code}") from None
        if "name" in attrs:
            return decode_enum(attrs["name"], EventType)
        raise MissingAttributeError("event", "type")

    def _open_event(self, attrs: dict) -> None:
        dive = self.need_dive("event")
        self.check_attrs("event", attrs, ("time", "type", "name", "flags", "value", "cylinder"))
        time = self.required("event", attrs, "time", decode_unit_duration)

        try:
            kind = self._event_type(attrs)
        except DecodeError as e:
            self.warn(f"unknown <event> type: {e}")
            return

        sample = self.sample_at(dive, time)
        sample.events.append(Event(
            type=kind,
            flags=self.optional("event", attrs, "flags", decode_uint) or 0,
        ))

        if kind in (EventType.GASCHANGE, EventType.GASCHANGE2) and "cylinder" in attrs:
            cylinder = self.optional("event", attrs, "cylinder", decode_uint)
            if cylinder is not None:
                sample.gaschange = cylinder + 1
