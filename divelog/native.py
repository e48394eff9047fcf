"""
Parser for the native dive-log dialect.

Document shape:

    <divelog program version diver vendor product model>
      <dives>
        <dive number duration date time mode>
          <fingerprint>hex</fingerprint>
          <gasmixes><gasmix num o2 n2 he/></gasmixes>
          <tanks><tank num gasmix volume workpressure .../></tanks>
          <samples>
            <sample time>
              <depth value/> <temp value/> <rbt value/> <cns value/>
              <pressure value tank/> <gaschange mix/>
              <event type duration flags/> <deco type depth duration/>
              <vendor type>hex</vendor>
            </sample>
          </samples>
        </dive>
      </dives>
    </divelog>
"""

from divelog.decoders import (
    decode_duration,
    decode_enum,
    decode_percent,
    decode_real,
    decode_uint,
)
from divelog.errors import DecodeError, ElementError, MissingAttributeError, NestingError
from divelog.handler import ElementHandler
from divelog.model import (
    Deco,
    DecoType,
    Dive,
    DiveMode,
    DiveStat,
    Event,
    EventType,
    GasMix,
    Pressure,
    Sample,
    Tank,
    Vendor,
)
from divelog.tokenizer import DEFAULT_CHUNK_SIZE


class NativeParser(ElementHandler):
    """Streaming parser for native dive logs."""

    def __init__(self, stat: DiveStat, chunk_size: int = DEFAULT_CHUNK_SIZE):
        super().__init__(stat, chunk_size=chunk_size)
        self.openers = {
            "divelog": self._open_divelog,
            "dives": self._open_dives,
            "dive": self._open_dive,
            "fingerprint": self._open_fingerprint,
            "gasmixes": self._container("gasmixes"),
            "gasmix": self._open_gasmix,
            "tanks": self._container("tanks"),
            "tank": self._open_tank,
            "samples": self._container("samples"),
            "sample": self._open_sample,
            "depth": self._open_depth,
            "temp": self._open_temp,
            "rbt": self._open_rbt,
            "cns": self._open_cns,
            "pressure": self._open_pressure,
            "gaschange": self._open_gaschange,
            "event": self._open_event,
            "deco": self._open_deco,
            "vendor": self._open_vendor,
        }
        self.closers = {
            "divelog": self.close_log,
            "dive": self.close_dive,
            "fingerprint": self._close_fingerprint,
            "sample": self._close_sample,
            "vendor": self._close_vendor,
        }

    def _dive_body(self, element: str) -> Dive:
        """The current dive, for elements that may not appear in a sample."""
        dive = self.need_dive(element)
        if self.ctx.sample is not None:
            raise NestingError(f"<{element}> in <sample>")
        return dive

    def _sample_field(self, element: str, name: str) -> Sample:
        """The current sample, if the field has not been set yet."""
        sample = self.need_sample(element)
        if getattr(sample, name) is not None:
            raise ElementError(f"<{element}> already set for this sample")
        return sample

    # -- divelog / dive ----------------------------------------------------

    def _open_divelog(self, attrs: dict) -> None:
        self.check_attrs("divelog", attrs, ("program", "version", "diver", "vendor", "product", "model"))
        self.open_log(
            ident=attrs.get("diver"),
            vendor=attrs.get("vendor"),
            product=attrs.get("product"),
            model=attrs.get("model"),
            program=attrs.get("program"),
            version=attrs.get("version"),
        )

    def _open_dives(self, attrs: dict) -> None:
        self.need_log("dives")

    def _open_dive(self, attrs: dict) -> None:
        self.check_dive_open()
        self.check_attrs("dive", attrs, ("number", "duration", "date", "time", "mode"))

        mode = None
        if "mode" in attrs:
            try:
                mode = decode_enum(attrs["mode"], DiveMode)
            except DecodeError:
                mode = None
            if mode in (None, DiveMode.NONE):
                self.warn(f"{attrs['mode']}: bad <dive> mode")
                mode = None

        self.open_dive(
            num=self.optional("dive", attrs, "number", decode_uint),
            duration=self.optional("dive", attrs, "duration", decode_duration),
            date=attrs.get("date"),
            clock=attrs.get("time"),
            mode=mode,
        )

    def _open_fingerprint(self, attrs: dict) -> None:
        self._dive_body("fingerprint")
        self.begin_text()

    def _close_fingerprint(self) -> None:
        text = self.end_text()
        if self.ctx.dive is not None:
            self.ctx.dive.fingerprint = text

    def _container(self, element: str):
        return lambda attrs: self._dive_body(element)

    # -- gas mixes and tanks -----------------------------------------------

    def _open_gasmix(self, attrs: dict) -> None:
        dive = self._dive_body("gasmix")
        self.check_attrs("gasmix", attrs, ("num", "o2", "n2", "he"))
        num = self.required("gasmix", attrs, "num", decode_uint)
        if dive.gas(num) is not None:
            raise ElementError(f"duplicate <gasmix> num: {num}")

        gas = GasMix(num=num)
        for key in ("o2", "n2", "he"):
            value = self.optional("gasmix", attrs, key, decode_percent)
            if value is not None:
                setattr(gas, key, value)
        dive.gases.append(gas)

    def _open_tank(self, attrs: dict) -> None:
        dive = self._dive_body("tank")
        self.check_attrs("tank", attrs, (
            "num", "gasmix", "volume", "workpressure", "beginpressure", "endpressure"))
        num = self.required("tank", attrs, "num", decode_uint)
        if dive.tank(num) is not None:
            raise ElementError(f"duplicate <tank> num: {num}")

        tank = Tank(num=num, gasmix=self.optional("tank", attrs, "gasmix", decode_uint))
        for key in ("volume", "workpressure", "beginpressure", "endpressure"):
            setattr(tank, key, self.optional("tank", attrs, key, decode_real))
        dive.tanks.append(tank)

    # -- samples -----------------------------------------------------------

    def _open_sample(self, attrs: dict) -> None:
        dive = self._dive_body("sample")
        self.check_attrs("sample", attrs, ("time",))
        time = self.required("sample", attrs, "time", decode_uint)
        self.ctx.sample = self.add_sample(dive, time)

    def _close_sample(self) -> None:
        self.ctx.sample = None

    def _open_depth(self, attrs: dict) -> None:
        if self.ctx.sample is None and self.ctx.dive is not None and "value" not in attrs:
            # Dive-level summary written by downloaders; samples carry the data.
            self.check_attrs("depth", attrs, ("max", "mean"))
            return
        sample = self._sample_field("depth", "depth")
        self.check_attrs("depth", attrs, ("value",))
        self.set_depth(self.ctx.dive, sample, self.required("depth", attrs, "value", decode_real))

    def _open_temp(self, attrs: dict) -> None:
        sample = self._sample_field("temp", "temp")
        self.check_attrs("temp", attrs, ("value",))
        temp = self.required("temp", attrs, "value", decode_real, True)
        self.set_temp(self.ctx.dive, sample, temp)

    def _open_rbt(self, attrs: dict) -> None:
        sample = self._sample_field("rbt", "rbt")
        self.check_attrs("rbt", attrs, ("value",))
        sample.rbt = self.required("rbt", attrs, "value", decode_uint)

    def _open_cns(self, attrs: dict) -> None:
        sample = self._sample_field("cns", "cns")
        self.check_attrs("cns", attrs, ("value",))
        sample.cns = self.required("cns", attrs, "value", decode_real)

    def _open_pressure(self, attrs: dict) -> None:
        sample = self.need_sample("pressure")
        self.check_attrs("pressure", attrs, ("value", "tank"))
        value = self.required("pressure", attrs, "value", decode_real)
        tank = self.required("pressure", attrs, "tank", decode_uint)
        sample.pressures.append(Pressure(value=value, tank=tank))

    def _open_gaschange(self, attrs: dict) -> None:
        sample = self._sample_field("gaschange", "gaschange")
        self.check_attrs("gaschange", attrs, ("mix",))
        sample.gaschange = self.required("gaschange", attrs, "mix", decode_uint)

    def _open_event(self, attrs: dict) -> None:
        sample = self.need_sample("event")
        self.check_attrs("event", attrs, ("type", "duration", "flags"))
        if "type" not in attrs:
            raise MissingAttributeError("event", "type")
        try:
            kind = decode_enum(attrs["type"], EventType)
        except DecodeError:
            self.warn(f"{attrs['type']}: unknown <event> type")
            return
        sample.events.append(Event(
            type=kind,
            duration=self.optional("event", attrs, "duration", decode_uint) or 0,
            flags=self.optional("event", attrs, "flags", decode_uint) or 0,
        ))

    def _open_deco(self, attrs: dict) -> None:
        sample = self._sample_field("deco", "deco")
        if self.ctx.dive.mode == DiveMode.FREEDIVE:
            self.debug("<deco> ignored in free-dive mode")
            return
        self.check_attrs("deco", attrs, ("type", "depth", "duration"))
        sample.deco = Deco(
            type=self.required("deco", attrs, "type", decode_enum, DecoType),
            depth=self.optional("deco", attrs, "depth", decode_real),
            duration=self.optional("deco", attrs, "duration", decode_uint),
        )

    def _open_vendor(self, attrs: dict) -> None:
        sample = self._sample_field("vendor", "vendor")
        self.check_attrs("vendor", attrs, ("type",))
        sample.vendor = Vendor(type=self.required("vendor", attrs, "type", decode_uint))
        self.begin_text()

    def _close_vendor(self) -> None:
        text = self.end_text()
        sample = self.ctx.sample
        if sample is not None and sample.vendor is not None:
            sample.vendor.data = "".join(text.split()) if text else None
