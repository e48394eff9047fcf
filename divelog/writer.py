"""
Serialize parsed dives back into the native dive-log dialect.

The write_* helpers emit one piece of the document each, so callers can
stream a document out dive by dive; dumps() builds a whole document in
memory. Whatever these helpers write parses back into the same dives.
"""

import io
import time
from typing import Optional, TextIO
from xml.sax.saxutils import escape, quoteattr

from divelog.model import Dive, DiveLog, DiveStat, Group, Sample

PROGRAM = "divelog"
VERSION = "0.1.0"


def _real(value: float) -> str:
    return repr(float(value))


def _percent(fraction: float) -> str:
    return repr(round(fraction * 100.0, 6))


def _attrs(**values) -> str:
    """Render the non-None keyword arguments as XML attributes."""
    return "".join(f" {key}={quoteattr(str(value))}"
                   for key, value in values.items() if value is not None)


def write_divelog_open(out: TextIO, log: Optional[DiveLog] = None,
                       ident: Optional[str] = None) -> None:
    """
    Write the XML declaration and the opening <divelog> tag.

    Args:
        out: Text stream to write to
        log: Divelog whose device fields are carried over, if any
        ident: Diver ident; overrides the one in log
    """
    diver = ident if ident is not None else (log.ident if log else None)
    out.write('<?xml version="1.0" encoding="UTF-8" ?>\n')
    out.write("<divelog" + _attrs(
        program=PROGRAM,
        version=VERSION,
        diver=diver,
        vendor=log.vendor if log else None,
        product=log.product if log else None,
        model=log.model if log else None,
    ) + ">\n")


def write_dives_open(out: TextIO) -> None:
    out.write("\t<dives>\n")


def write_dives_close(out: TextIO) -> None:
    out.write("\t</dives>\n")


def write_divelog_close(out: TextIO) -> None:
    out.write("</divelog>\n")


def write_sample(out: TextIO, sample: Sample) -> None:
    """Write one <sample> with its children in a fixed order."""
    out.write(f'\t\t\t\t<sample time="{sample.time}">\n')
    child = "\t\t\t\t\t"
    if sample.depth is not None:
        out.write(f'{child}<depth value="{_real(sample.depth)}" />\n')
    if sample.temp is not None:
        out.write(f'{child}<temp value="{_real(sample.temp)}" />\n')
    if sample.rbt is not None:
        out.write(f'{child}<rbt value="{sample.rbt}" />\n')
    if sample.cns is not None:
        out.write(f'{child}<cns value="{_real(sample.cns)}" />\n')
    for reading in sample.pressures:
        out.write(f'{child}<pressure value="{_real(reading.value)}" tank="{reading.tank}" />\n')
    if sample.gaschange is not None:
        out.write(f'{child}<gaschange mix="{sample.gaschange}" />\n')
    for event in sample.events:
        out.write(f"{child}<event" + _attrs(
            type=event.type.value,
            duration=event.duration or None,
            flags=event.flags or None,
        ) + " />\n")
    if sample.deco is not None:
        deco = sample.deco
        out.write(f"{child}<deco" + _attrs(
            type=deco.type.value,
            depth=_real(deco.depth) if deco.depth is not None else None,
            duration=deco.duration,
        ) + " />\n")
    if sample.vendor is not None:
        out.write(f'{child}<vendor type="{sample.vendor.type}">'
                  f"{escape(sample.vendor.data or '')}</vendor>\n")
    out.write("\t\t\t\t</sample>\n")


def write_dive(out: TextIO, dive: Dive) -> None:
    """
    Write one <dive> including its gas mixes, tanks and samples.

    An untimed dive keeps its literal date, so date grouping survives a
    round trip.
    """
    date, clock = dive.date, None
    if dive.datetime:
        tm = time.localtime(dive.datetime)
        date = time.strftime("%Y-%m-%d", tm)
        clock = time.strftime("%H:%M:%S", tm)

    out.write("\t\t<dive" + _attrs(
        number=dive.num,
        date=date,
        time=clock,
        duration=dive.duration or None,
        mode=dive.mode.value,
    ) + ">\n")

    if dive.fingerprint:
        out.write(f"\t\t\t<fingerprint>{escape(dive.fingerprint)}</fingerprint>\n")

    if dive.gases:
        out.write("\t\t\t<gasmixes>\n")
        for gas in dive.gases:
            out.write("\t\t\t\t<gasmix" + _attrs(
                num=gas.num,
                o2=_percent(gas.o2) if gas.o2 else None,
                n2=_percent(gas.n2) if gas.n2 else None,
                he=_percent(gas.he) if gas.he else None,
            ) + " />\n")
        out.write("\t\t\t</gasmixes>\n")

    if dive.tanks:
        out.write("\t\t\t<tanks>\n")
        for tank in dive.tanks:
            values = {key: _real(getattr(tank, key))
                      for key in ("volume", "workpressure", "beginpressure", "endpressure")
                      if getattr(tank, key) is not None}
            out.write("\t\t\t\t<tank" + _attrs(num=tank.num, gasmix=tank.gasmix, **values) + " />\n")
        out.write("\t\t\t</tanks>\n")

    out.write("\t\t\t<samples>\n")
    for sample in dive.samples:
        write_sample(out, sample)
    out.write("\t\t\t</samples>\n")
    out.write("\t\t</dive>\n")


def write_group(out: TextIO, group: Group) -> None:
    """Write every dive of a group in group order."""
    for dive in group.dives:
        write_dive(out, dive)


def dumps(stat: DiveStat, log: Optional[DiveLog] = None,
          ident: Optional[str] = None) -> str:
    """
    Serialize every dive in the queue as one native document.

    Args:
        stat: Parsed dives
        log: Divelog for the header; defaults to the first one parsed
        ident: Diver ident overriding the header's

    Returns:
        The document text
    """
    if log is None and stat.dlogs:
        log = stat.dlogs[0]
    out = io.StringIO()
    write_divelog_open(out, log, ident=ident)
    write_dives_open(out)
    for dive in stat.dives:
        write_dive(out, dive)
    write_dives_close(out)
    write_divelog_close(out)
    return out.getvalue()
