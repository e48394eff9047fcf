"""
Streaming parser for XML dive logs.

This package provides tools for:
- Parsing native and Subsurface dive logs into dives, samples and groups
- Grouping and ordering dives across many input files
- Checking gas-mix and tank references after parsing
- Writing parsed dives back out as native dive logs
"""

from divelog.errors import DecodeError, DiveLogError, ElementError, MissingAttributeError, NestingError
from divelog.linker import link_dive, link_dives
from divelog.model import (
    Deco,
    DecoType,
    Dive,
    DiveLog,
    DiveMode,
    DiveStat,
    Event,
    EventType,
    GasMix,
    Group,
    GroupBy,
    GroupSort,
    Pressure,
    Sample,
    Tank,
    Vendor,
)
from divelog.native import NativeParser
from divelog.subsurface import SubsurfaceParser
from divelog.tokenizer import DEFAULT_CHUNK_SIZE
from divelog.writer import (
    dumps,
    write_dive,
    write_divelog_close,
    write_divelog_open,
    write_dives_close,
    write_dives_open,
    write_group,
    write_sample,
)

DIALECTS = {
    "native": NativeParser,
    "subsurface": SubsurfaceParser,
}


def parse_file(path: str, stat: DiveStat, dialect: str = "native",
               chunk_size: int = DEFAULT_CHUNK_SIZE) -> bool:
    """
    Parse one file (or "-" for standard input) into a DiveStat.

    Returns:
        False when the file could not be read or was not well-formed
    """
    try:
        parser_cls = DIALECTS[dialect]
    except KeyError:
        raise ValueError(f"unknown dialect: {dialect}") from None
    return parser_cls(stat, chunk_size=chunk_size).parse_file(path)


__all__ = [
    "DecodeError",
    "DiveLogError",
    "ElementError",
    "MissingAttributeError",
    "NestingError",
    "link_dive",
    "link_dives",
    "Deco",
    "DecoType",
    "Dive",
    "DiveLog",
    "DiveMode",
    "DiveStat",
    "Event",
    "EventType",
    "GasMix",
    "Group",
    "GroupBy",
    "GroupSort",
    "Pressure",
    "Sample",
    "Tank",
    "Vendor",
    "NativeParser",
    "SubsurfaceParser",
    "parse_file",
    "dumps",
    "write_dive",
    "write_divelog_close",
    "write_divelog_open",
    "write_dives_close",
    "write_dives_open",
    "write_group",
    "write_sample",
]
