"""
In-memory dive data model.

A parse run accumulates everything into one DiveStat:
- dlogs: every <divelog> seen, in encounter order
- groups: every dive group, indexed by group id
- dives: the global dive queue, in date order, or relative to each group's
  start when split is set

Dives refer back to their divelog and group by index (log_id, group_id),
so the DiveStat lists remain the only owners of those records.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class DiveMode(Enum):
    NONE = "none"
    FREEDIVE = "freedive"
    GAUGE = "gauge"
    OC = "opencircuit"
    CC = "closedcircuit"


class GroupBy(Enum):
    NONE = "none"
    DATE = "date"
    DIVER = "diver"
    DIVELOG = "divelog"


class GroupSort(Enum):
    DATETIME = "datetime"
    MAXTIME = "maxtime"
    RMAXTIME = "rmaxtime"
    MAXDEPTH = "maxdepth"
    RMAXDEPTH = "rmaxdepth"


class DecoType(Enum):
    NDL = "ndl"
    SAFETYSTOP = "safetystop"
    DECOSTOP = "decostop"
    DEEPSTOP = "deepstop"


class EventType(Enum):
    """Sample events; list position is the numeric event code."""

    NONE = "none"
    DECOSTOP = "decostop"
    RBT = "rbt"
    ASCENT = "ascent"
    CEILING = "ceiling"
    WORKLOAD = "workload"
    TRANSMITTER = "transmitter"
    VIOLATION = "violation"
    BOOKMARK = "bookmark"
    SURFACE = "surface"
    SAFETYSTOP = "safetystop"
    GASCHANGE = "gaschange"
    SAFETYSTOP_VOLUNTARY = "safetystop_voluntary"
    SAFETYSTOP_MANDATORY = "safetystop_mandatory"
    DEEPSTOP = "deepstop"
    CEILING_SAFETYSTOP = "ceiling_safetystop"
    FLOOR = "floor"
    DIVETIME = "divetime"
    MAXDEPTH = "maxdepth"
    OLF = "olf"
    PO2 = "po2"
    AIRTIME = "airtime"
    RGBM = "rgbm"
    HEADING = "heading"
    TISSUELEVEL = "tissuelevel"
    GASCHANGE2 = "gaschange2"

    @classmethod
    def from_code(cls, code: int) -> "EventType":
        members = list(cls)
        if code < 0 or code >= len(members):
            raise ValueError(f"event code out of range: {code}")
        return members[code]


@dataclass
class DiveLog:
    """One source device or download session."""

    id: int = 0
    ident: Optional[str] = None  # diver
    vendor: Optional[str] = None
    product: Optional[str] = None
    model: Optional[str] = None
    program: Optional[str] = None
    version: Optional[str] = None
    file: Optional[str] = None
    line: int = 0

    def identity(self) -> tuple:
        return (self.vendor, self.product, self.model, self.ident)


@dataclass
class GasMix:
    """Breathing gas as fractions; 0.0 means unset."""

    num: int
    o2: float = 0.0
    n2: float = 0.0
    he: float = 0.0


@dataclass
class Tank:
    num: int
    gasmix: Optional[int] = None
    volume: Optional[float] = None
    workpressure: Optional[float] = None
    beginpressure: Optional[float] = None
    endpressure: Optional[float] = None


@dataclass
class Pressure:
    value: float  # bar
    tank: int


@dataclass
class Event:
    type: EventType
    duration: int = 0
    flags: int = 0


@dataclass
class Deco:
    type: DecoType
    depth: Optional[float] = None
    duration: Optional[int] = None


@dataclass
class Vendor:
    type: int
    data: Optional[str] = None  # hex payload


@dataclass
class Sample:
    """One instant of a dive profile; time is seconds from dive start."""

    time: int
    depth: Optional[float] = None
    temp: Optional[float] = None
    rbt: Optional[int] = None
    cns: Optional[float] = None
    gaschange: Optional[int] = None
    deco: Optional[Deco] = None
    vendor: Optional[Vendor] = None
    pressures: List[Pressure] = field(default_factory=list)
    events: List[Event] = field(default_factory=list)

    def has(self, name: str) -> bool:
        if name == "pressure":
            return bool(self.pressures)
        if name == "event":
            return bool(self.events)
        return getattr(self, name) is not None


@dataclass
class Dive:
    """
    One recorded dive.

    maxdepth, maxtime, maxtemp and mintemp accumulate over the samples as
    they stream in. datetime == 0 means the dive has no timestamp.
    """

    pid: int = 0
    num: Optional[int] = None
    datetime: int = 0
    date: Optional[str] = None
    duration: int = 0
    mode: DiveMode = DiveMode.OC
    fingerprint: Optional[str] = None
    maxdepth: float = 0.0
    maxtime: int = 0
    hastemp: bool = False
    maxtemp: float = 0.0
    mintemp: float = 0.0
    gases: List[GasMix] = field(default_factory=list)
    tanks: List[Tank] = field(default_factory=list)
    samples: List[Sample] = field(default_factory=list)
    log_id: int = 0
    group_id: Optional[int] = None
    line: int = 0

    @property
    def nsamps(self) -> int:
        return len(self.samples)

    def gas(self, num: int) -> Optional[GasMix]:
        for gas in self.gases:
            if gas.num == num:
                return gas
        return None

    def tank(self, num: int) -> Optional[Tank]:
        for tank in self.tanks:
            if tank.num == num:
                return tank
        return None

    def add_depth(self, depth: float) -> None:
        if depth > self.maxdepth:
            self.maxdepth = depth

    def add_temp(self, temp: float) -> None:
        if not self.hastemp:
            self.maxtemp = self.mintemp = temp
            self.hastemp = True
            return
        if temp > self.maxtemp:
            self.maxtemp = temp
        if temp < self.mintemp:
            self.mintemp = temp


@dataclass
class Group:
    """A bucket of dives sharing a grouping key."""

    id: int
    name: Optional[str] = None
    mintime: int = 0
    dives: List[Dive] = field(default_factory=list)

    @property
    def ndives(self) -> int:
        return len(self.dives)


@dataclass
class DiveStat:
    """The dive queue plus everything it references, for one parse run."""

    group_by: GroupBy = GroupBy.NONE
    group_sort: GroupSort = GroupSort.DATETIME
    split: bool = False  # queue by offset from group start
    dives: List[Dive] = field(default_factory=list)
    groups: List[Group] = field(default_factory=list)
    dlogs: List[DiveLog] = field(default_factory=list)
    timestamp_min: int = 0
    timestamp_max: int = 0
    maxdepth: float = 0.0
    pid: int = 0

    def next_pid(self) -> int:
        self.pid += 1
        return self.pid

    def log_of(self, dive: Dive) -> DiveLog:
        return self.dlogs[dive.log_id]

    def group_of(self, dive: Dive) -> Optional[Group]:
        if dive.group_id is None:
            return None
        return self.groups[dive.group_id]

    def add_timestamp(self, stamp: int) -> None:
        """Widen the global timestamp range; zero bounds mean unset."""
        if self.timestamp_min == 0 or stamp < self.timestamp_min:
            self.timestamp_min = stamp
        if self.timestamp_max == 0 or stamp > self.timestamp_max:
            self.timestamp_max = stamp

    def clear(self) -> None:
        """Release every dive, sample, group and divelog."""
        for dive in self.dives:
            dive.samples.clear()
            dive.gases.clear()
            dive.tanks.clear()
        for group in self.groups:
            group.dives.clear()
        self.dives.clear()
        self.groups.clear()
        self.dlogs.clear()
        self.timestamp_min = self.timestamp_max = 0
        self.maxdepth = 0.0
        self.pid = 0
