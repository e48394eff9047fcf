"""
Element dispatch and parse state shared by both dive-log dialects.

A handler receives element open/close callbacks from the tokenizer and
mutates the DiveStat it was created for. All per-source state lives in a
ParseContext that is replaced whenever the handler is attached to a new
source, while the DiveStat (and with it dive ids, group ids and timestamp
extrema) carries over from source to source.

Errors follow three levels:
- a bad optional attribute is logged and the field left unset
- an ElementError drops the element and everything nested in it
- a syntax error in the XML itself stops the source (see tokenizer.py)
"""

import bisect
import io
import logging
from dataclasses import dataclass
from operator import attrgetter
from typing import Callable, Dict, Iterable, Optional

from divelog import grouping
from divelog.decoders import decode_datetime
from divelog.errors import DecodeError, ElementError, MissingAttributeError, NestingError
from divelog.model import Dive, DiveLog, DiveMode, DiveStat, Sample
from divelog.tokenizer import DEFAULT_CHUNK_SIZE, XMLSource

logger = logging.getLogger(__name__)


@dataclass
class ParseContext:
    """What is currently open while one source is being parsed."""

    file: str
    log: Optional[DiveLog] = None
    dive: Optional[Dive] = None
    sample: Optional[Sample] = None
    cylinders: int = 0  # cylinders declared in the current dive
    skip: int = 0  # depth inside a rejected element


class ElementHandler:
    """
    Base class for dialect handlers.

    Subclasses register element callbacks in self.openers (called with the
    attribute dict) and self.closers (called without arguments).
    """

    def __init__(self, stat: DiveStat, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.stat = stat
        self.chunk_size = chunk_size
        self.source: Optional[XMLSource] = None
        self.ctx = ParseContext(file="")
        self.openers: Dict[str, Callable[[dict], None]] = {}
        self.closers: Dict[str, Callable[[], None]] = {}

    def attach(self, source: XMLSource) -> None:
        """Start a new source with a fresh parse context."""
        self.source = source
        self.ctx = ParseContext(file=source.name)

    def finish(self) -> None:
        """
        End the current source.

        A dive left open by a truncated or broken document still gets its
        final group position, so the groups stay ordered.
        """
        if self.ctx.dive is not None:
            self.warn("unterminated <dive>")
            self.close_dive()

    # -- diagnostics -------------------------------------------------------

    def where(self) -> str:
        line, column = self.source.position() if self.source else (0, 0)
        return f"{self.ctx.file}:{line}:{column}"

    def debug(self, msg: str) -> None:
        logger.debug(f"{self.where()}: {msg}")

    def warn(self, msg: str) -> None:
        logger.warning(f"{self.where()}: warning: {msg}")

    def error(self, msg: str) -> None:
        logger.error(f"{self.where()}: error: {msg}")

    # -- dispatch ----------------------------------------------------------

    def start(self, name: str, attrs: dict) -> None:
        ctx = self.ctx
        if ctx.skip:
            ctx.skip += 1
            return
        opener = self.openers.get(name)
        if opener is None:
            self.debug(f"{name}: unknown element")
            return
        try:
            opener(attrs)
        except ElementError as e:
            self.error(str(e))
            ctx.skip = 1

    def end(self, name: str) -> None:
        ctx = self.ctx
        if ctx.skip:
            ctx.skip -= 1
            return
        closer = self.closers.get(name)
        if closer is not None:
            closer()

    # -- attribute helpers -------------------------------------------------

    def check_attrs(self, element: str, attrs: dict, known: Iterable[str]) -> None:
        known = set(known)
        for key in attrs:
            if key not in known:
                self.warn(f"{key}: unknown <{element}> attribute")

    def optional(self, element: str, attrs: dict, key: str, decoder, *args):
        """Decode an optional attribute; failures are logged and yield None."""
        value = attrs.get(key)
        if value is None:
            return None
        try:
            return decoder(value, *args)
        except DecodeError as e:
            self.error(f"bad <{element}> {key}: {e}")
            return None

    def required(self, element: str, attrs: dict, key: str, decoder, *args):
        """Decode a required attribute; absence or failure rejects the element."""
        value = attrs.get(key)
        if value is None:
            raise MissingAttributeError(element, key)
        try:
            return decoder(value, *args)
        except DecodeError as e:
            raise ElementError(f"bad <{element}> {key}: {e}") from None

    # -- structure checks --------------------------------------------------

    def need_log(self, element: str) -> DiveLog:
        if self.ctx.log is None:
            raise NestingError(f"<{element}> not in <divelog>")
        return self.ctx.log

    def need_dive(self, element: str) -> Dive:
        if self.ctx.dive is None:
            raise NestingError(f"<{element}> not in <dive>")
        return self.ctx.dive

    def need_sample(self, element: str) -> Sample:
        if self.ctx.sample is None:
            raise NestingError(f"<{element}> not in <sample>")
        return self.ctx.sample

    # -- shared element semantics ------------------------------------------

    def open_log(self, **fields) -> DiveLog:
        if self.ctx.log is not None:
            raise NestingError("nested <divelog>")
        line, _ = self.source.position()
        log = DiveLog(id=len(self.stat.dlogs), file=self.ctx.file, line=line, **fields)
        self.stat.dlogs.append(log)
        self.ctx.log = log
        self.debug("new divelog")
        return log

    def close_log(self) -> None:
        self.ctx.log = None

    def check_dive_open(self) -> DiveLog:
        if self.ctx.dive is not None:
            raise NestingError("nested <dive>")
        return self.need_log("dive")

    def open_dive(self, num: Optional[int] = None, duration: Optional[int] = None,
                  date: Optional[str] = None, clock: Optional[str] = None,
                  mode: Optional[DiveMode] = None) -> Dive:
        """
        Create a dive, group it and insert it into the dive queue.

        A date/time that fails to decode leaves the dive untimed.
        """
        log = self.check_dive_open()
        line, _ = self.source.position()
        dive = Dive(pid=self.stat.next_pid(), num=num, date=date, log_id=log.id, line=line)
        if duration is not None:
            dive.duration = duration
        if mode is not None:
            dive.mode = mode

        if date is not None and clock is not None:
            try:
                dive.datetime = decode_datetime(date, clock)
            except DecodeError as e:
                self.error(f"bad <dive> date/time: {e}")
            else:
                self.stat.add_timestamp(dive.datetime)

        group = grouping.assign(self.stat, dive, log)
        self.ctx.dive = dive
        self.ctx.cylinders = 0
        self.debug(f"new dive: {dive.num if dive.num is not None else '-'} "
                   f"(#{dive.pid}, group {group.id})")
        return dive

    def close_dive(self) -> None:
        dive = self.ctx.dive
        if dive is not None:
            grouping.group_readd(self.stat, dive)
        self.ctx.dive = None
        self.ctx.sample = None

    def add_sample(self, dive: Dive, time: int) -> Sample:
        """Insert a sample in time order and widen the dive's time extrema."""
        sample = Sample(time=time)
        bisect.insort_right(dive.samples, sample, key=attrgetter("time"))
        if time > dive.maxtime:
            dive.maxtime = time
        if dive.datetime and dive.datetime + time > self.stat.timestamp_max:
            self.stat.timestamp_max = dive.datetime + time
        self.debug(f"new sample at {time}")
        return sample

    def sample_at(self, dive: Dive, time: int) -> Sample:
        """Return the dive's sample at a time, creating it if absent."""
        index = bisect.bisect_left(dive.samples, time, key=attrgetter("time"))
        if index < len(dive.samples) and dive.samples[index].time == time:
            return dive.samples[index]
        return self.add_sample(dive, time)

    def set_depth(self, dive: Dive, sample: Sample, depth: float) -> None:
        sample.depth = depth
        dive.add_depth(depth)
        if depth > self.stat.maxdepth:
            self.stat.maxdepth = depth

    def set_temp(self, dive: Dive, sample: Sample, temp: float) -> None:
        sample.temp = temp
        dive.add_temp(temp)

    def begin_text(self) -> None:
        self.source.begin_text()

    def end_text(self) -> Optional[str]:
        """Finish a text element; whitespace-only content yields None."""
        text = self.source.end_text().strip()
        return text or None

    # -- entry points ------------------------------------------------------

    def parse_file(self, path: str) -> bool:
        """
        Parse a file into the DiveStat.

        Args:
            path: File path, or "-" for standard input

        Returns:
            False when the source could not be read or was not well-formed;
            dives parsed before the failure stay in the DiveStat
        """
        return XMLSource(path, self, chunk_size=self.chunk_size).run()

    def parse_string(self, content: str, name: str = "<string>") -> bool:
        """Parse XML content held in memory."""
        source = XMLSource(name, self, chunk_size=self.chunk_size)
        return source.feed(io.BytesIO(content.encode("utf-8")))
