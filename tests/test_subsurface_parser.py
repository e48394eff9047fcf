"""
Tests for the Subsurface dialect parser.
"""

import logging
import time
from datetime import datetime
from pathlib import Path

import pytest

from divelog import parse_file
from divelog.linker import link_dives
from divelog.model import DecoType, DiveMode, DiveStat, EventType
from divelog.subsurface import SubsurfaceParser

DATA_DIR = Path(__file__).parent / "data"
SSRF = (DATA_DIR / "log.ssrf").read_text()


def _parse(content: str) -> tuple[DiveStat, bool]:
    stat = DiveStat()
    ok = SubsurfaceParser(stat).parse_string(content, name="log.ssrf")
    return stat, ok


class TestSubsurfaceDive:
    """Test mapping of Subsurface dives onto the dive model."""

    def test_divelog(self):
        """Verify one divelog whose model comes from the first divecomputer."""
        stat, ok = _parse(SSRF)
        assert ok
        assert len(stat.dlogs) == 1
        assert stat.dlogs[0].program == "subsurface"
        assert stat.dlogs[0].version == "3"
        assert stat.dlogs[0].model == "Shearwater Perdix"

    def test_dive_header(self):
        """Verify number, duration, timestamp, fingerprint and mode."""
        stat, _ = _parse(SSRF)
        assert [d.num for d in stat.dives] == [7, 8]
        dive = stat.dives[0]
        assert dive.duration == 2730
        assert dive.datetime == int(time.mktime(datetime(2020, 6, 1, 10, 0, 0).timetuple()))
        assert dive.fingerprint == "abcd1234"
        assert dive.mode is DiveMode.CC
        assert stat.dives[1].mode is DiveMode.FREEDIVE
        assert stat.dives[1].fingerprint is None

    def test_cylinders(self):
        """Verify each cylinder declares a gas mix and a tank of the same number."""
        dive = _parse(SSRF)[0].dives[0]
        assert [g.num for g in dive.gases] == [1, 2]
        assert dive.gas(1).o2 == pytest.approx(0.32)
        assert dive.gas(2).o2 == pytest.approx(0.5)
        assert [(t.num, t.gasmix) for t in dive.tanks] == [(1, 1), (2, 2)]
        tank = dive.tank(1)
        assert tank.volume == pytest.approx(12.0)
        assert tank.workpressure == pytest.approx(232.0)
        assert tank.beginpressure == pytest.approx(200.0)
        assert tank.endpressure == pytest.approx(50.0)
        assert dive.tank(2).volume is None

    def test_cylinder_count_resets_per_dive(self):
        """Verify cylinder numbering starts over in each dive."""
        stat, _ = _parse(SSRF.replace(
            "<divecomputer model='Other'", "<cylinder o2='21%' /><divecomputer model='Other'"))
        assert [g.num for g in stat.dives[1].gases] == [1]

    def test_samples(self):
        """Verify unit-suffixed sample attributes."""
        dive = _parse(SSRF)[0].dives[0]
        assert [s.time for s in dive.samples] == [10, 60, 90, 120, 180]

        first = dive.samples[0]
        assert first.depth == pytest.approx(5.0)
        assert first.temp == pytest.approx(18.5)
        assert [(p.tank, p.value) for p in first.pressures] == [(1, 200.0)]

        second = dive.samples[1]
        assert [(p.tank, p.value) for p in second.pressures] == [(2, 180.0)]
        assert second.deco.type is DecoType.NDL
        assert second.deco.duration == 600
        assert second.cns == pytest.approx(5.0)

        stop = dive.samples[3]
        assert stop.deco.type is DecoType.DECOSTOP
        assert stop.deco.depth == pytest.approx(6.0)
        assert stop.deco.duration == 60

        assert dive.samples[4].rbt == 1200

    def test_extrema(self):
        """Verify extrema accumulate from the samples."""
        stat, _ = _parse(SSRF)
        dive = stat.dives[0]
        assert dive.maxdepth == pytest.approx(30.0)
        assert dive.maxtime == 180
        assert dive.maxtemp == pytest.approx(18.5)
        assert dive.mintemp == pytest.approx(16.0)
        assert stat.maxdepth == pytest.approx(30.0)

    def test_gaschange_event(self):
        """Verify a gas change event lands on a sample at its time."""
        dive = _parse(SSRF)[0].dives[0]
        sample = dive.samples[2]
        assert sample.time == 90
        assert sample.gaschange == 2
        assert [e.type for e in sample.events] == [EventType.GASCHANGE2]
        assert sample.events[0].flags == 1
        assert sample.depth is None

    def test_links_cleanly(self):
        """Verify cylinder tanks and gas changes resolve."""
        stat, _ = _parse(SSRF)
        assert link_dives(stat)

    def test_freedive_ignores_deco(self):
        """Verify no-deco limits are ignored for free dives."""
        stat, _ = _parse(SSRF)
        assert stat.dives[1].samples[0].deco is None


class TestSubsurfaceEvents:
    """Test event type resolution."""

    def _events(self, event: str):
        stat, _ = _parse(f"""<divelog><dives><dive><divecomputer>
            <sample time='1:00 min' depth='3.0 m' />
            {event}
            </divecomputer></dive></dives></divelog>""")
        return stat.dives[0].samples[0].events

    def test_by_name(self):
        """Verify the event name is used when no numeric type is given."""
        events = self._events("<event time='1:00 min' name='bookmark' />")
        assert [e.type for e in events] == [EventType.BOOKMARK]

    def test_code_out_of_range(self, caplog):
        """Verify an unknown event code is dropped with a warning."""
        with caplog.at_level(logging.WARNING):
            events = self._events("<event time='1:00 min' type='99' />")
        assert events == []
        assert "unknown <event> type" in caplog.text

    def test_unknown_name(self, caplog):
        """Verify an unknown event name is dropped with a warning."""
        with caplog.at_level(logging.WARNING):
            events = self._events("<event time='1:00 min' name='heading change' />")
        assert events == []
        assert "unknown <event> type" in caplog.text

    def test_missing_type_and_name(self, caplog):
        """Verify an event with neither type nor name is rejected."""
        with caplog.at_level(logging.ERROR):
            events = self._events("<event time='1:00 min' />")
        assert events == []
        assert "missing <event> attribute: type" in caplog.text


class TestSubsurfaceErrors:
    """Test recovery from bad Subsurface content."""

    def test_bad_depth_keeps_sample(self, caplog):
        """Verify a depth without unit is logged and the sample kept."""
        with caplog.at_level(logging.ERROR):
            stat, _ = _parse("""<divelog><dives><dive><divecomputer>
                <sample time='0:30 min' depth='12.0' temp='20.0 C' />
                </divecomputer></dive></dives></divelog>""")
        sample = stat.dives[0].samples[0]
        assert sample.depth is None
        assert sample.temp == pytest.approx(20.0)
        assert "bad <sample> depth" in caplog.text

    def test_sample_outside_dive(self, caplog):
        """Verify a sample outside a dive is rejected."""
        with caplog.at_level(logging.ERROR):
            stat, _ = _parse("<divelog><dives><sample time='0:30 min' /></dives></divelog>")
        assert stat.dives == []
        assert "<sample> not in <dive>" in caplog.text

    def test_bad_dctype(self, caplog):
        """Verify an unknown dctype warns and keeps open circuit."""
        with caplog.at_level(logging.WARNING):
            stat, _ = _parse("<divelog><dives><dive><divecomputer dctype='Jetpack' /></dive></dives></divelog>")
        assert stat.dives[0].mode is DiveMode.OC
        assert "Jetpack: bad <divecomputer> dctype" in caplog.text

    def test_parse_file_dialect(self, tmp_path):
        """Verify the convenience wrapper selects the Subsurface dialect."""
        path = tmp_path / "log.ssrf"
        path.write_text(SSRF)
        stat = DiveStat()
        assert parse_file(str(path), stat, dialect="subsurface")
        assert len(stat.dives) == 2
