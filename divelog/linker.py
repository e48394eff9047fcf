"""Post-parse validation of gas-mix and tank references."""

import logging

from divelog.model import Dive, DiveStat, Tank

logger = logging.getLogger(__name__)


def _where(dive: Dive) -> str:
    return f"dive {dive.num if dive.num is not None else '-'} (#{dive.pid}, line {dive.line})"


def link_dive(dive: Dive) -> bool:
    """
    Check every cross reference inside one dive.

    Pressure readings naming an undeclared tank get a minimal tank record;
    that is not an error. Gas changes and tanks naming an undeclared gas mix
    are errors.

    Returns:
        True when every reference resolved
    """
    ok = True

    for sample in dive.samples:
        if sample.gaschange is not None and dive.gas(sample.gaschange) is None:
            logger.error(
                f"{_where(dive)}: sample at {sample.time}s: "
                f"gas change to undeclared mix {sample.gaschange}"
            )
            ok = False
        for reading in sample.pressures:
            if dive.tank(reading.tank) is not None:
                continue
            logger.debug(f"{_where(dive)}: synthesizing tank {reading.tank}")
            dive.tanks.append(Tank(num=reading.tank))
            dive.tanks.sort(key=lambda t: t.num)

    for tank in dive.tanks:
        if tank.gasmix is not None and dive.gas(tank.gasmix) is None:
            logger.error(f"{_where(dive)}: tank {tank.num}: undeclared mix {tank.gasmix}")
            ok = False

    return ok


def link_dives(stat: DiveStat) -> bool:
    """Link every dive in the queue; failures never remove dives."""
    ok = True
    for dive in stat.dives:
        if not link_dive(dive):
            ok = False
    return ok
