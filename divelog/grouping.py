"""
Group assignment and ordering of dives.

Dives are linked into their group and into the global queue as soon as the
<dive> element opens. Group orders keyed on max time or max depth cannot be
known until the samples have streamed in, so those dives are appended
provisionally and moved into place by group_readd() when the dive closes.
"""

import bisect
import logging
from typing import Optional

from divelog.model import Dive, DiveLog, DiveStat, Group, GroupBy, GroupSort

logger = logging.getLogger(__name__)


def _sort_key(sort: GroupSort, dive: Dive):
    if sort in (GroupSort.MAXTIME, GroupSort.RMAXTIME):
        return dive.maxtime
    return dive.maxdepth


def group_alloc(stat: DiveStat, name: Optional[str] = None) -> Group:
    """Create a new, empty group with the next id."""
    group = Group(id=len(stat.groups), name=name)
    stat.groups.append(group)
    logger.debug(f"new group {group.id}: {name or '(unnamed)'}")
    return group


def _find_divelog_group(stat: DiveStat, log: DiveLog) -> Optional[Group]:
    """Find the group whose representative divelog has the same identity."""
    for group in stat.groups:
        if not group.dives:
            continue
        first = stat.log_of(group.dives[0])
        if first is log or first.identity() == log.identity():
            return group
    return None


def group_lookup(stat: DiveStat, dive: Dive, log: DiveLog) -> Group:
    """
    Return the group a dive belongs to, allocating one when needed.

    Args:
        stat: Statistics collection owning the groups
        dive: Dive being opened (its date attribute is used for DATE)
        log: Divelog the dive was declared in

    Returns:
        Existing or newly allocated group
    """
    if stat.group_by == GroupBy.NONE:
        return stat.groups[0] if stat.groups else group_alloc(stat)

    if stat.group_by == GroupBy.DIVELOG:
        group = _find_divelog_group(stat, log)
        return group if group is not None else group_alloc(stat)

    key = dive.date if stat.group_by == GroupBy.DATE else log.ident
    for group in stat.groups:
        if group.name == key:
            return group
    return group_alloc(stat, key)


def group_add(stat: DiveStat, group: Group, dive: Dive) -> None:
    """
    Link a freshly opened dive into its group.

    Chronological groups insert in place: before the first member that is
    untimed or strictly later, so equal stamps keep encounter order and
    untimed dives stay last. Every other order appends until group_readd()
    runs.
    """
    dive.group_id = group.id

    if dive.datetime and (group.mintime == 0 or dive.datetime < group.mintime):
        group.mintime = dive.datetime

    if stat.group_sort != GroupSort.DATETIME or dive.datetime == 0:
        group.dives.append(dive)
        return

    for i, member in enumerate(group.dives):
        if member.datetime == 0 or member.datetime > dive.datetime:
            group.dives.insert(i, dive)
            return
    group.dives.append(dive)


def group_readd(stat: DiveStat, dive: Dive) -> None:
    """Move a closed dive to its final position in a non-chronological group."""
    if stat.group_sort == GroupSort.DATETIME:
        return
    group = stat.group_of(dive)
    if group is None:
        return

    group.dives.remove(dive)
    key = _sort_key(stat.group_sort, dive)
    descending = stat.group_sort in (GroupSort.RMAXTIME, GroupSort.RMAXDEPTH)

    for i, member in enumerate(group.dives):
        other = _sort_key(stat.group_sort, member)
        if (other < key) if descending else (other > key):
            group.dives.insert(i, dive)
            return
    group.dives.append(dive)


def queue_key(stat: DiveStat, dive: Dive) -> tuple:
    """Order within the global queue: date, or time since the group's first dive."""
    if dive.datetime == 0:
        return (1, 0)
    if not stat.split:
        return (0, dive.datetime)
    return (0, dive.datetime - stat.groups[dive.group_id].mintime)


def queue_insert(stat: DiveStat, dive: Dive, resort: bool = False) -> None:
    """
    Insert a dive into the global queue.

    Timed dives are ordered by date. In split mode they are ordered by their
    offset from their group's start instead, which interleaves overlapping
    groups. Untimed dives trail in encounter order. When the new dive moved
    its group's start earlier, the offsets of the other members changed and
    the queue is re-sorted (stably) first.
    """
    if resort:
        stat.dives.sort(key=lambda d: queue_key(stat, d))
    bisect.insort_right(stat.dives, dive, key=lambda d: queue_key(stat, d))


def assign(stat: DiveStat, dive: Dive, log: DiveLog) -> Group:
    """Group a newly opened dive and place it in the global queue."""
    group = group_lookup(stat, dive, log)
    previous = group.mintime
    group_add(stat, group, dive)
    moved = group.mintime != previous and previous != 0
    queue_insert(stat, dive, resort=stat.split and moved)
    return group
