"""
Per-dive and per-group summary numbers for parsed dive logs.
"""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from divelog.model import Dive, DiveStat, Group


@dataclass
class GroupSummary:
    """Aggregate figures over the dives of one group."""

    group_id: int
    name: Optional[str]
    ndives: int
    maxdepth_min: float = 0.0
    maxdepth_mean: float = 0.0
    maxdepth_max: float = 0.0
    maxtime_min: float = 0.0
    maxtime_mean: float = 0.0
    maxtime_max: float = 0.0


def mean_temp(dive: Dive) -> Optional[float]:
    """Mean of the dive's sample temperatures, or None without any."""
    temps = np.array([s.temp for s in dive.samples if s.temp is not None], dtype=float)
    if temps.size == 0:
        return None
    return float(np.mean(temps))


def summarize_group(group: Group) -> GroupSummary:
    summary = GroupSummary(group_id=group.id, name=group.name, ndives=group.ndives)
    if not group.dives:
        return summary

    depths = np.array([d.maxdepth for d in group.dives], dtype=float)
    times = np.array([d.maxtime for d in group.dives], dtype=float)
    summary.maxdepth_min = float(np.min(depths))
    summary.maxdepth_mean = float(np.mean(depths))
    summary.maxdepth_max = float(np.max(depths))
    summary.maxtime_min = float(np.min(times))
    summary.maxtime_mean = float(np.mean(times))
    summary.maxtime_max = float(np.max(times))
    return summary


def summarize(stat: DiveStat) -> List[GroupSummary]:
    """Summaries for every group, in group id order."""
    return [summarize_group(group) for group in stat.groups]
