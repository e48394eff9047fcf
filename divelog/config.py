"""
Run configuration: grouping policy, group order, queue mode and read size.

Settings come from an optional YAML file (divelog.yaml at the repository
root unless another path is given); command-line values override it.
"""

import os

import yaml

from .decoders import decode_enum
from .errors import DecodeError
from .model import GroupBy, GroupSort
from .tokenizer import DEFAULT_CHUNK_SIZE


def _enum(value, enum_cls, key):
    if isinstance(value, enum_cls):
        return value
    try:
        return decode_enum(str(value), enum_cls)
    except DecodeError:
        choices = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"{key}: expected one of {choices}, got {value!r}") from None


def load_effective_config(
    config_path: str = None,
    group: str = None,
    sort: str = None,
    chunk_size: int = None,
    verbose: bool = None,
    split: bool = None,
) -> dict:
    """Load configuration from divelog.yaml with optional CLI overrides.

    Returns a dict with resolved settings:
        group:         GroupBy
        sort:          GroupSort
        chunk_size:    int
        verbose:       bool
        split:         bool (queue dives by offset from their group start)
        config_path:   str (resolved path)
        group_source:  'cli' | 'config' | 'default'

    Raises:
        ValueError: on an unknown group or sort name, or a chunk size below 1
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "divelog.yaml"
        )

    # Defaults
    group_by = GroupBy.NONE
    group_sort = GroupSort.DATETIME
    size = DEFAULT_CHUNK_SIZE
    verbose_flag = False
    split_flag = False
    group_source = "default"

    if os.path.exists(config_path):
        with open(config_path) as f:
            config = yaml.safe_load(f) or {}

        if "group" in config:
            group_by = _enum(config["group"], GroupBy, "group")
            group_source = "config"
        group_sort = _enum(config.get("sort", group_sort), GroupSort, "sort")
        size = int(config.get("chunk_size", size))
        verbose_flag = bool(config.get("verbose", verbose_flag))
        split_flag = bool(config.get("split", split_flag))

    if group is not None:
        group_by = _enum(group, GroupBy, "group")
        group_source = "cli"
    if sort is not None:
        group_sort = _enum(sort, GroupSort, "sort")
    if chunk_size is not None:
        size = int(chunk_size)
    if verbose:
        verbose_flag = True
    if split:
        split_flag = True

    if size < 1:
        raise ValueError(f"chunk_size: must be positive, got {size}")

    return {
        "group": group_by,
        "sort": group_sort,
        "chunk_size": size,
        "verbose": verbose_flag,
        "split": split_flag,
        "config_path": config_path,
        "group_source": group_source,
    }
