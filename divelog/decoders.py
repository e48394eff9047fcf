"""Decode attribute strings into typed values."""

import math
import re
import sys
import time
from datetime import datetime
from typing import Type, TypeVar

from divelog.errors import DecodeError

E = TypeVar("E")

# Decoded reals at or below this magnitude are taken as zero.
EPSILON = 1e-6

_UINT = re.compile(r"^[0-9]+$")
_DURATION = re.compile(r"^([0-9]+):([0-9]{2})$")
_DATE = re.compile(r"^([0-9]{4})-([0-9]{2})-([0-9]{2})$")
_TIME = re.compile(r"^([0-9]{2}):([0-9]{2}):([0-9]{2})$")


def decode_uint(value: str, maximum: int = sys.maxsize) -> int:
    """
    Decode a base-10 unsigned integer.

    Args:
        value: Attribute string
        maximum: Largest accepted value

    Returns:
        Integer in [0, maximum]
    """
    if not _UINT.match(value):
        raise DecodeError(f"not a number: {value!r}")
    result = int(value)
    if result > maximum:
        raise DecodeError(f"out of range: {value!r}")
    return result


def decode_real(value: str, signed: bool = False) -> float:
    """
    Decode a finite real number.

    Negative values are rejected unless signed is set. Values within
    EPSILON of zero come back as exactly 0.0.
    """
    try:
        result = float(value)
    except ValueError:
        raise DecodeError(f"not a number: {value!r}") from None
    if not math.isfinite(result):
        raise DecodeError(f"out of range: {value!r}")
    if abs(result) <= EPSILON:
        return 0.0
    if result < 0.0 and not signed:
        raise DecodeError(f"negative value: {value!r}")
    return result


def decode_duration(value: str) -> int:
    """
    Decode a duration into seconds.

    Supports formats:
    - "mm:ss" (any number of minute digits, two second digits)
    - Plain integer seconds
    """
    match = _DURATION.match(value)
    if match is None:
        return decode_uint(value)
    minutes, seconds = int(match.group(1)), int(match.group(2))
    if seconds > 59:
        raise DecodeError(f"bad seconds: {value!r}")
    return minutes * 60 + seconds


def decode_percent(value: str) -> float:
    """
    Convert a percentage string to a fraction.

    Supports "32%", "32.0%" and "32.0"; the value must lie within 0-100.
    """
    text = value[:-1] if value.endswith("%") else value
    result = decode_real(text)
    if result > 100.0:
        raise DecodeError(f"percentage out of range: {value!r}")
    return result / 100.0


def decode_unit(value: str, suffix: str, signed: bool = False) -> float:
    """
    Decode a quantity carrying a unit suffix, e.g. "12.3 m" or "18.0 C".

    A missing suffix is a failure, as is a non-numeric remainder.
    """
    if len(value) <= len(suffix) or not value.endswith(suffix):
        raise DecodeError(f"expected {suffix.strip()!r} suffix: {value!r}")
    return decode_real(value[:-len(suffix)], signed=signed)


def decode_unit_duration(value: str) -> int:
    """Decode "mm:ss min" into seconds."""
    if not value.endswith(" min"):
        raise DecodeError(f"expected 'min' suffix: {value!r}")
    match = _DURATION.match(value[:-4])
    if match is None:
        raise DecodeError(f"bad duration: {value!r}")
    return decode_duration(value[:-4])


def decode_datetime(date: str, clock: str) -> int:
    """
    Decode a yyyy-mm-dd date and hh:mm:ss time into an epoch timestamp.

    There is no timezone: the stamp is interpreted in local time.
    """
    dmatch = _DATE.match(date)
    tmatch = _TIME.match(clock)
    if dmatch is None or tmatch is None:
        raise DecodeError(f"bad date/time: {date!r} {clock!r}")
    try:
        stamp = datetime(*(int(g) for g in dmatch.groups() + tmatch.groups()))
        return int(time.mktime(stamp.timetuple()))
    except (ValueError, OverflowError) as e:
        raise DecodeError(f"bad date/time: {date!r} {clock!r}: {e}") from None


def decode_enum(value: str, enum_cls: Type[E]) -> E:
    """Look up an enumeration member by its wire name."""
    try:
        return enum_cls(value)
    except ValueError:
        raise DecodeError(f"unknown {enum_cls.__name__}: {value!r}") from None
