"""
Unit tests for attribute decoders.

Each decoder either returns a typed value or raises DecodeError; nothing
in between.
"""

import time
from datetime import datetime

import pytest

from divelog.decoders import (
    EPSILON,
    decode_datetime,
    decode_duration,
    decode_enum,
    decode_percent,
    decode_real,
    decode_uint,
    decode_unit,
    decode_unit_duration,
)
from divelog.errors import DecodeError, DiveLogError
from divelog.model import DecoType, DiveMode, EventType


# ==============================================================================
# NUMBERS
# ==============================================================================


class TestDecodeUint:
    """Test unsigned integer decoding."""

    def test_plain_number(self):
        """Verify digits decode to an int."""
        assert decode_uint("42") == 42
        assert decode_uint("0") == 0

    def test_rejects_sign_and_garbage(self):
        """Verify signs, blanks and trailing text are rejected."""
        for value in ("-1", "+1", "", " 1", "1.5", "12abc"):
            with pytest.raises(DecodeError):
                decode_uint(value)

    def test_maximum(self):
        """Verify values above the maximum are rejected."""
        assert decode_uint("10", maximum=10) == 10
        with pytest.raises(DecodeError):
            decode_uint("11", maximum=10)

    def test_error_is_value_error(self):
        """Verify DecodeError can be caught as ValueError or DiveLogError."""
        with pytest.raises(ValueError):
            decode_uint("x")
        with pytest.raises(DiveLogError):
            decode_uint("x")


class TestDecodeReal:
    """Test real number decoding."""

    def test_plain_values(self):
        """Verify ordinary reals decode unchanged."""
        assert decode_real("12.5") == pytest.approx(12.5)
        assert decode_real("3") == pytest.approx(3.0)

    def test_near_zero_collapses(self):
        """Verify values within epsilon of zero become exactly zero."""
        assert decode_real(str(EPSILON / 2)) == 0.0
        assert decode_real("-0.0000001") == 0.0

    def test_negative_rejected_unless_signed(self):
        """Verify negatives need the signed flag."""
        with pytest.raises(DecodeError):
            decode_real("-2.5")
        assert decode_real("-2.5", signed=True) == pytest.approx(-2.5)

    def test_non_finite_rejected(self):
        """Verify infinities and NaN are out of range."""
        for value in ("inf", "-inf", "nan", "1e999"):
            with pytest.raises(DecodeError):
                decode_real(value, signed=True)

    def test_garbage_rejected(self):
        """Verify non-numeric text is rejected."""
        with pytest.raises(DecodeError):
            decode_real("deep")


class TestDecodePercent:
    """Test percentage decoding."""

    def test_with_and_without_sign(self):
        """Verify '32%', '32.0%' and '32' all give 0.32."""
        assert decode_percent("32%") == pytest.approx(0.32)
        assert decode_percent("32.0%") == pytest.approx(0.32)
        assert decode_percent("32") == pytest.approx(0.32)

    def test_range(self):
        """Verify 0-100 is accepted and anything outside is not."""
        assert decode_percent("100") == pytest.approx(1.0)
        assert decode_percent("0%") == 0.0
        with pytest.raises(DecodeError):
            decode_percent("100.5")
        with pytest.raises(DecodeError):
            decode_percent("-1%")


# ==============================================================================
# DURATIONS AND UNITS
# ==============================================================================


class TestDecodeDuration:
    """Test duration decoding."""

    def test_minutes_seconds(self):
        """Verify mm:ss converts to seconds."""
        assert decode_duration("45:30") == 2730
        assert decode_duration("0:05") == 5
        assert decode_duration("120:00") == 7200

    def test_plain_seconds(self):
        """Verify a bare integer is taken as seconds."""
        assert decode_duration("2730") == 2730

    def test_bad_seconds(self):
        """Verify seconds above 59 are rejected."""
        with pytest.raises(DecodeError):
            decode_duration("10:60")

    def test_malformed(self):
        """Verify malformed durations are rejected."""
        for value in ("10:5", ":30", "1:2:3", "ten"):
            with pytest.raises(DecodeError):
                decode_duration(value)


class TestDecodeUnit:
    """Test unit-suffixed quantities."""

    def test_depth_and_pressure(self):
        """Verify the suffix is stripped before decoding."""
        assert decode_unit("12.3 m", " m") == pytest.approx(12.3)
        assert decode_unit("200.0 bar", " bar") == pytest.approx(200.0)

    def test_signed_temperature(self):
        """Verify temperatures may be negative when signed."""
        assert decode_unit("-1.5 C", " C", signed=True) == pytest.approx(-1.5)

    def test_missing_suffix(self):
        """Verify values without the suffix are rejected."""
        with pytest.raises(DecodeError):
            decode_unit("12.3", " m")
        with pytest.raises(DecodeError):
            decode_unit(" m", " m")

    def test_unit_duration(self):
        """Verify 'mm:ss min' converts to seconds."""
        assert decode_unit_duration("3:20 min") == 200
        with pytest.raises(DecodeError):
            decode_unit_duration("3:20")
        with pytest.raises(DecodeError):
            decode_unit_duration("200 min")


# ==============================================================================
# DATES AND ENUMERATIONS
# ==============================================================================


class TestDecodeDatetime:
    """Test date/time decoding in local time."""

    def test_local_time(self):
        """Verify the stamp matches the local-time epoch conversion."""
        expected = int(time.mktime(datetime(2020, 6, 1, 10, 30, 15).timetuple()))
        assert decode_datetime("2020-06-01", "10:30:15") == expected

    def test_ordering(self):
        """Verify later wall-clock times give later stamps."""
        assert decode_datetime("2020-06-01", "10:00:00") < decode_datetime("2020-06-01", "10:00:01")

    def test_invalid_calendar_date(self):
        """Verify impossible dates are rejected."""
        with pytest.raises(DecodeError):
            decode_datetime("2020-02-30", "10:00:00")
        with pytest.raises(DecodeError):
            decode_datetime("2020-06-01", "25:00:00")

    def test_malformed(self):
        """Verify malformed strings are rejected."""
        with pytest.raises(DecodeError):
            decode_datetime("01/06/2020", "10:00:00")
        with pytest.raises(DecodeError):
            decode_datetime("2020-06-01", "10:00")


class TestDecodeEnum:
    """Test enumeration lookup by wire name."""

    def test_known_names(self):
        """Verify wire names map to members."""
        assert decode_enum("closedcircuit", DiveMode) is DiveMode.CC
        assert decode_enum("ndl", DecoType) is DecoType.NDL
        assert decode_enum("gaschange2", EventType) is EventType.GASCHANGE2

    def test_unknown_name(self):
        """Verify unknown names raise DecodeError."""
        with pytest.raises(DecodeError):
            decode_enum("rebreather", DiveMode)

    def test_event_codes(self):
        """Verify numeric event codes follow declaration order."""
        assert EventType.from_code(0) is EventType.NONE
        assert EventType.from_code(11) is EventType.GASCHANGE
        assert EventType.from_code(25) is EventType.GASCHANGE2
        with pytest.raises(ValueError):
            EventType.from_code(26)
