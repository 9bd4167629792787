"""Tests for the power record type and its two-line text encoding."""
import math

import pytest
from hypothesis import given, strategies as st

from energy_accumulator.exceptions import InvalidDataError, InvalidFormatError, InvalidValueError
from energy_accumulator.storage.data_types import (
    MAX_FUTURE_SKEW_MS,
    PowerRecord,
    format_record,
    parse_record,
)

NOW = 1_700_000_000_000


class TestPowerRecord:
    """Tests for PowerRecord validation."""

    def test_zero_record_is_sentinel(self):
        assert PowerRecord().is_zero() is True
        assert PowerRecord(timestamp=0, energy_wh=0.0).is_zero() is True
        assert PowerRecord(timestamp=1, energy_wh=0.0).is_zero() is False
        assert PowerRecord(timestamp=0, energy_wh=0.5).is_zero() is False

    def test_valid_record_passes(self):
        PowerRecord(timestamp=NOW, energy_wh=1234.5).validate(now=NOW)

    def test_zero_record_is_valid(self):
        PowerRecord().validate(now=NOW)

    def test_negative_timestamp_rejected(self):
        with pytest.raises(InvalidDataError, match="negative"):
            PowerRecord(timestamp=-1, energy_wh=0.0).validate(now=NOW)

    def test_timestamp_up_to_one_day_ahead_accepted(self):
        PowerRecord(timestamp=NOW + MAX_FUTURE_SKEW_MS, energy_wh=1.0).validate(now=NOW)

    def test_timestamp_beyond_one_day_ahead_rejected(self):
        with pytest.raises(InvalidDataError, match="future"):
            PowerRecord(timestamp=NOW + MAX_FUTURE_SKEW_MS + 1, energy_wh=1.0).validate(now=NOW)

    def test_non_integer_timestamp_rejected(self):
        with pytest.raises(InvalidDataError):
            PowerRecord(timestamp=1.5, energy_wh=1.0).validate(now=NOW)

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_energy_rejected(self, value):
        with pytest.raises(InvalidValueError):
            PowerRecord(timestamp=NOW, energy_wh=value).validate(now=NOW)

    def test_negative_energy_rejected(self):
        with pytest.raises(InvalidDataError, match="negative"):
            PowerRecord(timestamp=NOW, energy_wh=-0.01).validate(now=NOW)

    def test_to_dict(self):
        assert PowerRecord(timestamp=NOW, energy_wh=2.5).to_dict() == {
            "timestamp": NOW,
            "energy_wh": 2.5,
        }


class TestRecordFormat:
    """Tests for the on-disk text format."""

    def test_format_is_two_lines_with_six_decimals(self):
        assert format_record(PowerRecord(timestamp=NOW, energy_wh=1500.75)) == (
            f"{NOW}\n1500.750000\n"
        )

    def test_parse_tolerates_surrounding_whitespace(self):
        record = parse_record(f"  {NOW}  \r\n 12.5 \n\n")
        assert record == PowerRecord(timestamp=NOW, energy_wh=12.5)

    @pytest.mark.parametrize(
        "content",
        [
            "",
            "   \n",
            f"{NOW}\n",
            f"{NOW}\n1.0\n2.0\n",
            f"{NOW}\n\n1.0\n",
            "abc\n1.0\n",
            f"{NOW}\nnot-a-number\n",
            "1.5\n1.0\n",
        ],
    )
    def test_parse_rejects_malformed_content(self, content):
        with pytest.raises(InvalidFormatError):
            parse_record(content)

    def test_parse_does_not_validate(self):
        # Range checks belong to validate(), not to the parser
        record = parse_record(f"{NOW}\n-3.0\n")
        assert record.energy_wh == -3.0


@given(
    st.integers(min_value=0, max_value=NOW + MAX_FUTURE_SKEW_MS),
    st.floats(min_value=0, max_value=1e12, allow_nan=False, allow_infinity=False),
)
def test_format_then_parse_preserves_record(timestamp, energy_wh):
    record = parse_record(format_record(PowerRecord(timestamp=timestamp, energy_wh=energy_wh)))
    assert record.timestamp == timestamp
    assert record.energy_wh == pytest.approx(energy_wh, abs=1e-6)
    record.validate(now=NOW)
