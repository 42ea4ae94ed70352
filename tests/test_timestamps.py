from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytest

from utils.timestamps import locale_date, locale_datetime, parse_timestamp, shift_months, to_iso


def test_parse_accepts_z_suffix_and_naive_values():
    assert parse_timestamp("2024-05-20T15:30:00Z") == datetime(2024, 5, 20, 15, 30, tzinfo=timezone.utc)
    assert parse_timestamp("2024-05-20T15:30:00").tzinfo is not None


def test_parse_rejects_garbage():
    with pytest.raises(ValueError):
        parse_timestamp("yesterday")


def test_to_iso_is_fixed_width_utc():
    value = datetime(2024, 5, 20, 15, 30, tzinfo=timezone.utc)
    assert to_iso(value) == "2024-05-20T15:30:00.000000+00:00"
    assert len(to_iso(value)) == len(to_iso(value.replace(microsecond=123)))


def test_locale_strings_follow_en_us_layout():
    value = datetime(2024, 5, 3, 0, 5, 9, tzinfo=timezone.utc)
    assert locale_datetime(value) == "5/3/2024, 12:05:09 AM"
    assert locale_datetime(value.replace(hour=15)) == "5/3/2024, 3:05:09 PM"
    assert locale_date(value) == "5/3/2024"


def test_locale_date_uses_display_timezone():
    try:
        ZoneInfo("America/New_York")
    except ZoneInfoNotFoundError:
        pytest.skip("tz database not installed")
    value = datetime(2024, 5, 3, 2, 0, tzinfo=timezone.utc)
    assert locale_date(value, "America/New_York") == "5/2/2024"


def test_shift_months_clamps_to_month_end():
    value = datetime(2024, 3, 31, 12, tzinfo=timezone.utc)
    assert shift_months(value, -1) == datetime(2024, 2, 29, 12, tzinfo=timezone.utc)
    assert shift_months(value, -12) == datetime(2023, 3, 31, 12, tzinfo=timezone.utc)
    assert shift_months(datetime(2024, 1, 15), -1) == datetime(2023, 12, 15)


@pytest.mark.parametrize(
    "text, microsecond",
    [
        ("2024-05-20T10:00:00.12345+00:00", 123450),
        ("2024-05-20T10:00:00.5+00:00", 500000),
        ("2024-05-20T10:00:00.12Z", 120000),
        ("2024-05-20T10:00:00.1234567+00:00", 123456),
        ("2024-05-20T10:00:00.1234", 123400),
    ],
)
def test_parse_accepts_any_fraction_length(text, microsecond):
    parsed = parse_timestamp(text)
    assert parsed == datetime(2024, 5, 20, 10, 0, 0, microsecond, tzinfo=timezone.utc)
