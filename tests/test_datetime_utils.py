from datetime import date, datetime, timedelta, timezone
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from datetime_utils import ensure_utc, local_date
from helpers.datetime_utils import (
    date_key,
    day_name,
    minutes_to_label,
    parse_date_key,
    parse_time_input,
    ranges_overlap,
    snap_minutes,
)


def test_date_key_is_zero_padded_and_sortable():
    assert date_key(date(2024, 1, 5)) == "2024-01-05"
    assert date_key(datetime(2024, 12, 31, 23, 59)) == "2024-12-31"
    keys = [date_key(date(2024, 1, 1) + timedelta(days=i * 17)) for i in range(30)]
    assert keys == sorted(keys)


def test_parse_date_key_round_trip():
    for key in ("2024-02-29", "1999-12-31", "2030-01-01"):
        assert date_key(parse_date_key(key)) == key


@pytest.mark.parametrize("bad", ["", "2024-13-01", "2024-02-30", "20240101", "2024-1-1"])
def test_parse_date_key_rejects_malformed(bad):
    with pytest.raises(ValueError):
        parse_date_key(bad)


def test_day_name_matches_weekday():
    assert day_name(date(2024, 6, 10)) == "monday"
    assert day_name(date(2024, 6, 16)) == "sunday"


def test_minutes_to_label_twelve_hour_clock():
    assert minutes_to_label(0) == "12:00AM"
    assert minutes_to_label(540) == "9:00AM"
    assert minutes_to_label(720) == "12:00PM"
    assert minutes_to_label(1020) == "5:00PM"
    assert minutes_to_label(1439) == "11:59PM"
    assert all(minutes_to_label(m) for m in range(0, 1440))


def test_ranges_overlap_half_open():
    assert ranges_overlap(0, 10, 5, 15)
    assert not ranges_overlap(0, 10, 10, 20)
    assert not ranges_overlap(10, 20, 0, 10)
    for s, e in [(0, 1), (540, 600), (100, 1439)]:
        assert ranges_overlap(s, e, s, e)


def test_parse_time_input_formats():
    assert parse_time_input("09:30") == 570
    assert parse_time_input("9.05") == 545
    assert parse_time_input("930") == 570
    assert parse_time_input("2359") == 1439
    assert parse_time_input("24:00") is None
    assert parse_time_input("soon") is None
    assert parse_time_input("") is None


def test_snap_minutes_rounding():
    assert snap_minutes(17, step=15, direction="nearest") == 15
    assert snap_minutes(8, step=15, direction="forward") == 15
    assert snap_minutes(22, step=15, direction="backward") == 15
    assert snap_minutes(544, step=10, direction="nearest") == 540


def test_local_date_treats_naive_as_utc():
    aware = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)
    assert ensure_utc(aware.replace(tzinfo=None)) == aware
    assert local_date(aware.replace(tzinfo=None)) == aware.astimezone().date()
    assert local_date(None) is None
