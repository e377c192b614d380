from datetime import date, datetime

import pandas as pd
import pytest

import dates
from dates import business_days, iso_to_serial, month_bounds, normalize_date, split_day_month


def test_iso_date_is_returned_unchanged_and_idempotent():
    assert normalize_date("2024-01-15") == "2024-01-15"
    assert normalize_date(normalize_date("2024-01-15")) == "2024-01-15"


def test_spreadsheet_serial_for_known_date():
    assert normalize_date(45292) == "2024-01-01"
    assert normalize_date(45306) == "2024-01-15"
    assert normalize_date(45306.75) == "2024-01-15"
    assert normalize_date("45306") == "2024-01-15"
    assert normalize_date(0) == "1899-12-30"


def test_serial_round_trip():
    serial = iso_to_serial("2023-07-04")
    assert normalize_date(serial) == "2023-07-04"
    assert iso_to_serial("not a date") is None


def test_native_date_values():
    assert normalize_date(date(2024, 1, 15)) == "2024-01-15"
    assert normalize_date(datetime(2024, 1, 15, 10, 30)) == "2024-01-15"
    assert normalize_date(pd.Timestamp("2024-01-15 08:00")) == "2024-01-15"


def test_first_part_over_twelve_is_the_day():
    assert normalize_date("15/01/2024") == "2024-01-15"
    assert normalize_date("15-01-2024") == "2024-01-15"
    assert normalize_date("15.01.24") == "2024-01-15"


def test_second_part_over_twelve_is_the_day():
    assert normalize_date("01/15/2024") == "2024-01-15"


def test_ambiguous_parts_follow_day_first_flag(monkeypatch):
    assert normalize_date("03/04/2024") == "2024-03-04"
    assert normalize_date("03/04/2024", day_first=True) == "2024-04-03"
    monkeypatch.setattr(dates, "DATE_DAY_FIRST", True)
    assert normalize_date("03/04/2024") == "2024-04-03"


def test_year_first_with_slashes():
    assert normalize_date("2024/01/15") == "2024-01-15"


def test_generic_parsing_fallback():
    assert normalize_date("2024-01-15T10:00:00") == "2024-01-15"
    assert normalize_date("January 15, 2024") == "2024-01-15"


@pytest.mark.parametrize(
    "value",
    [None, "", "   ", "not a date", float("nan"), pd.NaT, "2024-02-30", "31/02/2024", True, -5, float("inf")],
)
def test_unusable_values_give_empty_string(value):
    assert normalize_date(value) == ""


def test_split_day_month():
    assert split_day_month(13, 5) == (13, 5)
    assert split_day_month(5, 13) == (13, 5)
    assert split_day_month(3, 4, day_first=False) == (4, 3)
    assert split_day_month(3, 4, day_first=True) == (3, 4)


def test_month_helpers():
    assert month_bounds(2024, 2) == ("2024-02-01", "2024-02-29")
    assert month_bounds(2023, 12) == ("2023-12-01", "2023-12-31")
    # January 2024 has four Sundays
    assert business_days(2024, 1) == 27


@pytest.mark.parametrize("value", [[1, 2], ("2024-01-15",), {"d": 1}, pd.Series(["2024-01-15"])])
def test_containers_give_empty_string(value):
    assert normalize_date(value) == ""
