from datetime import datetime

import pytest

from qqbotplugins.schedule import first_week, next_wake_time, should_fire
from qqbotplugins.timer import Timer


def make(month=0, day=0, week=0, hour=0, minute=0):
    t = Timer()
    t.set_month(month)
    t.set_day(day)
    t.set_week(week)
    t.set_hour(hour)
    t.set_minute(minute)
    t.set_en(True)
    return t


NOW = datetime(2022, 6, 15, 10, 0, 0)


def test_source_case_weekly_saturday():
    t = make(month=-1, week=6, hour=16, minute=30)
    assert next_wake_time(t, NOW) == datetime(2022, 6, 18, 16, 30)


@pytest.mark.parametrize(
    "now",
    [
        datetime(2022, 6, 15, 10, 0),
        datetime(2022, 6, 18, 17, 0),
        datetime(2022, 12, 31, 23, 59),
        datetime(2023, 2, 28, 0, 0),
    ],
)
def test_wake_time_is_in_future(now):
    t = make(month=-1, week=6, hour=16, minute=30)
    assert next_wake_time(t, now) > now


def test_daily_timer():
    t = make(month=-1, day=-1, week=0, hour=8, minute=0)
    assert next_wake_time(t, NOW) == datetime(2022, 6, 16, 8, 0)


def test_every_minute():
    t = make(month=-1, day=-1, week=-1, hour=-1, minute=-1)
    now = datetime(2022, 6, 15, 10, 0, 30)
    assert next_wake_time(t, now) == datetime(2022, 6, 15, 10, 1, 30)


def test_fixed_date_later_this_year():
    t = make(month=12, day=25, hour=9, minute=0)
    assert next_wake_time(t, NOW) == datetime(2022, 12, 25, 9, 0)


def test_fixed_date_already_passed():
    t = make(month=1, day=1, hour=0, minute=0)
    assert next_wake_time(t, NOW) == datetime(2023, 1, 1, 0, 0)


def test_first_week():
    assert first_week(datetime(2022, 6, 15, 8, 0), 1) == datetime(2022, 6, 6, 8, 0)
    assert first_week(datetime(2022, 6, 15, 8, 0), 0) == datetime(2022, 6, 5, 8, 0)
    assert first_week(datetime(2022, 6, 15), 3) == datetime(2022, 6, 1)


def test_should_fire_daily():
    t = make(month=-1, day=-1, hour=8, minute=0)
    assert should_fire(t, datetime(2022, 6, 15, 8, 0))
    assert not should_fire(t, datetime(2022, 6, 15, 8, 1))
    assert not should_fire(t, datetime(2022, 6, 15, 9, 0))


def test_should_fire_weekly():
    wed = make(month=-1, day=0, week=3, hour=8, minute=0)
    thu = make(month=-1, day=0, week=4, hour=8, minute=0)
    assert should_fire(wed, datetime(2022, 6, 15, 8, 0))
    assert not should_fire(thu, datetime(2022, 6, 15, 8, 0))


def test_should_fire_month_mismatch():
    t = make(month=7, day=15, hour=8, minute=0)
    assert not should_fire(t, datetime(2022, 6, 15, 8, 0))
    assert should_fire(t, datetime(2022, 7, 15, 8, 0))