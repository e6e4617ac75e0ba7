"""Computing when a date-based reminder should next wake and fire."""

from __future__ import annotations

from datetime import datetime, timedelta

from .timer import Timer


def _weekday(dt: datetime) -> int:
    """Weekday counted from Sunday as 0."""
    return (dt.weekday() + 1) % 7


def _make_date(year, month, day, hour, minute, second, microsecond, tzinfo):
    """Build a datetime, letting out-of-range fields roll over."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    base = datetime(year, month, 1, tzinfo=tzinfo)
    return base + timedelta(
        days=day - 1,
        hours=hour,
        minutes=minute,
        seconds=second,
        microseconds=microsecond,
    )


def _add_date(dt: datetime, years: int, months: int, days: int) -> datetime:
    return _make_date(
        dt.year + years,
        dt.month + months,
        dt.day + days,
        dt.hour,
        dt.minute,
        dt.second,
        dt.microsecond,
        dt.tzinfo,
    )


def first_week(date: datetime, week: int) -> datetime:
    """First day in the month of ``date`` falling on ``week`` (Sunday is 0)."""
    d = date.replace(day=1)
    while _weekday(d) != week:
        d += timedelta(days=1)
    return d


def next_wake_time(timer: Timer, now: datetime) -> datetime:
    """Next moment after ``now`` at which ``timer`` should be checked."""
    date = now
    m = timer.month()
    d = timer.day()
    h = timer.hour()
    mn = timer.minute()
    w = timer.week()

    unit = timedelta(0)
    if mn >= 0:
        if h < 0:
            unit = timedelta(hours=1)
        elif d < 0 or w < 0:
            unit = timedelta(hours=24)
        elif d == 0 and w >= 0:
            delta = timedelta(days=w - _weekday(date))
            if delta < timedelta(0):
                delta = timedelta(days=7)
            unit += delta
        # with only the month fixed no step is added
    else:
        unit = timedelta(minutes=1)

    stable = 0
    if mn < 0:
        mn = date.minute
    if h < 0:
        h = date.hour
    else:
        stable |= 0x8
    if d < 0:
        d = date.day
    elif d > 0:
        stable |= 0x4
    else:
        d = date.day
        if w >= 0:
            stable |= 0x2
    if m < 0:
        m = date.month
    else:
        stable |= 0x1

    if stable == 0b0101:
        if timer.day() != now.day or timer.month() != now.month:
            h = 0
    elif stable == 0b1001:
        if timer.month() != now.month:
            d = 0
    elif stable == 0b0001:
        if timer.month() != now.month:
            d = 0
            h = 0

    date = _make_date(
        date.year, m, d, h, mn, date.second, date.microsecond, date.tzinfo
    )
    if unit > timedelta(0):
        date += unit

    if date <= now:
        if timer.month() < 0:
            if timer.day() > 0 or (timer.day() == 0 and timer.week() >= 0):
                date = _add_date(date, 0, 1, 0)
            elif timer.day() < 0 or timer.week() < 0:
                if timer.hour() > 0:
                    date = _add_date(date, 0, 0, 1)
                elif timer.minute() > 0:
                    date += timedelta(hours=1)
        else:
            date = _add_date(date, 1, 0, 0)

    one_hour = timedelta(hours=1)
    if stable & 0x8 and date.hour != h:
        if stable & 0x4 == 0:
            date = _add_date(date, 0, 0, 1) - one_hour
        elif stable & 0x2 == 0:
            date = _add_date(date, 0, 0, 7) - one_hour
        elif stable == 0:
            date = _add_date(date, 0, 1, 0) - one_hour
        else:
            date = _add_date(date, 1, 0, 0) - one_hour

    if stable & 0x4 and date.day != d:
        if stable == 0:
            date = _add_date(date, 0, 1, -1)
        else:
            date = _add_date(date, 1, 0, -1)

    if stable & 0x2 and _weekday(date) != w:
        if stable == 0:
            date = _add_date(date, 0, 1, 0)
        else:
            date = _add_date(date, 1, 0, 0)
        date = first_week(date, w)

    if date <= now:
        date = now + timedelta(minutes=1)
    return date


def should_fire(timer: Timer, now: datetime) -> bool:
    """Whether a woken date-based timer matches ``now`` and should send."""
    if not (timer.month() < 0 or timer.month() == now.month):
        return False
    if timer.day() < 0 or timer.day() == now.day:
        pass
    elif timer.day() == 0:
        if not (timer.week() < 0 or timer.week() == _weekday(now)):
            return False
    else:
        return False
    if timer.hour() < 0 or timer.hour() == now.hour:
        return timer.minute() < 0 or timer.minute() == now.minute
    return False