"""Daily slacker reminder: days until the weekend and the public holidays."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Union

HOLIDAY_NAMES = ("元旦", "春节", "清明节", "劳动节", "端午节", "中秋节", "国庆节")

GREETING = (
    "上午好，摸鱼人！\n工作再累，一定不要忘记摸鱼哦！有事没事起身去茶水间，去厕所，"
    "去廊道走走别老在工位上坐着，钱是老板的,但命是自己的。\n"
)
CLOSING = "上班是帮老板赚钱，摸鱼是赚老板的钱！最后，祝愿天下所有摸鱼人，都能愉快的渡过每一天…"

_RECORD = re.compile(
    r"([+-]?\d+)(?:_([+-]?\d+)(?:_([+-]?\d+)(?:_([+-]?\d+))?)?)?"
)


@dataclass(frozen=True)
class Holiday:
    """A holiday starting at ``date`` and lasting ``dur``."""

    name: str
    date: datetime
    dur: timedelta

    def describe(self, now: datetime) -> str:
        """How far ``now`` is from the holiday, or whether it is on or over."""
        d = self.date - now
        if d >= timedelta(0):
            days = d.total_seconds() / 86400.0
            return f"距离{self.name}还有: {days:.2f}天！"
        if d + self.dur >= timedelta(0):
            return f"好好享受 {self.name} 假期吧!"
        return f"今年 {self.name} 假期已过"


def _make_date(year: int, month: int, day: int) -> datetime:
    """Midnight of the given date, letting month and day roll over."""
    y = year + (month - 1) // 12
    m = (month - 1) % 12 + 1
    if y < 1:
        return datetime.min
    try:
        return datetime(y, m, 1) + timedelta(days=day - 1)
    except OverflowError:
        return datetime.min


def parse_holiday(name: str, raw: str) -> Holiday:
    """Build a holiday from a ``dur_year_month_day`` record.

    Fields that cannot be read count as zero, as a lenient scan would leave
    them; a date that cannot exist lies in the far past.
    """
    values = [0, 0, 0, 0]
    match = _RECORD.match(raw.strip())
    if match:
        for index, group in enumerate(match.groups()):
            if group is not None:
                values[index] = int(group)
    dur, year, month, day = values
    return Holiday(name, _make_date(year, month, day), timedelta(days=dur))


def format_holiday(dur: int, year: int, month: int, day: int) -> str:
    """The ``dur_year_month_day`` record of a holiday."""
    return f"{dur}_{year}_{month}_{day}"


def weekend(today: Union[date, datetime]) -> str:
    """Days left until the weekend, or a weekend greeting."""
    py_weekday = today.weekday()  # Monday is 0
    if py_weekday in (5, 6):
        return "好好享受周末吧！"
    sunday_based = (py_weekday + 1) % 7
    return f"距离周末还有:{5 - sunday_based}天！"


def build_moyu_message(now: datetime, holidays: Iterable[Holiday]) -> str:
    """The full reminder text for ``now``."""
    parts = [now.strftime("%Y-%m-%d"), GREETING, weekend(now)]
    for holiday in holidays:
        parts.append("\n")
        parts.append(holiday.describe(now))
    parts.append("\n")
    parts.append(CLOSING)
    return "".join(parts)