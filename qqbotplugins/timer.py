"""Timer records for group reminders and parsing of Chinese date phrases."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass

log = logging.getLogger(__name__)

_EN_MASK = 0x800000
_MONTH_MASK = 0x780000
_DAY_MASK = 0x07C000
_WEEK_MASK = 0x003800
_HOUR_MASK = 0x0007C0
_MINUTE_MASK = 0x00003F

_CHINESE_DIGITS = "零一二三四五六七八九十"


@dataclass
class Timer:
    """A reminder; ``emdwhm`` packs enable, month, day, week, hour and minute.

    A value of -1 in any date field means "every". Weeks count from
    Sunday (0) to Saturday (6).
    """

    id: int = 0
    emdwhm: int = 0
    self_id: int = 0
    grp_id: int = 0
    alert: str = ""
    cron: str = ""
    url: str = ""

    def _field(self, mask: int, shift: int, all_ones: int) -> int:
        value = (self.emdwhm & mask) >> shift
        return -1 if value == all_ones else value

    def _store(self, value: int, mask: int, shift: int) -> None:
        self.emdwhm = ((value << shift) & mask) | (self.emdwhm & (0xFFFFFF ^ mask))

    def en(self) -> bool:
        """Whether the timer is enabled."""
        return self.emdwhm & _EN_MASK != 0

    def month(self) -> int:
        return self._field(_MONTH_MASK, 19, 0b1111)

    def day(self) -> int:
        return self._field(_DAY_MASK, 14, 0b11111)

    def week(self) -> int:
        return self._field(_WEEK_MASK, 11, 0b111)

    def hour(self) -> int:
        return self._field(_HOUR_MASK, 6, 0b11111)

    def minute(self) -> int:
        return self._field(_MINUTE_MASK, 0, 0b111111)

    def set_en(self, en: bool) -> None:
        if en:
            self.emdwhm |= _EN_MASK
        else:
            self.emdwhm &= 0x7FFFFF

    def set_month(self, month: int) -> None:
        self._store(month, _MONTH_MASK, 19)

    def set_day(self, day: int) -> None:
        self._store(day, _DAY_MASK, 14)

    def set_week(self, week: int) -> None:
        self._store(week, _WEEK_MASK, 11)

    def set_hour(self, hour: int) -> None:
        self._store(hour, _HOUR_MASK, 6)

    def set_minute(self, minute: int) -> None:
        self._store(minute, _MINUTE_MASK, 0)

    def timer_info(self) -> str:
        """Normalised description used as the identity of the timer."""
        if self.cron:
            return f"[{self.grp_id}]{self.cron}"
        return (
            f"[{self.grp_id}]{self.month()}月{self.day()}日{self.week()}周"
            f"{self.hour()}:{self.minute()}"
        )

    def timer_id(self) -> int:
        """First four bytes (little endian) of the MD5 of :meth:`timer_info`."""
        digest = hashlib.md5(self.timer_info().encode("utf-8")).digest()
        return int.from_bytes(digest[:4], "little")


def filled_cron_timer(croncmd: str, alert: str, img: str, botqq: int, gid: int) -> Timer:
    """Build a timer driven by a cron expression."""
    return Timer(self_id=botqq, grp_id=gid, alert=alert, cron=croncmd, url=img)


def filled_timer(date_strs, botqq: int, grp: int, match_date_only: bool) -> Timer:
    """Build a timer from regex groups: month, day/week, hour, minute, url, alert.

    On invalid input the returned timer is disabled and ``alert`` tells why.
    """
    month_str = date_strs[1]
    day_week = date_strs[2]
    hour_str = date_strs[3]
    minute_str = date_strs[4]

    t = Timer()
    mon = chinese_num_to_int(month_str)
    if (mon != -1 and mon <= 0) or mon > 12:
        t.alert = "月份非法！"
        return t
    t.set_month(mon)

    if not day_week:
        raise ValueError("empty day or week")
    if len(day_week) == 4:
        d = chinese_num_to_int(day_week[0] + day_week[2])
        if (d != -1 and d <= 0) or d > 31:
            t.alert = "日期非法1！"
            return t
        t.set_day(d)
    elif day_week[-1] == "日":
        d = chinese_num_to_int(day_week[:-1])
        if (d != -1 and d <= 0) or d > 31:
            t.alert = "日期非法2！"
            return t
        t.set_day(d)
    elif day_week[0] == "每":
        t.set_week(-1)
    else:
        w = chinese_num_to_int(day_week[1:])
        if w == 7:
            w = 0
        if w < 0 or w > 6:
            t.alert = "星期非法！"
            return t
        t.set_week(w)

    if len(hour_str) == 3:
        hour_str = hour_str[0] + hour_str[2]
    h = chinese_num_to_int(hour_str)
    if h < -1 or h > 23:
        t.alert = "小时非法！"
        return t
    t.set_hour(h)

    if len(minute_str) == 3:
        minute_str = minute_str[0] + minute_str[2]
    mn = chinese_num_to_int(minute_str)
    if mn < -1 or mn > 59:
        t.alert = "分钟非法！"
        return t
    t.set_minute(mn)

    if not match_date_only:
        url_str = date_strs[5]
        if url_str:
            # drop the leading "用", three bytes in UTF-8
            t.url = url_str.encode("utf-8")[3:].decode("utf-8", "replace")
            log.debug("[群管]%s", t.url)
            if not t.url.startswith("http"):
                t.url = "illegal"
                log.debug("[群管]url非法！")
                return t
        t.alert = date_strs[6]
        t.set_en(True)
    t.self_id = botqq
    t.grp_id = grp
    return t


def _atoi(text: str) -> int:
    sign = 1
    body = text
    if body[:1] in ("+", "-"):
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if not body or not all("0" <= c <= "9" for c in body):
        return 0
    return sign * int(body)


def chinese_num_to_int(text: str) -> int:
    """Convert a one- or two-character Chinese or Arabic number.

    "每" alone means -1, and "每二" means -2 and so on.
    """
    if not text:
        raise ValueError("empty number")
    if text[0].isdecimal():
        return _atoi(text)
    if text[0] == "每":
        return -chinese_char_to_int(text[1]) if len(text) == 2 else -1
    if len(text) == 1:
        return chinese_char_to_int(text[0])
    ten = chinese_char_to_int(text[0])
    if ten != 10:
        ten *= 10
    ge = chinese_char_to_int(text[1])
    if ge == 10:
        ge = 0
    return ten + ge


def chinese_char_to_int(c: str) -> int:
    """Map one Chinese numeral to 0..10; "日" and "天" give 7, others 0."""
    if c in ("日", "天"):
        return 7
    index = _CHINESE_DIGITS.find(c)
    return index if index >= 0 else 0