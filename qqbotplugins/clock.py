"""A clock that keeps group reminders in SQLite and sends them when due."""

from __future__ import annotations

import itertools
import logging
import re
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from .schedule import next_wake_time, should_fire
from .timer import Timer

log = logging.getLogger(__name__)

Sender = Callable[[int, int, list], None]

_MONTH_NAMES = {
    name: number
    for number, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun",
         "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}
_DOW_NAMES = {
    name: number
    for number, name in enumerate(("sun", "mon", "tue", "wed", "thu", "fri", "sat"))
}
_FIELDS = (
    (0, 59, None),
    (0, 23, None),
    (1, 31, None),
    (1, 12, _MONTH_NAMES),
    (0, 6, _DOW_NAMES),
)
_DESCRIPTORS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def build_alert_message(timer: Timer) -> list:
    """Message segments for a reminder: @all, the alert text and an optional image."""
    segments = [
        {"type": "at", "data": {"qq": "all"}},
        {"type": "text", "data": {"text": timer.alert}},
    ]
    if timer.url:
        segments.append({"type": "image", "data": {"file": timer.url, "cache": "0"}})
    return segments


def _weekday(dt: datetime) -> int:
    return (dt.weekday() + 1) % 7


def _parse_value(text: str, names) -> int:
    lowered = text.lower()
    if names and lowered in names:
        return names[lowered]
    if not text.isdigit():
        raise ValueError(f"failed to parse int from {text}")
    return int(text)


def _parse_field(expr: str, lo: int, hi: int, names) -> tuple[frozenset, bool]:
    values: set[int] = set()
    star = False
    for part in expr.split(","):
        if part.count("/") > 1:
            raise ValueError(f"too many slashes: {part}")
        rng, slash, step_text = part.partition("/")
        if rng in ("*", "?"):
            start, end, part_star, ranged = lo, hi, True, True
        else:
            low, dash, high = rng.partition("-")
            start = _parse_value(low, names)
            end = _parse_value(high, names) if dash else start
            part_star, ranged = False, bool(dash)
        step = 1
        if slash:
            step = _parse_value(step_text, None)
            if step <= 0:
                raise ValueError(f"step of range should be a positive number: {part}")
            if not ranged:
                end = hi
            if step > 1:
                part_star = False
        if start < lo:
            raise ValueError(f"beginning of range ({start}) below minimum ({lo}): {part}")
        if end > hi:
            raise ValueError(f"end of range ({end}) above maximum ({hi}): {part}")
        if start > end:
            raise ValueError(f"beginning of range ({start}) beyond end of range ({end}): {part}")
        values.update(range(start, end + 1, step))
        star = star or part_star
    return frozenset(values), star


def _parse_duration(text: str) -> float:
    body = text
    sign = 1.0
    if body[:1] in ("+", "-"):
        sign = -1.0 if body[0] == "-" else 1.0
        body = body[1:]
    if body == "0":
        return 0.0
    if not body or not re.fullmatch(f"(?:{_DURATION_PART.pattern})+", body):
        raise ValueError(f"invalid duration {text!r}")
    total = sum(float(num) * _DURATION_UNITS[unit] for num, unit in _DURATION_PART.findall(body))
    return sign * total


@dataclass(frozen=True)
class _SpecSchedule:
    minutes: frozenset
    hours: frozenset
    doms: frozenset
    months: frozenset
    dows: frozenset
    dom_star: bool
    dow_star: bool

    def _day_matches(self, t: datetime) -> bool:
        dom_ok = t.day in self.doms
        dow_ok = _weekday(t) in self.dows
        if self.dom_star or self.dow_star:
            return dom_ok and dow_ok
        return dom_ok or dow_ok

    def next_after(self, t: datetime) -> Optional[datetime]:
        t = t.replace(second=0, microsecond=0) + timedelta(minutes=1)
        limit = t.year + 5
        while t.year <= limit:
            if t.month not in self.months:
                if t.month == 12:
                    t = datetime(t.year + 1, 1, 1, tzinfo=t.tzinfo)
                else:
                    t = datetime(t.year, t.month + 1, 1, tzinfo=t.tzinfo)
                continue
            if not self._day_matches(t):
                t = (t + timedelta(days=1)).replace(hour=0, minute=0)
                continue
            if t.hour not in self.hours:
                t = t.replace(minute=0) + timedelta(hours=1)
                continue
            if t.minute not in self.minutes:
                t += timedelta(minutes=1)
                continue
            return t
        return None


@dataclass(frozen=True)
class _EverySchedule:
    delay: timedelta

    def next_after(self, t: datetime) -> Optional[datetime]:
        return t.replace(microsecond=0) + self.delay


def _parse_cron(spec: str):
    spec = spec.strip()
    if spec.startswith("@every "):
        seconds = _parse_duration(spec[len("@every "):].strip())
        return _EverySchedule(timedelta(seconds=max(1, int(seconds))))
    if spec.startswith("@"):
        if spec not in _DESCRIPTORS:
            raise ValueError(f"unrecognized descriptor: {spec}")
        spec = _DESCRIPTORS[spec]
    fields = spec.split()
    if len(fields) != 5:
        raise ValueError(f"expected exactly 5 fields, found {len(fields)}: {spec}")
    parsed = [_parse_field(expr, lo, hi, names) for expr, (lo, hi, names) in zip(fields, _FIELDS)]
    return _SpecSchedule(
        minutes=parsed[0][0],
        hours=parsed[1][0],
        doms=parsed[2][0],
        months=parsed[3][0],
        dows=parsed[4][0],
        dom_star=parsed[2][1],
        dow_star=parsed[4][1],
    )


@dataclass
class _Job:
    schedule: object
    func: Callable[[], None]
    next: Optional[datetime]


class _CronRunner:
    """Runs functions on cron schedules in a background thread."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._jobs: dict[int, _Job] = {}
        self._ids = itertools.count(1)
        self._stopped = False
        self._thread = threading.Thread(target=self._loop, name="clock-cron", daemon=True)
        self._thread.start()

    def add(self, schedule, func: Callable[[], None]) -> int:
        with self._cond:
            jid = next(self._ids)
            self._jobs[jid] = _Job(schedule, func, schedule.next_after(datetime.now()))
            self._cond.notify()
            return jid

    def remove(self, jid: int) -> None:
        with self._cond:
            self._jobs.pop(jid, None)
            self._cond.notify()

    def stop(self) -> None:
        with self._cond:
            self._stopped = True
            self._cond.notify()
        self._thread.join()

    @staticmethod
    def _run(func: Callable[[], None]) -> None:
        try:
            func()
        except Exception:
            log.exception("[群管]定时任务执行失败")

    def _loop(self) -> None:
        with self._cond:
            while not self._stopped:
                now = datetime.now()
                for job in self._jobs.values():
                    if job.next is not None and job.next <= now:
                        threading.Thread(target=self._run, args=(job.func,), daemon=True).start()
                        job.next = job.schedule.next_after(now)
                pending = [job.next for job in self._jobs.values() if job.next is not None]
                timeout = None
                if pending:
                    timeout = max(0.0, min((n - now).total_seconds() for n in pending))
                self._cond.wait(timeout)


class Clock:
    """Keeps reminders in memory and in SQLite, and sends them when they are due."""

    def __init__(self, db_path, sender: Sender) -> None:
        self._sender = sender
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        self._db_lock = threading.Lock()
        self._timers: dict[int, Timer] = {}
        self._timers_lock = threading.RLock()
        self._entries: dict[int, int] = {}
        self._stops: dict[int, threading.Event] = {}
        self._entries_lock = threading.Lock()
        self._cron = _CronRunner()
        self._load_timers()

    def __enter__(self) -> "Clock":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _load_timers(self) -> None:
        with self._db_lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS timer ("
                "id INTEGER PRIMARY KEY, emdwhm INTEGER, sid INTEGER, gid INTEGER, "
                "alert TEXT, cron TEXT, url TEXT)"
            )
            self._db.commit()
            rows = self._db.execute(
                "SELECT id, emdwhm, sid, gid, alert, cron, url FROM timer"
            ).fetchall()
        for row in rows:
            self.register_timer(Timer(*row), False)

    def _send(self, timer: Timer) -> None:
        self._sender(timer.self_id, timer.grp_id, build_alert_message(timer))

    def _stop_running(self, key: int) -> None:
        with self._entries_lock:
            jid = self._entries.pop(key, None)
            stop = self._stops.pop(key, None)
        if jid is not None:
            self._cron.remove(jid)
        if stop is not None:
            stop.set()

    def _run_dated(self, timer: Timer, stop: threading.Event) -> None:
        while timer.en():
            now = datetime.now()
            wake = next_wake_time(timer, now)
            log.info("[群管]计时器%08x将睡眠%ds", timer.id, int((wake - now).total_seconds()))
            if stop.wait(max(0.0, (wake - now).total_seconds())):
                return
            if timer.en() and should_fire(timer, datetime.now()):
                try:
                    self._send(timer)
                except Exception:
                    log.exception("[群管]提醒发送失败")

    def register_timer(self, timer: Timer, save: bool) -> bool:
        """Register ``timer``; with ``save`` its id is computed and it is stored.

        Returns whether the timer is now scheduled. An invalid cron expression
        leaves its error in ``timer.alert`` and returns False.
        """
        if save:
            key = timer.timer_id()
            timer.id = key
        else:
            key = timer.id
        existing = self.get_timer(key)
        if existing is not None and existing is not timer:
            existing.set_en(False)
            self._stop_running(key)
        log.info("[群管]注册计时器 %d", key)
        if timer.cron:
            try:
                schedule = _parse_cron(timer.cron)
            except ValueError as err:
                timer.alert = str(err)
                return False
            jid = self._cron.add(schedule, lambda: self._send(timer))
            with self._entries_lock:
                self._entries[key] = jid
            if save:
                try:
                    self.add_timer_into_db(timer)
                except sqlite3.Error:
                    log.exception("[群管]保存计时器失败")
                    return False
            self.add_timer_into_map(timer)
            return True
        if save:
            try:
                self.add_timer_into_db(timer)
            except sqlite3.Error:
                log.exception("[群管]保存计时器失败")
        self.add_timer_into_map(timer)
        stop = threading.Event()
        with self._entries_lock:
            self._stops[key] = stop
        threading.Thread(
            target=self._run_dated, args=(timer, stop), name=f"timer-{key:08x}", daemon=True
        ).start()
        return True

    def cancel_timer(self, key: int) -> bool:
        """Stop and forget the timer with ``key``; False when there is none."""
        timer = self.get_timer(key)
        if timer is None:
            return False
        if not timer.cron:
            timer.set_en(False)
        self._stop_running(key)
        with self._timers_lock:
            self._timers.pop(key, None)
            try:
                with self._db_lock:
                    self._db.execute("DELETE FROM timer WHERE id = ?", (key,))
                    self._db.commit()
            except sqlite3.Error:
                return False
        return True

    def list_timers(self, grp_id: int) -> list:
        """Readable descriptions of the timers of one group, each ending in a newline."""
        with self._timers_lock:
            timers = list(self._timers.values())
        lines = []
        for timer in timers:
            if timer.grp_id != grp_id:
                continue
            info = timer.timer_info()
            msg = (info[info.index("]") + 1:] + "\n").replace("-1", "每")
            msg = msg.replace("月0日0周", "月周天")
            msg = msg.replace("月0日", "月")
            msg = msg.replace("日0周", "日")
            lines.append(msg)
        return lines

    def get_timer(self, key: int) -> Optional[Timer]:
        with self._timers_lock:
            return self._timers.get(key)

    def add_timer_into_db(self, timer: Timer) -> None:
        with self._timers_lock, self._db_lock:
            self._db.execute(
                "INSERT OR REPLACE INTO timer (id, emdwhm, sid, gid, alert, cron, url) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (timer.id, timer.emdwhm, timer.self_id, timer.grp_id,
                 timer.alert, timer.cron, timer.url),
            )
            self._db.commit()

    def add_timer_into_map(self, timer: Timer) -> None:
        with self._timers_lock:
            self._timers[timer.id] = timer

    def close(self) -> None:
        """Stop every running timer and close the database."""
        self._cron.stop()
        with self._entries_lock:
            stops = list(self._stops.values())
            self._stops.clear()
            self._entries.clear()
        for stop in stops:
            stop.set()
        with self._db_lock:
            self._db.close()