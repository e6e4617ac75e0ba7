"""Group management helpers: welcome texts, bans, join checks through gists."""

from __future__ import annotations

import hashlib
import logging
import random
import re
import sqlite3
import threading
import time
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

log = logging.getLogger(__name__)

GIST_RAW = "https://gist.githubusercontent.com/{user}/{hash}/raw/{file}"
MAX_BAN_MINUTES = 43199  # a ban may last at most one month
GIST_WINDOW = 600  # seconds a gist timestamp stays valid
_INT63 = 0x7FFFFFFF_FFFFFFFF

_MINUTE_UNITS = {"分钟", "min", "mins", "m"}
_HOUR_UNITS = {"小时", "hour", "hours", "h"}
_DAY_UNITS = {"天", "day", "days", "d"}

_ENABLE_OPTIONS = {"开启", "打开", "启用"}
_DISABLE_OPTIONS = {"关闭", "关掉", "禁用"}

_ANSWER_MARK = "答案："
_STRICT_INT = re.compile(r"[+-]?\d+")


class ManagerStore:
    """SQLite storage of welcome and farewell texts and gist-verified members."""

    def __init__(self, path: Union[str, Path]) -> None:
        self._db = sqlite3.connect(str(path), check_same_thread=False)
        self._lock = threading.Lock()
        with self._lock:
            self._db.executescript(
                "CREATE TABLE IF NOT EXISTS welcome (gid INTEGER PRIMARY KEY, msg TEXT);"
                "CREATE TABLE IF NOT EXISTS farewell (gid INTEGER PRIMARY KEY, msg TEXT);"
                "CREATE TABLE IF NOT EXISTS member (qq INTEGER PRIMARY KEY, ghun TEXT);"
            )
            self._db.commit()

    def __enter__(self) -> "ManagerStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _put(self, table: str, gid: int, msg: str) -> None:
        with self._lock:
            self._db.execute(
                f"INSERT OR REPLACE INTO {table} (gid, msg) VALUES (?, ?)", (gid, msg)
            )
            self._db.commit()

    def _get(self, table: str, gid: int) -> Optional[str]:
        with self._lock:
            row = self._db.execute(
                f"SELECT msg FROM {table} WHERE gid = ?", (gid,)
            ).fetchone()
        return row[0] if row else None

    def set_welcome(self, gid: int, msg: str) -> None:
        """Store the welcome template of a group, replacing any earlier one."""
        self._put("welcome", gid, msg)

    def welcome(self, gid: int) -> Optional[str]:
        """The welcome template of a group, or None when none is set."""
        return self._get("welcome", gid)

    def set_farewell(self, gid: int, msg: str) -> None:
        """Store the farewell template of a group, replacing any earlier one."""
        self._put("farewell", gid, msg)

    def farewell(self, gid: int) -> Optional[str]:
        """The farewell template of a group, or None when none is set."""
        return self._get("farewell", gid)

    def has_member(self, ghun: str) -> bool:
        """Whether a GitHub user name has already been used to join."""
        with self._lock:
            row = self._db.execute(
                "SELECT 1 FROM member WHERE ghun = ?", (ghun,)
            ).fetchone()
        return row is not None

    def add_member(self, qq: int, ghun: str) -> None:
        """Record that ``qq`` joined as GitHub user ``ghun``."""
        with self._lock:
            self._db.execute(
                "INSERT OR REPLACE INTO member (qq, ghun) VALUES (?, ?)", (qq, ghun)
            )
            self._db.commit()

    def close(self) -> None:
        with self._lock:
            self._db.close()


def welcome_to_cq(template: str, uid: int, nickname: str, gid: int, groupname: str) -> str:
    """Expand the placeholders of a welcome or farewell template into CQ text."""
    uid_s = str(uid)
    replacements = (
        ("{at}", f"[CQ:at,qq={uid_s}]"),
        ("{nickname}", nickname),
        ("{avatar}", f"[CQ:image,file=http://q4.qlogo.cn/g?b=qq&nk={uid_s}&s=640]"),
        ("{uid}", uid_s),
        ("{gid}", str(gid)),
        ("{groupname}", groupname),
    )
    text = template
    for placeholder, value in replacements:
        text = text.replace(placeholder, value)
    return text


def ban_seconds(amount: int, unit: str) -> int:
    """Ban length in seconds; ``unit`` is minutes unless it names hours or days.

    The length is capped just below one month.
    """
    minutes = int(amount)
    if unit in _HOUR_UNITS:
        minutes *= 60
    elif unit in _DAY_UNITS:
        minutes *= 60 * 24
    if minutes >= MAX_BAN_MINUTES + 1:
        minutes = MAX_BAN_MINUTES
    return minutes * 60


def unescape_forward(content: str) -> str:
    """Undo the escaping of square brackets in forwarded CQ text."""
    return content.replace("&#91;", "[").replace("&#93;", "]")


def parse_gist_answer(comment: str) -> tuple[str, str]:
    """Split the ``username/gisthash`` answer of a join request.

    Raises ValueError("格式错误!") when the answer has no usable form.
    """
    index = comment.find(_ANSWER_MARK)
    if index < 0:
        raise ValueError("格式错误!")
    answer = comment[index + len(_ANSWER_MARK):]
    divi = answer.find("/")
    if divi <= 0:
        raise ValueError("格式错误!")
    return answer[:divi], answer[divi + 1:]


def gist_url(ghun: str, gist_hash: str, gid: int) -> str:
    """Raw URL of the gist file named after the MD5 of the group number."""
    file_name = hashlib.md5(str(gid).encode("ascii")).hexdigest()
    return GIST_RAW.format(user=ghun, hash=gist_hash, file=file_name)


def _http_fetch(url: str) -> bytes:
    import requests

    response = requests.get(url, timeout=30)
    response.raise_for_status()
    return response.content


def check_new_user(
    store: ManagerStore,
    qq: int,
    gid: int,
    ghun: str,
    gist_hash: str,
    fetch: Optional[Callable[[str], bytes]] = None,
    now: Optional[float] = None,
) -> tuple[bool, str]:
    """Verify a join request through a gist holding a recent unix timestamp.

    Returns whether to accept, and the reason when not. An accepted user is
    recorded in ``store``.
    """
    if store.has_member(ghun):
        return False, "该github用户已入群"
    fetch = fetch or _http_fetch
    url = gist_url(ghun, gist_hash, gid)
    log.debug("[gist]visit url: %s", url)
    try:
        data = fetch(url)
    except Exception as err:  # any failure to reach the gist is reported
        return False, "无法连接到gist: " + str(err)
    text = data.decode("utf-8", "replace") if isinstance(data, bytes) else str(data)
    log.debug("[gist]get data: %s", text)
    if not _STRICT_INT.fullmatch(text):
        return False, "时间戳格式错误: " + text
    stamp = int(text)
    current = int(time.time() if now is None else now)
    if abs(current - stamp) < GIST_WINDOW:
        store.add_member(qq, ghun)
        return True, ""
    return False, "时间戳超时"


def set_flag(data: int, option: str, mask: int) -> Optional[int]:
    """Switch the bits of ``mask`` in ``data`` on or off by a Chinese option word.

    Returns None when the option is neither an enable nor a disable word.
    """
    if option in _ENABLE_OPTIONS:
        return data | mask
    if option in _DISABLE_OPTIONS:
        return data & (_INT63 & ~mask)
    return None


def pick_lucky_member(members: Iterable[dict], rng: Optional[random.Random] = None) -> dict:
    """Pick at random one of the ten members who spoke most recently."""
    rng = rng or random.Random()
    ordered = sorted(members, key=lambda m: int(m.get("last_sent_time", 0)))
    if not ordered:
        raise ValueError("no members")
    return rng.choice(ordered[-10:])


def addition_quiz(rng: Optional[random.Random] = None) -> tuple[int, int, int]:
    """Two random addends below 100 and their sum, for the join quiz."""
    rng = rng or random.Random()
    a = rng.randrange(100)
    b = rng.randrange(100)
    return a, b, a + b