"""A per-group gallery of wife pictures with a daily draw for each member."""

from __future__ import annotations

import hashlib
import random
from datetime import date
from pathlib import Path
from typing import Union

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_OFFSET = 10  # bytes skipped after the command's position, as the command is 10 bytes


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_DIGITS[rem])
    return sign + "".join(reversed(digits))


def clean_wife_name(text: str, command: str) -> str:
    """The name following ``command`` in a message, spaces and slashes removed."""
    raw = text.replace(" ", "").encode("utf-8")
    index = raw.rfind(command.encode("utf-8"))
    name = raw[index + _OFFSET:].decode("utf-8", "ignore")
    return name.replace("/", "").replace("\\", "")


def daily_seed(nickname: str, day: date) -> int:
    """A seed fixed for one member on one day, from the MD5 of name and date."""
    digest = hashlib.md5(f"{nickname}{day.year}{day.month}{day.day}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "little", signed=True)


class WifeGallery:
    """Pictures stored as files in one folder per group."""

    def __init__(self, base: Union[str, Path]) -> None:
        self.base = Path(base)

    def group_folder(self, gid: int) -> Path:
        """The folder of a group, named by its number in base 36."""
        return self.base / _base36(gid)

    def list_wives(self, gid: int) -> list:
        """Sorted names of the pictures of a group; empty if it has none."""
        folder = self.group_folder(gid)
        if not folder.is_dir():
            return []
        return sorted(entry.name for entry in folder.iterdir())

    def add(self, gid: int, name: str, data: bytes) -> Path:
        """Store picture ``data`` under ``name`` for a group."""
        if not name:
            raise ValueError("没有找到wife的名字！")
        folder = self.group_folder(gid)
        folder.mkdir(exist_ok=True)
        target = folder / name
        target.write_bytes(data)
        return target

    def remove(self, gid: int, name: str) -> None:
        """Delete a picture; FileNotFoundError when it does not exist."""
        if not name:
            raise ValueError("没有找到wife的名字！")
        (self.group_folder(gid) / name).unlink()

    def draw(self, gid: int, nickname: str, day: date) -> str:
        """The wife of ``nickname`` on ``day``; LookupError if the group has none."""
        wives = self.list_wives(gid)
        if not wives:
            raise LookupError("一个wife也没有哦~")
        if len(wives) == 1:
            return wives[0]
        rng = random.Random(daily_seed(nickname, day))
        return wives[rng.randrange(len(wives))]