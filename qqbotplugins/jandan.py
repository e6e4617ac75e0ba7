"""A store of picture URLs keyed by their CRC-64 checksum."""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Iterable, Union

PAGE_URL = "http://jandan.net/pic"
_ISO_POLY = 0xD800000000000000
_MASK64 = (1 << 64) - 1


def _make_table(poly: int) -> list:
    table = []
    for i in range(256):
        crc = i
        for _ in range(8):
            crc = (crc >> 1) ^ poly if crc & 1 else crc >> 1
        table.append(crc)
    return table


_ISO_TABLE = _make_table(_ISO_POLY)


def picture_id(url: str) -> int:
    """CRC-64 (ISO polynomial) of the URL, as an unsigned integer."""
    crc = _MASK64
    for byte in url.encode("utf-8"):
        crc = _ISO_TABLE[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ _MASK64


def _to_signed(value: int) -> int:
    return value - (1 << 64) if value >= 1 << 63 else value


def _to_unsigned(value: int) -> int:
    return value & _MASK64


class PictureStore:
    """SQLite table of picture URLs."""

    def __init__(self, path: Union[str, Path]) -> None:
        self._db = sqlite3.connect(str(path), check_same_thread=False)
        self._lock = threading.Lock()
        with self._lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS picture (id INTEGER PRIMARY KEY, url TEXT)"
            )
            self._db.commit()

    def __enter__(self) -> "PictureStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def contains(self, pid: int) -> bool:
        """Whether a picture with id ``pid`` is stored."""
        with self._lock:
            row = self._db.execute(
                "SELECT 1 FROM picture WHERE id = ?", (_to_signed(pid),)
            ).fetchone()
        return row is not None

    def insert(self, url: str) -> int:
        """Store ``url`` and return its id."""
        pid = picture_id(url)
        with self._lock:
            self._db.execute(
                "INSERT OR REPLACE INTO picture (id, url) VALUES (?, ?)",
                (_to_signed(pid), url),
            )
            self._db.commit()
        return pid

    def random_url(self) -> str:
        """A URL picked at random; LookupError when the store is empty."""
        with self._lock:
            row = self._db.execute(
                "SELECT url FROM picture ORDER BY RANDOM() LIMIT 1"
            ).fetchone()
        if row is None:
            raise LookupError("no pictures")
        return row[0]

    def count(self) -> int:
        with self._lock:
            return self._db.execute("SELECT COUNT(*) FROM picture").fetchone()[0]

    def close(self) -> None:
        with self._lock:
            self._db.close()


def add_new_pictures(store: PictureStore, urls: Iterable[str]) -> int:
    """Insert URLs in order until one is already stored; returns how many were added.

    Pages list the newest pictures first, so the first known one means all
    that follow are known too.
    """
    added = 0
    for url in urls:
        if store.contains(picture_id(url)):
            break
        store.insert(url)
        added += 1
    return added