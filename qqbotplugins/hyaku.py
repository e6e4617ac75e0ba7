"""The Ogura Hyakunin Isshu: loading the hundred poems and their image links."""

from __future__ import annotations

import csv
import re
from dataclasses import astuple, dataclass
from pathlib import Path
from typing import Union

BED = "https://gitcode.net/u011570312/OguraHyakuninIsshu/-/raw/master/"
CSV_NAME = "小倉百人一首.csv"
POEM_COUNT = 100

_LABELS = ("番号", "歌人", "上の句", "下の句", "上の句ひらがな", "下の句ひらがな")
_MARKS = ("●", "◉", "○", "○", "◎", "◎")
_STRICT_INT = re.compile(r"[+-]?\d+")


@dataclass(frozen=True)
class Poem:
    """One poem: its number, poet, upper and lower verses and their kana."""

    number: str
    poet: str
    upper: str
    lower: str
    upper_kana: str
    lower_kana: str

    def __str__(self) -> str:
        return "".join(
            f"{mark}{label}：{value}\n"
            for mark, label, value in zip(_MARKS, _LABELS, astuple(self))
        )


def load_poems(path: Union[str, Path]) -> list:
    """Read the hundred poems from a CSV file whose first row is a title.

    Raises ValueError when the file does not hold exactly the poems 1..100
    in order, six fields each.
    """
    with open(path, encoding="utf-8", newline="") as handle:
        records = list(csv.reader(handle))
    records = records[1:]
    if len(records) != POEM_COUNT:
        raise ValueError("invalid csvfile")
    poems = []
    for expected, record in enumerate(records, start=1):
        if len(record) != 6:
            raise ValueError("invalid csvfile")
        if not _STRICT_INT.fullmatch(record[0]):
            raise ValueError(f"invalid poem number: {record[0]!r}")
        if int(record[0]) != expected:
            raise ValueError("invalid csvfile")
        poems.append(Poem(*record))
    return poems


def image_urls(number: int) -> tuple:
    """The picture and calligraphy image URLs of poem ``number`` (1..100)."""
    if number > POEM_COUNT or number < 1:
        raise ValueError("超出范围")
    return f"{BED}img/{number:03d}.jpg", f"{BED}img/{number:03d}.png"