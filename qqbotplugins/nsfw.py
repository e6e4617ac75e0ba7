"""Wording of image classification scores."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

HSO_IMAGE = "https://gchat.qpic.cn/gchatpic_new//--4234EDEC5F147A4C319A41149D7E0EA9/0"
THRESHOLD = 0.3


@dataclass(frozen=True)
class Picture:
    """Class probabilities of one image."""

    drawings: float = 0.0
    hentai: float = 0.0
    neutral: float = 0.0
    porn: float = 0.0
    sexy: float = 0.0


def _flags(p: Picture) -> list:
    flags = []
    if p.hentai > THRESHOLD:
        flags.append("hentai")
    if p.porn > THRESHOLD:
        flags.append("porn")
    if p.sexy > THRESHOLD:
        flags.append("hso")
    return flags


def judge(p: Picture) -> str:
    """A short verdict on the scores of a picture."""
    if p.neutral > THRESHOLD:
        return "普通哦"
    kind = "二次元" if p.drawings > THRESHOLD or p.neutral < THRESHOLD else "三次元"
    return "".join([kind] + [" " + f for f in _flags(p)])


def autojudge(p: Picture) -> Optional[str]:
    """The verdict to post unprompted, or None when the picture is harmless."""
    if p.neutral > THRESHOLD:
        return None
    kind = "二次元" if p.drawings > THRESHOLD else "三次元"
    flags = _flags(p)
    if not flags:
        return None
    return "".join([kind] + [" " + f for f in flags])