"""Generating over-the-top praise sentences from a verb and a noun."""

from __future__ import annotations

import requests

JUEJUEZI_URL = "https://www.offjuan.com/api/juejuezi/text"
REFERER = "https://juejuezi.offjuan.com/"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/96.0.4664.110 Safari/537.36"
)
KEYWORD = "绝绝子"


def strip_keyword(text: str) -> str:
    """``text`` with every occurrence of the keyword removed."""
    return text.replace(KEYWORD, "")


def build_payload(verb: str, noun: str) -> str:
    """The JSON request body, built literally from the two words."""
    return '{"verb":"%s","noun":"%s"}' % (verb, noun)


def juejuezi(verb: str, noun: str) -> bytes:
    """POST the words to the generator and return the raw response body."""
    response = requests.post(
        JUEJUEZI_URL,
        data=build_payload(verb, noun).encode("utf-8"),
        headers={"Referer": REFERER, "User-Agent": USER_AGENT},
        timeout=30,
    )
    return response.content