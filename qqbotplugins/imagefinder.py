"""Searching illustrations by keyword and formatting their descriptions."""

from __future__ import annotations

import json
import re
from typing import Iterable, Mapping
from urllib.parse import quote_plus

import requests

SEARCH_API = "https://api.pixivel.moe/v2/pixiv/illust/search/"
REFERER = "https://pixivel.moe/"
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/94.0.4606.61 Safari/537.36"
)

_HREF = re.compile(r'<a href=".*">')


class SearchError(Exception):
    """The search service reported an error."""


def format_tags(tags: Iterable[Mapping]) -> str:
    """Tags as ``#name (translation)`` lines, each preceded by a newline."""
    parts = []
    for tag in tags:
        parts.append("\n#" + str(tag.get("name", "")))
        translation = tag.get("translation") or ""
        if translation:
            parts.append(f" ({translation})")
    return "".join(parts)


def clean_description(text: str) -> str:
    """Plain text of an HTML description: line breaks kept, links removed."""
    text = text.replace("<br />", "\n").replace("</a>", "")
    return _HREF.sub("", text)


def parse_search_result(data) -> list:
    """The illustrations of a search response; SearchError if it reports one."""
    result = json.loads(data)
    if result.get("error"):
        raise SearchError(result.get("message", ""))
    return list((result.get("data") or {}).get("illusts") or [])


def soutu_api(keyword: str) -> list:
    """Search illustrations matching ``keyword``."""
    response = requests.get(
        SEARCH_API + quote_plus(keyword) + "?page=0",
        headers={"Referer": REFERER, "User-Agent": USER_AGENT},
        timeout=30,
    )
    response.raise_for_status()
    return parse_search_result(response.content)