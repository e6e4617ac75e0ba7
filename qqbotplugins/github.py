"""Searching GitHub repositories and describing the best match."""

from __future__ import annotations

import json
from typing import Mapping, Optional
from urllib.parse import urlencode

import requests

SEARCH_API = "https://api.github.com/search/repositories"
PREVIEW_BASE = "https://opengraph.githubassets.com/0/"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/88.0.4324.182 Safari/537.36"
)


class RequestError(Exception):
    """The server answered with a status other than 200."""


def notnull(text: str, default: str) -> str:
    """``text``, or ``default`` when it is empty."""
    return text if text else default


def net_get(url: str, headers: Optional[Mapping[str, str]] = None) -> bytes:
    """GET ``url`` and return the body; raises RequestError unless status is 200."""
    response = requests.get(url, headers=dict(headers or {}), timeout=30)
    body = response.content
    if response.status_code != 200:
        raise RequestError(f"code {response.status_code}")
    return body


def search_repo(query: str) -> dict:
    """The first repository matching ``query``; LookupError when there is none."""
    url = SEARCH_API + "?" + urlencode({"q": query})
    info = json.loads(net_get(url, {"User-Agent": USER_AGENT}))
    if not isinstance(info, dict) or _int(info.get("total_count")) == 0:
        raise LookupError("没有找到这样的仓库")
    items = info.get("items") or []
    if not items:
        raise LookupError("没有找到这样的仓库")
    return items[0]


def _str(value) -> str:
    return value if isinstance(value, str) else ""


def _int(value) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    return 0


def format_repo(repo: Mapping) -> str:
    """A text summary of a repository record from the search API."""
    license_info = repo.get("license")
    license_key = _str(license_info.get("key")) if isinstance(license_info, Mapping) else ""
    return (
        f"{_str(repo.get('full_name'))}\n"
        f"Description: {_str(repo.get('description'))}\n"
        f"Star/Fork/Issue: {_int(repo.get('watchers'))}/{_int(repo.get('forks'))}"
        f"/{_int(repo.get('open_issues'))}\n"
        f"Language: {notnull(_str(repo.get('language')), 'None')}\n"
        f"License: {notnull(license_key.upper(), 'None')}\n"
        f"Last pushed: {_str(repo.get('pushed_at'))}\n"
        f"Jump: {_str(repo.get('html_url'))}\n"
    )


def preview_image_url(repo: Mapping) -> str:
    """URL of the social preview image of a repository."""
    return PREVIEW_BASE + _str(repo.get("full_name"))