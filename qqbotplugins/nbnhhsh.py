"""Guessing the meaning of pinyin initial abbreviations."""

from __future__ import annotations

import json

import requests

GUESS_API = "https://lab.magiconch.com/api/nbnhhsh/guess"


def _as_text(value) -> str:
    return value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)


def parse_guess(data) -> list:
    """Meanings from a guess response, falling back to input suggestions."""
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except ValueError:
            return []
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return []
    first = data[0]
    values = first.get("trans") if "trans" in first else first.get("inputting")
    if not isinstance(values, list):
        return []
    return [_as_text(v) for v in values]


def get_value(text: str) -> list:
    """Meanings of ``text``; on failure a one-item list with the error message."""
    try:
        response = requests.post(GUESS_API, data={"text": text}, timeout=30)
        body = response.content
    except requests.RequestException as err:
        return [str(err)]
    return parse_guess(body)