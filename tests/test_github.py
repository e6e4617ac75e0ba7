import json
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlsplit

import pytest

from qqbotplugins.github import (
    PREVIEW_BASE,
    RequestError,
    format_repo,
    net_get,
    notnull,
    preview_image_url,
    search_repo,
)

REPO = {
    "full_name": "octo/repo",
    "description": "A sample repository",
    "watchers": 12,
    "forks": 3,
    "open_issues": 4,
    "language": "Go",
    "license": {"key": "mit"},
    "pushed_at": "2022-06-01T00:00:00Z",
    "html_url": "https://github.example.com/octo/repo",
}


def _response(status, payload):
    resp = MagicMock()
    resp.status_code = status
    resp.content = json.dumps(payload).encode()
    return resp


def test_notnull():
    assert notnull("", "None") == "None"
    assert notnull("Go", "None") == "Go"


def test_format_repo_lines():
    lines = format_repo(REPO).split("\n")
    assert lines[0] == "octo/repo"
    assert lines[1] == "Description: A sample repository"
    assert lines[2] == "Star/Fork/Issue: 12/3/4"
    assert lines[3] == "Language: Go"
    assert lines[4] == "License: MIT"
    assert lines[6] == "Jump: https://github.example.com/octo/repo"
    assert lines[-1] == ""


def test_format_repo_missing_fields():
    lines = format_repo({"full_name": "a/b", "license": None, "language": None}).split("\n")
    assert lines[2] == "Star/Fork/Issue: 0/0/0"
    assert lines[3] == "Language: None"
    assert lines[4] == "License: None"


def test_preview_image_url():
    assert preview_image_url(REPO) == PREVIEW_BASE + "octo/repo"


def test_net_get_error_status():
    with patch("qqbotplugins.github.requests.get", return_value=_response(404, {})):
        with pytest.raises(RequestError, match="code 404"):
            net_get("https://api.example.com", {})


def test_search_repo_returns_first_item():
    payload = {"total_count": 2, "items": [REPO, {"full_name": "x/y"}]}
    with patch("qqbotplugins.github.requests.get", return_value=_response(200, payload)) as get:
        repo = search_repo("hello world")
    assert repo == REPO
    url = get.call_args.args[0]
    assert parse_qs(urlsplit(url).query) == {"q": ["hello world"]}


def test_search_repo_nothing_found():
    payload = {"total_count": 0, "items": []}
    with patch("qqbotplugins.github.requests.get", return_value=_response(200, payload)):
        with pytest.raises(LookupError):
            search_repo("nothing")