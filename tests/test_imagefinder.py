import json

import pytest

from qqbotplugins.imagefinder import (
    SearchError,
    clean_description,
    format_tags,
    parse_search_result,
)


def test_format_tags_with_and_without_translation():
    tags = [{"name": "a", "translation": "b"}, {"name": "c", "translation": ""}]
    assert format_tags(tags) == "\n#a (b)\n#c"


def test_format_tags_empty():
    assert format_tags([]) == ""


def test_clean_description():
    assert clean_description('x<br />y<a href="u">z</a>') == "x\nyz"


def test_clean_description_plain_text_unchanged():
    assert clean_description("just text") == "just text"


def test_parse_search_result_error():
    data = json.dumps({"error": True, "message": "boom"})
    with pytest.raises(SearchError, match="boom"):
        parse_search_result(data)


def test_parse_search_result_illusts():
    illust = {"id": 5, "title": "t", "tags": []}
    data = json.dumps({"error": False, "message": "", "data": {"illusts": [illust], "has_next": False}})
    assert parse_search_result(data) == [illust]


def test_parse_search_result_missing_data():
    assert parse_search_result(json.dumps({"error": False})) == []