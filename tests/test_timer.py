import pytest

from qqbotplugins.timer import (
    Timer,
    chinese_char_to_int,
    chinese_num_to_int,
    filled_cron_timer,
    filled_timer,
)


def test_filled_timer_from_source_case():
    t = filled_timer(["", "12", "-1", "12", "0", "", "test"], 0, 0, False)
    assert t.month() == 12
    assert t.day() == 0
    assert t.week() == 1
    assert t.hour() == 12
    assert t.minute() == 0
    assert t.alert == "test"
    assert t.en() is True
    assert t.timer_info() == "[0]12月0日1周12:0"


def test_bit_fields_are_independent():
    t = Timer()
    t.set_month(-1)
    t.set_day(25)
    t.set_week(6)
    t.set_hour(16)
    t.set_minute(30)
    t.set_en(True)
    assert (t.month(), t.day(), t.week(), t.hour(), t.minute()) == (-1, 25, 6, 16, 30)
    assert t.en()
    t.set_en(False)
    assert not t.en()
    assert (t.month(), t.day(), t.week(), t.hour(), t.minute()) == (-1, 25, 6, 16, 30)


def test_packed_layout():
    t = Timer()
    t.set_month(12)
    assert t.emdwhm == 0x600000
    t.set_minute(-1)
    assert t.emdwhm == 0x60003F
    assert t.minute() == -1


def test_timer_id_depends_on_group():
    a = filled_timer(["", "1", "1日", "8", "0", "", "x"], 1, 100, False)
    b = filled_timer(["", "1", "1日", "8", "0", "", "x"], 1, 100, False)
    c = filled_timer(["", "1", "1日", "8", "0", "", "x"], 1, 200, False)
    assert a.timer_id() == b.timer_id()
    assert a.timer_id() != c.timer_id()
    assert 0 <= a.timer_id() < 2**32


def test_cron_timer_info():
    t = filled_cron_timer("0 8 * * *", "wake", "", 10, 99)
    assert t.timer_info() == "[99]0 8 * * *"
    assert t.alert == "wake"
    assert t.self_id == 10


@pytest.mark.parametrize(
    "text, expected",
    [
        ("十二", 12),
        ("二十", 20),
        ("三十", 30),
        ("五", 5),
        ("12", 12),
        ("每", -1),
        ("每二", -2),
        ("日", 7),
        ("零", 0),
    ],
)
def test_chinese_num_to_int(text, expected):
    assert chinese_num_to_int(text) == expected


def test_chinese_num_to_int_empty():
    with pytest.raises(ValueError):
        chinese_num_to_int("")


@pytest.mark.parametrize("c, expected", [("天", 7), ("十", 10), ("九", 9), ("x", 0)])
def test_chinese_char_to_int(c, expected):
    assert chinese_char_to_int(c) == expected


def test_chinese_day_and_week_forms():
    t = filled_timer(["", "三", "二十五日", "二十三", "十五", "", "hi"], 5, 6, False)
    assert (t.month(), t.day(), t.hour(), t.minute()) == (3, 25, 23, 15)
    assert (t.self_id, t.grp_id) == (5, 6)
    w = filled_timer(["", "每", "周日", "8", "0", "", "hi"], 0, 0, False)
    assert w.week() == 0
    assert w.month() == -1
    e = filled_timer(["", "每", "每周", "8", "0", "", "hi"], 0, 0, False)
    assert e.week() == -1


def test_invalid_month():
    t = filled_timer(["", "十三", "1日", "8", "0", "", "hi"], 1, 2, False)
    assert t.alert == "月份非法！"
    assert not t.en()
    assert t.grp_id == 0


def test_invalid_hour():
    t = filled_timer(["", "1", "1日", "二十五", "0", "", "hi"], 1, 2, False)
    assert t.alert == "小时非法！"
    assert not t.en()


def test_url_handling():
    ok = filled_timer(["", "1", "1日", "8", "0", "用http://example.com/a.png", "hi"], 0, 0, False)
    assert ok.url == "http://example.com/a.png"
    assert ok.en()
    bad = filled_timer(["", "1", "1日", "8", "0", "用ftp://example.com/a", "hi"], 0, 0, False)
    assert bad.url == "illegal"
    assert not bad.en()


def test_match_date_only_keeps_disabled():
    t = filled_timer(["", "1", "1日", "8", "0"], 3, 4, True)
    assert not t.en()
    assert t.grp_id == 4
    assert t.timer_info() == "[4]1月1日0周8:0"