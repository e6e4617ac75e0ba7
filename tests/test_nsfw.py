from qqbotplugins.nsfw import Picture, autojudge, judge


def test_judge_neutral():
    assert judge(Picture(neutral=0.9, porn=0.9)) == "普通哦"


def test_judge_low_neutral_is_drawing():
    assert judge(Picture(neutral=0.1, drawings=0.0)) == "二次元"


def test_judge_exact_threshold_uses_drawings():
    assert judge(Picture(neutral=0.3, drawings=0.1)) == "三次元"


def test_judge_flags_in_order():
    result = judge(Picture(neutral=0.0, hentai=0.5, porn=0.5, sexy=0.5))
    assert result.split(" ") == ["二次元", "hentai", "porn", "hso"]


def test_autojudge_neutral_is_silent():
    assert autojudge(Picture(neutral=0.5, porn=0.9)) is None


def test_autojudge_without_flags_is_silent():
    assert autojudge(Picture(neutral=0.1, drawings=0.9)) is None


def test_autojudge_three_dimensional():
    result = autojudge(Picture(neutral=0.1, drawings=0.1, sexy=0.8))
    assert result.split(" ") == ["三次元", "hso"]


def test_autojudge_drawing_with_porn():
    result = autojudge(Picture(neutral=0.0, drawings=0.8, porn=0.8))
    assert result.split(" ") == ["二次元", "porn"]