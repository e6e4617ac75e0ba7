import pytest

from qqbotplugins.jandan import PictureStore, add_new_pictures, picture_id


@pytest.fixture
def store(tmp_path):
    s = PictureStore(tmp_path / "pics.db")
    yield s
    s.close()


def test_picture_id_check_value():
    # catalogue check value of CRC-64 with the ISO polynomial
    assert picture_id("123456789") == 0xB90956C775A41001


def test_picture_id_range_and_determinism():
    pid = picture_id("https://example.com/a.jpg")
    assert 0 <= pid < 1 << 64
    assert picture_id("https://example.com/a.jpg") == pid
    assert picture_id("https://example.com/b.jpg") != pid


def test_insert_and_contains(store):
    pid = store.insert("https://example.com/a.jpg")
    assert pid == picture_id("https://example.com/a.jpg")
    assert store.contains(pid)
    assert not store.contains(picture_id("https://example.com/other.jpg"))
    assert store.count() == 1


def test_random_url(store):
    urls = {"https://example.com/a.jpg", "https://example.com/b.jpg"}
    for url in urls:
        store.insert(url)
    assert store.random_url() in urls


def test_random_url_empty(store):
    with pytest.raises(LookupError):
        store.random_url()


def test_add_new_pictures_stops_at_duplicate(store):
    store.insert("https://example.com/old.jpg")
    urls = [
        "https://example.com/n1.jpg",
        "https://example.com/n2.jpg",
        "https://example.com/old.jpg",
        "https://example.com/n3.jpg",
    ]
    assert add_new_pictures(store, urls) == 2
    assert store.count() == 3
    assert not store.contains(picture_id("https://example.com/n3.jpg"))