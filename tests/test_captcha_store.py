import pytest

from models import db
from services.captcha_store import ChallengeRecord
from services.errors import ConflictError, StoreError


def test_put_and_get(store):
    store.put("tok-1", "ABC123", 1000)
    assert store.get("tok-1") == ChallengeRecord("tok-1", "ABC123", 1000)
    assert store.get("missing") is None


def test_put_never_overwrites(store):
    store.put("tok-1", "ABC123", 1000)
    with pytest.raises(ConflictError):
        store.put("tok-1", "ZZZZZZ", 2000)
    assert store.get("tok-1").answer_text == "ABC123"


def test_delete_is_idempotent(store):
    store.put("tok-1", "ABC123", 1000)
    store.delete("tok-1")
    store.delete("tok-1")
    store.delete("never-existed")
    assert store.get("tok-1") is None


def test_take_returns_record_once(store):
    store.put("tok-1", "ABC123", 1000)
    assert store.take("tok-1") == ChallengeRecord("tok-1", "ABC123", 1000)
    assert store.take("tok-1") is None
    assert store.count() == 0


def test_delete_older_than_is_strict(store):
    store.put("old", "AAAAAA", 100)
    store.put("edge", "BBBBBB", 200)
    store.put("new", "CCCCCC", 300)
    assert store.delete_older_than(200) == 1
    assert store.get("old") is None
    assert store.get("edge") is not None
    assert store.delete_older_than(200) == 0
    assert store.count() == 2


def test_count_list_and_clear(store):
    for i in range(3):
        store.put(f"tok-{i}", "ABCDEF", 1000 + i)
    assert store.count() == 3
    assert [r.token for r in store.list_records()] == ["tok-2", "tok-1", "tok-0"]
    assert store.clear() == 3
    assert store.count() == 0


def test_database_failure_becomes_store_error(store):
    db.drop_all()
    with pytest.raises(StoreError):
        store.count()
    with pytest.raises(StoreError):
        store.get("tok-1")
    db.create_all()
    assert store.count() == 0
