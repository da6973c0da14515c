"""Token persistence."""

import json

from adapters.token_store import FileTokenStore, MemoryTokenStore
from core.interfaces.token_store import AUTH_TOKEN_KEY, TokenStore


def test_file_store_round_trip_under_fixed_key(tmp_path):
    path = tmp_path / "nested" / "session.json"
    store = FileTokenStore(path)

    assert store.get_token() is None
    store.set_token("tok-1")

    assert store.get_token() == "tok-1"
    assert json.loads(path.read_text(encoding="utf-8")) == {AUTH_TOKEN_KEY: "tok-1"}
    assert FileTokenStore(path).get_token() == "tok-1"


def test_remove_deletes_file_when_nothing_else_is_stored(tmp_path):
    path = tmp_path / "session.json"
    store = FileTokenStore(path)
    store.set_token("tok-1")

    store.remove_token()

    assert not path.exists()
    store.remove_token()


def test_remove_keeps_unrelated_keys(tmp_path):
    path = tmp_path / "session.json"
    path.write_text(json.dumps({AUTH_TOKEN_KEY: "tok-1", "locale": "es"}), encoding="utf-8")

    FileTokenStore(path).remove_token()

    assert json.loads(path.read_text(encoding="utf-8")) == {"locale": "es"}


def test_unreadable_file_reads_as_no_token(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json", encoding="utf-8")
    store = FileTokenStore(path)

    assert store.get_token() is None
    store.set_token("tok-2")
    assert store.get_token() == "tok-2"


def test_stores_satisfy_protocol(tmp_path):
    assert isinstance(FileTokenStore(tmp_path / "s.json"), TokenStore)
    assert isinstance(MemoryTokenStore(), TokenStore)


def test_memory_store():
    store = MemoryTokenStore("seed")
    assert store.get_token() == "seed"
    store.remove_token()
    assert store.get_token() is None
