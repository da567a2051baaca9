"""Tests for the SQLAlchemy-backed property store."""

import pytest

from invite_triage.config.exceptions import PipelineError
from invite_triage.db.kv_store import KeyValueStore


def test_get_missing_is_none(kv_store):
    assert kv_store.get("nope") is None


def test_set_get_overwrite_delete(kv_store):
    kv_store.set("k", "v1")
    assert kv_store.get("k") == "v1"

    kv_store.set("k", "v2")
    assert kv_store.get("k") == "v2"
    assert kv_store.list_keys() == ["k"]

    kv_store.delete("k")
    assert kv_store.get("k") is None


def test_delete_missing_is_noop(kv_store):
    kv_store.delete("never-set")
    assert kv_store.list_keys() == []


def test_list_keys_by_prefix(kv_store):
    for key in ("b:2", "a:1", "b:1", "c"):
        kv_store.set(key, "x")
    assert kv_store.list_keys("b:") == ["b:1", "b:2"]
    assert kv_store.list_keys() == ["a:1", "b:1", "b:2", "c"]


def test_values_survive_a_new_store(tmp_path):
    url = f"sqlite:///{tmp_path / 'nested' / 'state.db'}"
    first = KeyValueStore(url)
    first.set("k", "persisted")
    first.dispose()

    second = KeyValueStore(url)
    try:
        assert second.get("k") == "persisted"
    finally:
        second.dispose()


def test_invalid_url_raises_pipeline_error():
    store = KeyValueStore("::not a url::")
    with pytest.raises(PipelineError):
        store.get("k")
