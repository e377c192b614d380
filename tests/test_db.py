from db import RecordStore


def test_missing_key_returns_default(store):
    assert store.get("users") == []
    assert store.get("lastBackup", None) is None
    assert store.get("autoBackupEnabled", False) is False


def test_set_and_get_json_values(store):
    assert store.set("users", [{"id": 1, "name": "Ana Muñoz"}]) is True
    assert store.get("users") == [{"id": 1, "name": "Ana Muñoz"}]
    assert store.set("users", []) is True
    assert store.get("users") == []


def test_values_persist_across_instances(tmp_path):
    path = tmp_path / "persist.db"
    RecordStore(path).set("income", [{"id": 5}])
    assert RecordStore(path).get("income") == [{"id": 5}]


def test_unserializable_value_is_reported_not_raised(store):
    assert store.set("users", [object()]) is False
    assert store.get("users") == []


def test_remove_and_clear(store):
    store.set("users", [1])
    store.set("income", [2])
    assert store.keys() == ["income", "users"]
    assert store.remove("users") is True
    assert store.keys() == ["income"]
    assert store.clear() is True
    assert store.keys() == []
