import json
import threading

import pytest

from db import JsonFileStore, MemoryStore, default_categories, normalize_document
from errors import StorageError


def test_missing_file_seeds_default_categories(tmp_path):
    store = JsonFileStore(tmp_path / "tareas.json")
    doc = store.load()
    assert doc["tareas"] == []
    assert [c["nombre"] for c in doc["categorias"]] == ["Trabajo", "Personal", "Estudio"]
    assert not (tmp_path / "tareas.json").exists()


def test_missing_file_without_seed(tmp_path):
    store = JsonFileStore(tmp_path / "tareas.json", seed_categories=False)
    assert store.load() == {"tareas": [], "categorias": []}


def test_bare_array_is_migrated(tmp_path):
    path = tmp_path / "tareas.json"
    legacy = [{"id": 1, "titulo": "vieja", "fecha": "2023-01-01", "hora": "10:00"}]
    path.write_text(json.dumps(legacy), encoding="utf-8")

    doc = JsonFileStore(path, seed_categories=False).load()
    assert doc["tareas"] == legacy
    assert doc["categorias"]
    assert doc["categorias"] == default_categories()
    # not written back until the next save
    assert json.loads(path.read_text(encoding="utf-8")) == legacy


def test_migration_persisted_on_save(tmp_path):
    path = tmp_path / "tareas.json"
    path.write_text(json.dumps([{"id": 1, "titulo": "vieja"}]), encoding="utf-8")
    store = JsonFileStore(path)
    with store.transaction():
        pass
    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert set(on_disk) == {"tareas", "categorias"}


def test_empty_array_gives_empty_document():
    assert normalize_document([]) == {"tareas": [], "categorias": []}


def test_missing_keys_are_filled():
    assert normalize_document({"tareas": [{"id": 1}]}) == {"tareas": [{"id": 1}], "categorias": []}


def test_invalid_json_gives_empty_document(tmp_path):
    path = tmp_path / "tareas.json"
    path.write_text("{ not json", encoding="utf-8")
    assert JsonFileStore(path).load() == {"tareas": [], "categorias": []}


def test_save_is_pretty_printed_utf8(tmp_path):
    path = tmp_path / "tareas.json"
    store = JsonFileStore(path, seed_categories=False)
    store.save({"tareas": [], "categorias": [{"id": 1, "nombre": "Señal"}]})
    text = path.read_text(encoding="utf-8")
    assert "Señal" in text
    assert '\n  "tareas"' in text
    assert [p.name for p in tmp_path.iterdir()] == ["tareas.json"]


def test_transaction_rolls_back_on_error(tmp_path):
    store = JsonFileStore(tmp_path / "tareas.json", seed_categories=False)
    with pytest.raises(RuntimeError):
        with store.transaction() as doc:
            doc["tareas"].append({"id": 1})
            raise RuntimeError("boom")
    assert store.load()["tareas"] == []


def test_unwritable_target_raises_storage_error(tmp_path):
    # a directory where the file should be makes the rename fail
    target = tmp_path / "tareas.json"
    target.mkdir()
    store = JsonFileStore(target)
    with pytest.raises(StorageError):
        store.save({"tareas": [], "categorias": []})


def test_concurrent_transactions_do_not_lose_updates(tmp_path):
    store = JsonFileStore(tmp_path / "tareas.json", seed_categories=False)

    def add(n):
        with store.transaction() as doc:
            doc["tareas"].append({"id": n})

    threads = [threading.Thread(target=add, args=(n,)) for n in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sorted(t["id"] for t in store.load()["tareas"]) == list(range(20))


def test_memory_store_returns_copies():
    store = MemoryStore()
    doc = store.load()
    doc["tareas"].append({"id": 1})
    assert store.load()["tareas"] == []
    store.save(doc)
    assert store.load()["tareas"] == [{"id": 1}]
    assert store.saves == 1


def test_undecodable_file_gives_empty_document(tmp_path):
    path = tmp_path / "tareas.json"
    path.write_bytes(b"\xff\xfe{\x00}\x00")
    assert JsonFileStore(path).load() == {"tareas": [], "categorias": []}


def test_undecodable_file_does_not_break_listing(client, store):
    store.path.write_bytes(b"\xff\xfe\x00garbage")
    r = client.get("/api/tareas")
    assert r.status_code == 200
    assert r.json() == {"data": []}
