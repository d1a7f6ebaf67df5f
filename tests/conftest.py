import pytest
from fastapi.testclient import TestClient

from app import app
from db import JsonFileStore, get_db

AUTH = {"Authorization": "Bearer demo-token-123"}


@pytest.fixture()
def store(tmp_path):
    """Real file-backed store in a temp dir, no default categories"""
    return JsonFileStore(tmp_path / "tareas.json", seed_categories=False)


@pytest.fixture()
def client(store):
    app.dependency_overrides[get_db] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
