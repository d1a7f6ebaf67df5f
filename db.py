import copy
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path

from config import settings
from errors import StorageError

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    {"id": 1, "nombre": "Trabajo", "color": "#3498db"},
    {"id": 2, "nombre": "Personal", "color": "#2ecc71"},
    {"id": 3, "nombre": "Estudio", "color": "#e67e22"},
]


def default_categories():
    return copy.deepcopy(DEFAULT_CATEGORIES)


def empty_document(seed_categories=False):
    return {
        "tareas": [],
        "categorias": default_categories() if seed_categories else [],
    }


def normalize_document(raw, seed_categories=False):
    """Bring whatever was parsed from disk into the {tareas, categorias} shape.

    A bare list is the legacy format (tasks only) and gets wrapped, with the
    default categories attached.
    """
    if raw is None:
        return empty_document(seed_categories)
    if isinstance(raw, list):
        if not raw:
            return empty_document()
        logger.info("Migrating legacy task array (%d tasks) to document shape", len(raw))
        return {"tareas": raw, "categorias": default_categories()}
    if not isinstance(raw, dict):
        logger.warning("Unexpected document type %s, starting empty", type(raw).__name__)
        return empty_document()
    for key in ("tareas", "categorias"):
        if not isinstance(raw.get(key), list):
            raw[key] = []
    return raw


class Store:
    """Storage interface: load/save the whole document.

    transaction() serializes read-modify-write cycles on this store.
    """

    def __init__(self):
        self._lock = threading.Lock()

    def load(self) -> dict:
        raise NotImplementedError

    def save(self, document: dict) -> None:
        raise NotImplementedError

    @contextmanager
    def transaction(self):
        with self._lock:
            document = self.load()
            yield document
            self.save(document)


class JsonFileStore(Store):
    def __init__(self, path, seed_categories=True):
        super().__init__()
        self.path = Path(path)
        self.seed_categories = seed_categories

    def load(self) -> dict:
        if not self.path.exists():
            return empty_document(self.seed_categories)
        try:
            content = self.path.read_bytes()
        except OSError as e:
            logger.error("Cannot read %s: %s", self.path, e)
            raise StorageError("No se pudo leer el archivo de datos") from e
        try:
            raw = json.loads(content.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Unparseable data in %s (%s), starting with an empty document", self.path, e)
            return empty_document()
        return normalize_document(raw, self.seed_categories)

    def save(self, document: dict) -> None:
        payload = json.dumps(document, indent=2, ensure_ascii=False)
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=str(directory))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as e:
            logger.error("Cannot write %s: %s", self.path, e)
            raise StorageError("No se pudo guardar el archivo de datos") from e


class MemoryStore(Store):
    """In-memory store with the same interface, for tests and self-checks."""

    def __init__(self, document=None, seed_categories=False):
        super().__init__()
        if document is None:
            document = empty_document(seed_categories)
        self._document = normalize_document(copy.deepcopy(document), seed_categories)
        self.saves = 0

    def load(self) -> dict:
        return copy.deepcopy(self._document)

    def save(self, document: dict) -> None:
        self._document = copy.deepcopy(document)
        self.saves += 1


store = JsonFileStore(settings.data_file, seed_categories=settings.seed_categories)


def get_db():
    return store


def init_db():
    store.path.parent.mkdir(parents=True, exist_ok=True)
    state = "found" if store.path.exists() else "will be created on first write"
    logger.info("Data file %s (%s)", store.path.resolve(), state)
