"""Task and category operations on top of a Store.

Every mutation runs inside store.transaction(): the document is re-read,
changed in memory and written back whole. Raising leaves the file untouched.
"""

import logging
import re
import time
from datetime import datetime, timezone

from errors import ConflictError, NotFoundError, ValidationError
from models import Category, Task

logger = logging.getLogger(__name__)

DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
TIME_RE = re.compile(r"([0-1]?[0-9]|2[0-3]):[0-5][0-9]")

DEFAULT_COLOR = "#555555"

_ESCAPES = {
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
}
_ESCAPE_RE = re.compile("[" + re.escape("".join(_ESCAPES)) + "]")


def sanitize(text) -> str:
    """Entity-escape < > " ' / and trim. Non-strings become ''."""
    if not isinstance(text, str):
        return ""
    return _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(0)], text).strip()


def is_valid_date(value) -> bool:
    if not isinstance(value, str) or not DATE_RE.fullmatch(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def is_valid_time(value) -> bool:
    return isinstance(value, str) and TIME_RE.fullmatch(value) is not None


def now_iso() -> str:
    # same shape as JavaScript's Date.toISOString()
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def next_id(records) -> int:
    """Millisecond timestamp, bumped past the highest id already stored."""
    candidate = int(time.time() * 1000)
    ids = [r.get("id") for r in records]
    highest = max((i for i in ids if isinstance(i, int) and not isinstance(i, bool)), default=None)
    if highest is not None and candidate <= highest:
        candidate = highest + 1
    return candidate


def same_id(a, b) -> bool:
    """Path ids arrive as strings, stored ids are ints."""
    if a is None or b is None:
        return False
    return str(a) == str(b)


def _find(records, record_id):
    for index, record in enumerate(records):
        if same_id(record.get("id"), record_id):
            return index
    return -1


def _check_schedule(fecha, hora):
    if fecha is not None and not is_valid_date(fecha):
        raise ValidationError("Formato de fecha inválido (YYYY-MM-DD)")
    if hora is not None and not is_valid_time(hora):
        raise ValidationError("Formato de hora inválido (HH:MM)")


# ---- tasks ----

def list_tasks(store):
    return store.load()["tareas"]


def create_task(store, titulo, fecha, hora, categoria_id=None):
    if not titulo or not fecha or not hora:
        raise ValidationError("Faltan campos")
    _check_schedule(fecha, hora)
    title = sanitize(titulo)
    if not title:
        raise ValidationError("Faltan campos")

    with store.transaction() as data:
        task = Task(
            id=next_id(data["tareas"]),
            title=title,
            due_date=fecha,
            due_time=hora,
            category_id=categoria_id or None,
            completed=False,
            created_at=now_iso(),
        ).to_record()
        data["tareas"].append(task)

    logger.info("Task %s created", task["id"])
    return task


def update_task(store, task_id, fields: dict):
    """Apply only the keys present in fields (wire names)."""
    _check_schedule(fields.get("fecha"), fields.get("hora"))
    title = None
    if fields.get("titulo"):
        title = sanitize(fields["titulo"])
        if not title:
            raise ValidationError("El título no puede estar vacío")

    with store.transaction() as data:
        index = _find(data["tareas"], task_id)
        if index == -1:
            raise NotFoundError("Tarea no encontrada")
        task = data["tareas"][index]
        if title is not None:
            task["titulo"] = title
        for key in ("fecha", "hora", "completada", "categoriaId"):
            if key in fields and fields[key] is not None:
                task[key] = fields[key]
        if "categoriaId" in fields and not fields["categoriaId"]:
            task["categoriaId"] = None
        task["fechaActualizacion"] = now_iso()

    logger.info("Task %s updated", task["id"])
    return task


def delete_tasks(store, ids):
    if not isinstance(ids, list):
        raise ValidationError("Se requiere un arreglo de ids")

    wanted = {str(i) for i in ids if i is not None}
    with store.transaction() as data:
        before = len(data["tareas"])
        data["tareas"] = [t for t in data["tareas"] if str(t.get("id")) not in wanted]
        deleted = before - len(data["tareas"])

    logger.info("Deleted %d task(s)", deleted)
    return deleted


# ---- categories ----

def list_categories(store):
    return store.load()["categorias"]


def create_category(store, nombre, color=None):
    name = sanitize(nombre)
    if not name:
        raise ValidationError("Nombre requerido")

    with store.transaction() as data:
        category = Category(
            id=next_id(data["categorias"]),
            name=name,
            color=color or DEFAULT_COLOR,
            created_at=now_iso(),
        ).to_record()
        data["categorias"].append(category)

    logger.info("Category %s created", category["id"])
    return category


def update_category(store, category_id, fields: dict):
    name = None
    if fields.get("nombre"):
        name = sanitize(fields["nombre"])
        if not name:
            raise ValidationError("Nombre requerido")

    with store.transaction() as data:
        index = _find(data["categorias"], category_id)
        if index == -1:
            raise NotFoundError("Categoría no encontrada")
        category = data["categorias"][index]
        if name is not None:
            category["nombre"] = name
        if fields.get("color"):
            category["color"] = fields["color"]
        category["fechaActualizacion"] = now_iso()

    logger.info("Category %s updated", category["id"])
    return category


def delete_category(store, category_id):
    with store.transaction() as data:
        index = _find(data["categorias"], category_id)
        if index == -1:
            raise NotFoundError("Categoría no encontrada")
        in_use = any(same_id(t.get("categoriaId"), category_id) for t in data["tareas"])
        if in_use:
            raise ConflictError("No se puede eliminar una categoría en uso")
        removed = data["categorias"].pop(index)

    logger.info("Category %s deleted", removed["id"])
    return removed
