"""Self-checks served under /api/test/*. They run against a throwaway MemoryStore."""

import services
from db import MemoryStore, empty_document
from errors import AppError, ConflictError, ValidationError

PASS = "PASS"
FAIL = "FAIL"


def _result(ok):
    return PASS if ok else FAIL


def run_unit_checks() -> dict:
    checks = []

    payload = '<script>alert("xss")</script>'
    out = services.sanitize(payload)
    checks.append({
        "nombre": "Sanitización XSS",
        "resultado": _result(not any(c in out for c in '<>"\'/')),
        "entrada": payload,
        "salida": out,
    })

    for value, expected in (("2024-12-01", True), ("2024-13-01", False)):
        checks.append({
            "nombre": "Validación de fecha",
            "resultado": _result(services.is_valid_date(value) is expected),
            "entrada": value,
            "esperado": "válida" if expected else "inválida",
        })

    for value, expected in (("00:00", True), ("23:59", True), ("24:00", False)):
        checks.append({
            "nombre": "Validación de hora",
            "resultado": _result(services.is_valid_time(value) is expected),
            "entrada": value,
            "esperado": "válida" if expected else "inválida",
        })

    doc = empty_document(seed_categories=True)
    checks.append({
        "nombre": "Estructura datos",
        "resultado": _result(doc["tareas"] == [] and len(doc["categorias"]) > 0),
        "descripcion": "Documento con tareas y categorias",
    })

    passed = sum(1 for c in checks if c["resultado"] == PASS)
    return {
        "pruebas_unitarias": checks,
        "resumen": {"total": len(checks), "pasadas": passed, "fallidas": len(checks) - passed},
    }


def run_integration_check() -> dict:
    store = MemoryStore()
    steps = []

    def step(name, fn):
        try:
            ok = bool(fn())
            steps.append({"paso": name, "resultado": _result(ok)})
        except AppError as e:
            steps.append({"paso": name, "resultado": FAIL, "error": e.message})
        except KeyError:
            # an earlier step failed to produce what this one needs
            steps.append({"paso": name, "resultado": FAIL, "error": "paso previo fallido"})

    def expect_error(error_cls, fn):
        def run():
            try:
                fn()
            except error_cls:
                return True
            return False
        return run

    ctx = {}

    def create_category():
        ctx["cat"] = services.create_category(store, "Prueba", "#000000")
        return ctx["cat"] in services.list_categories(store)

    def create_task():
        ctx["task"] = services.create_task(store, "Tarea de prueba", "2024-12-01", "09:30", ctx["cat"]["id"])
        return any(t["id"] == ctx["task"]["id"] for t in services.list_tasks(store))

    def update_task():
        task = services.update_task(store, str(ctx["task"]["id"]), {"completada": True})
        return task["completada"] is True

    def delete_task():
        return services.delete_tasks(store, [ctx["task"]["id"]]) == 1

    def delete_category():
        services.delete_category(store, ctx["cat"]["id"])
        return services.list_categories(store) == []

    step("Crear categoría", create_category)
    step("Crear tarea", create_task)
    step("Rechazar fecha inválida", expect_error(
        ValidationError, lambda: services.create_task(store, "x", "2024-13-01", "10:00")))
    step("Actualizar tarea", update_task)
    step("Bloquear borrado de categoría en uso", expect_error(
        ConflictError, lambda: services.delete_category(store, ctx["cat"]["id"])))
    step("Eliminar tarea", delete_task)
    step("Eliminar categoría", delete_category)

    ok = all(s["resultado"] == PASS for s in steps)
    return {
        "prueba_integracion": {
            "nombre": "Flujo CRUD",
            "resultado": _result(ok),
            "descripcion": "Crear, actualizar y eliminar tareas y categorías en memoria",
            "pasos": steps,
        }
    }
