import html
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

import auth
import diagnostics
import services
from config import settings
from db import get_db, init_db
from errors import AppError
from logging_setup import setup_logging
from models import CategoryCreate, CategoryUpdate, LoginRequest, TaskCreate, TaskDelete, TaskUpdate

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
INTERNAL_ERROR = "Error interno del servidor"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Check the data file location on startup"""
    init_db()
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def _stored_text(value):
    """Undo the entity escaping applied on write; autoescape re-escapes once."""
    return html.unescape(value) if isinstance(value, str) else value


templates.env.filters["stored_text"] = _stored_text
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

protected = [Depends(auth.require_token)]


# ---- error handlers ----

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse({"error": INTERNAL_ERROR}, status_code=exc.status_code)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info("Malformed body on %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse({"error": "Datos inválidos"}, status_code=400)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # a known path with the wrong method is just another unmatched route
    if exc.status_code in (404, 405):
        return JSONResponse({"error": "Ruta no encontrada"}, status_code=404)
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": INTERNAL_ERROR}, status_code=500)


# ---- pages ----

@app.get("/health")
def health():
    """Health check endpoint for monitoring and CI"""
    return {"status": "ok"}


@app.get("/", response_class=HTMLResponse)
def home(request: Request, db=Depends(get_db)):
    tasks = services.list_tasks(db)
    categories = services.list_categories(db)
    names = {str(c.get("id")): c.get("nombre") for c in categories}

    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "app_name": settings.app_name,
            "tasks": tasks,
            "categories": categories,
            "category_names": names,
            "done_tasks": sum(1 for t in tasks if t.get("completada")),
            "total_tasks": len(tasks),
        },
    )


# ---- tasks ----

@app.get("/api/tareas")
def get_tasks(db=Depends(get_db)):
    return {"data": services.list_tasks(db)}


@app.post("/api/tareas", dependencies=protected)
def add_task(body: TaskCreate, db=Depends(get_db)):
    task = services.create_task(db, body.titulo, body.fecha, body.hora, body.categoriaId)
    return {"message": "Tarea agregada", "data": task}


@app.put("/api/tareas/{task_id}", dependencies=protected)
def edit_task(task_id: str, body: TaskUpdate, db=Depends(get_db)):
    task = services.update_task(db, task_id, body.model_dump(exclude_unset=True))
    return {"message": "Tarea actualizada", "data": task}


@app.delete("/api/tareas", dependencies=protected)
def remove_tasks(body: TaskDelete, db=Depends(get_db)):
    deleted = services.delete_tasks(db, body.ids)
    return {"message": "Tareas eliminadas", "deletedCount": deleted}


# ---- categories ----

@app.get("/api/categorias")
def get_categories(db=Depends(get_db)):
    return {"data": services.list_categories(db)}


@app.post("/api/categorias", dependencies=protected)
def add_category(body: CategoryCreate, db=Depends(get_db)):
    category = services.create_category(db, body.nombre, body.color)
    return {"message": "Categoría agregada", "data": category}


@app.put("/api/categorias/{category_id}", dependencies=protected)
def edit_category(category_id: str, body: CategoryUpdate, db=Depends(get_db)):
    category = services.update_category(db, category_id, body.model_dump(exclude_unset=True))
    return {"message": "Categoría actualizada", "data": category}


@app.delete("/api/categorias/{category_id}", dependencies=protected)
def remove_category(category_id: str, db=Depends(get_db)):
    category = services.delete_category(db, category_id)
    return {"message": "Categoría eliminada", "data": category}


# ---- auth ----

@app.post("/api/auth/login")
async def login(request: Request):
    # anything that is not a usable credentials object is just a failed login
    try:
        body = LoginRequest.model_validate(await request.json())
    except ValueError:
        body = LoginRequest()
    return auth.login(body.usuario, body.password)


# ---- self-checks ----

@app.get("/api/test/unitarias")
def unit_checks():
    return diagnostics.run_unit_checks()


@app.get("/api/test/integracion")
def integration_check():
    return diagnostics.run_integration_check()


if __name__ == "__main__":
    setup_logging(settings.log_level, settings.log_file or None)
    logger.info("Serving %s on http://%s:%d (API under /api)", settings.app_name, settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
