from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Task(BaseModel):
    """Stored task. Aliases are the field names used on disk and on the wire."""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str = Field(alias="titulo")
    due_date: str = Field(alias="fecha")
    due_time: str = Field(alias="hora")
    category_id: Any = Field(None, alias="categoriaId")
    completed: bool = Field(False, alias="completada")
    created_at: str = Field(alias="fechaCreacion")
    updated_at: Optional[str] = Field(None, alias="fechaActualizacion")

    def to_record(self) -> dict:
        record = self.model_dump(by_alias=True)
        if self.updated_at is None:
            record.pop("fechaActualizacion")
        return record


class Category(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str = Field(alias="nombre")
    color: str = "#555555"
    created_at: str = Field(alias="fechaCreacion")
    updated_at: Optional[str] = Field(None, alias="fechaActualizacion")

    def to_record(self) -> dict:
        record = self.model_dump(by_alias=True)
        if self.updated_at is None:
            record.pop("fechaActualizacion")
        return record


# Request bodies. Everything is optional here so that missing fields are
# reported by the service layer with its own messages.

class TaskCreate(BaseModel):
    titulo: Optional[str] = None
    fecha: Optional[str] = None
    hora: Optional[str] = None
    categoriaId: Any = None


class TaskUpdate(BaseModel):
    titulo: Optional[str] = None
    fecha: Optional[str] = None
    hora: Optional[str] = None
    completada: Optional[bool] = None
    categoriaId: Any = None


class TaskDelete(BaseModel):
    ids: Any = None


class CategoryCreate(BaseModel):
    nombre: Optional[str] = None
    color: Optional[str] = None


class CategoryUpdate(BaseModel):
    nombre: Optional[str] = None
    color: Optional[str] = None


class LoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    usuario: Optional[str] = None
    password: Optional[str] = Field(None, alias="contraseña")
