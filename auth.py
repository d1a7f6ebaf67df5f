"""Fixed-credential access guard. Not a real token protocol."""

import logging
from typing import Optional

from fastapi import Header

from config import settings
from errors import AuthError

logger = logging.getLogger(__name__)


def require_token(authorization: Optional[str] = Header(None)):
    """Route dependency: the header must be exactly 'Bearer <token>'."""
    if authorization != f"Bearer {settings.api_token}":
        logger.warning("Rejected request with invalid or missing token")
        raise AuthError("Token inválido")


def login(usuario, password) -> dict:
    if usuario == settings.admin_user and password == settings.admin_password:
        logger.info("User %s logged in", usuario)
        return {
            "token": settings.api_token,
            "usuario": usuario,
            "message": "Login exitoso",
        }
    logger.warning("Failed login for %r", usuario)
    raise AuthError("Credenciales incorrectas")
