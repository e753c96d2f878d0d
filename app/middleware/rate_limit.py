"""
Rate limiting de los endpoints sensibles (login y exportaciones)
usando slowapi, con Redis como almacenamiento cuando está configurado.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
import redis

from app.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def get_client_identifier(request: Request) -> str:
    """Obtener identificador único del cliente para rate limiting de forma segura.

    - Por defecto usa la IP del socket (ASGI client).
    - Si TRUST_PROXY_HEADERS=True, usa el primer IP de X-Forwarded-For cuando existe.
    """
    if settings.TRUST_PROXY_HEADERS:
        fwd = request.headers.get("x-forwarded-for")
        if fwd:
            return fwd.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip
    if request.client and request.client.host:
        return request.client.host
    return get_remote_address(request)


def get_storage_uri() -> str:
    """Redis si REDIS_URL responde; si no, memoria local (solo desarrollo)."""
    if settings.REDIS_URL:
        try:
            redis.from_url(settings.REDIS_URL, socket_connect_timeout=2).ping()
            logger.info("Rate limiting configurado con backend Redis")
            return settings.REDIS_URL
        except redis.RedisError as e:
            logger.warning(f"No se pudo conectar a Redis para rate limiting: {e}")
    logger.warning("Rate limiting usando memoria local (solo desarrollo)")
    return "memory://"


limiter = Limiter(
    key_func=get_client_identifier,
    storage_uri=get_storage_uri(),
    enabled=settings.RATE_LIMIT_ENABLED,
)

RATE_LIMITS = {
    "login": settings.RATE_LIMIT_LOGIN,
    "export": settings.RATE_LIMIT_EXPORT,
}


def custom_rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handler personalizado para rate limit exceeded"""
    logger.warning(
        f"Rate limit exceeded para {get_client_identifier(request)} "
        f"en {request.url.path} - Límite: {exc.detail}"
    )
    return JSONResponse(
        status_code=429,
        content={"message": "Too many requests, please try again later", "limit": exc.detail},
    )


__all__ = ["limiter", "RATE_LIMITS", "custom_rate_limit_exceeded_handler"]
