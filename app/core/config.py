import os
import json
from typing import Any, List, Optional, Union
from functools import lru_cache
import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Configurar el logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Permitir campos extra en .env
    )

    # Configuración básica
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str
    # 60 minutos * 24 horas = 1 día
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    JWT_ALGORITHM: str = "HS256"

    # Información del proyecto
    PROJECT_NAME: str = "GymSchedule"
    PROJECT_DESCRIPTION: str = "API con FastAPI para reservas y exportaciones de sesiones del gimnasio"
    VERSION: str = "0.1.0"

    # Debug mode
    DEBUG_MODE: bool = os.getenv("DEBUG_MODE", "False").lower() in ("true", "1", "t")
    # Trust proxy headers for client IP derivation (rate limiting, logs)
    TRUST_PROXY_HEADERS: bool = os.getenv("TRUST_PROXY_HEADERS", "False").lower() in ("true", "1", "t")

    # Directorio de los ficheros de log diarios
    LOG_DIR: str = "logs"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode='before')
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, str):
            return json.loads(v)
        elif isinstance(v, list):
            return v
        raise ValueError(v)

    DATABASE_URL: str = "sqlite:///./gym_schedule.db"

    @field_validator("DATABASE_URL", mode="before")
    def ensure_proper_url_format(cls, v: Optional[str]) -> str:
        """Asegura que DATABASE_URL esté en el formato que espera SQLAlchemy."""
        if not v:
            return "sqlite:///./gym_schedule.db"
        # Asegurar formato postgresql://
        if v.startswith('postgres://'):
            logger.info("Corrigiendo formato de postgres:// a postgresql://")
            return 'postgresql://' + v[len('postgres://'):]
        return v

    # Zona horaria del gimnasio: define "hoy", "ahora" y la hora de exportación
    GYM_TIMEZONE: str = "Australia/Brisbane"

    @field_validator("GYM_TIMEZONE")
    def validate_timezone(cls, v: str) -> str:
        import pytz
        try:
            pytz.timezone(v)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"GYM_TIMEZONE desconocida: {v}")
        return v

    # Copia de seguridad de las exportaciones XML (desactivada si es None)
    EXPORT_BACKUP_DIR: Optional[str] = None

    # Rate limiting
    REDIS_URL: Optional[str] = None
    RATE_LIMIT_EXPORT: str = "20 per minute"
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_LOGIN: str = "5 per minute"

    @field_validator("REDIS_URL", mode="before")
    def assemble_redis_connection(cls, v: Optional[str]) -> Any:
        if isinstance(v, str):
            # Eliminar comentarios (todo lo que sigue a #) y espacios
            v = v.split('#')[0].strip()
            return v or None
        return v


# Usar una función con caché para obtener la configuración
@lru_cache()
def get_settings() -> Settings:
    settings = Settings()
    logger.info("Configuración cargada correctamente")
    return settings
