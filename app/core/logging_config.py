"""
Logging del servicio de reservas: consola (stdout) y un fichero diario en LOG_DIR.

Niveles por logger del dominio:
    app.services.authorization   INFO     denegaciones de acceso (no son fallos)
    app.services.schedule_policy WARNING  registros con fecha mal formada excluidos
    app.services.week_partition  WARNING  idem, durante el agrupado semanal
    app.repositories             ERROR    fallos de la capa de datos con traza
"""
import logging
import os
import sys
from datetime import datetime
from typing import Dict, List, Optional

from app.core.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(filename)s:%(lineno)d | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Umbral mínimo en producción; con DEBUG_MODE los loggers del dominio bajan a DEBUG
DOMAIN_LOGGER_LEVELS: Dict[str, int] = {
    "app.services.authorization": logging.INFO,
    "app.services.schedule_policy": logging.WARNING,
    "app.services.week_partition": logging.WARNING,
    "app.repositories": logging.ERROR,
}

# Librerías ruidosas: su nivel no depende de DEBUG_MODE
LIBRARY_LOGGER_LEVELS: Dict[str, int] = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.INFO,
    "sqlalchemy.engine": logging.WARNING,
    "slowapi": logging.WARNING,
    "httpx": logging.WARNING,
    "passlib": logging.ERROR,
}


def log_file_path(log_dir: str, day: Optional[datetime] = None) -> str:
    return os.path.join(log_dir, f"app_{(day or datetime.now()).strftime('%Y%m%d')}.log")


def _build_handlers(level: int, log_dir: str) -> List[logging.Handler]:
    os.makedirs(log_dir, exist_ok=True)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers: List[logging.Handler] = [
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(log_file_path(log_dir), encoding="utf-8"),
    ]
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(log_dir: Optional[str] = None) -> None:
    """Configura el logger raíz y los niveles por logger, respetando DEBUG_MODE."""
    settings = get_settings()
    debug = settings.DEBUG_MODE
    level = logging.DEBUG if debug else logging.INFO
    log_dir = log_dir or settings.LOG_DIR

    root = logging.getLogger()
    root.setLevel(level)
    # Uvicorn puede haber añadido sus handlers antes
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in _build_handlers(level, log_dir):
        root.addHandler(handler)

    for name, logger_level in DOMAIN_LOGGER_LEVELS.items():
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logger_level)
    for name, logger_level in LIBRARY_LOGGER_LEVELS.items():
        logging.getLogger(name).setLevel(logger_level)

    root.info("Logging configurado: nivel %s, ficheros en %s", logging.getLevelName(level), log_dir)
