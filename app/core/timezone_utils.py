"""
Utilidades para el manejo de la zona horaria del gimnasio.

Las fechas y horas de las sesiones se guardan como hora local del gimnasio
(columnas Date y Time sin zona). "Ahora" y "hoy" se calculan siempre en esa
misma zona para que las comparaciones pasado/futuro sean coherentes.
"""
from datetime import date, datetime, timezone
from typing import Optional

import pytz

from app.core.config import get_settings


def get_gym_timezone(gym_timezone: Optional[str] = None):
    return pytz.timezone(gym_timezone or get_settings().GYM_TIMEZONE)


def get_current_time_in_gym_timezone(gym_timezone: Optional[str] = None) -> datetime:
    """
    Obtiene la hora actual en la zona horaria del gimnasio.

    Returns:
        Datetime aware representando la hora actual en la zona horaria del gimnasio
    """
    utc_now = datetime.now(timezone.utc)
    return utc_now.astimezone(get_gym_timezone(gym_timezone))


def gym_now_naive(gym_timezone: Optional[str] = None) -> datetime:
    """
    Hora local del gimnasio sin tzinfo, comparable con fecha+hora de sesión.
    """
    return get_current_time_in_gym_timezone(gym_timezone).replace(tzinfo=None)


def gym_today(gym_timezone: Optional[str] = None) -> date:
    return get_current_time_in_gym_timezone(gym_timezone).date()
