"""
Reglas compartidas de clasificación pasado/futuro y orden cronológico.

Un registro es una sesión o cualquier objeto con atributo `session` (una
reserva): la fecha y hora siempre se toman de la sesión.
"""
import logging
from datetime import date, datetime, time
from enum import Enum
from typing import Iterable, List, Tuple

from app.core.exceptions import MalformedDate

logger = logging.getLogger(__name__)


class Temporal(str, Enum):
    PAST = "past"
    FUTURE = "future"


def session_of(record):
    session = getattr(record, "session", None)
    return session if session is not None else record


def _parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as e:
            raise MalformedDate(f"Unparsable session date: {value!r}") from e
    raise MalformedDate(f"Missing session date: {value!r}")


def _parse_time(value) -> time:
    # Sin hora se normaliza a medianoche
    if value is None or value == "":
        return time(0, 0)
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        try:
            return time.fromisoformat(value.strip())
        except ValueError as e:
            raise MalformedDate(f"Unparsable session time: {value!r}") from e
    raise MalformedDate(f"Unsupported session time: {value!r}")


def session_date_of(record) -> date:
    """Fecha de la sesión del registro. Lanza MalformedDate si falta o es inválida."""
    return _parse_date(getattr(session_of(record), "session_date", None))


def sort_key(record) -> Tuple[date, time]:
    session = session_of(record)
    return (
        _parse_date(getattr(session, "session_date", None)),
        _parse_time(getattr(session, "session_time", None)),
    )


def session_moment(record) -> datetime:
    return datetime.combine(*sort_key(record))


def classify(record, reference: datetime) -> Temporal:
    """Pasado si la fecha+hora de la sesión es estrictamente anterior a `reference`."""
    return Temporal.PAST if session_moment(record) < reference else Temporal.FUTURE


def drop_malformed(records: Iterable) -> List:
    """Descarta (con aviso) los registros sin fecha/hora interpretable."""
    valid = []
    for record in records:
        try:
            sort_key(record)
        except MalformedDate as e:
            logger.warning(f"Registro {getattr(record, 'id', '?')} excluido: {e.message}")
            continue
        valid.append(record)
    return valid


def filter_past(records: Iterable, now: datetime) -> List:
    return [r for r in drop_malformed(records) if classify(r, now) == Temporal.PAST]


def filter_upcoming(records: Iterable, today: date) -> List:
    """Registros con fecha de sesión >= today (comparación solo por fecha)."""
    return [r for r in drop_malformed(records) if session_date_of(r) >= today]


def sort_chronologically(records: Iterable) -> List:
    """Orden ascendente y estable por (fecha, hora) de la sesión."""
    return sorted(drop_malformed(records), key=sort_key)
