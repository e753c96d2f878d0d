"""
Agrupación de registros fechados en semanas de lunes a domingo.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Tuple

from app.core.exceptions import MalformedDate

logger = logging.getLogger(__name__)

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@dataclass
class WeekBucket:
    week_start: date
    week_end: date
    label: str
    items: List = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.week_start.isoformat()


def week_range(day: date) -> Tuple[date, date]:
    """Lunes y domingo de la semana que contiene `day`."""
    # date.weekday(): lunes=0 ... domingo=6
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def _short(day: date) -> str:
    return f"{day.day:02d} {MONTH_ABBR[day.month - 1]}"


def week_label(week_start: date, week_end: date) -> str:
    """Ej. "01 Jan – 07 Jan, 2024"; con el año en ambos extremos si difiere."""
    if week_start.year == week_end.year:
        return f"{_short(week_start)} – {_short(week_end)}, {week_end.year}"
    return f"{_short(week_start)}, {week_start.year} – {_short(week_end)}, {week_end.year}"


def partition(records: Iterable, date_selector: Callable) -> List[WeekBucket]:
    """
    Agrupa `records` por semana según `date_selector(record) -> date`.

    Las semanas se emiten en el orden de su primera aparición; no se reordenan.
    Los registros cuya fecha no se puede obtener (MalformedDate) se excluyen.
    """
    buckets: Dict[str, WeekBucket] = {}
    for record in records:
        try:
            day = date_selector(record)
        except MalformedDate as e:
            logger.warning(f"Registro {getattr(record, 'id', '?')} excluido del agrupado semanal: {e.message}")
            continue
        start, end = week_range(day)
        bucket = buckets.get(start.isoformat())
        if bucket is None:
            bucket = WeekBucket(start, end, week_label(start, end))
            buckets[bucket.key] = bucket
        bucket.items.append(record)
    return list(buckets.values())
