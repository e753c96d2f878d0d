"""
Composición y serialización XML de las exportaciones semanales.

Un único pipeline genérico parametrizado por `ExportKindConfig` produce tanto
el historial de reservas de un miembro como las sesiones semanales de un
entrenador:

    registros -> partition() -> compose() -> render_xml() -> export_filename()
"""
import logging
import os
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from app.core.config import get_settings
from app.core.exceptions import SubjectNotFound
from app.core.timezone_utils import get_current_time_in_gym_timezone
from app.models.user import UserRole
from app.schemas.export import (
    ExportDocument,
    ExportHeader,
    ExportPeriod,
    ExportSubject,
    ExportWeek,
)
from app.services.schedule_policy import drop_malformed, session_date_of, session_of, sort_key
from app.services.week_partition import WeekBucket, partition

logger = logging.getLogger(__name__)

# Orden de sustitución: '&' primero para no re-escapar entidades ya generadas
_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


def escape_xml(value: Any) -> str:
    """Escapa los cinco caracteres reservados de XML. None se convierte en ""."""
    if value is None:
        return ""
    text = str(value)
    for char, entity in _XML_ESCAPES:
        text = text.replace(char, entity)
    return text


def unescape_xml(value: Any) -> str:
    if value is None:
        return ""
    text = str(value)
    for char, entity in reversed(_XML_ESCAPES):
        text = text.replace(entity, char)
    return text


class ExportKind(str, Enum):
    BOOKING_HISTORY = "booking_history"
    WEEKLY_SESSIONS = "weekly_sessions"


@dataclass(frozen=True)
class ExportFilter:
    """Filtros pedidos por el llamante; el rango solo cuenta si llegan ambos extremos."""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    only_past: bool = False

    @property
    def has_range(self) -> bool:
        return self.start_date is not None and self.end_date is not None


def full_name(user) -> str:
    return f"{getattr(user, 'first_name', '') or ''} {getattr(user, 'last_name', '') or ''}".strip()


def _person_node(user) -> Dict[str, Any]:
    return {
        "name": full_name(user),
        "email": getattr(user, "email", "") or "",
        "id": getattr(user, "id", ""),
    }


def _activity_node(activity) -> Dict[str, Any]:
    return {
        "name": getattr(activity, "name", None) or "Unknown Activity",
        "description": getattr(activity, "description", "") or "",
        "id": getattr(activity, "id", ""),
    }


def _location_node(location) -> Dict[str, Any]:
    return {
        "name": getattr(location, "name", None) or "Unknown Location",
        "address": getattr(location, "address", "") or "",
        "id": getattr(location, "id", ""),
    }


def _when(record) -> Tuple[str, str, str]:
    session_date, session_time = sort_key(record)
    moment = datetime.combine(session_date, session_time)
    return (
        session_date.isoformat(),
        session_time.isoformat(timespec="seconds"),
        moment.isoformat(timespec="seconds"),
    )


def booking_item(booking) -> Dict[str, Any]:
    session = session_of(booking)
    booking_date, booking_time, moment = _when(booking)
    return {
        "booking_date": booking_date,
        "booking_time": booking_time,
        "datetime": moment,
        "activity": _activity_node(session.activity),
        "location": _location_node(session.location),
        "trainer": _person_node(session.trainer),
        "booking_id": f"booking_{booking.id}",
        "session_id": f"session_{session.id}",
    }


def session_item(session) -> Dict[str, Any]:
    # El entrenador va solo en la cabecera, no en cada sesión
    session_date, session_time, moment = _when(session)
    return {
        "id": f"session_{session.id}",
        "session_date": session_date,
        "session_time": session_time,
        "datetime": moment,
        "activity": _activity_node(session.activity),
        "location": _location_node(session.location),
    }


@dataclass(frozen=True)
class ExportKindConfig:
    kind: ExportKind
    root_tag: str
    title_prefix: str
    subject_tag: str
    count_tag: str
    item_tag: str
    item_fields: Tuple[str, ...]
    filename_prefix: str
    build_item: Callable[[Any], Dict[str, Any]]
    subject_role: UserRole
    date_selector: Callable[[Any], date] = session_date_of
    # Solo la exportación de sesiones lleva el rango pedido en el nombre de fichero
    range_in_filename: bool = False


EXPORT_KINDS: Dict[ExportKind, ExportKindConfig] = {
    ExportKind.BOOKING_HISTORY: ExportKindConfig(
        kind=ExportKind.BOOKING_HISTORY,
        root_tag="booking_history",
        title_prefix="Booking History",
        subject_tag="member",
        count_tag="total_bookings",
        item_tag="booking",
        item_fields=("booking_date", "booking_time", "datetime", "activity",
                     "location", "trainer", "booking_id", "session_id"),
        filename_prefix="booking-history",
        build_item=booking_item,
        subject_role=UserRole.MEMBER,
    ),
    ExportKind.WEEKLY_SESSIONS: ExportKindConfig(
        kind=ExportKind.WEEKLY_SESSIONS,
        root_tag="weekly_sessions",
        title_prefix="Weekly Sessions",
        subject_tag="trainer",
        count_tag="total_sessions",
        item_tag="session",
        item_fields=("id", "session_date", "session_time", "datetime",
                     "activity", "location"),
        filename_prefix="sessions",
        build_item=session_item,
        subject_role=UserRole.TRAINER,
        range_in_filename=True,
    ),
}

# Hijos de los elementos compuestos que pueden aparecer en el documento
_COMPOSITE_CHILDREN = {
    "period": ("start", "end"),
    "activity": ("name", "description", "id"),
    "location": ("name", "address", "id"),
    "trainer": ("name", "email", "id"),
    "member": ("name", "email", "id"),
}


def get_kind_config(kind) -> ExportKindConfig:
    return EXPORT_KINDS[ExportKind(kind)]


def ensure_subject(config: ExportKindConfig, subject) -> None:
    """
    El sujeto debe existir, no estar borrado y tener el rol del tipo de
    exportación (miembro para el historial, entrenador para las sesiones).
    """
    if subject is None or getattr(subject, "deleted", False):
        raise SubjectNotFound()
    role = getattr(subject, "role", None)
    if role is None or UserRole(role) != config.subject_role:
        raise SubjectNotFound(f"No {config.subject_tag} found for this export")


def compose(
    kind,
    subject,
    weeks: Sequence[WeekBucket],
    filter_meta: Optional[ExportFilter] = None,
    now: Optional[datetime] = None,
) -> ExportDocument:
    """
    Construye el documento de exportación a partir de semanas ya agrupadas.

    Args:
        kind: Tipo de exportación (ExportKind o su valor)
        subject: Miembro o entrenador dueño de la exportación
        weeks: Semanas emitidas por `partition`, en su orden
        filter_meta: Filtros pedidos; el rango explícito define el periodo
        now: Instante de exportación (por defecto, hora actual del gimnasio)

    Raises:
        SubjectNotFound: Si no hay sujeto, está borrado o su rol no encaja con el tipo
    """
    config = get_kind_config(kind)
    ensure_subject(config, subject)

    filter_meta = filter_meta or ExportFilter()
    now = now or get_current_time_in_gym_timezone()

    export_weeks = [
        ExportWeek(
            start=bucket.week_start.isoformat(),
            end=bucket.week_end.isoformat(),
            label=bucket.label,
            items=[config.build_item(record) for record in bucket.items],
        )
        for bucket in weeks
    ]

    if filter_meta.has_range:
        period = ExportPeriod(start=filter_meta.start_date.isoformat(), end=filter_meta.end_date.isoformat())
    elif export_weeks:
        period = ExportPeriod(start=export_weeks[0].start, end=export_weeks[-1].end)
    else:
        period = ExportPeriod()

    subject_name = full_name(subject)
    header = ExportHeader(
        title=f"{config.title_prefix} - {subject_name}",
        exported_at=now.strftime("%Y-%m-%d %H:%M:%S"),
        total_count=sum(len(week.items) for week in export_weeks),
        period=period,
        subject=ExportSubject(name=subject_name, email=subject.email or "", id=subject.id),
    )
    return ExportDocument(kind=config.kind.value, root_tag=config.root_tag, header=header, weeks=export_weeks)


def build_dtd(config: ExportKindConfig) -> str:
    """DTD interna que describe la forma del documento de un tipo de exportación."""
    declarations: Dict[str, str] = {}

    def declare(tag: str, content: str) -> None:
        declarations.setdefault(tag, f"<!ELEMENT {tag} {content}>")

    def declare_leaf_or_composite(tag: str) -> None:
        children = _COMPOSITE_CHILDREN.get(tag)
        if children:
            declare(tag, f"({', '.join(children)})")
            for child in children:
                declare_leaf_or_composite(child)
        else:
            declare(tag, "(#PCDATA)")

    declare(config.root_tag, "(header, week*)")
    header_children = ("title", "exported_at", config.count_tag, "period", config.subject_tag)
    declare("header", f"({', '.join(header_children)})")
    for tag in header_children:
        declare_leaf_or_composite(tag)
    declare("week", f"({config.item_tag}*)")
    declare(config.item_tag, f"({', '.join(config.item_fields)})")
    for tag in config.item_fields:
        declare_leaf_or_composite(tag)

    lines = [f"<!DOCTYPE {config.root_tag} ["]
    lines.extend(f"    {declaration}" for declaration in declarations.values())
    lines.append("    <!ATTLIST week start CDATA #REQUIRED end CDATA #REQUIRED label CDATA #REQUIRED>")
    lines.append("]>")
    return "\n".join(lines)


def _render_node(tag: str, value: Any, depth: int, out: List[str]) -> None:
    indent = "    " * depth
    if isinstance(value, dict):
        out.append(f"{indent}<{tag}>")
        for child_tag, child_value in value.items():
            _render_node(child_tag, child_value, depth + 1, out)
        out.append(f"{indent}</{tag}>")
    else:
        out.append(f"{indent}<{tag}>{escape_xml(value)}</{tag}>")


def render_xml(document: ExportDocument) -> str:
    """
    Serializa un ExportDocument a XML con declaración y DTD interna.
    Todo texto y atributo se escapa aquí.
    """
    config = get_kind_config(document.kind)
    header = document.header
    out: List[str] = ['<?xml version="1.0" encoding="UTF-8"?>', build_dtd(config)]
    out.append(f"<{config.root_tag}>")
    _render_node("header", {
        "title": header.title,
        "exported_at": header.exported_at,
        config.count_tag: header.total_count,
        "period": {"start": header.period.start, "end": header.period.end},
        config.subject_tag: {
            "name": header.subject.name,
            "email": header.subject.email,
            "id": header.subject.id,
        },
    }, 1, out)
    for week in document.weeks:
        out.append(
            f'    <week start="{escape_xml(week.start)}" end="{escape_xml(week.end)}" '
            f'label="{escape_xml(week.label)}">'
        )
        for item in week.items:
            _render_node(config.item_tag, item, 2, out)
        out.append("    </week>")
    out.append(f"</{config.root_tag}>")
    return "\n".join(out) + "\n"


def export_filename(kind, subject, filter_meta: Optional[ExportFilter] = None) -> str:
    """
    "<prefijo>-<Nombre-Completo>[-<inicio>-to-<fin>].xml"
    """
    config = get_kind_config(kind)
    name = re.sub(r"\s+", "-", full_name(subject))
    # Caracteres que romperían la cabecera Content-Disposition
    name = re.sub(r'["\\/]', "", name)
    filename = f"{config.filename_prefix}-{name}"
    if config.range_in_filename and filter_meta is not None and filter_meta.has_range:
        filename += f"-{filter_meta.start_date.isoformat()}-to-{filter_meta.end_date.isoformat()}"
    return f"{filename}.xml"


def write_backup(filename: str, content: str, backup_dir: Optional[str] = None) -> Optional[str]:
    """
    Guarda una copia de la exportación en EXPORT_BACKUP_DIR si está configurado.
    Un fallo se registra y nunca interrumpe la exportación.
    """
    backup_dir = backup_dir or get_settings().EXPORT_BACKUP_DIR
    if not backup_dir:
        return None
    path = os.path.join(backup_dir, filename)
    try:
        os.makedirs(backup_dir, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(content)
    except OSError as e:
        logger.error(f"No se pudo guardar la copia de la exportación en {path}: {e}")
        return None
    logger.info(f"Copia de la exportación guardada en {path}")
    return path


@dataclass
class ExportResult:
    filename: str
    content: str
    document: ExportDocument


def produce_export(
    kind,
    subject,
    records: Sequence,
    filter_meta: Optional[ExportFilter] = None,
    now: Optional[datetime] = None,
) -> ExportResult:
    """Agrupa por semana, compone, serializa y guarda la copia de seguridad."""
    config = get_kind_config(kind)
    ensure_subject(config, subject)
    weeks = partition(drop_malformed(records), config.date_selector)
    document = compose(config.kind, subject, weeks, filter_meta, now=now)
    content = render_xml(document)
    filename = export_filename(config.kind, subject, filter_meta)
    write_backup(filename, content)
    logger.info(
        f"Exportación {config.kind.value} generada para {config.subject_tag} {subject.id}: "
        f"{document.header.total_count} elementos en {len(document.weeks)} semanas"
    )
    return ExportResult(filename=filename, content=content, document=document)
