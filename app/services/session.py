from typing import List, Optional
from datetime import date
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import InvalidRequest
from app.core.timezone_utils import gym_now_naive, gym_today
from app.models.schedule import TrainingSession
from app.repositories.schedule import training_session_repository
from app.repositories.user import user_repository
from app.schemas.schedule import ActivityInfo, LocationInfo, SessionView
from app.schemas.user import PersonInfo
from app.services.authorization import Operation, authorize, ensure_allowed
from app.services.export import ExportFilter, ExportKind, ExportResult, full_name, produce_export
from app.services.schedule_policy import filter_upcoming

logger = logging.getLogger(__name__)


def person_info(user) -> PersonInfo:
    return PersonInfo(id=user.id, name=full_name(user), email=user.email)


def session_view(session: TrainingSession) -> SessionView:
    return SessionView(
        id=session.id,
        session_date=session.session_date,
        session_time=session.session_time,
        deleted=session.deleted,
        activity=ActivityInfo.model_validate(session.activity),
        location=LocationInfo.model_validate(session.location),
        trainer=person_info(session.trainer),
    )


def validate_date_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    """El rango es opcional, pero si se usa deben llegar ambos extremos y en orden."""
    if (start_date is None) != (end_date is None):
        raise InvalidRequest("startDate and endDate must be supplied together")
    if start_date is not None and start_date > end_date:
        raise InvalidRequest("startDate must not be after endDate")


class SessionService:

    def get_upcoming_sessions(self, db: Session, *, skip: int = 0, limit: int = 100) -> List[SessionView]:
        """Sesiones activas desde hoy (hora del gimnasio), públicas."""
        sessions = training_session_repository.get_upcoming_sessions(
            db, today=gym_today(), skip=skip, limit=limit
        )
        return [session_view(s) for s in sessions]

    def get_own_sessions(self, db: Session, caller) -> List[SessionView]:
        ensure_allowed(authorize(caller, Operation.READ_SESSIONS, caller.id))
        sessions = training_session_repository.get_upcoming_sessions(
            db, today=gym_today(), trainer_id=caller.id
        )
        return [session_view(s) for s in sessions]

    def export_weekly(
        self,
        db: Session,
        caller,
        *,
        trainer_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ExportResult:
        """
        Exportación XML de las sesiones de un entrenador agrupadas por semana.

        Con rango explícito el filtro se hace en la consulta; sin rango solo se
        exportan las sesiones con fecha >= hoy. Las sesiones conservan el orden
        devuelto por el repositorio.
        """
        validate_date_range(start_date, end_date)
        target_id = trainer_id or caller.id
        ensure_allowed(authorize(caller, Operation.EXPORT_SESSIONS, target_id))

        now = gym_now_naive()
        subject = user_repository.get(db, target_id)
        sessions = training_session_repository.get_sessions_by_trainer(
            db, trainer_id=target_id, start_date=start_date, end_date=end_date
        )
        filter_meta = ExportFilter(start_date=start_date, end_date=end_date)
        if not filter_meta.has_range:
            sessions = filter_upcoming(sessions, now.date())

        return produce_export(ExportKind.WEEKLY_SESSIONS, subject, sessions, filter_meta, now=now)


session_service = SessionService()
