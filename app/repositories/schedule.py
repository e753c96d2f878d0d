import logging
from typing import List, Optional
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager, joinedload

from app.core.exceptions import RepositoryError
from app.repositories.base import BaseRepository
from app.models.schedule import TrainingSession, Booking

logger = logging.getLogger(__name__)


def _session_display_options():
    """Carga ansiosa de actividad, sala y entrenador para una sesión."""
    return (
        joinedload(TrainingSession.activity),
        joinedload(TrainingSession.location),
        joinedload(TrainingSession.trainer),
    )


class TrainingSessionRepository(BaseRepository[TrainingSession]):
    def get_sessions_by_trainer(
        self,
        db: Session,
        *,
        trainer_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[TrainingSession]:
        """
        Obtener las sesiones activas de un entrenador, ordenadas por fecha y hora.

        El rango [start_date, end_date] (inclusivo) solo se aplica cuando se
        proporcionan ambos extremos.

        Args:
            db: Sesión de base de datos
            trainer_id: ID del entrenador
            start_date: Fecha inicial opcional
            end_date: Fecha final opcional
        """
        try:
            query = db.query(TrainingSession).options(*_session_display_options()).filter(
                TrainingSession.trainer_id == trainer_id,
                TrainingSession.deleted.is_(False)
            )
            if start_date is not None and end_date is not None:
                query = query.filter(
                    TrainingSession.session_date >= start_date,
                    TrainingSession.session_date <= end_date
                )
            return query.order_by(
                TrainingSession.session_date.asc(),
                TrainingSession.session_time.asc()
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"Error obteniendo sesiones del entrenador {trainer_id}: {e}", exc_info=True)
            raise RepositoryError() from e

    def get_upcoming_sessions(
        self,
        db: Session,
        *,
        today: date,
        trainer_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[TrainingSession]:
        """
        Obtener las sesiones activas con fecha >= today.
        """
        try:
            query = db.query(TrainingSession).options(*_session_display_options()).filter(
                TrainingSession.deleted.is_(False),
                TrainingSession.session_date >= today
            )
            if trainer_id is not None:
                query = query.filter(TrainingSession.trainer_id == trainer_id)
            return query.order_by(
                TrainingSession.session_date.asc(),
                TrainingSession.session_time.asc()
            ).offset(skip).limit(limit).all()
        except SQLAlchemyError as e:
            logger.error(f"Error obteniendo próximas sesiones: {e}", exc_info=True)
            raise RepositoryError() from e


class BookingRepository(BaseRepository[Booking]):
    def _with_display(self, db: Session):
        # La sesión se une explícitamente para poder filtrar por sus columnas
        return db.query(Booking).join(Booking.session).options(
            contains_eager(Booking.session).joinedload(TrainingSession.activity),
            contains_eager(Booking.session).joinedload(TrainingSession.location),
            contains_eager(Booking.session).joinedload(TrainingSession.trainer),
            joinedload(Booking.member),
        )

    def get_bookings_by_member(
        self,
        db: Session,
        *,
        member_id: int,
        include_past: bool = True,
        today: Optional[date] = None
    ) -> List[Booking]:
        """
        Obtener las reservas activas de un miembro sobre sesiones activas.

        Las reservas cuya sesión está borrada quedan huérfanas y se excluyen.

        Args:
            db: Sesión de base de datos
            member_id: ID del miembro
            include_past: Si False, solo reservas con fecha de sesión >= today
            today: Fecha de referencia del gimnasio, obligatoria si include_past es False
        """
        try:
            query = self._with_display(db).filter(
                Booking.member_id == member_id,
                Booking.deleted.is_(False),
                TrainingSession.deleted.is_(False)
            )
            if not include_past:
                query = query.filter(TrainingSession.session_date >= today)
            return query.order_by(
                TrainingSession.session_date.asc(),
                TrainingSession.session_time.asc()
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"Error obteniendo reservas del miembro {member_id}: {e}", exc_info=True)
            raise RepositoryError() from e

    def get_booking_detail(
        self, db: Session, *, booking_id: int, include_deleted: bool = False
    ) -> Optional[Booking]:
        """
        Obtener una reserva con los datos de sesión, actividad, sala, entrenador y miembro.
        Con include_deleted (administradores) también se devuelven reservas borradas
        o de sesiones borradas.
        """
        try:
            query = self._with_display(db).filter(Booking.id == booking_id)
            if not include_deleted:
                query = query.filter(
                    Booking.deleted.is_(False),
                    TrainingSession.deleted.is_(False)
                )
            return query.first()
        except SQLAlchemyError as e:
            logger.error(f"Error obteniendo la reserva {booking_id}: {e}", exc_info=True)
            raise RepositoryError() from e

    def get_active_booking(self, db: Session, *, member_id: int, session_id: int) -> Optional[Booking]:
        try:
            return db.query(Booking).filter(
                Booking.member_id == member_id,
                Booking.session_id == session_id,
                Booking.deleted.is_(False)
            ).first()
        except SQLAlchemyError as e:
            logger.error(f"Error comprobando reserva duplicada: {e}", exc_info=True)
            raise RepositoryError() from e


training_session_repository = TrainingSessionRepository(TrainingSession)
booking_repository = BookingRepository(Booking)
