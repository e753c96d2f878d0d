from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import BookingConflict, InvalidRequest
from app.core.timezone_utils import gym_now_naive, gym_today
from app.models.schedule import Booking
from app.models.user import UserRole
from app.repositories.schedule import booking_repository, training_session_repository
from app.repositories.user import user_repository
from app.schemas.schedule import BookingCancelResult, BookingCreate, BookingView, CancelOutcome
from app.services.authorization import Operation, authorize, ensure_allowed
from app.services.export import ExportFilter, ExportKind, ExportResult, produce_export
from app.services.schedule_policy import Temporal, classify, filter_past, sort_chronologically
from app.services.session import person_info, session_view

logger = logging.getLogger(__name__)


def booking_view(booking: Booking) -> BookingView:
    return BookingView(
        id=booking.id,
        deleted=booking.deleted,
        session=session_view(booking.session),
        member=person_info(booking.member),
    )


def _is_admin(caller) -> bool:
    return UserRole(caller.role) == UserRole.ADMIN


class BookingService:

    def get_own_bookings(self, db: Session, caller, *, include_past: bool = False) -> List[BookingView]:
        """
        Reservas activas del llamante ordenadas por (fecha, hora) de sesión.
        Por defecto solo las de hoy en adelante.
        """
        ensure_allowed(authorize(caller, Operation.READ_BOOKING, caller.id))
        bookings = booking_repository.get_bookings_by_member(
            db, member_id=caller.id, include_past=include_past, today=gym_today()
        )
        return [booking_view(b) for b in sort_chronologically(bookings)]

    def get_booking(self, db: Session, caller, booking_id: int) -> BookingView:
        """
        Detalle de una reserva. Los administradores ven también reservas borradas.

        Raises:
            AuthorizationDenied: not_found si no existe, not_owner si es de otro miembro
        """
        booking = booking_repository.get_booking_detail(
            db, booking_id=booking_id, include_deleted=_is_admin(caller)
        )
        ensure_allowed(authorize(
            caller,
            Operation.READ_BOOKING,
            booking.member_id if booking else None,
            resource_exists=booking is not None,
        ))
        return booking_view(booking)

    def create_booking(self, db: Session, caller, booking_in: BookingCreate) -> BookingView:
        """
        Reservar una sesión futura y activa.

        `member_id` solo cambia el dueño de la reserva cuando el llamante es admin.
        """
        member_id = booking_in.member_id or caller.id
        session = training_session_repository.get(db, booking_in.session_id)
        ensure_allowed(authorize(
            caller,
            Operation.CREATE_BOOKING,
            member_id,
            resource_exists=session is not None,
        ), "Session not found" if session is None else None)

        if member_id != caller.id:
            member = user_repository.get(db, member_id)
            if member is None or UserRole(member.role) != UserRole.MEMBER:
                raise InvalidRequest("Bookings can only be made for existing members")

        if classify(session, gym_now_naive()) == Temporal.PAST:
            raise InvalidRequest("Cannot book a session that has already started")

        if booking_repository.get_active_booking(db, member_id=member_id, session_id=session.id):
            raise BookingConflict()

        booking = booking_repository.create(db, obj_in={"member_id": member_id, "session_id": session.id})
        logger.info(f"Reserva {booking.id} creada: miembro {member_id}, sesión {session.id}")
        return booking_view(booking_repository.get_booking_detail(db, booking_id=booking.id))

    def cancel_booking(self, db: Session, caller, booking_id: int) -> BookingCancelResult:
        """
        Borrado lógico de una reserva.

        Si la sesión aún no ha empezado es una cancelación; si ya pasó, la
        reserva desaparece del historial de forma permanente.
        """
        booking = booking_repository.get_booking_detail(db, booking_id=booking_id, include_deleted=True)
        ensure_allowed(authorize(
            caller,
            Operation.CANCEL_BOOKING,
            booking.member_id if booking else None,
            resource_exists=booking is not None,
            resource_deleted=bool(booking and booking.deleted),
        ))

        past = classify(booking, gym_now_naive()) == Temporal.PAST
        booking_repository.soft_delete(db, db_obj=booking)
        if past:
            outcome, message = CancelOutcome.DELETED, "Booking removed from history"
        else:
            outcome, message = CancelOutcome.CANCELLED, "Booking cancelled"
        logger.info(f"Reserva {booking_id} {outcome.value} por el usuario {caller.id}")
        return BookingCancelResult(id=booking_id, outcome=outcome, message=message)

    def export_history(
        self,
        db: Session,
        caller,
        *,
        member_id: Optional[int] = None,
        only_past: bool = False,
    ) -> ExportResult:
        """
        Exportación XML del historial de reservas de un miembro.

        Las reservas se ordenan por (fecha, hora) antes de agruparlas, de modo
        que las semanas salen en orden cronológico.
        """
        target_id = member_id or caller.id
        ensure_allowed(authorize(caller, Operation.EXPORT_BOOKINGS, target_id))

        # Un único instante para el filtro onlyPast y para exported_at
        now = gym_now_naive()
        subject = user_repository.get(db, target_id)
        bookings = booking_repository.get_bookings_by_member(db, member_id=target_id, include_past=True)
        if only_past:
            bookings = filter_past(bookings, now)
        bookings = sort_chronologically(bookings)

        return produce_export(
            ExportKind.BOOKING_HISTORY, subject, bookings, ExportFilter(only_past=only_past), now=now
        )


booking_service = BookingService()
