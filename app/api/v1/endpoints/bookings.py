from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Path, Query, Request, Security, status
from sqlalchemy.orm import Session

from app.api.v1.responses import xml_attachment
from app.core.security import get_current_identity
from app.db.session import get_db
from app.middleware.rate_limit import limiter, RATE_LIMITS
from app.schemas.schedule import BookingCancelResult, BookingCreate, BookingView
from app.schemas.user import Identity
from app.services.booking import booking_service

router = APIRouter()


@router.get("/self", response_model=List[BookingView])
def get_my_bookings(
    include_past: bool = Query(False, alias="includePast", description="Also return bookings for past sessions"),
    db: Session = Depends(get_db),
    identity: Identity = Security(get_current_identity),
) -> Any:
    """
    Get My Bookings

    Returns the caller's active bookings ordered by session date and time.
    By default only sessions from today onwards (gym local date) are included.

    Permissions:
        - member (own bookings) or admin

    Raises:
        401: Missing or invalid authentication key
        403: Caller role cannot hold bookings
    """
    return booking_service.get_own_bookings(db, identity, include_past=include_past)


@router.get("/export/xml/history")
@limiter.limit(RATE_LIMITS["export"])
def export_booking_history(
    request: Request,
    only_past: bool = Query(False, alias="onlyPast", description="Only bookings whose session already happened"),
    member_id: Optional[int] = Query(None, alias="memberId", gt=0, description="Admin only: export another member"),
    db: Session = Depends(get_db),
    identity: Identity = Security(get_current_identity),
):
    """
    Export Booking History (XML)

    Downloads the member's bookings grouped into Monday-Sunday weeks, oldest
    first, as a `booking_history` XML document with an inline DTD.

    Args:
        only_past: When true, only bookings strictly before now are exported
        member_id: Subject override, honoured for admins only

    Returns:
        application/xml attachment named `booking-history-<First>-<Last>.xml`

    Raises:
        401: Missing or invalid authentication key
        403: Exporting another member's history without admin role
        404: Member not found
        429: Too many export requests
    """
    result = booking_service.export_history(db, identity, member_id=member_id, only_past=only_past)
    return xml_attachment(result)


@router.get("/{booking_id}", response_model=BookingView)
def get_booking(
    booking_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    identity: Identity = Security(get_current_identity),
) -> Any:
    """
    Get Booking Detail

    Returns a booking with its session, activity, location, trainer and member
    display fields. Admins can also read soft-deleted bookings.

    Raises:
        403: The booking belongs to another member (`not_owner`)
        404: Booking not found
    """
    return booking_service.get_booking(db, identity, booking_id)


@router.post("", response_model=BookingView, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_in: BookingCreate,
    db: Session = Depends(get_db),
    identity: Identity = Security(get_current_identity),
) -> Any:
    """
    Book a Session

    Books an upcoming, non-deleted session. Admins may pass `memberId` to book
    on a member's behalf.

    Raises:
        400: The session already started or the target member is invalid
        403: Role not allowed or booking for somebody else
        404: Session not found
        409: Already booked for this session
    """
    return booking_service.create_booking(db, identity, booking_in)


@router.delete("/{booking_id}", response_model=BookingCancelResult)
def cancel_booking(
    booking_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    identity: Identity = Security(get_current_identity),
) -> Any:
    """
    Cancel or Delete a Booking

    Soft-deletes the booking. The outcome is `cancelled` when the session is
    still upcoming and `deleted` when it is already in the past.

    Raises:
        403: The booking belongs to another member
        404: Booking not found or already deleted
    """
    return booking_service.cancel_booking(db, identity, booking_id)
