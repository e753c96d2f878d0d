from typing import Any, List, Optional
from datetime import date

from fastapi import APIRouter, Depends, Query, Request, Security
from sqlalchemy.orm import Session

from app.api.v1.responses import xml_attachment
from app.core.security import get_current_identity
from app.db.session import get_db
from app.middleware.rate_limit import limiter, RATE_LIMITS
from app.schemas.schedule import SessionView
from app.schemas.user import Identity
from app.services.session import session_service

router = APIRouter()


@router.get("", response_model=List[SessionView])
def get_upcoming_sessions(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
) -> Any:
    """
    Get Upcoming Sessions

    Public list of non-deleted sessions from today onwards (gym local date),
    ordered by date and time.
    """
    return session_service.get_upcoming_sessions(db, skip=skip, limit=limit)


@router.get("/self", response_model=List[SessionView])
def get_my_sessions(
    db: Session = Depends(get_db),
    identity: Identity = Security(get_current_identity),
) -> Any:
    """
    Get My Sessions

    Upcoming sessions led by the calling trainer.

    Raises:
        403: Caller is not a trainer or admin
    """
    return session_service.get_own_sessions(db, identity)


@router.get("/export/xml/weekly")
@limiter.limit(RATE_LIMITS["export"])
def export_weekly_sessions(
    request: Request,
    start_date: Optional[date] = Query(None, alias="startDate", description="Inclusive range start (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, alias="endDate", description="Inclusive range end (YYYY-MM-DD)"),
    trainer_id: Optional[int] = Query(None, alias="trainerId", gt=0, description="Admin only: export another trainer"),
    db: Session = Depends(get_db),
    identity: Identity = Security(get_current_identity),
):
    """
    Export Weekly Sessions (XML)

    Downloads the trainer's sessions grouped into Monday-Sunday weeks as a
    `weekly_sessions` XML document. Without a range only upcoming sessions
    are exported; with `startDate` and `endDate` exactly that inclusive range is.

    Returns:
        application/xml attachment named
        `sessions-<First>-<Last>[-<start>-to-<end>].xml`

    Raises:
        400: Only one range bound supplied, or start after end
        403: Caller is not a trainer/admin, or exporting another trainer without admin role
        404: Trainer not found
        429: Too many export requests
    """
    result = session_service.export_weekly(
        db, identity, trainer_id=trainer_id, start_date=start_date, end_date=end_date
    )
    return xml_attachment(result)
