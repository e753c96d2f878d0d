from typing import Optional
from datetime import date, time
from enum import Enum

from pydantic import BaseModel, Field

from app.schemas.user import PersonInfo


class ActivityInfo(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class LocationInfo(BaseModel):
    id: int
    name: str
    address: Optional[str] = None

    model_config = {"from_attributes": True}


class SessionView(BaseModel):
    """Sesión con los campos de presentación de actividad, sala y entrenador."""
    id: int
    session_date: date
    session_time: time
    deleted: bool = False
    activity: ActivityInfo
    location: LocationInfo
    trainer: PersonInfo


class BookingView(BaseModel):
    id: int
    deleted: bool = False
    session: SessionView
    member: PersonInfo


class BookingCreate(BaseModel):
    session_id: int = Field(..., alias="sessionId", gt=0)
    # Solo se respeta para administradores (reserva en nombre de un miembro)
    member_id: Optional[int] = Field(None, alias="memberId", gt=0)

    model_config = {"populate_by_name": True}


class CancelOutcome(str, Enum):
    CANCELLED = "cancelled"  # Sesión futura: la plaza queda libre
    DELETED = "deleted"      # Sesión pasada: se elimina del historial


class BookingCancelResult(BaseModel):
    id: int
    outcome: CancelOutcome
    message: str
