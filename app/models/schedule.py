from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Time, Date, DateTime, Text, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class Activity(Base):
    """Tipo de actividad ofrecida (yoga, spinning, ...)"""
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    duration = Column(Integer, nullable=True)  # Duración en minutos
    deleted = Column(Boolean, nullable=False, default=False)

    sessions = relationship("TrainingSession", back_populates="activity")


class Location(Base):
    """Sala o sede donde se imparte una sesión"""
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)
    deleted = Column(Boolean, nullable=False, default=False)

    sessions = relationship("TrainingSession", back_populates="location")


class TrainingSession(Base):
    """Sesión concreta de una actividad, impartida por un entrenador en una fecha y hora locales del gimnasio"""
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id"), nullable=False)
    trainer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False)
    session_date = Column(Date, nullable=False, index=True)
    session_time = Column(Time, nullable=False)
    # Borrado lógico: las sesiones nunca se eliminan físicamente
    deleted = Column(Boolean, nullable=False, default=False)

    activity = relationship("Activity", back_populates="sessions")
    location = relationship("Location", back_populates="sessions")
    trainer = relationship("User")
    bookings = relationship("Booking", back_populates="session")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        Index("ix_sessions_trainer_date", "trainer_id", "session_date"),
    )


class Booking(Base):
    """Reserva de un miembro sobre una sesión"""
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    session_id = Column(Integer, ForeignKey("sessions.id"), nullable=False, index=True)
    deleted = Column(Boolean, nullable=False, default=False)

    session = relationship("TrainingSession", back_populates="bookings")
    member = relationship("User")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
