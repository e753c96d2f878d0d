# Inicializador del paquete repositories
from app.repositories.base import BaseRepository
from app.repositories.user import user_repository
from app.repositories.schedule import training_session_repository, booking_repository

__all__ = [
    "BaseRepository",
    "user_repository",
    "training_session_repository",
    "booking_repository",
]
