"""
Errores de dominio del motor de reservas y exportación.

Cada error lleva un mensaje apto para el usuario y el código HTTP con el que
lo traducen los exception handlers registrados en `app.main`.
"""

from typing import Optional

from fastapi import status


class GymScheduleError(Exception):
    """Base de todos los errores esperados del dominio."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Unexpected error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(GymScheduleError):
    """Credencial ausente, inválida o expirada."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class AuthorizationDenied(GymScheduleError):
    """El rol o la propiedad del recurso no permiten la operación."""
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access forbidden"

    def __init__(self, reason: str, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message)
        # not_found se expone como 404 para no filtrar la existencia del recurso
        if reason == "not_found":
            self.status_code = status.HTTP_404_NOT_FOUND


class SubjectNotFound(GymScheduleError):
    """No existe el miembro/entrenador sujeto de la exportación."""
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Export subject not found"


class MalformedDate(GymScheduleError):
    """Fecha u hora de sesión ausente o imposible de interpretar."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Malformed session date"


class RepositoryError(GymScheduleError):
    """Fallo opaco de la capa de datos. No se reintenta."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to access the data store"


class BookingConflict(GymScheduleError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "You are already booked for this session"


class InvalidRequest(GymScheduleError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"
