"""
Guardia de autorización por rol y propiedad.

`authorize` es una función pura: nunca lanza por un rechazo esperado, devuelve
un `Decision` con el motivo legible por máquina. Los llamantes traducen el
rechazo a `AuthorizationDenied` con `ensure_allowed`.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.core.exceptions import AuthorizationDenied
from app.models.user import UserRole

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    READ_BOOKING = "read_booking"
    CREATE_BOOKING = "create_booking"
    CANCEL_BOOKING = "cancel_booking"
    EXPORT_BOOKINGS = "export_bookings"
    READ_SESSIONS = "read_sessions"
    EXPORT_SESSIONS = "export_sessions"


class DenyReason(str, Enum):
    NOT_OWNER = "not_owner"
    ROLE_FORBIDDEN = "role_forbidden"
    NOT_FOUND = "not_found"


BOOKING_OPERATIONS = frozenset({
    Operation.READ_BOOKING,
    Operation.CREATE_BOOKING,
    Operation.CANCEL_BOOKING,
    Operation.EXPORT_BOOKINGS,
})
SESSION_OPERATIONS = frozenset({
    Operation.READ_SESSIONS,
    Operation.EXPORT_SESSIONS,
})
WRITE_OPERATIONS = frozenset({
    Operation.CREATE_BOOKING,
    Operation.CANCEL_BOOKING,
})

# Operaciones de cada rol no administrador sobre recursos propios
ROLE_OPERATIONS = {
    UserRole.MEMBER: BOOKING_OPERATIONS,
    UserRole.TRAINER: SESSION_OPERATIONS,
}


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def authorize(
    caller,
    operation: Operation,
    resource_owner_id: Optional[int] = None,
    *,
    resource_exists: bool = True,
    resource_deleted: bool = False,
) -> Decision:
    """
    Decide si `caller` (cualquier objeto con `id` y `role`) puede ejecutar
    `operation` sobre un recurso cuyo dueño es `resource_owner_id`.

    - member: solo reservas propias
    - trainer: solo sesiones propias
    - admin: cualquier recurso
    Las escrituras exigen además que el recurso no esté borrado.
    """
    if not resource_exists:
        return Decision(False, DenyReason.NOT_FOUND)
    if operation in WRITE_OPERATIONS and resource_deleted:
        return Decision(False, DenyReason.NOT_FOUND)

    role = UserRole(caller.role)
    if role == UserRole.ADMIN:
        return ALLOW

    if operation not in ROLE_OPERATIONS.get(role, frozenset()):
        return Decision(False, DenyReason.ROLE_FORBIDDEN)
    if resource_owner_id is not None and resource_owner_id != caller.id:
        return Decision(False, DenyReason.NOT_OWNER)
    return ALLOW


def ensure_allowed(decision: Decision, message: Optional[str] = None) -> None:
    """Convierte un rechazo en `AuthorizationDenied`; no hace nada si se permite."""
    if decision.allowed:
        return
    logger.info(f"Acceso denegado: {decision.reason.value}")
    raise AuthorizationDenied(decision.reason.value, message or _DEFAULT_MESSAGES[decision.reason])


_DEFAULT_MESSAGES = {
    DenyReason.NOT_OWNER: "You can only access your own records",
    DenyReason.ROLE_FORBIDDEN: "Your role is not allowed to perform this operation",
    DenyReason.NOT_FOUND: "Record not found",
}
