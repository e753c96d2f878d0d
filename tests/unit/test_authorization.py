from types import SimpleNamespace

import pytest

from app.core.exceptions import AuthorizationDenied
from app.models.user import UserRole
from app.services.authorization import (
    DenyReason,
    Operation,
    authorize,
    ensure_allowed,
)

MEMBER = SimpleNamespace(id=1, role=UserRole.MEMBER)
TRAINER = SimpleNamespace(id=2, role="trainer")
ADMIN = SimpleNamespace(id=3, role=UserRole.ADMIN)


def test_member_reads_own_booking_but_not_others():
    assert authorize(MEMBER, Operation.READ_BOOKING, 1).allowed
    decision = authorize(MEMBER, Operation.READ_BOOKING, 99)
    assert not decision.allowed
    assert decision.reason == DenyReason.NOT_OWNER


def test_member_cannot_touch_sessions():
    decision = authorize(MEMBER, Operation.EXPORT_SESSIONS, 1)
    assert decision.reason == DenyReason.ROLE_FORBIDDEN


def test_trainer_only_own_sessions():
    assert authorize(TRAINER, Operation.EXPORT_SESSIONS, 2)
    assert authorize(TRAINER, Operation.READ_SESSIONS, 5).reason == DenyReason.NOT_OWNER
    assert authorize(TRAINER, Operation.READ_BOOKING, 2).reason == DenyReason.ROLE_FORBIDDEN


@pytest.mark.parametrize("operation", list(Operation))
def test_admin_can_do_anything(operation):
    assert authorize(ADMIN, operation, 42).allowed


def test_missing_resource_is_not_found_for_everyone():
    assert authorize(ADMIN, Operation.READ_BOOKING, None, resource_exists=False).reason == DenyReason.NOT_FOUND
    assert authorize(MEMBER, Operation.READ_BOOKING, None, resource_exists=False).reason == DenyReason.NOT_FOUND


def test_writes_require_non_deleted_resource():
    assert authorize(MEMBER, Operation.CANCEL_BOOKING, 1, resource_deleted=True).reason == DenyReason.NOT_FOUND
    assert authorize(ADMIN, Operation.CANCEL_BOOKING, 1, resource_deleted=True).reason == DenyReason.NOT_FOUND
    # Las lecturas no dependen del borrado
    assert authorize(ADMIN, Operation.READ_BOOKING, 1, resource_deleted=True).allowed


def test_ensure_allowed_raises_with_reason_and_status():
    ensure_allowed(authorize(MEMBER, Operation.READ_BOOKING, 1))

    with pytest.raises(AuthorizationDenied) as exc_info:
        ensure_allowed(authorize(MEMBER, Operation.READ_BOOKING, 99))
    assert exc_info.value.reason == "not_owner"
    assert exc_info.value.status_code == 403

    with pytest.raises(AuthorizationDenied) as exc_info:
        ensure_allowed(authorize(MEMBER, Operation.READ_BOOKING, None, resource_exists=False))
    assert exc_info.value.status_code == 404
