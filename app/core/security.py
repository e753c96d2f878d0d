import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, Security
from fastapi.security.api_key import APIKeyHeader
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import AuthError
from app.db.session import get_db
from app.repositories.user import user_repository
from app.schemas.user import Identity

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# El cliente envía la clave devuelta por /auth/login en este header
api_key_header = APIKeyHeader(name="x-auth-key", auto_error=False)
authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bool(pwd_context.verify(plain_password, hashed_password))
    except (ValueError, TypeError) as e:
        logger.error(f"Error verificando contraseña: {e}")
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    user_id: int, role: str, expires_delta: Optional[timedelta] = None
) -> str:
    """
    Emitir un JWT firmado (HS256 por defecto) con `sub` = id de usuario, `role` y `exp`.
    """
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {"sub": str(user_id), "role": str(getattr(role, "value", role)), "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.info(f"Token rechazado: {e}")
        raise AuthError("Invalid or expired authentication key") from e


def extract_credential(api_key: Optional[str], authorization: Optional[str]) -> Optional[str]:
    if api_key:
        return api_key.strip()
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return None


def identify(db: Session, credential: Optional[str]) -> Identity:
    """
    Resolver la identidad {id, role} a partir de la clave de autenticación.

    Raises:
        AuthError: Clave ausente, inválida/expirada o usuario borrado
    """
    if not credential:
        raise AuthError("Authentication key missing")
    payload = decode_access_token(credential)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as e:
        raise AuthError("Invalid authentication key") from e

    user = user_repository.get(db, user_id)
    if user is None:
        raise AuthError("User no longer exists")
    return Identity.model_validate(user)


def get_current_identity(
    db: Session = Depends(get_db),
    api_key: Optional[str] = Security(api_key_header),
    authorization: Optional[str] = Security(authorization_header),
) -> Identity:
    return identify(db, extract_credential(api_key, authorization))
