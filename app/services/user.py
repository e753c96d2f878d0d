from typing import Optional
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import InvalidRequest
from app.core.security import create_access_token, get_password_hash, verify_password
from app.models.user import User as UserModel
from app.repositories.user import user_repository
from app.schemas.user import Identity, LoginResponse, UserCreate

logger = logging.getLogger(__name__) # Logger a nivel de módulo


class UserService:

    def authenticate(self, db: Session, *, email: str, password: str) -> UserModel:
        """
        Comprueba email y contraseña.

        Un email desconocido y una contraseña incorrecta producen el mismo error
        para no revelar qué cuentas existen.

        Raises:
            InvalidRequest: Credenciales inválidas
        """
        user = user_repository.get_by_email(db, email=email)
        if user is None or not verify_password(password, user.hashed_password):
            logger.info("Intento de login fallido")
            raise InvalidRequest("Invalid credentials")
        return user

    def login(self, db: Session, *, email: str, password: str) -> LoginResponse:
        user = self.authenticate(db, email=email, password=password)
        key = create_access_token(user.id, user.role)
        logger.info(f"Login correcto del usuario {user.id}")
        return LoginResponse(key=key, user=Identity.model_validate(user))

    def create_user(self, db: Session, *, user_in: UserCreate) -> UserModel:
        if user_repository.get_by_email(db, email=user_in.email) is not None:
            raise InvalidRequest("A user with this email already exists")
        return user_repository.create(db, obj_in={
            "email": user_in.email,
            "first_name": user_in.first_name,
            "last_name": user_in.last_name,
            "role": user_in.role,
            "hashed_password": get_password_hash(user_in.password),
        })

    def get_active_user(self, db: Session, user_id: int) -> Optional[UserModel]:
        return user_repository.get(db, user_id)


user_service = UserService()
