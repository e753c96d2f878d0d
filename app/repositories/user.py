import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import RepositoryError
from app.models.user import User
from app.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    def get_by_email(self, db: Session, *, email: str) -> Optional[User]:
        """
        Obtener un usuario activo por email (sin distinguir mayúsculas).
        """
        try:
            query = db.query(User).filter(func.lower(User.email) == email.lower())
            return self._active(query).first()
        except SQLAlchemyError as e:
            logger.error(f"Error buscando usuario por email: {e}", exc_info=True)
            raise RepositoryError() from e


user_repository = UserRepository(User)
