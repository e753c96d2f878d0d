import logging
from typing import Any, Dict, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import RepositoryError
from app.db.base_class import Base

ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        """
        Repository con operaciones de lectura por defecto y borrado lógico.

        Los registros con `deleted = True` son invisibles salvo que se pida
        explícitamente `include_deleted`.
        """
        self.model = model

    def _active(self, query, include_deleted: bool = False):
        if not include_deleted and hasattr(self.model, "deleted"):
            query = query.filter(self.model.deleted.is_(False))
        return query

    def get(self, db: Session, id: Any, *, include_deleted: bool = False) -> Optional[ModelType]:
        """
        Obtener un objeto por su ID.

        Args:
            db: Sesión de base de datos
            id: ID del objeto a obtener
            include_deleted: Si True, devuelve también registros borrados lógicamente

        Returns:
            El objeto solicitado o None si no existe
        """
        try:
            query = db.query(self.model).filter(self.model.id == id)
            return self._active(query, include_deleted).first()
        except SQLAlchemyError as e:
            logger.error(f"Error obteniendo {self.model.__name__} {id}: {e}", exc_info=True)
            raise RepositoryError() from e

    def create(self, db: Session, *, obj_in: Dict[str, Any]) -> ModelType:
        try:
            db_obj = self.model(**obj_in)
            db.add(db_obj)
            db.commit()
            db.refresh(db_obj)
            return db_obj
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creando {self.model.__name__}: {e}", exc_info=True)
            raise RepositoryError() from e

    def soft_delete(self, db: Session, *, db_obj: ModelType) -> ModelType:
        """
        Marcar un registro como borrado. Nunca se elimina físicamente.
        """
        try:
            db_obj.deleted = True
            db.add(db_obj)
            db.commit()
            db.refresh(db_obj)
            return db_obj
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error borrando {self.model.__name__} {db_obj.id}: {e}", exc_info=True)
            raise RepositoryError() from e
