from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    # Generar nombres de tablas automáticamente (los modelos pueden sobrescribirlo)
    @declared_attr.directive
    def __tablename__(cls) -> str:
        return cls.__name__.lower()
