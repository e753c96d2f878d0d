import os

# Configuración mínima antes de importar la aplicación
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("GYM_TIMEZONE", "Australia/Brisbane")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("EXPORT_BACKUP_DIR", None)
os.environ.pop("REDIS_URL", None)

from datetime import date, time
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import create_access_token, get_password_hash
from app.db.base import Base
from app.db.session import get_db
from app.models.schedule import Activity, Booking, Location, TrainingSession
from app.models.user import User, UserRole
from main import app

TEST_PASSWORD = "s3cret-pass"

# Usar una base de datos en memoria para pruebas
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Crear las tablas en la base de datos de prueba
@pytest.fixture(scope="session")
def db_engine():
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db(db_engine):
    """
    Crea una sesión de base de datos fresca para cada test y deshace todo al finalizar.
    """
    connection = db_engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db):
    """
    Crea un cliente de prueba usando una sesión de base de datos de prueba.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="session")
def plain_password():
    return TEST_PASSWORD


@pytest.fixture(scope="session")
def password_hash():
    # bcrypt es lento: un único hash para todos los usuarios de prueba
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def make_user(db, password_hash):
    seq = count(1)

    def _make_user(role=UserRole.MEMBER, first_name="Jane", last_name="Doe", email=None, deleted=False):
        n = next(seq)
        user = User(
            email=email or f"{role.value}{n}@gymmail.com",
            first_name=first_name,
            last_name=last_name,
            role=role,
            hashed_password=password_hash,
            deleted=deleted,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def member_user(make_user):
    return make_user(UserRole.MEMBER, "Jane", "Doe", email="jane@gymmail.com")


@pytest.fixture
def other_member(make_user):
    return make_user(UserRole.MEMBER, "John", "Roe", email="john@gymmail.com")


@pytest.fixture
def trainer_user(make_user):
    return make_user(UserRole.TRAINER, "Tom", "Trainer", email="tom@gymmail.com")


@pytest.fixture
def admin_user(make_user):
    return make_user(UserRole.ADMIN, "Ada", "Admin", email="ada@gymmail.com")


@pytest.fixture
def activity(db):
    obj = Activity(name="Yoga", description="Stretch & breathe", duration=60)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def location(db):
    obj = Location(name="Studio A", address="1 Main St")
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def make_session(db, activity, location):
    def _make_session(trainer, session_date: date, session_time: time = time(10, 0), deleted=False):
        obj = TrainingSession(
            activity_id=activity.id,
            location_id=location.id,
            trainer_id=trainer.id,
            session_date=session_date,
            session_time=session_time,
            deleted=deleted,
        )
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    return _make_session


@pytest.fixture
def make_booking(db):
    def _make_booking(member, session, deleted=False):
        obj = Booking(member_id=member.id, session_id=session.id, deleted=deleted)
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    return _make_booking


@pytest.fixture
def auth_headers():
    """
    Headers con una clave real emitida para el usuario indicado.
    """
    def _auth_headers(user):
        return {"x-auth-key": create_access_token(user.id, user.role)}

    return _auth_headers
