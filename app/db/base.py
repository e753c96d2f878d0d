# Importar todos los modelos para que metadata.create_all los detecte
from app.db.base_class import Base  # noqa
from app.models.user import User  # noqa
from app.models.schedule import Activity, Location, TrainingSession, Booking  # noqa
