from app.models.user import User, UserRole
from app.models.schedule import Activity, Location, TrainingSession, Booking
