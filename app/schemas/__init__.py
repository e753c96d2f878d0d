from app.schemas.user import Identity, LoginRequest, LoginResponse, UserCreate, PersonInfo
from app.schemas.schedule import ActivityInfo, LocationInfo, SessionView, BookingView, BookingCreate, BookingCancelResult
from app.schemas.export import ExportDocument, ExportHeader, ExportPeriod, ExportSubject, ExportWeek
