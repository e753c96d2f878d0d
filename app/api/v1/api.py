from fastapi import APIRouter

from app.api.v1.endpoints import bookings, sessions
from app.api.v1.endpoints.auth import router as auth_router

api_router = APIRouter()

# Authentication module
api_router.include_router(auth_router, prefix="/auth")

# Bookings module (detail, create/cancel and history export)
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])

# Sessions module (listings and weekly export)
api_router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
