"""
Services module

This module includes all service-related modules, which implement the business logic of the application:
authorization, past/future policy, weekly partitioning and the XML export pipeline.
"""

# servicios disponibles
from app.services.user import user_service
from app.services.session import session_service
from app.services.booking import booking_service

# Exportar servicios para acceso fácil
__all__ = [
    "user_service",
    "session_service",
    "booking_service",
]
