"""
Common imports and dependencies for the auth module.
"""

import logging

from fastapi import APIRouter, Depends, Request, Security
from sqlalchemy.orm import Session

from app.core.security import get_current_identity
from app.db.session import get_db
from app.middleware.rate_limit import limiter, RATE_LIMITS
from app.schemas.user import Identity, LoginRequest, LoginResponse
from app.services.user import user_service

logger = logging.getLogger("auth_endpoints")
