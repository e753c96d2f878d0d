from fastapi import APIRouter

from app.api.v1.endpoints.auth.login import router as login_router
from app.api.v1.endpoints.auth.user_info import router as user_info_router

# Main router for the entire auth module
router = APIRouter()

# Include routes from submodules with appropriate tags for API documentation
router.include_router(login_router, prefix="", tags=["auth-login"])
router.include_router(user_info_router, prefix="", tags=["auth-user"])
