from app.api.v1.endpoints.auth.common import *

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
@limiter.limit(RATE_LIMITS["login"])
def login(
    request: Request,
    credentials: LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Exchange email and password for an authentication key.

    The returned `key` must be sent back in the `x-auth-key` header
    (or as `Authorization: Bearer <key>`) on every authenticated request.

    Returns:
        LoginResponse: The signed key and the identity of the user

    Raises:
        400: Invalid credentials (unknown email or wrong password)
        429: Too many login attempts
    """
    return user_service.login(db, email=credentials.email, password=credentials.password)
