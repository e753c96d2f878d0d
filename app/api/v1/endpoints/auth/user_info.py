from app.api.v1.endpoints.auth.common import *

router = APIRouter()


@router.get("/me", response_model=Identity)
def read_users_me(identity: Identity = Security(get_current_identity)):
    """
    Returns the identity (id, role and profile fields) of the authenticated caller.
    """
    return identity
