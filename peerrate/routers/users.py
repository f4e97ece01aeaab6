"""Users router – the signed-in account."""

from fastapi import APIRouter, Depends

from peerrate.models.user import User
from peerrate.routers.auth import require_api_user
from peerrate.schemas.user import UserOut

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserOut)
async def read_me(current_user: User = Depends(require_api_user)):
    """Return the authenticated user's profile, 401 when signed out."""
    return current_user
