from fastapi import APIRouter, Depends
from prepwise.models.user import User
from prepwise.schemas.user import UserResponse
from prepwise.dependencies import get_current_user

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get the current user's record."""
    return current_user
