"""
services/user/router.py
The signed-in user's own profile.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from config.storage import get_storage
from shared.middleware.auth import get_current_user
from shared.schemas.entities import User
from shared.schemas.schemas import UserResponse, UserUpdateRequest
from shared.storage.base import Storage

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Return the currently authenticated user's profile."""
    return UserResponse.model_validate(current_user)


@router.put("/me", response_model=UserResponse)
async def update_me(
    data: UserUpdateRequest,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """
    Update name and phone. Only non-None fields in the request body are
    updated; email and role are fixed at registration.
    """
    updates = data.model_dump(exclude_none=True)
    if not updates:
        return UserResponse.model_validate(current_user)

    user = await storage.update_user(current_user.id, updates)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)
