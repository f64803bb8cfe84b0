"""
services/auth/router.py
Email/password registration and login.
Implements: Register → bcrypt hash → Login → JWT issue
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from config.storage import get_storage
from shared.middleware.auth import Resource, is_allowed
from shared.schemas.entities import UserCreate
from shared.schemas.schemas import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
)
from shared.storage.base import DuplicateEmailError, Storage
from shared.utils.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def register(data: RegisterRequest, storage: Storage = Depends(get_storage)):
    """
    Create a business or professional account. Admin accounts cannot be
    self-registered. The password is stored as a bcrypt hash and never returned.
    """
    if not is_allowed(data.role, Resource.SELF_REGISTRATION):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Role '{data.role}' cannot be self-registered",
        )

    try:
        user = await storage.create_user(
            UserCreate(
                email=data.email,
                password=hash_password(data.password),
                role=data.role,
                name=data.name,
                phone=data.phone,
            )
        )
    except DuplicateEmailError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")

    logger.info("Registered %s user %s", user.role, user.id)
    return RegisterResponse(user=UserResponse.model_validate(user))


@router.post("/login", response_model=LoginResponse, summary="Exchange credentials for a token")
async def login(data: LoginRequest, storage: Storage = Depends(get_storage)):
    user = await storage.get_user_by_email(data.email)
    # Same answer for unknown email and wrong password
    if not user or not verify_password(data.password, user.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_access_token(user_id=user.id, role=user.role, email=user.email)
    return LoginResponse(user=UserResponse.model_validate(user), token=token)
