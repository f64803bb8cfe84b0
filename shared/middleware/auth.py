"""
shared/middleware/auth.py
FastAPI dependency functions for authentication and authorization.
The bearer JWT is verified here and must belong to the user named in
the x-user-id header.
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from config.storage import get_storage
from shared.schemas.entities import User, UserRole
from shared.storage.base import Storage
from shared.utils.security import verify_access_token

security = HTTPBearer(auto_error=False)


class TokenData:
    def __init__(self, payload: dict):
        self.user_id: str = payload["sub"]
        self.role: UserRole = UserRole(payload["role"])
        self.email: str = payload["email"]


async def get_token_data(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> TokenData:
    """Extract and validate the JWT from the Authorization header."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = verify_access_token(credentials.credentials)
        return TokenData(payload)
    except (JWTError, KeyError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(
    token_data: TokenData = Depends(get_token_data),
    x_user_id: Optional[str] = Header(None),
    storage: Storage = Depends(get_storage),
) -> User:
    """Load the user the token was issued to. x-user-id must name the same user."""
    if not x_user_id or x_user_id != token_data.user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    user = await storage.get_user(token_data.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


# ── Role policy ───────────────────────────────────────────────

class Resource(str, Enum):
    SELF_REGISTRATION = "account:self-register"
    KYC_REVIEW = "professional:kyc-review"
    ALL_BOOKINGS = "booking:list-all"


POLICY: Dict[Resource, FrozenSet[UserRole]] = {
    Resource.SELF_REGISTRATION: frozenset({UserRole.BUSINESS, UserRole.PROFESSIONAL}),
    Resource.KYC_REVIEW: frozenset({UserRole.ADMIN}),
    Resource.ALL_BOOKINGS: frozenset({UserRole.ADMIN}),
}


def is_allowed(role: UserRole, resource: Resource) -> bool:
    """Deny by default: a resource missing from POLICY admits nobody."""
    return UserRole(role) in POLICY.get(resource, frozenset())


class Permission:
    """Dependency factory: the current user, if their role may use ``resource``."""

    def __init__(self, resource: Resource):
        self.resource = resource

    async def __call__(self, current_user: User = Depends(get_current_user)) -> User:
        if not is_allowed(current_user.role, self.resource):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{current_user.role}' may not access {self.resource.value}",
            )
        return current_user


# Convenience dependencies
require_kyc_reviewer = Permission(Resource.KYC_REVIEW)
require_booking_admin = Permission(Resource.ALL_BOOKINGS)
