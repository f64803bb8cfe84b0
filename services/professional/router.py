"""
services/professional/router.py
Professional profiles: onboarding, discovery with filters, and the admin
KYC decision.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from config.storage import get_storage
from shared.middleware.auth import require_kyc_reviewer
from shared.schemas.entities import Professional, ProfessionalCreate, Service, User, UserRole
from shared.schemas.schemas import (
    KycUpdateRequest,
    ProfessionalCreateRequest,
    ProfessionalWithUser,
)
from shared.storage.base import Storage
from shared.utils.enrichment import professional_with_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/professionals", tags=["Professionals"])


# ── Helpers ───────────────────────────────────────────────────

async def _get_professional_or_404(professional_id: str, storage: Storage) -> Professional:
    professional = await storage.get_professional(professional_id)
    if not professional:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Professional not found")
    return professional


# ── Onboarding ────────────────────────────────────────────────

@router.post("", response_model=Professional, status_code=status.HTTP_201_CREATED)
async def create_professional(
    data: ProfessionalCreateRequest,
    storage: Storage = Depends(get_storage),
):
    """
    Attach a profile to an existing professional account. A user can hold
    at most one profile. Every new profile starts with KYC pending.
    """
    user = await storage.get_user(data.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.role != UserRole.PROFESSIONAL.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User is not registered as a professional",
        )
    if await storage.get_professional_by_user_id(data.user_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Professional profile already exists",
        )

    professional = await storage.create_professional(ProfessionalCreate(**data.model_dump()))
    logger.info("Created professional %s for user %s", professional.id, user.id)
    return professional


# ── Discovery ─────────────────────────────────────────────────

@router.get("", response_model=List[ProfessionalWithUser])
async def list_professionals(
    specialization: Optional[str] = Query(None, description="Exact specialization name"),
    city: Optional[str] = Query(None),
    storage: Storage = Depends(get_storage),
):
    if specialization:
        professionals = await storage.get_professionals_by_specialization(specialization)
    else:
        professionals = await storage.get_all_professionals()

    if city:
        professionals = [p for p in professionals if p.city == city]

    return [await professional_with_user(storage, p) for p in professionals]


@router.get("/user/{user_id}", response_model=Professional)
async def get_professional_by_user(user_id: str, storage: Storage = Depends(get_storage)):
    """The profile owned by a user, for the professional dashboard."""
    professional = await storage.get_professional_by_user_id(user_id)
    if not professional:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Professional not found")
    return professional


@router.get("/{professional_id}", response_model=ProfessionalWithUser)
async def get_professional(professional_id: str, storage: Storage = Depends(get_storage)):
    professional = await _get_professional_or_404(professional_id, storage)
    return await professional_with_user(storage, professional)


@router.get("/{professional_id}/services", response_model=List[Service])
async def get_professional_services(professional_id: str, storage: Storage = Depends(get_storage)):
    await _get_professional_or_404(professional_id, storage)
    return await storage.get_services_by_professional(professional_id)


# ── KYC review ────────────────────────────────────────────────

@router.put("/{professional_id}/kyc", response_model=Professional)
async def update_kyc(
    professional_id: str,
    data: KycUpdateRequest,
    reviewer: User = Depends(require_kyc_reviewer),
    storage: Storage = Depends(get_storage),
):
    """Approve or reject a professional's KYC, optionally replacing the documents."""
    updates = {"kyc_status": data.status}
    if data.documents is not None:
        updates["kyc_documents"] = data.documents.model_dump()

    professional = await storage.update_professional(professional_id, updates)
    if not professional:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Professional not found")

    logger.info(
        "KYC for professional %s set to %s by %s", professional_id, data.status, reviewer.id
    )
    return professional
