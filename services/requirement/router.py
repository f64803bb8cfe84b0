"""
services/requirement/router.py
Requirements posted by businesses, independent of any booking.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status

from config.storage import get_storage
from shared.schemas.entities import Requirement, RequirementCreate
from shared.schemas.schemas import RequirementCreateRequest, RequirementWithBusiness
from shared.storage.base import Storage
from shared.utils.enrichment import requirement_with_business

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/requirements", tags=["Requirements"])


@router.post("", response_model=Requirement, status_code=status.HTTP_201_CREATED)
async def create_requirement(
    data: RequirementCreateRequest,
    storage: Storage = Depends(get_storage),
):
    requirement = await storage.create_requirement(RequirementCreate(**data.model_dump()))
    logger.info("Requirement %s posted by business %s", requirement.id, requirement.business_id)
    return requirement


@router.get("", response_model=List[RequirementWithBusiness])
async def list_requirements(storage: Storage = Depends(get_storage)):
    requirements = await storage.get_all_requirements()
    return [await requirement_with_business(storage, r) for r in requirements]


@router.get("/business/{business_id}", response_model=List[Requirement])
async def list_business_requirements(business_id: str, storage: Storage = Depends(get_storage)):
    return await storage.get_requirements_by_business(business_id)
