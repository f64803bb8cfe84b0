"""
services/catalog/router.py
Bookable service offerings published by professionals.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from config.storage import get_storage
from shared.schemas.entities import Service, ServiceCreate
from shared.schemas.schemas import ServiceCreateRequest, ServiceWithProfessional
from shared.storage.base import Storage
from shared.utils.enrichment import service_with_professional

router = APIRouter(prefix="/api/services", tags=["Services"])


@router.get("", response_model=List[ServiceWithProfessional])
async def list_services(storage: Storage = Depends(get_storage)):
    """Active services, each with its professional and that professional's name."""
    services = await storage.get_all_services()
    return [await service_with_professional(storage, s) for s in services]


@router.post("", response_model=Service, status_code=status.HTTP_201_CREATED)
async def create_service(data: ServiceCreateRequest, storage: Storage = Depends(get_storage)):
    if not await storage.get_professional(data.professional_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Professional not found")
    return await storage.create_service(ServiceCreate(**data.model_dump()))
