"""
services/booking/router.py
Booking lifecycle management.
States: PENDING → CONFIRMED → COMPLETED
        PENDING | CONFIRMED → CANCELLED
totalAmount is fixed when the booking is created.
"""

import logging
from typing import Dict, FrozenSet, List

from fastapi import APIRouter, Depends, HTTPException, status

from config.storage import get_storage
from shared.middleware.auth import require_booking_admin
from shared.schemas.entities import Booking, BookingCreate, BookingStatus, User, as_utc
from shared.schemas.schemas import (
    BookingCreateRequest,
    BookingForBusiness,
    BookingForProfessional,
    BookingUpdateRequest,
)
from shared.storage.base import Storage
from shared.utils.enrichment import booking_for_business, booking_for_professional

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])

# Terminal states map to an empty set. Re-writing the current status is always allowed.
ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


# ── Helpers ───────────────────────────────────────────────────

async def _get_booking_or_404(booking_id: str, storage: Storage) -> Booking:
    booking = await storage.get_booking(booking_id)
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


def can_transition(current: str, target: str) -> bool:
    current, target = BookingStatus(current), BookingStatus(target)
    return current == target or target in ALLOWED_TRANSITIONS[current]


# ── Endpoints ─────────────────────────────────────────────────

@router.post("", response_model=Booking, status_code=status.HTTP_201_CREATED)
async def create_booking(data: BookingCreateRequest, storage: Storage = Depends(get_storage)):
    """
    Create a booking. totalAmount (paise) is stored exactly as submitted;
    the client computes it from the service fee, platform fee and GST.
    """
    values = data.model_dump()
    values["scheduled_at"] = as_utc(data.scheduled_at)
    booking = await storage.create_booking(BookingCreate(**values))
    logger.info(
        "Booking %s created: business %s, professional %s, amount %d",
        booking.id, booking.business_id, booking.professional_id, booking.total_amount,
    )
    return booking


@router.get("", response_model=List[Booking])
async def list_all_bookings(
    admin: User = Depends(require_booking_admin),
    storage: Storage = Depends(get_storage),
):
    """Every booking on the platform (admin dashboard)."""
    return await storage.get_all_bookings()


@router.get("/business/{business_id}", response_model=List[BookingForBusiness])
async def list_business_bookings(business_id: str, storage: Storage = Depends(get_storage)):
    bookings = await storage.get_bookings_by_business(business_id)
    return [await booking_for_business(storage, b) for b in bookings]


@router.get("/professional/{professional_id}", response_model=List[BookingForProfessional])
async def list_professional_bookings(professional_id: str, storage: Storage = Depends(get_storage)):
    bookings = await storage.get_bookings_by_professional(professional_id)
    return [await booking_for_professional(storage, b) for b in bookings]


@router.get("/{booking_id}", response_model=Booking)
async def get_booking(booking_id: str, storage: Storage = Depends(get_storage)):
    return await _get_booking_or_404(booking_id, storage)


@router.put("/{booking_id}", response_model=Booking)
async def update_booking(
    booking_id: str,
    data: BookingUpdateRequest,
    storage: Storage = Depends(get_storage),
):
    """
    Partial update of status, paymentStatus, notes and scheduledAt.
    Any other field, totalAmount included, is rejected by the schema.
    """
    booking = await _get_booking_or_404(booking_id, storage)

    updates = data.model_dump(exclude_none=True)
    if "status" in updates and not can_transition(booking.status, updates["status"]):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot move booking from {booking.status} to {updates['status']}",
        )
    if "scheduled_at" in updates:
        updates["scheduled_at"] = as_utc(updates["scheduled_at"])

    if not updates:
        return booking

    updated = await storage.update_booking(booking_id, updates)
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")

    if "status" in updates and updates["status"] != booking.status:
        logger.info("Booking %s: %s → %s", booking_id, booking.status, updated.status)
    return updated
