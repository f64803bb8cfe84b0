"""
client/dashboard.py
Figures shown on the business, professional and admin dashboards, derived
from the client's list calls.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

from client.api import MarketplaceClient
from shared.schemas.entities import (
    BookingStatus,
    KycStatus,
    PaymentStatus,
    RequirementStatus,
)
from shared.schemas.schemas import ProfessionalWithUser


@dataclass(frozen=True)
class BusinessSummary:
    open_requirements: int
    bookings_by_status: Dict[str, int] = field(default_factory=dict)

    @property
    def scheduled(self) -> int:
        return self.bookings_by_status.get(BookingStatus.CONFIRMED.value, 0)

    @property
    def pending(self) -> int:
        return self.bookings_by_status.get(BookingStatus.PENDING.value, 0)

    @property
    def completed(self) -> int:
        return self.bookings_by_status.get(BookingStatus.COMPLETED.value, 0)


@dataclass(frozen=True)
class ProfessionalSummary:
    earnings_minor: int     # paise, completed and paid bookings only
    active_clients: int
    rating: int
    total_reviews: int


@dataclass(frozen=True)
class AdminSummary:
    verified_professionals: int
    total_bookings: int
    pending_kyc: List[ProfessionalWithUser] = field(default_factory=list)


async def business_summary(api: MarketplaceClient, business_id: str) -> BusinessSummary:
    requirements = await api.business_requirements(business_id)
    bookings = await api.business_bookings(business_id)
    return BusinessSummary(
        open_requirements=sum(1 for r in requirements if r.status == RequirementStatus.OPEN.value),
        bookings_by_status=dict(Counter(b.status for b in bookings)),
    )


async def professional_summary(api: MarketplaceClient, professional_id: str) -> ProfessionalSummary:
    """
    Earnings sum totalAmount over bookings that are both completed and paid.
    Active clients are distinct businesses with a booking that is not cancelled.
    """
    professional = await api.get_professional(professional_id)
    bookings = await api.professional_bookings(professional_id)
    earnings = sum(
        b.total_amount
        for b in bookings
        if b.status == BookingStatus.COMPLETED.value and b.payment_status == PaymentStatus.PAID.value
    )
    clients = {b.business_id for b in bookings if b.status != BookingStatus.CANCELLED.value}
    return ProfessionalSummary(
        earnings_minor=earnings,
        active_clients=len(clients),
        rating=professional.rating,
        total_reviews=professional.total_reviews,
    )


async def admin_summary(api: MarketplaceClient) -> AdminSummary:
    """Needs an admin session: the full booking list is admin-only."""
    professionals = await api.list_professionals()
    bookings = await api.all_bookings()
    return AdminSummary(
        verified_professionals=sum(1 for p in professionals if p.kyc_status == KycStatus.APPROVED.value),
        total_bookings=len(bookings),
        pending_kyc=[p for p in professionals if p.kyc_status == KycStatus.PENDING.value],
    )
