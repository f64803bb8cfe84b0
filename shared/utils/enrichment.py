"""
shared/utils/enrichment.py
Attach related records to responses by issuing one lookup per related
entity. Only public user fields (id, name, sometimes email) ever leave here.
"""

from typing import Optional

from shared.schemas.entities import Booking, Message, Professional, Requirement, Service
from shared.schemas.schemas import (
    BookingForBusiness,
    BookingForProfessional,
    MessageWithSender,
    ProfessionalWithUser,
    ProfessionalWithUserName,
    RequirementWithBusiness,
    ServiceWithProfessional,
    UserContact,
    UserSummary,
)
from shared.storage.base import Storage


async def user_summary(storage: Storage, user_id: str) -> Optional[UserSummary]:
    user = await storage.get_user(user_id)
    return UserSummary(id=user.id, name=user.name) if user else None


async def user_contact(storage: Storage, user_id: str) -> Optional[UserContact]:
    user = await storage.get_user(user_id)
    return UserContact(id=user.id, name=user.name, email=user.email) if user else None


async def professional_with_user(
    storage: Storage, professional: Professional
) -> ProfessionalWithUser:
    return ProfessionalWithUser(
        **professional.model_dump(),
        user=await user_contact(storage, professional.user_id),
    )


async def professional_with_user_name(
    storage: Storage, professional_id: str
) -> Optional[ProfessionalWithUserName]:
    professional = await storage.get_professional(professional_id)
    if not professional:
        return None
    return ProfessionalWithUserName(
        **professional.model_dump(),
        user=await user_summary(storage, professional.user_id),
    )


async def service_with_professional(storage: Storage, service: Service) -> ServiceWithProfessional:
    return ServiceWithProfessional(
        **service.model_dump(),
        professional=await professional_with_user_name(storage, service.professional_id),
    )


async def booking_for_business(storage: Storage, booking: Booking) -> BookingForBusiness:
    return BookingForBusiness(
        **booking.model_dump(),
        service=await storage.get_service(booking.service_id),
        professional=await professional_with_user_name(storage, booking.professional_id),
    )


async def booking_for_professional(storage: Storage, booking: Booking) -> BookingForProfessional:
    return BookingForProfessional(
        **booking.model_dump(),
        service=await storage.get_service(booking.service_id),
        business_user=await user_summary(storage, booking.business_id),
    )


async def message_with_sender(storage: Storage, message: Message) -> MessageWithSender:
    return MessageWithSender(
        **message.model_dump(),
        sender=await user_summary(storage, message.sender_id),
    )


async def requirement_with_business(
    storage: Storage, requirement: Requirement
) -> RequirementWithBusiness:
    return RequirementWithBusiness(
        **requirement.model_dump(),
        business_user=await user_summary(storage, requirement.business_id),
    )
