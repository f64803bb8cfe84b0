"""
shared/storage/memory.py
Dict-backed Storage for local development and tests.
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel

from shared.schemas.entities import (
    Booking,
    BookingCreate,
    Message,
    MessageCreate,
    Professional,
    ProfessionalCreate,
    Requirement,
    RequirementCreate,
    Service,
    ServiceCreate,
    User,
    UserCreate,
)
from shared.storage.base import Clock, DuplicateEmailError, Storage, Updates
from shared.storage.seed import build_seed_data

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)


def _new_id() -> str:
    return str(uuid.uuid4())


def _merge(model: Type[R], record: R, updates: Updates) -> R:
    """Apply a partial update and re-validate the result."""
    return model.model_validate({**record.model_dump(), **updates})


class MemoryStorage(Storage):
    """
    One dict per entity, keyed by id. Finders are linear scans.
    No method awaits while mutating, so each call is atomic on the event loop.
    """

    def __init__(self, seed: bool = True, clock: Optional[Clock] = None):
        super().__init__(clock)
        self._users: Dict[str, User] = {}
        self._professionals: Dict[str, Professional] = {}
        self._services: Dict[str, Service] = {}
        self._bookings: Dict[str, Booking] = {}
        self._messages: Dict[str, Message] = {}
        self._requirements: Dict[str, Requirement] = {}

        if seed:
            self._seed()

    def _seed(self) -> None:
        data = build_seed_data(self._clock)
        self._users.update((u.id, u) for u in data.users)
        self._professionals.update((p.id, p) for p in data.professionals)
        self._services.update((s.id, s) for s in data.services)
        logger.info(
            "Seeded memory storage: %d users, %d professionals, %d services",
            len(data.users), len(data.professionals), len(data.services),
        )

    # ── Users ─────────────────────────────────────────────────

    async def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.email == email), None)

    async def create_user(self, data: UserCreate) -> User:
        if any(u.email == data.email for u in self._users.values()):
            raise DuplicateEmailError(data.email)
        user = User(id=_new_id(), created_at=self._clock(), **data.model_dump())
        self._users[user.id] = user
        return user

    async def update_user(self, user_id: str, updates: Updates) -> Optional[User]:
        user = self._users.get(user_id)
        if not user:
            return None
        email = updates.get("email")
        if email and email != user.email and any(u.email == email for u in self._users.values()):
            raise DuplicateEmailError(email)
        self._users[user_id] = _merge(User, user, updates)
        return self._users[user_id]

    # ── Professionals ─────────────────────────────────────────

    async def get_professional(self, professional_id: str) -> Optional[Professional]:
        return self._professionals.get(professional_id)

    async def get_professional_by_user_id(self, user_id: str) -> Optional[Professional]:
        return next((p for p in self._professionals.values() if p.user_id == user_id), None)

    async def create_professional(self, data: ProfessionalCreate) -> Professional:
        professional = Professional(id=_new_id(), **data.model_dump())
        self._professionals[professional.id] = professional
        return professional

    async def update_professional(
        self, professional_id: str, updates: Updates
    ) -> Optional[Professional]:
        professional = self._professionals.get(professional_id)
        if not professional:
            return None
        self._professionals[professional_id] = _merge(Professional, professional, updates)
        return self._professionals[professional_id]

    async def get_all_professionals(self) -> List[Professional]:
        return list(self._professionals.values())

    async def get_professionals_by_specialization(self, specialization: str) -> List[Professional]:
        return [p for p in self._professionals.values() if specialization in p.specializations]

    # ── Services ──────────────────────────────────────────────

    async def get_service(self, service_id: str) -> Optional[Service]:
        return self._services.get(service_id)

    async def create_service(self, data: ServiceCreate) -> Service:
        service = Service(id=_new_id(), **data.model_dump())
        self._services[service.id] = service
        return service

    async def get_services_by_professional(self, professional_id: str) -> List[Service]:
        return [
            s for s in self._services.values()
            if s.professional_id == professional_id and s.is_active
        ]

    async def get_all_services(self) -> List[Service]:
        return [s for s in self._services.values() if s.is_active]

    # ── Bookings ──────────────────────────────────────────────

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self._bookings.get(booking_id)

    async def create_booking(self, data: BookingCreate) -> Booking:
        booking = Booking(id=_new_id(), created_at=self._clock(), **data.model_dump())
        self._bookings[booking.id] = booking
        return booking

    async def get_bookings_by_business(self, business_id: str) -> List[Booking]:
        return [b for b in self._bookings.values() if b.business_id == business_id]

    async def get_bookings_by_professional(self, professional_id: str) -> List[Booking]:
        return [b for b in self._bookings.values() if b.professional_id == professional_id]

    async def update_booking(self, booking_id: str, updates: Updates) -> Optional[Booking]:
        booking = self._bookings.get(booking_id)
        if not booking:
            return None
        self._bookings[booking_id] = _merge(Booking, booking, updates)
        return self._bookings[booking_id]

    async def get_all_bookings(self) -> List[Booking]:
        return list(self._bookings.values())

    # ── Messages ──────────────────────────────────────────────

    async def get_message(self, message_id: str) -> Optional[Message]:
        return self._messages.get(message_id)

    async def create_message(self, data: MessageCreate) -> Message:
        message = Message(id=_new_id(), sent_at=self._clock(), **data.model_dump())
        self._messages[message.id] = message
        return message

    async def get_messages_by_booking(
        self, booking_id: str, since: Optional[datetime] = None
    ) -> List[Message]:
        messages = [
            m for m in self._messages.values()
            if m.booking_id == booking_id and (since is None or m.sent_at >= since)
        ]
        return sorted(messages, key=lambda m: m.sent_at)

    # ── Requirements ──────────────────────────────────────────

    async def get_requirement(self, requirement_id: str) -> Optional[Requirement]:
        return self._requirements.get(requirement_id)

    async def create_requirement(self, data: RequirementCreate) -> Requirement:
        requirement = Requirement(id=_new_id(), created_at=self._clock(), **data.model_dump())
        self._requirements[requirement.id] = requirement
        return requirement

    async def get_requirements_by_business(self, business_id: str) -> List[Requirement]:
        return [r for r in self._requirements.values() if r.business_id == business_id]

    async def get_all_requirements(self) -> List[Requirement]:
        return list(self._requirements.values())
