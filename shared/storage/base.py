"""
shared/storage/base.py
The persistence contract shared by every backend.

Handlers only ever talk to ``Storage``; which implementation sits behind
it is decided once at startup (see config/storage.py).
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

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
    utcnow,
)

Clock = Callable[[], datetime]
Updates = Dict[str, Any]


class StorageError(Exception):
    """Base class for errors a backend raises on purpose."""


class DuplicateEmailError(StorageError):
    def __init__(self, email: str):
        super().__init__(f"A user with email {email!r} already exists")
        self.email = email


class Storage(ABC):
    """
    Per-entity CRUD and finder operations.

    - ``get_*`` returns None when the id is unknown.
    - ``update_*`` merges ``updates`` (snake_case field names) onto the stored
      record and returns None when the id is unknown.
    - ``create_*`` assigns the id and timestamps; only ``create_user`` can
      fail, with DuplicateEmailError.
    Nothing here spans entities; joins are the caller's job.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or utcnow

    # ── Lifecycle ─────────────────────────────────────────────

    async def startup(self) -> None:
        """Prepare the backend (create tables, load fixtures)."""

    async def shutdown(self) -> None:
        """Release connections."""

    async def ping(self) -> bool:
        return True

    # ── Users ─────────────────────────────────────────────────

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    async def create_user(self, data: UserCreate) -> User: ...

    @abstractmethod
    async def update_user(self, user_id: str, updates: Updates) -> Optional[User]: ...

    # ── Professionals ─────────────────────────────────────────

    @abstractmethod
    async def get_professional(self, professional_id: str) -> Optional[Professional]: ...

    @abstractmethod
    async def get_professional_by_user_id(self, user_id: str) -> Optional[Professional]: ...

    @abstractmethod
    async def create_professional(self, data: ProfessionalCreate) -> Professional: ...

    @abstractmethod
    async def update_professional(
        self, professional_id: str, updates: Updates
    ) -> Optional[Professional]: ...

    @abstractmethod
    async def get_all_professionals(self) -> List[Professional]: ...

    @abstractmethod
    async def get_professionals_by_specialization(self, specialization: str) -> List[Professional]:
        """Professionals whose specializations list contains exactly this value."""

    # ── Services ──────────────────────────────────────────────

    @abstractmethod
    async def get_service(self, service_id: str) -> Optional[Service]: ...

    @abstractmethod
    async def create_service(self, data: ServiceCreate) -> Service: ...

    @abstractmethod
    async def get_services_by_professional(self, professional_id: str) -> List[Service]:
        """Active services only."""

    @abstractmethod
    async def get_all_services(self) -> List[Service]:
        """Active services only."""

    # ── Bookings ──────────────────────────────────────────────

    @abstractmethod
    async def get_booking(self, booking_id: str) -> Optional[Booking]: ...

    @abstractmethod
    async def create_booking(self, data: BookingCreate) -> Booking: ...

    @abstractmethod
    async def get_bookings_by_business(self, business_id: str) -> List[Booking]: ...

    @abstractmethod
    async def get_bookings_by_professional(self, professional_id: str) -> List[Booking]: ...

    @abstractmethod
    async def update_booking(self, booking_id: str, updates: Updates) -> Optional[Booking]: ...

    @abstractmethod
    async def get_all_bookings(self) -> List[Booking]: ...

    # ── Messages ──────────────────────────────────────────────

    @abstractmethod
    async def get_message(self, message_id: str) -> Optional[Message]: ...

    @abstractmethod
    async def create_message(self, data: MessageCreate) -> Message: ...

    @abstractmethod
    async def get_messages_by_booking(
        self, booking_id: str, since: Optional[datetime] = None
    ) -> List[Message]:
        """Oldest first. With ``since``, only messages sent at or after it."""

    # ── Requirements ──────────────────────────────────────────

    @abstractmethod
    async def get_requirement(self, requirement_id: str) -> Optional[Requirement]: ...

    @abstractmethod
    async def create_requirement(self, data: RequirementCreate) -> Requirement: ...

    @abstractmethod
    async def get_requirements_by_business(self, business_id: str) -> List[Requirement]: ...

    @abstractmethod
    async def get_all_requirements(self) -> List[Requirement]: ...
