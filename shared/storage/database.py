"""
shared/storage/database.py
Storage backed by async SQLAlchemy. Every operation runs one
single-table statement in its own session; nothing spans entities.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from config.database import Base, build_engine, build_session_factory, create_tables
from shared.models.models import (
    BookingRow,
    MessageRow,
    ProfessionalRow,
    RequirementRow,
    ServiceRow,
    UserRow,
)
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


def _row_values(record: BaseModel) -> dict:
    """Column values for a record; nested models become plain dicts."""
    return record.model_dump()


class DatabaseStorage(Storage):
    """
    Relational Storage. Works against PostgreSQL (asyncpg) in production
    and SQLite (aiosqlite) in tests.
    """

    def __init__(self, engine: AsyncEngine, seed: bool = False, clock: Optional[Clock] = None):
        super().__init__(clock)
        self._engine = engine
        self._session_factory = build_session_factory(engine)
        self._seed = seed

    @classmethod
    def from_url(cls, url: str, seed: bool = False, **engine_options) -> "DatabaseStorage":
        return cls(build_engine(url, **engine_options), seed=seed)

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session that rolls back on error and always closes."""
        async with self._session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    # ── Lifecycle ─────────────────────────────────────────────

    async def startup(self) -> None:
        await create_tables(self._engine)
        if self._seed:
            await self._seed_if_empty()

    async def shutdown(self) -> None:
        await self._engine.dispose()

    async def ping(self) -> bool:
        async with self._session() as session:
            await session.execute(text("SELECT 1"))
        return True

    async def _seed_if_empty(self) -> None:
        async with self._session() as session:
            count = await session.scalar(select(func.count(UserRow.id)))
            if count:
                logger.info("Database already seeded")
                return

            data = build_seed_data(self._clock)
            session.add_all(UserRow(**_row_values(u)) for u in data.users)
            session.add_all(ProfessionalRow(**_row_values(p)) for p in data.professionals)
            session.add_all(ServiceRow(**_row_values(s)) for s in data.services)
            await session.commit()
            logger.info(
                "Seeded database: %d users, %d professionals, %d services",
                len(data.users), len(data.professionals), len(data.services),
            )

    # ── Generic helpers ───────────────────────────────────────

    async def _get(self, row_type: Type[Base], model: Type[R], key: str) -> Optional[R]:
        async with self._session() as session:
            row = await session.get(row_type, key)
            return model.model_validate(row) if row else None

    async def _first(self, model: Type[R], statement) -> Optional[R]:
        async with self._session() as session:
            row = (await session.execute(statement.limit(1))).scalars().first()
            return model.model_validate(row) if row else None

    async def _all(self, model: Type[R], statement) -> List[R]:
        async with self._session() as session:
            rows = (await session.execute(statement)).scalars().all()
            return [model.model_validate(row) for row in rows]

    async def _insert(self, row_type: Type[Base], record: R) -> R:
        async with self._session() as session:
            session.add(row_type(**_row_values(record)))
            await session.commit()
        return record

    async def _update(
        self, row_type: Type[Base], model: Type[R], key: str, updates: Updates
    ) -> Optional[R]:
        async with self._session() as session:
            row = await session.get(row_type, key)
            if not row:
                return None
            merged = model.model_validate({**model.model_validate(row).model_dump(), **updates})
            values = _row_values(merged)
            for field in updates:
                setattr(row, field, values[field])
            await session.commit()
            return merged

    # ── Users ─────────────────────────────────────────────────

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self._get(UserRow, User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return await self._first(User, select(UserRow).where(UserRow.email == email))

    async def create_user(self, data: UserCreate) -> User:
        user = User(id=_new_id(), created_at=self._clock(), **data.model_dump())
        try:
            return await self._insert(UserRow, user)
        except IntegrityError as exc:
            # users.email is the only unique column besides the primary key
            logger.info("Rejected duplicate email %s: %s", data.email, exc.orig)
            raise DuplicateEmailError(data.email) from exc

    async def update_user(self, user_id: str, updates: Updates) -> Optional[User]:
        try:
            return await self._update(UserRow, User, user_id, updates)
        except IntegrityError as exc:
            raise DuplicateEmailError(updates.get("email", "")) from exc

    # ── Professionals ─────────────────────────────────────────

    async def get_professional(self, professional_id: str) -> Optional[Professional]:
        return await self._get(ProfessionalRow, Professional, professional_id)

    async def get_professional_by_user_id(self, user_id: str) -> Optional[Professional]:
        return await self._first(
            Professional, select(ProfessionalRow).where(ProfessionalRow.user_id == user_id)
        )

    async def create_professional(self, data: ProfessionalCreate) -> Professional:
        return await self._insert(ProfessionalRow, Professional(id=_new_id(), **data.model_dump()))

    async def update_professional(
        self, professional_id: str, updates: Updates
    ) -> Optional[Professional]:
        return await self._update(ProfessionalRow, Professional, professional_id, updates)

    async def get_all_professionals(self) -> List[Professional]:
        return await self._all(Professional, select(ProfessionalRow))

    async def get_professionals_by_specialization(self, specialization: str) -> List[Professional]:
        # Exact list membership; JSON containment is not portable across
        # dialects, so the table is scanned and filtered here.
        professionals = await self.get_all_professionals()
        return [p for p in professionals if specialization in p.specializations]

    # ── Services ──────────────────────────────────────────────

    async def get_service(self, service_id: str) -> Optional[Service]:
        return await self._get(ServiceRow, Service, service_id)

    async def create_service(self, data: ServiceCreate) -> Service:
        return await self._insert(ServiceRow, Service(id=_new_id(), **data.model_dump()))

    async def get_services_by_professional(self, professional_id: str) -> List[Service]:
        return await self._all(
            Service,
            select(ServiceRow).where(
                ServiceRow.professional_id == professional_id,
                ServiceRow.is_active.is_(True),
            ),
        )

    async def get_all_services(self) -> List[Service]:
        return await self._all(Service, select(ServiceRow).where(ServiceRow.is_active.is_(True)))

    # ── Bookings ──────────────────────────────────────────────

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        return await self._get(BookingRow, Booking, booking_id)

    async def create_booking(self, data: BookingCreate) -> Booking:
        booking = Booking(id=_new_id(), created_at=self._clock(), **data.model_dump())
        return await self._insert(BookingRow, booking)

    async def get_bookings_by_business(self, business_id: str) -> List[Booking]:
        return await self._all(Booking, select(BookingRow).where(BookingRow.business_id == business_id))

    async def get_bookings_by_professional(self, professional_id: str) -> List[Booking]:
        return await self._all(
            Booking, select(BookingRow).where(BookingRow.professional_id == professional_id)
        )

    async def update_booking(self, booking_id: str, updates: Updates) -> Optional[Booking]:
        return await self._update(BookingRow, Booking, booking_id, updates)

    async def get_all_bookings(self) -> List[Booking]:
        return await self._all(Booking, select(BookingRow).order_by(BookingRow.created_at))

    # ── Messages ──────────────────────────────────────────────

    async def get_message(self, message_id: str) -> Optional[Message]:
        return await self._get(MessageRow, Message, message_id)

    async def create_message(self, data: MessageCreate) -> Message:
        message = Message(id=_new_id(), sent_at=self._clock(), **data.model_dump())
        return await self._insert(MessageRow, message)

    async def get_messages_by_booking(
        self, booking_id: str, since: Optional[datetime] = None
    ) -> List[Message]:
        statement = select(MessageRow).where(MessageRow.booking_id == booking_id)
        if since is not None:
            statement = statement.where(MessageRow.sent_at >= since)
        return await self._all(Message, statement.order_by(MessageRow.sent_at))

    # ── Requirements ──────────────────────────────────────────

    async def get_requirement(self, requirement_id: str) -> Optional[Requirement]:
        return await self._get(RequirementRow, Requirement, requirement_id)

    async def create_requirement(self, data: RequirementCreate) -> Requirement:
        requirement = Requirement(id=_new_id(), created_at=self._clock(), **data.model_dump())
        return await self._insert(RequirementRow, requirement)

    async def get_requirements_by_business(self, business_id: str) -> List[Requirement]:
        return await self._all(
            Requirement, select(RequirementRow).where(RequirementRow.business_id == business_id)
        )

    async def get_all_requirements(self) -> List[Requirement]:
        return await self._all(Requirement, select(RequirementRow))
