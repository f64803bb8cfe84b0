"""
shared/schemas/entities.py
Stored record types, their enumerations, and the insert models the
storage layer accepts. Field names are snake_case in Python and camelCase
on the wire.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes from clients are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ── Enumerations ──────────────────────────────────────────────

class UserRole(str, Enum):
    BUSINESS = "business"
    PROFESSIONAL = "professional"
    ADMIN = "admin"


class Qualification(str, Enum):
    CA = "CA"   # Chartered Accountant
    CS = "CS"   # Company Secretary


class KycStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RequirementStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CLOSED = "closed"


# ── Base ──────────────────────────────────────────────────────

class RecordModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        use_enum_values=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class KycDocuments(RecordModel):
    pan: Optional[str] = None
    aadhaar: Optional[str] = None
    certificate: Optional[str] = None


# ── Insert models ─────────────────────────────────────────────

class UserCreate(RecordModel):
    email: str
    password: str  # already hashed by the caller
    role: UserRole
    name: str
    phone: Optional[str] = None
    is_verified: bool = False


class ProfessionalCreate(RecordModel):
    user_id: str
    registration_number: str
    qualification: Qualification
    specializations: List[str] = Field(default_factory=list)
    experience: Optional[int] = None
    city: Optional[str] = None
    bio: Optional[str] = None
    hourly_rate: Optional[int] = None
    rating: int = 0           # tenths of a star, 49 == 4.9
    total_reviews: int = 0
    kyc_status: KycStatus = KycStatus.PENDING
    kyc_documents: Optional[KycDocuments] = None
    availability: Dict[str, List[str]] = Field(default_factory=dict)


class ServiceCreate(RecordModel):
    professional_id: str
    title: str
    description: str
    category: str
    price: int
    duration: Optional[int] = None  # minutes
    is_active: bool = True


class BookingCreate(RecordModel):
    business_id: str
    professional_id: str
    service_id: str
    scheduled_at: datetime
    status: BookingStatus = BookingStatus.PENDING
    total_amount: int  # paise
    payment_status: PaymentStatus = PaymentStatus.PENDING
    notes: Optional[str] = None


class MessageCreate(RecordModel):
    booking_id: str
    sender_id: str
    content: str


class RequirementCreate(RecordModel):
    business_id: str
    title: str
    description: str
    category: str
    urgency: Optional[Urgency] = None
    budget: Optional[int] = None
    status: RequirementStatus = RequirementStatus.OPEN


# ── Records ───────────────────────────────────────────────────

class User(UserCreate):
    id: str
    created_at: datetime


class Professional(ProfessionalCreate):
    id: str


class Service(ServiceCreate):
    id: str


class Booking(BookingCreate):
    id: str
    created_at: datetime


class Message(MessageCreate):
    id: str
    sent_at: datetime


class Requirement(RequirementCreate):
    id: str
    created_at: datetime
