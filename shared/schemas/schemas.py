"""
shared/schemas/schemas.py
Pydantic v2 request bodies and response DTOs for every endpoint.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import ConfigDict, EmailStr, Field, field_validator

from shared.schemas.entities import (
    Booking,
    BookingStatus,
    KycDocuments,
    KycStatus,
    Message,
    PaymentStatus,
    Professional,
    Qualification,
    RecordModel,
    Requirement,
    RequirementStatus,
    Service,
    Urgency,
    UserRole,
)

BCRYPT_MAX_BYTES = 72  # bcrypt ignores input past this many bytes


# ── Base ──────────────────────────────────────────────────────

class BaseSchema(RecordModel):
    pass


class UserSummary(BaseSchema):
    id: str
    name: str


class UserContact(UserSummary):
    email: str


# ── Auth ──────────────────────────────────────────────────────

class RegisterRequest(BaseSchema):
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
        return v


class LoginRequest(BaseSchema):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseSchema):
    id: str
    email: str
    role: UserRole
    name: str
    phone: Optional[str] = None
    is_verified: bool
    created_at: datetime


class RegisterResponse(BaseSchema):
    user: UserResponse


class LoginResponse(BaseSchema):
    user: UserResponse
    token: str


# ── User ──────────────────────────────────────────────────────

class UserUpdateRequest(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)


# ── Professional ──────────────────────────────────────────────

class ProfessionalCreateRequest(BaseSchema):
    """Rating, review count and KYC status are not client-settable."""
    user_id: str
    registration_number: str = Field(..., min_length=1, max_length=50)
    qualification: Qualification
    specializations: List[str] = Field(default_factory=list)
    experience: Optional[int] = Field(None, ge=0, le=70)
    city: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=2000)
    hourly_rate: Optional[int] = Field(None, ge=0)
    kyc_documents: Optional[KycDocuments] = None
    availability: Dict[str, List[str]] = Field(default_factory=dict)


class ProfessionalWithUser(Professional):
    user: Optional[UserContact] = None


class ProfessionalWithUserName(Professional):
    user: Optional[UserSummary] = None


class KycUpdateRequest(BaseSchema):
    status: KycStatus
    documents: Optional[KycDocuments] = None


# ── Service ───────────────────────────────────────────────────

class ServiceCreateRequest(BaseSchema):
    professional_id: str
    title: str = Field(..., min_length=1, max_length=255)
    description: str
    category: str
    price: int = Field(..., ge=0)
    duration: Optional[int] = Field(None, ge=1)


class ServiceWithProfessional(Service):
    professional: Optional[ProfessionalWithUserName] = None


# ── Booking ───────────────────────────────────────────────────

class BookingCreateRequest(BaseSchema):
    business_id: str
    professional_id: str
    service_id: str
    scheduled_at: datetime
    status: BookingStatus = BookingStatus.PENDING
    total_amount: int = Field(..., ge=0)
    payment_status: PaymentStatus = PaymentStatus.PENDING
    notes: Optional[str] = Field(None, max_length=2000)


class BookingUpdateRequest(BaseSchema):
    model_config = ConfigDict(extra="forbid")

    status: Optional[BookingStatus] = None
    payment_status: Optional[PaymentStatus] = None
    notes: Optional[str] = Field(None, max_length=2000)
    scheduled_at: Optional[datetime] = None


class BookingForBusiness(Booking):
    service: Optional[Service] = None
    professional: Optional[ProfessionalWithUserName] = None


class BookingForProfessional(Booking):
    service: Optional[Service] = None
    business_user: Optional[UserSummary] = None


# ── Message ───────────────────────────────────────────────────

class MessageCreateRequest(BaseSchema):
    booking_id: str
    sender_id: str
    content: str = Field(..., min_length=1, max_length=5000)


class MessageWithSender(Message):
    sender: Optional[UserSummary] = None


# ── Requirement ───────────────────────────────────────────────

class RequirementCreateRequest(BaseSchema):
    business_id: str
    title: str = Field(..., min_length=1, max_length=255)
    description: str
    category: str
    urgency: Optional[Urgency] = None
    budget: Optional[int] = Field(None, ge=0)
    status: RequirementStatus = RequirementStatus.OPEN


class RequirementWithBusiness(Requirement):
    business_user: Optional[UserSummary] = None
