"""
shared/storage/seed.py
Fixture accounts loaded into a fresh store for local use: one admin,
one business, three professionals with profiles and two services each.
"""

import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from config.settings import settings
from shared.schemas.entities import Professional, Service, User
from shared.storage.base import Clock
from shared.utils.security import hash_password

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday")


def _weekly(*slots: str) -> dict:
    return {day: list(slots) for day in WEEKDAYS}


ADMIN = {
    "email": "admin@complianceconnect.com",
    "role": "admin",
    "name": "System Admin",
    "phone": "+91 9876543210",
}

BUSINESS = {
    "email": "business@example.com",
    "role": "business",
    "name": "Business Owner",
    "phone": "+91 9876543214",
}

PROFESSIONALS = [
    (
        {
            "email": "rajesh.kumar@email.com",
            "role": "professional",
            "name": "CA Rajesh Kumar",
            "phone": "+91 9876543211",
        },
        {
            "registration_number": "CA123456",
            "qualification": "CA",
            "specializations": ["Tax Planning", "GST Returns", "Audit"],
            "experience": 15,
            "city": "Mumbai",
            "bio": "Experienced CA with 15+ years in tax planning and GST compliance",
            "hourly_rate": 2000,
            "rating": 49,
            "total_reviews": 127,
            "kyc_status": "approved",
            "availability": _weekly("10:00", "14:00", "16:00"),
        },
    ),
    (
        {
            "email": "priya.sharma@email.com",
            "role": "professional",
            "name": "CS Priya Sharma",
            "phone": "+91 9876543212",
        },
        {
            "registration_number": "CS789012",
            "qualification": "CS",
            "specializations": ["Company Law", "Compliance", "ROC Filing"],
            "experience": 12,
            "city": "Delhi",
            "bio": "Expert CS specializing in company law and regulatory compliance",
            "hourly_rate": 3500,
            "rating": 48,
            "total_reviews": 89,
            "kyc_status": "approved",
            "availability": _weekly("09:00", "11:00", "15:00"),
        },
    ),
    (
        {
            "email": "vikash.singh@email.com",
            "role": "professional",
            "name": "CA Vikash Singh",
            "phone": "+91 9876543213",
        },
        {
            "registration_number": "CA345678",
            "qualification": "CA",
            "specializations": ["Startup CFO", "Financial Planning", "Investment"],
            "experience": 8,
            "city": "Bangalore",
            "bio": "Young CA focused on startup financial management and investment advisory",
            "hourly_rate": 1500,
            "rating": 47,
            "total_reviews": 64,
            "kyc_status": "pending",
            "availability": _weekly("10:00", "14:00", "18:00"),
        },
    ),
]


def _service_templates(hourly_rate: int) -> List[dict]:
    return [
        {
            "title": "Tax Consultation",
            "description": "Comprehensive tax planning and advisory services",
            "category": "Tax",
            "price": hourly_rate,
            "duration": 60,
        },
        {
            "title": "GST Return Filing",
            "description": "Monthly GST return preparation and filing",
            "category": "GST",
            "price": hourly_rate * 2,
            "duration": 120,
        },
    ]


@dataclass
class SeedData:
    users: List[User] = field(default_factory=list)
    professionals: List[Professional] = field(default_factory=list)
    services: List[Service] = field(default_factory=list)


def build_seed_data(clock: Clock, password: Optional[str] = None) -> SeedData:
    """Materialise the fixtures as records with fresh ids."""
    # One hash for every account; bcrypt is deliberately slow.
    password_hash = hash_password(password or settings.SEED_PASSWORD)
    now = clock()
    data = SeedData()

    def _user(fields: dict) -> User:
        return User(
            id=str(uuid.uuid4()),
            password=password_hash,
            is_verified=True,
            created_at=now,
            **fields,
        )

    data.users.append(_user(ADMIN))

    for user_fields, profile_fields in PROFESSIONALS:
        user = _user(user_fields)
        professional = Professional(id=str(uuid.uuid4()), user_id=user.id, **profile_fields)
        data.users.append(user)
        data.professionals.append(professional)
        for template in _service_templates(professional.hourly_rate):
            data.services.append(
                Service(id=str(uuid.uuid4()), professional_id=professional.id, **template)
            )

    data.users.append(_user(BUSINESS))
    return data
