"""
client/api.py
Async HTTP client for the ComplianceConnect API.

Responses come back as the same pydantic DTOs the server renders. GET
results are cached per URL until a mutation invalidates their path prefix.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlencode

import httpx

from shared.schemas.entities import (
    Booking,
    KycDocuments,
    Message,
    Professional,
    Requirement,
    Service,
)
from shared.schemas.schemas import (
    BookingCreateRequest,
    BookingForBusiness,
    BookingForProfessional,
    BookingUpdateRequest,
    KycUpdateRequest,
    LoginResponse,
    MessageCreateRequest,
    MessageWithSender,
    ProfessionalCreateRequest,
    ProfessionalWithUser,
    RegisterRequest,
    RegisterResponse,
    RequirementCreateRequest,
    RequirementWithBusiness,
    ServiceCreateRequest,
    ServiceWithProfessional,
    UserResponse,
    UserUpdateRequest,
)
from shared.utils.pricing import quote

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000"


class ApiError(Exception):
    """A non-2xx response. ``message`` is the server's ``message`` field when present."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _body(request_model) -> dict:
    return request_model.model_dump(mode="json", by_alias=True, exclude_none=True)


class MarketplaceClient:
    """
    Usage:
        async with MarketplaceClient("http://localhost:5000") as api:
            await api.login("business@example.com", "password123")
            professionals = await api.list_professionals(city="Mumbai")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self._cache: Dict[str, Any] = {}
        self.token: Optional[str] = None
        self.user_id: Optional[str] = None

    async def __aenter__(self) -> "MarketplaceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    # ── Transport ─────────────────────────────────────────────

    def _headers(self) -> Dict[str, str]:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.user_id:
            headers["x-user-id"] = self.user_id
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._http.request(method, path, headers=self._headers(), **kwargs)
        logger.debug("%s %s -> %d", method, path, response.status_code)
        if response.is_error:
            try:
                message = response.json().get("message") or response.reason_phrase
            except ValueError:
                message = response.text or response.reason_phrase
            raise ApiError(response.status_code, message)
        return response.json()

    async def _get(self, path: str, params: Optional[dict] = None, use_cache: bool = True) -> Any:
        params = {k: v for k, v in (params or {}).items() if v is not None}
        key = f"{path}?{urlencode(sorted(params.items()))}" if params else path
        if use_cache and key in self._cache:
            return self._cache[key]
        data = await self._request("GET", path, params=params)
        if use_cache:
            self._cache[key] = data
        return data

    async def _mutate(self, method: str, path: str, body: dict, invalidates: Iterable[str]) -> Any:
        data = await self._request(method, path, json=body)
        for prefix in invalidates:
            self.invalidate(prefix)
        return data

    def invalidate(self, prefix: str) -> None:
        """Drop every cached GET whose URL starts with ``prefix``."""
        for key in [k for k in self._cache if k.startswith(prefix)]:
            del self._cache[key]

    def cached(self, path: str) -> bool:
        return path in self._cache

    # ── Auth ──────────────────────────────────────────────────

    async def register(
        self, email: str, password: str, role: str, name: str, phone: Optional[str] = None
    ) -> UserResponse:
        body = _body(RegisterRequest(email=email, password=password, role=role, name=name, phone=phone))
        data = await self._request("POST", "/api/auth/register", json=body)
        return RegisterResponse.model_validate(data).user

    async def login(self, email: str, password: str) -> LoginResponse:
        """Sign in; later requests carry the token and x-user-id."""
        data = await self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        result = LoginResponse.model_validate(data)
        self._cache.clear()
        self.token = result.token
        self.user_id = result.user.id
        return result

    def logout(self) -> None:
        self.token = None
        self.user_id = None
        self._cache.clear()

    async def me(self) -> UserResponse:
        return UserResponse.model_validate(await self._get("/api/users/me"))

    async def update_me(self, name: Optional[str] = None, phone: Optional[str] = None) -> UserResponse:
        body = _body(UserUpdateRequest(name=name, phone=phone))
        data = await self._mutate("PUT", "/api/users/me", body, invalidates=["/api/users/me"])
        return UserResponse.model_validate(data)

    # ── Professionals ─────────────────────────────────────────

    async def list_professionals(
        self, specialization: Optional[str] = None, city: Optional[str] = None
    ) -> List[ProfessionalWithUser]:
        data = await self._get(
            "/api/professionals", params={"specialization": specialization, "city": city}
        )
        return [ProfessionalWithUser.model_validate(p) for p in data]

    async def get_professional(self, professional_id: str) -> ProfessionalWithUser:
        return ProfessionalWithUser.model_validate(
            await self._get(f"/api/professionals/{professional_id}")
        )

    async def get_professional_by_user(self, user_id: str) -> Professional:
        return Professional.model_validate(await self._get(f"/api/professionals/user/{user_id}"))

    async def professional_services(self, professional_id: str) -> List[Service]:
        data = await self._get(f"/api/professionals/{professional_id}/services")
        return [Service.model_validate(s) for s in data]

    async def create_professional(self, **fields) -> Professional:
        body = _body(ProfessionalCreateRequest(**fields))
        data = await self._mutate("POST", "/api/professionals", body, invalidates=["/api/professionals"])
        return Professional.model_validate(data)

    async def review_kyc(
        self, professional_id: str, status: str, documents: Optional[KycDocuments] = None
    ) -> Professional:
        body = _body(KycUpdateRequest(status=status, documents=documents))
        data = await self._mutate(
            "PUT",
            f"/api/professionals/{professional_id}/kyc",
            body,
            invalidates=["/api/professionals", "/api/services"],
        )
        return Professional.model_validate(data)

    # ── Services ──────────────────────────────────────────────

    async def list_services(self) -> List[ServiceWithProfessional]:
        return [ServiceWithProfessional.model_validate(s) for s in await self._get("/api/services")]

    async def create_service(self, **fields) -> Service:
        body = _body(ServiceCreateRequest(**fields))
        data = await self._mutate(
            "POST", "/api/services", body, invalidates=["/api/services", "/api/professionals"]
        )
        return Service.model_validate(data)

    # ── Bookings ──────────────────────────────────────────────

    async def book(
        self,
        service: Service,
        scheduled_at: datetime,
        notes: Optional[str] = None,
        business_id: Optional[str] = None,
    ) -> Booking:
        """
        Book ``service`` for the signed-in business. The total sent is the
        service fee plus platform fee plus GST, in paise.
        """
        total = quote(service.price)
        body = _body(
            BookingCreateRequest(
                business_id=business_id or self.user_id,
                professional_id=service.professional_id,
                service_id=service.id,
                scheduled_at=scheduled_at,
                total_amount=total.total_minor,
                notes=notes,
            )
        )
        data = await self._mutate("POST", "/api/bookings", body, invalidates=["/api/bookings"])
        return Booking.model_validate(data)

    async def get_booking(self, booking_id: str) -> Booking:
        return Booking.model_validate(await self._get(f"/api/bookings/{booking_id}"))

    async def all_bookings(self) -> List[Booking]:
        return [Booking.model_validate(b) for b in await self._get("/api/bookings")]

    async def business_bookings(self, business_id: str) -> List[BookingForBusiness]:
        data = await self._get(f"/api/bookings/business/{business_id}")
        return [BookingForBusiness.model_validate(b) for b in data]

    async def professional_bookings(self, professional_id: str) -> List[BookingForProfessional]:
        data = await self._get(f"/api/bookings/professional/{professional_id}")
        return [BookingForProfessional.model_validate(b) for b in data]

    async def update_booking(self, booking_id: str, **changes) -> Booking:
        body = _body(BookingUpdateRequest(**changes))
        data = await self._mutate("PUT", f"/api/bookings/{booking_id}", body, invalidates=["/api/bookings"])
        return Booking.model_validate(data)

    # ── Messages ──────────────────────────────────────────────

    async def send_message(self, booking_id: str, content: str) -> Message:
        body = _body(MessageCreateRequest(booking_id=booking_id, sender_id=self.user_id, content=content))
        data = await self._mutate(
            "POST", "/api/messages", body, invalidates=[f"/api/messages/booking/{booking_id}"]
        )
        return Message.model_validate(data)

    async def messages(
        self, booking_id: str, since: Optional[datetime] = None, use_cache: bool = True
    ) -> List[MessageWithSender]:
        params = {"since": since.isoformat() if since else None}
        data = await self._get(f"/api/messages/booking/{booking_id}", params=params, use_cache=use_cache)
        return [MessageWithSender.model_validate(m) for m in data]

    # ── Requirements ──────────────────────────────────────────

    async def post_requirement(self, **fields) -> Requirement:
        fields.setdefault("business_id", self.user_id)
        body = _body(RequirementCreateRequest(**fields))
        data = await self._mutate("POST", "/api/requirements", body, invalidates=["/api/requirements"])
        return Requirement.model_validate(data)

    async def requirements(self) -> List[RequirementWithBusiness]:
        return [RequirementWithBusiness.model_validate(r) for r in await self._get("/api/requirements")]

    async def business_requirements(self, business_id: str) -> List[Requirement]:
        data = await self._get(f"/api/requirements/business/{business_id}")
        return [Requirement.model_validate(r) for r in data]
