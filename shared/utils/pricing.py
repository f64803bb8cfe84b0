"""
shared/utils/pricing.py
Booking fee arithmetic. The client computes the total; the server stores
whatever totalAmount it is given.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

PLATFORM_FEE = 100          # rupees, flat per booking
GST_RATE = Decimal("0.18")


@dataclass(frozen=True)
class BookingQuote:
    service_fee: int
    platform_fee: int
    gst: int
    total: int              # rupees

    @property
    def total_minor(self) -> int:
        """Total in paise, the unit Booking.totalAmount is stored in."""
        return self.total * 100


def quote(service_fee: int, platform_fee: int = PLATFORM_FEE, gst_rate: Decimal = GST_RATE) -> BookingQuote:
    """
    GST is charged on service fee + platform fee and rounded half-up to
    whole rupees: quote(2000) -> platform 100, gst 378, total 2478.
    """
    if service_fee < 0:
        raise ValueError("service_fee must not be negative")
    taxable = Decimal(service_fee + platform_fee)
    gst = int((taxable * gst_rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return BookingQuote(
        service_fee=service_fee,
        platform_fee=platform_fee,
        gst=gst,
        total=service_fee + platform_fee + gst,
    )
