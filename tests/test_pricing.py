"""
tests/test_pricing.py
Booking fee arithmetic.
"""

import pytest

from shared.utils.pricing import PLATFORM_FEE, quote


def test_quote_for_two_thousand():
    q = quote(2000)
    assert q.platform_fee == PLATFORM_FEE == 100
    assert q.gst == 378
    assert q.total == 2478
    assert q.total_minor == 247800


def test_gst_rounds_half_up():
    # 18% of 125 is 22.5
    q = quote(25)
    assert q.gst == 23
    assert q.total == 148


def test_zero_fee_still_pays_platform_fee():
    q = quote(0)
    assert q.gst == 18
    assert q.total == 118


def test_negative_fee_rejected():
    with pytest.raises(ValueError):
        quote(-1)
