from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from chargeprice.models import PricePoint, PriceWindow, format_round_trip


def test_price_point_for_hour():
    start = datetime(2024, 3, 31, 1, 0, tzinfo=timezone.utc)
    point = PricePoint.for_hour(start, Decimal("0.42"))

    assert point.valid_to == start + timedelta(hours=1)
    assert point.value == Decimal("0.42")


def test_price_point_must_span_one_hour():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)

    with pytest.raises(ValueError, match="one hour"):
        PricePoint(start, start + timedelta(minutes=30), Decimal("1"))


def test_price_point_is_immutable():
    point = PricePoint.for_hour(datetime(2024, 1, 1, tzinfo=timezone.utc), Decimal("1"))

    with pytest.raises(AttributeError):
        point.value = Decimal("2")


def test_window_hours_round_up():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)

    assert PriceWindow(start, start + timedelta(hours=3)).hours == 3
    assert PriceWindow(start, start + timedelta(hours=3, minutes=1)).hours == 4
    assert PriceWindow(start, start + timedelta(minutes=10)).hours == 1


def test_window_treats_naive_times_as_utc():
    window = PriceWindow(datetime(2024, 1, 1), datetime(2024, 1, 1, 5))

    assert window.start.tzinfo == timezone.utc
    assert window.hours == 5


def test_format_round_trip():
    assert format_round_trip(datetime(2023, 12, 31, 23, tzinfo=timezone.utc)) == (
        "2023-12-31T23:00:00.0000000+00:00"
    )
    cet = timezone(timedelta(hours=1))
    assert format_round_trip(datetime(2024, 6, 1, 12, 30, 15, 123456, tzinfo=cet)) == (
        "2024-06-01T12:30:15.1234560+01:00"
    )
