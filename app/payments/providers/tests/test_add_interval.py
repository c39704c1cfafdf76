from datetime import datetime, timezone

import pytest

from payments.providers.creditcard import add_interval


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "value, interval, expected",
    [
        (utc(2024, 1, 15, 9, 30), "month", utc(2024, 2, 15, 9, 30)),
        (utc(2024, 1, 31), "month", utc(2024, 2, 29)),
        (utc(2023, 1, 31), "month", utc(2023, 2, 28)),
        (utc(2024, 3, 31), "month", utc(2024, 4, 30)),
        (utc(2024, 11, 30), "month", utc(2024, 12, 30)),
        (utc(2024, 12, 31), "month", utc(2025, 1, 31)),
        (utc(2024, 6, 1), "year", utc(2025, 6, 1)),
        (utc(2024, 2, 29), "year", utc(2025, 2, 28)),
    ],
)
def test_add_interval(value, interval, expected):
    assert add_interval(value, interval) == expected
