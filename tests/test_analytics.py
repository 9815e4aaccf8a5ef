from datetime import datetime, timezone

import pytest
from sqlalchemy.dialects import postgresql, sqlite

from food_delivery.services.analytics import months_ago, period_bucket


@pytest.mark.parametrize(
    "moment, months, expected",
    [
        (datetime(2026, 10, 18), 6, datetime(2026, 4, 18)),
        (datetime(2026, 3, 15), 6, datetime(2025, 9, 15)),
        (datetime(2026, 8, 31), 6, datetime(2026, 2, 28)),
        (datetime(2028, 8, 31), 6, datetime(2028, 2, 29)),
    ],
)
def test_months_ago(moment, months, expected):
    assert months_ago(moment, months) == expected


def test_months_ago_keeps_timezone():
    moment = datetime(2026, 1, 10, 8, 30, tzinfo=timezone.utc)
    assert months_ago(moment, 1) == datetime(2025, 12, 10, 8, 30, tzinfo=timezone.utc)


def compiled(expression, dialect) -> str:
    return str(expression.compile(dialect=dialect, compile_kwargs={"literal_binds": True}))


def test_period_bucket_sqlite():
    sql = compiled(period_bucket("month", "sqlite"), sqlite.dialect())
    assert "strftime('%Y-%m', orders.created_at)" in sql


def test_period_bucket_postgresql():
    sql = compiled(period_bucket("week", "postgresql"), postgresql.dialect())
    assert sql.startswith("to_char(orders.created_at")
    assert "IYYY" in sql


def test_period_bucket_unknown_dialect():
    with pytest.raises(ValueError):
        period_bucket("day", "oracle")
