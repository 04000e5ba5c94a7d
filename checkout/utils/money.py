# checkout/utils/money.py
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_EVEN

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value) -> Decimal:
    """Zaokraglenie do groszy (bankowe, tak jak Math.Round)."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_EVEN)


def percent_of(amount: Decimal, percentage: Decimal) -> Decimal:
    return money(Decimal(amount) * Decimal(percentage) / Decimal(100))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    #sqlite zwraca naive datetime
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
