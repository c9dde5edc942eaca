import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from src.core.exceptions import ValidationError

SECONDS_PER_DAY = int(timedelta(days=1).total_seconds())
CENT = Decimal("0.01")


@dataclass(frozen=True)
class PriceQuote:
    days: int
    base_price: Decimal
    driver_price: Decimal

    @property
    def total_price(self) -> Decimal:
        return self.base_price + self.driver_price


def _to_money(value: Decimal | float | int | str) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def billable_days(pickup: datetime, return_date: datetime) -> int:
    """Whole days charged for a rental; any started day is billed in full."""
    seconds = (return_date - pickup).total_seconds()
    return max(1, math.ceil(seconds / SECONDS_PER_DAY))


def calculate_price(
    pickup: datetime,
    return_date: datetime,
    vehicle_daily_rate: Decimal | float,
    driver_daily_rate: Decimal | float | None = None,
) -> PriceQuote:
    vehicle_rate = _to_money(vehicle_daily_rate)
    if vehicle_rate <= 0:
        raise ValidationError("Vehicle daily rate must be positive")

    days = billable_days(pickup, return_date)
    driver_price = Decimal("0.00")
    if driver_daily_rate is not None:
        driver_rate = _to_money(driver_daily_rate)
        if driver_rate <= 0:
            raise ValidationError("Driver daily rate must be positive")
        driver_price = driver_rate * days

    return PriceQuote(days=days, base_price=vehicle_rate * days, driver_price=driver_price)
