from src.schemas.common import BaseSchema, TimestampSchema
from src.utils.constants import DriverStatus


class DriverResponse(TimestampSchema):
    id: int
    user_id: int
    license_number: str | None = None
    years_of_experience: int
    status: DriverStatus
    availability: bool
    daily_rate: float | None = None


class DriverListResponse(BaseSchema):
    drivers: list[DriverResponse]
    total: int
