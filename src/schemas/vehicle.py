from src.schemas.common import TimestampSchema
from src.utils.constants import VehicleStatus


class VehicleResponse(TimestampSchema):
    id: int
    make: str
    model: str
    year: int | None = None
    license_plate: str | None = None
    daily_rate: float
    status: VehicleStatus
