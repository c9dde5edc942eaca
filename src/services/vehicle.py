from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.vehicle import Vehicle
from src.utils.constants import VehicleStatus


async def get_vehicle(db: AsyncSession, vehicle_id: int, for_update: bool = False) -> Vehicle | None:
    query = select(Vehicle).where(Vehicle.id == vehicle_id).execution_options(
        populate_existing=True
    )
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


def set_vehicle_status(vehicle: Vehicle, status: VehicleStatus) -> bool:
    """Set the status; returns False when it already had that value."""
    if vehicle.status == status:
        return False
    vehicle.status = status
    return True
