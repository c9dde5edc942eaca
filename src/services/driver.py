from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.driver import Driver
from src.schemas.driver import DriverListResponse, DriverResponse
from src.utils.constants import DriverStatus


async def get_driver(db: AsyncSession, driver_id: int, for_update: bool = False) -> Driver | None:
    query = select(Driver).where(Driver.id == driver_id).execution_options(
        populate_existing=True
    )
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_driver_by_user(db: AsyncSession, user_id: int) -> Driver | None:
    result = await db.execute(select(Driver).where(Driver.user_id == user_id))
    return result.scalar_one_or_none()


def set_driver_availability(driver: Driver, availability: bool) -> bool:
    """Set availability; returns False when it already had that value."""
    if driver.availability == availability:
        return False
    driver.availability = availability
    return True


async def get_available_drivers(db: AsyncSession) -> DriverListResponse:
    result = await db.execute(
        select(Driver)
        .where(Driver.status == DriverStatus.ACTIVE, Driver.availability.is_(True))
        .order_by(Driver.id)
    )
    drivers = result.scalars().all()
    return DriverListResponse(
        drivers=[DriverResponse.model_validate(d) for d in drivers],
        total=len(drivers),
    )
