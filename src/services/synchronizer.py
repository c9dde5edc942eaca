"""Applies reservation transition effects onto vehicle and driver rows.

This is the only place that writes ``Vehicle.status`` and
``Driver.availability`` on behalf of reservations. Effects are idempotent:
allocating an already rented vehicle or releasing an already available
driver changes nothing.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ResourceInconsistencyError, StateError
from src.models.driver import Driver
from src.models.vehicle import Vehicle
from src.services import conflict as conflict_service
from src.services import driver as driver_service
from src.services import vehicle as vehicle_service
from src.services.state_machine import EffectAction, ResourceEffect
from src.utils.constants import DriverStatus, ResourceKind, VehicleStatus

logger = logging.getLogger(__name__)

_BLOCKED_VEHICLE_STATUSES = (VehicleStatus.MAINTENANCE, VehicleStatus.UNAVAILABLE)


def _apply_to_vehicle(vehicle: Vehicle, action: EffectAction) -> bool:
    if action == EffectAction.ALLOCATE:
        if vehicle.status in _BLOCKED_VEHICLE_STATUSES:
            raise StateError(f"Vehicle {vehicle.id} is {vehicle.status.value} and cannot be rented")
        return vehicle_service.set_vehicle_status(vehicle, VehicleStatus.RENTED)

    # Statuses set outside the booking flow are left alone on release
    if vehicle.status != VehicleStatus.RENTED:
        return False
    return vehicle_service.set_vehicle_status(vehicle, VehicleStatus.AVAILABLE)


def _apply_to_driver(driver: Driver, action: EffectAction) -> bool:
    if action == EffectAction.ALLOCATE:
        if driver.status != DriverStatus.ACTIVE:
            raise StateError(f"Driver {driver.id} is {driver.status.value} and cannot be assigned")
        return driver_service.set_driver_availability(driver, False)

    if driver.status != DriverStatus.ACTIVE:
        return False
    return driver_service.set_driver_availability(driver, True)


async def apply_effects(
    db: AsyncSession,
    effects: list[ResourceEffect],
    reservation_id: int | None = None,
) -> None:
    """Apply ``effects`` on behalf of ``reservation_id``.

    A release is skipped while another confirmed reservation still holds the
    resource, so finishing one booking never frees a vehicle or driver that a
    later confirmed booking was allocated.
    """
    for effect in effects:
        if effect.action == EffectAction.RELEASE and await conflict_service.is_held_by_other(
            db, effect.kind, effect.resource_id, exclude_reservation_id=reservation_id
        ):
            logger.info(
                "Kept %s %d allocated, still held by another confirmed reservation",
                effect.kind.value,
                effect.resource_id,
            )
            continue

        if effect.kind == ResourceKind.VEHICLE:
            vehicle = await vehicle_service.get_vehicle(db, effect.resource_id, for_update=True)
            if vehicle is None:
                raise ResourceInconsistencyError(
                    f"Vehicle {effect.resource_id} referenced by reservation no longer exists"
                )
            changed = _apply_to_vehicle(vehicle, effect.action)
        else:
            driver = await driver_service.get_driver(db, effect.resource_id, for_update=True)
            if driver is None:
                raise ResourceInconsistencyError(
                    f"Driver {effect.resource_id} referenced by reservation no longer exists"
                )
            changed = _apply_to_driver(driver, effect.action)

        logger.info(
            "%s %s %d%s",
            effect.action.value.capitalize(),
            effect.kind.value,
            effect.resource_id,
            "" if changed else " (already in target state)",
        )
