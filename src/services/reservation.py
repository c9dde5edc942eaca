import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.config import settings
from src.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.core.transactions import run_atomic
from src.models.reservation import Reservation
from src.models.user import User
from src.schemas.reservation import (
    AvailabilityResponse,
    ReservationCreate,
    ReservationListResponse,
    ReservationResponse,
)
from src.services import conflict as conflict_service
from src.services import driver as driver_service
from src.services import state_machine
from src.services import synchronizer
from src.services import vehicle as vehicle_service
from src.services.pricing import calculate_price
from src.utils.constants import (
    DriverStatus,
    PaymentStatus,
    ReservationStatus,
    ResourceKind,
    TripStatus,
    UserRole,
    VehicleStatus,
)

logger = logging.getLogger(__name__)


def generate_confirmation_number() -> str:
    return f"RSV-{uuid.uuid4().hex[:8].upper()}"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _validate_interval(pickup: datetime, return_date: datetime) -> None:
    if return_date <= pickup:
        raise ValidationError("Return date must be after pickup date")
    if pickup < datetime.now(UTC):
        raise ValidationError("Pickup date cannot be in the past")


def _conflict_error(kind: ResourceKind, conflict: Reservation) -> ConflictError:
    label = "Vehicle" if kind == ResourceKind.VEHICLE else "Driver"
    return ConflictError(
        f"{label} is already reserved for these dates",
        resource_kind=kind.value,
        reservation_id=conflict.id,
        pickup_date=conflict.pickup_date.isoformat(),
        return_date=conflict.return_date.isoformat(),
    )


def _reservation_query():
    return select(Reservation).options(
        selectinload(Reservation.vehicle),
        selectinload(Reservation.driver),
    )


async def _load_response(db: AsyncSession, reservation_id: int) -> ReservationResponse:
    result = await db.execute(
        _reservation_query()
        .where(Reservation.id == reservation_id)
        .execution_options(populate_existing=True)
    )
    return ReservationResponse.model_validate(result.scalar_one())


async def _get_for_update(db: AsyncSession, reservation_id: int) -> Reservation:
    result = await db.execute(
        select(Reservation)
        .where(Reservation.id == reservation_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    reservation = result.scalar_one_or_none()
    if not reservation:
        raise NotFoundError("Reservation not found")
    return reservation


async def create_reservation(
    db: AsyncSession, user_id: int, data: ReservationCreate
) -> ReservationResponse:
    pickup = _as_utc(data.pickup_date)
    return_date = _as_utc(data.return_date)
    _validate_interval(pickup, return_date)

    if data.driver_required and data.driver_id is None:
        raise ValidationError("A driver must be selected when a driver is required")
    if not data.driver_required and data.driver_id is not None:
        raise ValidationError("A driver can only be assigned when a driver is required")

    async def operation() -> int:
        vehicle = await vehicle_service.get_vehicle(db, data.vehicle_id, for_update=True)
        if not vehicle:
            raise NotFoundError("Vehicle not found")
        if vehicle.status != VehicleStatus.AVAILABLE:
            raise ValidationError("Vehicle is not available for reservation")

        driver = None
        if data.driver_required:
            driver = await driver_service.get_driver(db, data.driver_id, for_update=True)
            if not driver:
                raise NotFoundError("Driver not found")
            if driver.status != DriverStatus.ACTIVE:
                raise ValidationError("Selected driver is not active")
            if not driver.availability:
                raise ValidationError("Selected driver is not available")

        conflict = await conflict_service.find_conflict(
            db, ResourceKind.VEHICLE, vehicle.id, pickup, return_date
        )
        if conflict:
            logger.info("Vehicle %d conflicts with reservation %d", vehicle.id, conflict.id)
            raise _conflict_error(ResourceKind.VEHICLE, conflict)

        driver_rate = None
        if driver:
            conflict = await conflict_service.find_conflict(
                db, ResourceKind.DRIVER, driver.id, pickup, return_date
            )
            if conflict:
                logger.info("Driver %d conflicts with reservation %d", driver.id, conflict.id)
                raise _conflict_error(ResourceKind.DRIVER, conflict)
            driver_rate = driver.daily_rate or settings.default_driver_daily_rate

        quote = calculate_price(pickup, return_date, vehicle.daily_rate, driver_rate)

        # Bumps the resource versions so a concurrent booking of the same resource fails to flush
        now = datetime.now(UTC)
        vehicle.last_reserved_at = now
        if driver:
            driver.last_reserved_at = now

        reservation = Reservation(
            user_id=user_id,
            vehicle_id=vehicle.id,
            driver_required=data.driver_required,
            driver_id=driver.id if driver else None,
            pickup_date=pickup,
            return_date=return_date,
            pickup_location=data.pickup_location,
            return_location=data.return_location,
            days=quote.days,
            base_price=quote.base_price,
            driver_price=quote.driver_price,
            total_price=quote.total_price,
            status=ReservationStatus.PENDING,
            trip_status=TripStatus.NOT_STARTED,
            payment_status=PaymentStatus.UNPAID,
            confirmation_number=generate_confirmation_number(),
            notes=data.notes,
        )
        db.add(reservation)
        await db.flush()
        logger.info(
            "Created reservation %d for vehicle %d (%d days, total %s)",
            reservation.id,
            vehicle.id,
            quote.days,
            quote.total_price,
        )
        return reservation.id

    reservation_id = await run_atomic(db, operation)
    return await _load_response(db, reservation_id)


async def check_availability(
    db: AsyncSession, vehicle_id: int, pickup_date: datetime, return_date: datetime
) -> AvailabilityResponse:
    pickup = _as_utc(pickup_date)
    return_date = _as_utc(return_date)
    _validate_interval(pickup, return_date)

    vehicle = await vehicle_service.get_vehicle(db, vehicle_id)
    if not vehicle:
        raise NotFoundError("Vehicle not found")
    if vehicle.status != VehicleStatus.AVAILABLE:
        return AvailabilityResponse(available=False, message="Vehicle is not available for booking")

    conflict = await conflict_service.find_conflict(
        db, ResourceKind.VEHICLE, vehicle.id, pickup, return_date
    )
    if conflict:
        return AvailabilityResponse(
            available=False,
            message="Vehicle is already reserved for these dates",
            conflicting_reservation_id=conflict.id,
        )

    quote = calculate_price(pickup, return_date, vehicle.daily_rate)
    return AvailabilityResponse(
        available=True,
        days=quote.days,
        base_price=float(quote.base_price),
        message="Vehicle is available for the selected dates",
    )


async def _list_reservations(
    db: AsyncSession,
    filters: list,
    page: int,
    limit: int,
) -> ReservationListResponse:
    count_query = select(func.count(Reservation.id)).where(*filters)
    result = await db.execute(count_query)
    total = result.scalar() or 0

    offset = (page - 1) * limit
    result = await db.execute(
        _reservation_query()
        .where(*filters)
        .order_by(Reservation.created_at.desc(), Reservation.id.desc())
        .offset(offset)
        .limit(limit)
    )
    reservations = result.scalars().all()

    return ReservationListResponse(
        reservations=[ReservationResponse.model_validate(r) for r in reservations],
        total=total,
        page=page,
        limit=limit,
    )


async def get_user_reservations(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    limit: int = 20,
    status: ReservationStatus | None = None,
) -> ReservationListResponse:
    filters = [Reservation.user_id == user_id]
    if status:
        filters.append(Reservation.status == status)
    return await _list_reservations(db, filters, page, limit)


async def get_all_reservations(
    db: AsyncSession,
    page: int = 1,
    limit: int = 20,
    status: ReservationStatus | None = None,
) -> ReservationListResponse:
    filters = [Reservation.status == status] if status else []
    return await _list_reservations(db, filters, page, limit)


async def get_driver_reservations(
    db: AsyncSession, driver_user_id: int, page: int = 1, limit: int = 20
) -> ReservationListResponse:
    driver = await driver_service.get_driver_by_user(db, driver_user_id)
    if not driver:
        raise NotFoundError("Driver profile not found")
    filters = [Reservation.driver_id == driver.id, Reservation.driver_required.is_(True)]
    return await _list_reservations(db, filters, page, limit)


async def _is_assigned_driver(
    db: AsyncSession, reservation: Reservation, actor_id: int, actor_role: UserRole
) -> bool:
    if reservation.driver_id is None or actor_role != UserRole.DRIVER:
        return False
    driver = await driver_service.get_driver_by_user(db, actor_id)
    return driver is not None and driver.id == reservation.driver_id


async def get_reservation_by_id(
    db: AsyncSession, reservation_id: int, actor: User
) -> ReservationResponse:
    result = await db.execute(_reservation_query().where(Reservation.id == reservation_id))
    reservation = result.scalar_one_or_none()
    if not reservation:
        raise NotFoundError("Reservation not found")

    if actor.role != UserRole.ADMIN and reservation.user_id != actor.id:
        if not await _is_assigned_driver(db, reservation, actor.id, actor.role):
            raise AuthorizationError("Not allowed to access this reservation")
    return ReservationResponse.model_validate(reservation)


def _authorize_status_change(
    reservation: Reservation, target: ReservationStatus, actor_id: int, actor_role: UserRole
) -> None:
    if actor_role == UserRole.ADMIN:
        return
    if target == ReservationStatus.CANCELLED and reservation.user_id == actor_id:
        return
    if target == ReservationStatus.CANCELLED:
        raise AuthorizationError("Not authorized to cancel this reservation")
    raise AuthorizationError("Admin access required to change reservation status")


def _apply_result(
    reservation: Reservation,
    result: state_machine.TransitionResult,
    reason: str | None = None,
) -> None:
    reservation.status = result.status
    reservation.trip_status = result.trip_status
    now = datetime.now(UTC)
    if result.status == ReservationStatus.CANCELLED:
        reservation.cancelled_at = now
        reservation.cancellation_reason = reason
    elif result.status == ReservationStatus.COMPLETED and reservation.completed_at is None:
        reservation.completed_at = now


async def transition_status(
    db: AsyncSession,
    reservation_id: int,
    target: ReservationStatus,
    actor: User,
    reason: str | None = None,
) -> ReservationResponse:
    # A retry rolls the session back, which expires the loaded actor
    actor_id, actor_role = actor.id, actor.role

    async def operation() -> int:
        reservation = await _get_for_update(db, reservation_id)
        _authorize_status_change(reservation, target, actor_id, actor_role)

        previous = reservation.status
        result = state_machine.transition(
            reservation.status,
            reservation.trip_status,
            target,
            vehicle_id=reservation.vehicle_id,
            driver_id=reservation.driver_id,
            driver_required=reservation.driver_required,
        )
        await synchronizer.apply_effects(db, result.effects, reservation.id)
        _apply_result(reservation, result, reason)
        await db.flush()
        logger.info(
            "Reservation %d: %s -> %s by user %d",
            reservation.id,
            previous.value,
            result.status.value,
            actor_id,
        )
        return reservation.id

    await run_atomic(db, operation)
    return await _load_response(db, reservation_id)


async def cancel_reservation(
    db: AsyncSession, reservation_id: int, actor: User, reason: str | None = None
) -> ReservationResponse:
    return await transition_status(
        db, reservation_id, ReservationStatus.CANCELLED, actor, reason=reason
    )


async def update_trip_status(
    db: AsyncSession, reservation_id: int, trip_status: TripStatus, actor: User
) -> ReservationResponse:
    actor_id, actor_role = actor.id, actor.role

    async def operation() -> int:
        reservation = await _get_for_update(db, reservation_id)
        if not await _is_assigned_driver(db, reservation, actor_id, actor_role):
            raise AuthorizationError("Only the assigned driver can update the trip status")

        previous = reservation.trip_status
        result = state_machine.trip_transition(
            reservation.status,
            reservation.trip_status,
            trip_status,
            vehicle_id=reservation.vehicle_id,
            driver_id=reservation.driver_id,
            driver_required=reservation.driver_required,
        )
        await synchronizer.apply_effects(db, result.effects, reservation.id)
        _apply_result(reservation, result)
        await db.flush()
        logger.info(
            "Reservation %d trip: %s -> %s (status %s)",
            reservation.id,
            previous.value,
            result.trip_status.value,
            result.status.value,
        )
        return reservation.id

    await run_atomic(db, operation)
    return await _load_response(db, reservation_id)


async def update_payment_status(
    db: AsyncSession,
    reservation_id: int,
    payment_status: PaymentStatus,
    bill_details: dict[str, Any] | None = None,
) -> ReservationResponse:
    async def operation() -> int:
        reservation = await _get_for_update(db, reservation_id)
        reservation.payment_status = payment_status
        if bill_details is not None:
            reservation.bill_details = bill_details
        await db.flush()
        logger.info("Reservation %d payment status set to %s", reservation.id, payment_status.value)
        return reservation.id

    await run_atomic(db, operation)
    return await _load_response(db, reservation_id)
