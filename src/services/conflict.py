from datetime import datetime

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.models.reservation import Reservation
from src.utils.constants import (
    ACTIVE_RESERVATION_STATUSES,
    BoundaryPolicy,
    ReservationStatus,
    ResourceKind,
)


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
    policy: BoundaryPolicy = BoundaryPolicy.INCLUSIVE,
) -> bool:
    if policy == BoundaryPolicy.INCLUSIVE:
        return a_start <= b_end and a_end >= b_start
    return a_start < b_end and a_end > b_start


def _overlap_clause(start: datetime, end: datetime, policy: BoundaryPolicy):
    if policy == BoundaryPolicy.INCLUSIVE:
        return and_(Reservation.pickup_date <= end, Reservation.return_date >= start)
    return and_(Reservation.pickup_date < end, Reservation.return_date > start)


def _resource_clause(kind: ResourceKind, resource_id: int):
    if kind == ResourceKind.VEHICLE:
        return Reservation.vehicle_id == resource_id
    return and_(Reservation.driver_id == resource_id, Reservation.driver_required.is_(True))


async def find_conflict(
    db: AsyncSession,
    kind: ResourceKind,
    resource_id: int,
    start: datetime,
    end: datetime,
    exclude_reservation_id: int | None = None,
    policy: BoundaryPolicy | None = None,
) -> Reservation | None:
    """Return the earliest active reservation of the resource overlapping ``[start, end]``."""
    policy = policy or settings.booking_boundary_policy
    query = select(Reservation).where(
        _resource_clause(kind, resource_id),
        Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
        _overlap_clause(start, end, policy),
    )
    if exclude_reservation_id is not None:
        query = query.where(Reservation.id != exclude_reservation_id)

    result = await db.execute(query.order_by(Reservation.pickup_date).limit(1))
    return result.scalar_one_or_none()


async def has_conflict(
    db: AsyncSession,
    kind: ResourceKind,
    resource_id: int,
    start: datetime,
    end: datetime,
    exclude_reservation_id: int | None = None,
) -> bool:
    conflict = await find_conflict(db, kind, resource_id, start, end, exclude_reservation_id)
    return conflict is not None


async def is_held_by_other(
    db: AsyncSession,
    kind: ResourceKind,
    resource_id: int,
    exclude_reservation_id: int | None = None,
) -> bool:
    """True while some other confirmed reservation still has the resource allocated."""
    query = select(Reservation.id).where(
        _resource_clause(kind, resource_id),
        Reservation.status == ReservationStatus.CONFIRMED,
    )
    if exclude_reservation_id is not None:
        query = query.where(Reservation.id != exclude_reservation_id)

    result = await db.execute(query.limit(1))
    return result.first() is not None
