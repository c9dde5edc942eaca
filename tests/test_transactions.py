from datetime import UTC, datetime

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from src.core.exceptions import ConcurrencyError, ConflictError, ValidationError
from src.core.transactions import run_atomic
from src.models.reservation import Reservation
from src.models.user import User
from src.models.vehicle import Vehicle
from src.schemas.reservation import ReservationCreate
from src.services import conflict as conflict_service
from src.services import reservation as reservation_service

PICKUP = datetime(2030, 1, 10, 9, 0, tzinfo=UTC)
RETURN = datetime(2030, 1, 12, 9, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_operation_retried_after_stale_write(db_session: AsyncSession):
    calls = []

    async def operation():
        calls.append(1)
        if len(calls) == 1:
            raise StaleDataError("row was updated concurrently")
        return "done"

    assert await run_atomic(db_session, operation, attempts=3) == "done"
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_retries_exhausted_raise_concurrency_error(db_session: AsyncSession):
    calls = []

    async def operation():
        calls.append(1)
        raise StaleDataError("row was updated concurrently")

    with pytest.raises(ConcurrencyError):
        await run_atomic(db_session, operation, attempts=2)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_business_errors_are_not_retried(db_session: AsyncSession):
    calls = []

    async def operation():
        calls.append(1)
        raise ValidationError("bad dates")

    with pytest.raises(ValidationError):
        await run_atomic(db_session, operation, attempts=3)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_racing_creates_book_vehicle_once(
    db_session: AsyncSession,
    session_factory: async_sessionmaker[AsyncSession],
    customer: User,
    vehicle: Vehicle,
    monkeypatch: pytest.MonkeyPatch,
):
    """A competing booking commits between our conflict check and our write."""
    vehicle_id, user_id = vehicle.id, customer.id
    data = ReservationCreate(vehicle_id=vehicle_id, pickup_date=PICKUP, return_date=RETURN)
    original_find_conflict = conflict_service.find_conflict
    raced = False

    async def find_conflict_then_lose_race(db, *args, **kwargs):
        nonlocal raced
        found = await original_find_conflict(db, *args, **kwargs)
        if db is db_session and not raced:
            raced = True
            async with session_factory() as other:
                await reservation_service.create_reservation(other, user_id, data)
                await other.commit()
        return found

    monkeypatch.setattr(conflict_service, "find_conflict", find_conflict_then_lose_race)

    # First attempt fails its version check, the retry sees the competitor's booking
    with pytest.raises(ConflictError):
        await reservation_service.create_reservation(db_session, user_id, data)
    assert raced

    result = await db_session.execute(
        select(func.count(Reservation.id)).where(Reservation.vehicle_id == vehicle_id)
    )
    assert result.scalar() == 1
