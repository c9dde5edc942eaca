from datetime import datetime

from fastapi import APIRouter, Query

from src.core.dependencies import DB, ActiveUser, AdminUser, DriverUser, Pagination
from src.schemas.driver import DriverListResponse
from src.schemas.reservation import (
    AvailabilityResponse,
    PaymentStatusUpdate,
    ReservationCancelRequest,
    ReservationCreate,
    ReservationListResponse,
    ReservationResponse,
    ReservationStatusUpdate,
    TripStatusUpdate,
)
from src.services import driver as driver_service
from src.services import reservation as reservation_service
from src.utils.constants import ReservationStatus

router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.post("", response_model=ReservationResponse)
async def create_reservation(db: DB, user: ActiveUser, data: ReservationCreate):
    return await reservation_service.create_reservation(db, user.id, data)


@router.get("", response_model=ReservationListResponse)
async def list_my_reservations(
    db: DB,
    user: ActiveUser,
    pagination: Pagination,
    status: ReservationStatus | None = Query(None),
):
    return await reservation_service.get_user_reservations(
        db, user.id, pagination.page, pagination.limit, status
    )


@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability(
    db: DB,
    vehicle_id: int,
    pickup_date: datetime,
    return_date: datetime,
):
    return await reservation_service.check_availability(db, vehicle_id, pickup_date, return_date)


@router.get("/drivers", response_model=DriverListResponse)
async def list_available_drivers(db: DB):
    return await driver_service.get_available_drivers(db)


@router.get("/all", response_model=ReservationListResponse)
async def list_all_reservations(
    db: DB,
    admin: AdminUser,
    pagination: Pagination,
    status: ReservationStatus | None = Query(None),
):
    return await reservation_service.get_all_reservations(
        db, pagination.page, pagination.limit, status
    )


@router.get("/driver", response_model=ReservationListResponse)
async def list_driver_reservations(db: DB, driver: DriverUser, pagination: Pagination):
    return await reservation_service.get_driver_reservations(
        db, driver.id, pagination.page, pagination.limit
    )


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(db: DB, user: ActiveUser, reservation_id: int):
    return await reservation_service.get_reservation_by_id(db, reservation_id, user)


@router.put("/{reservation_id}/status", response_model=ReservationResponse)
async def set_reservation_status(
    db: DB, user: ActiveUser, reservation_id: int, data: ReservationStatusUpdate
):
    return await reservation_service.transition_status(db, reservation_id, data.status, user)


@router.put("/{reservation_id}/trip-status", response_model=ReservationResponse)
async def set_trip_status(db: DB, driver: DriverUser, reservation_id: int, data: TripStatusUpdate):
    return await reservation_service.update_trip_status(
        db, reservation_id, data.trip_status, driver
    )


@router.put("/{reservation_id}/payment", response_model=ReservationResponse)
async def set_payment_status(
    db: DB, admin: AdminUser, reservation_id: int, data: PaymentStatusUpdate
):
    return await reservation_service.update_payment_status(
        db, reservation_id, data.payment_status, data.bill_details
    )


@router.put("/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_reservation(
    db: DB, user: ActiveUser, reservation_id: int, data: ReservationCancelRequest | None = None
):
    reason = data.reason if data else None
    return await reservation_service.cancel_reservation(db, reservation_id, user, reason)
