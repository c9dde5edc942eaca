from datetime import datetime
from typing import Any

from src.schemas.common import BaseSchema, TimestampSchema
from src.schemas.driver import DriverResponse
from src.schemas.vehicle import VehicleResponse
from src.utils.constants import PaymentStatus, ReservationStatus, TripStatus


class ReservationBase(BaseSchema):
    pickup_date: datetime
    return_date: datetime
    pickup_location: str | None = None
    return_location: str | None = None
    notes: str | None = None


class ReservationCreate(ReservationBase):
    vehicle_id: int
    driver_required: bool = False
    driver_id: int | None = None


class ReservationResponse(ReservationBase, TimestampSchema):
    id: int
    user_id: int
    vehicle_id: int
    driver_required: bool
    driver_id: int | None = None
    days: int
    base_price: float
    driver_price: float
    total_price: float
    status: ReservationStatus
    trip_status: TripStatus
    payment_status: PaymentStatus
    confirmation_number: str
    bill_details: dict[str, Any] | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    completed_at: datetime | None = None
    vehicle: VehicleResponse | None = None
    driver: DriverResponse | None = None


class ReservationListResponse(BaseSchema):
    reservations: list[ReservationResponse]
    total: int
    page: int
    limit: int


class ReservationStatusUpdate(BaseSchema):
    status: ReservationStatus


class TripStatusUpdate(BaseSchema):
    trip_status: TripStatus


class PaymentStatusUpdate(BaseSchema):
    payment_status: PaymentStatus
    bill_details: dict[str, Any] | None = None


class ReservationCancelRequest(BaseSchema):
    reason: str | None = None


class AvailabilityResponse(BaseSchema):
    available: bool
    days: int | None = None
    base_price: float | None = None
    message: str | None = None
    conflicting_reservation_id: int | None = None
