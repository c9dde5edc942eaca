from enum import Enum


class UserRole(str, Enum):
    CUSTOMER = "customer"
    DRIVER = "driver"
    ADMIN = "admin"


class VehicleStatus(str, Enum):
    AVAILABLE = "available"
    RENTED = "rented"
    MAINTENANCE = "maintenance"
    UNAVAILABLE = "unavailable"


class DriverStatus(str, Enum):
    ACTIVE = "active"
    ON_LEAVE = "on_leave"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class TripStatus(str, Enum):
    NOT_STARTED = "not_started"
    STARTED = "started"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"


class ResourceKind(str, Enum):
    VEHICLE = "vehicle"
    DRIVER = "driver"


class BoundaryPolicy(str, Enum):
    # inclusive: touching intervals conflict; exclusive: same-instant turnover allowed
    INCLUSIVE = "inclusive"
    EXCLUSIVE = "exclusive"


ACTIVE_RESERVATION_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)
TERMINAL_RESERVATION_STATUSES = (ReservationStatus.CANCELLED, ReservationStatus.COMPLETED)
