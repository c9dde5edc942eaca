from src.models.driver import Driver
from src.models.reservation import Reservation
from src.models.user import User
from src.models.vehicle import Vehicle

__all__ = [
    "User",
    "Vehicle",
    "Driver",
    "Reservation",
]
