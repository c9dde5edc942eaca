from src.services import (
    auth,
    conflict,
    driver,
    pricing,
    reservation,
    state_machine,
    synchronizer,
    vehicle,
)

__all__ = [
    "auth",
    "vehicle",
    "driver",
    "conflict",
    "pricing",
    "state_machine",
    "synchronizer",
    "reservation",
]
