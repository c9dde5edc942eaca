"""Reservation lifecycle as one composite state.

A reservation's phase is the pair ``(status, trip_status)``. Both the admin
facing status changes and the driver facing trip changes are looked up in
explicit tables keyed on that pair, so combinations such as a started trip
on a cancelled reservation can never be produced. Each table entry also
lists the resource effects the transition requires; applying them is the
synchronizer's job.
"""

from dataclasses import dataclass, field
from enum import Enum

from src.core.exceptions import StateError
from src.utils.constants import (
    TERMINAL_RESERVATION_STATUSES,
    ReservationStatus,
    ResourceKind,
    TripStatus,
)


class EffectAction(str, Enum):
    ALLOCATE = "allocate"
    RELEASE = "release"


@dataclass(frozen=True)
class ResourceEffect:
    kind: ResourceKind
    resource_id: int
    action: EffectAction


@dataclass(frozen=True)
class TransitionResult:
    status: ReservationStatus
    trip_status: TripStatus
    effects: list[ResourceEffect] = field(default_factory=list)


Phase = tuple[ReservationStatus, TripStatus]

_P, _C = ReservationStatus.PENDING, ReservationStatus.CONFIRMED
_X, _D = ReservationStatus.CANCELLED, ReservationStatus.COMPLETED
_NS, _ST, _TC = TripStatus.NOT_STARTED, TripStatus.STARTED, TripStatus.COMPLETED

# (current phase, requested status) -> (next phase, effect action or None)
STATUS_TRANSITIONS: dict[tuple[Phase, ReservationStatus], tuple[Phase, EffectAction | None]] = {
    ((_P, _NS), _C): ((_C, _NS), EffectAction.ALLOCATE),
    ((_P, _NS), _X): ((_X, _NS), None),
    ((_C, _NS), _X): ((_X, _NS), EffectAction.RELEASE),
    ((_C, _NS), _D): ((_D, _NS), EffectAction.RELEASE),
    ((_C, _ST), _D): ((_D, _TC), EffectAction.RELEASE),
}

# (current phase, requested trip status) -> (next phase, effect action or None)
TRIP_TRANSITIONS: dict[tuple[Phase, TripStatus], tuple[Phase, EffectAction | None]] = {
    ((_C, _NS), _ST): ((_C, _ST), None),
    ((_C, _ST), _TC): ((_D, _TC), EffectAction.RELEASE),
}

VALID_PHASES: frozenset[Phase] = frozenset(
    {(_P, _NS), (_C, _NS), (_C, _ST), (_D, _NS), (_D, _TC), (_X, _NS)}
)


def build_effects(
    action: EffectAction | None,
    vehicle_id: int,
    driver_id: int | None,
    driver_required: bool,
) -> list[ResourceEffect]:
    if action is None:
        return []
    effects = [ResourceEffect(ResourceKind.VEHICLE, vehicle_id, action)]
    if driver_required and driver_id is not None:
        effects.append(ResourceEffect(ResourceKind.DRIVER, driver_id, action))
    return effects


def _status_rejection(phase: Phase, target: ReservationStatus) -> str:
    status, trip_status = phase
    if status in TERMINAL_RESERVATION_STATUSES:
        return f"Reservation is already {status.value}; no further changes are allowed"
    if status == target:
        return f"Reservation is already {status.value}"
    if target == _X and trip_status == _ST:
        return "Cannot cancel a reservation whose trip has already started"
    return f"Cannot change reservation status from {status.value} to {target.value}"


def transition(
    status: ReservationStatus,
    trip_status: TripStatus,
    target: ReservationStatus,
    vehicle_id: int,
    driver_id: int | None = None,
    driver_required: bool = False,
) -> TransitionResult:
    phase = (status, trip_status)
    entry = STATUS_TRANSITIONS.get((phase, target))
    if entry is None:
        raise StateError(_status_rejection(phase, target))

    (new_status, new_trip_status), action = entry
    return TransitionResult(
        status=new_status,
        trip_status=new_trip_status,
        effects=build_effects(action, vehicle_id, driver_id, driver_required),
    )


def trip_transition(
    status: ReservationStatus,
    trip_status: TripStatus,
    target: TripStatus,
    vehicle_id: int,
    driver_id: int | None = None,
    driver_required: bool = False,
) -> TransitionResult:
    phase = (status, trip_status)
    entry = TRIP_TRANSITIONS.get((phase, target))
    if entry is None:
        if status != _C:
            raise StateError(
                f"Trip status can only change while the reservation is confirmed "
                f"(currently {status.value})"
            )
        raise StateError(
            f"Cannot change trip status from {trip_status.value} to {target.value}"
        )

    (new_status, new_trip_status), action = entry
    return TransitionResult(
        status=new_status,
        trip_status=new_trip_status,
        effects=build_effects(action, vehicle_id, driver_id, driver_required),
    )
