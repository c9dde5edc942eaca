from fastapi import HTTPException, status


class FleetBookingException(HTTPException):
    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str | dict = "An error occurred",
    ):
        super().__init__(status_code=status_code, detail=detail)


class AuthenticationError(FleetBookingException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class AuthorizationError(FleetBookingException):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(FleetBookingException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConflictError(FleetBookingException):
    """The requested interval overlaps an active booking of the same resource.

    ``detail`` carries the conflicting reservation so callers can pick other dates.
    """

    def __init__(
        self,
        detail: str = "Resource conflict",
        resource_kind: str | None = None,
        reservation_id: int | None = None,
        pickup_date: str | None = None,
        return_date: str | None = None,
    ):
        self.resource_kind = resource_kind
        self.reservation_id = reservation_id
        if reservation_id is None:
            super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)
            return
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": detail,
                "resource_kind": resource_kind,
                "conflicting_reservation_id": reservation_id,
                "pickup_date": pickup_date,
                "return_date": return_date,
            },
        )


class ValidationError(FleetBookingException):
    def __init__(self, detail: str = "Validation error"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class StateError(FleetBookingException):
    def __init__(self, detail: str = "Transition not allowed in current state"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ConcurrencyError(FleetBookingException):
    def __init__(self, detail: str = "Concurrent update detected, please retry"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ResourceInconsistencyError(FleetBookingException):
    def __init__(self, detail: str = "Referenced resource no longer exists"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
