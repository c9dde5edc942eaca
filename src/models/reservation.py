from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel
from src.utils.constants import PaymentStatus, ReservationStatus, TripStatus


class Reservation(BaseModel):
    __tablename__ = "reservations"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    vehicle_id: Mapped[int] = mapped_column(ForeignKey("vehicles.id"))
    driver_required: Mapped[bool] = mapped_column(Boolean, default=False)
    driver_id: Mapped[int | None] = mapped_column(ForeignKey("drivers.id"), nullable=True)
    pickup_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    return_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    pickup_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    return_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    days: Mapped[int] = mapped_column(default=1)
    base_price: Mapped[float] = mapped_column(Numeric(10, 2))
    driver_price: Mapped[float] = mapped_column(Numeric(10, 2), default=0)
    total_price: Mapped[float] = mapped_column(Numeric(10, 2))
    status: Mapped[ReservationStatus] = mapped_column(default=ReservationStatus.PENDING)
    trip_status: Mapped[TripStatus] = mapped_column(default=TripStatus.NOT_STARTED)
    payment_status: Mapped[PaymentStatus] = mapped_column(default=PaymentStatus.UNPAID)
    confirmation_number: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    bill_details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(nullable=False)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="reservations")  # noqa: F821
    vehicle: Mapped["Vehicle"] = relationship(back_populates="reservations")  # noqa: F821
    driver: Mapped["Driver | None"] = relationship(back_populates="reservations")  # noqa: F821

    __table_args__ = (
        Index("ix_reservations_user_status", "user_id", "status"),
        Index("ix_reservations_vehicle_status", "vehicle_id", "status"),
        Index("ix_reservations_driver_status", "driver_id", "status"),
        Index("ix_reservations_interval", "pickup_date", "return_date"),
    )
    __mapper_args__ = {"version_id_col": version}
