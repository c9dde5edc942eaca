from datetime import datetime

from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel
from src.utils.constants import VehicleStatus


class Vehicle(BaseModel):
    __tablename__ = "vehicles"

    id: Mapped[int] = mapped_column(primary_key=True)
    make: Mapped[str] = mapped_column(String(50))
    model: Mapped[str] = mapped_column(String(50))
    year: Mapped[int | None] = mapped_column(nullable=True)
    license_plate: Mapped[str | None] = mapped_column(String(20), unique=True, nullable=True)
    daily_rate: Mapped[float] = mapped_column(Numeric(10, 2))
    status: Mapped[VehicleStatus] = mapped_column(default=VehicleStatus.AVAILABLE, index=True)
    # Touched by every booking so concurrent bookings of the same vehicle collide on version
    last_reserved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    version: Mapped[int] = mapped_column(nullable=False)

    # Relationships
    reservations: Mapped[list["Reservation"]] = relationship(back_populates="vehicle")  # noqa: F821

    __mapper_args__ = {"version_id_col": version}
