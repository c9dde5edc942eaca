from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel
from src.utils.constants import DriverStatus


class Driver(BaseModel):
    __tablename__ = "drivers"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True)
    license_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    years_of_experience: Mapped[int] = mapped_column(default=0)
    status: Mapped[DriverStatus] = mapped_column(default=DriverStatus.ACTIVE)
    availability: Mapped[bool] = mapped_column(Boolean, default=True)
    daily_rate: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)
    last_reserved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    version: Mapped[int] = mapped_column(nullable=False)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="driver_profile")  # noqa: F821
    reservations: Mapped[list["Reservation"]] = relationship(back_populates="driver")  # noqa: F821

    __mapper_args__ = {"version_id_col": version}
