import datetime as dt
from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, DateTime, Index, Integer, String, Time, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from restaurant_booking.platform.database.orm_db_setting import Base
from restaurant_booking.service.shared_kernel.domain.entity import Booking
from restaurant_booking.service.shared_kernel.domain.enum import BookingStatus


_STATUS_VALUES = ', '.join(f"'{status.value}'" for status in BookingStatus)


class BookingModel(Base):
    __tablename__ = 'booking'
    __table_args__ = (
        CheckConstraint('party_size > 0', name='ck_booking_party_size_positive'),
        CheckConstraint(f'status IN ({_STATUS_VALUES})', name='ck_booking_status'),
        Index('ix_booking_slot', 'resource_id', 'booking_date', 'booking_time'),
        # Second line of defence behind the resolver's slot lock
        Index(
            'uq_booking_confirmed_slot',
            'resource_id',
            'booking_date',
            'booking_time',
            unique=True,
            postgresql_where=text("status = 'CONFIRMED'"),
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)  # UUID7
    resource_id: Mapped[str] = mapped_column(String(255), nullable=False)
    booking_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    booking_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    party_size: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=BookingStatus.CREATED.value, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def to_entity(self) -> Booking:
        return Booking(
            id=self.id,
            resource_id=self.resource_id,
            date=self.booking_date,
            time=self.booking_time,
            party_size=self.party_size,
            status=BookingStatus(self.status),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_entity(cls, booking: Booking) -> 'BookingModel':
        return cls(
            id=booking.id,
            resource_id=booking.resource_id,
            booking_date=booking.date,
            booking_time=booking.time,
            party_size=booking.party_size,
            status=booking.status.value,
        )
