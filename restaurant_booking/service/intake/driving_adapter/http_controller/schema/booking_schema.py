import datetime as dt
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, StrictInt

from restaurant_booking.service.shared_kernel.domain.entity import Booking


class BookingCreateRequest(BaseModel):
    # Optional at the schema level; Booking.create names the missing field
    resource_id: Optional[str] = None
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    party_size: Optional[StrictInt] = None

    model_config = {
        'json_schema_extra': {
            'example': {
                'resource_id': 'resource_1',
                'date': '2025-12-01',
                'time': '18:00:00',
                'party_size': 4,
            }
        },
    }


class BookingResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'resource_id': 'resource_1',
                'date': '2025-12-01',
                'time': '18:00:00',
                'party_size': 4,
                'status': 'CREATED',
                'created_at': '2025-11-20T10:30:00Z',
                'updated_at': '2025-11-20T10:30:00Z',
            }
        },
    }

    id: UUID
    resource_id: str
    date: dt.date
    time: dt.time
    party_size: int
    status: str
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @classmethod
    def from_entity(cls, booking: Booking) -> 'BookingResponse':
        return cls(
            id=booking.id,
            resource_id=booking.resource_id,
            date=booking.date,
            time=booking.time,
            party_size=booking.party_size,
            status=booking.status.value,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )


class BookingListResponse(BaseModel):
    count: int
    bookings: List[BookingResponse]
