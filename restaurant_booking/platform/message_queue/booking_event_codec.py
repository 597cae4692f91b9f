"""
Wire format for booking events on the event channel.

JSON (orjson) with an explicit schema_version so consumers can reject payloads
they do not understand:

    {
        "schema_version": 1,
        "event_type": "BOOKING_CREATED",
        "booking_id": "0193...",
        "resource_id": "resource_1",
        "date": "2025-12-01",
        "time": "18:00:00",
        "party_size": 4,
        "timestamp": "2025-11-20T10:00:00.123456+00:00",
        "traceparent": "00-...-01"
    }

traceparent/tracestate are optional and carry the publisher's trace context.
"""

import datetime as dt
from typing import Any
from uuid import UUID

import orjson

from restaurant_booking.platform.exception.exceptions import MalformedEventError
from restaurant_booking.service.shared_kernel.domain.domain_event import (
    BookingCreatedEvent,
    BookingEventType,
)


SCHEMA_VERSION = 1

_REQUIRED_FIELDS = ('booking_id', 'resource_id', 'date', 'time', 'party_size', 'timestamp')


def encode_booking_created(
    event: BookingCreatedEvent, *, trace_context: dict[str, str] | None = None
) -> bytes:
    return orjson.dumps(
        {
            **(trace_context or {}),
            'schema_version': SCHEMA_VERSION,
            'event_type': event.event_type.value,
            'booking_id': str(event.booking_id),
            'resource_id': event.resource_id,
            'date': event.date.isoformat(),
            'time': event.time.strftime('%H:%M:%S'),
            'party_size': event.party_size,
            'timestamp': event.occurred_at.isoformat(),
        }
    )


def decode_payload(raw: bytes | None) -> dict[str, Any]:
    """Parse the JSON envelope without interpreting the event type."""
    if not raw:
        raise MalformedEventError('Empty event payload')
    try:
        payload = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise MalformedEventError(f'Event payload is not valid JSON: {e}') from e
    if not isinstance(payload, dict):
        raise MalformedEventError('Event payload must be a JSON object')

    version = payload.get('schema_version', SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        raise MalformedEventError(f'Unsupported schema_version: {version!r}')
    return payload


def decode_booking_created(payload: dict[str, Any]) -> BookingCreatedEvent:
    missing = [name for name in _REQUIRED_FIELDS if payload.get(name) in (None, '')]
    if missing:
        raise MalformedEventError(f'BOOKING_CREATED missing fields: {", ".join(missing)}')

    party_size = payload['party_size']
    if isinstance(party_size, bool) or not isinstance(party_size, int):
        raise MalformedEventError('party_size must be an integer')

    try:
        return BookingCreatedEvent(
            booking_id=UUID(str(payload['booking_id'])),
            resource_id=str(payload['resource_id']),
            date=dt.date.fromisoformat(payload['date']),
            time=dt.time.fromisoformat(payload['time']),
            party_size=party_size,
            occurred_at=dt.datetime.fromisoformat(payload['timestamp']),
            event_type=BookingEventType.BOOKING_CREATED,
        )
    except (TypeError, ValueError) as e:
        raise MalformedEventError(f'BOOKING_CREATED has invalid field: {e}') from e


def trace_context_from_payload(payload: dict[str, Any]) -> dict[str, str]:
    return {
        key: str(payload[key]) for key in ('traceparent', 'tracestate') if payload.get(key)
    }
