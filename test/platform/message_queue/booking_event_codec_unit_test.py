import datetime as dt

import orjson
import pytest
from uuid_utils.compat import uuid7

from restaurant_booking.platform.exception.exceptions import MalformedEventError
from restaurant_booking.platform.message_queue.booking_event_codec import (
    SCHEMA_VERSION,
    decode_booking_created,
    decode_payload,
    encode_booking_created,
    trace_context_from_payload,
)
from restaurant_booking.service.shared_kernel.domain.domain_event import (
    BookingCreatedEvent,
    BookingEventType,
)


@pytest.fixture
def event() -> BookingCreatedEvent:
    return BookingCreatedEvent(
        booking_id=uuid7(),
        resource_id='resource_1',
        date=dt.date(2025, 12, 1),
        time=dt.time(18, 0),
        party_size=4,
    )


@pytest.mark.unit
class TestEncode:
    def test_wire_fields(self, event: BookingCreatedEvent) -> None:
        payload = orjson.loads(encode_booking_created(event))

        assert payload['schema_version'] == SCHEMA_VERSION
        assert payload['event_type'] == 'BOOKING_CREATED'
        assert payload['booking_id'] == str(event.booking_id)
        assert payload['date'] == '2025-12-01'
        assert payload['time'] == '18:00:00'
        assert payload['party_size'] == 4
        assert 'traceparent' not in payload

    def test_trace_context_travels_in_payload(self, event: BookingCreatedEvent) -> None:
        traceparent = '00-0af7651916cd43dd8448eb211c80319c-b7ad6b7169203331-01'

        payload = decode_payload(
            encode_booking_created(event, trace_context={'traceparent': traceparent})
        )

        assert trace_context_from_payload(payload) == {'traceparent': traceparent}

    def test_decode_restores_event(self, event: BookingCreatedEvent) -> None:
        decoded = decode_booking_created(decode_payload(encode_booking_created(event)))

        assert decoded.booking_id == event.booking_id
        assert decoded.event_type is BookingEventType.BOOKING_CREATED
        assert (decoded.resource_id, decoded.date, decoded.time, decoded.party_size) == (
            'resource_1',
            dt.date(2025, 12, 1),
            dt.time(18, 0),
            4,
        )


@pytest.mark.unit
class TestDecodeRejectsMalformed:
    @pytest.mark.parametrize('raw', [None, b'', b'not json', b'[1, 2]', b'"text"'])
    def test_bad_envelope(self, raw: bytes | None) -> None:
        with pytest.raises(MalformedEventError):
            decode_payload(raw)

    def test_unknown_schema_version(self, event: BookingCreatedEvent) -> None:
        payload = orjson.loads(encode_booking_created(event))
        payload['schema_version'] = 99

        with pytest.raises(MalformedEventError, match='schema_version'):
            decode_payload(orjson.dumps(payload))

    @pytest.mark.parametrize('missing', ['booking_id', 'resource_id', 'date', 'time', 'party_size'])
    def test_missing_field(self, event: BookingCreatedEvent, missing: str) -> None:
        payload = orjson.loads(encode_booking_created(event))
        del payload[missing]

        with pytest.raises(MalformedEventError, match=missing):
            decode_booking_created(payload)

    @pytest.mark.parametrize(
        'field,value',
        [
            ('booking_id', 'not-a-uuid'),
            ('date', '2025-13-45'),
            ('time', 'dinner'),
            ('party_size', '4'),
            ('party_size', True),
        ],
    )
    def test_bad_type(self, event: BookingCreatedEvent, field: str, value: object) -> None:
        payload = orjson.loads(encode_booking_created(event))
        payload[field] = value

        with pytest.raises(MalformedEventError):
            decode_booking_created(payload)
