WIRE_MODULES = [
    'restaurant_booking.service.intake.app.command.submit_booking_use_case',
    'restaurant_booking.service.intake.app.command.republish_booking_event_use_case',
    'restaurant_booking.service.intake.app.query.get_booking_use_case',
    'restaurant_booking.service.intake.app.query.list_bookings_use_case',
]
