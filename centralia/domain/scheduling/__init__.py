"""
Scheduling domain - Availability, booking and reservation lifecycle

Structure:
```
centralia/domain/scheduling/
├── intervals.py     # Pure slot and overlap arithmetic
├── repository.py    # Reservation queries
├── service.py       # BookingService: conflict check, create, availability, status
├── read_models.py   # Reservation views for responses and notifications
├── reminders.py     # Upcoming-reservation reminder sweep
├── schemas.py
└── router.py        # /reservations endpoints
```

Double booking is prevented in two layers: the overlap query in
BookingService and the partial unique index on
(specialist_id, start_time) for pending/confirmed rows. The index only
catches identical starts; overlapping requests with different starts
that race each other rely on the query alone.
"""

from .router import router

__all__ = ["router"]
