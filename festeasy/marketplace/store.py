from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone

from .models import (
    BookingCreate,
    BookingRequest,
    BookingStatus,
    DashboardStats,
    Service,
    ServiceCreate,
)

logger = logging.getLogger(__name__)


class MarketplaceError(Exception):
    pass


class BookingNotFoundError(MarketplaceError):
    pass


class InvalidStatusTransitionError(MarketplaceError):
    pass


class ServiceNotFoundError(MarketplaceError):
    pass


class MarketplaceStore:
    """
    In-process state for booking requests and provider services.

    One instance is owned by the application (``app.state.store``) and
    handed to request handlers; nothing here is module-global.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._bookings: dict[str, BookingRequest] = {}
        self._services: dict[str, Service] = {}

    # ── Booking requests ────────────────────────────────────────────────

    def create_booking(self, data: BookingCreate, created_by: str) -> BookingRequest:
        booking = BookingRequest(
            **data.model_dump(),
            id=uuid.uuid4().hex,
            status=BookingStatus.pending,
            created_by=created_by,
            created_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._bookings[booking.id] = booking
        logger.info("Booking %s created by %s for %s", booking.id, created_by, booking.service)
        return booking

    def list_bookings(self, status: BookingStatus | None = None) -> list[BookingRequest]:
        """Newest first, optionally filtered by status."""
        with self._lock:
            bookings = list(self._bookings.values())
        if status is not None:
            bookings = [b for b in bookings if b.status == status]
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)

    def bookings_for(self, username: str) -> list[BookingRequest]:
        return [b for b in self.list_bookings() if b.created_by == username]

    def update_status(self, booking_id: str, status: BookingStatus) -> BookingRequest:
        """Move a pending request to accepted or rejected."""
        if status == BookingStatus.pending:
            raise InvalidStatusTransitionError("A booking cannot be moved back to pending")

        with self._lock:
            booking = self._bookings.get(booking_id)
            if booking is None:
                raise BookingNotFoundError(f"Booking not found: {booking_id}")
            if booking.status != BookingStatus.pending:
                raise InvalidStatusTransitionError(
                    f"Booking {booking_id} is already {booking.status.value}"
                )
            updated = booking.model_copy(update={"status": status})
            self._bookings[booking_id] = updated

        logger.info("Booking %s %s", booking_id, status.value)
        return updated

    # ── Services catalog ────────────────────────────────────────────────

    def add_service(self, owner: str, data: ServiceCreate) -> Service:
        service = Service(**data.model_dump(), id=uuid.uuid4().hex, owner=owner)
        with self._lock:
            self._services[service.id] = service
        logger.info("Service %s added by %s", service.name, owner)
        return service

    def list_services(self, owner: str) -> list[Service]:
        with self._lock:
            return [s for s in self._services.values() if s.owner == owner]

    def remove_service(self, owner: str, service_id: str) -> None:
        with self._lock:
            service = self._services.get(service_id)
            if service is None or service.owner != owner:
                raise ServiceNotFoundError(f"Service not found: {service_id}")
            del self._services[service_id]
        logger.info("Service %s removed by %s", service_id, owner)

    # ── Dashboard ───────────────────────────────────────────────────────

    def dashboard(self, owner: str) -> DashboardStats:
        bookings = self.list_bookings()
        return DashboardStats(
            pending=sum(1 for b in bookings if b.status == BookingStatus.pending),
            accepted=sum(1 for b in bookings if b.status == BookingStatus.accepted),
            rejected=sum(1 for b in bookings if b.status == BookingStatus.rejected),
            total_requests=len(bookings),
            services=len(self.list_services(owner)),
        )

    def clear(self) -> None:
        with self._lock:
            self._bookings.clear()
            self._services.clear()
