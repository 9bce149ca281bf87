"""In-Memory Repository Implementations"""
import asyncio
from typing import Optional, List, Dict, Tuple, Sequence, Iterable, Callable
from uuid import UUID
from datetime import date, datetime, timedelta

from domain.repositories import (
    PropertyRepository, CustomerRepository, ConsentRecordRepository,
    BookingRepository, DamageReportRepository, HoldStore
)
from domain.entities import (
    Property, Customer, ConsentRecord, Booking, DamageReport, HoldLedgerEntry, utcnow
)
from domain.enums import BookingStatus
from domain.exceptions import DuplicateHoldError


class InMemoryPropertyRepository(PropertyRepository):
    """In-memory implementation of PropertyRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Property] = {}

    async def save(self, property_: Property) -> Property:
        self._storage[property_.property_id] = property_
        return property_

    async def find_by_id(self, property_id: UUID) -> Optional[Property]:
        return self._storage.get(property_id)

    async def find_all(self, active_only: bool = False) -> List[Property]:
        properties = list(self._storage.values())
        if active_only:
            properties = [p for p in properties if p.is_active]
        return sorted(properties, key=lambda p: p.name)


class InMemoryCustomerRepository(CustomerRepository):
    """In-memory implementation of CustomerRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Customer] = {}

    async def save(self, customer: Customer) -> Customer:
        self._storage[customer.customer_id] = customer
        return customer

    async def find_by_id(self, customer_id: UUID) -> Optional[Customer]:
        return self._storage.get(customer_id)

    async def update(self, customer: Customer) -> Customer:
        if customer.customer_id in self._storage:
            self._storage[customer.customer_id] = customer
            return customer
        raise ValueError("Customer not found")

    async def delete(self, customer_id: UUID) -> bool:
        return self._storage.pop(customer_id, None) is not None


class InMemoryConsentRecordRepository(ConsentRecordRepository):
    """In-memory implementation of ConsentRecordRepository"""

    def __init__(self):
        self._storage: Dict[UUID, ConsentRecord] = {}

    async def save(self, consent: ConsentRecord) -> ConsentRecord:
        if consent.consent_id in self._storage:
            raise ValueError("Consent records are append-only")
        self._storage[consent.consent_id] = consent
        return consent

    async def find_by_id(self, consent_id: UUID) -> Optional[ConsentRecord]:
        return self._storage.get(consent_id)

    async def delete(self, consent_id: UUID) -> bool:
        return self._storage.pop(consent_id, None) is not None


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of BookingRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Booking] = {}

    async def save(self, booking: Booking) -> Booking:
        """Save booking to memory"""
        self._storage[booking.booking_id] = booking
        return booking

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID"""
        return self._storage.get(booking_id)

    async def find_by_ref(self, booking_ref: str) -> Optional[Booking]:
        """Find booking by human-facing reference"""
        for booking in self._storage.values():
            if booking.booking_ref == booking_ref:
                return booking
        return None

    async def find_all(
        self,
        status: Optional[BookingStatus] = None,
        property_id: Optional[UUID] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None
    ) -> List[Booking]:
        """Find bookings matching the filters, newest first"""
        results = []
        for booking in self._storage.values():
            if status is not None and booking.status != status:
                continue
            if property_id is not None and property_id not in booking.property_ids:
                continue
            if from_date is not None and booking.check_in_date < from_date:
                continue
            if to_date is not None and booking.check_in_date > to_date:
                continue
            results.append(booking)
        return sorted(results, key=lambda b: b.created_at, reverse=True)

    async def find_occupying(
        self,
        property_id: UUID,
        start: date,
        end: date,
        statuses: Iterable[BookingStatus]
    ) -> List[Booking]:
        wanted = set(statuses)
        return [
            b for b in self._storage.values()
            if b.status in wanted and b.occupies(property_id, start, end)
        ]

    async def update(self, booking: Booking) -> Booking:
        """Update booking"""
        if booking.booking_id in self._storage:
            self._storage[booking.booking_id] = booking
            return booking
        raise ValueError("Booking not found")

    async def delete(self, booking_id: UUID) -> bool:
        """Delete booking"""
        return self._storage.pop(booking_id, None) is not None


class InMemoryDamageReportRepository(DamageReportRepository):
    """In-memory implementation of DamageReportRepository"""

    def __init__(self):
        self._storage: Dict[UUID, DamageReport] = {}

    async def save(self, report: DamageReport) -> DamageReport:
        self._storage[report.report_id] = report
        return report

    async def find_by_id(self, report_id: UUID) -> Optional[DamageReport]:
        return self._storage.get(report_id)

    async def find_by_booking(self, booking_id: UUID) -> Optional[DamageReport]:
        for report in self._storage.values():
            if report.booking_id == booking_id:
                return report
        return None

    async def delete(self, report_id: UUID) -> bool:
        return self._storage.pop(report_id, None) is not None


class InMemoryHoldStore(HoldStore):
    """In-memory hold ledger keyed by (property_id, day).

    The dict key is the uniqueness constraint. Each row's check and insert
    run without an await in between; the store yields to the event loop
    between rows the way a networked store would, so concurrent batches
    interleave.
    """

    def __init__(self, ttl: timedelta, clock: Callable[[], datetime] = utcnow):
        self._ttl = ttl
        self._clock = clock
        self._rows: Dict[Tuple[UUID, date], HoldLedgerEntry] = {}

    def _live(self, entry: Optional[HoldLedgerEntry]) -> bool:
        return entry is not None and not entry.is_expired(self._clock(), self._ttl)

    async def insert_many(self, entries: Sequence[HoldLedgerEntry]) -> List[HoldLedgerEntry]:
        inserted: List[HoldLedgerEntry] = []
        for entry in entries:
            existing = self._rows.get(entry.key)
            if self._live(existing):
                raise DuplicateHoldError(entry, inserted)
            self._rows[entry.key] = entry
            inserted.append(entry)
            await asyncio.sleep(0)
        return inserted

    async def delete_entries(self, entries: Sequence[HoldLedgerEntry]) -> int:
        deleted = 0
        for entry in entries:
            existing = self._rows.get(entry.key)
            if existing is not None and existing.booking_id == entry.booking_id:
                del self._rows[entry.key]
                deleted += 1
        return deleted

    async def delete_by_booking(self, booking_id: UUID) -> int:
        keys = [key for key, row in self._rows.items() if row.booking_id == booking_id]
        for key in keys:
            del self._rows[key]
        return len(keys)

    async def find_live(self, property_id: UUID, start: date, end: date) -> List[HoldLedgerEntry]:
        return sorted(
            (row for (pid, day), row in self._rows.items()
             if pid == property_id and start <= day < end and self._live(row)),
            key=lambda row: row.day
        )

    async def find_by_booking(self, booking_id: UUID) -> List[HoldLedgerEntry]:
        return sorted(
            (row for row in self._rows.values() if row.booking_id == booking_id and self._live(row)),
            key=lambda row: row.key
        )

    async def pin(self, booking_id: UUID) -> List[HoldLedgerEntry]:
        pinned = []
        for row in await self.find_by_booking(booking_id):
            updated = row.model_copy(update={"pinned": True})
            self._rows[row.key] = updated
            pinned.append(updated)
        return pinned

    async def purge_expired(self) -> int:
        expired = [key for key, row in self._rows.items() if not self._live(row)]
        for key in expired:
            del self._rows[key]
        return len(expired)
