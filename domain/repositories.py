"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List, Sequence, Iterable
from uuid import UUID
from datetime import date

from domain.entities import Property, Customer, ConsentRecord, Booking, DamageReport, HoldLedgerEntry
from domain.enums import BookingStatus


class PropertyRepository(ABC):
    """Repository interface for Property"""

    @abstractmethod
    async def save(self, property_: Property) -> Property:
        pass

    @abstractmethod
    async def find_by_id(self, property_id: UUID) -> Optional[Property]:
        pass

    @abstractmethod
    async def find_all(self, active_only: bool = False) -> List[Property]:
        pass


class CustomerRepository(ABC):
    """Repository interface for Customer"""

    @abstractmethod
    async def save(self, customer: Customer) -> Customer:
        pass

    @abstractmethod
    async def find_by_id(self, customer_id: UUID) -> Optional[Customer]:
        pass

    @abstractmethod
    async def update(self, customer: Customer) -> Customer:
        pass

    @abstractmethod
    async def delete(self, customer_id: UUID) -> bool:
        pass


class ConsentRecordRepository(ABC):
    """Append-only store; delete exists only for saga compensation"""

    @abstractmethod
    async def save(self, consent: ConsentRecord) -> ConsentRecord:
        pass

    @abstractmethod
    async def find_by_id(self, consent_id: UUID) -> Optional[ConsentRecord]:
        pass

    @abstractmethod
    async def delete(self, consent_id: UUID) -> bool:
        pass


class BookingRepository(ABC):
    """Repository interface for Booking Aggregate"""

    @abstractmethod
    async def save(self, booking: Booking) -> Booking:
        """Save booking"""
        pass

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by internal ID"""
        pass

    @abstractmethod
    async def find_by_ref(self, booking_ref: str) -> Optional[Booking]:
        """Find booking by human-facing reference"""
        pass

    @abstractmethod
    async def find_all(
        self,
        status: Optional[BookingStatus] = None,
        property_id: Optional[UUID] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None
    ) -> List[Booking]:
        """Find bookings matching the filters, newest first"""
        pass

    @abstractmethod
    async def find_occupying(
        self,
        property_id: UUID,
        start: date,
        end: date,
        statuses: Iterable[BookingStatus]
    ) -> List[Booking]:
        """Find bookings in the given statuses overlapping [start, end) on a property"""
        pass

    @abstractmethod
    async def update(self, booking: Booking) -> Booking:
        """Update booking"""
        pass

    @abstractmethod
    async def delete(self, booking_id: UUID) -> bool:
        """Delete booking (saga compensation only)"""
        pass


class DamageReportRepository(ABC):
    """Repository interface for DamageReport"""

    @abstractmethod
    async def save(self, report: DamageReport) -> DamageReport:
        pass

    @abstractmethod
    async def find_by_id(self, report_id: UUID) -> Optional[DamageReport]:
        pass

    @abstractmethod
    async def find_by_booking(self, booking_id: UUID) -> Optional[DamageReport]:
        pass

    @abstractmethod
    async def delete(self, report_id: UUID) -> bool:
        pass


class HoldStore(ABC):
    """Storage contract for the hold ledger.

    Implementations must enforce uniqueness of (property_id, day) among live
    entries and must treat expired entries as absent, both for reads and for
    inserts. ``insert_many`` writes rows in the given order and stops at the
    first collision by raising DuplicateHoldError; it need not be atomic
    across rows.
    """

    @abstractmethod
    async def insert_many(self, entries: Sequence[HoldLedgerEntry]) -> List[HoldLedgerEntry]:
        pass

    @abstractmethod
    async def delete_entries(self, entries: Sequence[HoldLedgerEntry]) -> int:
        """Delete exactly these rows, matched on key and owner"""
        pass

    @abstractmethod
    async def delete_by_booking(self, booking_id: UUID) -> int:
        pass

    @abstractmethod
    async def find_live(self, property_id: UUID, start: date, end: date) -> List[HoldLedgerEntry]:
        """Live entries for a property in [start, end)"""
        pass

    @abstractmethod
    async def find_by_booking(self, booking_id: UUID) -> List[HoldLedgerEntry]:
        pass

    @abstractmethod
    async def pin(self, booking_id: UUID) -> List[HoldLedgerEntry]:
        """Exempt a booking's live entries from expiry; returns the pinned rows"""
        pass

    @abstractmethod
    async def purge_expired(self) -> int:
        pass
