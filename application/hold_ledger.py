"""Hold ledger - the one-claim-per-property-day invariant"""
import logging
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional, Sequence, Set
from uuid import UUID

from domain.entities import BLACKOUT_BOOKING_ID, Booking, HoldLedgerEntry, utcnow
from domain.exceptions import ConflictError, DuplicateHoldError, NotFoundError, ValidationFailure
from domain.gateways import AuditLog
from domain.repositories import HoldStore

logger = logging.getLogger(__name__)


class HoldLedger:
    """Claims, releases and queries property-day holds.

    The store's uniqueness constraint is the only concurrency arbiter.
    Rows are always written in (property_id, day) order so that two
    overlapping claims meet at their first shared row and exactly one of
    them gets past it.
    """

    def __init__(
        self,
        store: HoldStore,
        audit_log: Optional[AuditLog] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.store = store
        self.audit_log = audit_log
        self.clock = clock

    # ==================== CLAIMS ====================
    async def claim(self, property_id: UUID, days: Iterable[date], booking_id: UUID) -> List[HoldLedgerEntry]:
        """Claim every day on one property for a booking, or nothing"""
        return await self.claim_all([property_id], days, booking_id)

    async def claim_all(
        self,
        property_ids: Sequence[UUID],
        days: Iterable[date],
        booking_id: UUID,
        pinned: bool = False
    ) -> List[HoldLedgerEntry]:
        """Claim every (property, day) pair as one batch, or nothing"""
        entries = self._build_entries(property_ids, days, booking_id, pinned)
        if not entries:
            raise ValidationFailure("Nothing to claim: no days requested")
        try:
            inserted = await self.store.insert_many(entries)
        except DuplicateHoldError as exc:
            await self._undo_partial_claim(booking_id, exc.inserted)
            conflict = exc.conflict
            logger.warning(
                "Hold conflict for booking %s on property %s day %s",
                booking_id, conflict.property_id, conflict.day
            )
            raise ConflictError(property_days=[conflict.key]) from None
        logger.info("Claimed %d property-days for booking %s", len(inserted), booking_id)
        return inserted

    async def _undo_partial_claim(self, booking_id: UUID, inserted: Sequence[HoldLedgerEntry]) -> None:
        if not inserted:
            return
        try:
            await self.store.delete_entries(inserted)
        except Exception:
            logger.critical(
                "Failed to roll back %d partial holds for booking %s; rows remain until expiry",
                len(inserted), booking_id, exc_info=True
            )

    def _build_entries(
        self,
        property_ids: Sequence[UUID],
        days: Iterable[date],
        booking_id: UUID,
        pinned: bool
    ) -> List[HoldLedgerEntry]:
        created_at = self.clock()
        unique_days = sorted(set(days))
        return [
            HoldLedgerEntry(
                property_id=property_id,
                day=day,
                booking_id=booking_id,
                created_at=created_at,
                pinned=pinned
            )
            for property_id in sorted(set(property_ids))
            for day in unique_days
        ]

    # ==================== RELEASE ====================
    async def release(self, booking_id: UUID) -> int:
        """Delete all holds of a booking; idempotent"""
        if booking_id == BLACKOUT_BOOKING_ID:
            raise ValidationFailure("Blackout days are removed through unblock_date")
        released = await self.store.delete_by_booking(booking_id)
        logger.info("Released %d holds for booking %s", released, booking_id)
        return released

    async def secure(self, booking: Booking) -> List[HoldLedgerEntry]:
        """Exempt a confirmed booking's holds from expiry.

        Days whose holds already expired are claimed again; if another
        booking took one of them meanwhile a ConflictError is raised.
        """
        held = {entry.key for entry in await self.store.find_by_booking(booking.booking_id)}
        missing = [key for key in booking.property_days() if key not in held]
        if missing:
            logger.warning("Booking %s lost %d expired holds; reclaiming", booking.booking_ref, len(missing))
            reclaimed: List[HoldLedgerEntry] = []
            for property_id in sorted({pid for pid, _ in missing}):
                days = [day for pid, day in missing if pid == property_id]
                try:
                    reclaimed.extend(await self.claim_all([property_id], days, booking.booking_id, pinned=True))
                except ConflictError:
                    await self._undo_partial_claim(booking.booking_id, reclaimed)
                    raise
        return await self.store.pin(booking.booking_id)

    # ==================== QUERIES ====================
    async def query_occupied_days(self, property_id: UUID, start: date, end: date) -> Set[date]:
        """Days in [start, end) covered by a live hold or blackout"""
        return {entry.day for entry in await self.store.find_live(property_id, start, end)}

    async def holds_for(self, booking_id: UUID) -> List[HoldLedgerEntry]:
        return await self.store.find_by_booking(booking_id)

    async def purge_expired(self) -> int:
        return await self.store.purge_expired()

    # ==================== BLACKOUTS ====================
    async def block_dates(self, property_id: UUID, days: Iterable[date], actor: str) -> List[HoldLedgerEntry]:
        """Administrator blackout; all-or-nothing like any other claim"""
        try:
            blocked = await self.claim_all([property_id], days, BLACKOUT_BOOKING_ID)
        except ConflictError as exc:
            raise ConflictError(
                "One or more dates are already blocked or booked",
                property_days=exc.property_days,
                code="DATES_CONFLICT"
            ) from None
        if self.audit_log is not None:
            await self.audit_log.record(
                "dates.blocked", "Property", property_id, actor,
                {"dates": [entry.day.isoformat() for entry in blocked]}
            )
        return blocked

    async def unblock_date(self, property_id: UUID, day: date, actor: str) -> None:
        entry = HoldLedgerEntry(property_id=property_id, day=day, booking_id=BLACKOUT_BOOKING_ID,
                                created_at=self.clock())
        if await self.store.delete_entries([entry]) == 0:
            raise NotFoundError("Blocked date not found")
        if self.audit_log is not None:
            await self.audit_log.record("dates.unblocked", "Property", property_id, actor, {"date": day.isoformat()})

    async def list_blocked_dates(self, property_id: Optional[UUID] = None) -> List[HoldLedgerEntry]:
        blackouts = await self.store.find_by_booking(BLACKOUT_BOOKING_ID)
        if property_id is not None:
            blackouts = [entry for entry in blackouts if entry.property_id == property_id]
        return sorted(blackouts, key=lambda entry: (entry.day, entry.property_id))
