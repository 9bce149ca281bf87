"""
SQL hold ledger. The (property_id, day) unique constraint is the
concurrency arbiter; each row is written in its own transaction.
"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, List, Sequence
from uuid import UUID

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, UniqueConstraint, Uuid, and_, delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from domain.entities import BLACKOUT_BOOKING_ID, HoldLedgerEntry, utcnow
from domain.exceptions import DuplicateHoldError
from domain.repositories import HoldStore

logger = logging.getLogger(__name__)

Base = declarative_base()


class HoldLedgerRow(Base):
    __tablename__ = "hold_ledger"
    __table_args__ = (
        UniqueConstraint("property_id", "day", name="uq_hold_ledger_property_day"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    property_id = Column(Uuid, nullable=False)
    day = Column(Date, nullable=False)
    booking_id = Column(Uuid, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    pinned = Column(Boolean, nullable=False, default=False)

    @classmethod
    def from_entry(cls, entry: HoldLedgerEntry) -> "HoldLedgerRow":
        return cls(
            property_id=entry.property_id,
            day=entry.day,
            booking_id=entry.booking_id,
            created_at=entry.created_at,
            pinned=entry.pinned,
        )

    def to_entry(self) -> HoldLedgerEntry:
        created_at = self.created_at
        # SQLite hands timestamps back without tzinfo
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return HoldLedgerEntry(
            property_id=self.property_id,
            day=self.day,
            booking_id=self.booking_id,
            created_at=created_at,
            pinned=self.pinned,
        )


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    return create_async_engine(database_url, echo=echo, pool_pre_ping=True)


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class SqlAlchemyHoldStore(HoldStore):
    """HoldStore backed by SQLAlchemy's async ORM"""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        ttl: timedelta,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory
        self._ttl = ttl
        self._clock = clock

    def _cutoff(self) -> datetime:
        return self._clock() - self._ttl

    def _live_clause(self):
        return or_(
            HoldLedgerRow.pinned.is_(True),
            HoldLedgerRow.booking_id == BLACKOUT_BOOKING_ID,
            HoldLedgerRow.created_at > self._cutoff(),
        )

    def _expired_clause(self):
        return and_(
            HoldLedgerRow.pinned.is_(False),
            HoldLedgerRow.booking_id != BLACKOUT_BOOKING_ID,
            HoldLedgerRow.created_at <= self._cutoff(),
        )

    async def insert_many(self, entries: Sequence[HoldLedgerEntry]) -> List[HoldLedgerEntry]:
        inserted: List[HoldLedgerEntry] = []
        for entry in entries:
            async with self._session_factory() as session:
                try:
                    async with session.begin():
                        # An expired occupant does not block the slot
                        await session.execute(
                            delete(HoldLedgerRow).where(
                                HoldLedgerRow.property_id == entry.property_id,
                                HoldLedgerRow.day == entry.day,
                                self._expired_clause(),
                            )
                            .execution_options(synchronize_session=False)
                        )
                        session.add(HoldLedgerRow.from_entry(entry))
                except IntegrityError:
                    logger.debug("Hold collision on %s %s", entry.property_id, entry.day)
                    raise DuplicateHoldError(entry, inserted) from None
            inserted.append(entry)
        return inserted

    async def delete_entries(self, entries: Sequence[HoldLedgerEntry]) -> int:
        deleted = 0
        async with self._session_factory() as session:
            async with session.begin():
                for entry in entries:
                    result = await session.execute(
                        delete(HoldLedgerRow).where(
                            HoldLedgerRow.property_id == entry.property_id,
                            HoldLedgerRow.day == entry.day,
                            HoldLedgerRow.booking_id == entry.booking_id,
                        )
                        .execution_options(synchronize_session=False)
                    )
                    deleted += result.rowcount or 0
        return deleted

    async def delete_by_booking(self, booking_id: UUID) -> int:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    delete(HoldLedgerRow)
                    .where(HoldLedgerRow.booking_id == booking_id)
                    .execution_options(synchronize_session=False)
                )
        return result.rowcount or 0

    async def find_live(self, property_id: UUID, start: date, end: date) -> List[HoldLedgerEntry]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(HoldLedgerRow)
                .where(
                    HoldLedgerRow.property_id == property_id,
                    HoldLedgerRow.day >= start,
                    HoldLedgerRow.day < end,
                    self._live_clause(),
                )
                .order_by(HoldLedgerRow.day)
            )
            return [row.to_entry() for row in result.scalars()]

    async def find_by_booking(self, booking_id: UUID) -> List[HoldLedgerEntry]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(HoldLedgerRow)
                .where(HoldLedgerRow.booking_id == booking_id, self._live_clause())
                .order_by(HoldLedgerRow.property_id, HoldLedgerRow.day)
            )
            return [row.to_entry() for row in result.scalars()]

    async def pin(self, booking_id: UUID) -> List[HoldLedgerEntry]:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    update(HoldLedgerRow)
                    .where(HoldLedgerRow.booking_id == booking_id, self._live_clause())
                    .values(pinned=True)
                    .execution_options(synchronize_session=False)
                )
        return [row for row in await self.find_by_booking(booking_id) if row.pinned]

    async def purge_expired(self) -> int:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    delete(HoldLedgerRow)
                    .where(self._expired_clause())
                    .execution_options(synchronize_session=False)
                )
        purged = result.rowcount or 0
        if purged:
            logger.info("Purged %d expired holds", purged)
        return purged
