"""
SQL hold ledger tests against a file-backed SQLite database (aiosqlite).
"""

import asyncio

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import async_sessionmaker

from application.hold_ledger import HoldLedger
from domain.entities import BLACKOUT_BOOKING_ID, Booking, HoldLedgerEntry, utcnow
from domain.enums import BookingType
from domain.exceptions import ConflictError, DuplicateHoldError, NotFoundError
from domain.value_objects import DateRange, Money
from infrastructure.repositories.sqlalchemy_hold_store import SqlAlchemyHoldStore, create_engine, create_schema


VILLA = UUID("00000000-0000-4000-8000-0000000000a1")
OTHER_VILLA = UUID("00000000-0000-4000-8000-0000000000b2")
HOLD_TTL = timedelta(hours=48)


def day(n):
    return date(2026, 7, n)


class FakeClock:

    def __init__(self):
        self.now = utcnow()

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
async def engine(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'holds.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def store(session_factory, clock):
    return SqlAlchemyHoldStore(session_factory, HOLD_TTL, clock=clock)


@pytest.fixture
def ledger(store, clock):
    return HoldLedger(store, clock=clock)


def make_booking(check_in, check_out):
    return Booking.create(
        property_ids=[VILLA],
        customer_id=uuid4(),
        consent_record_id=uuid4(),
        date_range=DateRange(check_in=check_in, check_out=check_out),
        booking_type=BookingType.STANDARD,
        guest_count=2,
        reason_for_renting="Weekend away",
        terms_accepted_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        terms_version="1.0",
        total_charged=Money(amount=Decimal("55000")),
        deposit_amount=Money(amount=Decimal("5000")),
        today=date(2026, 1, 1)
    )


# ============================================================================
# STORE TESTS
# ============================================================================

class TestSqlAlchemyHoldStore:
    """Test the SQL HoldStore directly"""

    @pytest.mark.infrastructure
    async def test_insert_and_find(self, store, clock):
        booking_id = uuid4()
        entries = [HoldLedgerEntry(property_id=VILLA, day=day(n), booking_id=booking_id, created_at=clock())
                   for n in (1, 2)]
        await store.insert_many(entries)
        live = await store.find_live(VILLA, day(1), day(31))
        assert [e.day for e in live] == [day(1), day(2)]
        assert all(e.created_at.tzinfo is not None for e in live)
        assert await store.find_live(OTHER_VILLA, day(1), day(31)) == []

    @pytest.mark.infrastructure
    @pytest.mark.edge_case
    async def test_duplicate_reports_rows_inserted_before_it(self, store, clock):
        await store.insert_many([HoldLedgerEntry(property_id=VILLA, day=day(3), booking_id=uuid4(),
                                                 created_at=clock())])
        loser = uuid4()
        batch = [HoldLedgerEntry(property_id=VILLA, day=day(n), booking_id=loser, created_at=clock())
                 for n in (2, 3, 4)]
        with pytest.raises(DuplicateHoldError) as exc_info:
            await store.insert_many(batch)
        assert exc_info.value.conflict.day == day(3)
        assert [e.day for e in exc_info.value.inserted] == [day(2)]

    @pytest.mark.infrastructure
    async def test_delete_entries_matches_owner(self, store, clock):
        owner = uuid4()
        entry = HoldLedgerEntry(property_id=VILLA, day=day(5), booking_id=owner, created_at=clock())
        await store.insert_many([entry])
        impostor = entry.model_copy(update={"booking_id": uuid4()})
        assert await store.delete_entries([impostor]) == 0
        assert await store.delete_entries([entry]) == 1


# ============================================================================
# LEDGER OVER SQL TESTS
# ============================================================================

class TestLedgerOnSql:
    """Ledger behaviour backed by the SQL store"""

    @pytest.mark.infrastructure
    async def test_conflict_leaves_no_partial_claim(self, ledger):
        await ledger.claim(VILLA, [day(10)], uuid4())
        loser = uuid4()
        with pytest.raises(ConflictError) as exc_info:
            await ledger.claim(VILLA, [day(8), day(9), day(10), day(11)], loser)
        assert exc_info.value.days == [day(10)]
        assert await ledger.holds_for(loser) == []
        assert await ledger.query_occupied_days(VILLA, day(1), day(31)) == {day(10)}

    @pytest.mark.infrastructure
    async def test_release_is_idempotent(self, ledger):
        booking_id = uuid4()
        await ledger.claim_all([VILLA, OTHER_VILLA], [day(1), day(2)], booking_id)
        assert await ledger.release(booking_id) == 4
        assert await ledger.release(booking_id) == 0

    @pytest.mark.infrastructure
    async def test_expired_holds_are_ignored_and_replaceable(self, ledger, clock):
        first = uuid4()
        await ledger.claim(VILLA, [day(12), day(13)], first)
        clock.advance(hours=49)
        assert await ledger.query_occupied_days(VILLA, day(1), day(31)) == set()

        second = uuid4()
        await ledger.claim(VILLA, [day(13)], second)
        assert [e.booking_id for e in await ledger.holds_for(second)] == [second]
        assert await ledger.purge_expired() == 1
        assert await ledger.holds_for(first) == []

    @pytest.mark.infrastructure
    async def test_secure_survives_expiry(self, ledger, clock):
        booking = make_booking(day(20), day(23))
        await ledger.claim_all(booking.property_ids, booking.days(), booking.booking_id)
        pinned = await ledger.secure(booking)
        assert [e.day for e in pinned] == [day(20), day(21), day(22)]
        clock.advance(days=60)
        assert await ledger.query_occupied_days(VILLA, day(1), day(31)) == {day(20), day(21), day(22)}
        assert await ledger.purge_expired() == 0

    @pytest.mark.infrastructure
    @pytest.mark.edge_case
    async def test_secure_conflict_after_lapse(self, ledger, clock):
        booking = make_booking(day(20), day(22))
        await ledger.claim_all(booking.property_ids, booking.days(), booking.booking_id)
        clock.advance(hours=49)
        await ledger.claim(VILLA, [day(21)], uuid4())
        with pytest.raises(ConflictError):
            await ledger.secure(booking)
        assert await ledger.holds_for(booking.booking_id) == []

    @pytest.mark.infrastructure
    async def test_blackouts_never_expire(self, ledger, clock):
        await ledger.block_dates(VILLA, [day(25), day(26)], "admin")
        clock.advance(days=365)
        assert await ledger.query_occupied_days(VILLA, day(1), day(31)) == {day(25), day(26)}
        assert all(e.booking_id == BLACKOUT_BOOKING_ID for e in await ledger.list_blocked_dates(VILLA))

        await ledger.unblock_date(VILLA, day(25), "admin")
        with pytest.raises(NotFoundError):
            await ledger.unblock_date(VILLA, day(25), "admin")
        assert await ledger.query_occupied_days(VILLA, day(1), day(31)) == {day(26)}

    @pytest.mark.infrastructure
    async def test_holds_persist_across_store_instances(self, ledger, session_factory, clock):
        booking_id = uuid4()
        await ledger.claim(VILLA, [day(15)], booking_id)
        reopened = HoldLedger(SqlAlchemyHoldStore(session_factory, HOLD_TTL, clock=clock), clock=clock)
        assert await reopened.query_occupied_days(VILLA, day(1), day(31)) == {day(15)}
        with pytest.raises(ConflictError):
            await reopened.claim(VILLA, [day(15)], uuid4())

    @pytest.mark.infrastructure
    @pytest.mark.edge_case
    async def test_concurrent_claims_have_exactly_one_winner(self, ledger):
        days = [day(15), day(16), day(17)]
        first, second = uuid4(), uuid4()
        results = await asyncio.gather(
            ledger.claim(VILLA, days, first),
            ledger.claim(VILLA, days, second),
            return_exceptions=True
        )
        assert sum(isinstance(r, ConflictError) for r in results) == 1
        assert sum(isinstance(r, list) for r in results) == 1
        loser = second if isinstance(results[1], ConflictError) else first
        assert await ledger.holds_for(loser) == []
        owners = {e.booking_id for e in await ledger.store.find_live(VILLA, day(1), day(31))}
        assert owners == {first, second} - {loser}

    @pytest.mark.infrastructure
    @pytest.mark.edge_case
    async def test_overlapping_windows_never_double_book(self, ledger):
        # every window covers day 5
        windows = [(2, 6), (3, 7), (4, 8), (5, 9)]
        ids = [uuid4() for _ in windows]
        results = await asyncio.gather(
            *[ledger.claim(VILLA, [day(n) for n in range(start, end)], booking_id)
              for (start, end), booking_id in zip(windows, ids)],
            return_exceptions=True
        )
        assert all(isinstance(r, (list, ConflictError)) for r in results)
        winners = [booking_id for booking_id, result in zip(ids, results) if isinstance(result, list)]
        assert len(winners) == 1
        live = await ledger.store.find_live(VILLA, day(1), day(31))
        assert {e.booking_id for e in live} == set(winners)
        for booking_id, result in zip(ids, results):
            if isinstance(result, ConflictError):
                assert await ledger.holds_for(booking_id) == []
