"""Application Services - Business use cases"""
import calendar
import logging
from uuid import UUID
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel

from application.dispatch import SideEffectDispatcher
from application.hold_ledger import HoldLedger
from domain.entities import Booking, Customer, DamageReport, Property
from domain.enums import BookingAction, BookingStatus, RefundMethod
from domain.exceptions import AccessDenied, NotFoundError, ValidationFailure
from domain.gateways import AuditLog, CalendarSync, NotificationDispatcher
from domain.repositories import (
    BookingRepository, ConsentRecordRepository, CustomerRepository,
    DamageReportRepository, PropertyRepository
)
from domain.state_machine import CLOSED_STATUSES, EARNING_STATUSES, OCCUPYING_STATUSES, next_status
from domain.value_objects import Money

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class DayAvailability(BaseModel):
    day: date
    available: bool


class DashboardStats(BaseModel):
    total_bookings: int
    revenue_this_month: Money
    upcoming_bookings: int
    occupancy_rate: int


class PropertyService:
    """Service for the property catalogue"""

    def __init__(self, repository: PropertyRepository):
        self.repository = repository

    async def list_properties(self, active_only: bool = True) -> List[Property]:
        return await self.repository.find_all(active_only=active_only)

    async def get_property(self, property_id: UUID) -> Property:
        property_ = await self.repository.find_by_id(property_id)
        if property_ is None:
            raise NotFoundError("Property not found", code="PROPERTY_NOT_FOUND")
        return property_


class AvailabilityService:
    """Read-side calendar combining live holds with confirmed stays"""

    def __init__(self, ledger: HoldLedger, booking_repo: BookingRepository, property_repo: PropertyRepository):
        self.ledger = ledger
        self.booking_repo = booking_repo
        self.property_repo = property_repo

    async def _unavailable_between(self, property_id: UUID, start: date, end: date) -> set:
        if await self.property_repo.find_by_id(property_id) is None:
            raise NotFoundError("Property not found", code="PROPERTY_NOT_FOUND")

        unavailable = await self.ledger.query_occupied_days(property_id, start, end)
        # Confirmed stays count even if their holds are gone
        occupying = await self.booking_repo.find_occupying(property_id, start, end, OCCUPYING_STATUSES)
        for booking in occupying:
            unavailable.update(day for day in booking.days() if start <= day < end)
        return unavailable

    async def month_availability(self, property_id: UUID, year: int, month: int) -> List[DayAvailability]:
        """Availability of every day in the month"""
        if not 1 <= month <= 12:
            raise ValidationFailure("Month must be between 1 and 12")
        if not 1 <= year <= 9998:
            raise ValidationFailure("Year is out of range")

        start = date(year, month, 1)
        end = start + timedelta(days=calendar.monthrange(year, month)[1])
        unavailable = await self._unavailable_between(property_id, start, end)

        days = []
        current = start
        while current < end:
            days.append(DayAvailability(day=current, available=current not in unavailable))
            current += timedelta(days=1)
        return days

    async def unavailable_days(self, property_id: UUID, check_in: date, check_out: date) -> List[date]:
        """Taken days of a prospective stay, sorted"""
        if check_out <= check_in:
            raise ValidationFailure("Check-out must be after check-in")
        return sorted(await self._unavailable_between(property_id, check_in, check_out))


class BookingService:
    """Service for booking lifecycle use cases"""

    def __init__(
        self,
        repository: BookingRepository,
        customer_repo: CustomerRepository,
        damage_report_repo: DamageReportRepository,
        ledger: HoldLedger,
        audit_log: AuditLog,
        notifications: NotificationDispatcher,
        calendar_sync: CalendarSync,
        dispatcher: SideEffectDispatcher
    ):
        self.repository = repository
        self.customer_repo = customer_repo
        self.damage_report_repo = damage_report_repo
        self.ledger = ledger
        self.audit_log = audit_log
        self.notifications = notifications
        self.calendar_sync = calendar_sync
        self.dispatcher = dispatcher

    # ==================== QUERIES ====================
    async def get_booking(self, booking_id: UUID) -> Booking:
        booking = await self.repository.find_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking not found", code="BOOKING_NOT_FOUND")
        return booking

    async def get_booking_by_ref(self, booking_ref: str) -> Booking:
        booking = await self.repository.find_by_ref(booking_ref)
        if booking is None:
            raise NotFoundError("Booking not found", code="BOOKING_NOT_FOUND")
        return booking

    async def list_bookings(
        self,
        status: Optional[BookingStatus] = None,
        property_id: Optional[UUID] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        page: int = 1,
        limit: int = 20
    ) -> Tuple[List[Booking], int]:
        """One page of bookings plus the total match count"""
        page = max(1, page)
        limit = min(MAX_PAGE_SIZE, max(1, limit))
        bookings = await self.repository.find_all(status, property_id, from_date, to_date)
        offset = (page - 1) * limit
        return bookings[offset:offset + limit], len(bookings)

    async def get_damage_report(self, booking_id: UUID) -> Optional[DamageReport]:
        return await self.damage_report_repo.find_by_booking(booking_id)

    async def dashboard_stats(self, now: datetime, property_count: int, currency: str = "INR") -> DashboardStats:
        """Owner dashboard figures for the calendar month containing ``now``.

        Revenue sums paid bookings created this month. Occupancy is the share
        of property-nights in the month covered by paid bookings, in percent.
        """
        month_start = date(now.year, now.month, 1)
        days_in_month = calendar.monthrange(now.year, now.month)[1]
        month_end = month_start + timedelta(days=days_in_month)

        bookings = await self.repository.find_all()
        earning = [b for b in bookings if b.status in EARNING_STATUSES]

        revenue = Money(amount=Decimal("0"), currency=currency)
        for booking in earning:
            if month_start <= booking.created_at.date() < month_end:
                revenue = revenue + booking.total_charged

        booked_nights = sum(
            len(booking.property_ids) * sum(1 for day in booking.days() if month_start <= day < month_end)
            for booking in earning
        )
        capacity = property_count * days_in_month
        return DashboardStats(
            total_bookings=sum(1 for b in bookings if b.status not in CLOSED_STATUSES),
            revenue_this_month=revenue,
            upcoming_bookings=sum(
                1 for b in bookings
                if b.status == BookingStatus.CONFIRMED and b.check_in_date >= now.date()
            ),
            occupancy_rate=round(booked_nights * 100 / capacity) if capacity else 0
        )

    # ==================== GUEST ACTIONS ====================
    async def submit_payment_evidence(
        self,
        booking_ref: str,
        email: str,
        upi_reference: str,
        screenshot_url: Optional[str] = None
    ) -> Booking:
        """Guest reports a UPI transfer; an administrator confirms it later"""
        booking = await self.get_booking_by_ref(booking_ref)
        customer = await self.customer_repo.find_by_id(booking.customer_id)
        if customer is None or customer.email.lower() != email.strip().lower():
            raise AccessDenied("Invalid credentials")

        previous = booking.status
        booking.submit_payment_evidence(upi_reference, screenshot_url)
        await self.repository.update(booking)
        await self._audit(booking, "booking.payment_submitted", "customer", previous,
                          {"upi_reference": booking.upi_reference})
        snapshot, recipient = booking.model_copy(deep=True), customer.model_copy()
        self.dispatcher.fire(
            f"admin alert for payment on {booking.booking_ref}",
            lambda: self.notifications.send_admin_alert(snapshot, recipient, "payment.submitted")
        )
        return booking

    # ==================== ADMIN TRANSITIONS ====================
    async def approve(self, booking_id: UUID, actor: str) -> Booking:
        booking = await self.get_booking(booking_id)
        previous = booking.status
        booking.approve()
        await self.repository.update(booking)
        await self._audit(booking, "booking.approved", actor, previous)
        return booking

    async def reject(self, booking_id: UUID, actor: str, reason: Optional[str] = None) -> Booking:
        booking = await self.get_booking(booking_id)
        next_status(booking.status, BookingAction.REJECT)
        previous = booking.status
        released = await self.ledger.release(booking.booking_id)
        booking.reject(reason)
        await self.repository.update(booking)
        await self._audit(booking, "booking.rejected", actor, previous, {"released_holds": released})
        return booking

    async def cancel(self, booking_id: UUID, actor: str, reason: Optional[str] = None) -> Booking:
        booking = await self.get_booking(booking_id)
        next_status(booking.status, BookingAction.CANCEL)
        previous = booking.status
        released = await self.ledger.release(booking.booking_id)
        booking.cancel(reason)
        await self.repository.update(booking)
        await self._audit(booking, "booking.cancelled", actor, previous, {"released_holds": released})
        return booking

    async def confirm_payment(self, booking_id: UUID, actor: str) -> Booking:
        """Confirm a manually verified payment and pin the booking's holds.

        The repository hands out the live aggregate, so a cancel that lands
        while the holds are being secured is caught by the entity's own
        transition guard. The pinned holds are then released again, since
        pinned rows never expire on their own.
        """
        booking = await self.get_booking(booking_id)
        next_status(booking.status, BookingAction.CONFIRM_PAYMENT)
        previous = booking.status
        await self.ledger.secure(booking)
        try:
            booking.confirm_payment(actor)
            await self.repository.update(booking)
        except Exception:
            current = await self.repository.find_by_id(booking_id)
            if current is None or current.status == BookingStatus.CANCELLED:
                released = await self.ledger.release(booking_id)
                logger.warning("Booking %s was cancelled during confirmation; released %d holds",
                               booking.booking_ref, released)
            raise
        await self._audit(booking, "booking.payment_confirmed", actor, previous)

        customer = await self.customer_repo.find_by_id(booking.customer_id)
        if customer is not None:
            snapshot, recipient = booking.model_copy(deep=True), customer.model_copy()
            self.dispatcher.fire(
                f"confirmation for {booking.booking_ref}",
                lambda: self.notifications.send_booking_confirmation(snapshot, recipient)
            )
        self.dispatcher.fire(
            f"calendar event for {booking.booking_ref}",
            lambda: self._sync_calendar(booking.booking_id)
        )
        return booking

    async def check_in(self, booking_id: UUID, actor: str) -> Booking:
        booking = await self.get_booking(booking_id)
        previous = booking.status
        booking.check_in()
        await self.repository.update(booking)
        await self._audit(booking, "booking.checked_in", actor, previous)
        return booking

    async def check_out(self, booking_id: UUID, actor: str) -> Booking:
        booking = await self.get_booking(booking_id)
        previous = booking.status
        refund = booking.check_out()
        await self.repository.update(booking)
        await self._audit(booking, "booking.checked_out", actor, previous,
                          {"deposit_refund_amount": str(refund.amount)})
        return booking

    async def file_damage_report(
        self,
        booking_id: UUID,
        actor: str,
        description: str,
        deduction_amount: Decimal = Decimal("0"),
        estimated_damage: Decimal = Decimal("0"),
        photos: Optional[List[str]] = None
    ) -> Tuple[DamageReport, Booking]:
        """Record damage and lower the refund; rejected before any write if invalid"""
        booking = await self.get_booking(booking_id)
        if not description or not description.strip():
            raise ValidationFailure("Description is required")
        if deduction_amount < 0 or estimated_damage < 0:
            raise ValidationFailure("Amounts must not be negative")
        currency = booking.deposit_amount.currency
        deduction = Money(amount=deduction_amount, currency=currency)
        booking.ensure_damage_report_allowed(deduction)
        if await self.damage_report_repo.find_by_booking(booking.booking_id) is not None:
            raise ValidationFailure("A damage report already exists for this booking", code="DAMAGE_REPORT_EXISTS")

        report = DamageReport(
            booking_id=booking.booking_id,
            description=description.strip(),
            estimated_damage=Money(amount=estimated_damage, currency=currency),
            deduction_amount=deduction,
            photos=photos or [],
            created_by=actor
        )
        await self.damage_report_repo.save(report)
        updated = booking.model_copy(deep=True)
        try:
            updated.apply_damage_report(report)
            await self.repository.update(updated)
        except Exception:
            try:
                await self.damage_report_repo.delete(report.report_id)
            except Exception:
                logger.critical("Failed to remove damage report %s after booking update failed",
                                report.report_id, exc_info=True)
            raise

        await self.audit_log.record(
            "damage_report.created", "DamageReport", report.report_id, actor,
            {"booking_ref": updated.booking_ref, "estimated_damage": str(estimated_damage),
             "deduction_amount": str(deduction_amount),
             "adjusted_refund": str(updated.deposit_refund_amount.amount)}
        )
        return report, updated

    async def process_refund(
        self,
        booking_id: UUID,
        actor: str,
        method: RefundMethod,
        amount: Optional[Decimal] = None,
        reference: Optional[str] = None
    ) -> Booking:
        booking = await self.get_booking(booking_id)
        previous = booking.status
        refund = None
        if amount is not None:
            if amount < 0:
                raise ValidationFailure("Refund amount must not be negative")
            refund = Money(amount=amount, currency=booking.deposit_amount.currency)
        paid = booking.process_refund(method, actor, refund, reference)
        await self.repository.update(booking)
        await self._audit(booking, "booking.refunded", actor, previous,
                          {"method": method.value, "amount": str(paid.amount)})
        return booking

    # ==================== PRIVATE ====================
    async def _audit(
        self,
        booking: Booking,
        action: str,
        actor: str,
        previous: BookingStatus,
        extra: Optional[Dict[str, Any]] = None
    ) -> None:
        logger.info("Booking %s: %s -> %s by %s", booking.booking_ref, previous.value, booking.status.value, actor)
        metadata = {"previous_status": previous.value, "status": booking.status.value}
        metadata.update(extra or {})
        await self.audit_log.record(action, "Booking", booking.booking_id, actor, metadata)

    async def _sync_calendar(self, booking_id: UUID) -> None:
        booking = await self.get_booking(booking_id)
        event_id = await self.calendar_sync.create_event(booking)
        if event_id:
            booking.attach_calendar_event(event_id)
            await self.repository.update(booking)


class CustomerService:
    """Guest data rights: export, correction and erasure"""

    def __init__(
        self,
        repository: CustomerRepository,
        booking_repo: BookingRepository,
        consent_repo: ConsentRecordRepository,
        audit_log: AuditLog
    ):
        self.repository = repository
        self.booking_repo = booking_repo
        self.consent_repo = consent_repo
        self.audit_log = audit_log

    async def authenticate(self, booking_ref: str, email: str) -> Tuple[Booking, Customer]:
        """Guests prove identity with booking reference plus email"""
        booking = await self.booking_repo.find_by_ref(booking_ref)
        if booking is None:
            raise NotFoundError("Booking not found", code="BOOKING_NOT_FOUND")
        customer = await self.repository.find_by_id(booking.customer_id)
        if customer is None or customer.email.lower() != email.strip().lower():
            raise AccessDenied("Invalid credentials")
        return booking, customer

    async def export_data(self, booking_ref: str, email: str) -> Dict[str, Any]:
        booking, customer = await self.authenticate(booking_ref, email)
        consent = None
        if booking.consent_record_id is not None:
            consent = await self.consent_repo.find_by_id(booking.consent_record_id)
        return {
            "customer": {
                "name": customer.name,
                "email": customer.email,
                "phone": customer.phone,
                "nationality": customer.nationality.value,
                "id_type": customer.id_type.value if customer.id_type else None,
                "id_number": customer.masked_id_number(),
            },
            "booking": {
                "booking_ref": booking.booking_ref,
                "check_in": booking.check_in_date,
                "check_out": booking.check_out_date,
                "nights": booking.nights,
                "status": booking.status.value,
                "total_charged": booking.total_charged.amount,
                "deposit_amount": booking.deposit_amount.amount,
                "guest_count": booking.guest_count,
            },
            "consent": {
                "consent_version": consent.consent_version,
                "purposes_consented": list(consent.purposes_consented),
                "consented_at": consent.consent_given_at,
            } if consent else None,
            "data_retention_expires_at": customer.data_retention_expires_at,
        }

    async def correct_data(
        self,
        booking_ref: str,
        email: str,
        name: Optional[str] = None,
        phone: Optional[str] = None
    ) -> List[str]:
        _, customer = await self.authenticate(booking_ref, email)
        updated = customer.correct(name=name, phone=phone)
        await self.repository.update(customer)
        await self.audit_log.record("customer.data_updated", "Customer", customer.customer_id,
                                    "customer", {"fields": updated})
        return updated

    async def erase_data(self, booking_ref: str, email: str) -> Customer:
        """Anonymize personal data; bookings and their amounts stay intact"""
        _, customer = await self.authenticate(booking_ref, email)
        customer.anonymize()
        await self.repository.update(customer)
        await self.audit_log.record("customer.data_deleted", "Customer", customer.customer_id, "customer")
        logger.info("Anonymized customer %s", customer.customer_id)
        return customer
