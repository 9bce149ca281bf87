"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, date, timedelta, timezone
from typing import Optional, List, Tuple
import random
import string

from domain.enums import (
    BookingStatus, BookingType, BookingAction, DamageReportStatus,
    Nationality, IdType, RefundMethod
)
from domain.exceptions import ValidationFailure
from domain.state_machine import next_status
from domain.value_objects import DateRange, Money


# Owner of administrator-imposed blackout days in the hold ledger
BLACKOUT_BOOKING_ID = UUID(int=0)

MAX_PROPERTIES_PER_BOOKING = 2


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Property(BaseModel):
    """Rental property"""
    property_id: UUID = Field(default_factory=uuid4)
    name: str
    slug: str
    description: str = ""
    rate_per_night: Money
    security_deposit: Money
    max_guests: int = Field(ge=1)
    amenities: List[str] = []
    is_active: bool = True

    class Config:
        from_attributes = True


class Customer(BaseModel):
    """Guest identity; one fresh record per booking request"""
    customer_id: UUID = Field(default_factory=uuid4)
    name: str
    email: str
    phone: str
    address: str
    nationality: Nationality
    id_type: Optional[IdType] = None
    id_number: Optional[str] = None
    id_document_url: Optional[str] = None
    data_retention_expires_at: datetime
    anonymized_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    modified_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True

    @staticmethod
    def register(
        name: str,
        email: str,
        phone: str,
        address: str,
        nationality: Nationality,
        id_type: Optional[IdType] = None,
        id_number: Optional[str] = None,
        id_document_url: Optional[str] = None,
        retention_years: int = 3,
        now: Optional[datetime] = None
    ) -> "Customer":
        now = now or utcnow()
        try:
            retention_expiry = now.replace(year=now.year + retention_years)
        except ValueError:
            # 29 February
            retention_expiry = now.replace(year=now.year + retention_years, day=28)
        return Customer(
            name=name.strip(),
            email=email.strip().lower(),
            phone=phone.strip(),
            address=address.strip(),
            nationality=nationality,
            id_type=id_type,
            id_number=id_number,
            id_document_url=id_document_url,
            data_retention_expires_at=retention_expiry,
            created_at=now,
            modified_at=now
        )

    @property
    def is_anonymized(self) -> bool:
        return self.anonymized_at is not None

    def anonymize(self, now: Optional[datetime] = None) -> None:
        """Erase personal data; nationality is retained for legal compliance"""
        now = now or utcnow()
        self.name = "Deleted User"
        self.email = f"deleted-{self.customer_id}@anonymized.local"
        self.phone = "0000000000"
        self.address = "[Anonymized]"
        self.id_type = None
        self.id_number = None
        self.id_document_url = None
        self.anonymized_at = now
        self.modified_at = now

    def correct(self, name: Optional[str] = None, phone: Optional[str] = None) -> List[str]:
        """Apply guest-requested corrections; returns the updated field names"""
        if self.is_anonymized:
            raise ValidationFailure("Customer data has been erased")
        updated = []
        if name:
            self.name = name.strip()
            updated.append("name")
        if phone:
            self.phone = phone.strip()
            updated.append("phone")
        if not updated:
            raise ValidationFailure(
                "No valid fields to update. Only name and phone can be corrected.",
                code="NO_UPDATES"
            )
        self.modified_at = utcnow()
        return updated

    def masked_id_number(self) -> Optional[str]:
        if not self.id_number:
            return None
        if len(self.id_number) <= 4:
            return "****"
        return "*" * (len(self.id_number) - 4) + self.id_number[-4:]


class ConsentRecord(BaseModel):
    """Immutable consent audit artifact"""
    consent_id: UUID = Field(default_factory=uuid4)
    customer_id: UUID
    consent_version: str
    purposes_consented: Tuple[str, ...] = Field(min_length=1)
    consent_text: str
    ip_address: str = "unknown"
    user_agent: str = "unknown"
    consent_given_at: datetime = Field(default_factory=utcnow)

    class Config:
        frozen = True
        from_attributes = True


class HoldLedgerEntry(BaseModel):
    """One claimed property-day"""
    property_id: UUID
    day: date
    booking_id: UUID
    created_at: datetime = Field(default_factory=utcnow)
    pinned: bool = False

    class Config:
        frozen = True
        from_attributes = True

    @property
    def key(self) -> Tuple[UUID, date]:
        return (self.property_id, self.day)

    @property
    def is_blackout(self) -> bool:
        return self.booking_id == BLACKOUT_BOOKING_ID

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        if self.pinned or self.is_blackout:
            return False
        return self.created_at <= now - ttl


class DamageReport(BaseModel):
    """Post-checkout damage assessment, at most one per booking"""
    report_id: UUID = Field(default_factory=uuid4)
    booking_id: UUID
    description: str
    estimated_damage: Money
    deduction_amount: Money
    photos: List[str] = []
    status: DamageReportStatus = DamageReportStatus.REPORTED
    created_by: str
    created_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True


class Booking(BaseModel):
    """Booking Aggregate Root Entity"""

    # Identity
    booking_id: UUID = Field(default_factory=uuid4)
    booking_ref: str

    # References to other aggregates
    property_ids: List[UUID]
    customer_id: UUID
    consent_record_id: Optional[UUID] = None
    damage_report_id: Optional[UUID] = None
    calendar_event_id: Optional[str] = None

    # Stay
    date_range: DateRange
    nights: int
    booking_type: BookingType
    status: BookingStatus
    guest_count: int
    reason_for_renting: str
    special_requests: Optional[str] = None
    terms_accepted_at: datetime
    terms_version: str

    # Money
    total_charged: Money
    deposit_amount: Money
    deposit_refund_amount: Optional[Money] = None

    # Payment evidence and confirmation
    upi_reference: Optional[str] = None
    payment_screenshot_url: Optional[str] = None
    payment_submitted_at: Optional[datetime] = None
    payment_confirmed_by: Optional[str] = None
    payment_confirmed_at: Optional[datetime] = None

    # Cancellation and refund
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    refund_method: Optional[RefundMethod] = None
    refund_amount: Optional[Money] = None
    refund_reference: Optional[str] = None
    refunded_by: Optional[str] = None
    refunded_at: Optional[datetime] = None

    # Metadata
    created_at: datetime = Field(default_factory=utcnow)
    modified_at: datetime = Field(default_factory=utcnow)
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        property_ids: List[UUID],
        customer_id: UUID,
        consent_record_id: UUID,
        date_range: DateRange,
        booking_type: BookingType,
        guest_count: int,
        reason_for_renting: str,
        terms_accepted_at: datetime,
        terms_version: str,
        total_charged: Money,
        deposit_amount: Money,
        special_requests: Optional[str] = None,
        today: Optional[date] = None
    ) -> "Booking":
        """Create new booking with validation; initial status follows the booking type"""
        Booking._validate_properties(property_ids)
        Booking._validate_date_range(date_range, today or utcnow().date())
        if guest_count < 1:
            raise ValidationFailure("At least 1 guest is required")
        if not reason_for_renting or not reason_for_renting.strip():
            raise ValidationFailure("Reason for renting is required")

        return Booking(
            booking_ref=Booking._generate_booking_ref(),
            property_ids=list(property_ids),
            customer_id=customer_id,
            consent_record_id=consent_record_id,
            date_range=date_range,
            nights=date_range.nights(),
            booking_type=booking_type,
            status=Booking.initial_status(booking_type),
            guest_count=guest_count,
            reason_for_renting=reason_for_renting.strip(),
            special_requests=special_requests,
            terms_accepted_at=terms_accepted_at,
            terms_version=terms_version,
            total_charged=total_charged,
            deposit_amount=deposit_amount
        )

    @staticmethod
    def initial_status(booking_type: BookingType) -> BookingStatus:
        if booking_type == BookingType.STANDARD:
            return BookingStatus.HOLD
        return BookingStatus.PENDING_APPROVAL

    # ==================== STATE TRANSITION METHODS ====================
    def submit_payment_evidence(self, upi_reference: str, screenshot_url: Optional[str] = None) -> None:
        """Guest reports a completed UPI transfer"""
        target = next_status(self.status, BookingAction.SUBMIT_PAYMENT)
        if not upi_reference or not upi_reference.strip():
            raise ValidationFailure("UPI reference is required")
        self.upi_reference = upi_reference.strip()
        self.payment_screenshot_url = screenshot_url
        self.payment_submitted_at = utcnow()
        self._move_to(target)

    def approve(self) -> None:
        self._move_to(next_status(self.status, BookingAction.APPROVE))

    def reject(self, reason: Optional[str] = None) -> None:
        target = next_status(self.status, BookingAction.REJECT)
        self.cancelled_at = utcnow()
        self.cancellation_reason = reason or "Rejected by administrator"
        self._move_to(target)

    def cancel(self, reason: Optional[str] = None) -> None:
        target = next_status(self.status, BookingAction.CANCEL)
        self.cancelled_at = utcnow()
        self.cancellation_reason = reason or "Cancelled"
        self._move_to(target)

    def confirm_payment(self, confirmed_by: str) -> None:
        """Administrator affirms the transfer was received"""
        target = next_status(self.status, BookingAction.CONFIRM_PAYMENT)
        self.payment_confirmed_by = confirmed_by
        self.payment_confirmed_at = utcnow()
        self._move_to(target)

    def check_in(self) -> None:
        self._move_to(next_status(self.status, BookingAction.CHECK_IN))

    def check_out(self) -> Money:
        """Mark guest as checked out; full deposit refund by default"""
        target = next_status(self.status, BookingAction.CHECK_OUT)
        self.deposit_refund_amount = self.deposit_amount
        self._move_to(target)
        return self.deposit_refund_amount

    def ensure_damage_report_allowed(self, deduction: Money) -> None:
        """Validate a damage report without mutating anything"""
        next_status(self.status, BookingAction.FILE_DAMAGE_REPORT)
        if self.damage_report_id is not None:
            raise ValidationFailure(
                "A damage report already exists for this booking",
                code="DAMAGE_REPORT_EXISTS"
            )
        if deduction.currency != self.deposit_amount.currency:
            raise ValidationFailure("Deduction currency must match the deposit currency")
        if deduction.amount > self.deposit_amount.amount:
            raise ValidationFailure(
                f"Deduction amount ({deduction.amount}) cannot exceed deposit amount "
                f"({self.deposit_amount.amount})",
                code="DEDUCTION_EXCEEDS_DEPOSIT"
            )

    def apply_damage_report(self, report: DamageReport) -> Money:
        """Link the report and lower the refund by its deduction"""
        self.ensure_damage_report_allowed(report.deduction_amount)
        self.damage_report_id = report.report_id
        self.deposit_refund_amount = self.deposit_amount - report.deduction_amount
        self._touch()
        return self.deposit_refund_amount

    def process_refund(
        self,
        method: RefundMethod,
        refunded_by: str,
        amount: Optional[Money] = None,
        reference: Optional[str] = None
    ) -> Money:
        target = next_status(self.status, BookingAction.PROCESS_REFUND)
        refundable = self.deposit_refund_amount
        if refundable is None:
            refundable = self.deposit_amount
        if amount is None:
            amount = refundable
        if amount.currency != refundable.currency:
            raise ValidationFailure("Refund currency must match the deposit currency")
        if amount.amount > refundable.amount:
            raise ValidationFailure(
                f"Refund amount ({amount.amount}) cannot exceed refundable deposit ({refundable.amount})"
            )
        self.refund_method = method
        self.refund_amount = amount
        self.refund_reference = reference
        self.refunded_by = refunded_by
        self.refunded_at = utcnow()
        self._move_to(target)
        return amount

    def attach_calendar_event(self, event_id: str) -> None:
        self.calendar_event_id = event_id
        self._touch()

    # ==================== QUERY METHODS ====================
    @property
    def check_in_date(self) -> date:
        return self.date_range.check_in

    @property
    def check_out_date(self) -> date:
        return self.date_range.check_out

    def days(self) -> List[date]:
        return self.date_range.days()

    def property_days(self) -> List[Tuple[UUID, date]]:
        return sorted((property_id, day) for property_id in self.property_ids for day in self.days())

    def occupies(self, property_id: UUID, start: date, end: date) -> bool:
        """Whether this booking covers any day of [start, end) on the property"""
        return property_id in self.property_ids and self.date_range.overlaps(start, end)

    # ==================== PRIVATE METHODS ====================
    def _move_to(self, status: BookingStatus) -> None:
        self.status = status
        self._touch()

    def _touch(self) -> None:
        self.modified_at = utcnow()
        self.version += 1

    @staticmethod
    def _validate_properties(property_ids: List[UUID]) -> None:
        if not property_ids:
            raise ValidationFailure("At least one property is required")
        if len(property_ids) > MAX_PROPERTIES_PER_BOOKING:
            raise ValidationFailure(
                f"A booking may include at most {MAX_PROPERTIES_PER_BOOKING} properties"
            )
        if len(set(property_ids)) != len(property_ids):
            raise ValidationFailure("Properties in a booking must be distinct")
        if BLACKOUT_BOOKING_ID in property_ids:
            raise ValidationFailure("Invalid property")

    @staticmethod
    def _validate_date_range(date_range: DateRange, today: date) -> None:
        if date_range.check_in < today:
            raise ValidationFailure("Check-in date must be today or later")
        if date_range.nights() < 1:
            raise ValidationFailure("Minimum stay is 1 night")

    @staticmethod
    def _generate_booking_ref() -> str:
        """Generate human-facing booking reference"""
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=8))
        return f"BK-{code}"
