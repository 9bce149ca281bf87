"""Booking creation as a compensating multi-record write"""
import logging
from datetime import date, datetime
from typing import Awaitable, Callable, List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, ValidationError

from application.dispatch import SideEffectDispatcher
from application.hold_ledger import HoldLedger
from domain.entities import Booking, ConsentRecord, Customer, Property, utcnow
from domain.enums import BookingType, IdType, Nationality
from domain.exceptions import NotFoundError, ValidationFailure
from domain.gateways import AuditLog, NotificationDispatcher
from domain.repositories import (
    BookingRepository, ConsentRecordRepository, CustomerRepository, PropertyRepository
)
from domain.value_objects import DateRange, PricingPolicy

logger = logging.getLogger(__name__)

Compensation = Tuple[str, Callable[[], Awaitable[object]]]


class GuestDetails(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    phone: str = Field(pattern=r"^\+?[0-9]{10,15}$")
    address: str = Field(min_length=5, max_length=500)
    nationality: Nationality
    id_type: Optional[IdType] = None
    id_number: Optional[str] = None
    id_document_url: Optional[str] = None


class ConsentDetails(BaseModel):
    consent_version: str = Field(min_length=1)
    purposes_consented: List[str] = Field(min_length=1)
    consent_text: str = Field(min_length=1)


class BookingRequest(BaseModel):
    """A guest's request, already shape-validated by the caller"""
    property_ids: List[UUID] = Field(min_length=1, max_length=2)
    check_in: date
    check_out: date
    booking_type: BookingType
    guest_count: int = Field(ge=1)
    reason_for_renting: str = Field(min_length=3, max_length=500)
    special_requests: Optional[str] = Field(default=None, max_length=1000)
    terms_accepted_at: datetime
    terms_version: str
    guest: GuestDetails
    consent: ConsentDetails
    ip_address: str = "unknown"
    user_agent: str = "unknown"


class BookingCreationSaga:
    """Persists customer, consent, booking and holds as one logical unit.

    Steps run in order; each completed write registers a compensating
    delete. A ConflictError from the ledger (or any other failure) undoes
    the completed writes in reverse order and propagates unchanged. Holds
    are released by booking ID, so rows written before a store failure go
    too.
    """

    def __init__(
        self,
        property_repo: PropertyRepository,
        customer_repo: CustomerRepository,
        consent_repo: ConsentRecordRepository,
        booking_repo: BookingRepository,
        ledger: HoldLedger,
        pricing: PricingPolicy,
        audit_log: AuditLog,
        notifications: NotificationDispatcher,
        dispatcher: SideEffectDispatcher,
        retention_years: int = 3,
        clock: Callable[[], datetime] = utcnow
    ):
        self.property_repo = property_repo
        self.customer_repo = customer_repo
        self.consent_repo = consent_repo
        self.booking_repo = booking_repo
        self.ledger = ledger
        self.pricing = pricing
        self.audit_log = audit_log
        self.notifications = notifications
        self.dispatcher = dispatcher
        self.retention_years = retention_years
        self.clock = clock

    async def create_booking(self, request: BookingRequest) -> Booking:
        # Everything below is validated before the first write
        properties = await self._load_properties(request.property_ids)
        try:
            date_range = DateRange(check_in=request.check_in, check_out=request.check_out)
        except ValidationError as exc:
            raise ValidationFailure("Check-out must be after check-in") from exc
        capacity = sum(p.max_guests for p in properties)
        if request.guest_count > capacity:
            raise ValidationFailure(f"Guest count {request.guest_count} exceeds capacity {capacity}")

        nights = date_range.nights()
        total_charged = self.pricing.quote(nights, len(request.property_ids))
        now = self.clock()

        customer = Customer.register(
            name=request.guest.name,
            email=request.guest.email,
            phone=request.guest.phone,
            address=request.guest.address,
            nationality=request.guest.nationality,
            id_type=request.guest.id_type,
            id_number=request.guest.id_number,
            id_document_url=request.guest.id_document_url,
            retention_years=self.retention_years,
            now=now
        )
        consent = ConsentRecord(
            customer_id=customer.customer_id,
            consent_version=request.consent.consent_version,
            purposes_consented=tuple(request.consent.purposes_consented),
            consent_text=request.consent.consent_text,
            ip_address=request.ip_address,
            user_agent=request.user_agent,
            consent_given_at=now
        )
        booking = Booking.create(
            property_ids=request.property_ids,
            customer_id=customer.customer_id,
            consent_record_id=consent.consent_id,
            date_range=date_range,
            booking_type=request.booking_type,
            guest_count=request.guest_count,
            reason_for_renting=request.reason_for_renting,
            terms_accepted_at=request.terms_accepted_at,
            terms_version=request.terms_version,
            total_charged=total_charged,
            deposit_amount=self.pricing.security_deposit,
            special_requests=request.special_requests,
            today=now.date()
        )

        completed: List[Compensation] = []
        try:
            await self.customer_repo.save(customer)
            completed.append(("customer", lambda: self.customer_repo.delete(customer.customer_id)))

            await self.consent_repo.save(consent)
            completed.append(("consent", lambda: self.consent_repo.delete(consent.consent_id)))

            await self.booking_repo.save(booking)
            completed.append(("booking", lambda: self.booking_repo.delete(booking.booking_id)))

            # a store failure mid-batch leaves rows the ledger cannot attribute
            completed.append(("holds", lambda: self.ledger.release(booking.booking_id)))
            await self.ledger.claim_all(booking.property_ids, booking.days(), booking.booking_id)
        except Exception:
            await self._compensate(booking.booking_ref, completed)
            raise

        logger.info(
            "Created booking %s (%s) for %d nights, status %s",
            booking.booking_ref, booking.booking_type.value, nights, booking.status.value
        )
        await self.audit_log.record(
            "booking.created", "Booking", booking.booking_id, "customer",
            {"booking_type": booking.booking_type.value, "nights": nights,
             "property_count": len(booking.property_ids)}
        )
        snapshot, recipient = booking.model_copy(deep=True), customer.model_copy()
        self.dispatcher.fire(
            f"admin alert for new booking {booking.booking_ref}",
            lambda: self.notifications.send_admin_alert(snapshot, recipient, "booking.created")
        )
        return booking

    async def _load_properties(self, property_ids: List[UUID]) -> List[Property]:
        if len(set(property_ids)) != len(property_ids):
            raise ValidationFailure("Properties in a booking must be distinct")
        properties = []
        for property_id in property_ids:
            property_ = await self.property_repo.find_by_id(property_id)
            if property_ is None:
                raise NotFoundError(f"Property {property_id} not found", code="INVALID_PROPERTY")
            if not property_.is_active:
                raise ValidationFailure(f"Property {property_id} is not active", code="INVALID_PROPERTY")
            properties.append(property_)
        return properties

    async def _compensate(self, booking_ref: str, completed: List[Compensation]) -> None:
        for name, undo in reversed(completed):
            try:
                await undo()
            except Exception:
                logger.critical(
                    "Compensation failed for %s of booking %s; record left orphaned",
                    name, booking_ref, exc_info=True
                )
        if completed:
            logger.info("Rolled back %d records for booking %s", len(completed), booking_ref)
