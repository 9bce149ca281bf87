import logging
from contextlib import asynccontextmanager
from datetime import date, timedelta
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import async_sessionmaker

from api.schemas import (
    # Bookings
    CreateBookingRequest, SubmitPaymentRequest, ReasonRequest, DamageReportRequest, RefundRequest,
    BookingSummaryResponse, BookingResponse, BookingListResponse, DamageReportResponse, MoneyResponse,
    DashboardStatsResponse,
    # Properties & availability
    PropertyResponse, MonthAvailabilityResponse, DayAvailabilityResponse, UnavailableDaysResponse,
    # Blackouts
    BlockDatesRequest, BlockedDateResponse,
    # Customer data
    CorrectDataRequest, CorrectDataResponse,
    # Auth
    Token, UserResponse
)
from api.dependencies import (
    AdminDirectory, get_admin_directory, get_availability_service, get_booking_saga,
    get_booking_service, get_current_active_user, get_customer_service, get_hold_ledger,
    get_guest_information_service, get_property_service, get_settings_dependency
)
from application.booking_saga import BookingCreationSaga, BookingRequest
from application.dispatch import SideEffectDispatcher
from application.guest_information import GuestInformationService, PaymentInfo, PrivacyPolicy, TermsDocument
from application.hold_ledger import HoldLedger
from application.services import AvailabilityService, BookingService, CustomerService, PropertyService
from domain.auth import User
from domain.entities import Booking, DamageReport, HoldLedgerEntry, Property, utcnow
from domain.enums import BookingStatus
from domain.exceptions import (
    AccessDenied, BookingEngineError, ConflictError, InvalidTransitionError, NotConfigured, NotFoundError,
    ValidationFailure
)
from domain.value_objects import Money
from infrastructure.config import Settings, get_settings
from infrastructure.gateways import InMemoryAuditLog, build_calendar_sync, build_notification_dispatcher
from infrastructure.logging_config import configure_logging
from infrastructure.repositories.in_memory_repositories import (
    InMemoryBookingRepository, InMemoryConsentRecordRepository, InMemoryCustomerRepository,
    InMemoryDamageReportRepository, InMemoryHoldStore, InMemoryPropertyRepository
)
from infrastructure.repositories.sqlalchemy_hold_store import SqlAlchemyHoldStore, create_engine, create_schema
from infrastructure.security import verify_password, create_access_token

logger = logging.getLogger(__name__)

VILLA_SERENITY_ID = UUID("6f1c2a4e-3b7d-4c1a-9e52-0a1b2c3d4e01")
VILLA_HORIZON_ID = UUID("6f1c2a4e-3b7d-4c1a-9e52-0a1b2c3d4e02")


# ============================================================================
# WIRING
# ============================================================================

class Container:
    """Application object graph, built once per app"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.admins = AdminDirectory(settings)
        self.engine = None

        ttl = timedelta(seconds=settings.HOLD_TTL_SECONDS)
        if settings.HOLD_STORE_BACKEND == "sqlalchemy":
            self.engine = create_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
            hold_store = SqlAlchemyHoldStore(async_sessionmaker(self.engine, expire_on_commit=False), ttl)
        else:
            hold_store = InMemoryHoldStore(ttl)

        # Initialize repositories
        self.property_repo = InMemoryPropertyRepository()
        self.customer_repo = InMemoryCustomerRepository()
        self.consent_repo = InMemoryConsentRecordRepository()
        self.booking_repo = InMemoryBookingRepository()
        self.damage_report_repo = InMemoryDamageReportRepository()

        self.audit_log = InMemoryAuditLog()
        self.notifications = build_notification_dispatcher(settings)
        self.calendar_sync = build_calendar_sync(settings)
        self.dispatcher = SideEffectDispatcher()
        self.ledger = HoldLedger(hold_store, self.audit_log)

        self.booking_saga = BookingCreationSaga(
            self.property_repo, self.customer_repo, self.consent_repo, self.booking_repo,
            self.ledger, settings.pricing_policy(), self.audit_log, self.notifications,
            self.dispatcher, retention_years=settings.DATA_RETENTION_YEARS
        )
        self.booking_service = BookingService(
            self.booking_repo, self.customer_repo, self.damage_report_repo, self.ledger,
            self.audit_log, self.notifications, self.calendar_sync, self.dispatcher
        )
        self.availability_service = AvailabilityService(self.ledger, self.booking_repo, self.property_repo)
        self.property_service = PropertyService(self.property_repo)
        self.customer_service = CustomerService(
            self.customer_repo, self.booking_repo, self.consent_repo, self.audit_log
        )
        self.guest_information = GuestInformationService(
            security_deposit=Money(amount=settings.SECURITY_DEPOSIT, currency=settings.CURRENCY),
            terms_version=settings.TERMS_VERSION,
            terms_effective_date=settings.TERMS_EFFECTIVE_DATE,
            retention_years=settings.DATA_RETENTION_YEARS,
            upi_id=settings.UPI_ID,
            upi_qr_code_url=settings.UPI_QR_CODE_URL
        )

    async def startup(self) -> None:
        if self.engine is not None:
            await create_schema(self.engine)
        if self.settings.SEED_PROPERTIES:
            await seed_properties(self.property_repo, self.settings)

    async def shutdown(self) -> None:
        await self.dispatcher.drain()
        if self.engine is not None:
            await self.engine.dispose()


async def seed_properties(repository: InMemoryPropertyRepository, settings: Settings) -> List[Property]:
    """The two villas offered for rent"""
    rate = Money(amount=settings.RATE_PER_NIGHT, currency=settings.CURRENCY)
    deposit = Money(amount=settings.SECURITY_DEPOSIT, currency=settings.CURRENCY)
    villas = [
        Property(
            property_id=VILLA_SERENITY_ID,
            name="Villa Serenity",
            slug="villa-serenity",
            description="Four-bedroom villa with a private pool",
            rate_per_night=rate,
            security_deposit=deposit,
            max_guests=10,
            amenities=["pool", "wifi", "parking", "kitchen"]
        ),
        Property(
            property_id=VILLA_HORIZON_ID,
            name="Villa Horizon",
            slug="villa-horizon",
            description="Three-bedroom villa with a garden terrace",
            rate_per_night=rate,
            security_deposit=deposit,
            max_guests=8,
            amenities=["garden", "wifi", "parking", "barbecue"]
        ),
    ]
    for villa in villas:
        if await repository.find_by_id(villa.property_id) is None:
            await repository.save(villa)
    return villas


# ============================================================================
# ERROR HANDLING
# ============================================================================

_STATUS_CODES = {
    ConflictError: 409,
    InvalidTransitionError: 400,
    ValidationFailure: 400,
    NotFoundError: 404,
    AccessDenied: 403,
    NotConfigured: 503,
}


async def booking_engine_error_handler(request: Request, exc: BookingEngineError) -> JSONResponse:
    status_code = next((code for cls, code in _STATUS_CODES.items() if isinstance(exc, cls)), 500)
    body = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, ConflictError):
        body["unavailable_dates"] = [day.isoformat() for day in exc.days]
    if status_code == 500:
        logger.error("Unmapped engine error on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=body)


router = APIRouter()

# ============================================================================
# HEALTH & AUTH ENDPOINTS
# ============================================================================

@router.get("/api/health", tags=["Health"])
async def health_check(settings: Settings = Depends(get_settings_dependency)):
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running", "version": settings.API_VERSION}

@router.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    admins: AdminDirectory = Depends(get_admin_directory),
    settings: Settings = Depends(get_settings_dependency)
):
    user = admins.get_user(form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.warning("Failed login for %s", form_data.username)
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(data={"sub": user.username}, settings=settings)
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return UserResponse(
        user_id=current_user.user_id,
        username=current_user.username,
        email=current_user.email,
        full_name=current_user.full_name,
        role=current_user.role.value,
        disabled=current_user.disabled
    )

# ============================================================================
# PUBLIC BOOKING ENDPOINTS
# ============================================================================

@router.post("/api/bookings", response_model=BookingSummaryResponse, status_code=201, tags=["Bookings"])
async def create_booking(
    body: CreateBookingRequest,
    request: Request,
    saga: BookingCreationSaga = Depends(get_booking_saga),
    settings: Settings = Depends(get_settings_dependency)
):
    """Create a booking; holds the dates until payment or approval"""
    if not body.terms_accepted:
        raise ValidationFailure("Terms and conditions must be accepted", code="TERMS_NOT_ACCEPTED")
    booking = await saga.create_booking(BookingRequest(
        property_ids=body.property_ids,
        check_in=body.check_in,
        check_out=body.check_out,
        booking_type=body.booking_type,
        guest_count=body.guest_count,
        reason_for_renting=body.reason_for_renting,
        special_requests=body.special_requests,
        terms_accepted_at=utcnow(),
        terms_version=body.terms_version or settings.TERMS_VERSION,
        guest=body.guest,
        consent=body.consent,
        ip_address=request.client.host if request.client else "unknown",
        user_agent=request.headers.get("user-agent", "unknown")
    ))
    return _booking_to_summary(booking)

@router.get("/api/bookings/{booking_ref}", response_model=BookingSummaryResponse, tags=["Bookings"])
async def get_booking_summary(
    booking_ref: str,
    service: BookingService = Depends(get_booking_service)
):
    """Public booking status by reference"""
    return _booking_to_summary(await service.get_booking_by_ref(booking_ref))

@router.post("/api/bookings/{booking_ref}/payment", response_model=BookingSummaryResponse, tags=["Bookings"])
async def submit_payment(
    booking_ref: str,
    body: SubmitPaymentRequest,
    service: BookingService = Depends(get_booking_service)
):
    """Guest submits UPI payment evidence"""
    booking = await service.submit_payment_evidence(booking_ref, body.email, body.upi_reference, body.screenshot_url)
    return _booking_to_summary(booking)

# ============================================================================
# PROPERTY & AVAILABILITY ENDPOINTS
# ============================================================================

@router.get("/api/properties", response_model=List[PropertyResponse], tags=["Properties"])
async def list_properties(service: PropertyService = Depends(get_property_service)):
    return [_property_to_response(p) for p in await service.list_properties()]

@router.get("/api/properties/{property_id}", response_model=PropertyResponse, tags=["Properties"])
async def get_property(property_id: UUID, service: PropertyService = Depends(get_property_service)):
    return _property_to_response(await service.get_property(property_id))

@router.get("/api/properties/{property_id}/availability", response_model=MonthAvailabilityResponse,
            tags=["Availability"])
async def get_month_availability(
    property_id: UUID,
    year: int = Query(..., ge=1, le=9998),
    month: int = Query(..., ge=1, le=12),
    service: AvailabilityService = Depends(get_availability_service)
):
    """Per-day availability of one month"""
    days = await service.month_availability(property_id, year, month)
    return MonthAvailabilityResponse(
        property_id=property_id,
        year=year,
        month=month,
        days=[DayAvailabilityResponse(day=d.day, available=d.available) for d in days]
    )

@router.get("/api/properties/{property_id}/unavailable-days", response_model=UnavailableDaysResponse,
            tags=["Availability"])
async def get_unavailable_days(
    property_id: UUID,
    check_in: date,
    check_out: date,
    service: AvailabilityService = Depends(get_availability_service)
):
    """Taken days within a prospective stay"""
    days = await service.unavailable_days(property_id, check_in, check_out)
    return UnavailableDaysResponse(
        property_id=property_id,
        check_in=check_in,
        check_out=check_out,
        unavailable_days=days,
        available=not days
    )

# ============================================================================
# GUEST INFORMATION ENDPOINTS
# ============================================================================

@router.get("/api/payment-info", response_model=PaymentInfo, tags=["Guest information"])
async def get_payment_info(service: GuestInformationService = Depends(get_guest_information_service)):
    """UPI details for manual payment; 503 until the owner configures them"""
    return service.payment_info()

@router.get("/api/terms-and-conditions", response_model=TermsDocument, tags=["Guest information"])
async def get_terms(service: GuestInformationService = Depends(get_guest_information_service)):
    return service.terms()

@router.get("/api/privacy-policy", response_model=PrivacyPolicy, tags=["Guest information"])
async def get_privacy_policy(service: GuestInformationService = Depends(get_guest_information_service)):
    return service.privacy_policy()

# ============================================================================
# ADMIN BOOKING ENDPOINTS
# ============================================================================

@router.get("/api/admin/dashboard/stats", response_model=DashboardStatsResponse, tags=["Admin"])
async def get_dashboard_stats(
    service: BookingService = Depends(get_booking_service),
    property_service: PropertyService = Depends(get_property_service),
    settings: Settings = Depends(get_settings_dependency),
    current_user: User = Depends(get_current_active_user)
):
    """Active bookings, this month's revenue, upcoming stays and occupancy"""
    properties = await property_service.list_properties(active_only=True)
    stats = await service.dashboard_stats(utcnow(), len(properties), settings.CURRENCY)
    return DashboardStatsResponse(
        total_bookings=stats.total_bookings,
        revenue_this_month=_money(stats.revenue_this_month),
        upcoming_bookings=stats.upcoming_bookings,
        occupancy_rate=stats.occupancy_rate
    )

@router.get("/api/admin/bookings", response_model=BookingListResponse, tags=["Admin"])
async def list_bookings(
    status: Optional[BookingStatus] = None,
    property_id: Optional[UUID] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Bookings newest first, filtered and paginated"""
    bookings, total = await service.list_bookings(status, property_id, from_date, to_date, page, limit)
    return BookingListResponse(
        items=[_booking_to_response(b) for b in bookings],
        total=total,
        page=page,
        limit=limit
    )

@router.get("/api/admin/bookings/{booking_id}", response_model=BookingResponse, tags=["Admin"])
async def get_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    return _booking_to_response(await service.get_booking(booking_id))

@router.post("/api/admin/bookings/{booking_id}/approve", response_model=BookingResponse, tags=["Admin"])
async def approve_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    return _booking_to_response(await service.approve(booking_id, current_user.actor_id))

@router.post("/api/admin/bookings/{booking_id}/reject", response_model=BookingResponse, tags=["Admin"])
async def reject_booking(
    booking_id: UUID,
    body: Optional[ReasonRequest] = None,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    reason = body.reason if body else None
    return _booking_to_response(await service.reject(booking_id, current_user.actor_id, reason))

@router.post("/api/admin/bookings/{booking_id}/cancel", response_model=BookingResponse, tags=["Admin"])
async def cancel_booking(
    booking_id: UUID,
    body: Optional[ReasonRequest] = None,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    reason = body.reason if body else None
    return _booking_to_response(await service.cancel(booking_id, current_user.actor_id, reason))

@router.post("/api/admin/bookings/{booking_id}/confirm-payment", response_model=BookingResponse, tags=["Admin"])
async def confirm_payment(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    return _booking_to_response(await service.confirm_payment(booking_id, current_user.actor_id))

@router.post("/api/admin/bookings/{booking_id}/check-in", response_model=BookingResponse, tags=["Admin"])
async def check_in_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    return _booking_to_response(await service.check_in(booking_id, current_user.actor_id))

@router.post("/api/admin/bookings/{booking_id}/check-out", response_model=BookingResponse, tags=["Admin"])
async def check_out_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    return _booking_to_response(await service.check_out(booking_id, current_user.actor_id))

@router.post("/api/admin/bookings/{booking_id}/damage-report", response_model=DamageReportResponse,
             status_code=201, tags=["Admin"])
async def file_damage_report(
    booking_id: UUID,
    body: DamageReportRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    report, booking = await service.file_damage_report(
        booking_id,
        current_user.actor_id,
        description=body.description,
        deduction_amount=body.deduction_amount,
        estimated_damage=body.estimated_damage,
        photos=body.photos
    )
    return _damage_report_to_response(report, booking)

@router.post("/api/admin/bookings/{booking_id}/refund", response_model=BookingResponse, tags=["Admin"])
async def refund_booking(
    booking_id: UUID,
    body: RefundRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    booking = await service.process_refund(
        booking_id, current_user.actor_id, body.method, body.amount, body.reference
    )
    return _booking_to_response(booking)

# ============================================================================
# ADMIN BLACKOUT ENDPOINTS
# ============================================================================

@router.get("/api/admin/blocked-dates", response_model=List[BlockedDateResponse], tags=["Admin"])
async def list_blocked_dates(
    property_id: Optional[UUID] = None,
    ledger: HoldLedger = Depends(get_hold_ledger),
    current_user: User = Depends(get_current_active_user)
):
    return [_blocked_to_response(e) for e in await ledger.list_blocked_dates(property_id)]

@router.post("/api/admin/blocked-dates", response_model=List[BlockedDateResponse], status_code=201,
             tags=["Admin"])
async def block_dates(
    body: BlockDatesRequest,
    ledger: HoldLedger = Depends(get_hold_ledger),
    properties: PropertyService = Depends(get_property_service),
    current_user: User = Depends(get_current_active_user)
):
    """Block dates on a property; all or nothing"""
    await properties.get_property(body.property_id)
    blocked = await ledger.block_dates(body.property_id, body.dates, current_user.actor_id)
    return [_blocked_to_response(e) for e in blocked]

@router.delete("/api/admin/blocked-dates/{property_id}/{day}", status_code=204, tags=["Admin"])
async def unblock_date(
    property_id: UUID,
    day: date,
    ledger: HoldLedger = Depends(get_hold_ledger),
    current_user: User = Depends(get_current_active_user)
):
    await ledger.unblock_date(property_id, day, current_user.actor_id)
    return Response(status_code=204)

# ============================================================================
# CUSTOMER DATA ENDPOINTS
# ============================================================================

@router.get("/api/customer/my-data", tags=["Customer"])
async def export_my_data(
    booking_ref: str,
    email: str,
    service: CustomerService = Depends(get_customer_service)
):
    """Export the guest's personal data; ID numbers are masked"""
    return await service.export_data(booking_ref, email)

@router.patch("/api/customer/my-data", response_model=CorrectDataResponse, tags=["Customer"])
async def correct_my_data(
    body: CorrectDataRequest,
    service: CustomerService = Depends(get_customer_service)
):
    updated = await service.correct_data(body.booking_ref, body.email, name=body.name, phone=body.phone)
    return CorrectDataResponse(updated_fields=updated)

@router.delete("/api/customer/my-data", tags=["Customer"])
async def erase_my_data(
    booking_ref: str,
    email: str,
    service: CustomerService = Depends(get_customer_service)
):
    """Anonymize personal data; booking records are kept"""
    await service.erase_data(booking_ref, email)
    return {"message": "Personal data has been anonymized"}

# ============================================================================
# APPLICATION FACTORY
# ============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    container = Container(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await container.startup()
        logger.info("%s started (%s, hold store: %s)",
                    settings.APP_NAME, settings.ENVIRONMENT, settings.HOLD_STORE_BACKEND)
        yield
        await container.shutdown()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Reservation engine for short-term property rentals",
        version=settings.API_VERSION,
        lifespan=lifespan
    )
    app.state.container = container
    app.add_exception_handler(BookingEngineError, booking_engine_error_handler)
    app.include_router(router)
    return app

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _money(money: Optional[Money]) -> Optional[MoneyResponse]:
    if money is None:
        return None
    return MoneyResponse(amount=money.amount, currency=money.currency)

def _booking_to_summary(booking: Booking) -> BookingSummaryResponse:
    """Convert Booking entity to the public BookingSummaryResponse"""
    return BookingSummaryResponse(
        booking_ref=booking.booking_ref,
        property_ids=booking.property_ids,
        check_in=booking.check_in_date,
        check_out=booking.check_out_date,
        nights=booking.nights,
        booking_type=booking.booking_type,
        status=booking.status,
        guest_count=booking.guest_count,
        total_charged=_money(booking.total_charged),
        deposit_amount=_money(booking.deposit_amount),
        created_at=booking.created_at
    )

def _booking_to_response(booking: Booking) -> BookingResponse:
    """Convert Booking entity to BookingResponse"""
    return BookingResponse(
        **_booking_to_summary(booking).model_dump(),
        booking_id=booking.booking_id,
        customer_id=booking.customer_id,
        consent_record_id=booking.consent_record_id,
        damage_report_id=booking.damage_report_id,
        calendar_event_id=booking.calendar_event_id,
        reason_for_renting=booking.reason_for_renting,
        special_requests=booking.special_requests,
        terms_accepted_at=booking.terms_accepted_at,
        terms_version=booking.terms_version,
        deposit_refund_amount=_money(booking.deposit_refund_amount),
        upi_reference=booking.upi_reference,
        payment_screenshot_url=booking.payment_screenshot_url,
        payment_submitted_at=booking.payment_submitted_at,
        payment_confirmed_by=booking.payment_confirmed_by,
        payment_confirmed_at=booking.payment_confirmed_at,
        cancelled_at=booking.cancelled_at,
        cancellation_reason=booking.cancellation_reason,
        refund_method=booking.refund_method,
        refund_amount=_money(booking.refund_amount),
        refund_reference=booking.refund_reference,
        refunded_by=booking.refunded_by,
        refunded_at=booking.refunded_at,
        modified_at=booking.modified_at,
        version=booking.version
    )

def _damage_report_to_response(report: DamageReport, booking: Booking) -> DamageReportResponse:
    return DamageReportResponse(
        report_id=report.report_id,
        booking_id=report.booking_id,
        description=report.description,
        estimated_damage=_money(report.estimated_damage),
        deduction_amount=_money(report.deduction_amount),
        photos=report.photos,
        status=report.status.value,
        created_by=report.created_by,
        created_at=report.created_at,
        deposit_refund_amount=_money(booking.deposit_refund_amount)
    )

def _property_to_response(property_: Property) -> PropertyResponse:
    return PropertyResponse(
        property_id=property_.property_id,
        name=property_.name,
        slug=property_.slug,
        description=property_.description,
        rate_per_night=_money(property_.rate_per_night),
        security_deposit=_money(property_.security_deposit),
        max_guests=property_.max_guests,
        amenities=property_.amenities,
        is_active=property_.is_active
    )

def _blocked_to_response(entry: HoldLedgerEntry) -> BlockedDateResponse:
    return BlockedDateResponse(property_id=entry.property_id, day=entry.day, created_at=entry.created_at)


configure_logging(get_settings())
app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
