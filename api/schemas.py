"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, EmailStr, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import List, Optional

from application.booking_saga import ConsentDetails, GuestDetails
from domain.enums import BookingStatus, BookingType, RefundMethod


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class CreateBookingRequest(BaseModel):
    """Create booking request DTO"""
    property_ids: List[UUID] = Field(min_length=1, max_length=2)
    check_in: date
    check_out: date
    booking_type: BookingType = BookingType.STANDARD
    guest_count: int = Field(ge=1)
    reason_for_renting: str = Field(min_length=3, max_length=500)
    special_requests: Optional[str] = Field(default=None, max_length=1000)
    terms_accepted: bool
    terms_version: Optional[str] = None
    guest: GuestDetails
    consent: ConsentDetails


class SubmitPaymentRequest(BaseModel):
    """Guest payment evidence DTO"""
    email: EmailStr
    upi_reference: str = Field(min_length=4, max_length=100)
    screenshot_url: Optional[str] = None


class ReasonRequest(BaseModel):
    """Reject / cancel request DTO"""
    reason: Optional[str] = Field(default=None, max_length=500)


class DamageReportRequest(BaseModel):
    """Damage report request DTO"""
    description: str = Field(min_length=1, max_length=2000)
    estimated_damage: Decimal = Field(default=Decimal("0"), ge=0)
    deduction_amount: Decimal = Field(default=Decimal("0"), ge=0)
    photos: List[str] = []


class RefundRequest(BaseModel):
    """Refund request DTO"""
    method: RefundMethod
    amount: Optional[Decimal] = Field(default=None, ge=0)
    reference: Optional[str] = None


class MoneyResponse(BaseModel):
    """Money response DTO"""
    amount: Decimal
    currency: str


class BookingSummaryResponse(BaseModel):
    """Public booking view, no personal data"""
    booking_ref: str
    property_ids: List[UUID]
    check_in: date
    check_out: date
    nights: int
    booking_type: BookingType
    status: BookingStatus
    guest_count: int
    total_charged: MoneyResponse
    deposit_amount: MoneyResponse
    created_at: datetime


class BookingResponse(BookingSummaryResponse):
    """Administrator booking view"""
    booking_id: UUID
    customer_id: UUID
    consent_record_id: Optional[UUID] = None
    damage_report_id: Optional[UUID] = None
    calendar_event_id: Optional[str] = None
    reason_for_renting: str
    special_requests: Optional[str] = None
    terms_accepted_at: datetime
    terms_version: str
    deposit_refund_amount: Optional[MoneyResponse] = None
    upi_reference: Optional[str] = None
    payment_screenshot_url: Optional[str] = None
    payment_submitted_at: Optional[datetime] = None
    payment_confirmed_by: Optional[str] = None
    payment_confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    refund_method: Optional[RefundMethod] = None
    refund_amount: Optional[MoneyResponse] = None
    refund_reference: Optional[str] = None
    refunded_by: Optional[str] = None
    refunded_at: Optional[datetime] = None
    modified_at: datetime
    version: int


class BookingListResponse(BaseModel):
    """Paginated booking list DTO"""
    items: List[BookingResponse]
    total: int
    page: int
    limit: int


class DashboardStatsResponse(BaseModel):
    """Owner dashboard DTO"""
    total_bookings: int
    revenue_this_month: MoneyResponse
    upcoming_bookings: int
    occupancy_rate: int


class DamageReportResponse(BaseModel):
    """Damage report response DTO"""
    report_id: UUID
    booking_id: UUID
    description: str
    estimated_damage: MoneyResponse
    deduction_amount: MoneyResponse
    photos: List[str]
    status: str
    created_by: str
    created_at: datetime
    deposit_refund_amount: MoneyResponse


# ============================================================================
# PROPERTY & AVAILABILITY SCHEMAS
# ============================================================================

class PropertyResponse(BaseModel):
    """Property response DTO"""
    property_id: UUID
    name: str
    slug: str
    description: str
    rate_per_night: MoneyResponse
    security_deposit: MoneyResponse
    max_guests: int
    amenities: List[str]
    is_active: bool


class DayAvailabilityResponse(BaseModel):
    day: date
    available: bool


class MonthAvailabilityResponse(BaseModel):
    """Month availability response DTO"""
    property_id: UUID
    year: int
    month: int
    days: List[DayAvailabilityResponse]


class UnavailableDaysResponse(BaseModel):
    property_id: UUID
    check_in: date
    check_out: date
    unavailable_days: List[date]
    available: bool


# ============================================================================
# BLACKOUT SCHEMAS
# ============================================================================

class BlockDatesRequest(BaseModel):
    """Block dates request DTO"""
    property_id: UUID
    dates: List[date] = Field(min_length=1, max_length=366)


class BlockedDateResponse(BaseModel):
    property_id: UUID
    day: date
    created_at: datetime


# ============================================================================
# CUSTOMER DATA SCHEMAS
# ============================================================================

class CorrectDataRequest(BaseModel):
    """Guest data correction DTO; only name and phone are correctable"""
    booking_ref: str
    email: EmailStr
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    phone: Optional[str] = Field(default=None, pattern=r"^\+?[0-9]{10,15}$")


class CorrectDataResponse(BaseModel):
    updated_fields: List[str]


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str

class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None

class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    disabled: bool
