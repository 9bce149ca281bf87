"""Domain Enums"""
from enum import Enum


class BookingStatus(str, Enum):
    HOLD = "hold"
    PENDING_APPROVAL = "pending_approval"
    PENDING_PAYMENT = "pending_payment"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class BookingType(str, Enum):
    STANDARD = "standard"
    SPECIAL = "special"


class BookingAction(str, Enum):
    SUBMIT_PAYMENT = "submit_payment"
    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"
    CONFIRM_PAYMENT = "confirm_payment"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    FILE_DAMAGE_REPORT = "file_damage_report"
    PROCESS_REFUND = "process_refund"


class DamageReportStatus(str, Enum):
    REPORTED = "reported"
    DEDUCTED = "deducted"
    DISPUTED = "disputed"
    RESOLVED = "resolved"


class Nationality(str, Enum):
    INDIAN = "indian"
    FOREIGN = "foreign"


class IdType(str, Enum):
    AADHAAR = "aadhaar"
    PASSPORT = "passport"
    DRIVING_LICENSE = "driving_license"
    VOTER_ID = "voter_id"


class RefundMethod(str, Enum):
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
