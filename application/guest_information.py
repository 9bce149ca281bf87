"""Read-only guest documents: UPI payment details, terms and privacy policy"""
from typing import Dict, List, Optional

from pydantic import BaseModel

from domain.exceptions import NotConfigured
from domain.value_objects import Money


class PaymentInfo(BaseModel):
    upi_id: str
    upi_qr_code_url: Optional[str] = None
    instructions: List[str]


class TermsRule(BaseModel):
    id: int
    text: str


class TermsDocument(BaseModel):
    version: str
    effective_date: str
    title: str
    rules: List[TermsRule]


class PrivacyPolicy(BaseModel):
    version: str
    data_retention: Dict[str, str]
    data_rights: Dict[str, str]
    data_collected: List[str]
    purposes: List[str]


class GuestInformationService:
    """Documents a guest needs before and after booking"""

    def __init__(
        self,
        security_deposit: Money,
        terms_version: str,
        terms_effective_date: str,
        retention_years: int,
        upi_id: Optional[str] = None,
        upi_qr_code_url: Optional[str] = None
    ):
        self.security_deposit = security_deposit
        self.terms_version = terms_version
        self.terms_effective_date = terms_effective_date
        self.retention_years = retention_years
        self.upi_id = upi_id
        self.upi_qr_code_url = upi_qr_code_url

    def payment_info(self) -> PaymentInfo:
        if not self.upi_id:
            raise NotConfigured(
                "UPI payment info not configured. Contact the property owner.", code="UPI_NOT_CONFIGURED"
            )
        return PaymentInfo(
            upi_id=self.upi_id,
            upi_qr_code_url=self.upi_qr_code_url,
            instructions=[
                "Open any UPI app (Google Pay, PhonePe, Paytm, etc.)",
                f"Pay to UPI ID: {self.upi_id}",
                "Enter the total booking amount as shown on the booking summary",
                "Take a screenshot of the payment confirmation",
                "Submit the screenshot and the UTR/reference number with your booking reference",
                "The owner will verify your payment within 24 hours",
            ]
        )

    def terms(self) -> TermsDocument:
        deposit = f"{self.security_deposit.currency} {self.security_deposit.amount:,.0f}"
        rules = [
            "Check-in is at 2:00 PM; check-out is at 11:00 AM. Early check-in or late check-out is "
            "subject to availability and may incur charges.",
            f"A security deposit of {deposit} is collected at booking and refunded after check-out, "
            "less any deductions for damages.",
            "Guests must carry a valid government-issued photo ID. Foreign nationals must carry a passport.",
            "Occupancy must not exceed the number of guests declared at booking.",
            "Loud music, parties or any activity that disturbs neighbours is prohibited after 10:00 PM.",
            "Smoking is allowed only in designated outdoor areas.",
            "Pets are not allowed unless approved in writing at the time of booking.",
            "The guest is liable for damage to the property during the stay. Costs are deducted from "
            "the security deposit.",
            "Unpaid holds are released automatically; dates are secured only once payment is confirmed.",
            "By confirming the booking, the guest consents to the processing of personal data as "
            "described in the privacy policy.",
            f"Personal data is retained for {self.retention_years} years, after which it is anonymised.",
            "The guest may request access to, correction of, or deletion of their personal data at any time.",
        ]
        return TermsDocument(
            version=self.terms_version,
            effective_date=self.terms_effective_date,
            title="Terms and Conditions",
            rules=[TermsRule(id=number, text=text) for number, text in enumerate(rules, start=1)]
        )

    def privacy_policy(self) -> PrivacyPolicy:
        return PrivacyPolicy(
            version=self.terms_version,
            data_retention={
                "booking_records": f"{self.retention_years} years from date of collection",
                "personal_data": f"{self.retention_years} years, or until an erasure request",
            },
            data_rights={
                "access": "GET /api/customer/my-data",
                "correction": "PATCH /api/customer/my-data (name and phone)",
                "erasure": "DELETE /api/customer/my-data",
                "note": "Booking and payment records are retained even after data erasure.",
            },
            data_collected=["Name", "Email address", "Phone number", "Nationality",
                            "Government ID type and number"],
            purposes=["Booking management and confirmation", "Payment verification",
                      "Legal compliance and record keeping", "Communication regarding your booking"]
        )
