"""Domain Value Objects"""
from pydantic import BaseModel, Field, field_validator
from datetime import date, timedelta
from decimal import Decimal
from typing import List


class DateRange(BaseModel):
    """Value Object for a stay; check_out is exclusive"""
    check_in: date
    check_out: date

    @field_validator('check_out')
    @classmethod
    def check_out_after_check_in(cls, v, info):
        check_in = info.data.get('check_in')
        if check_in is not None and v <= check_in:
            raise ValueError('Check-out must be after check-in')
        return v

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.check_out - self.check_in).days

    def days(self) -> List[date]:
        """Every occupied calendar day, check-in inclusive, check-out exclusive"""
        return [self.check_in + timedelta(days=offset) for offset in range(self.nights())]

    def overlaps(self, start: date, end: date) -> bool:
        """Check overlap with the half-open interval [start, end)"""
        return self.check_in < end and self.check_out > start

    class Config:
        frozen = True


class Money(BaseModel):
    """Value Object for monetary amounts"""
    amount: Decimal = Field(ge=0)
    currency: str = "INR"

    def __add__(self, other: "Money") -> "Money":
        self._require_same_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._require_same_currency(other)
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def times(self, factor: int) -> "Money":
        return Money(amount=self.amount * factor, currency=self.currency)

    def _require_same_currency(self, other: "Money") -> None:
        if other.currency != self.currency:
            raise ValueError(f"Currency mismatch: {self.currency} vs {other.currency}")

    class Config:
        frozen = True


class PricingPolicy(BaseModel):
    """Flat nightly rate plus one security deposit per booking"""
    rate_per_night: Money
    security_deposit: Money

    def quote(self, nights: int, property_count: int) -> Money:
        """Total charged: rate x nights x properties + deposit"""
        return self.rate_per_night.times(nights * property_count) + self.security_deposit

    class Config:
        frozen = True
