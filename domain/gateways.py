"""Ports to collaborators outside the consistency boundary"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.entities import Booking, Customer, utcnow


class AuditEntry(BaseModel):
    action: str
    entity_type: str
    entity_id: UUID
    actor: str
    metadata: Dict[str, Any] = {}
    recorded_at: datetime = Field(default_factory=utcnow)


class AuditLog(ABC):
    """Audit sink; ``record`` must never raise back to the caller"""

    @abstractmethod
    async def record(
        self,
        action: str,
        entity_type: str,
        entity_id: UUID,
        actor: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        pass


class NotificationDispatcher(ABC):
    """Outbound guest and administrator notifications"""

    @abstractmethod
    async def send_booking_confirmation(self, booking: Booking, customer: Customer) -> None:
        pass

    @abstractmethod
    async def send_admin_alert(self, booking: Booking, customer: Customer, event: str) -> None:
        pass


class CalendarSync(ABC):
    """External calendar; returns the created event ID or None"""

    @abstractmethod
    async def create_event(self, booking: Booking) -> Optional[str]:
        pass
