"""Audit, notification and calendar collaborators"""
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx

from domain.entities import Booking, Customer
from domain.gateways import AuditEntry, AuditLog, CalendarSync, NotificationDispatcher
from infrastructure.config import Settings

logger = logging.getLogger(__name__)


class InMemoryAuditLog(AuditLog):
    """Keeps audit entries in memory; write failures are logged, never raised"""

    def __init__(self):
        self.entries: List[AuditEntry] = []

    async def record(
        self,
        action: str,
        entity_type: str,
        entity_id: UUID,
        actor: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        try:
            self.entries.append(AuditEntry(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                actor=actor,
                metadata=metadata or {}
            ))
        except Exception:
            logger.exception("Failed to create audit log for %s on %s %s", action, entity_type, entity_id)

    def actions_for(self, entity_id: UUID) -> List[str]:
        return [entry.action for entry in self.entries if entry.entity_id == entity_id]


def _booking_payload(booking: Booking) -> Dict[str, Any]:
    return booking.model_dump(mode="json", include={
        "booking_id", "booking_ref", "property_ids", "date_range", "nights",
        "booking_type", "status", "guest_count", "total_charged", "deposit_amount",
    })


def _customer_payload(customer: Customer) -> Dict[str, Any]:
    return customer.model_dump(mode="json", include={"customer_id", "name", "email", "phone"})


class NotConfiguredNotificationDispatcher(NotificationDispatcher):
    """Used when no notification endpoint is configured"""

    async def send_booking_confirmation(self, booking: Booking, customer: Customer) -> None:
        logger.warning("Notifications not configured; skipping confirmation for %s", booking.booking_ref)

    async def send_admin_alert(self, booking: Booking, customer: Customer, event: str) -> None:
        logger.warning("Notifications not configured; skipping admin alert %s for %s", event, booking.booking_ref)


class WebhookNotificationDispatcher(NotificationDispatcher):
    """Posts notification events to an HTTP endpoint"""

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    async def _post(self, payload: Dict[str, Any]) -> None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.url, json=payload)
            response.raise_for_status()

    async def send_booking_confirmation(self, booking: Booking, customer: Customer) -> None:
        await self._post({
            "event": "booking.confirmation",
            "booking": _booking_payload(booking),
            "customer": _customer_payload(customer),
        })

    async def send_admin_alert(self, booking: Booking, customer: Customer, event: str) -> None:
        await self._post({
            "event": f"admin.{event}",
            "booking": _booking_payload(booking),
            "customer": _customer_payload(customer),
        })


class NotConfiguredCalendarSync(CalendarSync):
    """Used when no calendar endpoint is configured"""

    async def create_event(self, booking: Booking) -> Optional[str]:
        logger.warning("Calendar sync not configured; no event for %s", booking.booking_ref)
        return None


class WebhookCalendarSync(CalendarSync):
    """Creates calendar events through an HTTP endpoint returning {"event_id": ...}"""

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    async def create_event(self, booking: Booking) -> Optional[str]:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.url, json={"booking": _booking_payload(booking)})
            response.raise_for_status()
            return response.json().get("event_id")


def build_notification_dispatcher(settings: Settings) -> NotificationDispatcher:
    if settings.NOTIFICATION_WEBHOOK_URL:
        return WebhookNotificationDispatcher(settings.NOTIFICATION_WEBHOOK_URL, settings.INTEGRATION_TIMEOUT_SECONDS)
    return NotConfiguredNotificationDispatcher()


def build_calendar_sync(settings: Settings) -> CalendarSync:
    if settings.CALENDAR_WEBHOOK_URL:
        return WebhookCalendarSync(settings.CALENDAR_WEBHOOK_URL, settings.INTEGRATION_TIMEOUT_SECONDS)
    return NotConfiguredCalendarSync()
