# portal/services/notifications.py
"""
Notifications - Outbox + HTTP Sinks

Outbound webhook and email deliveries are recorded in
``notification_outbox`` before anything is sent:

1. ``Notifier.enqueue`` writes a ``pending`` row in the caller's transaction
2. ``Notifier.deliver`` runs after the response (FastAPI background task),
   in its own session, with bounded retry
3. The row ends ``sent`` or ``failed`` with attempts, response code and
   last error, so admins can see and re-send failed deliveries

Delivery failures are logged and never raised into a request.

Email goes through an HTTP relay that accepts
``{"email", "subject", "mailBody"}``.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, List, Optional
from uuid import UUID
import logging

import httpx
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from portal.config import Settings
from portal.database import utcnow
from portal.errors import DependencyUnavailable
from portal.models.activity import ActivityType
from portal.models.client import ClientProfile
from portal.models.notification import NotificationChannel, NotificationOutbox, NotificationStatus
from portal.models.user import User
from portal.services.activity import record_activity

logger = logging.getLogger(__name__)


# =============================================================================
# SINKS
# =============================================================================

class HttpSink:
    """Posts JSON to an HTTP endpoint with ``httpx.AsyncClient``."""

    def __init__(self, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        # Tests inject httpx.MockTransport here
        self.transport = transport

    def build_request(self, destination: str, subject: Optional[str], body: Any) -> tuple:
        raise NotImplementedError

    async def post(self, destination: str, subject: Optional[str], body: Any) -> httpx.Response:
        """
        Send one request.

        Raises:
            DependencyUnavailable: If the sink is not configured
            httpx.HTTPError: On transport failures
        """
        url, payload = self.build_request(destination, subject, body)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            return await client.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json"}
            )

    async def send(self, destination: str, subject: Optional[str], body: Any) -> bool:
        """Single attempt; True on a 2xx response."""
        try:
            response = await self.post(destination, subject, body)
        except (httpx.HTTPError, DependencyUnavailable) as e:
            logger.error(f"❌ Delivery to {destination} failed: {e}")
            return False
        return response.is_success


class WebhookSink(HttpSink):
    """Posts the body as JSON to the destination URL."""

    def build_request(self, destination: str, subject: Optional[str], body: Any) -> tuple:
        return destination, body


class EmailSink(HttpSink):
    """Relays email through the email webhook; ``destination`` is the recipient address."""

    def __init__(self, relay_url: Optional[str], timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(timeout=timeout, transport=transport)
        self.relay_url = relay_url

    def build_request(self, destination: str, subject: Optional[str], body: Any) -> tuple:
        if not self.relay_url:
            raise DependencyUnavailable("EMAIL_WEBHOOK_URL not configured")
        if isinstance(body, dict):
            body = body.get("body", "")
        return self.relay_url, {"email": destination, "subject": subject or "", "mailBody": body}


# =============================================================================
# PAYLOADS & EMAIL TEMPLATES
# =============================================================================

LIST_FIELDS = (
    "current_channels", "primary_challenges", "tracking_tools",
    "social_platforms", "key_metrics", "competitors",
)

PROFILE_PAYLOAD_FIELDS = (
    "company_name", "industry", "website_url", "company_description", "employee_count", "business_model",
    "worked_with_agency", "current_channels", "marketing_feedback", "primary_challenges",
    "has_google_analytics", "has_facebook_pixel", "tracking_tools", "can_provide_analytics_access", "analytics_notes",
    "social_platforms", "has_fb_business_manager", "has_google_ads",
    "primary_goal", "success_definition", "key_metrics", "revenue_target", "target_cpa", "target_roas",
    "ideal_customer_profile", "geographic_targeting", "age_range", "gender_targeting", "competitors", "competitor_strengths",
    "monthly_budget_range", "has_creative_assets", "has_marketing_contact", "marketing_contact_name", "marketing_contact_email",
)


def decode_list_field(value: Any) -> List[Any]:
    """Decode a list-valued field to a native list for outbound payloads."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return [value]
        return parsed if isinstance(parsed, list) else [value]
    return [value]


def onboarding_payload(profile: ClientProfile, email: str, **extra) -> Dict[str, Any]:
    """Webhook body describing a client's onboarding answers (camelCase keys)."""
    payload: Dict[str, Any] = {
        "userId": str(profile.user_id),
        "clientId": str(profile.client_id),
        "uniqueClientId": profile.unique_client_id,
        "email": email,
    }
    for name in PROFILE_PAYLOAD_FIELDS:
        value = getattr(profile, name)
        payload[to_camel(name)] = decode_list_field(value) if name in LIST_FIELDS else value

    payload["timestamp"] = utcnow().isoformat()
    payload.update(extra)
    return payload


def welcome_email(settings: Settings, company_name: str, name: Optional[str] = None) -> Dict[str, str]:
    name = name or company_name
    return {
        "subject": f"Welcome to Our Platform, {company_name}! 🚀",
        "body": (
            f"Hi {name},\n\n"
            f"Welcome aboard! We're thrilled to have {company_name} as part of our platform.\n\n"
            "Your onboarding is complete, and we're already working on your personalized strategy suite. "
            "You'll receive access to:\n\n"
            "✅ Custom marketing strategies\n"
            "✅ AI-powered business insights\n"
            "✅ Your dedicated workspace\n"
            "✅ 9 specialized AI agents trained on your business\n\n"
            f"Access your dashboard here:\n{settings.DASHBOARD_URL}\n\n"
            "If you have any questions, our GrowthBot is available 24/7 in your dashboard.\n\n"
            "Best regards,\nYour Success Team"
        ),
    }


def admin_onboarding_email(settings: Settings, company_name: str, client_email: str, unique_client_id: str) -> Dict[str, str]:
    return {
        "subject": f"New Client Onboarded: {company_name}",
        "body": (
            "A new client has completed onboarding:\n\n"
            f"Company: {company_name}\n"
            f"Email: {client_email}\n"
            f"Client ID: {unique_client_id}\n\n"
            f"View in admin dashboard:\n{settings.DASHBOARD_URL}\n\n"
            "Next steps:\n"
            "1. Review their intake responses\n"
            "2. Trigger strategy document generation\n"
            "3. Set up their workspace"
        ),
    }


def gift_email(company_name: str, industry: str, unique_client_id: str, recommendation: Dict[str, Any]) -> Dict[str, str]:
    return {
        "subject": f"🎁 Welcome Gift Recommendation for {company_name}",
        "body": (
            f"Welcome Gift for {company_name}\n\n"
            f"✨ {recommendation.get('gift_name', '')}\n"
            f"{recommendation.get('description', '')}\n\n"
            f"Why this gift?\n{recommendation.get('reasoning', '')}\n\n"
            f"Estimated Cost: {recommendation.get('estimated_cost', '')}\n"
            f"Vendor: {recommendation.get('vendor', '')}\n"
            f"Fulfillment Notes: {recommendation.get('fulfillment_notes', '')}\n\n"
            f"Client: {company_name} ({industry})\n"
            f"Client ID: {unique_client_id}"
        ),
    }


# =============================================================================
# NOTIFIER
# =============================================================================

class Notifier:
    """Writes outbox rows and delivers them with bounded retry."""

    def __init__(
        self,
        settings: Settings,
        session_factory: Optional[Callable[[], Session]] = None,
        webhook_sink: Optional[WebhookSink] = None,
        email_sink: Optional[EmailSink] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.settings = settings
        self.session_factory = session_factory
        self.webhook_sink = webhook_sink or WebhookSink(timeout=settings.WEBHOOK_TIMEOUT_SECONDS)
        self.email_sink = email_sink or EmailSink(settings.EMAIL_WEBHOOK_URL, timeout=settings.WEBHOOK_TIMEOUT_SECONDS)
        self.max_attempts = max(1, settings.WEBHOOK_MAX_ATTEMPTS)
        self.backoff_seconds = settings.WEBHOOK_RETRY_BACKOFF_SECONDS
        self._sleep = sleep

    # -------------------------------------------------------------------------
    # Outbox
    # -------------------------------------------------------------------------

    def enqueue(
        self,
        db: Session,
        channel: NotificationChannel,
        event_type: str,
        destination: str,
        payload: Dict[str, Any],
        subject: Optional[str] = None,
        client_id: Optional[UUID] = None
    ) -> NotificationOutbox:
        """Add a pending notification to the session. The caller commits."""
        notification = NotificationOutbox(
            client_id=client_id,
            channel=channel,
            event_type=event_type,
            destination=destination,
            subject=subject,
            payload=payload,
            status=NotificationStatus.PENDING,
            attempts=0,
        )
        db.add(notification)
        db.flush()
        logger.debug(f"Queued {channel.value} notification {event_type} -> {destination}")
        return notification

    def enqueue_email(
        self,
        db: Session,
        event_type: str,
        to: str,
        message: Dict[str, str],
        client_id: Optional[UUID] = None
    ) -> NotificationOutbox:
        return self.enqueue(
            db, NotificationChannel.EMAIL, event_type, to,
            {"body": message["body"]}, subject=message["subject"], client_id=client_id,
        )

    def queue_onboarding(self, db: Session, profile: ClientProfile, user: User) -> List[UUID]:
        """Queue every notification for a completed onboarding; returns the outbox ids."""
        queued = []

        if self.settings.N8N_WEBHOOK_URL:
            queued.append(self.enqueue(
                db, NotificationChannel.WEBHOOK, "onboarding_completed",
                self.settings.N8N_WEBHOOK_URL,
                onboarding_payload(profile, user.email),
                client_id=profile.client_id,
            ))
        else:
            logger.warning("⚠️  N8N_WEBHOOK_URL not set - onboarding webhook skipped")

        queued.append(self.enqueue_email(
            db, "welcome_email", user.email,
            welcome_email(self.settings, profile.company_name, user.name),
            client_id=profile.client_id,
        ))
        queued.append(self.enqueue_email(
            db, "admin_onboarding_notification", self.settings.ADMIN_EMAIL,
            admin_onboarding_email(self.settings, profile.company_name, user.email, profile.unique_client_id),
            client_id=profile.client_id,
        ))

        return [n.notification_id for n in queued]

    # -------------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------------

    def _sink_for(self, channel: NotificationChannel) -> HttpSink:
        return self.webhook_sink if channel == NotificationChannel.WEBHOOK else self.email_sink

    async def deliver_notification(self, db: Session, notification: NotificationOutbox) -> bool:
        """
        Deliver one outbox row using ``db`` and record the outcome.

        Returns:
            True if the notification was sent
        """
        sink = self._sink_for(notification.channel)
        last_error = None
        sent = False

        for attempt in range(1, self.max_attempts + 1):
            notification.attempts = (notification.attempts or 0) + 1
            try:
                response = await sink.post(notification.destination, notification.subject, notification.payload)
                notification.response_code = response.status_code
                if response.is_success:
                    sent = True
                    break
                last_error = f"HTTP {response.status_code}"
            except DependencyUnavailable as e:
                # Configuration problem; retrying cannot help
                last_error = e.message
                break
            except httpx.HTTPError as e:
                last_error = str(e) or e.__class__.__name__

            logger.warning(
                f"⚠️  {notification.event_type} delivery attempt {attempt}/{self.max_attempts} failed: {last_error}"
            )
            if attempt < self.max_attempts:
                await self._sleep(self.backoff_seconds * attempt)

        if sent:
            notification.status = NotificationStatus.SENT
            notification.sent_at = utcnow()
            notification.last_error = None
            logger.info(f"✅ {notification.event_type} delivered to {notification.destination}")
            if notification.channel == NotificationChannel.WEBHOOK and notification.client_id:
                record_activity(
                    db, notification.client_id, ActivityType.N8N_WEBHOOK_SENT,
                    f"Webhook {notification.event_type} delivered",
                    {"notification_id": str(notification.notification_id), "attempts": notification.attempts},
                )
        else:
            notification.status = NotificationStatus.FAILED
            notification.last_error = last_error
            error = DependencyUnavailable(f"{notification.event_type} delivery to {notification.destination} failed: {last_error}")
            logger.error(f"❌ {error.message}")

        db.commit()
        return sent

    async def deliver(self, notification_id: UUID) -> bool:
        """Deliver one queued notification in a fresh session."""
        if self.session_factory is None:
            logger.error("❌ Notifier has no session factory; cannot deliver in background")
            return False

        db = self.session_factory()
        try:
            notification = db.query(NotificationOutbox)\
                             .filter(NotificationOutbox.notification_id == notification_id)\
                             .first()
            if not notification:
                logger.warning(f"Notification {notification_id} no longer exists")
                return False
            if notification.status == NotificationStatus.SENT:
                return True
            return await self.deliver_notification(db, notification)
        finally:
            db.close()

    async def deliver_all(self, notification_ids: List[UUID]) -> None:
        """Background task entry point."""
        for notification_id in notification_ids:
            await self.deliver(notification_id)
