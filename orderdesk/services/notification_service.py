"""
Customer Notification Service

Renders the email template for an order event, sends it through
EmailService and records every attempt in notification_logs.

Sending is best-effort: send() reports failure through its return value and
`last_error`, it never raises for delivery problems.
"""
import asyncio
import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.config import settings
from orderdesk.models.notifications import NotificationLog
from orderdesk.services.email_service import EmailService, get_email_service
from orderdesk.services.email_templates import render_template
from orderdesk.services.settings_service import SettingsService

logger = logging.getLogger(__name__)


class NotificationService:

    def __init__(
        self,
        db: AsyncSession,
        email_service: Optional[EmailService] = None,
        timeout: Optional[float] = None,
    ):
        self.db = db
        self.email_service = email_service
        self.timeout = timeout if timeout is not None else settings.NOTIFICATION_TIMEOUT_SECONDS
        self.last_error: Optional[str] = None

    async def _get_email_service(self) -> EmailService:
        if self.email_service is None:
            smtp_settings = await SettingsService(self.db).get_smtp_settings()
            self.email_service = get_email_service(smtp_settings)
        return self.email_service

    def _record(
        self,
        template_name: str,
        recipient: Optional[str],
        success: bool,
        order_id: Optional[uuid.UUID],
    ) -> None:
        self.db.add(NotificationLog(
            order_id=order_id,
            template=template_name,
            recipient=recipient,
            success=success,
            error=None if success else self.last_error,
        ))

    async def send(
        self,
        template_name: str,
        variables: Dict[str, Any],
        recipient: Optional[str],
        order_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """
        Send one templated email.

        Args:
            template_name: Key into the email template store
            variables: Template variables
            recipient: Customer email address
            order_id: Order the notification belongs to (for the log)

        Returns:
            True if the email was handed to the SMTP server
        """
        self.last_error = None
        success = False

        if not recipient:
            self.last_error = "No recipient email address"
            logger.warning(f"[NOTIFICATION] {template_name} skipped for order {order_id}: no recipient")
            self._record(template_name, recipient, success, order_id)
            return success

        templates = await SettingsService(self.db).get_email_templates()
        template = templates.get(template_name)
        if not template:
            self.last_error = f"Unknown email template '{template_name}'"
            logger.error(f"[NOTIFICATION] {self.last_error}")
            self._record(template_name, recipient, success, order_id)
            return success

        try:
            subject = render_template(template.get("subject", ""), variables)
            body = render_template(template.get("body", ""), variables, escape=True)
        except (ValueError, IndexError, AttributeError) as e:
            self.last_error = f"Template '{template_name}' could not be rendered: {e}"
            logger.error(f"[NOTIFICATION] {self.last_error}")
            self._record(template_name, recipient, success, order_id)
            return success

        email_service = await self._get_email_service()
        try:
            # smtplib blocks; run it off the event loop with an upper bound
            success = await asyncio.wait_for(
                asyncio.to_thread(email_service.send_email, recipient, subject, body),
                timeout=self.timeout,
            )
            if not success:
                self.last_error = email_service.last_error or "Email could not be sent"
        except asyncio.TimeoutError:
            self.last_error = f"Email delivery timed out after {self.timeout}s"

        if success:
            logger.info(f"[NOTIFICATION] EMAIL {template_name} sent to {recipient}")
        else:
            logger.warning(f"[NOTIFICATION] EMAIL {template_name} to {recipient} failed: {self.last_error}")

        self._record(template_name, recipient, success, order_id)
        return success
