import asyncio
import time

import pytest
from sqlalchemy import select

from orderdesk.models.notifications import NotificationLog
from orderdesk.services.email_service import EmailService
from orderdesk.services.notification_service import NotificationService
from orderdesk.services.settings_service import SettingsService

from tests.component.mocks import MockEmailService

pytestmark = [pytest.mark.component, pytest.mark.asyncio]

VARIABLES = {"customer_name": "Asha Verma", "order_number": "ORD-20260115-0001", "items": "1 × Mug"}


async def logs(session):
    await session.flush()
    return (await session.execute(select(NotificationLog))).scalars().all()


async def test_uses_stored_template(db_session):
    await SettingsService(db_session).save_email_templates({
        "order_confirmation": {"subject": "Thanks {customer_name}", "body": "<p>{items}</p>"},
    })
    email = MockEmailService()

    sent = await NotificationService(db_session, email_service=email).send(
        "order_confirmation", VARIABLES, "asha@example.com"
    )

    assert sent is True
    assert email.sent[0]["subject"] == "Thanks Asha Verma"
    assert email.sent[0]["body"] == "<p>1 × Mug</p>"
    assert (await logs(db_session))[0].success is True


async def test_unknown_template(db_session):
    service = NotificationService(db_session, email_service=MockEmailService())

    assert await service.send("birthday_greeting", VARIABLES, "asha@example.com") is False
    assert service.last_error == "Unknown email template 'birthday_greeting'"


async def test_broken_template_is_reported(db_session):
    await SettingsService(db_session).save_email_templates({
        "order_cancelled": {"subject": "Cancelled {order_number", "body": "<p>Sorry</p>"},
    })
    email = MockEmailService()
    service = NotificationService(db_session, email_service=email)

    assert await service.send("order_cancelled", VARIABLES, "asha@example.com") is False
    assert "could not be rendered" in service.last_error
    assert email.sent == []


async def test_unconfigured_smtp(db_session):
    service = NotificationService(db_session, email_service=EmailService())

    assert await service.send("order_delivered", VARIABLES, "asha@example.com") is False
    assert service.last_error == "SMTP not configured"

    recorded = await logs(db_session)
    assert recorded[0].error == "SMTP not configured"
    assert recorded[0].recipient == "asha@example.com"


async def test_slow_smtp_times_out(db_session):
    class SlowEmailService(MockEmailService):
        def send_email(self, *args, **kwargs):
            time.sleep(0.3)
            return super().send_email(*args, **kwargs)

    service = NotificationService(db_session, email_service=SlowEmailService(), timeout=0.05)

    assert await service.send("order_delivered", VARIABLES, "asha@example.com") is False
    assert "timed out" in service.last_error
    # let the worker thread finish before the loop closes
    await asyncio.sleep(0.3)


async def test_customer_values_are_escaped_in_body(db_session):
    email = MockEmailService()
    variables = dict(VARIABLES, customer_name='<img src=x onerror="alert(1)">')

    sent = await NotificationService(db_session, email_service=email).send(
        "order_delivered", variables, "asha@example.com"
    )

    assert sent is True
    assert "<img" not in email.sent[0]["body"]
    assert "&lt;img src=x onerror=&quot;alert(1)&quot;&gt;" in email.sent[0]["body"]
