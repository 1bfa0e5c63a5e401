import pytest

from orderdesk.services.email_service import get_email_service
from orderdesk.services.settings_service import SettingsService

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]

SETTINGS = "/api/v1/settings"


class TestSMTPSettings:

    async def test_password_is_never_returned(self, client):
        response = await client.put(f"{SETTINGS}/smtp", json={
            "host": "smtp.example.com",
            "port": 465,
            "username": "store@example.com",
            "password": "s3cret",
            "encryption": "ssl",
            "enable_smtp": True,
        })

        assert response.status_code == 200
        body = response.json()
        assert "password" not in body
        assert body["has_password"] is True
        assert body["host"] == "smtp.example.com"
        assert body["enable_smtp"] is True

    async def test_partial_update_keeps_other_fields(self, client):
        await client.put(f"{SETTINGS}/smtp", json={"host": "smtp.example.com", "password": "s3cret"})
        await client.put(f"{SETTINGS}/smtp", json={"from_name": "Asha's Store"})

        body = (await client.get(f"{SETTINGS}/smtp")).json()

        assert body["host"] == "smtp.example.com"
        assert body["from_name"] == "Asha's Store"
        assert body["has_password"] is True

    async def test_invalid_encryption(self, client):
        response = await client.put(f"{SETTINGS}/smtp", json={"encryption": "starttls"})
        assert response.status_code == 422

    async def test_enabled_settings_drive_the_email_service(self, client, session_factory):
        await client.put(f"{SETTINGS}/smtp", json={
            "host": "smtp.example.com",
            "port": 2525,
            "from_email": "orders@example.com",
            "enable_smtp": True,
        })

        async with session_factory() as session:
            smtp = await SettingsService(session).get_smtp_settings()
        service = get_email_service(smtp)

        assert service.is_configured
        assert service.smtp_port == 2525
        assert service.from_email == "orders@example.com"


class TestEmailTemplates:

    async def test_defaults(self, client):
        body = (await client.get(f"{SETTINGS}/email-templates")).json()

        assert set(body["templates"]) == {
            "order_confirmation", "shipping_confirmation", "order_cancelled", "order_delivered",
        }
        assert "tracking_number" in body["variables"]

    async def test_override_one_template(self, client):
        response = await client.put(f"{SETTINGS}/email-templates", json={
            "order_delivered": {"subject": "Delivered: {order_number}", "body": "<p>Enjoy, {customer_name}!</p>"},
        })

        templates = response.json()["templates"]
        assert templates["order_delivered"]["subject"] == "Delivered: {order_number}"
        assert templates["order_confirmation"]["subject"] == "Your Order #{order_number} is Confirmed"

        stored = (await client.get(f"{SETTINGS}/email-templates")).json()["templates"]
        assert stored["order_delivered"]["body"] == "<p>Enjoy, {customer_name}!</p>"
