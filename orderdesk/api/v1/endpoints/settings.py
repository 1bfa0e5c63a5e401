from typing import Dict

from fastapi import APIRouter

from orderdesk.api.deps import DB
from orderdesk.schemas.settings import (
    SMTPSettingsUpdate,
    SMTPSettingsResponse,
    EmailTemplate,
    EmailTemplatesResponse,
)
from orderdesk.services.email_templates import TEMPLATE_VARIABLES
from orderdesk.services.settings_service import SettingsService


router = APIRouter(tags=["Settings"])


def _smtp_response(data: dict) -> SMTPSettingsResponse:
    return SMTPSettingsResponse(
        host=data.get("host") or "",
        port=int(data.get("port") or 587),
        username=data.get("username") or "",
        has_password=bool(data.get("password")),
        encryption=data.get("encryption") or "tls",
        from_email=data.get("from_email") or "",
        from_name=data.get("from_name") or "",
        enable_smtp=bool(data.get("enable_smtp")),
    )


@router.get(
    "/smtp",
    response_model=SMTPSettingsResponse,
)
async def get_smtp_settings(db: DB):
    """Current SMTP settings. The password is never returned."""
    return _smtp_response(await SettingsService(db).get_smtp_settings())


@router.put(
    "/smtp",
    response_model=SMTPSettingsResponse,
)
async def update_smtp_settings(
    data: SMTPSettingsUpdate,
    db: DB,
):
    saved = await SettingsService(db).save_smtp_settings(data.model_dump(exclude_none=True))
    return _smtp_response(saved)


@router.get(
    "/email-templates",
    response_model=EmailTemplatesResponse,
)
async def get_email_templates(db: DB):
    templates = await SettingsService(db).get_email_templates()
    return EmailTemplatesResponse(templates=templates, variables=TEMPLATE_VARIABLES)


@router.put(
    "/email-templates",
    response_model=EmailTemplatesResponse,
)
async def update_email_templates(
    data: Dict[str, EmailTemplate],
    db: DB,
):
    """Replace the subject/body of one or more templates."""
    templates = await SettingsService(db).save_email_templates(
        {name: template.model_dump() for name, template in data.items()}
    )
    return EmailTemplatesResponse(templates=templates, variables=TEMPLATE_VARIABLES)
