"""Store settings persisted in the store_settings table."""
import copy
import logging
from typing import Dict

from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.config import settings
from orderdesk.models.store_settings import StoreSetting
from orderdesk.services.email_templates import DEFAULT_EMAIL_TEMPLATES

logger = logging.getLogger(__name__)

SMTP_KEY = "smtp"
EMAIL_TEMPLATES_KEY = "email_templates"


def default_smtp_settings() -> Dict:
    return {
        "host": settings.SMTP_HOST,
        "port": settings.SMTP_PORT,
        "username": settings.SMTP_USER,
        "password": settings.SMTP_PASSWORD,
        "encryption": "tls",
        "from_email": settings.SMTP_FROM_EMAIL or settings.SMTP_USER,
        "from_name": settings.SMTP_FROM_NAME,
        "enable_smtp": False,
    }


class SettingsService:
    """Read/write the SMTP and email template settings."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get(self, key: str) -> Dict:
        setting = await self.db.get(StoreSetting, key)
        return dict(setting.value) if setting and setting.value else {}

    async def _put(self, key: str, value: Dict) -> None:
        setting = await self.db.get(StoreSetting, key)
        if setting is None:
            self.db.add(StoreSetting(key=key, value=value))
        else:
            # Reassign so the JSON column is flagged dirty
            setting.value = value
        await self.db.flush()

    async def get_smtp_settings(self) -> Dict:
        """Stored SMTP settings layered over the environment defaults."""
        return {**default_smtp_settings(), **await self._get(SMTP_KEY)}

    async def save_smtp_settings(self, data: Dict) -> Dict:
        merged = {**await self.get_smtp_settings(), **data}
        await self._put(SMTP_KEY, merged)
        logger.info(f"SMTP settings updated (enabled={merged.get('enable_smtp')})")
        return merged

    async def get_email_templates(self) -> Dict[str, Dict[str, str]]:
        templates = copy.deepcopy(DEFAULT_EMAIL_TEMPLATES)
        for name, template in (await self._get(EMAIL_TEMPLATES_KEY)).items():
            templates.setdefault(name, {}).update(template)
        return templates

    async def save_email_templates(self, templates: Dict[str, Dict[str, str]]) -> Dict[str, Dict[str, str]]:
        stored = await self._get(EMAIL_TEMPLATES_KEY)
        for name, template in templates.items():
            stored[name] = {**stored.get(name, {}), **template}
        await self._put(EMAIL_TEMPLATES_KEY, stored)
        logger.info(f"Email templates updated: {', '.join(sorted(templates))}")
        return await self.get_email_templates()
