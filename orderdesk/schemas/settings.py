from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class SMTPSettingsUpdate(BaseModel):
    """SMTP settings form. Omitted fields keep their stored value."""
    host: Optional[str] = None
    port: Optional[int] = Field(None, gt=0, le=65535)
    username: Optional[str] = None
    password: Optional[str] = None
    encryption: Optional[Literal["none", "ssl", "tls"]] = None
    from_email: Optional[str] = None
    from_name: Optional[str] = None
    enable_smtp: Optional[bool] = None


class SMTPSettingsResponse(BaseModel):
    host: str = ""
    port: int = 587
    username: str = ""
    has_password: bool = False
    encryption: str = "tls"
    from_email: str = ""
    from_name: str = ""
    enable_smtp: bool = False


class EmailTemplate(BaseModel):
    subject: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)


class EmailTemplatesResponse(BaseModel):
    templates: Dict[str, EmailTemplate]
    variables: List[str]
