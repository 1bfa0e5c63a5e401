import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
import logging

from orderdesk.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Email service for sending transactional emails over SMTP."""

    def __init__(
        self,
        smtp_host: str = "",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        from_email: str = "",
        from_name: str = "OrderDesk Store",
        encryption: str = "tls",
        timeout: float = 10,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email or smtp_user
        self.from_name = from_name
        self.encryption = encryption
        self.timeout = timeout
        self.last_error: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    def _connect(self) -> smtplib.SMTP:
        if self.encryption == "ssl":
            return smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, timeout=self.timeout)
        return smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout)

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML body of the email
            text_content: Plain text body (optional fallback)

        Returns:
            True if email sent successfully, False otherwise. The reason for
            a failure is left in `last_error`.
        """
        self.last_error = None

        if not self.is_configured:
            self.last_error = "SMTP not configured"
            logger.warning("Email not configured. SMTP host or sender missing.")
            return False

        try:
            # Create message
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_email}>"
            msg['To'] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            with self._connect() as server:
                if self.encryption == "tls":
                    server.starttls()
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, to_email, msg.as_string())

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except smtplib.SMTPAuthenticationError:
            self.last_error = "SMTP authentication failed"
            logger.error("SMTP Authentication failed. Check email credentials.")
            return False
        except smtplib.SMTPException as e:
            self.last_error = f"SMTP error: {e}"
            logger.error(f"SMTP error: {e}")
            return False
        except TimeoutError:
            self.last_error = "SMTP connection timed out"
            logger.error("SMTP connection timed out")
            return False
        except OSError as e:
            self.last_error = f"Network error: {e}"
            logger.error(f"Network error sending email: {e}")
            return False


def get_email_service(smtp_settings: Optional[dict] = None) -> EmailService:
    """
    Build an EmailService.

    `smtp_settings` is the stored "smtp" store setting; it is used when its
    enable_smtp flag is on, otherwise the environment configuration applies.
    """
    if smtp_settings and smtp_settings.get("enable_smtp"):
        return EmailService(
            smtp_host=smtp_settings.get("host", ""),
            smtp_port=int(smtp_settings.get("port") or 587),
            smtp_user=smtp_settings.get("username", ""),
            smtp_password=smtp_settings.get("password", ""),
            from_email=smtp_settings.get("from_email", ""),
            from_name=smtp_settings.get("from_name") or settings.SMTP_FROM_NAME,
            encryption=smtp_settings.get("encryption", "tls"),
        )

    return EmailService(
        smtp_host=settings.SMTP_HOST,
        smtp_port=settings.SMTP_PORT,
        smtp_user=settings.SMTP_USER,
        smtp_password=settings.SMTP_PASSWORD,
        from_email=settings.SMTP_FROM_EMAIL,
        from_name=settings.SMTP_FROM_NAME,
    )
