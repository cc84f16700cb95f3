import logging
import smtplib
from datetime import datetime
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from functools import lru_cache
from typing import List
from ..core.config import get_settings
from ..core.template_engine import render_template

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self, settings=None):
        settings = settings or get_settings()
        self.smtp_server = settings.MAIL_SERVER
        self.smtp_port = settings.MAIL_PORT
        self.username = settings.MAIL_USERNAME
        self.password = settings.MAIL_PASSWORD
        self.from_email = settings.MAIL_FROM
        self.timeout = settings.MAIL_TIMEOUT_SECONDS

    def _send_email(self, recipients: List[str], subject: str, html_content: str) -> None:
        message = MIMEMultipart()
        message["From"] = self.from_email
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject

        html_part = MIMEText(html_content, "html")
        message.attach(html_part)

        try:
            with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError):
            logger.exception("Error sending email %r to %s", subject, recipients)
            raise
        logger.info("Sent email %r to %d recipient(s)", subject, len(recipients))

    def send_club_invite(
        self,
        to_email: str,
        club_name: str,
        role_name: str,
        invite_link: str,
        expires_at: datetime,
    ) -> None:
        html_content = render_template(
            "emails/club_invite.html",
            to_email=to_email,
            club_name=club_name,
            role_name=role_name,
            invite_link=invite_link,
            expires_at=expires_at,
        )
        self._send_email(
            recipients=[to_email],
            subject=f"You're invited to join {club_name}!",
            html_content=html_content,
        )

    def send_super_admin_invite(self, to_email: str, invite_link: str, expires_at: datetime) -> None:
        html_content = render_template(
            "emails/super_admin_invite.html",
            invite_link=invite_link,
            expires_at=expires_at,
        )
        self._send_email(
            recipients=[to_email],
            subject="You're invited to become a Super Administrator",
            html_content=html_content,
        )


@lru_cache
def get_email_service() -> EmailService:
    return EmailService()
