"""SMTP email adapter."""

import smtplib
from email.message import EmailMessage
from email.utils import make_msgid

import structlog

from notifications.channel.email_port import EmailPort

logger = structlog.get_logger(__name__)


class SMTPEmailAdapter(EmailPort):
    def __init__(
        self,
        host: str,
        from_address: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.from_address = from_address
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _build_message(self, to, subject, body, html_body) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.from_address
        message["To"] = to
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.set_content(body)
        if html_body:
            message.add_alternative(html_body, subtype="html")
        return message

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> dict:
        message = self._build_message(to, subject, body, html_body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("smtp_send_failed", host=self.host, error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc) or exc.__class__.__name__}

        return {"message_id": message["Message-ID"], "status": "sent"}
