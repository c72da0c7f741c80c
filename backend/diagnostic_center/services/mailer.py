"""SMTP mail sink for CSV reports."""
import logging
import smtplib
import ssl
from email.message import EmailMessage

from diagnostic_center.config import Settings

logger = logging.getLogger(__name__)


class SmtpMailer:
    def __init__(self, host: str, port: int, sender: str, username: str = "", password: str = "",
                 use_tls: bool = True, timeout: int = 30):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailer":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            sender=settings.SMTP_FROM,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
        )

    def build_message(self, csv_bytes: bytes, filename: str, recipients: list[str], summary_text: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = summary_text.splitlines()[0] if summary_text else filename
        msg["From"] = self.sender
        msg["To"] = ", ".join(recipients)
        msg.set_content(summary_text)
        msg.add_attachment(csv_bytes, maintype="text", subtype="csv", filename=filename)
        return msg

    def send(self, csv_bytes: bytes, filename: str, recipients: list[str], summary_text: str) -> None:
        """Send one message with the CSV attached. Errors propagate to the caller."""
        msg = self.build_message(csv_bytes, filename, recipients, summary_text)
        if self.port == 465:
            server = smtplib.SMTP_SSL(self.host, self.port, context=ssl.create_default_context(), timeout=self.timeout)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        with server:
            if self.use_tls and self.port != 465:
                server.starttls(context=ssl.create_default_context())
            if self.username:
                server.login(self.username, self.password)
            server.send_message(msg)
        logger.info("Sent %s to %s", filename, ", ".join(recipients))
