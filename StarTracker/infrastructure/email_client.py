"""
SMTP delivery of the HTML star report.
"""

import logging
import os
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_SMTP_PORT = 587
SSL_PORT = 465
DEFAULT_SENDER = "GitHub Star Tracker"


@dataclass
class EmailConfig:
    host: str
    port: int = DEFAULT_SMTP_PORT
    username: str = ""
    password: str = ""
    to: str = ""
    sender: str = DEFAULT_SENDER

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Optional["EmailConfig"]:
        """
        Read SMTP settings from the environment.

        Returns:
            EmailConfig, or None when SMTP_HOST is not set
        """
        environ = os.environ if environ is None else environ
        host = environ.get("SMTP_HOST")
        if not host:
            return None

        return cls(
            host=host,
            port=int(environ.get("SMTP_PORT") or DEFAULT_SMTP_PORT),
            username=environ.get("SMTP_USERNAME", ""),
            password=environ.get("SMTP_PASSWORD", ""),
            to=environ.get("EMAIL_TO", ""),
            sender=environ.get("EMAIL_FROM") or DEFAULT_SENDER,
        )


def build_message(config: EmailConfig, subject: str, html_body: str) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = config.sender
    msg["To"] = config.to
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    return msg


def send_email(config: Optional[EmailConfig], subject: str, html_body: str) -> bool:
    """
    Send the report by email.

    Returns:
        True if the message was handed to the SMTP server

    Raises:
        smtplib.SMTPException: On delivery failures
    """
    if config is None:
        logger.info("No SMTP configuration provided, skipping email")
        return False

    if not config.to:
        logger.warning("SMTP configured but no EMAIL_TO address provided, skipping email")
        return False

    recipients = [address.strip() for address in config.to.split(",") if address.strip()]
    msg = build_message(config, subject, html_body)

    smtp_class = smtplib.SMTP_SSL if config.port == SSL_PORT else smtplib.SMTP
    with smtp_class(config.host, config.port, timeout=30) as server:
        if config.port != SSL_PORT:
            server.ehlo()
            server.starttls()
            server.ehlo()
        if config.username and config.password:
            server.login(config.username, config.password)
        # The display sender is not always an address
        envelope_from = config.sender if "@" in config.sender else config.username
        server.sendmail(envelope_from, recipients, msg.as_string())

    logger.info(f"Email sent to {len(recipients)} recipients: {subject}")
    return True
