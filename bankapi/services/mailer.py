"""Outbound activation notices over SMTP. Delivery is fire-and-forget."""

import logging
import smtplib
from email.message import EmailMessage
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bankapi.core.config import Settings

logger = logging.getLogger(__name__)

ACTIVATION_SUBJECT = "Activate your account"
ACTIVATION_BODY = """Hi {name},

Thanks for signing up. To activate your account send a PUT request to
/v1/users/activated with the following JSON body:

{{"token": "{token}"}}

This token is valid for {ttl_hours} hours and can only be used once.
"""


class Mailer:
    """Sends mail through one SMTP connection per message."""

    def __init__(self, settings: "Settings") -> None:
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.username = settings.SMTP_USERNAME
        self.password = settings.SMTP_PASSWORD
        self.sender = settings.SMTP_SENDER
        self.timeout = settings.SMTP_TIMEOUT_SEC
        self.activation_ttl_hours = settings.ACTIVATION_TOKEN_TTL_HOURS

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def _build_activation(self, recipient: str, name: str, token: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = recipient
        msg["Subject"] = ACTIVATION_SUBJECT
        msg.set_content(
            ACTIVATION_BODY.format(name=name, token=token, ttl_hours=self.activation_ttl_hours)
        )
        return msg

    def send_activation(self, user_id: int, recipient: str, name: str, token: str) -> bool:
        """
        Mail the activation token. Never raises: failures are logged and the
        caller's response is unaffected. Returns True when the message was handed
        to the SMTP server.
        """
        if not self.enabled:
            logger.info("SMTP not configured; activation notice skipped", extra={"user_id": user_id})
            return False
        msg = self._build_activation(recipient, name, token)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as conn:
                if self.username and self.password is not None:
                    conn.starttls()
                    conn.login(self.username, self.password.get_secret_value())
                conn.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                "Activation notice failed",
                extra={"user_id": user_id, "reason": type(e).__name__},
            )
            return False
        logger.info("Activation notice sent", extra={"user_id": user_id})
        return True
