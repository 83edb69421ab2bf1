"""Tests for activation notices: disabled, delivered, and failing SMTP."""

import smtplib
import unittest
from unittest.mock import MagicMock, patch

from bankapi.services.mailer import Mailer
from tests.util import make_settings


class TestMailerDisabled(unittest.TestCase):
    @patch("bankapi.services.mailer.smtplib.SMTP")
    def test_no_host_skips_delivery(self, smtp: MagicMock) -> None:
        mailer = Mailer(make_settings())
        self.assertFalse(mailer.enabled)
        self.assertFalse(mailer.send_activation(1, "alice@example.com", "alice", "A" * 26))
        smtp.assert_not_called()


class TestMailerDelivery(unittest.TestCase):
    @patch("bankapi.services.mailer.smtplib.SMTP")
    def test_sends_token_to_recipient(self, smtp: MagicMock) -> None:
        mailer = Mailer(make_settings(SMTP_HOST="mail.local", SMTP_PORT=2525))
        self.assertTrue(mailer.send_activation(1, "alice@example.com", "alice", "TOKEN" * 5 + "ABCDEF"))

        smtp.assert_called_once_with("mail.local", 2525, timeout=10.0)
        conn = smtp.return_value.__enter__.return_value
        conn.starttls.assert_not_called()
        msg = conn.send_message.call_args.args[0]
        self.assertEqual(msg["To"], "alice@example.com")
        self.assertIn("TOKEN" * 5 + "ABCDEF", msg.get_content())

    @patch("bankapi.services.mailer.smtplib.SMTP")
    def test_logs_in_when_credentials_set(self, smtp: MagicMock) -> None:
        mailer = Mailer(
            make_settings(SMTP_HOST="mail.local", SMTP_USERNAME="bank", SMTP_PASSWORD="s3cret")
        )
        self.assertTrue(mailer.send_activation(1, "alice@example.com", "alice", "A" * 26))
        conn = smtp.return_value.__enter__.return_value
        conn.starttls.assert_called_once()
        conn.login.assert_called_once_with("bank", "s3cret")

    @patch("bankapi.services.mailer.smtplib.SMTP")
    def test_failure_returns_false(self, smtp: MagicMock) -> None:
        smtp.side_effect = smtplib.SMTPConnectError(421, "unavailable")
        mailer = Mailer(make_settings(SMTP_HOST="mail.local"))
        self.assertFalse(mailer.send_activation(1, "alice@example.com", "alice", "A" * 26))

    @patch("bankapi.services.mailer.smtplib.SMTP")
    def test_network_error_returns_false(self, smtp: MagicMock) -> None:
        smtp.side_effect = OSError("connection refused")
        mailer = Mailer(make_settings(SMTP_HOST="mail.local"))
        self.assertFalse(mailer.send_activation(1, "alice@example.com", "alice", "A" * 26))


if __name__ == "__main__":
    unittest.main()
