"""Tests for email error handling."""

import smtplib
import unittest
from unittest.mock import patch

from khelkheleko import create_app
from khelkheleko.utils import EmailError, send_email

REGISTRATION = {
    "player_name": "Sita Player",
    "tournament_name": "Kathmandu Futsal Cup",
    "status": "confirmed",
}


class TestEmailErrors(unittest.TestCase):
    """Test case for email errors."""

    def setUp(self):
        """Set up the test case."""
        self.app = create_app({"TESTING": True, "MAIL_SUPPRESS_SEND": False})
        self.ctx = self.app.app_context()
        self.ctx.push()

    def tearDown(self):
        """Tear down the test case."""
        self.ctx.pop()

    def _send(self):
        send_email(
            "test@example.com",
            "Registration Confirmed!",
            "email/registration_status.html",
            registration=REGISTRATION,
            headline="Registration Confirmed!",
        )

    @patch("khelkheleko.utils.mail.send")
    def test_send_email_smtp_534(self, mock_send):
        """The provider's app-password demand gets a readable message."""
        error_msg = b"5.7.9 Application-specific password required."
        mock_send.side_effect = smtplib.SMTPAuthenticationError(534, error_msg)

        with self.assertRaises(EmailError) as cm:
            self._send()

        self.assertIn("Authentication failed.", str(cm.exception))

    @patch("khelkheleko.utils.mail.send")
    def test_send_email_other_auth_error(self, mock_send):
        mock_send.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

        with self.assertRaises(EmailError) as cm:
            self._send()

        self.assertIn("SMTP Authentication failed", str(cm.exception))

    @patch("khelkheleko.utils.mail.send")
    def test_send_email_generic_error(self, mock_send):
        """Test handling of generic email errors."""
        mock_send.side_effect = Exception("Some other error")

        with self.assertRaises(EmailError) as cm:
            self._send()

        self.assertIn("Failed to send email: Some other error", str(cm.exception))

    @patch("khelkheleko.utils.mail.send")
    def test_send_email_renders_template(self, mock_send):
        self._send()

        message = mock_send.call_args[0][0]
        self.assertEqual(message.recipients, ["test@example.com"])
        self.assertIn("Kathmandu Futsal Cup", message.html)


if __name__ == "__main__":
    unittest.main()
