"""Tests for password reset codes: issue, verify, consume, expiry and enumeration safety."""

import asyncio
import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

from _factories import make_session_factory, make_user

from app.core.config import get_settings
from app.core.errors import InvalidToken, ValidationError
from app.core.security import verify_password
from app.models import PasswordReset
from app.models.enums import UserStatus
from app.services import auth, password_reset
from app.services.mailer import EmailDeliveryError, EmailSender


def _sender() -> MagicMock:
    sender = MagicMock(spec=EmailSender)
    sender.send_reset_code = AsyncMock(return_value=True)
    return sender


class PasswordResetTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.settings = get_settings()
        self.user = make_user(self.db, "asha", email="asha@example.org")
        self.sender = _sender()

    def tearDown(self) -> None:
        self.db.close()

    def request(self, email: str = "asha@example.org") -> str | None:
        self.sender.send_reset_code.reset_mock()
        issued = password_reset.request_reset(self.db, email, self.settings)
        if issued is not None:
            asyncio.run(password_reset.deliver_reset_code(self.sender, issued))
        if not self.sender.send_reset_code.await_count:
            return None
        return self.sender.send_reset_code.call_args.args[2]


class TestRequestReset(PasswordResetTestCase):
    def test_code_is_emailed_and_stored_hashed(self) -> None:
        code = self.request(" ASHA@example.org ")
        self.assertIsNotNone(code)
        self.assertEqual(len(code), 6)
        args = self.sender.send_reset_code.call_args.args
        self.assertEqual(args[:2], ("asha@example.org", "asha"))
        self.assertEqual(args[3], self.settings.PASSWORD_RESET_CODE_TTL_MINUTES)
        stored = self.db.query(PasswordReset).one()
        self.assertNotEqual(stored.code_hash, code)
        self.assertTrue(verify_password(code, stored.code_hash))

    def test_unknown_email_is_silent(self) -> None:
        self.assertIsNone(self.request("nobody@example.org"))
        self.assertEqual(self.db.query(PasswordReset).count(), 0)

    def test_unapproved_account_is_silent(self) -> None:
        make_user(self.db, "waiting", status=UserStatus.PENDING)
        self.assertIsNone(self.request("waiting@example.org"))

    def test_new_request_invalidates_previous_code(self) -> None:
        self.request()
        second = self.request()
        rows = self.db.query(PasswordReset).order_by(PasswordReset.id).all()
        self.assertEqual([r.used for r in rows], [True, False])
        password_reset.verify_code(self.db, "asha@example.org", second)


class TestVerifyAndReset(PasswordResetTestCase):
    def test_verify_valid_code(self) -> None:
        code = self.request()
        password_reset.verify_code(self.db, "asha@example.org", code)

    def test_wrong_code(self) -> None:
        code = self.request()
        wrong = "000000" if code != "000000" else "111111"
        with self.assertRaises(InvalidToken):
            password_reset.verify_code(self.db, "asha@example.org", wrong)

    def test_expired_code(self) -> None:
        code = self.request()
        reset = self.db.query(PasswordReset).one()
        reset.expires_at = datetime.now(UTC) - timedelta(minutes=1)
        self.db.commit()
        with self.assertRaises(InvalidToken):
            password_reset.verify_code(self.db, "asha@example.org", code)

    def test_reset_password_consumes_code(self) -> None:
        code = self.request()
        password_reset.reset_password(self.db, "asha@example.org", code, "a-new-password")
        token, user = auth.login(self.db, "asha", "a-new-password")
        self.assertTrue(token)
        self.assertEqual(user.id, self.user.id)
        with self.assertRaises(InvalidToken):
            password_reset.reset_password(self.db, "asha@example.org", code, "another-password")

    def test_reset_rejects_short_password(self) -> None:
        code = self.request()
        with self.assertRaises(ValidationError):
            password_reset.reset_password(self.db, "asha@example.org", code, "short")
        # The code stays usable after a rejected attempt.
        password_reset.verify_code(self.db, "asha@example.org", code)


class TestDelivery(PasswordResetTestCase):
    def test_returned_code_matches_stored_hash(self) -> None:
        issued = password_reset.request_reset(self.db, "asha@example.org", self.settings)
        self.assertEqual((issued.email, issued.username), ("asha@example.org", "asha"))
        self.assertTrue(verify_password(issued.code, self.db.query(PasswordReset).one().code_hash))

    def test_smtp_failure_is_logged_not_raised(self) -> None:
        self.sender.send_reset_code.side_effect = EmailDeliveryError("Email delivery failed.")
        issued = password_reset.request_reset(self.db, "asha@example.org", self.settings)
        with self.assertLogs("app.services.password_reset", level="ERROR"):
            delivered = asyncio.run(password_reset.deliver_reset_code(self.sender, issued))
        self.assertFalse(delivered)
        # The issued code is still valid; the user can retry or request again.
        password_reset.verify_code(self.db, "asha@example.org", issued.code)


if __name__ == "__main__":
    unittest.main()
