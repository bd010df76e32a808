"""Tests for app.services.auth: login by username/email, approval gating, token verification."""

import unittest

from _factories import DEFAULT_PASSWORD, make_session_factory, make_user

from app.core.errors import AccountNotApproved, InvalidCredentials, InvalidToken
from app.core.security import create_access_token
from app.models.enums import Role, UserStatus
from app.services import auth


class AuthServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.user = make_user(self.db, "editor1", role=Role.EDITOR)

    def tearDown(self) -> None:
        self.db.close()


class TestLogin(AuthServiceTestCase):
    def test_login_with_username(self) -> None:
        token, user = auth.login(self.db, "editor1", DEFAULT_PASSWORD)
        self.assertEqual(user.id, self.user.id)
        self.assertTrue(token)

    def test_login_with_email_is_case_insensitive(self) -> None:
        _, user = auth.login(self.db, "EDITOR1@example.org", DEFAULT_PASSWORD)
        self.assertEqual(user.id, self.user.id)

    def test_unknown_user_is_invalid_credentials_regardless_of_password(self) -> None:
        with self.assertRaises(InvalidCredentials):
            auth.login(self.db, "nouser", "whatever")
        with self.assertRaises(InvalidCredentials):
            auth.login(self.db, "nouser", DEFAULT_PASSWORD)

    def test_wrong_password(self) -> None:
        with self.assertRaises(InvalidCredentials):
            auth.login(self.db, "editor1", "wrong-password")

    def test_unapproved_statuses_denied_without_naming_status(self) -> None:
        for status in (UserStatus.PENDING, UserStatus.REJECTED, UserStatus.SUSPENDED):
            make_user(self.db, f"user_{status}", status=status)
            with self.assertRaises(AccountNotApproved) as ctx:
                auth.login(self.db, f"user_{status}", DEFAULT_PASSWORD)
            self.assertNotIn(status.value, ctx.exception.message.lower())

    def test_unapproved_user_with_wrong_password_gets_invalid_credentials(self) -> None:
        make_user(self.db, "suspended1", status=UserStatus.SUSPENDED)
        with self.assertRaises(InvalidCredentials):
            auth.login(self.db, "suspended1", "wrong-password")


class TestVerify(AuthServiceTestCase):
    def test_verify_returns_user_and_role(self) -> None:
        token, _ = auth.login(self.db, "editor1", DEFAULT_PASSWORD)
        user = auth.verify(self.db, token)
        self.assertEqual(user.id, self.user.id)
        self.assertEqual(auth.decode(token)["role"], "editor")

    def test_garbage_token(self) -> None:
        with self.assertRaises(InvalidToken):
            auth.verify(self.db, "not.a.jwt")

    def test_tampered_token(self) -> None:
        token, _ = auth.login(self.db, "editor1", DEFAULT_PASSWORD)
        with self.assertRaises(InvalidToken):
            auth.verify(self.db, token[:-2] + ("AA" if not token.endswith("AA") else "BB"))

    def test_token_for_deleted_user(self) -> None:
        token = create_access_token(sub=9999, role="admin")
        with self.assertRaises(InvalidToken):
            auth.verify(self.db, token)

    def test_non_numeric_subject(self) -> None:
        token = create_access_token(sub="abc", role="admin")
        with self.assertRaises(InvalidToken):
            auth.verify(self.db, token)

    def test_suspended_after_login(self) -> None:
        token, _ = auth.login(self.db, "editor1", DEFAULT_PASSWORD)
        self.user.status = UserStatus.SUSPENDED.value
        self.db.commit()
        with self.assertRaises(AccountNotApproved):
            auth.verify(self.db, token)

    def test_token_expiry_is_exposed(self) -> None:
        token, _ = auth.login(self.db, "editor1", DEFAULT_PASSWORD)
        self.assertIsNotNone(auth.token_expiry(auth.decode(token)))


if __name__ == "__main__":
    unittest.main()
