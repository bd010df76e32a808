"""Unit tests for app.core.security: bcrypt hashing, JWT issue/decode and reset codes."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt

from app.core.config import settings
from app.core.security import (
    create_access_token,
    decode_access_token,
    generate_reset_code,
    hash_password,
    verify_password,
)


class TestPasswordHashing(unittest.TestCase):
    def test_hash_is_not_plaintext_and_verifies(self) -> None:
        hashed = hash_password("s3cret-pass")
        self.assertNotEqual(hashed, "s3cret-pass")
        self.assertTrue(hashed.startswith("$2"))
        self.assertTrue(verify_password("s3cret-pass", hashed))

    def test_wrong_password_fails(self) -> None:
        hashed = hash_password("s3cret-pass")
        self.assertFalse(verify_password("other-pass", hashed))

    def test_same_password_gets_different_salts(self) -> None:
        self.assertNotEqual(hash_password("s3cret-pass"), hash_password("s3cret-pass"))

    def test_malformed_hash_returns_false(self) -> None:
        self.assertFalse(verify_password("anything", "not-a-bcrypt-hash"))


class TestAccessToken(unittest.TestCase):
    def test_round_trip_carries_identity_and_role(self) -> None:
        token = create_access_token(sub=7, role="editor", username="newadmin")
        payload = decode_access_token(token)
        self.assertEqual(payload["sub"], "7")
        self.assertEqual(payload["role"], "editor")
        self.assertEqual(payload["username"], "newadmin")
        self.assertIn("exp", payload)

    def test_wrong_secret_rejected(self) -> None:
        token = jwt.encode(
            {"sub": "1", "role": "admin", "exp": datetime.now(UTC) + timedelta(minutes=5)},
            "some-other-secret",
            algorithm=settings.JWT_ALGORITHM,
        )
        with self.assertRaises(jwt.PyJWTError):
            decode_access_token(token)

    def test_expired_token_rejected(self) -> None:
        token = jwt.encode(
            {"sub": "1", "role": "admin", "exp": datetime.now(UTC) - timedelta(seconds=1)},
            settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
        )
        with self.assertRaises(jwt.ExpiredSignatureError):
            decode_access_token(token)

    def test_token_without_sub_rejected(self) -> None:
        token = jwt.encode(
            {"role": "admin", "exp": datetime.now(UTC) + timedelta(minutes=5)},
            settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
        )
        with self.assertRaises(jwt.MissingRequiredClaimError):
            decode_access_token(token)


class TestResetCode(unittest.TestCase):
    def test_six_digits(self) -> None:
        for _ in range(50):
            code = generate_reset_code()
            self.assertEqual(len(code), 6)
            self.assertTrue(code.isdigit())


if __name__ == "__main__":
    unittest.main()
