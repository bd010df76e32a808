"""Test environment: in-memory SQLite, fast bcrypt, fixed JWT secret. Must load before app modules."""

import os

os.environ["APP_ENV"] = "dev"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-with-enough-length-0123456789"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.pop("SMTP_HOST", None)
