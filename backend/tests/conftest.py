"""Root conftest - shared test configuration."""

import os

# Never talk to real Anthropic or Twilio accounts from tests
os.environ.setdefault("ANTHROPIC_API_KEY", "sk-ant-test-fake-key")
os.environ.setdefault("JWT_SECRET", "test-secret-with-enough-length-for-hs256")
os.environ.setdefault("TWILIO_ACCOUNT_SID", "")
os.environ.setdefault("TWILIO_VALIDATE_SIGNATURES", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
