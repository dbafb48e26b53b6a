"""
Application configuration loaded from environment variables.
Values can be provided through a local .env file during development.
"""
import os

from dotenv import load_dotenv

load_dotenv()

# Runtime environment: "local", "development", "test" or "production"
ENV = os.environ.get("ENV", "development")

PORT = int(os.environ.get("PORT", 8000))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Timezone used when stamping report footers and file names (UTC-5 by default)
REPORT_TIMEZONE = os.environ.get("REPORT_TIMEZONE", "America/Bogota")

# Seller used when authentication is bypassed in local development
LOCAL_SELLER_ID = os.environ.get("LOCAL_SELLER_ID", "local-test-seller-id")

FIREBASE_CREDENTIALS_JSON_CONTENT = os.environ.get("FIREBASE_CREDENTIALS_JSON_CONTENT")
FIREBASE_CREDENTIALS_FILE = os.environ.get("FIREBASE_CREDENTIALS_FILE", "firebase-adminsdk.json")


def current_env() -> str:
    """Return the runtime environment, read at call time so tests can override it."""
    return os.environ.get("ENV", ENV)


def is_production() -> bool:
    return current_env() == "production"


def is_local() -> bool:
    return current_env() == "local"
