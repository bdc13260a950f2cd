"""Configuration constants and .env loading.

WHY: Credentials, bucket names, and network settings must never be
hardcoded. Centralizing them here keeps every tunable value in one place
where both humans and deployment tooling can find it.

HOW: python-dotenv loads the .env file on import. Non-secret settings are
module-level constants read with os.getenv and sensible defaults. Secrets
and mandatory values are read through load_*() functions that raise a
clear ValueError when missing.

RULES:
- Secrets (channel secret, access token) are never given defaults
- GCS_BUCKET_NAME is mandatory; Firestore project/credentials fall back
  to Google Application Default Credentials when unset
- SESSION_TTL_SECONDS = 0 disables session expiry
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (where the server is started from)
load_dotenv()

# ---------------------------------------------------------------------------
# LINE Messaging API
# ---------------------------------------------------------------------------

LINE_API_BASE_URL = os.getenv("LINE_API_BASE_URL", "https://api.line.me")
LINE_DATA_API_BASE_URL = os.getenv("LINE_DATA_API_BASE_URL", "https://api-data.line.me")

# ---------------------------------------------------------------------------
# Google Cloud
# ---------------------------------------------------------------------------

GCS_PUBLIC_BASE_URL = "https://storage.googleapis.com"
FIRESTORE_COLLECTION = os.getenv("FIRESTORE_COLLECTION", "images")
FIRESTORE_PROJECT_ID = os.getenv("FIRESTORE_PROJECT_ID") or None

# ---------------------------------------------------------------------------
# Conversation behaviour
# ---------------------------------------------------------------------------

RESERVED_FILENAME_SUBSTRING = "pdf"
"""Literal that may not appear in a user-supplied file name."""

SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "3600"))
CANCEL_KEYWORD = os.getenv("CANCEL_KEYWORD", "キャンセル")
PDF_DPI = int(os.getenv("PDF_DPI", "150"))

# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def _require(name: str, hint: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ValueError("{} not configured. {}".format(name, hint))
    return value


def load_channel_secret() -> str:
    """Load the LINE channel secret used to verify webhook signatures.

    RULES:
    - Raises ValueError if LINE_CHANNEL_SECRET is missing or empty
    """
    return _require(
        "LINE_CHANNEL_SECRET",
        "Copy it from the LINE Developers console into the .env file.",
    )


def load_channel_access_token() -> str:
    """Load the long-lived LINE channel access token.

    RULES:
    - Raises ValueError if LINE_CHANNEL_ACCESS_TOKEN is missing or empty
    """
    return _require(
        "LINE_CHANNEL_ACCESS_TOKEN",
        "Issue one in the LINE Developers console and add it to the .env file.",
    )


def load_bucket_name() -> str:
    """Load the Cloud Storage bucket that receives converted PDFs."""
    return _require(
        "GCS_BUCKET_NAME",
        "Set it to a bucket the service account can write to.",
    )


def credentials_path() -> Optional[str]:
    """Return the service-account JSON path, or None to use ADC."""
    return os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or None
