"""Webhook signature verification and request parsing.

WHY: The callback URL is public. LINE signs every delivery with the
channel secret, and anything that fails that check must be dropped
before it can touch session state.

HOW: The signature is base64(HMAC-SHA256(channel_secret, raw_body)).
WebhookParser.parse() checks it in constant time, decodes the JSON
body, and maps each event through models.parse_event().

RULES:
- The raw request bytes are signed, so verification happens before
  any JSON decoding
- Missing or mismatching signature → InvalidSignatureError
- Non-JSON body, missing "events" list, or a broken event →
  WebhookParseError
- Event order is preserved exactly as delivered
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
from typing import Any, List, Optional

from image_pdf_bot.line.models import WebhookEvent, parse_event


class InvalidSignatureError(ValueError):
    """Raised when the X-Line-Signature header does not match the body."""


class WebhookParseError(ValueError):
    """Raised when a signed body is not a valid webhook payload."""


def compute_signature(channel_secret: str, body: bytes) -> str:
    """Return the base64 HMAC-SHA256 signature LINE would send for ``body``."""
    digest = hmac.new(
        channel_secret.encode("utf-8"), body, hashlib.sha256
    ).digest()
    return base64.b64encode(digest).decode("ascii")


class WebhookParser:
    """Verifies and parses LINE webhook deliveries for one channel."""

    def __init__(self, channel_secret: str) -> None:
        self._channel_secret = channel_secret

    def verify(self, body: bytes, signature: Optional[str]) -> bool:
        if not signature:
            return False
        expected = compute_signature(self._channel_secret, body)
        return hmac.compare_digest(expected, signature)

    def parse(self, body: bytes, signature: Optional[str]) -> List[WebhookEvent]:
        """Verify ``signature`` and return the typed events in ``body``."""
        if not self.verify(body, signature):
            raise InvalidSignatureError("Invalid webhook signature")

        try:
            payload: Any = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise WebhookParseError("Body is not valid JSON: {}".format(exc))

        if not isinstance(payload, dict) or not isinstance(payload.get("events"), list):
            raise WebhookParseError("Body has no 'events' list")

        events = []
        for index, raw in enumerate(payload["events"]):
            try:
                events.append(parse_event(raw))
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                raise WebhookParseError(
                    "Malformed event at index {}: {!r}".format(index, exc)
                )
        return events
