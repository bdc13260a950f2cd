"""LINE Messaging API integration.

WHY: The bot's users talk to it through LINE. This package owns every
detail of that platform: webhook signatures, event payload shapes,
reply and content endpoints, and the reply wording.

HOW: webhook.py verifies and parses deliveries into the dataclasses in
models.py; client.py sends replies and downloads image content over
httpx; messages.py holds reply texts.

RULES:
- Only this package knows LINE's JSON field names
- All HTTP calls to LINE go through LineClient
"""

from image_pdf_bot.line.client import LineAPIError, LineClient
from image_pdf_bot.line.models import (
    ImageMessage,
    MessageEvent,
    OtherMessage,
    TextMessage,
    UnsupportedEvent,
)
from image_pdf_bot.line.webhook import (
    InvalidSignatureError,
    WebhookParseError,
    WebhookParser,
)

__all__ = [
    "ImageMessage",
    "InvalidSignatureError",
    "LineAPIError",
    "LineClient",
    "MessageEvent",
    "OtherMessage",
    "TextMessage",
    "UnsupportedEvent",
    "WebhookParseError",
    "WebhookParser",
]
