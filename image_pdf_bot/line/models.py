"""LINE webhook event dataclasses.

WHY: The LINE platform delivers a JSON batch of heterogeneous events.
Typed dataclasses make the few fields the bot relies on explicit and
let the handler dispatch on message variant with a single isinstance
switch instead of digging through nested dicts.

HOW: A message event carries one of three message variants:
ImageMessage, TextMessage, or OtherMessage (sticker, video, audio, file,
location, ...). Every non-message event (follow, unfollow, postback,
join, ...) becomes an UnsupportedEvent. parse_event() is the single
factory that maps a raw event dict to one of these.

RULES:
- Message variants form a closed union: Image | Text | Other
- user_id is None when the platform omits source.userId
- reply_token is None for events that cannot be replied to
- Raises KeyError/TypeError on structurally broken events; the webhook
  parser converts these into WebhookParseError
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

CONTENT_PROVIDER_LINE = "line"
CONTENT_PROVIDER_EXTERNAL = "external"


@dataclass
class ImageMessage:
    """An image sent by the user.

    RULES:
    - content_provider is "line" (content hosted by LINE, fetched through
      the data API) or "external" (original_content_url points elsewhere)
    """

    id: str
    content_provider: str = CONTENT_PROVIDER_LINE
    original_content_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ImageMessage:
        provider = data.get("contentProvider") or {}
        return cls(
            id=data["id"],
            content_provider=provider.get("type", CONTENT_PROVIDER_LINE),
            original_content_url=provider.get("originalContentUrl"),
        )


@dataclass
class TextMessage:
    """A plain text message."""

    id: str
    text: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TextMessage:
        return cls(id=data["id"], text=data.get("text", ""))


@dataclass
class OtherMessage:
    """Any message type the bot does not act on."""

    id: str
    type: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> OtherMessage:
        return cls(id=data.get("id", ""), type=data.get("type", ""))


Message = Union[ImageMessage, TextMessage, OtherMessage]


@dataclass
class MessageEvent:
    """A "message" webhook event: one user message plus reply metadata."""

    reply_token: Optional[str]
    user_id: Optional[str]
    timestamp: int
    message: Message
    webhook_event_id: str = ""


@dataclass
class UnsupportedEvent:
    """Any webhook event that is not a message event."""

    type: str
    webhook_event_id: str = ""


WebhookEvent = Union[MessageEvent, UnsupportedEvent]


def parse_message(data: Dict[str, Any]) -> Message:
    """Map a raw ``message`` object to its variant."""
    kind = data.get("type")
    if kind == "image":
        return ImageMessage.from_dict(data)
    if kind == "text":
        return TextMessage.from_dict(data)
    return OtherMessage.from_dict(data)


def parse_event(data: Dict[str, Any]) -> WebhookEvent:
    """Map a raw webhook event dict to a typed event."""
    event_type = data["type"]
    event_id = data.get("webhookEventId", "")
    if event_type != "message":
        return UnsupportedEvent(type=event_type, webhook_event_id=event_id)

    source = data.get("source") or {}
    return MessageEvent(
        reply_token=data.get("replyToken"),
        user_id=source.get("userId"),
        timestamp=int(data.get("timestamp", 0)),
        message=parse_message(data["message"]),
        webhook_event_id=event_id,
    )
