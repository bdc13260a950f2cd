"""Webhook handler: per-user image → filename → PDF state machine.

WHY: The whole bot is a two-step conversation. Each LINE user is either
idle or has sent an image and owes the bot a file name. This module
decides, for every inbound event, what that event means given the
user's current phase, and drives the completion pipeline when the
conversation is finished.

HOW: WebhookHandler.handle_events() walks a parsed batch in delivery
order. Message events are dispatched on their message variant while
holding the sender's per-user lock from the session store:

  IDLE              + image  → store PendingUpload, prompt for a name
  AWAITING_FILENAME + image  → ignored, original PendingUpload kept
  AWAITING_FILENAME + cancel → session dropped, cancellation reply
  AWAITING_FILENAME + text   → invalid: rejection reply, no change
                               valid: set file_name, run pipeline;
                               success → IDLE + reply with the URL;
                               failure → logged only, session kept
  IDLE              + text   → ignored

RULES:
- At most one reply per event, addressed by the event's reply token
- A failing event is logged and never stops the rest of the batch
- Pipeline failure leaves the session in AWAITING_FILENAME with the
  attempted file_name set; the user's next text is a fresh attempt
  against the same image (retry in place). The cancel keyword and the
  session TTL are the ways out.
- Reply failures are logged and never change session state
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional

import httpx

from image_pdf_bot.config import CANCEL_KEYWORD
from image_pdf_bot.core.filename import normalize_filename, validate_filename
from image_pdf_bot.core.pipeline import CompletionPipeline, PipelineError
from image_pdf_bot.core.sessions import PendingUpload, SessionPhase, SessionStore
from image_pdf_bot.line.client import LineAPIError
from image_pdf_bot.line.messages import (
    CANCELLED,
    FILENAME_PROMPT,
    INVALID_FILENAME,
    build_success_message,
)
from image_pdf_bot.line.models import (
    ImageMessage,
    MessageEvent,
    TextMessage,
    WebhookEvent,
)

logger = logging.getLogger(__name__)


class WebhookHandler:
    """Drives the conversation for every user of one LINE channel.

    RULES:
    - line must provide reply_text(reply_token, text) and
      content_url(image_message)
    - cancel_keyword is compared against the trimmed text; empty disables it
    """

    def __init__(
        self,
        line: Any,
        store: SessionStore,
        pipeline: CompletionPipeline,
        cancel_keyword: Optional[str] = CANCEL_KEYWORD,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.line = line
        self.store = store
        self.pipeline = pipeline
        self.cancel_keyword = (cancel_keyword or "").strip()
        self._clock = clock

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handle_events(self, events: List[WebhookEvent]) -> int:
        """Handle a batch in order; return how many events were acted on."""
        handled = 0
        for event in events:
            try:
                if self.handle_event(event):
                    handled += 1
            except Exception:
                logger.exception(
                    "Failed to handle webhook event %s",
                    getattr(event, "webhook_event_id", ""),
                )
        return handled

    def handle_event(self, event: WebhookEvent) -> bool:
        """Apply one event to its sender's session.

        Returns True if the event matched a transition, False if ignored.
        """
        if not isinstance(event, MessageEvent) or not event.user_id:
            return False

        message = event.message
        with self.store.user_lock(event.user_id):
            if isinstance(message, ImageMessage):
                return self._on_image(event, message)
            if isinstance(message, TextMessage):
                return self._on_text(event, message)
        return False

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _on_image(self, event: MessageEvent, message: ImageMessage) -> bool:
        user_id = event.user_id
        if self.store.phase(user_id) == SessionPhase.AWAITING_FILENAME:
            logger.debug("Ignoring image from %s: already awaiting a file name", user_id)
            return False

        pending = PendingUpload(
            user_id=user_id,
            image_url=self.line.content_url(message),
            created_at=self._clock(),
        )
        if not self.store.begin(pending):
            return False

        logger.info("Session started for %s", user_id)
        self._reply(event, FILENAME_PROMPT)
        return True

    def _on_text(self, event: MessageEvent, message: TextMessage) -> bool:
        user_id = event.user_id
        state = self.store.get(user_id)
        if state is None or state.pending is None:
            return False

        if self.cancel_keyword and message.text.strip() == self.cancel_keyword:
            self.store.reset(user_id)
            logger.info("Session for %s cancelled by user", user_id)
            self._reply(event, CANCELLED)
            return True

        if not validate_filename(message.text):
            self._reply(event, INVALID_FILENAME)
            return True

        pending = state.pending
        pending.file_name = normalize_filename(message.text)

        try:
            document_url = self.pipeline.run(pending)
        except PipelineError:
            logger.exception("Completion pipeline failed for %s", user_id)
            return True

        self.store.reset(user_id)
        logger.info("Session for %s completed", user_id)
        self._reply(event, build_success_message(document_url))
        return True

    # ------------------------------------------------------------------
    # Replies
    # ------------------------------------------------------------------

    def _reply(self, event: MessageEvent, text: str) -> None:
        if not event.reply_token:
            logger.warning("No reply token for event %s", event.webhook_event_id)
            return
        try:
            self.line.reply_text(event.reply_token, text)
        except (LineAPIError, httpx.HTTPError):
            logger.exception("Failed to reply to %s", event.user_id)
