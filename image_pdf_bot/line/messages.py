"""Reply texts and LINE message object builders.

WHY: Everything the bot says to a user lives here, so wording can be
changed without touching the state machine, and tests can assert on
the exact constants.

RULES:
- All builders return LINE message objects (dicts) or plain str
- Reply wording is Japanese, matching the bot's audience
- LINE rejects text messages longer than 5000 characters
"""

from __future__ import annotations

from typing import Any, Dict

MAX_TEXT_LENGTH = 5000

FILENAME_PROMPT = "画像を受け取りました。ファイル名を入力してください。"
INVALID_FILENAME = "無効なファイル名です。もう一度入力してください。"
CANCELLED = "キャンセルしました。もう一度画像を送信してください。"
CONVERTED_PREFIX = "PDFに変換しました。"


def build_success_message(document_url: str) -> str:
    """Reply sent once the PDF is uploaded and recorded."""
    return "{}{}".format(CONVERTED_PREFIX, document_url)


def text_message(text: str) -> Dict[str, Any]:
    """Wrap ``text`` in a LINE text message object, truncating if needed."""
    if len(text) > MAX_TEXT_LENGTH:
        text = text[: MAX_TEXT_LENGTH - 1] + "…"
    return {"type": "text", "text": text}
