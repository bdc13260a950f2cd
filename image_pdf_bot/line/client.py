"""HTTP client for the LINE Messaging API.

WHY: The bot needs exactly three things from LINE: send a text reply,
work out where an image's bytes live, and download those bytes. This
module wraps them behind one small client so the handler and converter
never see HTTP details.

HOW: Uses a synchronous httpx.Client (the webhook handler runs in a
worker thread, so async buys nothing). The client carries the channel
access token as a Bearer header for the reply API; content downloads
add the header only for URLs on LINE's own data API host.

RULES:
- Reply: POST {api}/v2/bot/message/reply with replyToken + messages
- Image content hosted by LINE lives at
  {data_api}/v2/bot/message/{messageId}/content
- Externally hosted images use originalContentUrl as-is
- Non-2xx responses raise LineAPIError (status code + body text)
- Network errors propagate as httpx.HTTPError
- Never send the access token to a host other than LINE's data API
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from image_pdf_bot.config import (
    LINE_API_BASE_URL,
    LINE_DATA_API_BASE_URL,
    load_channel_access_token,
)
from image_pdf_bot.line.messages import text_message
from image_pdf_bot.line.models import CONTENT_PROVIDER_EXTERNAL, ImageMessage

_DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)


class LineAPIError(Exception):
    """Raised when the LINE API returns an error response.

    RULES:
    - Always include status_code and message
    - message is the response body text
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"LINE API error {status_code}: {message}")


class LineClient:
    """Synchronous client for the LINE reply and content APIs.

    RULES:
    - channel_access_token defaults to load_channel_access_token()
    - http may be injected (tests pass an httpx.Client with MockTransport)
    - close() releases the connection pool of a client it created itself
    """

    def __init__(
        self,
        channel_access_token: Optional[str] = None,
        api_base_url: Optional[str] = None,
        data_api_base_url: Optional[str] = None,
        http: Optional[httpx.Client] = None,
    ) -> None:
        self._token = channel_access_token or load_channel_access_token()
        self._api_base_url = (api_base_url or LINE_API_BASE_URL).rstrip("/")
        self._data_api_base_url = (data_api_base_url or LINE_DATA_API_BASE_URL).rstrip("/")
        self._owns_http = http is None
        self._http = http or httpx.Client(timeout=_DEFAULT_TIMEOUT)

    def __enter__(self) -> LineClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    # ------------------------------------------------------------------
    # Replies
    # ------------------------------------------------------------------

    def reply(self, reply_token: str, messages: List[Dict[str, Any]]) -> None:
        """Send up to five message objects in reply to one event.

        RULES:
        - A reply token is single-use and expires shortly after delivery
        - Raises LineAPIError on non-2xx responses
        """
        resp = self._http.post(
            f"{self._api_base_url}/v2/bot/message/reply",
            headers=self._auth_headers(),
            json={"replyToken": reply_token, "messages": messages},
        )
        if resp.status_code != 200:
            raise LineAPIError(resp.status_code, resp.text)

    def reply_text(self, reply_token: str, text: str) -> None:
        self.reply(reply_token, [text_message(text)])

    # ------------------------------------------------------------------
    # Image content
    # ------------------------------------------------------------------

    def content_url(self, message: ImageMessage) -> str:
        """Return the URL the image bytes can be downloaded from."""
        if message.content_provider == CONTENT_PROVIDER_EXTERNAL and message.original_content_url:
            return message.original_content_url
        return f"{self._data_api_base_url}/v2/bot/message/{message.id}/content"

    def fetch_content(self, url: str) -> bytes:
        """Download the bytes at ``url``.

        HOW: Adds the Bearer header only when ``url`` is on the LINE data
        API host; external image hosts get an anonymous GET.

        RULES:
        - Follows redirects
        - Raises LineAPIError on non-2xx responses
        """
        headers = {}
        if url.startswith(self._data_api_base_url + "/"):
            headers = self._auth_headers()
        resp = self._http.get(url, headers=headers, follow_redirects=True)
        if resp.status_code != 200:
            raise LineAPIError(resp.status_code, resp.text)
        return resp.content
