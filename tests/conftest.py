"""Shared test fixtures for the image_pdf_bot test suite.

WHY: The handler, pipeline, and HTTP tests all need the same stand-ins
for LINE, Cloud Storage, and Firestore. Centralizing the fakes here
keeps each test module focused on behaviour.

HOW: Hand-written fakes record every call so tests can assert on exactly
what was sent where. The storage and Firestore fakes mimic only the
client methods the adapters use (bucket().blob().upload_from_filename()
and collection().document().set()), so the real GCSUploader and
FirestoreRecorder run unchanged on top of them.

RULES:
- No test talks to LINE or Google Cloud
- Time is controlled through FakeClock, never time.sleep()
- Event factories build LINE-shaped dataclasses, not raw dicts
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest
from PIL import Image

from image_pdf_bot.adapters.records import FirestoreRecorder
from image_pdf_bot.adapters.storage import GCSUploader
from image_pdf_bot.core.pipeline import CompletionPipeline
from image_pdf_bot.core.sessions import SessionStore
from image_pdf_bot.line.client import LineAPIError
from image_pdf_bot.line.models import (
    ImageMessage,
    MessageEvent,
    OtherMessage,
    TextMessage,
)
from image_pdf_bot.server.handler import WebhookHandler

TEST_BUCKET = "test-bucket"
TEST_COLLECTION = "images"
START_TIME = 1_700_000_000.0


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable clock whose time only moves when a test advances it."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeLine:
    """Records replies instead of calling the LINE reply API."""

    def __init__(self) -> None:
        self.replies: List[Tuple[str, str]] = []
        self.fail_replies = False
        self.closed = False

    def reply_text(self, reply_token: str, text: str) -> None:
        if self.fail_replies:
            raise LineAPIError(400, "Invalid reply token")
        self.replies.append((reply_token, text))

    def content_url(self, message: ImageMessage) -> str:
        return "https://api-data.line.me/v2/bot/message/{}/content".format(message.id)

    def close(self) -> None:
        self.closed = True


class FakeConverter:
    """Writes a placeholder PDF and records which image it was asked for."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.calls: List[Tuple[str, Path]] = []
        self.error = error

    def convert(self, image_url: str, dest_path: Path) -> Path:
        self.calls.append((image_url, dest_path))
        if self.error is not None:
            raise self.error
        Path(dest_path).write_bytes(b"%PDF-1.4 fake")
        return Path(dest_path)


class FakeBlob:
    def __init__(self, bucket: FakeBucket, name: str) -> None:
        self.bucket = bucket
        self.name = name

    def upload_from_filename(self, filename: str, content_type: Optional[str] = None) -> None:
        client = self.bucket.client
        if client.error is not None:
            raise client.error
        client.uploads.append({
            "bucket": self.bucket.name,
            "name": self.name,
            "content": Path(filename).read_bytes(),
            "content_type": content_type,
        })


class FakeBucket:
    def __init__(self, client: FakeStorageClient, name: str) -> None:
        self.client = client
        self.name = name

    def blob(self, name: str) -> FakeBlob:
        return FakeBlob(self, name)


class FakeStorageClient:
    """Subset of google.cloud.storage.Client used by GCSUploader."""

    def __init__(self) -> None:
        self.uploads: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None

    def bucket(self, name: str) -> FakeBucket:
        return FakeBucket(self, name)


class FakeDocument:
    def __init__(self, client: FakeFirestoreClient, collection: str, doc_id: str) -> None:
        self.client = client
        self.collection = collection
        self.id = doc_id

    def set(self, data: Dict[str, Any]) -> None:
        if self.client.error is not None:
            raise self.client.error
        self.client.writes.append((self.collection, self.id, dict(data)))
        self.client.documents[(self.collection, self.id)] = dict(data)


class FakeCollection:
    def __init__(self, client: FakeFirestoreClient, name: str) -> None:
        self.client = client
        self.name = name

    def document(self, doc_id: str) -> FakeDocument:
        return FakeDocument(self.client, self.name, doc_id)


class FakeFirestoreClient:
    """Subset of google.cloud.firestore.Client used by FirestoreRecorder."""

    def __init__(self) -> None:
        self.writes: List[Tuple[str, str, Dict[str, Any]]] = []
        self.documents: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.error: Optional[Exception] = None

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)


# ---------------------------------------------------------------------------
# Fixtures: collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_line():
    return FakeLine()


@pytest.fixture
def converter():
    return FakeConverter()


@pytest.fixture
def converter_factory():
    """FakeConverter class, for tests that need a failing converter."""
    return FakeConverter


@pytest.fixture
def storage_client():
    return FakeStorageClient()


@pytest.fixture
def firestore_client():
    return FakeFirestoreClient()


@pytest.fixture
def uploader(storage_client):
    return GCSUploader(bucket_name=TEST_BUCKET, client=storage_client)


@pytest.fixture
def recorder(firestore_client):
    return FirestoreRecorder(collection=TEST_COLLECTION, client=firestore_client)


@pytest.fixture
def pipeline(converter, uploader, recorder):
    return CompletionPipeline(converter=converter, uploader=uploader, recorder=recorder)


@pytest.fixture
def store(clock):
    return SessionStore(ttl_seconds=3600, clock=clock)


@pytest.fixture
def handler(fake_line, store, pipeline, clock):
    return WebhookHandler(
        line=fake_line,
        store=store,
        pipeline=pipeline,
        cancel_keyword="キャンセル",
        clock=clock,
    )


# ---------------------------------------------------------------------------
# Fixtures: event factories
# ---------------------------------------------------------------------------


@pytest.fixture
def image_event():
    """Factory for an image message event."""

    def _make(user_id="U1", message_id="m-img-1", reply_token="rt-img"):
        return MessageEvent(
            reply_token=reply_token,
            user_id=user_id,
            timestamp=1700000000000,
            message=ImageMessage(id=message_id),
            webhook_event_id="ev-" + message_id,
        )

    return _make


@pytest.fixture
def text_event():
    """Factory for a text message event."""

    def _make(text, user_id="U1", message_id="m-txt-1", reply_token="rt-txt"):
        return MessageEvent(
            reply_token=reply_token,
            user_id=user_id,
            timestamp=1700000001000,
            message=TextMessage(id=message_id, text=text),
            webhook_event_id="ev-" + message_id,
        )

    return _make


@pytest.fixture
def sticker_event():
    def _make(user_id="U1"):
        return MessageEvent(
            reply_token="rt-sticker",
            user_id=user_id,
            timestamp=1700000002000,
            message=OtherMessage(id="m-sticker", type="sticker"),
        )

    return _make


# ---------------------------------------------------------------------------
# Fixtures: image data
# ---------------------------------------------------------------------------


def make_image_bytes(size=(400, 200), color="red", fmt="PNG", mode="RGB") -> bytes:
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    """A 400 × 200 solid red PNG."""
    return make_image_bytes()


@pytest.fixture
def image_bytes():
    """Factory for encoded test images of a given size, colour, and format."""
    return make_image_bytes
