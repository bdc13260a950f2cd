"""FastAPI application exposing the LINE webhook and a health check.

WHY: LINE delivers user messages by POSTing signed JSON batches to a
public callback URL. FastAPI gives us request handling, OpenAPI docs,
and a lifespan hook for periodic session cleanup.

HOW: POST /callback reads the raw body, verifies the X-Line-Signature
header, parses the events, and hands them to the WebhookHandler in the
threadpool (the handler and its collaborators are synchronous). The
handler and parser are built lazily from configuration and injected via
FastAPI dependencies, so tests override them with
app.dependency_overrides.

RULES:
- Bad signature or malformed body → 400, nothing is processed, no reply
- Every accepted delivery → 200, even if individual events failed
- The session store is a process-wide singleton created at import
- Expired sessions are purged every 5 minutes by a lifespan task
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Annotated, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from image_pdf_bot import __version__
from image_pdf_bot.config import HOST, LOG_LEVEL, PORT, SESSION_TTL_SECONDS, load_channel_secret
from image_pdf_bot.core.pipeline import CompletionPipeline
from image_pdf_bot.core.sessions import SessionStore
from image_pdf_bot.line.client import LineClient
from image_pdf_bot.line.webhook import InvalidSignatureError, WebhookParseError, WebhookParser
from image_pdf_bot.server.handler import WebhookHandler
from image_pdf_bot.server.models import ErrorResponse, HealthResponse, WebhookResponse

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_S = 300

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

session_store = SessionStore(ttl_seconds=SESSION_TTL_SECONDS)

_parser = None  # type: Optional[WebhookParser]
_handler = None  # type: Optional[WebhookHandler]


def build_handler(store: SessionStore) -> WebhookHandler:
    """Wire the production collaborators into a WebhookHandler.

    RULES:
    - Raises ValueError if LINE or GCS configuration is missing
    - Cloud adapters are imported here so the HTTP layer can be imported
      (and tested) without touching Google client libraries
    """
    from image_pdf_bot.adapters.converter import PdfConverter
    from image_pdf_bot.adapters.records import FirestoreRecorder
    from image_pdf_bot.adapters.storage import GCSUploader

    line = LineClient()
    pipeline = CompletionPipeline(
        converter=PdfConverter(fetch=line.fetch_content),
        uploader=GCSUploader(),
        recorder=FirestoreRecorder(),
    )
    return WebhookHandler(line=line, store=store, pipeline=pipeline)


def get_parser() -> WebhookParser:
    global _parser
    if _parser is None:
        _parser = WebhookParser(load_channel_secret())
    return _parser


def get_handler() -> WebhookHandler:
    global _handler
    if _handler is None:
        _handler = build_handler(session_store)
    return _handler


async def _periodic_cleanup() -> None:
    """Purge expired sessions every CLEANUP_INTERVAL_S seconds."""
    while True:
        await asyncio.sleep(CLEANUP_INTERVAL_S)
        removed = session_store.cleanup_expired()
        if removed:
            logger.info("Purged %d expired session(s)", removed)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup; cancel it and close clients on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    if _handler is not None:
        _handler.line.close()


app = FastAPI(
    lifespan=lifespan,
    title="Image to PDF LINE Bot",
    description=(
        "Webhook endpoint for a LINE bot that converts a user's image into "
        "a single-page PDF, stores it in Google Cloud Storage, and replies "
        "with the download link."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Endpoints: Webhook
# ---------------------------------------------------------------------------


@app.post(
    "/callback",
    response_model=WebhookResponse,
    tags=["webhook"],
    summary="Receive LINE webhook events",
    description=(
        "Endpoint registered as the channel's webhook URL. Verifies the "
        "X-Line-Signature header against the raw body, then processes each "
        "event in delivery order."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Invalid signature or malformed payload"},
    },
)
async def callback(
    request: Request,
    x_line_signature: Annotated[Optional[str], Header(description="Base64 HMAC-SHA256 of the body.")] = None,
    parser: WebhookParser = Depends(get_parser),
    handler: WebhookHandler = Depends(get_handler),
) -> WebhookResponse:
    body = await request.body()

    try:
        events = parser.parse(body, x_line_signature)
    except InvalidSignatureError:
        logger.warning("Rejected webhook delivery with invalid signature")
        raise HTTPException(status_code=400, detail="Invalid signature")
    except WebhookParseError as exc:
        logger.warning("Rejected malformed webhook delivery: %s", exc)
        raise HTTPException(status_code=400, detail="Malformed payload: {}".format(exc))

    handled = await run_in_threadpool(handler.handle_events, events)
    return WebhookResponse(status="ok", events=len(events), handled=handled)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__, sessions=len(session_store))


def run_server() -> None:
    """Entry point for the image-pdf-bot console script."""
    import uvicorn

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    logger.info("Starting webhook server on %s:%d", HOST, PORT)
    uvicorn.run(app, host=HOST, port=PORT)
