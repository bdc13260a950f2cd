"""Core conversation logic — filename rules, sessions, completion pipeline.

WHY: These pieces hold the bot's actual behaviour and have no knowledge
of LINE, Google Cloud, or HTTP, so they can be tested with plain fakes.

HOW: filename.py validates names, sessions.py stores per-user state,
pipeline.py sequences the convert → upload → record steps.
"""

from image_pdf_bot.core.filename import normalize_filename, validate_filename
from image_pdf_bot.core.pipeline import (
    CompletionPipeline,
    ConversionError,
    PipelineError,
    RecordError,
    UploadError,
    object_name_for,
)
from image_pdf_bot.core.sessions import (
    PendingUpload,
    SessionPhase,
    SessionState,
    SessionStore,
)
