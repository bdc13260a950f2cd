"""Completion pipeline: convert → upload → record.

WHY: Once the user has named their image, three external writes have to
happen in order, and any of them can fail. Keeping the sequence in one
place (instead of inside the webhook handler) makes the short-circuit
and no-rollback behaviour explicit and testable with fakes.

HOW: CompletionPipeline holds a converter, an uploader, and a recorder.
run() renders the PDF into a temporary directory, uploads it under the
user's object name, records the finalized PendingUpload with the
resulting locator, and returns the locator.

RULES:
- Steps run in order and stop at the first PipelineError
- Nothing already written is rolled back (an uploaded PDF stays if the
  record write fails; the next attempt overwrites the same object name)
- Object name is always "<user_id>/<user_id>.pdf"
- The temporary directory is removed whether the run succeeds or not
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Protocol

from image_pdf_bot.core.sessions import PendingUpload

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".pdf"


class Converter(Protocol):
    def convert(self, image_url: str, dest_path: Path) -> Path: ...


class Uploader(Protocol):
    def upload(self, local_path: Path, object_name: str) -> str: ...


class Recorder(Protocol):
    def save(self, pending: PendingUpload, document_url: str) -> None: ...


class PipelineError(Exception):
    """Base class for a failed completion step.

    RULES:
    - step names the failed stage ("convert", "upload", "record")
    """

    step = "pipeline"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__("{} failed: {}".format(self.step, message))


class ConversionError(PipelineError):
    """Raised when the image cannot be fetched or rendered as a PDF."""

    step = "convert"


class UploadError(PipelineError):
    """Raised when the PDF cannot be written to blob storage."""

    step = "upload"


class RecordError(PipelineError):
    """Raised when the metadata record cannot be written."""

    step = "record"


def document_filename(user_id: str) -> str:
    return "{}{}".format(user_id, DOCUMENT_SUFFIX)


def object_name_for(user_id: str) -> str:
    """Storage key for a user's document, namespaced by the user id."""
    return "{}/{}".format(user_id, document_filename(user_id))


class CompletionPipeline:
    """Runs the three external writes for an accepted PendingUpload."""

    def __init__(
        self,
        converter: Converter,
        uploader: Uploader,
        recorder: Recorder,
    ) -> None:
        self.converter = converter
        self.uploader = uploader
        self.recorder = recorder

    def run(self, pending: PendingUpload) -> str:
        """Convert, upload, and record ``pending``; return the locator.

        Raises the PipelineError subclass of the first step that fails.
        """
        user_id = pending.user_id
        with tempfile.TemporaryDirectory(prefix="image_pdf_bot_") as tmp:
            pdf_path = Path(tmp) / document_filename(user_id)

            self.converter.convert(pending.image_url, pdf_path)
            logger.info("Converted image for %s", user_id)

            document_url = self.uploader.upload(pdf_path, object_name_for(user_id))
            logger.info("Uploaded document for %s to %s", user_id, document_url)

        self.recorder.save(pending, document_url)
        logger.info("Recorded upload for %s as %r", user_id, pending.file_name)
        return document_url
