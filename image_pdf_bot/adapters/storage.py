"""Google Cloud Storage uploader for converted documents.

WHY: The converted PDF has to live somewhere the user can download it
from by link. A bucket with public read access gives each object a
stable URL without signing.

HOW: Wraps google-cloud-storage. upload() writes the local file to
bucket/object_name with a PDF content type and returns the plain
public URL for that object.

RULES:
- Locator = https://storage.googleapis.com/<bucket>/<object_name>
  (no signed URLs, no expiry)
- The storage client is created lazily on first upload, from the
  service-account JSON when one is configured, otherwise from ADC
- Google API, auth, and local I/O errors are raised as UploadError
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from google.api_core import exceptions as gcloud_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import storage

from image_pdf_bot.config import GCS_PUBLIC_BASE_URL, credentials_path, load_bucket_name
from image_pdf_bot.core.pipeline import UploadError

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


def public_url(bucket_name: str, object_name: str) -> str:
    """Return the unsigned public URL of ``object_name`` in ``bucket_name``."""
    return "{}/{}/{}".format(GCS_PUBLIC_BASE_URL, bucket_name, object_name)


class GCSUploader:
    """Uploads files into one Cloud Storage bucket."""

    def __init__(
        self,
        bucket_name: Optional[str] = None,
        client: Any = None,
        service_account_path: Optional[str] = None,
    ) -> None:
        self.bucket_name = bucket_name or load_bucket_name()
        self._client = client
        self._service_account_path = service_account_path or credentials_path()

    @property
    def client(self) -> Any:
        if self._client is None:
            if self._service_account_path:
                self._client = storage.Client.from_service_account_json(
                    self._service_account_path
                )
            else:
                self._client = storage.Client()
        return self._client

    def upload(self, local_path: Path, object_name: str) -> str:
        """Write ``local_path`` to ``object_name`` and return its public URL."""
        try:
            blob = self.client.bucket(self.bucket_name).blob(object_name)
            blob.upload_from_filename(str(local_path), content_type=PDF_CONTENT_TYPE)
        except (gcloud_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as exc:
            raise UploadError("gs://{}/{}: {}".format(self.bucket_name, object_name, exc))
        except OSError as exc:
            raise UploadError("could not read {}: {}".format(local_path, exc))

        return public_url(self.bucket_name, object_name)
