"""Firestore recorder for completed uploads.

WHY: Keeping a record of who converted what (and where it ended up)
lets operators answer support questions without digging through the
bucket.

HOW: Wraps google-cloud-firestore. save() upserts one document per user
in the configured collection, keyed by the LINE user id.

RULES:
- Document id = user_id; each save overwrites the previous record
  for that user (no history)
- created_at is stored as a timezone-aware UTC datetime so Firestore
  keeps it as a native timestamp
- The client is created lazily, from the service-account JSON when one
  is configured, otherwise from ADC
- Google API and auth errors are raised as RecordError
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from google.api_core import exceptions as gcloud_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore

from image_pdf_bot.config import FIRESTORE_COLLECTION, FIRESTORE_PROJECT_ID, credentials_path
from image_pdf_bot.core.pipeline import RecordError
from image_pdf_bot.core.sessions import PendingUpload


def build_record(pending: PendingUpload, document_url: str) -> Dict[str, Any]:
    """Return the Firestore document body for a finalized upload."""
    return {
        "user_id": pending.user_id,
        "image_url": pending.image_url,
        "file_name": pending.file_name,
        "created_at": datetime.fromtimestamp(pending.created_at, tz=timezone.utc),
        "document_url": document_url,
    }


class FirestoreRecorder:
    """Upserts upload records into one Firestore collection."""

    def __init__(
        self,
        collection: str = FIRESTORE_COLLECTION,
        client: Any = None,
        project: Optional[str] = FIRESTORE_PROJECT_ID,
        service_account_path: Optional[str] = None,
    ) -> None:
        self.collection = collection
        self._client = client
        self._project = project
        self._service_account_path = service_account_path or credentials_path()

    @property
    def client(self) -> Any:
        if self._client is None:
            if self._service_account_path:
                self._client = firestore.Client.from_service_account_json(
                    self._service_account_path, project=self._project
                )
            else:
                self._client = firestore.Client(project=self._project)
        return self._client

    def save(self, pending: PendingUpload, document_url: str) -> None:
        record = build_record(pending, document_url)
        try:
            self.client.collection(self.collection).document(pending.user_id).set(record)
        except (gcloud_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as exc:
            raise RecordError("{}/{}: {}".format(self.collection, pending.user_id, exc))
