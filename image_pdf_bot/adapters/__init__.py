"""Adapters for the external services the completion pipeline writes to.

WHY: Conversion, blob storage, and the document database are black
boxes to the bot. Each adapter narrows one of them to a single call and
translates its library's exceptions into the pipeline's error types.

HOW: converter.py renders PDFs with Pillow, storage.py uploads to
Google Cloud Storage, records.py writes to Firestore.

RULES:
- Adapters raise only PipelineError subclasses for expected failures
- Cloud clients are injectable so tests never touch real services
"""
