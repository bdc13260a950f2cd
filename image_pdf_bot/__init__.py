"""Image-to-PDF chat bot — LINE webhook integration.

WHY: Users want to turn a photo taken on their phone into a PDF they can
share by link, without leaving the chat app. This package implements a
LINE bot that collects an image, asks for a file name, converts the image
to a single-page PDF, uploads it to Google Cloud Storage, records the
upload in Firestore, and replies with the download URL.

HOW: Four layers — line (webhook parsing + reply API), core (filename
validation, per-user session store, completion pipeline), adapters
(Pillow conversion, GCS upload, Firestore record), server (FastAPI app
and the webhook handler state machine). Each layer is independently
testable with fakes for the layer below.

RULES:
- The handler only talks to collaborators through narrow adapter calls
- Session state is in-memory and lost on restart
- One reply per processed event, addressed by the event's reply token
"""

__version__ = "0.1.0"
