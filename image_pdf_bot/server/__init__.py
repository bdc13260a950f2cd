"""HTTP server: FastAPI app and the webhook conversation handler.

WHY: The bot has exactly one inbound surface, the LINE webhook. This
package owns that surface and the state machine behind it.

HOW: app.py exposes POST /callback and GET /health; handler.py turns
parsed events into session transitions and replies.

RULES:
- Runnable as: python -m image_pdf_bot (or the image-pdf-bot script)
- Listens on PORT (default 8080)
"""
