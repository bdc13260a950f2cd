"""Package entry point for ``python -m image_pdf_bot``.

WHY: Operators start the webhook server with ``python -m image_pdf_bot``
without needing the console script on PATH.

HOW: Delegates to server.app.run_server(), which configures logging and
runs uvicorn on HOST:PORT.
"""

if __name__ == "__main__":
    from image_pdf_bot.server.app import run_server
    run_server()
