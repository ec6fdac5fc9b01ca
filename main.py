"""Entry point for serving the API.

This module exposes the FastAPI application instance defined in
``riwayati.main``. ASGI hosts that look for an object called ``app`` in
a top level ``main.py`` can mount it directly; running the file starts
a Uvicorn server bound to ``RIWAYATI_HOST``/``RIWAYATI_PORT``.

Usage:
    python main.py
    uvicorn main:app --port 3000
"""

from riwayati import config
from riwayati.logging_config import setup_logging
from riwayati.main import app as app  # noqa: F401  re-export FastAPI instance

setup_logging(config.LOG_LEVEL, config.LOG_DIR)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)
