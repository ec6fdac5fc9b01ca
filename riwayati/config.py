"""Runtime configuration for the Riwayati service.

All settings are read from environment variables once, at import time.
Callers that need a different value (tests, for example) pass it
explicitly to the function that uses it instead of patching these
constants.
"""

from __future__ import annotations

import os
from typing import Optional

DB_PATH = os.environ.get("RIWAYATI_DB", "novels.db")

LOG_LEVEL = os.environ.get("RIWAYATI_LOG_LEVEL", "INFO").upper()
LOG_DIR: Optional[str] = os.environ.get("RIWAYATI_LOG_DIR") or None

HOST = os.environ.get("RIWAYATI_HOST", "0.0.0.0")
PORT = int(os.environ.get("RIWAYATI_PORT", "3000"))

GEMINI_API_KEY: Optional[str] = os.environ.get("GEMINI_API_KEY") or None
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-3-flash-preview")
GEMINI_TIMEOUT = float(os.environ.get("GEMINI_TIMEOUT", "60"))
