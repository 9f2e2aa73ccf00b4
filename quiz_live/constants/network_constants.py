"""Network configuration constants for the live session server."""

import os

DEFAULT_HOST: str = os.getenv("QUIZ_LIVE_HOST", "0.0.0.0")
DEFAULT_PORT: int = int(os.getenv("QUIZ_LIVE_PORT", "8000"))
WEBSOCKET_PATH: str = "/ws"
