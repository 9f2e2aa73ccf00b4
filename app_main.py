"""Application entry point for the QuizLive session server."""

from __future__ import annotations

import os
from pathlib import Path

from quiz_live.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_live.core.seed_loader import load_seed_file
from quiz_live.core.services.memory_store import InMemoryStore
from quiz_live.core.session_coordinator import SessionCoordinator
from quiz_live.server.api_server import run_api_server
from quiz_live.server.auth_tokens import JwtTokenVerifier
from quiz_live.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging, load seed data, and serve the API."""
    logger = configure_logging()
    logger.info("Starting QuizLive session server...")

    store = InMemoryStore()
    seed_file = os.getenv("QUIZ_LIVE_SEED_FILE")
    if seed_file:
        seed = load_seed_file(Path(seed_file), store)
        logger.info(
            "Loaded %d quizzes, %d students and %d assignments from %s",
            len(seed.quizzes),
            len(seed.students),
            len(seed.assignments),
            seed_file,
        )

    coordinator = SessionCoordinator(store, store)
    logger.info("WebSocket endpoint available at ws://%s:%s/ws", DEFAULT_HOST, DEFAULT_PORT)
    run_api_server(coordinator, JwtTokenVerifier(), host=DEFAULT_HOST, port=DEFAULT_PORT)


if __name__ == "__main__":
    main()
