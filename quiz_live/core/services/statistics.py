"""Default statistics hook invoked after each completed attempt."""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class LoggingStatisticsHook:
    """Records completed attempts in the log only.

    Deployments with a statistics service pass their own hook to the
    coordinator.
    """

    async def record_attempt(self, user_id: int, summary: dict[str, Any]) -> None:
        logger.info(
            "Attempt %s completed by user %s: score=%s correct=%s/%s",
            summary.get("attempt_id"),
            user_id,
            summary.get("score"),
            summary.get("correct"),
            summary.get("total_questions"),
        )
