"""Abandoned hand cleanup: a background task that forgets idle hands.

A hand is considered stale when:
  1. It is still being recorded and has seen no call for STALE_THRESHOLD
     seconds (default 6 h), or
  2. It is finished (winner confirmed) and idle for COMPLETED_THRESHOLD
     seconds (default 1 h); by then the client has saved it.
"""

from __future__ import annotations

import asyncio
import logging
import time

from handflow import hand_manager

logger = logging.getLogger(__name__)

# How often the cleanup loop runs (seconds).  Default: every 10 minutes.
CLEANUP_INTERVAL: float = 10 * 60

# Inactivity threshold before an unfinished hand is dropped (seconds).
STALE_THRESHOLD: float = 6 * 60 * 60  # 6 hours

# Inactivity threshold before a finished hand is dropped (seconds).
COMPLETED_THRESHOLD: float = 60 * 60  # 1 hour


async def cleanup_stale_hands() -> dict[str, list[str]]:
    """Discard every hand idle past its threshold.

    The result lists the codes under "deleted" and the surviving codes
    under "kept".
    """
    now = time.time()
    deleted: list[str] = []
    kept: list[str] = []

    for session in hand_manager.list_sessions():
        try:
            age = now - session.last_activity
            threshold = COMPLETED_THRESHOLD if session.finished else STALE_THRESHOLD
            if age >= threshold:
                await hand_manager.discard_hand(session.code)
                logger.info(
                    "Cleaned up hand %s (idle=%.1fh, finished=%s)",
                    session.code,
                    age / 3600,
                    session.finished,
                )
                deleted.append(session.code)
            else:
                kept.append(session.code)
        except ValueError:
            # Discarded by a client while we were scanning
            logger.debug("Hand %s already gone", session.code)
        except Exception:
            logger.exception("Error checking hand %s for cleanup", session.code)
            kept.append(session.code)

    return {"deleted": deleted, "kept": kept}


class HandCleaner:
    """Background asyncio task that periodically removes stale hands."""

    def __init__(self) -> None:
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())
            logger.info("Hand cleaner started (interval=%ds)", int(CLEANUP_INTERVAL))

    def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            logger.info("Hand cleaner stopped")

    async def _loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(CLEANUP_INTERVAL)
                try:
                    removed = (await cleanup_stale_hands())["deleted"]
                    if removed:
                        logger.info("Hand cleaner dropped %s", ", ".join(removed))
                    else:
                        logger.debug("Hand cleaner found no idle hands")
                except Exception:
                    logger.exception("Hand cleaner pass failed")
        except asyncio.CancelledError:
            pass


# Started and stopped by the app lifespan
hand_cleaner = HandCleaner()
