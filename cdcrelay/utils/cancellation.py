"""
Cooperative cancellation for the relay pull loop
"""

import asyncio
import threading
from typing import Optional


class CancellationToken:
    """Thread-safe cancellation flag.

    Can be cancelled from signal handlers or other threads; the pull loop and
    log sources poll it between reads.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation"""
        self._event.set()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    async def sleep(self, delay: float) -> bool:
        """Sleep up to ``delay`` seconds, returning early once cancelled.

        Returns:
            bool: True if cancellation was requested
        """
        step = min(delay, 0.05)
        remaining = delay
        while remaining > 0 and not self._event.is_set():
            await asyncio.sleep(min(step, remaining))
            remaining -= step
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancellation_requested})"


def ensure_token(token: Optional[CancellationToken]) -> CancellationToken:
    return token if token is not None else CancellationToken()
