"""
Cooperative cancellation for benchmark sessions.
"""

import asyncio


class CancellationToken:
    """Flag checked by phase loops at every iteration boundary.

    Sleeping through the token wakes up as soon as it is cancelled, so idle
    phases and inter-run pauses stop promptly.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """Sleep for ``seconds`` or until cancelled.

        Args:
            seconds: Time to wait

        Returns:
            True if the wait ended because of cancellation
        """
        if self.cancelled:
            return True
        if seconds <= 0:
            await asyncio.sleep(0)
            return self.cancelled

        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True
