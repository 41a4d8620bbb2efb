"""Periodic WhatsApp session health check."""

import asyncio

from loguru import logger

from jellyzap.channels.supervisor import ConnectionSupervisor


class LivenessMonitor:
    """
    Every interval: if the channel is usable just log it, otherwise ask the
    supervisor to recover. Each tick is independent; there is no backoff.
    """

    def __init__(self, supervisor: ConnectionSupervisor, interval_seconds: float = 60.0):
        self.supervisor = supervisor
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check(self) -> bool:
        """Run one liveness tick. Returns True if a recovery attempt was made."""
        if self.supervisor.is_usable():
            logger.info("WhatsApp client is still connected")
            return False
        logger.warning("WhatsApp client is not connected; reconnecting")
        await self.supervisor.recover()
        return True

    async def run(self) -> None:
        logger.info(f"Liveness monitor started (every {self.interval_seconds:g}s)")
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.check()
            except Exception as e:
                logger.exception(f"Liveness check failed: {e}")

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
