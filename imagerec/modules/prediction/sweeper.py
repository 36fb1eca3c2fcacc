import asyncio

from imagerec.modules.prediction.store import ResultStore
from imagerec.utils.logger import get_logger

logger = get_logger(__name__)


class ResultSweeper:
    """Background task that periodically expires old prediction results."""

    def __init__(
        self, store: ResultStore, interval_seconds: float, max_age_seconds: float
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.store = store
        self.interval_seconds = interval_seconds
        self.max_age_seconds = max_age_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="result-sweeper")
        logger.info(
            "Result sweeper started",
            interval_seconds=self.interval_seconds,
            max_age_seconds=self.max_age_seconds,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Result sweeper stopped")

    async def run_once(self) -> int:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, lambda: self.store.sweep(self.max_age_seconds)
        )

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except Exception as e:
                logger.error("Result sweep failed", error=str(e))
