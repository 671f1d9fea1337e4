import asyncio
import contextlib
import logging
from typing import Optional

import httpx
from opentelemetry import trace
from uvicorn.logging import TRACE_LOG_LEVEL

from accelerator.queries import UpstreamQueryError, get_current_height
from .height import KnownHeight
from .height_cache import HeightCache

logger = logging.getLogger("uvicorn.error")
tracer = trace.get_tracer(__name__)


class HeightPoller:
    """
    Poll the upstream ``/blockchain`` endpoint and feed the observed height
    into a :class:`HeightCache`.

    Every tick dispatches a check in its own task. A tick that fires while the
    previous fetch is still outstanding is skipped rather than queued, so at
    most one height request is in flight.
    """

    def __init__(self, client: httpx.AsyncClient, server: str, cache: HeightCache):
        self._client = client
        self._server = server
        self._cache = cache
        self._is_fetching = False
        self._timer: Optional[asyncio.Task] = None
        self._checks: set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def is_fetching(self) -> bool:
        return self._is_fetching

    def start(self, interval_ms: int) -> None:
        if self.is_running:
            logger.debug("[HeightCheck] Height check already running, skipping start")
            return

        logger.info(f"[HeightCheck] Starting height check every {interval_ms}ms")
        self._timer = asyncio.create_task(
            self._run_timer(interval_ms / 1000), name="height-check-timer"
        )

    async def stop(self) -> None:
        logger.info("[HeightCheck] Stopping height check")
        timer, self._timer = self._timer, None
        if timer is None:
            logger.log(
                TRACE_LOG_LEVEL, "[HeightCheck] Height check is not running, skipping stop"
            )
            return

        pending = [timer, *self._checks]
        for task in pending:
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def check_height(self) -> None:
        if self._is_fetching:
            logger.log(TRACE_LOG_LEVEL, "[HeightCheck] Skipping height check, already fetching")
            return

        self._is_fetching = True
        try:
            with tracer.start_as_current_span("height_check") as span:
                try:
                    height = await get_current_height(self._client, self._server)
                except UpstreamQueryError as e:
                    logger.error(
                        f"[HeightCheck] Failed to retrieve current height, resetting height and cache: {e}"
                    )
                    span.set_attribute("height_check.error", str(e))
                    self._cache.reset()
                    return

                span.set_attribute("height_check.height", str(height))
                self._cache.update_height(KnownHeight(height))
        finally:
            self._is_fetching = False
            logger.log(TRACE_LOG_LEVEL, "[HeightCheck] Height check complete")

    def _tick(self) -> None:
        if self._is_fetching:
            logger.log(TRACE_LOG_LEVEL, "[HeightCheck] Skipping height check, already fetching")
            return
        task = asyncio.create_task(self.check_height(), name="height-check")
        self._checks.add(task)
        task.add_done_callback(self._checks.discard)

    async def _run_timer(self, interval_s: float) -> None:
        while True:
            await asyncio.sleep(interval_s)
            self._tick()
