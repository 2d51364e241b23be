"""EcoPulse Hub - Core orchestration and module management."""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from ecopulse.hub.metrics import MetricsSink
from ecopulse.shared.reading_store import ReadingStore

logger = logging.getLogger(__name__)

SHUTDOWN_GRACE_SECONDS = 30.0


class Module:
    """Base class for hub modules."""

    def __init__(self, module_id: str, hub: "ForecastHub"):
        self.module_id = module_id
        self.hub = hub
        self.logger = logging.getLogger(f"module.{module_id}")

    async def initialize(self):
        """Initialize module resources."""
        pass

    async def shutdown(self):
        """Cleanup module resources."""
        pass


class ForecastHub:
    """Owns the reading store, the metrics sink, registered modules and their recurring tasks."""

    def __init__(self, store: ReadingStore, metrics: MetricsSink):
        """Initialize hub.

        Args:
            store: Reading store shared by all modules
            metrics: Metrics sink injected into modules
        """
        self.store = store
        self.metrics = metrics
        self.modules: dict[str, Module] = {}
        self.module_status: dict[str, str] = {}  # module_id -> "registered" | "running" | "failed"
        self.tasks: set[asyncio.Task] = set()
        self._running = False
        self._stop_event = asyncio.Event()
        self._start_time: datetime | None = None
        self.logger = logging.getLogger("hub")

    async def initialize(self):
        """Initialize hub and store."""
        self.logger.info("Initializing EcoPulse Hub...")
        await self.store.initialize()
        self._running = True
        self._stop_event.clear()
        self._start_time = datetime.now(tz=UTC)
        self.logger.info("Hub initialized successfully")

    def is_running(self) -> bool:
        return self._running

    def get_uptime_seconds(self) -> float:
        if self._start_time is None:
            return 0.0
        return (datetime.now(tz=UTC) - self._start_time).total_seconds()

    async def shutdown(self, grace_seconds: float = SHUTDOWN_GRACE_SECONDS):
        """Stop recurring tasks, shut down modules, close the store.

        Sleeping tasks wake at once. A task in the middle of a run gets
        ``grace_seconds`` to finish the unit of work in flight before it is
        cancelled. The forecast cycle still completes the building in flight
        when cancelled, so the wait below can outlast the grace.
        """
        self.logger.info("Shutting down EcoPulse Hub...")
        self._running = False
        self._stop_event.set()

        if self.tasks:
            _, pending = await asyncio.wait(set(self.tasks), timeout=grace_seconds)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        for module_id, module in self.modules.items():
            self.logger.info(f"Shutting down module: {module_id}")
            try:
                await module.shutdown()
            except Exception as e:
                self.logger.error(f"Error shutting down module {module_id}: {e}")

        try:
            await self.store.close()
        except Exception as e:
            self.logger.error(f"Error closing reading store: {e}")
        self.logger.info("Hub shutdown complete")

    def register_module(self, module: Module):
        """Register a module with the hub.

        Args:
            module: Module instance to register
        """
        if module.module_id in self.modules:
            raise ValueError(f"Module {module.module_id} already registered")

        self.modules[module.module_id] = module
        self.module_status[module.module_id] = "registered"
        self.logger.info(f"Registered module: {module.module_id}")

    def mark_module_running(self, module_id: str):
        self.module_status[module_id] = "running"

    def mark_module_failed(self, module_id: str):
        self.module_status[module_id] = "failed"

    def get_module(self, module_id: str) -> Module | None:
        return self.modules.get(module_id)

    async def wait_for_shutdown(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True early if shutdown was requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
            return True
        except TimeoutError:
            return False

    async def schedule_task(
        self, task_id: str, coro: Callable, interval: timedelta | None = None, run_immediately: bool = True
    ):
        """Schedule a task to run periodically.

        Errors are logged and the loop continues on its normal cadence; a
        failed run is never retried before the next interval.

        Args:
            task_id: Unique task identifier
            coro: Async coroutine function to run
            interval: Run interval (None = run once)
            run_immediately: If True, run immediately then schedule
        """

        async def run_once():
            try:
                await coro()
            except asyncio.CancelledError:
                raise
            except Exception:
                self.logger.exception(f"Task {task_id} error")

        async def run_task():
            self.logger.info(f"Task {task_id}: starting")

            if run_immediately:
                await run_once()

            if interval:
                while self._running:
                    if await self.wait_for_shutdown(interval.total_seconds()):
                        break
                    await run_once()

            self.logger.info(f"Task {task_id}: stopped")

        task = asyncio.create_task(run_task(), name=task_id)
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)

        self.logger.info(f"Scheduled task: {task_id}" + (f" (interval: {interval})" if interval else " (one-time)"))

    def status(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "uptime_seconds": round(self.get_uptime_seconds(), 1),
            "modules": dict(self.module_status),
            "tasks": sorted(t.get_name() for t in self.tasks),
        }
