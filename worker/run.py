"""Temporal Worker entry point.

This worker polls the comparison-queue for workflow and activity tasks.
"""
import asyncio
import logging
import signal

from temporalio.client import Client
from temporalio.worker import Worker

from redline.core.logging import setup_logging
from worker.activities import run_comparison
from worker.config import WorkerSettings
from worker.workflows import ComparisonWorkflow

logger = logging.getLogger("worker")


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    """Install signal handlers for graceful shutdown."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:  # pragma: no cover - Windows
            signal.signal(sig, lambda *_: stop_event.set())


async def run_worker() -> None:
    """Run the Temporal worker."""
    settings = WorkerSettings()

    logger.info("Starting worker: %r", settings)

    client = await Client.connect(
        settings.TEMPORAL_ADDRESS,
        namespace=settings.TEMPORAL_NAMESPACE
    )

    # The comparison activity is async, so no activity executor is needed
    worker = Worker(
        client,
        task_queue=settings.WORKER_TASK_QUEUE,
        workflows=[ComparisonWorkflow],
        activities=[run_comparison],
        max_concurrent_activities=settings.MAX_CONCURRENT_ACTIVITIES,
    )

    # Setup graceful shutdown
    stop_event = asyncio.Event()
    _install_signal_handlers(stop_event)

    logger.info("Worker running, polling for tasks...")
    worker_task = asyncio.create_task(worker.run())

    await stop_event.wait()
    logger.info("Shutdown signal received, stopping worker...")

    await worker.shutdown()
    await asyncio.gather(worker_task, return_exceptions=True)
    logger.info("Worker stopped")


def main() -> None:
    """Main entry point."""
    setup_logging()
    asyncio.run(run_worker())


if __name__ == "__main__":
    main()
