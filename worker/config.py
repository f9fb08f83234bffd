"""Worker configuration.

Environment-based configuration for the Temporal worker.
"""
import os


class WorkerSettings:
    """Worker configuration from environment variables."""

    def __init__(self):
        # Temporal configuration
        self.TEMPORAL_ADDRESS = os.getenv("TEMPORAL_ADDRESS", "temporal:7233")
        self.TEMPORAL_NAMESPACE = os.getenv("TEMPORAL_NAMESPACE", "default")
        self.WORKER_TASK_QUEUE = os.getenv("WORKER_TASK_QUEUE", "comparison-queue")

        # Comparison runs hosted concurrently by this worker
        self.MAX_CONCURRENT_ACTIVITIES = int(os.getenv("MAX_CONCURRENT_ACTIVITIES", "4"))

    def __repr__(self):
        return (
            f"WorkerSettings(temporal={self.TEMPORAL_ADDRESS}, "
            f"queue={self.WORKER_TASK_QUEUE}, "
            f"namespace={self.TEMPORAL_NAMESPACE}, "
            f"max_activities={self.MAX_CONCURRENT_ACTIVITIES})"
        )
