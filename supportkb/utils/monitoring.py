"""
Monitoring utilities for ingestion job tracking.
"""

from collections import defaultdict
import time
import asyncio
import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)

class ProcessingMonitor:
    """Times named tasks and keeps running duration aggregates."""

    def __init__(self):
        self.start_times: Dict[str, float] = {}
        self.outcomes = defaultdict(int)
        self.active_tasks = 0
        self.completed_tasks = 0
        self.total_duration = 0.0
        self.max_duration = 0.0
        self.min_duration: Optional[float] = None
        self._lock = asyncio.Lock()

    async def start_task(self, task_name: str):
        """Record task start time."""
        async with self._lock:
            self.start_times[task_name] = time.time()
            self.active_tasks += 1
            logger.info(
                f"Started processing {task_name}. "
                f"Active tasks: {self.active_tasks}"
            )

    async def end_task(self, task_name: str, outcome: str = "done"):
        """Record task completion and fold its duration into the aggregates."""
        async with self._lock:
            started = self.start_times.pop(task_name, None)
            self.active_tasks -= 1
            self.outcomes[outcome] += 1
            if started is None:
                logger.warning(f"Finished unknown task {task_name} ({outcome})")
                return

            duration = time.time() - started
            self.completed_tasks += 1
            self.total_duration += duration
            self.max_duration = max(self.max_duration, duration)
            self.min_duration = duration if self.min_duration is None else min(self.min_duration, duration)
            logger.info(
                f"Finished processing {task_name} ({outcome}) in {duration:.2f}s. "
                f"Active tasks: {self.active_tasks}"
            )

    def get_statistics(self) -> Dict:
        """Get processing statistics."""
        if not self.completed_tasks:
            return {
                "total_tasks": 0,
                "active_tasks": self.active_tasks,
                "avg_duration": 0.0,
                "max_duration": 0.0,
                "min_duration": 0.0,
                "outcomes": dict(self.outcomes)
            }

        return {
            "total_tasks": self.completed_tasks,
            "active_tasks": self.active_tasks,
            "avg_duration": self.total_duration / self.completed_tasks,
            "max_duration": self.max_duration,
            "min_duration": self.min_duration,
            "outcomes": dict(self.outcomes)
        }
