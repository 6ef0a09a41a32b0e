"""
Task aggregation: deduplication, priority conflict resolution and ordering.
"""

import logging
import threading
from datetime import date
from typing import Dict, Iterable, List, Tuple

from schedule_engine.models import Task, TaskType

logger = logging.getLogger(__name__)

DedupKey = Tuple[str, ...]


class TaskAggregator:
    """
    Merges candidate tasks from every source into one ordered list.

    Key Principles:
    1. Tasks sharing a dedup key collapse to one
    2. The higher priority task wins a collision; on a tie the later one wins
    3. Output is ordered by priority (high first), then scheduled time

    Merging holds an exclusive lock, so per-property workers must hand their
    slices over rather than share the map.
    """

    def __init__(self, day: date):
        self.day = day
        self._lock = threading.Lock()
        self._tasks: Dict[DedupKey, Task] = {}
        self._received = 0

    def dedup_key(self, task: Task) -> DedupKey:
        """
        Identity of "the same task" across sources.

        Plant checks: (plant room, time, date).
        Services: (target, service kind, time, date), where the target is the
        unit, or the equipment for equipment maintenance.
        """
        day = self.day.isoformat()
        if task.type is TaskType.PLANT_CHECK:
            return ('plant', task.plant_room_id or '', task.scheduled_time, day)
        target = task.equipment_id or task.unit_id or ''
        return ('svc', target, task.service_type or '', task.scheduled_time, day)

    def add(self, task: Task):
        """Add one task, resolving a collision by priority."""
        key = self.dedup_key(task)
        with self._lock:
            self._received += 1
            existing = self._tasks.get(key)
            if existing is None:
                self._tasks[key] = task
                return
            if task.priority.rank >= existing.priority.rank:
                self._tasks[key] = task
                logger.debug(f"Task {task.id} replaced {existing.id} on key {key}")
            else:
                logger.debug(f"Task {task.id} dropped in favour of {existing.id} on key {key}")

    def extend(self, tasks: Iterable[Task]):
        """Add several tasks in order."""
        for task in tasks:
            self.add(task)

    def results(self) -> List[Task]:
        """Deduplicated tasks sorted by priority then scheduled time."""
        with self._lock:
            tasks = list(self._tasks.values())
        # sorted() is stable, so ties keep insertion order
        return sorted(tasks, key=lambda t: (t.priority.sort_order, t.scheduled_time or ''))

    @property
    def received_count(self) -> int:
        with self._lock:
            return self._received

    @property
    def duplicate_count(self) -> int:
        """Tasks that collapsed into an existing key."""
        with self._lock:
            return self._received - len(self._tasks)

    def clear(self):
        """Drop all collected tasks."""
        with self._lock:
            self._tasks.clear()
            self._received = 0


def merge_tasks(tasks: Iterable[Task], day: date) -> List[Task]:
    """
    One-shot merge of a task stream.

    Args:
        tasks: Candidate tasks in encounter order
        day: Date the tasks were generated for

    Returns:
        Deduplicated, ordered task list
    """
    aggregator = TaskAggregator(day)
    aggregator.extend(tasks)
    return aggregator.results()
