"""
Client side task state.

The merge helpers are pure: they take the current list and return a new
one. TaskStateStore swaps its list reference in a single assignment, so a
reader on the event loop sees either the previous list or the new one.
"""
from datetime import datetime
from typing import FrozenSet, List, Optional, Set

from models.task import Task


def prepend_task(tasks: List[Task], task: Task) -> List[Task]:
    """New task goes first; an existing entry with the same id is dropped"""
    return [task] + [t for t in tasks if t.id != task.id]


def replace_task(tasks: List[Task], task: Task) -> List[Task]:
    """Swap the entry with task.id in place; the list is unchanged when it is absent"""
    return [task if t.id == task.id else t for t in tasks]


def remove_task(tasks: List[Task], task_id: str) -> List[Task]:
    return [t for t in tasks if t.id != task_id]


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def merge_enhanced(local: Task, polled: Task) -> Task:
    """
    Combine a polled row with the local one.

    The polled row wins unless the local row was updated after it, in which
    case only the enhancement is taken so a newer completion toggle survives.
    """
    local_at = _parse_timestamp(local.updated_at)
    polled_at = _parse_timestamp(polled.updated_at)
    if local_at is not None and polled_at is not None and local_at > polled_at:
        return local.model_copy(update={"enhanced_title": polled.enhanced_title})
    return polled


class TaskStateStore:
    """Ordered task list of the current user plus the ids awaiting an enhancement"""

    def __init__(self, tasks: Optional[List[Task]] = None):
        self._tasks: List[Task] = list(tasks or [])
        self._in_flight: Set[str] = set()

    @property
    def tasks(self) -> List[Task]:
        return list(self._tasks)

    @property
    def in_flight(self) -> FrozenSet[str]:
        return frozenset(self._in_flight)

    def get(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def is_enhancing(self, task_id: str) -> bool:
        return task_id in self._in_flight

    def set_tasks(self, tasks: List[Task]) -> None:
        self._tasks = list(tasks)

    def add(self, task: Task) -> None:
        self._tasks = prepend_task(self._tasks, task)

    def update(self, task: Task) -> None:
        self._tasks = replace_task(self._tasks, task)

    def remove(self, task_id: str) -> None:
        self._tasks = remove_task(self._tasks, task_id)

    def merge_enhancement(self, task: Task) -> bool:
        """Apply a polled task; returns False when the task is no longer shown locally"""
        local = self.get(task.id)
        if local is None:
            return False
        self._tasks = replace_task(self._tasks, merge_enhanced(local, task))
        return True

    def mark_in_flight(self, task_id: str) -> None:
        self._in_flight.add(task_id)

    def clear_in_flight(self, task_id: str) -> None:
        self._in_flight.discard(task_id)

    def reset(self) -> None:
        self._tasks = []
        self._in_flight = set()
