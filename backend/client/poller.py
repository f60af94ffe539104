"""
Enhancement poller.

After a task is created or its title is edited, an external AI process may
write an enhanced title some seconds later. The poller re-reads the owner's
task list on a fixed schedule until that enhancement shows up or the attempt
budget runs out, then patches the client state store.

Each task id gets its own asyncio.Task. Pollers never block the caller and
never coordinate with each other; they touch disjoint ids.
"""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

from client.state import TaskStateStore
from models.task import Task

logger = logging.getLogger(__name__)

FetchTasks = Callable[[str], Awaitable[List[Task]]]
Sleep = Callable[[float], Awaitable[None]]


class PollState(str, Enum):
    IDLE = "idle"
    AWAITING = "awaiting"
    RESOLVED = "resolved"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class EnhancementPoller:
    def __init__(
        self,
        fetch_tasks: FetchTasks,
        store: TaskStateStore,
        *,
        initial_delay: float = 3.0,
        interval: float = 3.0,
        max_attempts: int = 5,
        sleep: Sleep = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._fetch_tasks = fetch_tasks
        self.store = store
        self.initial_delay = initial_delay
        self.interval = interval
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._pollers: Dict[str, asyncio.Task] = {}
        self._states: Dict[str, PollState] = {}

    def state(self, task_id: str) -> PollState:
        return self._states.get(task_id, PollState.IDLE)

    @property
    def active(self) -> List[str]:
        return [task_id for task_id, t in self._pollers.items() if not t.done()]

    def pending(self, task_id: str) -> Optional[asyncio.Task]:
        """The running polling task for task_id, if any"""
        return self._pollers.get(task_id)

    def start(self, task_id: str, user_id: str) -> asyncio.Task:
        """
        Begin awaiting an enhancement for task_id and return the polling task.

        Must be called from a running event loop. A poller already running for
        the same id is cancelled; the newer title is the one worth waiting for.
        """
        previous = self._pollers.pop(task_id, None)
        if previous is not None and not previous.done():
            previous.cancel()

        self.store.mark_in_flight(task_id)
        self._states[task_id] = PollState.AWAITING

        poller = asyncio.create_task(self._poll(task_id, user_id), name=f"enhance-{task_id}")
        self._pollers[task_id] = poller
        poller.add_done_callback(lambda done, task_id=task_id: self._forget(task_id, done))
        return poller

    def cancel(self, task_id: str) -> bool:
        """Stop awaiting task_id; returns False when nothing was running"""
        poller = self._pollers.pop(task_id, None)
        if poller is None or poller.done():
            return False
        poller.cancel()
        self.store.clear_in_flight(task_id)
        self._states[task_id] = PollState.CANCELLED
        return True

    async def shutdown(self) -> None:
        """Cancel every running poller and wait for them to unwind"""
        pollers = list(self._pollers.values())
        for task_id in list(self._pollers):
            self.cancel(task_id)
        if pollers:
            await asyncio.gather(*pollers, return_exceptions=True)
        self._states.clear()

    def _forget(self, task_id: str, done: asyncio.Task) -> None:
        if self._pollers.get(task_id) is done:
            del self._pollers[task_id]

    def _finish(self, task_id: str, state: PollState) -> PollState:
        self.store.clear_in_flight(task_id)
        self._states[task_id] = state
        return state

    async def _poll(self, task_id: str, user_id: str) -> PollState:
        await self._sleep(self.initial_delay)

        for attempt in range(1, self.max_attempts + 1):
            found = await self._check(task_id, user_id, attempt)
            if found is not None:
                self.store.merge_enhancement(found)
                logger.debug(f"Enhancement for task {task_id} arrived on attempt {attempt}")
                return self._finish(task_id, PollState.RESOLVED)

            if attempt < self.max_attempts:
                await self._sleep(self.interval)

        logger.debug(f"Gave up waiting for an enhancement of task {task_id} after {self.max_attempts} attempts")
        return self._finish(task_id, PollState.TIMED_OUT)

    async def _check(self, task_id: str, user_id: str, attempt: int) -> Optional[Task]:
        # A failed fetch uses up the attempt; the schedule is the retry policy
        try:
            tasks = await self._fetch_tasks(user_id)
        except Exception as e:
            logger.debug(f"Enhancement poll {attempt} for task {task_id} failed: {e}")
            return None

        for task in tasks:
            if task.id == task_id:
                return task if task.has_enhancement else None
        return None
