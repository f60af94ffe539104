import asyncio
import logging
from typing import List, Optional
import httpx

from client.api_client import ApiClient, ApiClientError
from client.poller import EnhancementPoller, Sleep
from client.state import TaskStateStore
from config.settings import Settings, get_settings
from models.task import Task

logger = logging.getLogger(__name__)


class TaskSession:
    """
    Task list of one signed-in user.

    Owns the state store and the enhancement poller for as long as the user
    session lasts. CRUD calls update the store from the API response; create
    and title edits then hand the task id to the poller without waiting on it.
    """

    def __init__(
        self,
        api: ApiClient,
        user_id: str,
        *,
        settings: Optional[Settings] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        settings = settings or get_settings()
        self.api = api
        self.user_id = user_id
        self.store = TaskStateStore()
        self.poller = EnhancementPoller(
            api.list_tasks,
            self.store,
            initial_delay=settings.poll_initial_delay,
            interval=settings.poll_interval,
            max_attempts=settings.poll_max_attempts,
            sleep=sleep,
        )
        self.error: Optional[str] = None

    @property
    def tasks(self) -> List[Task]:
        return self.store.tasks

    async def load(self) -> List[Task]:
        """Replace local state with the server's list; failures land in self.error"""
        try:
            tasks = await self.api.list_tasks(self.user_id)
        except (ApiClientError, httpx.HTTPError) as e:
            self.error = str(e) or "Failed to fetch tasks"
            logger.warning(f"Loading tasks for {self.user_id} failed: {self.error}")
            return self.store.tasks

        self.store.set_tasks(tasks)
        self.error = None
        return tasks

    async def add_task(self, title: str) -> Task:
        task = await self._call(self.api.create_task(title, self.user_id), "Failed to create task")
        self.store.add(task)
        self.poller.start(task.id, self.user_id)
        return task

    async def toggle_complete(self, task_id: str, completed: bool) -> Task:
        task = await self._call(self.api.update_task(task_id, completed=completed), "Failed to update task")
        self.store.update(task)
        return task

    async def update_title(self, task_id: str, title: str) -> Task:
        task = await self._call(
            self.api.update_task(task_id, title=title, enhanced_title=None), "Failed to update task"
        )
        self.store.update(task)
        self.poller.start(task_id, self.user_id)
        return task

    async def delete_task(self, task_id: str) -> None:
        await self._call(self.api.delete_task(task_id), "Failed to delete task")
        self.store.remove(task_id)

    async def close(self) -> None:
        await self.poller.shutdown()
        self.store.reset()

    async def _call(self, request, fallback: str):
        try:
            return await request
        except (ApiClientError, httpx.HTTPError) as e:
            self.error = str(e) or fallback
            raise
