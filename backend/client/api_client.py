"""
Async HTTP client for the task and user endpoints
"""
import logging
from typing import Any, Dict, List, Optional
import httpx
from pydantic import ValidationError

from config.settings import Settings, get_settings
from models.task import ApiResponse, Task
from models.user import User

logger = logging.getLogger(__name__)

# Sentinel for "leave this field out of the PATCH body"
UNSET: Any = object()


class ApiClientError(Exception):
    """The API answered with success=false, or with something that is not an envelope"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ApiClient:
    """Thin wrapper around httpx.AsyncClient speaking the {success, data, error} envelope"""

    def __init__(self, base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip('/')
        self._client = httpx.AsyncClient(base_url=self.base_url, transport=transport)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ApiClient":
        return cls((settings or get_settings()).api_base_url)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._client.request(method, path, **kwargs)
        try:
            body = response.json()
        except ValueError:
            raise ApiClientError(f"{method} {path} returned a non JSON body", response.status_code)

        try:
            envelope = ApiResponse[Any].model_validate(body)
        except ValidationError:
            raise ApiClientError(f"{method} {path} returned a body that is not an envelope", response.status_code)

        if not envelope.success:
            logger.debug(f"{method} {path} -> {response.status_code}: {envelope.error}")
            raise ApiClientError(envelope.error or f"{method} {path} failed", response.status_code)
        return envelope.data

    # Tasks

    async def list_tasks(self, user_id: str) -> List[Task]:
        data = await self._request("GET", "/api/tasks", params={"user_id": user_id})
        return [Task.model_validate(row) for row in data or []]

    async def create_task(self, title: str, user_id: str) -> Task:
        data = await self._request("POST", "/api/tasks", json={"title": title, "user_id": user_id})
        return Task.model_validate(data)

    async def update_task(
        self,
        task_id: str,
        *,
        title: Any = UNSET,
        enhanced_title: Any = UNSET,
        completed: Any = UNSET,
    ) -> Task:
        """PATCH a task; only the keyword arguments actually passed are sent, None included"""
        body: Dict[str, Any] = {"id": task_id}
        if title is not UNSET:
            body["title"] = title
        if enhanced_title is not UNSET:
            body["enhanced_title"] = enhanced_title
        if completed is not UNSET:
            body["completed"] = completed
        data = await self._request("PATCH", "/api/tasks", json=body)
        return Task.model_validate(data)

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", "/api/tasks", params={"id": task_id})

    # Users

    async def get_or_create_user(self, email: str, name: Optional[str] = None, phone: Optional[str] = None) -> User:
        data = await self._request("POST", "/api/users", json={"email": email, "name": name, "phone": phone})
        return User.model_validate(data)

    async def update_phone(self, user_id: str, phone: Optional[str]) -> User:
        data = await self._request("PATCH", "/api/users", json={"id": user_id, "phone": phone})
        return User.model_validate(data)
