from pydantic import BaseModel, ConfigDict
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class Task(BaseModel):
    """
    A to-do item as stored in the Supabase "tasks" table.

    Attributes:
        id: Task ID
        user_id: Owning user ID
        title: Original title as typed by the user
        enhanced_title: AI rewritten title, written later by an external process
        completed: Completion flag
        created_at: Creation timestamp (ISO-8601)
        updated_at: Last mutation timestamp (ISO-8601)
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    enhanced_title: Optional[str] = None
    completed: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def has_enhancement(self) -> bool:
        return bool(self.enhanced_title and self.enhanced_title.strip())


class CreateTaskPayload(BaseModel):
    title: Optional[str] = None
    user_id: Optional[str] = None


class UpdateTaskPayload(BaseModel):
    # model_fields_set tells an omitted field apart from an explicit null
    id: Optional[str] = None
    title: Optional[str] = None
    enhanced_title: Optional[str] = None
    completed: Optional[bool] = None


class WebhookPayload(BaseModel):
    action: Optional[str] = None
    user_email: Optional[str] = None
    user_phone: Optional[str] = None
    task_id: Optional[str] = None
    title: Optional[str] = None
    enhanced_title: Optional[str] = None
    completed: Optional[bool] = None


class ApiResponse(BaseModel, Generic[T]):
    """Uniform response envelope"""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
