import logging
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, HTTPException, status

from config.supabase import SupabaseError
from models.task import CreateTaskPayload, UpdateTaskPayload
from services.database import DatabaseService, get_database_service
from utils.responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def build_task_changes(payload: UpdateTaskPayload) -> Dict[str, Any]:
    """
    Turn a PATCH body into the columns to write.

    Only fields present in the body are written. An edited title always
    clears enhanced_title unless the body sets enhanced_title itself.
    """
    sent = payload.model_fields_set
    changes: Dict[str, Any] = {}

    if "title" in sent:
        title = (payload.title or "").strip()
        if not title:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="title cannot be empty")
        changes["title"] = title
        changes["enhanced_title"] = None

    if "enhanced_title" in sent:
        changes["enhanced_title"] = payload.enhanced_title

    if "completed" in sent:
        if payload.completed is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="completed must be a boolean")
        changes["completed"] = payload.completed

    return changes


@router.get("")
async def list_tasks(user_id: Optional[str] = None, db: DatabaseService = Depends(get_database_service)):
    if not user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="user_id is required")

    try:
        tasks = await db.list_tasks(user_id)
    except SupabaseError as e:
        logger.error(f"GET /api/tasks error: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch tasks")

    return success_response(tasks)


@router.post("")
async def create_task(payload: CreateTaskPayload, db: DatabaseService = Depends(get_database_service)):
    title = (payload.title or "").strip()
    if not title or not payload.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="title and user_id are required")

    try:
        task = await db.create_task(payload.user_id, title)
    except SupabaseError as e:
        logger.error(f"POST /api/tasks error: {e}")
        raise HTTPException(status_code=500, detail="Failed to create task")

    return success_response(task, status_code=status.HTTP_201_CREATED)


@router.patch("")
async def update_task(payload: UpdateTaskPayload, db: DatabaseService = Depends(get_database_service)):
    if not payload.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="id is required")

    changes = build_task_changes(payload)

    try:
        task = await db.update_task(payload.id, changes)
    except SupabaseError as e:
        logger.error(f"PATCH /api/tasks error: {e}")
        raise HTTPException(status_code=500, detail="Failed to update task")

    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")

    return success_response(task)


@router.delete("")
async def delete_task(id: Optional[str] = None, db: DatabaseService = Depends(get_database_service)):
    if not id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="id is required")

    try:
        await db.delete_task(id)
    except SupabaseError as e:
        logger.error(f"DELETE /api/tasks error: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete task")

    return success_response()
