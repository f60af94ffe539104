"""
Webhook endpoint for the n8n automation workflow.

The workflow forwards messages from chat channels and the AI enhancer
writes enhanced titles back through the same endpoint.
"""
import logging
import secrets
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, Header, HTTPException, status

from config.settings import Settings, get_settings
from config.supabase import SupabaseError
from models.task import WebhookPayload
from services.database import DatabaseService, get_database_service
from utils.phone import normalize_phone
from utils.responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhook", tags=["webhook"])

PHONE_NOT_LINKED = (
    "No user is linked to this phone number. "
    "Link your phone number in the app first, or include user_email."
)


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def verify_webhook_secret(
    x_webhook_secret: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject the request when a secret is configured and the header does not match it"""
    expected = settings.webhook_secret
    if not expected:
        return
    # header values arrive latin-1 decoded; compare raw bytes against the utf-8 secret
    if x_webhook_secret is None or not secrets.compare_digest(
        x_webhook_secret.encode("latin-1"), expected.encode("utf-8")
    ):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def resolve_user(db: DatabaseService, email: Optional[str], phone: Optional[str]) -> Dict[str, Any]:
    """
    Find the user a webhook call refers to.

    Phone wins when it matches. Otherwise the email is used and the user is
    created on first sight. A phone alone never creates a user.
    """
    digits = normalize_phone(phone)
    if digits:
        user = await db.get_user_by_phone(digits)
        if user:
            return user

    if email:
        user, created = await db.get_or_create_user(email)
        if created:
            logger.info(f"Webhook created user {user.get('id')} from email")
        return user

    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=PHONE_NOT_LINKED)


async def _create_task(payload: WebhookPayload, db: DatabaseService):
    title = (payload.title or "").strip()
    email = (payload.user_email or "").strip()
    if not title or not (email or normalize_phone(payload.user_phone)):
        raise _bad_request("title and user_email or user_phone are required")

    user = await resolve_user(db, email or None, payload.user_phone)
    task = await db.create_task(user["id"], title)
    return success_response(task, status_code=status.HTTP_201_CREATED)


async def _list_tasks(payload: WebhookPayload, db: DatabaseService):
    email = (payload.user_email or "").strip()
    if not email:
        raise _bad_request("user_email is required")

    user = await db.get_user_by_email(email)
    if not user:
        return success_response([])

    return success_response(await db.list_tasks(user["id"]))


async def _complete_task(payload: WebhookPayload, db: DatabaseService):
    if not payload.task_id:
        raise _bad_request("task_id is required")

    completed = True if payload.completed is None else payload.completed
    task = await db.update_task(payload.task_id, {"completed": completed})
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return success_response(task)


async def _update_enhanced_title(payload: WebhookPayload, db: DatabaseService):
    enhanced_title = (payload.enhanced_title or "").strip()
    if not payload.task_id or not enhanced_title:
        raise _bad_request("task_id and enhanced_title are required")

    task = await db.update_task(payload.task_id, {"enhanced_title": enhanced_title})
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return success_response(task)


ACTIONS = {
    "create_task": _create_task,
    "list_tasks": _list_tasks,
    "complete_task": _complete_task,
    "update_enhanced_title": _update_enhanced_title,
}


@router.post("/n8n", dependencies=[Depends(verify_webhook_secret)])
async def handle_webhook(payload: WebhookPayload, db: DatabaseService = Depends(get_database_service)):
    handler = ACTIONS.get(payload.action or "")
    if handler is None:
        raise _bad_request("Invalid action")

    try:
        return await handler(payload, db)
    except SupabaseError as e:
        logger.error(f"POST /api/webhook/n8n error ({payload.action}): {e}")
        raise HTTPException(status_code=500, detail="Webhook processing failed")


# Allow GET for webhook testing
@router.get("/n8n")
async def webhook_status():
    return {
        "status": "ok",
        "message": "Webhook endpoint is active"
    }
