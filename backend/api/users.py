import logging
from fastapi import APIRouter, Depends, HTTPException, status

from config.supabase import SupabaseError
from models.user import UpdatePhonePayload, UserPayload
from services.database import DatabaseService, get_database_service
from utils.responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("")
async def get_or_create_user(payload: UserPayload, db: DatabaseService = Depends(get_database_service)):
    """Return the user for an email, creating it on first sight"""
    email = (payload.email or "").strip()
    if not email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="email is required")

    try:
        user, created = await db.get_or_create_user(email, name=payload.name, phone=payload.phone)
    except SupabaseError as e:
        logger.error(f"POST /api/users error: {e}")
        raise HTTPException(status_code=500, detail="Failed to get or create user")

    return success_response(user, status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


@router.patch("")
async def update_phone(payload: UpdatePhonePayload, db: DatabaseService = Depends(get_database_service)):
    """Link, change or clear the phone number used by the webhook for reverse lookup"""
    if not payload.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="id is required")

    try:
        user = await db.update_user_phone(payload.id, payload.phone)
    except SupabaseError as e:
        logger.error(f"PATCH /api/users error: {e}")
        raise HTTPException(status_code=500, detail="Failed to update user")

    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return success_response(user)
