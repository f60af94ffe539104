"""
Database Service Layer
Handles Supabase cloud database operations for users and tasks
"""

import logging
from typing import Optional, Dict, Any, List, Tuple
from datetime import datetime, timezone

from config.supabase import SimpleSupabaseClient, SupabaseError, get_supabase_client
from utils.phone import normalize_phone

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
TASKS_TABLE = "tasks"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _first_row(response: Any) -> Optional[Dict[str, Any]]:
    if response and isinstance(response, list) and len(response) > 0:
        return response[0]
    return None


class DatabaseService:
    """
    Database service that uses Supabase for all operations.

    Every method is a single round trip against one row or one user's rows;
    SupabaseError propagates to the API layer, which turns it into a 500 envelope.
    """

    def __init__(self, client: Optional[SimpleSupabaseClient] = None):
        self.supabase_client = client or get_supabase_client()

    # User Management Methods

    async def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Get user by email (compared lowercased)"""
        response = await self.supabase_client.query(
            USERS_TABLE, "GET", filters={"email": email.strip().lower()}
        )
        return _first_row(response)

    async def get_user_by_phone(self, phone: str) -> Optional[Dict[str, Any]]:
        """Get user by phone, matching on the digits-only form"""
        digits = normalize_phone(phone)
        if not digits:
            return None
        response = await self.supabase_client.query(USERS_TABLE, "GET", filters={"phone": digits})
        return _first_row(response)

    async def create_user(self, email: str, name: Optional[str] = None, phone: Optional[str] = None) -> Dict[str, Any]:
        """Insert a user row and return it"""
        row = {
            "email": email.strip().lower(),
            "name": name or None,
            "phone": normalize_phone(phone),
        }
        response = await self.supabase_client.query(USERS_TABLE, "POST", data=row)
        created = _first_row(response)
        if created is None:
            raise SupabaseError("Supabase returned no row for user insert")
        logger.info(f"Created user {created.get('id')}")
        return created

    async def get_or_create_user(
        self, email: str, name: Optional[str] = None, phone: Optional[str] = None
    ) -> Tuple[Dict[str, Any], bool]:
        """
        Look a user up by email, creating it on first sight

        Returns:
            (user row, created flag)
        """
        existing = await self.get_user_by_email(email)
        if existing:
            return existing, False
        return await self.create_user(email, name=name, phone=phone), True

    async def update_user_phone(self, user_id: str, phone: Optional[str]) -> Optional[Dict[str, Any]]:
        """Set or clear a user's phone; None when no user matched"""
        response = await self.supabase_client.query(
            USERS_TABLE, "PATCH", data={"phone": normalize_phone(phone)}, filters={"id": user_id}
        )
        return _first_row(response)

    # Task Methods

    async def list_tasks(self, user_id: str) -> List[Dict[str, Any]]:
        """All tasks of a user, newest first"""
        response = await self.supabase_client.query(
            TASKS_TABLE, "GET", filters={"user_id": user_id}, order="created_at.desc"
        )
        return response if isinstance(response, list) else []

    async def create_task(self, user_id: str, title: str) -> Dict[str, Any]:
        """Insert a new, not completed, not enhanced task"""
        row = {
            "user_id": user_id,
            "title": title,
            "enhanced_title": None,
            "completed": False,
        }
        response = await self.supabase_client.query(TASKS_TABLE, "POST", data=row)
        created = _first_row(response)
        if created is None:
            raise SupabaseError("Supabase returned no row for task insert")
        return created

    async def update_task(self, task_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Apply a partial update to a task

        Args:
            task_id: Task ID
            changes: Only the columns to write; a None value clears the column

        Returns:
            The updated row, or None when no task matched
        """
        data = dict(changes)
        data["updated_at"] = utc_now_iso()
        response = await self.supabase_client.query(TASKS_TABLE, "PATCH", data=data, filters={"id": task_id})
        return _first_row(response)

    async def delete_task(self, task_id: str) -> None:
        await self.supabase_client.query(TASKS_TABLE, "DELETE", filters={"id": task_id})


# Global database service instance
_db_service: Optional[DatabaseService] = None


def get_database_service() -> DatabaseService:
    """Get database service singleton"""
    global _db_service
    if _db_service is None:
        _db_service = DatabaseService()
    return _db_service
