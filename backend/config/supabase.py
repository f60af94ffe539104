"""
Supabase Configuration and Utilities
"""
import os
import logging
import httpx
from typing import Optional, Dict, Any, List, Union
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class SupabaseError(Exception):
    """Raised when the Supabase REST API rejects a request or cannot be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


# Simple HTTP client for Supabase API calls
class SimpleSupabaseClient:
    """Simplified Supabase client talking to the PostgREST endpoint"""

    def __init__(self, url: str, key: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url.rstrip('/')
        self.key = key
        self.transport = transport

        self.headers = {
            'apikey': key,
            'Authorization': f'Bearer {key}',
            'Content-Type': 'application/json',
            'Prefer': 'return=representation'
        }

    async def query(
        self,
        table: str,
        method: str = 'GET',
        data: Optional[Dict] = None,
        filters: Optional[Dict] = None,
        order: Optional[str] = None,
    ) -> Union[List[Dict[str, Any]], Dict[str, Any]]:
        """
        Execute a query on a Supabase table

        Args:
            table: Table name
            method: GET, POST, PATCH or DELETE
            data: JSON body for POST/PATCH
            filters: Column equality filters
            order: PostgREST order clause, e.g. "created_at.desc"

        Returns:
            The decoded JSON body (a list of rows for table queries)
        """
        url = f"{self.url}/rest/v1/{table}"

        params = {}
        if filters:
            for key, value in filters.items():
                params[key] = f"eq.{value}"
        if order:
            params["order"] = order

        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                if method == 'GET':
                    response = await client.get(url, headers=self.headers, params=params)
                elif method == 'POST':
                    response = await client.post(url, headers=self.headers, params=params, json=data)
                elif method == 'PATCH':
                    response = await client.patch(url, headers=self.headers, params=params, json=data)
                elif method == 'DELETE':
                    response = await client.delete(url, headers=self.headers, params=params)
                else:
                    raise ValueError(f"Unsupported method: {method}")
        except httpx.HTTPError as e:
            raise SupabaseError(f"Supabase request failed: {e}") from e

        if response.status_code >= 400:
            raise SupabaseError(
                f"Supabase API error {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        return response.json() if response.text else {}


class SupabaseConfig:
    """Supabase configuration class"""

    def __init__(self):
        self.url: str = os.getenv("SUPABASE_URL", "")
        self.key: str = os.getenv("SUPABASE_ANON_KEY", "")
        self.service_key: str = os.getenv("SUPABASE_SERVICE_KEY", "")

        if not self.url or not self.key:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY must be set in environment variables")

    def get_client(self) -> SimpleSupabaseClient:
        """Create a client, preferring the service key so row level security is bypassed"""
        key = self.service_key or self.key
        return SimpleSupabaseClient(self.url, key)


# Global Supabase client instances
_config: Optional[SupabaseConfig] = None
_client: Optional[SimpleSupabaseClient] = None


def get_supabase_config() -> SupabaseConfig:
    """Get Supabase configuration singleton"""
    global _config
    if _config is None:
        _config = SupabaseConfig()
    return _config


def get_supabase_client() -> SimpleSupabaseClient:
    """Get Supabase client singleton"""
    global _client
    if _client is None:
        config = get_supabase_config()
        _client = config.get_client()
    return _client


async def test_connection() -> bool:
    """Test Supabase connection"""
    if not os.getenv("SUPABASE_URL") or not os.getenv("SUPABASE_ANON_KEY"):
        logger.warning("Supabase credentials not configured")
        return False

    try:
        client = get_supabase_client()
        result = await client.query("users", "GET", filters={"email": "connection-check@localhost"})
        logger.info("Supabase connection successful")
        logger.debug("Connection probe returned %s rows", len(result) if isinstance(result, list) else "unknown")
        return True
    except SupabaseError as e:
        logger.error(f"Supabase connection failed: {e}")
        return False
