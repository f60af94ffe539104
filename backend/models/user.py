# User rows live in the Supabase "users" table, see database/supabase_schema.sql

from pydantic import BaseModel, ConfigDict
from typing import Optional


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[str] = None


# Pydantic models for request validation
# Fields are optional so missing values surface as 400 envelopes from the handlers
class UserPayload(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None


class UpdatePhonePayload(BaseModel):
    id: Optional[str] = None
    phone: Optional[str] = None
