"""
Profile schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class ProfileAddress(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    role: str = "user"
    avatar_url: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[ProfileAddress] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[ProfileAddress] = None
