"""
Pydantic schemas for registration, login and the public user profile.

Request fields are optional at the schema level; presence is checked by the
auth service so a missing field yields the service's error message.
"""

from typing import Optional

from app.schemas.base import CamelModel


class UserCreate(CamelModel):
    student_id: Optional[str] = None
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class UserLogin(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserProfile(CamelModel):
    student_id: str
    full_name: str
    phone_number: str
    email: str
