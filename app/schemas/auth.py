from typing import Optional

from app.models.base import CamelModel


class RegisterRequest(CamelModel):
    username: str
    password: str
    name: str
    job_title: Optional[str] = None
    department: Optional[str] = None
    bio: Optional[str] = None


class LoginRequest(CamelModel):
    username: str
    password: str


class ProfileUpdateRequest(CamelModel):
    name: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    bio: Optional[str] = None
    password: Optional[str] = None
