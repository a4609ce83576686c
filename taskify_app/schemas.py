"""Pydantic schemas for users, authentication, and tasks.

These classes define request and response models used by the FastAPI endpoints:
- UserCreate / UserLogin / UserOut / AuthResponse
- TaskCreate / TaskUpdate / TaskOut
- MessageOut / ErrorOut
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class Category(str, Enum):
    """Labels a task can be filed under."""
    GENERAL = "general"
    WORK = "work"
    PERSONAL = "personal"
    SHOPPING = "shopping"
    HEALTH = "health"
    OTHER = "other"


DEFAULT_CATEGORY = Category.GENERAL


# ---------- Users ----------
class UserCreate(BaseModel):
    """Payload for registering a new user."""
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class UserLogin(BaseModel):
    """Credentials submitted to the login endpoint."""
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class UserOut(BaseModel):
    """Public representation of a user."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: EmailStr
    created_at: datetime


# ---------- Auth ----------
class AuthResponse(BaseModel):
    """Returned by register and login: the user plus a bearer token."""
    user: UserOut
    token: str
    token_type: str = "bearer"


# ---------- Tasks ----------
class TaskCreate(BaseModel):
    """Payload for creating a task. Unknown fields such as an owner are ignored."""
    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    category: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v


class TaskUpdate(BaseModel):
    """Partial update; only the fields present in the request are applied."""
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    category: Optional[str] = None
    is_done: Optional[bool] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v


class TaskOut(BaseModel):
    """Representation of a task returned by the API."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    title: str
    description: Optional[str] = None
    category: str
    is_done: bool
    created_at: datetime


# ---------- Misc ----------
class MessageOut(BaseModel):
    message: str


class ErrorOut(BaseModel):
    """Body of every error response."""
    status: str
    message: str
