"""
Pydantic models for user entities.

- User: public identity
- UserProfile: User + stats/preferences (same identity, superset)
- UserAuth: User + credential reference (never leaves through an envelope)
- PostAuthor: minimal projection of User embedded in posts
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from ..enums import Role
from ..validate import EMAIL_PATTERN
from .base import BaseContractModel


class User(BaseContractModel):
    id: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    avatar: Optional[str] = None
    level: int = Field(..., ge=0)
    role: Role
    created_at: Optional[datetime] = None


class UserProfile(User):
    stats: Dict[str, Any]
    preferences: Dict[str, Any]
    bio: Optional[str] = None


class UserAuth(User):
    password_hash: str = Field(..., min_length=1)


class PostAuthor(BaseContractModel):
    """Compact author view. Every field is copied from User, never redefined."""
    id: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    avatar: Optional[str] = None
    level: int = Field(..., ge=0)
