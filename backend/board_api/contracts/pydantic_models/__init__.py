"""
Pydantic models for typed contract values.

The schema registry decides whether input is structurally valid and reports
every violation; these models are what a successful validation hands back.

Usage:
    from board_api.contracts import validate

    result = validate(raw, "User")
    if result.ok:
        user = result.value      # board_api.contracts.pydantic_models.User
"""

from .base import BaseContractModel
from .users import User, UserProfile, UserAuth, PostAuthor
from .posts import BasePost, HousingRequestPost, SubletPost, Post, POST_ADAPTER

__all__ = [
    'BaseContractModel',
    'User',
    'UserProfile',
    'UserAuth',
    'PostAuthor',
    'BasePost',
    'HousingRequestPost',
    'SubletPost',
    'Post',
    'POST_ADAPTER',
]
