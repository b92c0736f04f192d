"""
Pydantic models for posts.

BasePost carries the shared fields; HousingRequestPost and SubletPost are
discriminated on ``type``. ``Post`` is the tagged union for callers that
want a typed value without going through the schema registry.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from ..enums import Amenity, PostCategory, PostStatus, PostType, Utility
from .base import BaseContractModel
from .users import PostAuthor


class BasePost(BaseContractModel):
    id: str = Field(..., min_length=1)
    type: PostType
    author: PostAuthor
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: PostCategory
    status: PostStatus
    created_at: datetime
    updated_at: Optional[datetime] = None


class HousingRequestPost(BasePost):
    type: Literal["housing_request"]
    budget_max: int = Field(..., ge=0)
    move_in_date: datetime
    preferred_locations: List[str]
    desired_amenities: Optional[List[Amenity]] = None


class SubletPost(BasePost):
    type: Literal["sublet"]
    rent: int = Field(..., ge=0)
    address: str = Field(..., min_length=1)
    available_from: datetime
    available_until: Optional[datetime] = None
    amenities: List[Amenity]
    utilities: List[Utility]


Post = Annotated[Union[HousingRequestPost, SubletPost], Field(discriminator="type")]

POST_ADAPTER = TypeAdapter(Post)
