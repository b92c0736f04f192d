"""
Schemas for posts.

BasePost is discriminated on ``type``. Each variant extends it, pins
``type`` to one literal and adds its own required fields. Validating a
payload against BasePost dispatches to the variant named by ``type``.
"""

from datetime import datetime

from ..enums import PostType
from ..pydantic_models import BasePost, HousingRequestPost, SubletPost
from ..registry import FieldSpec, ObjectSchema, register_schema


def _post_type(token: str) -> FieldSpec:
    return FieldSpec(name="type", type=str, required=True, enum="post_type", allowed_values=[token])


# =============================================================================
# BASE POST
# =============================================================================

BASE_POST_SCHEMA = register_schema(ObjectSchema(
    name="BasePost",
    model=BasePost,
    discriminator="type",
    description="Fields shared by every post variant",
    fields={
        "id": FieldSpec(name="id", type=str, required=True, min_length=1),
        "type": FieldSpec(name="type", type=str, required=True, enum="post_type"),
        "author": FieldSpec(name="author", type=dict, required=True, ref="PostAuthor",
                            description="Embedded by value"),
        "title": FieldSpec(name="title", type=str, required=True, min_length=1),
        "description": FieldSpec(name="description", type=str),
        "category": FieldSpec(name="category", type=str, required=True, enum="post_category"),
        "status": FieldSpec(name="status", type=str, required=True, enum="post_status"),
        "createdAt": FieldSpec(name="createdAt", type=datetime, required=True),
        "updatedAt": FieldSpec(name="updatedAt", type=datetime),
    },
))


# =============================================================================
# VARIANTS
# =============================================================================

HOUSING_REQUEST_POST_SCHEMA = register_schema(ObjectSchema(
    name="HousingRequestPost",
    extends="BasePost",
    model=HousingRequestPost,
    description="Someone looking for a place",
    fields={
        "type": _post_type(PostType.HOUSING_REQUEST.value),
        "budgetMax": FieldSpec(name="budgetMax", type=int, required=True, min_value=0),
        "moveInDate": FieldSpec(name="moveInDate", type=datetime, required=True),
        "preferredLocations": FieldSpec(
            name="preferredLocations", type=list, required=True,
            items=FieldSpec(name="preferredLocations[]", type=str, min_length=1),
        ),
        "desiredAmenities": FieldSpec(
            name="desiredAmenities", type=list, unique=True,
            items=FieldSpec(name="desiredAmenities[]", type=str, enum="amenity"),
        ),
    },
))


SUBLET_POST_SCHEMA = register_schema(ObjectSchema(
    name="SubletPost",
    extends="BasePost",
    model=SubletPost,
    description="A place offered for sublet",
    fields={
        "type": _post_type(PostType.SUBLET.value),
        "rent": FieldSpec(name="rent", type=int, required=True, min_value=0),
        "address": FieldSpec(name="address", type=str, required=True, min_length=1),
        "availableFrom": FieldSpec(name="availableFrom", type=datetime, required=True),
        "availableUntil": FieldSpec(name="availableUntil", type=datetime),
        "amenities": FieldSpec(
            name="amenities", type=list, required=True, unique=True,
            items=FieldSpec(name="amenities[]", type=str, enum="amenity"),
        ),
        "utilities": FieldSpec(
            name="utilities", type=list, required=True, unique=True,
            items=FieldSpec(name="utilities[]", type=str, enum="utility"),
        ),
    },
))
