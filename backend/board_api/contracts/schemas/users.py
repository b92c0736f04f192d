"""
Schemas for user entities.

- User: public identity
- UserProfile: User + stats/preferences
- UserAuth: User + credential reference (credential-bearing)
- PostAuthor: minimal projection of User, embedded in posts
"""

from datetime import datetime

from ..pydantic_models import PostAuthor, User, UserAuth, UserProfile
from ..registry import CREDENTIAL_BEARING, FieldSpec, ObjectSchema, register_schema


# =============================================================================
# USER
# =============================================================================

USER_SCHEMA = register_schema(ObjectSchema(
    name="User",
    model=User,
    description="Public user identity",
    fields={
        "id": FieldSpec(name="id", type=str, required=True, min_length=1,
                        description="Opaque unique id"),
        "username": FieldSpec(name="username", type=str, required=True, min_length=1),
        "email": FieldSpec(name="email", type=str, format="email"),
        "avatar": FieldSpec(name="avatar", type=str, description="Avatar URL"),
        "level": FieldSpec(name="level", type=int, required=True, min_value=0),
        "role": FieldSpec(name="role", type=str, required=True, enum="role"),
        "createdAt": FieldSpec(name="createdAt", type=datetime),
    },
))


USER_PROFILE_SCHEMA = register_schema(ObjectSchema(
    name="UserProfile",
    extends="User",
    model=UserProfile,
    description="User with extended attributes",
    fields={
        "stats": FieldSpec(name="stats", type=dict, required=True),
        "preferences": FieldSpec(name="preferences", type=dict, required=True),
        "bio": FieldSpec(name="bio", type=str),
    },
))


USER_AUTH_SCHEMA = register_schema(ObjectSchema(
    name="UserAuth",
    extends="User",
    model=UserAuth,
    tags={CREDENTIAL_BEARING},
    description="User with authentication fields; never emitted in envelopes",
    fields={
        "passwordHash": FieldSpec(name="passwordHash", type=str, required=True, min_length=1),
    },
))


# =============================================================================
# POST AUTHOR (projection of User)
# =============================================================================

POST_AUTHOR_SCHEMA = register_schema(ObjectSchema(
    name="PostAuthor",
    model=PostAuthor,
    description="Minimal author view embedded by value in posts",
    fields={
        name: USER_SCHEMA.fields[name]
        for name in ("id", "username", "avatar", "level")
    },
))
