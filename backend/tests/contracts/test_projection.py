"""
Projection Engine tests.

Tests:
- User -> PostAuthor projection computed once at startup
- derive() copies exactly the projected fields
- derive() output always passes validate_is_projection()
- Drifted minimal values and drifted schemas are caught
"""

import pytest

from board_api.contracts import AUTHOR_PROJECTION, derive, project, validate, validate_is_projection
from board_api.contracts.errors import ProjectionError, SchemaMismatch
from board_api.contracts.pydantic_models import User
from board_api.contracts.registry import FieldSpec, ObjectSchema


@pytest.fixture
def users():
    return [
        {"id": "u-1", "username": "ana", "level": 0, "role": "guest"},
        {"id": "u-2", "username": "bo", "level": 12, "role": "admin",
         "avatar": "https://cdn.example.com/bo.png", "email": "bo@example.com"},
        {"id": "u-3", "username": "cy", "level": 5, "role": "member",
         "createdAt": "2023-01-01T00:00:00+00:00", "stats": {"posts": 4},
         "preferences": {"theme": "dark"}},
    ]


class TestProjectionSpec:
    """project() builds and caches the field subset."""

    def test_author_projection_fields(self):
        assert AUTHOR_PROJECTION.full_schema == "User"
        assert AUTHOR_PROJECTION.minimal_schema == "PostAuthor"
        assert AUTHOR_PROJECTION.fields == ("id", "username", "avatar", "level")

    def test_projection_is_cached(self):
        assert project("User", "PostAuthor") is AUTHOR_PROJECTION

    def test_profile_projects_onto_author(self):
        """UserProfile carries every User field, so it projects too."""
        spec = project("UserProfile", "PostAuthor")
        assert spec.fields == AUTHOR_PROJECTION.fields

    def test_minimal_field_absent_from_full(self, fresh_registry):
        fresh_registry.register(ObjectSchema(name="Full", fields={
            "id": FieldSpec(name="id", type=str, required=True),
            "name": FieldSpec(name="name", type=str),
        }))
        fresh_registry.register(ObjectSchema(name="Mini", fields={
            "nickname": FieldSpec(name="nickname", type=str),
        }))

        with pytest.raises(ProjectionError, match="nickname"):
            project("Full", "Mini", registry=fresh_registry)

    def test_type_mismatch_is_schema_error(self, fresh_registry):
        fresh_registry.register(ObjectSchema(name="Full", fields={
            "id": FieldSpec(name="id", type=str, required=True),
            "level": FieldSpec(name="level", type=int, min_value=0),
        }))
        fresh_registry.register(ObjectSchema(name="Mini", fields={
            "level": FieldSpec(name="level", type=str),
        }))

        with pytest.raises(ProjectionError, match="level"):
            project("Full", "Mini", registry=fresh_registry)

    def test_same_fields_is_not_a_strict_subset(self, fresh_registry):
        fields = {"id": FieldSpec(name="id", type=str, required=True)}
        fresh_registry.register(ObjectSchema(name="Full", fields=dict(fields)))
        fresh_registry.register(ObjectSchema(name="Copy", fields=dict(fields)))

        with pytest.raises(ProjectionError, match="fewer fields"):
            project("Full", "Copy", registry=fresh_registry)

    def test_projection_cached_on_fresh_registry(self, fresh_registry):
        fresh_registry.register(ObjectSchema(name="Full", fields={
            "id": FieldSpec(name="id", type=str, required=True),
            "name": FieldSpec(name="name", type=str),
        }))
        fresh_registry.register(ObjectSchema(name="Mini", fields={
            "id": FieldSpec(name="id", type=str, required=True),
        }))

        first = project("Full", "Mini", registry=fresh_registry)
        assert project("Full", "Mini", registry=fresh_registry) is first


class TestDerive:
    """derive() narrows a full value."""

    def test_copies_only_projected_fields(self, user_raw):
        author = derive(user_raw, AUTHOR_PROJECTION)

        assert author == {
            "id": "u-100",
            "username": "jo",
            "avatar": "https://cdn.example.com/avatars/jo.png",
            "level": 3,
        }

    def test_absent_optional_stays_absent(self, users):
        author = derive(users[0], AUTHOR_PROJECTION)
        assert author == {"id": "u-1", "username": "ana", "level": 0}

    def test_source_is_not_modified(self, user_raw):
        before = dict(user_raw)
        derive(user_raw, AUTHOR_PROJECTION)
        assert user_raw == before

    def test_no_live_link_to_source(self, users):
        source = dict(users[2])
        author = derive(source, AUTHOR_PROJECTION)

        source["username"] = "renamed"
        assert author["username"] == "cy"

    def test_from_pydantic_model(self, user_raw):
        user = validate(user_raw, "User").value
        assert isinstance(user, User)

        assert derive(user, AUTHOR_PROJECTION) == derive(user_raw, AUTHOR_PROJECTION)

    def test_deterministic(self, user_raw):
        assert derive(user_raw, AUTHOR_PROJECTION) == derive(user_raw, AUTHOR_PROJECTION)

    def test_missing_required_fields_reported_together(self):
        with pytest.raises(SchemaMismatch) as exc_info:
            derive({"id": "u-9", "role": "guest"}, AUTHOR_PROJECTION)

        paths = [v["path"] for v in exc_info.value.violations]
        assert paths == ["username", "level"]

    def test_rejects_non_mapping(self):
        with pytest.raises(TypeError):
            derive(["u-1", "ana"], AUTHOR_PROJECTION)


class TestValidateIsProjection:
    """Minimal values arriving from elsewhere."""

    def test_round_trip(self, users, user_raw):
        for full in users + [user_raw]:
            author = derive(full, AUTHOR_PROJECTION)
            result = validate_is_projection(author, AUTHOR_PROJECTION)
            assert result.ok, result.violations

    def test_field_outside_subset_reported(self, author_raw):
        author_raw["email"] = "jo@example.com"
        result = validate_is_projection(author_raw, AUTHOR_PROJECTION)

        assert [(v.path, v.error) for v in result.violations] == [("email", "undeclared_field")]

    def test_field_outside_subset_reported_in_lenient_mode(self, monkeypatch, author_raw):
        monkeypatch.setenv("CONTRACT_MODE", "lenient")
        author_raw["role"] = "member"

        assert not validate_is_projection(author_raw, AUTHOR_PROJECTION).ok

    def test_type_drift_reported(self, author_raw):
        author_raw["level"] = "3"
        author_raw["avatar"] = 99
        result = validate_is_projection(author_raw, AUTHOR_PROJECTION)

        assert {(v.path, v.error) for v in result.violations} == {
            ("level", "type_mismatch"),
            ("avatar", "type_mismatch"),
        }

    def test_derived_author_embeds_in_post(self, user_raw, sublet_raw):
        sublet_raw["author"] = derive(user_raw, AUTHOR_PROJECTION)
        assert validate(sublet_raw, "BasePost").ok
