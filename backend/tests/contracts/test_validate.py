"""
Contract Validator tests.

Tests:
- Required / optional / undeclared fields (STRICT and LENIENT)
- Type, enum, format and range checks with field paths
- Violations accumulated, never short-circuited
- Discriminated dispatch for posts
- Envelope payload binding
"""

import pytest

from board_api.contracts import validate, validate_or_raise
from board_api.contracts.errors import SchemaDefinitionError, SchemaMismatch, UnknownVariant
from board_api.contracts.pydantic_models import HousingRequestPost, SubletPost, User
from board_api.contracts.registry import SchemaMode


def _errors(result):
    return {(v.path, v.error) for v in result.violations}


class TestUserValidation:
    """Object validation against the User schema."""

    def test_valid_user_returns_typed_value(self, user_raw):
        result = validate(user_raw, "User")

        assert result.ok
        assert result.schema == "User"
        assert isinstance(result.value, User)
        assert result.value.username == "jo"
        assert result.value.role == "member"
        assert result.value.created_at.year == 2024

    def test_missing_role_is_single_violation(self):
        """Only the missing required field is reported."""
        result = validate({"id": "1", "username": "jo", "level": 3}, "User")

        assert not result.ok
        assert len(result.violations) == 1
        assert result.violations[0].path == "role"
        assert result.violations[0].error == "missing_field"

    def test_optional_fields_may_be_absent(self):
        result = validate({"id": "1", "username": "jo", "level": 0, "role": "guest"}, "User")
        assert result.ok
        assert result.value.avatar is None

    def test_optional_field_must_conform_when_present(self, user_raw):
        user_raw["avatar"] = 42
        result = validate(user_raw, "User")
        assert _errors(result) == {("avatar", "type_mismatch")}

    def test_null_rejected_for_non_nullable(self, user_raw):
        user_raw["avatar"] = None
        result = validate(user_raw, "User")
        assert _errors(result) == {("avatar", "unexpected_null")}

    def test_unknown_role_rejected(self, user_raw):
        user_raw["role"] = "superuser"
        result = validate(user_raw, "User")

        assert _errors(result) == {("role", "invalid_enum")}
        assert "admin" in result.violations[0].expected

    def test_bool_is_not_an_int(self, user_raw):
        user_raw["level"] = True
        result = validate(user_raw, "User")
        assert _errors(result) == {("level", "type_mismatch")}

    def test_numeric_string_is_not_an_int(self, user_raw):
        user_raw["level"] = "3"
        result = validate(user_raw, "User")
        assert _errors(result) == {("level", "type_mismatch")}

    def test_negative_level_out_of_range(self, user_raw):
        user_raw["level"] = -1
        result = validate(user_raw, "User")
        assert _errors(result) == {("level", "out_of_range")}

    def test_empty_username_too_short(self, user_raw):
        user_raw["username"] = ""
        result = validate(user_raw, "User")
        assert _errors(result) == {("username", "too_short")}

    def test_bad_email_format(self, user_raw):
        user_raw["email"] = "not-an-email"
        result = validate(user_raw, "User")
        assert _errors(result) == {("email", "invalid_format")}

    def test_bad_datetime_format(self, user_raw):
        user_raw["createdAt"] = "yesterday"
        result = validate(user_raw, "User")
        assert _errors(result) == {("createdAt", "invalid_format")}

    @pytest.mark.parametrize("created_at", [
        "2024-05-01",
        "2024-05-01T12",
        "2024-05-01T12:00:00+05",
        "1714564800",
        "2024-13-01T12:00:00Z",
    ])
    def test_datetime_rejected_as_format_error(self, user_raw, created_at):
        """Bad datetimes are invalid_format, never left for the model to reject."""
        user_raw["createdAt"] = created_at
        result = validate(user_raw, "User")
        assert _errors(result) == {("createdAt", "invalid_format")}

    @pytest.mark.parametrize("created_at", [
        "2024-05-01T12:00:00Z",
        "2024-05-01T12:00:00.123456+05:30",
        "2024-05-01T12:00",
    ])
    def test_datetime_accepted(self, user_raw, created_at):
        user_raw["createdAt"] = created_at
        result = validate(user_raw, "User")
        assert result.ok, result.violations

    def test_violations_accumulated(self):
        """All structural errors are reported in one call."""
        raw = {"id": 7, "username": "jo", "level": -2, "role": "owner", "nickname": "j"}
        result = validate(raw, "User")

        assert _errors(result) == {
            ("id", "type_mismatch"),
            ("level", "out_of_range"),
            ("role", "invalid_enum"),
            ("nickname", "undeclared_field"),
        }

    def test_non_object_input(self):
        result = validate(["not", "an", "object"], "User")
        assert _errors(result) == {("$", "type_mismatch")}

    def test_unknown_schema_raises(self, user_raw):
        with pytest.raises(SchemaDefinitionError):
            validate(user_raw, "Nope")


class TestUnknownFieldPolicy:
    """STRICT reports undeclared fields; LENIENT drops them."""

    def test_strict_rejects_extra_field(self, user_raw):
        user_raw["nickname"] = "jojo"
        result = validate(user_raw, "User")

        assert _errors(result) == {("nickname", "undeclared_field")}

    def test_lenient_drops_extra_field(self, user_raw):
        user_raw["nickname"] = "jojo"
        result = validate(user_raw, "User", mode=SchemaMode.LENIENT)

        assert result.ok
        assert "nickname" not in result.value.model_dump(by_alias=True)

    def test_mode_from_environment(self, monkeypatch, user_raw):
        monkeypatch.setenv("CONTRACT_MODE", "lenient")
        user_raw["nickname"] = "jojo"

        assert validate(user_raw, "User").ok

    def test_lenient_still_checks_declared_fields(self, user_raw):
        user_raw["nickname"] = "jojo"
        user_raw["role"] = "owner"
        result = validate(user_raw, "User", mode=SchemaMode.LENIENT)

        assert _errors(result) == {("role", "invalid_enum")}


class TestPostValidation:
    """Discriminated dispatch on BasePost.type."""

    def test_sublet_resolves_to_variant(self, sublet_raw):
        result = validate(sublet_raw, "BasePost")

        assert result.ok
        assert result.schema == "SubletPost"
        assert isinstance(result.value, SubletPost)
        assert result.value.author.username == "jo"

    def test_housing_request_resolves_to_variant(self, housing_request_raw):
        result = validate(housing_request_raw, "BasePost")

        assert result.ok
        assert result.schema == "HousingRequestPost"
        assert isinstance(result.value, HousingRequestPost)

    def test_sublet_missing_variant_fields(self, sublet_raw):
        """Base fields alone do not satisfy the sublet variant."""
        for key in ("rent", "address", "availableFrom", "amenities", "utilities"):
            del sublet_raw[key]
        result = validate(sublet_raw, "BasePost")

        assert result.schema == "SubletPost"
        assert _errors(result) == {
            ("rent", "missing_field"),
            ("address", "missing_field"),
            ("availableFrom", "missing_field"),
            ("amenities", "missing_field"),
            ("utilities", "missing_field"),
        }

    def test_variant_validated_exclusively(self, sublet_raw):
        """Fields of the other variant are undeclared, not silently allowed."""
        sublet_raw["budgetMax"] = 900
        result = validate(sublet_raw, "BasePost")
        assert _errors(result) == {("budgetMax", "undeclared_field")}

    def test_unknown_discriminator(self, sublet_raw):
        sublet_raw["type"] = "roommate"
        result = validate(sublet_raw, "BasePost")

        assert _errors(result) == {("type", "unknown_variant")}
        assert result.violations[0].expected == ["housing_request", "sublet"]
        with pytest.raises(UnknownVariant):
            result.raise_for_violations()

    def test_missing_discriminator(self, sublet_raw):
        del sublet_raw["type"]
        result = validate(sublet_raw, "BasePost")
        assert _errors(result) == {("type", "missing_field")}

    def test_variant_schema_pins_literal(self, housing_request_raw):
        result = validate(housing_request_raw, "SubletPost")
        assert ("type", "invalid_value") in _errors(result)

    def test_nested_author_paths(self, sublet_raw):
        sublet_raw["author"] = {"id": "u-100", "username": "jo", "level": "high", "email": "jo@example.com"}
        result = validate(sublet_raw, "BasePost")

        assert _errors(result) == {
            ("author.level", "type_mismatch"),
            ("author.email", "undeclared_field"),
        }

    def test_list_item_paths(self, sublet_raw):
        sublet_raw["amenities"] = ["wifi", "sauna", "wifi"]
        result = validate(sublet_raw, "BasePost")

        assert _errors(result) == {
            ("amenities[1]", "invalid_enum"),
            ("amenities[2]", "duplicate_item"),
        }

    def test_set_of_amenities_accepted(self, sublet_raw):
        sublet_raw["amenities"] = {"wifi", "parking"}
        result = validate(sublet_raw, "BasePost")

        assert result.ok
        assert sorted(result.value.amenities) == ["parking", "wifi"]

    def test_validate_or_raise(self, sublet_raw):
        del sublet_raw["rent"]
        with pytest.raises(SchemaMismatch) as exc_info:
            validate_or_raise(sublet_raw, "BasePost")

        violations = exc_info.value.details["violations"]
        assert [v["path"] for v in violations] == ["rent"]


class TestEnvelopeValidation:
    """Envelope schemas bind their generic payload."""

    def test_api_response_with_payload(self, user_raw):
        envelope = {
            "data": user_raw,
            "meta": {"timestamp": "2024-05-01T12:00:00Z", "apiVersion": "v1"},
        }
        result = validate(envelope, "ApiResponse", payload="User")

        assert result.ok
        assert result.value["data"]["username"] == "jo"

    def test_payload_violations_are_prefixed(self, user_raw):
        del user_raw["role"]
        envelope = {
            "data": user_raw,
            "meta": {"timestamp": "2024-05-01T12:00:00Z", "apiVersion": "v1"},
        }
        result = validate(envelope, "ApiResponse", payload="User")
        assert _errors(result) == {("data.role", "missing_field")}

    def test_paginated_items_validated(self, sublet_raw, housing_request_raw):
        housing_request_raw["status"] = "archived"
        envelope = {
            "data": [sublet_raw, housing_request_raw],
            "pagination": {"page": 1, "pageSize": 2, "totalItems": 2, "totalPages": 1, "hasMore": False},
            "meta": {"timestamp": "2024-05-01T12:00:00Z", "apiVersion": "v1"},
        }
        result = validate(envelope, "PaginatedResponse", payload="BasePost")
        assert _errors(result) == {("data[1].status", "invalid_enum")}

    def test_envelope_payload_rejected(self):
        with pytest.raises(SchemaDefinitionError):
            validate({}, "ApiResponse", payload="ApiResponse")

    def test_missing_payload_binding_raises(self, user_raw):
        envelope = {
            "data": user_raw,
            "meta": {"timestamp": "2024-05-01T12:00:00Z", "apiVersion": "v1"},
        }
        with pytest.raises(SchemaDefinitionError):
            validate(envelope, "ApiResponse")
