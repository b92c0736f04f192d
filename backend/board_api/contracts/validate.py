"""
Contract Validator - structural validation of untyped input.

validate(raw, schema) checks deserialized JSON (or any mapping) against a
registered schema and returns a ValidationResult:
- Required fields present, optional fields conforming when present
- Type correctness (bool never counts as int), enum membership, literals
- Nested refs and list items validated recursively
- Discriminated schemas dispatch on the discriminator and validate
  exclusively against the matching variant
- Undeclared fields reported (STRICT) or dropped (LENIENT)

Violations are accumulated, never short-circuited, and each one carries
its field path (e.g. "author.level", "amenities[2]").
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from .enums import token_of
from .errors import SchemaDefinitionError, SchemaMismatch, UnknownVariant
from .registry import (
    PAYLOAD_REF,
    SCHEMAS,
    FieldSpec,
    ObjectSchema,
    SchemaLike,
    SchemaMode,
    SchemaRegistry,
    _get_default_mode,
)


logger = logging.getLogger('board_api.contracts.validate')

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
_EMAIL_RE = re.compile(EMAIL_PATTERN)

ROOT_PATH = "$"

# Date and time part required; pydantic alone would take "2024-05-01" or a unix timestamp
_DATETIME_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}")
_DATETIME_ADAPTER = TypeAdapter(datetime)


@dataclass(frozen=True)
class Violation:
    """A single structural error at a field path."""
    path: str
    error: str
    message: str
    expected: Any = None
    received: Any = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        out = {
            "path": self.path,
            "error": self.error,
            "message": self.message,
        }
        if self.expected is not None:
            out["expected"] = self.expected
        if self.received is not None:
            out["received"] = self.received
        return out


@dataclass
class ValidationResult:
    """Ok(value) when ``violations`` is empty, Fail(violations) otherwise."""
    value: Any = None
    violations: List[Violation] = field(default_factory=list)
    schema: Optional[str] = None   # Resolved schema (the variant for discriminated schemas)

    @property
    def ok(self) -> bool:
        return not self.violations

    @property
    def paths(self) -> List[str]:
        return [v.path for v in self.violations]

    def to_details(self) -> Dict[str, Any]:
        return {
            "schema": self.schema,
            "violations": [v.to_dict() for v in self.violations],
        }

    def raise_for_violations(self) -> None:
        """
        Raise if validation failed.

        Raises:
            UnknownVariant: If any violation is an unresolvable discriminator
            SchemaMismatch: For any other violation
        """
        if self.ok:
            return
        if any(v.error == "unknown_variant" for v in self.violations):
            raise UnknownVariant(
                message=f"{len(self.violations)} violation(s): unknown variant for '{self.schema}'",
                details=self.to_details(),
            )
        raise SchemaMismatch(
            message=f"{len(self.violations)} violation(s) against '{self.schema}'",
            details=self.to_details(),
        )


def validate(
    raw: Any,
    schema: SchemaLike,
    payload: Optional[SchemaLike] = None,
    mode: Optional[SchemaMode] = None,
    registry: Optional[SchemaRegistry] = None,
) -> ValidationResult:
    """
    Validate ``raw`` against ``schema``.

    Args:
        raw: Untyped input (e.g., parsed JSON body)
        schema: Schema name or ObjectSchema
        payload: Schema bound to the generic payload of envelope schemas
        mode: Unknown-field policy (defaults to CONTRACT_MODE)
        registry: Schema registry (defaults to the global one)

    Returns:
        ValidationResult with the typed value (pydantic model when the
        resolved schema has one, cleaned dict otherwise) or violations

    Raises:
        SchemaDefinitionError: Unknown schema, or bad payload binding
    """
    registry = registry if registry is not None else SCHEMAS
    target = registry.resolve(schema)
    payload_schema = None
    if payload is not None:
        payload_schema = registry.resolve(payload)
        if payload_schema.is_envelope:
            raise SchemaDefinitionError(
                f"Envelope '{target.name}' cannot carry envelope '{payload_schema.name}' as payload"
            )

    checker = _Checker(registry, mode or _get_default_mode(), payload_schema)
    cleaned, resolved = checker.check_object(raw, target, "")
    result = ValidationResult(violations=checker.violations, schema=resolved.name if resolved else target.name)
    if not result.ok:
        logger.debug(f"Validation against '{result.schema}' failed with {len(result.violations)} violation(s)")
        return result

    model = resolved.model if resolved is not None else None
    if model is None:
        result.value = cleaned
        return result

    try:
        result.value = model.model_validate(cleaned)
    except ValidationError as e:
        result.violations = [_from_pydantic_error(err) for err in e.errors()]
        logger.warning(
            f"Model {model.__name__} rejected input accepted by schema '{resolved.name}'",
            extra={"event": "model_schema_drift", "schema": resolved.name},
        )
    return result


class _Checker:
    """One validation pass; collects violations."""

    def __init__(self, registry: SchemaRegistry, mode: SchemaMode, payload: Optional[ObjectSchema]):
        self.registry = registry
        self.mode = mode
        self.payload = payload
        self.violations: List[Violation] = []

    def add(self, path: str, error: str, message: str, expected: Any = None, received: Any = None):
        self.violations.append(Violation(path or ROOT_PATH, error, message, expected, received))

    def check_object(self, raw: Any, schema: ObjectSchema, path: str):
        """Validate a mapping; return (cleaned dict, resolved schema)."""
        if not isinstance(raw, Mapping):
            self.add(path, "type_mismatch", f"Expected object for '{schema.name}'",
                     expected="object", received=type(raw).__name__)
            return None, None

        if schema.discriminator and schema.variants:
            variant = self._resolve_variant(raw, schema, path)
            if variant is None:
                return None, None
            schema = variant

        cleaned = {}
        for field_name, spec in schema.fields.items():
            field_path = _join(path, field_name)
            if field_name not in raw:
                if spec.required:
                    self.add(field_path, "missing_field", f"Required field '{field_name}' missing")
                continue
            cleaned[field_name] = self.check_value(raw[field_name], spec, field_path)

        undeclared = [k for k in raw.keys() if k not in schema.fields]
        if undeclared:
            if self.mode == SchemaMode.STRICT:
                for key in undeclared:
                    self.add(_join(path, str(key)), "undeclared_field",
                             f"Field '{key}' not declared in schema '{schema.name}'")
            else:
                logger.debug(f"Dropping undeclared fields {undeclared} for '{schema.name}'")

        return cleaned, schema

    def _resolve_variant(self, raw: Mapping, schema: ObjectSchema, path: str) -> Optional[ObjectSchema]:
        disc = schema.discriminator
        disc_path = _join(path, disc)
        if disc not in raw:
            self.add(disc_path, "missing_field", f"Discriminator '{disc}' missing")
            return None
        token = token_of(raw[disc])
        variant_name = schema.variants.get(token) if isinstance(token, str) else None
        if variant_name is None:
            self.add(disc_path, "unknown_variant",
                     f"'{token}' is not a registered variant of '{schema.name}'",
                     expected=sorted(schema.variants), received=token)
            return None
        return self.registry.resolve(variant_name)

    def check_value(self, value: Any, spec: FieldSpec, path: str) -> Any:
        if value is None:
            if not spec.nullable:
                self.add(path, "unexpected_null", f"Field '{spec.name}' cannot be null")
            return None

        value = token_of(value)

        if spec.type is str:
            return self._check_str(value, spec, path)
        if spec.type is bool:
            if not isinstance(value, bool):
                return self._mismatch(value, spec, path)
            return value
        if spec.type in (int, float):
            return self._check_number(value, spec, path)
        if spec.type is datetime:
            return self._check_datetime(value, spec, path)
        if spec.type is dict:
            return self._check_dict(value, spec, path)
        if spec.type is list:
            return self._check_list(value, spec, path)

        if not isinstance(value, spec.type):
            return self._mismatch(value, spec, path)
        return value

    def _mismatch(self, value: Any, spec: FieldSpec, path: str) -> Any:
        self.add(path, "type_mismatch", f"Field '{spec.name}' has the wrong type",
                 expected=spec.type.__name__, received=type(value).__name__)
        return value

    def _check_allowed(self, value: Any, spec: FieldSpec, path: str) -> None:
        if spec.allowed_values is not None:
            allowed = [token_of(v) for v in spec.allowed_values]
            if value not in allowed:
                self.add(path, "invalid_value", f"'{value}' not in allowed values",
                         expected=allowed, received=value)

    def _check_str(self, value: Any, spec: FieldSpec, path: str) -> Any:
        if not isinstance(value, str):
            return self._mismatch(value, spec, path)
        if spec.enum and not self.registry.enums.is_member(spec.enum, value):
            self.add(path, "invalid_enum", f"'{value}' is not a member of '{spec.enum}'",
                     expected=sorted(self.registry.enums.get(spec.enum) or []), received=value)
        self._check_allowed(value, spec, path)
        if spec.min_length is not None and len(value) < spec.min_length:
            self.add(path, "too_short", f"Field '{spec.name}' needs at least {spec.min_length} character(s)",
                     expected=spec.min_length, received=len(value))
        if spec.format == "email" and not _EMAIL_RE.match(value):
            self.add(path, "invalid_format", f"'{value}' is not a valid email address",
                     expected="email", received=value)
        return value

    def _check_number(self, value: Any, spec: FieldSpec, path: str) -> Any:
        accepted = (int,) if spec.type is int else (int, float)
        if isinstance(value, bool) or not isinstance(value, accepted):
            return self._mismatch(value, spec, path)
        if spec.min_value is not None and value < spec.min_value:
            self.add(path, "out_of_range", f"Field '{spec.name}' must be >= {spec.min_value}",
                     expected=f">={spec.min_value}", received=value)
        self._check_allowed(value, spec, path)
        return value

    def _check_datetime(self, value: Any, spec: FieldSpec, path: str) -> Any:
        if isinstance(value, datetime):
            return value
        if not isinstance(value, str):
            return self._mismatch(value, spec, path)
        if parse_datetime(value) is None:
            self.add(path, "invalid_format", f"'{value}' is not an ISO-8601 datetime",
                     expected="datetime", received=value)
        return value

    def _check_dict(self, value: Any, spec: FieldSpec, path: str) -> Any:
        if not isinstance(value, Mapping):
            return self._mismatch(value, spec, path)
        if not spec.ref:
            return dict(value)
        nested = self._nested_schema(spec.ref)
        cleaned, _ = self.check_object(value, nested, path)
        return cleaned

    def _check_list(self, value: Any, spec: FieldSpec, path: str) -> Any:
        if isinstance(value, (set, frozenset)):
            value = sorted(value, key=lambda v: str(token_of(v)))
        elif not isinstance(value, (list, tuple)):
            return self._mismatch(value, spec, path)

        cleaned = []
        seen = []
        for i, item in enumerate(value):
            item_path = f"{path}[{i}]"
            item = self.check_value(item, spec.items, item_path) if spec.items is not None else item
            if spec.unique:
                if item in seen:
                    self.add(item_path, "duplicate_item", f"Duplicate item '{item}' in '{spec.name}'",
                             received=item)
                seen.append(item)
            cleaned.append(item)
        return cleaned

    def _nested_schema(self, ref: str) -> ObjectSchema:
        if ref == PAYLOAD_REF:
            if self.payload is None:
                raise SchemaDefinitionError("Envelope schema validated without a payload schema")
            return self.payload
        return self.registry.resolve(ref)


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def parse_datetime(value: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 date-time (date part and time part). None if invalid.

    Uses the same parser as the pydantic models, so a string accepted here is
    never rejected later as model_rejected.
    """
    if not _DATETIME_PREFIX.match(value):
        return None
    try:
        return _DATETIME_ADAPTER.validate_python(value)
    except ValidationError:
        return None


def _from_pydantic_error(err: Dict[str, Any]) -> Violation:
    path = ""
    for part in err.get("loc", ()):
        path = f"{path}[{part}]" if isinstance(part, int) else _join(path, str(part))
    return Violation(path or ROOT_PATH, "model_rejected", err.get("msg", "rejected by model"))


def validate_or_raise(raw: Any, schema: SchemaLike, **kwargs) -> Any:
    """Validate and return the typed value, raising SchemaMismatch/UnknownVariant."""
    result = validate(raw, schema, **kwargs)
    result.raise_for_violations()
    return result.value
